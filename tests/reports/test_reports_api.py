from datetime import date

from dental_clinic.core.enums import ConsultStatus

PAYLOAD = {
    "date": "2024-03-04",
    "recall_count": 10,
    "recall_booking_count": 4,
    "consult_rows": [{"patient_name": "최환자", "consult_content": "교정", "consult_status": "X"}],
    "gift_rows": [{"patient_name": "박환자", "gift_type": "칫솔세트", "naver_review": "O"}],
}


def test_reports_require_login(client):
    assert client.get("/api/reports/2024-03-04").status_code == 401


def test_save_and_fetch_report(as_staff, container):
    container.inventory_service.add_item(clinic_id=1, name="칫솔세트", stock=5)

    resp = as_staff.post("/api/reports", json=PAYLOAD)
    assert resp.status_code == 200
    assert resp.get_json()["data"]["report_date"] == "2024-03-04"

    data = as_staff.get("/api/reports/2024-03-04").get_json()["data"]
    assert data["report"]["consult_hold"] == 1
    assert data["consult_rows"][0]["consult_status"] == "X"
    assert data["gift_rows"][0]["naver_review"] == "O"


def test_save_with_insufficient_stock_is_400(as_staff, container):
    container.inventory_service.add_item(clinic_id=1, name="칫솔세트", stock=0)

    resp = as_staff.post("/api/reports", json=PAYLOAD)

    assert resp.status_code == 400
    assert "재고가 부족합니다" in resp.get_json()["message"]


def test_list_and_stats_need_a_range(as_staff):
    as_staff.post("/api/reports", json=PAYLOAD)

    assert as_staff.get("/api/reports").status_code == 400
    rows = as_staff.get("/api/reports?start=2024-03-01&end=2024-03-31").get_json()["data"]
    assert [r["report_date"] for r in rows] == ["2024-03-04"]

    stats = as_staff.get("/api/reports/stats?start=2024-03-01&end=2024-03-31").get_json()["data"]
    assert stats["recall_success_rate"] == 40.0
    assert stats["gift_counts"] == {"칫솔세트": 1}
    assert stats["gift_counts_by_category"]["미분류"]["total"] == 1


def test_bad_date_in_path(as_staff):
    assert as_staff.get("/api/reports/yesterday").status_code == 400


def test_complete_consult_and_delete(as_staff, reports_repo):
    as_staff.post("/api/reports", json=PAYLOAD)
    log_id = reports_repo.list_consults(1, date(2024, 3, 4), date(2024, 3, 4))[0].log_id

    resp = as_staff.post(f"/api/consults/{log_id}/complete")
    assert resp.get_json()["data"]["consult_status"] == ConsultStatus.PROCEED.value

    assert as_staff.delete("/api/reports/2024-03-04").status_code == 200
    assert as_staff.post("/api/reports/2024-03-04/recalculate").status_code == 404
