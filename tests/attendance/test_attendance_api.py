from datetime import date, datetime, time

import pytest

from conftest import record
from dental_clinic.core.enums import AttendanceStatus

NOW = datetime(2024, 3, 4, 9, 2)


@pytest.fixture
def frozen_now(monkeypatch):
    def set_now(value: datetime):
        monkeypatch.setattr("dental_clinic.attendance.service.now_local", lambda: value)
        monkeypatch.setattr("dental_clinic.attendance.controller.now_local", lambda: value)

    set_now(NOW)
    return set_now


def test_check_in_requires_login(client):
    assert client.post("/api/attendance/check-in").status_code == 401


def test_check_in_and_out(as_staff, frozen_now):
    resp = as_staff.post("/api/attendance/check-in", json={})
    assert resp.status_code == 200
    assert resp.get_json()["data"]["status"] == "ON_TIME"

    assert as_staff.post("/api/attendance/check-in", json={}).status_code == 400

    frozen_now(datetime(2024, 3, 4, 18, 1))
    resp = as_staff.post("/api/attendance/check-out")
    assert resp.get_json()["data"]["status"] == "ON_TIME"

    today = as_staff.get("/api/attendance/today").get_json()["data"]
    assert today["check_in"] == "09:02:00"
    assert today["worked_hours"] == "07:59"


def test_bad_coordinates_are_rejected(as_staff, frozen_now):
    resp = as_staff.post("/api/attendance/check-in", json={"latitude": "north"})

    assert resp.status_code == 400


def test_scan_with_daily_code(as_staff, container, frozen_now):
    code = container.qr_service.get_or_create_daily_code(1, NOW.date()).qr_code

    resp = as_staff.post("/api/attendance/scan", json={"qr_code": code})

    assert resp.get_json()["data"]["action"] == "check_in"


def test_staff_cannot_read_other_history(as_staff):
    assert as_staff.get("/api/attendance/history?user_id=1").status_code == 403
    assert as_staff.get("/api/attendance/history?user_id=abc").status_code == 400


def test_manager_reads_staff_summary(as_owner, attendance_repo, frozen_now):
    attendance_repo.add(record(1, 2, date(2024, 3, 1), time(9, 0), time(18, 0)))

    resp = as_owner.get("/api/attendance/summary?user_id=2&year=2024&month=3")

    data = resp.get_json()["data"]
    assert data["present_days"] == 1
    assert data["absent_days"] == 0
    assert data["scheduled_days"] == 2


def test_team_board_is_manager_only(as_staff):
    assert as_staff.get("/api/attendance/team").status_code == 403


def test_manager_edits_record(as_owner, attendance_repo):
    attendance_repo.add(record(1, 2, date(2024, 3, 4), time(9, 30), None, AttendanceStatus.LATE))

    resp = as_owner.put(
        "/api/attendance/1",
        json={"status": "ON_TIME", "check_in_time": "2024-03-04T09:00", "check_out_time": "2024-03-04 18:00:00"},
    )

    assert resp.status_code == 200
    assert attendance_repo.get_by_id(1).check_out_time == datetime(2024, 3, 4, 18, 0)

    assert as_owner.put("/api/attendance/1", json={"status": "SICK"}).status_code == 400


def test_report_csv(as_owner, attendance_repo):
    attendance_repo.names = {2: "이위생사"}
    attendance_repo.add(record(1, 2, date(2024, 3, 4), time(9, 0), time(18, 0)))

    resp = as_owner.get("/api/attendance/report.csv?start=2024-03-01&end=2024-03-31")

    assert resp.mimetype == "text/csv"
    lines = resp.data.decode("utf-8-sig").splitlines()
    assert lines[0] == "work_date,user_id,name,check_in,check_out,status,worked_hours,note"
    assert lines[1] == "2024-03-04,2,이위생사,09:00,18:00,ON_TIME,08:00,"


def test_report_rejects_bad_dates(as_owner):
    assert as_owner.get("/api/attendance/report?start=2024/03/01").status_code == 400


def test_qr_png(as_owner):
    resp = as_owner.get("/api/attendance/qr.png")

    assert resp.status_code == 200
    assert resp.mimetype == "image/png"
    assert resp.data.startswith(b"\x89PNG")
