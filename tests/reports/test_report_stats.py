from datetime import date

from dental_clinic.inventory.model import GiftCategory, GiftItem
from dental_clinic.reports.model import DailyReport, GiftLog
from dental_clinic.reports.stats import is_returning_patient_category, stats_for_range

START, END = date(2024, 3, 1), date(2024, 3, 31)


def _gift(day, gift_type, quantity=1):
    return GiftLog(clinic_id=1, log_date=day, patient_name="환자", gift_type=gift_type, quantity=quantity)


def test_counters_are_summed_within_range():
    reports = [
        DailyReport(1, date(2024, 3, 4), recall_count=10, recall_booking_count=4, consult_proceed=3, consult_hold=1, naver_review_count=2),
        DailyReport(1, date(2024, 3, 5), recall_count=10, recall_booking_count=3, consult_proceed=1, consult_hold=3, naver_review_count=1),
        DailyReport(1, date(2024, 4, 1), recall_count=99),
    ]

    stats = stats_for_range(reports, [], START, END)

    assert stats.recall_count == 20
    assert stats.total_consults == 8
    assert stats.consult_proceed_rate == 50.0
    assert stats.recall_success_rate == 35.0
    assert stats.review_to_returning_gift_rate == 0.0


def test_gifts_grouped_by_category():
    items = [
        GiftItem(1, 1, "칫솔세트", 10, category_id=1),
        GiftItem(2, 1, "치실", 10, category_id=2),
        GiftItem(3, 1, "텀블러", 10),
    ]
    categories = [GiftCategory(1, 1, "구환 선물", "#ff0000"), GiftCategory(2, 1, "신환 선물", "#00ff00")]
    gifts = [
        _gift(date(2024, 3, 4), "칫솔세트", 2),
        _gift(date(2024, 3, 4), "치실"),
        _gift(date(2024, 3, 5), "텀블러"),
        _gift(date(2024, 3, 5), "없음"),
        _gift(date(2024, 2, 29), "칫솔세트"),
    ]
    reports = [DailyReport(1, date(2024, 3, 4), naver_review_count=1)]

    stats = stats_for_range(reports, gifts, START, END, items, categories)

    assert stats.total_gifts == 4
    assert stats.gift_counts == {"칫솔세트": 2, "치실": 1, "텀블러": 1}
    assert stats.gift_counts_by_category["구환 선물"].total == 2
    assert stats.gift_counts_by_category["구환 선물"].color == "#ff0000"
    assert stats.gift_counts_by_category["미분류"].gifts == {"텀블러": 1}
    assert stats.returning_patient_gift_count == 2
    assert stats.review_to_returning_gift_rate == 50.0


def test_returning_patient_keywords():
    assert is_returning_patient_category("치료 완료 환자")
    assert is_returning_patient_category("기존환자")
    assert not is_returning_patient_category("신환")
