"""Aggregate statistics over a range of daily reports and gift logs."""
from __future__ import annotations

from dataclasses import dataclass, field
from datetime import date
from typing import Dict, Iterable, Optional

from ..common.money import percent
from ..core.constants import NO_GIFT
from ..inventory.model import DEFAULT_CATEGORY_COLOR, GiftCategory, GiftItem
from .model import DailyReport, GiftLog

RETURNING_PATIENT_CATEGORY_KEYWORDS = ("구환", "치료 완료", "기존환자")
UNCATEGORIZED = "미분류"


@dataclass
class CategoryGiftCount:
    color: str
    gifts: Dict[str, int] = field(default_factory=dict)
    total: int = 0


@dataclass
class ReportStats:
    naver_review_count: int = 0
    consult_proceed: int = 0
    consult_hold: int = 0
    recall_count: int = 0
    recall_booking_count: int = 0
    total_consults: int = 0
    total_gifts: int = 0
    gift_counts: Dict[str, int] = field(default_factory=dict)
    gift_counts_by_category: Dict[str, CategoryGiftCount] = field(default_factory=dict)
    returning_patient_gift_count: int = 0
    consult_proceed_rate: float = 0.0
    recall_success_rate: float = 0.0
    review_to_returning_gift_rate: float = 0.0


def is_returning_patient_category(name: str) -> bool:
    return any(keyword in name for keyword in RETURNING_PATIENT_CATEGORY_KEYWORDS)


def stats_for_range(
    reports: Iterable[DailyReport],
    gifts: Iterable[GiftLog],
    start: date,
    end: date,
    inventory: Iterable[GiftItem] = (),
    categories: Iterable[GiftCategory] = (),
) -> ReportStats:
    """Sum report counters and count gifts between start and end (inclusive).

    Gifts are matched to a category through the inventory item with the same
    name; gifts without one land in the "미분류" bucket.
    """
    category_of: Dict[str, Optional[int]] = {item.name: item.category_id for item in inventory}
    category_by_id = {c.category_id: c for c in categories}
    returning_ids = {c.category_id for c in category_by_id.values() if is_returning_patient_category(c.name)}

    stats = ReportStats()
    for r in reports:
        if not start <= r.report_date <= end:
            continue
        stats.naver_review_count += r.naver_review_count
        stats.consult_proceed += r.consult_proceed
        stats.consult_hold += r.consult_hold
        stats.recall_count += r.recall_count
        stats.recall_booking_count += r.recall_booking_count

    for g in gifts:
        if not start <= g.log_date <= end:
            continue
        if not g.gift_type or g.gift_type == NO_GIFT:
            continue
        quantity = g.quantity or 1
        stats.total_gifts += quantity
        stats.gift_counts[g.gift_type] = stats.gift_counts.get(g.gift_type, 0) + quantity

        category_name, color = UNCATEGORIZED, DEFAULT_CATEGORY_COLOR
        category_id = category_of.get(g.gift_type)
        if category_id is not None:
            category = category_by_id.get(category_id)
            if category:
                category_name, color = category.name, category.color
            if category_id in returning_ids:
                stats.returning_patient_gift_count += quantity

        bucket = stats.gift_counts_by_category.setdefault(category_name, CategoryGiftCount(color=color))
        bucket.gifts[g.gift_type] = bucket.gifts.get(g.gift_type, 0) + quantity
        bucket.total += quantity

    stats.total_consults = stats.consult_proceed + stats.consult_hold
    stats.consult_proceed_rate = percent(stats.consult_proceed, stats.total_consults)
    stats.recall_success_rate = percent(stats.recall_booking_count, stats.recall_count)
    stats.review_to_returning_gift_rate = percent(stats.naver_review_count, stats.returning_patient_gift_count)
    return stats
