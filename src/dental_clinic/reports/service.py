from __future__ import annotations

from collections import Counter
from dataclasses import replace
from datetime import date, datetime
from typing import Any, Iterable, List, Mapping, Optional, Sequence

from ..common.datetime_utils import now_local, parse_iso_date
from ..common.logger import get_logger
from ..common.validators import require_non_negative
from ..core.constants import NO_GIFT
from ..core.enums import ConsultStatus
from ..core.exceptions import NotFoundError, ValidationError
from ..inventory.service import InventoryService
from .model import ConsultLog, DailyReport, GiftLog, HappyCallLog, ReportBundle, SpecialNote
from .repository import ReportRepository
from .stats import ReportStats, stats_for_range

logger = get_logger(__name__)

REASON_GIFT_GIVEN = "선물 지급: {patient}"
REASON_REPORT_EDIT = "보고서 수정으로 인한 재고 복원: {patient}"
REASON_REPORT_DELETE = "데이터 삭제로 인한 재고 복원: {patient}"


def _text(row: Mapping[str, Any], key: str) -> str:
    return str(row.get(key) or "").strip()


def _rows(value: Any, label: str) -> List[Mapping[str, Any]]:
    if value is None:
        return []
    if not isinstance(value, (list, tuple)) or not all(isinstance(r, Mapping) for r in value):
        raise ValidationError(f"{label} 형식이 올바르지 않습니다")
    return list(value)


def _consult_status(value: Any) -> ConsultStatus:
    try:
        return ConsultStatus(str(value or "").strip().upper())
    except ValueError:
        raise ValidationError("상담 진행 여부는 O 또는 X 여야 합니다")


def _review_flag(value: Any) -> str:
    if value is True:
        return "O"
    v = str(value or "X").strip().upper()
    if v not in ("O", "X"):
        raise ValidationError("리뷰 여부는 O 또는 X 여야 합니다")
    return v


def parse_consults(clinic_id: int, log_date: date, raw: Any) -> List[ConsultLog]:
    """Rows with neither a patient name nor content are dropped."""
    consults = []
    for row in _rows(raw, "상담 기록"):
        name, content = _text(row, "patient_name"), _text(row, "consult_content")
        if not name and not content:
            continue
        consults.append(
            ConsultLog(
                clinic_id=clinic_id,
                log_date=log_date,
                patient_name=name,
                consult_content=content,
                consult_status=_consult_status(row.get("consult_status")),
                remarks=_text(row, "remarks"),
            )
        )
    return consults


def parse_gifts(clinic_id: int, log_date: date, raw: Any) -> List[GiftLog]:
    gifts = []
    for row in _rows(raw, "선물 기록"):
        name = _text(row, "patient_name")
        if not name:
            continue
        quantity = require_non_negative(row.get("quantity", 1), "선물 수량")
        if quantity < 1:
            raise ValidationError("선물 수량은 1 이상이어야 합니다")
        gifts.append(
            GiftLog(
                clinic_id=clinic_id,
                log_date=log_date,
                patient_name=name,
                gift_type=_text(row, "gift_type") or NO_GIFT,
                quantity=quantity,
                naver_review=_review_flag(row.get("naver_review")),
                notes=_text(row, "notes"),
            )
        )
    return gifts


def parse_happy_calls(clinic_id: int, log_date: date, raw: Any) -> List[HappyCallLog]:
    return [
        HappyCallLog(
            clinic_id=clinic_id,
            log_date=log_date,
            patient_name=_text(row, "patient_name"),
            treatment=_text(row, "treatment"),
            notes=_text(row, "notes"),
        )
        for row in _rows(raw, "해피콜 기록")
        if _text(row, "patient_name")
    ]


def count_logs(consults: Iterable[ConsultLog], gifts: Iterable[GiftLog]) -> tuple[int, int, int]:
    """(consult proceed, consult hold, naver reviews) derived from the log rows."""
    statuses = Counter(c.consult_status for c in consults)
    reviews = sum(1 for g in gifts if g.has_review)
    return statuses[ConsultStatus.PROCEED], statuses[ConsultStatus.HOLD], reviews


def _gift_quantities(gifts: Iterable[GiftLog]) -> Counter:
    totals: Counter = Counter()
    for g in gifts:
        if g.gift_type != NO_GIFT:
            totals[g.gift_type] += g.quantity
    return totals


def _as_date(value) -> date:
    return value if isinstance(value, date) else parse_iso_date(value)


class ReportService:
    """Use case: daily operation reports, their log rows and gift stock."""

    def __init__(self, reports: ReportRepository, inventory: InventoryService):
        self._reports = reports
        self._inventory = inventory

    def get_report(self, clinic_id: int, report_date) -> ReportBundle:
        day = _as_date(report_date)
        return ReportBundle(
            report=self._reports.get_report(int(clinic_id), day),
            consults=list(self._reports.list_consults(int(clinic_id), day, day)),
            gifts=list(self._reports.list_gifts(int(clinic_id), day, day)),
            happy_calls=list(self._reports.list_happy_calls(int(clinic_id), day, day)),
            special_notes=list(self._reports.list_special_notes(int(clinic_id), day)),
        )

    def list_reports(self, clinic_id: int, start, end) -> Sequence[DailyReport]:
        start, end = _as_date(start), _as_date(end)
        if end < start:
            raise ValidationError("종료일은 시작일 이후여야 합니다")
        return self._reports.list_reports(int(clinic_id), start, end)

    def save_report(
        self,
        *,
        clinic_id: int,
        author_id: Optional[int],
        author_name: str,
        data: Mapping[str, Any],
        now: Optional[datetime] = None,
    ) -> DailyReport:
        """Create or replace the report of one date.

        Stock is checked for every gift before anything is written. When the
        date already has gift logs their quantities are returned to stock and
        the new ones deducted.
        """
        clinic_id = int(clinic_id)
        now = now or now_local()
        report_date = parse_iso_date(data.get("date") or "")
        recall_count = require_non_negative(data.get("recall_count"), "리콜 수")
        recall_booking_count = require_non_negative(data.get("recall_booking_count"), "리콜 예약 수")

        consults = parse_consults(clinic_id, report_date, data.get("consult_rows"))
        gifts = parse_gifts(clinic_id, report_date, data.get("gift_rows"))
        happy_calls = parse_happy_calls(clinic_id, report_date, data.get("happy_call_rows"))

        previous_gifts = self._reports.list_gifts(clinic_id, report_date, report_date)
        self._check_stock(clinic_id, _gift_quantities(gifts), _gift_quantities(previous_gifts))

        proceed, hold, reviews = count_logs(consults, gifts)
        report = DailyReport(
            clinic_id=clinic_id,
            report_date=report_date,
            recall_count=recall_count,
            recall_booking_count=recall_booking_count,
            recall_booking_names=str(data.get("recall_booking_names") or "").strip(),
            consult_proceed=proceed,
            consult_hold=hold,
            naver_review_count=reviews,
        )
        report_id = self._reports.replace_report(report, consults, gifts, happy_calls)

        self._move_stock(clinic_id, previous_gifts, sign=1, reason=REASON_REPORT_EDIT, now=now)
        self._move_stock(clinic_id, gifts, sign=-1, reason=REASON_GIFT_GIVEN, now=now)

        note = str(data.get("special_notes") or "").strip()
        if note:
            self._reports.add_special_note(
                SpecialNote(
                    clinic_id=clinic_id,
                    report_date=report_date,
                    content=note,
                    author_id=author_id,
                    author_name=author_name,
                    is_past_date_edit=report_date < now.date(),
                    edited_at=now,
                )
            )

        logger.info(
            "Daily report saved: clinic=%s date=%s consults=%s gifts=%s happy_calls=%s",
            clinic_id,
            report_date,
            len(consults),
            len(gifts),
            len(happy_calls),
        )
        return replace(report, report_id=report_id)

    def _check_stock(self, clinic_id: int, needed: Counter, returned: Counter) -> None:
        for name, quantity in needed.items():
            item = self._inventory.find_by_name(clinic_id, name)
            if not item:
                continue
            available = item.stock + returned.get(name, 0)
            if quantity > available:
                raise ValidationError(f"재고가 부족합니다 ({name}: 현재 {available}개, 필요 {quantity}개)")

    def _move_stock(self, clinic_id: int, gifts: Iterable[GiftLog], *, sign: int, reason: str, now: datetime) -> None:
        for g in gifts:
            if g.gift_type == NO_GIFT:
                continue
            self._inventory.apply_change_by_name(
                clinic_id=clinic_id,
                name=g.gift_type,
                change=sign * g.quantity,
                reason=reason.format(patient=g.patient_name),
                now=now,
            )

    def delete_report(self, *, clinic_id: int, report_date, now: Optional[datetime] = None) -> None:
        """Delete the report and its logs; gifts go back to stock. Missing dates are a no-op."""
        clinic_id = int(clinic_id)
        day = _as_date(report_date)
        gifts = self._reports.list_gifts(clinic_id, day, day)
        self._move_stock(clinic_id, gifts, sign=1, reason=REASON_REPORT_DELETE, now=now or now_local())
        self._reports.delete_report(clinic_id, day)
        logger.info("Daily report deleted: clinic=%s date=%s (restored %s gift rows)", clinic_id, day, len(gifts))

    def recalculate_stats(self, clinic_id: int, report_date) -> DailyReport:
        clinic_id = int(clinic_id)
        day = _as_date(report_date)
        report = self._reports.get_report(clinic_id, day)
        if not report:
            raise NotFoundError("해당 날짜의 보고서가 없습니다")

        proceed, hold, reviews = count_logs(
            self._reports.list_consults(clinic_id, day, day),
            self._reports.list_gifts(clinic_id, day, day),
        )
        updated = replace(report, consult_proceed=proceed, consult_hold=hold, naver_review_count=reviews)
        self._reports.save_counts(updated)
        return updated

    def complete_consult(self, *, clinic_id: int, log_id: int, today: Optional[date] = None) -> ConsultLog:
        """Switch an on-hold consult to proceeding.

        The original date's counters move one from hold to proceed. When the
        consult is from an earlier day, today's report also gets +1 proceed and
        a copy of the consult is logged on today.
        """
        clinic_id = int(clinic_id)
        today = today or now_local().date()
        consult = self._reports.get_consult(clinic_id, int(log_id))
        if not consult:
            raise NotFoundError("상담 기록을 찾을 수 없습니다")
        if consult.consult_status == ConsultStatus.PROCEED:
            return consult

        self._reports.set_consult_status(consult.log_id, ConsultStatus.PROCEED)

        original = self._reports.get_report(clinic_id, consult.log_date)
        if original:
            self._reports.save_counts(
                replace(
                    original,
                    consult_proceed=original.consult_proceed + 1,
                    consult_hold=max(original.consult_hold - 1, 0),
                )
            )

        if consult.log_date != today:
            current = self._reports.get_report(clinic_id, today) or DailyReport(clinic_id=clinic_id, report_date=today)
            self._reports.save_counts(replace(current, consult_proceed=current.consult_proceed + 1))
            self._reports.add_consult(
                ConsultLog(
                    clinic_id=clinic_id,
                    log_date=today,
                    patient_name=consult.patient_name,
                    consult_content=consult.consult_content,
                    consult_status=ConsultStatus.PROCEED,
                    remarks=f"{consult.log_date.isoformat()} 상담 진행 전환",
                )
            )

        logger.info("Consult %s switched to proceed (clinic=%s)", consult.log_id, clinic_id)
        return replace(consult, consult_status=ConsultStatus.PROCEED)

    def stats(self, clinic_id: int, start, end) -> ReportStats:
        clinic_id = int(clinic_id)
        start, end = _as_date(start), _as_date(end)
        if end < start:
            raise ValidationError("종료일은 시작일 이후여야 합니다")
        return stats_for_range(
            self._reports.list_reports(clinic_id, start, end),
            self._reports.list_gifts(clinic_id, start, end),
            start,
            end,
            self._inventory.list_items(clinic_id),
            self._inventory.list_categories(clinic_id),
        )
