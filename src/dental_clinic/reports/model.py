from __future__ import annotations

from dataclasses import dataclass, field
from datetime import date, datetime
from typing import List, Optional

from ..core.enums import ConsultStatus


@dataclass(frozen=True)
class DailyReport:
    """Per-day counters for one clinic (one row per clinic and date)."""

    clinic_id: int
    report_date: date
    recall_count: int = 0
    recall_booking_count: int = 0
    recall_booking_names: str = ""
    consult_proceed: int = 0
    consult_hold: int = 0
    naver_review_count: int = 0
    report_id: Optional[int] = None


@dataclass(frozen=True)
class ConsultLog:
    clinic_id: int
    log_date: date
    patient_name: str
    consult_content: str
    consult_status: ConsultStatus
    remarks: str = ""
    log_id: Optional[int] = None


@dataclass(frozen=True)
class GiftLog:
    clinic_id: int
    log_date: date
    patient_name: str
    gift_type: str
    quantity: int = 1
    # 'O' when the patient left a Naver review
    naver_review: str = "X"
    notes: str = ""
    log_id: Optional[int] = None

    @property
    def has_review(self) -> bool:
        return self.naver_review == "O"


@dataclass(frozen=True)
class HappyCallLog:
    clinic_id: int
    log_date: date
    patient_name: str
    treatment: str = ""
    notes: str = ""
    log_id: Optional[int] = None


@dataclass(frozen=True)
class SpecialNote:
    clinic_id: int
    report_date: date
    content: str
    author_name: str
    edited_at: datetime
    author_id: Optional[int] = None
    is_past_date_edit: bool = False
    note_id: Optional[int] = None


@dataclass
class ReportBundle:
    """A report with all of its log rows, as shown on the daily report page."""

    report: Optional[DailyReport]
    consults: List[ConsultLog] = field(default_factory=list)
    gifts: List[GiftLog] = field(default_factory=list)
    happy_calls: List[HappyCallLog] = field(default_factory=list)
    special_notes: List[SpecialNote] = field(default_factory=list)
