from __future__ import annotations

from datetime import date
from typing import Optional, Protocol, Sequence

from ..core.enums import ConsultStatus
from .model import ConsultLog, DailyReport, GiftLog, HappyCallLog, SpecialNote


class ReportRepository(Protocol):
    def get_report(self, clinic_id: int, report_date: date) -> Optional[DailyReport]:
        raise NotImplementedError

    def list_reports(self, clinic_id: int, start: date, end: date) -> Sequence[DailyReport]:
        raise NotImplementedError

    def list_consults(self, clinic_id: int, start: date, end: date) -> Sequence[ConsultLog]:
        raise NotImplementedError

    def list_gifts(self, clinic_id: int, start: date, end: date) -> Sequence[GiftLog]:
        raise NotImplementedError

    def list_happy_calls(self, clinic_id: int, start: date, end: date) -> Sequence[HappyCallLog]:
        raise NotImplementedError

    def replace_report(
        self,
        report: DailyReport,
        consults: Sequence[ConsultLog],
        gifts: Sequence[GiftLog],
        happy_calls: Sequence[HappyCallLog],
    ) -> int:
        """Delete the day's report and logs, then insert the new ones in one transaction."""

        raise NotImplementedError

    def save_counts(self, report: DailyReport) -> None:
        """Insert the report row or update its counters (logs untouched)."""

        raise NotImplementedError

    def delete_report(self, clinic_id: int, report_date: date) -> bool:
        """Delete the report row and every log of that date."""

        raise NotImplementedError

    def get_consult(self, clinic_id: int, log_id: int) -> Optional[ConsultLog]:
        raise NotImplementedError

    def set_consult_status(self, log_id: int, status: ConsultStatus) -> bool:
        raise NotImplementedError

    def add_consult(self, log: ConsultLog) -> int:
        raise NotImplementedError

    def add_special_note(self, note: SpecialNote) -> int:
        raise NotImplementedError

    def list_special_notes(self, clinic_id: int, report_date: date) -> Sequence[SpecialNote]:
        raise NotImplementedError
