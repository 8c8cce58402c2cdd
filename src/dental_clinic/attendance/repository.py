from __future__ import annotations

from datetime import date, datetime, time
from typing import Optional, Protocol, Sequence

from ..core.enums import AttendanceStatus
from .model import AttendanceRecord, AttendanceReportRow, DailyQRCode


class AttendanceRepository(Protocol):
    def get_by_id(self, attendance_id: int) -> Optional[AttendanceRecord]:
        raise NotImplementedError

    def get_recent_for_user(self, user_id: int, limit: int) -> Sequence[AttendanceRecord]:
        raise NotImplementedError

    def get_for_user_and_date(self, user_id: int, work_date: date) -> Optional[AttendanceRecord]:
        raise NotImplementedError

    def list_for_user_between(self, user_id: int, start_date: date, end_date: date) -> Sequence[AttendanceRecord]:
        raise NotImplementedError

    def list_for_clinic_on(self, clinic_id: int, work_date: date) -> Sequence[AttendanceRecord]:
        raise NotImplementedError

    def create_checkin(
        self,
        *,
        clinic_id: int,
        user_id: int,
        work_date: date,
        check_in_time: datetime,
        status: AttendanceStatus,
        scheduled_start: Optional[time],
        scheduled_end: Optional[time],
        break_minutes: int,
        note: Optional[str] = None,
    ) -> int:
        raise NotImplementedError

    def update_checkout(
        self,
        *,
        attendance_id: int,
        check_out_time: datetime,
        status: AttendanceStatus,
        note: Optional[str] = None,
    ) -> bool:
        raise NotImplementedError

    def admin_update_record(
        self,
        *,
        attendance_id: int,
        check_in_time: Optional[datetime],
        check_out_time: Optional[datetime],
        status: AttendanceStatus,
        note: Optional[str],
        edited_by: int,
    ) -> bool:
        """Manager override; marks the row as manually edited."""

        raise NotImplementedError

    def get_report_rows(
        self,
        *,
        clinic_id: int,
        start_date: date,
        end_date: date,
        user_id: Optional[int] = None,
    ) -> Sequence[AttendanceReportRow]:
        raise NotImplementedError


class QRCodeRepository(Protocol):
    def get_for_date(self, clinic_id: int, valid_date: date) -> Optional[DailyQRCode]:
        raise NotImplementedError

    def get_by_code(self, qr_code: str) -> Optional[DailyQRCode]:
        raise NotImplementedError

    def create(
        self,
        *,
        clinic_id: int,
        qr_code: str,
        valid_date: date,
        latitude: Optional[float],
        longitude: Optional[float],
        radius_meters: int,
    ) -> DailyQRCode:
        raise NotImplementedError
