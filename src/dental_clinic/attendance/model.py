from __future__ import annotations

from dataclasses import dataclass
from datetime import date, datetime, time
from typing import Optional

from ..core.enums import AttendanceStatus


def _minutes_between(start: datetime, end: datetime) -> int:
    return int((end - start).total_seconds() // 60)


@dataclass(frozen=True)
class AttendanceRecord:
    """Domain entity: one staff member's attendance for one work day.

    The scheduled start/end are copied from the clinic operating hours at
    check-in, so later changes to the hours do not rewrite history.
    """

    attendance_id: int
    clinic_id: int
    user_id: int
    work_date: date
    check_in_time: Optional[datetime]
    check_out_time: Optional[datetime]
    status: AttendanceStatus
    note: Optional[str] = None
    scheduled_start: Optional[time] = None
    scheduled_end: Optional[time] = None
    break_minutes: int = 0
    is_manually_edited: bool = False
    edited_by: Optional[int] = None

    @property
    def worked_minutes(self) -> int:
        """(out - in) - break, not below 0."""
        if not self.check_in_time or not self.check_out_time:
            return 0
        minutes = _minutes_between(self.check_in_time, self.check_out_time) - int(self.break_minutes or 0)
        return max(minutes, 0)

    @property
    def late_minutes(self) -> int:
        if not self.check_in_time or not self.scheduled_start:
            return 0
        start = datetime.combine(self.work_date, self.scheduled_start)
        return max(_minutes_between(start, self.check_in_time), 0)

    @property
    def early_leave_minutes(self) -> int:
        if not self.check_out_time or not self.scheduled_end:
            return 0
        end = datetime.combine(self.work_date, self.scheduled_end)
        return max(_minutes_between(self.check_out_time, end), 0)

    @property
    def overtime_minutes(self) -> int:
        if not self.check_out_time or not self.scheduled_end:
            return 0
        end = datetime.combine(self.work_date, self.scheduled_end)
        return max(_minutes_between(end, self.check_out_time), 0)


@dataclass(frozen=True)
class AttendanceReportRow:
    """Read-model for period reports (record joined with the staff name)."""

    user_id: int
    name: str
    record: AttendanceRecord


@dataclass(frozen=True)
class AttendanceSummary:
    """Monthly attendance figures for one employee (input of payroll)."""

    user_id: int
    year: int
    month: int
    scheduled_days: int = 0
    month_scheduled_days: int = 0  # whole month, basis of the daily rate
    present_days: int = 0
    absent_days: int = 0
    leave_days: int = 0
    holiday_days: int = 0
    late_count: int = 0
    late_minutes: int = 0
    early_leave_count: int = 0
    early_leave_minutes: int = 0
    overtime_minutes: int = 0
    total_worked_minutes: int = 0
    attendance_rate: float = 0.0


@dataclass(frozen=True)
class DailyQRCode:
    qr_id: int
    clinic_id: int
    qr_code: str
    valid_date: date
    latitude: Optional[float] = None
    longitude: Optional[float] = None
    radius_meters: int = 100
    is_active: bool = True


@dataclass(frozen=True)
class QRValidation:
    is_valid: bool
    clinic_id: Optional[int] = None
    message: Optional[str] = None
    distance_meters: Optional[int] = None
