from __future__ import annotations

from dataclasses import dataclass

from ..attendance.model import AttendanceSummary
from ..common.money import round_won
from ..core.constants import STATUTORY_MONTHLY_HOURS


@dataclass(frozen=True)
class AttendanceDeduction:
    absence: int = 0
    tardiness: int = 0

    @property
    def total(self) -> int:
        return self.absence + self.tardiness


def calculate_attendance_deduction(
    summary: AttendanceSummary | None,
    base_salary: int,
    *,
    deduct_tardiness: bool = False,
) -> AttendanceDeduction:
    """Unpaid absences (daily rate over scheduled days) and, opt-in, late/early minutes at the hourly rate."""
    if summary is None or base_salary <= 0:
        return AttendanceDeduction()

    # daily rate over the whole month, absences only up to the as-of day
    work_days = summary.month_scheduled_days or summary.scheduled_days
    absence = 0
    if work_days > 0 and summary.absent_days > 0:
        absence = round_won(base_salary * summary.absent_days / work_days)

    tardiness = 0
    if deduct_tardiness:
        minutes = summary.late_minutes + summary.early_leave_minutes
        tardiness = round_won(base_salary / STATUTORY_MONTHLY_HOURS * minutes / 60)

    return AttendanceDeduction(absence=min(absence, int(base_salary)), tardiness=tardiness)
