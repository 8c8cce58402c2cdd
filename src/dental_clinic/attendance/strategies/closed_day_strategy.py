from __future__ import annotations

from datetime import date, datetime
from typing import Optional

from ...clinics.model import DayHours
from ...core.constants import CLOSED_DAY_WORK_NOTE
from ...core.enums import AttendanceStatus
from .base import AttendanceStrategy, StatusDecision


class ClosedDayStrategy(AttendanceStrategy):
    """Work on a day the clinic is closed: never late, never early, flagged in the note."""

    def decide_checkin(self, *, now: datetime, today: date, schedule: Optional[DayHours], grace_minutes: int) -> StatusDecision:
        return StatusDecision(status=AttendanceStatus.ON_TIME, note=CLOSED_DAY_WORK_NOTE)
