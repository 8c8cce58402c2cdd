from __future__ import annotations

from datetime import date, datetime
from typing import Optional

from ...clinics.model import DayHours
from ...core.enums import AttendanceStatus
from .base import AttendanceStrategy, StatusDecision, minutes_between


class EarlyLeaveStrategy(AttendanceStrategy):
    """Check-out before closing time (조퇴); only chosen when check-in was on time."""

    def decide_checkout(self, *, now: datetime, today: date, schedule: Optional[DayHours], current: AttendanceStatus) -> StatusDecision:
        if not (schedule and schedule.end_time):
            return StatusDecision(status=AttendanceStatus.EARLY_LEAVE)
        early = minutes_between(now, datetime.combine(today, schedule.end_time))
        return StatusDecision(status=AttendanceStatus.EARLY_LEAVE, note=f"조퇴 {early}분", minutes=early)
