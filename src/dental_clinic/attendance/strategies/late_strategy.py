from __future__ import annotations

from datetime import date, datetime
from typing import Optional

from ...clinics.model import DayHours
from ...core.enums import AttendanceStatus
from .base import AttendanceStrategy, StatusDecision, minutes_between


class LateStrategy(AttendanceStrategy):
    """Check-in after the opening time plus the grace window (지각)."""

    def decide_checkin(self, *, now: datetime, today: date, schedule: Optional[DayHours], grace_minutes: int) -> StatusDecision:
        if not (schedule and schedule.start_time):
            return StatusDecision(status=AttendanceStatus.LATE)
        late = minutes_between(datetime.combine(today, schedule.start_time), now)
        return StatusDecision(status=AttendanceStatus.LATE, note=f"지각 {late}분", minutes=late)
