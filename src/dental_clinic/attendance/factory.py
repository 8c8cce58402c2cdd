from __future__ import annotations

from dataclasses import dataclass
from datetime import date, datetime, timedelta
from typing import Optional

from ..clinics.model import DayHours
from ..core.enums import AttendanceStatus
from .strategies.base import AttendanceStrategy
from .strategies.closed_day_strategy import ClosedDayStrategy
from .strategies.early_strategy import EarlyLeaveStrategy
from .strategies.late_strategy import LateStrategy


@dataclass
class AttendanceStrategyFactory:
    """Factory Pattern: pick the strategy from the clinic's hours for that weekday.

    Closed days get ClosedDayStrategy; an open day without configured times
    falls back to the base rule.
    """

    def _regular(self, schedule: Optional[DayHours]) -> Optional[AttendanceStrategy]:
        if schedule is None or not schedule.enabled:
            return ClosedDayStrategy()
        if not (schedule.start_time and schedule.end_time):
            return AttendanceStrategy()
        return None

    def for_checkin(self, *, now: datetime, today: date, schedule: Optional[DayHours], grace_minutes: int) -> AttendanceStrategy:
        fallback = self._regular(schedule)
        if fallback is not None:
            return fallback

        start = datetime.combine(today, schedule.start_time)
        if now > start + timedelta(minutes=grace_minutes):
            return LateStrategy()
        return AttendanceStrategy()

    def for_checkout(
        self, *, now: datetime, today: date, schedule: Optional[DayHours], current_status: AttendanceStatus
    ) -> AttendanceStrategy:
        fallback = self._regular(schedule)
        if fallback is not None:
            return fallback

        # a late arrival stays LATE even when leaving early
        end = datetime.combine(today, schedule.end_time)
        if now < end and current_status == AttendanceStatus.ON_TIME:
            return EarlyLeaveStrategy()
        return AttendanceStrategy()
