from __future__ import annotations

from dataclasses import dataclass
from datetime import date, datetime
from typing import Optional

from ...clinics.model import DayHours
from ...core.enums import AttendanceStatus


@dataclass(frozen=True)
class StatusDecision:
    status: AttendanceStatus
    note: Optional[str] = None
    minutes: int = 0  # minutes late / left early


def minutes_between(earlier: datetime, later: datetime) -> int:
    return max(0, int((later - earlier).total_seconds() // 60))


class AttendanceStrategy:
    """Strategy Pattern: how a check-in/check-out turns into an attendance status.

    The base rule covers a regular working day: arrival is on time and
    check-out keeps whatever check-in decided.
    """

    def decide_checkin(self, *, now: datetime, today: date, schedule: Optional[DayHours], grace_minutes: int) -> StatusDecision:
        return StatusDecision(status=AttendanceStatus.ON_TIME)

    def decide_checkout(self, *, now: datetime, today: date, schedule: Optional[DayHours], current: AttendanceStatus) -> StatusDecision:
        return StatusDecision(status=current)
