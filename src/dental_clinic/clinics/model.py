from __future__ import annotations

from dataclasses import dataclass
from datetime import time
from typing import Dict, Optional

DAY_KEYS = ("monday", "tuesday", "wednesday", "thursday", "friday", "saturday", "sunday")

DAY_LABELS = {
    "monday": "월요일",
    "tuesday": "화요일",
    "wednesday": "수요일",
    "thursday": "목요일",
    "friday": "금요일",
    "saturday": "토요일",
    "sunday": "일요일",
}


@dataclass(frozen=True)
class Clinic:
    clinic_id: int
    name: str
    owner_name: Optional[str] = None
    status: str = "active"


@dataclass(frozen=True)
class DayHours:
    """Operating hours of one weekday (times are None until configured)."""

    enabled: bool
    start_time: Optional[time] = None
    end_time: Optional[time] = None
    break_start: Optional[time] = None
    break_end: Optional[time] = None
    note: Optional[str] = None


# weekday key -> DayHours, always holding all seven keys
OperatingHours = Dict[str, DayHours]
