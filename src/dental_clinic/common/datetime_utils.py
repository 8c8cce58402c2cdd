from __future__ import annotations

import calendar
import re
from datetime import date, datetime, time
from typing import Optional

from ..core.exceptions import ValidationError

_ISO_DATE = re.compile(r"^\d{4}-\d{2}-\d{2}$")


def parse_iso_date(value: str) -> date:
    """Parse YYYY-MM-DD string into date."""
    if not value or not _ISO_DATE.match(value.strip()):
        raise ValidationError("날짜 형식이 올바르지 않습니다. (YYYY-MM-DD)")
    try:
        return datetime.strptime(value.strip(), "%Y-%m-%d").date()
    except ValueError:
        raise ValidationError("날짜 형식이 올바르지 않습니다. (YYYY-MM-DD)")


def parse_hhmm(value: Optional[str]) -> Optional[time]:
    v = (value or "").strip()
    if not v:
        return None
    try:
        return datetime.strptime(v[:5], "%H:%M").time()
    except ValueError:
        raise ValidationError("시간 형식이 올바르지 않습니다. (HH:MM)")


def format_hhmm(value: Optional[time]) -> Optional[str]:
    return value.strftime("%H:%M") if value else None


def format_minutes(minutes: int) -> str:
    """450 -> '07:30'."""
    minutes = int(minutes)
    return f"{minutes // 60:02d}:{minutes % 60:02d}"


def last_day_of_month(year: int, month: int) -> int:
    return calendar.monthrange(year, month)[1]


def month_bounds(year: int, month: int) -> tuple[date, date]:
    return date(year, month, 1), date(year, month, last_day_of_month(year, month))


def now_local() -> datetime:
    """Current local time.

    Note: Wrapped so tests can patch/mocked easier.
    """
    return datetime.now()


def parse_optional_datetime(value: Optional[str]) -> Optional[datetime]:
    """'2024-03-05T09:02' / '2024-03-05 09:02:00' -> datetime; empty -> None."""
    v = (value or "").strip()
    if not v:
        return None
    try:
        return datetime.fromisoformat(v.replace(" ", "T"))
    except ValueError:
        raise ValidationError("일시 형식이 올바르지 않습니다. (YYYY-MM-DDTHH:MM)")
