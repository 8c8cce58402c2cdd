"""Clinic operating hours: defaults, merging of stored/user data, summaries.

Operating hours double as the default work schedule of every staff member,
so attendance (scheduled start/end) and payroll (scheduled work days) read
them through `hours_for_date` and `scheduled_work_days`.
"""
from __future__ import annotations

from datetime import date, datetime, time
from typing import Any, Mapping, Optional

from ..common.datetime_utils import format_hhmm, last_day_of_month, parse_hhmm
from ..core.constants import CLOSED_DAY_NOTE
from .model import DAY_KEYS, DAY_LABELS, DayHours, OperatingHours

DEFAULT_ENABLED_DAYS = frozenset({"monday", "tuesday", "wednesday", "thursday", "friday"})


def default_operating_hours() -> OperatingHours:
    hours: OperatingHours = {}
    for key in DAY_KEYS:
        enabled = key in DEFAULT_ENABLED_DAYS
        hours[key] = DayHours(enabled=enabled, note=None if enabled else CLOSED_DAY_NOTE)
    return hours


def _as_time(value: Any) -> Optional[time]:
    if value is None or isinstance(value, time):
        return value
    return parse_hhmm(str(value))


def merge_operating_hours(raw: Any) -> OperatingHours:
    """Overlay a partial mapping (e.g. a stored JSON column) onto the defaults."""
    merged = default_operating_hours()
    if not isinstance(raw, Mapping):
        return merged

    for key in DAY_KEYS:
        entry = raw.get(key)
        if not isinstance(entry, Mapping):
            continue
        base = merged[key]
        enabled = entry.get("enabled")
        merged[key] = DayHours(
            enabled=enabled if isinstance(enabled, bool) else base.enabled,
            start_time=_as_time(entry.get("start_time")) or base.start_time,
            end_time=_as_time(entry.get("end_time")) or base.end_time,
            break_start=_as_time(entry.get("break_start")) or base.break_start,
            break_end=_as_time(entry.get("break_end")) or base.break_end,
            note=str(entry["note"]) if entry.get("note") is not None else base.note,
        )
    return merged


def prepare_for_save(hours: Mapping[str, DayHours]) -> OperatingHours:
    prepared: OperatingHours = {}
    for key in DAY_KEYS:
        entry = hours.get(key) or DayHours(enabled=False)
        prepared[key] = DayHours(
            enabled=bool(entry.enabled),
            start_time=entry.start_time,
            end_time=entry.end_time,
            break_start=entry.break_start,
            break_end=entry.break_end,
            note=entry.note if entry.note is not None else (None if entry.enabled else CLOSED_DAY_NOTE),
        )
    return prepared


def to_dict(hours: Mapping[str, DayHours]) -> dict:
    return {
        key: {
            "enabled": entry.enabled,
            "start_time": format_hhmm(entry.start_time),
            "end_time": format_hhmm(entry.end_time),
            "break_start": format_hhmm(entry.break_start),
            "break_end": format_hhmm(entry.break_end),
            "note": entry.note,
        }
        for key, entry in hours.items()
    }


def format_operating_range(entry: DayHours) -> str:
    if not entry.enabled:
        return CLOSED_DAY_NOTE
    if entry.start_time and entry.end_time:
        return f"{format_hhmm(entry.start_time)} ~ {format_hhmm(entry.end_time)}"
    return "미설정"


def format_break_range(entry: DayHours) -> str:
    if not entry.enabled:
        return "-"
    if entry.break_start and entry.break_end:
        return f"{format_hhmm(entry.break_start)} ~ {format_hhmm(entry.break_end)}"
    return "없음"


def summarize(hours: Mapping[str, DayHours]) -> list[str]:
    lines = []
    for key in DAY_KEYS:
        entry = hours[key]
        line = f"{DAY_LABELS[key]}: {format_operating_range(entry)}"
        if entry.enabled and entry.break_start and entry.break_end:
            line += f" (점심 {format_break_range(entry)})"
        note = str(entry.note or "").strip()
        if note and note != CLOSED_DAY_NOTE:
            line += f" - {note}"
        lines.append(line)
    return lines


def has_configured_hours(hours: Mapping[str, DayHours]) -> bool:
    return any(e.enabled and e.start_time and e.end_time for e in hours.values())


def hours_for_date(hours: Mapping[str, DayHours], day: date) -> DayHours:
    return hours[DAY_KEYS[day.weekday()]]


def break_minutes(entry: DayHours) -> int:
    if not (entry.break_start and entry.break_end):
        return 0
    start = datetime.combine(date.min, entry.break_start)
    end = datetime.combine(date.min, entry.break_end)
    return max(int((end - start).total_seconds() // 60), 0)


def scheduled_work_days(
    hours: Mapping[str, DayHours],
    year: int,
    month: int,
    *,
    until: Optional[date] = None,
) -> list[date]:
    """Dates of the month that fall on an enabled weekday (optionally up to `until`)."""
    days = []
    for d in range(1, last_day_of_month(year, month) + 1):
        day = date(year, month, d)
        if until is not None and day > until:
            break
        if hours_for_date(hours, day).enabled:
            days.append(day)
    return days
