"""Slot grid generation from opening hours.

All arithmetic is in integer minutes since midnight.
"""
from __future__ import annotations

import datetime as dt
from typing import Any, Dict, List, Optional

from tablebook.config import Settings, get_settings
from tablebook.schemas.restaurant import DaySchedule

WEEKDAY_NAMES = [
    "monday",
    "tuesday",
    "wednesday",
    "thursday",
    "friday",
    "saturday",
    "sunday",
]

_STANDARD_DAY = {
    "lunch": {"open": "12:00", "close": "14:30"},
    "evening": {"open": "19:00", "close": "22:30"},
}

DEFAULT_OPENING_HOURS: Dict[str, Dict[str, Any]] = {
    "monday": _STANDARD_DAY,
    "tuesday": _STANDARD_DAY,
    "wednesday": _STANDARD_DAY,
    "thursday": _STANDARD_DAY,
    "friday": _STANDARD_DAY,
    "saturday": _STANDARD_DAY,
    "sunday": {"closed": True},
}


def parse_time(value: str) -> int:
    """Convert ``HH:MM`` to minutes since midnight."""
    hours, sep, minutes = value.partition(":")
    if not sep or not hours.isdigit() or not minutes.isdigit():
        raise ValueError(f"Invalid time {value!r}, expected HH:MM")
    total = int(hours) * 60 + int(minutes)
    if int(minutes) >= 60 or total >= 24 * 60:
        raise ValueError(f"Invalid time {value!r}, expected HH:MM")
    return total


def format_time(minutes: int) -> str:
    """Convert minutes since midnight to ``HH:MM``."""
    return f"{minutes // 60:02d}:{minutes % 60:02d}"


def slot_duration_for_party(party_size: int, settings: Optional[Settings] = None) -> int:
    """Default sitting length: 90 minutes up to 4 guests, 120 above."""
    settings = settings or get_settings()
    if party_size <= settings.small_party_max_size:
        return settings.small_party_duration_minutes
    return settings.large_party_duration_minutes


def generate_window_slots(
    open_time: str,
    close_time: str,
    duration_minutes: int,
    buffer_minutes: int,
) -> List[str]:
    """
    Slot start times within one service window.

    A slot is emitted every ``duration + buffer`` minutes from ``open`` as long
    as the sitting itself ends by ``close``.
    """
    start = parse_time(open_time)
    end = parse_time(close_time)
    step = duration_minutes + buffer_minutes
    if step <= 0:
        raise ValueError("duration_minutes + buffer_minutes must be positive")

    slots = []
    current = start
    while current + duration_minutes <= end:
        slots.append(format_time(current))
        current += step
    return slots


def generate_day_slots(
    schedule: DaySchedule,
    duration_minutes: int,
    buffer_minutes: int,
) -> List[str]:
    """Lunch slots followed by evening slots. Closed days yield nothing."""
    if schedule.closed:
        return []

    slots: List[str] = []
    for window in (schedule.lunch, schedule.evening):
        if window is not None:
            slots.extend(
                generate_window_slots(window.open, window.close, duration_minutes, buffer_minutes)
            )
    return slots


def resolve_day_schedule(
    opening_hours: Optional[Dict[str, Any]],
    day: dt.date,
) -> DaySchedule:
    """
    Pick the schedule that applies to ``day``.

    A restaurant without configured hours uses DEFAULT_OPENING_HOURS. A
    configured restaurant that omits the weekday falls back to its own
    ``default`` entry, and is closed if it has none.
    """
    hours = opening_hours if opening_hours else DEFAULT_OPENING_HOURS
    weekday = WEEKDAY_NAMES[day.weekday()]
    entry = hours.get(weekday) or hours.get("default")
    if not entry:
        return DaySchedule(closed=True)
    return DaySchedule.model_validate(entry)
