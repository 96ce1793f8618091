"""Text labels for board rows. Labels never feed back into the shared instant."""

from __future__ import annotations

from datetime import datetime
from enum import Enum
from typing import List, Tuple

from .clock import (
    MINUTES_PER_DAY,
    MONTH_ABBR,
    SLOT_MINUTES,
    WEEKDAY_ABBR,
    TimezoneLookupError,
    offset_minutes,
    resolve_zone,
)

__all__ = [
    "DisplayFormat",
    "TIME_PLACEHOLDER",
    "DATE_PLACEHOLDER",
    "format_minutes",
    "format_time",
    "format_date",
    "offset_label",
    "offset_difference_label",
    "time_options",
]

TIME_PLACEHOLDER = "--:--"
DATE_PLACEHOLDER = "Invalid Date"


class DisplayFormat(str, Enum):
    """Clock convention used for time labels."""

    h12 = "h12"
    h24 = "h24"


def format_minutes(minutes: int, display_format: DisplayFormat, pad_hour: bool = False) -> str:
    """Render minutes-from-midnight as ``HH:MM`` or ``H:MM AM``."""

    hour, minute = divmod(int(minutes) % MINUTES_PER_DAY, 60)
    if display_format is DisplayFormat.h24:
        return f"{hour:02d}:{minute:02d}"
    suffix = "PM" if hour >= 12 else "AM"
    hour12 = hour % 12 or 12
    if pad_hour:
        return f"{hour12:02d}:{minute:02d} {suffix}"
    return f"{hour12}:{minute:02d} {suffix}"


def format_time(instant: datetime, timezone_id: str, display_format: DisplayFormat = DisplayFormat.h24) -> str:
    try:
        local = instant.astimezone(resolve_zone(timezone_id))
    except TimezoneLookupError:
        return TIME_PLACEHOLDER
    return format_minutes(local.hour * 60 + local.minute, display_format, pad_hour=True)


def format_date(instant: datetime, timezone_id: str) -> str:
    try:
        local = instant.astimezone(resolve_zone(timezone_id))
    except TimezoneLookupError:
        return DATE_PLACEHOLDER
    return f"{WEEKDAY_ABBR[local.weekday()]}, {MONTH_ABBR[local.month - 1]} {local.day}"


def offset_label(instant: datetime, timezone_id: str) -> str:
    """Short GMT offset such as ``GMT``, ``GMT+11`` or ``GMT-3:30``; empty if unknown."""

    try:
        offset = offset_minutes(instant, timezone_id)
    except TimezoneLookupError:
        return ""
    if offset == 0:
        return "GMT"
    sign = "+" if offset > 0 else "-"
    hours, minutes = divmod(abs(offset), 60)
    if minutes:
        return f"GMT{sign}{hours}:{minutes:02d}"
    return f"GMT{sign}{hours}"


def offset_difference_label(difference_minutes: int) -> str:
    if difference_minutes == 0:
        return "Same time"
    sign = "+" if difference_minutes > 0 else "-"
    hours, minutes = divmod(abs(difference_minutes), 60)
    if minutes:
        return f"{sign}{hours}h {minutes}m"
    return f"{sign}{hours}h"


def time_options(display_format: DisplayFormat) -> List[Tuple[int, str]]:
    """Selectable wall-clock values, one per 30-minute slot from 00:00 to 23:30."""

    return [
        (value, format_minutes(value, display_format))
        for value in range(0, MINUTES_PER_DAY, SLOT_MINUTES)
    ]
