"""Per-location rows derived from a single :class:`SyncState`."""

from __future__ import annotations

from typing import Dict, List, Optional

from .anchor import Location, SyncState
from .clock import (
    MINUTES_PER_DAY,
    TimezoneLookupError,
    local_parts,
    offset_minutes,
    round_to_slot,
)
from .labels import (
    DisplayFormat,
    format_date,
    format_time,
    offset_difference_label,
    offset_label,
)
from .solar import estimate_solar_cycle

__all__ = ["WORK_START_MINUTES", "WORK_END_MINUTES", "render_board", "render_row"]

WORK_START_MINUTES = 9 * 60
WORK_END_MINUTES = 18 * 60


def _offset_or_zero(state: SyncState, timezone_id: str) -> int:
    try:
        return offset_minutes(state.instant, timezone_id)
    except TimezoneLookupError:
        return 0


def render_row(
    state: SyncState,
    location: Location,
    display_format: DisplayFormat = DisplayFormat.h24,
    home: Optional[Location] = None,
) -> Dict[str, object]:
    """Return the display values of *location* at the state's instant.

    The row is a pure function of ``(state.instant, location)`` and the home
    location used for the relative offset.
    """

    instant = state.instant
    home = home if home is not None else state.home
    is_home = home is not None and home.id == location.id

    parts = local_parts(instant, location.timezone)
    solar = estimate_solar_cycle(location.lat, instant, location.timezone)
    offset = _offset_or_zero(state, location.timezone)

    if is_home or home is None:
        difference = 0
        difference_label = ""
    else:
        difference = offset - _offset_or_zero(state, home.timezone)
        difference_label = offset_difference_label(difference)

    current = parts.total_minutes
    return {
        "id": location.id,
        "name": location.name,
        "country": location.country,
        "state": location.state,
        "timezone": location.timezone,
        "lat": location.lat,
        "lng": location.lng,
        "is_home": is_home,
        "hour": parts.hour,
        "minute": parts.minute,
        "total_minutes": current,
        "slot_minutes": round_to_slot(current),
        "day_label": parts.day_label,
        "time_label": format_time(instant, location.timezone, display_format),
        "date_label": format_date(instant, location.timezone),
        "offset_minutes": offset,
        "offset_label": offset_label(instant, location.timezone),
        "offset_difference_minutes": difference,
        "offset_difference_label": difference_label,
        "sunrise": solar.sunrise,
        "sunset": solar.sunset,
        "is_daytime": solar.sunrise <= current < solar.sunset,
        "is_working_hours": WORK_START_MINUTES <= current < WORK_END_MINUTES,
        "day_progress": current / MINUTES_PER_DAY,
    }


def render_board(state: SyncState, display_format: DisplayFormat = DisplayFormat.h24) -> List[Dict[str, object]]:
    home = state.home
    return [render_row(state, location, display_format, home) for location in state.locations]
