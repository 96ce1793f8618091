"""Wall-clock and instant conversions backed by the IANA timezone database."""

from __future__ import annotations

import json
import logging
import math
from dataclasses import dataclass
from datetime import UTC, date, datetime, timedelta
from functools import lru_cache
from zoneinfo import ZoneInfo, ZoneInfoNotFoundError

__all__ = [
    "LocalTimeParts",
    "TimezoneLookupError",
    "MINUTES_PER_DAY",
    "SLOT_MINUTES",
    "offset_minutes",
    "local_parts",
    "local_minutes",
    "synthesize_instant",
    "round_to_slot",
    "resolve_zone",
]

LOGGER = logging.getLogger(__name__)

MINUTES_PER_DAY = 1440
SLOT_MINUTES = 30

WEEKDAY_ABBR = ("Mon", "Tue", "Wed", "Thu", "Fri", "Sat", "Sun")
MONTH_ABBR = (
    "Jan", "Feb", "Mar", "Apr", "May", "Jun",
    "Jul", "Aug", "Sep", "Oct", "Nov", "Dec",
)


class TimezoneLookupError(LookupError):
    """Raised when a timezone identifier is not known to the tz database."""


@dataclass(frozen=True)
class LocalTimeParts:
    """Wall-clock view of one instant in one zone."""

    hour: int
    minute: int
    total_minutes: int
    weekday: str
    month: str
    day: int
    year: int
    day_label: str

    @property
    def date(self) -> date:
        return date(self.year, MONTH_ABBR.index(self.month) + 1, self.day)


PLACEHOLDER_PARTS = LocalTimeParts(
    hour=0,
    minute=0,
    total_minutes=0,
    weekday="",
    month="Jan",
    day=1,
    year=2024,
    day_label="",
)


@lru_cache(maxsize=256)
def resolve_zone(timezone_id: str) -> ZoneInfo:
    """Return the :class:`ZoneInfo` for *timezone_id*.

    Raises
    ------
    TimezoneLookupError
        If the identifier is empty, malformed, or missing from the database.
    """

    if not isinstance(timezone_id, str) or not timezone_id:
        raise TimezoneLookupError(f"Invalid timezone identifier: {timezone_id!r}")
    try:
        return ZoneInfo(timezone_id)
    except (ZoneInfoNotFoundError, ValueError, OSError) as exc:
        # Directory keys such as "America" surface as IsADirectoryError.
        raise TimezoneLookupError(f"Unknown timezone: {timezone_id}") from exc


def _require_aware(instant: datetime) -> datetime:
    if instant.tzinfo is None or instant.utcoffset() is None:
        raise ValueError("instant must be timezone-aware")
    return instant


def offset_minutes(instant: datetime, timezone_id: str) -> int:
    """Return the UTC offset of *timezone_id* at *instant*, in minutes east of UTC.

    The offset is the difference between the wall clock the instant shows in
    the zone and the wall clock it shows in UTC.
    """

    zone = resolve_zone(timezone_id)
    _require_aware(instant)
    local_wall = instant.astimezone(zone).replace(tzinfo=None)
    utc_wall = instant.astimezone(UTC).replace(tzinfo=None)
    return math.floor((local_wall - utc_wall).total_seconds() / 60)


def _lenient_offset(instant: datetime, timezone_id: str) -> int:
    try:
        return offset_minutes(instant, timezone_id)
    except TimezoneLookupError as exc:
        LOGGER.warning(
            json.dumps({"event": "timezone_lookup_failed", "timezone": timezone_id, "error": str(exc)})
        )
        return 0


def local_parts(instant: datetime, timezone_id: str) -> LocalTimeParts:
    """Decompose *instant* into wall-clock components for *timezone_id*.

    Unknown zones yield the placeholder parts (midnight, Jan 1 2024) so a
    single bad location cannot break a whole board.
    """

    try:
        local = _require_aware(instant).astimezone(resolve_zone(timezone_id))
    except TimezoneLookupError as exc:
        LOGGER.warning(
            json.dumps({"event": "timezone_lookup_failed", "timezone": timezone_id, "error": str(exc)})
        )
        return PLACEHOLDER_PARTS

    weekday = WEEKDAY_ABBR[local.weekday()]
    month = MONTH_ABBR[local.month - 1]
    return LocalTimeParts(
        hour=local.hour,
        minute=local.minute,
        total_minutes=local.hour * 60 + local.minute,
        weekday=weekday,
        month=month,
        day=local.day,
        year=local.year,
        day_label=f"{weekday}, {month} {local.day}",
    )


def local_minutes(instant: datetime, timezone_id: str) -> int:
    return local_parts(instant, timezone_id).total_minutes


def synthesize_instant(desired_minutes: int, timezone_id: str, reference_date: date) -> datetime:
    """Return the UTC instant at which *timezone_id* shows *desired_minutes*.

    The wall clock is anchored to *reference_date*. The offset used for the
    correction is itself a function of the instant, so it is re-checked once
    at the corrected candidate; inside a skipped or repeated DST hour the
    result lands on the neighbouring valid wall-clock time.
    """

    naive = datetime(
        reference_date.year, reference_date.month, reference_date.day, tzinfo=UTC
    ) + timedelta(minutes=desired_minutes)

    approx_offset = _lenient_offset(naive, timezone_id)
    refined = naive - timedelta(minutes=approx_offset)

    final_offset = _lenient_offset(refined, timezone_id)
    if final_offset != approx_offset:
        return naive - timedelta(minutes=final_offset)
    return refined


def round_to_slot(minutes: float, slot: int = SLOT_MINUTES) -> int:
    """Round to the nearest *slot* boundary, halves up; a full day wraps to 0."""

    rounded = math.floor(minutes / slot + 0.5) * slot
    if rounded >= MINUTES_PER_DAY:
        rounded = 0
    return rounded
