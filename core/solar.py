"""First-order sunrise/sunset estimate used for the daylight band of a row."""

from __future__ import annotations

import math
from dataclasses import dataclass
from datetime import UTC, datetime
from typing import Optional

import numpy as np

from .clock import TimezoneLookupError, resolve_zone

__all__ = ["SolarCycle", "FALLBACK_CYCLE", "estimate_solar_cycle"]

AXIAL_TILT_DEGREES = 23.45
SOLAR_NOON_MINUTES = 720.0


@dataclass(frozen=True)
class SolarCycle:
    """Sunrise and sunset as minutes from local midnight."""

    sunrise: float
    sunset: float

    @property
    def daylight_minutes(self) -> float:
        return self.sunset - self.sunrise


FALLBACK_CYCLE = SolarCycle(sunrise=360.0, sunset=1080.0)


def _day_of_year(instant: datetime, timezone_id: Optional[str]) -> int:
    if timezone_id is None:
        return instant.astimezone(UTC).timetuple().tm_yday
    return instant.astimezone(resolve_zone(timezone_id)).timetuple().tm_yday


def estimate_solar_cycle(
    latitude: float,
    instant: datetime,
    timezone_id: Optional[str] = None,
) -> SolarCycle:
    """Approximate sunrise and sunset for *latitude* on the day of *instant*.

    Parameters
    ----------
    latitude:
        Geographic latitude in degrees, north-positive.
    instant:
        Timezone-aware instant selecting the calendar day.
    timezone_id:
        Zone whose calendar day is used; UTC when omitted.

    Returns
    -------
    SolarCycle
        Solar noon is assumed at 12:00. Polar day saturates to ``(0, 1440)``
        and polar night to ``(720, 720)``. Any failure returns 06:00-18:00.
    """

    try:
        lat = float(latitude)
        if not -90.0 <= lat <= 90.0:
            raise ValueError(f"latitude out of range: {latitude}")
        day_of_year = _day_of_year(instant, timezone_id)

        declination = AXIAL_TILT_DEGREES * math.sin(2.0 * math.pi / 365.0 * (day_of_year - 81))
        cos_h = -math.tan(math.radians(lat)) * math.tan(math.radians(declination))
        # Saturate: < -1 is midnight sun, > 1 is polar night.
        hour_angle = math.degrees(math.acos(float(np.clip(cos_h, -1.0, 1.0))))
        half_day = hour_angle / 15.0 * 60.0
        if not math.isfinite(half_day):
            raise ValueError("non-finite hour angle")
    except (TypeError, ValueError, OverflowError, AttributeError, TimezoneLookupError):
        return FALLBACK_CYCLE

    return SolarCycle(
        sunrise=SOLAR_NOON_MINUTES - half_day,
        sunset=SOLAR_NOON_MINUTES + half_day,
    )
