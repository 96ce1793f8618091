from __future__ import annotations

from datetime import UTC, datetime

import pytest

from core.solar import FALLBACK_CYCLE, SolarCycle, estimate_solar_cycle

MIDSUMMER = datetime(2025, 6, 21, 12, 0, tzinfo=UTC)
MIDWINTER = datetime(2025, 12, 21, 12, 0, tzinfo=UTC)


def test_polar_day_saturates_to_full_day() -> None:
    cycle = estimate_solar_cycle(89.0, MIDSUMMER)
    assert cycle.sunrise == pytest.approx(0.0)
    assert cycle.sunset == pytest.approx(1440.0)


def test_polar_night_has_no_daylight() -> None:
    cycle = estimate_solar_cycle(89.0, MIDWINTER)
    assert cycle.sunrise == cycle.sunset == pytest.approx(720.0)
    assert cycle.daylight_minutes == pytest.approx(0.0)


def test_equator_has_twelve_hour_day() -> None:
    cycle = estimate_solar_cycle(0.0, MIDSUMMER)
    assert cycle.sunrise == pytest.approx(360.0)
    assert cycle.sunset == pytest.approx(1080.0)
    assert isinstance(cycle, SolarCycle)


def test_southern_hemisphere_summer_in_december() -> None:
    melbourne = estimate_solar_cycle(-37.8136, MIDWINTER)
    london = estimate_solar_cycle(51.5074, MIDWINTER)
    assert melbourne.daylight_minutes > 14 * 60
    assert london.daylight_minutes < 8 * 60 + 30
    assert melbourne.sunrise + melbourne.sunset == pytest.approx(1440.0)


def test_day_is_taken_in_the_location_zone() -> None:
    # 20:00 UTC on the 20th is already 06:00 on the 21st in Brisbane.
    instant = datetime(2025, 6, 20, 20, 0, tzinfo=UTC)
    zoned = estimate_solar_cycle(60.0, instant, "Australia/Brisbane")
    assert zoned == estimate_solar_cycle(60.0, MIDSUMMER)
    assert zoned != estimate_solar_cycle(60.0, instant)


@pytest.mark.parametrize("latitude", [120.0, -91.0, float("nan"), "north", None])
def test_invalid_latitude_falls_back(latitude) -> None:
    assert estimate_solar_cycle(latitude, MIDSUMMER) == FALLBACK_CYCLE


def test_fallback_is_six_to_six() -> None:
    assert FALLBACK_CYCLE.sunrise == 360.0
    assert FALLBACK_CYCLE.sunset == 1080.0


@pytest.mark.parametrize("zone", ["Nowhere/Zone", "America"])
def test_unknown_zone_falls_back(zone: str) -> None:
    assert estimate_solar_cycle(60.0, MIDSUMMER, zone) == FALLBACK_CYCLE
