"""Loading the initial location list from a catalog file or the built-in default."""

from __future__ import annotations

import json
import logging
import os
from datetime import UTC, datetime
from pathlib import Path
from typing import Any, List, Mapping, Optional

from .anchor import Location

LOGGER = logging.getLogger(__name__)

LOCATIONS_ENV = "TIMESYNC_LOCATIONS"

DEFAULT_LOCATIONS: List[Location] = [
    Location(
        id="melbourne-au",
        name="Melbourne",
        country="Australia",
        state="VIC",
        timezone="Australia/Melbourne",
        lat=-37.8136,
        lng=144.9631,
    ),
]

_REQUIRED_FIELDS = ("name", "country", "timezone", "lat", "lng")


class CatalogError(RuntimeError):
    """Raised when a location catalog cannot be read or is malformed."""


def location_from_record(record: Mapping[str, Any], now: Optional[datetime] = None) -> Location:
    """Build a :class:`Location` from a catalog record.

    Records without an ``id`` get ``"<name>-<epoch milliseconds>"``.
    """

    missing = [field for field in _REQUIRED_FIELDS if record.get(field) in (None, "")]
    if missing:
        raise CatalogError(f"Catalog record is missing fields: {', '.join(missing)}")

    try:
        lat = float(record["lat"])
        lng = float(record["lng"])
    except (TypeError, ValueError) as exc:
        raise CatalogError(f"Invalid coordinates for {record['name']}: {exc}") from exc

    location_id = record.get("id")
    if not location_id:
        stamp = now or datetime.now(UTC)
        location_id = f"{record['name']}-{int(stamp.timestamp() * 1000)}"

    return Location(
        id=str(location_id),
        name=str(record["name"]),
        country=str(record["country"]),
        state=record.get("state") or None,
        timezone=str(record["timezone"]),
        lat=lat,
        lng=lng,
    )


def load_locations(path: Path) -> List[Location]:
    """Read a JSON array of catalog records from *path*."""

    if not path.is_file():
        raise CatalogError(f"Location catalog not found: {path}")
    try:
        records = json.loads(path.read_text(encoding="utf-8"))
    except (OSError, ValueError) as exc:
        raise CatalogError(f"Failed to read location catalog {path}: {exc}") from exc
    if not isinstance(records, list):
        raise CatalogError(f"Location catalog must be a JSON array: {path}")

    locations: List[Location] = []
    seen = set()
    for index, record in enumerate(records):
        if not isinstance(record, dict):
            raise CatalogError(f"Catalog entry {index} is not an object")
        location = location_from_record(record)
        if location.id in seen:
            raise CatalogError(f"Duplicate location id in catalog: {location.id}")
        seen.add(location.id)
        locations.append(location)

    LOGGER.info(
        json.dumps(
            {"event": "catalog_loaded", "path": str(path), "locations": [loc.id for loc in locations]}
        )
    )
    return locations


def resolve_default_locations() -> List[Location]:
    """Return the startup location list, honouring ``TIMESYNC_LOCATIONS``."""

    override = os.environ.get(LOCATIONS_ENV)
    if override:
        return load_locations(Path(override).expanduser())
    return list(DEFAULT_LOCATIONS)
