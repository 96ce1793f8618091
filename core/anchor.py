"""Shared-instant bookkeeping for an ordered list of locations.

The first location in the list is the *home* location. Its wall clock is the
control surface: every edit is normalised through it onto the 30-minute grid,
and whenever a different location becomes home the instant on display is kept
and only re-expressed in the new home zone.
"""

from __future__ import annotations

import json
import logging
from dataclasses import dataclass, replace
from datetime import UTC, date, datetime, timedelta
from threading import Lock
from typing import Callable, Iterable, Optional, Sequence, Tuple

from .clock import (
    TimezoneLookupError,
    local_parts,
    resolve_zone,
    round_to_slot,
    synthesize_instant,
)

__all__ = [
    "Location",
    "SyncState",
    "AnchorSynchronizer",
    "UnknownLocationError",
]

LOGGER = logging.getLogger(__name__)


class UnknownLocationError(KeyError):
    """Raised when a location id is not part of the ordered list."""


@dataclass(frozen=True)
class Location:
    """A named place with its IANA timezone."""

    id: str
    name: str
    country: str
    timezone: str
    lat: float
    lng: float
    state: Optional[str] = None


@dataclass(frozen=True)
class SyncState:
    """Snapshot of the ordered locations and the instant they all display.

    ``anchor_minutes`` is the home-local wall clock (minutes from midnight)
    that produced ``instant``; ``reference_day`` is the home calendar day that
    wall clock is anchored to. Edits never move ``reference_day``; only a
    change of home re-reads it from the instant on display.
    """

    locations: Tuple[Location, ...]
    instant: datetime
    anchor_minutes: int
    reference_day: date

    @property
    def home(self) -> Optional[Location]:
        return self.locations[0] if self.locations else None

    def index_of(self, location_id: str) -> int:
        for index, location in enumerate(self.locations):
            if location.id == location_id:
                return index
        return -1


def _system_now() -> datetime:
    return datetime.now().astimezone()


def _usable_zone(timezone_id: str) -> str:
    """Return *timezone_id*, or ``UTC`` when the tz database does not know it."""

    try:
        resolve_zone(timezone_id)
    except TimezoneLookupError:
        LOGGER.warning(json.dumps({"event": "timezone_fallback_utc", "timezone": timezone_id}))
        return "UTC"
    return timezone_id


def _anchor_in_zone(instant: datetime, timezone_id: str) -> Tuple[datetime, int, date]:
    """Re-express *instant* on the home grid of *timezone_id*."""

    zone = _usable_zone(timezone_id)
    parts = local_parts(instant, zone)
    rounded = round_to_slot(parts.total_minutes)
    return synthesize_instant(rounded, zone, parts.date), rounded, parts.date


def _move(items: Sequence[Location], old_index: int, new_index: int) -> Tuple[Location, ...]:
    moved = list(items)
    moved.insert(new_index, moved.pop(old_index))
    return tuple(moved)


class AnchorSynchronizer:
    """Owns the shared instant and the ordered location list.

    Parameters
    ----------
    locations:
        Initial ordered locations; the first one is home.
    now:
        Callable returning the current timezone-aware time. Its timezone is
        the caller's own zone, used when no location is present.
    """

    def __init__(
        self,
        locations: Iterable[Location] = (),
        now: Optional[Callable[[], datetime]] = None,
    ) -> None:
        self._initial = tuple(locations)
        self._now = now or _system_now
        self._state: Optional[SyncState] = None
        self._lock = Lock()

    # -- read surface -----------------------------------------------------

    @property
    def state(self) -> SyncState:
        state = self._state
        if state is not None:
            return state
        with self._lock:
            if self._state is None:
                self._state = self._initial_state()
            return self._state

    @property
    def instant(self) -> datetime:
        return self.state.instant

    @property
    def locations(self) -> Tuple[Location, ...]:
        return self.state.locations

    @property
    def home(self) -> Optional[Location]:
        return self.state.home

    def find(self, location_id: str) -> Optional[Location]:
        state = self.state
        index = state.index_of(location_id)
        return state.locations[index] if index >= 0 else None

    # -- transitions ------------------------------------------------------

    def initialize(self) -> SyncState:
        """Anchor to the current time of home, rounded to the 30-minute grid."""

        with self._lock:
            self._state = self._initial_state()
            return self._state

    def edit_authoritative_time(self, minutes: int) -> SyncState:
        """Set home's wall clock to *minutes* on the reference day."""

        return self._transition("edit_home", lambda state: self._set_home_time(state, minutes))

    def edit_location_time(self, location_id: str, minutes: int) -> SyncState:
        """Set *location_id*'s wall clock, then snap home onto the 30-minute grid."""

        def apply(state: SyncState) -> SyncState:
            index = state.index_of(location_id)
            if index < 0:
                raise UnknownLocationError(location_id)
            return self._set_other_time(state, state.locations[index], minutes)

        return self._transition("edit_location", apply)

    def edit_row_time(self, location_id: str, minutes: int) -> SyncState:
        """Edit whichever row *location_id* is, deciding home or not on one snapshot.

        The home row takes *minutes* as is; any other row is normalised
        through home as in :meth:`edit_location_time`.
        """

        def apply(state: SyncState) -> SyncState:
            index = state.index_of(location_id)
            if index < 0:
                raise UnknownLocationError(location_id)
            if index == 0:
                return self._set_home_time(state, minutes)
            return self._set_other_time(state, state.locations[index], minutes)

        return self._transition("edit_row", apply)

    def reorder(self, location_ids: Sequence[str]) -> SyncState:
        """Replace the order with *location_ids*, a permutation of the current ids."""

        def apply(state: SyncState) -> SyncState:
            by_id = {location.id: location for location in state.locations}
            ids = list(location_ids)
            if len(ids) != len(by_id) or set(ids) != set(by_id):
                raise ValueError("new order must be a permutation of the current location ids")
            return self._relist(state, tuple(by_id[location_id] for location_id in ids))

        return self._transition("reorder", apply)

    def move(self, old_index: int, new_index: int) -> SyncState:
        """Move the location at *old_index* to *new_index*, as a drag would."""

        def apply(state: SyncState) -> SyncState:
            count = len(state.locations)
            if not (0 <= old_index < count and 0 <= new_index < count):
                raise ValueError(f"move indices out of range for {count} locations")
            if old_index == new_index:
                return state
            return self._relist(state, _move(state.locations, old_index, new_index))

        return self._transition("move", apply)

    def promote(self, location_id: str) -> SyncState:
        """Make *location_id* home. Unknown ids and the current home are no-ops."""

        def apply(state: SyncState) -> SyncState:
            index = state.index_of(location_id)
            if index <= 0:
                return state
            return self._relist(state, _move(state.locations, index, 0))

        return self._transition("promote", apply)

    def add_location(self, location: Location) -> SyncState:
        def apply(state: SyncState) -> SyncState:
            if state.index_of(location.id) >= 0:
                raise ValueError(f"duplicate location id: {location.id}")
            return self._relist(state, state.locations + (location,))

        return self._transition("add_location", apply)

    def remove_location(self, location_id: str) -> SyncState:
        def apply(state: SyncState) -> SyncState:
            index = state.index_of(location_id)
            if index < 0:
                raise UnknownLocationError(location_id)
            remaining = state.locations[:index] + state.locations[index + 1 :]
            return self._relist(state, remaining)

        return self._transition("remove_location", apply)

    # -- internals --------------------------------------------------------

    def _initial_state(self) -> SyncState:
        """Build the startup state. Caller holds the lock."""

        locations = self._state.locations if self._state is not None else self._initial
        now = self._now()
        if now.tzinfo is None:
            raise ValueError("now() must return a timezone-aware datetime")

        if locations:
            instant, rounded, day = _anchor_in_zone(now, locations[0].timezone)
        else:
            rounded = round_to_slot(now.hour * 60 + now.minute)
            day = now.date()
            midnight = now.replace(hour=0, minute=0, second=0, microsecond=0)
            instant = (midnight + timedelta(minutes=rounded)).astimezone(UTC)

        LOGGER.info(
            json.dumps(
                {
                    "event": "anchor_initialized",
                    "home": locations[0].id if locations else None,
                    "anchor_minutes": rounded,
                    "reference_day": day.isoformat(),
                    "instant": instant.isoformat(),
                }
            )
        )
        return SyncState(locations=locations, instant=instant, anchor_minutes=rounded, reference_day=day)

    def _set_home_time(self, state: SyncState, minutes: int) -> SyncState:
        home = state.home
        if home is None:
            day = state.reference_day
            midnight = datetime(day.year, day.month, day.day, tzinfo=self._now().tzinfo)
            instant = (midnight + timedelta(minutes=minutes)).astimezone(UTC)
        else:
            instant = synthesize_instant(minutes, _usable_zone(home.timezone), state.reference_day)
        return replace(state, instant=instant, anchor_minutes=minutes)

    def _set_other_time(self, state: SyncState, location: Location, minutes: int) -> SyncState:
        candidate = synthesize_instant(minutes, location.timezone, state.reference_day)
        home_minutes = local_parts(candidate, _usable_zone(state.locations[0].timezone)).total_minutes
        return self._set_home_time(state, round_to_slot(home_minutes))

    @staticmethod
    def _relist(state: SyncState, locations: Tuple[Location, ...]) -> SyncState:
        """Swap in *locations*, keeping the displayed instant if home changes."""

        new_home = locations[0] if locations else None
        if new_home is None or new_home == state.home:
            return replace(state, locations=locations)
        instant, rounded, day = _anchor_in_zone(state.instant, new_home.timezone)
        return SyncState(locations=locations, instant=instant, anchor_minutes=rounded, reference_day=day)

    def _transition(self, event: str, apply: Callable[[SyncState], SyncState]) -> SyncState:
        with self._lock:
            if self._state is None:
                self._state = self._initial_state()
            before = self._state
            after = apply(before)
            self._state = after
        if after is not before:
            LOGGER.info(
                json.dumps(
                    {
                        "event": "anchor_changed",
                        "action": event,
                        "home": after.home.id if after.home else None,
                        "anchor_minutes": after.anchor_minutes,
                        "reference_day": after.reference_day.isoformat(),
                        "instant": after.instant.isoformat(),
                        "shift_seconds": (after.instant - before.instant).total_seconds(),
                    }
                )
            )
        return after
