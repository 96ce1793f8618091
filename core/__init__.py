"""Core time-anchor utilities for the Timesync API."""

from .anchor import AnchorSynchronizer, Location, SyncState, UnknownLocationError
from .clock import (
    TimezoneLookupError,
    local_parts,
    offset_minutes,
    round_to_slot,
    synthesize_instant,
)
from .solar import SolarCycle, estimate_solar_cycle

__all__ = [
    "AnchorSynchronizer",
    "Location",
    "SyncState",
    "UnknownLocationError",
    "TimezoneLookupError",
    "local_parts",
    "offset_minutes",
    "round_to_slot",
    "synthesize_instant",
    "SolarCycle",
    "estimate_solar_cycle",
]
