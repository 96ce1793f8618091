"""Pydantic models for API requests and responses."""

from __future__ import annotations

from datetime import datetime
from typing import List, Optional

from pydantic import BaseModel, Field, field_validator

from core.labels import DisplayFormat


class LocationRecord(BaseModel):
    """A catalog entry selected by the user for appending to the board."""

    id: Optional[str] = Field(None, description="Stable identifier; generated when omitted")
    name: str = Field(..., min_length=1, description="Display name")
    country: str = Field(..., min_length=1, description="Country or region label")
    state: Optional[str] = Field(None, description="State, province or territory")
    timezone: str = Field(..., min_length=1, description="IANA timezone identifier")
    lat: float = Field(..., ge=-90.0, le=90.0, description="Latitude in degrees")
    lng: float = Field(..., ge=-180.0, le=180.0, description="Longitude in degrees")


class TimeEdit(BaseModel):
    """A wall-clock value chosen for a location."""

    minutes: int = Field(..., ge=0, le=1439, description="Minutes from local midnight")


class OrderUpdate(BaseModel):
    ids: List[str] = Field(..., description="All location ids in their new order")

    @field_validator("ids")
    def validate_unique(cls, value: List[str]) -> List[str]:
        if len(set(value)) != len(value):
            raise ValueError("ids must not repeat")
        return value


class MoveRequest(BaseModel):
    old_index: int = Field(..., ge=0)
    new_index: int = Field(..., ge=0)


class LocationView(BaseModel):
    """Derived display values for one location at the shared instant."""

    id: str
    name: str
    country: str
    state: Optional[str] = None
    timezone: str
    lat: float
    lng: float
    is_home: bool
    hour: int
    minute: int
    total_minutes: int
    slot_minutes: int = Field(..., description="Current time rounded to the 30-minute grid")
    day_label: str
    time_label: str
    date_label: str
    offset_minutes: int = Field(..., description="UTC offset, positive east of UTC")
    offset_label: str
    offset_difference_minutes: int = Field(..., description="Offset relative to home")
    offset_difference_label: str
    sunrise: float = Field(..., description="Estimated sunrise, minutes from midnight")
    sunset: float = Field(..., description="Estimated sunset, minutes from midnight")
    is_daytime: bool
    is_working_hours: bool
    day_progress: float


class TimeOption(BaseModel):
    value: int
    label: str


class BoardResponse(BaseModel):
    """Every location rendered from the one shared instant."""

    ok: bool = True
    instant: datetime = Field(..., description="Shared instant (UTC)")
    anchor_minutes: int = Field(..., description="Home wall clock, minutes from midnight")
    format: DisplayFormat
    home_id: Optional[str] = None
    locations: List[LocationView]
    time_options: List[TimeOption]


class HealthResponse(BaseModel):
    """Health-check response."""

    ok: bool = True
    locations: int
    instant: datetime


class ErrorResponse(BaseModel):
    """Error payload."""

    ok: bool = False
    code: str
    error: str
