"""Schemas for facility catalog and day availability reads."""

from datetime import date
from typing import List, Optional

from pydantic import BaseModel, ConfigDict, Field


class SlotResponse(BaseModel):
    """One bookable slot; field names match the stored slot document."""

    model_config = ConfigDict(populate_by_name=True)

    start_time: str = Field(..., alias="startTime")
    end_time: str = Field(..., alias="endTime")
    available: bool
    booking_id: Optional[str] = Field(None, alias="bookingId")


class DayAvailabilityResponse(BaseModel):
    facility_id: str
    date: date
    slots: List[SlotResponse]


class FacilityResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: str
    name: str
    description: Optional[str] = None
    opening_hours: Optional[str] = None
    capacity: int
    fee: Optional[str] = None
    rules: List[str] = Field(default_factory=list)
    min_booking_duration_minutes: int
    max_booking_duration_minutes: int
    advance_booking_limit_days: Optional[int] = None
    requires_staff_approval: bool
