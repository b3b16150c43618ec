# backend/facility_booking/schemas/booking.py
"""
Pydantic schemas for booking operations.

Participants and the time range are checked by the booking service
against the facility, which reports each failure with its own error code.
"""

from datetime import date, datetime, time
import re
from typing import Any, Dict, List, Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator

from ..models.booking import BookingStatus, PaymentStatus, RecurrenceFrequency
from ._strict_base import StrictRequestModel


_CLOCK_PATTERN = re.compile(r"^(\d{1,2}):(\d{2})$")


def _parse_clock_value(v: object) -> object:
    if isinstance(v, str):
        match = _CLOCK_PATTERN.match(v.strip())
        if not match:
            raise ValueError(f"Invalid time format: {v}. Expected HH:MM format.")
        try:
            return time(int(match.group(1)), int(match.group(2)))
        except ValueError:
            raise ValueError(f"Invalid time: {v}")
    return v


class RecurrenceRequest(StrictRequestModel):
    """Recurrence descriptor as sent by the client and stored on the booking."""

    is_recurring: bool = Field(False, alias="isRecurring")
    frequency: Optional[RecurrenceFrequency] = None
    end_date: Optional[date] = Field(None, alias="endDate")

    @property
    def is_active(self) -> bool:
        """True when the descriptor asks for a series to be generated."""
        return bool(self.is_recurring and self.frequency and self.end_date)

    def to_descriptor(self) -> Dict[str, Any]:
        """JSON document embedded on the booking row."""
        return {
            "isRecurring": self.is_recurring,
            "frequency": self.frequency.value if self.frequency else None,
            "endDate": self.end_date.isoformat() if self.end_date else None,
        }


class BookingCreate(StrictRequestModel):
    """Create a booking for one facility, date and time range."""

    facility_id: str = Field(..., description="Facility to book")
    booking_date: date = Field(..., description="Date of the booking")
    start_time: time = Field(..., description="Start time (HH:MM)")
    end_time: time = Field(..., description="End time (HH:MM, 00:00 means end of day)")
    participants: int = Field(1, description="Number of people using the facility")
    notes: Optional[str] = Field(None, max_length=1000)
    recurring: Optional[RecurrenceRequest] = None

    @field_validator("start_time", "end_time", mode="before")
    @classmethod
    def parse_time_string(cls, v: object) -> object:
        """Convert time strings to time objects."""
        return _parse_clock_value(v)


class CancelBookingRequest(StrictRequestModel):
    reason: Optional[str] = Field(None, max_length=500)


class BookingResponse(BaseModel):
    """Authoritative booking as returned to the resident."""

    model_config = ConfigDict(from_attributes=True, use_enum_values=True)

    id: str
    community_id: str
    facility_id: str
    facility_name: str
    user_id: str
    user_name: str
    user_unit: Optional[str] = None
    booking_date: date
    start_time: time
    end_time: time
    status: BookingStatus
    participants: int
    notes: Optional[str] = None
    payment_status: PaymentStatus
    payment_amount: float
    recurring: Optional[Dict[str, Any]] = None
    is_recurring_instance: bool = False
    original_booking_id: Optional[str] = None
    created_at: Optional[datetime] = None
    cancelled_at: Optional[datetime] = None
    cancellation_reason: Optional[str] = None


class UserBookingResponse(BaseModel):
    """Entry of the resident's own booking list."""

    model_config = ConfigDict(from_attributes=True)

    booking_id: str
    facility_id: str
    facility_name: str
    booking_date: date
    start_time: time
    end_time: time
    status: str


class SkippedOccurrenceResponse(BaseModel):
    date: date
    reason: str


class RecurringExpansionResponse(BaseModel):
    created: List[BookingResponse] = Field(default_factory=list)
    skipped: List[SkippedOccurrenceResponse] = Field(default_factory=list)


class BookingCreateResponse(BaseModel):
    """A new booking plus, for recurring requests, what happened to the series."""

    booking: BookingResponse
    recurring: Optional[RecurringExpansionResponse] = None
