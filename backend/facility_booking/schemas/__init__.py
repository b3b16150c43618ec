"""Request and response schemas for the facility booking API."""

from .availability import DayAvailabilityResponse, FacilityResponse, SlotResponse
from .booking import (
    BookingCreate,
    BookingCreateResponse,
    BookingResponse,
    CancelBookingRequest,
    RecurrenceRequest,
    RecurringExpansionResponse,
    SkippedOccurrenceResponse,
    UserBookingResponse,
)

__all__ = [
    "BookingCreate",
    "BookingCreateResponse",
    "BookingResponse",
    "CancelBookingRequest",
    "DayAvailabilityResponse",
    "FacilityResponse",
    "RecurrenceRequest",
    "RecurringExpansionResponse",
    "SkippedOccurrenceResponse",
    "SlotResponse",
    "UserBookingResponse",
]
