"""
Database models for the facility booking engine.

- Facility: community amenity catalog entry
- FacilityAvailability: per facility/day slot reservation state
- Booking / UserBookingReference: authoritative booking and its per-user copy
"""

from .booking import (
    ACTIVE_BOOKING_STATUSES,
    Booking,
    BookingStatus,
    PaymentStatus,
    RecurrenceFrequency,
    UserBookingReference,
)
from .facility import Facility
from .facility_availability import FacilityAvailability

__all__ = [
    "ACTIVE_BOOKING_STATUSES",
    "Booking",
    "BookingStatus",
    "Facility",
    "FacilityAvailability",
    "PaymentStatus",
    "RecurrenceFrequency",
    "UserBookingReference",
]
