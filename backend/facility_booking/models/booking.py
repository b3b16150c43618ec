# backend/facility_booking/models/booking.py
"""
Booking models for the facility booking engine.

A Booking is the authoritative reservation record for one facility on one
date and time range. A denormalized UserBookingReference is written next to
it so residents can list their own bookings without scanning the bookings
table; the reference is never the source of truth.

Status changes are append-only: a booking is never moved in time. A change
of plan is a new booking plus cancellation of the old one.
"""

from enum import Enum
import logging

from sqlalchemy import (
    Boolean,
    CheckConstraint,
    Column,
    Date,
    DateTime,
    ForeignKey,
    Index,
    Integer,
    JSON,
    Numeric,
    String,
    Text,
    Time,
)
from sqlalchemy.orm import relationship
from sqlalchemy.sql import func

from ..core.ulid_helper import generate_ulid
from ..database import Base

logger = logging.getLogger(__name__)


class BookingStatus(str, Enum):
    """Booking lifecycle statuses."""

    PENDING = "pending"  # Awaiting staff approval
    CONFIRMED = "confirmed"  # Default - instant booking
    CANCELLED = "cancelled"


# Statuses that hold a facility's time range
ACTIVE_BOOKING_STATUSES = (BookingStatus.CONFIRMED.value, BookingStatus.PENDING.value)


class PaymentStatus(str, Enum):
    """Payment state derived from the facility fee (capture is external)."""

    FREE = "free"
    PENDING = "pending"
    PAID = "paid"


class RecurrenceFrequency(str, Enum):
    WEEKLY = "weekly"
    MONTHLY = "monthly"


class Booking(Base):
    """
    Reservation of a facility time range by a community resident.

    Facility and user names are snapshotted at booking time for display.
    ``recurring`` keeps the recurrence descriptor the booking was created
    with; recurring instances point back to the first booking of the series
    through ``original_booking_id``.
    """

    __tablename__ = "bookings"

    id = Column(String(26), primary_key=True, index=True, default=generate_ulid)
    community_id = Column(String(64), nullable=False)
    facility_id = Column(String(26), ForeignKey("facilities.id"), nullable=False)
    facility_name = Column(String(255), nullable=False)

    user_id = Column(String(64), nullable=False)
    user_name = Column(String(255), nullable=False, default="Resident")
    user_unit = Column(String(64), nullable=True)

    booking_date = Column(Date, nullable=False, index=True)
    start_time = Column(Time, nullable=False)
    end_time = Column(Time, nullable=False)

    status = Column(String(20), nullable=False, default=BookingStatus.CONFIRMED.value, index=True)
    participants = Column(Integer, nullable=False, default=1)
    notes = Column(Text, nullable=True)

    payment_status = Column(String(20), nullable=False, default=PaymentStatus.FREE.value)
    payment_amount = Column(Numeric(10, 2), nullable=False, default=0)

    recurring = Column(JSON, nullable=True)
    is_recurring_instance = Column(Boolean, nullable=False, default=False)
    original_booking_id = Column(String(26), ForeignKey("bookings.id"), nullable=True)

    # Timestamps
    created_at = Column(DateTime(timezone=True), server_default=func.now())
    updated_at = Column(DateTime(timezone=True), onupdate=func.now())
    cancelled_at = Column(DateTime(timezone=True), nullable=True)
    cancellation_reason = Column(Text, nullable=True)

    facility = relationship("Facility", backref="bookings")
    original_booking = relationship("Booking", remote_side=[id])

    __table_args__ = (
        CheckConstraint("participants >= 1", name="ck_bookings_participants_positive"),
        Index("ix_bookings_facility_date", "community_id", "facility_id", "booking_date"),
        Index("ix_bookings_original", "original_booking_id"),
    )

    @property
    def is_active(self) -> bool:
        return self.status in ACTIVE_BOOKING_STATUSES

    def __repr__(self) -> str:
        return (
            f"<Booking {self.id} {self.facility_id} {self.booking_date} "
            f"{self.start_time}-{self.end_time} {self.status}>"
        )


class UserBookingReference(Base):
    """Denormalized copy of a booking under the resident's own booking list."""

    __tablename__ = "user_booking_references"

    id = Column(String(26), primary_key=True, default=generate_ulid)
    community_id = Column(String(64), nullable=False)
    user_id = Column(String(64), nullable=False)
    booking_id = Column(String(26), ForeignKey("bookings.id"), nullable=False, unique=True)
    facility_id = Column(String(26), nullable=False)
    facility_name = Column(String(255), nullable=False)
    booking_date = Column(Date, nullable=False)
    start_time = Column(Time, nullable=False)
    end_time = Column(Time, nullable=False)
    status = Column(String(20), nullable=False)
    created_at = Column(DateTime(timezone=True), server_default=func.now())

    __table_args__ = (Index("ix_user_booking_refs_user", "community_id", "user_id"),)
