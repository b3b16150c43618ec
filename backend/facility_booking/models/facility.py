# backend/facility_booking/models/facility.py
"""
Facility model for the community facility catalog.

Facilities are bookable community amenities (gym, hall, pool...). The
booking engine only reads them; administrators own their lifecycle.
"""

from sqlalchemy import Boolean, CheckConstraint, Column, DateTime, Index, Integer, JSON, String, Text
from sqlalchemy.sql import func

from ..core.ulid_helper import generate_ulid
from ..database import Base


class Facility(Base):
    """
    Bookable amenity with opening hours, capacity and booking limits.

    ``opening_hours`` is free text in the form "HH:MM - HH:MM" and is parsed
    leniently by the slot generator.
    """

    __tablename__ = "facilities"

    id = Column(String(26), primary_key=True, index=True, default=generate_ulid)
    community_id = Column(String(64), nullable=False)

    name = Column(String(255), nullable=False)
    description = Column(Text, nullable=True)
    opening_hours = Column(String(64), nullable=True)
    capacity = Column(Integer, nullable=False, default=20)
    fee = Column(String(64), nullable=True)
    rules = Column(JSON, nullable=False, default=list)

    min_booking_duration_minutes = Column(Integer, nullable=False, default=30)
    max_booking_duration_minutes = Column(Integer, nullable=False, default=120)
    # NULL means no advance limit
    advance_booking_limit_days = Column(Integer, nullable=True)
    requires_staff_approval = Column(Boolean, nullable=False, default=False)
    is_active = Column(Boolean, nullable=False, default=True)

    created_at = Column(DateTime(timezone=True), server_default=func.now())
    updated_at = Column(DateTime(timezone=True), onupdate=func.now())

    __table_args__ = (
        CheckConstraint("capacity >= 1", name="ck_facilities_capacity_positive"),
        CheckConstraint(
            "min_booking_duration_minutes <= max_booking_duration_minutes",
            name="ck_facilities_duration_bounds",
        ),
        Index("ix_facilities_community", "community_id"),
    )

    def __repr__(self) -> str:
        return f"<Facility {self.id} {self.name!r}>"
