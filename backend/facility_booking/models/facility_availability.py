# backend/facility_booking/models/facility_availability.py
"""
Per facility/day availability record.

One row holds the whole slot document for a facility on a date. The
version counter rejects a rewrite based on a stale read.
"""

from __future__ import annotations

from datetime import datetime, timezone

import sqlalchemy as sa
from sqlalchemy import Column, Date, DateTime, Integer, JSON, String, UniqueConstraint

from ..core.ulid_helper import generate_ulid
from ..database import Base


def _now_utc() -> datetime:
    return datetime.now(timezone.utc)


class FacilityAvailability(Base):
    __tablename__ = "facility_availability"

    id = Column(String(26), primary_key=True, default=generate_ulid)
    community_id = Column(String(64), nullable=False)
    facility_id = Column(String(26), sa.ForeignKey("facilities.id"), nullable=False)
    day_date = Column(Date, nullable=False)
    # [{"startTime": "HH:MM", "endTime": "HH:MM", "available": bool, "bookingId": str | None}]
    slots = Column(JSON, nullable=False, default=list)
    # Optimistic concurrency token; every rewrite of ``slots`` bumps it.
    version = Column(Integer, nullable=False, default=1)
    created_at = Column(DateTime(timezone=True), nullable=False, default=_now_utc)
    updated_at = Column(
        DateTime(timezone=True),
        nullable=False,
        default=_now_utc,
        onupdate=_now_utc,
        server_default=sa.func.now(),
    )

    __mapper_args__ = {"version_id_col": version}

    __table_args__ = (
        UniqueConstraint(
            "community_id", "facility_id", "day_date", name="uq_facility_availability_day"
        ),
    )
