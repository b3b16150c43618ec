# backend/facility_booking/repositories/booking_repository.py
"""
Booking Repository

Implements data access for authoritative booking records:
- Active bookings for a facility/day (authoritative overlap scan input)
- Community-scoped lookups
- Recurring series lookups
"""

from datetime import date
import logging
from typing import List, Optional, cast

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from ..core.exceptions import RepositoryException
from ..models.booking import ACTIVE_BOOKING_STATUSES, Booking
from .base_repository import BaseRepository

logger = logging.getLogger(__name__)


class BookingRepository(BaseRepository[Booking]):
    """Repository for booking data access."""

    def __init__(self, db: Session):
        super().__init__(db, Booking)

    def get_active_bookings_for_day(
        self,
        community_id: str,
        facility_id: str,
        day: date,
        exclude_booking_id: Optional[str] = None,
    ) -> List[Booking]:
        """
        Get non-cancelled bookings for a facility on a date, ordered by start time.

        Args:
            community_id: Owning community
            facility_id: The facility to check
            day: The date to check
            exclude_booking_id: Optional booking ID to leave out

        Returns:
            Confirmed and pending bookings for that facility/day
        """
        try:
            query = self.db.query(Booking).filter(
                Booking.community_id == community_id,
                Booking.facility_id == facility_id,
                Booking.booking_date == day,
                Booking.status.in_(ACTIVE_BOOKING_STATUSES),
            )
            if exclude_booking_id:
                query = query.filter(Booking.id != exclude_booking_id)
            return cast(List[Booking], query.order_by(Booking.start_time).all())
        except SQLAlchemyError as e:
            self.logger.error(f"Error getting bookings for conflict check: {str(e)}")
            raise RepositoryException(f"Failed to get conflict bookings: {str(e)}")

    def get_community_booking(self, community_id: str, booking_id: str) -> Optional[Booking]:
        try:
            return cast(
                Optional[Booking],
                self.db.query(Booking)
                .filter(Booking.id == booking_id, Booking.community_id == community_id)
                .one_or_none(),
            )
        except SQLAlchemyError as e:
            self.logger.error(f"Error loading booking {booking_id}: {str(e)}")
            raise RepositoryException(f"Failed to load booking: {str(e)}")

    def get_series_instances(self, original_booking_id: str) -> List[Booking]:
        """Get the recurring instances generated from one original booking."""
        try:
            return cast(
                List[Booking],
                self.db.query(Booking)
                .filter(Booking.original_booking_id == original_booking_id)
                .order_by(Booking.booking_date)
                .all(),
            )
        except SQLAlchemyError as e:
            self.logger.error(f"Error loading series for {original_booking_id}: {str(e)}")
            raise RepositoryException(f"Failed to load recurring series: {str(e)}")
