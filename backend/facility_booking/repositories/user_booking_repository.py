# backend/facility_booking/repositories/user_booking_repository.py
"""
Repository for the denormalized per-user booking list.

Each row mirrors the display fields of one Booking so "my bookings"
queries never scan the bookings table.
"""

import logging
from typing import List, cast

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from ..core.exceptions import RepositoryException
from ..models.booking import Booking, UserBookingReference
from .base_repository import BaseRepository

logger = logging.getLogger(__name__)


class UserBookingRepository(BaseRepository[UserBookingReference]):
    def __init__(self, db: Session):
        super().__init__(db, UserBookingReference)

    def create_for_booking(self, booking: Booking) -> UserBookingReference:
        """Write the user-list copy of a freshly created booking."""
        return self.create(
            community_id=booking.community_id,
            user_id=booking.user_id,
            booking_id=booking.id,
            facility_id=booking.facility_id,
            facility_name=booking.facility_name,
            booking_date=booking.booking_date,
            start_time=booking.start_time,
            end_time=booking.end_time,
            status=booking.status,
        )

    def get_for_user(self, community_id: str, user_id: str) -> List[UserBookingReference]:
        """List a resident's bookings, newest date first."""
        try:
            return cast(
                List[UserBookingReference],
                self.db.query(UserBookingReference)
                .filter(
                    UserBookingReference.community_id == community_id,
                    UserBookingReference.user_id == user_id,
                )
                .order_by(
                    UserBookingReference.booking_date.desc(),
                    UserBookingReference.start_time.desc(),
                )
                .all(),
            )
        except SQLAlchemyError as e:
            self.logger.error(f"Error listing bookings for user {user_id}: {str(e)}")
            raise RepositoryException(f"Failed to list user bookings: {str(e)}")

    def sync_status(self, booking_id: str, status: str) -> int:
        """Copy a booking's new status onto its user-list reference."""
        try:
            updated = (
                self.db.query(UserBookingReference)
                .filter(UserBookingReference.booking_id == booking_id)
                .update({UserBookingReference.status: status}, synchronize_session="fetch")
            )
            self.db.flush()
            return int(updated or 0)
        except SQLAlchemyError as e:
            self.logger.error(f"Error syncing user booking status for {booking_id}: {str(e)}")
            raise RepositoryException(f"Failed to update user booking: {str(e)}")
