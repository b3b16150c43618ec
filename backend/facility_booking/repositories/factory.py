# backend/facility_booking/repositories/factory.py
"""
Repository Factory for the facility booking engine.

Provides centralized creation of repository instances,
ensuring consistent initialization and dependency injection.
"""

from typing import TYPE_CHECKING

from sqlalchemy.orm import Session

# Avoid circular imports
if TYPE_CHECKING:
    from .booking_repository import BookingRepository
    from .facility_availability_repository import FacilityAvailabilityRepository
    from .facility_repository import FacilityRepository
    from .user_booking_repository import UserBookingRepository


class RepositoryFactory:
    """
    Factory class for creating repository instances.

    Centralizes repository creation to ensure consistent initialization
    and makes it easy to swap implementations if needed.
    """

    @staticmethod
    def create_facility_repository(db: Session) -> "FacilityRepository":
        """Create repository for the facility catalog."""
        from .facility_repository import FacilityRepository

        return FacilityRepository(db)

    @staticmethod
    def create_facility_availability_repository(db: Session) -> "FacilityAvailabilityRepository":
        """Create repository for per-day slot records."""
        from .facility_availability_repository import FacilityAvailabilityRepository

        return FacilityAvailabilityRepository(db)

    @staticmethod
    def create_booking_repository(db: Session) -> "BookingRepository":
        """Create repository for booking records."""
        from .booking_repository import BookingRepository

        return BookingRepository(db)

    @staticmethod
    def create_user_booking_repository(db: Session) -> "UserBookingRepository":
        """Create repository for the denormalized per-user booking list."""
        from .user_booking_repository import UserBookingRepository

        return UserBookingRepository(db)
