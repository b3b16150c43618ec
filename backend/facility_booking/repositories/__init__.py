# backend/facility_booking/repositories/__init__.py
"""
Repository Pattern Implementation for the facility booking engine.

Key Components:
- BaseRepository: Foundation for all repositories with generic CRUD operations
- RepositoryFactory: Factory for creating repository instances
- FacilityRepository: Facility catalog
- FacilityAvailabilityRepository: Per facility/day slot records
- BookingRepository: Authoritative booking records
- UserBookingRepository: Denormalized per-user booking list

Usage:
    from facility_booking.repositories import RepositoryFactory

    repository = RepositoryFactory.create_booking_repository(db)
    bookings = repository.get_active_bookings_for_day(community_id, facility_id, day)
"""

from .base_repository import BaseRepository
from .booking_repository import BookingRepository
from .facility_availability_repository import FacilityAvailabilityRepository
from .facility_repository import FacilityRepository
from .factory import RepositoryFactory
from .user_booking_repository import UserBookingRepository

__all__ = [
    "BaseRepository",
    "BookingRepository",
    "FacilityAvailabilityRepository",
    "FacilityRepository",
    "RepositoryFactory",
    "UserBookingRepository",
]
