# backend/facility_booking/services/availability_service.py
"""
Availability Service

Owns the per facility/day availability record:
- Lazily creates the record from the facility's opening hours
- Returns stored slot states verbatim once the record exists
- Reserves and releases slots on behalf of the booking writer

The record is the single source of truth for a day's reservation state.
Every change rewrites the whole slot document; the record's version
counter rejects rewrites based on a stale read.
"""

from datetime import date
import logging
from typing import Any, Dict, List, Optional, Sequence, Tuple

from sqlalchemy.orm import Session

from ..core.booking_context import BookingContext
from ..core.exceptions import NotFoundException, RepositoryException, StoreAccessException
from ..models.facility import Facility
from ..models.facility_availability import FacilityAvailability
from ..repositories import RepositoryFactory
from ..repositories.facility_availability_repository import FacilityAvailabilityRepository
from .base import BaseService
from .slot_generator import generate_slots_for_hours

logger = logging.getLogger(__name__)


class AvailabilityService(BaseService):
    """Lazy creation, reads and slot flips for facility day records."""

    def __init__(
        self,
        db: Session,
        repository: Optional[FacilityAvailabilityRepository] = None,
    ):
        super().__init__(db)
        self.repository = repository or RepositoryFactory.create_facility_availability_repository(
            db
        )
        self.facility_repository = RepositoryFactory.create_facility_repository(db)

    def get_active_facility(self, context: BookingContext, facility_id: str) -> Facility:
        """Load a bookable facility of the caller's community or raise NotFoundException."""
        try:
            facility = self.facility_repository.get_facility(context.community_id, facility_id)
        except RepositoryException as e:
            raise StoreAccessException(details={"facility_id": facility_id}) from e
        if facility is None or not facility.is_active:
            raise NotFoundException("Facility not found", code="FACILITY_NOT_FOUND")
        return facility

    def list_facilities(self, context: BookingContext) -> List[Facility]:
        try:
            return self.facility_repository.list_for_community(context.community_id)
        except RepositoryException as e:
            raise StoreAccessException(details={"community_id": context.community_id}) from e

    def get_day_availability(
        self, context: BookingContext, facility_id: str, day: date
    ) -> List[Dict[str, Any]]:
        """Slots of one facility day as shown to residents."""
        facility = self.get_active_facility(context, facility_id)
        _, slots = self.get_or_create_day_availability(context, facility, day)
        return slots

    @BaseService.measure_operation("get_or_create_day_availability")
    def get_or_create_day_availability(
        self, context: BookingContext, facility: Facility, day: date
    ) -> Tuple[str, List[Dict[str, Any]]]:
        """
        Load the day's record, creating it fully available on first access.

        Args:
            context: Caller context (scopes the record to its community)
            facility: Facility whose opening hours seed the record
            day: Calendar day

        Returns:
            (availability_id, slots)

        Raises:
            StoreAccessException: If the record cannot be loaded or created
        """
        with self.transaction():
            availability = self.load_or_create_day(context.community_id, facility, day)
        return availability.id, [dict(slot) for slot in availability.slots or []]

    def load_or_create_day(
        self,
        community_id: str,
        facility: Facility,
        day: date,
        *,
        for_update: bool = False,
    ) -> FacilityAvailability:
        """
        Load or create the day record inside the caller's transaction.

        With ``for_update`` the row is re-read and locked where the database
        supports it, so validation sees the latest committed slot states.
        """
        try:
            if for_update:
                availability = self.repository.get_day_for_update(community_id, facility.id, day)
            else:
                availability = self.repository.get_day(community_id, facility.id, day)
            if availability is not None:
                return availability

            slots = generate_slots_for_hours(facility.opening_hours)
            created = self.repository.create_day(community_id, facility.id, day, slots)
            if created is not None:
                self.logger.info(
                    f"Created availability for {facility.id} on {day} with {len(slots)} slots"
                )
                return created

            # Another writer created the day first; use theirs.
            availability = self.repository.get_day_for_update(community_id, facility.id, day)
        except RepositoryException as e:
            raise StoreAccessException(
                "Could not load availability data. Please try again.",
                details={"facility_id": facility.id, "date": day.isoformat()},
            ) from e

        if availability is None:
            raise StoreAccessException(
                "Could not load availability data. Please try again.",
                details={"facility_id": facility.id, "date": day.isoformat()},
            )
        return availability

    def reserve_slots(
        self,
        availability: FacilityAvailability,
        slot_indexes: Sequence[int],
        booking_id: str,
    ) -> List[Dict[str, Any]]:
        """Mark the given slots as taken by a booking and rewrite the record."""
        reserved = set(slot_indexes)
        updated_slots = []
        for index, slot in enumerate(availability.slots or []):
            if index in reserved:
                updated_slots.append({**slot, "available": False, "bookingId": booking_id})
            else:
                updated_slots.append(dict(slot))

        self.repository.replace_slots(availability, updated_slots)
        return updated_slots

    def release_slots(self, availability: FacilityAvailability, booking_id: str) -> int:
        """Free every slot owned by a booking. Returns the number of slots released."""
        released = 0
        updated_slots = []
        for slot in availability.slots or []:
            if slot.get("bookingId") == booking_id:
                updated_slots.append({**slot, "available": True, "bookingId": None})
                released += 1
            else:
                updated_slots.append(dict(slot))

        if released:
            self.repository.replace_slots(availability, updated_slots)
        return released
