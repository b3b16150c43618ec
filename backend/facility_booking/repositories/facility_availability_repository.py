from __future__ import annotations

from datetime import date
from typing import Any, Dict, List, Optional, cast

from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.orm import Session

from ..core.exceptions import RepositoryException
from ..models.facility_availability import FacilityAvailability
from .base_repository import BaseRepository


class FacilityAvailabilityRepository(BaseRepository[FacilityAvailability]):
    """Data access for per facility/day slot records."""

    def __init__(self, db: Session):
        super().__init__(db, FacilityAvailability)

    def get_day(
        self, community_id: str, facility_id: str, day: date
    ) -> Optional[FacilityAvailability]:
        try:
            row = (
                self.db.query(FacilityAvailability)
                .filter(
                    FacilityAvailability.community_id == community_id,
                    FacilityAvailability.facility_id == facility_id,
                    FacilityAvailability.day_date == day,
                )
                .one_or_none()
            )
            return cast(Optional[FacilityAvailability], row)
        except SQLAlchemyError as e:
            self.logger.error(f"Error loading availability for {facility_id} on {day}: {e}")
            raise RepositoryException(f"Failed to load availability: {str(e)}")

    def get_day_for_update(
        self, community_id: str, facility_id: str, day: date
    ) -> Optional[FacilityAvailability]:
        """Re-read the day row inside the caller's transaction, locking it where supported."""
        try:
            row = (
                self.db.query(FacilityAvailability)
                .filter(
                    FacilityAvailability.community_id == community_id,
                    FacilityAvailability.facility_id == facility_id,
                    FacilityAvailability.day_date == day,
                )
                .populate_existing()
                .with_for_update()
                .one_or_none()
            )
            return cast(Optional[FacilityAvailability], row)
        except SQLAlchemyError as e:
            self.logger.error(f"Error locking availability for {facility_id} on {day}: {e}")
            raise RepositoryException(f"Failed to lock availability: {str(e)}")

    def create_day(
        self,
        community_id: str,
        facility_id: str,
        day: date,
        slots: List[Dict[str, Any]],
    ) -> Optional[FacilityAvailability]:
        """
        Insert a new day record inside a savepoint.

        Returns None when another writer created the same day first.
        """
        try:
            with self.db.begin_nested():
                row = FacilityAvailability(
                    community_id=community_id,
                    facility_id=facility_id,
                    day_date=day,
                    slots=slots,
                )
                self.db.add(row)
                self.db.flush()
            return row
        except IntegrityError:
            self.logger.info(f"Availability for {facility_id} on {day} created concurrently")
            return None
        except SQLAlchemyError as e:
            self.logger.error(f"Error creating availability for {facility_id} on {day}: {e}")
            raise RepositoryException(f"Failed to create availability: {str(e)}")

    def replace_slots(
        self, availability: FacilityAvailability, slots: List[Dict[str, Any]]
    ) -> FacilityAvailability:
        """Rewrite the whole slot document; the version column guards stale writers."""
        availability.slots = [dict(slot) for slot in slots]
        self.db.flush()
        return availability
