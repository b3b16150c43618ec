# backend/facility_booking/repositories/facility_repository.py
"""
Facility Repository

Read access to the facility catalog for the booking flow, plus the
create/update entry points used by facility administrators.
"""

import logging
from typing import Any, List, Optional, cast

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from ..core.exceptions import RepositoryException
from ..models.facility import Facility
from .base_repository import BaseRepository

logger = logging.getLogger(__name__)

DEFAULT_ADVANCE_BOOKING_LIMIT_DAYS = 7


class FacilityRepository(BaseRepository[Facility]):
    """Repository for the facility catalog."""

    def __init__(self, db: Session):
        super().__init__(db, Facility)

    def get_facility(self, community_id: str, facility_id: str) -> Optional[Facility]:
        """Get a facility scoped to its community."""
        try:
            return cast(
                Optional[Facility],
                self.db.query(Facility)
                .filter(Facility.id == facility_id, Facility.community_id == community_id)
                .one_or_none(),
            )
        except SQLAlchemyError as e:
            self.logger.error(f"Error loading facility {facility_id}: {str(e)}")
            raise RepositoryException(f"Failed to load facility: {str(e)}")

    def list_for_community(self, community_id: str, active_only: bool = True) -> List[Facility]:
        """List a community's facilities ordered by name."""
        try:
            query = self.db.query(Facility).filter(Facility.community_id == community_id)
            if active_only:
                query = query.filter(Facility.is_active.is_(True))
            return cast(List[Facility], query.order_by(Facility.name).all())
        except SQLAlchemyError as e:
            self.logger.error(f"Error listing facilities for {community_id}: {str(e)}")
            raise RepositoryException(f"Failed to list facilities: {str(e)}")

    def create_facility(self, community_id: str, name: str, **fields: Any) -> Facility:
        """
        Add a facility to a community's catalog.

        The advance window defaults to a week; pass
        ``advance_booking_limit_days=None`` for a facility without a limit.
        """
        fields.setdefault("advance_booking_limit_days", DEFAULT_ADVANCE_BOOKING_LIMIT_DAYS)
        return self.create(community_id=community_id, name=name, **fields)
