# backend/facility_booking/services/conflict_checker.py
"""
Conflict Checker Service

Handles all booking conflict detection and validation including:
- Time range and duration validation against facility limits
- Facility opening-hours bound
- Slot-state pre-filter against the day's availability record
- Authoritative overlap scan against existing bookings

Slot checks are slot-aligned: a request must start and end on generated
slot boundaries and every slot it spans must be free. The overlap scan
works on arbitrary intervals and is the final word on conflicts.
"""

from datetime import date, time
import logging
from typing import Any, Dict, List, Optional, Sequence

from sqlalchemy.orm import Session

from ..core.booking_context import BookingContext
from ..models.facility import Facility
from ..repositories import RepositoryFactory
from ..repositories.booking_repository import BookingRepository
from .base import BaseService
from .slot_generator import parse_clock, parse_opening_hours, time_to_minutes

logger = logging.getLogger(__name__)

FACILITY_HOURS_VIOLATION = "FACILITY_HOURS_VIOLATION"
SLOT_UNAVAILABLE = "SLOT_UNAVAILABLE"


def intervals_overlap(start_a: int, end_a: int, start_b: int, end_b: int) -> bool:
    """Half-open intervals [start_a, end_a) and [start_b, end_b) intersect."""
    return start_a < end_b and start_b < end_a


def find_slot_span(
    slots: Sequence[Dict[str, Any]], start_minutes: int, end_minutes: int
) -> Optional[List[int]]:
    """
    Return the indexes of the contiguous slots exactly covering [start, end).

    None when the request does not begin and end on slot boundaries.
    """
    indexes: List[int] = []
    cursor = start_minutes
    for index, slot in enumerate(slots):
        slot_start = parse_clock(slot["startTime"])
        if not indexes and slot_start != start_minutes:
            continue
        if slot_start != cursor:
            return None
        indexes.append(index)
        cursor = parse_clock(slot["endTime"], is_end=True)
        if cursor >= end_minutes:
            break

    if not indexes or cursor != end_minutes:
        return None
    return indexes


class ConflictChecker(BaseService):
    """
    Service for checking booking conflicts and time validation.

    Centralizes conflict detection so the booking writer and the
    recurring expander apply exactly the same rules.
    """

    def __init__(self, db: Session, repository: Optional[BookingRepository] = None):
        """
        Initialize conflict checker service.

        Args:
            db: Database session
            repository: Optional BookingRepository instance
        """
        super().__init__(db)
        self.repository = repository or RepositoryFactory.create_booking_repository(db)

    def validate_time_range(
        self,
        start_time: time,
        end_time: time,
        min_duration_minutes: int = 30,
        max_duration_minutes: int = 480,
    ) -> Dict[str, Any]:
        """
        Validate a time range for basic constraints.

        Args:
            start_time: Start time
            end_time: End time (midnight means end of day)
            min_duration_minutes: Minimum allowed duration
            max_duration_minutes: Maximum allowed duration

        Returns:
            Validation result with details
        """
        start = time_to_minutes(start_time)
        end = time_to_minutes(end_time, is_end=True)

        if end <= start:
            return {"valid": False, "reason": "End time must be after start time"}

        duration_minutes = end - start

        if duration_minutes < min_duration_minutes:
            return {
                "valid": False,
                "reason": f"Duration must be at least {min_duration_minutes} minutes",
                "duration_minutes": duration_minutes,
            }

        if duration_minutes > max_duration_minutes:
            return {
                "valid": False,
                "reason": f"Duration cannot exceed {max_duration_minutes} minutes",
                "duration_minutes": duration_minutes,
            }

        return {"valid": True, "duration_minutes": duration_minutes}

    def check_availability(
        self,
        facility: Facility,
        check_date: date,
        start_time: time,
        end_time: time,
        current_slots: Sequence[Dict[str, Any]],
    ) -> Dict[str, Any]:
        """
        Pre-filter a request against opening hours and the day's slot states.

        Returns:
            {"available": True, "slot_indexes": [...]} or
            {"available": False, "code": ..., "reason": ...}
        """
        hours = parse_opening_hours(facility.opening_hours)
        start = time_to_minutes(start_time)
        end = time_to_minutes(end_time, is_end=True)

        if start < hours.open_minutes or end > hours.close_minutes:
            return {
                "available": False,
                "code": FACILITY_HOURS_VIOLATION,
                "reason": (
                    f"Facility is only open from {hours.open_hour}:00 to {hours.close_hour}:00"
                ),
                "open_hour": hours.open_hour,
                "close_hour": hours.close_hour,
            }

        indexes = find_slot_span(current_slots, start, end)
        if indexes is None:
            return {
                "available": False,
                "code": SLOT_UNAVAILABLE,
                "reason": "This time slot is not available",
            }

        taken = [current_slots[i] for i in indexes if not current_slots[i].get("available")]
        if taken:
            self.logger.debug(
                f"Slots already reserved for {facility.id} on {check_date}: "
                f"{[slot['startTime'] for slot in taken]}"
            )
            return {
                "available": False,
                "code": SLOT_UNAVAILABLE,
                "reason": "This time slot is not available",
                "booking_ids": [slot.get("bookingId") for slot in taken],
            }

        return {"available": True, "slot_indexes": indexes}

    @BaseService.measure_operation("check_booking_conflicts")
    def check_booking_conflicts(
        self,
        community_id: str,
        facility_id: str,
        check_date: date,
        start_time: time,
        end_time: time,
        exclude_booking_id: Optional[str] = None,
    ) -> List[Dict[str, Any]]:
        """
        Authoritative overlap scan against non-cancelled bookings.

        Args:
            community_id: Owning community
            facility_id: The facility to check
            check_date: The date to check
            start_time: Start time of the range to check
            end_time: End time of the range to check
            exclude_booking_id: Optional booking ID to exclude from check

        Returns:
            List of conflicts with booking details
        """
        bookings = self.repository.get_active_bookings_for_day(
            community_id, facility_id, check_date, exclude_booking_id
        )
        start = time_to_minutes(start_time)
        end = time_to_minutes(end_time, is_end=True)

        conflicts = []
        for booking in bookings:
            booked_start = time_to_minutes(booking.start_time)
            booked_end = time_to_minutes(booking.end_time, is_end=True)
            if intervals_overlap(start, end, booked_start, booked_end):
                conflicts.append(
                    {
                        "booking_id": booking.id,
                        "start_time": booking.start_time.strftime("%H:%M"),
                        "end_time": booking.end_time.strftime("%H:%M"),
                        "status": booking.status,
                    }
                )

        if conflicts:
            self.logger.warning(
                f"Found {len(conflicts)} booking conflicts for {facility_id} "
                f"on {check_date} between {start_time}-{end_time}"
            )

        return conflicts

    def check_time_conflicts(
        self,
        community_id: str,
        facility_id: str,
        check_date: date,
        start_time: time,
        end_time: time,
        exclude_booking_id: Optional[str] = None,
    ) -> bool:
        """
        Simplified boolean check for quick validation.

        Returns:
            True if there are conflicts, False otherwise
        """
        conflicts = self.check_booking_conflicts(
            community_id, facility_id, check_date, start_time, end_time, exclude_booking_id
        )
        return len(conflicts) > 0

    def find_booking_conflicts(
        self,
        context: BookingContext,
        facility_id: str,
        check_date: date,
        start_time: time,
        end_time: time,
        exclude_booking_id: Optional[str] = None,
    ) -> List[Dict[str, Any]]:
        """Overlap scan scoped to the caller's community."""
        return self.check_booking_conflicts(
            context.community_id,
            facility_id,
            check_date,
            start_time,
            end_time,
            exclude_booking_id,
        )
