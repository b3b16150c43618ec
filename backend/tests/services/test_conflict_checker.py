# backend/tests/services/test_conflict_checker.py
"""
Conflict detection: time-range validation, slot pre-filter and the
authoritative overlap scan.
"""

from datetime import time
from unittest.mock import Mock

import pytest
from sqlalchemy.orm import Session

from facility_booking.models.booking import Booking, BookingStatus
from facility_booking.repositories.booking_repository import BookingRepository
from facility_booking.services.conflict_checker import (
    FACILITY_HOURS_VIOLATION,
    SLOT_UNAVAILABLE,
    ConflictChecker,
    find_slot_span,
    intervals_overlap,
)
from facility_booking.services.slot_generator import generate_slots


@pytest.fixture
def checker():
    return ConflictChecker(Mock(spec=Session), repository=Mock(spec=BookingRepository))


class TestIntervalHelpers:
    @pytest.mark.parametrize(
        "a, b, expected",
        [
            ((600, 660), (630, 690), True),
            ((600, 660), (660, 720), False),  # touching ends do not overlap
            ((600, 720), (630, 660), True),
            ((600, 660), (540, 600), False),
        ],
    )
    def test_half_open_overlap(self, a, b, expected):
        assert intervals_overlap(*a, *b) is expected
        assert intervals_overlap(*b, *a) is expected

    def test_slot_span_exact_single(self):
        slots = generate_slots(9, 17)
        assert find_slot_span(slots, 600, 660) == [1]

    def test_slot_span_multi_slot(self):
        slots = generate_slots(9, 17)
        assert find_slot_span(slots, 600, 720) == [1, 2]

    def test_slot_span_misaligned(self):
        slots = generate_slots(9, 17)
        assert find_slot_span(slots, 630, 690) is None
        assert find_slot_span(slots, 600, 630) is None

    def test_slot_span_to_end_of_day(self):
        slots = generate_slots(22, 24)
        assert find_slot_span(slots, 23 * 60, 24 * 60) == [1]


class TestValidateTimeRange:
    def test_end_must_follow_start(self, checker):
        result = checker.validate_time_range(time(11, 0), time(10, 0))
        assert result["valid"] is False
        assert "after start" in result["reason"]

    def test_duration_at_minimum_is_valid(self, checker):
        result = checker.validate_time_range(time(10, 0), time(11, 0), 60, 120)
        assert result == {"valid": True, "duration_minutes": 60}

    def test_one_minute_short_is_invalid(self, checker):
        result = checker.validate_time_range(time(10, 0), time(10, 59), 60, 120)
        assert result["valid"] is False
        assert result["duration_minutes"] == 59

    def test_over_maximum_is_invalid(self, checker):
        result = checker.validate_time_range(time(9, 0), time(12, 0), 60, 120)
        assert result["valid"] is False
        assert "cannot exceed 120" in result["reason"]

    def test_midnight_end_counts_as_end_of_day(self, checker):
        result = checker.validate_time_range(time(23, 0), time(0, 0), 30, 120)
        assert result == {"valid": True, "duration_minutes": 60}


class TestCheckAvailability:
    def _facility(self, opening_hours="09:00 - 17:00"):
        facility = Mock()
        facility.id = "facility-1"
        facility.opening_hours = opening_hours
        return facility

    def test_available_slot(self, checker, booking_day):
        result = checker.check_availability(
            self._facility(), booking_day, time(10, 0), time(11, 0), generate_slots(9, 17)
        )
        assert result == {"available": True, "slot_indexes": [1]}

    def test_before_opening(self, checker, booking_day):
        result = checker.check_availability(
            self._facility(), booking_day, time(8, 0), time(9, 0), generate_slots(9, 17)
        )
        assert result["available"] is False
        assert result["code"] == FACILITY_HOURS_VIOLATION
        assert (result["open_hour"], result["close_hour"]) == (9, 17)

    def test_after_closing(self, checker, booking_day):
        result = checker.check_availability(
            self._facility(), booking_day, time(16, 0), time(18, 0), generate_slots(9, 17)
        )
        assert result["code"] == FACILITY_HOURS_VIOLATION

    def test_taken_slot(self, checker, booking_day):
        slots = generate_slots(9, 17)
        slots[1].update(available=False, bookingId="b-1")
        result = checker.check_availability(
            self._facility(), booking_day, time(10, 0), time(11, 0), slots
        )
        assert result["available"] is False
        assert result["code"] == SLOT_UNAVAILABLE
        assert result["booking_ids"] == ["b-1"]

    def test_misaligned_request_is_unavailable(self, checker, booking_day):
        result = checker.check_availability(
            self._facility(), booking_day, time(10, 30), time(11, 30), generate_slots(9, 17)
        )
        assert result["available"] is False
        assert result["code"] == SLOT_UNAVAILABLE

    def test_multi_slot_with_one_taken(self, checker, booking_day):
        slots = generate_slots(9, 17)
        slots[2].update(available=False, bookingId="b-2")
        result = checker.check_availability(
            self._facility(), booking_day, time(10, 0), time(12, 0), slots
        )
        assert result["available"] is False
        assert result["booking_ids"] == ["b-2"]


class TestCheckBookingConflicts:
    def _booking(self, booking_id, start, end):
        booking = Mock(spec=Booking)
        booking.id = booking_id
        booking.start_time = start
        booking.end_time = end
        booking.status = BookingStatus.CONFIRMED.value
        return booking

    def test_reports_overlapping_bookings_only(self, checker, booking_day):
        checker.repository.get_active_bookings_for_day.return_value = [
            self._booking("b-1", time(9, 0), time(10, 0)),
            self._booking("b-2", time(10, 30), time(11, 30)),
        ]

        conflicts = checker.check_booking_conflicts(
            "community", "facility-1", booking_day, time(10, 0), time(11, 0)
        )

        assert conflicts == [
            {
                "booking_id": "b-2",
                "start_time": "10:30",
                "end_time": "11:30",
                "status": "confirmed",
            }
        ]
        checker.repository.get_active_bookings_for_day.assert_called_once_with(
            "community", "facility-1", booking_day, None
        )

    def test_time_conflicts_boolean(self, checker, booking_day):
        checker.repository.get_active_bookings_for_day.return_value = []
        assert (
            checker.check_time_conflicts(
                "community", "facility-1", booking_day, time(10, 0), time(11, 0)
            )
            is False
        )

    def test_context_scoped_scan(self, checker, context, booking_day):
        checker.repository.get_active_bookings_for_day.return_value = [
            self._booking("b-1", time(10, 0), time(11, 0))
        ]
        conflicts = checker.find_booking_conflicts(
            context, "facility-1", booking_day, time(10, 0), time(11, 0), exclude_booking_id="x"
        )
        assert [c["booking_id"] for c in conflicts] == ["b-1"]
        checker.repository.get_active_bookings_for_day.assert_called_once_with(
            context.community_id, "facility-1", booking_day, "x"
        )
