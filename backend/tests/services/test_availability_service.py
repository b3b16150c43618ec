# backend/tests/services/test_availability_service.py
"""Lazy creation and slot flips of facility day records."""

from datetime import timedelta
from unittest.mock import Mock

import pytest

from facility_booking.core.exceptions import (
    NotFoundException,
    RepositoryException,
    StoreAccessException,
)
from facility_booking.models.facility_availability import FacilityAvailability
from facility_booking.repositories.facility_availability_repository import (
    FacilityAvailabilityRepository,
)
from facility_booking.services.availability_service import AvailabilityService


@pytest.fixture
def service(unit_db):
    return AvailabilityService(unit_db)


class TestGetOrCreateDayAvailability:
    def test_creates_fully_available_day(self, service, context, facility, booking_day):
        availability_id, slots = service.get_or_create_day_availability(
            context, facility, booking_day
        )

        assert availability_id
        assert len(slots) == 8
        assert slots[0]["startTime"] == "09:00"
        assert all(slot["available"] for slot in slots)

    def test_second_call_returns_identical_slots(self, service, context, facility, booking_day):
        first_id, first = service.get_or_create_day_availability(context, facility, booking_day)
        second_id, second = service.get_or_create_day_availability(
            context, facility, booking_day
        )

        assert first_id == second_id
        assert first == second
        assert service.db.query(FacilityAvailability).count() == 1

    def test_stored_slots_returned_verbatim(self, service, context, make_facility, booking_day):
        facility = make_facility(opening_hours="09:00 - 12:00")
        service.get_or_create_day_availability(context, facility, booking_day)

        # Changing the opening hours later does not regenerate an existing day
        facility.opening_hours = "06:00 - 22:00"
        _, slots = service.get_or_create_day_availability(context, facility, booking_day)
        assert [s["startTime"] for s in slots] == ["09:00", "10:00", "11:00"]

    def test_days_are_independent(self, service, context, facility, booking_day):
        id_one, _ = service.get_or_create_day_availability(context, facility, booking_day)
        id_two, _ = service.get_or_create_day_availability(
            context, facility, booking_day + timedelta(days=1)
        )
        assert id_one != id_two

    def test_unparseable_hours_use_default_window(
        self, service, context, make_facility, booking_day
    ):
        facility = make_facility(opening_hours="whenever")
        _, slots = service.get_or_create_day_availability(context, facility, booking_day)
        assert slots[0]["startTime"] == "07:00"
        assert slots[-1]["endTime"] == "21:00"

    def test_lost_creation_race_reads_winner(self, unit_db, context, facility, booking_day):
        winner = FacilityAvailability(
            community_id=context.community_id,
            facility_id=facility.id,
            day_date=booking_day,
            slots=[
                {"startTime": "09:00", "endTime": "10:00", "available": True, "bookingId": None}
            ],
        )
        repository = Mock(spec=FacilityAvailabilityRepository)
        repository.get_day.return_value = None
        repository.create_day.return_value = None
        repository.get_day_for_update.return_value = winner

        service = AvailabilityService(unit_db, repository=repository)
        result = service.load_or_create_day(context.community_id, facility, booking_day)

        assert result is winner
        repository.get_day_for_update.assert_called_once()

    def test_store_failure_raises_store_access(self, unit_db, context, facility, booking_day):
        repository = Mock(spec=FacilityAvailabilityRepository)
        repository.get_day.side_effect = RepositoryException("connection lost")

        service = AvailabilityService(unit_db, repository=repository)
        with pytest.raises(StoreAccessException) as exc_info:
            service.get_or_create_day_availability(context, facility, booking_day)
        assert exc_info.value.code == "STORE_ACCESS_FAILURE"


class TestSlotFlips:
    def test_reserve_and_release(self, service, context, facility, booking_day):
        with service.transaction():
            availability = service.load_or_create_day(context.community_id, facility, booking_day)
            service.reserve_slots(availability, [1, 2], "booking-1")

        _, slots = service.get_or_create_day_availability(context, facility, booking_day)
        assert [s["bookingId"] for s in slots[1:3]] == ["booking-1", "booking-1"]
        assert not slots[1]["available"] and not slots[2]["available"]
        assert slots[0]["available"] and slots[3]["available"]

        with service.transaction():
            availability = service.load_or_create_day(
                context.community_id, facility, booking_day, for_update=True
            )
            released = service.release_slots(availability, "booking-1")

        assert released == 2
        _, slots = service.get_or_create_day_availability(context, facility, booking_day)
        assert all(s["available"] and s["bookingId"] is None for s in slots)

    def test_every_rewrite_bumps_version(self, service, context, facility, booking_day):
        with service.transaction():
            availability = service.load_or_create_day(context.community_id, facility, booking_day)
        version = availability.version

        with service.transaction():
            service.reserve_slots(availability, [0], "booking-1")
        assert availability.version == version + 1


class TestFacilityReads:
    def test_inactive_facility_not_found(self, service, context, make_facility):
        facility = make_facility(is_active=False)
        with pytest.raises(NotFoundException):
            service.get_active_facility(context, facility.id)

    def test_other_community_not_found(self, service, other_context, make_facility):
        facility = make_facility(community_id="another-community")
        with pytest.raises(NotFoundException):
            service.get_active_facility(other_context, facility.id)

    def test_list_facilities_active_only(self, service, context, make_facility):
        make_facility(name="Pool")
        make_facility(name="Gym", is_active=False)
        make_facility(name="Badminton Court")
        names = [f.name for f in service.list_facilities(context)]
        assert names == ["Badminton Court", "Pool"]

    def test_day_availability_for_facility(self, service, context, facility, booking_day):
        slots = service.get_day_availability(context, facility.id, booking_day)
        assert len(slots) == 8
