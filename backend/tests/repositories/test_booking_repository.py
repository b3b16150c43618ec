# backend/tests/repositories/test_booking_repository.py
from datetime import time

import pytest

from facility_booking.models.booking import Booking, BookingStatus
from facility_booking.repositories import RepositoryFactory


@pytest.fixture
def repository(unit_db):
    return RepositoryFactory.create_booking_repository(unit_db)


def _add_booking(repository, context, facility, day, start, end, **overrides):
    fields = dict(
        community_id=context.community_id,
        facility_id=facility.id,
        facility_name=facility.name,
        user_id=context.user_id,
        user_name=context.user_name,
        booking_date=day,
        start_time=start,
        end_time=end,
        status=BookingStatus.CONFIRMED.value,
        participants=1,
        payment_status="free",
        payment_amount=0,
    )
    fields.update(overrides)
    return repository.create(**fields)


class TestBookingRepository:
    def test_active_bookings_exclude_cancelled(self, repository, context, facility, booking_day):
        _add_booking(repository, context, facility, booking_day, time(12, 0), time(13, 0))
        _add_booking(
            repository, context, facility, booking_day, time(9, 0), time(10, 0), status="pending"
        )
        _add_booking(
            repository, context, facility, booking_day, time(10, 0), time(11, 0), status="cancelled"
        )

        active = repository.get_active_bookings_for_day(
            context.community_id, facility.id, booking_day
        )

        assert [b.start_time for b in active] == [time(9, 0), time(12, 0)]

    def test_exclude_booking_id(self, repository, context, facility, booking_day):
        booking = _add_booking(repository, context, facility, booking_day, time(9, 0), time(10, 0))
        active = repository.get_active_bookings_for_day(
            context.community_id, facility.id, booking_day, exclude_booking_id=booking.id
        )
        assert active == []

    def test_community_scoped_lookup(self, repository, context, facility, booking_day):
        booking = _add_booking(repository, context, facility, booking_day, time(9, 0), time(10, 0))
        assert repository.get_community_booking(context.community_id, booking.id) is booking
        assert repository.get_community_booking("elsewhere", booking.id) is None

    def test_series_instances(self, repository, context, facility, booking_day):
        original = _add_booking(repository, context, facility, booking_day, time(9, 0), time(10, 0))
        _add_booking(
            repository,
            context,
            facility,
            booking_day,
            time(11, 0),
            time(12, 0),
            is_recurring_instance=True,
            original_booking_id=original.id,
        )

        instances = repository.get_series_instances(original.id)

        assert len(instances) == 1
        assert isinstance(instances[0], Booking)
        assert instances[0].original_booking_id == original.id


class TestUserBookingRepository:
    def test_reference_mirrors_booking_and_syncs_status(
        self, unit_db, repository, context, facility, booking_day
    ):
        references = RepositoryFactory.create_user_booking_repository(unit_db)
        booking = _add_booking(repository, context, facility, booking_day, time(9, 0), time(10, 0))

        reference = references.create_for_booking(booking)
        assert reference.facility_name == facility.name
        assert reference.booking_date == booking_day

        assert references.sync_status(booking.id, "cancelled") == 1
        assert references.get_for_user(context.community_id, context.user_id)[0].status == (
            "cancelled"
        )


class TestBaseRepositoryOperations:
    def test_update(self, unit_db, repository, context, facility, booking_day):
        booking = _add_booking(
            repository, context, facility, booking_day, time(9, 0), time(10, 0), status="pending"
        )

        updated = repository.update(booking.id, status="confirmed", not_a_column="ignored")

        assert updated is booking
        assert booking.status == "confirmed"
        assert unit_db.query(Booking).filter_by(status="confirmed").count() == 1
        assert repository.update("01HZZZZZZZZZZZZZZZZZZZZZZZ", status="cancelled") is None
