# backend/tests/services/test_recurring_booking_service.py
"""Recurring series expansion: date stepping, per-occurrence skips and reporting."""

from datetime import date, time, timedelta
import logging
from unittest.mock import patch

import pytest

from facility_booking.core.config import settings
from facility_booking.core.exceptions import StoreAccessException, ValidationException
from facility_booking.models.booking import Booking, BookingStatus, UserBookingReference
from facility_booking.monitoring.prometheus_metrics import REGISTRY
from facility_booking.schemas.booking import BookingCreate, RecurrenceRequest
from facility_booking.services.booking_service import BookingService
from facility_booking.services.recurring_booking_service import (
    RecurringBookingService,
    add_months,
    occurrence_dates,
)


def _request(facility, day, start="18:00", end="19:00", **extra):
    return BookingCreate(
        facility_id=facility.id,
        booking_date=day,
        start_time=start,
        end_time=end,
        participants=3,
        **extra,
    )


@pytest.fixture
def facility(make_facility):
    return make_facility(
        name="Tennis Court", opening_hours="06:00 - 22:00", advance_booking_limit_days=14
    )


@pytest.fixture
def booking_service(unit_db):
    return BookingService(unit_db)


@pytest.fixture
def expander(unit_db, booking_service):
    return RecurringBookingService(unit_db, booking_service=booking_service)


class TestOccurrenceDates:
    def test_weekly(self):
        start = date(2026, 3, 2)
        assert list(occurrence_dates(start, "weekly", date(2026, 3, 23))) == [
            date(2026, 3, 9),
            date(2026, 3, 16),
            date(2026, 3, 23),
        ]

    def test_until_before_first_occurrence(self):
        assert list(occurrence_dates(date(2026, 3, 2), "weekly", date(2026, 3, 8))) == []

    def test_monthly_anchored_and_clamped(self):
        dates = list(occurrence_dates(date(2026, 1, 31), "monthly", date(2026, 5, 31)))
        assert dates == [
            date(2026, 2, 28),
            date(2026, 3, 31),
            date(2026, 4, 30),
            date(2026, 5, 31),
        ]

    def test_leap_year(self):
        assert add_months(date(2028, 1, 30), 1) == date(2028, 2, 29)

    def test_year_rollover(self):
        assert add_months(date(2026, 11, 15), 3) == date(2027, 2, 15)

    def test_occurrence_cap(self):
        dates = list(
            occurrence_dates(date(2026, 1, 1), "weekly", date(2030, 1, 1), max_occurrences=4)
        )
        assert len(dates) == 4


class TestExpandRecurring:
    def test_weekly_series_skips_taken_occurrence(
        self, unit_db, booking_service, expander, context, other_context, facility, booking_day
    ):
        original = booking_service.create_booking(context, _request(facility, booking_day))

        # An unrelated resident already holds the third week
        third_week = booking_day + timedelta(weeks=3)
        blocker = booking_service.commit_booking(
            other_context, facility, third_week, time(18, 0), time(19, 0), participants=1
        )

        result = expander.expand_recurring(
            context, original, "weekly", booking_day + timedelta(weeks=5)
        )

        created_dates = [b.booking_date for b in result.created]
        assert created_dates == [
            booking_day + timedelta(weeks=1),
            booking_day + timedelta(weeks=2),
            booking_day + timedelta(weeks=4),
            booking_day + timedelta(weeks=5),
        ]
        assert [(s.date, s.reason) for s in result.skipped] == [(third_week, "slot_unavailable")]

        # No partial booking on the skipped date
        on_third_week = unit_db.query(Booking).filter(Booking.booking_date == third_week).all()
        assert [b.id for b in on_third_week] == [blocker.id]

    def test_instances_copy_original(
        self, booking_service, expander, context, facility, booking_day
    ):
        original = booking_service.create_booking(
            context, _request(facility, booking_day, notes="Doubles practice")
        )

        result = expander.expand_recurring(
            context, original, "weekly", booking_day + timedelta(weeks=2)
        )

        for instance in result.created:
            assert instance.is_recurring_instance is True
            assert instance.original_booking_id == original.id
            assert instance.participants == 3
            assert instance.notes == "Doubles practice"
            assert instance.status == original.status
            assert (instance.start_time, instance.end_time) == (time(18, 0), time(19, 0))

    def test_instances_reserve_their_slots(
        self, booking_service, expander, context, facility, booking_day
    ):
        original = booking_service.create_booking(context, _request(facility, booking_day))
        result = expander.expand_recurring(
            context, original, "weekly", booking_day + timedelta(weeks=1)
        )
        instance = result.created[0]

        _, slots = booking_service.availability_service.get_or_create_day_availability(
            context, facility, instance.booking_date
        )
        taken = [s for s in slots if not s["available"]]
        assert [(s["startTime"], s["bookingId"]) for s in taken] == [("18:00", instance.id)]

    def test_instances_ignore_advance_window(
        self, booking_service, expander, context, facility, booking_day
    ):
        original = booking_service.create_booking(context, _request(facility, booking_day))
        result = expander.expand_recurring(
            context, original, "monthly", booking_day + timedelta(days=70)
        )
        assert len(result.created) == 2
        assert result.skipped == []

    def test_off_grid_conflict_reported(
        self, unit_db, booking_service, expander, context, facility, booking_day
    ):
        original = booking_service.create_booking(context, _request(facility, booking_day))
        next_week = booking_day + timedelta(weeks=1)
        unit_db.add(
            Booking(
                community_id=context.community_id,
                facility_id=facility.id,
                facility_name=facility.name,
                user_id="imported",
                user_name="Imported",
                booking_date=next_week,
                start_time=time(18, 30),
                end_time=time(19, 30),
                status=BookingStatus.CONFIRMED.value,
                participants=1,
                payment_status="free",
                payment_amount=0,
            )
        )
        unit_db.flush()

        result = expander.expand_recurring(context, original, "weekly", next_week)

        assert result.created == []
        assert [(s.date, s.reason) for s in result.skipped] == [(next_week, "booking_conflict")]

    def test_store_failure_skips_only_that_occurrence(
        self, booking_service, expander, context, facility, booking_day
    ):
        original = booking_service.create_booking(context, _request(facility, booking_day))
        failing_day = booking_day + timedelta(weeks=1)
        real_load = expander.availability_service.get_or_create_day_availability

        def flaky_load(ctx, fac, day):
            if day == failing_day:
                raise StoreAccessException(details={"date": day.isoformat()})
            return real_load(ctx, fac, day)

        with patch.object(
            expander.availability_service,
            "get_or_create_day_availability",
            side_effect=flaky_load,
        ):
            result = expander.expand_recurring(
                context, original, "weekly", booking_day + timedelta(weeks=2)
            )

        assert [s.reason for s in result.skipped] == ["store_error"]
        assert [b.booking_date for b in result.created] == [booking_day + timedelta(weeks=2)]

    def test_unknown_frequency(self, booking_service, expander, context, facility, booking_day):
        original = booking_service.create_booking(context, _request(facility, booking_day))
        with pytest.raises(ValidationException):
            expander.expand_recurring(context, original, "daily", booking_day + timedelta(days=3))

    def test_skip_metrics(
        self, booking_service, expander, context, other_context, facility, booking_day
    ):
        original = booking_service.create_booking(context, _request(facility, booking_day))
        next_week = booking_day + timedelta(weeks=1)
        booking_service.commit_booking(
            other_context, facility, next_week, time(18, 0), time(19, 0), participants=1
        )
        labels = {"outcome": "skipped", "reason": "slot_unavailable"}
        before = (
            REGISTRY.get_sample_value("facility_booking_recurring_occurrences_total", labels)
            or 0.0
        )

        expander.expand_recurring(context, original, "weekly", next_week)

        after = REGISTRY.get_sample_value("facility_booking_recurring_occurrences_total", labels)
        assert after == before + 1


class TestCreateBookingWithRecurrence:
    def test_descriptor_stored_and_series_created(
        self, unit_db, booking_service, context, facility, booking_day
    ):
        until = booking_day + timedelta(weeks=3)
        request = _request(
            facility,
            booking_day,
            recurring=RecurrenceRequest(isRecurring=True, frequency="weekly", endDate=until),
        )

        result = booking_service.book_facility(context, request)

        assert result.booking.recurring == {
            "isRecurring": True,
            "frequency": "weekly",
            "endDate": until.isoformat(),
        }
        assert len(result.recurring.created) == 3
        assert result.recurring.skipped == []

        series = booking_service.get_recurring_series(context, result.recurring.created[-1].id)
        assert [b.id for b in series][0] == result.booking.id
        assert len(series) == 4

        my_list = unit_db.query(UserBookingReference).filter_by(user_id=context.user_id).count()
        assert my_list == 4

    def test_inactive_descriptor_creates_single_booking(
        self, booking_service, context, facility, booking_day
    ):
        request = _request(
            facility,
            booking_day,
            recurring=RecurrenceRequest(isRecurring=False, frequency="weekly"),
        )
        result = booking_service.book_facility(context, request)
        assert result.recurring is None
        assert result.booking.recurring["isRecurring"] is False

    def test_expansion_logged_at_info(
        self, caplog, booking_service, expander, context, facility, booking_day
    ):
        caplog.set_level(logging.INFO)
        original = booking_service.create_booking(context, _request(facility, booking_day))

        result = expander.expand_recurring(
            context, original, "weekly", booking_day + timedelta(weeks=2)
        )

        assert len(result.created) == 2
        record = next(
            r for r in caplog.records if getattr(r, "operation", None) == "expand_recurring"
        )
        assert (record.created_count, record.skipped_count) == (2, 0)


class TestSeriesLength:
    def _weekly(self, facility, day, weeks):
        return _request(
            facility,
            day,
            recurring=RecurrenceRequest(
                isRecurring=True, frequency="weekly", endDate=day + timedelta(weeks=weeks)
            ),
        )

    def test_series_at_limit_accepted(
        self, booking_service, context, facility, booking_day, monkeypatch
    ):
        monkeypatch.setattr(settings, "max_recurring_occurrences", 3)

        result = booking_service.book_facility(context, self._weekly(facility, booking_day, 3))

        assert len(result.recurring.created) == 3

    def test_series_past_limit_rejected_before_writing(
        self, unit_db, booking_service, context, facility, booking_day, monkeypatch
    ):
        monkeypatch.setattr(settings, "max_recurring_occurrences", 3)

        with pytest.raises(ValidationException) as exc_info:
            booking_service.book_facility(context, self._weekly(facility, booking_day, 4))

        assert exc_info.value.code == "RECURRENCE_TOO_LONG"
        assert unit_db.query(Booking).count() == 0

    def test_long_weekly_series_hits_default_limit(
        self, unit_db, booking_service, context, facility, booking_day
    ):
        with pytest.raises(ValidationException) as exc_info:
            booking_service.book_facility(context, self._weekly(facility, booking_day, 120))

        assert exc_info.value.details["max_occurrences"] == 104
        assert unit_db.query(Booking).count() == 0

    def test_expand_recurring_rejects_past_limit(
        self, unit_db, booking_service, expander, context, facility, booking_day, monkeypatch
    ):
        original = booking_service.create_booking(context, _request(facility, booking_day))
        monkeypatch.setattr(settings, "max_recurring_occurrences", 2)

        with pytest.raises(ValidationException):
            expander.expand_recurring(
                context, original, "weekly", booking_day + timedelta(weeks=3)
            )

        assert [b.id for b in unit_db.query(Booking).all()] == [original.id]
