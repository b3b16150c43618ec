# backend/facility_booking/services/recurring_booking_service.py
"""
Recurring Booking Service

Expands a recurring booking into its series. Each occurrence is validated
and committed on its own, so an unavailable date is skipped and reported
without affecting the others.
"""

from __future__ import annotations

import calendar
from dataclasses import dataclass, field
from datetime import date, timedelta
import logging
from typing import TYPE_CHECKING, Iterator, List, Optional, Union

from sqlalchemy.orm import Session

from ..core.booking_context import BookingContext
from ..core.config import settings
from ..core.exceptions import (
    BookingConflictException,
    DomainException,
    FacilityHoursViolationException,
    RepositoryException,
    SlotUnavailableException,
    StoreAccessException,
    ValidationException,
)
from ..models.booking import Booking, RecurrenceFrequency
from ..models.facility import Facility
from ..monitoring.prometheus_metrics import prometheus_metrics
from .base import BaseService
from .conflict_checker import FACILITY_HOURS_VIOLATION

if TYPE_CHECKING:
    from .booking_service import BookingService

logger = logging.getLogger(__name__)

# Skip reasons reported per occurrence
SKIP_SLOT_UNAVAILABLE = "slot_unavailable"
SKIP_OUTSIDE_HOURS = "outside_facility_hours"
SKIP_BOOKING_CONFLICT = "booking_conflict"
SKIP_STORE_ERROR = "store_error"


@dataclass
class SkippedOccurrence:
    date: date
    reason: str


@dataclass
class RecurringExpansionResult:
    created: List[Booking] = field(default_factory=list)
    skipped: List[SkippedOccurrence] = field(default_factory=list)


def add_months(anchor: date, months: int) -> date:
    """Same day of month ``months`` later, clamped to the last day of a shorter month."""
    month_index = anchor.month - 1 + months
    year = anchor.year + month_index // 12
    month = month_index % 12 + 1
    last_day = calendar.monthrange(year, month)[1]
    return date(year, month, min(anchor.day, last_day))


def occurrence_dates(
    start: date,
    frequency: Union[RecurrenceFrequency, str],
    until: date,
    max_occurrences: Optional[int] = None,
) -> Iterator[date]:
    """
    Yield the dates following ``start`` up to and including ``until``.

    Monthly steps are always computed from ``start`` so a series anchored on
    the 31st lands on the 31st whenever the month has one.
    """
    frequency = RecurrenceFrequency(frequency)
    limit = max_occurrences or settings.max_recurring_occurrences

    for step in range(1, limit + 1):
        if frequency == RecurrenceFrequency.WEEKLY:
            current = start + timedelta(days=7 * step)
        else:
            current = add_months(start, step)
        if current > until:
            return
        yield current


def validate_series_length(
    start: date,
    frequency: Union[RecurrenceFrequency, str],
    until: date,
) -> None:
    """Reject a series that would run past the occurrence limit."""
    limit = settings.max_recurring_occurrences
    count = sum(1 for _ in occurrence_dates(start, frequency, until, max_occurrences=limit + 1))
    if count > limit:
        raise ValidationException(
            f"A recurring series can have at most {limit} occurrences",
            code="RECURRENCE_TOO_LONG",
            details={"end_date": until.isoformat(), "max_occurrences": limit},
        )


class RecurringBookingService(BaseService):
    """Generates the instances of a recurring series."""

    def __init__(self, db: Session, booking_service: Optional["BookingService"] = None):
        super().__init__(db)
        if booking_service is None:
            from .booking_service import BookingService

            booking_service = BookingService(db)
        self.booking_service = booking_service
        self.availability_service = booking_service.availability_service
        self.conflict_checker = booking_service.conflict_checker

    @BaseService.measure_operation("expand_recurring")
    def expand_recurring(
        self,
        context: BookingContext,
        original_booking: Booking,
        frequency: Union[RecurrenceFrequency, str],
        until_date: date,
    ) -> RecurringExpansionResult:
        """
        Create one booking per occurrence after the original, up to ``until_date``.

        Args:
            context: Caller context
            original_booking: First booking of the series
            frequency: weekly or monthly
            until_date: Last date a generated occurrence may fall on

        Returns:
            Created bookings and skipped dates with their reasons

        Raises:
            ValidationException: Unknown frequency or too many occurrences
            NotFoundException: The original's facility is gone or inactive
        """
        try:
            frequency = RecurrenceFrequency(frequency)
        except ValueError:
            raise ValidationException(
                f"Unsupported recurrence frequency: {frequency}",
                code="INVALID_RECURRENCE",
            ) from None

        validate_series_length(original_booking.booking_date, frequency, until_date)

        facility = self.availability_service.get_active_facility(
            context, original_booking.facility_id
        )

        result = RecurringExpansionResult()
        for occurrence in occurrence_dates(original_booking.booking_date, frequency, until_date):
            reason = self._book_occurrence(context, facility, original_booking, occurrence, result)
            if reason is None:
                prometheus_metrics.record_recurring_occurrence("created")
                continue

            self.logger.warning(
                f"Skipping recurring occurrence of {original_booking.id} on {occurrence}: {reason}"
            )
            result.skipped.append(SkippedOccurrence(date=occurrence, reason=reason))
            prometheus_metrics.record_recurring_occurrence("skipped", reason)

        self.log_operation(
            "expand_recurring",
            original_booking_id=original_booking.id,
            frequency=frequency.value,
            created_count=len(result.created),
            skipped_count=len(result.skipped),
        )
        return result

    def _book_occurrence(
        self,
        context: BookingContext,
        facility: Facility,
        original_booking: Booking,
        occurrence: date,
        result: RecurringExpansionResult,
    ) -> Optional[str]:
        """Try to book one occurrence. Returns the skip reason, or None when created."""
        try:
            _, slots = self.availability_service.get_or_create_day_availability(
                context, facility, occurrence
            )
            check = self.conflict_checker.check_availability(
                facility,
                occurrence,
                original_booking.start_time,
                original_booking.end_time,
                slots,
            )
            if not check["available"]:
                if check.get("code") == FACILITY_HOURS_VIOLATION:
                    return SKIP_OUTSIDE_HOURS
                return SKIP_SLOT_UNAVAILABLE

            if self.conflict_checker.check_time_conflicts(
                original_booking.community_id,
                original_booking.facility_id,
                occurrence,
                original_booking.start_time,
                original_booking.end_time,
            ):
                return SKIP_BOOKING_CONFLICT

            booking = self.booking_service.commit_booking(
                context,
                facility,
                occurrence,
                original_booking.start_time,
                original_booking.end_time,
                participants=original_booking.participants,
                original_booking=original_booking,
            )
        except FacilityHoursViolationException:
            return SKIP_OUTSIDE_HOURS
        except SlotUnavailableException:
            return SKIP_SLOT_UNAVAILABLE
        except BookingConflictException:
            return SKIP_BOOKING_CONFLICT
        except StoreAccessException as e:
            self.logger.error(f"Store failure booking occurrence {occurrence}: {e.details}")
            return SKIP_STORE_ERROR
        except RepositoryException as e:
            self.logger.error(f"Store failure booking occurrence {occurrence}: {str(e)}")
            return SKIP_STORE_ERROR
        except DomainException as e:
            self.logger.error(f"Unexpected rejection booking occurrence {occurrence}: {e.code}")
            return e.code.lower()

        result.created.append(booking)
        return None
