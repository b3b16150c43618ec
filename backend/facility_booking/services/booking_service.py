# backend/facility_booking/services/booking_service.py
"""
Booking Service for the facility booking engine.

Handles all booking-related business logic including:
- Validating a request against the facility (capacity, duration, hours)
- Enforcing the advance-booking window
- Committing the booking, its user-list copy and the slot rewrite together
- Cancelling and approving bookings
- Coordinating recurring series expansion

Every commit re-reads the day's availability row under lock and re-runs the
slot and overlap checks inside the same transaction, so two residents racing
for one slot cannot both succeed.
"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import date, datetime, time, timedelta, timezone
from decimal import Decimal, InvalidOperation
import logging
import re
from typing import Any, Dict, List, Optional, Tuple

from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session
from sqlalchemy.orm.exc import StaleDataError

from ..core.booking_context import BookingContext
from ..core.config import settings
from ..core.exceptions import (
    AdvanceBookingWindowException,
    BookingConflictException,
    BusinessRuleException,
    DomainException,
    FacilityHoursViolationException,
    ForbiddenException,
    InvalidParticipantCountException,
    InvalidTimeRangeException,
    NotFoundException,
    RepositoryException,
    SlotUnavailableException,
    StoreAccessException,
)
from ..core.timezone_utils import get_facility_today
from ..models.booking import Booking, BookingStatus, PaymentStatus, UserBookingReference
from ..models.facility import Facility
from ..monitoring.prometheus_metrics import prometheus_metrics
from ..repositories.factory import RepositoryFactory
from ..schemas.booking import BookingCreate, RecurrenceRequest
from .availability_service import AvailabilityService
from .base import BaseService
from .conflict_checker import FACILITY_HOURS_VIOLATION, ConflictChecker
from .recurring_booking_service import (
    RecurringBookingService,
    RecurringExpansionResult,
    validate_series_length,
)

logger = logging.getLogger(__name__)

_AMOUNT_PATTERN = re.compile(r"\d+(?:\.\d+)?")


def derive_payment(fee: Optional[str]) -> Tuple[str, Decimal]:
    """
    Derive the payment state of a new booking from the facility fee text.

    "Free for residents", an empty fee and a zero amount mean no charge.
    Anything else is pending with the first number found in the text.
    """
    if not fee or not fee.strip() or fee.strip() == settings.free_fee_sentinel:
        return PaymentStatus.FREE.value, Decimal("0")

    match = _AMOUNT_PATTERN.search(fee.replace(",", ""))
    if not match:
        logger.warning(f"Could not read an amount from fee {fee!r}; recording zero")
        return PaymentStatus.PENDING.value, Decimal("0")

    try:
        amount = Decimal(match.group(0))
    except InvalidOperation:
        return PaymentStatus.PENDING.value, Decimal("0")

    if amount == 0:
        return PaymentStatus.FREE.value, Decimal("0")
    return PaymentStatus.PENDING.value, amount


@dataclass
class BookingCreationResult:
    booking: Booking
    recurring: Optional[RecurringExpansionResult] = None


class BookingService(BaseService):
    """
    Service layer for booking operations.

    Centralizes all booking business logic and coordinates
    with the availability, conflict and recurring services.
    """

    def __init__(
        self,
        db: Session,
        availability_service: Optional[AvailabilityService] = None,
        conflict_checker: Optional[ConflictChecker] = None,
    ):
        """
        Initialize booking service.

        Args:
            db: Database session
            availability_service: Optional availability service instance
            conflict_checker: Optional conflict checker instance
        """
        super().__init__(db)
        self.repository = RepositoryFactory.create_booking_repository(db)
        self.user_booking_repository = RepositoryFactory.create_user_booking_repository(db)
        self.availability_service = availability_service or AvailabilityService(db)
        self.conflict_checker = conflict_checker or ConflictChecker(db, self.repository)

    # ------------------------------------------------------------------
    # Creation
    # ------------------------------------------------------------------

    @BaseService.measure_operation("create_booking")
    def create_booking(self, context: BookingContext, booking_data: BookingCreate) -> Booking:
        """
        Create a booking, expanding its recurring series when requested.

        Args:
            context: Who is booking and for which community
            booking_data: Facility, date, time range, participants, notes, recurrence

        Returns:
            The created (original) booking

        Raises:
            NotFoundException: Facility missing or inactive
            InvalidParticipantCountException: Participants outside [1, capacity]
            InvalidTimeRangeException: End not after start or duration out of bounds
            AdvanceBookingWindowException: Date in the past or too far ahead
            FacilityHoursViolationException: Outside opening hours
            SlotUnavailableException: Slots missing or already reserved
            BookingConflictException: Overlaps an existing booking or lost a write race
            StoreAccessException: Persistence failure
        """
        return self.book_facility(context, booking_data).booking

    def book_facility(
        self, context: BookingContext, booking_data: BookingCreate
    ) -> BookingCreationResult:
        """Create a booking and return it together with the recurring expansion report."""
        try:
            facility = self._validate_booking_prerequisites(context, booking_data)
            booking = self.commit_booking(
                context,
                facility,
                booking_data.booking_date,
                booking_data.start_time,
                booking_data.end_time,
                participants=booking_data.participants,
                notes=booking_data.notes,
                recurring=booking_data.recurring,
            )
        except DomainException as e:
            prometheus_metrics.record_booking_outcome("rejected", e.code)
            raise

        prometheus_metrics.record_booking_outcome("created")
        self.log_operation(
            "create_booking",
            booking_id=booking.id,
            facility_id=facility.id,
            booking_date=booking.booking_date.isoformat(),
            status=booking.status,
        )
        self.logger.info(
            f"Booking {booking.id} created for {facility.name} on {booking.booking_date} "
            f"{booking.start_time:%H:%M}-{booking.end_time:%H:%M} by {context.user_id}"
        )

        result = BookingCreationResult(booking=booking)
        recurrence = booking_data.recurring
        if recurrence is not None and recurrence.is_active:
            expander = RecurringBookingService(self.db, booking_service=self)
            result.recurring = expander.expand_recurring(
                context,
                booking,
                recurrence.frequency,
                recurrence.end_date,
            )
        return result

    def _validate_booking_prerequisites(
        self, context: BookingContext, booking_data: BookingCreate
    ) -> Facility:
        """
        Run the ordered precondition checks. The first failing check wins.

        Returns:
            The facility being booked
        """
        facility = self.availability_service.get_active_facility(context, booking_data.facility_id)

        if not 1 <= booking_data.participants <= facility.capacity:
            raise InvalidParticipantCountException(booking_data.participants, facility.capacity)

        time_check = self.conflict_checker.validate_time_range(
            booking_data.start_time,
            booking_data.end_time,
            min_duration_minutes=facility.min_booking_duration_minutes,
            max_duration_minutes=facility.max_booking_duration_minutes,
        )
        if not time_check["valid"]:
            raise InvalidTimeRangeException(
                time_check["reason"],
                details={
                    "duration_minutes": time_check.get("duration_minutes"),
                    "min_duration_minutes": facility.min_booking_duration_minutes,
                    "max_duration_minutes": facility.max_booking_duration_minutes,
                },
            )

        self._validate_advance_window(facility, booking_data.booking_date)

        _, slots = self.availability_service.get_or_create_day_availability(
            context, facility, booking_data.booking_date
        )
        check = self.conflict_checker.check_availability(
            facility,
            booking_data.booking_date,
            booking_data.start_time,
            booking_data.end_time,
            slots,
        )
        if not check["available"]:
            raise self._availability_exception(check)

        conflicts = self.conflict_checker.find_booking_conflicts(
            context,
            facility.id,
            booking_data.booking_date,
            booking_data.start_time,
            booking_data.end_time,
        )
        if conflicts:
            raise BookingConflictException(details={"conflicts": conflicts})

        recurrence = booking_data.recurring
        if recurrence is not None and recurrence.is_active:
            validate_series_length(
                booking_data.booking_date, recurrence.frequency, recurrence.end_date
            )

        return facility

    def _validate_advance_window(self, facility: Facility, booking_date: date) -> None:
        if not settings.enforce_advance_booking_limit:
            return

        today = get_facility_today()
        if booking_date < today:
            raise AdvanceBookingWindowException(
                "Cannot book for past dates",
                details={"booking_date": booking_date.isoformat(), "today": today.isoformat()},
            )

        limit_days = facility.advance_booking_limit_days
        if limit_days is not None and booking_date > today + timedelta(days=limit_days):
            raise AdvanceBookingWindowException(
                f"Bookings can only be made up to {limit_days} days in advance",
                details={
                    "booking_date": booking_date.isoformat(),
                    "advance_booking_limit_days": limit_days,
                },
            )

    @staticmethod
    def _availability_exception(check: Dict[str, Any]) -> DomainException:
        if check.get("code") == FACILITY_HOURS_VIOLATION:
            return FacilityHoursViolationException(check["open_hour"], check["close_hour"])
        details = {"booking_ids": check["booking_ids"]} if check.get("booking_ids") else {}
        return SlotUnavailableException(check.get("reason"), details=details)

    def commit_booking(
        self,
        context: BookingContext,
        facility: Facility,
        booking_date: date,
        start_time: time,
        end_time: time,
        *,
        participants: int,
        notes: Optional[str] = None,
        recurring: Optional[RecurrenceRequest] = None,
        original_booking: Optional[Booking] = None,
    ) -> Booking:
        """
        Write one booking atomically.

        Locks and re-reads the day's availability row, re-validates slot state
        and overlap, then inserts the booking and its user-list copy and
        rewrites the slot document. Nothing is written if any step fails.

        Raises:
            SlotUnavailableException / FacilityHoursViolationException: Slot state changed
            BookingConflictException: Overlap found or a concurrent writer won
            StoreAccessException: Persistence failure
        """
        try:
            with self.transaction():
                availability = self.availability_service.load_or_create_day(
                    context.community_id, facility, booking_date, for_update=True
                )
                check = self.conflict_checker.check_availability(
                    facility, booking_date, start_time, end_time, availability.slots or []
                )
                if not check["available"]:
                    raise self._availability_exception(check)

                conflicts = self.conflict_checker.find_booking_conflicts(
                    context, facility.id, booking_date, start_time, end_time
                )
                if conflicts:
                    raise BookingConflictException(details={"conflicts": conflicts})

                booking = self.repository.create(
                    **self._booking_fields(
                        context,
                        facility,
                        booking_date,
                        start_time,
                        end_time,
                        participants=participants,
                        notes=notes,
                        recurring=recurring,
                        original_booking=original_booking,
                    )
                )
                self.user_booking_repository.create_for_booking(booking)
                self.availability_service.reserve_slots(
                    availability, check["slot_indexes"], booking.id
                )
        except (IntegrityError, StaleDataError) as e:
            self.logger.warning(
                f"Lost booking race for {facility.id} on {booking_date} "
                f"{start_time:%H:%M}-{end_time:%H:%M}: {type(e).__name__}"
            )
            raise BookingConflictException(
                "This time slot was just booked by someone else",
                details={"facility_id": facility.id, "date": booking_date.isoformat()},
            ) from e

        return booking

    def _booking_fields(
        self,
        context: BookingContext,
        facility: Facility,
        booking_date: date,
        start_time: time,
        end_time: time,
        *,
        participants: int,
        notes: Optional[str],
        recurring: Optional[RecurrenceRequest],
        original_booking: Optional[Booking],
    ) -> Dict[str, Any]:
        if original_booking is not None:
            # Series instances copy the original's terms
            return {
                "community_id": original_booking.community_id,
                "facility_id": original_booking.facility_id,
                "facility_name": original_booking.facility_name,
                "user_id": original_booking.user_id,
                "user_name": original_booking.user_name,
                "user_unit": original_booking.user_unit,
                "booking_date": booking_date,
                "start_time": start_time,
                "end_time": end_time,
                "status": original_booking.status,
                "participants": original_booking.participants,
                "notes": original_booking.notes,
                "payment_status": original_booking.payment_status,
                "payment_amount": original_booking.payment_amount,
                "recurring": original_booking.recurring,
                "is_recurring_instance": True,
                "original_booking_id": original_booking.id,
            }

        payment_status, payment_amount = derive_payment(facility.fee)
        status = (
            BookingStatus.PENDING.value
            if facility.requires_staff_approval
            else BookingStatus.CONFIRMED.value
        )
        return {
            "community_id": context.community_id,
            "facility_id": facility.id,
            "facility_name": facility.name,
            "user_id": context.user_id,
            "user_name": context.user_name,
            "user_unit": context.user_unit,
            "booking_date": booking_date,
            "start_time": start_time,
            "end_time": end_time,
            "status": status,
            "participants": participants,
            "notes": notes,
            "payment_status": payment_status,
            "payment_amount": payment_amount,
            "recurring": recurring.to_descriptor() if recurring is not None else None,
            "is_recurring_instance": False,
            "original_booking_id": None,
        }

    # ------------------------------------------------------------------
    # Lifecycle
    # ------------------------------------------------------------------

    @BaseService.measure_operation("cancel_booking")
    def cancel_booking(
        self, context: BookingContext, booking_id: str, reason: Optional[str] = None
    ) -> Booking:
        """
        Cancel a booking and give its slots back.

        Args:
            context: Caller context; only the booking's owner may cancel
            booking_id: ID of booking to cancel
            reason: Optional cancellation reason

        Returns:
            Cancelled booking

        Raises:
            NotFoundException: If booking not found
            ForbiddenException: If the caller does not own the booking
            BusinessRuleException: If the booking is already cancelled
        """
        booking = self.get_booking(context, booking_id)

        if booking.user_id != context.user_id:
            raise ForbiddenException("You don't have permission to cancel this booking")

        if booking.status == BookingStatus.CANCELLED.value:
            raise BusinessRuleException(
                f"Booking cannot be cancelled - current status: {booking.status}"
            )

        try:
            with self.transaction():
                availability = self.availability_service.repository.get_day_for_update(
                    booking.community_id, booking.facility_id, booking.booking_date
                )
                released = 0
                if availability is not None:
                    released = self.availability_service.release_slots(availability, booking.id)

                booking.status = BookingStatus.CANCELLED.value
                booking.cancelled_at = datetime.now(timezone.utc)
                booking.cancellation_reason = reason
                self.repository.flush()
                self.user_booking_repository.sync_status(booking.id, booking.status)
        except StaleDataError as e:
            raise BookingConflictException(
                "Availability changed while cancelling. Please try again.",
                details={"booking_id": booking_id},
            ) from e

        self.logger.info(
            f"Booking {booking.id} cancelled by {context.user_id}, {released} slots released"
        )
        return booking

    @BaseService.measure_operation("approve_booking")
    def approve_booking(self, context: BookingContext, booking_id: str) -> Booking:
        """
        Confirm a booking that was waiting for staff approval.

        Only staff may approve, and never a booking of their own.

        Raises:
            NotFoundException: If booking not found
            ForbiddenException: If the caller is not staff or owns the booking
            BusinessRuleException: If the booking is not pending
        """
        booking = self.get_booking(context, booking_id)
        if not context.is_staff:
            raise ForbiddenException("Only staff can approve bookings")
        if booking.user_id == context.user_id:
            raise ForbiddenException("You cannot approve your own booking")

        if booking.status != BookingStatus.PENDING.value:
            raise BusinessRuleException(
                f"Only pending bookings can be approved - current status: {booking.status}"
            )

        with self.transaction():
            self.repository.update(booking.id, status=BookingStatus.CONFIRMED.value)
            self.user_booking_repository.sync_status(booking.id, booking.status)

        self.log_operation("approve_booking", booking_id=booking.id, approved_by=context.user_id)
        return booking

    # ------------------------------------------------------------------
    # Reads
    # ------------------------------------------------------------------

    def get_booking(self, context: BookingContext, booking_id: str) -> Booking:
        """Get a booking of the caller's community or raise NotFoundException."""
        try:
            booking = self.repository.get_community_booking(context.community_id, booking_id)
        except RepositoryException as e:
            raise StoreAccessException(details={"booking_id": booking_id}) from e
        if booking is None:
            raise NotFoundException("Booking not found", code="BOOKING_NOT_FOUND")
        return booking

    def get_user_bookings(self, context: BookingContext) -> List[UserBookingReference]:
        """The caller's own booking list, newest first."""
        try:
            return self.user_booking_repository.get_for_user(context.community_id, context.user_id)
        except RepositoryException as e:
            raise StoreAccessException(details={"user_id": context.user_id}) from e

    def get_recurring_series(self, context: BookingContext, booking_id: str) -> List[Booking]:
        """The original booking of a series followed by its generated instances."""
        booking = self.get_booking(context, booking_id)
        original = booking
        if booking.original_booking_id:
            original = self.get_booking(context, booking.original_booking_id)
        return [original, *self.repository.get_series_instances(original.id)]
