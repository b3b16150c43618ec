# backend/facility_booking/routes/v1/bookings.py
"""
Booking routes - API v1

Residents create, list, inspect and cancel their facility bookings here.
Staff approve bookings of facilities that require it. Services are
synchronous and run in a worker thread.
"""

import asyncio
import logging
from typing import List, NoReturn, Optional

from fastapi import APIRouter, Body, Depends, HTTPException, Path, status

from ...api.dependencies import get_booking_context, get_booking_service
from ...core.booking_context import BookingContext
from ...core.exceptions import DomainException
from ...schemas.booking import (
    BookingCreate,
    BookingCreateResponse,
    BookingResponse,
    CancelBookingRequest,
    RecurringExpansionResponse,
    SkippedOccurrenceResponse,
    UserBookingResponse,
)
from ...services.booking_service import BookingService

logger = logging.getLogger(__name__)

router = APIRouter(tags=["bookings-v1"])

ULID_PATH_PATTERN = r"^[0-9A-HJKMNP-TV-Z]{26}$"


def handle_domain_exception(exc: DomainException) -> NoReturn:
    """Convert domain exceptions to HTTP exceptions."""
    if hasattr(exc, "to_http_exception"):
        raise exc.to_http_exception()
    raise HTTPException(status_code=status.HTTP_500_INTERNAL_SERVER_ERROR, detail=str(exc))


# ============================================================================
# SECTION 1: Static routes (no path parameters)
# ============================================================================


@router.post("", response_model=BookingCreateResponse, status_code=status.HTTP_201_CREATED)
async def create_booking(
    booking_data: BookingCreate = Body(...),
    context: BookingContext = Depends(get_booking_context),
    booking_service: BookingService = Depends(get_booking_service),
) -> BookingCreateResponse:
    """
    Book a facility time range.

    Recurring requests also generate the series; dates that could not be
    booked are listed under ``recurring.skipped``.
    """
    try:
        result = await asyncio.to_thread(booking_service.book_facility, context, booking_data)
    except DomainException as e:
        handle_domain_exception(e)

    recurring = None
    if result.recurring is not None:
        recurring = RecurringExpansionResponse(
            created=[BookingResponse.model_validate(b) for b in result.recurring.created],
            skipped=[
                SkippedOccurrenceResponse(date=s.date, reason=s.reason)
                for s in result.recurring.skipped
            ],
        )
    return BookingCreateResponse(
        booking=BookingResponse.model_validate(result.booking),
        recurring=recurring,
    )


@router.get("/mine", response_model=List[UserBookingResponse])
async def get_my_bookings(
    context: BookingContext = Depends(get_booking_context),
    booking_service: BookingService = Depends(get_booking_service),
) -> List[UserBookingResponse]:
    """List the caller's bookings, newest first."""
    try:
        references = await asyncio.to_thread(booking_service.get_user_bookings, context)
    except DomainException as e:
        handle_domain_exception(e)
    return [UserBookingResponse.model_validate(ref) for ref in references]


# ============================================================================
# SECTION 2: Dynamic routes (with path parameters)
# ============================================================================


@router.get("/{booking_id}", response_model=BookingResponse)
async def get_booking(
    booking_id: str = Path(..., pattern=ULID_PATH_PATTERN),
    context: BookingContext = Depends(get_booking_context),
    booking_service: BookingService = Depends(get_booking_service),
) -> BookingResponse:
    try:
        booking = await asyncio.to_thread(booking_service.get_booking, context, booking_id)
    except DomainException as e:
        handle_domain_exception(e)
    return BookingResponse.model_validate(booking)


@router.get("/{booking_id}/series", response_model=List[BookingResponse])
async def get_booking_series(
    booking_id: str = Path(..., pattern=ULID_PATH_PATTERN),
    context: BookingContext = Depends(get_booking_context),
    booking_service: BookingService = Depends(get_booking_service),
) -> List[BookingResponse]:
    """The original booking of a recurring series followed by its instances."""
    try:
        series = await asyncio.to_thread(
            booking_service.get_recurring_series, context, booking_id
        )
    except DomainException as e:
        handle_domain_exception(e)
    return [BookingResponse.model_validate(b) for b in series]


@router.post("/{booking_id}/cancel", response_model=BookingResponse)
async def cancel_booking(
    booking_id: str = Path(..., pattern=ULID_PATH_PATTERN),
    cancel_data: Optional[CancelBookingRequest] = Body(None),
    context: BookingContext = Depends(get_booking_context),
    booking_service: BookingService = Depends(get_booking_service),
) -> BookingResponse:
    """Cancel one of the caller's bookings and free its slots."""
    try:
        booking = await asyncio.to_thread(
            booking_service.cancel_booking,
            context,
            booking_id,
            cancel_data.reason if cancel_data else None,
        )
    except DomainException as e:
        handle_domain_exception(e)
    return BookingResponse.model_validate(booking)


@router.post("/{booking_id}/approve", response_model=BookingResponse)
async def approve_booking(
    booking_id: str = Path(..., pattern=ULID_PATH_PATTERN),
    context: BookingContext = Depends(get_booking_context),
    booking_service: BookingService = Depends(get_booking_service),
) -> BookingResponse:
    """Confirm a booking that is waiting for staff approval."""
    try:
        booking = await asyncio.to_thread(booking_service.approve_booking, context, booking_id)
    except DomainException as e:
        handle_domain_exception(e)
    return BookingResponse.model_validate(booking)
