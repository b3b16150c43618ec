# backend/facility_booking/routes/v1/facilities.py
"""
Facility routes - API v1

Read-only catalog and day availability for the booking screen.
"""

import asyncio
from datetime import date
from typing import List

from fastapi import APIRouter, Depends, Path, Query

from ...api.dependencies import get_availability_service, get_booking_context
from ...core.booking_context import BookingContext
from ...core.exceptions import DomainException
from ...schemas.availability import DayAvailabilityResponse, FacilityResponse, SlotResponse
from ...services.availability_service import AvailabilityService
from .bookings import ULID_PATH_PATTERN, handle_domain_exception

router = APIRouter(tags=["facilities-v1"])


@router.get("", response_model=List[FacilityResponse])
async def list_facilities(
    context: BookingContext = Depends(get_booking_context),
    availability_service: AvailabilityService = Depends(get_availability_service),
) -> List[FacilityResponse]:
    """Active facilities of the caller's community."""
    try:
        facilities = await asyncio.to_thread(availability_service.list_facilities, context)
    except DomainException as e:
        handle_domain_exception(e)
    return [FacilityResponse.model_validate(f) for f in facilities]


@router.get("/{facility_id}/availability", response_model=DayAvailabilityResponse)
async def get_day_availability(
    facility_id: str = Path(..., pattern=ULID_PATH_PATTERN),
    day: date = Query(..., alias="date", description="Day to show (YYYY-MM-DD)"),
    context: BookingContext = Depends(get_booking_context),
    availability_service: AvailabilityService = Depends(get_availability_service),
) -> DayAvailabilityResponse:
    """
    Slots of one facility day.

    The day's record is created fully available on first access.
    """
    try:
        slots = await asyncio.to_thread(
            availability_service.get_day_availability, context, facility_id, day
        )
    except DomainException as e:
        handle_domain_exception(e)
    return DayAvailabilityResponse(
        facility_id=facility_id,
        date=day,
        slots=[SlotResponse.model_validate(slot) for slot in slots],
    )
