# backend/facility_booking/api/dependencies/context.py
"""
Booking context dependency.

Authentication happens upstream; the gateway forwards the resident's
identity and community in request headers.
"""

from typing import Optional

from fastapi import Header, HTTPException, status

from ...core.booking_context import BookingContext
from ...core.constants import (
    COMMUNITY_HEADER,
    STAFF_ROLE,
    USER_ID_HEADER,
    USER_NAME_HEADER,
    USER_ROLE_HEADER,
    USER_UNIT_HEADER,
)


def get_booking_context(
    x_community_id: str = Header(..., alias=COMMUNITY_HEADER),
    x_user_id: str = Header(..., alias=USER_ID_HEADER),
    x_user_name: Optional[str] = Header(None, alias=USER_NAME_HEADER),
    x_user_unit: Optional[str] = Header(None, alias=USER_UNIT_HEADER),
    x_user_role: Optional[str] = Header(None, alias=USER_ROLE_HEADER),
) -> BookingContext:
    try:
        return BookingContext(
            community_id=x_community_id.strip(),
            user_id=x_user_id.strip(),
            user_name=(x_user_name or "").strip() or "Resident",
            user_unit=(x_user_unit or "").strip() or None,
            is_staff=(x_user_role or "").strip().lower() == STAFF_ROLE,
        )
    except ValueError as e:
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail=str(e))
