# backend/facility_booking/core/constants.py
"""Application-wide constants."""

BRAND_NAME = "Community Facilities"

API_TITLE = f"{BRAND_NAME} Booking API"
API_DESCRIPTION = (
    f"Backend API for {BRAND_NAME} - slot availability and bookings for residential amenities"
)
API_VERSION = "1.0.0"

# Headers carrying the booking context forwarded by the gateway
COMMUNITY_HEADER = "X-Community-Id"
USER_ID_HEADER = "X-User-Id"
USER_NAME_HEADER = "X-User-Name"
USER_UNIT_HEADER = "X-User-Unit"
USER_ROLE_HEADER = "X-User-Role"

# Role value that may approve bookings of staff-approved facilities
STAFF_ROLE = "staff"
