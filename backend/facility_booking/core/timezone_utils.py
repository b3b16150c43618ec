"""
Timezone utilities for the facility booking engine.

Bookings are scheduled at day granularity in a single facility timezone.
"""

from datetime import date, datetime
from typing import Optional

import pytz

from .config import settings


def get_facility_timezone(tz_name: Optional[str] = None) -> pytz.BaseTzInfo:
    """Return the configured facility timezone as a pytz timezone object."""
    return pytz.timezone(tz_name or settings.facility_timezone)


def get_facility_today(tz_name: Optional[str] = None) -> date:
    """Get 'today' in the facility timezone."""
    return datetime.now(get_facility_timezone(tz_name)).date()
