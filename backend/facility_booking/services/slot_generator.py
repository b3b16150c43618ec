# backend/facility_booking/services/slot_generator.py
"""
Slot Generation

Turns a facility's opening hours into the canonical ordered list of
bookable slots for one day. Everything here is a pure function of its
inputs; persistence lives in the availability service.

Times travel as "HH:MM" strings inside slot documents. End of day is
written "00:00" and read back as minute 1440 when used as an end bound.
"""

import logging
import re
from datetime import time
from typing import Any, Dict, List, NamedTuple, Optional

from ..core.config import settings

logger = logging.getLogger(__name__)

MINUTES_PER_DAY = 24 * 60
OPENING_HOURS_SEPARATOR = " - "
_HOUR_PREFIX = re.compile(r"^\s*(\d{1,2})(?::\d{2})?")


class OpeningHours(NamedTuple):
    open_hour: int
    close_hour: int

    @property
    def open_minutes(self) -> int:
        return self.open_hour * 60

    @property
    def close_minutes(self) -> int:
        return self.close_hour * 60


def default_opening_hours() -> OpeningHours:
    return OpeningHours(settings.default_open_hour, settings.default_close_hour)


def parse_opening_hours(opening_hours: Optional[str]) -> OpeningHours:
    """
    Parse "HH:MM - HH:MM" into whole opening and closing hours.

    Lenient by contract: anything that cannot be read as an increasing
    window inside one day falls back to the default window instead of
    failing the booking flow.
    """
    if not opening_hours:
        return default_opening_hours()

    parts = opening_hours.split(OPENING_HOURS_SEPARATOR)
    if len(parts) != 2:
        logger.debug(f"Unparseable opening hours {opening_hours!r}, using default window")
        return default_opening_hours()

    open_match = _HOUR_PREFIX.match(parts[0])
    close_match = _HOUR_PREFIX.match(parts[1])
    if not open_match or not close_match:
        logger.debug(f"Unparseable opening hours {opening_hours!r}, using default window")
        return default_opening_hours()

    open_hour = int(open_match.group(1))
    close_hour = int(close_match.group(1))
    if not 0 <= open_hour < close_hour <= 24:
        logger.debug(f"Opening hours {opening_hours!r} out of range, using default window")
        return default_opening_hours()

    return OpeningHours(open_hour, close_hour)


def format_minutes(minutes: int) -> str:
    """Render minutes since midnight as "HH:MM" (1440 wraps to "00:00")."""
    minutes = minutes % MINUTES_PER_DAY
    return f"{minutes // 60:02d}:{minutes % 60:02d}"


def parse_clock(value: str, *, is_end: bool = False) -> int:
    """Read an "HH:MM" string as minutes since midnight."""
    hour_str, minute_str = value.split(":")
    minutes = int(hour_str) * 60 + int(minute_str)
    if is_end and minutes == 0:
        return MINUTES_PER_DAY
    return minutes


def time_to_minutes(value: time, *, is_end: bool = False) -> int:
    """Minutes since midnight for a time; midnight as an end bound means end of day."""
    minutes = value.hour * 60 + value.minute
    if is_end and minutes == 0:
        return MINUTES_PER_DAY
    return minutes


def minutes_to_time(minutes: int) -> time:
    minutes = minutes % MINUTES_PER_DAY
    return time(minutes // 60, minutes % 60)


def generate_slots(
    open_hour: int, close_hour: int, granularity_minutes: Optional[int] = None
) -> List[Dict[str, Any]]:
    """
    Generate the day's slots from open_hour:00 (inclusive) to close_hour:00 (exclusive).

    A trailing interval shorter than the granularity is not emitted.

    Returns:
        list[dict]: [
            {"startTime": "09:00", "endTime": "10:00", "available": True, "bookingId": None},
            ...
        ]
    """
    step = granularity_minutes
    if step is None:
        step = settings.slot_granularity_minutes
    if step <= 0:
        raise ValueError("granularity_minutes must be positive")

    slots: List[Dict[str, Any]] = []
    window_end = close_hour * 60
    current = open_hour * 60

    while current + step <= window_end:
        slots.append(
            {
                "startTime": format_minutes(current),
                "endTime": format_minutes(current + step),
                "available": True,
                "bookingId": None,
            }
        )
        current += step

    return slots


def generate_slots_for_hours(
    opening_hours: Optional[str], granularity_minutes: Optional[int] = None
) -> List[Dict[str, Any]]:
    """Parse a facility's opening-hours text and generate its slots."""
    hours = parse_opening_hours(opening_hours)
    return generate_slots(hours.open_hour, hours.close_hour, granularity_minutes)
