from __future__ import annotations

from dataclasses import dataclass
from typing import Optional


@dataclass(frozen=True)
class BookingContext:
    """Who is booking and for which community; passed into every engine entry point."""

    community_id: str
    user_id: str
    user_name: str = "Resident"
    user_unit: Optional[str] = None
    is_staff: bool = False

    def __post_init__(self) -> None:
        if not self.community_id:
            raise ValueError("community_id is required")
        if not self.user_id:
            raise ValueError("user_id is required")
