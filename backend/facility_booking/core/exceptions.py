# backend/facility_booking/core/exceptions.py
"""
Domain-specific exceptions for the facility booking engine.

These exceptions provide clear, business-focused error messages
that can be caught and handled appropriately at the API layer.
Each booking failure kind carries a stable ``code`` suitable for
direct display by the calling client.
"""

from typing import Any, Dict, Optional

from fastapi import HTTPException, status

HTTP_422_UNPROCESSABLE: int = getattr(status, "HTTP_422_UNPROCESSABLE_CONTENT", 422)


class DomainException(Exception):
    """Base exception for all domain-specific errors."""

    def __init__(
        self,
        message: str,
        code: Optional[str] = None,
        details: Optional[Dict[str, Any]] = None,
    ) -> None:
        self.message = message
        self.code = code or self.__class__.__name__
        self.details = details or {}
        super().__init__(self.message)

    def _detail(self) -> Dict[str, Any]:
        return {
            "message": self.message,
            "code": self.code,
            "details": self.details,
        }

    def to_http_exception(self) -> HTTPException:
        """Default conversion to HTTPException (override in subclasses)."""
        return HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail=self._detail(),
        )


class ValidationException(DomainException):
    """Raised when business validation fails."""

    def to_http_exception(self) -> HTTPException:
        return HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=self._detail())


class NotFoundException(DomainException):
    """Raised when a requested resource is not found."""

    def to_http_exception(self) -> HTTPException:
        return HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=self._detail())


class ConflictException(DomainException):
    """Raised when there's a conflict with existing data."""

    def to_http_exception(self) -> HTTPException:
        return HTTPException(status_code=status.HTTP_409_CONFLICT, detail=self._detail())


class BusinessRuleException(DomainException):
    """Raised when a business rule is violated."""

    def to_http_exception(self) -> HTTPException:
        return HTTPException(status_code=HTTP_422_UNPROCESSABLE, detail=self._detail())


class ForbiddenException(DomainException):
    """Raised when the caller lacks permission for an action."""

    def to_http_exception(self) -> HTTPException:
        return HTTPException(status_code=status.HTTP_403_FORBIDDEN, detail=self._detail())


class ServiceException(DomainException):
    """Raised when a service operation fails."""

    def to_http_exception(self) -> HTTPException:
        return HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail={
                "message": self.message or "An error occurred processing your request",
                "code": self.code,
                "details": self.details if self.details else {},
            },
        )


# Specific booking exceptions


class InvalidParticipantCountException(ValidationException):
    """Raised when the participant count is outside [1, capacity]."""

    def __init__(self, participants: int, capacity: int):
        super().__init__(
            message=f"Number of participants must be between 1 and {capacity}",
            code="INVALID_PARTICIPANT_COUNT",
            details={"participants": participants, "capacity": capacity},
        )


class InvalidTimeRangeException(ValidationException):
    """Raised when end is not after start or the duration is outside facility limits."""

    def __init__(self, message: str, *, details: Optional[Dict[str, Any]] = None):
        super().__init__(message=message, code="INVALID_TIME_RANGE", details=details or {})


class AdvanceBookingWindowException(BusinessRuleException):
    """Raised when the booking date is in the past or beyond the advance-booking horizon."""

    def __init__(self, message: str, *, details: Optional[Dict[str, Any]] = None):
        super().__init__(message=message, code="ADVANCE_BOOKING_WINDOW", details=details or {})


class FacilityHoursViolationException(BusinessRuleException):
    """Raised when the requested interval falls outside the facility's opening hours."""

    def __init__(self, open_hour: int, close_hour: int):
        super().__init__(
            message=f"Facility is only open from {open_hour}:00 to {close_hour}:00",
            code="FACILITY_HOURS_VIOLATION",
            details={"open_hour": open_hour, "close_hour": close_hour},
        )


class SlotUnavailableException(ConflictException):
    """Raised when no matching available slot exists in the availability record."""

    def __init__(
        self,
        message: Optional[str] = None,
        *,
        details: Optional[Dict[str, Any]] = None,
    ):
        super().__init__(
            message=message or "This time slot is not available",
            code="SLOT_UNAVAILABLE",
            details=details or {},
        )


class BookingConflictException(ConflictException):
    """Raised when a booking conflicts with existing bookings."""

    def __init__(
        self,
        message: Optional[str] = None,
        *,
        details: Optional[Dict[str, Any]] = None,
    ):
        super().__init__(
            message=message or "This time slot conflicts with an existing booking",
            code="BOOKING_CONFLICT",
            details=details or {},
        )


class StoreAccessException(ServiceException):
    """Raised when the underlying persistence read or write fails."""

    def __init__(
        self,
        message: Optional[str] = None,
        *,
        details: Optional[Dict[str, Any]] = None,
    ):
        super().__init__(
            message=message or "Could not access booking data. Please try again.",
            code="STORE_ACCESS_FAILURE",
            details=details or {},
        )


class RepositoryException(Exception):
    """
    Exception raised for repository layer errors.

    This exception is used when data access operations fail,
    such as database connection issues, query failures, or
    constraint violations.
    """
