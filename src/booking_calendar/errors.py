"""
Exceptions for the booking calendar.

The derivation core (dates, intervals, occupancy, capacity) never raises for
bad data: malformed dates are normalized away and the record is skipped.
These exceptions cover the edges of the system: booking drafts that fail
validation, overlapping bookings, and failures talking to the store.
"""

from typing import Any, Dict, Optional


class CalendarError(Exception):
    """Base exception for all booking calendar errors."""

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

    def to_dict(self) -> Dict[str, Any]:
        return {
            "message": self.message,
            "code": self.code,
            "details": self.details,
        }


class CalendarValidationError(CalendarError):
    """Raised when user input (a line name, a student, an action) is invalid."""


class BookingValidationError(CalendarValidationError):
    """Raised when a booking draft is incomplete or has an inverted range."""


class BookingConflictError(CalendarError):
    """Raised when a booking overlaps another booking on the same line."""

    def __init__(self, message: str, conflicts: list[dict[str, Any]]) -> None:
        super().__init__(message, details={"conflicts": conflicts})
        self.conflicts = conflicts


class StaleBookingError(CalendarError):
    """Raised when a booking changed in the store since it was fetched."""


class StoreError(CalendarError):
    """Base error for persistence store failures."""


class StoreAuthError(StoreError):
    """Raised when the store rejects the API key."""


class StoreNotFoundError(StoreError):
    """Raised when a store resource is not found."""


class StoreConflictError(StoreError):
    """Raised on unique / foreign key violations reported by the store."""


class StoreConnectionError(StoreError):
    """Raised when the store cannot be reached or times out."""


class StoreRequestError(StoreError):
    """Raised for any other failed store request."""
