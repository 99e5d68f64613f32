"""
Conflict checks for bookings on a line.

Handles:
- Finding bookings on the same line whose date range overlaps a draft
- Rejecting a save that would double-book a line
- Listing the bookings a line deletion would cascade over

All checks work on the in-memory booking list and use ``intervals.overlaps``
so the grid, capacity badges and conflict checks agree on what "overlapping"
means.
"""

import logging
from typing import Any, Dict, Iterable, List, Optional

from .errors import BookingConflictError
from .intervals import overlaps
from .schemas import Booking, BookingDraft

logger = logging.getLogger(__name__)


def find_overlapping_bookings(
    bookings: Iterable[Booking],
    line_id: str,
    start_date: str,
    end_date: str,
    exclude_booking_id: Optional[str] = None,
) -> List[Booking]:
    """Bookings on ``line_id`` sharing at least one day with ``[start_date, end_date]``."""
    return [
        booking
        for booking in bookings
        if booking.line_id == line_id
        and booking.id != exclude_booking_id
        and booking.has_valid_range
        and overlaps(booking.start_date, booking.end_date, start_date, end_date)
    ]


def bookings_on_line(
    bookings: Iterable[Booking], line_id: str, from_day: Optional[str] = None
) -> List[Booking]:
    """
    Bookings a line deletion would remove.

    With ``from_day`` only bookings still running on or after that day are
    returned (open-ended window), which is what a "has upcoming bookings"
    guard needs.
    """
    result = []
    for booking in bookings:
        if booking.line_id != line_id:
            continue
        if from_day is not None:
            if not booking.has_valid_range:
                continue
            if not overlaps(booking.start_date, booking.end_date, from_day, "9999-12-31"):
                continue
        result.append(booking)
    return result


def conflict_error(draft: BookingDraft, conflicts: List[Dict[str, Any]]) -> BookingConflictError:
    return BookingConflictError(
        f"Line already has {len(conflicts)} booking(s) between "
        f"{draft.start_date} and {draft.end_date}",
        conflicts,
    )


class ConflictChecker:
    """
    Checks booking drafts against the bookings already on the calendar.

    The checker holds no state of its own; callers pass in the
    current booking list each time so the check reflects the latest fetch.
    """

    def check_booking_conflicts(
        self,
        draft: BookingDraft,
        bookings: Iterable[Booking],
        exclude_booking_id: Optional[str] = None,
    ) -> List[Dict[str, Any]]:
        """
        Check if a draft overlaps existing bookings on its line.

        Args:
            draft: The booking being created or edited
            bookings: Current bookings
            exclude_booking_id: The booking being edited, if any

        Returns:
            List of conflicts with booking details
        """
        overlapping = find_overlapping_bookings(
            bookings,
            draft.line_id,
            draft.start_date,
            draft.end_date,
            exclude_booking_id=exclude_booking_id,
        )
        conflicts = [
            {
                "booking_id": booking.id,
                "start_date": booking.start_date,
                "end_date": booking.end_date,
                "course_type": booking.course_type,
                "student_name": booking.student_name,
            }
            for booking in overlapping
        ]

        if conflicts:
            logger.warning(
                f"Found {len(conflicts)} booking conflicts on line {draft.line_id} "
                f"between {draft.start_date} and {draft.end_date}"
            )

        return conflicts

    def has_conflicts(
        self,
        draft: BookingDraft,
        bookings: Iterable[Booking],
        exclude_booking_id: Optional[str] = None,
    ) -> bool:
        return bool(self.check_booking_conflicts(draft, bookings, exclude_booking_id))

    def ensure_no_conflicts(
        self,
        draft: BookingDraft,
        bookings: Iterable[Booking],
        exclude_booking_id: Optional[str] = None,
    ) -> None:
        """Raise ``BookingConflictError`` when the draft would double-book its line."""
        conflicts = self.check_booking_conflicts(draft, bookings, exclude_booking_id)
        if conflicts:
            raise conflict_error(draft, conflicts)
