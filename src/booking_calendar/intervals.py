"""Closed date-interval queries over canonical ``YYYY-MM-DD`` strings.

Canonical dates are fixed width and zero padded, so plain string comparison
orders them chronologically. ``overlaps`` is the one overlap test used across
the package; capacity counting, conflict checks and range filters all go
through it.
"""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING, Iterable, Iterator

if TYPE_CHECKING:
    from .schemas import Booking

logger = logging.getLogger(__name__)


def contains(day: str, start: str, end: str) -> bool:
    """True when ``day`` falls inside the closed interval ``[start, end]``."""

    return start <= day <= end


def overlaps(a_start: str, a_end: str, b_start: str, b_end: str) -> bool:
    """True when two closed intervals share at least one day.

    Touching boundaries (``a_end == b_start``) count as overlap.
    """

    return a_start <= b_end and a_end >= b_start


class IntervalIndex:
    """Bookings with a usable date range, kept in fetch order."""

    def __init__(self, bookings: Iterable[Booking]) -> None:
        self._bookings: list[Booking] = []
        self.skipped = 0
        for booking in bookings:
            if booking.has_valid_range:
                self._bookings.append(booking)
            else:
                self.skipped += 1
        if self.skipped:
            logger.debug("interval_index_skipped_invalid_ranges count=%s", self.skipped)

    def __len__(self) -> int:
        return len(self._bookings)

    def __iter__(self) -> Iterator[Booking]:
        return iter(self._bookings)

    def containing(self, day: str) -> list[Booking]:
        return [b for b in self._bookings if contains(day, b.start_date, b.end_date)]

    def overlapping(self, start: str, end: str) -> list[Booking]:
        return [b for b in self._bookings if overlaps(b.start_date, b.end_date, start, end)]

    def for_line(self, line_id: str) -> list[Booking]:
        return [b for b in self._bookings if b.line_id == line_id]
