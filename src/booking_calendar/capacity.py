"""
Weekly capacity utilization per course type.

Counts are keyed by the course type label stored on each booking, not by the
course type's id. Two course types sharing a name therefore share a count,
and renaming a course type detaches it from existing bookings.
"""

from __future__ import annotations

from collections import Counter
from enum import Enum
import logging
from typing import Iterable, Sequence

from pydantic import BaseModel, ConfigDict

from .intervals import overlaps
from .schemas import Booking, CourseType

logger = logging.getLogger(__name__)


class CapacityStatus(str, Enum):
    UNDER = "under"
    AT = "at"
    OVER = "over"


def classify_capacity(booked: int, capacity: int) -> CapacityStatus:
    """Tri-state badge: at-capacity is its own state, not folded into over."""
    if booked > capacity:
        return CapacityStatus.OVER
    if booked == capacity:
        return CapacityStatus.AT
    return CapacityStatus.UNDER


class CapacitySummary(BaseModel):
    """Booked-vs-capacity figures for one course type in the displayed week."""

    model_config = ConfigDict(frozen=True)

    name: str
    capacity: int
    booked: int

    @property
    def status(self) -> CapacityStatus:
        return classify_capacity(self.booked, self.capacity)

    @property
    def label(self) -> str:
        return f"{self.name}: {self.booked} / {self.capacity}"


def count_bookings_by_course_type(
    bookings: Iterable[Booking], week_start: str, week_end: str
) -> dict[str, int]:
    """Number of bookings per course label overlapping ``[week_start, week_end]``."""
    counts: Counter[str] = Counter()
    for booking in bookings:
        if not booking.has_valid_range:
            continue
        if not overlaps(booking.start_date, booking.end_date, week_start, week_end):
            continue
        counts[booking.course_label] += 1
    return dict(counts)


def summarize_weekly_capacity(
    course_types: Sequence[CourseType],
    bookings: Iterable[Booking],
    week_start: str,
    week_end: str,
) -> list[CapacitySummary]:
    """
    Build the capacity badges for the displayed week.

    Only course types with a positive ``weekly_capacity`` produce a summary.
    Results are sorted by name.
    """
    counts = count_bookings_by_course_type(bookings, week_start, week_end)
    summaries = [
        CapacitySummary(name=ct.name, capacity=ct.weekly_capacity, booked=counts.get(ct.name, 0))
        for ct in course_types
        if ct.weekly_capacity is not None and ct.weekly_capacity > 0
    ]
    summaries.sort(key=lambda s: s.name)

    over = [s.name for s in summaries if s.status is CapacityStatus.OVER]
    if over:
        logger.info("capacity_over_limit week_start=%s course_types=%s", week_start, over)
    return summaries
