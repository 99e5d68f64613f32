"""Booking filters and the option lists that feed the filter bar."""

from __future__ import annotations

from typing import Iterable, Sequence

from pydantic import BaseModel, ConfigDict

from .constants import ALL_LINES, DEFAULT_COURSE_TYPE_CHIPS
from .schemas import Booking, CourseType, Line


class FilterState(BaseModel):
    """Active filters. Empty strings (and ``"all"`` for lines) match everything."""

    model_config = ConfigDict(frozen=True)

    line_id: str = ALL_LINES
    course_type: str = ""
    billing_tag: str = ""

    @property
    def is_active(self) -> bool:
        return self != FilterState()


def matches_filters(booking: Booking, filters: FilterState) -> bool:
    if filters.line_id != ALL_LINES and booking.line_id != filters.line_id:
        return False
    if filters.course_type and booking.course_type != filters.course_type:
        return False
    if filters.billing_tag and (booking.billing_tag or "") != filters.billing_tag:
        return False
    return True


def filter_bookings(bookings: Iterable[Booking], filters: FilterState) -> list[Booking]:
    return [b for b in bookings if matches_filters(b, filters)]


def visible_lines(lines: Iterable[Line], filters: FilterState) -> list[Line]:
    return [line for line in lines if filters.line_id == ALL_LINES or line.id == filters.line_id]


def course_type_options(bookings: Iterable[Booking]) -> list[str]:
    """Distinct course types seen on bookings, sorted."""

    return sorted({b.course_type for b in bookings})


def billing_tag_options(bookings: Iterable[Booking]) -> list[str]:
    return sorted({b.billing_tag for b in bookings if b.billing_tag})


def course_type_chip_labels(course_types: Sequence[CourseType]) -> list[str]:
    if course_types:
        return [ct.name for ct in course_types]
    return list(DEFAULT_COURSE_TYPE_CHIPS)
