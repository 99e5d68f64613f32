"""
Navigation and filter state for the calendar, plus the derived view.

``CalendarViewState`` is an explicit object owned by the caller. It stores only
the cursor (a week base date and a month base date, tracked independently),
the view mode and the filters. Everything else is computed from those on
access, so nothing can go stale across a cursor move.
"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import date, datetime
from enum import Enum
import logging
from typing import Callable, Optional, Sequence

from . import dates
from .capacity import CapacitySummary, summarize_weekly_capacity
from .constants import ALL_LINES
from .filters import (
    FilterState,
    billing_tag_options,
    course_type_chip_labels,
    course_type_options,
    filter_bookings,
    visible_lines,
)
from .occupancy import (
    OccupancyTable,
    count_course_types_by_day,
    resolve_occupancy,
)
from .schemas import Booking, CourseType, Line

logger = logging.getLogger(__name__)


class ViewMode(str, Enum):
    WEEK = "week"
    MONTH = "month"


@dataclass(frozen=True)
class CalendarView:
    """Read-only data handed to the presentation layer."""

    view_mode: ViewMode
    week_start: str
    week_end: str
    day_keys: list[str]
    month_start: str
    month_day_keys: list[str]
    visible_lines: list[Line]
    filtered_bookings: list[Booking]
    occupancy: OccupancyTable
    month_counts: dict[str, dict[str, int]]
    month_totals: dict[str, int]
    capacity: list[CapacitySummary]
    course_type_options: list[str]
    billing_tag_options: list[str]
    course_type_chips: list[str]


class CalendarViewState:
    """Cursor, view mode and filters for one calendar session."""

    def __init__(
        self,
        base_date: Optional[date | datetime] = None,
        *,
        view_mode: ViewMode = ViewMode.WEEK,
        today: Callable[[], date] = dates.today,
    ) -> None:
        self._today = today
        start = base_date if base_date is not None else today()
        self.view_mode = view_mode
        self.week_base_date: date = dates.as_day(start)
        self.month_base_date: date = dates.as_day(start)
        self.filters = FilterState()

    def __repr__(self) -> str:
        return (
            f"CalendarViewState(view_mode={self.view_mode.value!r}, "
            f"week_start={self.week_start.isoformat()!r}, "
            f"month_start={self.month_start.isoformat()!r})"
        )

    # Week cursor

    @property
    def week_start(self) -> date:
        return dates.start_of_week(self.week_base_date)

    @property
    def week_end(self) -> date:
        return dates.add_days(self.week_start, 6)

    @property
    def days(self) -> list[date]:
        return dates.week_days(self.week_start)

    @property
    def day_keys(self) -> list[str]:
        return dates.day_keys(self.days)

    def set_week_base_date(self, value: date | datetime) -> None:
        self.week_base_date = dates.as_day(value)

    def go_to_prev_week(self) -> None:
        self.week_base_date = dates.add_days(self.week_base_date, -7)

    def go_to_next_week(self) -> None:
        self.week_base_date = dates.add_days(self.week_base_date, 7)

    def go_to_today(self) -> None:
        self.week_base_date = self._today()

    # Month cursor

    @property
    def month_start(self) -> date:
        return dates.start_of_month(self.month_base_date)

    @property
    def month_days(self) -> list[date]:
        return dates.month_grid_days(self.month_start)

    @property
    def month_day_keys(self) -> list[str]:
        return dates.day_keys(self.month_days)

    def set_month_base_date(self, value: date | datetime) -> None:
        self.month_base_date = dates.as_day(value)

    def go_to_prev_month(self) -> None:
        self.month_base_date = dates.add_months(self.month_base_date, -1)

    def go_to_next_month(self) -> None:
        self.month_base_date = dates.add_months(self.month_base_date, 1)

    def go_to_current_month(self) -> None:
        self.month_base_date = self._today()

    def jump_to_week(self, value: date | datetime) -> None:
        """Open the week containing ``value`` (a clicked month cell)."""
        self.week_base_date = dates.as_day(value)
        self.view_mode = ViewMode.WEEK

    def set_view_mode(self, mode: ViewMode | str) -> None:
        self.view_mode = ViewMode(mode)

    # Filters

    def set_filter_line_id(self, line_id: str) -> None:
        self.filters = self.filters.model_copy(update={"line_id": line_id or ALL_LINES})

    def set_filter_course_type(self, course_type: str) -> None:
        self.filters = self.filters.model_copy(update={"course_type": course_type})

    def set_filter_billing_tag(self, billing_tag: str) -> None:
        self.filters = self.filters.model_copy(update={"billing_tag": billing_tag})

    def clear_filters(self) -> None:
        self.filters = FilterState()

    # Derived view

    def derive(
        self,
        lines: Sequence[Line],
        bookings: Sequence[Booking],
        course_types: Sequence[CourseType],
    ) -> CalendarView:
        """
        Compute everything the grid needs for the current cursor and filters.

        Occupancy and month counts use the filtered bookings. Capacity badges
        use the full booking list so they reflect real utilization whatever
        the user is currently filtering on.
        """
        filtered = filter_bookings(bookings, self.filters)
        shown_lines = visible_lines(lines, self.filters)
        week_keys = self.day_keys
        month_keys = self.month_day_keys
        week_start = dates.to_canonical_date(self.week_start)
        week_end = dates.to_canonical_date(self.week_end)

        month_counts = count_course_types_by_day(month_keys, filtered)
        view = CalendarView(
            view_mode=self.view_mode,
            week_start=week_start,
            week_end=week_end,
            day_keys=week_keys,
            month_start=dates.to_canonical_date(self.month_start),
            month_day_keys=month_keys,
            visible_lines=shown_lines,
            filtered_bookings=filtered,
            occupancy=resolve_occupancy(shown_lines, week_keys, filtered),
            month_counts=month_counts,
            month_totals={day: sum(c.values()) for day, c in month_counts.items()},
            capacity=summarize_weekly_capacity(course_types, bookings, week_start, week_end),
            course_type_options=course_type_options(bookings),
            billing_tag_options=billing_tag_options(bookings),
            course_type_chips=course_type_chip_labels(course_types),
        )
        logger.debug(
            "calendar_view_derived mode=%s week_start=%s bookings=%s filtered=%s",
            self.view_mode.value,
            week_start,
            len(bookings),
            len(filtered),
        )
        return view
