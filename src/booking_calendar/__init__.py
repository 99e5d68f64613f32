"""Booking calendar core: date grids, cell occupancy and weekly capacity."""

from .capacity import CapacityStatus, CapacitySummary, classify_capacity, summarize_weekly_capacity
from .filters import FilterState
from .intervals import IntervalIndex, contains, overlaps
from .occupancy import OccupancyPolicy, OccupancyTable, resolve_cell_click, resolve_occupancy
from .schemas import Booking, BookingDraft, CourseType, Line
from .view_state import CalendarView, CalendarViewState, ViewMode

__version__ = "0.1.0"

__all__ = [
    "Booking",
    "BookingDraft",
    "CalendarView",
    "CalendarViewState",
    "CapacityStatus",
    "CapacitySummary",
    "CourseType",
    "FilterState",
    "IntervalIndex",
    "Line",
    "OccupancyPolicy",
    "OccupancyTable",
    "ViewMode",
    "classify_capacity",
    "contains",
    "overlaps",
    "resolve_cell_click",
    "resolve_occupancy",
    "summarize_weekly_capacity",
]
