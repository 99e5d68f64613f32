"""
Cell occupancy for the week grid and per-day counts for the month grid.

The week grid has one row per line and one column per day. Each cell holds at
most one booking. When several bookings on a line cover the same day the
first one in fetch order (start date ascending) is shown; the extra
candidates are kept for diagnostics rather than treated as an error.
"""

from __future__ import annotations

from collections import Counter
from dataclasses import dataclass, field
from enum import Enum
import logging
from typing import Any, Iterable, Literal, Optional, Sequence

from .intervals import IntervalIndex, contains
from .schemas import Booking, Line

logger = logging.getLogger(__name__)


class OccupancyPolicy(str, Enum):
    """How a cell with several candidate bookings is resolved."""

    FIRST_MATCH = "first_match"


@dataclass(frozen=True)
class OccupancyTable:
    """Per-line, per-day lookup of the booking occupying each cell."""

    day_keys: tuple[str, ...]
    rows: dict[str, dict[str, Optional[Booking]]]
    overflow: dict[tuple[str, str], tuple[Booking, ...]] = field(default_factory=dict)
    policy: OccupancyPolicy = OccupancyPolicy.FIRST_MATCH

    def get(self, line_id: str, day_key: str) -> Optional[Booking]:
        return self.rows.get(line_id, {}).get(day_key)

    def row(self, line_id: str) -> dict[str, Optional[Booking]]:
        return dict(self.rows.get(line_id, {}))

    def candidates(self, line_id: str, day_key: str) -> list[Booking]:
        """All bookings covering the cell, the surfaced one first."""
        extra = self.overflow.get((line_id, day_key))
        if extra:
            return list(extra)
        booking = self.get(line_id, day_key)
        return [booking] if booking is not None else []

    @property
    def double_booked_cells(self) -> list[tuple[str, str]]:
        return sorted(self.overflow)

    @property
    def double_booked_count(self) -> int:
        return len(self.overflow)

    def as_dict(self) -> dict[str, dict[str, Optional[str]]]:
        return {
            line_id: {day: (b.id if b is not None else None) for day, b in cells.items()}
            for line_id, cells in self.rows.items()
        }


def resolve_occupancy(
    lines: Iterable[Line],
    day_keys: Sequence[str],
    bookings: Iterable[Booking],
    policy: OccupancyPolicy = OccupancyPolicy.FIRST_MATCH,
) -> OccupancyTable:
    """
    Map every (line, day) cell to the booking occupying it.

    Args:
        lines: Lines to render, in display order
        day_keys: Canonical dates of the visible columns, in order
        bookings: Bookings already narrowed by the active filters, in fetch order
        policy: Resolution for cells with several candidates

    Returns:
        OccupancyTable with a row for every line (empty cells map to None)
    """
    index = IntervalIndex(bookings)
    rows: dict[str, dict[str, Optional[Booking]]] = {}
    overflow: dict[tuple[str, str], tuple[Booking, ...]] = {}

    for line in lines:
        line_bookings = index.for_line(line.id)
        cells: dict[str, Optional[Booking]] = {}
        for day in day_keys:
            matches = [b for b in line_bookings if contains(day, b.start_date, b.end_date)]
            cells[day] = matches[0] if matches else None
            if len(matches) > 1:
                overflow[(line.id, day)] = tuple(matches)
        rows[line.id] = cells

    if overflow:
        logger.warning(
            "occupancy_double_booked_cells count=%s policy=%s",
            len(overflow),
            policy.value,
        )

    return OccupancyTable(
        day_keys=tuple(day_keys),
        rows=rows,
        overflow=overflow,
        policy=policy,
    )


def count_course_types_by_day(
    day_keys: Sequence[str], bookings: Iterable[Booking]
) -> dict[str, dict[str, int]]:
    """Month badges: ``{day: {course_type: count}}`` for every visible day."""
    index = IntervalIndex(bookings)
    counts: dict[str, dict[str, int]] = {}
    for day in day_keys:
        per_type = Counter(b.course_label for b in index.containing(day))
        counts[day] = dict(per_type)
    return counts


def count_bookings_by_day(day_keys: Sequence[str], bookings: Iterable[Booking]) -> dict[str, int]:
    by_type = count_course_types_by_day(day_keys, bookings)
    return {day: sum(per_type.values()) for day, per_type in by_type.items()}


@dataclass(frozen=True)
class CellAction:
    """What clicking a grid cell should open."""

    kind: Literal["create", "edit"]
    line_id: str
    day_key: str
    booking: Optional[Booking] = None

    @property
    def seed(self) -> dict[str, Any]:
        """Initial form values for the booking drawer."""
        if self.booking is None:
            return {
                "line_id": self.line_id,
                "course_type": "",
                "billing_tag": "",
                "start_date": self.day_key,
                "end_date": self.day_key,
                "note": "",
            }
        return {
            "id": self.booking.id,
            "line_id": self.booking.line_id,
            "student_id": self.booking.student_id,
            "course_type": self.booking.course_type,
            "billing_tag": self.booking.billing_tag or "",
            "start_date": self.booking.start_date,
            "end_date": self.booking.end_date,
            "note": self.booking.note or "",
        }


def resolve_cell_click(table: OccupancyTable, line_id: str, day_key: str) -> CellAction:
    booking = table.get(line_id, day_key)
    if booking is None:
        return CellAction(kind="create", line_id=line_id, day_key=day_key)
    return CellAction(kind="edit", line_id=line_id, day_key=day_key, booking=booking)
