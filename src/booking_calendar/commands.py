#!/usr/bin/env python
"""
Calendar commands.

Prints the week or month grid straight from the store, with capacity badges
and the double-booking diagnostic.

Usage:
    python -m booking_calendar.commands week                  # Current week
    python -m booking_calendar.commands week --date 2024-03-11
    python -m booking_calendar.commands month --date 2024-03-01
    python -m booking_calendar.commands week --line <id> --course-type CFI
"""

import argparse
import asyncio
import logging
import sys
from typing import List, Optional

from . import dates
from .capacity import CapacityStatus
from .client import SupabaseClient
from .config import Settings
from .constants import ALL_LINES, DAY_NAMES
from .errors import CalendarError
from .service import CalendarService
from .view_state import CalendarView, CalendarViewState, ViewMode

logger = logging.getLogger(__name__)

_STATUS_MARKERS = {
    CapacityStatus.OVER: "!!",
    CapacityStatus.AT: "==",
    CapacityStatus.UNDER: "  ",
}
_CELL_WIDTH = 12


def configure_logging(level: str = "INFO") -> None:
    logging.basicConfig(
        level=getattr(logging, level.upper(), logging.INFO),
        format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
    )


def _cell(text: str) -> str:
    if len(text) > _CELL_WIDTH:
        text = text[: _CELL_WIDTH - 1] + "…"
    return text.ljust(_CELL_WIDTH)


def render_week(view: CalendarView) -> List[str]:
    """Text rendering of the week grid: one row per line, one column per day."""
    header = _cell("Line") + "".join(
        _cell(dates.format_day_label(dates.parse_date_string(day))) for day in view.day_keys
    )
    rows = [f"Week {view.week_start} → {view.week_end}", header]
    for line in view.visible_lines:
        cells = view.occupancy.row(line.id)
        rendered = []
        for day in view.day_keys:
            booking = cells.get(day)
            if booking is None:
                rendered.append(_cell("·"))
            else:
                rendered.append(_cell(booking.student_name or booking.course_label))
        rows.append(_cell(line.name) + "".join(rendered))

    if view.capacity:
        rows.append("")
        rows.append("Capacity:")
        for item in view.capacity:
            rows.append(f"  {_STATUS_MARKERS[item.status]} {item.label}")

    if view.occupancy.double_booked_count:
        rows.append("")
        rows.append(f"Double-booked cells: {view.occupancy.double_booked_count}")
        for line_id, day in view.occupancy.double_booked_cells:
            ids = ", ".join(b.id for b in view.occupancy.candidates(line_id, day))
            rows.append(f"  {line_id} {day}: {ids}")
    return rows


def render_month(view: CalendarView) -> List[str]:
    """Text rendering of the 6x7 month grid with per-day booking totals."""
    month_prefix = view.month_start[:7]
    rows = [f"Month {month_prefix}", "".join(_cell(name) for name in DAY_NAMES)]
    for week_index in range(0, len(view.month_day_keys), 7):
        week = view.month_day_keys[week_index : week_index + 7]
        rendered = []
        for day in week:
            label = day[8:] if day.startswith(month_prefix) else f"({day[8:]})"
            total = view.month_totals.get(day, 0)
            rendered.append(_cell(f"{label} [{total}]" if total else label))
        rows.append("".join(rendered))
    return rows


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        description="Booking calendar",
        formatter_class=argparse.RawDescriptionHelpFormatter,
    )
    parser.add_argument("view", choices=[mode.value for mode in ViewMode], help="Grid to print")
    parser.add_argument("--date", help="Any day inside the week/month to show (YYYY-MM-DD)")
    parser.add_argument("--line", default=ALL_LINES, help="Only show this line id")
    parser.add_argument("--course-type", default="", help="Only show this course type")
    parser.add_argument("--billing-tag", default="", help="Only show this billing tag")
    return parser


async def run(args: argparse.Namespace, settings: Settings) -> List[str]:
    base_date = dates.parse_date_string(args.date) if args.date else None
    state = CalendarViewState(base_date, view_mode=ViewMode(args.view))
    state.set_filter_line_id(args.line)
    state.set_filter_course_type(args.course_type)
    state.set_filter_billing_tag(args.billing_tag)

    async with SupabaseClient(settings) as client:
        service = CalendarService(client, state)
        await service.load()
        view = service.view()

    if view.view_mode is ViewMode.MONTH:
        return render_month(view)
    return render_week(view)


def main(argv: Optional[List[str]] = None) -> int:
    settings = Settings()
    configure_logging(settings.log_level)
    parser = build_parser()
    args = parser.parse_args(argv)

    if args.date:
        try:
            dates.parse_date_string(args.date)
        except ValueError:
            parser.error(f"invalid --date {args.date!r}, expected YYYY-MM-DD")

    try:
        lines = asyncio.run(run(args, settings))
    except CalendarError as exc:
        logger.error(f"Calendar command failed: {exc.message}")
        return 1

    for line in lines:
        print(line)
    return 0


if __name__ == "__main__":
    sys.exit(main())
