"""Calendar-day helpers for week and month grids.

Every booking date is a canonical ``YYYY-MM-DD`` string. The helpers here work
on ``datetime.date`` values (calendar days, no time, no zone) and convert to and
from that canonical form.
"""

from __future__ import annotations

from datetime import date, datetime, timedelta
from typing import Iterable

from .constants import DAY_NAMES

DAYS_PER_WEEK = 7
MONTH_GRID_DAYS = 42
CANONICAL_LENGTH = 10


def as_day(value: date | datetime) -> date:
    """Drop any time component, keeping the local calendar day."""

    if isinstance(value, datetime):
        return value.date()
    return value


def today() -> date:
    """Return the current local calendar day."""

    return date.today()


def start_of_week(value: date | datetime) -> date:
    """Return the Monday on or before ``value``."""

    day = as_day(value)
    sunday_first = (day.weekday() + 1) % 7  # Sunday=0 .. Saturday=6
    diff = (sunday_first + 6) % 7  # days since Monday
    return day - timedelta(days=diff)


def add_days(value: date | datetime, days: int) -> date:
    return as_day(value) + timedelta(days=days)


def start_of_month(value: date | datetime) -> date:
    day = as_day(value)
    return date(day.year, day.month, 1)


def add_months(value: date | datetime, months: int) -> date:
    """Shift by whole months, pinned to the 1st so Jan 31 + 1 lands on Feb 1."""

    day = as_day(value)
    month_index = day.year * 12 + (day.month - 1) + months
    year, month = divmod(month_index, 12)
    return date(year, month + 1, 1)


def to_canonical_date(value: date | datetime) -> str:
    """Format a calendar day as zero-padded ``YYYY-MM-DD``."""

    day = as_day(value)
    return f"{day.year:04d}-{day.month:02d}-{day.day:02d}"


def parse_date_string(value: str) -> date:
    """Parse a canonical ``YYYY-MM-DD`` string into a calendar day."""

    if len(value) != CANONICAL_LENGTH or value[4] != "-" or value[7] != "-":
        raise ValueError(f"Invalid date format: {value!r}")
    return datetime.strptime(value, "%Y-%m-%d").date()


def normalize(raw: str | date | datetime | None) -> str | None:
    """Reduce a store date value to a canonical date, or ``None`` when absent.

    Values with a time or timezone suffix (``2024-03-10T00:00:00+00:00``) are
    truncated to their first ten characters. Anything that is not a real
    calendar day afterwards is treated as missing.
    """

    if raw is None:
        return None
    if isinstance(raw, (date, datetime)):
        return to_canonical_date(raw)
    text = str(raw).strip()
    if not text:
        return None
    candidate = text[:CANONICAL_LENGTH]
    try:
        parse_date_string(candidate)
    except ValueError:
        return None
    return candidate


def week_days(week_start: date | datetime) -> list[date]:
    return [add_days(week_start, offset) for offset in range(DAYS_PER_WEEK)]


def month_grid_days(month_start: date | datetime) -> list[date]:
    """Return the 6x7 grid of days that tiles the month in whole weeks."""

    grid_start = start_of_week(start_of_month(month_start))
    return [add_days(grid_start, offset) for offset in range(MONTH_GRID_DAYS)]


def day_keys(days: Iterable[date]) -> list[str]:
    return [to_canonical_date(day) for day in days]


def format_day_label(value: date | datetime) -> str:
    """Short column label, e.g. ``Mon 12/25``. Day names are fixed English, not locale-driven."""

    day = as_day(value)
    return f"{DAY_NAMES[day.weekday()]} {day.month}/{day.day}"
