from __future__ import annotations

import logging

import pytest
from booking_calendar.conflicts import (
    ConflictChecker,
    bookings_on_line,
    find_overlapping_bookings,
)
from booking_calendar.errors import BookingConflictError
from booking_calendar.schemas import BookingDraft


@pytest.fixture
def existing(make_booking):
    return [
        make_booking("a", "2024-03-10", "2024-03-12", line_id="line-1", student_name="Ada"),
        make_booking("b", "2024-03-15", "2024-03-16", line_id="line-1"),
        make_booking("c", "2024-03-10", "2024-03-20", line_id="line-2"),
        make_booking("d", None, None, line_id="line-1"),
    ]


def _draft(start: str, end: str, line_id: str = "line-1") -> BookingDraft:
    return BookingDraft(
        line_id=line_id,
        student_id="student-2",
        course_type="CFI",
        start_date=start,
        end_date=end,
    )


def test_find_overlapping_bookings_on_same_line_only(existing):
    found = find_overlapping_bookings(existing, "line-1", "2024-03-12", "2024-03-15")
    assert [b.id for b in found] == ["a", "b"]


def test_find_overlapping_bookings_excludes_edited_booking(existing):
    found = find_overlapping_bookings(
        existing, "line-1", "2024-03-11", "2024-03-11", exclude_booking_id="a"
    )
    assert found == []


def test_gap_between_bookings_is_free(existing):
    assert find_overlapping_bookings(existing, "line-1", "2024-03-13", "2024-03-14") == []


def test_check_booking_conflicts_reports_details(existing):
    conflicts = ConflictChecker().check_booking_conflicts(
        _draft("2024-03-09", "2024-03-10"), existing
    )
    assert conflicts == [
        {
            "booking_id": "a",
            "start_date": "2024-03-10",
            "end_date": "2024-03-12",
            "course_type": "CFI",
            "student_name": "Ada",
        }
    ]


def test_ensure_no_conflicts_raises(existing):
    checker = ConflictChecker()
    with pytest.raises(BookingConflictError) as excinfo:
        checker.ensure_no_conflicts(_draft("2024-03-16", "2024-03-18"), existing)

    assert excinfo.value.conflicts[0]["booking_id"] == "b"
    assert excinfo.value.to_dict()["code"] == "BookingConflictError"
    checker.ensure_no_conflicts(_draft("2024-03-16", "2024-03-18"), existing, "b")
    assert not checker.has_conflicts(_draft("2024-03-21", "2024-03-22"), existing)


def test_bookings_on_line(existing):
    assert [b.id for b in bookings_on_line(existing, "line-1")] == ["a", "b", "d"]
    assert [b.id for b in bookings_on_line(existing, "line-1", from_day="2024-03-13")] == ["b"]
    assert bookings_on_line(existing, "line-3") == []


def test_conflicts_are_logged(existing, caplog):
    with caplog.at_level(logging.WARNING, logger="booking_calendar.conflicts"):
        ConflictChecker().check_booking_conflicts(_draft("2024-03-12", "2024-03-15"), existing)

    assert "Found 2 booking conflicts on line line-1" in caplog.text
