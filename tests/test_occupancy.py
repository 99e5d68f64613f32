from __future__ import annotations

from booking_calendar.occupancy import (
    OccupancyPolicy,
    count_bookings_by_day,
    count_course_types_by_day,
    resolve_cell_click,
    resolve_occupancy,
)
from booking_calendar.schemas import Line

MARCH_DAYS = ["2024-03-09", "2024-03-10", "2024-03-11", "2024-03-12", "2024-03-13"]


def test_lookup_inside_and_outside_booking_range(lines, make_booking):
    booking = make_booking("b1", "2024-03-10", "2024-03-12", line_id="line-1")
    table = resolve_occupancy(lines, MARCH_DAYS, [booking])

    assert table.get("line-1", "2024-03-11") == booking
    assert table.get("line-1", "2024-03-10") == booking
    assert table.get("line-1", "2024-03-12") == booking
    assert table.get("line-1", "2024-03-13") is None
    assert table.get("line-1", "2024-03-09") is None
    assert table.get("line-2", "2024-03-11") is None


def test_every_line_and_day_has_a_cell(lines):
    table = resolve_occupancy(lines, MARCH_DAYS, [])
    assert set(table.rows) == {"line-1", "line-2"}
    assert all(list(row) == MARCH_DAYS for row in table.rows.values())
    assert table.as_dict()["line-2"] == {day: None for day in MARCH_DAYS}


def test_first_match_wins_and_is_reported(lines, make_booking):
    first = make_booking("first", "2024-03-10", "2024-03-11", line_id="line-1")
    second = make_booking("second", "2024-03-11", "2024-03-13", line_id="line-1")
    table = resolve_occupancy(lines, MARCH_DAYS, [first, second])

    assert table.policy is OccupancyPolicy.FIRST_MATCH
    assert table.get("line-1", "2024-03-11") == first
    assert table.get("line-1", "2024-03-12") == second
    assert table.double_booked_count == 1
    assert table.double_booked_cells == [("line-1", "2024-03-11")]
    assert [b.id for b in table.candidates("line-1", "2024-03-11")] == ["first", "second"]
    assert [b.id for b in table.candidates("line-1", "2024-03-12")] == ["second"]
    assert table.candidates("line-2", "2024-03-12") == []


def test_resolution_is_deterministic(lines, make_booking):
    bookings = [
        make_booking("a", "2024-03-09", "2024-03-10", line_id="line-1"),
        make_booking("b", "2024-03-12", "2024-03-20", line_id="line-2"),
    ]
    assert resolve_occupancy(lines, MARCH_DAYS, bookings).as_dict() == resolve_occupancy(
        lines, MARCH_DAYS, bookings
    ).as_dict()


def test_bookings_with_bad_dates_are_left_out(lines, make_booking):
    bad = make_booking("bad", "", "2024-03-12", line_id="line-1")
    good = make_booking("good", "2024-03-12T00:00:00+00:00", "2024-03-12", line_id="line-1")
    table = resolve_occupancy(lines, MARCH_DAYS, [bad, good])

    assert table.get("line-1", "2024-03-12") == good
    assert table.get("line-1", "2024-03-11") is None


def test_bookings_for_hidden_lines_are_ignored(make_booking):
    booking = make_booking("b1", "2024-03-10", "2024-03-12", line_id="line-9")
    table = resolve_occupancy([Line(id="line-1", name="Alpha")], MARCH_DAYS, [booking])
    assert table.row("line-9") == {}
    assert table.get("line-9", "2024-03-11") is None


def test_month_counts_per_course_type(make_booking):
    bookings = [
        make_booking("a", "2024-03-10", "2024-03-11", course_type="CFI"),
        make_booking("b", "2024-03-11", "2024-03-11", course_type="CFI", line_id="line-2"),
        make_booking("c", "2024-03-11", "2024-03-12", course_type="", line_id="line-3"),
        make_booking("d", None, "2024-03-11", course_type="CFI"),
    ]
    counts = count_course_types_by_day(MARCH_DAYS, bookings)

    assert counts["2024-03-09"] == {}
    assert counts["2024-03-10"] == {"CFI": 1}
    assert counts["2024-03-11"] == {"CFI": 2, "Course": 1}
    assert counts["2024-03-12"] == {"Course": 1}
    assert count_bookings_by_day(MARCH_DAYS, bookings)["2024-03-11"] == 3


def test_cell_click_on_empty_cell_opens_create(lines):
    table = resolve_occupancy(lines, MARCH_DAYS, [])
    action = resolve_cell_click(table, "line-2", "2024-03-11")

    assert action.kind == "create"
    assert action.booking is None
    assert action.seed["line_id"] == "line-2"
    assert action.seed["start_date"] == "2024-03-11"
    assert action.seed["end_date"] == "2024-03-11"


def test_cell_click_on_occupied_cell_opens_edit(lines, make_booking):
    booking = make_booking("b1", "2024-03-10", "2024-03-12", billing_tag=None)
    table = resolve_occupancy(lines, MARCH_DAYS, [booking])
    action = resolve_cell_click(table, "line-1", "2024-03-12")

    assert action.kind == "edit"
    assert action.booking == booking
    assert action.seed["id"] == "b1"
    assert action.seed["start_date"] == "2024-03-10"
    assert action.seed["billing_tag"] == ""
