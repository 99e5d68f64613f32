from __future__ import annotations

from typing import Any

import pytest
from booking_calendar.schemas import Booking, CourseType, Line


def make_booking(
    booking_id: str,
    start_date: Any,
    end_date: Any,
    *,
    line_id: str = "line-1",
    course_type: str = "CFI",
    billing_tag: str | None = None,
    student_id: str = "student-1",
    **extra: Any,
) -> Booking:
    return Booking.model_validate(
        {
            "id": booking_id,
            "line_id": line_id,
            "student_id": student_id,
            "course_type": course_type,
            "start_date": start_date,
            "end_date": end_date,
            "billing_tag": billing_tag,
            **extra,
        }
    )


@pytest.fixture
def lines() -> list[Line]:
    return [Line(id="line-1", name="Alpha"), Line(id="line-2", name="Bravo")]


@pytest.fixture
def course_types() -> list[CourseType]:
    return [
        CourseType(id="ct-2", name="CFII", description=None, weekly_capacity=1),
        CourseType(id="ct-1", name="CFI", description="Initial", weekly_capacity=2),
        CourseType(id="ct-3", name="Instrument", description=None, weekly_capacity=None),
        CourseType(id="ct-4", name="Commercial", description=None, weekly_capacity=0),
    ]


@pytest.fixture(name="make_booking")
def make_booking_fixture():
    return make_booking
