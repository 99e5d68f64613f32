from __future__ import annotations

import pytest
from booking_calendar.schemas import ActionItem, Booking, BookingDraft, CourseType
from pydantic import ValidationError


def _row(**overrides):
    row = {
        "id": "b1",
        "line_id": "line-1",
        "student_id": "student-1",
        "course_type": "CFI",
        "start_date": "2024-03-10T00:00:00+00:00",
        "end_date": "2024-03-12",
        "billing_tag": None,
        "note": None,
        "updated_at": "2024-03-01T10:00:00+00:00",
    }
    row.update(overrides)
    return row


def test_booking_normalizes_dates_on_the_way_in():
    booking = Booking.model_validate(_row())
    assert booking.start_date == "2024-03-10"
    assert booking.end_date == "2024-03-12"
    assert booking.has_valid_range


def test_booking_with_missing_or_bad_dates_is_kept_but_invalid():
    assert not Booking.model_validate(_row(start_date=None)).has_valid_range
    assert not Booking.model_validate(_row(end_date="")).has_valid_range
    assert not Booking.model_validate(_row(end_date="tomorrow")).has_valid_range
    assert not Booking.model_validate(_row(start_date="2024-03-13")).has_valid_range


@pytest.mark.parametrize(
    "students,expected",
    [
        ({"full_name": "Ada", "email": "ada@example.com"}, "Ada"),
        ([{"full_name": "Grace", "email": None}], "Grace"),
        ([], None),
        (None, None),
    ],
)
def test_embedded_student_is_flattened(students, expected):
    booking = Booking.model_validate(_row(students=students))
    assert booking.student_name == expected


def test_booking_is_immutable():
    booking = Booking.model_validate(_row())
    with pytest.raises(ValidationError):
        booking.course_type = "CFII"


def test_course_label_falls_back_to_course():
    assert Booking.model_validate(_row(course_type=None)).course_label == "Course"
    assert Booking.model_validate(_row(course_type="CFII")).course_label == "CFII"


def test_draft_defaults_and_blanks():
    draft = BookingDraft(
        line_id="line-1",
        student_id="student-1",
        course_type="",
        start_date="2024-03-10",
        end_date="2024-03-10",
        billing_tag="",
        note="",
    )
    assert draft.course_type == "Course"
    assert draft.billing_tag is None
    assert draft.note is None
    assert draft.to_payload()["start_date"] == "2024-03-10"


def test_draft_rejects_inverted_range():
    with pytest.raises(ValidationError, match="Start date must be before or equal to end date"):
        BookingDraft(
            line_id="line-1",
            student_id="student-1",
            start_date="2024-03-12",
            end_date="2024-03-10",
        )


def test_draft_requires_dates():
    with pytest.raises(ValidationError):
        BookingDraft(line_id="line-1", student_id="student-1", start_date="", end_date="2024-03-10")


def test_course_type_capacity_must_not_be_negative():
    with pytest.raises(ValidationError):
        CourseType(id="ct-1", name="CFI", weekly_capacity=-1)


def test_action_due_date_normalized():
    action = ActionItem.model_validate(
        {"id": "a1", "booking_id": "b1", "title": "Sign logbook", "due_date": "2024-03-11T00:00:00Z"}
    )
    assert action.due_date == "2024-03-11"
    assert action.completed is False
