"""
Data model for the booking calendar.

Rows fetched from the store are parsed into these models once. Date fields go
through ``dates.normalize`` on the way in, so everything downstream works with
canonical ``YYYY-MM-DD`` strings (or ``None`` for a missing/garbled date) and
never re-validates.
"""

from typing import Any, Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator, model_validator

from .constants import DEFAULT_COURSE_LABEL, MAX_NAME_LENGTH, MAX_NOTE_LENGTH
from .dates import normalize


class StoreModel(BaseModel):
    """Base for rows read from the store: immutable, tolerant of extra columns."""

    model_config = ConfigDict(extra="ignore", frozen=True, populate_by_name=True)


class Line(StoreModel):
    """A bookable lane (instructor or training line)."""

    id: str
    name: str


class CourseType(StoreModel):
    id: str
    name: str
    description: Optional[str] = None
    weekly_capacity: Optional[int] = Field(default=None, ge=0)


class BillingTag(StoreModel):
    id: str
    name: str
    description: Optional[str] = None


class Student(StoreModel):
    id: str
    full_name: str
    email: Optional[str] = None
    phone: Optional[str] = None
    notes: Optional[str] = None


class StudentDraft(BaseModel):
    """Payload for creating a student from the booking drawer."""

    model_config = ConfigDict(extra="forbid")

    full_name: str = Field(min_length=1, max_length=MAX_NAME_LENGTH)
    email: Optional[str] = Field(default=None, max_length=MAX_NAME_LENGTH)
    phone: Optional[str] = Field(default=None, max_length=MAX_NAME_LENGTH)
    notes: Optional[str] = Field(default=None, max_length=MAX_NOTE_LENGTH)

    @field_validator("full_name", mode="before")
    @classmethod
    def strip_name(cls, v: Any) -> Any:
        return v.strip() if isinstance(v, str) else v

    @field_validator("email", "phone", "notes", mode="before")
    @classmethod
    def blank_to_none(cls, v: Any) -> Optional[str]:
        return v or None


class Booking(StoreModel):
    """
    A student booked onto a line for a closed range of calendar days.

    ``start_date``/``end_date`` are ``None`` when the store value was missing or
    malformed; such bookings report ``has_valid_range`` False and are left out
    of every grid and capacity computation.
    """

    id: str
    line_id: str
    student_id: str
    course_type: str = ""
    start_date: Optional[str] = None
    end_date: Optional[str] = None
    billing_tag: Optional[str] = None
    note: Optional[str] = None
    updated_at: Optional[str] = None
    student_name: Optional[str] = None

    @model_validator(mode="before")
    @classmethod
    def flatten_student(cls, data: Any) -> Any:
        """Lift the embedded ``students`` relation into ``student_name``."""
        if not isinstance(data, dict) or "students" not in data:
            return data
        data = dict(data)
        embedded = data.pop("students")
        if isinstance(embedded, list):
            embedded = embedded[0] if embedded else None
        if isinstance(embedded, dict) and data.get("student_name") is None:
            data["student_name"] = embedded.get("full_name")
        return data

    @field_validator("start_date", "end_date", mode="before")
    @classmethod
    def normalize_date(cls, v: Any) -> Optional[str]:
        return normalize(v)

    @field_validator("course_type", mode="before")
    @classmethod
    def coerce_course_type(cls, v: Any) -> str:
        return v or ""

    @property
    def has_valid_range(self) -> bool:
        return (
            self.start_date is not None
            and self.end_date is not None
            and self.start_date <= self.end_date
        )

    @property
    def course_label(self) -> str:
        """Course type used for grouping; blank types fall back to ``Course``."""
        return self.course_type or DEFAULT_COURSE_LABEL


class BookingDraft(BaseModel):
    """Payload for creating or updating a booking."""

    model_config = ConfigDict(extra="forbid", validate_assignment=True)

    line_id: str = Field(min_length=1)
    student_id: str = Field(min_length=1)
    course_type: str = Field(default=DEFAULT_COURSE_LABEL, max_length=MAX_NAME_LENGTH)
    start_date: str
    end_date: str
    billing_tag: Optional[str] = Field(default=None, max_length=MAX_NAME_LENGTH)
    note: Optional[str] = Field(default=None, max_length=MAX_NOTE_LENGTH)

    @field_validator("course_type", mode="before")
    @classmethod
    def default_course_type(cls, v: Any) -> str:
        return v or DEFAULT_COURSE_LABEL

    @field_validator("billing_tag", "note", mode="before")
    @classmethod
    def blank_to_none(cls, v: Any) -> Optional[str]:
        return v or None

    @field_validator("start_date", "end_date", mode="before")
    @classmethod
    def require_date(cls, v: Any) -> str:
        normalized = normalize(v)
        if normalized is None:
            raise ValueError("Date is required in YYYY-MM-DD format")
        return normalized

    @model_validator(mode="after")
    def validate_range(self) -> "BookingDraft":
        if self.start_date > self.end_date:
            raise ValueError("Start date must be before or equal to end date")
        return self

    def to_payload(self) -> dict[str, Any]:
        return self.model_dump()


class BookingHistoryEntry(StoreModel):
    id: str
    booking_id: str
    created_at: str
    description: str


class ActionItem(StoreModel):
    """A follow-up task attached to a booking."""

    id: str
    booking_id: str
    title: str
    due_date: Optional[str] = None
    completed: bool = False

    @field_validator("due_date", mode="before")
    @classmethod
    def normalize_due_date(cls, v: Any) -> Optional[str]:
        return normalize(v)
