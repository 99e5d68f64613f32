"""
Calendar service.

Ties the store client to the pure calendar core: fetches lines, bookings and
course types into a snapshot, derives the grid for the current view state and
runs the mutation flows (validation, conflict check, history, re-fetch).

Overlapping bookings on a line are reported, not blocked, unless the caller
asks for rejection; the grid surfaces them through the double-booking
diagnostic.
"""

from __future__ import annotations

import asyncio
from dataclasses import dataclass, field
import logging
from typing import Any, Optional, TypeVar

from pydantic import BaseModel, ValidationError

from .client import SupabaseClient
from .conflicts import ConflictChecker, bookings_on_line, conflict_error
from .dates import normalize
from .errors import BookingValidationError, CalendarError, CalendarValidationError
from .history import (
    ACTION_DELETED,
    describe_action_added,
    describe_action_toggled,
    describe_changes,
    describe_creation,
)
from .schemas import ActionItem, Booking, BookingDraft, CourseType, Line, Student, StudentDraft
from .view_state import CalendarView, CalendarViewState

logger = logging.getLogger(__name__)

ModelT = TypeVar("ModelT", bound=BaseModel)


@dataclass(frozen=True)
class CalendarSnapshot:
    """Everything fetched from the store for one render cycle."""

    lines: list[Line] = field(default_factory=list)
    bookings: list[Booking] = field(default_factory=list)
    course_types: list[CourseType] = field(default_factory=list)

    def booking(self, booking_id: str) -> Optional[Booking]:
        return next((b for b in self.bookings if b.id == booking_id), None)


def _validate(
    model: type[ModelT], data: dict[str, Any], error_cls: type[CalendarError]
) -> ModelT:
    try:
        return model.model_validate(data)
    except ValidationError as exc:
        messages = [
            f"{'.'.join(str(p) for p in err['loc']) or model.__name__}: {err['msg']}"
            for err in exc.errors(include_url=False)
        ]
        raise error_cls(
            "Validation failed: " + ", ".join(messages),
            details={"issues": messages},
        ) from exc


def build_draft(data: dict[str, Any]) -> BookingDraft:
    """Validate raw form values into a draft, raising ``BookingValidationError``."""
    return _validate(BookingDraft, data, BookingValidationError)


def build_student_draft(data: dict[str, Any]) -> StudentDraft:
    return _validate(StudentDraft, data, CalendarValidationError)


def _required_text(value: str, message: str, error_cls: type[CalendarError]) -> str:
    text = (value or "").strip()
    if not text:
        raise error_cls(message)
    return text


class CalendarService:
    """Fetch/derive/mutate loop for one calendar session."""

    def __init__(
        self,
        client: SupabaseClient,
        state: Optional[CalendarViewState] = None,
        conflict_checker: Optional[ConflictChecker] = None,
    ) -> None:
        self.client = client
        self.state = state or CalendarViewState()
        self.conflict_checker = conflict_checker or ConflictChecker()
        self.snapshot = CalendarSnapshot()
        # Overlaps found by the most recent save_booking call
        self.last_conflicts: list[dict[str, Any]] = []

    async def load(self) -> CalendarSnapshot:
        lines, bookings, course_types = await asyncio.gather(
            self.client.fetch_lines(),
            self.client.fetch_bookings(),
            self.client.fetch_course_types(),
        )
        self.snapshot = CalendarSnapshot(lines=lines, bookings=bookings, course_types=course_types)
        logger.info(
            "calendar_loaded lines=%s bookings=%s course_types=%s",
            len(lines),
            len(bookings),
            len(course_types),
        )
        return self.snapshot

    def view(self) -> CalendarView:
        return self.state.derive(
            self.snapshot.lines,
            self.snapshot.bookings,
            self.snapshot.course_types,
        )

    # Bookings

    async def save_booking(
        self,
        draft: BookingDraft | dict[str, Any],
        booking_id: Optional[str] = None,
        *,
        expected_updated_at: Optional[str] = None,
        student_name: Optional[str] = None,
        new_student: StudentDraft | dict[str, Any] | None = None,
        reject_overlap: bool = False,
    ) -> Booking:
        """
        Create (no ``booking_id``) or update a booking, then reload.

        With ``new_student`` the student is created first and the booking is
        saved against it. Overlaps with other bookings on the line are logged
        and kept in ``last_conflicts``; they only abort the save when
        ``reject_overlap`` is set.

        Raises:
            BookingValidationError: draft is incomplete or the range is inverted
            BookingConflictError: ``reject_overlap`` and the range overlaps another booking
            StaleBookingError: the booking changed since ``expected_updated_at``
        """
        self.last_conflicts = []

        if new_student is not None:
            student = await self.create_student(new_student)
            student_name = student_name or student.full_name
            if isinstance(draft, BookingDraft):
                draft = draft.model_copy(update={"student_id": student.id})
            else:
                draft = {**draft, "student_id": student.id}

        if not isinstance(draft, BookingDraft):
            draft = build_draft(draft)

        conflicts = self.conflict_checker.check_booking_conflicts(
            draft, self.snapshot.bookings, exclude_booking_id=booking_id
        )
        if conflicts and reject_overlap:
            raise conflict_error(draft, conflicts)

        if booking_id is None:
            saved = await self.client.create_booking(draft)
            await self.client.log_booking_history(
                saved.id, describe_creation(draft, student_name or saved.student_name)
            )
        else:
            before = self.snapshot.booking(booking_id)
            saved = await self.client.update_booking(
                booking_id, draft, expected_updated_at=expected_updated_at
            )
            if before is not None:
                for description in describe_changes(before, draft):
                    await self.client.log_booking_history(booking_id, description)

        if conflicts:
            logger.warning(
                "booking_saved_with_overlap booking_id=%s line_id=%s overlapping=%s",
                saved.id,
                draft.line_id,
                [c["booking_id"] for c in conflicts],
            )
        self.last_conflicts = conflicts

        await self.load()
        return saved

    async def delete_booking(self, booking_id: str) -> None:
        await self.client.delete_booking(booking_id)
        await self.load()

    # Lines

    async def create_line(self, name: str) -> Line:
        name = _required_text(name, "Line name cannot be empty", CalendarValidationError)
        line = await self.client.create_line(name)
        await self.load()
        return line

    async def rename_line(self, line_id: str, name: str) -> Line:
        name = _required_text(name, "Line name cannot be empty", CalendarValidationError)
        line = await self.client.update_line(line_id, name)
        await self.load()
        return line

    async def delete_line(self, line_id: str) -> int:
        cascaded = len(bookings_on_line(self.snapshot.bookings, line_id))
        logger.info("line_delete_requested line_id=%s bookings=%s", line_id, cascaded)
        removed = await self.client.delete_line(line_id)
        await self.load()
        return removed

    # Students

    async def create_student(self, draft: StudentDraft | dict[str, Any]) -> Student:
        if not isinstance(draft, StudentDraft):
            draft = build_student_draft(draft)
        return await self.client.create_student(draft)

    # Actions

    async def add_action(
        self, booking_id: str, title: str, due_date: Optional[str] = None
    ) -> ActionItem:
        title = _required_text(title, "Action title is required", BookingValidationError)
        due = normalize(due_date)
        if due_date and due is None:
            raise BookingValidationError("Due date must be in YYYY-MM-DD format")
        action = await self.client.create_action(booking_id, title, due)
        await self.client.log_booking_history(booking_id, describe_action_added(title, due))
        return action

    async def set_action_completed(
        self, booking_id: str, action_id: str, title: str, completed: bool
    ) -> ActionItem:
        action = await self.client.toggle_action(action_id, completed)
        await self.client.log_booking_history(
            booking_id, describe_action_toggled(title, completed)
        )
        return action

    async def delete_action(self, booking_id: str, action_id: str) -> None:
        await self.client.delete_action(action_id)
        await self.client.log_booking_history(booking_id, ACTION_DELETED)
