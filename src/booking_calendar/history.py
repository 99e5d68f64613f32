"""Human-readable booking history lines."""

from __future__ import annotations

from .schemas import Booking, BookingDraft


def describe_creation(draft: BookingDraft, student_name: str | None = None) -> str:
    return (
        f"Booking created for student {student_name or 'N/A'}: "
        f"{draft.course_type} ({draft.start_date} → {draft.end_date})"
    )


def describe_changes(before: Booking, after: BookingDraft) -> list[str]:
    """One line per field that changed between the stored booking and the edit."""
    changes: list[str] = []
    if before.course_type != after.course_type:
        changes.append(
            f'Course type changed from "{before.course_type}" to "{after.course_type}".'
        )
    if (before.billing_tag or None) != after.billing_tag:
        changes.append(
            f'Billing tag changed from "{before.billing_tag or "None"}" '
            f'to "{after.billing_tag or "None"}".'
        )
    if before.start_date != after.start_date:
        changes.append(f"Start date changed from {before.start_date} to {after.start_date}.")
    if before.end_date != after.end_date:
        changes.append(f"End date changed from {before.end_date} to {after.end_date}.")
    if (before.note or "") != (after.note or ""):
        changes.append("Notes updated.")
    return changes


ACTION_DELETED = "Action deleted"


def describe_action_added(title: str, due_date: str | None = None) -> str:
    description = f'Action added: "{title}"'
    if due_date:
        description += f" (due {due_date})"
    return description


def describe_action_toggled(title: str, completed: bool) -> str:
    return f'Action "{title}" marked {"completed" if completed else "incomplete"}'
