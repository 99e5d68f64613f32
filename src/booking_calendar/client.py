"""HTTP client for the Supabase (PostgREST) tables behind the calendar."""

from __future__ import annotations

import logging
from typing import Any, Iterable, Sequence, TypeVar

import httpx
from pydantic import SecretStr, ValidationError

from .config import Settings
from .errors import (
    StaleBookingError,
    StoreAuthError,
    StoreConflictError,
    StoreConnectionError,
    StoreError,
    StoreNotFoundError,
    StoreRequestError,
)
from .schemas import (
    ActionItem,
    BillingTag,
    Booking,
    BookingDraft,
    BookingHistoryEntry,
    CourseType,
    Line,
    Student,
    StudentDraft,
    StoreModel,
)

logger = logging.getLogger(__name__)

ModelT = TypeVar("ModelT", bound=StoreModel)

BOOKING_COLUMNS = (
    "id,line_id,student_id,course_type,start_date,end_date,"
    "billing_tag,note,updated_at,students(full_name,email)"
)
LINE_COLUMNS = "id,name"
STUDENT_COLUMNS = "id,full_name,email,phone,notes"
ACTION_COLUMNS = "id,booking_id,title,due_date,completed"


def _secret_value(value: SecretStr | str | None) -> str:
    if value is None:
        return ""
    if isinstance(value, SecretStr):
        return value.get_secret_value()
    return str(value)


def _in_filter(values: Iterable[str]) -> str:
    return "in.(" + ",".join(values) + ")"


def _parse_rows(model: type[ModelT], rows: Any, action: str) -> list[ModelT]:
    """Parse store rows, skipping (and logging) any row that fails validation."""
    parsed: list[ModelT] = []
    skipped = 0
    for row in rows or []:
        try:
            parsed.append(model.model_validate(row))
        except ValidationError as exc:
            skipped += 1
            if skipped <= 5:
                logger.warning(
                    "store_row_invalid action=%s id=%s errors=%s",
                    action,
                    row.get("id") if isinstance(row, dict) else None,
                    exc.errors(include_url=False),
                )
    if skipped:
        logger.warning("store_rows_skipped action=%s count=%s", action, skipped)
    return parsed


def _content_range_total(response: httpx.Response) -> int:
    # PostgREST reports counts as "0-9/42" or "*/0"
    content_range = response.headers.get("content-range", "")
    _, _, total = content_range.partition("/")
    try:
        return int(total)
    except ValueError:
        return 0


class SupabaseClient:
    """Thin async client over the PostgREST endpoints used by the calendar."""

    def __init__(
        self,
        settings: Settings,
        http: httpx.AsyncClient | None = None,
    ) -> None:
        self.settings = settings
        self.http = http or httpx.AsyncClient(
            base_url=settings.rest_url,
            timeout=httpx.Timeout(settings.request_timeout, connect=10.0),
        )

    async def __aenter__(self) -> "SupabaseClient":
        return self

    async def __aexit__(self, *exc_info: Any) -> None:
        await self.aclose()

    async def aclose(self) -> None:
        await self.http.aclose()

    def _headers(self) -> dict[str, str]:
        key = _secret_value(self.settings.supabase_key).strip()
        headers = {"Accept": "application/json"}
        if key:
            headers["apikey"] = key
            headers["Authorization"] = f"Bearer {key}"
        return headers

    async def request(
        self,
        method: str,
        path: str,
        *,
        params: dict[str, Any] | None = None,
        json: Any = None,
        headers: dict[str, str] | None = None,
    ) -> httpx.Response:
        request_headers = self._headers()
        if headers:
            request_headers.update(headers)
        try:
            response = await self.http.request(
                method,
                path,
                params=params,
                json=json,
                headers=request_headers,
            )
        except httpx.TimeoutException as exc:
            raise StoreConnectionError(f"store_timeout: Request to {path} timed out") from exc
        except httpx.HTTPError as exc:
            raise StoreConnectionError(f"store_connection_failed: {exc}") from exc

        if response.status_code in {401, 403}:
            raise StoreAuthError("store_auth_failed", details={"path": path})
        if response.status_code == 404:
            raise StoreNotFoundError("store_not_found", details={"path": path})
        if response.status_code == 409:
            raise StoreConflictError(
                "store_conflict", details={"path": path, "body": _error_body(response)}
            )
        if response.status_code >= 400:
            raise StoreRequestError(
                f"store_error_{response.status_code}",
                details={"path": path, "body": _error_body(response)},
            )
        return response

    async def call(
        self,
        method: str,
        path: str,
        *,
        params: dict[str, Any] | None = None,
        json: Any = None,
        headers: dict[str, str] | None = None,
    ) -> Any:
        response = await self.request(method, path, params=params, json=json, headers=headers)
        if not response.content:
            return None
        try:
            return response.json()
        except ValueError:
            return {"status_code": response.status_code, "text": response.text}

    # Reads

    async def fetch_bookings(self, limit: int | None = None) -> list[Booking]:
        rows = await self.call(
            "GET",
            "/bookings",
            params={
                "select": BOOKING_COLUMNS,
                "order": "start_date.asc",
                "limit": limit or self.settings.bookings_limit,
            },
        )
        return _parse_rows(Booking, rows, "fetch_bookings")

    async def fetch_bookings_in_range(
        self, start_date: str, end_date: str, limit: int | None = None
    ) -> list[Booking]:
        """Bookings whose closed range overlaps ``[start_date, end_date]``."""
        rows = await self.call(
            "GET",
            "/bookings",
            params={
                "select": BOOKING_COLUMNS,
                "start_date": f"lte.{end_date}",
                "end_date": f"gte.{start_date}",
                "order": "start_date.asc",
                "limit": limit or self.settings.range_bookings_limit,
            },
        )
        return _parse_rows(Booking, rows, "fetch_bookings_in_range")

    async def fetch_lines(self) -> list[Line]:
        rows = await self.call(
            "GET", "/lines", params={"select": LINE_COLUMNS, "order": "name.asc"}
        )
        return _parse_rows(Line, rows, "fetch_lines")

    async def fetch_course_types(self) -> list[CourseType]:
        rows = await self.call(
            "GET",
            "/course_types",
            params={"select": "id,name,description,weekly_capacity", "order": "name.asc"},
        )
        return _parse_rows(CourseType, rows, "fetch_course_types")

    async def fetch_billing_tags(self) -> list[BillingTag]:
        rows = await self.call(
            "GET",
            "/billing_tags",
            params={"select": "id,name,description", "order": "name.asc"},
        )
        return _parse_rows(BillingTag, rows, "fetch_billing_tags")

    async def fetch_students(self) -> list[Student]:
        rows = await self.call(
            "GET",
            "/students",
            params={"select": STUDENT_COLUMNS, "order": "full_name.asc"},
        )
        return _parse_rows(Student, rows, "fetch_students")

    async def fetch_booking_history(self, booking_id: str) -> list[BookingHistoryEntry]:
        rows = await self.call(
            "GET",
            "/booking_history",
            params={
                "select": "id,booking_id,created_at,description",
                "booking_id": f"eq.{booking_id}",
                "order": "created_at.desc",
            },
        )
        return _parse_rows(BookingHistoryEntry, rows, "fetch_booking_history")

    async def fetch_actions(self, booking_id: str) -> list[ActionItem]:
        rows = await self.call(
            "GET",
            "/actions",
            params={
                "select": ACTION_COLUMNS,
                "booking_id": f"eq.{booking_id}",
                "order": "due_date.asc.nullslast",
            },
        )
        return _parse_rows(ActionItem, rows, "fetch_actions")

    async def count_overlapping_bookings(
        self,
        line_id: str,
        start_date: str,
        end_date: str,
        exclude_booking_id: str | None = None,
    ) -> int:
        params: dict[str, Any] = {
            "select": "id",
            "line_id": f"eq.{line_id}",
            "start_date": f"lte.{end_date}",
            "end_date": f"gte.{start_date}",
        }
        if exclude_booking_id:
            params["id"] = f"neq.{exclude_booking_id}"
        response = await self.request(
            "HEAD", "/bookings", params=params, headers={"Prefer": "count=exact"}
        )
        return _content_range_total(response)

    # Writes

    async def create_booking(self, draft: BookingDraft) -> Booking:
        rows = await self.call(
            "POST",
            "/bookings",
            params={"select": BOOKING_COLUMNS},
            json=draft.to_payload(),
            headers={"Prefer": "return=representation"},
        )
        created = _parse_rows(Booking, rows, "create_booking")
        if not created:
            raise StoreRequestError("store_empty_insert_response")
        logger.info("booking_created booking_id=%s line_id=%s", created[0].id, created[0].line_id)
        return created[0]

    async def update_booking(
        self,
        booking_id: str,
        draft: BookingDraft,
        expected_updated_at: str | None = None,
    ) -> Booking:
        """
        Update a booking.

        With ``expected_updated_at`` the update only applies if the stored row
        still carries that timestamp; otherwise ``StaleBookingError`` is raised.
        """
        params: dict[str, Any] = {"id": f"eq.{booking_id}", "select": BOOKING_COLUMNS}
        if expected_updated_at:
            params["updated_at"] = f"eq.{expected_updated_at}"
        rows = await self.call(
            "PATCH",
            "/bookings",
            params=params,
            json=draft.to_payload(),
            headers={"Prefer": "return=representation"},
        )
        updated = _parse_rows(Booking, rows, "update_booking")
        if not updated:
            if expected_updated_at:
                raise StaleBookingError(
                    "This booking was modified by someone else. Please refresh and try again.",
                    details={"booking_id": booking_id},
                )
            raise StoreNotFoundError("booking_not_found", details={"booking_id": booking_id})
        logger.info("booking_updated booking_id=%s", booking_id)
        return updated[0]

    async def delete_booking(self, booking_id: str) -> None:
        """Delete a booking with its actions and history."""
        await self.call("DELETE", "/actions", params={"booking_id": f"eq.{booking_id}"})
        try:
            await self.call(
                "DELETE", "/booking_history", params={"booking_id": f"eq.{booking_id}"}
            )
        except StoreError as exc:
            logger.warning("booking_history_delete_failed booking_id=%s", booking_id, exc_info=exc)
        await self.call("DELETE", "/bookings", params={"id": f"eq.{booking_id}"})
        logger.info("booking_deleted booking_id=%s", booking_id)

    async def delete_line(self, line_id: str) -> int:
        """Delete a line and every booking on it. Returns the number of bookings removed."""
        rows = await self.call(
            "GET", "/bookings", params={"select": "id", "line_id": f"eq.{line_id}"}
        )
        booking_ids = [row["id"] for row in rows or [] if isinstance(row, dict) and "id" in row]
        if booking_ids:
            await self._delete_booking_dependents(booking_ids)
            await self.call("DELETE", "/bookings", params={"id": _in_filter(booking_ids)})
        await self.call("DELETE", "/lines", params={"id": f"eq.{line_id}"})
        logger.info("line_deleted line_id=%s bookings=%s", line_id, len(booking_ids))
        return len(booking_ids)

    async def _delete_booking_dependents(self, booking_ids: Sequence[str]) -> None:
        await self.call("DELETE", "/actions", params={"booking_id": _in_filter(booking_ids)})
        try:
            await self.call(
                "DELETE", "/booking_history", params={"booking_id": _in_filter(booking_ids)}
            )
        except StoreError as exc:
            logger.warning("booking_history_delete_failed count=%s", len(booking_ids), exc_info=exc)

    async def log_booking_history(self, booking_id: str, description: str) -> None:
        try:
            await self.call(
                "POST",
                "/booking_history",
                json={"booking_id": booking_id, "description": description},
            )
        except StoreError as exc:
            logger.warning("booking_history_write_failed booking_id=%s", booking_id, exc_info=exc)

    async def _insert_one(
        self, model: type[ModelT], path: str, columns: str, payload: dict[str, Any]
    ) -> ModelT:
        rows = await self.call(
            "POST",
            path,
            params={"select": columns},
            json=payload,
            headers={"Prefer": "return=representation"},
        )
        created = _parse_rows(model, rows, f"create{path.replace('/', '_')}")
        if not created:
            raise StoreRequestError("store_empty_insert_response", details={"path": path})
        return created[0]

    async def _update_one(
        self,
        model: type[ModelT],
        path: str,
        columns: str,
        row_id: str,
        payload: dict[str, Any],
    ) -> ModelT:
        rows = await self.call(
            "PATCH",
            path,
            params={"id": f"eq.{row_id}", "select": columns},
            json=payload,
            headers={"Prefer": "return=representation"},
        )
        updated = _parse_rows(model, rows, f"update{path.replace('/', '_')}")
        if not updated:
            raise StoreNotFoundError("store_not_found", details={"path": path, "id": row_id})
        return updated[0]

    async def create_line(self, name: str) -> Line:
        line = await self._insert_one(Line, "/lines", LINE_COLUMNS, {"name": name})
        logger.info("line_created line_id=%s", line.id)
        return line

    async def update_line(self, line_id: str, name: str) -> Line:
        line = await self._update_one(Line, "/lines", LINE_COLUMNS, line_id, {"name": name})
        logger.info("line_updated line_id=%s", line_id)
        return line

    async def create_student(self, draft: StudentDraft) -> Student:
        student = await self._insert_one(
            Student, "/students", STUDENT_COLUMNS, draft.model_dump()
        )
        logger.info("student_created student_id=%s", student.id)
        return student

    async def create_action(
        self, booking_id: str, title: str, due_date: str | None = None
    ) -> ActionItem:
        action = await self._insert_one(
            ActionItem,
            "/actions",
            ACTION_COLUMNS,
            {
                "booking_id": booking_id,
                "title": title,
                "due_date": due_date or None,
                "completed": False,
            },
        )
        logger.info("action_created action_id=%s booking_id=%s", action.id, booking_id)
        return action

    async def toggle_action(self, action_id: str, completed: bool) -> ActionItem:
        """Set an action's ``completed`` flag."""
        return await self._update_one(
            ActionItem, "/actions", ACTION_COLUMNS, action_id, {"completed": completed}
        )

    async def delete_action(self, action_id: str) -> None:
        await self.call("DELETE", "/actions", params={"id": f"eq.{action_id}"})
        logger.info("action_deleted action_id=%s", action_id)


def _error_body(response: httpx.Response) -> Any:
    try:
        return response.json()
    except ValueError:
        return response.text
