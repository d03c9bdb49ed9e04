"""Route inbound commands and button presses to the session core."""

from __future__ import annotations

import logging
from dataclasses import dataclass
from datetime import datetime, timezone
from typing import Any, Awaitable, Callable, Iterable

from .config import WorklogSettings
from .errors import (
    ErrorKind,
    InvalidTransitionError,
    RecordNotFoundError,
    UnauthorizedError,
    WorklogError,
)
from .sessions import OverrideEngine, SessionEvent, SessionState, WorkRecord, apply_event, parse_date_key
from .storage import SessionStore

logger = logging.getLogger(__name__)


def _parse_observed_state(value: str | SessionState | None) -> SessionState | None:
    if value is None:
        return None
    try:
        return SessionState(value)
    except ValueError as exc:
        raise InvalidTransitionError(f"Unknown session state '{value}'") from exc


@dataclass(slots=True)
class WorkLogView:
    """Data needed to render a daily summary."""

    user_id: str
    date: str
    weekday: str
    record: WorkRecord
    break_seconds: float
    worked_seconds: float | None

    @classmethod
    def build(cls, user_id: str, date_key: str, record: WorkRecord) -> "WorkLogView":
        break_seconds = sum(
            (item.end - item.start).total_seconds() for item in record.breaks if item.end is not None
        )
        worked_seconds = None
        if record.start is not None and record.end is not None:
            worked_seconds = (record.end - record.start).total_seconds() - break_seconds
        return cls(
            user_id=user_id,
            date=date_key,
            weekday=parse_date_key(date_key).strftime("%A"),
            record=record,
            break_seconds=break_seconds,
            worked_seconds=worked_seconds,
        )

    def to_payload(self) -> dict[str, Any]:
        return {
            "user_id": self.user_id,
            "date": self.date,
            "weekday": self.weekday,
            "record": self.record.to_document(),
            "break_seconds": self.break_seconds,
            "worked_seconds": self.worked_seconds,
        }


@dataclass(slots=True)
class HandlerResult:
    """Outcome of one inbound event: a record or view, or an error kind."""

    record: WorkRecord | None = None
    view: WorkLogView | None = None
    error: ErrorKind | None = None
    message: str | None = None
    username: str | None = None

    @property
    def ok(self) -> bool:
        return self.error is None

    def to_payload(self) -> dict[str, Any]:
        payload: dict[str, Any] = {"ok": self.ok}
        if self.record is not None:
            payload["record"] = self.record.to_document()
            payload["state"] = self.record.state.value
        if self.view is not None:
            payload["view"] = self.view.to_payload()
        if self.username is not None:
            payload["username"] = self.username
        if self.error is not None:
            payload["error"] = self.error.value
            payload["message"] = self.message
        return payload


class WorklogDispatcher:
    """Resolve the record key for each event and hand it to the right component."""

    def __init__(
        self,
        store: SessionStore,
        settings: WorklogSettings,
        *,
        clock: Callable[[], datetime] | None = None,
    ) -> None:
        self._store = store
        self._settings = settings
        self._tz = settings.tzinfo
        self._clock = clock or (lambda: datetime.now(timezone.utc))
        self._overrides = OverrideEngine(store, tz=self._tz)

    @property
    def store(self) -> SessionStore:
        return self._store

    def today(self) -> str:
        """Record key for the current day in the configured timezone."""

        return self._clock().astimezone(self._tz).date().isoformat()

    async def _guard(
        self,
        operation: str,
        user_id: str,
        action: Callable[[], Awaitable[HandlerResult]],
    ) -> HandlerResult:
        try:
            return await action()
        except WorklogError as exc:
            if exc.kind is ErrorKind.STORE_UNAVAILABLE:
                logger.error(
                    "Work data store unavailable",
                    extra={"operation": operation, "user_id": user_id, "error": str(exc)},
                )
            else:
                logger.info(
                    "Rejected worklog event",
                    extra={"operation": operation, "user_id": user_id, "error": exc.kind.value},
                )
            return HandlerResult(error=exc.kind, message=str(exc))

    async def _session_event(
        self,
        operation: str,
        user_id: str,
        event: SessionEvent,
        *,
        observed_state: str | SessionState | None = None,
        username: str | None = None,
    ) -> HandlerResult:
        async def run() -> HandlerResult:
            date_key = self.today()
            now = self._clock()
            observed = _parse_observed_state(observed_state)
            if event is SessionEvent.RESUME:
                record = self._store.get(user_id, date_key) or WorkRecord()
                record = apply_event(record, event, now=now)
            else:
                record = await self._store.upsert(
                    user_id,
                    date_key,
                    lambda current: apply_event(current, event, now=now, observed_state=observed),
                )
            logger.info(
                "Applied work session event",
                extra={
                    "operation": operation,
                    "user_id": user_id,
                    "date": date_key,
                    "state": record.state.value,
                },
            )
            return HandlerResult(record=record, username=username)

        return await self._guard(operation, user_id, run)

    async def on_start_command(self, user_id: str, username: str | None = None) -> HandlerResult:
        return await self._session_event("start", user_id, SessionEvent.START, username=username)

    async def on_resume_command(self, user_id: str) -> HandlerResult:
        return await self._session_event("resume", user_id, SessionEvent.RESUME)

    async def on_begin_break_button(
        self, user_id: str, observed_state: str | SessionState | None = None
    ) -> HandlerResult:
        return await self._session_event(
            "begin_break", user_id, SessionEvent.BEGIN_BREAK, observed_state=observed_state
        )

    async def on_end_break_button(
        self, user_id: str, observed_state: str | SessionState | None = None
    ) -> HandlerResult:
        return await self._session_event(
            "end_break", user_id, SessionEvent.END_BREAK, observed_state=observed_state
        )

    async def on_end_button(
        self, user_id: str, observed_state: str | SessionState | None = None
    ) -> HandlerResult:
        return await self._session_event("end", user_id, SessionEvent.END, observed_state=observed_state)

    async def on_view_log(self, user_id: str, date: str | None = None) -> HandlerResult:
        async def run() -> HandlerResult:
            date_key = self._date_key(date) if date else self.today()
            return self._view(user_id, date_key)

        return await self._guard("view_log", user_id, run)

    async def on_summary_published(self, user_id: str, date: str, message_id: str) -> HandlerResult:
        async def run() -> HandlerResult:
            date_key = self._date_key(date)
            record = await self._store.upsert(
                user_id,
                date_key,
                lambda current: current.model_copy(update={"summary_message_id": str(message_id)}),
                create=False,
            )
            logger.debug(
                "Stored summary message reference",
                extra={"user_id": user_id, "date": date_key, "message_id": message_id},
            )
            return HandlerResult(record=record)

        return await self._guard("summary_published", user_id, run)

    async def on_admin_delete(
        self, requester_roles: Iterable[str], target_user_id: str, date: str
    ) -> HandlerResult:
        async def run() -> HandlerResult:
            self._require_admin(requester_roles)
            date_key = self._date_key(date)
            if not await self._store.delete(target_user_id, date_key):
                raise RecordNotFoundError(f"No work data for user {target_user_id} on {date_key}")
            logger.info("Deleted work record", extra={"user_id": target_user_id, "date": date_key})
            return HandlerResult()

        return await self._guard("admin_delete", target_user_id, run)

    async def on_admin_modify(
        self,
        requester_roles: Iterable[str],
        target_user_id: str,
        date: str,
        field: str,
        raw_value: str,
    ) -> HandlerResult:
        async def run() -> HandlerResult:
            self._require_admin(requester_roles)
            date_key = self._date_key(date)
            record = await self._overrides.apply(target_user_id, date_key, field, raw_value)
            return HandlerResult(record=record, view=WorkLogView.build(target_user_id, date_key, record))

        return await self._guard("admin_modify", target_user_id, run)

    async def on_admin_show(
        self, requester_roles: Iterable[str], target_user_id: str, date: str
    ) -> HandlerResult:
        async def run() -> HandlerResult:
            self._require_admin(requester_roles)
            return self._view(target_user_id, self._date_key(date))

        return await self._guard("admin_show", target_user_id, run)

    def _require_admin(self, requester_roles: Iterable[str]) -> None:
        if self._settings.admin_role not in set(requester_roles or ()):
            raise UnauthorizedError(f"Only members with the '{self._settings.admin_role}' role may do this")

    @staticmethod
    def _date_key(value: str) -> str:
        return parse_date_key(value).isoformat()

    def _view(self, user_id: str, date_key: str) -> HandlerResult:
        record = self._store.get(user_id, date_key)
        if record is None:
            raise RecordNotFoundError(f"No work log found for {date_key}")
        return HandlerResult(record=record, view=WorkLogView.build(user_id, date_key, record))


__all__ = ["HandlerResult", "WorkLogView", "WorklogDispatcher"]
