"""Work record models matching the persisted JSON layout."""

from __future__ import annotations

from datetime import datetime, timezone
from enum import Enum

from pydantic import BaseModel, ConfigDict, Field, computed_field, field_serializer, field_validator

from .timeparse import format_timestamp


class SessionState(str, Enum):
    """Lifecycle position of a daily record."""

    NOT_STARTED = "not_started"
    STARTED = "started"
    ON_BREAK = "on_break"
    ENDED = "ended"


def as_utc_instant(value: datetime | None) -> datetime | None:
    if value is None:
        return None
    if value.tzinfo is None:
        value = value.replace(tzinfo=timezone.utc)
    value = value.astimezone(timezone.utc)
    # Persisted timestamps carry milliseconds; keep the mirror identical to disk.
    return value.replace(microsecond=value.microsecond // 1000 * 1000)


class BreakInterval(BaseModel):
    """A pause inside a work session; ``end`` is ``None`` while ongoing."""

    model_config = ConfigDict(extra="ignore")

    start: datetime
    end: datetime | None = None

    @field_validator("start", "end")
    @classmethod
    def _normalize_timestamp(cls, value: datetime | None) -> datetime | None:
        return as_utc_instant(value)

    @field_serializer("start", "end")
    def _serialize_timestamp(self, value: datetime | None) -> str | None:
        return format_timestamp(value) if value is not None else None

    @property
    def is_open(self) -> bool:
        return self.end is None


class WorkRecord(BaseModel):
    """One user's work day.

    ``state`` is computed from ``start``, ``breaks`` and ``end`` every time it is
    read, so it cannot drift from the timestamps. A ``state`` key present in a
    loaded document is ignored.
    """

    model_config = ConfigDict(extra="ignore", populate_by_name=True)

    start: datetime | None = None
    breaks: list[BreakInterval] = Field(default_factory=list)
    end: datetime | None = None
    summary_message_id: str | None = Field(default=None, alias="summaryMessageId")

    @field_validator("start", "end")
    @classmethod
    def _normalize_timestamp(cls, value: datetime | None) -> datetime | None:
        return as_utc_instant(value)

    @field_validator("summary_message_id", mode="before")
    @classmethod
    def _stringify_message_id(cls, value):
        if value is None:
            return None
        return str(value)

    @field_serializer("start", "end")
    def _serialize_timestamp(self, value: datetime | None) -> str | None:
        return format_timestamp(value) if value is not None else None

    @computed_field  # type: ignore[prop-decorator]
    @property
    def state(self) -> SessionState:
        if self.end is not None:
            return SessionState.ENDED
        if self.start is None:
            return SessionState.NOT_STARTED
        if self.breaks and self.breaks[-1].is_open:
            return SessionState.ON_BREAK
        return SessionState.STARTED

    @property
    def open_break(self) -> BreakInterval | None:
        if self.breaks and self.breaks[-1].is_open:
            return self.breaks[-1]
        return None

    def to_document(self) -> dict:
        """Return the JSON-ready mapping used in the data file."""

        return self.model_dump(mode="json", by_alias=True)

    @classmethod
    def from_document(cls, document: dict) -> "WorkRecord":
        return cls.model_validate(document)


__all__ = ["BreakInterval", "SessionState", "WorkRecord", "as_utc_instant"]
