"""Error kinds raised by the worklog core."""

from __future__ import annotations

from enum import Enum


class ErrorKind(str, Enum):
    """Stable identifiers handed to the presentation layer."""

    INVALID_TIME_FORMAT = "InvalidTimeFormat"
    INVALID_TRANSITION = "InvalidTransition"
    SESSION_NOT_STARTED = "SessionNotStarted"
    SESSION_ENDED = "SessionEnded"
    RECORD_NOT_FOUND = "RecordNotFound"
    INVALID_BREAK_INDEX = "InvalidBreakIndex"
    INVALID_FIELD = "InvalidField"
    INVALID_DATE = "InvalidDate"
    UNAUTHORIZED = "Unauthorized"
    STORE_UNAVAILABLE = "StoreUnavailable"


class WorklogError(RuntimeError):
    """Base class for recoverable worklog errors."""

    kind: ErrorKind


class InvalidTimeFormatError(WorklogError):
    """Raised when a time string is neither a bare time nor a parseable timestamp."""

    kind = ErrorKind.INVALID_TIME_FORMAT


class InvalidTransitionError(WorklogError):
    """Raised when an event is not allowed from the record's current state."""

    kind = ErrorKind.INVALID_TRANSITION


class SessionNotStartedError(WorklogError):
    kind = ErrorKind.SESSION_NOT_STARTED


class SessionEndedError(WorklogError):
    kind = ErrorKind.SESSION_ENDED


class RecordNotFoundError(WorklogError):
    kind = ErrorKind.RECORD_NOT_FOUND


class InvalidBreakIndexError(WorklogError):
    kind = ErrorKind.INVALID_BREAK_INDEX


class InvalidFieldError(WorklogError):
    kind = ErrorKind.INVALID_FIELD


class InvalidDateError(WorklogError):
    kind = ErrorKind.INVALID_DATE


class UnauthorizedError(WorklogError):
    kind = ErrorKind.UNAUTHORIZED


class StoreUnavailableError(WorklogError):
    """Raised when the persisted snapshot cannot be read or written."""

    kind = ErrorKind.STORE_UNAVAILABLE


__all__ = [
    "ErrorKind",
    "InvalidBreakIndexError",
    "InvalidDateError",
    "InvalidFieldError",
    "InvalidTimeFormatError",
    "InvalidTransitionError",
    "RecordNotFoundError",
    "SessionEndedError",
    "SessionNotStartedError",
    "StoreUnavailableError",
    "UnauthorizedError",
    "WorklogError",
]
