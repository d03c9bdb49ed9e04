"""Transition rules for a daily work record."""

from __future__ import annotations

from datetime import datetime
from enum import Enum

from ..errors import InvalidTransitionError, SessionEndedError, SessionNotStartedError
from .models import BreakInterval, SessionState, WorkRecord, as_utc_instant


class SessionEvent(str, Enum):
    START = "start"
    RESUME = "resume"
    BEGIN_BREAK = "begin_break"
    END_BREAK = "end_break"
    END = "end"


# States from which each event is accepted once the record has started.
_ALLOWED_FROM: dict[SessionEvent, frozenset[SessionState]] = {
    SessionEvent.RESUME: frozenset({SessionState.STARTED, SessionState.ON_BREAK}),
    SessionEvent.BEGIN_BREAK: frozenset({SessionState.STARTED}),
    SessionEvent.END_BREAK: frozenset({SessionState.ON_BREAK}),
    SessionEvent.END: frozenset({SessionState.STARTED, SessionState.ON_BREAK}),
}


def apply_event(
    record: WorkRecord,
    event: SessionEvent,
    *,
    now: datetime,
    observed_state: SessionState | None = None,
) -> WorkRecord:
    """Return the record that results from ``event``; ``record`` is left untouched.

    ``observed_state`` is the state the caller rendered its controls for. When it
    no longer matches, the event is stale and rejected.
    """

    state = record.state
    if state is SessionState.ENDED:
        raise SessionEndedError("Work session has already ended for this day")
    if observed_state is not None and SessionState(observed_state) is not state:
        raise InvalidTransitionError(
            f"Event '{event.value}' was issued for state '{SessionState(observed_state).value}' "
            f"but the session is now '{state.value}'"
        )

    if event is SessionEvent.START:
        if state is not SessionState.NOT_STARTED:
            raise InvalidTransitionError("Work already started for this day")
        return record.model_copy(update={"start": as_utc_instant(now)}, deep=True)

    if state is SessionState.NOT_STARTED:
        raise SessionNotStartedError("Work has not been started for this day")
    if state not in _ALLOWED_FROM[event]:
        raise InvalidTransitionError(f"Cannot {event.value.replace('_', ' ')} while {state.value}")

    stamp = as_utc_instant(now)
    if event is SessionEvent.RESUME:
        return record.model_copy(deep=True)
    if event is SessionEvent.BEGIN_BREAK:
        breaks = [item.model_copy() for item in record.breaks]
        breaks.append(BreakInterval(start=stamp))
        return record.model_copy(update={"breaks": breaks})
    if event is SessionEvent.END_BREAK:
        breaks = [item.model_copy() for item in record.breaks]
        breaks[-1] = breaks[-1].model_copy(update={"end": stamp})
        return record.model_copy(update={"breaks": breaks})
    # An open break is left open when the session ends.
    return record.model_copy(update={"end": stamp}, deep=True)


__all__ = ["SessionEvent", "apply_event"]
