"""Work record models, transition rules and administrative overrides."""

from .machine import SessionEvent, apply_event
from .models import BreakInterval, SessionState, WorkRecord
from .overrides import OverrideEngine, OverrideField, apply_override
from .timeparse import format_timestamp, normalize, parse_date_key

__all__ = [
    "BreakInterval",
    "OverrideEngine",
    "OverrideField",
    "SessionEvent",
    "SessionState",
    "WorkRecord",
    "apply_event",
    "apply_override",
    "format_timestamp",
    "normalize",
    "parse_date_key",
]
