"""Administrative edits of stored work records."""

from __future__ import annotations

import logging
import re
from dataclasses import dataclass
from datetime import date, datetime, timezone, tzinfo
from typing import TYPE_CHECKING, Literal

from ..errors import InvalidBreakIndexError, InvalidFieldError
from .models import WorkRecord
from .timeparse import normalize

if TYPE_CHECKING:
    from ..storage import SessionStore

logger = logging.getLogger(__name__)

_BREAK_FIELD = re.compile(r"^break-(?P<index>\d+)-(?P<part>start|end)$")


@dataclass(slots=True, frozen=True)
class OverrideField:
    """Parsed form of ``start``, ``end`` or ``break-<N>-start|end``."""

    target: Literal["start", "end", "break"]
    break_index: int | None = None
    break_part: Literal["start", "end"] | None = None

    @classmethod
    def parse(cls, field: str) -> "OverrideField":
        name = (field or "").strip().lower()
        if name in {"start", "end"}:
            return cls(target=name)  # type: ignore[arg-type]
        match = _BREAK_FIELD.match(name)
        if match is None:
            raise InvalidFieldError(
                f"Invalid field '{field}'; use start, end, or break-X-start/end (e.g. break-1-start)"
            )
        return cls(
            target="break",
            break_index=int(match.group("index")),
            break_part=match.group("part"),  # type: ignore[arg-type]
        )


def apply_override(
    record: WorkRecord,
    field: str,
    raw_value: str,
    *,
    date_key: str | date,
    tz: tzinfo = timezone.utc,
) -> WorkRecord:
    """Return ``record`` with one timestamp replaced, bypassing transition guards."""

    target = OverrideField.parse(field)
    if target.target == "break":
        index = target.break_index or 0
        if not 1 <= index <= len(record.breaks):
            raise InvalidBreakIndexError(
                f"Invalid break number {index}; record has {len(record.breaks)} break(s)"
            )

    value = datetime.fromisoformat(normalize(date_key, raw_value, tz))

    if target.target == "start":
        return record.model_copy(update={"start": value}, deep=True)
    if target.target == "end":
        return record.model_copy(update={"end": value}, deep=True)

    breaks = [item.model_copy() for item in record.breaks]
    position = (target.break_index or 0) - 1
    breaks[position] = breaks[position].model_copy(update={target.break_part: value})
    return record.model_copy(update={"breaks": breaks})


class OverrideEngine:
    """Apply administrative edits to existing records and persist them."""

    def __init__(self, store: "SessionStore", *, tz: tzinfo = timezone.utc) -> None:
        self._store = store
        self._tz = tz

    async def apply(self, user_id: str, date_key: str, field: str, raw_value: str) -> WorkRecord:
        record = await self._store.upsert(
            user_id,
            date_key,
            lambda current: apply_override(current, field, raw_value, date_key=date_key, tz=self._tz),
            create=False,
        )
        logger.info(
            "Applied work record override",
            extra={"user_id": user_id, "date": date_key, "field": field, "state": record.state.value},
        )
        return record


__all__ = ["OverrideEngine", "OverrideField", "apply_override"]
