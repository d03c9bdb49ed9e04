"""JSON file persistence for work records."""

from __future__ import annotations

import asyncio
import json
import logging
import os
from collections import Counter
from contextlib import asynccontextmanager
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, AsyncIterator, Callable

from pydantic import ValidationError

from ..errors import RecordNotFoundError, StoreUnavailableError
from ..sessions.models import SessionState, WorkRecord

logger = logging.getLogger(__name__)

Mutator = Callable[[WorkRecord], WorkRecord]


def write_atomic(path: Path, content: str) -> None:
    """Write ``content`` next to ``path`` and rename it into place."""

    path.parent.mkdir(parents=True, exist_ok=True)
    tmp = path.with_suffix(path.suffix + ".tmp")
    with tmp.open("w", encoding="utf-8") as handle:
        handle.write(content)
        handle.flush()
        os.fsync(handle.fileno())
    os.replace(tmp, path)


@dataclass(slots=True)
class _KeyLock:
    lock: asyncio.Lock = field(default_factory=asyncio.Lock)
    holders: int = 0


class SessionStore:
    """Own every work record and keep the data file in step with memory.

    The file is read once; afterwards the in-memory mirror is authoritative and
    each mutation rewrites the whole document. Mutations of the same
    ``(user_id, date)`` are serialized; different keys only share the write lock.
    """

    def __init__(
        self,
        path: Path,
        *,
        writer: Callable[[Path, str], None] | None = None,
    ) -> None:
        self._path = Path(path)
        self._writer = writer or write_atomic
        self._records: dict[str, dict[str, WorkRecord]] = {}
        self._key_locks: dict[tuple[str, str], _KeyLock] = {}
        self._write_lock = asyncio.Lock()
        self._dirty = False
        self._load()

    @property
    def path(self) -> Path:
        return self._path

    @property
    def dirty(self) -> bool:
        """True when memory holds changes the last write failed to persist."""

        return self._dirty

    def _load(self) -> None:
        if not self._path.exists():
            return
        try:
            document = json.loads(self._path.read_text(encoding="utf-8") or "{}")
            if not isinstance(document, dict):
                raise ValueError("top-level JSON value must be an object")
            self._records = {
                str(user_id): {
                    str(date_key): WorkRecord.from_document(entry)
                    for date_key, entry in (dates or {}).items()
                }
                for user_id, dates in document.items()
            }
        except (OSError, ValueError, AttributeError, ValidationError) as exc:
            raise StoreUnavailableError(f"Cannot load work data from {self._path}: {exc}") from exc
        logger.debug(
            "Loaded work data",
            extra={"path": str(self._path), "users": len(self._records)},
        )

    @asynccontextmanager
    async def key_lock(self, user_id: str, date_key: str) -> AsyncIterator[None]:
        """Hold the lock for one ``(user_id, date)`` record.

        The entry is dropped once nobody holds or waits for it.
        """

        key = (user_id, date_key)
        entry = self._key_locks.get(key)
        if entry is None:
            entry = self._key_locks[key] = _KeyLock()
        entry.holders += 1
        try:
            async with entry.lock:
                yield
        finally:
            entry.holders -= 1
            if not entry.holders:
                del self._key_locks[key]

    def snapshot(self) -> dict[str, dict[str, dict[str, Any]]]:
        """Return the full persisted layout as plain JSON data."""

        return {
            user_id: {date_key: record.to_document() for date_key, record in dates.items()}
            for user_id, dates in self._records.items()
        }

    async def _persist(self) -> None:
        async with self._write_lock:
            try:
                content = json.dumps(self.snapshot(), indent=2)
                await asyncio.to_thread(self._writer, self._path, content)
            except (OSError, TypeError, ValueError) as exc:
                self._dirty = True
                logger.error(
                    "Failed to persist work data; memory and disk have diverged",
                    extra={"path": str(self._path), "error": str(exc)},
                )
                raise StoreUnavailableError(f"Cannot write work data to {self._path}: {exc}") from exc
            self._dirty = False

    def get(self, user_id: str, date_key: str) -> WorkRecord | None:
        record = self._records.get(user_id, {}).get(date_key)
        return record.model_copy(deep=True) if record is not None else None

    async def upsert(
        self,
        user_id: str,
        date_key: str,
        mutator: Mutator,
        *,
        create: bool = True,
    ) -> WorkRecord:
        """Apply ``mutator`` to the stored record and persist the result.

        A missing record starts out as a fresh ``not_started`` record when
        ``create`` is set. If ``mutator`` raises, nothing is stored.
        """

        async with self.key_lock(user_id, date_key):
            current = self._records.get(user_id, {}).get(date_key)
            if current is None:
                if not create:
                    raise RecordNotFoundError(f"No work data for user {user_id} on {date_key}")
                current = WorkRecord()
            updated = mutator(current.model_copy(deep=True))
            self._records.setdefault(user_id, {})[date_key] = updated
            await self._persist()
            return updated.model_copy(deep=True)

    async def delete(self, user_id: str, date_key: str) -> bool:
        async with self.key_lock(user_id, date_key):
            dates = self._records.get(user_id)
            if not dates or date_key not in dates:
                return False
            del dates[date_key]
            await self._persist()
            return True

    async def flush(self) -> None:
        """Rewrite the data file from memory."""

        await self._persist()

    def users(self) -> list[str]:
        return sorted(self._records)

    def dates(self, user_id: str) -> list[str]:
        return sorted(self._records.get(user_id, {}))

    def records(self) -> list[tuple[str, str, WorkRecord]]:
        return [
            (user_id, date_key, record.model_copy(deep=True))
            for user_id, dates in sorted(self._records.items())
            for date_key, record in sorted(dates.items())
        ]

    def state_counts(self) -> dict[str, int]:
        counts: Counter[str] = Counter({state.value: 0 for state in SessionState})
        for dates in self._records.values():
            for record in dates.values():
                counts[record.state.value] += 1
        return dict(counts)


__all__ = ["SessionStore", "write_atomic"]
