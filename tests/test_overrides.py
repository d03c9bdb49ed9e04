from __future__ import annotations

import asyncio
from datetime import datetime, timezone
from pathlib import Path
from zoneinfo import ZoneInfo

import pytest

from worklog_mcp.errors import (
    InvalidBreakIndexError,
    InvalidFieldError,
    InvalidTimeFormatError,
    RecordNotFoundError,
)
from worklog_mcp.sessions import (
    BreakInterval,
    OverrideEngine,
    OverrideField,
    SessionState,
    WorkRecord,
    apply_override,
)
from worklog_mcp.storage import SessionStore


def utc(hour: int, minute: int = 0) -> datetime:
    return datetime(2025, 6, 7, hour, minute, tzinfo=timezone.utc)


def started_record() -> WorkRecord:
    return WorkRecord(start=utc(9), breaks=[BreakInterval(start=utc(12), end=utc(12, 30))])


def test_parse_fields() -> None:
    assert OverrideField.parse("start") == OverrideField(target="start")
    assert OverrideField.parse("END") == OverrideField(target="end")
    assert OverrideField.parse("break-3-end") == OverrideField(target="break", break_index=3, break_part="end")
    for bad in ("duration", "break-x-start", "break-1-middle", "break-1"):
        with pytest.raises(InvalidFieldError):
            OverrideField.parse(bad)


def test_override_end_forces_ended() -> None:
    record = apply_override(started_record(), "end", "5:00 pm", date_key="2025-06-07")

    assert record.to_document()["end"] == "2025-06-07T17:00:00.000Z"
    assert record.state is SessionState.ENDED


def test_override_end_on_open_break_bypasses_guards() -> None:
    record = WorkRecord(start=utc(9), breaks=[BreakInterval(start=utc(12))])
    assert record.state is SessionState.ON_BREAK

    updated = apply_override(record, "end", "2025-06-07T17:00:00Z", date_key="2025-06-07")
    assert updated.state is SessionState.ENDED
    assert updated.breaks[0].end is None


def test_override_start_uses_timezone() -> None:
    record = apply_override(
        started_record(),
        "start",
        "8:15 am",
        date_key="2025-06-07",
        tz=ZoneInfo("America/New_York"),
    )
    assert record.start == utc(12, 15)


def test_override_break_fields() -> None:
    record = apply_override(started_record(), "break-1-end", "12:45", date_key="2025-06-07")
    assert record.breaks[0].end == utc(12, 45)
    assert record.breaks[0].start == utc(12)


def test_closing_last_break_follows_fields() -> None:
    record = WorkRecord(start=utc(9), breaks=[BreakInterval(start=utc(12))])
    updated = apply_override(record, "break-1-end", "12:30 pm", date_key="2025-06-07")
    assert updated.state is SessionState.STARTED


def test_break_index_out_of_range() -> None:
    with pytest.raises(InvalidBreakIndexError):
        apply_override(started_record(), "break-2-start", "1:00 pm", date_key="2025-06-07")
    with pytest.raises(InvalidBreakIndexError):
        apply_override(started_record(), "break-0-start", "1:00 pm", date_key="2025-06-07")


def test_invalid_value_leaves_record_alone() -> None:
    record = started_record()
    with pytest.raises(InvalidTimeFormatError):
        apply_override(record, "start", "soon", date_key="2025-06-07")
    assert record.start == utc(9)


def test_engine_requires_existing_record(tmp_path: Path) -> None:
    store = SessionStore(tmp_path / "data.json")
    engine = OverrideEngine(store)

    with pytest.raises(RecordNotFoundError):
        asyncio.run(engine.apply("u1", "2025-06-07", "end", "5:00 pm"))
    assert store.get("u1", "2025-06-07") is None


def test_engine_persists_override(tmp_path: Path) -> None:
    path = tmp_path / "data.json"
    store = SessionStore(path)

    async def scenario() -> WorkRecord:
        await store.upsert("u1", "2025-06-07", lambda _: started_record())
        return await OverrideEngine(store).apply("u1", "2025-06-07", "end", "5:00 pm")

    record = asyncio.run(scenario())

    assert record.state is SessionState.ENDED
    reloaded = SessionStore(path).get("u1", "2025-06-07")
    assert reloaded is not None
    assert reloaded.to_document()["end"] == "2025-06-07T17:00:00.000Z"
    assert reloaded.to_document()["state"] == "ended"
