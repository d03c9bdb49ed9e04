from __future__ import annotations

from pathlib import Path

import pytest
from pydantic import ValidationError

from worklog_mcp.config import WorklogSettings, get_settings


def test_settings_from_environment(monkeypatch, tmp_path: Path) -> None:
    monkeypatch.setenv("WORKLOG_DATA_FILE", str(tmp_path / "data.json"))
    monkeypatch.setenv("WORKLOG_ADMIN_ROLE", " Supervisor ")
    monkeypatch.setenv("WORKLOG_TIMEZONE", "Europe/Berlin")
    monkeypatch.setenv("WORKLOG_LOG_LEVEL", "debug")

    settings = WorklogSettings()

    assert settings.data_file == tmp_path / "data.json"
    assert settings.admin_role == "Supervisor"
    assert settings.tzinfo.key == "Europe/Berlin"
    assert settings.log_level == "DEBUG"


def test_defaults(monkeypatch) -> None:
    for name in ("WORKLOG_DATA_FILE", "WORKLOG_ADMIN_ROLE", "WORKLOG_TIMEZONE", "WORKLOG_LOG_LEVEL"):
        monkeypatch.delenv(name, raising=False)

    settings = WorklogSettings()

    assert settings.data_file == Path("timeData.json")
    assert settings.admin_role == "Admin"
    assert settings.timezone == "UTC"


@pytest.mark.parametrize(
    "name, value",
    [
        ("WORKLOG_TIMEZONE", "Mars/Olympus"),
        ("WORKLOG_LOG_LEVEL", "LOUD"),
        ("WORKLOG_ADMIN_ROLE", "   "),
    ],
)
def test_invalid_values(monkeypatch, name: str, value: str) -> None:
    monkeypatch.setenv(name, value)
    with pytest.raises(ValidationError):
        WorklogSettings()


def test_get_settings_resolves_data_file(monkeypatch, tmp_path: Path) -> None:
    monkeypatch.chdir(tmp_path)
    monkeypatch.setenv("WORKLOG_DATA_FILE", "work/data.json")
    get_settings.cache_clear()
    try:
        settings = get_settings()
    finally:
        get_settings.cache_clear()

    assert settings.data_file == (tmp_path / "work" / "data.json").resolve()
