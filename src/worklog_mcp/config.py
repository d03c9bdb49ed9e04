"""Configuration management for the worklog server."""

from __future__ import annotations

from functools import lru_cache
from pathlib import Path
from zoneinfo import ZoneInfo, ZoneInfoNotFoundError

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class WorklogSettings(BaseSettings):
    """Runtime configuration sourced from environment variables and optional .env file."""

    model_config = SettingsConfigDict(env_file=".env", env_file_encoding="utf-8", extra="ignore")

    data_file: Path = Field(default=Path("./timeData.json"), validation_alias="WORKLOG_DATA_FILE")
    admin_role: str = Field(default="Admin", validation_alias="WORKLOG_ADMIN_ROLE")
    timezone: str = Field(default="UTC", validation_alias="WORKLOG_TIMEZONE")
    log_level: str = Field(default="INFO", validation_alias="WORKLOG_LOG_LEVEL")

    @field_validator("log_level")
    @classmethod
    def _normalize_log_level(cls, value: str) -> str:
        normalized = value.strip().upper()
        if normalized not in {"CRITICAL", "ERROR", "WARNING", "INFO", "DEBUG"}:
            raise ValueError(
                "WORKLOG_LOG_LEVEL must be one of CRITICAL, ERROR, WARNING, INFO, DEBUG"
            )
        return normalized

    @field_validator("admin_role")
    @classmethod
    def _validate_admin_role(cls, value: str) -> str:
        normalized = value.strip()
        if not normalized:
            raise ValueError("WORKLOG_ADMIN_ROLE must not be empty")
        return normalized

    @field_validator("timezone")
    @classmethod
    def _validate_timezone(cls, value: str) -> str:
        normalized = value.strip() or "UTC"
        try:
            ZoneInfo(normalized)
        except (ZoneInfoNotFoundError, ValueError) as exc:
            raise ValueError(f"WORKLOG_TIMEZONE '{value}' is not a known IANA timezone") from exc
        return normalized

    @property
    def tzinfo(self) -> ZoneInfo:
        """Timezone used for calendar dates and bare wall-clock times."""

        return ZoneInfo(self.timezone)


@lru_cache(maxsize=1)
def get_settings() -> WorklogSettings:
    """Return cached settings instance."""

    settings = WorklogSettings()
    settings.data_file = settings.data_file.expanduser().resolve()
    return settings


__all__ = ["WorklogSettings", "get_settings"]
