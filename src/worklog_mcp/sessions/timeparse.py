"""Normalization of free-form time strings into canonical UTC timestamps."""

from __future__ import annotations

import re
from datetime import date, datetime, time, timezone, tzinfo

from dateutil import parser as date_parser

from ..errors import InvalidDateError, InvalidTimeFormatError

_BARE_TIME = re.compile(
    r"^(?P<hour>\d{1,2})(?::(?P<minute>\d{2})(?::(?P<second>\d{2}))?)?\s*(?P<meridiem>am|pm)?$",
    re.IGNORECASE,
)


def format_timestamp(value: datetime) -> str:
    """Render an aware datetime as ``YYYY-MM-DDTHH:MM:SS.mmmZ``."""

    if value.tzinfo is None:
        value = value.replace(tzinfo=timezone.utc)
    rendered = value.astimezone(timezone.utc).isoformat(timespec="milliseconds")
    return rendered.replace("+00:00", "Z")


def parse_date_key(value: str | date) -> date:
    """Parse a ``YYYY-MM-DD`` record key."""

    if isinstance(value, date):
        return value
    try:
        return datetime.strptime(value.strip(), "%Y-%m-%d").date()
    except (AttributeError, ValueError) as exc:
        raise InvalidDateError(f"Invalid date '{value}', expected YYYY-MM-DD") from exc


def _bare_time(match: re.Match[str], raw: str) -> time:
    hour = int(match.group("hour"))
    minute = int(match.group("minute") or 0)
    second = int(match.group("second") or 0)
    meridiem = (match.group("meridiem") or "").lower()

    if meridiem:
        if not 1 <= hour <= 12:
            raise InvalidTimeFormatError(f"Hour out of range in '{raw}'")
        if meridiem == "pm" and hour < 12:
            hour += 12
        elif meridiem == "am" and hour == 12:
            hour = 0
    if hour > 23 or minute > 59 or second > 59:
        raise InvalidTimeFormatError(f"Time component out of range in '{raw}'")
    return time(hour, minute, second)


def normalize(date_key: str | date, raw: str, tz: tzinfo = timezone.utc) -> str:
    """Turn ``raw`` into a canonical UTC timestamp string.

    A bare wall-clock time such as ``9``, ``5:00 pm`` or ``14:30:15`` is placed on
    ``date_key`` in ``tz``. Anything else must be a full timestamp carrying a time
    of day; one without an offset is read as local to ``tz``, and missing date
    parts come from ``date_key``.
    """

    text = (raw or "").strip()
    if not text:
        raise InvalidTimeFormatError("Empty time value")

    day = parse_date_key(date_key)
    match = _BARE_TIME.match(text)
    try:
        if match:
            moment = datetime.combine(day, _bare_time(match, text), tzinfo=tz)
        else:
            if ":" not in text:
                raise ValueError("no time of day")
            # Components missing from the string are taken from the record's day.
            moment = date_parser.parse(text, default=datetime.combine(day, time()))
            if moment.tzinfo is None:
                moment = moment.replace(tzinfo=tz)
        return format_timestamp(moment)
    except (ValueError, OverflowError) as exc:
        raise InvalidTimeFormatError(
            f"Invalid date/time '{raw}'; use an ISO timestamp or a time such as 2:28:40 am"
        ) from exc


__all__ = ["format_timestamp", "normalize", "parse_date_key"]
