"""Shared utilities for logscout."""

from __future__ import annotations

import re
from datetime import UTC, datetime, timedelta

import dateparser

_TIME_UNITS: dict[str, str] = {
    "s": "seconds",
    "m": "minutes",
    "minute": "minutes",
    "minutes": "minutes",
    "h": "hours",
    "hour": "hours",
    "hours": "hours",
    "d": "days",
    "day": "days",
    "days": "days",
    "w": "weeks",
    "week": "weeks",
    "weeks": "weeks",
}

# Cloud Logging emits up to nanosecond precision; datetime holds microseconds.
_FRACTION_RE = re.compile(r"(\.\d{6})\d+")


def parse_time(value: str, reference_date: datetime | None = None) -> datetime:
    """Parse a user-supplied time.

    Supports:
    - Relative shorthand: 5m, 1h, 2d, 30s, 1week
    - Natural language: "2 days ago", "yesterday 7:58"
    - ISO 8601: 2024-01-15T10:30:00Z
    """
    stripped = value.strip()

    match = re.match(r"^(\d+)\s*([a-z]+)$", stripped.lower())
    if match:
        amount = int(match.group(1))
        unit = match.group(2)
        if unit in _TIME_UNITS:
            delta = timedelta(**{_TIME_UNITS[unit]: amount})
            ref = reference_date or datetime.now(tz=UTC)
            return ref - delta

    settings: dict[str, object] = {
        "TIMEZONE": "UTC",
        "RETURN_AS_TIMEZONE_AWARE": True,
        "PREFER_DATES_FROM": "past",
    }
    if reference_date is not None:
        settings["RELATIVE_BASE"] = reference_date.replace(tzinfo=None)

    result = dateparser.parse(stripped, settings=settings)
    if result is not None:
        return result

    msg = f"Cannot parse time: {value!r}"
    raise ValueError(msg)


def parse_timestamp(value: str) -> datetime:
    """Parse an RFC3339 timestamp from the backend into an aware UTC datetime."""
    text = _FRACTION_RE.sub(r"\1", value.strip())
    parsed = datetime.fromisoformat(text)
    if parsed.tzinfo is None:
        parsed = parsed.replace(tzinfo=UTC)
    return parsed.astimezone(UTC)


def format_rfc3339(moment: datetime) -> str:
    """Format as RFC3339 in UTC with a Z suffix; fractional seconds only when set."""
    if moment.tzinfo is None:
        moment = moment.replace(tzinfo=UTC)
    moment = moment.astimezone(UTC)
    if moment.microsecond:
        return moment.strftime("%Y-%m-%dT%H:%M:%S.%fZ")
    return moment.strftime("%Y-%m-%dT%H:%M:%SZ")
