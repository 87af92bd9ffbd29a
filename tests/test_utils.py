"""Tests for time parsing and formatting helpers."""

from __future__ import annotations

from datetime import UTC, datetime, timedelta, timezone

import pytest

from logscout.utils import format_rfc3339, parse_time, parse_timestamp

REF = datetime(2024, 1, 15, 12, 0, tzinfo=UTC)


class TestParseTime:
    @pytest.mark.parametrize(
        ("value", "delta"),
        [
            ("30s", timedelta(seconds=30)),
            ("5m", timedelta(minutes=5)),
            ("2h", timedelta(hours=2)),
            ("1d", timedelta(days=1)),
            ("1week", timedelta(weeks=1)),
        ],
    )
    def test_relative_shorthand(self, value: str, delta: timedelta) -> None:
        assert parse_time(value, reference_date=REF) == REF - delta

    def test_iso(self) -> None:
        result = parse_time("2024-01-10T08:00:00Z")
        assert result.astimezone(UTC) == datetime(2024, 1, 10, 8, 0, tzinfo=UTC)

    def test_unparseable(self) -> None:
        with pytest.raises(ValueError, match="Cannot parse time"):
            parse_time("qwerty-zzz")


class TestParseTimestamp:
    def test_nanoseconds_are_truncated(self) -> None:
        assert parse_timestamp("2024-01-15T10:30:00.123456789Z") == datetime(
            2024, 1, 15, 10, 30, 0, 123456, tzinfo=UTC
        )

    def test_offset_converted_to_utc(self) -> None:
        result = parse_timestamp("2024-01-15T12:30:00+02:00")
        assert result == datetime(2024, 1, 15, 10, 30, tzinfo=UTC)
        assert result.utcoffset() == timedelta(0)

    def test_naive_is_utc(self) -> None:
        assert parse_timestamp("2024-01-15T10:30:00") == datetime(2024, 1, 15, 10, 30, tzinfo=UTC)

    def test_invalid(self) -> None:
        with pytest.raises(ValueError):  # noqa: PT011
            parse_timestamp("15/01/2024")


class TestFormatRfc3339:
    def test_whole_seconds(self) -> None:
        assert format_rfc3339(datetime(2024, 1, 15, 10, 30, tzinfo=UTC)) == "2024-01-15T10:30:00Z"

    def test_fraction(self) -> None:
        assert format_rfc3339(datetime(2024, 1, 15, 10, 30, 0, 5000, tzinfo=UTC)) == "2024-01-15T10:30:00.005000Z"

    def test_other_zone(self) -> None:
        moment = datetime(2024, 1, 15, 5, 30, tzinfo=timezone(timedelta(hours=-5)))
        assert format_rfc3339(moment) == "2024-01-15T10:30:00Z"
