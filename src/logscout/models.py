"""Pydantic models for logscout."""

from __future__ import annotations

from datetime import datetime, timedelta  # noqa: TC003 - Pydantic needs this at runtime for model field resolution
from enum import StrEnum
from typing import Any

from pydantic import BaseModel, ConfigDict, Field, model_validator
from pydantic.alias_generators import to_camel

TIME_RANGE_PRESETS: dict[str, timedelta] = {
    "1h": timedelta(hours=1),
    "24h": timedelta(hours=24),
    "7d": timedelta(days=7),
    "30d": timedelta(days=30),
}


class _CamelModel(BaseModel):
    """Base for records persisted with camelCase keys."""

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


class Severity(StrEnum):
    """Log severity, in ascending order."""

    DEFAULT = "DEFAULT"
    DEBUG = "DEBUG"
    INFO = "INFO"
    NOTICE = "NOTICE"
    WARNING = "WARNING"
    ERROR = "ERROR"
    CRITICAL = "CRITICAL"
    ALERT = "ALERT"
    EMERGENCY = "EMERGENCY"

    @property
    def rank(self) -> int:
        return list(Severity).index(self)


class Resource(_CamelModel):
    """The monitored resource that produced a log entry."""

    model_config = ConfigDict(frozen=True)

    type: str = ""
    labels: dict[str, str] = {}


class SourceLocation(_CamelModel):
    """Where in the source code a log entry was emitted."""

    model_config = ConfigDict(frozen=True)

    file: str = ""
    line: int = 0
    function: str = ""


class LogEntry(_CamelModel):
    """A single log record as fetched from the backend. Never mutated."""

    model_config = ConfigDict(frozen=True)

    timestamp: datetime
    severity: str = Severity.DEFAULT.value
    message: str = ""
    insert_id: str = ""
    log_name: str = ""
    labels: dict[str, str] = {}
    resource: Resource = Resource()
    source_location: SourceLocation | None = None
    trace: str = ""
    span_id: str = ""
    json_payload: dict[str, Any] | None = None
    text_payload: str = ""

    @property
    def payload_text(self) -> str:
        """Best-effort plain text of the payload, for searching and display."""
        if self.text_payload:
            return self.text_payload
        if self.json_payload is not None:
            return str(self.json_payload)
        return ""


class SeverityMode(StrEnum):
    """How the severity selector restricts a query."""

    LEVELS = "levels"
    THRESHOLD = "threshold"


class SeverityFilter(BaseModel):
    """Severity selection: an explicit set of levels, or a minimum level."""

    mode: SeverityMode = SeverityMode.LEVELS
    levels: list[Severity] = []
    min_level: Severity | None = None

    @model_validator(mode="after")
    def _one_mode(self) -> SeverityFilter:
        if self.mode == SeverityMode.THRESHOLD:
            if self.min_level is None:
                msg = "threshold mode requires min_level"
                raise ValueError(msg)
            if self.levels:
                msg = "threshold mode cannot carry explicit levels"
                raise ValueError(msg)
        elif self.min_level is not None:
            msg = "levels mode cannot carry min_level"
            raise ValueError(msg)
        return self

    @classmethod
    def threshold(cls, level: Severity) -> SeverityFilter:
        return cls(mode=SeverityMode.THRESHOLD, min_level=level)

    @classmethod
    def of(cls, *levels: Severity) -> SeverityFilter:
        return cls(mode=SeverityMode.LEVELS, levels=list(levels))

    @property
    def summary(self) -> str:
        """Short label for the status bar."""
        if self.mode == SeverityMode.THRESHOLD and self.min_level is not None:
            return f">={self.min_level.value}"
        if not self.levels or len(self.levels) == len(Severity):
            return "all"
        if len(self.levels) <= 2:  # noqa: PLR2004
            return ",".join(level.value for level in self.levels)
        return f"{len(self.levels)} selected"


class TimeRange(BaseModel):
    """Time bound of a query: explicit instants, a named preset, or none."""

    start: datetime | None = None
    end: datetime | None = None
    preset: str | None = None

    @model_validator(mode="after")
    def _preset_or_explicit(self) -> TimeRange:
        if self.preset is not None:
            if self.preset not in TIME_RANGE_PRESETS:
                msg = f"Unknown time range preset: {self.preset!r}"
                raise ValueError(msg)
            if self.start is not None or self.end is not None:
                msg = "preset and explicit start/end are mutually exclusive"
                raise ValueError(msg)
        return self

    def bounds(self, now: datetime) -> tuple[datetime, datetime] | None:
        """Resolve to (start, end), or None when the range is unbounded."""
        if self.preset is not None:
            return now - TIME_RANGE_PRESETS[self.preset], now
        if self.start is not None and self.end is not None:
            return self.start, self.end
        return None

    @property
    def label(self) -> str:
        if self.preset is not None:
            return self.preset
        if self.start is not None or self.end is not None:
            return "custom"
        return "none"


class FilterState(BaseModel):
    """Everything the user has selected to narrow the current query."""

    time_range: TimeRange = TimeRange()
    severity: SeverityFilter = SeverityFilter()
    custom_filter: str = ""
    search_term: str = ""


class CacheRecord(_CamelModel):
    """A cached query result."""

    key: str
    filter: str
    project: str = ""
    stored_at: datetime
    logs: list[LogEntry] = []


class HistoryRecord(_CamelModel):
    """A previously executed filter."""

    filter: str
    project: str = ""
    executed_at: datetime
    execute_count: int = 1


class LibraryRecord(_CamelModel):
    """A user-named reusable filter."""

    name: str
    filter: str
    project: str = ""
    updated_at: datetime | None = None
    use_count: int = 1


class AppConfig(BaseModel):
    """Application configuration persisted to disk."""

    theme: str = "textual-dark"
    page_size: int = Field(default=100, gt=0)
    timeout_seconds: int = Field(default=30, gt=0)
    cache_ttl_minutes: int = Field(default=15, ge=0)
    cache_max_entries: int = Field(default=40, ge=0)
    max_history_entries: int = Field(default=50, gt=0)
    max_library_entries: int = Field(default=100, gt=0)
    auto_load_all: bool = False
    time_range: str | None = "24h"
    default_project: str | None = None


class AppState(BaseModel):
    """Session state remembered between runs."""

    project: str = ""
    last_query: str = ""
