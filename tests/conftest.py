"""Shared test fixtures."""

from __future__ import annotations

from datetime import UTC, datetime, timedelta

import pytest

from logscout.models import LogEntry

BASE_TIME = datetime(2024, 1, 15, 10, 30, tzinfo=UTC)


def make_entry(
    seconds: float,
    message: str = "",
    *,
    severity: str = "INFO",
    insert_id: str = "",
) -> LogEntry:
    """An entry ``seconds`` after BASE_TIME (negative is earlier)."""
    return LogEntry(
        timestamp=BASE_TIME + timedelta(seconds=seconds),
        severity=severity,
        message=message or f"entry at {seconds}s",
        insert_id=insert_id,
    )


def make_page(*seconds: float) -> list[LogEntry]:
    """Entries at the given offsets, newest first."""
    return sorted((make_entry(s) for s in seconds), key=lambda e: e.timestamp, reverse=True)


class FakeClock:
    """Manually advanced clock."""

    def __init__(self, now: datetime = BASE_TIME) -> None:
        self.now = now

    def __call__(self) -> datetime:
        return self.now

    def advance(self, **kwargs: float) -> None:
        self.now += timedelta(**kwargs)


class StubFetch:
    """Backend fetch that returns queued pages (or raises queued errors) and records filters."""

    def __init__(self, *pages: list[LogEntry] | Exception) -> None:
        self.pages = list(pages)
        self.calls: list[str] = []

    def __call__(self, filter_text: str) -> list[LogEntry]:
        self.calls.append(filter_text)
        if not self.pages:
            return []
        page = self.pages.pop(0)
        if isinstance(page, Exception):
            raise page
        return list(page)


class StubBackend:
    """In-memory stand-in for the gcloud backend."""

    def __init__(
        self,
        *pages: list[LogEntry] | Exception,
        project: str = "p1",
        projects: list[str] | Exception | None = None,
    ) -> None:
        self.project = project
        self.fetch_stub = StubFetch(*pages)
        self._projects = projects if projects is not None else []

    def fetch(self, filter_text: str) -> list[LogEntry]:
        return self.fetch_stub(filter_text)

    def list_projects(self) -> list[str]:
        if isinstance(self._projects, Exception):
            raise self._projects
        return list(self._projects)


@pytest.fixture
def clock() -> FakeClock:
    return FakeClock()
