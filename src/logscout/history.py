"""Query history and the saved-query library."""

from __future__ import annotations

from datetime import UTC, datetime
from typing import TYPE_CHECKING

from logscout.models import HistoryRecord, LibraryRecord
from logscout.persistence import PersistHook

if TYPE_CHECKING:
    from collections.abc import Callable, Iterable

DEFAULT_MAX_HISTORY = 50
DEFAULT_MAX_LIBRARY = 100
_SUGGESTION_LIMIT = 8
_EPOCH = datetime.min.replace(tzinfo=UTC)


def _utcnow() -> datetime:
    return datetime.now(tz=UTC)


class HistoryStore:
    """Recently executed filters, most recent first, unique by filter text."""

    def __init__(
        self,
        *,
        max_entries: int = DEFAULT_MAX_HISTORY,
        persist: PersistHook[HistoryRecord] | None = None,
        clock: Callable[[], datetime] = _utcnow,
    ) -> None:
        self.max_entries = max_entries
        self.persist = persist or PersistHook("query history")
        self._clock = clock
        self._records: list[HistoryRecord] = []

    def __len__(self) -> int:
        return len(self._records)

    @property
    def records(self) -> list[HistoryRecord]:
        return list(self._records)

    def load(self, records: Iterable[HistoryRecord]) -> None:
        """Replace contents with persisted records, ordered by last use."""
        ordered = sorted(records, key=lambda r: r.executed_at, reverse=True)
        seen: set[str] = set()
        self._records = []
        for record in ordered:
            text = record.filter.strip()
            if not text or text in seen:
                continue
            seen.add(text)
            self._records.append(record)
        del self._records[self.max_entries :]

    def add(self, filter_text: str, project: str = "") -> HistoryRecord | None:
        """Record an executed filter, moving an existing one to the front."""
        text = filter_text.strip()
        if not text:
            return None
        count = 1
        for i, existing in enumerate(self._records):
            if existing.filter == text:
                count = existing.execute_count + 1
                del self._records[i]
                break
        record = HistoryRecord(filter=text, project=project.strip(), executed_at=self._clock(), execute_count=count)
        self._records.insert(0, record)
        del self._records[self.max_entries :]
        self.persist(self.records)
        return record

    def filters(self) -> list[str]:
        return [r.filter for r in self._records]

    def suggestions(self, prefix: str = "", limit: int = _SUGGESTION_LIMIT) -> list[str]:
        """Most recent filters starting with the prefix."""
        prefix = prefix.strip()
        return [r.filter for r in self._records if r.filter.startswith(prefix)][:limit]


class LibraryStore:
    """User-named reusable filters, most recently updated first."""

    def __init__(
        self,
        *,
        max_entries: int = DEFAULT_MAX_LIBRARY,
        persist: PersistHook[LibraryRecord] | None = None,
        clock: Callable[[], datetime] = _utcnow,
    ) -> None:
        self.max_entries = max_entries
        self.persist = persist or PersistHook("query library")
        self._clock = clock
        self._records: list[LibraryRecord] = []

    def __len__(self) -> int:
        return len(self._records)

    @property
    def records(self) -> list[LibraryRecord]:
        return list(self._records)

    def load(self, records: Iterable[LibraryRecord]) -> None:
        """Replace contents with persisted records, ordered by last update."""
        valid = [r for r in records if r.name.strip() and r.filter.strip()]
        self._records = sorted(valid, key=lambda r: r.updated_at or _EPOCH, reverse=True)
        del self._records[self.max_entries :]

    def get(self, name: str) -> LibraryRecord | None:
        return next((r for r in self._records if r.name == name), None)

    def upsert(self, record: LibraryRecord) -> LibraryRecord | None:
        """Insert a saved query, or update the first one with the same name or filter.

        Records whose name or filter is blank are ignored.
        """
        record = record.model_copy(
            update={
                "name": record.name.strip(),
                "filter": record.filter.strip(),
                "project": record.project.strip(),
            }
        )
        if not record.name or not record.filter:
            return None
        if record.updated_at is None:
            record.updated_at = self._clock()
        record.use_count = max(record.use_count, 1)

        for i, existing in enumerate(self._records):
            if existing.name == record.name or existing.filter == record.filter:
                record.use_count = existing.use_count + 1
                self._records[i] = record
                self._records.sort(key=lambda r: r.updated_at or _EPOCH, reverse=True)
                break
        else:
            self._records.insert(0, record)
        del self._records[self.max_entries :]
        self.persist(self.records)
        return record

    def remove(self, name: str) -> bool:
        """Delete a saved query by name."""
        for i, existing in enumerate(self._records):
            if existing.name == name:
                del self._records[i]
                self.persist(self.records)
                return True
        return False
