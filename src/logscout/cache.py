"""Time-expiring, size-bounded cache of query results."""

from __future__ import annotations

import logging
from datetime import UTC, datetime, timedelta
from typing import TYPE_CHECKING

from logscout.filters import normalize_filter
from logscout.models import CacheRecord, LogEntry
from logscout.persistence import PersistHook

if TYPE_CHECKING:
    from collections.abc import Callable, Iterable

logger = logging.getLogger(__name__)

DEFAULT_TTL = timedelta(minutes=15)
DEFAULT_MAX_ENTRIES = 40


def _utcnow() -> datetime:
    return datetime.now(tz=UTC)


def cache_key(project: str, filter_text: str) -> str:
    """Key of a cached result: project and normalized filter."""
    return project.strip() + "\n" + normalize_filter(filter_text)


class ResultCache:
    """Results of previous queries keyed by (project, normalized filter).

    A TTL of zero disables expiry and a max_entries of zero disables the size bound.
    Every insert and eviction calls the persist hook with the surviving records,
    newest first.
    """

    def __init__(
        self,
        *,
        ttl: timedelta = DEFAULT_TTL,
        max_entries: int = DEFAULT_MAX_ENTRIES,
        persist: PersistHook[CacheRecord] | None = None,
        clock: Callable[[], datetime] = _utcnow,
    ) -> None:
        self.ttl = ttl
        self.max_entries = max_entries
        self.persist = persist or PersistHook("query cache")
        self._clock = clock
        self._entries: dict[str, CacheRecord] = {}

    def __len__(self) -> int:
        return len(self._entries)

    def __contains__(self, key: object) -> bool:
        return key in self._entries

    def _expired(self, record: CacheRecord, now: datetime) -> bool:
        return bool(self.ttl) and now - record.stored_at > self.ttl

    def load(self, records: Iterable[CacheRecord]) -> None:
        """Replace the contents with persisted records, skipping blank keys and expired records."""
        now = self._clock()
        self._entries = {}
        for record in sorted(records, key=lambda r: r.stored_at):
            if not record.key.strip() or self._expired(record, now):
                continue
            self._entries[record.key] = record
        self._truncate()

    def records(self) -> list[CacheRecord]:
        """Live records, most recently stored first."""
        now = self._clock()
        return [r for r in self._newest_first() if not self._expired(r, now)]

    def lookup(self, project: str, filter_text: str) -> list[LogEntry] | None:
        """Return a copy of the cached entries, or None on a miss or an expired record."""
        key = cache_key(project, filter_text)
        record = self._entries.get(key)
        if record is None:
            return None
        if self._expired(record, self._clock()):
            logger.debug("Cache record expired: %r", key)
            del self._entries[key]
            self.persist(self.records())
            return None
        return list(record.logs)

    def store(self, project: str, filter_text: str, entries: list[LogEntry]) -> None:
        """Store a result, keeping only the most recently stored records."""
        normalized = normalize_filter(filter_text)
        if not normalized:
            return
        key = cache_key(project, filter_text)
        self._entries.pop(key, None)
        self._entries[key] = CacheRecord(
            key=key,
            filter=normalized,
            project=project.strip(),
            stored_at=self._clock(),
            logs=list(entries),
        )
        self._truncate()
        self.persist(self.records())

    def evict_expired(self) -> int:
        """Drop every expired record. Returns how many were removed."""
        now = self._clock()
        expired = [key for key, record in self._entries.items() if self._expired(record, now)]
        for key in expired:
            del self._entries[key]
        if expired:
            self.persist(self.records())
        return len(expired)

    def clear(self) -> None:
        self._entries.clear()
        self.persist([])

    def _truncate(self) -> None:
        if not self.max_entries or len(self._entries) <= self.max_entries:
            return
        newest = self._newest_first()[: self.max_entries]
        self._entries = {r.key: r for r in reversed(newest)}

    def _newest_first(self) -> list[CacheRecord]:
        # Insertion order breaks ties between records stored at the same instant.
        ordered = list(enumerate(self._entries.values()))
        ordered.sort(key=lambda pair: (pair[1].stored_at, pair[0]), reverse=True)
        return [record for _, record in ordered]
