"""The explorer session: filter state, stores and the pagination controller."""

from __future__ import annotations

import json
import logging
from contextlib import AbstractContextManager, nullcontext
from dataclasses import dataclass
from datetime import UTC, datetime, timedelta
from typing import TYPE_CHECKING, Any, Protocol

from logscout.cache import ResultCache
from logscout.dispatcher import Command, CommandDispatcher, Err, Ok
from logscout.errors import ExternalProcessError, FetchError, LogScoutError, ValidationError
from logscout.external import entry_to_json, open_externally
from logscout.filters import build_filter, derive_query_name, find_matches, sanitize_filter, validate_filter
from logscout.history import HistoryStore, LibraryStore
from logscout.models import (
    TIME_RANGE_PRESETS,
    AppConfig,
    AppState,
    FilterState,
    LibraryRecord,
    Severity,
    SeverityFilter,
    SeverityMode,
    TimeRange,
)
from logscout.pagination import PaginationController, QueryResult
from logscout.persistence import (
    PersistHook,
    load_cache_records,
    load_history_records,
    load_library_records,
    save_cache_records,
    save_history_records,
    save_library_records,
)

if TYPE_CHECKING:
    from collections.abc import Callable

    from logscout.dispatcher import Result
    from logscout.errors import PersistenceError
    from logscout.models import LogEntry

logger = logging.getLogger(__name__)

_THRESHOLD_LEVELS = [level for level in Severity if level is not Severity.DEFAULT]


class Backend(Protocol):
    project: str

    def fetch(self, filter_text: str) -> list[LogEntry]: ...

    def list_projects(self) -> list[str]: ...


@dataclass(frozen=True)
class ProjectsLoaded:
    result: Result[list[str]]


@dataclass(frozen=True)
class ExternalDone:
    description: str
    result: Result[None]


def _utcnow() -> datetime:
    return datetime.now(tz=UTC)


class ExplorerSession:
    """Everything one explorer instance owns.

    User actions are plain method calls that update state synchronously and may
    dispatch commands; completions come back through ``handle``. Failures of any
    kind end up in ``status`` and ``last_error`` rather than being raised.
    """

    def __init__(
        self,
        backend: Backend,
        *,
        config: AppConfig | None = None,
        dispatcher: CommandDispatcher | None = None,
        cache: ResultCache | None = None,
        history: HistoryStore | None = None,
        library: LibraryStore | None = None,
        opener: Callable[[bytes, str], None] = open_externally,
        suspend: Callable[[], AbstractContextManager[Any]] = nullcontext,
        clock: Callable[[], datetime] = _utcnow,
    ) -> None:
        config = config or AppConfig()
        self.backend = backend
        self.dispatcher = dispatcher or CommandDispatcher()
        if cache is None:
            cache = ResultCache(
                ttl=timedelta(minutes=config.cache_ttl_minutes),
                max_entries=config.cache_max_entries,
                clock=clock,
            )
        if history is None:
            history = HistoryStore(max_entries=config.max_history_entries, clock=clock)
        if library is None:
            library = LibraryStore(max_entries=config.max_library_entries, clock=clock)
        self.cache = cache
        self.history = history
        self.library = library
        for store in (self.cache, self.history, self.library):
            store.persist.on_error = self._persist_failed

        self.controller = PaginationController(
            backend.fetch,
            self.dispatcher,
            self.cache,
            project=backend.project,
            auto_load_all=config.auto_load_all,
        )
        preset = config.time_range if config.time_range in TIME_RANGE_PRESETS else None
        self.filter_state = FilterState(time_range=TimeRange(preset=preset))
        self.projects: list[str] = []
        self.matches: list[int] = []
        self._opener = opener
        self._suspend = suspend
        self._clock = clock

    @classmethod
    def from_disk(cls, backend: Backend, config: AppConfig, **kwargs: Any) -> ExplorerSession:
        """Create a session whose stores are loaded from and saved to the config dir."""
        cache = ResultCache(
            ttl=timedelta(minutes=config.cache_ttl_minutes),
            max_entries=config.cache_max_entries,
            persist=PersistHook("query cache", save_cache_records),
        )
        cache.load(load_cache_records())
        history = HistoryStore(
            max_entries=config.max_history_entries,
            persist=PersistHook("query history", save_history_records),
        )
        history.load(load_history_records())
        library = LibraryStore(
            max_entries=config.max_library_entries,
            persist=PersistHook("query library", save_library_records),
        )
        library.load(load_library_records())
        logger.info(
            "Loaded %d cached queries, %d history entries, %d saved queries", len(cache), len(history), len(library)
        )
        return cls(backend, config=config, cache=cache, history=history, library=library, **kwargs)

    # --- read-only views ---

    @property
    def project(self) -> str:
        return self.backend.project

    @property
    def window(self) -> list[LogEntry]:
        return self.controller.window

    @property
    def status(self) -> str:
        return self.controller.status

    @property
    def last_error(self) -> LogScoutError | None:
        return self.controller.last_error

    @property
    def state(self) -> AppState:
        return AppState(project=self.project, last_query=self.filter_state.custom_filter)

    def _set_status(self, text: str, error: LogScoutError | None = None) -> None:
        self.controller.status = text
        if error is not None:
            self.controller.last_error = error

    def _persist_failed(self, error: PersistenceError) -> None:
        self._set_status(str(error), error)

    # --- queries ---

    def effective_filter(self) -> str:
        """The base filter combined with the time range and severity selection.

        Presets are resolved against the start of the next minute so that
        repeated queries within a minute share a cache key.
        """
        now = self._clock().replace(second=0, microsecond=0) + timedelta(minutes=1)
        return build_filter(
            self.filter_state.custom_filter,
            self.filter_state.time_range,
            self.filter_state.severity,
            now=now,
        )

    def execute(self, base: str | None = None, *, bypass_cache: bool = False) -> bool:
        """Validate, record and run the current query. Returns False if it was rejected."""
        if base is not None:
            self.filter_state.custom_filter = base
        text = sanitize_filter(self.filter_state.custom_filter)
        try:
            validate_filter(text)
        except ValidationError as exc:
            self._set_status(f"Invalid filter: {exc}", exc)
            return False
        effective = self.effective_filter()
        logger.info("Running query for %r: %s", self.project, effective)
        self.matches = []
        self.history.add(text, self.project)
        self.controller.run_query(effective, bypass_cache=bypass_cache)
        return True

    def refresh(self) -> bool:
        """Re-run the current query, skipping the cache."""
        return self.execute(bypass_cache=True)

    def toggle_auto_load_all(self) -> bool:
        self.controller.auto_load_all = not self.controller.auto_load_all
        self._set_status(f"Auto-load all: {'on' if self.controller.auto_load_all else 'off'}")
        return self.controller.auto_load_all

    def set_project(self, project: str) -> None:
        project = project.strip()
        self.backend.project = project
        self.controller.project = project
        self._set_status(f"Project: {project or '(gcloud default)'}")

    def set_time_range(self, time_range: TimeRange) -> None:
        self.filter_state.time_range = time_range
        self._set_status(f"Time range: {time_range.label}")

    def set_severity(self, severity: SeverityFilter) -> None:
        self.filter_state.severity = severity
        self._set_status(f"Severity: {severity.summary}")

    def cycle_min_severity(self) -> SeverityFilter:
        """Raise the minimum severity one level, wrapping back to all levels."""
        current = self.filter_state.severity
        if current.mode == SeverityMode.THRESHOLD and current.min_level in _THRESHOLD_LEVELS:
            index = _THRESHOLD_LEVELS.index(current.min_level) + 1
            if index < len(_THRESHOLD_LEVELS):
                severity = SeverityFilter.threshold(_THRESHOLD_LEVELS[index])
            else:
                severity = SeverityFilter()
        else:
            severity = SeverityFilter.threshold(_THRESHOLD_LEVELS[0])
        self.set_severity(severity)
        return severity

    # --- history and library ---

    def save_to_library(self, name: str | None = None) -> LibraryRecord | None:
        """Save the current base filter under a name (derived from the filter by default)."""
        text = sanitize_filter(self.filter_state.custom_filter)
        if not text:
            self._set_status("Cannot save empty query")
            return None
        self._set_status("Saved query to library")
        record = LibraryRecord(name=(name or "").strip() or derive_query_name(text), filter=text, project=self.project)
        return self.library.upsert(record)

    def history_entry(self, index: int) -> bool:
        """Run the history entry at index."""
        records = self.history.records
        if not records:
            self._set_status("Query history is empty")
            return False
        record = records[min(max(0, index), len(records) - 1)]
        return self.execute(record.filter)

    def library_entry(self, index: int) -> bool:
        """Run the saved query at index, switching to its project if it names one."""
        records = self.library.records
        if not records:
            self._set_status("Query library is empty")
            return False
        record = records[min(max(0, index), len(records) - 1)]
        if record.project and record.project != self.project:
            self.set_project(record.project)
        return self.execute(record.filter)

    def delete_library_entry(self, name: str) -> bool:
        removed = self.library.remove(name)
        if removed:
            self._set_status(f"Deleted saved query {name!r}")
        return removed

    # --- background work ---

    def discover_projects(self) -> None:
        self._set_status("Loading projects...")
        self.dispatcher.dispatch(
            Command(name="projects", run=self.backend.list_projects, reply=ProjectsLoaded, error_type=FetchError)
        )

    def _open(self, description: str, content: bytes, suffix: str) -> None:
        opener, suspend = self._opener, self._suspend

        def run() -> None:
            with suspend():
                opener(content, suffix)

        self.dispatcher.dispatch(
            Command(
                name="external",
                run=run,
                reply=lambda result: ExternalDone(description, result),
                error_type=ExternalProcessError,
                offload=False,
            )
        )

    def open_entry(self, entry: LogEntry | None = None) -> bool:
        """Open one entry (the selected one by default) as JSON in the editor."""
        entry = entry or self.controller.selected
        if entry is None:
            self._set_status("No log selected")
            return False
        self._open("log entry", entry_to_json(entry), ".json")
        return True

    def open_window(self) -> bool:
        """Open every loaded entry as one JSON array in the editor."""
        window = self.controller.window
        if not window:
            self._set_status("No logs loaded")
            return False
        logs = [json.loads(entry_to_json(entry)) for entry in window]
        self._open(f"{len(logs)} logs", json.dumps(logs, indent=2).encode(), ".json")
        return True

    # --- client-side search ---

    def search(self, term: str) -> list[int]:
        """Find loaded entries containing the term and move to the first one."""
        self.filter_state.search_term = term
        self.matches = find_matches(self.controller.window, term)
        if self.matches:
            self.controller.offset = self.matches[0]
            self._set_status(f"{len(self.matches)} matches for {term!r}")
        elif term.strip():
            self._set_status(f"No matches for {term!r}")
        return self.matches

    def next_match(self, *, backward: bool = False) -> int | None:
        """Move to the next (or previous) match, wrapping around."""
        if not self.matches:
            return None
        offset = self.controller.offset
        if backward:
            earlier = [i for i in self.matches if i < offset]
            target = earlier[-1] if earlier else self.matches[-1]
        else:
            later = [i for i in self.matches if i > offset]
            target = later[0] if later else self.matches[0]
        self.controller.offset = target
        return target

    # --- completions ---

    def handle(self, message: object) -> None:
        """Apply a completion message. Runs on the event loop only."""
        match message:
            case QueryResult():
                self.controller.handle(message)
                if self.filter_state.search_term:
                    self.matches = find_matches(self.controller.window, self.filter_state.search_term)
            case ProjectsLoaded(result=Ok(value=projects)):
                self.projects = projects
                self._set_status(f"Projects: {len(projects)}")
            case ProjectsLoaded(result=Err(error=error)):
                logger.warning("Project discovery failed: %s", error)
                self._set_status(f"Project list failed: {error}", error)
            case ExternalDone(description=description, result=Ok()):
                self._set_status(f"Opened {description} in editor")
            case ExternalDone(result=Err(error=error)):
                self._set_status(f"Editor failed: {error}", error)
            case _:
                logger.debug("Ignoring unknown message %r", message)
