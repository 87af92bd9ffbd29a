"""The in-memory log window and bidirectional paging over the backend.

The window is always newest first. Scrolling past the bottom edge fetches
entries older than the oldest loaded one and appends them; scrolling past the
top fetches newer entries and prepends them, shifting the offset so the anchor
row stays put.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from enum import StrEnum
from functools import partial
from typing import TYPE_CHECKING

from logscout.dispatcher import Command, Err, Ok
from logscout.errors import FetchError, LogScoutError
from logscout.filters import bounded_filter

if TYPE_CHECKING:
    from collections.abc import Callable

    from logscout.cache import ResultCache
    from logscout.dispatcher import CommandDispatcher, Result
    from logscout.models import LogEntry

logger = logging.getLogger(__name__)

MAX_AUTO_LOAD_PAGES = 200

type Fetch = Callable[[str], list[LogEntry]]


class FetchMode(StrEnum):
    """How a fetched page is merged into the window."""

    REPLACE = "replace"
    OLDER = "older"
    NEWER = "newer"


@dataclass(frozen=True)
class PageResult:
    """Outcome of a fetch: entries plus the error that cut it short, if any."""

    entries: list[LogEntry]
    error: LogScoutError | None = None


@dataclass(frozen=True)
class QueryResult:
    """Completion message for a fetch issued by the controller."""

    filter: str
    mode: FetchMode
    result: Result[PageResult]
    generation: int = 0
    project: str = ""


def entry_key(entry: LogEntry) -> str:
    """Uniqueness key: the backend id when present, else timestamp, severity and message."""
    if entry.insert_id:
        return "id:" + entry.insert_id
    return f"{entry.timestamp.isoformat()}|{entry.severity}|{entry.message}"


def newest_first(entries: list[LogEntry]) -> list[LogEntry]:
    """Stable sort, newest first."""
    return sorted(entries, key=lambda e: e.timestamp, reverse=True)


def merge_unique(existing: list[LogEntry], incoming: list[LogEntry], *, prepend: bool = False) -> list[LogEntry]:
    """Merge two lists dropping duplicate keys, newest first.

    Incoming entries go after existing ones (or before them with ``prepend``)
    before the stable sort, which decides placement of equal timestamps.
    """
    if not incoming:
        return list(existing)
    first, second = (incoming, existing) if prepend else (existing, incoming)
    seen: set[str] = set()
    merged: list[LogEntry] = []
    for entry in (*first, *second):
        key = entry_key(entry)
        if key in seen:
            continue
        seen.add(key)
        merged.append(entry)
    return newest_first(merged)


def load_all(fetch: Fetch, base_filter: str, max_pages: int = MAX_AUTO_LOAD_PAGES) -> PageResult:
    """Page backward in time until the result set looks exhausted.

    Stops on an empty accumulator, an empty page, a page that adds nothing
    new, a failed fetch (the partial result is returned with the error), or
    after ``max_pages`` fetches.
    """
    try:
        accumulated = merge_unique([], fetch(base_filter))
    except LogScoutError as exc:
        return PageResult([], exc)

    pages = 1
    while accumulated and pages < max_pages:
        next_filter = bounded_filter(base_filter, "<", accumulated[-1].timestamp)
        try:
            page = fetch(next_filter)
        except LogScoutError as exc:
            logger.info("Auto-load stopped after %d pages: %s", pages, exc)
            return PageResult(accumulated, exc)
        pages += 1
        if not page:
            break
        before = len(accumulated)
        accumulated = merge_unique(accumulated, page)
        if len(accumulated) == before:
            break
    logger.debug("Auto-load fetched %d pages, %d entries", pages, len(accumulated))
    return PageResult(accumulated)


class PaginationController:
    """Owns the log window, its viewport offset and the in-flight fetch flags.

    ``loading_older`` and ``loading_newer`` are independent: both directions
    may be in flight at once, and each only blocks re-triggering itself.
    """

    def __init__(
        self,
        fetch: Fetch,
        dispatcher: CommandDispatcher,
        cache: ResultCache,
        *,
        project: str = "",
        viewport_rows: int = 1,
        auto_load_all: bool = False,
        max_pages: int = MAX_AUTO_LOAD_PAGES,
    ) -> None:
        self.fetch = fetch
        self.dispatcher = dispatcher
        self.cache = cache
        self.project = project
        self.auto_load_all = auto_load_all
        self.max_pages = max_pages
        self.loading = False
        self.loading_older = False
        self.loading_newer = False
        self.base_filter = ""
        self.status = ""
        self.last_error: LogScoutError | None = None
        self._viewport_rows = max(1, viewport_rows)
        self._window: list[LogEntry] = []
        self._offset = 0
        self._generation = 0

    # --- window ---

    @property
    def window(self) -> list[LogEntry]:
        return list(self._window)

    @property
    def offset(self) -> int:
        return self._offset

    @offset.setter
    def offset(self, value: int) -> None:
        self._offset = value
        self._clamp()

    @property
    def viewport_rows(self) -> int:
        return self._viewport_rows

    @viewport_rows.setter
    def viewport_rows(self, rows: int) -> None:
        self._viewport_rows = max(1, rows)
        self._clamp()

    @property
    def max_offset(self) -> int:
        return max(0, len(self._window) - self._viewport_rows)

    @property
    def selected(self) -> LogEntry | None:
        """Entry at the anchor row."""
        if not self._window:
            return None
        return self._window[self._offset]

    def _clamp(self) -> None:
        self._offset = min(max(0, self._offset), self.max_offset)

    @property
    def loading_state(self) -> str:
        """Short loading label for the status bar."""
        if self.loading_older and self.loading_newer:
            return "older+newer"
        if self.loading_older:
            return "older"
        if self.loading_newer:
            return "newer"
        if self.loading:
            return "query"
        return "idle"

    def replace_window(self, entries: list[LogEntry]) -> None:
        self._window = newest_first(entries)
        self._offset = 0
        self._clamp()

    def merge_older(self, entries: list[LogEntry]) -> int:
        """Append older entries; the offset is left where it was. Returns rows added."""
        before = len(self._window)
        self._window = merge_unique(self._window, entries)
        self._clamp()
        return len(self._window) - before

    def merge_newer(self, entries: list[LogEntry]) -> int:
        """Prepend newer entries and shift the offset past them. Returns rows added."""
        before = len(self._window)
        self._window = merge_unique(self._window, entries, prepend=True)
        added = len(self._window) - before
        self._offset += added
        self._clamp()
        return added

    # --- primary query ---

    def run_query(self, filter_text: str, *, bypass_cache: bool = False) -> list[LogEntry] | None:
        """Run the primary query for an effective filter.

        A cache hit replaces the window immediately and returns the entries; a
        miss (or ``bypass_cache``) dispatches a fetch and returns None.
        """
        self.base_filter = filter_text
        self._generation += 1
        if not bypass_cache:
            cached = self.cache.lookup(self.project, filter_text)
            if cached is not None:
                self.loading = False
                self.replace_window(cached)
                self.last_error = None
                self.status = f"Query cache hit: {len(self._window)} logs"
                return self.window

        self.loading = True
        generation = self._generation
        project = self.project
        if self.auto_load_all:
            run: Callable[[], PageResult] = partial(load_all, self.fetch, filter_text, self.max_pages)
        else:
            run = self._fetch_page(filter_text)
        self.dispatcher.dispatch(
            Command(
                name=f"query:{FetchMode.REPLACE}",
                run=run,
                reply=lambda result: QueryResult(filter_text, FetchMode.REPLACE, result, generation, project),
                error_type=FetchError,
            )
        )
        return None

    # --- scrolling ---

    def scroll_down(self, rows: int = 1) -> bool:
        """Move toward older rows. Returns True if an older page was requested."""
        was_at_bottom = self._offset >= self.max_offset
        self.offset = self._offset + rows
        if was_at_bottom and self._window and not self.loading_older:
            self.loading_older = True
            self._dispatch_page(bounded_filter(self.base_filter, "<", self._window[-1].timestamp), FetchMode.OLDER)
            return True
        return False

    def scroll_up(self, rows: int = 1) -> bool:
        """Move toward newer rows. Returns True if a newer page was requested."""
        was_at_top = self._offset == 0
        self.offset = self._offset - rows
        if was_at_top and self._window and not self.loading_newer:
            self.loading_newer = True
            self._dispatch_page(bounded_filter(self.base_filter, ">", self._window[0].timestamp), FetchMode.NEWER)
            return True
        return False

    def _fetch_page(self, filter_text: str) -> Callable[[], PageResult]:
        fetch = self.fetch

        def run() -> PageResult:
            return PageResult(list(fetch(filter_text)))

        return run

    def _dispatch_page(self, filter_text: str, mode: FetchMode) -> None:
        generation = self._generation
        project = self.project
        self.dispatcher.dispatch(
            Command(
                name=f"query:{mode}",
                run=self._fetch_page(filter_text),
                reply=lambda result: QueryResult(filter_text, mode, result, generation, project),
                error_type=FetchError,
            )
        )

    # --- completions ---

    def handle(self, message: QueryResult) -> None:
        """Apply a completed fetch to the window."""
        current = message.generation == self._generation
        if message.mode == FetchMode.OLDER:
            self.loading_older = False
        elif message.mode == FetchMode.NEWER:
            self.loading_newer = False
        elif current:
            # An earlier primary query finishing late must not hide the one still running.
            self.loading = False

        if not current:
            # In-flight pages are not cancelled by a newer query; they still merge.
            logger.debug(
                "Merging %s page from query generation %d into %d", message.mode, message.generation, self._generation
            )

        match message.result:
            case Err(error=error):
                self._fail(error)
            case Ok(value=page):
                self._apply(message, page)

    def _apply(self, message: QueryResult, page: PageResult) -> None:
        self.last_error = None
        if message.mode == FetchMode.OLDER:
            added = self.merge_older(page.entries)
            self.status = f"Loaded logs: +{added}"
        elif message.mode == FetchMode.NEWER:
            added = self.merge_newer(page.entries)
            self.status = f"Loaded logs: +{added}"
        elif page.error is not None and not page.entries:
            # Nothing was fetched: keep the current window.
            pass
        else:
            self.replace_window(page.entries)
            if page.error is None:
                self.status = f"Query complete: {len(self._window)} logs"
                self.cache.store(message.project, message.filter, self._window)
            else:
                self.status = f"Query stopped after {len(self._window)} logs"

        if page.error is not None:
            self._fail(page.error)

    def _fail(self, error: LogScoutError) -> None:
        logger.warning("Query failed: %s", error)
        self.last_error = error
        self.status = f"Query error: {error}"
