"""Persistence of the result cache, query history and query library."""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING, Any

from pydantic import TypeAdapter
from pydantic import ValidationError as ModelValidationError

from logscout.config import get_config_dir
from logscout.errors import PersistenceError
from logscout.models import CacheRecord, HistoryRecord, LibraryRecord

if TYPE_CHECKING:
    from collections.abc import Callable
    from pathlib import Path

logger = logging.getLogger(__name__)

CACHE_FILE = "query_cache.json"
HISTORY_FILE = "history.json"
LIBRARY_FILE = "query_library.json"

_CACHE_ADAPTER = TypeAdapter(list[CacheRecord])
_HISTORY_ADAPTER = TypeAdapter(list[HistoryRecord])
_LIBRARY_ADAPTER = TypeAdapter(list[LibraryRecord])


class PersistHook[R]:
    """Calls a store's save function and turns failures into PersistenceError.

    The in-memory store has already changed when the hook runs; a failure is
    reported through ``on_error`` (or raised when no handler is set) and never
    rolled back.
    """

    def __init__(
        self,
        name: str,
        save: Callable[[list[R]], None] | None = None,
        on_error: Callable[[PersistenceError], None] | None = None,
    ) -> None:
        self.name = name
        self.save = save
        self.on_error = on_error

    def __call__(self, records: list[R]) -> None:
        if self.save is None:
            return
        try:
            self.save(records)
        except PersistenceError as exc:
            self._report(exc)
        except (OSError, ValueError, TypeError) as exc:
            self._report(PersistenceError(f"Persist {self.name} failed: {exc}"))

    def _report(self, error: PersistenceError) -> None:
        logger.warning("%s", error)
        if self.on_error is None:
            raise error
        self.on_error(error)


def _store_path(filename: str) -> Path:
    config_dir = get_config_dir()
    config_dir.mkdir(parents=True, exist_ok=True)
    return config_dir / filename


def _load(filename: str, adapter: TypeAdapter[Any]) -> list[Any]:
    path = get_config_dir() / filename
    if not path.exists():
        return []
    try:
        return adapter.validate_json(path.read_bytes())
    except (OSError, ModelValidationError) as exc:
        logger.warning("Ignoring unreadable %s: %s", path, exc)
        return []


def _save(filename: str, adapter: TypeAdapter[Any], records: list[Any]) -> None:
    try:
        path = _store_path(filename)
        path.write_bytes(adapter.dump_json(records, by_alias=True, indent=2))
        path.chmod(0o600)
    except OSError as exc:
        msg = f"Persist {filename} failed: {exc}"
        raise PersistenceError(msg) from exc


def load_cache_records() -> list[CacheRecord]:
    """Load persisted cache records (unordered)."""
    return _load(CACHE_FILE, _CACHE_ADAPTER)


def save_cache_records(records: list[CacheRecord]) -> None:
    _save(CACHE_FILE, _CACHE_ADAPTER, records)


def load_history_records() -> list[HistoryRecord]:
    """Load persisted query history (unordered)."""
    return _load(HISTORY_FILE, _HISTORY_ADAPTER)


def save_history_records(records: list[HistoryRecord]) -> None:
    _save(HISTORY_FILE, _HISTORY_ADAPTER, records)


def load_library_records() -> list[LibraryRecord]:
    """Load the persisted query library (unordered)."""
    return _load(LIBRARY_FILE, _LIBRARY_ADAPTER)


def save_library_records(records: list[LibraryRecord]) -> None:
    _save(LIBRARY_FILE, _LIBRARY_ADAPTER, records)
