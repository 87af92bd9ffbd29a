"""Commands operating on the persisted query stores."""

from __future__ import annotations

from typing import Annotated

import typer

from logscout.cache import ResultCache
from logscout.config import load_config
from logscout.errors import FetchError, PersistenceError
from logscout.gcloud import GcloudBackend
from logscout.history import HistoryStore, LibraryStore
from logscout.persistence import (
    PersistHook,
    load_cache_records,
    load_history_records,
    load_library_records,
    save_cache_records,
)


def _one_line(text: str) -> str:
    return " ".join(line.strip() for line in text.splitlines() if line.strip())


def history(
    limit: Annotated[int, typer.Option("--limit", "-n", help="Number of entries to show")] = 20,
) -> None:
    """List recently executed filters, most recent first."""
    store = HistoryStore(max_entries=load_config().max_history_entries)
    store.load(load_history_records())
    if not store.records:
        typer.echo("No query history")
        return
    for record in store.records[:limit]:
        project = f"[{record.project}] " if record.project else ""
        typer.echo(f"{record.executed_at:%Y-%m-%d %H:%M}  x{record.execute_count:<3} {project}{_one_line(record.filter)}")


def library() -> None:
    """List saved queries, most recently updated first."""
    store = LibraryStore(max_entries=load_config().max_library_entries)
    store.load(load_library_records())
    if not store.records:
        typer.echo("No saved queries")
        return
    for record in store.records:
        project = f" [{record.project}]" if record.project else ""
        typer.echo(f"{record.name}{project}")
        typer.echo(f"    {_one_line(record.filter)}")


def cache_clear() -> None:
    """Delete all cached query results."""
    cache = ResultCache(persist=PersistHook("query cache", save_cache_records))
    cache.load(load_cache_records())
    count = len(cache)
    try:
        cache.clear()
    except PersistenceError as e:
        typer.echo(f"Error: {e}")
        raise typer.Exit(1)  # noqa: B904
    typer.echo(f"Cleared {count} cached queries")


def projects() -> None:
    """List the GCP projects visible to the active gcloud account."""
    backend = GcloudBackend(timeout=load_config().timeout_seconds)
    try:
        names = backend.list_projects()
    except FetchError as e:
        typer.echo(f"Error: {e}")
        raise typer.Exit(1)  # noqa: B904
    for name in names:
        typer.echo(name)
