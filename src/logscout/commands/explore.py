"""Explore command - browse Cloud Logging in a TUI."""

from __future__ import annotations

import logging
from datetime import UTC, datetime
from typing import Annotated

import typer

from logscout.config import debug_enabled, load_config, load_state, setup_logging
from logscout.errors import ValidationError
from logscout.filters import sanitize_filter, validate_filter
from logscout.gcloud import GcloudBackend, detect_default_project
from logscout.models import TIME_RANGE_PRESETS, TimeRange
from logscout.utils import parse_time

logger = logging.getLogger(__name__)


def _resolve_time_range(since: str | None, start: str | None, end: str | None) -> TimeRange | None:
    """Time range from the command line, or None to use the configured default."""
    if start is not None:
        end_time = parse_time(end) if end else datetime.now(tz=UTC)
        start_time = parse_time(start, reference_date=end_time)
        if start_time >= end_time:
            msg = "--start must be before --end"
            raise typer.BadParameter(msg)
        return TimeRange(start=start_time, end=end_time)
    if end is not None:
        msg = "--end requires --start"
        raise typer.BadParameter(msg)
    if since is None:
        return None
    if since == "none":
        return TimeRange()
    if since not in TIME_RANGE_PRESETS:
        msg = f"--since must be one of {', '.join(TIME_RANGE_PRESETS)} or none"
        raise typer.BadParameter(msg)
    return TimeRange(preset=since)


def explore(
    filter_text: Annotated[
        str | None, typer.Argument(metavar="FILTER", help="Cloud Logging filter (default: last query)")
    ] = None,
    project: Annotated[str | None, typer.Option("--project", "-p", help="GCP project id")] = None,
    since: Annotated[str | None, typer.Option("--since", "-s", help="Time range preset: 1h, 24h, 7d, 30d, none")] = None,
    start: Annotated[str | None, typer.Option("--start", help="Start time (5m, 2h, yesterday, or ISO 8601)")] = None,
    end: Annotated[str | None, typer.Option("--end", help="End time (default: now)")] = None,
    auto_load_all: Annotated[
        bool, typer.Option("--auto-load-all", help="Keep paging until the result set is exhausted")
    ] = False,  # noqa: FBT002
    debug: Annotated[bool, typer.Option("--debug", help="Write a debug log to the config directory")] = False,  # noqa: FBT002
) -> None:
    """Browse Google Cloud logs in a terminal UI."""
    setup_logging(debug=debug or debug_enabled())

    try:
        time_range = _resolve_time_range(since, start, end)
    except ValueError as e:
        typer.echo(f"Error: {e}")
        raise typer.Exit(1)  # noqa: B904

    if filter_text is not None:
        try:
            validate_filter(sanitize_filter(filter_text))
        except ValidationError as e:
            typer.echo(f"Error: invalid filter: {e}")
            raise typer.Exit(1)  # noqa: B904

    config = load_config()
    if auto_load_all:
        config = config.model_copy(update={"auto_load_all": True})
    state = load_state()
    project = project or config.default_project or state.project or detect_default_project()
    logger.info("Starting explorer for project %r", project)

    backend = GcloudBackend(project, page_size=config.page_size, timeout=config.timeout_seconds)

    from logscout.app import LogScoutApp  # noqa: PLC0415

    log_app = LogScoutApp(
        backend,
        config,
        query=filter_text if filter_text is not None else state.last_query,
        time_range=time_range,
    )
    log_app.run(mouse=False)
