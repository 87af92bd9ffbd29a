"""CLI entry point for logscout."""

from __future__ import annotations

import typer

from logscout.commands.explore import explore
from logscout.commands.queries import cache_clear, history, library, projects

app = typer.Typer(add_completion=False)
app.command()(explore)
app.command()(history)
app.command()(library)
app.command("cache-clear")(cache_clear)
app.command()(projects)


def main() -> None:
    """Entry point for the CLI."""
    app()
