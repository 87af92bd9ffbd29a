"""Handing log entries to an external editor or viewer."""

from __future__ import annotations

import logging
import os
import shlex
import subprocess
import tempfile
from pathlib import Path
from typing import TYPE_CHECKING

from logscout.errors import ExternalProcessError

if TYPE_CHECKING:
    from logscout.models import LogEntry

logger = logging.getLogger(__name__)


def editor_command() -> list[str]:
    """The user's editor: $VISUAL, then $EDITOR, then vi."""
    for var in ("VISUAL", "EDITOR"):
        if value := os.environ.get(var, "").strip():
            return shlex.split(value)
    return ["vi"]


def entry_to_json(entry: LogEntry) -> bytes:
    return entry.model_dump_json(by_alias=True, exclude_defaults=True, indent=2).encode()


def open_externally(content: bytes, suffix: str, editor: list[str] | None = None) -> None:
    """Write content to a temporary file and open it in an editor, blocking until it exits."""
    command = editor or editor_command()
    suffix = suffix if suffix.startswith(".") else f".{suffix}"
    fd, name = tempfile.mkstemp(prefix="logscout-", suffix=suffix)
    path = Path(name)
    try:
        with os.fdopen(fd, "wb") as fh:
            fh.write(content)
        logger.debug("Opening %s with %s", path, command[0])
        proc = subprocess.run([*command, str(path)], check=False)  # noqa: S603
    except OSError as exc:
        msg = f"Failed to run {command[0]}: {exc}"
        raise ExternalProcessError(msg) from exc
    finally:
        path.unlink(missing_ok=True)
    if proc.returncode != 0:
        msg = f"{command[0]} exited with status {proc.returncode}"
        raise ExternalProcessError(msg)
