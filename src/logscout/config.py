"""XDG directory management, configuration and logging setup for logscout."""

from __future__ import annotations

import logging
import os
import tomllib
from logging.handlers import RotatingFileHandler
from pathlib import Path
from typing import Any

import tomli_w
from platformdirs import user_config_dir
from pydantic import ValidationError as ModelValidationError
from textual.logging import TextualHandler

from logscout.models import AppConfig, AppState

logger = logging.getLogger(__name__)

_LOG_FILE = "logscout.log"
_LOG_MAX_BYTES = 5 * 1024 * 1024
_LOG_FORMAT = "%(asctime)s %(levelname)s %(name)s: %(message)s"


def get_config_dir() -> Path:
    """Get the logscout config directory.

    Respects LOGSCOUT_CONFIG_DIR environment variable if set.
    """
    if override := os.environ.get("LOGSCOUT_CONFIG_DIR"):
        return Path(override)
    return Path(user_config_dir("logscout"))


def _load_toml(name: str) -> dict[str, Any] | None:
    path = get_config_dir() / name
    if not path.exists():
        return None
    try:
        return tomllib.loads(path.read_text())
    except (OSError, tomllib.TOMLDecodeError) as exc:
        logger.warning("Ignoring unreadable %s: %s", path, exc)
        return None


def _save_toml(name: str, data: dict[str, Any]) -> None:
    config_dir = get_config_dir()
    config_dir.mkdir(parents=True, exist_ok=True)
    path = config_dir / name
    path.write_bytes(tomli_w.dumps(data).encode())


def load_config() -> AppConfig:
    """Load application config from disk, returning defaults if not found."""
    data = _load_toml("config.toml")
    if data is None:
        return AppConfig()
    try:
        return AppConfig(**data)
    except (ModelValidationError, TypeError) as exc:
        logger.warning("Invalid config.toml, using defaults: %s", exc)
        return AppConfig()


def save_config(config: AppConfig) -> None:
    """Save application config to disk."""
    _save_toml("config.toml", config.model_dump(exclude_none=True))


def load_state() -> AppState:
    """Load the remembered project and last query."""
    data = _load_toml("state.toml")
    if data is None:
        return AppState()
    try:
        return AppState(**data)
    except (ModelValidationError, TypeError):
        return AppState()


def save_state(state: AppState) -> None:
    """Remember the current project and last query."""
    _save_toml("state.toml", state.model_dump())


def debug_enabled() -> bool:
    return bool(os.environ.get("LOGSCOUT_DEBUG"))


def setup_logging(*, debug: bool = False) -> None:
    """Route library logging to the Textual devtools console, and to a file in debug mode."""
    root = logging.getLogger("logscout")
    root.setLevel(logging.DEBUG if debug else logging.INFO)
    root.handlers.clear()
    root.addHandler(TextualHandler())
    if debug:
        config_dir = get_config_dir()
        config_dir.mkdir(parents=True, exist_ok=True)
        handler = RotatingFileHandler(config_dir / _LOG_FILE, maxBytes=_LOG_MAX_BYTES, backupCount=2)
        handler.setFormatter(logging.Formatter(_LOG_FORMAT))
        root.addHandler(handler)
