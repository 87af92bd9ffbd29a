"""Error types for logscout."""

from __future__ import annotations


class LogScoutError(Exception):
    """Base class for all errors surfaced to the user."""


class ValidationError(LogScoutError):
    """A filter expression was rejected before it reached the backend."""


class FetchError(LogScoutError):
    """The backend call failed or returned malformed data."""


class PersistenceError(LogScoutError):
    """A store could not be written to disk."""


class ExternalProcessError(LogScoutError):
    """An editor, viewer or other external process could not be run."""
