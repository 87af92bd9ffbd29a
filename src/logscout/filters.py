"""Filter expression assembly and validation."""

from __future__ import annotations

from datetime import UTC, datetime
from typing import TYPE_CHECKING

from logscout.errors import ValidationError
from logscout.models import SeverityFilter, SeverityMode, TimeRange
from logscout.utils import format_rfc3339

if TYPE_CHECKING:
    from logscout.models import LogEntry

_COMMENT_PREFIXES = ("--", "#")
_OPERATORS = ("=", "!=", "<", ">", "<=", ">=", ":")
_QUERY_NAME_MAX = 42


def sanitize_filter(text: str) -> str:
    """Drop comment and blank lines, trim the rest."""
    text = text.replace("\r\n", "\n").replace("\r", "\n")
    lines: list[str] = []
    for line in text.split("\n"):
        stripped = line.strip()
        if not stripped or stripped.startswith(_COMMENT_PREFIXES):
            continue
        lines.append(stripped)
    return "\n".join(lines)


def normalize_filter(text: str) -> str:
    """Normalized form used to key cached results."""
    return sanitize_filter(text)


def _severity_clause(severity: SeverityFilter) -> str | None:
    if severity.mode == SeverityMode.THRESHOLD and severity.min_level is not None:
        return f"severity>={severity.min_level.value}"
    if severity.mode == SeverityMode.LEVELS and severity.levels:
        return "(" + " OR ".join(f"severity={level.value}" for level in severity.levels) + ")"
    return None


def _already_grouped(clause: str) -> bool:
    """True if the clause is a single parenthesised group."""
    if not (clause.startswith("(") and clause.endswith(")")):
        return False
    depth = 0
    for i, char in enumerate(clause):
        if char == "(":
            depth += 1
        elif char == ")":
            depth -= 1
            if depth == 0 and i != len(clause) - 1:
                return False
    return True


def build_filter(
    base: str,
    time_range: TimeRange | None = None,
    severity: SeverityFilter | None = None,
    now: datetime | None = None,
) -> str:
    """Assemble the effective filter from the base text, time range and severity selection.

    Clauses are AND-ed; when the base filter is non-empty every clause is parenthesised.
    A preset time range is resolved against ``now`` (defaults to the current time).
    """
    base = sanitize_filter(base)
    clauses: list[str] = []

    if time_range is not None:
        bounds = time_range.bounds(now or datetime.now(tz=UTC))
        if bounds is not None:
            start, end = bounds
            clauses.append(f'timestamp>="{format_rfc3339(start)}"')
            clauses.append(f'timestamp<="{format_rfc3339(end)}"')

    if severity is not None and (clause := _severity_clause(severity)) is not None:
        clauses.append(clause)

    if not base:
        return " AND ".join(clauses)
    if not clauses:
        return base
    parts = [f"({base})"] + [c if _already_grouped(c) else f"({c})" for c in clauses]
    return " AND ".join(parts)


def bounded_filter(base: str, op: str, instant: datetime) -> str:
    """AND a strict timestamp bound onto a filter (``op`` is ``<`` or ``>``)."""
    clause = f'timestamp{op}"{format_rfc3339(instant)}"'
    base = base.strip()
    if not base:
        return clause
    return f"({base}) AND {clause}"


def validate_filter(text: str) -> None:
    """Reject filters the backend would refuse. An empty filter is valid."""
    text = text.strip()
    if not text:
        return
    if text.count("(") != text.count(")"):
        msg = "unbalanced parentheses in filter"
        raise ValidationError(msg)
    if "==" in text:
        msg = "invalid operator '==' (use '=' instead)"
        raise ValidationError(msg)
    if not any(op in text for op in _OPERATORS) and " AND " not in text and " OR " not in text:
        msg = "invalid filter syntax"
        raise ValidationError(msg)


def derive_query_name(filter_text: str) -> str:
    """Default library name: the first meaningful line, truncated."""
    for line in filter_text.split("\n"):
        line = line.strip()  # noqa: PLW2901
        if not line or line.startswith(_COMMENT_PREFIXES):
            continue
        if len(line) > _QUERY_NAME_MAX:
            line = line[:_QUERY_NAME_MAX] + "..."  # noqa: PLW2901
        return line
    return "Saved query"


def find_matches(entries: list[LogEntry], term: str) -> list[int]:
    """Indices of entries whose message or payload contains the term (case-insensitive)."""
    needle = term.strip().lower()
    if not needle:
        return []
    return [
        i
        for i, entry in enumerate(entries)
        if needle in entry.message.lower() or needle in entry.payload_text.lower()
    ]
