"""Google Cloud Logging access through the gcloud CLI."""

from __future__ import annotations

import configparser
import json
import logging
import os
import subprocess
from pathlib import Path
from typing import Any

from logscout.errors import FetchError
from logscout.models import LogEntry, Resource, SourceLocation
from logscout.utils import parse_timestamp

logger = logging.getLogger(__name__)

GCLOUD = "gcloud"
_PROJECT_ENV_VARS = ("GOOGLE_CLOUD_PROJECT", "CLOUDSDK_CORE_PROJECT")


def _run(args: list[str], timeout: float) -> str:
    """Run gcloud and return stdout, raising FetchError on any failure."""
    logger.debug("Running %s", " ".join(args[:3]))
    try:
        proc = subprocess.run(args, capture_output=True, text=True, timeout=timeout, check=False)  # noqa: S603
    except FileNotFoundError as exc:
        msg = f"{args[0]} not found; install the Google Cloud SDK"
        raise FetchError(msg) from exc
    except subprocess.TimeoutExpired as exc:
        msg = f"gcloud timed out after {timeout:g}s"
        raise FetchError(msg) from exc
    if proc.returncode != 0:
        detail = proc.stderr.strip().splitlines()
        msg = f"gcloud failed: {detail[-1] if detail else f'exit status {proc.returncode}'}"
        raise FetchError(msg)
    return proc.stdout


def _string_map(value: Any) -> dict[str, str]:
    if not isinstance(value, dict):
        return {}
    return {str(k): v for k, v in value.items() if isinstance(v, str)}


def _source_location(value: Any) -> SourceLocation | None:
    if not isinstance(value, dict):
        return None
    try:
        line = int(value.get("line", 0))
    except (TypeError, ValueError):
        line = 0
    return SourceLocation(file=str(value.get("file", "")), line=line, function=str(value.get("function", "")))


def _message(raw: dict[str, Any]) -> str:
    text = raw.get("textPayload")
    if isinstance(text, str) and text:
        return text
    payload = raw.get("jsonPayload")
    if isinstance(payload, dict):
        message = payload.get("message")
        if isinstance(message, str):
            return message
    return ""


def parse_entry(raw: dict[str, Any]) -> LogEntry | None:
    """Convert one entry of `gcloud logging read --format=json` output.

    Entries without a usable timestamp (or receive timestamp) are dropped.
    """
    stamp = raw.get("timestamp") or raw.get("receiveTimestamp")
    if not isinstance(stamp, str):
        return None
    try:
        timestamp = parse_timestamp(stamp)
    except ValueError:
        logger.debug("Skipping entry with bad timestamp %r", stamp)
        return None

    resource = raw.get("resource")
    json_payload = raw.get("jsonPayload")
    text_payload = raw.get("textPayload")
    return LogEntry(
        timestamp=timestamp,
        severity=str(raw.get("severity") or "DEFAULT"),
        message=_message(raw),
        insert_id=str(raw.get("insertId", "")),
        log_name=str(raw.get("logName", "")),
        labels=_string_map(raw.get("labels")),
        resource=Resource(
            type=str(resource.get("type", "")),
            labels=_string_map(resource.get("labels")),
        )
        if isinstance(resource, dict)
        else Resource(),
        source_location=_source_location(raw.get("sourceLocation")),
        trace=str(raw.get("trace", "")),
        span_id=str(raw.get("spanId", "")),
        json_payload=json_payload if isinstance(json_payload, dict) else None,
        text_payload=text_payload if isinstance(text_payload, str) else "",
    )


def parse_entries(output: str) -> list[LogEntry]:
    """Parse the JSON array printed by gcloud."""
    if not output.strip():
        return []
    try:
        data = json.loads(output)
    except json.JSONDecodeError as exc:
        msg = f"Failed to parse gcloud output: {exc}"
        raise FetchError(msg) from exc
    if not isinstance(data, list):
        msg = "Failed to parse gcloud output: expected a JSON array"
        raise FetchError(msg)
    entries = [parse_entry(item) for item in data if isinstance(item, dict)]
    return [entry for entry in entries if entry is not None]


class GcloudBackend:
    """Fetches pages of log entries, newest first, for one project."""

    def __init__(self, project: str = "", *, page_size: int = 100, timeout: float = 30, executable: str = GCLOUD) -> None:
        self.project = project
        self.page_size = page_size
        self.timeout = timeout
        self.executable = executable

    def fetch(self, filter_text: str) -> list[LogEntry]:
        args = [self.executable, "logging", "read", filter_text]
        if self.project:
            args.append(f"--project={self.project}")
        args += [f"--limit={self.page_size}", "--format=json", "--order=desc"]
        entries = parse_entries(_run(args, self.timeout))
        logger.debug("Fetched %d entries for project %r", len(entries), self.project)
        return entries

    def list_projects(self) -> list[str]:
        """Project ids visible to the active gcloud account, sorted."""
        output = _run([self.executable, "projects", "list", "--format=value(projectId)"], self.timeout)
        return sorted({line.strip() for line in output.splitlines() if line.strip()})


def _gcloud_config_dir() -> Path:
    if override := os.environ.get("CLOUDSDK_CONFIG"):
        return Path(override)
    return Path.home() / ".config" / "gcloud"


def detect_default_project() -> str:
    """Project from the environment, else from the active gcloud configuration."""
    for var in _PROJECT_ENV_VARS:
        if value := os.environ.get(var, "").strip():
            return value

    config_dir = _gcloud_config_dir()
    active = "default"
    active_file = config_dir / "active_config"
    if active_file.exists():
        active = active_file.read_text().strip() or active
    for path in (config_dir / "configurations" / f"config_{active}", config_dir / "properties"):
        if not path.exists():
            continue
        parser = configparser.ConfigParser()
        try:
            parser.read(path)
        except configparser.Error as exc:
            logger.debug("Ignoring unreadable %s: %s", path, exc)
            continue
        if value := parser.get("core", "project", fallback="").strip():
            return value
    return ""
