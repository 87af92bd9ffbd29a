"""Tests for the gcloud backend."""

from __future__ import annotations

import json
import subprocess
from datetime import UTC, datetime
from pathlib import Path
from unittest.mock import patch

import pytest

from logscout.errors import FetchError
from logscout.gcloud import GcloudBackend, detect_default_project, parse_entries, parse_entry

SAMPLE = [
    {
        "insertId": "abc123",
        "logName": "projects/p1/logs/app",
        "timestamp": "2024-01-15T10:30:00.123456789Z",
        "receiveTimestamp": "2024-01-15T10:30:01Z",
        "severity": "ERROR",
        "jsonPayload": {"message": "connection refused", "port": 5432},
        "labels": {"env": "prod", "replicas": 3},
        "resource": {"type": "k8s_container", "labels": {"cluster_name": "main"}},
        "sourceLocation": {"file": "db.py", "line": "42", "function": "connect"},
        "trace": "projects/p1/traces/t1",
        "spanId": "s1",
    },
    {
        "receiveTimestamp": "2024-01-15T10:29:00Z",
        "textPayload": "plain text line",
    },
    {"severity": "INFO", "textPayload": "no timestamp"},
]


def _completed(stdout: str = "", stderr: str = "", returncode: int = 0) -> subprocess.CompletedProcess[str]:
    return subprocess.CompletedProcess(args=[], returncode=returncode, stdout=stdout, stderr=stderr)


class TestParseEntry:
    def test_structured_entry(self) -> None:
        entry = parse_entry(SAMPLE[0])
        assert entry is not None
        assert entry.timestamp == datetime(2024, 1, 15, 10, 30, 0, 123456, tzinfo=UTC)
        assert entry.severity == "ERROR"
        assert entry.message == "connection refused"
        assert entry.insert_id == "abc123"
        assert entry.labels == {"env": "prod"}
        assert entry.resource.type == "k8s_container"
        assert entry.resource.labels == {"cluster_name": "main"}
        assert entry.source_location is not None
        assert entry.source_location.line == 42
        assert entry.json_payload == {"message": "connection refused", "port": 5432}

    def test_text_entry_uses_receive_timestamp(self) -> None:
        entry = parse_entry(SAMPLE[1])
        assert entry is not None
        assert entry.timestamp == datetime(2024, 1, 15, 10, 29, tzinfo=UTC)
        assert entry.severity == "DEFAULT"
        assert entry.message == "plain text line"
        assert entry.text_payload == "plain text line"

    def test_missing_or_bad_timestamp(self) -> None:
        assert parse_entry(SAMPLE[2]) is None
        assert parse_entry({"timestamp": "yesterday-ish"}) is None


class TestParseEntries:
    def test_drops_unusable_entries(self) -> None:
        entries = parse_entries(json.dumps(SAMPLE))
        assert [e.message for e in entries] == ["connection refused", "plain text line"]

    def test_blank_output(self) -> None:
        assert parse_entries("  \n") == []

    def test_invalid_json(self) -> None:
        with pytest.raises(FetchError, match="Failed to parse gcloud output"):
            parse_entries("{not json")

    def test_not_an_array(self) -> None:
        with pytest.raises(FetchError, match="expected a JSON array"):
            parse_entries('{"entries": []}')


class TestGcloudBackend:
    def test_fetch_arguments(self) -> None:
        backend = GcloudBackend("p1", page_size=50, timeout=10)
        with patch("logscout.gcloud.subprocess.run", return_value=_completed(json.dumps(SAMPLE[:1]))) as run:
            entries = backend.fetch("severity=ERROR")

        assert len(entries) == 1
        args = run.call_args.args[0]
        assert args == [
            "gcloud",
            "logging",
            "read",
            "severity=ERROR",
            "--project=p1",
            "--limit=50",
            "--format=json",
            "--order=desc",
        ]
        assert run.call_args.kwargs["timeout"] == 10

    def test_fetch_without_project(self) -> None:
        with patch("logscout.gcloud.subprocess.run", return_value=_completed("[]")) as run:
            assert GcloudBackend().fetch("") == []
        assert not any(arg.startswith("--project") for arg in run.call_args.args[0])

    def test_nonzero_exit_uses_last_stderr_line(self) -> None:
        stderr = "WARNING: something\nERROR: (gcloud.logging.read) PERMISSION_DENIED\n"
        with (
            patch("logscout.gcloud.subprocess.run", return_value=_completed(stderr=stderr, returncode=1)),
            pytest.raises(FetchError, match=r"gcloud failed: ERROR: \(gcloud.logging.read\) PERMISSION_DENIED"),
        ):
            GcloudBackend("p1").fetch("a=1")

    def test_nonzero_exit_without_stderr(self) -> None:
        with (
            patch("logscout.gcloud.subprocess.run", return_value=_completed(returncode=2)),
            pytest.raises(FetchError, match="exit status 2"),
        ):
            GcloudBackend("p1").fetch("a=1")

    def test_missing_executable(self) -> None:
        with (
            patch("logscout.gcloud.subprocess.run", side_effect=FileNotFoundError),
            pytest.raises(FetchError, match="gcloud not found"),
        ):
            GcloudBackend("p1").fetch("a=1")

    def test_timeout(self) -> None:
        with (
            patch("logscout.gcloud.subprocess.run", side_effect=subprocess.TimeoutExpired("gcloud", 5)),
            pytest.raises(FetchError, match="timed out after 5s"),
        ):
            GcloudBackend("p1", timeout=5).fetch("a=1")

    def test_list_projects(self) -> None:
        with patch("logscout.gcloud.subprocess.run", return_value=_completed("beta\nalpha\n\nbeta\n")) as run:
            assert GcloudBackend().list_projects() == ["alpha", "beta"]
        assert run.call_args.args[0] == ["gcloud", "projects", "list", "--format=value(projectId)"]


class TestDetectDefaultProject:
    def test_environment_wins(self, tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> None:
        monkeypatch.setenv("CLOUDSDK_CONFIG", str(tmp_path))
        monkeypatch.delenv("GOOGLE_CLOUD_PROJECT", raising=False)
        monkeypatch.setenv("CLOUDSDK_CORE_PROJECT", "from-env")
        assert detect_default_project() == "from-env"

    def test_active_configuration(self, tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> None:
        for var in ("GOOGLE_CLOUD_PROJECT", "CLOUDSDK_CORE_PROJECT"):
            monkeypatch.delenv(var, raising=False)
        monkeypatch.setenv("CLOUDSDK_CONFIG", str(tmp_path))
        (tmp_path / "active_config").write_text("work\n")
        (tmp_path / "configurations").mkdir()
        (tmp_path / "configurations" / "config_work").write_text("[core]\nproject = work-project\n")
        assert detect_default_project() == "work-project"

    def test_nothing_configured(self, tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> None:
        for var in ("GOOGLE_CLOUD_PROJECT", "CLOUDSDK_CORE_PROJECT"):
            monkeypatch.delenv(var, raising=False)
        monkeypatch.setenv("CLOUDSDK_CONFIG", str(tmp_path))
        assert detect_default_project() == ""
