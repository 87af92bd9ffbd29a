"""Tests for the command line interface."""

from __future__ import annotations

from datetime import UTC, datetime
from typing import TYPE_CHECKING
from unittest.mock import patch

from typer.testing import CliRunner

from logscout.cli import app
from logscout.errors import FetchError
from logscout.models import HistoryRecord, LibraryRecord
from logscout.persistence import save_history_records, save_library_records

if TYPE_CHECKING:
    from pathlib import Path

    import pytest

runner = CliRunner()
NOW = datetime(2024, 1, 15, 10, 30, tzinfo=UTC)


def _config_dir(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setenv("LOGSCOUT_CONFIG_DIR", str(tmp_path))


class TestQueryCommands:
    def test_empty_history(self, tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> None:
        _config_dir(tmp_path, monkeypatch)
        result = runner.invoke(app, ["history"])
        assert result.exit_code == 0
        assert "No query history" in result.output

    def test_history_lists_recent_first(self, tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> None:
        _config_dir(tmp_path, monkeypatch)
        save_history_records(
            [
                HistoryRecord(filter="old=1", executed_at=NOW.replace(hour=8)),
                HistoryRecord(filter="severity=ERROR\nresource.type=gce", project="p1", executed_at=NOW),
            ]
        )
        result = runner.invoke(app, ["history", "-n", "1"])
        assert result.exit_code == 0
        assert "[p1] severity=ERROR resource.type=gce" in result.output
        assert "old=1" not in result.output

    def test_library(self, tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> None:
        _config_dir(tmp_path, monkeypatch)
        save_library_records([LibraryRecord(name="Errors", filter="severity=ERROR", project="prod", updated_at=NOW)])
        result = runner.invoke(app, ["library"])
        assert result.exit_code == 0
        assert "Errors [prod]" in result.output
        assert "severity=ERROR" in result.output

    def test_cache_clear(self, tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> None:
        _config_dir(tmp_path, monkeypatch)
        result = runner.invoke(app, ["cache-clear"])
        assert result.exit_code == 0
        assert "Cleared 0 cached queries" in result.output
        assert (tmp_path / "query_cache.json").read_text().strip() == "[]"

    def test_projects(self, tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> None:
        _config_dir(tmp_path, monkeypatch)
        with patch("logscout.commands.queries.GcloudBackend.list_projects", return_value=["alpha", "beta"]):
            result = runner.invoke(app, ["projects"])
        assert result.exit_code == 0
        assert result.output.split() == ["alpha", "beta"]

    def test_projects_failure(self, tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> None:
        _config_dir(tmp_path, monkeypatch)
        with patch(
            "logscout.commands.queries.GcloudBackend.list_projects", side_effect=FetchError("gcloud not found")
        ):
            result = runner.invoke(app, ["projects"])
        assert result.exit_code == 1
        assert "Error: gcloud not found" in result.output


class TestExploreArguments:
    def test_invalid_filter(self, tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> None:
        _config_dir(tmp_path, monkeypatch)
        result = runner.invoke(app, ["explore", "(severity=ERROR"])
        assert result.exit_code == 1
        assert "invalid filter" in result.output

    def test_unparseable_start(self, tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> None:
        _config_dir(tmp_path, monkeypatch)
        result = runner.invoke(app, ["explore", "--start", "qwerty-zzz"])
        assert result.exit_code == 1
        assert "Cannot parse time" in result.output

    def test_unknown_since(self, tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> None:
        _config_dir(tmp_path, monkeypatch)
        result = runner.invoke(app, ["explore", "--since", "2y"])
        assert result.exit_code != 0
