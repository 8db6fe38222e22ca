"""Tests for the spotsync CLI.

Test Strategy
-------------
- Commands run through typer's CliRunner against a temp project whose
  spotsync.yaml points at a writable dataset file
- The memory backend stands in for the remote database
- JSON output is parsed; table output is checked for key phrases
"""

from __future__ import annotations

import json
from pathlib import Path

import pytest
import yaml
from typer.testing import CliRunner

from spotsync import __version__
from spotsync.cli.main import app

runner = CliRunner()

pytestmark = pytest.mark.usefixtures("no_env_overrides")


@pytest.fixture
def project(dataset_file: Path) -> Path:
    """Project directory with a config pointing at the sample dataset."""
    config = {
        "sync": {"batch_delay_sec": 0},
        "storage": {"local": {"path": dataset_file.name, "read_only": False}},
    }
    (dataset_file.parent / "spotsync.yaml").write_text(
        yaml.safe_dump(config), encoding="utf-8"
    )
    return dataset_file.parent


def invoke(*args: str):
    return runner.invoke(app, ["--quiet", *args])


class TestGlobalOptions:
    """Tests for the main callback."""

    def test_version(self) -> None:
        """Test --version prints the package version."""
        result = runner.invoke(app, ["--version"])
        assert result.exit_code == 0
        assert __version__ in result.stdout

    def test_help_lists_commands(self) -> None:
        """Test every command is registered."""
        result = runner.invoke(app, ["--help"])
        assert result.exit_code == 0
        for name in ("migrate", "sync", "compare", "validate", "stats"):
            assert name in result.stdout


class TestStatsCommand:
    """Tests for 'spotsync stats'."""

    def test_json(self, project: Path) -> None:
        """Test statistics as JSON."""
        result = invoke("stats", "local", "-p", str(project), "-f", "json")

        assert result.exit_code == 0
        data = json.loads(result.stdout)
        assert data["total_tests"] == 5
        assert data["tests_by_type"] == {"general": 5}
        assert data["backend"] == "local"

    def test_table(self, project: Path) -> None:
        """Test statistics as a table."""
        result = invoke("stats", "local", "-p", str(project))
        assert result.exit_code == 0
        assert "Dataset Statistics" in result.stdout

    def test_bad_format(self, project: Path) -> None:
        """Test unknown output formats are rejected."""
        result = invoke("stats", "local", "-p", str(project), "-f", "xml")
        assert result.exit_code == 1
        assert "Unknown output format" in result.stdout


class TestValidateCommand:
    """Tests for 'spotsync validate'."""

    def test_clean_dataset(self, project: Path) -> None:
        """Test a clean dataset exits 0."""
        result = invoke("validate", "local", "-p", str(project))
        assert result.exit_code == 0
        assert "ready for transfer" in result.stdout

    def test_defective_dataset(self, project: Path, make_test_doc) -> None:
        """Test defects exit 1 and are listed in JSON."""
        broken = make_test_doc(1, rows=[])
        (project / "Db.json").write_text(
            json.dumps({"chemical_tests": [broken]}), encoding="utf-8"
        )

        result = invoke("validate", "local", "-p", str(project), "-f", "json")

        assert result.exit_code == 1
        data = json.loads(result.stdout)
        assert data["defects"] == ["Test missing color results: marquis-test-1"]
        assert data["audit"]["is_valid"] is True


class TestMigrateCommand:
    """Tests for 'spotsync migrate'."""

    def test_migrate_to_memory(self, project: Path) -> None:
        """Test a full migration reports every test."""
        result = invoke("migrate", "local", "memory", "-p", str(project), "-f", "json")

        assert result.exit_code == 0
        data = json.loads(result.stdout)
        assert data["success"] is True
        assert data["transferred"] == 5
        assert data["source_backend"] == "local"
        assert data["target_backend"] == "memory"

    def test_dry_run_table(self, project: Path) -> None:
        """Test dry run output."""
        result = invoke("migrate", "local", "memory", "-p", str(project), "--dry-run")
        assert result.exit_code == 0
        assert "Dry run completed" in result.stdout

    def test_empty_source_exits_1(self, project: Path) -> None:
        """Test an unsuccessful run exits 1."""
        result = invoke("migrate", "memory", "local", "-p", str(project))
        assert result.exit_code == 1
        assert "No tests found in source store" in result.stdout

    def test_remote_without_url(self, project: Path) -> None:
        """Test configuration errors are reported with fix hints."""
        result = invoke("migrate", "local", "remote", "-p", str(project))
        assert result.exit_code == 1
        assert "Migration failed" in result.stdout
        assert "SPOTSYNC_REMOTE_URL" in result.stdout

    def test_rejects_zero_batch_size(self, project: Path) -> None:
        """Test option bounds are enforced by the CLI."""
        result = invoke("migrate", "local", "memory", "-p", str(project), "-b", "0")
        assert result.exit_code != 0

    def test_rejects_zero_timeout(self, project: Path) -> None:
        """Test a zero per-call timeout is refused before any run starts."""
        result = invoke(
            "migrate", "local", "memory", "-p", str(project), "--timeout", "0"
        )
        assert result.exit_code == 2


class TestCompareAndSync:
    """Tests for 'spotsync compare' and 'spotsync sync'."""

    def test_compare_json(self, project: Path) -> None:
        """Test the comparison lists tests missing from the other side."""
        result = invoke("compare", "local", "memory", "-p", str(project), "-f", "json")

        assert result.exit_code == 0
        data = json.loads(result.stdout)
        assert len(data["only_in_a"]) == 5
        assert data["only_in_b"] == []
        assert data["is_in_sync"] is False

    def test_sync(self, project: Path) -> None:
        """Test synchronizing into an empty store."""
        result = invoke("sync", "local", "memory", "-p", str(project))
        assert result.exit_code == 0
        assert "Synchronization completed: 5 tests synchronized" in result.stdout

    def test_sync_reverse_from_empty(self, project: Path) -> None:
        """Test reverse preparation from an empty store fails cleanly."""
        result = invoke(
            "sync", "local", "memory", "--reverse", "-p", str(project), "-f", "json"
        )

        assert result.exit_code == 1
        data = json.loads(result.stdout)
        assert data["errors"] == ["Source store is empty"]
