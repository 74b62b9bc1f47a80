"""Tests for the command-line interface."""

from pathlib import Path
from unittest.mock import MagicMock, patch

import pytest
from typer.testing import CliRunner

from toggl_jira_sync import __version__
from toggl_jira_sync.cli import app
from toggl_jira_sync.config import ENV_OVERRIDES
from toggl_jira_sync.errors import TransportFailure
from toggl_jira_sync.sync import SyncLedger
from toggl_jira_sync.utils import StorageManager

runner = CliRunner()

JIRA_ENV = {
    "TOGGL_API_TOKEN": "toggl-token",
    "JIRA_API_TOKEN": "jira-token",
    "JIRA_EMAIL": "me@example.com",
    "JIRA_DOMAIN": "example.atlassian.net",
}


@pytest.fixture(autouse=True)
def clean_environment(monkeypatch: pytest.MonkeyPatch) -> None:
    """Keep credentials from the shell out of every test."""
    for variable in ENV_OVERRIDES.values():
        monkeypatch.delenv(variable, raising=False)


class TestVersion:
    """Test the version command."""

    def test_version(self) -> None:
        """Test that the package version is printed."""
        result = runner.invoke(app, ["version"])

        assert result.exit_code == 0
        assert __version__ in result.output


class TestHistory:
    """Test history commands."""

    def test_view_empty(self, temp_config_dir: Path) -> None:
        """Test the message for an empty history."""
        result = runner.invoke(app, ["history", "view", "--config-dir", str(temp_config_dir)])

        assert result.exit_code == 0
        assert "No sync history found" in result.output

    def test_view(self, temp_config_dir: Path, make_entry) -> None:
        """Test the history stats and table."""
        ledger = SyncLedger(StorageManager(temp_config_dir))
        ledger.mark_synced([make_entry(1, "AB-12 a", "2024-01-15T09:00:00+00:00", 3900)], "AB-12", 1)

        result = runner.invoke(app, ["history", "view", "--config-dir", str(temp_config_dir)])

        assert result.exit_code == 0
        assert "Total synced entries: 1" in result.output
        assert "1h 5m" in result.output
        assert "AB-12" in result.output

    def test_clear(self, temp_config_dir: Path, make_entry) -> None:
        """Test clearing without a prompt."""
        ledger = SyncLedger(StorageManager(temp_config_dir))
        ledger.mark_synced([make_entry(1, "AB-12 a", "2024-01-15T09:00:00+00:00")], "AB-12", 1)

        result = runner.invoke(app, ["history", "clear", "--yes", "--config-dir", str(temp_config_dir)])

        assert result.exit_code == 0
        assert ledger.records() == []

    def test_clear_cancelled(self, temp_config_dir: Path, make_entry) -> None:
        """Test that declining keeps the history."""
        ledger = SyncLedger(StorageManager(temp_config_dir))
        ledger.mark_synced([make_entry(1, "AB-12 a", "2024-01-15T09:00:00+00:00")], "AB-12", 1)

        result = runner.invoke(app, ["history", "clear", "--config-dir", str(temp_config_dir)], input="n\n")

        assert result.exit_code == 0
        assert "Clear cancelled" in result.output
        assert len(ledger.records()) == 1


class TestConfigCommand:
    """Test the config command."""

    def test_masks_tokens(self, temp_config_dir: Path) -> None:
        """Test that tokens are masked and missing settings listed."""
        result = runner.invoke(app, ["config", "--config-dir", str(temp_config_dir)], env=JIRA_ENV)

        assert result.exit_code == 0
        assert "jira-token" not in result.output
        assert "***oken" in result.output
        assert "jira mode configured" in result.output
        assert "TIMETRACKER_API_TOKEN" in result.output


class TestSync:
    """Test the sync command."""

    def test_invalid_date(self, temp_config_dir: Path) -> None:
        """Test that an unparseable date exits with 1."""
        result = runner.invoke(app, ["sync", "--from", "yesterday", "--config-dir", str(temp_config_dir)])

        assert result.exit_code == 1
        assert "Invalid start date" in result.output

    def test_days_out_of_range(self, temp_config_dir: Path) -> None:
        """Test that more than 365 days is rejected."""
        result = runner.invoke(app, ["sync", "--from", "400", "--config-dir", str(temp_config_dir)])

        assert result.exit_code == 1
        assert "Maximum is 365 days" in result.output

    def test_missing_configuration(self, temp_config_dir: Path) -> None:
        """Test that missing credentials are named."""
        result = runner.invoke(app, ["sync", "--config-dir", str(temp_config_dir)])

        assert result.exit_code == 1
        assert "TIMETRACKER_API_TOKEN" in result.output

    def test_dry_run(self, temp_config_dir: Path, mock_toggl: MagicMock) -> None:
        """Test that a dry run shows the summary and writes nothing."""
        with patch("toggl_jira_sync.cli.TogglClient", return_value=mock_toggl):
            result = runner.invoke(
                app,
                ["sync", "--jira", "--dry-run", "--from", "2024-01-15", "--to", "2024-01-16",
                 "--config-dir", str(temp_config_dir)],
                env=JIRA_ENV,
            )

        assert result.exit_code == 0
        assert "Found 5 time entries" in result.output
        assert "Work logs to be created" in result.output
        assert "Dry run mode" in result.output
        mock_toggl.close.assert_called_once()

    def test_jira_sync(self, temp_config_dir: Path, mock_toggl: MagicMock) -> None:
        """Test a full Jira sync and the recorded history."""
        jira = MagicMock()
        jira.create_work_log.return_value = {"id": "1"}

        with patch("toggl_jira_sync.cli.TogglClient", return_value=mock_toggl), \
                patch("toggl_jira_sync.cli.JiraClient", return_value=jira):
            result = runner.invoke(
                app,
                ["sync", "--jira", "--no-interactive", "--from", "2024-01-15", "--to", "2024-01-16",
                 "--config-dir", str(temp_config_dir)],
                env=JIRA_ENV,
            )

        assert result.exit_code == 0
        assert jira.create_work_log.call_count == 2
        assert "Successfully created 2 work log(s)" in result.output
        assert SyncLedger(StorageManager(temp_config_dir)).stats().total_entries == 4

    def test_failed_work_log_exit_code(self, temp_config_dir: Path, mock_toggl: MagicMock) -> None:
        """Test that a failed work log gives exit code 1."""
        jira = MagicMock()
        jira.create_work_log.side_effect = [{"id": "1"}, TransportFailure("Failed to create work log: 500 - x")]

        with patch("toggl_jira_sync.cli.TogglClient", return_value=mock_toggl), \
                patch("toggl_jira_sync.cli.JiraClient", return_value=jira):
            result = runner.invoke(
                app,
                ["sync", "--jira", "--no-interactive", "--from", "2024-01-15", "--to", "2024-01-16",
                 "--config-dir", str(temp_config_dir)],
                env=JIRA_ENV,
            )

        assert result.exit_code == 1
        assert "Failed to create 1 work log(s)" in result.output

    def test_running_timer_reported(self, temp_config_dir: Path, mock_toggl: MagicMock, make_raw_entry) -> None:
        """Test that a running timer is listed and not sent."""
        mock_toggl.get_time_entries.return_value = [
            make_raw_entry(1, "AB-12: fix bug", "2024-01-15T09:00:00+00:00", -1, ["dev"]),
        ]

        with patch("toggl_jira_sync.cli.TogglClient", return_value=mock_toggl):
            result = runner.invoke(
                app,
                ["sync", "--jira", "--dry-run", "--from", "2024-01-15", "--to", "2024-01-16",
                 "--config-dir", str(temp_config_dir)],
                env=JIRA_ENV,
            )

        assert result.exit_code == 0
        assert "1 running timer(s) skipped until stopped" in result.output
        assert "Running timers" in result.output
        assert "No jira work logs to create" in result.output
