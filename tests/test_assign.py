"""Tests for interactive issue assignment."""

from unittest.mock import MagicMock, patch

import pytest
from rich.console import Console

from toggl_jira_sync.errors import TransportFailure
from toggl_jira_sync.sync.assign import IssueAssigner
from toggl_jira_sync.sync.grouping import group_by_description


@pytest.fixture
def groups(make_entry) -> list:
    """Two description groups without issue keys."""
    return group_by_description([
        make_entry(1, "standup", "2024-01-15T09:00:00+00:00", 900),
        make_entry(2, "lunch", "2024-01-15T12:00:00+00:00", 1800),
    ])


class TestIssueAssigner:
    """Test prompting for issue keys."""

    def _assigner(self, jira: MagicMock | None = None) -> IssueAssigner:
        """Build an assigner with a silent console."""
        return IssueAssigner(jira, console=Console(quiet=True))

    def test_no_groups(self) -> None:
        """Test that nothing is asked without groups."""
        with patch("toggl_jira_sync.sync.assign.Prompt.ask") as ask:
            assert self._assigner()([]) == {}
        ask.assert_not_called()

    def test_declined(self, groups: list) -> None:
        """Test that declining assigns nothing."""
        with patch("toggl_jira_sync.sync.assign.Prompt.ask", return_value="n"):
            assert self._assigner()(groups) == {}

    def test_assign_and_skip(self, groups: list) -> None:
        """Test that keys are upper-cased and an empty answer skips."""
        answers = ["y", "ab-12", ""]
        with patch("toggl_jira_sync.sync.assign.Prompt.ask", side_effect=answers):
            assert self._assigner()(groups) == {"standup": "AB-12"}

    def test_reprompts_on_invalid_key(self, groups: list) -> None:
        """Test that a malformed key is asked again."""
        answers = ["y", "not a key", "AB-12", "CD-1"]
        with patch("toggl_jira_sync.sync.assign.Prompt.ask", side_effect=answers):
            assert self._assigner()(groups) == {"standup": "AB-12", "lunch": "CD-1"}

    def test_checks_issue_exists(self, groups: list) -> None:
        """Test that an unknown issue is asked again."""
        jira = MagicMock()
        jira.get_issue.side_effect = [None, {"fields": {"summary": "Meetings"}}, {"fields": {"summary": "Misc"}}]
        answers = ["y", "AB-999", "AB-12", "CD-1"]

        with patch("toggl_jira_sync.sync.assign.Prompt.ask", side_effect=answers):
            assert self._assigner(jira)(groups) == {"standup": "AB-12", "lunch": "CD-1"}
        assert [c.args[0] for c in jira.get_issue.call_args_list] == ["AB-999", "AB-12", "CD-1"]

    def test_lookup_failure_accepts_key(self, groups: list) -> None:
        """Test that a failed lookup does not block the assignment."""
        jira = MagicMock()
        jira.get_issue.side_effect = TransportFailure("Failed to fetch issue AB-12: 503 - down")

        with patch("toggl_jira_sync.sync.assign.Prompt.ask", side_effect=["y", "AB-12", "AB-12"]):
            assert self._assigner(jira)(groups) == {"standup": "AB-12", "lunch": "AB-12"}
