"""Interactive assignment of issue keys to entries that have none."""

import logging

from rich.console import Console
from rich.prompt import Prompt
from rich.table import Table

from toggl_jira_sync.errors import TransportFailure
from toggl_jira_sync.jira import JiraClient
from toggl_jira_sync.sync.formatter import format_duration
from toggl_jira_sync.sync.grouping import Group
from toggl_jira_sync.sync.normalizer import extract_issue_key

logger = logging.getLogger(__name__)
console = Console()


class IssueAssigner:
    """Asks the user which issue each description group belongs to."""

    def __init__(self, jira_client: JiraClient | None = None, console: Console = console) -> None:
        """Initialize assigner, checking keys against Jira when a client is given."""
        self.jira = jira_client
        self.console = console

    def __call__(self, groups: list[Group]) -> dict[str, str]:
        """Prompt for assignments; see prompt_for_assignments."""
        return self.prompt_for_assignments(groups)

    def prompt_for_assignments(self, groups: list[Group]) -> dict[str, str]:
        """Prompt for an issue key per group.

        Args:
            groups: Description groups without an issue key.

        Returns:
            Group key to issue key for the groups the user assigned.
        """
        if not groups:
            return {}

        table = Table(title="Entries without an issue key")
        table.add_column("#", style="cyan")
        table.add_column("Description", style="magenta")
        table.add_column("Time", style="green")
        table.add_column("Entries")
        for idx, group in enumerate(groups, 1):
            table.add_row(str(idx), group.key, format_duration(group.total_seconds), str(len(group.entries)))
        self.console.print(table)

        if Prompt.ask("Assign issue keys to these entries?", choices=["y", "n"], default="n") != "y":
            return {}

        assignments = {}
        for group in groups:
            issue_key = self._ask_issue_key(group)
            if issue_key:
                assignments[group.key] = issue_key
                logger.info(f"Assigned '{group.key}' to {issue_key}")

        return assignments

    def _ask_issue_key(self, group: Group) -> str | None:
        """Ask until a valid, existing issue key or an empty answer is given."""
        while True:
            answer = Prompt.ask(
                f"Issue key for [yellow]{group.key}[/yellow] ({format_duration(group.total_seconds)}), "
                "empty to skip",
                default="",
                show_default=False,
            ).strip().upper()
            if not answer:
                return None

            issue_key = extract_issue_key(answer)
            if issue_key != answer:
                self.console.print("[red]Not an issue key, expected something like ABC-123[/red]")
                continue

            if self.jira is None:
                return issue_key

            try:
                issue = self.jira.get_issue(issue_key)
            except TransportFailure as e:
                self.console.print(f"[yellow]Could not check {issue_key}: {e}[/yellow]")
                return issue_key

            if issue is None:
                self.console.print(f"[red]Issue {issue_key} not found[/red]")
                continue

            summary = issue.get("fields", {}).get("summary", "")
            self.console.print(f"[green]✓ {issue_key}: {summary}[/green]")
            return issue_key
