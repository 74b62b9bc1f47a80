"""Command-line interface for the Toggl to Jira/Timetracker synchronizer."""

import logging
import sys
from datetime import datetime
from pathlib import Path
from typing import Optional

import httpx
import typer
from rich.console import Console
from rich.prompt import Confirm
from rich.table import Table

from toggl_jira_sync import __version__
from toggl_jira_sync.config import MODE_JIRA, MODE_TIMETRACKER, Config, mask
from toggl_jira_sync.dates import parse_date_input
from toggl_jira_sync.errors import SyncError
from toggl_jira_sync.jira import JiraClient
from toggl_jira_sync.sync import SyncEngine, SyncLedger, SyncResult
from toggl_jira_sync.sync.assign import IssueAssigner
from toggl_jira_sync.sync.engine import ConfirmCallback
from toggl_jira_sync.sync.formatter import format_duration
from toggl_jira_sync.sync.summary import Summary
from toggl_jira_sync.timetracker import TimetrackerClient
from toggl_jira_sync.toggl import TogglClient
from toggl_jira_sync.utils import get_logger, setup_logging

app = typer.Typer(help="Sync time entries from Toggl Track to Timetracker (default) or Jira")
history_app = typer.Typer(help="Inspect or clear the sync history")
app.add_typer(history_app, name="history")

console = Console()
logger = get_logger(__name__)

CONFIG_DIR_OPTION = typer.Option(
    None,
    "--config-dir",
    help="Configuration directory. Defaults to ~/.toggl-jira-sync/",
)


def _truncate(text: str, width: int) -> str:
    """Shorten text to width, marking the cut with an ellipsis."""
    return text if len(text) <= width else text[: width - 3] + "..."


def display_summary(summary: Summary) -> None:
    """Render the sync summary as tables."""
    if summary.already_synced:
        table = Table(title="Already synced entries (ignored)", title_style="bold dim")
        table.add_column("Issue Key", style="dim")
        table.add_column("Time", style="dim")
        table.add_column("Description", style="dim")
        table.add_column("Entries", style="dim")
        for row in summary.already_synced:
            table.add_row(row.issue_key, row.time_formatted, _truncate(row.description, 50), str(row.entry_count))
        console.print(table)

    if summary.work_logs:
        table = Table(title="Work logs to be created", title_style="bold green")
        table.add_column("Issue Key", style="cyan")
        table.add_column("Date")
        table.add_column("Time", style="magenta")
        table.add_column("Entries")
        table.add_column("Tags")
        table.add_column("Preview")
        for row in summary.work_logs:
            tags = ", ".join(row.tags[:2]) + (f" +{len(row.tags) - 2}" if len(row.tags) > 2 else "")
            first = row.time_breakdown[0] if row.time_breakdown else None
            preview = f"{first.time_range} ({first.duration})" if first else ""
            if row.entry_count > 1:
                preview += f" +{row.entry_count - 1} more"
            table.add_row(
                row.issue_key,
                row.date or row.started_at[:10],
                row.time_spent_formatted,
                str(row.entry_count),
                tags,
                preview,
            )
        console.print(table)

    if summary.entries_without_tags:
        table = Table(title="Time entries without tags", title_style="bold red")
        table.add_column("Description")
        table.add_column("Total Time")
        table.add_column("Entries")
        for row in summary.entries_without_tags:
            table.add_row(_truncate(row.description, 60), row.total_time, str(row.entry_count))
        console.print(table)

    if summary.non_jira_entries:
        table = Table(title="Time entries without Jira issue keys", title_style="bold yellow")
        table.add_column("Description")
        table.add_column("Total Time")
        table.add_column("Entries")
        for row in summary.non_jira_entries:
            table.add_row(_truncate(row.description, 60), row.total_time, str(row.entry_count))
        console.print(table)

    if summary.running_entries:
        table = Table(title="Running timers (synced once stopped)", title_style="bold dim")
        table.add_column("Description", style="dim")
        table.add_column("Entries", style="dim")
        for row in summary.running_entries:
            table.add_row(_truncate(row.description, 60), str(row.entry_count))
        console.print(table)

    totals = summary.totals
    console.print("\n[bold]Totals:[/bold]")
    if totals.already_synced_time:
        console.print(f"  Already synced: [dim]{totals.already_synced_time}[/dim]")
    console.print(f"  Jira time (new): [green]{totals.jira_time}[/green]")
    console.print(f"  Non-Jira time: [yellow]{totals.non_jira_time}[/yellow]")
    console.print(f"  Without tags: [red]{totals.entries_without_tags_time}[/red]")
    console.print(f"  Total time: [cyan]{totals.total_time}[/cyan]")


def display_result(result: SyncResult) -> None:
    """Render the outcome of the submission."""
    if result.batch is None:
        return

    if result.batch.successful:
        console.print(f"[green]✓ Successfully created {len(result.batch.successful)} work log(s).[/green]")
        console.print("[dim]Sync history updated.[/dim]")

    if result.batch.failed:
        console.print(f"[red]✗ Failed to create {len(result.batch.failed)} work log(s):[/red]")
        for failure in result.batch.failed:
            console.print(f"[red]  - {failure.item.label}: {failure.error}[/red]")


def _resolve_date(value: str, label: str) -> datetime:
    """Resolve a --from/--to value, exiting with code 1 when it is not a date."""
    resolved = parse_date_input(value)
    if resolved is None:
        console.print(
            f"[red]Invalid {label} date '{value}'. "
            "Please use YYYY-MM-DD format or number of days ago (e.g., 7).[/red]"
        )
        raise typer.Exit(code=1)
    return resolved


def _confirm_creation(mode: str) -> ConfirmCallback:
    """Build the callback that shows the summary and asks before creating."""

    def confirm(summary: Summary, count: int) -> bool:
        """Show the summary and ask whether to create the work logs."""
        console.print("\n[bold]=== SUMMARY ===[/bold]")
        display_summary(summary)
        return Confirm.ask(f"\nCreate {count} work log(s) in {mode}?", default=False)

    return confirm


@app.command()
def sync(
    from_date: str = typer.Option(
        "0",
        "--from",
        "-f",
        help="Start date (YYYY-MM-DD or days ago, e.g., 7). Defaults to today.",
    ),
    to_date: str = typer.Option(
        "0",
        "--to",
        "-t",
        help="End date (YYYY-MM-DD or days ago, e.g., 3). Defaults to today.",
    ),
    dry_run: bool = typer.Option(
        False,
        "--dry-run",
        "-d",
        help="Show what would be synced without creating work logs.",
    ),
    jira: bool = typer.Option(
        False,
        "--jira",
        "-j",
        help="Create Jira work logs instead of Timetracker worklogs.",
    ),
    interactive: bool = typer.Option(
        True,
        "--interactive/--no-interactive",
        help="Prompt for issue keys of unassigned entries (Jira mode) and for confirmation.",
    ),
    confirm: bool = typer.Option(
        False,
        "--confirm",
        help="Print each write request and prompt for confirmation before sending.",
    ),
    verbose: bool = typer.Option(
        False,
        "--verbose",
        "-v",
        help="Enable verbose logging.",
    ),
    config_dir: Optional[Path] = CONFIG_DIR_OPTION,
) -> None:
    """Sync time entries to Timetracker (default) or Jira."""
    setup_logging(
        log_level=logging.DEBUG if verbose else logging.INFO,
        config_dir=config_dir,
    )
    logger.info(f"toggl-jira-sync v{__version__}")

    mode = MODE_JIRA if jira else MODE_TIMETRACKER

    try:
        start = _resolve_date(from_date, "start")
        end = _resolve_date(to_date, "end")

        config = Config(config_dir)
        config.validate(mode)

        toggl_client = TogglClient(
            api_token=config.get("toggl", "api_token"),
            workspace_id=config.get("toggl", "workspace_id"),
            project_id=config.get("toggl", "project_id"),
        )
        jira_client = None
        if config.has_jira:
            jira_client = JiraClient(
                domain=config.get("jira", "domain"),
                email=config.get("jira", "email"),
                api_token=config.get("jira", "api_token"),
                confirm=confirm,
            )
        timetracker_client = None
        if mode == MODE_TIMETRACKER:
            timetracker_client = TimetrackerClient(
                api_token=config.get("timetracker", "api_token"),
                api_url=config.get("timetracker", "api_url"),
                timezone=config.get("timetracker", "timezone", "UTC"),
                confirm=confirm,
            )

        engine = SyncEngine(
            toggl_client=toggl_client,
            ledger=SyncLedger(config.storage),
            jira_client=jira_client,
            timetracker_client=timetracker_client,
            timetracker_timezone=config.timetracker_timezone,
        )

        console.print(
            f"[cyan]Fetching time entries from {start:%Y-%m-%d} to {end:%Y-%m-%d} "
            f"using {mode} mode...[/cyan]"
        )

        try:
            result = engine.run(
                from_date=start,
                to_date=end,
                mode=mode,
                dry_run=dry_run,
                assign=IssueAssigner(jira_client) if interactive else None,
                confirm=_confirm_creation(mode) if interactive else None,
            )
        finally:
            toggl_client.close()
            if jira_client:
                jira_client.close()
            if timetracker_client:
                timetracker_client.close()

    except SyncError as e:
        console.print(f"[red]{e}[/red]")
        raise typer.Exit(code=1)
    except httpx.RequestError as e:
        logger.error(f"API request failed: {e}", exc_info=True)
        console.print(f"[red]Error: API request failed: {e}[/red]")
        raise typer.Exit(code=1)

    plan = result.plan
    if not plan.entries:
        console.print("[yellow]No time entries found for the specified period.[/yellow]")
        raise typer.Exit(code=0)

    console.print(f"[green]Found {len(plan.entries)} time entries.[/green]")
    if plan.synced:
        console.print(f"[dim]{len(plan.synced)} entries already synced and will be ignored.[/dim]")
    if plan.running:
        console.print(f"[dim]{len(plan.running)} running timer(s) skipped until stopped.[/dim]")

    if dry_run or not interactive or not plan.issue_groups:
        display_summary(plan.summary)

    if result.cancelled:
        console.print("[yellow]Sync cancelled.[/yellow]")
    elif not plan.issue_groups:
        console.print(f"\n[yellow]No {mode} work logs to create.[/yellow]")
    elif dry_run:
        console.print("\n[yellow]Dry run mode - no work logs will be created.[/yellow]")

    display_result(result)
    raise typer.Exit(code=result.exit_code)


@app.command("config")
def show_config(config_dir: Optional[Path] = CONFIG_DIR_OPTION) -> None:
    """Show the current configuration."""
    config = Config(config_dir)

    table = Table(title="Current configuration")
    table.add_column("Setting", style="cyan")
    table.add_column("Value", style="magenta")
    table.add_row("Toggl API token", mask(config.get("toggl", "api_token")))
    table.add_row("Toggl workspace ID", str(config.get("toggl", "workspace_id", "Not set")))
    table.add_row("Toggl project ID", str(config.get("toggl", "project_id", "Not set")))
    table.add_row("Timetracker API token", mask(config.get("timetracker", "api_token")))
    table.add_row("Timetracker API URL", config.get("timetracker", "api_url", TimetrackerClient.DEFAULT_API_URL))
    table.add_row("Timetracker timezone", config.get("timetracker", "timezone", "UTC"))
    table.add_row("Jira API token", mask(config.get("jira", "api_token")))
    table.add_row("Jira email", config.get("jira", "email", "Not set"))
    table.add_row("Jira domain", config.get("jira", "domain", "Not set"))
    console.print(table)

    console.print(f"\n[yellow]Settings are read from {config.storage.config_file}[/yellow]")
    console.print("Environment variables (TOGGL_API_TOKEN, JIRA_API_TOKEN, ...) override the file.")

    for mode in (MODE_TIMETRACKER, MODE_JIRA):
        missing = config.missing(mode)
        if missing:
            console.print(f"[yellow]✗ {mode} mode: missing {', '.join(missing)}[/yellow]")
        else:
            console.print(f"[green]✓ {mode} mode configured[/green]")


@history_app.command("view")
def history_view(config_dir: Optional[Path] = CONFIG_DIR_OPTION) -> None:
    """View sync history statistics."""
    stats = SyncLedger(Config(config_dir).storage).stats()

    if stats.total_entries == 0:
        console.print("[yellow]No sync history found.[/yellow]")
        return

    console.print("[cyan]Sync History Statistics:[/cyan]")
    console.print(f"  Total synced entries: {stats.total_entries}")
    console.print(f"  Total synced time: {format_duration(stats.total_seconds)}")
    console.print(f"  Unique Jira issues: {stats.unique_issues}")

    if stats.issues:
        console.print("\n[cyan]Synced issues:[/cyan]")
        for issue in stats.issues:
            console.print(f"  - {issue}")


@history_app.command("clear")
def history_clear(
    yes: bool = typer.Option(False, "--yes", "-y", help="Do not ask for confirmation."),
    config_dir: Optional[Path] = CONFIG_DIR_OPTION,
) -> None:
    """Clear all sync history."""
    setup_logging(config_dir=config_dir)

    if not yes and not Confirm.ask(
        "Are you sure you want to clear all sync history? This cannot be undone.",
        default=False,
    ):
        console.print("[yellow]Clear cancelled.[/yellow]")
        return

    SyncLedger(Config(config_dir).storage).clear()
    console.print("[green]Sync history cleared.[/green]")


@app.command()
def version() -> None:
    """Show version information."""
    console.print(f"toggl-jira-sync v{__version__}")


def main() -> None:
    """Main entry point."""
    try:
        app()
    except KeyboardInterrupt:
        console.print("\n[yellow]Interrupted by user[/yellow]")
        sys.exit(0)
    except Exception as e:
        logger.error(f"Unexpected error: {e}", exc_info=True)
        console.print(f"[red]Unexpected error: {e}[/red]")
        sys.exit(1)


if __name__ == "__main__":
    main()
