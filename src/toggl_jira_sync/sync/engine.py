"""Sync engine tying fetching, deduplication and submission together."""

import logging
from collections.abc import Callable
from dataclasses import dataclass, field
from datetime import datetime
from zoneinfo import ZoneInfo

from toggl_jira_sync.config import MODE_JIRA, MODE_TIMETRACKER
from toggl_jira_sync.errors import InvalidInput
from toggl_jira_sync.jira import JiraClient
from toggl_jira_sync.sync.batch import BatchResult, JiraCoordinator, PreparedWorkLog, TimetrackerCoordinator
from toggl_jira_sync.sync.grouping import (
    Group,
    assign_issue,
    group_by_description,
    group_by_issue_and_date,
    group_synced_by_issue,
)
from toggl_jira_sync.sync.ledger import SyncLedger
from toggl_jira_sync.sync.normalizer import NormalizedEntry, parse_time_entry
from toggl_jira_sync.sync.summary import Summary, prepare_summary
from toggl_jira_sync.timetracker import TimetrackerClient
from toggl_jira_sync.toggl import TogglClient

logger = logging.getLogger(__name__)

# Given the description groups without an issue key, return description -> issue key.
AssignCallback = Callable[[list[Group]], dict[str, str]]
# Given the summary and the number of work logs to create, return whether to go ahead.
ConfirmCallback = Callable[[Summary, int], bool]


@dataclass
class SyncPlan:
    """Fetched entries split and grouped, ready to be submitted."""

    entries: list[NormalizedEntry] = field(default_factory=list)
    synced: list[NormalizedEntry] = field(default_factory=list)
    unsynced: list[NormalizedEntry] = field(default_factory=list)
    running: list[NormalizedEntry] = field(default_factory=list)
    issue_groups: dict[str, Group] = field(default_factory=dict)
    non_issue_groups: list[Group] = field(default_factory=list)
    tagless_groups: list[Group] = field(default_factory=list)
    synced_groups: dict[str, Group] = field(default_factory=dict)
    running_groups: list[Group] = field(default_factory=list)
    summary: Summary = field(default_factory=Summary)

    def refresh_summary(self) -> Summary:
        """Rebuild the summary from the current groups."""
        self.summary = prepare_summary(
            self.issue_groups,
            self.non_issue_groups,
            self.tagless_groups,
            self.synced_groups,
            self.running_groups,
        )
        return self.summary

    def apply_assignments(self, assignments: dict[str, str]) -> int:
        """Move description groups under the issue keys the user picked.

        Returns:
            Number of entries that were assigned.
        """
        assigned = 0
        remaining = []
        for group in self.non_issue_groups:
            issue_key = assignments.get(group.key)
            if not issue_key:
                remaining.append(group)
                continue
            for key, new_group in assign_issue([group], issue_key).items():
                if key in self.issue_groups:
                    for entry in new_group.entries:
                        self.issue_groups[key].add(entry)
                    self.issue_groups[key].sort_entries()
                else:
                    self.issue_groups[key] = new_group
            assigned += len(group.entries)

        self.non_issue_groups = remaining
        self.refresh_summary()
        return assigned

    @property
    def pending_entries(self) -> list[NormalizedEntry]:
        """Entries of every issue group, in group order."""
        return [entry for group in self.issue_groups.values() for entry in group.entries]


class SyncResult:
    """Results from a sync run."""

    def __init__(self, mode: str, dry_run: bool = False) -> None:
        """Initialize sync result."""
        self.mode = mode
        self.dry_run = dry_run
        self.cancelled = False
        self.plan: SyncPlan | None = None
        self.batch: BatchResult | None = None
        self.errors: list[str] = []

    def add_failure(self, error: str) -> None:
        """Record a failed work log."""
        self.errors.append(error)

    @property
    def entries_found(self) -> int:
        """Entries fetched from Toggl."""
        return len(self.plan.entries) if self.plan else 0

    @property
    def entries_already_synced(self) -> int:
        """Fetched entries found in the sync history."""
        return len(self.plan.synced) if self.plan else 0

    @property
    def entries_running(self) -> int:
        """Fetched entries whose timer is still running."""
        return len(self.plan.running) if self.plan else 0

    @property
    def work_logs_created(self) -> int:
        """Work logs the target system accepted."""
        return len(self.batch.successful) if self.batch else 0

    @property
    def work_logs_failed(self) -> int:
        """Work logs that could not be created."""
        return len(self.batch.failed) if self.batch else 0

    @property
    def exit_code(self) -> int:
        """1 when any work log failed, else 0."""
        return 1 if self.errors or self.work_logs_failed else 0

    def __str__(self) -> str:
        """String representation of results."""
        return (
            f"Found: {self.entries_found}, "
            f"Already synced: {self.entries_already_synced}, "
            f"Created: {self.work_logs_created}, "
            f"Failed: {self.work_logs_failed}"
        )


class SyncEngine:
    """Runs one sync from Toggl into Jira or Timetracker."""

    def __init__(
        self,
        toggl_client: TogglClient,
        ledger: SyncLedger,
        jira_client: JiraClient | None = None,
        timetracker_client: TimetrackerClient | None = None,
        timetracker_timezone: ZoneInfo | None = None,
    ) -> None:
        """Initialize sync engine.

        Args:
            toggl_client: Source of time entries.
            ledger: Record of entries already synced.
            jira_client: Needed in Jira mode, and in Timetracker mode to
                resolve issue ids.
            timetracker_client: Needed in Timetracker mode.
            timetracker_timezone: Zone for Timetracker work dates.
        """
        self.toggl = toggl_client
        self.ledger = ledger
        self.jira = jira_client
        self.timetracker = timetracker_client
        self.timetracker_timezone = timetracker_timezone

    def plan(self, from_date: datetime, to_date: datetime) -> SyncPlan:
        """Fetch entries for the window and work out what still needs syncing.

        Raises:
            InvalidInput: If the window is reversed.
        """
        if from_date.date() > to_date.date():
            raise InvalidInput(f"Start date {from_date:%Y-%m-%d} is after end date {to_date:%Y-%m-%d}")

        logger.info(f"Fetching time entries from {from_date:%Y-%m-%d} to {to_date:%Y-%m-%d}")
        raw_entries = self.toggl.get_time_entries(from_date, to_date)
        logger.info(f"Found {len(raw_entries)} Toggl time entries")

        plan = SyncPlan(entries=[parse_time_entry(entry) for entry in raw_entries])
        plan.running = [entry for entry in plan.entries if entry.is_running]
        if plan.running:
            logger.info(f"{len(plan.running)} running timers will be synced once stopped")

        split = self.ledger.filter_unsynced(entry for entry in plan.entries if not entry.is_running)
        plan.synced = split.synced
        plan.unsynced = split.unsynced

        if plan.synced:
            logger.info(f"{len(plan.synced)} entries already synced and will be ignored")

        plan.issue_groups = group_by_issue_and_date(e for e in plan.unsynced if e.has_jira_issue)
        plan.non_issue_groups = group_by_description(e for e in plan.unsynced if not e.has_jira_issue)
        plan.tagless_groups = group_by_description(e for e in plan.unsynced if not e.has_tags)
        plan.synced_groups = group_synced_by_issue(plan.synced)
        plan.running_groups = group_by_description(plan.running)
        plan.refresh_summary()
        return plan

    def run(
        self,
        from_date: datetime,
        to_date: datetime,
        mode: str = MODE_TIMETRACKER,
        dry_run: bool = False,
        assign: AssignCallback | None = None,
        confirm: ConfirmCallback | None = None,
    ) -> SyncResult:
        """Synchronize entries in the window to the downstream system.

        Args:
            from_date: Start of the window.
            to_date: End of the window (inclusive).
            mode: ``"jira"`` or ``"timetracker"``.
            dry_run: If True, stop after planning.
            assign: Asks for issue keys for entries without one (Jira mode).
            confirm: Asks whether to create the planned work logs.

        Returns:
            Sync result. Entries committed to the ledger stay committed even
            when other work logs failed.
        """
        if mode not in (MODE_JIRA, MODE_TIMETRACKER):
            raise InvalidInput(f"Unknown sync mode: {mode}")
        if mode == MODE_JIRA and self.jira is None:
            raise InvalidInput("Jira mode needs a Jira client")
        if mode == MODE_TIMETRACKER and self.timetracker is None:
            raise InvalidInput("Timetracker mode needs a Timetracker client")

        result = SyncResult(mode=mode, dry_run=dry_run)
        plan = self.plan(from_date, to_date)
        result.plan = plan

        if mode == MODE_JIRA and assign is not None and plan.non_issue_groups and not dry_run:
            assignments = assign(plan.non_issue_groups)
            if assignments:
                count = plan.apply_assignments(assignments)
                logger.info(f"Assigned {count} entries to issues")

        if not plan.issue_groups:
            logger.info(f"No {mode} work logs to create")
            return result

        if dry_run:
            logger.info("Dry run mode - no work logs will be created")
            return result

        coordinator, items = self._prepare(plan, mode)

        if confirm is not None and not confirm(plan.summary, len(items)):
            logger.info("Sync cancelled by user")
            result.cancelled = True
            return result

        def commit(item: PreparedWorkLog, work_log_id: str | None) -> None:
            """Record the entries of a created work log."""
            self.ledger.mark_synced(item.entries, item.issue_key, work_log_id)

        result.batch = coordinator.submit_all(items, on_success=commit)
        for failure in result.batch.failed:
            result.add_failure(f"{failure.item.label}: {failure.error}")

        logger.info(f"Sync complete: {result}")
        return result

    def _prepare(
        self,
        plan: SyncPlan,
        mode: str,
    ) -> tuple[JiraCoordinator | TimetrackerCoordinator, list[PreparedWorkLog]]:
        """Build the coordinator for the mode and the work logs it will submit.

        In Timetracker mode issue ids and tags are fetched here, once per run.
        """
        if mode == MODE_JIRA:
            coordinator = JiraCoordinator(self.jira)
            return coordinator, coordinator.prepare(plan.issue_groups.values())

        coordinator = TimetrackerCoordinator(
            self.timetracker,
            jira_client=self.jira,
            tz=self.timetracker_timezone,
        )
        entries = plan.pending_entries
        coordinator.prefetch_issue_ids(entries)
        coordinator.load_tags()
        return coordinator, coordinator.prepare(entries)
