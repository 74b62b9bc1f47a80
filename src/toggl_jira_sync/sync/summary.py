"""Totals and rows for the sync summary shown to the user."""

from collections.abc import Iterable, Mapping
from dataclasses import dataclass, field

from toggl_jira_sync.jira.models import TimeBreakdown
from toggl_jira_sync.sync.formatter import format_duration, time_breakdown, unique_descriptions
from toggl_jira_sync.sync.grouping import Group


@dataclass
class WorkLogRow:
    """A work log that will be created."""

    issue_key: str
    date: str | None
    time_spent_seconds: int
    time_spent_formatted: str
    started_at: str
    entry_count: int
    tags: tuple[str, ...]
    time_breakdown: list[TimeBreakdown]


@dataclass
class DescriptionRow:
    """Entries sharing a description."""

    description: str
    total_seconds: int
    total_time: str
    entry_count: int


@dataclass
class SyncedRow:
    """Entries already recorded for an issue."""

    issue_key: str
    total_seconds: int
    time_formatted: str
    description: str
    entry_count: int


@dataclass
class SummaryTotals:
    """Per-category and grand totals."""

    jira_time_seconds: int = 0
    jira_time: str = "0m"
    non_jira_time_seconds: int = 0
    non_jira_time: str = "0m"
    entries_without_tags_time_seconds: int = 0
    entries_without_tags_time: str = "0m"
    already_synced_time_seconds: int = 0
    already_synced_time: str | None = None
    total_time_seconds: int = 0
    total_time: str = "0m"


@dataclass
class Summary:
    """Everything shown before the user confirms a sync."""

    work_logs: list[WorkLogRow] = field(default_factory=list)
    non_jira_entries: list[DescriptionRow] = field(default_factory=list)
    entries_without_tags: list[DescriptionRow] = field(default_factory=list)
    already_synced: list[SyncedRow] = field(default_factory=list)
    running_entries: list[DescriptionRow] = field(default_factory=list)
    totals: SummaryTotals = field(default_factory=SummaryTotals)


def _description_rows(groups: Iterable[Group]) -> list[DescriptionRow]:
    """Turn description groups into summary rows."""
    return [
        DescriptionRow(
            description=group.description or group.key,
            total_seconds=group.total_seconds,
            total_time=format_duration(group.total_seconds),
            entry_count=len(group.entries),
        )
        for group in groups
    ]


def prepare_summary(
    issue_groups: Mapping[str, Group],
    non_issue_groups: Iterable[Group] = (),
    tagless_groups: Iterable[Group] = (),
    synced_groups: Mapping[str, Group] | None = None,
    running_groups: Iterable[Group] = (),
) -> Summary:
    """Fold grouped entries into summary rows and totals.

    The grand total adds up the issue, non-issue, tagless and already synced
    time. Running timers are listed but not counted anywhere.

    Args:
        issue_groups: Pending groups by issue key and date.
        non_issue_groups: Pending groups without an issue key.
        tagless_groups: Pending entries without tags, grouped by description.
        synced_groups: Already synced entries grouped by issue key.
        running_groups: Entries whose timer is still running, by description.

    Returns:
        The summary. Calling this again on changed groups gives a fresh one.
    """
    non_issue_groups = list(non_issue_groups)
    tagless_groups = list(tagless_groups)
    synced_groups = synced_groups or {}

    work_logs = [
        WorkLogRow(
            issue_key=group.issue_key,
            date=group.date.isoformat() if group.date else None,
            time_spent_seconds=group.total_seconds,
            time_spent_formatted=format_duration(group.total_seconds),
            started_at=group.first_started_at,
            entry_count=len(group.entries),
            tags=group.tags,
            time_breakdown=time_breakdown(group.entries),
        )
        for group in issue_groups.values()
        if group.entries
    ]

    already_synced = [
        SyncedRow(
            issue_key=issue_key,
            total_seconds=group.total_seconds,
            time_formatted=format_duration(group.total_seconds),
            description="; ".join(unique_descriptions(group.entries)),
            entry_count=len(group.entries),
        )
        for issue_key, group in synced_groups.items()
    ]

    jira_seconds = sum(row.time_spent_seconds for row in work_logs)
    non_jira_seconds = sum(group.total_seconds for group in non_issue_groups)
    tagless_seconds = sum(group.total_seconds for group in tagless_groups)
    synced_seconds = sum(group.total_seconds for group in synced_groups.values())
    total_seconds = jira_seconds + non_jira_seconds + tagless_seconds + synced_seconds

    totals = SummaryTotals(
        jira_time_seconds=jira_seconds,
        jira_time=format_duration(jira_seconds),
        non_jira_time_seconds=non_jira_seconds,
        non_jira_time=format_duration(non_jira_seconds),
        entries_without_tags_time_seconds=tagless_seconds,
        entries_without_tags_time=format_duration(tagless_seconds),
        already_synced_time_seconds=synced_seconds,
        already_synced_time=format_duration(synced_seconds) if synced_seconds > 0 else None,
        total_time_seconds=total_seconds,
        total_time=format_duration(total_seconds),
    )

    return Summary(
        work_logs=work_logs,
        non_jira_entries=_description_rows(non_issue_groups),
        entries_without_tags=_description_rows(tagless_groups),
        already_synced=already_synced,
        running_entries=_description_rows(running_groups),
        totals=totals,
    )
