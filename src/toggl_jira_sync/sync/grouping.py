"""Grouping of normalized entries into work log candidates."""

from collections.abc import Iterable
from dataclasses import dataclass, field
import datetime

from toggl_jira_sync.sync.normalizer import NormalizedEntry

NO_DESCRIPTION = "(No description)"
NO_ISSUE = "NO_ISSUE"


@dataclass
class Group:
    """Entries sharing a grouping key, with their summed duration."""

    key: str
    issue_key: str | None = None
    description: str | None = None
    date: datetime.date | None = None
    entries: list[NormalizedEntry] = field(default_factory=list)
    total_seconds: int = 0

    def add(self, entry: NormalizedEntry) -> None:
        """Add an entry and its duration to the group."""
        self.entries.append(entry)
        self.total_seconds += entry.duration_seconds

    def sort_entries(self) -> None:
        """Order entries by start time. Ties keep their insertion order."""
        self.entries.sort(key=lambda e: e.start_time)

    @property
    def first_started_at(self) -> str:
        """Start of the earliest entry."""
        return self.entries[0].started_at

    @property
    def tags(self) -> tuple[str, ...]:
        """Tags of the earliest entry in the group."""
        return self.entries[0].tags if self.entries else ()


def issue_date_key(issue_key: str, day: datetime.date) -> str:
    """Group key for an issue on a calendar day."""
    return f"{issue_key}_{day.isoformat()}"


def group_by_date(entries: Iterable[NormalizedEntry], issue_key: str | None = None) -> dict[str, Group]:
    """Bucket entries per issue key and calendar date.

    Args:
        entries: Entries to group.
        issue_key: Use this key for every entry instead of the entry's own.

    Returns:
        Groups by ``"<issue key>_<YYYY-MM-DD>"``, each sorted by start time.
    """
    grouped: dict[str, Group] = {}

    for entry in entries:
        key_for_entry = issue_key or entry.issue_key
        day = entry.work_date
        group_key = issue_date_key(key_for_entry, day)

        if group_key not in grouped:
            grouped[group_key] = Group(key=group_key, issue_key=key_for_entry, date=day)
        grouped[group_key].add(entry)

    for group in grouped.values():
        group.sort_entries()

    return grouped


def group_by_issue_and_date(entries: Iterable[NormalizedEntry]) -> dict[str, Group]:
    """Group entries that reference an issue by issue key and date.

    Entries without an issue key are left out.
    """
    return group_by_date(entry for entry in entries if entry.issue_key)


def group_by_description(entries: Iterable[NormalizedEntry]) -> list[Group]:
    """Group entries by their description, in first seen order."""
    grouped: dict[str, Group] = {}

    for entry in entries:
        key = entry.description or NO_DESCRIPTION
        if key not in grouped:
            grouped[key] = Group(key=key, description=key)
        grouped[key].add(entry)

    return list(grouped.values())


def group_synced_by_issue(entries: Iterable[NormalizedEntry]) -> dict[str, Group]:
    """Group already synced entries by issue key for reporting."""
    grouped: dict[str, Group] = {}

    for entry in entries:
        key = entry.issue_key or NO_ISSUE
        if key not in grouped:
            grouped[key] = Group(key=key, issue_key=entry.issue_key)
        grouped[key].add(entry)

    return grouped


def assign_issue(groups: Iterable[Group], issue_key: str) -> dict[str, Group]:
    """Re-bucket the entries of description groups under an issue key."""
    return group_by_date(
        (entry for group in groups for entry in group.entries),
        issue_key=issue_key,
    )
