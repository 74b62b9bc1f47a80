"""Conversion of raw Toggl entries into the shape the sync works with."""

import re
from dataclasses import dataclass, field
from datetime import date, datetime

from toggl_jira_sync.toggl.models import TogglTimeEntry

ISSUE_KEY_PATTERN = re.compile(r"\b([A-Z][A-Z0-9]+-\d+)\b")


@dataclass(frozen=True)
class NormalizedEntry:
    """A time entry with its issue reference extracted."""

    id: int | str
    description: str | None
    duration_seconds: int
    started_at: str
    issue_key: str | None = None
    has_jira_issue: bool = False
    has_tags: bool = False
    tags: tuple[str, ...] = field(default_factory=tuple)
    is_running: bool = False

    @property
    def start_time(self) -> datetime:
        """Start as an aware datetime."""
        return datetime.fromisoformat(self.started_at.replace("Z", "+00:00"))

    @property
    def work_date(self) -> date:
        """Calendar date the entry started on, in the offset it was recorded with."""
        return self.start_time.date()


def extract_issue_key(description: str | None) -> str | None:
    """Return the first issue key (e.g. ``AB-12``) found in a description."""
    if not description:
        return None
    match = ISSUE_KEY_PATTERN.search(description)
    return match.group(1) if match else None


def parse_time_entry(entry: TogglTimeEntry) -> NormalizedEntry:
    """Normalize a raw Toggl entry.

    Running timers report a negative duration. They count as zero and are
    flagged, since their duration is not final yet.
    """
    issue_key = extract_issue_key(entry.description)
    tags = tuple(entry.tags or ())

    return NormalizedEntry(
        id=entry.id,
        description=entry.description,
        duration_seconds=entry.duration if entry.duration > 0 else 0,
        started_at=entry.start,
        issue_key=issue_key,
        has_jira_issue=issue_key is not None,
        has_tags=len(tags) > 0,
        tags=tags,
        is_running=entry.is_running,
    )
