"""Building of work log payloads and duration strings."""

import re
from collections.abc import Iterable
from datetime import timedelta, timezone, tzinfo

from toggl_jira_sync.jira.models import JiraWorkLog, TimeBreakdown
from toggl_jira_sync.sync.grouping import Group
from toggl_jira_sync.sync.normalizer import NormalizedEntry
from toggl_jira_sync.timetracker.models import TimetrackerWorkLog

_ISSUE_KEY_PREFIX = re.compile(r"\b[A-Z][A-Z0-9]+-\d+:?\s*")


def format_duration(seconds: int) -> str:
    """Format seconds as ``"2h 5m"``, or ``"55m"`` under an hour."""
    hours, remainder = divmod(int(seconds), 3600)
    minutes = remainder // 60
    if hours > 0:
        return f"{hours}h {minutes}m"
    return f"{minutes}m"


def remove_issue_key(description: str | None) -> str | None:
    """Strip issue keys such as ``"AB-12: "`` from a description."""
    if not description:
        return description
    return _ISSUE_KEY_PREFIX.sub("", description).strip()


def unique_descriptions(entries: Iterable[NormalizedEntry]) -> list[str]:
    """Descriptions without issue keys, deduplicated in order."""
    seen: dict[str, None] = {}
    for entry in entries:
        cleaned = remove_issue_key(entry.description)
        if cleaned:
            seen.setdefault(cleaned, None)
    return list(seen)


def time_breakdown(entries: Iterable[NormalizedEntry]) -> list[TimeBreakdown]:
    """Describe each entry as a UTC ``HH:MM-HH:MM`` range with its duration."""
    breakdown = []
    for entry in entries:
        start = entry.start_time.astimezone(timezone.utc)
        end = start + timedelta(seconds=entry.duration_seconds)
        breakdown.append(
            TimeBreakdown(
                time_range=f"{start:%H:%M}-{end:%H:%M}",
                duration=format_duration(entry.duration_seconds),
                description=entry.description or "(No description)",
            )
        )
    return breakdown


def format_jira_work_log(group: Group) -> JiraWorkLog:
    """Build the Jira work log for an issue/date group.

    The comment lists each distinct description once as a bullet.
    """
    comment = "".join(f"• {description}\n" for description in unique_descriptions(group.entries))

    return JiraWorkLog(
        issue_key=group.issue_key,
        work_date=group.date,
        started_at=group.first_started_at,
        time_spent_seconds=group.total_seconds,
        time_spent_formatted=format_duration(group.total_seconds),
        comment=comment,
        entry_count=len(group.entries),
        time_breakdown=time_breakdown(group.entries),
    )


def format_timetracker_work_log(
    entry: NormalizedEntry,
    tag_ids: list[int | str] | None = None,
    issue_id: str | None = None,
    tz: tzinfo | None = None,
) -> TimetrackerWorkLog:
    """Build the Timetracker worklog for a single entry.

    Args:
        entry: Entry to log.
        tag_ids: Worklog tag ids to attach.
        issue_id: Jira issue id the worklog belongs to, if resolved.
        tz: Zone used for the work date and start time. Defaults to local time.
    """
    cleaned = remove_issue_key(entry.description)
    start = entry.start_time.astimezone(tz)

    return TimetrackerWorkLog(
        description=f"• {cleaned}" if cleaned else entry.description,
        duration_in_seconds=entry.duration_seconds,
        is_billable=True,
        issue_id=issue_id,
        issue_key=entry.issue_key,
        work_date=start.strftime("%Y-%m-%d"),
        work_start_time=start.strftime("%H:%M"),
        worklog_tag_ids=list(tag_ids or []),
    )
