"""Everit Timetracker API integration."""

from toggl_jira_sync.timetracker.client import TimetrackerClient
from toggl_jira_sync.timetracker.models import TimetrackerTag, TimetrackerWorkLog

__all__ = ["TimetrackerClient", "TimetrackerTag", "TimetrackerWorkLog"]
