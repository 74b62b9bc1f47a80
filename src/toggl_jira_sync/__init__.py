"""Sync Toggl Track time entries to Jira or Timetracker work logs."""

__version__ = "0.3.0"
