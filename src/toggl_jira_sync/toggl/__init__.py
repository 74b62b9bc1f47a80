"""Toggl Track API integration."""

from toggl_jira_sync.toggl.client import TogglClient
from toggl_jira_sync.toggl.models import TogglTimeEntry

__all__ = ["TogglClient", "TogglTimeEntry"]
