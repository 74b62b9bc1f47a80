"""Jira Cloud API integration."""

from toggl_jira_sync.jira.client import JiraClient
from toggl_jira_sync.jira.models import JiraWorkLog, TimeBreakdown

__all__ = ["JiraClient", "JiraWorkLog", "TimeBreakdown"]
