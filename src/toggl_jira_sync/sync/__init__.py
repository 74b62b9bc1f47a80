"""Grouping, deduplication and submission of work logs."""

from toggl_jira_sync.sync.batch import BatchResult, JiraCoordinator, PreparedWorkLog, TimetrackerCoordinator
from toggl_jira_sync.sync.engine import SyncEngine, SyncPlan, SyncResult
from toggl_jira_sync.sync.grouping import Group
from toggl_jira_sync.sync.ledger import SyncLedger, compute_identity
from toggl_jira_sync.sync.normalizer import NormalizedEntry, parse_time_entry

__all__ = [
    "BatchResult",
    "Group",
    "JiraCoordinator",
    "NormalizedEntry",
    "PreparedWorkLog",
    "SyncEngine",
    "SyncLedger",
    "SyncPlan",
    "SyncResult",
    "TimetrackerCoordinator",
    "compute_identity",
    "parse_time_entry",
]
