"""Utility modules for the synchronizer."""

from toggl_jira_sync.utils.logging import get_logger, setup_logging
from toggl_jira_sync.utils.storage import StorageManager

__all__ = ["get_logger", "setup_logging", "StorageManager"]
