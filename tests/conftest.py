"""Pytest configuration and fixtures."""

import tempfile
from collections.abc import Callable
from pathlib import Path
from typing import Any
from unittest.mock import MagicMock

import pytest

from toggl_jira_sync.config import Config
from toggl_jira_sync.sync.ledger import SyncLedger
from toggl_jira_sync.sync.normalizer import NormalizedEntry, parse_time_entry
from toggl_jira_sync.toggl import TogglTimeEntry
from toggl_jira_sync.utils import StorageManager


@pytest.fixture
def make_raw_entry() -> Callable[..., TogglTimeEntry]:
    """Factory for raw Toggl entries."""

    def _make(
        entry_id: int,
        description: str | None,
        start: str,
        duration: int = 600,
        tags: list[str] | None = None,
    ) -> TogglTimeEntry:
        data: dict[str, Any] = {
            "id": entry_id,
            "description": description,
            "start": start,
            "duration": duration,
            "wid": 42,
        }
        if tags is not None:
            data["tags"] = tags
        return TogglTimeEntry(**data)

    return _make


@pytest.fixture
def make_entry(make_raw_entry: Callable[..., TogglTimeEntry]) -> Callable[..., NormalizedEntry]:
    """Factory for normalized entries, built through parse_time_entry."""

    def _make(
        entry_id: int,
        description: str | None,
        start: str,
        duration: int = 600,
        tags: list[str] | None = None,
    ) -> NormalizedEntry:
        return parse_time_entry(make_raw_entry(entry_id, description, start, duration, tags))

    return _make


@pytest.fixture
def temp_config_dir() -> Path:
    """Create a temporary configuration directory."""
    with tempfile.TemporaryDirectory() as tmpdir:
        yield Path(tmpdir)


@pytest.fixture
def storage_manager(temp_config_dir: Path) -> StorageManager:
    """Create a storage manager with temporary directory."""
    return StorageManager(temp_config_dir)


@pytest.fixture
def config(temp_config_dir: Path) -> Config:
    """Create a config instance with temporary directory and no environment."""
    return Config(temp_config_dir, environ={})


@pytest.fixture
def ledger(storage_manager: StorageManager) -> SyncLedger:
    """Create a ledger backed by a temporary history file."""
    return SyncLedger(storage_manager)


@pytest.fixture
def sample_raw_entries(make_raw_entry: Callable[..., TogglTimeEntry]) -> list[TogglTimeEntry]:
    """Raw entries covering issue, non-issue and tagless cases."""
    return [
        make_raw_entry(1, "AB-12: fix bug", "2024-01-15T09:00:00+00:00", 600, ["dev"]),
        make_raw_entry(2, "AB-12 review", "2024-01-15T11:00:00+00:00", 900, ["dev"]),
        make_raw_entry(3, "AB-12: fix bug", "2024-01-15T14:00:00+00:00", 1800, ["dev"]),
        make_raw_entry(4, "CD-7 planning", "2024-01-16T10:00:00+00:00", 3600, ["meeting"]),
        make_raw_entry(5, "misc work", "2024-01-16T13:00:00+00:00", 1200),
    ]


@pytest.fixture
def mock_toggl(sample_raw_entries: list[TogglTimeEntry]) -> MagicMock:
    """Create a mock Toggl client returning the sample entries."""
    client = MagicMock()
    client.get_time_entries.return_value = sample_raw_entries
    return client
