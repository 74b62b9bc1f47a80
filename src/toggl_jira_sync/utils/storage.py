"""File storage for configuration and sync history."""

import json
import os
import tempfile
from pathlib import Path
from typing import Any

import yaml

DEFAULT_CONFIG_DIR = Path.home() / ".toggl-jira-sync"


class StorageManager:
    """Manages the configuration file and the sync history file.

    Also serves as the file-backed ledger store: records are kept as a JSON
    list in ``sync_history.json`` and every write replaces the file atomically.
    """

    def __init__(self, config_dir: Path | None = None) -> None:
        """Initialize storage manager.

        Args:
            config_dir: Directory to store files in. Defaults to ~/.toggl-jira-sync/
        """
        self.config_dir = config_dir or DEFAULT_CONFIG_DIR
        self.config_dir.mkdir(parents=True, exist_ok=True)

        self.config_file = self.config_dir / "config.yaml"
        self.history_file = self.config_dir / "sync_history.json"

    def load_config(self) -> dict[str, Any]:
        """Load settings from config.yaml.

        Returns:
            Settings dictionary, empty if the file does not exist.
        """
        if self.config_file.exists():
            with open(self.config_file) as f:
                return yaml.safe_load(f) or {}
        return {}

    def save_config(self, config: dict[str, Any]) -> None:
        """Save settings to config.yaml with owner-only permissions."""
        with open(self.config_file, "w") as f:
            yaml.dump(config, f, default_flow_style=False, sort_keys=False)
        self.config_file.chmod(0o600)

    def read_all(self) -> list[dict[str, Any]]:
        """Read every ledger record.

        Returns:
            Records in the order they were appended.
        """
        if not self.history_file.exists():
            return []
        with open(self.history_file) as f:
            data = json.load(f)
        return data.get("entries", [])

    def append(self, records: list[dict[str, Any]]) -> None:
        """Append ledger records and persist them before returning."""
        if not records:
            return
        self._write_history(self.read_all() + records)

    def clear_all(self) -> None:
        """Remove every ledger record."""
        self._write_history([])

    def _write_history(self, records: list[dict[str, Any]]) -> None:
        """Replace the history file atomically with the given records."""
        fd, tmp_path = tempfile.mkstemp(dir=self.config_dir, prefix=".sync_history.", suffix=".tmp")
        try:
            with os.fdopen(fd, "w") as f:
                json.dump({"entries": records}, f, indent=2)
                f.flush()
                os.fsync(f.fileno())
            os.replace(tmp_path, self.history_file)
        except BaseException:
            Path(tmp_path).unlink(missing_ok=True)
            raise
        self._fsync_dir()

    def _fsync_dir(self) -> None:
        """Flush the directory entry so the rename survives a power loss."""
        dir_fd = os.open(self.config_dir, os.O_RDONLY)
        try:
            os.fsync(dir_fd)
        finally:
            os.close(dir_fd)
