"""Configuration management for the synchronizer."""

import os
from pathlib import Path
from typing import Any
from zoneinfo import ZoneInfo

from toggl_jira_sync.errors import ConfigError
from toggl_jira_sync.utils.storage import StorageManager

MODE_JIRA = "jira"
MODE_TIMETRACKER = "timetracker"

# (section, key) -> environment variable overriding it
ENV_OVERRIDES = {
    ("toggl", "api_token"): "TOGGL_API_TOKEN",
    ("toggl", "workspace_id"): "TOGGL_WORKSPACE_ID",
    ("toggl", "project_id"): "TOGGL_PROJECT_ID",
    ("jira", "api_token"): "JIRA_API_TOKEN",
    ("jira", "email"): "JIRA_EMAIL",
    ("jira", "domain"): "JIRA_DOMAIN",
    ("timetracker", "api_token"): "TIMETRACKER_API_TOKEN",
    ("timetracker", "api_url"): "TIMETRACKER_API_URL",
    ("timetracker", "timezone"): "TIMETRACKER_TIMEZONE",
}

REQUIRED_SETTINGS = {
    MODE_JIRA: [("toggl", "api_token"), ("jira", "api_token"), ("jira", "email"), ("jira", "domain")],
    MODE_TIMETRACKER: [("toggl", "api_token"), ("timetracker", "api_token")],
}


def mask(value: str | None) -> str:
    """Show only the last four characters of a secret."""
    if not value:
        return "Not set"
    return f"***{value[-4:]}"


class Config:
    """Settings from config.yaml, overridden by environment variables."""

    def __init__(self, config_dir: Path | None = None, environ: dict[str, str] | None = None) -> None:
        """Initialize configuration.

        Args:
            config_dir: Directory holding config.yaml and the sync history.
            environ: Environment to read overrides from. Defaults to os.environ.
        """
        self.storage = StorageManager(config_dir)
        self._settings: dict[str, dict[str, Any]] = self.storage.load_config()

        environ = os.environ if environ is None else environ
        for (section, key), variable in ENV_OVERRIDES.items():
            if environ.get(variable):
                values = self._settings.get(section) or {}
                values[key] = environ[variable]
                self._settings[section] = values

    def get(self, section: str, key: str, default: Any = None) -> Any:
        """Get a setting, treating empty values as unset."""
        value = (self._settings.get(section) or {}).get(key)
        return default if value in (None, "") else value

    def set(self, section: str, key: str, value: Any) -> None:
        """Update a setting and write config.yaml."""
        saved = self.storage.load_config()
        saved[section] = {**(saved.get(section) or {}), key: value}
        self.storage.save_config(saved)
        self._settings[section] = {**(self._settings.get(section) or {}), key: value}

    def missing(self, mode: str) -> list[str]:
        """Environment variable names of required settings that are unset."""
        return [
            ENV_OVERRIDES[(section, key)]
            for section, key in REQUIRED_SETTINGS[mode]
            if not self.get(section, key)
        ]

    def validate(self, mode: str) -> None:
        """Check that everything a sync in this mode needs is set.

        Raises:
            ConfigError: If the mode is unknown or settings are missing.
        """
        if mode not in REQUIRED_SETTINGS:
            raise ConfigError(f"Unknown sync mode: {mode}")

        missing = self.missing(mode)
        if missing:
            raise ConfigError(
                f"Missing configuration for {mode} mode: {', '.join(missing)}. "
                f"Set them in {self.storage.config_file} or as environment variables."
            )

    @property
    def has_jira(self) -> bool:
        """Whether Jira credentials are complete."""
        return all(self.get("jira", key) for key in ("api_token", "email", "domain"))

    @property
    def timetracker_timezone(self) -> ZoneInfo:
        """Zone used for Timetracker work dates."""
        return ZoneInfo(self.get("timetracker", "timezone", "UTC"))
