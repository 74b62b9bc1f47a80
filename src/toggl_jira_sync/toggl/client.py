"""Toggl Track API client."""

import logging
from datetime import datetime, time
from typing import Any

import httpx

from toggl_jira_sync.errors import raise_for_status
from toggl_jira_sync.toggl.models import TogglTimeEntry
from toggl_jira_sync.utils.confirmation import create_confirming_client

logger = logging.getLogger(__name__)


class TogglClient:
    """Client for the Toggl Track API."""

    BASE_URL = "https://api.track.toggl.com/api/v9"

    def __init__(
        self,
        api_token: str,
        workspace_id: int | str | None = None,
        project_id: int | str | None = None,
        confirm: bool = False,
        transport: httpx.BaseTransport | None = None,
    ) -> None:
        """Initialize Toggl client.

        Args:
            api_token: Toggl API token.
            workspace_id: Only keep entries from this workspace, if set.
            project_id: Only keep entries from this project, if set.
            confirm: If True, prompt for confirmation before write calls.
            transport: Optional httpx transport, mainly for tests.
        """
        if not api_token:
            raise ValueError("Toggl API token not provided")

        self.workspace_id = int(workspace_id) if workspace_id else None
        self.project_id = int(project_id) if project_id else None

        client_kwargs: dict[str, Any] = {
            "base_url": self.BASE_URL,
            "auth": (api_token, "api_token"),
            "headers": {"Content-Type": "application/json"},
            "timeout": 30.0,
        }
        if confirm:
            self.client = create_confirming_client(transport=transport, **client_kwargs)
        else:
            self.client = httpx.Client(transport=transport, **client_kwargs)

    def get_time_entries(self, start: datetime, end: datetime) -> list[TogglTimeEntry]:
        """Get time entries that started within a date window.

        Args:
            start: Start of the window. Only the date part is used.
            end: End of the window (inclusive). Only the date part is used.

        Returns:
            Time entries, filtered by the configured workspace and project.

        Raises:
            TransportFailure: If the API answers with an error.
            httpx.RequestError: If the request cannot be sent.
        """
        start_of_window = datetime.combine(start.date(), time.min)
        end_of_window = datetime.combine(end.date(), time.max.replace(microsecond=0))

        response = self.client.get(
            "/me/time_entries",
            params={
                "start_date": start_of_window.astimezone().isoformat(),
                "end_date": end_of_window.astimezone().isoformat(),
            },
        )
        raise_for_status(response, "fetch time entries")

        entries = []
        for item in response.json() or []:
            entry = TogglTimeEntry(**item)
            if self.workspace_id and entry.workspace_id != self.workspace_id:
                continue
            if self.project_id and entry.project_id != self.project_id:
                continue
            entries.append(entry)

        logger.debug(f"Fetched {len(entries)} Toggl entries between {start_of_window} and {end_of_window}")
        return entries

    def close(self) -> None:
        """Close the HTTP client."""
        self.client.close()

    def __enter__(self) -> "TogglClient":
        """Context manager entry."""
        return self

    def __exit__(self, *args: Any) -> None:
        """Context manager exit."""
        self.close()
