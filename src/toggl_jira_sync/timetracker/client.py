"""Everit Timetracker API client."""

import logging
from typing import Any

import httpx

from toggl_jira_sync.errors import raise_for_status
from toggl_jira_sync.timetracker.models import TimetrackerTag, TimetrackerWorkLog
from toggl_jira_sync.utils.confirmation import create_confirming_client

logger = logging.getLogger(__name__)


class TimetrackerClient:
    """Client for the Timetracker public API."""

    DEFAULT_API_URL = "https://jttp-cloud.everit.biz/timetracker/api/latest/public"

    def __init__(
        self,
        api_token: str,
        api_url: str | None = None,
        timezone: str = "UTC",
        confirm: bool = False,
        transport: httpx.BaseTransport | None = None,
    ) -> None:
        """Initialize Timetracker client.

        Args:
            api_token: Timetracker API token.
            api_url: Base URL of the public API.
            timezone: IANA zone sent with every request.
            confirm: If True, prompt for confirmation before write calls.
            transport: Optional httpx transport, mainly for tests.
        """
        if not api_token:
            raise ValueError("Timetracker API token not provided")

        client_kwargs: dict[str, Any] = {
            "base_url": api_url or self.DEFAULT_API_URL,
            "headers": {
                "Content-Type": "application/json",
                "x-everit-api-key": api_token,
                "x-requested-by": "toggl-jira-sync",
                "x-timezone": timezone,
            },
            "timeout": 30.0,
        }
        if confirm:
            self.client = create_confirming_client(transport=transport, **client_kwargs)
        else:
            self.client = httpx.Client(transport=transport, **client_kwargs)

    def list_tags(self) -> list[TimetrackerTag]:
        """List all worklog tags.

        Raises:
            TransportFailure: If the API answers with an error.
        """
        response = self.client.get("/tag")
        raise_for_status(response, "fetch worklog tags")
        return [TimetrackerTag(**item) for item in response.json().get("worklogTags", [])]

    def create_work_log(self, work_log: TimetrackerWorkLog) -> dict[str, Any]:
        """Create a worklog.

        Returns:
            The created worklog, including its ``id``.

        Raises:
            TransportFailure: If the API answers with an error.
        """
        response = self.client.post("/worklog", json=work_log.to_api_dict())
        raise_for_status(response, "create work log")
        return response.json()

    def close(self) -> None:
        """Close the HTTP client."""
        self.client.close()

    def __enter__(self) -> "TimetrackerClient":
        """Context manager entry."""
        return self

    def __exit__(self, *args: Any) -> None:
        """Context manager exit."""
        self.close()
