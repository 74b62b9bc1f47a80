"""Jira Cloud REST API client."""

import logging
from typing import Any

import httpx

from toggl_jira_sync.errors import PartialResolutionFailure, TransportFailure, raise_for_status
from toggl_jira_sync.jira.models import JiraWorkLog
from toggl_jira_sync.utils.confirmation import create_confirming_client

logger = logging.getLogger(__name__)

SEARCH_BATCH_SIZE = 50


class JiraClient:
    """Client for the Jira Cloud REST API (v3)."""

    def __init__(
        self,
        domain: str,
        email: str,
        api_token: str,
        confirm: bool = False,
        transport: httpx.BaseTransport | None = None,
    ) -> None:
        """Initialize Jira client.

        Args:
            domain: Jira site, e.g. ``mycompany.atlassian.net``.
            email: Account email used for basic auth.
            api_token: Jira API token.
            confirm: If True, prompt for confirmation before write calls.
            transport: Optional httpx transport, mainly for tests.
        """
        if not (domain and email and api_token):
            raise ValueError("Jira domain, email and API token are required")

        base_url = domain if domain.startswith("http") else f"https://{domain}"
        client_kwargs: dict[str, Any] = {
            "base_url": f"{base_url.rstrip('/')}/rest/api/3",
            "auth": (email, api_token),
            "headers": {"Accept": "application/json", "Content-Type": "application/json"},
            "timeout": 30.0,
        }
        if confirm:
            self.client = create_confirming_client(transport=transport, **client_kwargs)
        else:
            self.client = httpx.Client(transport=transport, **client_kwargs)

    def get_issue(self, issue_key: str) -> dict[str, Any] | None:
        """Get an issue, or None if it does not exist.

        Raises:
            TransportFailure: For any error other than 404.
        """
        response = self.client.get(f"/issue/{issue_key}", params={"fields": "summary"})
        if response.status_code == 404:
            return None
        raise_for_status(response, f"fetch issue {issue_key}")
        return response.json()

    def bulk_fetch_issue_ids(self, issue_keys: list[str]) -> dict[str, str]:
        """Resolve issue keys to issue ids.

        Keys are searched in batches; a failing batch does not stop the others.
        Jira rejects the whole search with a 400 when one of the keys does
        not exist, so a rejected batch is split in halves and searched again
        until the unknown key is isolated.

        Args:
            issue_keys: Issue keys to resolve.

        Returns:
            Mapping of issue key to issue id. Unknown keys are absent.

        Raises:
            PartialResolutionFailure: If any batch failed. The ids resolved
                by the other batches are attached to the exception.
        """
        resolved: dict[str, str] = {}
        failures: list[str] = []

        for i in range(0, len(issue_keys), SEARCH_BATCH_SIZE):
            self._search_issue_ids(issue_keys[i:i + SEARCH_BATCH_SIZE], resolved, failures)

        if failures:
            raise PartialResolutionFailure(
                f"Resolved {len(resolved)} of {len(issue_keys)} issue ids: {'; '.join(failures)}",
                resolved=resolved,
            )
        return resolved

    def _search_issue_ids(self, keys: list[str], resolved: dict[str, str], failures: list[str]) -> None:
        """Search one batch of keys, adding found ids to ``resolved``.

        Errors are appended to ``failures`` instead of being raised.
        """
        try:
            response = self.client.get(
                "/search/jql",
                params={
                    "jql": f"key in ({','.join(keys)})",
                    "fields": "summary",
                    "maxResults": SEARCH_BATCH_SIZE,
                },
            )
            raise_for_status(response, "search issues")
        except TransportFailure as e:
            if e.status_code == 400 and len(keys) > 1:
                middle = len(keys) // 2
                self._search_issue_ids(keys[:middle], resolved, failures)
                self._search_issue_ids(keys[middle:], resolved, failures)
            elif e.status_code == 400:
                logger.warning(f"Issue {keys[0]} does not exist: {e}")
            else:
                logger.warning(f"Issue id lookup failed for {', '.join(keys)}: {e}")
                failures.append(str(e))
            return
        except httpx.HTTPError as e:
            logger.warning(f"Issue id lookup failed for {', '.join(keys)}: {e}")
            failures.append(str(e))
            return

        for issue in response.json().get("issues", []):
            resolved[issue["key"]] = str(issue["id"])

    def create_work_log(self, work_log: JiraWorkLog) -> dict[str, Any]:
        """Add a work log to an issue.

        Returns:
            The created work log, including its ``id``.

        Raises:
            TransportFailure: If the API answers with an error.
        """
        response = self.client.post(
            f"/issue/{work_log.issue_key}/worklog",
            json=work_log.to_api_dict(),
        )
        raise_for_status(response, f"create work log for {work_log.issue_key}")
        return response.json()

    def close(self) -> None:
        """Close the HTTP client."""
        self.client.close()

    def __enter__(self) -> "JiraClient":
        """Context manager entry."""
        return self

    def __exit__(self, *args: Any) -> None:
        """Context manager exit."""
        self.close()
