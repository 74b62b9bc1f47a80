"""Sequential submission of work logs with per-item failure isolation."""

import logging
from abc import ABC, abstractmethod
from collections.abc import Callable, Iterable
from dataclasses import dataclass, field
from typing import Any
from zoneinfo import ZoneInfo

import httpx

from toggl_jira_sync.errors import PartialResolutionFailure, TransportFailure
from toggl_jira_sync.jira import JiraClient, JiraWorkLog
from toggl_jira_sync.sync.formatter import format_jira_work_log, format_timetracker_work_log
from toggl_jira_sync.sync.grouping import Group
from toggl_jira_sync.sync.normalizer import NormalizedEntry
from toggl_jira_sync.timetracker import TimetrackerClient, TimetrackerWorkLog

logger = logging.getLogger(__name__)


@dataclass
class PreparedWorkLog:
    """A payload together with the entries it covers."""

    payload: JiraWorkLog | TimetrackerWorkLog
    entries: list[NormalizedEntry]
    issue_key: str | None = None

    @property
    def label(self) -> str:
        """Issue key or description used in messages."""
        return self.issue_key or (self.entries[0].description if self.entries else None) or "(No description)"

    @property
    def total_seconds(self) -> int:
        """Summed duration of the covered entries."""
        return sum(entry.duration_seconds for entry in self.entries)


@dataclass
class SubmittedWorkLog:
    """A work log the target system accepted."""

    item: PreparedWorkLog
    work_log_id: str | None


@dataclass
class FailedWorkLog:
    """A work log that could not be created."""

    item: PreparedWorkLog
    error: str


@dataclass
class BatchResult:
    """Outcome of a batch. Every submitted item is in exactly one list."""

    successful: list[SubmittedWorkLog] = field(default_factory=list)
    failed: list[FailedWorkLog] = field(default_factory=list)

    def __str__(self) -> str:
        """String representation of results."""
        return f"Created: {len(self.successful)}, Failed: {len(self.failed)}"


SuccessCallback = Callable[[PreparedWorkLog, str | None], None]


class BatchCoordinator(ABC):
    """Submits prepared work logs one at a time.

    None of the downstream systems accept an idempotency key, so items are
    never sent concurrently and never retried within a batch.
    """

    @abstractmethod
    def _create(self, item: PreparedWorkLog) -> dict[str, Any]:
        """Create one work log downstream and return the response body."""

    def submit_all(
        self,
        items: Iterable[PreparedWorkLog],
        on_success: SuccessCallback | None = None,
    ) -> BatchResult:
        """Submit work logs in order, collecting successes and failures.

        A failed item is recorded and the next one is attempted. Exceptions
        raised by ``on_success`` are not caught: when a success cannot be
        recorded nothing further should be submitted.

        Args:
            items: Work logs to create.
            on_success: Called with each created item and its downstream id.

        Returns:
            Batch result.
        """
        result = BatchResult()

        for item in items:
            try:
                response = self._create(item)
            except Exception as e:
                logger.error(f"Failed to create work log for {item.label}: {e}")
                result.failed.append(FailedWorkLog(item=item, error=str(e)))
                continue

            work_log_id = response.get("id")
            work_log_id = str(work_log_id) if work_log_id is not None else None
            logger.info(f"Created work log {work_log_id} for {item.label}")
            result.successful.append(SubmittedWorkLog(item=item, work_log_id=work_log_id))

            if on_success is not None:
                on_success(item, work_log_id)

        logger.info(f"Batch complete: {result}")
        return result


class JiraCoordinator(BatchCoordinator):
    """Creates one Jira work log per issue/date group."""

    def __init__(self, client: JiraClient) -> None:
        """Initialize with the Jira client work logs are created with."""
        self.client = client

    def prepare(self, groups: Iterable[Group]) -> list[PreparedWorkLog]:
        """Build one work log per issue/date group."""
        return [
            PreparedWorkLog(
                payload=format_jira_work_log(group),
                entries=list(group.entries),
                issue_key=group.issue_key,
            )
            for group in groups
        ]

    def _create(self, item: PreparedWorkLog) -> dict[str, Any]:
        """Send the payload to the client."""
        return self.client.create_work_log(item.payload)


class TimetrackerCoordinator(BatchCoordinator):
    """Creates one Timetracker worklog per entry.

    Tag ids and issue ids are cached for the lifetime of the coordinator,
    which is one sync run.
    """

    def __init__(
        self,
        client: TimetrackerClient,
        jira_client: JiraClient | None = None,
        tz: ZoneInfo | None = None,
    ) -> None:
        self.client = client
        self.jira_client = jira_client
        self.tz = tz
        self.tag_ids: dict[str, int | str] | None = None
        self.issue_ids: dict[str, str] = {}

    def load_tags(self) -> dict[str, int | str]:
        """Fetch the tag name to tag id mapping once per run."""
        if self.tag_ids is None:
            try:
                tags = self.client.list_tags()
            except (TransportFailure, httpx.HTTPError) as e:
                logger.warning(f"Failed to fetch worklog tags, sending worklogs without tags: {e}")
                tags = []
            self.tag_ids = {tag.name.lower(): tag.id for tag in tags}
            logger.debug(f"Loaded {len(self.tag_ids)} worklog tags")
        return self.tag_ids

    def tag_ids_for(self, tags: Iterable[str]) -> list[int | str]:
        """Map tag names to tag ids, dropping names Timetracker does not know."""
        tags = list(tags)
        if not tags:
            return []
        known = self.load_tags()
        ids = []
        for name in tags:
            tag_id = known.get(name.lower())
            if tag_id is None:
                logger.warning(f"No Timetracker tag named '{name}'")
                continue
            ids.append(tag_id)
        return ids

    def prefetch_issue_ids(self, entries: Iterable[NormalizedEntry]) -> dict[str, str]:
        """Resolve the issue ids of every distinct issue key up front.

        Lookup failures are logged; keys that could not be resolved stay
        unresolved and their worklogs are sent without an issue id.

        Returns:
            Ids for the requested keys that are known after the lookup.
        """
        keys = list(dict.fromkeys(entry.issue_key for entry in entries if entry.issue_key))
        missing = [key for key in keys if key not in self.issue_ids]

        if missing and self.jira_client is None:
            logger.warning("No Jira client configured, issue ids cannot be resolved")
        elif missing:
            try:
                self.issue_ids.update(self.jira_client.bulk_fetch_issue_ids(missing))
            except PartialResolutionFailure as e:
                logger.warning(f"Some issue ids could not be resolved: {e}")
                self.issue_ids.update(e.resolved)
            except (TransportFailure, httpx.HTTPError) as e:
                logger.warning(f"Failed to fetch issue ids from Jira: {e}")

        unresolved = [key for key in keys if key not in self.issue_ids]
        if unresolved:
            logger.warning(f"Unresolved issue keys: {', '.join(unresolved)}")

        return {key: self.issue_ids[key] for key in keys if key in self.issue_ids}

    def prepare(self, entries: Iterable[NormalizedEntry]) -> list[PreparedWorkLog]:
        """Build one worklog per entry from the cached tag and issue ids."""
        prepared = []
        for entry in entries:
            issue_id = self.issue_ids.get(entry.issue_key) if entry.issue_key else None
            payload = format_timetracker_work_log(
                entry,
                tag_ids=self.tag_ids_for(entry.tags),
                issue_id=issue_id,
                tz=self.tz,
            )
            prepared.append(PreparedWorkLog(payload=payload, entries=[entry], issue_key=entry.issue_key))
        return prepared

    def _create(self, item: PreparedWorkLog) -> dict[str, Any]:
        """Send the payload to the client."""
        return self.client.create_work_log(item.payload)
