"""Persistent record of entries already written to a work log."""

import hashlib
import logging
from collections.abc import Iterable
from dataclasses import asdict, dataclass, field
from datetime import datetime, timezone
from typing import Any, Protocol

from toggl_jira_sync.sync.normalizer import NormalizedEntry

logger = logging.getLogger(__name__)


class LedgerStore(Protocol):
    """Durable storage for ledger records."""

    def read_all(self) -> list[dict[str, Any]]: ...

    def append(self, records: list[dict[str, Any]]) -> None: ...

    def clear_all(self) -> None: ...


@dataclass(frozen=True)
class LedgerRecord:
    """One entry that has been recorded downstream."""

    entry_identity: str
    issue_key: str | None
    work_log_id: str | None
    synced_at: str
    entry_id: int | str | None = None
    started_at: str | None = None
    duration_seconds: int = 0
    description: str | None = None

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "LedgerRecord":
        """Create a record from stored data, ignoring unknown fields."""
        known = {name: data[name] for name in cls.__dataclass_fields__ if name in data}
        return cls(**known)


@dataclass
class LedgerFilter:
    """Entries split by whether the ledger already has them."""

    synced: list[NormalizedEntry] = field(default_factory=list)
    unsynced: list[NormalizedEntry] = field(default_factory=list)


@dataclass
class LedgerStats:
    """Aggregate view over all ledger records."""

    total_entries: int
    total_seconds: int
    unique_issues: int
    issues: list[str]


def compute_identity(entry: NormalizedEntry) -> str:
    """Derive a stable identity for an entry.

    Uses the start timestamp with the issue key, or with the description
    when there is no issue key. Toggl ids are not used since a re-created
    entry gets a new one.
    """
    anchor = f"issue:{entry.issue_key}" if entry.issue_key else f"description:{entry.description or ''}"
    return hashlib.sha256(f"{entry.started_at}|{anchor}".encode()).hexdigest()


class SyncLedger:
    """Decides which entries still need syncing and records those that were."""

    def __init__(self, store: LedgerStore) -> None:
        """Initialize ledger on top of a record store."""
        self.store = store

    def records(self) -> list[LedgerRecord]:
        """All records in the order they were added."""
        return [LedgerRecord.from_dict(item) for item in self.store.read_all()]

    def _known_identities(self) -> set[str]:
        """Identities of every recorded entry."""
        return {record.entry_identity for record in self.records()}

    def is_synced(self, entry: NormalizedEntry) -> bool:
        """Check whether an entry is already recorded."""
        return compute_identity(entry) in self._known_identities()

    def filter_unsynced(self, entries: Iterable[NormalizedEntry]) -> LedgerFilter:
        """Split entries into already synced and still pending.

        Every entry lands in exactly one list; input order is kept.
        """
        known = self._known_identities()
        result = LedgerFilter()
        for entry in entries:
            if compute_identity(entry) in known:
                result.synced.append(entry)
            else:
                result.unsynced.append(entry)
        return result

    def mark_synced(
        self,
        entries: Iterable[NormalizedEntry],
        issue_key: str | None,
        work_log_id: str | int | None,
    ) -> list[LedgerRecord]:
        """Record entries as written to a downstream work log.

        The records are persisted before this returns. Entries already in
        the ledger are not recorded twice. Running timers are never recorded,
        so they are picked up again once stopped.

        Args:
            entries: Entries covered by the work log.
            issue_key: Issue the work log was created on.
            work_log_id: Id assigned by the downstream system.

        Returns:
            The records that were added.
        """
        entries = list(entries)
        if not entries:
            return []

        known = self._known_identities()
        synced_at = datetime.now(timezone.utc).isoformat()
        new_records = []
        for entry in entries:
            if entry.is_running:
                logger.debug(f"Entry {entry.id} is still running, not recorded")
                continue
            identity = compute_identity(entry)
            if identity in known:
                logger.debug(f"Entry {entry.id} already in sync history")
                continue
            known.add(identity)
            new_records.append(
                LedgerRecord(
                    entry_identity=identity,
                    issue_key=issue_key,
                    work_log_id=str(work_log_id) if work_log_id is not None else None,
                    synced_at=synced_at,
                    entry_id=entry.id,
                    started_at=entry.started_at,
                    duration_seconds=entry.duration_seconds,
                    description=entry.description,
                )
            )

        self.store.append([asdict(record) for record in new_records])
        logger.debug(f"Recorded {len(new_records)} entries for work log {work_log_id}")
        return new_records

    def clear(self) -> None:
        """Drop every record. Callers are expected to confirm first."""
        self.store.clear_all()
        logger.info("Sync history cleared")

    def stats(self) -> LedgerStats:
        """Aggregate entry count, time and issues over all records."""
        records = self.records()
        issues = sorted({record.issue_key for record in records if record.issue_key})
        return LedgerStats(
            total_entries=len(records),
            total_seconds=sum(record.duration_seconds for record in records),
            unique_issues=len(issues),
            issues=issues,
        )
