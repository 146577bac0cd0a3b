"""
In-memory claim log storage.

Used when an organization has no ledger connection. The list is shared by
all organizations and lost on restart; it is never synchronized with the
ledger.
"""

import copy
import logging
import threading
import time
from abc import ABC, abstractmethod
from datetime import datetime, timezone
from typing import List

logger = logging.getLogger(__name__)


def utc_now_iso() -> str:
    """Current UTC time as 2024-01-15T14:30:00.000Z."""
    return datetime.now(timezone.utc).isoformat(timespec="milliseconds").replace("+00:00", "Z")


class ClaimLogStore(ABC):
    """Storage interface for claim log records."""

    @abstractmethod
    def list_all(self) -> List[dict]:
        """All stored records, oldest first."""

    @abstractmethod
    def append(self, record: dict) -> dict:
        """Store a record and return it as stored."""


class InMemoryClaimLogStore(ClaimLogStore):
    """
    Lock-guarded in-memory claim log list.

    Usage:
        store = InMemoryClaimLogStore()

        # Append (assigns id, timestamp, createdAt)
        stored = store.append({"claimId": "C1", ...})

        # List all
        records = store.list_all()
    """

    def __init__(self):
        """Initialize an empty store."""
        self._records: List[dict] = []
        self._lock = threading.Lock()
        self._last_id = 0

    def _generate_id(self) -> str:
        """Epoch milliseconds, bumped when two appends share a millisecond."""
        candidate = int(time.time() * 1000)
        if candidate <= self._last_id:
            candidate = self._last_id + 1
        self._last_id = candidate
        return str(candidate)

    def append(self, record: dict) -> dict:
        """
        Store a claim log.

        Args:
            record: Validated claim log fields (caller extras are kept)

        Returns:
            Copy of the stored record with id, timestamp and createdAt
        """
        now = utc_now_iso()
        stored = copy.deepcopy(record)

        with self._lock:
            stored["id"] = self._generate_id()
            stored["timestamp"] = stored.get("timestamp") or now
            stored["createdAt"] = stored.get("createdAt") or now
            self._records.append(stored)
            count = len(self._records)

        logger.debug(f"Stored claim log {stored.get('claimId')} as id {stored['id']} ({count} total)")
        return copy.deepcopy(stored)

    def list_all(self) -> List[dict]:
        """Snapshot of every stored record."""
        with self._lock:
            return copy.deepcopy(self._records)

