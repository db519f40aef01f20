"""
In-memory ledger implementation for testing.

This module provides a dict-backed ledger for:
- Unit tests
- Integration tests
- Local development without a persistent backend

Invariants:
    - All data is lost on process exit
    - Provides the same transaction semantics as the SQLite ledger
    - Query results come back in key order

How to change safely:
    - This is test-only code, changes don't affect persistent deployments
    - Keep interface compatible with the Ledger protocol
    - Add features to help with testing scenarios
"""

from __future__ import annotations

import asyncio
import json
import logging
from collections.abc import AsyncIterator
from dataclasses import dataclass
from typing import TYPE_CHECKING

from .base import MVCCConflictError, PendingWrite, QueryResult, TransactionClosedError

if TYPE_CHECKING:
    from ..query import Selector

logger = logging.getLogger(__name__)


@dataclass
class VersionedValue:
    """A committed value and the commit number that wrote it."""

    value: bytes
    version: int


class InMemoryTransaction:
    """A transaction over an InMemoryLedger.

    Thread safety:
        Intended for use by one coroutine. Commits across transactions
        are serialized by the ledger's lock.
    """

    def __init__(self, ledger: InMemoryLedger) -> None:
        self._ledger = ledger
        self._reads: dict[tuple[str, str], int | None] = {}
        self._writes: list[PendingWrite] = []
        self._closed = False

    @property
    def closed(self) -> bool:
        """Whether commit() or rollback() has run."""
        return self._closed

    def _check_open(self) -> None:
        if self._closed:
            raise TransactionClosedError("Transaction already closed")

    async def get(self, partition: str, key: str) -> bytes | None:
        self._check_open()
        entry = self._ledger._data.get(partition, {}).get(key)
        # Record only the first observed version
        self._reads.setdefault((partition, key), entry.version if entry else None)
        return entry.value if entry else None

    async def put(self, partition: str, key: str, value: bytes) -> None:
        self._check_open()
        self._writes.append(PendingWrite(partition=partition, key=key, value=bytes(value)))

    async def query(self, partition: str, selector: Selector) -> AsyncIterator[QueryResult]:
        self._check_open()
        snapshot = sorted(self._ledger._data.get(partition, {}).items())
        for key, entry in snapshot:
            try:
                document = json.loads(entry.value)
            except (json.JSONDecodeError, UnicodeDecodeError):
                continue
            if isinstance(document, dict) and selector.matches(document):
                yield QueryResult(key=key, value=entry.value)

    async def commit(self) -> None:
        self._check_open()
        self._closed = True
        async with self._ledger._lock:
            for (partition, key), version in self._reads.items():
                current = self._ledger._data.get(partition, {}).get(key)
                if (current.version if current else None) != version:
                    raise MVCCConflictError(partition, key)

            self._ledger._commit_seq += 1
            for write in self._writes:
                self._ledger._data.setdefault(write.partition, {})[write.key] = VersionedValue(
                    value=write.value,
                    version=self._ledger._commit_seq,
                )

        logger.debug(
            "Committed in-memory transaction",
            extra={"writes": len(self._writes), "reads": len(self._reads)},
        )

    async def rollback(self) -> None:
        if self._closed:
            return
        self._closed = True
        self._writes.clear()


class InMemoryLedger:
    """Dict-backed implementation of the Ledger protocol.

    Example:
        >>> ledger = InMemoryLedger()
        >>> tx = ledger.begin()
        >>> await tx.put("recordCollection", "R1", b'{"recordId":"R1"}')
        >>> await tx.commit()
    """

    def __init__(self) -> None:
        self._data: dict[str, dict[str, VersionedValue]] = {}
        self._commit_seq = 0
        self._lock = asyncio.Lock()

    def begin(self) -> InMemoryTransaction:
        return InMemoryTransaction(self)

    async def close(self) -> None:
        """Clear all data."""
        self._data.clear()
        logger.debug("InMemoryLedger closed")

    # Testing helpers

    def keys(self, partition: str) -> list[str]:
        """Committed keys of a partition, sorted."""
        return sorted(self._data.get(partition, {}))

    def raw(self, partition: str, key: str) -> bytes | None:
        """Committed bytes of one key, bypassing transactions."""
        entry = self._data.get(partition, {}).get(key)
        return entry.value if entry else None

    def partitions(self) -> list[str]:
        """Names of partitions holding at least one key."""
        return sorted(name for name, entries in self._data.items() if entries)
