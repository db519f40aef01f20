"""
Base protocols and types for the ledger abstraction.

The record store never talks to a concrete ledger. It receives a LedgerStub
scoped to one invocation, and the runtime owns the Ledger that hands out
those stubs as transactions.

Invariants:
    - One invocation is one LedgerTransaction
    - Writes are buffered in call order and applied together at commit
    - Reads see the last committed state, not the transaction's own writes
    - Commit fails with MVCCConflictError if any key read has changed since
    - A rolled back transaction leaves no trace

How to change safely:
    - New backends must implement the Ledger and LedgerTransaction protocols
    - Keep query ordering stable for a fixed ledger state
    - Never catch asyncio.CancelledError in backend code
"""

from __future__ import annotations

from abc import abstractmethod
from collections.abc import AsyncIterator
from contextlib import asynccontextmanager
from dataclasses import dataclass
from typing import TYPE_CHECKING, Protocol, runtime_checkable

if TYPE_CHECKING:
    from ..query import Selector


class LedgerError(Exception):
    """Base exception for ledger operations."""

    pass


class MVCCConflictError(LedgerError):
    """A key read by the transaction was changed by another commit."""

    def __init__(self, partition: str, key: str) -> None:
        super().__init__(f"read conflict on {partition}/{key}; resubmit the invocation")
        self.partition = partition
        self.key = key


class TransactionClosedError(LedgerError):
    """The transaction was already committed or rolled back."""

    pass


@dataclass(frozen=True)
class QueryResult:
    """One (key, value) pair yielded by a ledger query."""

    key: str
    value: bytes

    def __str__(self) -> str:
        return f"QueryResult(key={self.key}, size={len(self.value)})"


@runtime_checkable
class LedgerStub(Protocol):
    """Per-invocation view of partitioned ledger state."""

    @abstractmethod
    async def get(self, partition: str, key: str) -> bytes | None:
        """Read a value, or None if the key is absent."""
        ...

    @abstractmethod
    async def put(self, partition: str, key: str, value: bytes) -> None:
        """Stage a write; it becomes visible only after commit."""
        ...

    @abstractmethod
    def query(self, partition: str, selector: Selector) -> AsyncIterator[QueryResult]:
        """Lazily yield committed entries of a partition matching the selector."""
        ...


@runtime_checkable
class LedgerTransaction(LedgerStub, Protocol):
    """A LedgerStub that can be committed or rolled back exactly once."""

    @abstractmethod
    async def commit(self) -> None:
        """Validate the read set and apply buffered writes.

        Raises:
            MVCCConflictError: If a key read has changed since it was read
            TransactionClosedError: If already committed or rolled back
        """
        ...

    @abstractmethod
    async def rollback(self) -> None:
        """Discard buffered writes. A no-op on a closed transaction."""
        ...


class Ledger(Protocol):
    """A partitioned key-value store with transactional invocations."""

    @abstractmethod
    def begin(self) -> LedgerTransaction:
        """Open a new transaction."""
        ...

    @abstractmethod
    async def close(self) -> None:
        """Release resources."""
        ...


@asynccontextmanager
async def transaction(ledger: Ledger) -> AsyncIterator[LedgerTransaction]:
    """Run a block inside a ledger transaction.

    Commits when the block exits normally and rolls back when it raises,
    including on cancellation.

    Example:
        >>> async with transaction(ledger) as tx:
        ...     await tx.put("recordCollection", "R1", b"{}")
    """
    tx = ledger.begin()
    try:
        yield tx
    except BaseException:
        await tx.rollback()
        raise
    await tx.commit()


@dataclass
class PendingWrite:
    """A buffered write awaiting commit."""

    partition: str
    key: str
    value: bytes
