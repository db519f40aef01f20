"""
Ledger abstraction for the CRO record store.

This module provides a pluggable ledger backend interface supporting:
- In-memory (for testing and local development)
- SQLite (single-file persistent store)

The ledger is an external collaborator in production; these backends give the
store the same transaction semantics locally: partitioned key-value state,
per-invocation transactions with optimistic read-set validation, and lazy
selector queries over one partition.

Invariants:
    - Writes become visible only after commit()
    - A failed or rolled back transaction leaves no partial writes
    - Query order is stable for a fixed ledger state

How to change safely:
    - New backends must implement the Ledger protocol
    - Test read-set validation with concurrent transactions
"""

from __future__ import annotations

from typing import TYPE_CHECKING

from .base import (
    Ledger,
    LedgerError,
    LedgerStub,
    LedgerTransaction,
    MVCCConflictError,
    QueryResult,
    TransactionClosedError,
    transaction,
)
from .memory import InMemoryLedger
from .sqlite import SqliteLedger

if TYPE_CHECKING:
    from ..config import Settings


def create_ledger(settings: Settings) -> Ledger:
    """Factory function to create a ledger from configuration.

    Args:
        settings: Contract settings

    Returns:
        Appropriate Ledger implementation

    Raises:
        ValueError: If backend is not supported
    """
    from ..config import LedgerBackend

    if settings.ledger_backend == LedgerBackend.MEMORY:
        return InMemoryLedger()
    elif settings.ledger_backend == LedgerBackend.SQLITE:
        return SqliteLedger(
            data_dir=settings.data_dir,
            filename=settings.ledger_file,
            wal_mode=settings.sqlite_wal_mode,
            busy_timeout_ms=settings.sqlite_busy_timeout_ms,
        )
    else:
        raise ValueError(f"Unsupported ledger backend: {settings.ledger_backend}")


__all__ = [
    # Protocols and types
    "Ledger",
    "LedgerStub",
    "LedgerTransaction",
    "QueryResult",
    "transaction",
    # Errors
    "LedgerError",
    "MVCCConflictError",
    "TransactionClosedError",
    # Factory
    "create_ledger",
    # Implementations
    "InMemoryLedger",
    "SqliteLedger",
]
