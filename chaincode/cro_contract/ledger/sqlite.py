"""
SQLite-backed ledger for the CRO record store.

This module keeps every partition of the ledger in one SQLite file. Each
row carries a version number that is bumped on every committed write, which
is what transactions validate their read sets against.

Invariants:
    - One SQLite file per ledger
    - A commit is a single BEGIN IMMEDIATE transaction
    - A commit either applies all of its writes or none of them
    - Queries stream rows of one partition in key order

How to change safely:
    - Schema migrations must be backward compatible
    - Use transactions for all write operations
    - Keep query ordering stable for a fixed ledger state

Table schema:
    private_data:
        - partition TEXT
        - key TEXT
        - value BLOB
        - version INTEGER (bumped on each committed write)
        - updated_at INTEGER (Unix ms)
        - PRIMARY KEY (partition, key)
"""

from __future__ import annotations

import json
import logging
import sqlite3
import time
from collections.abc import AsyncIterator, Iterator
from contextlib import contextmanager
from pathlib import Path
from typing import TYPE_CHECKING

from .base import LedgerError, MVCCConflictError, PendingWrite, QueryResult, TransactionClosedError

if TYPE_CHECKING:
    from ..query import Selector

logger = logging.getLogger(__name__)


class SqliteTransaction:
    """A transaction over a SqliteLedger.

    Reads go straight to the database and record the row version they saw.
    Writes are buffered until commit().
    """

    def __init__(self, ledger: SqliteLedger) -> None:
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
        with self._ledger._get_connection() as conn:
            cursor = conn.execute(
                "SELECT value, version FROM private_data WHERE partition = ? AND key = ?",
                (partition, key),
            )
            row = cursor.fetchone()

        self._reads.setdefault((partition, key), row["version"] if row else None)
        return bytes(row["value"]) if row else None

    async def put(self, partition: str, key: str, value: bytes) -> None:
        self._check_open()
        self._writes.append(PendingWrite(partition=partition, key=key, value=bytes(value)))

    async def query(self, partition: str, selector: Selector) -> AsyncIterator[QueryResult]:
        self._check_open()
        with self._ledger._get_connection() as conn:
            cursor = conn.execute(
                "SELECT key, value FROM private_data WHERE partition = ? ORDER BY key",
                (partition,),
            )
            for row in cursor:
                value = bytes(row["value"])
                try:
                    document = json.loads(value)
                except (json.JSONDecodeError, UnicodeDecodeError):
                    continue
                if isinstance(document, dict) and selector.matches(document):
                    yield QueryResult(key=row["key"], value=value)

    async def commit(self) -> None:
        self._check_open()
        self._closed = True
        now = int(time.time() * 1000)

        with self._ledger._get_connection() as conn:
            conn.execute("BEGIN IMMEDIATE")
            try:
                for (partition, key), version in self._reads.items():
                    cursor = conn.execute(
                        "SELECT version FROM private_data WHERE partition = ? AND key = ?",
                        (partition, key),
                    )
                    row = cursor.fetchone()
                    if (row["version"] if row else None) != version:
                        raise MVCCConflictError(partition, key)

                for write in self._writes:
                    conn.execute(
                        """
                        INSERT INTO private_data (partition, key, value, version, updated_at)
                        VALUES (?, ?, ?, 1, ?)
                        ON CONFLICT (partition, key) DO UPDATE SET
                            value = excluded.value,
                            version = private_data.version + 1,
                            updated_at = excluded.updated_at
                        """,
                        (write.partition, write.key, write.value, now),
                    )

                conn.execute("COMMIT")

            except Exception:
                conn.execute("ROLLBACK")
                raise

        logger.debug(
            "Committed SQLite transaction",
            extra={"writes": len(self._writes), "reads": len(self._reads)},
        )

    async def rollback(self) -> None:
        if self._closed:
            return
        self._closed = True
        self._writes.clear()


class SqliteLedger:
    """Single-file SQLite implementation of the Ledger protocol.

    Thread safety:
        Each database access opens its own connection.
        SQLite handles concurrent access via WAL mode.

    Example:
        >>> ledger = SqliteLedger("/var/lib/cro")
        >>> async with transaction(ledger) as tx:
        ...     await tx.put("recordCollection", "R1", b'{"recordId":"R1"}')
    """

    SCHEMA_VERSION = 1

    def __init__(
        self,
        data_dir: str,
        filename: str = "ledger.db",
        wal_mode: bool = True,
        busy_timeout_ms: int = 5000,
    ) -> None:
        """Initialize the SQLite ledger.

        Args:
            data_dir: Directory for the database file
            filename: Database file name
            wal_mode: Enable SQLite WAL mode
            busy_timeout_ms: SQLite busy timeout
        """
        self.data_dir = Path(data_dir)
        self.db_path = self.data_dir / filename
        self.wal_mode = wal_mode
        self.busy_timeout_ms = busy_timeout_ms
        self._initialized = False

    @contextmanager
    def _get_connection(self) -> Iterator[sqlite3.Connection]:
        """Open a configured connection, creating the schema on first use."""
        self.db_path.parent.mkdir(parents=True, exist_ok=True)

        try:
            conn = sqlite3.connect(
                str(self.db_path),
                timeout=self.busy_timeout_ms / 1000.0,
                isolation_level=None,  # Autocommit by default, explicit transactions
            )
        except sqlite3.Error as e:
            raise LedgerError(f"Cannot open ledger database {self.db_path}: {e}") from e
        conn.row_factory = sqlite3.Row

        try:
            conn.execute(f"PRAGMA busy_timeout = {self.busy_timeout_ms}")
            if self.wal_mode:
                conn.execute("PRAGMA journal_mode = WAL")
            conn.execute("PRAGMA synchronous = NORMAL")

            if not self._initialized:
                self._create_schema(conn)
                self._initialized = True

            yield conn
        finally:
            conn.close()

    def _create_schema(self, conn: sqlite3.Connection) -> None:
        """Create database schema."""
        conn.executescript("""
            CREATE TABLE IF NOT EXISTS schema_version (
                version INTEGER PRIMARY KEY,
                applied_at INTEGER NOT NULL
            );

            CREATE TABLE IF NOT EXISTS private_data (
                partition TEXT NOT NULL,
                key TEXT NOT NULL,
                value BLOB NOT NULL,
                version INTEGER NOT NULL,
                updated_at INTEGER NOT NULL,
                PRIMARY KEY (partition, key)
            );

            INSERT OR IGNORE INTO schema_version (version, applied_at)
            VALUES (1, strftime('%s', 'now') * 1000);
        """)
        logger.info("Initialized ledger database", extra={"path": str(self.db_path)})

    def begin(self) -> SqliteTransaction:
        return SqliteTransaction(self)

    async def close(self) -> None:
        """Nothing to release; connections are per operation."""
        logger.debug("SqliteLedger closed", extra={"path": str(self.db_path)})

    async def get_stats(self) -> dict[str, int]:
        """Count committed keys per partition."""
        with self._get_connection() as conn:
            cursor = conn.execute(
                "SELECT partition, COUNT(*) AS n FROM private_data GROUP BY partition"
            )
            return {row["partition"]: row["n"] for row in cursor.fetchall()}
