"""
Shared connection pool for the ledger stores.

A single ``StorePool`` instance manages, per database path, one writer
``aiosqlite.Connection`` and one reader connection. Every ``Database``
pointing at the same path shares them, so all components built over one
pool serialise their writes through the same connection and the same
per-context lock registry.

SQLite in WAL mode allows concurrent readers alongside a single writer. The
reader connection therefore only ever sees committed data: a read issued
while an append transaction is open on the writer connection observes the
state before that append, never a half-applied one.

Usage::

    pool = StorePool()

    db_a = Database(config.store, pool=pool)
    db_b = Database(config.store, pool=pool)   # same DB path → same connections

    await db_a.initialize()   # opens the connections (idempotent on 2nd call)
    await db_b.initialize()   # reuses existing connections

    # … use stores …

    await pool.close_all()    # close all managed connections once at shutdown
"""

from __future__ import annotations

import asyncio
from pathlib import Path

import aiosqlite
import structlog

from contextledger.store.locks import ContextLocks

_logger = structlog.get_logger("contextledger.store.pool")


async def open_connection(
    db_path: str,
    *,
    wal_mode: bool = True,
    connection_timeout: float = 30.0,
    read_only: bool = False,
) -> aiosqlite.Connection:
    """
    Open a connection in autocommit mode with the ledger's pragmas applied.

    Transactions are controlled explicitly (``BEGIN IMMEDIATE`` … ``COMMIT``)
    rather than through the sqlite3 module's implicit transaction handling.
    """
    Path(db_path).parent.mkdir(parents=True, exist_ok=True)
    conn = await aiosqlite.connect(db_path, timeout=connection_timeout, isolation_level=None)
    try:
        conn.row_factory = aiosqlite.Row
        if wal_mode:
            await conn.execute("PRAGMA journal_mode=WAL")
        await conn.execute("PRAGMA foreign_keys=ON")
        await conn.execute("PRAGMA synchronous=NORMAL")
        if read_only:
            await conn.execute("PRAGMA query_only=ON")
    except Exception:
        await conn.close()
        raise
    return conn


class StorePool:
    """
    Process-scoped registry of open ``aiosqlite.Connection`` pairs.

    Thread-safety: only safe to use from a single asyncio event loop; do not
    share a ``StorePool`` across threads.

    For each unique *resolved* database path the pool holds exactly one
    writer connection, one reader connection, one write lock and one
    ``ContextLocks`` registry. Callers may call ``acquire()`` concurrently;
    only the first caller opens the connections.
    """

    def __init__(self) -> None:
        self._writers: dict[str, aiosqlite.Connection] = {}
        self._readers: dict[str, aiosqlite.Connection] = {}
        self._write_locks: dict[str, asyncio.Lock] = {}
        self._context_locks: dict[str, ContextLocks] = {}
        self._open_locks: dict[str, asyncio.Lock] = {}  # per-path open guards

    # ── Public API ─────────────────────────────────────────────────────────────

    async def acquire(
        self,
        db_path: str,
        *,
        wal_mode: bool = True,
        connection_timeout: float = 30.0,
    ) -> tuple[aiosqlite.Connection, aiosqlite.Connection]:
        """
        Return the shared ``(writer, reader)`` connections for *db_path*.

        Args:
            db_path: Path to the database file (``~`` is expanded).
            wal_mode: Enable WAL journal mode on first open.
            connection_timeout: SQLite busy timeout in seconds.

        Returns:
            The shared writer and reader connections for this path.
        """
        resolved = self._resolve(db_path)

        # Fast path: connections already open
        if resolved in self._writers:
            return self._writers[resolved], self._readers[resolved]

        if resolved not in self._open_locks:
            self._open_locks[resolved] = asyncio.Lock()

        async with self._open_locks[resolved]:
            # Double-check after acquiring the lock
            if resolved in self._writers:
                return self._writers[resolved], self._readers[resolved]

            writer = await open_connection(
                resolved, wal_mode=wal_mode, connection_timeout=connection_timeout
            )
            try:
                reader = await open_connection(
                    resolved,
                    wal_mode=wal_mode,
                    connection_timeout=connection_timeout,
                    read_only=True,
                )
            except Exception:
                await writer.close()
                raise

            self._writers[resolved] = writer
            self._readers[resolved] = reader
            self._write_locks[resolved] = asyncio.Lock()
            self._context_locks[resolved] = ContextLocks()
            _logger.debug("pool_connection_opened", db_path=resolved)
            return writer, reader

    def write_lock(self, db_path: str) -> asyncio.Lock:
        """
        Return the lock serialising use of the writer connection for *db_path*.

        Raises ``KeyError`` if called before ``acquire()``.
        """
        return self._write_locks[self._resolve(db_path)]

    def context_locks(self, db_path: str) -> ContextLocks:
        """
        Return the per-context lock registry for *db_path*.

        Raises ``KeyError`` if called before ``acquire()``.
        """
        return self._context_locks[self._resolve(db_path)]

    async def close_path(self, db_path: str) -> None:
        """Close and remove the connections for a single path."""
        resolved = self._resolve(db_path)
        writer = self._writers.pop(resolved, None)
        reader = self._readers.pop(resolved, None)
        self._write_locks.pop(resolved, None)
        self._context_locks.pop(resolved, None)
        self._open_locks.pop(resolved, None)
        if reader is not None:
            await reader.close()
        if writer is not None:
            await writer.close()
            _logger.debug("pool_connection_closed", db_path=resolved)

    async def close_all(self) -> None:
        """Close every connection managed by this pool."""
        for path in list(self._writers.keys()):
            await self.close_path(path)

    @staticmethod
    def _resolve(db_path: str) -> str:
        return str(Path(db_path).expanduser().resolve())  # noqa: ASYNC240
