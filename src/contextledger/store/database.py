"""Connection ownership, schema setup and transactions for the ledger stores."""

from __future__ import annotations

import asyncio
import time
from collections.abc import AsyncIterator
from contextlib import asynccontextmanager
from pathlib import Path
from typing import TYPE_CHECKING

import aiosqlite
import structlog
from ulid import ULID

from contextledger.models.config import StoreConfig
from contextledger.store.errors import StoreNotInitializedError
from contextledger.store.locks import ContextLocks
from contextledger.store.pool import open_connection

if TYPE_CHECKING:
    from contextledger.store.pool import StorePool


def now_ms() -> int:
    """Current time as Unix milliseconds, the unit every stored timestamp uses."""
    return int(time.time() * 1000)


def make_id(prefix: str) -> str:
    """
    Generate a ULID-based sortable identifier.

    Args:
        prefix: Short prefix for readability (e.g. ``"ctx"``, ``"msg"``).

    Returns:
        ID string in the format ``"{prefix}_{ulid}"``.
    """
    return f"{prefix}_{ULID()}"


class Database:
    """
    The SQLite database shared by ``ContextStore``, ``MessageLedger`` and the
    read components.

    Writes go through the writer connection while holding the write lock;
    reads go through a separate reader connection and see only committed
    data.

    When a ``StorePool`` is supplied the connections, the write lock and the
    per-context lock registry are borrowed from it, so every ``Database``
    on the same path coordinates with the others. ``close()`` then leaves the
    connections open (the pool owns their lifetime).

    Usage (standalone)::

        db = Database(StoreConfig(db_path="/tmp/ledger.db"))
        await db.initialize()
        try:
            store = ContextStore(db)
            ...
        finally:
            await db.close()
    """

    def __init__(self, config: StoreConfig, pool: StorePool | None = None) -> None:
        self._config = config
        self._db_path = str(Path(config.db_path).expanduser())
        self._pool = pool
        self._writer: aiosqlite.Connection | None = None
        self._reader: aiosqlite.Connection | None = None
        self._write_lock: asyncio.Lock | None = None
        self._context_locks: ContextLocks | None = None
        self._logger = structlog.get_logger("contextledger.store")

    @property
    def config(self) -> StoreConfig:
        return self._config

    async def initialize(self) -> None:
        """
        Open (or borrow) the connections and apply the schema.

        The schema uses ``CREATE TABLE IF NOT EXISTS`` throughout, so calling
        this on an existing database is safe.

        Raises:
            aiosqlite.Error: If the database cannot be opened or the schema fails.
        """
        if self._writer is not None:
            return

        if self._pool is not None:
            writer, reader = await self._pool.acquire(
                self._db_path,
                wal_mode=self._config.wal_mode,
                connection_timeout=self._config.connection_timeout,
            )
            write_lock = self._pool.write_lock(self._db_path)
            context_locks = self._pool.context_locks(self._db_path)
        else:
            writer = await open_connection(
                self._db_path,
                wal_mode=self._config.wal_mode,
                connection_timeout=self._config.connection_timeout,
            )
            try:
                reader = await open_connection(
                    self._db_path,
                    wal_mode=self._config.wal_mode,
                    connection_timeout=self._config.connection_timeout,
                    read_only=True,
                )
            except Exception:
                await writer.close()
                raise
            write_lock = asyncio.Lock()
            context_locks = ContextLocks()

        schema = (Path(__file__).parent / "schema.sql").read_text()
        async with write_lock:
            await writer.executescript(schema)

        self._writer = writer
        self._reader = reader
        self._write_lock = write_lock
        self._context_locks = context_locks
        self._logger.info("store_initialized", db_path=self._db_path)

    async def close(self) -> None:
        """
        Release the connections.

        A no-op for pool-managed connections; private connections are closed.
        """
        if self._writer is None:
            return
        if self._pool is None:
            await self._reader.close()  # type: ignore[union-attr]
            await self._writer.close()
        self._writer = None
        self._reader = None
        self._write_lock = None
        self._context_locks = None

    # ── Accessors ──────────────────────────────────────────────────────────────

    def reader(self) -> aiosqlite.Connection:
        """Return the read-only connection. Each statement sees a committed snapshot."""
        if self._reader is None:
            raise StoreNotInitializedError()
        return self._reader

    def context_locks(self) -> ContextLocks:
        if self._context_locks is None:
            raise StoreNotInitializedError()
        return self._context_locks

    # ── Writes ─────────────────────────────────────────────────────────────────

    @asynccontextmanager
    async def transaction(self) -> AsyncIterator[aiosqlite.Connection]:
        """
        Run a block as one ``BEGIN IMMEDIATE`` … ``COMMIT`` transaction.

        The write lock is held for the whole block so no other statement can
        land on the shared writer connection mid-transaction. Any exception,
        from the block or from ``COMMIT`` itself, rolls the transaction back
        and propagates unchanged. The connection is always left outside a
        transaction when the lock is released.
        """
        if self._writer is None or self._write_lock is None:
            raise StoreNotInitializedError()
        conn = self._writer
        async with self._write_lock:
            await conn.execute("BEGIN IMMEDIATE")
            try:
                yield conn
                await conn.commit()
            except BaseException:
                try:
                    await conn.rollback()
                except aiosqlite.Error as rollback_exc:
                    self._logger.error("transaction_rollback_failed", error=str(rollback_exc))
                raise
