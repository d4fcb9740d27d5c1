"""Context entity persistence: create, look up, soft delete."""

from __future__ import annotations

import aiosqlite
import structlog

from contextledger.models.context import ActiveState, Context, DeletedState
from contextledger.store.database import Database, make_id, now_ms
from contextledger.store.errors import translate_database_error


def row_to_context(row: aiosqlite.Row) -> Context:
    deleted_at = row["deleted_at"]
    return Context(
        id=row["id"],
        name=row["name"],
        created_at=row["created_at"],
        updated_at=row["updated_at"],
        message_count=row["message_count"],
        total_tokens=row["total_tokens"],
        latest_version=row["latest_version"],
        state=DeletedState(at=deleted_at) if deleted_at is not None else ActiveState(),
        parent_id=row["parent_id"],
        fork_version=row["fork_version"],
    )


class ContextStore:
    """
    Owns context rows.

    Soft-deleted contexts are indistinguishable from missing ones through
    every method here. The counter columns are never written by this class;
    only ``MessageLedger.append`` changes them.
    """

    def __init__(self, db: Database) -> None:
        self._db = db
        self._logger = structlog.get_logger("contextledger.store.contexts")

    async def create(self, name: str | None = None) -> Context:
        """
        Insert a new, empty, active context.

        Args:
            name: Optional display name. Length limits are enforced by callers.

        Returns:
            The created Context with zeroed counters.

        Raises:
            LedgerStoreError: On any storage fault.
        """
        context_id = make_id("ctx")
        now = now_ms()
        try:
            async with self._db.transaction() as conn:
                await conn.execute(
                    """
                    INSERT INTO contexts
                        (id, name, created_at, updated_at,
                         message_count, total_tokens, latest_version)
                    VALUES (?, ?, ?, ?, 0, 0, 0)
                    """,
                    (context_id, name, now, now),
                )
        except aiosqlite.Error as exc:
            raise translate_database_error(exc) from exc

        self._logger.info("context_created", context_id=context_id)
        return Context(id=context_id, name=name, created_at=now, updated_at=now)

    async def find_by_id(self, context_id: str) -> Context | None:
        """Return the live context with this ID, or None if missing or soft-deleted."""
        try:
            async with self._db.reader().execute(
                "SELECT * FROM contexts WHERE id = ? AND deleted_at IS NULL",
                (context_id,),
            ) as cursor:
                row = await cursor.fetchone()
        except aiosqlite.Error as exc:
            raise translate_database_error(exc) from exc
        if row is None:
            return None
        return row_to_context(row)

    async def soft_delete(self, context_id: str) -> Context | None:
        """
        Tombstone a live context.

        The update is conditional on the context still being active, so a
        second call for the same ID changes nothing.

        Returns:
            The tombstoned Context, or None if it was missing or already deleted.
        """
        now = now_ms()
        try:
            async with self._db.transaction() as conn:
                result = await conn.execute(
                    "UPDATE contexts SET deleted_at = ? WHERE id = ? AND deleted_at IS NULL",
                    (now, context_id),
                )
                if result.rowcount == 0:
                    row = None
                else:
                    async with conn.execute(
                        "SELECT * FROM contexts WHERE id = ?", (context_id,)
                    ) as cursor:
                        row = await cursor.fetchone()
        except aiosqlite.Error as exc:
            raise translate_database_error(exc) from exc

        if row is None:
            self._logger.debug("context_soft_delete_noop", context_id=context_id)
            return None
        self._logger.info("context_soft_deleted", context_id=context_id)
        return row_to_context(row)

    async def exists(self, context_id: str) -> bool:
        """True when the context exists and is not soft-deleted."""
        return await self.find_by_id(context_id) is not None
