"""Append-only message ledger with per-context version assignment."""

from __future__ import annotations

from collections.abc import Mapping, Sequence
from typing import Any

import aiosqlite
import structlog

from contextledger.models.message import Message, MessageInput
from contextledger.store.database import Database, make_id, now_ms
from contextledger.store.errors import (
    ContextNotFoundError,
    DatabaseError,
    LockTimeoutError,
    translate_database_error,
)

MESSAGE_COLUMNS = (
    "m.id, m.context_id, m.version, m.created_at, m.role, m.content,"
    " m.tool_call_id, m.tool_name, m.token_count, m.model, m.deleted_at,"
    " m.compacted_at, m.compacted_into_version"
)
"""Message columns, qualified for queries that join ``messages m`` to ``contexts c``."""

LIVE_MESSAGES = (
    f"SELECT {MESSAGE_COLUMNS} FROM messages m"
    " JOIN contexts c ON c.id = m.context_id"
    " WHERE m.context_id = ? AND c.deleted_at IS NULL AND m.deleted_at IS NULL"
)
"""Visible messages of one live context. The context check and the row read
happen in a single statement, so both come from the same snapshot."""


def row_to_message(row: aiosqlite.Row) -> Message:
    return Message(
        id=row["id"],
        context_id=row["context_id"],
        version=row["version"],
        role=row["role"],
        content=row["content"],
        token_count=row["token_count"],
        tool_call_id=row["tool_call_id"],
        tool_name=row["tool_name"],
        model=row["model"],
        created_at=row["created_at"],
        deleted_at=row["deleted_at"],
        compacted_at=row["compacted_at"],
        compacted_into_version=row["compacted_into_version"],
    )


class MessageLedger:
    """
    Appends batches of messages to a context and assigns their versions.

    Every non-empty append runs as one transaction while holding the
    context's exclusive lock:

    1. Read ``latest_version`` of the live context (or fail with ``NOT_FOUND``).
    2. Number the batch ``latest_version + 1 …`` in caller order.
    3. Insert the rows.
    4. Bump ``message_count``, ``total_tokens``, ``latest_version`` and
       ``updated_at`` in the same transaction.

    Appends to one context are therefore totally ordered and produce a
    gap-free, duplicate-free version sequence. Appends to different contexts
    take different locks.
    """

    def __init__(self, db: Database) -> None:
        self._db = db
        self._logger = structlog.get_logger("contextledger.store.ledger")

    async def append(
        self,
        context_id: str,
        batch: Sequence[MessageInput | Mapping[str, Any]],
    ) -> list[Message]:
        """
        Append ``batch`` to the context and return the stored messages.

        Args:
            context_id: The target context.
            batch: Messages in the order they should be versioned. Plain
                mappings are validated into ``MessageInput``.

        Returns:
            The inserted messages, in input order, each carrying its version.
            An empty batch returns ``[]`` without locking or writing.

        Raises:
            ContextNotFoundError: If the context is missing or soft-deleted.
            LockTimeoutError: If the context lock was not acquired in time.
            DuplicateVersionError: If a ``(context_id, version)`` already exists.
            LedgerStoreError: On any other storage fault. Nothing is written.
        """
        if not batch:
            return []

        inputs = [
            item if isinstance(item, MessageInput) else MessageInput.model_validate(item)
            for item in batch
        ]

        timeout = self._db.config.lock_timeout
        try:
            async with self._db.context_locks().hold(context_id, timeout):
                inserted = await self._append_locked(context_id, inputs)
        except ContextNotFoundError:
            self._logger.warning("append_context_not_found", context_id=context_id)
            raise
        except LockTimeoutError:
            self._logger.warning("append_lock_timeout", context_id=context_id, timeout=timeout)
            raise

        self._logger.info(
            "messages_appended",
            context_id=context_id,
            count=len(inserted),
            first_version=inserted[0].version,
            last_version=inserted[-1].version,
        )
        return inserted

    async def _append_locked(self, context_id: str, inputs: list[MessageInput]) -> list[Message]:
        now = now_ms()
        try:
            async with self._db.transaction() as conn:
                async with conn.execute(
                    "SELECT latest_version, total_tokens FROM contexts"
                    " WHERE id = ? AND deleted_at IS NULL",
                    (context_id,),
                ) as cursor:
                    row = await cursor.fetchone()
                if row is None:
                    raise ContextNotFoundError(context_id)

                latest = row["latest_version"]
                messages = [
                    Message(
                        id=make_id("msg"),
                        context_id=context_id,
                        version=latest + offset,
                        role=item.role,
                        content=item.content,
                        token_count=item.token_count,
                        tool_call_id=item.tool_call_id,
                        tool_name=item.tool_name,
                        model=item.model,
                        created_at=now,
                    )
                    for offset, item in enumerate(inputs, start=1)
                ]

                await conn.executemany(
                    """
                    INSERT INTO messages
                        (id, context_id, version, created_at, role, content,
                         tool_call_id, tool_name, token_count, model)
                    VALUES (?, ?, ?, ?, ?, ?, ?, ?, ?, ?)
                    """,
                    [
                        (
                            m.id,
                            m.context_id,
                            m.version,
                            m.created_at,
                            m.role,
                            m.content,
                            m.tool_call_id,
                            m.tool_name,
                            m.token_count,
                            m.model,
                        )
                        for m in messages
                    ],
                )

                # Summed here so an overflow fails the bind instead of SQLite
                # silently promoting the column to REAL.
                total_tokens = row["total_tokens"] + sum(m.effective_tokens for m in messages)
                await conn.execute(
                    """
                    UPDATE contexts SET
                        message_count = message_count + ?,
                        total_tokens = ?,
                        latest_version = ?,
                        updated_at = ?
                    WHERE id = ?
                    """,
                    (len(messages), total_tokens, latest + len(messages), now, context_id),
                )
        except aiosqlite.Error as exc:
            raise translate_database_error(exc) from exc
        except OverflowError as exc:
            raise DatabaseError("Database error") from exc
        return messages

    async def find_by_version(self, context_id: str, version: int) -> Message | None:
        """Return one visible message of a live context by its version, or None."""
        try:
            async with self._db.reader().execute(
                f"{LIVE_MESSAGES} AND m.version = ?",
                (context_id, version),
            ) as cursor:
                row = await cursor.fetchone()
        except aiosqlite.Error as exc:
            raise translate_database_error(exc) from exc
        if row is None:
            return None
        return row_to_message(row)
