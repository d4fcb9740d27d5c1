"""Cursor-based pagination over a context's ledger."""

from __future__ import annotations

import aiosqlite
import structlog

from contextledger.models.config import PaginationConfig
from contextledger.models.message import Page, SortOrder
from contextledger.store.database import Database
from contextledger.store.errors import translate_database_error
from contextledger.store.ledger import LIVE_MESSAGES, row_to_message


class PaginationReader:
    """
    Read-only traversal of a context's messages ordered by version.

    The cursor is the version of the last message on the previous page.
    Ascending pages continue with ``version > cursor``, descending pages with
    ``version < cursor``. A missing or negative cursor starts from the
    natural end for the chosen order.
    """

    def __init__(self, db: Database, config: PaginationConfig | None = None) -> None:
        self._db = db
        self._config = config or PaginationConfig()
        self._logger = structlog.get_logger("contextledger.store.pagination")

    async def find_by_context(
        self,
        context_id: str,
        *,
        cursor: int | None = None,
        limit: int | None = None,
        order: SortOrder = "asc",
    ) -> Page:
        """
        Fetch one page of messages.

        Args:
            context_id: The context to read.
            cursor: Version to continue after, from a previous ``Page.next_cursor``.
            limit: Page size, clamped to ``[1, max_limit]``. Defaults to
                ``PaginationConfig.default_limit``.
            order: ``"asc"`` for oldest first, ``"desc"`` for newest first.

        Returns:
            The page. A missing or soft-deleted context yields an empty page.
        """
        if order not in ("asc", "desc"):
            raise ValueError(f"order must be 'asc' or 'desc', got {order!r}")

        requested = self._config.default_limit if limit is None else limit
        page_size = max(1, min(requested, self._config.max_limit))

        sql = LIVE_MESSAGES
        params: list[int | str] = [context_id]
        if cursor is not None and cursor >= 0:
            sql += " AND m.version > ?" if order == "asc" else " AND m.version < ?"
            params.append(cursor)
        sql += " ORDER BY m.version ASC" if order == "asc" else " ORDER BY m.version DESC"
        sql += " LIMIT ?"
        # One extra row tells us whether another page exists.
        params.append(page_size + 1)

        try:
            async with self._db.reader().execute(sql, params) as db_cursor:
                rows = await db_cursor.fetchall()
        except aiosqlite.Error as exc:
            raise translate_database_error(exc) from exc

        has_more = len(rows) > page_size
        data = [row_to_message(r) for r in rows[:page_size]]
        next_cursor = data[-1].version if has_more and data else None

        self._logger.debug(
            "page_read",
            context_id=context_id,
            cursor=cursor,
            limit=page_size,
            order=order,
            returned=len(data),
            has_more=has_more,
        )
        return Page(data=data, next_cursor=next_cursor, has_more=has_more)
