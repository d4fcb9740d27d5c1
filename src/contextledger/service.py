"""The ledger's public operation surface."""

from __future__ import annotations

from collections.abc import Mapping, Sequence
from typing import Any

import structlog

from contextledger.context.window import BudgetWindowSelector
from contextledger.events.bus import EventBus, LedgerEvent
from contextledger.models.config import LedgerConfig, StoreConfig
from contextledger.models.context import Context
from contextledger.models.message import Message, MessageInput, Page, SortOrder
from contextledger.store.contexts import ContextStore
from contextledger.store.database import Database
from contextledger.store.ledger import MessageLedger
from contextledger.store.pagination import PaginationReader
from contextledger.store.pool import StorePool


class ContextLedger:
    """
    Versioned, append-only message logs grouped into contexts.

    Wires ``ContextStore``, ``MessageLedger``, ``PaginationReader`` and
    ``BudgetWindowSelector`` over one database and publishes lifecycle
    events on an ``EventBus``.

    Usage::

        async with await ContextLedger.open(db_path="/tmp/ledger.db") as ledger:
            ctx = await ledger.create_context("support-chat")
            await ledger.append_messages(ctx.id, [
                MessageInput(role="user", content="Hi", token_count=2),
            ])
            window = await ledger.get_window(ctx.id, budget=4_000)
    """

    def __init__(
        self,
        db: Database,
        config: LedgerConfig,
        event_bus: EventBus | None = None,
    ) -> None:
        self._db = db
        self._config = config
        self._event_bus = event_bus or EventBus()
        self._contexts = ContextStore(db)
        self._ledger = MessageLedger(db)
        self._pages = PaginationReader(db, config.pagination)
        self._window = BudgetWindowSelector(db)
        self._logger = structlog.get_logger("contextledger.service")

    @classmethod
    async def open(
        cls,
        *,
        config: LedgerConfig | None = None,
        db_path: str | None = None,
        pool: StorePool | None = None,
        event_bus: EventBus | None = None,
    ) -> ContextLedger:
        """
        Open the database and return a ready ledger.

        Args:
            config: Ledger configuration. Defaults to ``LedgerConfig()``.
            db_path: Override database path (useful for testing). Raises
                ``ValueError`` if ``config.store.db_path`` was also customised.
            pool: Optional shared connection pool. Ledgers on the same pool
                and path share connections and per-context locks. The caller
                is responsible for calling ``pool.close_all()`` at shutdown.
            event_bus: Optional bus to publish lifecycle events on.

        Raises:
            ValueError: If both ``db_path`` and ``config.store.db_path`` are supplied.
            aiosqlite.Error: If the database cannot be initialized.
        """
        cfg = config or LedgerConfig()
        if db_path is not None:
            if config is not None and cfg.store.db_path != StoreConfig().db_path:
                raise ValueError(
                    "Specify db_path either via db_path= or config.store.db_path, not both."
                )
            cfg = cfg.model_copy(
                update={"store": cfg.store.model_copy(update={"db_path": db_path})}
            )

        db = Database(cfg.store, pool=pool)
        await db.initialize()
        return cls(db, cfg, event_bus=event_bus)

    async def close(self) -> None:
        """Release the database connections (no-op for pool-managed ones)."""
        await self._db.close()

    async def __aenter__(self) -> ContextLedger:
        return self

    async def __aexit__(self, *args: Any) -> None:
        await self.close()

    @property
    def config(self) -> LedgerConfig:
        return self._config

    @property
    def event_bus(self) -> EventBus:
        return self._event_bus

    # ── Contexts ───────────────────────────────────────────────────────────────

    async def create_context(self, name: str | None = None) -> Context:
        context = await self._contexts.create(name)
        self._event_bus.publish(
            LedgerEvent.CONTEXT_CREATED,
            {"context_id": context.id, "name": context.name},
        )
        return context

    async def get_context(self, context_id: str) -> Context | None:
        return await self._contexts.find_by_id(context_id)

    async def soft_delete_context(self, context_id: str) -> Context | None:
        """Tombstone a context. Returns None when it was missing or already deleted."""
        context = await self._contexts.soft_delete(context_id)
        if context is not None:
            self._event_bus.publish(
                LedgerEvent.CONTEXT_DELETED,
                {"context_id": context.id, "deleted_at": context.deleted_at},
            )
        return context

    # ── Messages ───────────────────────────────────────────────────────────────

    async def append_messages(
        self,
        context_id: str,
        batch: Sequence[MessageInput | Mapping[str, Any]],
    ) -> list[Message]:
        """
        Append a batch and return it with versions assigned.

        Not idempotent: every successful call mints new versions, so callers
        must decide themselves whether a failed call may be retried.

        Raises:
            ContextNotFoundError: If the context is missing or soft-deleted.
            LedgerStoreError: On lock timeout or any storage fault.
        """
        inserted = await self._ledger.append(context_id, batch)
        if inserted:
            self._event_bus.publish(
                LedgerEvent.MESSAGES_APPENDED,
                {
                    "context_id": context_id,
                    "count": len(inserted),
                    "first_version": inserted[0].version,
                    "last_version": inserted[-1].version,
                    "tokens": sum(m.effective_tokens for m in inserted),
                },
            )
        return inserted

    async def list_messages(
        self,
        context_id: str,
        *,
        cursor: int | None = None,
        limit: int | None = None,
        order: SortOrder = "asc",
    ) -> Page:
        return await self._pages.find_by_context(
            context_id, cursor=cursor, limit=limit, order=order
        )

    async def get_window(self, context_id: str, budget: float) -> list[Message]:
        """Most recent messages fitting ``budget`` tokens, oldest first."""
        return await self._window.get_by_token_budget(context_id, budget)

    async def get_message(self, context_id: str, version: int) -> Message | None:
        return await self._ledger.find_by_version(context_id, version)
