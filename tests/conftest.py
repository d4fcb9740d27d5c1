"""Shared fixtures for contextledger tests."""

from __future__ import annotations

from typing import Any

import pytest
import pytest_asyncio

from contextledger.context.window import BudgetWindowSelector
from contextledger.events.bus import EventBus, LedgerEvent
from contextledger.models.config import LedgerConfig, StoreConfig
from contextledger.models.message import MessageInput
from contextledger.service import ContextLedger
from contextledger.store.contexts import ContextStore
from contextledger.store.database import Database
from contextledger.store.ledger import MessageLedger
from contextledger.store.pagination import PaginationReader
from contextledger.store.pool import StorePool


@pytest.fixture
def config(tmp_path):
    """LedgerConfig with a temp database path and a short lock timeout."""
    return LedgerConfig(store=StoreConfig(db_path=str(tmp_path / "test.db"), lock_timeout=5.0))


@pytest_asyncio.fixture
async def pool():
    """StorePool for the test database. Closed after each test."""
    p = StorePool()
    yield p
    await p.close_all()


@pytest_asyncio.fixture
async def db(config, pool):
    """Initialized, pool-managed Database backed by a temp SQLite file."""
    d = Database(config.store, pool=pool)
    await d.initialize()
    yield d
    await d.close()


@pytest.fixture
def contexts(db):
    return ContextStore(db)


@pytest.fixture
def ledger(db):
    return MessageLedger(db)


@pytest.fixture
def pages(db, config):
    return PaginationReader(db, config.pagination)


@pytest.fixture
def window(db):
    return BudgetWindowSelector(db)


@pytest_asyncio.fixture
async def context_id(contexts):
    """ID of a fresh, empty, live context."""
    ctx = await contexts.create("test")
    return ctx.id


@pytest.fixture
def event_bus():
    """EventBus with a .collected list for asserting events."""
    bus = EventBus()
    collected: list[tuple[LedgerEvent, dict[str, Any]]] = []

    def _collect(event: LedgerEvent, payload: dict[str, Any]) -> None:
        collected.append((event, payload))

    for event in LedgerEvent:
        bus.subscribe(event, _collect)
    bus.collected = collected  # type: ignore[attr-defined]
    return bus


@pytest_asyncio.fixture
async def service(config, pool, event_bus):
    """ContextLedger facade over the test database."""
    svc = await ContextLedger.open(config=config, pool=pool, event_bus=event_bus)
    yield svc
    await svc.close()


def make_inputs(*token_counts: int | None, role: str = "user") -> list[MessageInput]:
    """One MessageInput per token count, with content naming its position."""
    return [
        MessageInput(role=role, content=f"message {i}", token_count=count)
        for i, count in enumerate(token_counts, start=1)
    ]


async def count_rows(db: Database, context_id: str) -> int:
    """Physical message rows for a context, ignoring every visibility filter."""
    async with db.reader().execute(
        "SELECT COUNT(*) FROM messages WHERE context_id = ?", (context_id,)
    ) as cursor:
        row = await cursor.fetchone()
    return row[0]


async def raw_context(db: Database, context_id: str) -> dict[str, Any]:
    """The context row as stored, including soft-deleted ones."""
    async with db.reader().execute("SELECT * FROM contexts WHERE id = ?", (context_id,)) as cursor:
        row = await cursor.fetchone()
    return dict(row)
