"""Tests for the per-context lock registry."""

from __future__ import annotations

import asyncio

import pytest

from contextledger.store.errors import LockTimeoutError
from contextledger.store.locks import ContextLocks


class TestContextLocks:
    async def test_same_key_is_exclusive(self):
        locks = ContextLocks()
        order: list[str] = []

        async def worker(name: str) -> None:
            async with locks.hold("ctx_a"):
                order.append(f"{name}-in")
                await asyncio.sleep(0.01)
                order.append(f"{name}-out")

        await asyncio.gather(worker("one"), worker("two"))
        assert order == ["one-in", "one-out", "two-in", "two-out"]

    async def test_different_keys_are_independent(self):
        locks = ContextLocks()
        async with locks.hold("ctx_a"):
            async with locks.hold("ctx_b"):
                assert locks.is_locked("ctx_a")
                assert locks.is_locked("ctx_b")

    async def test_timeout_raises(self):
        locks = ContextLocks()
        async with locks.hold("ctx_a"):
            with pytest.raises(LockTimeoutError) as exc_info:
                async with locks.hold("ctx_a", timeout=0.01):
                    pass
        assert exc_info.value.context_id == "ctx_a"
        assert len(locks) == 0

    async def test_entries_dropped_when_idle(self):
        locks = ContextLocks()
        async with locks.hold("ctx_a"):
            assert len(locks) == 1
        assert len(locks) == 0
        assert not locks.is_locked("ctx_a")

    async def test_lock_released_on_error(self):
        locks = ContextLocks()
        with pytest.raises(RuntimeError):
            async with locks.hold("ctx_a"):
                raise RuntimeError("boom")
        async with locks.hold("ctx_a", timeout=0.1):
            pass
