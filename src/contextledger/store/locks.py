"""Per-context exclusive locks for serialising appends."""

from __future__ import annotations

import asyncio
from collections.abc import AsyncIterator
from contextlib import asynccontextmanager

from contextledger.store.errors import LockTimeoutError


class ContextLocks:
    """
    Registry of ``asyncio.Lock`` objects keyed by context ID.

    Appends to the same context queue on one lock; appends to different
    contexts never touch each other's lock. Entries are reference counted and
    dropped once no coroutine holds or waits on them, so the registry stays
    proportional to the number of contexts with in-flight appends.

    Only correct within a single process and a single event loop.
    """

    def __init__(self) -> None:
        self._locks: dict[str, asyncio.Lock] = {}
        self._refs: dict[str, int] = {}

    @asynccontextmanager
    async def hold(self, key: str, timeout: float | None = None) -> AsyncIterator[None]:
        """
        Hold the exclusive lock for ``key`` for the duration of the block.

        Args:
            key: The context ID.
            timeout: Seconds to wait for the lock. None waits indefinitely.

        Raises:
            LockTimeoutError: If the lock was not acquired within ``timeout``.
        """
        lock = self._locks.get(key)
        if lock is None:
            lock = self._locks[key] = asyncio.Lock()
        self._refs[key] = self._refs.get(key, 0) + 1
        try:
            if timeout is None:
                await lock.acquire()
            else:
                try:
                    await asyncio.wait_for(lock.acquire(), timeout)
                except TimeoutError as exc:
                    raise LockTimeoutError(key, timeout) from exc
            try:
                yield
            finally:
                lock.release()
        finally:
            self._refs[key] -= 1
            if self._refs[key] == 0:
                del self._refs[key]
                del self._locks[key]

    def is_locked(self, key: str) -> bool:
        lock = self._locks.get(key)
        return lock is not None and lock.locked()

    def __len__(self) -> int:
        return len(self._locks)
