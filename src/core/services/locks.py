"""Per-key asyncio locks for (item, location) mutual exclusion."""

import asyncio
from collections.abc import AsyncIterator
from contextlib import asynccontextmanager

StockKey = tuple[str, str]


class KeyedLocks:
    """
    One ``asyncio.Lock`` per stock key.

    Multi-key acquisition always goes in sorted key order so two callers
    holding overlapping key sets cannot deadlock.
    """

    def __init__(self) -> None:
        self._locks: dict[StockKey, asyncio.Lock] = {}

    def lock_for(self, key: StockKey) -> asyncio.Lock:
        lock = self._locks.get(key)
        if lock is None:
            lock = self._locks[key] = asyncio.Lock()
        return lock

    def is_locked(self, key: StockKey) -> bool:
        lock = self._locks.get(key)
        return lock is not None and lock.locked()

    @asynccontextmanager
    async def acquire(self, *keys: StockKey) -> AsyncIterator[tuple[StockKey, ...]]:
        ordered = tuple(sorted(set(keys)))
        acquired: list[asyncio.Lock] = []
        try:
            for key in ordered:
                lock = self.lock_for(key)
                await lock.acquire()
                acquired.append(lock)
            yield ordered
        finally:
            for lock in reversed(acquired):
                lock.release()
