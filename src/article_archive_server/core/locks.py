"""
Keyed Locks

Registry of asyncio locks keyed by an arbitrary string (a user id, a caller
address). Used to serialize read-modify-write cycles against the record store
for a single key.

Scope
-----
- Locks are per process. Several worker processes sharing one store still
  race each other; within one event loop, mutations for a key are serialized.
- Entries are dropped once no coroutine holds or waits on them, so the
  registry does not grow with the number of distinct keys ever seen.
"""

from __future__ import annotations

import asyncio
from contextlib import asynccontextmanager
from typing import AsyncIterator, Dict


class KeyedLocks:
    """Hands out one asyncio.Lock per key."""

    def __init__(self) -> None:
        self._locks: Dict[str, asyncio.Lock] = {}
        self._waiters: Dict[str, int] = {}

    @asynccontextmanager
    async def hold(self, key: str) -> AsyncIterator[None]:
        """
        Hold the lock for `key` for the duration of the ``async with`` block.

        Example:
            async with locks.hold(user_id):
                ...
        """
        lock = self._locks.setdefault(key, asyncio.Lock())
        self._waiters[key] = self._waiters.get(key, 0) + 1
        try:
            async with lock:
                yield
        finally:
            self._waiters[key] -= 1
            if self._waiters[key] == 0:
                del self._waiters[key]
                del self._locks[key]

    def __len__(self) -> int:
        return len(self._locks)
