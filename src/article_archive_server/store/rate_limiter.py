"""
Rate Limiter

Fixed-window request counter per caller address, persisted in the record
store under `rate_limit:<address>`.

Each admitted call increments the counter and rewrites it with a fresh
window-length expiry; once the counter lapses the window starts over at zero.
This is best-effort protection: the read and the increment are serialized per
address inside one process only.
"""

from __future__ import annotations

import logging
from typing import NamedTuple, Optional

from . import keys
from .base import RecordStore
from ..core.errors import RateLimited
from ..core.locks import KeyedLocks

logger = logging.getLogger("archive.ratelimit")


class RateLimitStatus(NamedTuple):
    """Outcome of one admission check."""
    admitted: bool
    count: int
    limit: int


class RateLimiter:
    """
    Per-address fixed-window rate limiter.
    """

    def __init__(
        self,
        store: RecordStore,
        max_requests: int,
        window_seconds: int = 60,
        locks: Optional[KeyedLocks] = None,
    ) -> None:
        """
        Parameters
        ----------
        store : RecordStore
            Backing store for the per-address counters.
        max_requests : int
            Calls admitted per address within one window.
        window_seconds : int
            Counter lifetime in seconds.
        locks : Optional[KeyedLocks]
            Lock registry used to serialize updates for one address.
        """
        self._store = store
        self._max_requests = max_requests
        self._window = window_seconds
        self._locks = locks if locks is not None else KeyedLocks()

    async def check(self, address: str) -> RateLimitStatus:
        """
        Admit or reject one call from `address`.

        A rejected call does not touch the stored counter.
        """
        key = keys.rate_limit(address)

        async with self._locks.hold(key):
            current = await self._store.get(key) or 0

            if current >= self._max_requests:
                return RateLimitStatus(
                    admitted=False,
                    count=current,
                    limit=self._max_requests,
                )

            await self._store.set(key, current + 1, ttl=self._window)

        return RateLimitStatus(
            admitted=True,
            count=current + 1,
            limit=self._max_requests,
        )

    async def admit(self, address: str) -> bool:
        """Return True if the call from `address` is within its window budget."""
        status = await self.check(address)
        return status.admitted

    async def enforce(self, address: str) -> None:
        """
        Raise RateLimited when `address` has used up its window budget.
        """
        status = await self.check(address)
        if not status.admitted:
            logger.warning(
                "Rate limit exceeded for %s (%d/%d)",
                address,
                status.count,
                status.limit,
            )
            raise RateLimited()
