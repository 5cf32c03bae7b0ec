"""
In-Memory Record Store

Process-local implementation of `RecordStore`.

Design choices
--------------
- In-memory only (no persistence across process restarts).
- Expiry is evaluated lazily on read against an injectable clock, so tests
  can move time forward without sleeping.
- Thread-safe access using a re-entrant lock.
- Copy-on-read and copy-on-write semantics (callers cannot mutate internal
  state through a value they passed in or got back).
"""

from __future__ import annotations

import copy
import time
from threading import RLock
from typing import Any, Callable, Dict, Optional, Tuple

from .base import RecordStore


class InMemoryRecordStore(RecordStore):
    """
    Dict-backed store mapping keys to (value, expires_at) pairs.

    Suitable for a single-process deployment and for tests. For horizontally
    scaled setups use `SqlRecordStore`, which exposes the same interface.
    """

    def __init__(self, clock: Callable[[], float] = time.time) -> None:
        """
        Initialize an empty store.

        Parameters
        ----------
        clock : Callable[[], float]
            Returns the current time in seconds. Defaults to `time.time`.
        """
        self._records: Dict[str, Tuple[Any, float]] = {}
        self._lock = RLock()
        self._clock = clock

    # ------------------------------------------------------------------
    # Core operations
    # ------------------------------------------------------------------

    async def get(self, key: str) -> Optional[Any]:
        with self._lock:
            record = self._records.get(key)
            if record is None:
                return None

            value, expires_at = record
            if expires_at <= self._clock():
                del self._records[key]
                return None

            return copy.deepcopy(value)

    async def set(self, key: str, value: Any, ttl: int) -> None:
        with self._lock:
            self._records[key] = (copy.deepcopy(value), self._clock() + ttl)

    async def delete(self, key: str) -> None:
        with self._lock:
            self._records.pop(key, None)

    # ------------------------------------------------------------------
    # Utility operations
    # ------------------------------------------------------------------

    def clear(self) -> None:
        """
        Remove every record.

        Intended primarily for test setup/teardown or administrative resets.
        """
        with self._lock:
            self._records.clear()

    def __len__(self) -> int:
        """Number of stored records, including ones not yet evicted."""
        with self._lock:
            return len(self._records)
