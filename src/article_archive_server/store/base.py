"""
Record Store Interface

Durable key-value persistence with per-record expiry. Every other layer of the
archive talks to storage through this interface; the concrete backend is
chosen once at startup (see `build_record_store`).

Values are JSON-compatible (dicts, lists, strings, numbers, booleans, None).
An expired record behaves exactly like a missing one.
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from typing import Any, Optional


class RecordStore(ABC):
    """Abstract async key-value store with per-key expiry."""

    @abstractmethod
    async def get(self, key: str) -> Optional[Any]:
        """
        Return the value stored under `key`, or None if absent or expired.
        """

    @abstractmethod
    async def set(self, key: str, value: Any, ttl: int) -> None:
        """
        Store `value` under `key`, replacing any previous value.

        Parameters
        ----------
        key : str
            Record key, see `store.keys`.
        value : Any
            JSON-compatible value.
        ttl : int
            Seconds until the record expires. Every write restarts the clock.
        """

    @abstractmethod
    async def delete(self, key: str) -> None:
        """Remove `key`. Deleting a missing key is not an error."""

    async def close(self) -> None:
        """Release backend resources. No-op by default."""
