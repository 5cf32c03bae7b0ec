"""
Record Store Package

Key-value persistence with per-record expiry, with an in-memory backend and
a SQLAlchemy backend behind the same interface.
"""

from __future__ import annotations

from ..config import Settings
from .base import RecordStore
from .memory import InMemoryRecordStore
from .sql import SqlRecordStore, create_sql_store


async def build_record_store(settings: Settings) -> RecordStore:
    """
    Create the record store selected by `settings.store_backend`.

    The SQL backend has its schema created before it is returned.
    """
    if settings.store_backend == "sql":
        store = create_sql_store(settings.database_url)
        await store.create_schema()
        return store

    return InMemoryRecordStore()


__all__ = [
    "RecordStore",
    "InMemoryRecordStore",
    "SqlRecordStore",
    "create_sql_store",
    "build_record_store",
]
