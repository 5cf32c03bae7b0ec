"""
SQL Record Store

`RecordStore` backed by a single SQLAlchemy table, for deployments where
records must survive restarts and be shared by several worker processes.

Each record is one row: the key, a JSON value, and an absolute expiry time in
epoch seconds. Expired rows are treated as missing and removed when read.
Any database failure surfaces as `UpstreamUnavailable`; nothing is retried here.
"""

from __future__ import annotations

import logging
import time
from contextlib import asynccontextmanager
from typing import Any, AsyncIterator, Callable, Optional

from sqlalchemy import JSON, Float, String, delete
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import (
    AsyncEngine,
    AsyncSession,
    async_sessionmaker,
    create_async_engine,
)
from sqlalchemy.orm import DeclarativeBase, Mapped, mapped_column

from .base import RecordStore
from ..core.errors import UpstreamUnavailable

logger = logging.getLogger("archive.store")


class Base(DeclarativeBase):
    """Base class for all models."""
    pass


class Record(Base):
    """
    One key-value record with an absolute expiry.
    """
    __tablename__ = "record"

    key: Mapped[str] = mapped_column(String(512), primary_key=True)
    value: Mapped[Any] = mapped_column(JSON, nullable=True)
    expires_at: Mapped[float] = mapped_column(Float, nullable=False, index=True)


class SqlRecordStore(RecordStore):
    """
    Record store persisted through an async SQLAlchemy engine.
    """

    def __init__(
        self,
        engine: AsyncEngine,
        clock: Callable[[], float] = time.time,
    ) -> None:
        """
        Parameters
        ----------
        engine : AsyncEngine
            Engine bound to the target database (asyncpg, aiosqlite, ...).
        clock : Callable[[], float]
            Returns the current time in epoch seconds.
        """
        self._engine = engine
        self._clock = clock
        self._sessionmaker = async_sessionmaker(
            bind=engine,
            class_=AsyncSession,
            expire_on_commit=False,
            autoflush=False,
        )

    async def create_schema(self) -> None:
        """Create the record table if it does not exist yet."""
        try:
            async with self._engine.begin() as conn:
                await conn.run_sync(Base.metadata.create_all)
        except (SQLAlchemyError, OSError) as exc:
            raise UpstreamUnavailable("Record store unavailable") from exc

    @asynccontextmanager
    async def _session(self) -> AsyncIterator[AsyncSession]:
        """
        Session scoped to one store operation: commit on success, roll back
        and translate the error on failure.
        """
        try:
            async with self._sessionmaker() as session:
                try:
                    yield session
                    await session.commit()
                except Exception:
                    await session.rollback()
                    raise
        except (SQLAlchemyError, OSError) as exc:
            logger.error("Record store operation failed: %s", type(exc).__name__)
            raise UpstreamUnavailable("Record store unavailable") from exc

    # ------------------------------------------------------------------
    # RecordStore
    # ------------------------------------------------------------------

    async def get(self, key: str) -> Optional[Any]:
        async with self._session() as session:
            record = await session.get(Record, key)
            if record is None:
                return None

            if record.expires_at <= self._clock():
                await session.delete(record)
                return None

            return record.value

    async def set(self, key: str, value: Any, ttl: int) -> None:
        async with self._session() as session:
            await session.merge(
                Record(key=key, value=value, expires_at=self._clock() + ttl)
            )

    async def delete(self, key: str) -> None:
        async with self._session() as session:
            await session.execute(delete(Record).where(Record.key == key))

    async def close(self) -> None:
        await self._engine.dispose()


def create_sql_store(
    database_url: str,
    clock: Callable[[], float] = time.time,
) -> SqlRecordStore:
    """
    Build a SqlRecordStore for `database_url`.

    Connection pool sizing only applies to server databases; SQLite URLs get
    the driver defaults.
    """
    engine_kwargs: dict = {"echo": False, "pool_pre_ping": True}
    if not database_url.startswith("sqlite"):
        engine_kwargs.update(pool_size=5, max_overflow=10)

    engine = create_async_engine(database_url, **engine_kwargs)
    return SqlRecordStore(engine, clock=clock)
