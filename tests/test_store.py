"""
Record Store Tests

Both backends must honour the same contract: JSON values in, the same values
out, and expired records indistinguishable from missing ones.
"""

import pytest
from sqlalchemy.exc import OperationalError

from article_archive_server.core.errors import UpstreamUnavailable
from article_archive_server.config import Settings
from article_archive_server.store import (
    InMemoryRecordStore,
    SqlRecordStore,
    build_record_store,
    create_sql_store,
)
from article_archive_server.store import keys


class TestKeys:
    def test_key_layout(self):
        assert keys.user("g-1") == "user:g-1"
        assert keys.user_email("a@b.co") == "user_email:a@b.co"
        assert keys.user_articles("user_1") == "user_articles:user_1"
        assert keys.article("article_1") == "article:article_1"
        assert keys.rate_limit("10.0.0.1") == "rate_limit:10.0.0.1"


class TestInMemoryRecordStore:
    async def test_get_missing_returns_none(self, store):
        assert await store.get("nothing") is None

    async def test_set_then_get(self, store):
        await store.set("k", {"a": [1, 2]}, ttl=10)
        assert await store.get("k") == {"a": [1, 2]}

    async def test_record_expires(self, store, clock):
        await store.set("k", 1, ttl=60)

        clock.advance(59)
        assert await store.get("k") == 1

        clock.advance(1)
        assert await store.get("k") is None
        assert len(store) == 0

    async def test_set_restarts_expiry(self, store, clock):
        await store.set("k", 1, ttl=60)
        clock.advance(50)
        await store.set("k", 2, ttl=60)
        clock.advance(50)

        assert await store.get("k") == 2

    async def test_delete(self, store):
        await store.set("k", 1, ttl=60)
        await store.delete("k")
        await store.delete("never-existed")

        assert await store.get("k") is None

    async def test_values_are_copied(self, store):
        value = {"items": [1]}
        await store.set("k", value, ttl=60)
        value["items"].append(2)

        fetched = await store.get("k")
        fetched["items"].append(3)

        assert await store.get("k") == {"items": [1]}

    async def test_clear(self, store):
        await store.set("a", 1, ttl=60)
        await store.set("b", 2, ttl=60)
        store.clear()
        assert len(store) == 0


@pytest.fixture
async def sql_store(tmp_path, clock):
    store = create_sql_store(
        f"sqlite+aiosqlite:///{tmp_path / 'records.db'}",
        clock=clock,
    )
    await store.create_schema()
    yield store
    await store.close()


class TestSqlRecordStore:
    async def test_set_then_get(self, sql_store):
        await sql_store.set("user_articles:u1", [{"id": "a1", "url": "https://x"}], ttl=60)
        assert await sql_store.get("user_articles:u1") == [{"id": "a1", "url": "https://x"}]

    async def test_overwrite(self, sql_store):
        await sql_store.set("rate_limit:1.2.3.4", 1, ttl=60)
        await sql_store.set("rate_limit:1.2.3.4", 2, ttl=60)
        assert await sql_store.get("rate_limit:1.2.3.4") == 2

    async def test_expired_record_is_missing(self, sql_store, clock):
        await sql_store.set("k", {"v": 1}, ttl=60)
        clock.advance(61)
        assert await sql_store.get("k") is None

    async def test_delete(self, sql_store):
        await sql_store.set("k", "v", ttl=60)
        await sql_store.delete("k")
        assert await sql_store.get("k") is None

    async def test_database_errors_become_upstream_unavailable(self, sql_store, monkeypatch):
        async def broken_get(*args, **kwargs):
            raise OperationalError("SELECT", {}, Exception("database is locked"))

        monkeypatch.setattr("sqlalchemy.ext.asyncio.AsyncSession.get", broken_get)

        with pytest.raises(UpstreamUnavailable):
            await sql_store.get("k")


class TestBuildRecordStore:
    async def test_memory_backend(self):
        store = await build_record_store(Settings(store_backend="memory"))
        assert isinstance(store, InMemoryRecordStore)

    async def test_sql_backend_creates_schema(self, tmp_path):
        store = await build_record_store(
            Settings(
                store_backend="sql",
                database_url=f"sqlite+aiosqlite:///{tmp_path / 'built.db'}",
            )
        )
        try:
            assert isinstance(store, SqlRecordStore)
            await store.set("k", 1, ttl=60)
            assert await store.get("k") == 1
        finally:
            await store.close()
