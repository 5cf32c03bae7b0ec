"""
Article Repository Tests

Capacity bound, per-user URL uniqueness, ownership-checked deletion and the
split between index-safe updates and updates that must rewrite the index.
"""

import pytest

from article_archive_server.core.errors import DuplicateURL, QuotaExceeded
from article_archive_server.models import ArticleDraft
from article_archive_server.store import keys
from article_archive_server.validation import ensure_valid_article


@pytest.fixture
def draft(make_payload):
    def _draft(url="https://a.example/1", **overrides) -> ArticleDraft:
        return ensure_valid_article(make_payload(url=url, **overrides))
    return _draft


async def test_list_index_of_new_user_is_empty(articles, store):
    assert await articles.list_index("user_new") == []
    assert await store.get(keys.user_articles("user_new")) is None


async def test_create_stores_record_and_index_entry(articles, draft):
    article = await articles.create("u1", draft())

    assert article.id.startswith("article_")
    assert article.user_id == "u1"
    assert article.saved_at == article.updated_at

    index = await articles.list_index("u1")
    assert [entry.id for entry in index] == [article.id]
    assert index[0] == article.to_index_entry()
    assert await articles.get_full(article.id) == article


async def test_create_preserves_save_order(articles, draft):
    ids = [(await articles.create("u1", draft(f"https://a.example/{n}"))).id for n in range(3)]
    assert [entry.id for entry in await articles.list_index("u1")] == ids


async def test_create_beyond_capacity_fails_without_mutation(articles, store, draft):
    for n in range(3):
        await articles.create("u1", draft(f"https://a.example/{n}"))
    before = await store.get(keys.user_articles("u1"))
    records_before = len(store)

    with pytest.raises(QuotaExceeded):
        await articles.create("u1", draft("https://a.example/overflow"))

    assert await store.get(keys.user_articles("u1")) == before
    assert len(store) == records_before


async def test_create_duplicate_url_fails(articles, draft):
    await articles.create("u1", draft())

    with pytest.raises(DuplicateURL):
        await articles.create("u1", draft())

    assert len(await articles.list_index("u1")) == 1


async def test_same_url_allowed_for_different_users(articles, draft):
    await articles.create("u1", draft())
    await articles.create("u2", draft())

    assert len(await articles.list_index("u1")) == 1
    assert len(await articles.list_index("u2")) == 1


async def test_update_replaces_highlights(articles, draft):
    article = await articles.create("u1", draft(highlights=[{"text": "one"}, {"text": "two"}]))

    updated = await articles.update(article.id, {"highlights": [{"text": "three"}]})

    assert [h.text for h in updated.highlights] == ["three"]
    assert updated.highlight_count == 1
    assert updated.saved_at == article.saved_at
    assert (await articles.get_full(article.id)).highlights == updated.highlights


async def test_update_missing_article_returns_none(articles):
    assert await articles.update("article_missing", {"summary": "x"}) is None


async def test_update_refuses_indexed_fields(articles, draft):
    article = await articles.create("u1", draft())

    with pytest.raises(ValueError):
        await articles.update(article.id, {"title": "Sneaky rename"})


async def test_update_with_index_keeps_views_in_sync(articles, draft):
    article = await articles.create("u1", draft())

    updated = await articles.update_with_index(
        "u1",
        article.id,
        {"title": "Renamed", "url": "https://a.example/moved"},
    )

    assert updated.title == "Renamed"
    index = await articles.list_index("u1")
    assert index[0].title == "Renamed"
    assert index[0].url == "https://a.example/moved"


async def test_update_with_index_checks_owner_and_url(articles, draft):
    first = await articles.create("u1", draft("https://a.example/1"))
    await articles.create("u1", draft("https://a.example/2"))

    assert await articles.update_with_index("u2", first.id, {"title": "Mine now"}) is None

    with pytest.raises(DuplicateURL):
        await articles.update_with_index("u1", first.id, {"url": "https://a.example/2"})


async def test_delete_removes_record_and_entry(articles, draft):
    article = await articles.create("u1", draft())

    assert await articles.delete("u1", article.id) is True
    assert await articles.get_full(article.id) is None
    assert await articles.list_index("u1") == []


async def test_delete_other_users_article_is_refused(articles, draft):
    article = await articles.create("u1", draft())

    assert await articles.delete("u2", article.id) is False
    assert await articles.get_full(article.id) == article
    assert len(await articles.list_index("u1")) == 1


async def test_delete_unknown_article(articles):
    assert await articles.delete("u1", "article_missing") is False


async def test_hydrate_falls_back_to_index_entry(articles, store, draft):
    kept = await articles.create("u1", draft("https://a.example/1"))
    lost = await articles.create("u1", draft("https://a.example/2"))
    await store.delete(keys.article(lost.id))

    hydrated = await articles.hydrate(await articles.list_index("u1"))

    assert hydrated[0] == kept
    assert hydrated[1] == lost.to_index_entry()


async def test_create_refreshes_expiry_of_existing_records(articles, clock, draft):
    first = await articles.create("u1", draft("https://a.example/1"))
    clock.advance(20 * 3600)
    await articles.create("u1", draft("https://a.example/2"))
    clock.advance(5 * 3600)

    assert await articles.get_full(first.id) == first
    assert len(await articles.live_index("u1")) == 2


async def test_update_refreshes_expiry_of_index(articles, clock, draft):
    article = await articles.create("u1", draft())
    clock.advance(20 * 3600)
    await articles.update(article.id, {"summary": "Refreshed."})
    clock.advance(5 * 3600)

    assert [entry.id for entry in await articles.list_index("u1")] == [article.id]


async def test_live_index_drops_entries_without_record(articles, store, draft):
    kept = await articles.create("u1", draft("https://a.example/1"))
    lost = await articles.create("u1", draft("https://a.example/2"))
    await store.delete(keys.article(lost.id))

    assert await articles.live_index("u1") == [kept.to_index_entry()]
    assert [entry.id for entry in await articles.list_index("u1")] == [kept.id]


async def test_dangling_entry_does_not_block_create(articles, store, draft):
    created = [await articles.create("u1", draft(f"https://a.example/{n}")) for n in range(3)]
    await store.delete(keys.article(created[0].id))

    again = await articles.create("u1", draft("https://a.example/0"))

    assert [entry.id for entry in await articles.list_index("u1")] == [
        created[1].id,
        created[2].id,
        again.id,
    ]


async def test_delete_dangling_entry(articles, store, draft):
    article = await articles.create("u1", draft())
    await store.delete(keys.article(article.id))

    assert await articles.delete("u2", article.id) is False
    assert await articles.delete("u1", article.id) is True
    assert await articles.list_index("u1") == []
