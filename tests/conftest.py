import os

# Settings are read at import time; required values must exist first.
os.environ.setdefault("JWT_SECRET", "test-secret-for-archive-tokens-must-be-long-enough")
os.environ.setdefault("STORE_BACKEND", "memory")

import pytest

from article_archive_server.core.locks import KeyedLocks
from article_archive_server.models import IdentityTuple
from article_archive_server.reconciliation import ReconciliationEngine
from article_archive_server.repositories import ArticleRepository, IdentityRepository
from article_archive_server.store import InMemoryRecordStore
from article_archive_server.store.rate_limiter import RateLimiter


class FakeClock:
    """Manually advanced clock for expiry tests."""

    def __init__(self, start: float = 1_700_000_000.0):
        self.now = start

    def __call__(self) -> float:
        return self.now

    def advance(self, seconds: float) -> None:
        self.now += seconds


def make_article(url="https://a.example/1", highlights=None, **overrides):
    """Valid article payload as a client would submit it."""
    payload = {
        "title": "A Long Read",
        "url": url,
        "website": "a.example",
        "content": "<p>" + "Lorem ipsum dolor sit amet. " * 10 + "</p>",
        "highlights": highlights if highlights is not None else [],
    }
    payload.update(overrides)
    return payload


@pytest.fixture
def clock():
    return FakeClock()


@pytest.fixture
def store(clock):
    return InMemoryRecordStore(clock=clock)


@pytest.fixture
def locks():
    return KeyedLocks()


@pytest.fixture
def articles(store):
    return ArticleRepository(store, max_articles_per_user=3, article_ttl=86400)


@pytest.fixture
def identities(store):
    return IdentityRepository(store, user_ttl=3600, article_ttl=86400)


@pytest.fixture
def engine(articles, locks):
    return ReconciliationEngine(articles, locks=locks)


@pytest.fixture
def limiter(store, locks):
    return RateLimiter(store, max_requests=3, window_seconds=60, locks=locks)


@pytest.fixture
def identity():
    return IdentityTuple(
        email="reader@example.com",
        external_id="google-123",
        name="Avid Reader",
        picture="https://example.com/avatar.png",
    )


@pytest.fixture
def make_payload():
    return make_article
