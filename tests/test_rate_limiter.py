"""
Rate Limiter Tests

Fixed-window counting per caller address, reset wholesale when the counter
expires.
"""

import pytest

from article_archive_server.core.errors import RateLimited
from article_archive_server.store import keys
from article_archive_server.store.rate_limiter import RateLimiter, RateLimitStatus


async def test_admits_up_to_the_limit(limiter):
    results = [await limiter.admit("10.0.0.1") for _ in range(3)]
    assert results == [True, True, True]
    assert await limiter.admit("10.0.0.1") is False


async def test_rejection_does_not_increment(limiter, store):
    for _ in range(4):
        await limiter.admit("10.0.0.1")

    assert await store.get(keys.rate_limit("10.0.0.1")) == 3


async def test_addresses_are_independent(limiter):
    for _ in range(3):
        await limiter.admit("10.0.0.1")

    assert await limiter.admit("10.0.0.1") is False
    assert await limiter.admit("10.0.0.2") is True


async def test_window_resets_after_expiry(limiter, clock):
    for _ in range(3):
        await limiter.admit("10.0.0.1")
    assert await limiter.admit("10.0.0.1") is False

    clock.advance(61)

    assert await limiter.admit("10.0.0.1") is True


async def test_check_reports_status(limiter):
    status = await limiter.check("10.0.0.1")
    assert status == RateLimitStatus(admitted=True, count=1, limit=3)


async def test_enforce_raises_when_exhausted(store):
    limiter = RateLimiter(store, max_requests=1)

    await limiter.enforce("10.0.0.1")
    with pytest.raises(RateLimited) as excinfo:
        await limiter.enforce("10.0.0.1")

    assert excinfo.value.status_code == 429
