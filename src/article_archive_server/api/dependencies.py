"""
Service Wiring and FastAPI Dependencies

The application entry point builds one `ArchiveServices` bundle around a
record store and keeps it on `app.state`. Routes obtain the pieces they need
through the dependency functions below, which tests can override.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Optional

from fastapi import Depends, Request

from ..config import Settings
from ..core.locks import KeyedLocks
from ..identity.google import GoogleIdentityClient
from ..reconciliation import ReconciliationEngine
from ..repositories import ArticleRepository, IdentityRepository
from ..store import RecordStore
from ..store.rate_limiter import RateLimiter
from ..summaries.client import SummaryClient


@dataclass
class ArchiveServices:
    store: RecordStore
    identities: IdentityRepository
    articles: ArticleRepository
    engine: ReconciliationEngine
    rate_limiter: RateLimiter
    identity_provider: GoogleIdentityClient
    summarizer: Optional[SummaryClient] = None
    locks: KeyedLocks = field(default_factory=KeyedLocks)


def build_services(
    store: RecordStore,
    settings: Settings,
    identity_provider: Optional[GoogleIdentityClient] = None,
    summarizer: Optional[SummaryClient] = None,
) -> ArchiveServices:
    """
    Wire repositories, engine and limiter around `store`.

    A summarizer is only attached when one is passed in or an OpenAI key is
    configured.
    """
    if summarizer is None:
        candidate = SummaryClient()
        summarizer = candidate if candidate.configured else None

    locks = KeyedLocks()
    identities = IdentityRepository(
        store,
        user_ttl=settings.user_cache_ttl,
        article_ttl=settings.article_cache_ttl,
    )
    articles = ArticleRepository(
        store,
        max_articles_per_user=settings.max_articles_per_user,
        article_ttl=settings.article_cache_ttl,
    )

    return ArchiveServices(
        store=store,
        identities=identities,
        articles=articles,
        engine=ReconciliationEngine(articles, summarizer=summarizer, locks=locks),
        rate_limiter=RateLimiter(
            store,
            max_requests=settings.max_requests_per_minute,
            window_seconds=settings.rate_limit_window,
            locks=locks,
        ),
        identity_provider=identity_provider or GoogleIdentityClient(),
        summarizer=summarizer,
        locks=locks,
    )


# ---------------------------------------------------------------------
# Dependencies
# ---------------------------------------------------------------------

def get_services(request: Request) -> ArchiveServices:
    return request.app.state.services


def get_engine(services: ArchiveServices = Depends(get_services)) -> ReconciliationEngine:
    return services.engine


def get_identity_repository(
    services: ArchiveServices = Depends(get_services),
) -> IdentityRepository:
    return services.identities


def get_identity_provider(
    services: ArchiveServices = Depends(get_services),
) -> GoogleIdentityClient:
    return services.identity_provider


def get_rate_limiter(services: ArchiveServices = Depends(get_services)) -> RateLimiter:
    return services.rate_limiter


def client_address(request: Request) -> str:
    """
    Address used for rate limiting: the first X-Forwarded-For hop if a proxy
    set one, otherwise the socket peer.
    """
    forwarded = request.headers.get("x-forwarded-for")
    if forwarded:
        return forwarded.split(",")[0].strip()
    if request.client is not None:
        return request.client.host
    return "unknown"


async def enforce_rate_limit(
    request: Request,
    limiter: RateLimiter = Depends(get_rate_limiter),
) -> None:
    """Dependency for write-path routes; raises RateLimited when exhausted."""
    await limiter.enforce(client_address(request))
