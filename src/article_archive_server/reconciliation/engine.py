"""
Reconciliation Engine

The decision core of the archive.

Entry points
------------
1. `save_or_merge`: a single article from an authenticated user. A URL the
   user already holds takes the update path (content and highlights are
   replaced); any other URL takes the create path, subject to the quota.
2. `sync`: a client's locally held article set. Additive only: server
   articles are never modified or removed, client articles whose URL the
   server already holds are ignored, and at most the remaining free slots
   are filled, in the client's submission order.
3. `list_articles`, `delete_article`, `summarize_article`: the remaining
   caller-facing operations on a user's archive.

Concurrency
-----------
Every mutating operation holds the owner's lock from `KeyedLocks` for its
whole read-decide-write cycle, so two saves for the same user within one
process cannot both pass the quota or uniqueness check.
"""

from __future__ import annotations

import logging
from typing import Any, List, Mapping, Optional, Protocol, Sequence

from .results import ArticleListing, SaveOutcome, SyncItemResult, SyncReport
from ..core.errors import (
    ArchiveError,
    InvalidInput,
    NotFound,
    QuotaExceeded,
    UpstreamUnavailable,
)
from ..core.locks import KeyedLocks
from ..models import Article, ArticleDraft, utcnow
from ..repositories.articles import ArticleRepository
from ..validation import ensure_valid_article, sanitize_input

logger = logging.getLogger("archive.engine")


def _candidate_url(item: Mapping[str, Any]) -> Optional[str]:
    """URL of a client article as it would be stored, or None if not a string."""
    url = item.get("url")
    return sanitize_input(url) if isinstance(url, str) else None


class Summarizer(Protocol):
    """Anything that can turn article text into a short summary."""

    async def summarize(self, text: str) -> str:
        ...


class ReconciliationEngine:
    """
    Applies the save, merge, sync and delete rules on top of an
    ArticleRepository.
    """

    def __init__(
        self,
        articles: ArticleRepository,
        summarizer: Optional[Summarizer] = None,
        locks: Optional[KeyedLocks] = None,
    ) -> None:
        """
        Parameters
        ----------
        articles : ArticleRepository
            Repository holding article records and user indexes.
        summarizer : Optional[Summarizer]
            Summary collaborator. Without one, summary enrichment is refused.
        locks : Optional[KeyedLocks]
            Per-user lock registry. Share one instance across engines that
            use the same store.
        """
        self._articles = articles
        self._summarizer = summarizer
        self._locks = locks if locks is not None else KeyedLocks()

    @property
    def max_articles(self) -> int:
        return self._articles.max_articles_per_user

    # ------------------------------------------------------------------
    # Save-or-merge
    # ------------------------------------------------------------------

    async def save_or_merge(
        self,
        user_id: str,
        payload: Mapping[str, Any],
    ) -> SaveOutcome:
        """
        Save a submitted article, or merge it into the user's article with
        the same URL.

        Raises
        ------
        InvalidInput
            Payload failed validation (all violations listed).
        QuotaExceeded
            The URL is new and the archive is full.
        NotFound
            The matched article disappeared before it could be merged.
        """
        draft = ensure_valid_article(payload)

        async with self._locks.hold(user_id):
            index = await self._articles.live_index(user_id)
            match = next((entry for entry in index if entry.url == draft.url), None)

            if match is not None:
                article = await self._merge_highlights(match.id, draft)
                logger.info(
                    "user=%s action=updated article=%s highlights=%d",
                    user_id,
                    article.id,
                    article.highlight_count,
                )
                return SaveOutcome.updated(article)

            if len(index) >= self.max_articles:
                raise QuotaExceeded(
                    f"Maximum number of articles reached ({self.max_articles} limit)"
                )

            article = await self._articles.create(user_id, draft)

        logger.info(
            "user=%s action=created article=%s highlights=%d",
            user_id,
            article.id,
            article.highlight_count,
        )
        return SaveOutcome.created(article)

    async def _merge_highlights(self, article_id: str, draft: ArticleDraft) -> Article:
        """
        Replace content and highlights of an existing article with the
        submitted ones. Byline and reading time only overwrite when given.
        """
        fields = {
            "content": draft.content,
            "highlights": draft.highlights,
            "last_highlighted_at": draft.last_highlighted_at or utcnow(),
        }
        if draft.byline:
            fields["byline"] = draft.byline
        if draft.reading_time:
            fields["reading_time"] = draft.reading_time

        article = await self._articles.update(article_id, fields)
        if article is None:
            raise NotFound()
        return article

    # ------------------------------------------------------------------
    # Batch sync
    # ------------------------------------------------------------------

    async def sync(
        self,
        user_id: str,
        client_articles: Sequence[Mapping[str, Any]],
    ) -> SyncReport:
        """
        Add client articles the server does not hold yet, up to the quota.

        A failure for one admitted article is recorded in its result and
        does not stop the batch.
        """
        async with self._locks.hold(user_id):
            index = await self._articles.live_index(user_id)
            server_urls = {entry.url for entry in index}

            new_articles = [
                item for item in client_articles
                if _candidate_url(item) not in server_urls
            ]
            remaining_slots = max(0, self.max_articles - len(index))
            admitted = new_articles[:remaining_slots]

            results: List[SyncItemResult] = []
            for item in admitted:
                results.append(await self._sync_one(user_id, item))

            refreshed = await self._articles.list_index(user_id)

        report = SyncReport(
            cloud_articles=refreshed,
            sync_results=results,
            skipped_count=len(new_articles) - len(admitted),
        )
        logger.info(
            "user=%s action=sync submitted=%d synced=%d skipped=%d",
            user_id,
            len(client_articles),
            report.synced_count,
            report.skipped_count,
        )
        return report

    async def _sync_one(self, user_id: str, item: Mapping[str, Any]) -> SyncItemResult:
        url = _candidate_url(item)

        try:
            draft = ensure_valid_article(item)
        except InvalidInput as exc:
            return SyncItemResult(url=url, status="invalid", errors=exc.errors)

        try:
            article = await self._articles.create(user_id, draft)
        except ArchiveError as exc:
            logger.warning("user=%s sync item failed: %s", user_id, exc.message)
            return SyncItemResult(url=url, status="error", error=exc.message)

        return SyncItemResult(url=url, status="synced", article_id=article.id)

    # ------------------------------------------------------------------
    # Listing and deletion
    # ------------------------------------------------------------------

    async def list_articles(self, user_id: str, detailed: bool = False) -> ArticleListing:
        """
        Return the user's index, or the full records behind it when
        `detailed` is set.
        """
        async with self._locks.hold(user_id):
            live = await self._articles.live_articles(user_id)

        return ArticleListing(
            articles=live if detailed else [article.to_index_entry() for article in live],
            count=len(live),
            max_articles=self.max_articles,
        )

    async def delete_article(self, user_id: str, article_id: str) -> None:
        """
        Delete one of the user's articles.

        Raises
        ------
        NotFound
            The article does not exist or belongs to another user.
        """
        async with self._locks.hold(user_id):
            deleted = await self._articles.delete(user_id, article_id)

        if not deleted:
            raise NotFound()

    # ------------------------------------------------------------------
    # Summary enrichment
    # ------------------------------------------------------------------

    async def summarize_article(self, user_id: str, article_id: str) -> Article:
        """
        Generate and store a summary for one of the user's articles.

        The summarizer is called outside the user's lock; only the final
        write is serialized.

        Raises
        ------
        NotFound
            The article does not exist or belongs to another user.
        UpstreamUnavailable
            No summarizer is configured or it failed. The article is left
            unchanged.
        """
        if self._summarizer is None:
            raise UpstreamUnavailable("Summaries are not configured")

        article = await self._articles.get_full(article_id)
        if article is None or article.user_id != user_id:
            raise NotFound()

        summary = await self._summarizer.summarize(article.content)

        async with self._locks.hold(user_id):
            updated = await self._articles.update(article_id, {"summary": summary})

        if updated is None:
            raise NotFound()

        logger.info("user=%s action=summarized article=%s", user_id, article_id)
        return updated
