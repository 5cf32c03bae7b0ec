"""
Article Repository

Owns full article records and each user's article index.

Stored keys
-----------
- `article:<article_id>`      full Article record
- `user_articles:<user_id>`   ordered list of ArticleIndexEntry

The index is the authoritative view for quota and URL-uniqueness checks. Any
write that touches both views writes the full records first and the index
last, so a failure in between never leaves an index entry pointing at a
record that was not written.

Every write rewrites all of the owner's records together with the index, so
they share one expiry. Index entries whose record is gone anyway (lost, or
written by an older deployment) are dropped the next time the live view is
loaded, which frees their slot and their URL.
"""

from __future__ import annotations

import logging
from typing import Any, Dict, List, Mapping, Optional, Tuple, Union

from ..core.errors import DuplicateURL, QuotaExceeded
from ..core.ids import generate_id
from ..models import Article, ArticleDraft, ArticleIndexEntry, utcnow
from ..store import keys
from ..store.base import RecordStore

logger = logging.getLogger("archive.articles")


# Fields mirrored in the index entry; only `update_with_index` may change them.
PROJECTED_FIELDS = frozenset({"title", "url", "website"})

# Fields `update` may replace without touching the index.
UPDATABLE_FIELDS = frozenset({
    "content",
    "highlights",
    "summary",
    "byline",
    "reading_time",
    "last_highlighted_at",
})


class ArticleRepository:
    """
    Article records plus the per-user index, with the capacity bound and
    per-user URL uniqueness enforced on create.
    """

    def __init__(
        self,
        store: RecordStore,
        max_articles_per_user: int,
        article_ttl: int,
    ) -> None:
        self._store = store
        self._max_articles = max_articles_per_user
        self._article_ttl = article_ttl

    @property
    def max_articles_per_user(self) -> int:
        return self._max_articles

    # ------------------------------------------------------------------
    # Reads
    # ------------------------------------------------------------------

    async def list_index(self, user_id: str) -> List[ArticleIndexEntry]:
        """
        Return the user's article index in save order.

        A user who never saved anything gets an empty list; nothing is created.
        """
        entries = await self._store.get(keys.user_articles(user_id))
        return [ArticleIndexEntry.model_validate(entry) for entry in entries or []]

    async def get_full(self, article_id: str) -> Optional[Article]:
        data = await self._store.get(keys.article(article_id))
        if data is None:
            return None
        return Article.model_validate(data)

    async def hydrate(
        self,
        index: List[ArticleIndexEntry],
    ) -> List[Union[Article, ArticleIndexEntry]]:
        """
        Load the full record for every index entry.

        An entry whose record is gone is returned as-is.
        """
        hydrated: List[Union[Article, ArticleIndexEntry]] = []
        for entry in index:
            article = await self.get_full(entry.id)
            hydrated.append(article or entry)
        return hydrated

    async def live_articles(self, user_id: str) -> List[Article]:
        """
        Return the full records behind the user's index, in save order.

        Entries whose record no longer exists are removed from the stored
        index as a side effect.
        """
        live, _ = await self._load_live(user_id)
        return live

    async def live_index(self, user_id: str) -> List[ArticleIndexEntry]:
        """Index entries backed by an existing record."""
        return [article.to_index_entry() for article in await self.live_articles(user_id)]

    # ------------------------------------------------------------------
    # Writes
    # ------------------------------------------------------------------

    async def create(self, user_id: str, draft: ArticleDraft) -> Article:
        """
        Store a new article and append it to the owner's index.

        Raises
        ------
        QuotaExceeded
            If the user already holds the maximum number of articles.
        DuplicateURL
            If the user already holds an article with the same URL.
        """
        live, _ = await self._load_live(user_id)

        if len(live) >= self._max_articles:
            raise QuotaExceeded(
                f"Maximum number of articles reached ({self._max_articles} limit)"
            )

        if any(existing.url == draft.url for existing in live):
            raise DuplicateURL()

        now = utcnow()
        article = Article(
            id=generate_id("article"),
            user_id=user_id,
            saved_at=now,
            updated_at=now,
            **draft.model_dump(),
        )

        await self._write_all(user_id, live + [article])

        logger.info("Created article %s for user %s", article.id, user_id)
        return article

    async def update(
        self,
        article_id: str,
        fields: Mapping[str, Any],
    ) -> Optional[Article]:
        """
        Replace non-indexed fields of an article.

        This is a shallow replacement: `highlights` overwrites the stored
        sequence, it is never appended to.

        Returns
        -------
        Optional[Article]
            The merged record, or None if the article does not exist.

        Raises
        ------
        ValueError
            If `fields` names an indexed or unknown field.
        """
        unknown = set(fields) - UPDATABLE_FIELDS
        if unknown:
            raise ValueError(
                f"Cannot update field(s) {', '.join(sorted(unknown))} without the index"
            )

        article = await self.get_full(article_id)
        if article is None:
            return None

        updated = self._merge(article, fields)

        live, _ = await self._load_live(updated.user_id)
        if any(existing.id == article_id for existing in live):
            await self._write_all(
                updated.user_id,
                [updated if existing.id == article_id else existing for existing in live],
            )
        else:
            await self._write_article(updated)
        return updated

    async def update_with_index(
        self,
        user_id: str,
        article_id: str,
        fields: Mapping[str, Any],
    ) -> Optional[Article]:
        """
        Update an article together with its index entry.

        The only path allowed to change title, url or website.

        Returns
        -------
        Optional[Article]
            The merged record, or None if the article does not exist or is
            owned by another user.

        Raises
        ------
        DuplicateURL
            If the new URL is already used by another of the user's articles.
        ValueError
            If `fields` names an unknown field.
        """
        unknown = set(fields) - UPDATABLE_FIELDS - PROJECTED_FIELDS
        if unknown:
            raise ValueError(f"Unknown article field(s): {', '.join(sorted(unknown))}")

        article = await self.get_full(article_id)
        if article is None or article.user_id != user_id:
            return None

        live, _ = await self._load_live(user_id)
        new_url = fields.get("url", article.url)
        if any(existing.url == new_url and existing.id != article_id for existing in live):
            raise DuplicateURL()

        updated = self._merge(article, fields)

        await self._write_all(
            user_id,
            [updated if existing.id == article_id else existing for existing in live],
        )
        return updated

    async def delete(self, user_id: str, article_id: str) -> bool:
        """
        Delete an article owned by `user_id`.

        Returns False without touching anything when the article does not
        exist or belongs to someone else; callers cannot tell the two apart.
        An entry left in the user's own index after its record vanished
        counts as owned: it is dropped and True is returned.
        """
        article = await self.get_full(article_id)
        if article is not None and article.user_id != user_id:
            return False

        live, dangling = await self._load_live(user_id)
        if article is None:
            return any(entry.id == article_id for entry in dangling)

        await self._write_all(
            user_id,
            [existing for existing in live if existing.id != article_id],
        )
        await self._store.delete(keys.article(article_id))

        logger.info("Deleted article %s for user %s", article_id, user_id)
        return True

    # ------------------------------------------------------------------
    # Internal helpers
    # ------------------------------------------------------------------

    @staticmethod
    def _merge(article: Article, fields: Mapping[str, Any]) -> Article:
        data: Dict[str, Any] = article.model_dump()
        data.update(fields)
        data["updated_at"] = utcnow()
        return Article.model_validate(data)

    async def _load_live(
        self,
        user_id: str,
    ) -> Tuple[List[Article], List[ArticleIndexEntry]]:
        """
        Split the user's index into live records and dangling entries,
        rewriting the index when any entry dangles.
        """
        index = await self.list_index(user_id)
        hydrated = await self.hydrate(index)

        live = [item for item in hydrated if isinstance(item, Article)]
        dangling = [item for item in hydrated if not isinstance(item, Article)]

        if dangling:
            logger.warning(
                "Dropping %d index entries without a record for user %s",
                len(dangling),
                user_id,
            )
            await self._write_index(
                user_id,
                [entry for entry, item in zip(index, hydrated) if isinstance(item, Article)],
            )
        return live, dangling

    async def _write_all(self, user_id: str, articles: List[Article]) -> None:
        # Records first, index last; all with the same fresh expiry.
        for article in articles:
            await self._write_article(article)
        await self._write_index(user_id, [article.to_index_entry() for article in articles])

    async def _write_article(self, article: Article) -> None:
        await self._store.set(
            keys.article(article.id),
            article.model_dump(mode="json"),
            ttl=self._article_ttl,
        )

    async def _write_index(
        self,
        user_id: str,
        index: List[ArticleIndexEntry],
    ) -> None:
        await self._store.set(
            keys.user_articles(user_id),
            [entry.model_dump(mode="json") for entry in index],
            ttl=self._article_ttl,
        )
