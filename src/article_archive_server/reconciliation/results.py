"""
Reconciliation Results

Structured outcomes of engine operations. The HTTP layer renders these
directly; other callers can inspect them without parsing messages.
"""

from __future__ import annotations

from datetime import datetime
from typing import List, Literal, Optional, Union

from pydantic import BaseModel, Field

from ..models import Article, ArticleIndexEntry


class SaveOutcome(BaseModel):
    """
    Result of save-or-merge for one article.

    `timestamp` is the save time for a created article and the update time
    for a merged one.
    """
    action: Literal["created", "updated"]
    article_id: str
    title: str
    url: str
    website: str
    highlight_count: int = Field(..., ge=0)
    timestamp: datetime
    article: Article

    @classmethod
    def created(cls, article: Article) -> "SaveOutcome":
        return cls(
            action="created",
            article_id=article.id,
            title=article.title,
            url=article.url,
            website=article.website,
            highlight_count=article.highlight_count,
            timestamp=article.saved_at,
            article=article,
        )

    @classmethod
    def updated(cls, article: Article) -> "SaveOutcome":
        return cls(
            action="updated",
            article_id=article.id,
            title=article.title,
            url=article.url,
            website=article.website,
            highlight_count=article.highlight_count,
            timestamp=article.updated_at,
            article=article,
        )


class SyncItemResult(BaseModel):
    """
    Outcome for one client article admitted to a sync.
    """
    url: Optional[str] = None
    status: Literal["synced", "invalid", "error"]
    article_id: Optional[str] = None
    errors: Optional[List[str]] = None
    error: Optional[str] = None


class SyncReport(BaseModel):
    """
    Result of a batch sync.

    `skipped_count` counts new client articles left out because the archive
    had no free slots for them; it does not include per-item failures.
    """
    cloud_articles: List[ArticleIndexEntry] = Field(default_factory=list)
    sync_results: List[SyncItemResult] = Field(default_factory=list)
    skipped_count: int = Field(default=0, ge=0)

    @property
    def synced_count(self) -> int:
        return sum(1 for result in self.sync_results if result.status == "synced")


class ArticleListing(BaseModel):
    """
    A user's archive, as index entries or hydrated full records.
    """
    articles: List[Union[Article, ArticleIndexEntry]]
    count: int = Field(..., ge=0)
    max_articles: int = Field(..., ge=0)
