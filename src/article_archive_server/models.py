"""
Domain Models

Typed records held in the record store: users, articles, their highlights and
the per-user article index.

Every model round-trips through `model_dump(mode="json")` / `model_validate`,
which is how repositories persist them. Derived values (highlight count,
summary/highlight flags, index projection) live here as accessors so callers
never recompute them.
"""

from __future__ import annotations

from datetime import datetime, timezone
from typing import List, Optional, Union

from pydantic import BaseModel, ConfigDict, Field


def utcnow() -> datetime:
    """Current time as a timezone-aware UTC datetime."""
    return datetime.now(timezone.utc)


# ---------------------------------------------------------------------
# Identity
# ---------------------------------------------------------------------

class IdentityTuple(BaseModel):
    """
    Identity as verified by the external identity provider.

    The archive trusts these values as authoritative.
    """

    email: str
    external_id: str
    name: str
    picture: Optional[str] = None

    model_config = ConfigDict(frozen=True)


class User(BaseModel):
    """
    Internal user record, keyed in the store by external identity id.
    """

    id: str = Field(..., min_length=1)
    external_id: str = Field(..., min_length=1)
    email: str
    name: str
    picture: Optional[str] = None
    article_count: int = Field(default=0, ge=0)
    created_at: datetime
    updated_at: datetime

    model_config = ConfigDict(extra="ignore")


# ---------------------------------------------------------------------
# Articles
# ---------------------------------------------------------------------

class Highlight(BaseModel):
    """
    Excerpt and annotation captured from an article.

    Opaque to the archive: extra client fields are kept as-is.
    """

    text: str = ""
    note: Optional[str] = None
    color: Optional[str] = None
    created_at: Optional[str] = None

    model_config = ConfigDict(extra="allow")


class ArticleIndexEntry(BaseModel):
    """
    Lightweight projection of an Article kept in the owner's article index.
    """

    id: str
    title: str
    url: str
    website: str
    saved_at: datetime

    model_config = ConfigDict(extra="ignore")


class ArticleDraft(BaseModel):
    """
    Sanitized, validated article content submitted by a client.
    """

    title: str
    url: str
    website: str
    content: str
    summary: Optional[str] = None
    highlights: List[Highlight] = Field(default_factory=list)
    byline: Optional[str] = None
    reading_time: Optional[Union[int, str]] = None
    last_highlighted_at: Optional[datetime] = None


class Article(BaseModel):
    """
    Full saved article, stored under `article:<id>`.
    """

    id: str
    user_id: str
    title: str
    url: str
    website: str
    content: str
    summary: Optional[str] = None
    highlights: List[Highlight] = Field(default_factory=list)
    byline: Optional[str] = None
    reading_time: Optional[Union[int, str]] = None
    last_highlighted_at: Optional[datetime] = None
    saved_at: datetime
    updated_at: datetime

    model_config = ConfigDict(extra="ignore")

    @property
    def highlight_count(self) -> int:
        return len(self.highlights)

    @property
    def has_highlights(self) -> bool:
        return bool(self.highlights)

    @property
    def has_summary(self) -> bool:
        return bool(self.summary)

    def to_index_entry(self) -> ArticleIndexEntry:
        """Projection stored in the owner's article index."""
        return ArticleIndexEntry(
            id=self.id,
            title=self.title,
            url=self.url,
            website=self.website,
            saved_at=self.saved_at,
        )
