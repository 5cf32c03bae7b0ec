"""
API Models for the Archive Server

This module defines the Pydantic models used for request/response validation
across the authentication and article endpoints.

Design Goals
------------
- Lenient request bodies: article fields are checked by the archive's own
  exhaustive validation, not rejected one by one here
- Safe defaults (no shared mutable state)
- Field names and aliases that match what existing clients send
- Derived values taken from the domain model accessors
"""

from __future__ import annotations

from datetime import datetime
from typing import Any, Dict, List, Literal, Optional, Union

from pydantic import BaseModel, ConfigDict, Field

from ..models import Article, ArticleIndexEntry, Highlight, User
from ..reconciliation.results import SyncItemResult


# ---------------------------------------------------------------------
# Authentication Models
# ---------------------------------------------------------------------

class GoogleUserInfo(BaseModel):
    """
    Profile the client believes it signed in as.
    """
    email: str = Field(..., min_length=1)
    name: Optional[str] = None
    picture: Optional[str] = None

    model_config = ConfigDict(extra="ignore")


class GoogleAuthRequest(BaseModel):
    """
    Sign-in request carrying a Google OAuth access token.
    """
    access_token: str = Field(..., min_length=1, alias="accessToken")
    user_info: GoogleUserInfo = Field(..., alias="userInfo")

    model_config = ConfigDict(populate_by_name=True, extra="ignore")


class UserView(BaseModel):
    """
    Public projection of a User.
    """
    id: str
    email: str
    name: str
    picture: Optional[str] = None
    created_at: datetime

    @classmethod
    def from_user(cls, user: User) -> "UserView":
        return cls(
            id=user.id,
            email=user.email,
            name=user.name,
            picture=user.picture,
            created_at=user.created_at,
        )


class AuthResponse(BaseModel):
    success: bool = True
    message: str = "Authentication successful"
    token: str
    user: UserView


# ---------------------------------------------------------------------
# Article Models
# ---------------------------------------------------------------------

class ArticlePayload(BaseModel):
    """
    Article as submitted by a client (save-or-merge, or one sync item).
    """
    title: Optional[str] = None
    url: Optional[str] = None
    website: Optional[str] = None
    content: Optional[str] = None
    summary: Optional[str] = None
    highlights: Optional[List[Dict[str, Any]]] = None
    byline: Optional[str] = None
    reading_time: Optional[Union[int, str]] = None
    last_highlighted_at: Optional[str] = None

    model_config = ConfigDict(extra="ignore")


class ArticleView(BaseModel):
    """
    Full article as returned to its owner.
    """
    id: str
    title: str
    url: str
    website: str
    content: str
    summary: Optional[str] = None
    highlights: List[Highlight] = Field(default_factory=list)
    highlight_count: int = Field(..., ge=0)
    has_summary: bool
    byline: Optional[str] = None
    reading_time: Optional[Union[int, str]] = None
    last_highlighted_at: Optional[datetime] = None
    saved_at: datetime
    updated_at: datetime

    @classmethod
    def from_article(cls, article: Article) -> "ArticleView":
        return cls(
            id=article.id,
            title=article.title,
            url=article.url,
            website=article.website,
            content=article.content,
            summary=article.summary,
            highlights=article.highlights,
            highlight_count=article.highlight_count,
            has_summary=article.has_summary,
            byline=article.byline,
            reading_time=article.reading_time,
            last_highlighted_at=article.last_highlighted_at,
            saved_at=article.saved_at,
            updated_at=article.updated_at,
        )


class SavedArticleView(BaseModel):
    """
    Projection returned by save-or-merge. Carries `saved_at` for a created
    article and `updated_at` for a merged one.
    """
    id: str
    title: str
    url: str
    website: str
    highlight_count: int = Field(..., ge=0)
    saved_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None


class SaveArticleResponse(BaseModel):
    success: bool = True
    action: Literal["created", "updated"]
    message: str
    article: SavedArticleView


class ArticleListResponse(BaseModel):
    success: bool = True
    articles: List[Union[ArticleView, ArticleIndexEntry]]
    count: int = Field(..., ge=0)
    max_articles: int = Field(..., ge=0)


class SyncRequest(BaseModel):
    """
    Client-held article set to reconcile with the archive.
    """
    local_articles: List[Dict[str, Any]] = Field(
        default_factory=list,
        alias="localArticles",
    )

    model_config = ConfigDict(populate_by_name=True, extra="ignore")


class SyncResponse(BaseModel):
    success: bool = True
    message: str = "Sync completed"
    cloud_articles: List[ArticleIndexEntry]
    sync_results: List[SyncItemResult]
    skipped_count: int = Field(..., ge=0)


class OperationResult(BaseModel):
    """
    Standardized mutation result for endpoints with nothing else to return.
    """
    success: bool = True
    message: str


class SummaryResponse(BaseModel):
    success: bool = True
    article: ArticleView
