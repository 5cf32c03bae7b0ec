"""
Article Routes

HTTP surface of the reconciliation engine. Every route requires a valid
bearer token; write routes that accept client content are also rate-limited
per caller address.

Routes
------
- GET    /articles                      list the archive (optionally full records)
- POST   /articles                      save-or-merge one article
- POST   /articles/sync                 additive batch sync
- DELETE /articles/{article_id}         ownership-checked delete
- POST   /articles/{article_id}/summary summary enrichment
"""

from typing import Annotated

from fastapi import APIRouter, Depends, Response, status

from .dependencies import enforce_rate_limit, get_engine
from .models import (
    ArticleListResponse,
    ArticlePayload,
    ArticleView,
    OperationResult,
    SaveArticleResponse,
    SavedArticleView,
    SummaryResponse,
    SyncRequest,
    SyncResponse,
)
from ..auth.security import get_current_user
from ..models import Article, User
from ..reconciliation import ReconciliationEngine

# ---------------------------------------------------------------------
# Router Configuration
# ---------------------------------------------------------------------

router = APIRouter(
    prefix="/articles",
    tags=["articles"],
)

# ---------------------------------------------------------------------
# Routes
# ---------------------------------------------------------------------

@router.get(
    "",
    response_model=ArticleListResponse,
    summary="List the caller's saved articles",
)
async def list_articles(
    user: Annotated[User, Depends(get_current_user)],
    engine: Annotated[ReconciliationEngine, Depends(get_engine)],
    detailed: bool = False,
) -> ArticleListResponse:
    """
    Return the caller's article index, or full records when `detailed` is set.
    """
    listing = await engine.list_articles(user.id, detailed=detailed)

    return ArticleListResponse(
        articles=[
            ArticleView.from_article(item) if isinstance(item, Article) else item
            for item in listing.articles
        ],
        count=listing.count,
        max_articles=listing.max_articles,
    )


@router.post(
    "",
    response_model=SaveArticleResponse,
    status_code=status.HTTP_201_CREATED,
    summary="Save an article or merge new highlights into it",
    dependencies=[Depends(enforce_rate_limit)],
)
async def save_article(
    req: ArticlePayload,
    response: Response,
    user: Annotated[User, Depends(get_current_user)],
    engine: Annotated[ReconciliationEngine, Depends(get_engine)],
) -> SaveArticleResponse:
    """
    Save-or-merge one article.

    Responds 201 when a new article was created and 200 when an article with
    the same URL already existed and was updated.
    """
    outcome = await engine.save_or_merge(user.id, req.model_dump(exclude_none=True))

    view = SavedArticleView(
        id=outcome.article_id,
        title=outcome.title,
        url=outcome.url,
        website=outcome.website,
        highlight_count=outcome.highlight_count,
    )

    if outcome.action == "updated":
        response.status_code = status.HTTP_200_OK
        view.updated_at = outcome.timestamp
        message = "Article updated with new highlights"
    else:
        view.saved_at = outcome.timestamp
        message = "Article saved successfully"

    return SaveArticleResponse(
        action=outcome.action,
        message=message,
        article=view,
    )


@router.post(
    "/sync",
    response_model=SyncResponse,
    summary="Add locally held articles the archive does not have yet",
    dependencies=[Depends(enforce_rate_limit)],
)
async def sync_articles(
    req: SyncRequest,
    user: Annotated[User, Depends(get_current_user)],
    engine: Annotated[ReconciliationEngine, Depends(get_engine)],
) -> SyncResponse:
    report = await engine.sync(user.id, req.local_articles)

    return SyncResponse(
        cloud_articles=report.cloud_articles,
        sync_results=report.sync_results,
        skipped_count=report.skipped_count,
    )


@router.delete(
    "/{article_id}",
    response_model=OperationResult,
    summary="Delete one of the caller's articles",
)
async def delete_article(
    article_id: str,
    user: Annotated[User, Depends(get_current_user)],
    engine: Annotated[ReconciliationEngine, Depends(get_engine)],
) -> OperationResult:
    """
    Delete an article. Responds 404 both for unknown ids and for articles
    owned by someone else.
    """
    await engine.delete_article(user.id, article_id)
    return OperationResult(message="Article deleted successfully")


@router.post(
    "/{article_id}/summary",
    response_model=SummaryResponse,
    summary="Generate a summary for one of the caller's articles",
)
async def summarize_article(
    article_id: str,
    user: Annotated[User, Depends(get_current_user)],
    engine: Annotated[ReconciliationEngine, Depends(get_engine)],
) -> SummaryResponse:
    article = await engine.summarize_article(user.id, article_id)
    return SummaryResponse(article=ArticleView.from_article(article))
