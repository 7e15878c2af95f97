"""Highlights API routes.

Route handlers for highlight CRUD, legacy migration, auditing and rendering.
Routes are transport-only: each calls exactly one service function.

- Article-scoped: /articles/{article_id}/highlights[...], /articles/{article_id}/render
- Highlight-scoped: /highlights/{highlight_id}, /highlights/search
- Response envelope: {"data": ...}
- Error envelope: {"error": {"code": "...", "message": "...", "request_id": "..."}}
"""

from typing import Annotated

from fastapi import APIRouter, Depends, Query, Response
from sqlalchemy.orm import Session

from folio.api.deps import get_db
from folio.responses import collection_response, model_response, success_response
from folio.schemas.highlights import (
    HIGHLIGHT_COLORS,
    CreateHighlightRequest,
    UpdateHighlightRequest,
)
from folio.schemas.reader import ArticleBodyRequest, RenderArticleRequest
from folio.services import highlights as highlights_service

router = APIRouter(tags=["highlights"])


# =============================================================================
# Article-Scoped Endpoints
# =============================================================================


@router.get("/articles/{article_id}/highlights")
def list_highlights(
    article_id: str,
    db: Annotated[Session, Depends(get_db)],
    color: HIGHLIGHT_COLORS | None = None,
) -> dict:
    """List an article's highlights ordered by paragraph, then start offset.

    Legacy highlights (no position yet) sort first, as if at (0, 0).
    Pass ?color= to keep one palette color only.

    Errors:
        E_INVALID_REQUEST (400): Unknown color.
    """
    result = highlights_service.list_highlights_for_article(
        db=db, article_id=article_id, color=color
    )
    return collection_response("highlights", result)


@router.post("/articles/{article_id}/highlights", status_code=201)
def create_highlight(
    article_id: str,
    request: CreateHighlightRequest,
    db: Annotated[Session, Depends(get_db)],
) -> dict:
    """Create a highlight on an article.

    Send paragraph_index/start/end together (offset form) or omit all three
    (legacy form, text only).

    Errors:
        E_HIGHLIGHT_INVALID_RANGE (400): Partial position or end <= start.
        E_INVALID_REQUEST (400): Unknown color or oversize fields.
        E_STORAGE_ERROR (500): Persistence failed.
    """
    result = highlights_service.create_highlight_for_article(
        db=db, article_id=article_id, req=request
    )
    return model_response(result)


@router.delete("/articles/{article_id}/highlights")
def delete_article_highlights(
    article_id: str,
    db: Annotated[Session, Depends(get_db)],
) -> dict:
    """Delete every highlight of an article (article deletion cascade)."""
    deleted = highlights_service.delete_highlights_for_article(db=db, article_id=article_id)
    return success_response({"deleted": deleted})


@router.get("/articles/{article_id}/highlights/stats")
def highlight_stats(
    article_id: str,
    db: Annotated[Session, Depends(get_db)],
) -> dict:
    """Counts by note presence, legacy state and color."""
    result = highlights_service.get_highlight_stats(db=db, article_id=article_id)
    return model_response(result)


@router.post("/articles/{article_id}/highlights/migrate")
def migrate_highlights(
    article_id: str,
    request: ArticleBodyRequest,
    db: Annotated[Session, Depends(get_db)],
) -> dict:
    """Anchor legacy highlights against the supplied article body."""
    result = highlights_service.migrate_article_highlights(
        db=db, article_id=article_id, body_text=request.body_text
    )
    return collection_response("highlights", result)


@router.post("/articles/{article_id}/highlights/audit")
def audit_highlights(
    article_id: str,
    request: ArticleBodyRequest,
    db: Annotated[Session, Depends(get_db)],
) -> dict:
    """Report highlights that disagree with the supplied article body."""
    result = highlights_service.audit_article_highlights(
        db=db, article_id=article_id, body_text=request.body_text
    )
    return collection_response("issues", result)


@router.post("/articles/{article_id}/render")
def render_article(
    article_id: str,
    request: RenderArticleRequest,
    db: Annotated[Session, Depends(get_db)],
) -> dict:
    """Render the supplied article body with its highlights as segments.

    Legacy highlights are migrated (and persisted) first.
    """
    result = highlights_service.render_article_highlights(
        db=db,
        article_id=article_id,
        body_text=request.body_text,
        policy=request.policy,
    )
    return collection_response("paragraphs", result)


# =============================================================================
# Highlight-Scoped Endpoints
# =============================================================================


@router.get("/highlights/search")
def search_highlights(
    db: Annotated[Session, Depends(get_db)],
    q: Annotated[str, Query(min_length=1)],
    article_id: str | None = None,
) -> dict:
    """Case-insensitive search over highlight text, title and note."""
    result = highlights_service.search_highlights(db=db, query=q, article_id=article_id)
    return collection_response("highlights", result)


@router.get("/highlights/{highlight_id}")
def get_highlight(
    highlight_id: str,
    db: Annotated[Session, Depends(get_db)],
) -> dict:
    """Get a single highlight by ID.

    Errors:
        E_HIGHLIGHT_NOT_FOUND (404): Highlight doesn't exist.
    """
    result = highlights_service.get_highlight(db=db, highlight_id=highlight_id)
    return model_response(result)


@router.patch("/highlights/{highlight_id}")
def update_highlight(
    highlight_id: str,
    request: UpdateHighlightRequest,
    db: Annotated[Session, Depends(get_db)],
) -> dict:
    """Update a highlight's color, title or note.

    Offsets cannot be changed.

    Errors:
        E_HIGHLIGHT_NOT_FOUND (404): Highlight doesn't exist.
        E_INVALID_REQUEST (400): Unknown field or color.
    """
    result = highlights_service.update_highlight(db=db, highlight_id=highlight_id, req=request)
    return model_response(result)


@router.delete("/highlights/{highlight_id}", status_code=204)
def delete_highlight(
    highlight_id: str,
    db: Annotated[Session, Depends(get_db)],
) -> Response:
    """Delete a highlight.

    Errors:
        E_HIGHLIGHT_NOT_FOUND (404): Highlight doesn't exist.
    """
    highlights_service.delete_highlight(db=db, highlight_id=highlight_id)
    return Response(status_code=204)
