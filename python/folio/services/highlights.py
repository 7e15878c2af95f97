"""Highlight service layer.

Service functions correspond 1:1 with route handlers.
Routes are transport-only and call exactly one service function.

All operations:
- Use the repository over HIGHLIGHTS_STORE (the request's session for sql)
- Raise NotFoundError(E_HIGHLIGHT_NOT_FOUND) for unknown highlight ids
- Take the article body from the caller; articles are never fetched here
- Run legacy migration before rendering, so anchored records persist
"""

from sqlalchemy.orm import Session

from folio.config import HighlightStoreKind, OverlapPolicy, get_settings
from folio.errors import ApiErrorCode, InvalidRequestError, NotFoundError
from folio.logging import get_logger, set_article_context
from folio.schemas.highlights import (
    CreateHighlightRequest,
    Highlight,
    HighlightStats,
    UpdateHighlightRequest,
)
from folio.schemas.reader import IntegrityIssue, RenderedParagraph
from folio.services.highlight_store import (
    HighlightRepository,
    MemoryHighlightStore,
    SqlHighlightStore,
)
from folio.services.migration import audit_highlights, migrate_legacy_highlights
from folio.services.paragraphs import segment
from folio.services.rendering import render_article

logger = get_logger(__name__)


# =============================================================================
# Shared Helpers
# =============================================================================


def get_repository(db: Session) -> HighlightRepository:
    """Build the repository for one request over the configured store.

    The memory store ignores the session and reads the collection kept under
    HIGHLIGHTS_STORAGE_NAMESPACE.
    """
    settings = get_settings()
    if settings.highlights_store == HighlightStoreKind.MEMORY:
        return HighlightRepository(MemoryHighlightStore(settings.highlights_storage_namespace))
    return HighlightRepository(SqlHighlightStore(db))


def validate_position_or_400(req: CreateHighlightRequest) -> None:
    """Require either a full, ordered offset triple or none at all.

    Raises:
        InvalidRequestError(E_HIGHLIGHT_INVALID_RANGE): If the position is
            partial or end <= start.
    """
    position = (req.paragraph_index, req.start, req.end)
    if all(v is None for v in position):
        return
    if any(v is None for v in position):
        raise InvalidRequestError(
            ApiErrorCode.E_HIGHLIGHT_INVALID_RANGE,
            "paragraph_index, start and end must be provided together",
        )
    if req.start < 0 or req.end <= req.start:
        raise InvalidRequestError(ApiErrorCode.E_HIGHLIGHT_INVALID_RANGE, "Invalid highlight range")


def _not_found() -> NotFoundError:
    return NotFoundError(ApiErrorCode.E_HIGHLIGHT_NOT_FOUND, "Highlight not found")


# =============================================================================
# Service Functions (One per Route)
# =============================================================================


def list_highlights_for_article(
    db: Session, article_id: str, color: str | None = None
) -> list[Highlight]:
    """List an article's highlights ordered by (paragraph_index, start).

    With a color, only highlights of that palette color are returned.
    """
    repo = get_repository(db)
    if color is not None:
        return repo.list_by_color(article_id, color)
    return repo.get_for_article(article_id)


def create_highlight_for_article(
    db: Session, article_id: str, req: CreateHighlightRequest
) -> Highlight:
    """Create a highlight in offset or legacy form.

    Raises:
        InvalidRequestError(E_HIGHLIGHT_INVALID_RANGE): If the position is invalid.
        StorageError: If persistence fails.
    """
    validate_position_or_400(req)
    return get_repository(db).create(article_id, req)


def get_highlight(db: Session, highlight_id: str) -> Highlight:
    """Get one highlight.

    Raises:
        NotFoundError(E_HIGHLIGHT_NOT_FOUND): If the id is unknown.
    """
    highlight = get_repository(db).get(highlight_id)
    if highlight is None:
        raise _not_found()
    return highlight


def update_highlight(db: Session, highlight_id: str, req: UpdateHighlightRequest) -> Highlight:
    """Patch color/title/note.

    Raises:
        NotFoundError(E_HIGHLIGHT_NOT_FOUND): If the id is unknown.
    """
    highlight = get_repository(db).update(highlight_id, req)
    if highlight is None:
        raise _not_found()
    return highlight


def delete_highlight(db: Session, highlight_id: str) -> None:
    """Delete one highlight.

    Raises:
        NotFoundError(E_HIGHLIGHT_NOT_FOUND): If the id is unknown.
    """
    if not get_repository(db).delete(highlight_id):
        raise _not_found()


def delete_highlights_for_article(db: Session, article_id: str) -> int:
    """Cascade delete for an article that is being removed."""
    return get_repository(db).delete_for_article(article_id)


def get_highlight_stats(db: Session, article_id: str) -> HighlightStats:
    return get_repository(db).stats(article_id)


def search_highlights(db: Session, query: str, article_id: str | None = None) -> list[Highlight]:
    return get_repository(db).search(query, article_id=article_id)


def migrate_article_highlights(db: Session, article_id: str, body_text: str) -> list[Highlight]:
    """Anchor the article's legacy highlights and return the full ordered set."""
    set_article_context(article_id)
    repo = get_repository(db)
    migrate_legacy_highlights(repo.get_for_article(article_id), segment(body_text), repo)
    return repo.get_for_article(article_id)


def audit_article_highlights(db: Session, article_id: str, body_text: str) -> list[IntegrityIssue]:
    """Report highlights that no longer agree with the article body."""
    set_article_context(article_id)
    return audit_highlights(get_repository(db).get_for_article(article_id), segment(body_text))


def render_article_highlights(
    db: Session,
    article_id: str,
    body_text: str,
    policy: OverlapPolicy | None = None,
) -> list[RenderedParagraph]:
    """Segment, migrate, then render every paragraph of an article."""
    set_article_context(article_id)
    if policy is None:
        policy = get_settings().highlight_overlap_policy

    repo = get_repository(db)
    paragraphs = segment(body_text)
    highlights = migrate_legacy_highlights(repo.get_for_article(article_id), paragraphs, repo)
    rendered = render_article(paragraphs, highlights, policy)

    logger.info(
        "article_rendered",
        paragraph_count=len(paragraphs),
        highlight_count=len(highlights),
        policy=policy.value,
    )
    return rendered
