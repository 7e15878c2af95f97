"""Pydantic schemas for request/response models.

All schemas are re-exported here for convenient imports.
"""

from folio.schemas.highlights import (
    HIGHLIGHT_COLORS,
    CreateHighlightRequest,
    Highlight,
    HighlightStats,
    UpdateHighlightRequest,
)
from folio.schemas.reader import (
    ArticleBodyRequest,
    HighlightSegment,
    IntegrityIssue,
    IntegrityIssueKind,
    Paragraph,
    RenderArticleRequest,
    RenderedParagraph,
    Segment,
    TextSegment,
)

__all__ = [
    # Highlights
    "HIGHLIGHT_COLORS",
    "CreateHighlightRequest",
    "Highlight",
    "HighlightStats",
    "UpdateHighlightRequest",
    # Reader
    "ArticleBodyRequest",
    "HighlightSegment",
    "IntegrityIssue",
    "IntegrityIssueKind",
    "Paragraph",
    "RenderArticleRequest",
    "RenderedParagraph",
    "Segment",
    "TextSegment",
]
