"""Business logic services.

This module contains the highlight engine (segmentation, selection
translation, persistence, legacy migration, rendering) and the service-layer
functions route handlers call.
"""

from folio.services.highlight_store import (
    HighlightRepository,
    HighlightStore,
    MemoryHighlightStore,
    SqlHighlightStore,
)
from folio.services.migration import audit_highlights, migrate_legacy_highlights
from folio.services.paragraphs import segment
from folio.services.rendering import render_article, render_paragraph
from folio.services.selection import translate_selection

__all__ = [
    "HighlightRepository",
    "HighlightStore",
    "MemoryHighlightStore",
    "SqlHighlightStore",
    "audit_highlights",
    "migrate_legacy_highlights",
    "render_article",
    "render_paragraph",
    "segment",
    "translate_selection",
]
