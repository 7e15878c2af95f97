"""Paragraph segmentation for article bodies.

Splits a raw article body into the ordered paragraph sequence that every
highlight offset is relative to.

Rules:
- Any run of one or more line breaks (\\n or \\r\\n) ends a paragraph
- Each candidate is stripped of surrounding whitespace
- Candidates that are empty after stripping are discarded
- Indices are assigned after discarding, so they are dense from 0

Invariants:
- Segmenting the same body twice yields the same paragraphs (same count,
  same text, same indices)
- paragraphs[i].index == i
"""

import re

from folio.logging import get_logger
from folio.schemas.reader import Paragraph

logger = get_logger(__name__)

# One or more line breaks: CRLF, bare LF or bare CR
PARAGRAPH_BOUNDARY = re.compile(r"(?:\r\n|\r|\n)+")


def segment(body_text: str) -> list[Paragraph]:
    """Split an article body into indexed paragraphs.

    Args:
        body_text: The article body as plain text.

    Returns:
        Paragraphs in reading order. Empty for empty or whitespace-only input.
    """
    if not body_text or not body_text.strip():
        return []

    candidates = (chunk.strip() for chunk in PARAGRAPH_BOUNDARY.split(body_text))
    paragraphs = [
        Paragraph(index=idx, text=text) for idx, text in enumerate(c for c in candidates if c)
    ]

    logger.debug(
        "segmented_article_body",
        text_len=len(body_text),
        paragraph_count=len(paragraphs),
    )

    return paragraphs
