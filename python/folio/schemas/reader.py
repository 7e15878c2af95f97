"""Reader-side schemas: paragraphs, rendered segments and integrity issues.

These are derived values and are never persisted.
"""

from enum import Enum
from typing import Annotated, Literal

from pydantic import BaseModel, ConfigDict, Field

from folio.config import OverlapPolicy


class Paragraph(BaseModel):
    """One block of article text, addressed by its position in the body."""

    index: int = Field(..., ge=0)
    text: str

    model_config = ConfigDict(frozen=True)


class TextSegment(BaseModel):
    """Unhighlighted run of paragraph text."""

    kind: Literal["text"] = "text"
    text: str

    model_config = ConfigDict(frozen=True)


class HighlightSegment(BaseModel):
    """Highlighted run of paragraph text.

    highlight_id is the highlight the run is attributed to. covering_ids
    lists every highlight covering the run (only more than one entry under
    the nested overlap policy).
    """

    kind: Literal["highlight"] = "highlight"
    text: str
    highlight_id: str
    color: str
    covering_ids: tuple[str, ...] = ()

    model_config = ConfigDict(frozen=True)


Segment = Annotated[TextSegment | HighlightSegment, Field(discriminator="kind")]


class RenderedParagraph(BaseModel):
    """A paragraph together with its segment sequence."""

    index: int
    segments: list[Segment]


class IntegrityIssueKind(str, Enum):
    """Ways a stored highlight can disagree with the article body."""

    UNRESOLVED_LEGACY = "unresolved_legacy"
    PARAGRAPH_OUT_OF_RANGE = "paragraph_out_of_range"
    INVALID_RANGE = "invalid_range"
    TEXT_MISMATCH = "text_mismatch"


class IntegrityIssue(BaseModel):
    """One problem found while auditing highlights against an article body."""

    highlight_id: str
    kind: IntegrityIssueKind
    message: str


# =============================================================================
# Request Schemas
# =============================================================================


class ArticleBodyRequest(BaseModel):
    """Article body supplied by the caller; the engine never fetches articles."""

    body_text: str


class RenderArticleRequest(ArticleBodyRequest):
    """Render request; policy falls back to the configured overlap policy."""

    policy: OverlapPolicy | None = None
