"""Highlight Pydantic schemas.

Contains the persisted Highlight record plus request models for creating,
patching and importing highlights.

Offsets are half-open [start, end) in Unicode codepoints over the text of
paragraph `paragraph_index` of the owning article. A record whose
paragraph_index is None is a legacy record: it only knows its text.
"""

from datetime import datetime
from typing import Literal

from pydantic import BaseModel, ConfigDict, Field

# Valid highlight colors - must match DB constraint
HIGHLIGHT_COLORS = Literal["yellow", "green", "blue", "purple", "red", "orange", "pink"]
DEFAULT_HIGHLIGHT_COLOR = "yellow"

MAX_TEXT_LENGTH = 10_000
MAX_TITLE_LENGTH = 200
MAX_NOTE_LENGTH = 2_000


# =============================================================================
# Record Schema
# =============================================================================


class Highlight(BaseModel):
    """A persisted highlight.

    Immutable once loaded; changes go through the repository, which hands
    back a fresh instance.
    """

    id: str
    article_id: str
    paragraph_index: int | None = None
    start: int | None = None
    end: int | None = None
    text: str
    color: HIGHLIGHT_COLORS = DEFAULT_HIGHLIGHT_COLOR
    title: str = ""
    note: str = ""
    created_at: datetime
    updated_at: datetime

    model_config = ConfigDict(frozen=True)

    @property
    def is_legacy(self) -> bool:
        """True until the record has been anchored to a paragraph."""
        return self.paragraph_index is None

    @property
    def has_note(self) -> bool:
        return bool(self.note.strip())

    def sort_key(self) -> tuple[int, int]:
        """Deterministic position key; legacy records sort as (0, 0)."""
        return (
            self.paragraph_index if self.paragraph_index is not None else 0,
            self.start if self.start is not None else 0,
        )


# =============================================================================
# Request Schemas
# =============================================================================


class CreateHighlightRequest(BaseModel):
    """Request schema for creating a highlight.

    Offset form: paragraph_index, start and end are all set (the output of
    selection translation). Legacy form: all three omitted, only text is
    known (external imports). Mixed forms are rejected by the service.
    """

    paragraph_index: int | None = Field(None, ge=0, description="Paragraph index")
    start: int | None = Field(None, ge=0, description="Start offset (inclusive) in codepoints")
    end: int | None = Field(None, gt=0, description="End offset (exclusive) in codepoints")
    text: str = Field(..., min_length=1, max_length=MAX_TEXT_LENGTH)
    color: HIGHLIGHT_COLORS = Field(DEFAULT_HIGHLIGHT_COLOR, description="Palette color")
    title: str = Field("", max_length=MAX_TITLE_LENGTH)
    note: str = Field("", max_length=MAX_NOTE_LENGTH)

    @property
    def is_legacy(self) -> bool:
        return self.paragraph_index is None and self.start is None and self.end is None


class UpdateHighlightRequest(BaseModel):
    """Request schema for patching a highlight.

    Only presentation metadata can change. Offsets are fixed at creation.
    """

    color: HIGHLIGHT_COLORS | None = Field(None, description="New palette color")
    title: str | None = Field(None, max_length=MAX_TITLE_LENGTH)
    note: str | None = Field(None, max_length=MAX_NOTE_LENGTH)

    model_config = ConfigDict(extra="forbid")


class HighlightStats(BaseModel):
    """Summary counts for one article's highlights."""

    total: int
    with_notes: int
    without_notes: int
    legacy: int
    color_distribution: dict[str, int]
