"""Selection translation: live reader selection -> paragraph-relative range.

The host hands over the current selection (two boundary points plus the
selected text) and the rendered paragraph elements. Translation either
produces (paragraph_index, start, end, text) or a rejection.

Rejections are ordinary results, never exceptions: an empty selection or one
that spans paragraphs simply means no highlight is created. Clearing the
live selection afterwards is the caller's job.

A TranslatedSelection becomes a stored highlight through
to_create_request() and HighlightRepository.create().

Boundary points follow DOM Range semantics: in a text node the offset counts
characters, in an element it counts children (the point sits before
children[offset]).
"""

from collections.abc import Sequence
from dataclasses import dataclass
from enum import Enum

from folio.logging import get_logger
from folio.schemas.highlights import (
    DEFAULT_HIGHLIGHT_COLOR,
    HIGHLIGHT_COLORS,
    CreateHighlightRequest,
)
from folio.services.dom import RenderedNode

logger = get_logger(__name__)


class RejectionReason(str, Enum):
    """Why a selection did not translate into a highlight range."""

    COLLAPSED = "collapsed"
    OUTSIDE_CONTENT = "outside_content"
    NO_PARAGRAPH = "no_paragraph"
    CROSS_PARAGRAPH = "cross_paragraph"


@dataclass(frozen=True)
class SelectionRange:
    """A live selection as reported by the rendering host."""

    start_container: RenderedNode
    start_offset: int
    end_container: RenderedNode
    end_offset: int
    text: str

    @property
    def collapsed(self) -> bool:
        return (
            self.start_container is self.end_container and self.start_offset == self.end_offset
        )


@dataclass(frozen=True)
class TranslatedSelection:
    """A selection anchored to one paragraph."""

    paragraph_index: int
    start: int
    end: int
    text: str

    def to_create_request(
        self,
        color: HIGHLIGHT_COLORS = DEFAULT_HIGHLIGHT_COLOR,
        title: str = "",
        note: str = "",
    ) -> CreateHighlightRequest:
        """Build the offset-form request HighlightRepository.create stores."""
        return CreateHighlightRequest(
            paragraph_index=self.paragraph_index,
            start=self.start,
            end=self.end,
            text=self.text,
            color=color,
            title=title,
            note=note,
        )


@dataclass(frozen=True)
class SelectionRejected:
    """No highlight should be created for this selection."""

    reason: RejectionReason


def _enclosing_paragraph(
    node: RenderedNode,
    positions: dict[int, int],
    root: RenderedNode | None,
) -> int | None:
    """Walk up from node to the nearest rendered paragraph, stopping at root."""
    for ancestor in node.ancestors():
        idx = positions.get(id(ancestor))
        if idx is not None:
            return idx
        if ancestor is root:
            return None
    return None


def _preceding_length(paragraph: RenderedNode, container: RenderedNode, offset: int) -> int:
    """Count paragraph characters that precede the boundary point (container, offset)."""
    count = 0

    def walk(node: RenderedNode) -> bool:
        nonlocal count
        if node is container:
            bounded = max(0, min(offset, node.length))
            if node.is_text:
                count += bounded
            else:
                count += sum(len(child.text_content) for child in node.children[:bounded])
            return True
        if node.is_text:
            count += len(node.text)
            return False
        return any(walk(child) for child in node.children)

    walk(paragraph)
    return count


def translate_selection(
    selection: SelectionRange,
    rendered_paragraphs: Sequence[RenderedNode],
    root: RenderedNode | None = None,
) -> TranslatedSelection | SelectionRejected:
    """Translate a live selection into a paragraph-relative range.

    Args:
        selection: The host's current selection.
        rendered_paragraphs: Paragraph elements in reading order; a
            paragraph's position here is its paragraph_index.
        root: Content region element. Selections anchored outside it are
            rejected. If None, only paragraph membership is checked.

    Returns:
        TranslatedSelection on success, SelectionRejected otherwise. The
        returned text is the paragraph slice [start, end), which equals the
        selected text for any selection the host reports faithfully.
    """
    if selection.collapsed or not selection.text:
        return SelectionRejected(RejectionReason.COLLAPSED)

    if root is not None and not root.contains(selection.start_container):
        return SelectionRejected(RejectionReason.OUTSIDE_CONTENT)

    positions = {id(p): idx for idx, p in enumerate(rendered_paragraphs)}

    start_idx = _enclosing_paragraph(selection.start_container, positions, root)
    if start_idx is None:
        return SelectionRejected(RejectionReason.NO_PARAGRAPH)

    end_idx = _enclosing_paragraph(selection.end_container, positions, root)
    if end_idx != start_idx:
        logger.debug("selection_rejected_cross_paragraph", start=start_idx, end=end_idx)
        return SelectionRejected(RejectionReason.CROSS_PARAGRAPH)

    paragraph = rendered_paragraphs[start_idx]
    paragraph_text = paragraph.text_content
    start = _preceding_length(paragraph, selection.start_container, selection.start_offset)
    end = min(start + len(selection.text), len(paragraph_text))
    if end <= start:
        return SelectionRejected(RejectionReason.COLLAPSED)

    return TranslatedSelection(
        paragraph_index=start_idx,
        start=start,
        end=end,
        text=paragraph_text[start:end],
    )
