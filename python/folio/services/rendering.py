"""Overlap-aware rendering of highlights into paragraph segments.

Turns one paragraph plus an arbitrary set of stored highlights into an
ordered list of text and highlight segments.

Stored offsets can be stale relative to the current article body, so the
renderer never trusts them:
- highlights for other paragraphs (and unresolved legacy records) are ignored
- offsets are clamped into [0, len(paragraph.text)]
- ranges that are empty after clamping are dropped

Invariants:
- "".join(s.text for s in segments) == paragraph.text
- segments are in reading order
- rendering never raises for any stored offsets

Overlaps resolve per OverlapPolicy. FIRST_START_WINS keeps the overlapped
region with the earlier-starting highlight; NESTED splits at every boundary
and attributes each piece to the innermost covering highlight.
"""

from collections.abc import Iterable, Sequence
from dataclasses import dataclass

from folio.config import OverlapPolicy
from folio.schemas.highlights import Highlight
from folio.schemas.reader import (
    HighlightSegment,
    Paragraph,
    RenderedParagraph,
    Segment,
    TextSegment,
)


@dataclass(frozen=True)
class _Span:
    """A highlight's clamped range within one paragraph."""

    start: int
    end: int
    highlight: Highlight


def _clamped_spans(paragraph: Paragraph, highlights: Iterable[Highlight]) -> list[_Span]:
    length = len(paragraph.text)
    spans = []
    for h in highlights:
        if h.paragraph_index != paragraph.index or h.start is None or h.end is None:
            continue
        start = min(max(h.start, 0), length)
        end = min(max(h.end, 0), length)
        if end <= start:
            continue
        spans.append(_Span(start, end, h))
    # Stable: equal starts keep caller order
    spans.sort(key=lambda s: s.start)
    return spans


def _render_first_start_wins(text: str, spans: list[_Span]) -> list[Segment]:
    segments: list[Segment] = []
    cursor = 0
    for span in spans:
        if span.end <= cursor:
            # Fully covered by an earlier highlight
            continue
        if span.start > cursor:
            segments.append(TextSegment(text=text[cursor : span.start]))
        begin = max(span.start, cursor)
        segments.append(
            HighlightSegment(
                text=text[begin : span.end],
                highlight_id=span.highlight.id,
                color=span.highlight.color,
                covering_ids=(span.highlight.id,),
            )
        )
        cursor = span.end
    if cursor < len(text):
        segments.append(TextSegment(text=text[cursor:]))
    return segments


def _render_nested(text: str, spans: list[_Span]) -> list[Segment]:
    boundaries = sorted({0, len(text), *(s.start for s in spans), *(s.end for s in spans)})
    segments: list[Segment] = []
    for begin, stop in zip(boundaries, boundaries[1:]):
        covering = [s for s in spans if s.start <= begin and s.end >= stop]
        piece = text[begin:stop]
        if not covering:
            segments.append(TextSegment(text=piece))
            continue
        # Innermost = latest start; spans are start-sorted and stable
        inner = covering[-1].highlight
        segments.append(
            HighlightSegment(
                text=piece,
                highlight_id=inner.id,
                color=inner.color,
                covering_ids=tuple(s.highlight.id for s in covering),
            )
        )
    return segments


def render_paragraph(
    paragraph: Paragraph,
    highlights: Iterable[Highlight],
    policy: OverlapPolicy = OverlapPolicy.FIRST_START_WINS,
) -> list[Segment]:
    """Render one paragraph's highlights into ordered segments.

    Args:
        paragraph: The paragraph to render.
        highlights: Any highlights; those anchored elsewhere are ignored.
        policy: Overlap resolution policy.

    Returns:
        Segments whose texts concatenate to paragraph.text. A paragraph with
        no applicable highlights yields exactly one text segment.
    """
    spans = _clamped_spans(paragraph, highlights)
    if not spans:
        return [TextSegment(text=paragraph.text)]
    if policy == OverlapPolicy.NESTED:
        return _render_nested(paragraph.text, spans)
    return _render_first_start_wins(paragraph.text, spans)


def render_article(
    paragraphs: Sequence[Paragraph],
    highlights: Sequence[Highlight],
    policy: OverlapPolicy = OverlapPolicy.FIRST_START_WINS,
) -> list[RenderedParagraph]:
    """Render every paragraph of an article."""
    by_paragraph: dict[int, list[Highlight]] = {}
    for h in highlights:
        if h.paragraph_index is not None:
            by_paragraph.setdefault(h.paragraph_index, []).append(h)
    return [
        RenderedParagraph(
            index=p.index,
            segments=render_paragraph(p, by_paragraph.get(p.index, []), policy),
        )
        for p in paragraphs
    ]
