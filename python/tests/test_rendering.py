"""Tests for overlap-aware paragraph rendering.

Covers:
- Plain paragraphs and single highlights
- First-start-wins overlap resolution (including full containment)
- Nested overlap policy
- Clamping of stale or out-of-range offsets
- Filtering by paragraph index and legacy state
- Lossless concatenation across many offset combinations
- Whole-article rendering
"""

import itertools

import pytest

from folio.config import OverlapPolicy
from folio.schemas.reader import HighlightSegment, Paragraph, TextSegment
from folio.services.rendering import render_article, render_paragraph
from tests.factories import make_highlight, make_legacy_highlight

FOX = Paragraph(index=0, text="The quick brown fox")


def _joined(segments) -> str:
    return "".join(s.text for s in segments)


def _shape(segments) -> list[tuple[str, str, str | None]]:
    return [
        (s.kind, s.text, s.highlight_id if isinstance(s, HighlightSegment) else None)
        for s in segments
    ]


class TestRenderParagraphBasics:
    """Tests for render_paragraph with simple inputs."""

    def test_no_highlights(self):
        """A paragraph with no highlights is one text segment."""
        segments = render_paragraph(FOX, [])

        assert segments == [TextSegment(text="The quick brown fox")]

    def test_single_highlight(self):
        """Highlight [4, 9) splits the paragraph into three segments."""
        h = make_highlight(start=4, end=9, text="quick", highlight_id="h1")

        segments = render_paragraph(FOX, [h])

        assert _shape(segments) == [
            ("text", "The ", None),
            ("highlight", "quick", "h1"),
            ("text", " brown fox", None),
        ]

    def test_highlight_carries_color(self):
        h = make_highlight(start=0, end=3, text="The", color="green", highlight_id="h1")

        segments = render_paragraph(FOX, [h])

        assert segments[0] == HighlightSegment(
            text="The", highlight_id="h1", color="green", covering_ids=("h1",)
        )

    def test_whole_paragraph_highlight(self):
        h = make_highlight(start=0, end=len(FOX.text), highlight_id="h1")

        segments = render_paragraph(FOX, [h])

        assert _shape(segments) == [("highlight", FOX.text, "h1")]

    def test_adjacent_highlights(self):
        """Touching highlights produce no gap segment between them."""
        a = make_highlight(start=0, end=4, highlight_id="a")
        b = make_highlight(start=4, end=9, highlight_id="b")

        segments = render_paragraph(FOX, [b, a])

        assert _shape(segments) == [
            ("highlight", "The ", "a"),
            ("highlight", "quick", "b"),
            ("text", " brown fox", None),
        ]

    def test_unsorted_input_renders_in_reading_order(self):
        late = make_highlight(start=16, end=19, highlight_id="late")
        early = make_highlight(start=0, end=3, highlight_id="early")

        segments = render_paragraph(FOX, [late, early])

        assert [s.highlight_id for s in segments if s.kind == "highlight"] == ["early", "late"]

    def test_empty_paragraph_text(self):
        segments = render_paragraph(Paragraph(index=0, text=""), [make_highlight(start=0, end=2)])

        assert segments == [TextSegment(text="")]


class TestFirstStartWins:
    """Overlap resolution under the default policy."""

    def test_partial_overlap(self):
        """The earlier highlight keeps the overlap; the later keeps only its tail."""
        paragraph = Paragraph(index=0, text="abcdefghij")
        first = make_highlight(start=0, end=5, highlight_id="first")
        second = make_highlight(start=3, end=8, highlight_id="second")

        segments = render_paragraph(paragraph, [second, first])

        assert _shape(segments) == [
            ("highlight", "abcde", "first"),
            ("highlight", "fgh", "second"),
            ("text", "ij", None),
        ]

    def test_contained_highlight_contributes_nothing(self):
        paragraph = Paragraph(index=0, text="abcdefghij")
        outer = make_highlight(start=0, end=8, highlight_id="outer")
        inner = make_highlight(start=2, end=5, highlight_id="inner")

        segments = render_paragraph(paragraph, [outer, inner])

        assert _shape(segments) == [
            ("highlight", "abcdefgh", "outer"),
            ("text", "ij", None),
        ]

    def test_equal_starts_keep_input_order(self):
        paragraph = Paragraph(index=0, text="abcdefghij")
        a = make_highlight(start=2, end=4, highlight_id="a")
        b = make_highlight(start=2, end=6, highlight_id="b")

        segments = render_paragraph(paragraph, [a, b])

        assert _shape(segments) == [
            ("text", "ab", None),
            ("highlight", "cd", "a"),
            ("highlight", "ef", "b"),
            ("text", "ghij", None),
        ]


class TestNestedPolicy:
    """Overlap resolution under the nested policy."""

    def test_overlap_split_at_every_boundary(self):
        paragraph = Paragraph(index=0, text="abcdefghij")
        first = make_highlight(start=0, end=5, highlight_id="first")
        second = make_highlight(start=3, end=8, highlight_id="second")

        segments = render_paragraph(paragraph, [first, second], OverlapPolicy.NESTED)

        assert _shape(segments) == [
            ("highlight", "abc", "first"),
            ("highlight", "de", "second"),
            ("highlight", "fgh", "second"),
            ("text", "ij", None),
        ]
        assert segments[1].covering_ids == ("first", "second")
        assert segments[2].covering_ids == ("second",)

    def test_contained_highlight_is_innermost(self):
        paragraph = Paragraph(index=0, text="abcdefghij")
        outer = make_highlight(start=0, end=8, highlight_id="outer")
        inner = make_highlight(start=2, end=5, highlight_id="inner")

        segments = render_paragraph(paragraph, [inner, outer], OverlapPolicy.NESTED)

        assert _shape(segments) == [
            ("highlight", "ab", "outer"),
            ("highlight", "cde", "inner"),
            ("highlight", "fgh", "outer"),
            ("text", "ij", None),
        ]


class TestStaleOffsets:
    """Offsets that no longer fit the paragraph never break rendering."""

    def test_clamped_to_paragraph(self):
        """start=-2, end=100 on a 20-character paragraph covers [0, 20)."""
        paragraph = Paragraph(index=0, text="x" * 20)
        h = make_highlight(start=-2, end=100, highlight_id="h1")

        segments = render_paragraph(paragraph, [h])

        assert _shape(segments) == [("highlight", "x" * 20, "h1")]

    def test_fully_out_of_range_dropped(self):
        h = make_highlight(start=50, end=60, highlight_id="h1")

        assert render_paragraph(FOX, [h]) == [TextSegment(text=FOX.text)]

    def test_zero_length_dropped(self):
        h = make_highlight(start=5, end=5, highlight_id="h1")

        assert render_paragraph(FOX, [h]) == [TextSegment(text=FOX.text)]

    def test_inverted_range_dropped(self):
        h = make_highlight(start=9, end=4, highlight_id="h1")

        assert render_paragraph(FOX, [h]) == [TextSegment(text=FOX.text)]

    def test_other_paragraph_ignored(self):
        h = make_highlight(paragraph_index=3, start=0, end=5)

        assert render_paragraph(FOX, [h]) == [TextSegment(text=FOX.text)]

    def test_legacy_highlight_ignored(self):
        """Unresolved legacy records render as plain text."""
        h = make_legacy_highlight("quick")

        assert render_paragraph(FOX, [h]) == [TextSegment(text=FOX.text)]


class TestLossless:
    """Concatenated segment text always equals the paragraph text."""

    @pytest.mark.parametrize("policy", list(OverlapPolicy))
    def test_all_pairs_of_ranges(self, policy):
        paragraph = Paragraph(index=0, text="0123456789")
        bounds = [-3, 0, 2, 5, 7, 10, 14]
        ranges = [(s, e) for s in bounds for e in bounds]

        for (s1, e1), (s2, e2) in itertools.product(ranges, repeat=2):
            highlights = [
                make_highlight(start=s1, end=e1, highlight_id="a"),
                make_highlight(start=s2, end=e2, highlight_id="b"),
            ]
            segments = render_paragraph(paragraph, highlights, policy)

            assert _joined(segments) == paragraph.text, (s1, e1, s2, e2)
            assert all(s.text for s in segments), (s1, e1, s2, e2)


class TestRenderArticle:
    """Tests for render_article."""

    def test_routes_highlights_to_their_paragraphs(self):
        paragraphs = [Paragraph(index=0, text="First one."), Paragraph(index=1, text="Second.")]
        highlights = [
            make_highlight(paragraph_index=1, start=0, end=6, highlight_id="b"),
            make_highlight(paragraph_index=0, start=6, end=9, highlight_id="a"),
            make_legacy_highlight("First"),
        ]

        rendered = render_article(paragraphs, highlights)

        assert [r.index for r in rendered] == [0, 1]
        assert _shape(rendered[0].segments) == [
            ("text", "First ", None),
            ("highlight", "one", "a"),
            ("text", ".", None),
        ]
        assert _shape(rendered[1].segments) == [
            ("highlight", "Second", "b"),
            ("text", ".", None),
        ]
