"""Tests for paragraph segmentation.

Covers:
- Splitting on single and repeated line breaks (LF and CRLF)
- Trimming and discarding blank candidates
- Dense indices after discarding
- Determinism for a fixed body
"""

from folio.services.paragraphs import segment


class TestSegment:
    """Tests for segment function."""

    def test_empty_text(self):
        """Empty body yields no paragraphs."""
        assert segment("") == []

    def test_whitespace_only(self):
        """Whitespace-only body yields no paragraphs."""
        assert segment("  \n\n \t \n") == []

    def test_single_paragraph(self):
        paragraphs = segment("The quick brown fox")

        assert len(paragraphs) == 1
        assert paragraphs[0].index == 0
        assert paragraphs[0].text == "The quick brown fox"

    def test_blank_line_boundary(self):
        """A blank line separates paragraphs."""
        paragraphs = segment("First.\n\nSecond.")

        assert [p.text for p in paragraphs] == ["First.", "Second."]

    def test_single_newline_boundary(self):
        """A single line break also ends a paragraph."""
        paragraphs = segment("First.\nSecond.")

        assert [p.text for p in paragraphs] == ["First.", "Second."]

    def test_crlf_boundaries(self):
        paragraphs = segment("First.\r\n\r\nSecond.\r\nThird.")

        assert [p.text for p in paragraphs] == ["First.", "Second.", "Third."]

    def test_bare_cr_boundaries(self):
        paragraphs = segment("First.\r\rSecond.\rThird.\r\nFourth.")

        assert [p.text for p in paragraphs] == ["First.", "Second.", "Third.", "Fourth."]
        assert [p.index for p in paragraphs] == [0, 1, 2, 3]

    def test_candidates_are_trimmed(self):
        paragraphs = segment("   padded   \n\n\tTabbed\t")

        assert [p.text for p in paragraphs] == ["padded", "Tabbed"]

    def test_indices_are_dense_after_discarding(self):
        """Blank candidates do not consume indices."""
        paragraphs = segment("\n\nOne.\n   \n\n\nTwo.\n\n  \nThree.\n\n")

        assert [p.index for p in paragraphs] == [0, 1, 2]
        assert [p.text for p in paragraphs] == ["One.", "Two.", "Three."]

    def test_index_matches_position(self):
        paragraphs = segment("a\nb\nc\nd")

        for position, paragraph in enumerate(paragraphs):
            assert paragraph.index == position

    def test_deterministic(self):
        """Segmenting the same body twice yields equal sequences."""
        body = "Alpha paragraph.\n\nBeta paragraph.\nGamma."

        assert segment(body) == segment(body)

    def test_inner_whitespace_preserved(self):
        """Only surrounding whitespace is trimmed; inner spacing is kept."""
        paragraphs = segment("two  spaces\tand tab")

        assert paragraphs[0].text == "two  spaces\tand tab"
