"""Legacy highlight migration and integrity auditing.

Highlights created before offset tracking only stored the highlighted text.
migrate_legacy_highlights anchors them to the article's paragraphs:

- Paragraphs are scanned in index order; the first one containing the text
  wins, and within it the first occurrence wins
- Matches are persisted through the repository's one-time backfill
- Records that match nowhere stay unresolved; they render as plain text and
  are never deleted

Running the migration again is a no-op for anything already positioned.

Known limitation: a short phrase that recurs is anchored to its first
occurrence, which may not be the one the reader originally selected.
"""

from collections.abc import Sequence

from folio.logging import get_logger
from folio.schemas.highlights import Highlight
from folio.schemas.reader import IntegrityIssue, IntegrityIssueKind, Paragraph
from folio.services.highlight_store import HighlightRepository

logger = get_logger(__name__)


def locate_text(text: str, paragraphs: Sequence[Paragraph]) -> tuple[int, int, int] | None:
    """Find the first paragraph occurrence of text.

    Returns:
        (paragraph_index, start, end) or None if no paragraph contains it.
    """
    if not text:
        return None
    for paragraph in paragraphs:
        pos = paragraph.text.find(text)
        if pos != -1:
            return paragraph.index, pos, pos + len(text)
    return None


def migrate_legacy_highlights(
    highlights: Sequence[Highlight],
    paragraphs: Sequence[Paragraph],
    repository: HighlightRepository | None = None,
) -> list[Highlight]:
    """Backfill paragraph offsets on legacy highlights.

    Args:
        highlights: Highlights of one article, any mix of legacy and positioned.
        paragraphs: That article's segmented paragraphs.
        repository: If given, each resolved record is persisted via
            backfill_position.

    Returns:
        Highlights in the same order and count as the input, with resolved
        legacy records replaced by their positioned versions.

    Raises:
        StorageError: If persisting a backfill fails.
    """
    migrated: list[Highlight] = []
    resolved = unresolved = 0

    for highlight in highlights:
        if not highlight.is_legacy:
            migrated.append(highlight)
            continue

        match = locate_text(highlight.text, paragraphs)
        if match is None:
            unresolved += 1
            logger.warning(
                "legacy_highlight_unresolved",
                highlight_id=highlight.id,
                text_len=len(highlight.text),
            )
            migrated.append(highlight)
            continue

        paragraph_index, start, end = match
        updated = None
        if repository is not None:
            updated = repository.backfill_position(highlight.id, paragraph_index, start, end)
        if updated is None:
            updated = highlight.model_copy(
                update={"paragraph_index": paragraph_index, "start": start, "end": end}
            )

        resolved += 1
        logger.info(
            "legacy_highlight_migrated",
            highlight_id=highlight.id,
            paragraph_index=paragraph_index,
            start=start,
            end=end,
        )
        migrated.append(updated)

    if resolved or unresolved:
        logger.info(
            "legacy_migration_completed",
            total=len(highlights),
            resolved=resolved,
            unresolved=unresolved,
        )

    return migrated


def audit_highlights(
    highlights: Sequence[Highlight], paragraphs: Sequence[Paragraph]
) -> list[IntegrityIssue]:
    """Check stored highlights against the current paragraph sequence.

    Reports at most one issue per highlight. An empty result means every
    highlight is positioned, in range, and still matches its paragraph text.
    """
    issues: list[IntegrityIssue] = []
    by_index = {p.index: p for p in paragraphs}

    for h in highlights:
        if h.is_legacy:
            issues.append(
                IntegrityIssue(
                    highlight_id=h.id,
                    kind=IntegrityIssueKind.UNRESOLVED_LEGACY,
                    message="Highlight has no paragraph position",
                )
            )
            continue

        paragraph = by_index.get(h.paragraph_index)
        if paragraph is None:
            issues.append(
                IntegrityIssue(
                    highlight_id=h.id,
                    kind=IntegrityIssueKind.PARAGRAPH_OUT_OF_RANGE,
                    message=(
                        f"Paragraph {h.paragraph_index} not found "
                        f"(article has {len(paragraphs)} paragraphs)"
                    ),
                )
            )
            continue

        length = len(paragraph.text)
        if h.start is None or h.end is None or h.start < 0 or h.end > length or h.start >= h.end:
            issues.append(
                IntegrityIssue(
                    highlight_id=h.id,
                    kind=IntegrityIssueKind.INVALID_RANGE,
                    message=(
                        f"Invalid position [{h.start}, {h.end}) for paragraph "
                        f"{h.paragraph_index} (length {length})"
                    ),
                )
            )
            continue

        expected = paragraph.text[h.start : h.end]
        if expected != h.text:
            issues.append(
                IntegrityIssue(
                    highlight_id=h.id,
                    kind=IntegrityIssueKind.TEXT_MISMATCH,
                    message=f"Text mismatch: expected {expected!r}, stored {h.text!r}",
                )
            )

    if issues:
        logger.warning("highlight_integrity_issues", count=len(issues))

    return issues
