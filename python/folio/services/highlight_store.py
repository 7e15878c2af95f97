"""Highlight persistence: keyed stores and the per-article repository.

A store is the raw keyed backend (get by article, put, delete). The
repository layers the highlight contract on top of any store:

- get_for_article returns records sorted by (paragraph_index, start), with
  legacy records (no paragraph_index) sorting as (0, 0)
- create assigns id, created_at and updated_at
- update only touches color/title/note; unknown ids return None
- delete returns False for unknown ids
- backfill_position anchors a legacy record exactly once
- delete_for_article is the cascade hook for article deletion

Store failures surface as StorageError and are never swallowed.
"""

import json
from abc import ABC, abstractmethod
from collections import Counter
from collections.abc import Callable
from datetime import UTC, datetime
from uuid import uuid4

from pydantic import TypeAdapter, ValidationError
from sqlalchemy import delete, select
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from folio.db.models import HighlightRow
from folio.db.session import transaction
from folio.errors import StorageError
from folio.logging import get_logger
from folio.schemas.highlights import (
    CreateHighlightRequest,
    Highlight,
    HighlightStats,
    UpdateHighlightRequest,
)

logger = get_logger(__name__)

_HIGHLIGHT_LIST = TypeAdapter(list[Highlight])


# =============================================================================
# Stores
# =============================================================================


class HighlightStore(ABC):
    """Keyed highlight storage backend."""

    @abstractmethod
    def get(self, article_id: str) -> list[Highlight]:
        """Return all highlights of an article, in storage order."""

    @abstractmethod
    def get_by_id(self, highlight_id: str) -> Highlight | None:
        """Return one highlight, or None if unknown."""

    @abstractmethod
    def put(self, highlight: Highlight) -> None:
        """Insert or replace a highlight by id."""

    @abstractmethod
    def delete(self, highlight_id: str) -> bool:
        """Remove a highlight. Returns False if it did not exist."""

    @abstractmethod
    def delete_for_article(self, article_id: str) -> int:
        """Remove every highlight of an article. Returns the count removed."""

    @abstractmethod
    def all(self) -> list[Highlight]:
        """Return every stored highlight."""


class SqlHighlightStore(HighlightStore):
    """Store backed by the `highlights` table through a SQLAlchemy session.

    Each mutating call commits its own transaction.
    """

    def __init__(self, db: Session):
        self.db = db

    @staticmethod
    def _to_highlight(row: HighlightRow) -> Highlight:
        return Highlight(
            id=row.id,
            article_id=row.article_id,
            paragraph_index=row.paragraph_index,
            start=row.start_offset,
            end=row.end_offset,
            text=row.text,
            color=row.color,
            title=row.title,
            note=row.note,
            created_at=row.created_at,
            updated_at=row.updated_at,
        )

    def get(self, article_id: str) -> list[Highlight]:
        stmt = (
            select(HighlightRow)
            .where(HighlightRow.article_id == article_id)
            .order_by(HighlightRow.created_at.asc(), HighlightRow.id.asc())
        )
        try:
            rows = self.db.execute(stmt).scalars().all()
        except SQLAlchemyError as e:
            raise StorageError(f"Failed to load highlights: {e}") from e
        return [self._to_highlight(row) for row in rows]

    def get_by_id(self, highlight_id: str) -> Highlight | None:
        try:
            row = self.db.get(HighlightRow, highlight_id)
        except SQLAlchemyError as e:
            raise StorageError(f"Failed to load highlight: {e}") from e
        return self._to_highlight(row) if row is not None else None

    def put(self, highlight: Highlight) -> None:
        values = {
            "article_id": highlight.article_id,
            "paragraph_index": highlight.paragraph_index,
            "start_offset": highlight.start,
            "end_offset": highlight.end,
            "text": highlight.text,
            "color": highlight.color,
            "title": highlight.title,
            "note": highlight.note,
            "created_at": highlight.created_at,
            "updated_at": highlight.updated_at,
        }
        try:
            with transaction(self.db):
                row = self.db.get(HighlightRow, highlight.id)
                if row is None:
                    self.db.add(HighlightRow(id=highlight.id, **values))
                else:
                    for key, value in values.items():
                        setattr(row, key, value)
                self.db.flush()
        except SQLAlchemyError as e:
            raise StorageError(f"Failed to save highlight: {e}") from e

    def delete(self, highlight_id: str) -> bool:
        try:
            with transaction(self.db):
                result = self.db.execute(
                    delete(HighlightRow).where(HighlightRow.id == highlight_id)
                )
        except SQLAlchemyError as e:
            raise StorageError(f"Failed to delete highlight: {e}") from e
        return result.rowcount > 0

    def delete_for_article(self, article_id: str) -> int:
        try:
            with transaction(self.db):
                result = self.db.execute(
                    delete(HighlightRow).where(HighlightRow.article_id == article_id)
                )
        except SQLAlchemyError as e:
            raise StorageError(f"Failed to delete article highlights: {e}") from e
        return result.rowcount

    def all(self) -> list[Highlight]:
        stmt = select(HighlightRow).order_by(HighlightRow.created_at.asc(), HighlightRow.id.asc())
        try:
            rows = self.db.execute(stmt).scalars().all()
        except SQLAlchemyError as e:
            raise StorageError(f"Failed to load highlights: {e}") from e
        return [self._to_highlight(row) for row in rows]


class MemoryHighlightStore(HighlightStore):
    """Store that keeps one serialized flat collection per namespace.

    The collection lives in a process-wide mapping from namespace key to a
    JSON document, so every store opened on the same namespace sees the same
    records.
    """

    _namespaces: dict[str, str] = {}

    def __init__(self, namespace: str):
        self.namespace = namespace

    @classmethod
    def clear_namespace(cls, namespace: str) -> None:
        """Drop everything stored under a namespace."""
        cls._namespaces.pop(namespace, None)

    def _load_all(self) -> list[Highlight]:
        raw = self._namespaces.get(self.namespace)
        if not raw:
            return []
        try:
            return _HIGHLIGHT_LIST.validate_json(raw)
        except ValidationError as e:
            raise StorageError(f"Corrupt highlight collection in {self.namespace!r}") from e

    def _save_all(self, items: list[Highlight]) -> None:
        self._namespaces[self.namespace] = _HIGHLIGHT_LIST.dump_json(items).decode("utf-8")

    def get(self, article_id: str) -> list[Highlight]:
        return [h for h in self._load_all() if h.article_id == article_id]

    def get_by_id(self, highlight_id: str) -> Highlight | None:
        return next((h for h in self._load_all() if h.id == highlight_id), None)

    def put(self, highlight: Highlight) -> None:
        items = self._load_all()
        for idx, existing in enumerate(items):
            if existing.id == highlight.id:
                items[idx] = highlight
                break
        else:
            items.append(highlight)
        self._save_all(items)

    def delete(self, highlight_id: str) -> bool:
        items = self._load_all()
        remaining = [h for h in items if h.id != highlight_id]
        if len(remaining) == len(items):
            return False
        self._save_all(remaining)
        return True

    def delete_for_article(self, article_id: str) -> int:
        items = self._load_all()
        remaining = [h for h in items if h.article_id != article_id]
        self._save_all(remaining)
        return len(items) - len(remaining)

    def all(self) -> list[Highlight]:
        return self._load_all()

    def dump(self) -> str:
        """Return the raw serialized collection (empty JSON list if unset)."""
        return self._namespaces.get(self.namespace) or json.dumps([])


# =============================================================================
# Repository
# =============================================================================


def _utcnow() -> datetime:
    return datetime.now(UTC)


class HighlightRepository:
    """Per-article highlight CRUD over a HighlightStore."""

    def __init__(
        self,
        store: HighlightStore,
        id_factory: Callable[[], str] | None = None,
        clock: Callable[[], datetime] | None = None,
    ):
        self.store = store
        self._new_id = id_factory or (lambda: str(uuid4()))
        self._now = clock or _utcnow

    def get_for_article(self, article_id: str) -> list[Highlight]:
        """Return an article's highlights ordered by (paragraph_index, start).

        The sort is stable, so ties keep storage order.
        """
        return sorted(self.store.get(article_id), key=Highlight.sort_key)

    def get(self, highlight_id: str) -> Highlight | None:
        return self.store.get_by_id(highlight_id)

    def create(self, article_id: str, req: CreateHighlightRequest) -> Highlight:
        """Persist a new highlight in offset form or legacy (text-only) form.

        Raises:
            StorageError: If the store fails.
        """
        now = self._now()
        highlight = Highlight(
            id=self._new_id(),
            article_id=article_id,
            paragraph_index=req.paragraph_index,
            start=req.start,
            end=req.end,
            text=req.text,
            color=req.color,
            title=req.title,
            note=req.note,
            created_at=now,
            updated_at=now,
        )
        self.store.put(highlight)
        logger.info(
            "highlight_created",
            highlight_id=highlight.id,
            article_id=article_id,
            paragraph_index=highlight.paragraph_index,
            legacy=highlight.is_legacy,
        )
        return highlight

    def update(self, highlight_id: str, patch: UpdateHighlightRequest) -> Highlight | None:
        """Apply a color/title/note patch. Returns None if the id is unknown."""
        current = self.store.get_by_id(highlight_id)
        if current is None:
            return None

        changes = {
            key: value
            for key, value in patch.model_dump(exclude_none=True).items()
            if getattr(current, key) != value
        }
        if not changes:
            return current

        updated = current.model_copy(update={**changes, "updated_at": self._now()})
        self.store.put(updated)
        logger.info("highlight_updated", highlight_id=highlight_id, fields=sorted(changes))
        return updated

    def delete(self, highlight_id: str) -> bool:
        deleted = self.store.delete(highlight_id)
        if deleted:
            logger.info("highlight_deleted", highlight_id=highlight_id)
        return deleted

    def delete_for_article(self, article_id: str) -> int:
        """Cascade hook: remove every highlight owned by an article."""
        count = self.store.delete_for_article(article_id)
        logger.info("article_highlights_deleted", article_id=article_id, count=count)
        return count

    def backfill_position(
        self, highlight_id: str, paragraph_index: int, start: int, end: int
    ) -> Highlight | None:
        """Anchor a legacy highlight to a paragraph range.

        Positioned highlights are returned unchanged: offsets are written at
        most once. Returns None if the id is unknown.
        """
        current = self.store.get_by_id(highlight_id)
        if current is None:
            return None
        if not current.is_legacy:
            return current

        updated = current.model_copy(
            update={
                "paragraph_index": paragraph_index,
                "start": start,
                "end": end,
                "updated_at": self._now(),
            }
        )
        self.store.put(updated)
        return updated

    def search(self, query: str, article_id: str | None = None) -> list[Highlight]:
        """Case-insensitive search over text, title and note, newest first."""
        needle = query.strip().casefold()
        if not needle:
            return []
        pool = self.store.get(article_id) if article_id is not None else self.store.all()
        matches = [
            h
            for h in pool
            if needle in h.text.casefold()
            or needle in h.title.casefold()
            or needle in h.note.casefold()
        ]
        return sorted(matches, key=lambda h: h.created_at, reverse=True)

    def list_by_color(self, article_id: str, color: str) -> list[Highlight]:
        return [h for h in self.get_for_article(article_id) if h.color == color.lower()]

    def stats(self, article_id: str) -> HighlightStats:
        highlights = self.store.get(article_id)
        with_notes = sum(1 for h in highlights if h.has_note)
        return HighlightStats(
            total=len(highlights),
            with_notes=with_notes,
            without_notes=len(highlights) - with_notes,
            legacy=sum(1 for h in highlights if h.is_legacy),
            color_distribution=dict(Counter(h.color for h in highlights)),
        )
