"""SQLAlchemy ORM models for Folio.

Defines the highlights table using SQLAlchemy 2.x declarative patterns.
Column types are portable so the same schema runs on SQLite and PostgreSQL.
"""

from datetime import datetime

from sqlalchemy import CheckConstraint, DateTime, Index, Integer, String, Text
from sqlalchemy.orm import DeclarativeBase, Mapped, mapped_column


class Base(DeclarativeBase):
    """Base class for all ORM models."""

    pass


class HighlightRow(Base):
    """A persisted highlight anchored to one paragraph of an article.

    Offsets are half-open [start_offset, end_offset) in Unicode codepoints
    over the paragraph text. Overlapping highlights are allowed.

    Legacy rows carry only `text`: paragraph_index, start_offset and
    end_offset are all NULL until the legacy migrator backfills them.
    """

    __tablename__ = "highlights"

    id: Mapped[str] = mapped_column(String(36), primary_key=True)
    article_id: Mapped[str] = mapped_column(String(128), nullable=False)
    paragraph_index: Mapped[int | None] = mapped_column(Integer, nullable=True)
    start_offset: Mapped[int | None] = mapped_column(Integer, nullable=True)
    end_offset: Mapped[int | None] = mapped_column(Integer, nullable=True)
    text: Mapped[str] = mapped_column(Text, nullable=False)
    color: Mapped[str] = mapped_column(String(16), nullable=False, default="yellow")
    title: Mapped[str] = mapped_column(Text, nullable=False, default="")
    note: Mapped[str] = mapped_column(Text, nullable=False, default="")
    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False)
    updated_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False)

    __table_args__ = (
        CheckConstraint(
            "(paragraph_index IS NULL AND start_offset IS NULL AND end_offset IS NULL)"
            " OR (paragraph_index >= 0 AND start_offset >= 0 AND end_offset > start_offset)",
            name="ck_highlights_position_valid",
        ),
        CheckConstraint(
            "color IN ('yellow','green','blue','purple','red','orange','pink')",
            name="ck_highlights_color",
        ),
        Index("idx_highlights_article_position", "article_id", "paragraph_index", "start_offset"),
    )

    def __repr__(self) -> str:
        return (
            f"<HighlightRow(id={self.id}, article_id={self.article_id}, "
            f"paragraph_index={self.paragraph_index}, "
            f"range=[{self.start_offset}, {self.end_offset}))>"
        )
