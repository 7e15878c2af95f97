"""Database smoke tests.

Verifies engine construction, schema bootstrap and the transaction helper
the SQL highlight store writes through.
"""

import pytest
from sqlalchemy import func, inspect, select, text
from sqlalchemy.orm import Session

from folio.db.engine import create_db_engine, sqlite_connect_args
from folio.db.models import HighlightRow
from folio.db.session import create_session_factory, init_db, transaction
from tests.factories import FIXED_TIME


def _row(highlight_id: str = "h1") -> HighlightRow:
    return HighlightRow(
        id=highlight_id,
        article_id="a1",
        text="quick",
        color="yellow",
        title="",
        note="",
        created_at=FIXED_TIME,
        updated_at=FIXED_TIME,
    )


def _count(db: Session) -> int:
    return db.scalar(select(func.count()).select_from(HighlightRow))


class TestEngine:
    def test_sqlite_disables_same_thread_check(self):
        assert sqlite_connect_args("sqlite:///./folio.db") == {"check_same_thread": False}

    def test_server_database_gets_no_sqlite_args(self):
        assert sqlite_connect_args("postgresql+psycopg://db.internal/folio") == {}

    def test_engine_connects(self):
        engine = create_db_engine("sqlite://")
        try:
            with engine.connect() as conn:
                assert conn.execute(text("SELECT 1")).scalar() == 1
        finally:
            engine.dispose()


class TestInitDb:
    def test_creates_highlights_table(self):
        engine = create_db_engine("sqlite://")
        try:
            init_db(engine)

            assert "highlights" in inspect(engine).get_table_names()
        finally:
            engine.dispose()

    def test_is_repeatable(self, engine):
        """Running against an existing schema keeps the rows."""
        db = create_session_factory(engine)()
        try:
            with transaction(db):
                db.add(_row())

            init_db(engine)

            assert _count(db) == 1
        finally:
            db.close()


class TestTransaction:
    """Tests for the commit/rollback helper."""

    def test_commits_on_success(self, db_session: Session):
        with transaction(db_session):
            db_session.add(_row())

        db_session.expunge_all()
        assert db_session.get(HighlightRow, "h1") is not None

    def test_rolls_back_and_reraises(self, db_session: Session):
        with pytest.raises(RuntimeError):
            with transaction(db_session):
                db_session.add(_row())
                db_session.flush()
                raise RuntimeError("write failed")

        assert _count(db_session) == 0
