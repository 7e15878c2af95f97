"""Sessions, transactions and schema bootstrap for the highlights table.

Provides:
- get_db(), the request-scoped session every highlight route depends on
- transaction(), which SqlHighlightStore wraps around each put/delete so a
  single highlight write commits or rolls back on its own
- init_db(), which creates `highlights` on a fresh database (app startup and
  the legacy migration script)

Sessions are opened even when HIGHLIGHTS_STORE=memory; the memory store just
never touches them, and no connection is checked out until a query runs.
"""

from collections.abc import Generator
from contextlib import contextmanager

from sqlalchemy.engine import Engine
from sqlalchemy.orm import Session, sessionmaker

from folio.db.engine import get_engine
from folio.db.models import Base


def create_session_factory(engine: Engine | None = None) -> sessionmaker[Session]:
    """Create a session factory bound to an engine.

    expire_on_commit is off so rows committed by the store can still be
    converted to Highlight schemas after the transaction closes.

    Args:
        engine: SQLAlchemy engine. If None, uses the DATABASE_URL engine.
    """
    if engine is None:
        engine = get_engine()

    return sessionmaker(
        bind=engine,
        autocommit=False,
        autoflush=False,
        expire_on_commit=False,
    )


# Default session factory - created lazily
_SessionLocal: sessionmaker[Session] | None = None


def get_session_factory() -> sessionmaker[Session]:
    """Get or create the factory bound to DATABASE_URL."""
    global _SessionLocal
    if _SessionLocal is None:
        _SessionLocal = create_session_factory()
    return _SessionLocal


def get_db() -> Generator[Session, None, None]:
    """FastAPI dependency yielding one session per request.

    Tests override this dependency to bind the in-memory SQLite engine.
    """
    db = get_session_factory()()
    try:
        yield db
    finally:
        db.close()


def init_db(engine: Engine | None = None) -> None:
    """Create the highlights table (and its indexes) if it does not exist yet.

    Existing tables are left untouched; there is no column migration here.
    """
    if engine is None:
        engine = get_engine()
    Base.metadata.create_all(engine)


@contextmanager
def transaction(db: Session) -> Generator[None, None, None]:
    """Commit the enclosed highlight write, or roll it back and re-raise.

    Usage:
        with transaction(db):
            db.add(HighlightRow(id=..., article_id=..., text=...))
    """
    try:
        yield
        db.commit()
    except Exception:
        db.rollback()
        raise
