"""Engine for the database that holds the highlights table.

DATABASE_URL defaults to a SQLite file next to the process (sqlite:///./folio.db)
so a local reader works with no setup. Settings refuses SQLite for staging and
prod, so the SQLite-only connect arguments below never reach a server database.
"""

from functools import lru_cache

from sqlalchemy import create_engine
from sqlalchemy.engine import Engine

from folio.config import get_settings


def sqlite_connect_args(database_url: str) -> dict[str, bool]:
    """DBAPI arguments for a URL.

    FastAPI runs the sync highlight routes in a threadpool, and a SQLite
    connection is handed between those threads, so same-thread checking is off.
    """
    if database_url.startswith("sqlite"):
        return {"check_same_thread": False}
    return {}


def create_db_engine(database_url: str | None = None) -> Engine:
    """Create the engine for a URL, or for DATABASE_URL when None."""
    if database_url is None:
        database_url = get_settings().database_url

    return create_engine(
        database_url,
        pool_pre_ping=True,
        echo=False,
        connect_args=sqlite_connect_args(database_url),
    )


@lru_cache
def get_engine() -> Engine:
    """Process-wide engine shared by request sessions and the migration script."""
    return create_db_engine()
