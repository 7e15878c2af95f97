"""Database module for Folio.

Provides engine creation, session management, transaction helpers, and ORM models.
"""

from folio.db.engine import create_db_engine, get_engine
from folio.db.models import Base, HighlightRow
from folio.db.session import get_db, init_db, transaction

__all__ = [
    # Engine and session
    "create_db_engine",
    "get_engine",
    "get_db",
    "init_db",
    "transaction",
    # Models
    "Base",
    "HighlightRow",
]
