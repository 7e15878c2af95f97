"""FastAPI dependencies for route handlers.

Common dependencies like database sessions.
"""

from folio.db.session import get_db, get_session_factory

__all__ = ["get_db", "get_session_factory"]
