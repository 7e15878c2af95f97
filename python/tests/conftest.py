"""Pytest configuration and fixtures for Folio tests.

Test isolation strategy:
- Each test that touches the database gets a fresh in-memory SQLite engine
  (StaticPool keeps the single connection alive across sessions)
- The in-memory store namespace is cleared around every test
- Logging is reconfigured from LOG_JSON=false, so output is console-rendered
- API tests use a TestClient whose get_db dependency is bound to the test engine
"""

from collections.abc import Generator

import pytest
from fastapi.testclient import TestClient
from sqlalchemy import Engine, create_engine
from sqlalchemy.orm import Session
from sqlalchemy.pool import StaticPool

from folio.app import add_request_id_middleware, create_app
from folio.config import clear_settings_cache, get_settings
from folio.db.models import Base
from folio.db.session import create_session_factory, get_db
from folio.logging import configure_logging
from folio.services.highlight_store import HighlightRepository, MemoryHighlightStore

TEST_NAMESPACE = "folio_highlights_test"


@pytest.fixture(autouse=True)
def isolated_settings(monkeypatch: pytest.MonkeyPatch) -> Generator[None, None, None]:
    """Run every test against test settings with a fresh cache.

    folio.app configures logging at import, before LOG_JSON is set here, so
    the root handler is rebuilt from the test settings.
    """
    monkeypatch.setenv("FOLIO_ENV", "test")
    monkeypatch.setenv("LOG_JSON", "false")
    clear_settings_cache()
    configure_logging(json_format=get_settings().log_json)
    yield
    clear_settings_cache()


@pytest.fixture
def engine() -> Generator[Engine, None, None]:
    """In-memory SQLite engine with the schema created."""
    engine = create_engine(
        "sqlite://",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    Base.metadata.create_all(engine)
    yield engine
    engine.dispose()


@pytest.fixture
def db_session(engine: Engine) -> Generator[Session, None, None]:
    session = create_session_factory(engine)()
    try:
        yield session
    finally:
        session.close()


@pytest.fixture
def memory_store() -> Generator[MemoryHighlightStore, None, None]:
    MemoryHighlightStore.clear_namespace(TEST_NAMESPACE)
    yield MemoryHighlightStore(TEST_NAMESPACE)
    MemoryHighlightStore.clear_namespace(TEST_NAMESPACE)


@pytest.fixture
def memory_repo(memory_store: MemoryHighlightStore) -> HighlightRepository:
    return HighlightRepository(memory_store)


@pytest.fixture
def client(engine: Engine) -> TestClient:
    """API client bound to the test engine."""
    session_factory = create_session_factory(engine)

    def override_get_db() -> Generator[Session, None, None]:
        db = session_factory()
        try:
            yield db
        finally:
            db.close()

    app = create_app(run_lifespan=False)
    app.dependency_overrides[get_db] = override_get_db
    add_request_id_middleware(app, log_requests=False)
    return TestClient(app)
