"""
Pytest configuration and shared fixtures for testing.
"""
import random
from contextlib import asynccontextmanager
from pathlib import Path
from typing import Callable, List
from unittest.mock import patch

import pytest
from fastapi.testclient import TestClient
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker

from cough_survey.api.v1.deps import get_storage
from cough_survey.core.config import settings
from cough_survey.core.entities import Snippet, SnippetMeta
from cough_survey.core.ledger import ResponseLedger
from cough_survey.core.participants import ParticipantRegistry
from cough_survey.core.sessions import SessionAssignmentEngine
from cough_survey.core.snippets import SnippetStore
from cough_survey.core.statistics import StatisticsAggregator
from cough_survey.main import app
from cough_survey.models import Base, get_db
from cough_survey.storage import InMemoryStorage, SqlStorage

ADMIN_TOKEN = "test-admin-token"


@asynccontextmanager
async def _test_lifespan(app):
    """No-op lifespan for tests; tables are managed by the db_session fixture."""
    yield


app.router.lifespan_context = _test_lifespan


# SQLite file next to this module so it lands inside tests/ regardless of cwd
_TEST_DB = Path(__file__).parent / "test.db"
SQLALCHEMY_DATABASE_URL = f"sqlite:///{_TEST_DB}"

engine = create_engine(
    SQLALCHEMY_DATABASE_URL, connect_args={"check_same_thread": False}
)
TestingSessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=engine)


@pytest.fixture(scope="function")
def db_session():
    """
    Create a fresh database session for each test.
    """
    Base.metadata.create_all(bind=engine)

    db = TestingSessionLocal()
    try:
        yield db
    finally:
        db.close()
        Base.metadata.drop_all(bind=engine)


@pytest.fixture
def memory_storage():
    return InMemoryStorage()


@pytest.fixture
def sql_storage(db_session):
    return SqlStorage(db_session)


@pytest.fixture(params=["memory", "sql"])
def storage(request):
    """Run the test once against each storage backend."""
    if request.param == "memory":
        return InMemoryStorage()
    return SqlStorage(request.getfixturevalue("db_session"))


@pytest.fixture
def snippet_store(storage):
    return SnippetStore(storage, cascade_delete=False)


@pytest.fixture
def registry(storage):
    return ParticipantRegistry(storage)


@pytest.fixture
def engine_factory(storage, snippet_store) -> Callable[..., SessionAssignmentEngine]:
    """Build a session engine with a seeded RNG and optional session size."""

    def _build(session_size: int = 5, seed: int = 1234) -> SessionAssignmentEngine:
        return SessionAssignmentEngine(
            storage,
            snippets=snippet_store,
            session_size=session_size,
            rng=random.Random(seed),
        )

    return _build


@pytest.fixture
def session_engine(engine_factory):
    return engine_factory()


@pytest.fixture
def ledger(storage, session_engine):
    return ResponseLedger(storage, engine=session_engine)


@pytest.fixture
def aggregator(storage):
    return StatisticsAggregator(storage)


def make_meta(index: int, duration_ms: int = 4000) -> SnippetMeta:
    return SnippetMeta(
        filename=f"snippet-{index}.wav",
        original_name=f"recording {index}.wav",
        mime_type="audio/wav",
        duration_ms=duration_ms,
    )


@pytest.fixture
def make_snippets(snippet_store) -> Callable[[int], List[Snippet]]:
    """Create ``n`` snippets and return them in creation order."""

    def _make(n: int) -> List[Snippet]:
        return [snippet_store.create(make_meta(i)) for i in range(n)]

    return _make


@pytest.fixture
def admin_headers():
    """
    Admin headers with ADMIN_TOKEN configured for the duration of the test.
    """
    with patch.object(settings, "ADMIN_TOKEN", ADMIN_TOKEN):
        yield {"X-Admin-Token": ADMIN_TOKEN}


@pytest.fixture(scope="function")
def client(db_session):
    """
    Create a test client backed by the SQLite test database.
    """

    def override_get_db():
        yield db_session

    app.dependency_overrides[get_db] = override_get_db
    with TestClient(app) as test_client:
        yield test_client
    app.dependency_overrides.clear()


@pytest.fixture(scope="function")
def memory_client(memory_storage):
    """
    Create a test client whose requests all share one in-memory storage.
    """
    app.dependency_overrides[get_storage] = lambda: memory_storage
    with TestClient(app) as test_client:
        yield test_client
    app.dependency_overrides.clear()
