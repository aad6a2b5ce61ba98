# tests/conftest.py

import os
import tempfile
import time

# --- Test configuration must be in place before the app is imported ---
TEST_DATABASE_PATH = os.path.join(
    tempfile.gettempdir(), f"evently_test_{os.getpid()}.db"
)
os.environ["ENV"] = "local"
os.environ["DATABASE_URL_LOCAL"] = f"sqlite:///{TEST_DATABASE_PATH}"
os.environ["JWT_SECRET"] = "test-secret"
os.environ["RATE_LIMIT_ENABLED"] = "false"
os.environ["ENABLE_SCHEDULER"] = "false"
os.environ["COMPENSATION_BACKOFF_SECONDS"] = "0"

import pytest
from starlette.testclient import TestClient
from sqlalchemy_utils import create_database, database_exists, drop_database
from unittest.mock import MagicMock

from evently import models  # noqa: F401
from evently.main import app
from evently.api import deps
from evently.db.base_class import Base
from evently.db.session import SessionLocal, engine, get_db
from evently.schemas.token import TokenPayload


# --- Test Database Setup ---
@pytest.fixture(scope="session", autouse=True)
def setup_test_database():
    if database_exists(engine.url):
        drop_database(engine.url)
    create_database(engine.url)
    Base.metadata.create_all(bind=engine)
    yield
    engine.dispose()
    drop_database(engine.url)


@pytest.fixture(scope="function", autouse=True)
def clean_tables():
    """
    Concurrency tests commit from many sessions at once, so tests cannot be
    isolated by rolling back one outer transaction; wipe the rows instead.
    """
    yield
    with engine.begin() as connection:
        for table in reversed(Base.metadata.sorted_tables):
            connection.execute(table.delete())


@pytest.fixture(scope="function")
def db_session():
    session = SessionLocal()
    yield session
    session.close()


@pytest.fixture(scope="function")
def session_factory():
    """Hands out independent sessions, one per simulated request."""
    return SessionLocal


# --- Mock Dependencies Setup ---
def override_get_current_user():
    return TokenPayload(sub="user_123", exp=int(time.time()) + 3600)


# --- Test Client Fixtures ---
@pytest.fixture(scope="function")
def test_client():
    """
    Provides a TestClient where the database and authentication are mocked.
    This is for INTEGRATION tests that monkeypatch the service layer.
    """
    app.dependency_overrides[get_db] = lambda: MagicMock()
    app.dependency_overrides[deps.get_current_user] = override_get_current_user

    with TestClient(app) as client:
        yield client

    app.dependency_overrides.clear()


@pytest.fixture(scope="function")
def test_client_e2e():
    """
    Provides a TestClient that uses the LIVE test database and real bearer
    tokens. This is for E2E tests.
    """
    with TestClient(app) as client:
        yield client

    app.dependency_overrides.clear()
