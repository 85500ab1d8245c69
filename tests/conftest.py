"""
Shared test fixtures.

Sets up an isolated test database so tests never touch
the real database. Each test gets a fresh session that
rolls back after the test, and tables are dropped between
tests so no data persists.
"""

import pytest
from fastapi.testclient import TestClient
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker

from money_flow.main import app
from money_flow.models import Base
from money_flow.models.base import get_db


# SQLite needs no database server, so the suite runs anywhere.
# The aggregation queries switch to strftime() on this dialect.
TEST_DATABASE_URL = "sqlite:///./test.db"

engine = create_engine(
    TEST_DATABASE_URL,
    connect_args={"check_same_thread": False},
)

TestSessionLocal = sessionmaker(
    bind=engine,
    autocommit=False,
    autoflush=False,
)


@pytest.fixture(autouse=True)
def setup_database():
    """Create all tables before each test, drop them after."""
    Base.metadata.create_all(bind=engine)
    yield
    Base.metadata.drop_all(bind=engine)


@pytest.fixture
def db_session():
    """Provide a database session for direct service testing."""
    session = TestSessionLocal()
    try:
        yield session
    finally:
        session.rollback()
        session.close()


@pytest.fixture
def client(db_session):
    """
    Provide a test client with the test database.

    The get_db dependency is overridden so the app uses the
    test session instead of the real database.
    """
    def override_get_db():
        try:
            yield db_session
        finally:
            pass

    app.dependency_overrides[get_db] = override_get_db
    yield TestClient(app)
    app.dependency_overrides.clear()


@pytest.fixture
def open_session():
    """
    Open extra sessions on their own connections, to act as
    concurrent writers. All of them are closed after the test.
    """
    sessions = []

    def _open():
        session = TestSessionLocal()
        sessions.append(session)
        return session

    yield _open
    for session in sessions:
        session.rollback()
        session.close()
