"""
AskBoard Backend: Test Configuration (conftest.py)
===================================================

What:  Shared pytest fixtures for the entire test suite.
How:   pytest auto-discovers conftest.py and makes fixtures available to all tests.

Fixture Hierarchy (all function-scoped):
    ├── mock_db_session: AsyncMock session (assert which store calls happen)
    ├── db_engine:       aiosqlite engine on a fresh file with the schema created
    ├── session_factory: async_sessionmaker bound to db_engine
    ├── db_session:      one real AsyncSession for service tests
    ├── test_client:     HTTPX AsyncClient with get_db_session overridden
    └── alice / bob:     acting users, plus auth_headers() to sign tokens
"""

import os
import tempfile

# Must run before any askboard import: settings are read at import time
os.environ["DATABASE_URL"] = "sqlite+aiosqlite:///" + os.path.join(
    tempfile.mkdtemp(prefix="askboard_test_"), "health.db"
)
os.environ["JWT_SECRET_KEY"] = "test-secret-not-real"
os.environ["LOG_LEVEL"] = "WARNING"
os.environ["STRICT_EMBEDDED_OWNERSHIP"] = "false"

from unittest.mock import AsyncMock, MagicMock

import pytest
import pytest_asyncio
from httpx import AsyncClient, ASGITransport
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine

from askboard.database import Base, get_db_session
from askboard.models.question import Question  # noqa: F401
from askboard.security import CurrentUser, create_access_token


# ══════════════════════════════════════════════════════════════════════════
# Mocked Store
# ══════════════════════════════════════════════════════════════════════════

@pytest.fixture
def mock_db_session():
    """
    A mock async session.

    Usage:
        result = MagicMock()
        result.scalar_one_or_none.return_value = question
        mock_db_session.execute.return_value = result
        ...
        mock_db_session.flush.assert_not_awaited()
    """
    session = AsyncMock()
    session.execute = AsyncMock()
    session.flush = AsyncMock()
    session.refresh = AsyncMock()
    session.delete = AsyncMock()
    session.commit = AsyncMock()
    session.rollback = AsyncMock()
    session.close = AsyncMock()
    session.add = MagicMock()
    return session


# ══════════════════════════════════════════════════════════════════════════
# Real Store (SQLite)
# ══════════════════════════════════════════════════════════════════════════

@pytest_asyncio.fixture
async def db_engine(tmp_path):
    engine = create_async_engine(f"sqlite+aiosqlite:///{tmp_path / 'askboard.db'}")
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
    yield engine
    await engine.dispose()


@pytest.fixture
def session_factory(db_engine):
    return async_sessionmaker(db_engine, class_=AsyncSession, expire_on_commit=False)


@pytest_asyncio.fixture
async def db_session(session_factory):
    async with session_factory() as session:
        yield session


@pytest_asyncio.fixture
async def test_client(session_factory):
    """
    HTTPX AsyncClient talking to the FastAPI app through ASGITransport.

    Requests get sessions from the per-test SQLite file, committed or
    rolled back exactly like get_db_session does.
    """
    from askboard.main import app

    async def override_get_db_session():
        async with session_factory() as session:
            try:
                yield session
                await session.commit()
            except Exception:
                await session.rollback()
                raise

    app.dependency_overrides[get_db_session] = override_get_db_session
    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://test") as client:
        yield client
    app.dependency_overrides.clear()


# ══════════════════════════════════════════════════════════════════════════
# Users
# ══════════════════════════════════════════════════════════════════════════

@pytest.fixture
def alice():
    return CurrentUser(id="alice", name="Alice")


@pytest.fixture
def bob():
    return CurrentUser(id="bob", name="Bob")


@pytest.fixture
def auth_headers():
    """Returns a function building an Authorization header for a user id."""
    def build(user_id: str) -> dict:
        return {"Authorization": f"Bearer {create_access_token(user_id)}"}
    return build
