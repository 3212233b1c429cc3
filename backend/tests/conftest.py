"""
Jotter Backend — Test Configuration (conftest.py)
===================================================

What:  Shared pytest fixtures for the entire test suite.
How:   Store-backed tests run against an in-memory SQLite database (aiosqlite)
       created fresh for every test; HTTP tests use httpx's AsyncClient over
       ASGITransport with the session dependency pointed at that database.

Fixtures:
    ├── db_engine: in-memory SQLite engine with the notes table created
    ├── db_session: AsyncSession bound to db_engine
    ├── mock_db_session: AsyncMock session for "no store access" checks
    ├── sample_note_payload: a valid create payload
    └── test_client: HTTPX AsyncClient for endpoint testing
"""

import os

# Settings are read at import time; point them at SQLite before importing jotter.
os.environ["DATABASE_URL"] = "sqlite+aiosqlite:///:memory:"
os.environ["LOG_LEVEL"] = "WARNING"

from typing import AsyncGenerator  # noqa: E402
from unittest.mock import AsyncMock, MagicMock  # noqa: E402

import pytest  # noqa: E402
import pytest_asyncio  # noqa: E402
from httpx import ASGITransport, AsyncClient  # noqa: E402
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker  # noqa: E402
from sqlalchemy.pool import StaticPool  # noqa: E402

from jotter.database import Base, build_engine, get_db_session  # noqa: E402
from jotter.models.note import Note  # noqa: E402,F401


@pytest_asyncio.fixture
async def db_engine():
    """
    A fresh in-memory SQLite database per test.

    StaticPool keeps a single connection so every session sees the same
    in-memory database.
    """
    engine = build_engine(
        "sqlite+aiosqlite://",
        poolclass=StaticPool,
        connect_args={"check_same_thread": False},
    )
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
    yield engine
    await engine.dispose()


@pytest_asyncio.fixture
async def db_session(db_engine) -> AsyncGenerator[AsyncSession, None]:
    factory = async_sessionmaker(db_engine, class_=AsyncSession, expire_on_commit=False)
    async with factory() as session:
        yield session


@pytest.fixture
def mock_db_session():
    """
    A mock async database session.

    Usage:
        with pytest.raises(InvalidIdentifierError):
            await note_service.get_note(mock_db_session, "nope")
        mock_db_session.execute.assert_not_awaited()
    """
    session = AsyncMock()
    session.execute = AsyncMock()
    session.flush = AsyncMock()
    session.commit = AsyncMock()
    session.rollback = AsyncMock()
    session.delete = AsyncMock()
    session.close = AsyncMock()
    session.add = MagicMock()
    return session


@pytest.fixture
def sample_note_payload():
    return {
        "subject": "Groceries",
        "subHeader": "Saturday market",
        "content": ["Milk", "Eggs"],
    }


@pytest_asyncio.fixture
async def test_client(db_engine) -> AsyncGenerator[AsyncClient, None]:
    """
    HTTPX AsyncClient talking to the FastAPI app, backed by db_engine.

    Usage:
        async def test_health(test_client):
            response = await test_client.get("/health")
            assert response.status_code == 200
    """
    from jotter.main import app

    factory = async_sessionmaker(db_engine, class_=AsyncSession, expire_on_commit=False)

    async def override_get_db_session() -> AsyncGenerator[AsyncSession, None]:
        async with factory() as session:
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
