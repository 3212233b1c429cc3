"""
Jotter Backend — Database Session Management
==============================================

What:  Async SQLAlchemy engine, session factory, connection check, and the
       FastAPI session dependency.
How:   One async engine per process with connection pooling; one session per
       request that commits on success and rolls back on error.
Who:   Used by route handlers via FastAPI's dependency injection system and by
       the lifespan hook in main.py.
When:  Engine is created at module import; sessions are created per-request.

Connection Strategy:
    connect_store() runs a `SELECT 1` the first time it is called and
    remembers the outcome. Later calls are no-ops while the store is marked
    connected, so calling it from both startup and every request is cheap.
    dispose_engine() clears the flag together with the pool.
"""

import json
import logging
from typing import Any, AsyncGenerator, Optional

from sqlalchemy import event, text
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import (
    AsyncEngine,
    AsyncSession,
    async_sessionmaker,
    create_async_engine,
)
from sqlalchemy.orm import DeclarativeBase

from jotter.config import settings
from jotter.exceptions import StoreError
from jotter.search import CASEFOLD_FUNCTION, casefold_text

logger = logging.getLogger(__name__)


def _json_serializer(value: Any) -> str:
    # Non-ASCII bullet text is stored as written, not as \uXXXX escapes
    return json.dumps(value, ensure_ascii=False)


def _register_sqlite_functions(dbapi_connection, connection_record) -> None:
    # SQLite's lower() only folds ASCII letters
    dbapi_connection.create_function(CASEFOLD_FUNCTION, 1, casefold_text)


def build_engine(database_url: str, **overrides: Any) -> AsyncEngine:
    """
    Create an async engine for the note store.

    Pool sizing only applies to pooled server databases; SQLite engines are
    created with the driver's default pool and get the casefold() function
    the search queries use.
    """
    options: dict = {
        "json_serializer": _json_serializer,
        "echo": settings.log_level == "DEBUG",
    }
    is_sqlite = database_url.startswith("sqlite")
    if not is_sqlite:
        options.update(
            pool_size=settings.db_pool_size,
            max_overflow=settings.db_max_overflow,
            pool_pre_ping=settings.db_pool_pre_ping,
            pool_recycle=3600,
        )
    options.update(overrides)
    new_engine = create_async_engine(database_url, **options)
    if is_sqlite:
        event.listen(new_engine.sync_engine, "connect", _register_sqlite_functions)
    return new_engine


# ── Engine & Session Factory ──────────────────────────────────────────────
engine = build_engine(settings.database_url)

# expire_on_commit=False: attributes stay readable after the request commits
async_session_factory = async_sessionmaker(
    engine,
    class_=AsyncSession,
    expire_on_commit=False,
)


# ── Base Model ────────────────────────────────────────────────────────────
class Base(DeclarativeBase):
    """Base class for all SQLAlchemy ORM models (shared metadata for Alembic)."""
    pass


# ── Connection Check ──────────────────────────────────────────────────────
_connected = False


async def connect_store(target: Optional[AsyncEngine] = None) -> None:
    """
    Verify that the note store is reachable.

    Idempotent: returns immediately if a previous call already succeeded.

    Raises:
        StoreError: The database could not be reached.
    """
    global _connected
    if _connected:
        logger.debug("Note store already connected")
        return

    target = target or engine
    try:
        async with target.connect() as conn:
            await conn.execute(text("SELECT 1"))
    except (SQLAlchemyError, OSError) as e:
        logger.error("Note store connection error: %s", str(e))
        raise StoreError(
            message="Could not connect to the note store",
            context={"error_type": type(e).__name__},
        ) from e

    _connected = True
    logger.info("Note store connected (%s)", target.url.render_as_string(hide_password=True))


def is_connected() -> bool:
    return _connected


# ── Session Dependency ────────────────────────────────────────────────────
async def get_db_session() -> AsyncGenerator[AsyncSession, None]:
    """
    FastAPI dependency that provides a database session per request.

    How it works:
        1. Ensures the store connection has been verified (no-op after the first time)
        2. Yields a new session to the route handler
        3. On success: commits the transaction
        4. On error: rolls back and re-raises for the global error handlers
        5. Always: closes the session (returns connection to pool)

    Example usage in a route:
        @router.get("/notes")
        async def list_notes(db: AsyncSession = Depends(get_db_session)):
            ...
    """
    await connect_store()
    async with async_session_factory() as session:
        try:
            yield session
            await session.commit()
        except Exception:
            await session.rollback()
            raise
        finally:
            await session.close()


# ── Lifecycle Helpers ─────────────────────────────────────────────────────
async def dispose_engine() -> None:
    """
    What:  Gracefully closes all connections in the pool.
    When:  Called during application shutdown (lifespan handler).
    """
    global _connected
    await engine.dispose()
    _connected = False
