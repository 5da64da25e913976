"""PostgreSQL store with async SQLAlchemy.

Handles:
- Database session management
- Connection pooling
- Schema helpers for development/testing

This is the metric store behind every scoring service: services receive a
session factory and own their queries, the store only hands out sessions.
"""

from collections.abc import AsyncGenerator, Callable
from contextlib import AbstractAsyncContextManager, asynccontextmanager
import logging
from typing import Any, TypeVar

from sqlalchemy import pool, text
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncEngine, AsyncSession, async_sessionmaker, create_async_engine
from sqlalchemy.orm import DeclarativeBase

from souq_trust.settings import get_settings

logger = logging.getLogger("uvicorn.error")

SessionFactory = Callable[[], AbstractAsyncContextManager[AsyncSession]]


class Base(DeclarativeBase):
    """Base class for SQLAlchemy models."""

    pass


# Engine and session factory (initialized on startup)
_engine: AsyncEngine | None = None
_session_factory: async_sessionmaker[AsyncSession] | None = None


async def init_db(database_url: str | None = None) -> None:
    """Initialize database connection pool.

    Args:
        database_url: Optional override (tests pass a sqlite+aiosqlite URL).
    """
    global _engine, _session_factory

    settings = get_settings()
    url = database_url or settings.async_database_url

    if url.startswith("sqlite"):
        # One connection per session; SQLite has no server-side pool to share.
        _engine = create_async_engine(url, echo=settings.debug, poolclass=pool.NullPool)
    else:
        _engine = create_async_engine(
            url,
            echo=settings.debug,
            connect_args=settings.asyncpg_connect_args,
            pool_size=5,
            max_overflow=10,
            pool_pre_ping=True,
        )
    _session_factory = async_sessionmaker(
        _engine,
        class_=AsyncSession,
        expire_on_commit=False,
    )


async def ping_db() -> None:
    """Run a trivial query to validate connectivity."""
    if _engine is None:
        raise RuntimeError("Database not initialized. Call init_db() first.")

    async with _engine.connect() as conn:
        await conn.execute(text("SELECT 1"))


async def close_db() -> None:
    """Close database connection pool."""
    global _engine, _session_factory
    if _engine:
        await _engine.dispose()
        _engine = None
        _session_factory = None


@asynccontextmanager
async def get_session() -> AsyncGenerator[AsyncSession, None]:
    """Get database session context manager.

    Commits on clean exit, rolls back and re-raises on error.

    Usage:
        async with get_session() as session:
            result = await session.execute(query)
    """
    if _session_factory is None:
        raise RuntimeError("Database not initialized. Call init_db() first.")

    async with _session_factory() as session:
        try:
            yield session
            await session.commit()
        except Exception:
            await session.rollback()
            raise


async def create_tables() -> None:
    """Create all tables (for development/testing only)."""
    if _engine is None:
        raise RuntimeError("Database not initialized. Call init_db() first.")

    # Register all models on Base.metadata before create_all.
    import souq_trust.models  # noqa: F401

    async with _engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)


# ============================================================
# Upsert (full-row overwrite)
# ============================================================

ModelT = TypeVar("ModelT", bound=Base)


async def replace_row(
    session: AsyncSession,
    model: type[ModelT],
    key: Any,
    values: dict[str, Any],
) -> ModelT:
    """Insert a row or overwrite every given column of the existing one.

    `values` must contain the primary key column(s) and the full set of
    aggregate fields; no field is patched incrementally.
    """
    row = await session.get(model, key)
    if row is None:
        row = model(**values)
        session.add(row)
    else:
        for field, value in values.items():
            setattr(row, field, value)
    await session.flush()
    return row


async def upsert_row(
    session_factory: SessionFactory,
    model: type[ModelT],
    key: Any,
    values: dict[str, Any],
) -> None:
    """Upsert in its own transaction, last write wins.

    Two concurrent first inserts race on the primary key; the loser gets an
    IntegrityError and retries once, which then takes the update path.
    """
    try:
        async with session_factory() as session:
            await replace_row(session, model, key, values)
    except IntegrityError:
        logger.info(f"Concurrent insert on {model.__tablename__} key={key}, retrying as update")
        async with session_factory() as session:
            await replace_row(session, model, key, values)
