import logging
from contextlib import asynccontextmanager
from typing import AsyncGenerator
from collections.abc import AsyncIterator

from sqlalchemy.ext.asyncio import AsyncEngine, AsyncSession, async_sessionmaker, create_async_engine
from sqlalchemy import event

from app.config import settings
from app.models import Base

logger = logging.getLogger(__name__)

# Engine and session factory - initialized in init_db() during startup
_engine: AsyncEngine | None = None
_session_factory: async_sessionmaker[AsyncSession] | None = None


async def get_db() -> AsyncGenerator[AsyncSession, None]:
    """Database dependency for FastAPI"""
    session_factory = get_session_factory()

    async with session_factory() as session:
        yield session


def get_session_factory() -> async_sessionmaker[AsyncSession]:
    """Get the session factory (initialized in init_db)"""
    if _session_factory is None:
        raise RuntimeError("Database not initialized. Call init_db() during startup.")
    return _session_factory


def _configure_sqlite(dbapi_conn, _) -> None:
    """Configure SQLite connection parameters"""
    cursor = dbapi_conn.cursor()
    cursor.execute("PRAGMA journal_mode = WAL")
    # Cascading deletes from playlists to their entities rely on this
    cursor.execute("PRAGMA foreign_keys = ON")
    cursor.close()


async def init_db() -> None:
    """Initialize database schema and engine"""
    global _engine, _session_factory

    logger.info("Initializing database at %s", settings.database_path)

    _engine = create_async_engine(
        f"sqlite+aiosqlite:///{settings.database_path}",
        echo=False,
        pool_pre_ping=True,
        connect_args={"timeout": 30, "check_same_thread": False},
    )
    event.listen(_engine.sync_engine, "connect", _configure_sqlite)

    async with _engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)

    _session_factory = async_sessionmaker(
        _engine,
        class_=AsyncSession,
        expire_on_commit=False,
        autoflush=False,
    )

    logger.info("Database initialized successfully")


async def close_db() -> None:
    """Close database connections on shutdown"""
    global _engine, _session_factory
    if _engine:
        await _engine.dispose()
        logger.info("Database connections closed")
    _engine = None
    _session_factory = None


@asynccontextmanager
async def session_scope(*, begin: bool = True) -> AsyncIterator[AsyncSession]:
    """
    Provide an async session context manager with optional automatic transaction handling.

    Args:
        begin: When True (default), wrap the session in `session.begin()` for auto commit/rollback.
               When False, caller is responsible for transaction demarcation and commit/rollback.
    """
    session_factory = get_session_factory()

    async with session_factory() as session:
        if begin:
            async with session.begin():
                yield session
        else:
            try:
                yield session
            except Exception:
                await session.rollback()
                raise
            else:
                await session.commit()
