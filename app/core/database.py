# app/core/database.py
from contextlib import asynccontextmanager
from sqlalchemy import event
from sqlalchemy.ext.asyncio import AsyncEngine, AsyncSession, create_async_engine, async_sessionmaker
from sqlalchemy.orm import declarative_base
from .config import settings
import logging
from typing import AsyncGenerator, AsyncIterator

# Configure logging
logging.basicConfig(level=settings.LOG_LEVEL)
logger = logging.getLogger(__name__)


def _enable_sqlite_foreign_keys(dbapi_connection, connection_record):
    # SQLite ignores REFERENCES clauses unless asked per connection
    cursor = dbapi_connection.cursor()
    cursor.execute("PRAGMA foreign_keys=ON")
    cursor.close()


def build_engine(database_url: str = settings.DATABASE_URL) -> AsyncEngine:
    """Create an async engine configured for the given database URL."""
    engine_kwargs = {
        "echo": settings.DB_ECHO,
        "future": True,
    }

    if database_url.startswith("sqlite"):
        # Busy timeout: writers wait on the database lock instead of failing at once
        engine_kwargs["connect_args"] = {"timeout": settings.DB_CONNECT_TIMEOUT}
    else:
        engine_kwargs.update({
            "pool_size": settings.DB_POOL_SIZE,
            "max_overflow": settings.DB_MAX_OVERFLOW,
            "pool_timeout": settings.DB_POOL_TIMEOUT,
            "pool_pre_ping": True,    # Check connection before using
            "pool_recycle": 300,      # Recycle connections after 5 minutes
        })
        if database_url.startswith("postgresql+asyncpg"):
            engine_kwargs["connect_args"] = {"timeout": settings.DB_CONNECT_TIMEOUT}

    new_engine = create_async_engine(database_url, **engine_kwargs)

    if database_url.startswith("sqlite"):
        event.listen(new_engine.sync_engine, "connect", _enable_sqlite_foreign_keys)
        logger.debug("Configured SQLite engine (foreign keys on, busy timeout %ss)", settings.DB_CONNECT_TIMEOUT)

    return new_engine


def build_session_factory(bind: AsyncEngine) -> async_sessionmaker:
    return async_sessionmaker(
        bind=bind,
        expire_on_commit=False,
        class_=AsyncSession,
    )


engine = build_engine(settings.DATABASE_URL)

# AsyncSession factory using async_sessionmaker
AsyncSessionLocal = build_session_factory(engine)

# Base class for all models
Base = declarative_base()


@asynccontextmanager
async def unit_of_work(session: AsyncSession) -> AsyncIterator[AsyncSession]:
    """
    Scope one atomic unit of work on ``session``.

    Commits when the block exits normally. Any other exit, including
    cancellation of the surrounding task, rolls back everything written
    inside the block and re-raises. Pending changes made outside the block
    are refused rather than committed along with it.
    """
    if session.new or session.dirty or session.deleted:
        raise RuntimeError("unit_of_work needs a session without pending changes")
    # Only reads can be open here; finishing them keeps loaded objects usable
    if session.in_transaction():
        await session.commit()
    try:
        yield session
        await session.commit()
    except BaseException:
        await session.rollback()
        raise


# Dependency to get DB session with proper exception handling
async def get_async_session() -> AsyncGenerator[AsyncSession, None]:
    # Create a session
    session = AsyncSessionLocal()
    try:
        # Yield the session to the caller
        yield session
    except Exception as e:
        # Log the error and rollback
        logger.error(f"Database session error: {str(e)}")
        await session.rollback()
        raise
    finally:
        # Always close the session
        await session.close()
        logger.debug("Database session closed")
