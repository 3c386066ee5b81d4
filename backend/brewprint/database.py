"""
Brewprint Backend — Database Session Management
================================================

What:  Async SQLAlchemy engine, session factory, declarative base, and a
       transactional session scope.
How:   Creates an async engine with connection pooling; `session_scope()`
       yields a session that commits on success and rolls back on error.
Who:   Used by SqlAlchemyRecordStore (one scope per store operation) and by
       the app lifespan (table creation, engine disposal).

Connection Pooling Strategy:
    pool_size=20:      Persistent connections for normal load
    max_overflow=10:   Temporary connections for spikes (total max = 30)
    pool_pre_ping:     Validates connections before use
    pool_recycle=3600: Recycles connections every hour

    A snapshot export holds up to nine connections at once (one per
    collection query), so pool_size never drops below 10.
"""

from contextlib import asynccontextmanager
from typing import AsyncGenerator, Optional

from sqlalchemy.ext.asyncio import (
    AsyncSession,
    async_sessionmaker,
    create_async_engine,
)
from sqlalchemy.orm import DeclarativeBase

from brewprint.config import settings


# ── Engine Configuration ──────────────────────────────────────────────────
engine = create_async_engine(
    settings.database_url,
    pool_size=settings.db_pool_size,
    max_overflow=settings.db_max_overflow,
    pool_pre_ping=settings.db_pool_pre_ping,
    pool_recycle=3600,
    echo=settings.log_level == "DEBUG",
)

# ── Session Factory ───────────────────────────────────────────────────────
# expire_on_commit=False: records are converted to dicts after commit
async_session_factory = async_sessionmaker(
    engine,
    class_=AsyncSession,
    expire_on_commit=False,
)


# ── Base Model ────────────────────────────────────────────────────────────
class Base(DeclarativeBase):
    """
    Base class for all SQLAlchemy ORM models.

    All models share one metadata object, which `init_models()` uses to
    create the schema at startup.
    """
    pass


# ── Session Scope ─────────────────────────────────────────────────────────
@asynccontextmanager
async def session_scope(
    factory: Optional[async_sessionmaker] = None,
) -> AsyncGenerator[AsyncSession, None]:
    """
    Provide a transactional session for one unit of work.

    How it works:
        1. Creates a new session from the factory
        2. Yields it to the caller (the caller performs queries)
        3. On success: commits the transaction
        4. On error: rolls back and re-raises
        5. Always: closes the session (returns connection to pool)

    Every RecordStore call runs inside its own scope, so a failed batch
    insert leaves nothing behind and concurrent reads never share a session.
    """
    session_maker = factory or async_session_factory
    async with session_maker() as session:
        try:
            yield session
            await session.commit()
        except Exception:
            await session.rollback()
            raise
        finally:
            await session.close()


# ── Lifecycle Helpers ─────────────────────────────────────────────────────
async def init_models() -> None:
    """
    Create all tables that do not exist yet.

    When:  Called during application startup (lifespan handler).
    """
    # Registers every model with Base.metadata
    import brewprint.models  # noqa: F401

    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)


async def dispose_engine() -> None:
    """
    What:  Gracefully closes all connections in the pool.
    When:  Called during application shutdown (lifespan handler).
    """
    await engine.dispose()
