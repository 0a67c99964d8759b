"""
AsyncEngine factory, schema bootstrap, and the two ways tripcast code gets a
session: the get_db request dependency and standalone_session for jobs run
from the command line.

NullPool because PgBouncer owns connection pooling -- SA should not
maintain its own pool on top.
"""

from collections.abc import AsyncGenerator
from contextlib import asynccontextmanager

from fastapi import Request
from sqlalchemy.ext.asyncio import (
    AsyncEngine,
    AsyncSession,
    async_sessionmaker,
    create_async_engine,
)
from sqlalchemy.pool import NullPool

from services.tripcast.config import settings
from services.tripcast.db.models import Base


def create_engine(database_url: str | None = None) -> AsyncEngine:
    """
    Create async engine for use with PgBouncer transaction-mode pooling.

    Plain ``postgresql://`` URLs are rewritten to the asyncpg driver.
    """
    url = database_url or settings.database_url
    url = url.replace("postgresql://", "postgresql+asyncpg://", 1)
    return create_async_engine(
        url,
        poolclass=NullPool,
        echo=settings.debug and settings.environment == "development",
    )


async def create_schema(engine: AsyncEngine) -> None:
    """Create any missing tables. Existing tables are left untouched."""
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)


async def get_db(request: Request) -> AsyncGenerator[AsyncSession, None]:
    """
    Request-scoped session for the trips router.

    The factory is built once in the app lifespan with expire_on_commit=False,
    so trip and forecast rows stay readable after the handler commits.
    """
    factory: async_sessionmaker = request.app.state.db_session_factory
    async with factory() as session:
        yield session


@asynccontextmanager
async def standalone_session():
    """
    For the standalone job entry points that run outside FastAPI.
    Handles engine lifecycle to prevent connection leaks with NullPool.
    """
    engine = create_engine()
    factory = async_sessionmaker(engine, expire_on_commit=False)
    try:
        yield factory
    finally:
        await engine.dispose()


def dialect_insert(session: AsyncSession):
    """
    Return the dialect-specific insert() construct that supports ON CONFLICT.

    PostgreSQL in production, SQLite in the test suite.
    """
    dialect = session.get_bind().dialect.name
    if dialect == "postgresql":
        from sqlalchemy.dialects.postgresql import insert
    elif dialect == "sqlite":
        from sqlalchemy.dialects.sqlite import insert
    else:
        raise NotImplementedError(f"ON CONFLICT inserts not supported on dialect {dialect!r}")
    return insert
