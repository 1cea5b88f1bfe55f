"""
Database connection and session management.

One ``AsyncSession`` per request: services only flush, the unit of work
commits once when the handler returns and rolls back on any exception.
"""

from collections.abc import AsyncGenerator
from contextlib import asynccontextmanager
from typing import Any

import structlog
from sqlalchemy.engine import make_url
from sqlalchemy.ext.asyncio import AsyncSession, create_async_engine
from sqlalchemy.orm import sessionmaker
from sqlmodel import SQLModel

from app.core.config import Settings, get_settings

log = structlog.get_logger()
settings = get_settings()


def engine_options(config: Settings) -> dict[str, Any]:
    """Keyword arguments for ``create_async_engine`` given the configured URL."""
    options: dict[str, Any] = {"echo": config.debug}
    if make_url(config.database_url).get_backend_name() == "sqlite":
        # single-file or in-memory databases use SQLAlchemy's default pool
        return options
    options.update(
        pool_pre_ping=True,
        pool_size=config.database_pool_size,
        max_overflow=config.database_max_overflow,
    )
    return options


engine = create_async_engine(settings.database_url, **engine_options(settings))

async_session_factory = sessionmaker(
    engine,
    class_=AsyncSession,
    expire_on_commit=False,
)


async def init_db():
    """Create all tables (development only, use migrations in production)."""
    import app.models  # noqa: F401  registers the table models

    async with engine.begin() as conn:
        await conn.run_sync(SQLModel.metadata.create_all)


async def dispose_engine() -> None:
    await engine.dispose()


@asynccontextmanager
async def unit_of_work(factory=None) -> AsyncGenerator[AsyncSession, None]:
    """Open a session, commit when the block exits cleanly, roll back otherwise."""
    async with (factory or async_session_factory)() as session:
        try:
            yield session
            await session.commit()
        except Exception as exc:
            await session.rollback()
            log.debug("db.rolled_back", error=type(exc).__name__)
            raise


async def get_session() -> AsyncGenerator[AsyncSession, None]:
    """FastAPI dependency for database sessions."""
    async with unit_of_work() as session:
        yield session


def get_session_context():
    """Unit of work for use outside of the FastAPI request lifecycle."""
    return unit_of_work()
