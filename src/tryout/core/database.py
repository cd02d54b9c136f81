"""
Database Configuration

Async SQLAlchemy engine and session factory. The engine is created lazily
from DATABASE_URL so the application can start (and report a configuration
error per request) when the database is not configured.
"""

import logging
from collections.abc import AsyncGenerator

from sqlalchemy import text
from sqlalchemy.ext.asyncio import (
    AsyncEngine,
    AsyncSession,
    async_sessionmaker,
    create_async_engine,
)
from sqlalchemy.orm import DeclarativeBase

from tryout.core.config import settings
from tryout.core.errors import ConfigurationError

logger = logging.getLogger(__name__)


class Base(DeclarativeBase):
    """Declarative base for all ORM models."""


engine: AsyncEngine | None = None
async_session_maker: async_sessionmaker[AsyncSession] | None = None


def _create_engine() -> None:
    global engine, async_session_maker

    if not settings.database_url:
        raise ConfigurationError("Konfigurasi database tidak lengkap.")

    engine = create_async_engine(
        settings.database_url,
        echo=False,
        pool_pre_ping=True,
    )
    async_session_maker = async_sessionmaker(engine, class_=AsyncSession, expire_on_commit=False)


async def init_db() -> None:
    """
    Initialize the database engine and check connectivity.

    Call this on application startup.
    """
    if engine is None:
        _create_engine()

    async with engine.connect() as conn:
        await conn.execute(text("SELECT 1"))


def get_session_maker() -> async_sessionmaker[AsyncSession]:
    """
    Return the session factory, creating the engine on first use.

    Raises:
        ConfigurationError: If DATABASE_URL is not set
    """
    if async_session_maker is None:
        _create_engine()
    return async_session_maker


async def get_db() -> AsyncGenerator[AsyncSession, None]:
    """
    FastAPI dependency yielding a database session.

    Raises:
        ConfigurationError: If DATABASE_URL is not set
    """
    async with get_session_maker()() as session:
        try:
            yield session
        except Exception:
            await session.rollback()
            raise


async def close_db() -> None:
    """Dispose of the engine. Call this on application shutdown."""
    global engine, async_session_maker
    if engine is not None:
        await engine.dispose()
        engine = None
        async_session_maker = None
