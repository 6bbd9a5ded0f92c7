"""Database handle and session management.

A single :class:`Database` is opened when the application starts, stored on
``app.state.db`` and disposed at shutdown.  Request handlers receive sessions
through :func:`get_db`; nothing in the code base creates engines at import time.
"""
import logging
from contextlib import asynccontextmanager
from typing import AsyncGenerator

from fastapi import Request
from sqlalchemy.ext.asyncio import (
    AsyncEngine,
    AsyncSession,
    async_sessionmaker,
    create_async_engine,
)

from ..config import Settings
from .models.base import Base

logger = logging.getLogger(__name__)


class Database:
    """Owns the async engine and the session factory."""

    def __init__(self, engine: AsyncEngine):
        self.engine = engine
        self.session_maker = async_sessionmaker(
            engine,
            class_=AsyncSession,
            expire_on_commit=False,
            autoflush=False,
        )

    @classmethod
    def from_settings(cls, settings: Settings) -> "Database":
        """Build the engine described by the application settings."""
        engine_kwargs: dict = {"echo": settings.database_echo}
        if settings.database_url.startswith("postgresql"):
            engine_kwargs.update(
                pool_pre_ping=True,
                pool_size=settings.db_pool_size,
                max_overflow=settings.db_max_overflow,
                pool_timeout=10,
                pool_recycle=3600,
            )
            # Enforce SSL for database connections in production
            if settings.is_production:
                engine_kwargs["connect_args"] = {"ssl": "require"}
        return cls(create_async_engine(settings.database_url, **engine_kwargs))

    @asynccontextmanager
    async def session(self) -> AsyncGenerator[AsyncSession, None]:
        """Session context manager that commits on success and rolls back on error."""
        async with self.session_maker() as session:
            try:
                yield session
                await session.commit()
            except Exception:
                await session.rollback()
                raise

    async def create_all(self) -> None:
        """Create database tables (development only, no migrations)."""
        async with self.engine.begin() as conn:
            await conn.run_sync(Base.metadata.create_all)

    async def dispose(self) -> None:
        """Close all pooled connections."""
        await self.engine.dispose()
        logger.info("Database connections closed")


async def get_db(request: Request) -> AsyncGenerator[AsyncSession, None]:
    """Dependency for getting database sessions from the application's handle."""
    database: Database = request.app.state.db
    async with database.session_maker() as session:
        try:
            yield session
        except Exception:
            await session.rollback()
            raise
