"""Database connection and session management."""

from contextlib import asynccontextmanager
from typing import Any, AsyncGenerator, Optional

from fastapi import Depends, Request
from sqlalchemy import text
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine
from sqlalchemy.orm import DeclarativeBase

from salon.app.core.config import Settings
from salon.app.core.errors import ConfigurationError
from salon.app.core.logging import get_logger

logger = get_logger(__name__)


class Base(DeclarativeBase):
    """Base class for SQLAlchemy models."""
    pass


class Database:
    """
    Explicit data-access handle.

    Built once at startup from settings, stored on ``app.state.database`` and
    disposed at shutdown. Services receive it (or a session from it) instead
    of importing a module-level engine.
    """

    def __init__(self, url: str, **engine_kwargs: Any):
        self.url = url
        self.engine = create_async_engine(url, **engine_kwargs)
        self.session_factory = async_sessionmaker(
            self.engine,
            class_=AsyncSession,
            expire_on_commit=False,
        )

    @classmethod
    def from_settings(cls, settings: Settings) -> Optional["Database"]:
        """Return a handle for the configured store, or None when unconfigured."""
        if not settings.database_url:
            logger.warning("DATABASE_URL is not set; data endpoints will report 'not configured'")
            return None

        engine_kwargs: dict = {"echo": settings.debug}
        if "postgresql" in settings.database_url:
            engine_kwargs.update({
                "pool_size": settings.database_pool_size,
                "max_overflow": settings.database_max_overflow,
                "pool_pre_ping": True,
            })
        return cls(settings.database_url, **engine_kwargs)

    @asynccontextmanager
    async def session(self) -> AsyncGenerator[AsyncSession, None]:
        """Session scope: commit on success, rollback on error."""
        async with self.session_factory() as session:
            try:
                yield session
                await session.commit()
            except Exception:
                await session.rollback()
                raise

    async def create_all(self) -> None:
        # Import models so they register with Base.metadata
        import salon.app.models  # noqa: F401

        async with self.engine.begin() as conn:
            await conn.run_sync(Base.metadata.create_all)

    async def drop_all(self) -> None:
        import salon.app.models  # noqa: F401

        async with self.engine.begin() as conn:
            await conn.run_sync(Base.metadata.drop_all)

    async def ping(self) -> None:
        async with self.engine.connect() as conn:
            await conn.execute(text("SELECT 1"))

    async def dispose(self) -> None:
        await self.engine.dispose()


def get_database(request: Request) -> Database:
    """Dependency returning the application's Database handle."""
    database = getattr(request.app.state, "database", None)
    if database is None:
        raise ConfigurationError()
    return database


async def get_db(database: Database = Depends(get_database)) -> AsyncGenerator[AsyncSession, None]:
    """Dependency for getting database sessions."""
    async with database.session() as session:
        yield session
