"""Database engine and session management."""
from contextlib import asynccontextmanager
from typing import AsyncGenerator

import structlog
from sqlalchemy import select
from sqlalchemy.ext.asyncio import (
    AsyncEngine,
    AsyncSession,
    async_sessionmaker,
    create_async_engine,
)

from ..config.settings import DatabaseSettings
from ..models.base import Base

logger = structlog.get_logger(__name__)


class Database:
    """Persistence handle owning the engine and session factory.

    Built once at application startup and disposed at shutdown; services
    receive sessions from it rather than reaching for a module global.
    """

    def __init__(self, settings: DatabaseSettings, echo: bool = None):
        engine_kwargs = {
            "echo": settings.echo if echo is None else echo,
            "pool_pre_ping": True,
        }
        if not settings.url.startswith("sqlite"):
            engine_kwargs.update(
                pool_size=settings.pool_size,
                max_overflow=settings.max_overflow,
                pool_recycle=3600,  # 1 hour
            )

        self.engine: AsyncEngine = create_async_engine(settings.url, **engine_kwargs)
        self.session_factory: async_sessionmaker[AsyncSession] = async_sessionmaker(
            self.engine,
            class_=AsyncSession,
            expire_on_commit=False,
        )
        logger.info("Database engine created", dialect=self.engine.dialect.name)

    @asynccontextmanager
    async def session(self) -> AsyncGenerator[AsyncSession, None]:
        """Yield a session that commits on success and rolls back on error."""
        session = self.session_factory()
        try:
            yield session
            await session.commit()
        except Exception:
            await session.rollback()
            raise
        finally:
            await session.close()

    async def create_all(self) -> None:
        """Create the database tables."""
        async with self.engine.begin() as conn:
            await conn.run_sync(Base.metadata.create_all)

        logger.info("Database tables created")

    async def ping(self) -> bool:
        async with self.session_factory() as session:
            await session.execute(select(1))
        return True

    async def dispose(self) -> None:
        """Close the database connections."""
        await self.engine.dispose()
        logger.info("Database connections closed")
