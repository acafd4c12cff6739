"""Database connection and session management."""

from contextlib import asynccontextmanager
from typing import Any, AsyncGenerator

import structlog
from sqlalchemy.ext.asyncio import (
    AsyncSession,
    async_sessionmaker,
    create_async_engine,
)

from credit_monitor.core.config import settings

from .models import Base

logger = structlog.get_logger(__name__)


class DatabaseSessionManager:
    """
    Manages database connections and sessions.

    Uses SQLAlchemy async engine for non-blocking database operations.
    """

    def __init__(self):
        self._engine = None
        self._sessionmaker = None

    def init(self, database_url: str | None = None, **engine_kwargs: Any):
        """
        Initialize the database engine and session factory.

        Args:
            database_url: Optional override for the database URL
            **engine_kwargs: Extra create_async_engine arguments; pool
                sizing from settings applies only when none are given
        """
        url = database_url or settings.database_url

        # Convert postgres:// to postgresql+asyncpg://
        if url.startswith("postgres://"):
            url = url.replace("postgres://", "postgresql+asyncpg://", 1)
        elif url.startswith("postgresql://"):
            url = url.replace("postgresql://", "postgresql+asyncpg://", 1)

        if not engine_kwargs and not url.startswith("sqlite"):
            engine_kwargs = {
                "pool_size": settings.db_pool_size,
                "max_overflow": settings.db_max_overflow,
                "pool_pre_ping": True,
            }

        self._engine = create_async_engine(
            url,
            echo=settings.debug,
            **engine_kwargs,
        )

        self._sessionmaker = async_sessionmaker(
            bind=self._engine,
            class_=AsyncSession,
            expire_on_commit=False,
            autocommit=False,
            autoflush=False,
        )
        logger.info("database_initialized", dialect=self._engine.dialect.name)

    async def create_all(self):
        """Create all tables. Intended for tests and local development."""
        if self._engine is None:
            raise RuntimeError("Database not initialized. Call init() first.")
        async with self._engine.begin() as conn:
            await conn.run_sync(Base.metadata.create_all)

    async def close(self):
        """Close the database engine."""
        if self._engine:
            await self._engine.dispose()

    @asynccontextmanager
    async def session(self) -> AsyncGenerator[AsyncSession, None]:
        """
        Provide a transactional scope around operations.

        Yields:
            An async database session
        """
        if self._sessionmaker is None:
            raise RuntimeError("Database not initialized. Call init() first.")

        session = self._sessionmaker()
        try:
            yield session
            await session.commit()
        except BaseException:
            # Cancellation must roll back too.
            await session.rollback()
            raise
        finally:
            await session.close()


db_manager = DatabaseSessionManager()
