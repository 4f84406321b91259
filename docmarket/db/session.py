from __future__ import annotations

from collections.abc import AsyncIterator
from contextlib import asynccontextmanager

import structlog
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncEngine, AsyncSession, async_sessionmaker, create_async_engine

from docmarket.core.config import Settings
from docmarket.monetization.errors import StorageError

logger = structlog.get_logger(__name__)


class Database:
    """Engine plus session factory owned by one app instance or worker run."""

    def __init__(self, engine: AsyncEngine) -> None:
        self.engine = engine
        self.session_factory = async_sessionmaker(
            bind=engine,
            class_=AsyncSession,
            expire_on_commit=False,
            autoflush=False,
        )

    @classmethod
    def from_settings(cls, settings: Settings) -> Database:
        engine = create_async_engine(
            settings.database_url,
            pool_pre_ping=True,
            pool_size=settings.db_pool_size,
            max_overflow=settings.db_max_overflow,
            pool_timeout=settings.db_pool_timeout_seconds,
            connect_args={"command_timeout": settings.db_command_timeout_seconds},
        )
        return cls(engine)

    def session(self) -> AsyncSession:
        return self.session_factory()

    @asynccontextmanager
    async def transaction(self) -> AsyncIterator[AsyncSession]:
        """Yield a session inside one transaction: commit on success, rollback on error."""
        try:
            async with self.session_factory.begin() as session:
                yield session
        except SQLAlchemyError as exc:
            logger.exception("db_transaction_failed", error_type=type(exc).__name__)
            raise StorageError(str(exc)) from exc

    async def dispose(self) -> None:
        await self.engine.dispose()
