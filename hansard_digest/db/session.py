"""
Async engine and session lifecycle.

Production runs against PostgreSQL with a connection pool sized from
``settings.db``. Tests hand in a ``sqlite+aiosqlite`` URL, which gets a
``NullPool`` because SQLite connections cannot be shared across tasks.
"""

from contextlib import asynccontextmanager
from typing import Any, AsyncGenerator, Dict, Optional
from sqlalchemy.ext.asyncio import (
    create_async_engine,
    AsyncEngine,
    AsyncSession,
    async_sessionmaker
)
from sqlalchemy.pool import NullPool
import logging

from ..config import settings
from .models import Base

logger = logging.getLogger(__name__)


def engine_options(url: str) -> Dict[str, Any]:
    if url.startswith("sqlite"):
        return {"poolclass": NullPool}
    return {
        "pool_size": settings.db.pool_size,
        "max_overflow": settings.db.max_overflow,
        "pool_timeout": settings.db.pool_timeout,
        "pool_recycle": settings.db.pool_recycle,
        "pool_pre_ping": True,
    }


class Database:
    """
    Owns one engine for the lifetime of a pipeline run.

        database = Database()
        await database.initialize()
        async with database.session() as session:
            ...
        await database.close()
    """

    def __init__(self, url: Optional[str] = None):
        self.url = url
        self.engine: AsyncEngine | None = None
        self.session_factory: async_sessionmaker[AsyncSession] | None = None

    @property
    def initialized(self) -> bool:
        return self.session_factory is not None

    def _require(self) -> async_sessionmaker[AsyncSession]:
        if self.session_factory is None:
            raise RuntimeError("Database not initialized. Call initialize() first.")
        return self.session_factory

    async def initialize(self) -> None:
        if self.initialized:
            return

        url = self.url or settings.db.connection_string
        logger.info("Connecting to %s database", url.split(":", 1)[0])
        self.engine = create_async_engine(url, echo=settings.db.echo, **engine_options(url))
        self.session_factory = async_sessionmaker(
            self.engine,
            class_=AsyncSession,
            expire_on_commit=False,
            autoflush=False,
        )

    @asynccontextmanager
    async def session(self) -> AsyncGenerator[AsyncSession, None]:
        """A unit of work: committed when the block exits, rolled back if it raises."""
        factory = self._require()
        async with factory() as session:
            try:
                yield session
            except Exception as exc:
                logger.error("Rolling back session after %s: %s", type(exc).__name__, exc)
                await session.rollback()
                raise
            if session.in_transaction():
                await session.commit()

    async def create_tables(self) -> None:
        self._require()
        async with self.engine.begin() as conn:
            await conn.run_sync(Base.metadata.create_all)
        logger.info("Tables created")

    async def close(self) -> None:
        if self.engine is not None:
            await self.engine.dispose()
        self.engine = None
        self.session_factory = None
