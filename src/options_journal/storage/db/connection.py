"""SQLAlchemy async engine and session management.

:class:`Database` owns one engine and its session factory.  The
application creates it at startup and hands it to whoever needs a
session; there is no module-level engine.
"""

from __future__ import annotations

import logging
from contextlib import asynccontextmanager
from typing import AsyncIterator

from sqlalchemy.engine import make_url
from sqlalchemy.ext.asyncio import (
    AsyncEngine,
    AsyncSession,
    async_sessionmaker,
    create_async_engine,
)
from sqlalchemy.pool import NullPool

from options_journal.core.config import DatabaseConfig

from .models import Base

logger = logging.getLogger(__name__)


def create_engine(config: DatabaseConfig) -> AsyncEngine:
    """Build the async engine described by ``config``.

    SQLite URLs (``sqlite+aiosqlite:///journal.db``) get the driver's
    default pool; server databases (``postgresql+asyncpg://...``) get a
    sized queue pool.  ``use_null_pool`` disables pooling for short-lived
    processes such as CLI commands and tests.
    """
    options: dict = {"echo": config.echo}
    if config.use_null_pool:
        options["poolclass"] = NullPool
    elif make_url(config.url).get_backend_name() != "sqlite":
        options["pool_size"] = config.pool_size
        options["max_overflow"] = config.max_overflow
        options["pool_recycle"] = 1800

    engine = create_async_engine(config.url, **options)
    logger.info("Created async engine for %s", config.url.split("@")[-1])
    return engine


class Database:
    """Engine plus session factory for one database."""

    def __init__(self, engine: AsyncEngine) -> None:
        self.engine = engine
        self._session_factory = async_sessionmaker(
            bind=engine,
            class_=AsyncSession,
            expire_on_commit=False,
        )

    @classmethod
    def from_config(cls, config: DatabaseConfig) -> Database:
        return cls(create_engine(config))

    async def create_all(self) -> None:
        """Create all tables defined in the ORM metadata (if missing)."""
        async with self.engine.begin() as conn:
            await conn.run_sync(Base.metadata.create_all)
        logger.info("Database tables created / verified.")

    async def dispose(self) -> None:
        """Release all pooled connections."""
        await self.engine.dispose()
        logger.info("Engine disposed.")

    @asynccontextmanager
    async def session(self) -> AsyncIterator[AsyncSession]:
        """Yield an async session scoped to the caller's block.

        Usage::

            async with db.session() as session:
                trades = await TradeRepo(session).list_for_user(user_id)

        The session is committed on successful exit and rolled back on
        exception.  It is always closed afterwards.
        """
        session = self._session_factory()
        try:
            yield session
            await session.commit()
        except Exception:
            await session.rollback()
            raise
        finally:
            await session.close()
