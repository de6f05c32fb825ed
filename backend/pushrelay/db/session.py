"""
Database session management.

WHAT: The ``Database`` store handle owns the async engine and session
factory for the process.

HOW: It is constructed explicitly at application startup, attached to
``app.state`` and disposed on shutdown. Request handlers get a session
through the ``get_db`` dependency; the periodic sweep opens its own
sessions from ``Database.session_factory``.
"""

import logging
from contextlib import asynccontextmanager
from typing import AsyncGenerator, AsyncIterator, Optional

from fastapi import Request
from sqlalchemy.ext.asyncio import (
    AsyncEngine,
    AsyncSession,
    async_sessionmaker,
    create_async_engine,
)

from pushrelay.core.exceptions import DatabaseError
from pushrelay.models.base import Base

logger = logging.getLogger(__name__)


class Database:
    """
    Store handle with an explicit connect/dispose lifecycle.

    Example:
        database = Database(settings.async_database_url)
        await database.connect()
        async with database.session() as session:
            ...
        await database.dispose()
    """

    def __init__(self, url: str, echo: bool = False):
        """
        Args:
            url: Async SQLAlchemy URL (postgresql+asyncpg:// or sqlite+aiosqlite://)
            echo: Log emitted SQL
        """
        self.url = url
        self.echo = echo
        self._engine: Optional[AsyncEngine] = None
        self._session_factory: Optional[async_sessionmaker[AsyncSession]] = None

    @property
    def is_connected(self) -> bool:
        return self._engine is not None

    @property
    def engine(self) -> AsyncEngine:
        if self._engine is None:
            raise DatabaseError("Database not connected. Call connect() first.")
        return self._engine

    @property
    def session_factory(self) -> async_sessionmaker[AsyncSession]:
        if self._session_factory is None:
            raise DatabaseError("Database not connected. Call connect() first.")
        return self._session_factory

    async def connect(self) -> None:
        """
        Create the engine and session factory.

        HOW: pool_pre_ping recycles stale connections. Pool sizing applies
        to server databases only; SQLite picks its own pool class.
        """
        if self._engine is not None:
            return

        engine_kwargs = {"echo": self.echo, "pool_pre_ping": True}
        if not self.url.startswith("sqlite"):
            engine_kwargs.update(pool_size=10, max_overflow=20)

        self._engine = create_async_engine(self.url, **engine_kwargs)

        # expire_on_commit=False keeps loaded rows usable after commit
        self._session_factory = async_sessionmaker(
            self._engine,
            class_=AsyncSession,
            expire_on_commit=False,
            autoflush=False,
        )
        logger.info(f"Connected to database: {self._engine.url.render_as_string(hide_password=True)}")

    async def create_schema(self) -> None:
        """Create all tables that do not exist yet."""
        async with self.engine.begin() as conn:
            await conn.run_sync(Base.metadata.create_all)

    @asynccontextmanager
    async def session(self) -> AsyncIterator[AsyncSession]:
        """Open a session that is closed on exit (no implicit commit)."""
        async with self.session_factory() as session:
            yield session

    async def dispose(self) -> None:
        """Close all pooled connections."""
        if self._engine is None:
            return
        await self._engine.dispose()
        self._engine = None
        self._session_factory = None
        logger.info("Database connection closed")


async def get_db(request: Request) -> AsyncGenerator[AsyncSession, None]:
    """
    Dependency to get database session.

    WHAT: Each request gets its own session from the application's
    ``Database``; the transaction commits when the handler returns and
    rolls back if it raises.

    Yields:
        AsyncSession: Database session for the request
    """
    database: Database = request.app.state.database
    async with database.session() as session:
        try:
            yield session
            await session.commit()
        except Exception:
            await session.rollback()
            raise
