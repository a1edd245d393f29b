"""
Database connection manager.

One connection (engine + session factory) is shared by the whole process. It
is created lazily on first use and guarded by an asyncio.Lock so concurrent
first requests resolve to a single initialization. There is no explicit
teardown outside of tests and application shutdown.

Usage:
    from storefront.core.db import db_connect

    session_factory = await db_connect()
    async with session_factory() as session:
        ...
"""

import asyncio
import logging
from typing import Optional

from sqlalchemy.ext.asyncio import (
    AsyncEngine,
    AsyncSession,
    async_sessionmaker,
    create_async_engine,
)
from sqlalchemy.orm import DeclarativeBase

from .config import get_settings

logger = logging.getLogger(__name__)


class Base(DeclarativeBase):
    pass


class DatabaseConnection:
    """Lazily-connected engine and session factory for one database URL."""

    def __init__(self, database_url: str, auto_create: bool = False):
        self.database_url = database_url
        self.auto_create = auto_create
        self.engine: Optional[AsyncEngine] = None
        self._session_factory: Optional[async_sessionmaker[AsyncSession]] = None
        self._lock = asyncio.Lock()

    @property
    def is_connected(self) -> bool:
        return self._session_factory is not None

    def _engine_options(self) -> dict:
        if self.database_url.startswith("sqlite"):
            return {}
        return {
            "pool_pre_ping": True,  # Verify connections before using them
            "pool_recycle": 3600,  # Recycle connections after 1 hour
            "pool_size": 10,
            "max_overflow": 20,
        }

    async def connect(self) -> async_sessionmaker[AsyncSession]:
        """Connect on first call; later calls return the same session factory."""
        if self._session_factory is not None:
            return self._session_factory

        async with self._lock:
            if self._session_factory is not None:
                return self._session_factory

            engine = create_async_engine(self.database_url, echo=False, **self._engine_options())
            if self.auto_create:
                # Models must be registered on Base.metadata before create_all
                from .. import models  # noqa: F401

                async with engine.begin() as conn:
                    await conn.run_sync(Base.metadata.create_all)

            self.engine = engine
            self._session_factory = async_sessionmaker(
                engine, expire_on_commit=False, class_=AsyncSession
            )
            logger.info("Database connection established")
            return self._session_factory

    async def dispose(self) -> None:
        async with self._lock:
            if self.engine is not None:
                await self.engine.dispose()
            self.engine = None
            self._session_factory = None


_connection: Optional[DatabaseConnection] = None


def get_connection() -> DatabaseConnection:
    """Return the process-wide connection, building it from settings on first use."""
    global _connection
    if _connection is None:
        settings = get_settings()
        _connection = DatabaseConnection(settings.database_url, auto_create=settings.db_auto_create)
    return _connection


def set_connection(connection: Optional[DatabaseConnection]) -> None:
    """Replace the process-wide connection (application startup and tests)."""
    global _connection
    _connection = connection


async def db_connect() -> async_sessionmaker[AsyncSession]:
    return await get_connection().connect()

