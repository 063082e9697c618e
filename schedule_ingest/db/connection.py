"""
Database Connection Management
==============================

One async engine (SQLAlchemy AsyncIO + asyncpg) per process, created by
``init_database`` at worker startup and disposed by ``close_database``.
Repositories take the session factory from ``get_session_factory``.
"""

import time

from sqlalchemy import text
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import (
    AsyncEngine,
    AsyncSession,
    async_sessionmaker,
    create_async_engine,
)

from schedule_ingest.config.settings import Settings, get_settings
from schedule_ingest.utils.errors import StorageError
from schedule_ingest.utils.logger import get_logger

logger = get_logger(__name__)


class DatabaseManager:
    """
    Engine and session factory built from settings.

    Sessions are short-lived: repositories open one per call and commit
    or roll back before returning.
    """

    def __init__(self, settings: Settings | None = None) -> None:
        settings = settings or get_settings()

        self.engine: AsyncEngine = create_async_engine(
            settings.database_url,
            pool_size=settings.db_pool_min,
            max_overflow=max(settings.db_pool_max - settings.db_pool_min, 0),
            pool_recycle=3600,
            pool_pre_ping=True,
        )
        self.session_factory: async_sessionmaker[AsyncSession] = async_sessionmaker(
            self.engine,
            expire_on_commit=False,
            autoflush=False,
        )

    async def ping(self) -> float:
        """
        Round-trip a trivial query.

        Returns:
            Latency in milliseconds

        Raises:
            StorageError: If the database cannot be reached
        """
        start = time.perf_counter()
        try:
            async with self.engine.connect() as conn:
                await conn.execute(text("SELECT 1"))
        except (SQLAlchemyError, OSError) as e:
            raise StorageError(
                message="Database is unreachable",
                details={"error": str(e)},
            ) from e
        return round((time.perf_counter() - start) * 1000, 2)

    async def dispose(self) -> None:
        await self.engine.dispose()


_manager: DatabaseManager | None = None


async def init_database(settings: Settings | None = None) -> DatabaseManager:
    """
    Create the process-wide manager and check connectivity.

    Calling it again returns the existing manager.

    Raises:
        StorageError: If the engine cannot be created or the database is unreachable
    """
    global _manager

    if _manager is not None:
        return _manager

    settings = settings or get_settings()
    logger.info(
        "Initializing database connection pool",
        pool_min=settings.db_pool_min,
        pool_max=settings.db_pool_max,
    )

    try:
        manager = DatabaseManager(settings)
    except SQLAlchemyError as e:
        logger.error("Failed to create database engine", error=str(e))
        raise StorageError(
            message="Database initialization failed",
            details={"error": str(e)},
        ) from e

    try:
        latency_ms = await manager.ping()
    except StorageError:
        await manager.dispose()
        raise

    _manager = manager
    logger.info("Database connection pool ready", latency_ms=latency_ms)
    return manager


def get_session_factory() -> async_sessionmaker[AsyncSession]:
    """
    Raises:
        StorageError: If init_database has not run
    """
    if _manager is None:
        raise StorageError(
            message="Database not initialized",
            details={"hint": "Call init_database() first"},
        )
    return _manager.session_factory


async def close_database() -> None:
    """Dispose of the engine. Safe to call when not initialized."""
    global _manager

    if _manager is None:
        return

    logger.info("Closing database connection pool")
    await _manager.dispose()
    _manager = None
