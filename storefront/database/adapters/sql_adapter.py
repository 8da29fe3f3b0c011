# ==============================================================================
# SQL ADAPTER - SQLAlchemy Async (aiosqlite / asyncpg)
# ==============================================================================
# One adapter for both relational backends
# SQLite for development and tests, PostgreSQL for production
# ==============================================================================

from __future__ import annotations

import logging
from contextlib import asynccontextmanager
from typing import Any, AsyncIterator, Dict, Optional

from sqlalchemy import event, text
from sqlalchemy.ext.asyncio import (
    AsyncEngine,
    AsyncSession,
    async_sessionmaker,
    create_async_engine,
)

from storefront.core.exceptions import DatabaseError
from storefront.core.settings import settings
from storefront.database.adapters.base_adapter import BaseDatabaseAdapter

logger = logging.getLogger(__name__)


class SQLAlchemyAdapter(BaseDatabaseAdapter):
    """
    Relational database adapter using SQLAlchemy async.

    The dialect is read from the URL. SQLite gets a busy timeout and
    enforced foreign keys; PostgreSQL gets a sized, pre-pinged pool.

    Features:
        - Async sessions (aiosqlite or asyncpg)
        - Automatic table creation on connect
        - ``expire_on_commit=False`` so loaded rows stay readable after commit

    Attributes:
        _database_url: Async connection string
        _engine: SQLAlchemy async engine
        _session_factory: Session factory for creating sessions

    Example:
        >>> adapter = SQLAlchemyAdapter("sqlite+aiosqlite:///./storefront.db")
        >>> await adapter.connect()  # Creates tables automatically
        >>> async with adapter.session() as session:
        ...     await session.execute(text("SELECT 1"))
    """

    def __init__(
        self,
        database_url: Optional[str] = None,
        create_tables: bool = True,
        **engine_options: Any,
    ) -> None:
        """
        Initialize SQL adapter.

        Args:
            database_url: Connection URL (defaults to settings.database_url)
            create_tables: Run ``create_all`` on connect
            **engine_options: Overrides for the engine defaults
        """
        url = database_url or settings.database_url
        # Ensure async driver is used
        if url.startswith("sqlite://"):
            url = url.replace("sqlite://", "sqlite+aiosqlite://", 1)
        elif url.startswith("postgresql://"):
            url = url.replace("postgresql://", "postgresql+asyncpg://", 1)

        self._database_url = url
        self._create_tables = create_tables
        self._engine_options = engine_options
        self._engine: Optional[AsyncEngine] = None
        self._session_factory: Optional[async_sessionmaker[AsyncSession]] = None

    @property
    def is_sqlite(self) -> bool:
        return self._database_url.startswith("sqlite")

    @property
    def engine(self) -> AsyncEngine:
        if self._engine is None:
            raise RuntimeError("Database not connected. Call connect() first.")
        return self._engine

    def _default_options(self) -> Dict[str, Any]:
        if self.is_sqlite:
            return {
                "echo": settings.DEBUG,
                "connect_args": {"check_same_thread": False, "timeout": 30},
            }
        return {
            "echo": settings.DEBUG,
            "pool_size": settings.DB_POOL_SIZE,
            "max_overflow": settings.DB_MAX_OVERFLOW,
            "pool_recycle": settings.DB_POOL_RECYCLE,
            "pool_pre_ping": True,
        }

    # ==========================================================================
    # LIFECYCLE METHODS
    # ==========================================================================

    async def connect(self) -> None:
        """
        Initialize database engine and create tables.

        Raises:
            DatabaseError: If the engine cannot be created or reached
        """
        options = self._default_options()
        options.update(self._engine_options)

        try:
            self._engine = create_async_engine(self._database_url, **options)

            if self.is_sqlite:
                event.listen(
                    self._engine.sync_engine, "connect", _enable_sqlite_foreign_keys
                )

            self._session_factory = async_sessionmaker(
                bind=self._engine,
                class_=AsyncSession,
                expire_on_commit=False,
                autoflush=False,
            )

            if self._create_tables:
                # Import registers every table on SQLBase.metadata
                import storefront.domain_models  # noqa: F401
                from storefront.domain_models.base import SQLBase

                async with self._engine.begin() as conn:
                    await conn.run_sync(SQLBase.metadata.create_all)

            logger.info(
                "SQL adapter connected (%s)",
                "sqlite" if self.is_sqlite else "postgresql",
            )

        except Exception as e:
            logger.error(f"Failed to connect to database: {e}")
            raise DatabaseError(f"Database connection failed: {e}")

    async def disconnect(self) -> None:
        """Close database connections and dispose engine."""
        if self._engine:
            await self._engine.dispose()
            self._engine = None
            self._session_factory = None
            logger.info("SQL adapter disconnected")

    async def health_check(self) -> bool:
        """
        Verify database connectivity.

        Returns:
            True if connection is healthy
        """
        try:
            async with self.session() as session:
                await session.execute(text("SELECT 1"))
            return True
        except Exception as e:
            logger.warning(f"Database health check failed: {e}")
            return False

    # ==========================================================================
    # SESSION MANAGEMENT
    # ==========================================================================

    def session_factory(self) -> async_sessionmaker[AsyncSession]:
        if not self._session_factory:
            raise RuntimeError("Database not connected. Call connect() first.")
        return self._session_factory

    @asynccontextmanager
    async def session(self) -> AsyncIterator[AsyncSession]:
        """
        Provide transactional session scope.

        Commits on successful exit, rolls back on exception.

        Yields:
            AsyncSession instance

        Raises:
            RuntimeError: If database not connected
        """
        session: AsyncSession = self.session_factory()()
        try:
            yield session
            await session.commit()
        except Exception:
            await session.rollback()
            raise
        finally:
            await session.close()


def _enable_sqlite_foreign_keys(dbapi_connection: Any, connection_record: Any) -> None:
    cursor = dbapi_connection.cursor()
    cursor.execute("PRAGMA foreign_keys=ON")
    cursor.close()
