# ==============================================================================
# DATABASE FACTORY - Adapter Instantiation & Lifecycle Management
# ==============================================================================
# Factory Pattern for creating and managing database adapters
# Singleton caching for efficient resource utilization
# ==============================================================================

from __future__ import annotations

import logging
from typing import Dict, Optional

from storefront.core.exceptions import DatabaseError
from storefront.core.settings import DatabaseType, settings
from storefront.database.adapters.base_adapter import BaseDatabaseAdapter
from storefront.database.adapters.sql_adapter import SQLAlchemyAdapter

logger = logging.getLogger(__name__)


class DatabaseFactory:
    """
    Factory class for creating and managing database adapters.

    Keeps one adapter per database type for the lifetime of the process.

    Class Attributes:
        _instances: Cache of adapter instances

    Example:
        >>> # Initialize at application startup
        >>> adapter = await DatabaseFactory.initialize()
        >>>
        >>> # Anywhere afterwards
        >>> adapter = DatabaseFactory.get_adapter()
        >>>
        >>> # Shutdown at application exit
        >>> await DatabaseFactory.shutdown()
    """

    _instances: Dict[DatabaseType, BaseDatabaseAdapter] = {}

    @classmethod
    def create_adapter(
        cls,
        db_type: Optional[DatabaseType] = None,
        database_url: Optional[str] = None,
    ) -> BaseDatabaseAdapter:
        """
        Create and return the adapter for ``db_type``.

        Returns the cached instance if available.

        Args:
            db_type: Database type (defaults to settings.DATABASE_TYPE)
            database_url: Custom connection URL

        Raises:
            ValueError: If database type is not supported
        """
        db_type = db_type or settings.DATABASE_TYPE

        if db_type in cls._instances:
            return cls._instances[db_type]

        if db_type == DatabaseType.SQLITE:
            adapter = SQLAlchemyAdapter(database_url or settings.sqlite_async_url)
        elif db_type == DatabaseType.POSTGRESQL:
            adapter = SQLAlchemyAdapter(database_url or settings.postgres_url)
        else:
            raise ValueError(f"Unsupported database type: {db_type}")

        logger.info(f"Created {db_type.value} adapter")
        cls._instances[db_type] = adapter
        return adapter

    @classmethod
    async def initialize(
        cls,
        db_type: Optional[DatabaseType] = None,
        database_url: Optional[str] = None,
    ) -> BaseDatabaseAdapter:
        """
        Create the adapter and connect it.

        Should be called at application startup.

        Raises:
            DatabaseError: If connection fails
        """
        adapter = cls.create_adapter(db_type, database_url)

        try:
            await adapter.connect()
        except DatabaseError:
            raise
        except Exception as e:
            logger.error(f"Database initialization failed: {e}")
            raise DatabaseError(f"Failed to initialize database: {e}")

        logger.info(f"Database initialized: {(db_type or settings.DATABASE_TYPE).value}")
        return adapter

    @classmethod
    async def shutdown(cls) -> None:
        """
        Close all database connections.

        Releases all resources and clears adapter cache.
        """
        for db_type, adapter in cls._instances.items():
            try:
                await adapter.disconnect()
                logger.info(f"Disconnected: {db_type.value}")
            except Exception as e:
                logger.error(f"Error disconnecting {db_type.value}: {e}")

        cls._instances.clear()
        logger.info("All database connections closed")

    @classmethod
    def get_adapter(
        cls,
        db_type: Optional[DatabaseType] = None,
    ) -> BaseDatabaseAdapter:
        """
        Get existing adapter instance.

        Raises:
            RuntimeError: If adapter not initialized
        """
        db_type = db_type or settings.DATABASE_TYPE

        if db_type not in cls._instances:
            raise RuntimeError(
                f"Database adapter for {db_type.value} not initialized. "
                f"Call DatabaseFactory.initialize() first."
            )

        return cls._instances[db_type]

    @classmethod
    def is_initialized(cls, db_type: Optional[DatabaseType] = None) -> bool:
        db_type = db_type or settings.DATABASE_TYPE
        return db_type in cls._instances

    @classmethod
    async def health_check(cls, db_type: Optional[DatabaseType] = None) -> bool:
        """
        Check database health.

        Returns:
            True if database is healthy, False if unreachable or not initialized
        """
        if not cls.is_initialized(db_type):
            return False
        return await cls.get_adapter(db_type).health_check()

    @classmethod
    def reset(cls) -> None:
        """
        Reset factory state.

        Clears adapter cache without disconnecting.
        Primarily for testing purposes.
        """
        cls._instances.clear()
