# ==============================================================================
# BASE DATABASE ADAPTER - Abstract Interface
# ==============================================================================
# Defines the contract for all database adapters
# Ensures a consistent lifecycle across SQLite and PostgreSQL
# ==============================================================================

from __future__ import annotations

from abc import ABC, abstractmethod
from contextlib import asynccontextmanager
from typing import Any, AsyncIterator


class BaseDatabaseAdapter(ABC):
    """
    Abstract Base Class for Database Adapters.

    An adapter owns the engine and connection pool of one backend and
    hands out sessions. Repositories and the unit of work sit on top of
    those sessions; adapters themselves know nothing about orders.

    Example:
        >>> adapter = SQLAlchemyAdapter("sqlite+aiosqlite:///./storefront.db")
        >>> await adapter.connect()
        >>> async with adapter.session() as session:
        ...     ...
        >>> await adapter.disconnect()
    """

    # ==========================================================================
    # LIFECYCLE METHODS
    # ==========================================================================

    @abstractmethod
    async def connect(self) -> None:
        """
        Establish database connection.

        Initializes the engine and connection pool and makes sure the
        schema exists.

        Raises:
            DatabaseError: If connection fails
        """

    @abstractmethod
    async def disconnect(self) -> None:
        """Close all connections and release resources."""

    @abstractmethod
    async def health_check(self) -> bool:
        """
        Verify database connectivity.

        Returns:
            True if the database answers a trivial query
        """

    # ==========================================================================
    # SESSION MANAGEMENT
    # ==========================================================================

    @abstractmethod
    def session_factory(self) -> Any:
        """Return a callable producing new, unopened sessions."""

    @abstractmethod
    @asynccontextmanager
    async def session(self) -> AsyncIterator[Any]:
        """
        Provide a transactional session scope.

        Commits on successful exit, rolls back on exception.
        """
        yield
