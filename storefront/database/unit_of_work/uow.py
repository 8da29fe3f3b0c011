# ==============================================================================
# UNIT OF WORK - Transaction Coordination
# ==============================================================================
# One AsyncSession shared by the order, inventory and review repositories
# Stock decrements and order writes commit or roll back together
# ==============================================================================

from __future__ import annotations

import logging
from typing import Any, Callable, Optional, Type

from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from storefront.database.adapters.base_adapter import BaseDatabaseAdapter
from storefront.database.factory import DatabaseFactory
from storefront.database.repositories.order_repository import SQLOrderRepository
from storefront.database.repositories.product_repository import SQLInventory
from storefront.database.repositories.review_repository import SQLReviewLedger
from storefront.lifecycle.ports import AbstractUnitOfWork

logger = logging.getLogger(__name__)


class SQLUnitOfWork(AbstractUnitOfWork):
    """
    Concrete Unit of Work over a SQLAlchemy session.

    Features:
        - Repositories bound to one session on enter
        - Commit on successful exit, rollback on exception
        - Explicit ``commit()`` for callers that must commit before raising

    Attributes:
        orders: Order repository
        inventory: Stock levels
        reviews: Review lookups

    Example:
        >>> async with SQLUnitOfWork(adapter) as uow:
        ...     order = await uow.orders.get(order_id)
        ...     await uow.inventory.decrement_stock(product_id, 1)
        ...     # Commits automatically on successful exit
    """

    orders: SQLOrderRepository
    inventory: SQLInventory
    reviews: SQLReviewLedger

    def __init__(self, adapter: Optional[BaseDatabaseAdapter] = None) -> None:
        """
        Initialize Unit of Work.

        Args:
            adapter: Database adapter (defaults to the factory adapter)
        """
        self._adapter = adapter
        self._session: Optional[AsyncSession] = None

    @property
    def adapter(self) -> BaseDatabaseAdapter:
        """Get database adapter, resolving from the factory if needed."""
        if self._adapter is None:
            self._adapter = DatabaseFactory.get_adapter()
        return self._adapter

    @property
    def session(self) -> AsyncSession:
        if self._session is None:
            raise RuntimeError("Unit of work is not active")
        return self._session

    @property
    def is_active(self) -> bool:
        return self._session is not None

    # ==========================================================================
    # CONTEXT MANAGEMENT
    # ==========================================================================

    async def __aenter__(self) -> "SQLUnitOfWork":
        session_factory: async_sessionmaker[AsyncSession] = self.adapter.session_factory()
        self._session = session_factory()
        self.orders = SQLOrderRepository(self._session)
        self.inventory = SQLInventory(self._session)
        self.reviews = SQLReviewLedger(self._session)
        return self

    async def __aexit__(
        self,
        exc_type: Optional[Type[BaseException]],
        exc_val: Optional[BaseException],
        exc_tb: Any,
    ) -> None:
        try:
            await super().__aexit__(exc_type, exc_val, exc_tb)
        finally:
            if self._session is not None:
                await self._session.close()
            self._session = None

    async def commit(self) -> None:
        await self.session.commit()

    async def rollback(self) -> None:
        await self.session.rollback()

    # ==========================================================================
    # FACTORY
    # ==========================================================================

    @classmethod
    def factory(
        cls,
        adapter: Optional[BaseDatabaseAdapter] = None,
    ) -> Callable[[], "SQLUnitOfWork"]:
        """
        Callable producing a fresh unit of work per operation.

        Example:
            >>> engine = OrderLifecycleEngine(SQLUnitOfWork.factory(adapter), notifier)
        """

        def _create() -> "SQLUnitOfWork":
            return cls(adapter)

        return _create
