# ==============================================================================
# LIFECYCLE PORTS - Collaborator Contracts
# ==============================================================================
# Abstract interfaces the order engine depends on
# SQL implementations live in storefront.database, notifiers in services
# ==============================================================================

from __future__ import annotations

from abc import ABC, abstractmethod
from datetime import datetime
from typing import Any, List, Optional, Type

from storefront.lifecycle.snapshot import NotificationKind, OrderSnapshot


class Inventory(ABC):
    """
    Stock levels of catalog products.

    ``decrement_stock`` must be atomic: a decrement that would take stock
    below zero is refused, and two concurrent callers can never both
    succeed against the same last unit.
    """

    @abstractmethod
    async def get_stock(self, product_id: str) -> Optional[int]:
        """Current stock, or None when the product does not exist."""

    @abstractmethod
    async def decrement_stock(self, product_id: str, quantity: int) -> bool:
        """Decrement by ``quantity`` if enough stock remains; report success."""


class Notifier(ABC):
    """Delivery channel for order notifications."""

    @abstractmethod
    async def send(
        self,
        kind: NotificationKind,
        order: OrderSnapshot,
        recipient: str,
    ) -> None:
        """
        Deliver one notification.

        Raises:
            NotificationError: Delivery failed
        """

    async def close(self) -> None:
        """Release transport resources."""


class OrderRepository(ABC):
    """Persistence for order snapshots."""

    @abstractmethod
    async def add(self, order: OrderSnapshot) -> OrderSnapshot:
        """Insert a new order."""

    @abstractmethod
    async def get(self, order_id: str) -> Optional[OrderSnapshot]:
        """Fetch one order by id."""

    @abstractmethod
    async def get_by_token(self, token: str) -> Optional[OrderSnapshot]:
        """Fetch the order bound to a confirmation token."""

    @abstractmethod
    async def save(self, order: OrderSnapshot) -> OrderSnapshot:
        """
        Persist a changed order.

        The write succeeds only if the stored version still equals
        ``order.version``; the returned snapshot carries the new version.

        Raises:
            ConcurrentUpdateError: The stored version moved on
            OrderNotFoundError: The order does not exist
        """

    @abstractmethod
    async def list_by_owner(self, owner_id: str) -> List[OrderSnapshot]:
        """Orders of one account, newest first."""

    @abstractmethod
    async def list_all(self) -> List[OrderSnapshot]:
        """Every order, newest first."""

    @abstractmethod
    async def list_expirable(
        self,
        created_before: datetime,
        limit: int,
    ) -> List[OrderSnapshot]:
        """Unconfirmed Pending orders created before the cutoff."""

    @abstractmethod
    async def has_delivered_product(self, owner_id: str, product_id: str) -> bool:
        """Whether the account has a Delivered order containing the product."""


class ReviewLedger(ABC):
    """Read-only view of the catalog's reviews."""

    @abstractmethod
    async def product_exists(self, product_id: str) -> bool:
        """Whether the product is in the catalog."""

    @abstractmethod
    async def has_reviewed(self, account_id: str, product_id: str) -> bool:
        """Whether the account already reviewed the product."""


class AbstractUnitOfWork(ABC):
    """
    Transaction boundary shared by orders, inventory and reviews.

    Usage:
        >>> async with uow_factory() as uow:
        ...     order = await uow.orders.get(order_id)
        ...     await uow.commit()

    Leaving the block with an exception rolls back anything not yet
    committed; leaving it normally commits.
    """

    orders: OrderRepository
    inventory: Inventory
    reviews: ReviewLedger

    async def __aenter__(self) -> "AbstractUnitOfWork":
        return self

    async def __aexit__(
        self,
        exc_type: Optional[Type[BaseException]],
        exc_val: Optional[BaseException],
        exc_tb: Any,
    ) -> None:
        if exc_type:
            await self.rollback()
        else:
            await self.commit()

    @abstractmethod
    async def commit(self) -> None:
        """Commit the transaction."""

    @abstractmethod
    async def rollback(self) -> None:
        """Rollback the transaction."""
