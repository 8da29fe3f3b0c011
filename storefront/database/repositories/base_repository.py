# ==============================================================================
# BASE REPOSITORY - Session-Bound Data Access
# ==============================================================================
# Repository Pattern implementation over a shared AsyncSession
# ==============================================================================

from __future__ import annotations

from abc import ABC, abstractmethod
from typing import Any, Generic, List, Optional, Sequence, Type, TypeVar

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from storefront.domain_models.base import SQLBase

# Type variables for generic repository
ModelType = TypeVar("ModelType", bound=SQLBase)
EntityType = TypeVar("EntityType")


class BaseRepository(ABC, Generic[ModelType, EntityType]):
    """
    Abstract base repository over one SQLAlchemy model.

    Repositories never commit: they share the session of the unit of
    work that created them, so every write they make lands in the same
    transaction.

    Generic Parameters:
        ModelType: SQLAlchemy model class
        EntityType: Domain entity returned to callers

    Attributes:
        _session: Session owned by the enclosing unit of work
        model: Mapped model class

    Example:
        >>> class ProductRepository(BaseRepository[Product, Product]):
        ...     model = Product
        ...     def _to_entity(self, row):
        ...         return row
    """

    model: Type[ModelType]

    def __init__(self, session: AsyncSession) -> None:
        self._session = session

    @property
    def session(self) -> AsyncSession:
        return self._session

    @abstractmethod
    def _to_entity(self, row: ModelType) -> EntityType:
        """Convert a mapped row to the domain entity."""

    def _to_entities(self, rows: Sequence[ModelType]) -> List[EntityType]:
        return [self._to_entity(row) for row in rows]

    # ==========================================================================
    # COMMON READS
    # ==========================================================================

    async def _get_row(self, id: Any) -> Optional[ModelType]:
        return await self._session.get(self.model, id)

    async def get_by_id(self, id: Any) -> Optional[EntityType]:
        """Retrieve entity by primary key."""
        row = await self._get_row(id)
        return self._to_entity(row) if row is not None else None

    async def exists(self, id: Any) -> bool:
        """Check whether a row with this primary key exists."""
        result = await self._session.execute(
            select(self.model.id).where(self.model.id == id)
        )
        return result.scalar_one_or_none() is not None
