# ==============================================================================
# PRODUCT REPOSITORY - Stock Levels
# ==============================================================================

from __future__ import annotations

import logging
from typing import Optional

from sqlalchemy import select, update

from storefront.database.repositories.base_repository import BaseRepository
from storefront.domain_models.product import Product
from storefront.lifecycle.ports import Inventory

logger = logging.getLogger(__name__)


class SQLInventory(BaseRepository[Product, Product], Inventory):
    """
    Inventory backed by ``products.stock``.

    Decrements are a single conditional UPDATE, so the database decides
    atomically whether enough stock remains:

        UPDATE products SET stock = stock - :q WHERE id = :id AND stock >= :q
    """

    model = Product

    def _to_entity(self, row: Product) -> Product:
        return row

    async def add(self, product: Product) -> Product:
        """Insert a catalog product."""
        self._session.add(product)
        await self._session.flush()
        return product

    async def get_stock(self, product_id: str) -> Optional[int]:
        result = await self._session.execute(
            select(Product.stock).where(Product.id == product_id)
        )
        return result.scalar_one_or_none()

    async def decrement_stock(self, product_id: str, quantity: int) -> bool:
        if quantity <= 0:
            raise ValueError("quantity must be positive")

        result = await self._session.execute(
            update(Product)
            .where(Product.id == product_id, Product.stock >= quantity)
            .values(stock=Product.stock - quantity)
            .execution_options(synchronize_session=False)
        )
        if result.rowcount != 1:
            logger.debug(
                "Stock decrement refused for product %s (quantity=%d)",
                product_id,
                quantity,
            )
            return False
        return True
