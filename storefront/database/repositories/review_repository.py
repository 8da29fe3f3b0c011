# ==============================================================================
# REVIEW REPOSITORY - Review Lookups
# ==============================================================================

from __future__ import annotations

from sqlalchemy import select

from storefront.database.repositories.base_repository import BaseRepository
from storefront.domain_models.product import Product
from storefront.domain_models.review import Review
from storefront.lifecycle.ports import ReviewLedger


class SQLReviewLedger(BaseRepository[Review, Review], ReviewLedger):
    """Reads the ``reviews`` table for review eligibility checks."""

    model = Review

    def _to_entity(self, row: Review) -> Review:
        return row

    async def add(self, review: Review) -> Review:
        self._session.add(review)
        await self._session.flush()
        return review

    async def product_exists(self, product_id: str) -> bool:
        result = await self._session.execute(
            select(Product.id).where(Product.id == product_id)
        )
        return result.scalar_one_or_none() is not None

    async def has_reviewed(self, account_id: str, product_id: str) -> bool:
        result = await self._session.execute(
            select(Review.id)
            .where(Review.product_id == product_id, Review.user_id == account_id)
            .limit(1)
        )
        return result.scalar_one_or_none() is not None
