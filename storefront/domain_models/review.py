# ==============================================================================
# REVIEW MODEL - Product Reviews
# ==============================================================================

from __future__ import annotations

from typing import TYPE_CHECKING, Optional

from sqlalchemy import CheckConstraint, ForeignKey, Integer, String, Text, UniqueConstraint
from sqlalchemy.orm import Mapped, mapped_column, relationship

from storefront.core.constants import DatabaseConstants
from storefront.domain_models.base import SQLBase, TimestampMixin

if TYPE_CHECKING:
    from storefront.domain_models.product import Product


class Review(SQLBase, TimestampMixin):
    """
    One account's review of one product.

    Attributes:
        product_id: Reviewed product
        user_id: Reviewing account (token subject)
        name: Display name of the reviewer
        rating: 1 to 5
        comment: Review text
    """

    __tablename__ = DatabaseConstants.REVIEWS_TABLE
    __table_args__ = (
        UniqueConstraint("product_id", "user_id", name="uq_reviews_product_user"),
        CheckConstraint("rating BETWEEN 1 AND 5", name="ck_reviews_rating_range"),
    )

    product_id: Mapped[str] = mapped_column(
        ForeignKey(f"{DatabaseConstants.PRODUCTS_TABLE}.id", ondelete="CASCADE"),
        index=True,
        nullable=False,
    )
    user_id: Mapped[str] = mapped_column(
        String(64),
        index=True,
        nullable=False,
    )
    name: Mapped[Optional[str]] = mapped_column(
        String(100),
        nullable=True,
    )
    rating: Mapped[int] = mapped_column(
        Integer,
        nullable=False,
    )
    comment: Mapped[str] = mapped_column(
        Text,
        nullable=False,
    )

    product: Mapped["Product"] = relationship(
        "Product",
        back_populates="reviews",
    )

    def __repr__(self) -> str:
        return f"<Review(id={self.id}, product={self.product_id}, rating={self.rating})>"
