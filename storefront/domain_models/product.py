# ==============================================================================
# PRODUCT MODEL - Catalog & Stock
# ==============================================================================
# Product entity; ``stock`` is the quantity the order engine reconciles
# ==============================================================================

from __future__ import annotations

from decimal import Decimal
from typing import TYPE_CHECKING, List, Optional

from sqlalchemy import Boolean, CheckConstraint, Integer, Numeric, String, Text
from sqlalchemy.orm import Mapped, mapped_column, relationship

from storefront.core.constants import DatabaseConstants
from storefront.domain_models.base import SQLBase, TimestampMixin

if TYPE_CHECKING:
    from storefront.domain_models.review import Review


class Product(SQLBase, TimestampMixin):
    """
    Product available for purchase.

    Attributes:
        name: Display name, copied onto order lines at placement
        description: Long description
        price: Current unit price
        category: Catalog category
        image: Primary image URL
        stock: Units on hand; never negative
        featured: Shown on the landing page

    Relationships:
        reviews: Customer reviews of this product
    """

    __tablename__ = DatabaseConstants.PRODUCTS_TABLE
    __table_args__ = (
        CheckConstraint("stock >= 0", name="ck_products_stock_non_negative"),
    )

    name: Mapped[str] = mapped_column(
        String(100),
        nullable=False,
        index=True,
    )
    description: Mapped[Optional[str]] = mapped_column(
        Text,
        nullable=True,
    )
    price: Mapped[Decimal] = mapped_column(
        Numeric(precision=18, scale=2),
        nullable=False,
    )
    category: Mapped[Optional[str]] = mapped_column(
        String(100),
        nullable=True,
        index=True,
    )
    image: Mapped[Optional[str]] = mapped_column(
        String(500),
        nullable=True,
    )
    stock: Mapped[int] = mapped_column(
        Integer,
        default=0,
        nullable=False,
    )
    featured: Mapped[bool] = mapped_column(
        Boolean,
        default=False,
        nullable=False,
    )

    reviews: Mapped[List["Review"]] = relationship(
        "Review",
        back_populates="product",
        cascade="all, delete-orphan",
    )

    @property
    def in_stock(self) -> bool:
        return self.stock > 0

    def __repr__(self) -> str:
        return f"<Product(id={self.id}, name={self.name}, stock={self.stock})>"
