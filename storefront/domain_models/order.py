# ==============================================================================
# ORDER MODELS - Orders & Line Items
# ==============================================================================
# Persistent form of the order lifecycle state
# ==============================================================================

from __future__ import annotations

from datetime import datetime
from decimal import Decimal
from typing import List, Optional

from sqlalchemy import (
    Boolean,
    CheckConstraint,
    DateTime,
    Enum as SQLEnum,
    ForeignKey,
    Integer,
    Numeric,
    String,
    Text,
)
from sqlalchemy.orm import Mapped, mapped_column, relationship

from storefront.core.constants import DatabaseConstants
from storefront.domain_models.base import SQLBase, TimestampMixin
from storefront.lifecycle.snapshot import OrderStatus


class Order(SQLBase, TimestampMixin):
    """
    Order placed by an account.

    Shipping address, price breakdown and payment result are stored as
    flat columns. ``version`` increments on every save and guards
    against lost updates.

    Attributes:
        owner_id: Account that placed the order (token subject)
        owner_email: Recipient for order notifications
        status: Current lifecycle status
        confirmation_token: Single-use secret; unique while set
        is_paid / paid_at / payment_*: Payment outcome
        is_delivered / delivered_at: Delivery outcome
        tracking_number: Carrier tracking number, set on shipping

    Relationships:
        items: Line items, in checkout order
    """

    __tablename__ = DatabaseConstants.ORDERS_TABLE

    owner_id: Mapped[str] = mapped_column(
        String(64),
        index=True,
        nullable=False,
    )
    owner_email: Mapped[Optional[str]] = mapped_column(
        String(255),
        nullable=True,
    )

    # Shipping
    shipping_address: Mapped[str] = mapped_column(Text, nullable=False)
    shipping_city: Mapped[str] = mapped_column(String(100), nullable=False)
    shipping_postal_code: Mapped[str] = mapped_column(String(20), nullable=False)
    shipping_country: Mapped[str] = mapped_column(String(100), nullable=False)

    payment_method: Mapped[str] = mapped_column(String(50), nullable=False)

    # Pricing
    items_price: Mapped[Decimal] = mapped_column(
        Numeric(precision=18, scale=2),
        default=Decimal("0.00"),
        nullable=False,
    )
    tax_price: Mapped[Decimal] = mapped_column(
        Numeric(precision=18, scale=2),
        default=Decimal("0.00"),
        nullable=False,
    )
    shipping_price: Mapped[Decimal] = mapped_column(
        Numeric(precision=18, scale=2),
        default=Decimal("0.00"),
        nullable=False,
    )
    total_price: Mapped[Decimal] = mapped_column(
        Numeric(precision=18, scale=2),
        default=Decimal("0.00"),
        nullable=False,
    )

    # Lifecycle
    status: Mapped[OrderStatus] = mapped_column(
        SQLEnum(
            OrderStatus,
            name="order_status",
            values_callable=lambda enum_cls: [member.value for member in enum_cls],
        ),
        default=OrderStatus.PENDING,
        index=True,
        nullable=False,
    )
    is_confirmed: Mapped[bool] = mapped_column(Boolean, default=False, nullable=False)
    confirmation_token: Mapped[Optional[str]] = mapped_column(
        String(128),
        unique=True,
        nullable=True,
    )
    confirmed_at: Mapped[Optional[datetime]] = mapped_column(
        DateTime(timezone=True),
        nullable=True,
    )

    # Payment
    is_paid: Mapped[bool] = mapped_column(Boolean, default=False, nullable=False)
    paid_at: Mapped[Optional[datetime]] = mapped_column(
        DateTime(timezone=True),
        nullable=True,
    )
    payment_id: Mapped[Optional[str]] = mapped_column(String(100), nullable=True)
    payment_status: Mapped[Optional[str]] = mapped_column(String(50), nullable=True)
    payment_update_time: Mapped[Optional[str]] = mapped_column(String(50), nullable=True)
    payment_email: Mapped[Optional[str]] = mapped_column(String(255), nullable=True)

    # Delivery
    is_delivered: Mapped[bool] = mapped_column(Boolean, default=False, nullable=False)
    delivered_at: Mapped[Optional[datetime]] = mapped_column(
        DateTime(timezone=True),
        nullable=True,
    )
    tracking_number: Mapped[Optional[str]] = mapped_column(
        String(64),
        index=True,
        nullable=True,
    )

    version: Mapped[int] = mapped_column(Integer, default=0, nullable=False)

    items: Mapped[List["OrderItem"]] = relationship(
        "OrderItem",
        back_populates="order",
        cascade="all, delete-orphan",
        order_by="OrderItem.position",
        lazy="selectin",
    )

    def __repr__(self) -> str:
        return f"<Order(id={self.id}, status={self.status}, version={self.version})>"


class OrderItem(SQLBase):
    """
    Order line.

    Name, unit price and image are captured at checkout and never
    follow later catalog edits.
    """

    __tablename__ = DatabaseConstants.ORDER_ITEMS_TABLE
    __table_args__ = (
        CheckConstraint("quantity > 0", name="ck_order_items_quantity_positive"),
    )

    order_id: Mapped[str] = mapped_column(
        ForeignKey(f"{DatabaseConstants.ORDERS_TABLE}.id", ondelete="CASCADE"),
        index=True,
        nullable=False,
    )
    product_id: Mapped[str] = mapped_column(
        ForeignKey(f"{DatabaseConstants.PRODUCTS_TABLE}.id", ondelete="RESTRICT"),
        index=True,
        nullable=False,
    )
    position: Mapped[int] = mapped_column(Integer, default=0, nullable=False)

    name: Mapped[str] = mapped_column(String(100), nullable=False)
    quantity: Mapped[int] = mapped_column(Integer, nullable=False)
    unit_price: Mapped[Decimal] = mapped_column(
        Numeric(precision=18, scale=2),
        nullable=False,
    )
    image: Mapped[Optional[str]] = mapped_column(String(500), nullable=True)

    order: Mapped["Order"] = relationship(
        "Order",
        back_populates="items",
    )

    def __repr__(self) -> str:
        return f"<OrderItem(id={self.id}, product={self.name}, qty={self.quantity})>"
