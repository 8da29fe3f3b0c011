# ==============================================================================
# ORDER SNAPSHOT - Immutable Order State
# ==============================================================================
# Value objects the state machine reads and produces
# ==============================================================================

from __future__ import annotations

import enum
from datetime import datetime
from decimal import Decimal
from typing import Optional, Tuple

from pydantic import BaseModel, ConfigDict, Field


class OrderStatus(str, enum.Enum):
    """Order lifecycle status states."""
    PENDING = "Pending"
    CONFIRMED = "Confirmed"
    PROCESSING = "Processing"
    SHIPPED = "Shipped"
    DELIVERED = "Delivered"
    CANCELLED = "Cancelled"


class ConfirmationPolicy(str, enum.Enum):
    """
    Checkout policy selected by deployment configuration.

    IMMEDIATE: payment and stock decrement happen at placement.
    DEFERRED: the buyer must redeem an emailed token first.
    """
    IMMEDIATE = "immediate"
    DEFERRED = "deferred"


class NotificationKind(str, enum.Enum):
    """Notifications the lifecycle can request."""
    ORDER_CONFIRMATION_REQUIRED = "order_confirmation_required"
    ORDER_CONFIRMED = "order_confirmed"
    ORDER_SHIPPED = "order_shipped"
    ORDER_DELIVERED = "order_delivered"


class _Frozen(BaseModel):
    model_config = ConfigDict(frozen=True)


class LineItem(_Frozen):
    """One order line. Price and name are captured at checkout."""

    product_id: str = Field(..., min_length=1)
    name: str = Field(..., min_length=1)
    quantity: int = Field(..., gt=0)
    unit_price: Decimal = Field(..., ge=0)
    image: Optional[str] = None

    @property
    def line_total(self) -> Decimal:
        return self.unit_price * self.quantity


class ShippingAddress(_Frozen):
    address: str = Field(..., min_length=1)
    city: str = Field(..., min_length=1)
    postal_code: str = Field(..., min_length=1)
    country: str = Field(..., min_length=1)


class PriceBreakdown(_Frozen):
    """
    Money totals computed by checkout.

    ``total_price`` is expected to equal the sum of the other three; the
    values are trusted as supplied and never recomputed here.
    """

    items_price: Decimal = Field(..., ge=0)
    tax_price: Decimal = Field(..., ge=0)
    shipping_price: Decimal = Field(..., ge=0)
    total_price: Decimal = Field(..., ge=0)


class PaymentResult(_Frozen):
    id: Optional[str] = None
    status: Optional[str] = None
    update_time: Optional[str] = None
    email_address: Optional[str] = None


class OrderSnapshot(_Frozen):
    """
    Full state of one order at a point in time.

    Transitions never mutate a snapshot; they return a copy produced
    with ``model_copy(update=...)``. ``version`` is owned by the
    repository and used for optimistic concurrency on save.
    """

    id: str
    owner_id: str
    owner_email: Optional[str] = None
    items: Tuple[LineItem, ...]
    shipping_address: ShippingAddress
    payment_method: str
    prices: PriceBreakdown

    status: OrderStatus
    is_confirmed: bool = False
    confirmation_token: Optional[str] = None
    confirmed_at: Optional[datetime] = None

    is_paid: bool = False
    paid_at: Optional[datetime] = None
    payment_result: Optional[PaymentResult] = None

    is_delivered: bool = False
    delivered_at: Optional[datetime] = None
    tracking_number: Optional[str] = None

    created_at: datetime
    updated_at: Optional[datetime] = None
    version: int = 0

    def contains_product(self, product_id: str) -> bool:
        return any(item.product_id == product_id for item in self.items)
