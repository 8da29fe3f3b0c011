# ==============================================================================
# ORDER SCHEMAS - Checkout, Confirmation & Fulfilment
# ==============================================================================
# Request/Response schemas for the order endpoints
# ==============================================================================

from __future__ import annotations

from datetime import datetime
from decimal import Decimal
from typing import List, Optional

from pydantic import Field

from storefront.core.constants import OrderConstants
from storefront.lifecycle.snapshot import (
    LineItem,
    OrderSnapshot,
    OrderStatus,
    PaymentResult,
    PriceBreakdown,
    ShippingAddress,
)
from storefront.schemas.base import BaseSchema, RequestSchema
from storefront.utils.helpers import short_id


# ==============================================================================
# REQUESTS
# ==============================================================================

class OrderItemRequest(RequestSchema):
    """One cart line as submitted at checkout."""

    product_id: str = Field(
        ...,
        min_length=1,
        alias="product",
        description="Product ID",
    )
    name: str = Field(
        ...,
        min_length=1,
        max_length=100,
        description="Product name at checkout",
    )
    quantity: int = Field(
        ...,
        gt=0,
        description="Quantity to order",
    )
    price: Decimal = Field(
        ...,
        ge=0,
        description="Unit price at checkout",
    )
    image: Optional[str] = Field(
        None,
        max_length=500,
        description="Product image URL",
    )

    def to_line_item(self) -> LineItem:
        return LineItem(
            product_id=self.product_id,
            name=self.name,
            quantity=self.quantity,
            unit_price=self.price,
            image=self.image,
        )


class ShippingAddressRequest(RequestSchema):
    address: str = Field(..., min_length=1, max_length=500)
    city: str = Field(..., min_length=1, max_length=100)
    postal_code: str = Field(..., min_length=1, max_length=20)
    country: str = Field(..., min_length=1, max_length=100)

    def to_address(self) -> ShippingAddress:
        return ShippingAddress(**self.model_dump())


class PlaceOrderRequest(RequestSchema):
    """
    Checkout payload.

    Totals are computed by the storefront and stored as supplied. An
    empty ``order_items`` list is rejected with ``No order items``.
    """

    order_items: List[OrderItemRequest] = Field(
        default_factory=list,
        description="Order lines",
    )
    shipping_address: ShippingAddressRequest = Field(
        ...,
        description="Delivery address",
    )
    payment_method: str = Field(
        ...,
        min_length=1,
        max_length=50,
        description="Payment method label",
    )
    items_price: Decimal = Field(Decimal("0"), ge=0)
    tax_price: Decimal = Field(Decimal("0"), ge=0)
    shipping_price: Decimal = Field(Decimal("0"), ge=0)
    total_price: Decimal = Field(Decimal("0"), ge=0)

    def line_items(self) -> List[LineItem]:
        return [item.to_line_item() for item in self.order_items]

    def prices(self) -> PriceBreakdown:
        return PriceBreakdown(
            items_price=self.items_price,
            tax_price=self.tax_price,
            shipping_price=self.shipping_price,
            total_price=self.total_price,
        )


class PaymentRequest(RequestSchema):
    """Payment result reported by the payment provider."""

    id: Optional[str] = Field(None, max_length=100)
    status: Optional[str] = Field(None, max_length=50)
    update_time: Optional[str] = Field(None, max_length=50)
    email_address: Optional[str] = Field(None, max_length=255)

    def to_payment(self) -> PaymentResult:
        return PaymentResult(**self.model_dump())


class StatusUpdateRequest(RequestSchema):
    status: OrderStatus = Field(
        ...,
        description="Target status",
    )
    tracking_number: Optional[str] = Field(
        None,
        max_length=64,
        description="Carrier tracking number; generated on shipping if omitted",
    )


# ==============================================================================
# RESPONSES
# ==============================================================================

class OrderItemResponse(BaseSchema):
    product_id: str
    name: str
    quantity: int
    unit_price: Decimal
    line_total: Decimal
    image: Optional[str] = None


class ShippingAddressResponse(BaseSchema):
    address: str
    city: str
    postal_code: str
    country: str


class PaymentResultResponse(BaseSchema):
    id: Optional[str] = None
    status: Optional[str] = None
    update_time: Optional[str] = None
    email_address: Optional[str] = None


class OrderResponse(BaseSchema):
    """
    Order as returned to clients.

    The confirmation token is never included; it reaches the buyer
    through the confirmation notification only.
    """

    id: str
    reference: str = Field(..., description="Short order number for display")
    owner_id: str
    status: OrderStatus
    order_items: List[OrderItemResponse]
    shipping_address: ShippingAddressResponse
    payment_method: str
    items_price: Decimal
    tax_price: Decimal
    shipping_price: Decimal
    total_price: Decimal
    is_confirmed: bool
    confirmed_at: Optional[datetime] = None
    is_paid: bool
    paid_at: Optional[datetime] = None
    payment_result: Optional[PaymentResultResponse] = None
    is_delivered: bool
    delivered_at: Optional[datetime] = None
    tracking_number: Optional[str] = None
    created_at: datetime
    updated_at: Optional[datetime] = None

    @classmethod
    def from_snapshot(cls, order: OrderSnapshot) -> "OrderResponse":
        payment = order.payment_result
        return cls(
            id=order.id,
            reference=short_id(order.id, OrderConstants.SHORT_ID_LENGTH),
            owner_id=order.owner_id,
            status=order.status,
            order_items=[
                OrderItemResponse(
                    product_id=item.product_id,
                    name=item.name,
                    quantity=item.quantity,
                    unit_price=item.unit_price,
                    line_total=item.line_total,
                    image=item.image,
                )
                for item in order.items
            ],
            shipping_address=ShippingAddressResponse(
                **order.shipping_address.model_dump()
            ),
            payment_method=order.payment_method,
            items_price=order.prices.items_price,
            tax_price=order.prices.tax_price,
            shipping_price=order.prices.shipping_price,
            total_price=order.prices.total_price,
            is_confirmed=order.is_confirmed,
            confirmed_at=order.confirmed_at,
            is_paid=order.is_paid,
            paid_at=order.paid_at,
            payment_result=(
                PaymentResultResponse(**payment.model_dump()) if payment else None
            ),
            is_delivered=order.is_delivered,
            delivered_at=order.delivered_at,
            tracking_number=order.tracking_number,
            created_at=order.created_at,
            updated_at=order.updated_at,
        )


class CanReviewResponse(BaseSchema):
    can_review: bool
    reason: Optional[str] = None


class ExpirySweepResponse(BaseSchema):
    cancelled: int = Field(..., ge=0, description="Orders cancelled by this pass")
