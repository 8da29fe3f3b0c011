# ==============================================================================
# SCHEMAS PACKAGE INITIALIZATION
# ==============================================================================

"""
Pydantic Schemas
================

Request/Response validation schemas for API endpoints:
- Base: Response envelope and shared configuration
- Order: Checkout, payment, status and review-eligibility schemas
"""

from storefront.schemas.base import (
    APIResponse,
    BaseSchema,
    HealthResponse,
    RequestSchema,
)
from storefront.schemas.order import (
    CanReviewResponse,
    ExpirySweepResponse,
    OrderItemRequest,
    OrderResponse,
    PaymentRequest,
    PlaceOrderRequest,
    ShippingAddressRequest,
    StatusUpdateRequest,
)

__all__ = [
    # Base
    "APIResponse",
    "BaseSchema",
    "HealthResponse",
    "RequestSchema",
    # Order
    "CanReviewResponse",
    "ExpirySweepResponse",
    "OrderItemRequest",
    "OrderResponse",
    "PaymentRequest",
    "PlaceOrderRequest",
    "ShippingAddressRequest",
    "StatusUpdateRequest",
]
