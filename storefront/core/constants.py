# ==============================================================================
# APPLICATION CONSTANTS - Centralized Configuration Values
# ==============================================================================
# Immutable constants used throughout the application
# Organized by category for easy maintenance
# ==============================================================================

from __future__ import annotations

from typing import Final


# ==============================================================================
# API CONSTANTS
# ==============================================================================

class APIConstants:
    """API-related constants."""

    REQUEST_ID_HEADER: Final[str] = "X-Request-ID"
    RESPONSE_TIME_HEADER: Final[str] = "X-Response-Time"


# ==============================================================================
# DATABASE CONSTANTS
# ==============================================================================

class DatabaseConstants:
    """Database-related constants."""

    # Table names
    PRODUCTS_TABLE: Final[str] = "products"
    ORDERS_TABLE: Final[str] = "orders"
    ORDER_ITEMS_TABLE: Final[str] = "order_items"
    REVIEWS_TABLE: Final[str] = "reviews"

    # Expiry sweep
    MAX_SWEEP_BATCH: Final[int] = 500


# ==============================================================================
# SECURITY CONSTANTS
# ==============================================================================

class SecurityConstants:
    """Security-related constants."""

    TOKEN_TYPE_ACCESS: Final[str] = "access"
    ADMIN_ROLE: Final[str] = "admin"
    CUSTOMER_ROLE: Final[str] = "customer"

    # 32 random bytes, hex encoded
    CONFIRMATION_TOKEN_BYTES: Final[int] = 32


# ==============================================================================
# ORDER CONSTANTS
# ==============================================================================

class OrderConstants:
    """E-commerce order constants."""

    MOCK_PAYMENT_PREFIX: Final[str] = "MOCK_"
    MOCK_PAYMENT_STATUS: Final[str] = "completed"
    TRACKING_SUFFIX_LENGTH: Final[int] = 4
    SHORT_ID_LENGTH: Final[int] = 8


# ==============================================================================
# MESSAGES
# ==============================================================================

class ErrorMessages:
    """Standardized error messages."""

    ALREADY_REVIEWED: Final[str] = "You have already reviewed this product"
    NOT_DELIVERED: Final[str] = "You can only review products you have purchased and received"
    PAYMENT_REQUIRES_CONFIRMATION: Final[str] = "Order must be confirmed before it can be paid"
    PAYMENT_ON_CANCELLED: Final[str] = "Cannot record payment for a cancelled order"


class SuccessMessages:
    """Standardized success messages."""

    ORDER_PLACED: Final[str] = "Order placed successfully"
    ORDER_PLACED_CONFIRM: Final[str] = (
        "Order placed. Please check your email to confirm your order."
    )
    ORDER_CONFIRMED: Final[str] = "Order confirmed successfully! Your order is now being processed."
    ORDER_PAID: Final[str] = "Payment recorded"
    STATUS_UPDATED: Final[str] = "Order status updated"
