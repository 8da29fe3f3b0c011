# ==============================================================================
# CORE PACKAGE INITIALIZATION
# ==============================================================================
# Core utilities: Settings, Security, Exceptions, Constants
# ==============================================================================

"""
Core Module
===========

Contains core utilities and configurations for the application:
- settings: Environment configuration management
- security: Bearer token decoding
- exceptions: Custom exception classes
- constants: Application-wide constants
"""

from storefront.core.settings import settings, get_settings, DatabaseType
from storefront.core.exceptions import (
    AppException,
    AlreadyConfirmedError,
    ConfirmationExpiredError,
    ConcurrentUpdateError,
    DatabaseError,
    InsufficientStockError,
    InvalidConfirmationTokenError,
    InvalidOrderError,
    NotFoundError,
    NotificationError,
    OrderAccessDeniedError,
    OrderNotFoundError,
    ProductNotFoundError,
)

__all__ = [
    "settings",
    "get_settings",
    "DatabaseType",
    "AppException",
    "AlreadyConfirmedError",
    "ConfirmationExpiredError",
    "ConcurrentUpdateError",
    "DatabaseError",
    "InsufficientStockError",
    "InvalidConfirmationTokenError",
    "InvalidOrderError",
    "NotFoundError",
    "NotificationError",
    "OrderAccessDeniedError",
    "OrderNotFoundError",
    "ProductNotFoundError",
]
