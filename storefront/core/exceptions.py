# ==============================================================================
# CUSTOM EXCEPTIONS - Application Error Hierarchy
# ==============================================================================
# Structured exception classes for consistent error handling
# Each exception maps to appropriate HTTP status codes
# ==============================================================================

from __future__ import annotations

from typing import Any, Dict, Optional


class AppException(Exception):
    """
    Base exception for all application errors.

    Provides a consistent interface for error handling with:
    - Error code for programmatic identification
    - HTTP status code mapping
    - Detailed message and optional context

    Attributes:
        message: Human-readable error description
        error_code: Machine-readable error identifier
        status_code: HTTP status code to return
        details: Additional context dictionary

    Example:
        >>> raise AppException(
        ...     message="Something went wrong",
        ...     error_code="INTERNAL_ERROR",
        ...     status_code=500
        ... )
    """

    def __init__(
        self,
        message: str = "An unexpected error occurred",
        error_code: str = "INTERNAL_ERROR",
        status_code: int = 500,
        details: Optional[Dict[str, Any]] = None,
    ) -> None:
        self.message = message
        self.error_code = error_code
        self.status_code = status_code
        self.details = details or {}
        super().__init__(self.message)

    def to_dict(self) -> Dict[str, Any]:
        """
        Convert exception to dictionary format for JSON response.

        Returns:
            Dictionary containing error details
        """
        return {
            "success": False,
            "error": {
                "code": self.error_code,
                "message": self.message,
                "details": self.details,
            }
        }

    def __repr__(self) -> str:
        return (
            f"{self.__class__.__name__}("
            f"message='{self.message}', "
            f"error_code='{self.error_code}', "
            f"status_code={self.status_code})"
        )


# ==============================================================================
# DATABASE EXCEPTIONS
# ==============================================================================

class DatabaseError(AppException):
    """
    Base exception for database-related errors.

    Raised when database operations fail due to connection issues,
    query execution failures or transaction errors.
    """

    def __init__(
        self,
        message: str = "Database operation failed",
        details: Optional[Dict[str, Any]] = None,
    ) -> None:
        super().__init__(
            message=message,
            error_code="DATABASE_ERROR",
            status_code=503,
            details=details,
        )


class ConcurrentUpdateError(AppException):
    """
    Raised when a record changed between read and write.

    The write was rejected by the optimistic version check; the caller
    may re-read and retry. Maps to HTTP 409 Conflict.
    """

    def __init__(
        self,
        message: str = "The record was modified concurrently",
        resource_id: Optional[Any] = None,
    ) -> None:
        details = {}
        if resource_id is not None:
            details["resource_id"] = str(resource_id)
        super().__init__(
            message=message,
            error_code="CONFLICT",
            status_code=409,
            details=details,
        )


# ==============================================================================
# RESOURCE EXCEPTIONS
# ==============================================================================

class NotFoundError(AppException):
    """
    Raised when a requested resource does not exist.

    Maps to HTTP 404 Not Found.

    Attributes:
        resource_type: Type of resource that was not found
        resource_id: Identifier of the missing resource
    """

    def __init__(
        self,
        message: str = "Resource not found",
        resource_type: Optional[str] = None,
        resource_id: Optional[Any] = None,
    ) -> None:
        details = {}
        if resource_type:
            details["resource_type"] = resource_type
        if resource_id:
            details["resource_id"] = str(resource_id)

        super().__init__(
            message=message,
            error_code="NOT_FOUND",
            status_code=404,
            details=details,
        )
        self.resource_type = resource_type
        self.resource_id = resource_id


class OrderNotFoundError(NotFoundError):
    """Raised when no order exists with the requested id."""

    def __init__(self, order_id: Optional[Any] = None) -> None:
        super().__init__(
            message="Order not found",
            resource_type="order",
            resource_id=order_id,
        )
        self.error_code = "ORDER_NOT_FOUND"


class ProductNotFoundError(NotFoundError):
    """
    Raised when an order line references a product that does not exist.

    The message names the line item so it can be shown to the buyer.
    """

    def __init__(
        self,
        item_name: Optional[str] = None,
        product_id: Optional[Any] = None,
    ) -> None:
        label = item_name or product_id or "unknown"
        super().__init__(
            message=f"Product {label} not found",
            resource_type="product",
            resource_id=product_id,
        )
        self.error_code = "PRODUCT_NOT_FOUND"
        self.item_name = item_name


# ==============================================================================
# VALIDATION EXCEPTIONS
# ==============================================================================

class BadRequestError(AppException):
    """Base for request errors surfaced as HTTP 400."""

    def __init__(
        self,
        message: str = "Bad request",
        details: Optional[Dict[str, Any]] = None,
    ) -> None:
        super().__init__(
            message=message,
            error_code="BAD_REQUEST",
            status_code=400,
            details=details,
        )


class InvalidOrderError(BadRequestError):
    """Raised when an order is submitted without line items."""

    def __init__(self, message: str = "No order items") -> None:
        super().__init__(message=message)
        self.error_code = "INVALID_ORDER"


# ==============================================================================
# AUTHENTICATION & AUTHORIZATION EXCEPTIONS
# ==============================================================================

class AuthenticationError(AppException):
    """Base for bearer-token failures (HTTP 401)."""

    def __init__(
        self,
        message: str = "Authentication failed",
        details: Optional[Dict[str, Any]] = None,
    ) -> None:
        super().__init__(
            message=message,
            error_code="AUTHENTICATION_ERROR",
            status_code=401,
            details=details,
        )


class AuthorizationError(AppException):
    """
    Base for access denials (HTTP 403).

    The requester is known but may not act on this order.
    """

    def __init__(
        self,
        message: str = "Permission denied",
        details: Optional[Dict[str, Any]] = None,
    ) -> None:
        super().__init__(
            message=message,
            error_code="AUTHORIZATION_ERROR",
            status_code=403,
            details=details,
        )


class OrderAccessDeniedError(AuthorizationError):
    """Raised when a non-admin account reads another account's order."""

    def __init__(self, message: str = "Not authorized to view this order") -> None:
        super().__init__(message=message)
        self.error_code = "FORBIDDEN"


class TokenExpiredError(AuthenticationError):
    """Raised when a bearer JWT has expired."""

    def __init__(self, message: str = "Token has expired") -> None:
        super().__init__(message=message)
        self.error_code = "TOKEN_EXPIRED"


class InvalidTokenError(AuthenticationError):
    """Raised when a bearer JWT is invalid or malformed."""

    def __init__(self, message: str = "Invalid token") -> None:
        super().__init__(message=message)
        self.error_code = "INVALID_AUTH_TOKEN"


# ==============================================================================
# BUSINESS LOGIC EXCEPTIONS
# ==============================================================================

class BusinessRuleError(AppException):
    """
    Raised when a business rule is violated.

    Maps to HTTP 400 Bad Request.
    """

    def __init__(
        self,
        message: str = "Business rule violation",
        rule: Optional[str] = None,
        details: Optional[Dict[str, Any]] = None,
    ) -> None:
        _details = details or {}
        if rule:
            _details["violated_rule"] = rule

        super().__init__(
            message=message,
            error_code="BUSINESS_RULE_ERROR",
            status_code=400,
            details=_details,
        )


class InsufficientStockError(AppException):
    """
    Raised when a product cannot cover the requested quantity.

    Maps to HTTP 400 Bad Request.

    Attributes:
        item_name: Display name of the order line
        available: Units in stock at the time of the check
        requested: Units the order asked for
    """

    def __init__(
        self,
        item_name: str,
        available: int,
        requested: Optional[int] = None,
        product_id: Optional[str] = None,
    ) -> None:
        details: Dict[str, Any] = {"item_name": item_name, "available": available}
        if requested is not None:
            details["requested"] = requested
        if product_id is not None:
            details["product_id"] = product_id

        super().__init__(
            message=f"Insufficient stock for {item_name}. Available: {available}",
            error_code="INSUFFICIENT_STOCK",
            status_code=400,
            details=details,
        )
        self.item_name = item_name
        self.available = available
        self.requested = requested


class InvalidConfirmationTokenError(AppException):
    """Raised when a confirmation token matches no confirmable order."""

    def __init__(self, message: str = "Invalid or expired confirmation link") -> None:
        super().__init__(
            message=message,
            error_code="INVALID_TOKEN",
            status_code=400,
        )


class AlreadyConfirmedError(AppException):
    """Raised when a confirmation token is redeemed a second time."""

    def __init__(
        self,
        message: str = "Order has already been confirmed",
        order_id: Optional[str] = None,
    ) -> None:
        super().__init__(
            message=message,
            error_code="ALREADY_CONFIRMED",
            status_code=409,
            details={"order_id": order_id} if order_id else None,
        )


class ConfirmationExpiredError(AppException):
    """
    Raised when the confirmation window has elapsed.

    By the time this is raised the order has already been cancelled
    and the cancellation persisted. Maps to HTTP 410 Gone.
    """

    def __init__(
        self,
        message: str = "Confirmation link has expired. The order has been cancelled.",
        order_id: Optional[str] = None,
    ) -> None:
        super().__init__(
            message=message,
            error_code="CONFIRMATION_EXPIRED",
            status_code=410,
            details={"order_id": order_id} if order_id else None,
        )


# ==============================================================================
# EXTERNAL SERVICE EXCEPTIONS
# ==============================================================================

class NotificationError(AppException):
    """
    Raised by a notification dispatcher when delivery fails.

    The order engine catches and logs it; it never reaches API clients.
    """

    def __init__(
        self,
        message: str = "Notification delivery failed",
        kind: Optional[str] = None,
        details: Optional[Dict[str, Any]] = None,
    ) -> None:
        _details = details or {}
        if kind:
            _details["kind"] = kind
        super().__init__(
            message=message,
            error_code="NOTIFICATION_ERROR",
            status_code=502,
            details=_details,
        )
