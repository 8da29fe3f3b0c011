# ==============================================================================
# BASE SCHEMAS - Common Schema Patterns
# ==============================================================================
# Foundation schemas for API requests and responses
# ==============================================================================

from __future__ import annotations

from typing import Any, Generic, List, Optional, TypeVar

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel


# Type variable for generic response types
T = TypeVar("T")


class BaseSchema(BaseModel):
    """
    Base schema for responses.

    All response schemas inherit from this class to ensure consistent
    serialization behavior.
    """

    model_config = ConfigDict(
        from_attributes=True,
        populate_by_name=True,
        use_enum_values=True,
    )


class RequestSchema(BaseModel):
    """
    Base schema for request bodies.

    Accepts both snake_case and camelCase keys, so storefront clients
    can post ``orderItems`` or ``order_items``.
    """

    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        str_strip_whitespace=True,
    )


class APIResponse(BaseModel, Generic[T]):
    """
    Standard API response wrapper.

    Provides consistent response structure for all API endpoints.

    Attributes:
        success: Whether the request was successful
        message: Optional status message
        data: Response payload
        errors: Optional error details
    """

    success: bool = Field(
        True,
        description="Whether the request was successful"
    )
    message: Optional[str] = Field(
        None,
        description="Status message"
    )
    data: Optional[T] = Field(
        None,
        description="Response data"
    )
    errors: Optional[List[dict[str, Any]]] = Field(
        None,
        description="Error details if any"
    )

    @classmethod
    def ok(
        cls,
        data: T,
        message: Optional[str] = None,
    ) -> "APIResponse[T]":
        """Create a successful response."""
        return cls(success=True, data=data, message=message)

    @classmethod
    def error(
        cls,
        message: str,
        errors: Optional[List[dict[str, Any]]] = None,
    ) -> "APIResponse[T]":
        """Create an error response."""
        return cls(success=False, message=message, errors=errors)


class HealthResponse(BaseSchema):
    """Health check response schema."""

    status: str = Field(
        ...,
        description="Health status"
    )
    version: str = Field(
        ...,
        description="Application version"
    )
    database: str = Field(
        ...,
        description="Database connection status"
    )
