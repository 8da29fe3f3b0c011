# ==============================================================================
# SECURITY MODULE - Bearer Token Handling
# ==============================================================================
# JWT decoding for requester identity; token minting for tooling and tests
# Account login/registration lives in the identity service, not here
# ==============================================================================

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime, timedelta, timezone
from typing import Any, Dict, Optional, Union

from jose import JWTError, jwt

from storefront.core.constants import SecurityConstants
from storefront.core.settings import settings
from storefront.core.exceptions import (
    TokenExpiredError,
    InvalidTokenError,
)


class TokenType:
    """Token type constants."""
    ACCESS = SecurityConstants.TOKEN_TYPE_ACCESS


@dataclass(frozen=True)
class Principal:
    """The authenticated account behind a request."""

    account_id: str
    email: Optional[str] = None
    role: str = SecurityConstants.CUSTOMER_ROLE

    @property
    def is_admin(self) -> bool:
        return self.role == SecurityConstants.ADMIN_ROLE


def create_access_token(
    subject: Union[str, Any],
    expires_delta: Optional[timedelta] = None,
    additional_claims: Optional[Dict[str, Any]] = None,
) -> str:
    """
    Create a JWT access token.

    Args:
        subject: Token subject (account ID)
        expires_delta: Custom expiration time (default from settings)
        additional_claims: Extra claims, typically ``email`` and ``role``

    Returns:
        Encoded JWT access token string

    Example:
        >>> token = create_access_token("acct-1", additional_claims={"role": "admin"})
        >>> decode_token(token)["role"]
        'admin'
    """
    now = datetime.now(timezone.utc)
    expire = now + (
        expires_delta or timedelta(minutes=settings.ACCESS_TOKEN_EXPIRE_MINUTES)
    )

    to_encode: Dict[str, Any] = {
        "sub": str(subject),
        "exp": expire,
        "iat": now,
        "type": TokenType.ACCESS,
    }

    if additional_claims:
        to_encode.update(additional_claims)

    return jwt.encode(
        to_encode,
        settings.SECRET_KEY,
        algorithm=settings.ALGORITHM,
    )


def decode_token(token: str) -> Dict[str, Any]:
    """
    Decode and validate a JWT token.

    Verifies the token signature and expiration time.

    Raises:
        TokenExpiredError: If token has expired
        InvalidTokenError: If token is invalid or malformed
    """
    try:
        return jwt.decode(
            token,
            settings.SECRET_KEY,
            algorithms=[settings.ALGORITHM],
        )
    except jwt.ExpiredSignatureError:
        raise TokenExpiredError()
    except JWTError as e:
        raise InvalidTokenError(message=f"Invalid token: {str(e)}")


def principal_from_token(token: str) -> Principal:
    """
    Build a Principal from an access token.

    Raises:
        InvalidTokenError: If the token is not an access token or has no subject
    """
    payload = decode_token(token)

    if payload.get("type") != TokenType.ACCESS:
        raise InvalidTokenError(message="Invalid token type")

    subject = payload.get("sub")
    if not subject:
        raise InvalidTokenError(message="Invalid token payload")

    return Principal(
        account_id=subject,
        email=payload.get("email"),
        role=payload.get("role", SecurityConstants.CUSTOMER_ROLE),
    )
