# ==============================================================================
# API DEPENDENCIES - Dependency Injection
# ==============================================================================
# FastAPI dependencies for authentication and the order engine
# ==============================================================================

from __future__ import annotations

from typing import Annotated, Optional

from fastapi import Depends, HTTPException, Request, status
from fastapi.security import OAuth2PasswordBearer

from storefront.core.exceptions import InvalidTokenError, TokenExpiredError
from storefront.core.security import Principal, principal_from_token
from storefront.core.settings import settings
from storefront.services.order_engine import OrderLifecycleEngine

# OAuth2 scheme for JWT tokens issued by the account service
oauth2_scheme = OAuth2PasswordBearer(
    tokenUrl=f"{settings.API_V1_PREFIX}/auth/login",
    auto_error=False,
)


# ==============================================================================
# AUTHENTICATION DEPENDENCIES
# ==============================================================================

async def get_current_principal(
    token: Annotated[Optional[str], Depends(oauth2_scheme)],
) -> Principal:
    """
    Resolve the requester from the bearer token.

    Raises:
        HTTPException: 401 if the token is missing, expired or invalid
    """
    if not token:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Not authenticated",
            headers={"WWW-Authenticate": "Bearer"},
        )

    try:
        return principal_from_token(token)
    except TokenExpiredError:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Token has expired",
            headers={"WWW-Authenticate": "Bearer"},
        )
    except InvalidTokenError as e:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail=e.message,
            headers={"WWW-Authenticate": "Bearer"},
        )


async def require_admin(
    principal: Annotated[Principal, Depends(get_current_principal)],
) -> Principal:
    """
    Raises:
        HTTPException: 403 unless the requester has the admin role
    """
    if not principal.is_admin:
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail="Not authorized as an admin",
        )
    return principal


# Annotated types
CurrentPrincipal = Annotated[Principal, Depends(get_current_principal)]
AdminPrincipal = Annotated[Principal, Depends(require_admin)]


# ==============================================================================
# SERVICE DEPENDENCIES
# ==============================================================================

async def get_order_engine(request: Request) -> OrderLifecycleEngine:
    """Order engine built during application startup."""
    engine = getattr(request.app.state, "order_engine", None)
    if engine is None:
        raise HTTPException(
            status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
            detail="Order engine not initialized",
        )
    return engine


# Annotated service types
OrderEngineDep = Annotated[OrderLifecycleEngine, Depends(get_order_engine)]
