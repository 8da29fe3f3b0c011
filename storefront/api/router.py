# ==============================================================================
# MAIN API ROUTER - Route Aggregation
# ==============================================================================
# Combines all API version routers
# ==============================================================================

from __future__ import annotations

from fastapi import APIRouter

from storefront.core.settings import settings
from storefront.api.v1 import (
    orders_router,
    admin_router,
    products_router,
)

# Create main API router
api_router = APIRouter()

# Include v1 routers with API prefix
api_router.include_router(orders_router, prefix=settings.API_V1_PREFIX)
api_router.include_router(admin_router, prefix=settings.API_V1_PREFIX)
api_router.include_router(products_router, prefix=settings.API_V1_PREFIX)
