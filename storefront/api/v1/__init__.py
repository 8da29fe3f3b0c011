# ==============================================================================
# API V1 ENDPOINTS PACKAGE
# ==============================================================================

"""
API V1 Endpoints
================

Version 1 API endpoint implementations.
"""

from storefront.api.v1.orders import router as orders_router
from storefront.api.v1.admin import router as admin_router
from storefront.api.v1.products import router as products_router

__all__ = [
    "orders_router",
    "admin_router",
    "products_router",
]
