# ==============================================================================
# API PACKAGE INITIALIZATION
# ==============================================================================

"""
API Module
==========

FastAPI routers and endpoint definitions:
- Dependencies: Bearer-token principal, admin guard, order engine
- Routers: Orders, Admin, Products
"""

from storefront.api.router import api_router

__all__ = ["api_router"]
