# ==============================================================================
# MIDDLEWARE PACKAGE INITIALIZATION
# ==============================================================================

"""
Middleware Module
=================

FastAPI middleware implementations:
- Request logging
"""

from storefront.middleware.request_logger import RequestLoggerMiddleware

__all__ = [
    "RequestLoggerMiddleware",
]
