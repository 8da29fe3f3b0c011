# ==============================================================================
# DOMAIN MODELS PACKAGE INITIALIZATION
# ==============================================================================

"""
Domain Models
=============

SQLAlchemy ORM models for database entities:
- Product: Catalog entries and stock levels
- Order/OrderItem: Orders and their line items
- Review: Product reviews
"""

from storefront.domain_models.base import SQLBase, TimestampMixin
from storefront.domain_models.product import Product
from storefront.domain_models.order import Order, OrderItem
from storefront.domain_models.review import Review

__all__ = [
    "SQLBase",
    "TimestampMixin",
    "Product",
    "Order",
    "OrderItem",
    "Review",
]
