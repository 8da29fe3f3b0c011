# ==============================================================================
# REPOSITORIES PACKAGE INITIALIZATION
# ==============================================================================

"""
Repository Pattern Implementation
=================================

Session-bound repositories implementing the lifecycle ports:
- BaseRepository: Generic session-bound base
- SQLOrderRepository: Orders with optimistic version checks
- SQLInventory: Atomic conditional stock decrements
- SQLReviewLedger: Review eligibility lookups
"""

from storefront.database.repositories.base_repository import BaseRepository
from storefront.database.repositories.order_repository import SQLOrderRepository
from storefront.database.repositories.product_repository import SQLInventory
from storefront.database.repositories.review_repository import SQLReviewLedger

__all__ = [
    "BaseRepository",
    "SQLOrderRepository",
    "SQLInventory",
    "SQLReviewLedger",
]
