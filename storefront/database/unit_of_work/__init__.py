# ==============================================================================
# UNIT OF WORK PACKAGE INITIALIZATION
# ==============================================================================

"""
Unit of Work Pattern Implementation
===================================

Provides transactional consistency across repository operations:
- SQLUnitOfWork: Shares one session between orders, inventory and reviews
"""

from storefront.database.unit_of_work.uow import SQLUnitOfWork

__all__ = [
    "SQLUnitOfWork",
]
