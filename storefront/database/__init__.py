# ==============================================================================
# DATABASE PACKAGE INITIALIZATION
# ==============================================================================
# Database Abstraction Layer with SQLite and PostgreSQL support
# ==============================================================================

"""
Database Module
===============

Provides a unified database abstraction layer supporting:
- SQLite (development/testing)
- PostgreSQL (production)

Key Components:
- Adapters: Engine and session management
- Factory: Dynamic adapter instantiation
- Repositories: Order, inventory and review persistence
- Unit of Work: Transaction management
"""

from storefront.database.factory import DatabaseFactory
from storefront.database.adapters.base_adapter import BaseDatabaseAdapter
from storefront.database.unit_of_work.uow import SQLUnitOfWork

__all__ = [
    "DatabaseFactory",
    "BaseDatabaseAdapter",
    "SQLUnitOfWork",
]
