# ==============================================================================
# DATABASE ADAPTERS PACKAGE
# ==============================================================================

"""
Database Adapters
=================

Provides unified interface implementations for relational databases:
- BaseDatabaseAdapter: Abstract interface definition
- SQLAlchemyAdapter: SQLite (aiosqlite) and PostgreSQL (asyncpg)
"""

from storefront.database.adapters.base_adapter import BaseDatabaseAdapter
from storefront.database.adapters.sql_adapter import SQLAlchemyAdapter

__all__ = [
    "BaseDatabaseAdapter",
    "SQLAlchemyAdapter",
]
