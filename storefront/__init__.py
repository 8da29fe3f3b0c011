# ==============================================================================
# APP PACKAGE INITIALIZATION
# ==============================================================================
# Storefront Order Service with FastAPI
# Supports: SQLite, PostgreSQL
# Architecture: Pure state machine, Repository Pattern, Unit of Work
# ==============================================================================

"""
Storefront Order Service
========================

Order lifecycle backend for a storefront: checkout, email confirmation,
fulfilment and review eligibility.

Features:
---------
- Immediate or deferred (email-confirmed) checkout
- Single-use, time-limited confirmation tokens
- Atomic stock reconciliation with optimistic order versioning
- Best-effort notifications (log or webhook)
- Optional background expiry of unconfirmed orders

Usage:
------
    uvicorn storefront.main:app --reload
"""

__version__ = "1.0.0"
__all__ = ["__version__"]
