# ==============================================================================
# UTILS PACKAGE INITIALIZATION
# ==============================================================================

"""
Utilities Module
================

Helper functions and utilities:
- ID generators
- Date/time utilities
- Logging setup
"""

from storefront.utils.helpers import (
    ensure_utc,
    generate_uuid,
    short_id,
    utc_now,
)
from storefront.utils.logger import setup_logging

__all__ = [
    "ensure_utc",
    "generate_uuid",
    "short_id",
    "utc_now",
    "setup_logging",
]
