# ==============================================================================
# HELPER UTILITIES
# ==============================================================================
# Common utility functions used across the application
# ==============================================================================

from __future__ import annotations

from datetime import datetime, timezone
from typing import Optional
from uuid import uuid4


def generate_uuid() -> str:
    """Generate a new UUID string."""
    return str(uuid4())


def utc_now() -> datetime:
    """Get current UTC datetime."""
    return datetime.now(timezone.utc)


def ensure_utc(value: Optional[datetime]) -> Optional[datetime]:
    """
    Attach UTC to naive datetimes.

    SQLite hands back timezone-naive values even for
    ``DateTime(timezone=True)`` columns; everything this service
    stores is UTC, so naive values are interpreted as such.
    """
    if value is None:
        return None
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value.astimezone(timezone.utc)


def short_id(value: str, length: int = 8) -> str:
    """Last ``length`` characters of an id, upper-cased, for display."""
    return value.replace("-", "")[-length:].upper()
