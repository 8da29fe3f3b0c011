# ==============================================================================
# IDENTIFIERS - Tokens, Tracking Numbers, Mock Payments
# ==============================================================================

from __future__ import annotations

import secrets
from datetime import datetime, timedelta
from uuid import uuid4

from storefront.core.constants import OrderConstants, SecurityConstants
from storefront.lifecycle.snapshot import PaymentResult


def new_order_id() -> str:
    return str(uuid4())


def new_confirmation_token() -> str:
    """Unguessable single-use confirmation secret (256 bits, hex)."""
    return secrets.token_hex(SecurityConstants.CONFIRMATION_TOKEN_BYTES)


def new_tracking_number(prefix: str, now: datetime) -> str:
    """
    Generate a carrier tracking number.

    Millisecond timestamp plus a short random suffix, e.g.
    ``TRK1718031234567A1F3``. The suffix keeps two orders shipped in the
    same millisecond apart.
    """
    millis = int(now.timestamp() * 1000)
    suffix = secrets.token_hex(OrderConstants.TRACKING_SUFFIX_LENGTH // 2).upper()
    return f"{prefix}{millis}{suffix}"


def mock_payment_result(now: datetime, email: str) -> PaymentResult:
    """Synthesize the always-successful payment record."""
    millis = int(now.timestamp() * 1000)
    return PaymentResult(
        id=f"{OrderConstants.MOCK_PAYMENT_PREFIX}{millis}",
        status=OrderConstants.MOCK_PAYMENT_STATUS,
        update_time=now.isoformat(),
        email_address=email,
    )


def is_expired(created_at: datetime, now: datetime, window: timedelta) -> bool:
    """True once strictly more than ``window`` has passed since creation."""
    return now - created_at > window
