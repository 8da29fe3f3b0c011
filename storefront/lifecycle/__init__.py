# ==============================================================================
# LIFECYCLE PACKAGE INITIALIZATION
# ==============================================================================

"""
Order Lifecycle
===============

Pure order state machine and the contracts of its collaborators:
- snapshot: immutable order state and enums
- commands: tagged commands, effect intents and decisions
- machine: transition functions
- identifiers: tokens, tracking numbers, mock payments
- ports: inventory, notifier, repository and unit-of-work interfaces
"""

from storefront.lifecycle.commands import (
    ConfirmOrder,
    Decision,
    ExpireOrder,
    MarkPaid,
    Notify,
    PlaceOrder,
    ReserveStock,
    SetStatus,
)
from storefront.lifecycle.machine import decide
from storefront.lifecycle.snapshot import (
    ConfirmationPolicy,
    LineItem,
    NotificationKind,
    OrderSnapshot,
    OrderStatus,
    PaymentResult,
    PriceBreakdown,
    ShippingAddress,
)

__all__ = [
    "ConfirmOrder",
    "Decision",
    "ExpireOrder",
    "MarkPaid",
    "Notify",
    "PlaceOrder",
    "ReserveStock",
    "SetStatus",
    "decide",
    "ConfirmationPolicy",
    "LineItem",
    "NotificationKind",
    "OrderSnapshot",
    "OrderStatus",
    "PaymentResult",
    "PriceBreakdown",
    "ShippingAddress",
]
