# ==============================================================================
# SERVICES PACKAGE INITIALIZATION
# ==============================================================================

"""
Service Layer
=============

Orchestration around the order state machine:
- OrderLifecycleEngine: Placement, confirmation, fulfilment and queries
- OrderExpirySweeper: Periodic cancellation of unconfirmed orders
- LoggingNotifier / WebhookNotifier: Notification dispatchers
"""

from storefront.services.notification_service import (
    LoggingNotifier,
    WebhookNotifier,
    build_notifier,
)
from storefront.services.order_engine import OrderLifecycleEngine, ReviewEligibility
from storefront.services.order_expiry import OrderExpirySweeper

__all__ = [
    "OrderLifecycleEngine",
    "ReviewEligibility",
    "OrderExpirySweeper",
    "LoggingNotifier",
    "WebhookNotifier",
    "build_notifier",
]
