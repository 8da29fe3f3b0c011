# ==============================================================================
# NOTIFICATION SERVICE - Order Notification Dispatchers
# ==============================================================================
# Concrete Notifier implementations selected by NOTIFICATION_BACKEND
#   log     -> LoggingNotifier (development, no transport configured)
#   webhook -> WebhookNotifier (JSON POST to an external mailer)
# ==============================================================================

from __future__ import annotations

import asyncio
import logging
from typing import Any, Dict, Optional

import httpx

from storefront.core.constants import OrderConstants
from storefront.core.exceptions import NotificationError
from storefront.core.settings import NotificationBackend, Settings
from storefront.lifecycle.ports import Notifier
from storefront.lifecycle.snapshot import NotificationKind, OrderSnapshot
from storefront.utils.helpers import short_id

logger = logging.getLogger(__name__)


SUBJECTS: Dict[NotificationKind, str] = {
    NotificationKind.ORDER_CONFIRMATION_REQUIRED: "Confirm Your Order",
    NotificationKind.ORDER_CONFIRMED: "Order Confirmed",
    NotificationKind.ORDER_SHIPPED: "Your Order Has Shipped!",
    NotificationKind.ORDER_DELIVERED: "Your Order Has Been Delivered!",
}


def build_links(
    kind: NotificationKind,
    order: OrderSnapshot,
    frontend_url: str,
) -> Dict[str, str]:
    """
    Links embedded in a notification.

    Confirmation requests carry the token link; shipping notices carry
    the tracking page once a tracking number exists.
    """
    base = frontend_url.rstrip("/")
    links: Dict[str, str] = {}
    if kind == NotificationKind.ORDER_CONFIRMATION_REQUIRED and order.confirmation_token:
        links["confirm"] = f"{base}/confirm-order/{order.confirmation_token}"
    if kind in (NotificationKind.ORDER_SHIPPED, NotificationKind.ORDER_DELIVERED):
        if order.tracking_number:
            links["tracking"] = f"{base}/tracking/{order.id}"
    return links


def build_message(
    kind: NotificationKind,
    order: OrderSnapshot,
    recipient: str,
    frontend_url: str,
) -> Dict[str, Any]:
    """
    Render the transport-neutral notification payload.

    Returns:
        Dict with ``kind``, ``subject``, ``recipient``, ``order`` (JSON-safe
        snapshot without the confirmation token) and ``links``.
    """
    return {
        "kind": kind.value,
        "subject": SUBJECTS[kind],
        "recipient": recipient,
        "order": {
            "reference": short_id(order.id, OrderConstants.SHORT_ID_LENGTH),
            **order.model_dump(mode="json", exclude={"confirmation_token", "version"}),
        },
        "links": build_links(kind, order, frontend_url),
    }


class LoggingNotifier(Notifier):
    """
    Writes each notification to the application log.

    Used when no delivery transport is configured; nothing leaves the
    process.
    """

    def __init__(self, frontend_url: str = "http://localhost:5173") -> None:
        self._frontend_url = frontend_url

    async def send(
        self,
        kind: NotificationKind,
        order: OrderSnapshot,
        recipient: str,
    ) -> None:
        message = build_message(kind, order, recipient, self._frontend_url)
        logger.info(
            "Notification '%s' for order %s to %s",
            message["subject"],
            message["order"]["reference"],
            recipient,
            extra={"notification_kind": kind.value, "links": message["links"]},
        )


class WebhookNotifier(Notifier):
    """
    Delivers notifications as JSON POSTs to an external endpoint.

    The HTTP client is created lazily and reused across sends.

    Raises (from ``send``):
        NotificationError: Non-2xx response or transport failure

    Example:
        >>> notifier = WebhookNotifier("https://mailer.internal/hooks/orders")
        >>> await notifier.send(NotificationKind.ORDER_SHIPPED, order, "a@b.com")
        >>> await notifier.close()
    """

    def __init__(
        self,
        url: str,
        frontend_url: str = "http://localhost:5173",
        timeout: float = 10.0,
        client: Optional[httpx.AsyncClient] = None,
    ) -> None:
        self._url = url
        self._frontend_url = frontend_url
        self._timeout = timeout
        self._client = client
        self._lock = asyncio.Lock()

    async def _get_client(self) -> httpx.AsyncClient:
        if self._client is not None:
            return self._client
        async with self._lock:
            if self._client is None:
                self._client = httpx.AsyncClient(
                    timeout=httpx.Timeout(self._timeout, connect=5.0),
                )
            return self._client

    async def send(
        self,
        kind: NotificationKind,
        order: OrderSnapshot,
        recipient: str,
    ) -> None:
        payload = build_message(kind, order, recipient, self._frontend_url)
        client = await self._get_client()

        try:
            response = await client.post(self._url, json=payload)
            response.raise_for_status()
        except httpx.HTTPStatusError as e:
            raise NotificationError(
                message=f"Notification endpoint returned {e.response.status_code}",
                kind=kind.value,
                details={"order_id": order.id},
            ) from e
        except httpx.HTTPError as e:
            raise NotificationError(
                message=f"Notification delivery failed: {e}",
                kind=kind.value,
                details={"order_id": order.id},
            ) from e

        logger.debug("Notification %s for order %s delivered", kind.value, order.id)

    async def close(self) -> None:
        """Close the HTTP client and release connections."""
        if self._client is not None:
            await self._client.aclose()
            self._client = None


def build_notifier(settings: Settings) -> Notifier:
    """
    Select the dispatcher configured by ``NOTIFICATION_BACKEND``.

    Raises:
        ValueError: Webhook backend without NOTIFICATION_WEBHOOK_URL
    """
    if settings.NOTIFICATION_BACKEND == NotificationBackend.WEBHOOK:
        if not settings.NOTIFICATION_WEBHOOK_URL:
            raise ValueError(
                "NOTIFICATION_WEBHOOK_URL is required when NOTIFICATION_BACKEND=webhook"
            )
        return WebhookNotifier(
            url=settings.NOTIFICATION_WEBHOOK_URL,
            frontend_url=settings.FRONTEND_URL,
            timeout=settings.NOTIFICATION_TIMEOUT_SECONDS,
        )
    return LoggingNotifier(frontend_url=settings.FRONTEND_URL)
