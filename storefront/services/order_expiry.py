# ==============================================================================
# ORDER EXPIRY SWEEPER - Periodic Cancellation of Unconfirmed Orders
# ==============================================================================

from __future__ import annotations

import asyncio
import logging
from typing import Optional

from storefront.services.order_engine import OrderLifecycleEngine

logger = logging.getLogger(__name__)


class OrderExpirySweeper:
    """
    Background task that periodically runs ``expire_stale_orders``.

    Confirmation already enforces expiry lazily; the sweep only makes
    abandoned orders show up as Cancelled without anyone touching them.
    A failing pass is logged and the loop carries on.

    Example:
        >>> sweeper = OrderExpirySweeper(engine, interval_seconds=300)
        >>> await sweeper.start()
        >>> ...
        >>> await sweeper.stop()
    """

    def __init__(self, engine: OrderLifecycleEngine, interval_seconds: float = 300) -> None:
        if interval_seconds <= 0:
            raise ValueError("interval_seconds must be positive")
        self._engine = engine
        self._interval = interval_seconds
        self._running = False
        self._task: Optional[asyncio.Task[None]] = None

    @property
    def is_running(self) -> bool:
        return self._running

    async def start(self) -> None:
        """Start the sweep loop."""
        if self._running:
            return
        self._running = True
        self._task = asyncio.create_task(self._run())
        logger.info("Order expiry sweeper started (interval=%ss)", self._interval)

    async def stop(self) -> None:
        """Stop the sweep loop and wait for it to finish."""
        self._running = False
        if self._task:
            self._task.cancel()
            try:
                await self._task
            except asyncio.CancelledError:
                pass
            self._task = None
            logger.info("Order expiry sweeper stopped")

    async def run_once(self) -> int:
        """Run a single pass; errors are logged and reported as zero."""
        try:
            return await self._engine.expire_stale_orders()
        except Exception:
            logger.exception("Order expiry sweep failed")
            return 0

    async def _run(self) -> None:
        while self._running:
            await self.run_once()
            await asyncio.sleep(self._interval)
