# ==============================================================================
# ORDER LIFECYCLE ENGINE - Placement, Confirmation, Fulfilment
# ==============================================================================
# Orchestrates the pure state machine against the unit of work:
#   read -> decide -> persist + reserve stock -> commit -> notify
# ==============================================================================

from __future__ import annotations

import logging
from collections import OrderedDict
from dataclasses import dataclass
from datetime import datetime, timedelta
from typing import Callable, Dict, Iterable, List, Optional, Tuple

from storefront.core.constants import DatabaseConstants, ErrorMessages
from storefront.core.settings import Settings
from storefront.core.exceptions import (
    ConcurrentUpdateError,
    InsufficientStockError,
    InvalidConfirmationTokenError,
    InvalidOrderError,
    OrderAccessDeniedError,
    OrderNotFoundError,
    ProductNotFoundError,
)
from storefront.lifecycle.commands import (
    ConfirmOrder,
    Decision,
    ExpireOrder,
    MarkPaid,
    PlaceOrder,
    SetStatus,
)
from storefront.lifecycle.identifiers import (
    new_confirmation_token,
    new_order_id,
    new_tracking_number,
)
from storefront.lifecycle.machine import DEFAULT_CONFIRMATION_WINDOW, decide
from storefront.lifecycle.ports import AbstractUnitOfWork, Inventory, Notifier
from storefront.lifecycle.snapshot import (
    ConfirmationPolicy,
    LineItem,
    OrderSnapshot,
    OrderStatus,
    PaymentResult,
    PriceBreakdown,
    ShippingAddress,
)
from storefront.utils.helpers import utc_now

logger = logging.getLogger(__name__)

UnitOfWorkFactory = Callable[[], AbstractUnitOfWork]


@dataclass(frozen=True)
class ReviewEligibility:
    """Answer to "may this account review this product?"."""

    can_review: bool
    reason: Optional[str] = None


class OrderLifecycleEngine:
    """
    Order Lifecycle Engine.

    Owns order state transitions, confirmation-token redemption, expiry
    enforcement, stock reconciliation and notification triggering. All
    collaborators are injected; the engine holds no other state.

    Ordering guarantees:
        - Stock decrements and the order write that caused them commit
          in one unit of work, or not at all.
        - Notifications are dispatched only after that commit, and their
          failure is logged and never raised.
        - An expired confirmation cancels and commits the order before
          ConfirmationExpiredError is raised.

    Attributes:
        _uow_factory: Returns a fresh unit of work per operation
        _notifier: Notification dispatcher
        _policy: Immediate or deferred checkout
        _window: Confirmation validity measured from creation
        _clock: Source of "now" (UTC)

    Example:
        >>> engine = OrderLifecycleEngine(SQLUnitOfWork.factory(adapter), LoggingNotifier())
        >>> order = await engine.place_order(owner_id, items, address, "Card", prices)
        >>> confirmed = await engine.confirm_order(order.confirmation_token)
    """

    def __init__(
        self,
        uow_factory: UnitOfWorkFactory,
        notifier: Notifier,
        *,
        policy: ConfirmationPolicy = ConfirmationPolicy.DEFERRED,
        confirmation_window: timedelta = DEFAULT_CONFIRMATION_WINDOW,
        tracking_prefix: str = "TRK",
        payment_email: str = "mock@payment.com",
        clock: Callable[[], datetime] = utc_now,
        token_factory: Callable[[], str] = new_confirmation_token,
        id_factory: Callable[[], str] = new_order_id,
    ) -> None:
        self._uow_factory = uow_factory
        self._notifier = notifier
        self._policy = ConfirmationPolicy(policy)
        self._window = confirmation_window
        self._tracking_prefix = tracking_prefix
        self._payment_email = payment_email
        self._clock = clock
        self._token_factory = token_factory
        self._id_factory = id_factory

    @classmethod
    def from_settings(
        cls,
        settings: Settings,
        uow_factory: UnitOfWorkFactory,
        notifier: Notifier,
    ) -> "OrderLifecycleEngine":
        """Build an engine configured from application settings."""
        return cls(
            uow_factory,
            notifier,
            policy=ConfirmationPolicy(settings.ORDER_CONFIRMATION_POLICY),
            confirmation_window=timedelta(hours=settings.ORDER_CONFIRMATION_WINDOW_HOURS),
            tracking_prefix=settings.TRACKING_NUMBER_PREFIX,
            payment_email=settings.MOCK_PAYMENT_EMAIL,
        )

    @property
    def policy(self) -> ConfirmationPolicy:
        return self._policy

    @property
    def confirmation_window(self) -> timedelta:
        return self._window

    # ==========================================================================
    # PLACEMENT & CONFIRMATION
    # ==========================================================================

    async def place_order(
        self,
        owner_id: str,
        items: Iterable[LineItem],
        shipping_address: ShippingAddress,
        payment_method: str,
        prices: PriceBreakdown,
        owner_email: Optional[str] = None,
    ) -> OrderSnapshot:
        """
        Create an order under the configured policy.

        Immediate policy: the order starts in Processing, paid, with stock
        decremented in the same transaction. Deferred policy: the order
        starts Pending with a fresh confirmation token; stock is checked
        but left untouched and a confirmation request is sent.

        Raises:
            InvalidOrderError: No line items
            ProductNotFoundError: A line references an unknown product
            InsufficientStockError: A product cannot cover its quantity
        """
        items = tuple(items)
        if not items:
            raise InvalidOrderError()

        now = self._clock()
        command = PlaceOrder(
            order_id=self._id_factory(),
            owner_id=owner_id,
            owner_email=owner_email,
            items=items,
            shipping_address=shipping_address,
            payment_method=payment_method,
            prices=prices,
            policy=self._policy,
            payment_email=self._payment_email,
            confirmation_token=(
                self._token_factory()
                if self._policy == ConfirmationPolicy.DEFERRED
                else None
            ),
        )

        async with self._uow_factory() as uow:
            await self._check_stock(uow.inventory, items)
            decision = decide(None, command, now, self._window)
            order = await uow.orders.add(decision.order)
            await self._reserve_stock(uow.inventory, decision)
            await uow.commit()

        logger.info(
            "Order %s placed (policy=%s, status=%s)",
            order.id,
            self._policy.value,
            order.status.value,
        )
        await self._dispatch(order, decision)
        return order

    async def confirm_order(self, token: str) -> OrderSnapshot:
        """
        Redeem a confirmation token.

        Raises:
            InvalidConfirmationTokenError: Unknown token, or order no longer Pending
            AlreadyConfirmedError: Token redeemed before
            ConfirmationExpiredError: Window elapsed; the order is now Cancelled
            InsufficientStockError: Stock ran out; the order stays Pending
            ConcurrentUpdateError: The order changed while confirming and
                is still Pending
        """
        now = self._clock()

        try:
            confirmed, decision = await self._redeem(token, now)
        except ConcurrentUpdateError:
            # Lost a race on the same order (double-clicked link); report its current state
            async with self._uow_factory() as uow:
                current = await uow.orders.get_by_token(token)
            if current is None:
                raise InvalidConfirmationTokenError()
            decide(
                current, ConfirmOrder(payment_email=self._payment_email), now, self._window
            )
            raise

        logger.info("Order %s confirmed", confirmed.id)
        await self._dispatch(confirmed, decision)
        return confirmed

    async def _redeem(self, token: str, now: datetime) -> Tuple[OrderSnapshot, Decision]:
        """Single confirmation attempt: decide, persist, reserve, commit."""
        async with self._uow_factory() as uow:
            order = await uow.orders.get_by_token(token) if token else None
            if order is None:
                raise InvalidConfirmationTokenError()

            decision = decide(
                order, ConfirmOrder(payment_email=self._payment_email), now, self._window
            )

            if decision.rejection is not None:
                await uow.orders.save(decision.order)
                await uow.commit()
                logger.info(
                    "Order %s confirmation expired; order cancelled", order.id
                )
                raise decision.rejection

            await self._check_stock(uow.inventory, order.items)
            confirmed = await uow.orders.save(decision.order)
            await self._reserve_stock(uow.inventory, decision)
            await uow.commit()

        return confirmed, decision

    # ==========================================================================
    # FULFILMENT
    # ==========================================================================

    async def update_status(
        self,
        order_id: str,
        status: OrderStatus,
        tracking_number: Optional[str] = None,
    ) -> OrderSnapshot:
        """
        Set an order's status (admin or carrier driven).

        Any target is accepted from any state. Shipped guarantees a
        tracking number; Delivered marks delivery. Each notifies only
        when newly entered.

        Raises:
            OrderNotFoundError: Unknown order id
        """
        now = self._clock()
        command = SetStatus(
            status=OrderStatus(status),
            tracking_number=tracking_number or None,
            fallback_tracking_number=new_tracking_number(self._tracking_prefix, now),
        )

        async with self._uow_factory() as uow:
            order = await uow.orders.get(order_id)
            if order is None:
                raise OrderNotFoundError(order_id)
            decision = decide(order, command, now, self._window)
            updated = await uow.orders.save(decision.order)
            await uow.commit()

        logger.info(
            "Order %s status %s -> %s",
            order_id,
            order.status.value,
            updated.status.value,
        )
        await self._dispatch(updated, decision)
        return updated

    async def mark_paid(
        self,
        requester_id: str,
        order_id: str,
        payment: PaymentResult,
        is_admin: bool = False,
    ) -> OrderSnapshot:
        """
        Record a payment result for an order.

        Raises:
            OrderNotFoundError: Unknown order id
            OrderAccessDeniedError: Requester neither owns the order nor is admin
            BusinessRuleError: Order is cancelled or awaiting confirmation
        """
        now = self._clock()

        async with self._uow_factory() as uow:
            order = await uow.orders.get(order_id)
            if order is None:
                raise OrderNotFoundError(order_id)
            if not is_admin and order.owner_id != requester_id:
                raise OrderAccessDeniedError()
            decision = decide(order, MarkPaid(payment=payment), now, self._window)
            paid = await uow.orders.save(decision.order)
            await uow.commit()

        logger.info("Order %s marked paid", order_id)
        return paid

    # ==========================================================================
    # EXPIRY
    # ==========================================================================

    async def expire_stale_orders(self) -> int:
        """
        Cancel every unconfirmed Pending order past the confirmation window.

        Uses the same expiry rule as confirmation. Safe to run repeatedly
        and concurrently with confirmations: each order is re-read and
        written under its version check, and orders that changed in
        between are skipped.

        Returns:
            Number of orders cancelled by this pass
        """
        now = self._clock()
        cutoff = now - self._window

        async with self._uow_factory() as uow:
            candidates = await uow.orders.list_expirable(
                cutoff, DatabaseConstants.MAX_SWEEP_BATCH
            )

        cancelled = 0
        for candidate in candidates:
            try:
                async with self._uow_factory() as uow:
                    current = await uow.orders.get(candidate.id)
                    if current is None:
                        continue
                    decision = decide(current, ExpireOrder(), now, self._window)
                    if not decision.persist:
                        continue
                    await uow.orders.save(decision.order)
                    await uow.commit()
            except ConcurrentUpdateError:
                logger.info(
                    "Order %s changed during expiry sweep; skipped", candidate.id
                )
                continue
            cancelled += 1
            logger.info("Order %s expired unconfirmed; cancelled", candidate.id)

        if candidates:
            logger.info(
                "Expiry sweep cancelled %d of %d candidate orders",
                cancelled,
                len(candidates),
            )
        return cancelled

    # ==========================================================================
    # QUERIES
    # ==========================================================================

    async def get_order(
        self,
        requester_id: str,
        order_id: str,
        is_admin: bool = False,
    ) -> OrderSnapshot:
        """
        Raises:
            OrderNotFoundError: Unknown order id
            OrderAccessDeniedError: Requester neither owns the order nor is admin
        """
        async with self._uow_factory() as uow:
            order = await uow.orders.get(order_id)
        if order is None:
            raise OrderNotFoundError(order_id)
        if not is_admin and order.owner_id != requester_id:
            raise OrderAccessDeniedError()
        return order

    async def list_my_orders(self, owner_id: str) -> List[OrderSnapshot]:
        async with self._uow_factory() as uow:
            return await uow.orders.list_by_owner(owner_id)

    async def list_all_orders(self) -> List[OrderSnapshot]:
        async with self._uow_factory() as uow:
            return await uow.orders.list_all()

    async def can_review(self, account_id: str, product_id: str) -> ReviewEligibility:
        """
        An account may review a product once, and only after receiving it
        in an order whose status is exactly Delivered.

        Raises:
            ProductNotFoundError: Unknown product id
        """
        async with self._uow_factory() as uow:
            if not await uow.reviews.product_exists(product_id):
                raise ProductNotFoundError(product_id=product_id)
            if await uow.reviews.has_reviewed(account_id, product_id):
                return ReviewEligibility(False, ErrorMessages.ALREADY_REVIEWED)
            if not await uow.orders.has_delivered_product(account_id, product_id):
                return ReviewEligibility(False, ErrorMessages.NOT_DELIVERED)
        return ReviewEligibility(True)

    # ==========================================================================
    # STOCK RECONCILIATION
    # ==========================================================================

    @staticmethod
    def _demand(items: Iterable[LineItem]) -> "OrderedDict[str, tuple[LineItem, int]]":
        """Total quantity per product, keyed in first-seen order."""
        demand: "OrderedDict[str, tuple[LineItem, int]]" = OrderedDict()
        for item in items:
            first, qty = demand.get(item.product_id, (item, 0))
            demand[item.product_id] = (first, qty + item.quantity)
        return demand

    async def _check_stock(self, inventory: Inventory, items: Iterable[LineItem]) -> None:
        """
        Read-only availability check.

        Rejects early with a precise message; the decrement in
        ``_reserve_stock`` is what actually guarantees stock.
        """
        for product_id, (item, quantity) in self._demand(items).items():
            available = await inventory.get_stock(product_id)
            if available is None:
                raise ProductNotFoundError(item.name, product_id)
            if available < quantity:
                raise InsufficientStockError(
                    item.name, available, requested=quantity, product_id=product_id
                )

    async def _reserve_stock(self, inventory: Inventory, decision: Decision) -> None:
        """
        Execute ReserveStock effects with compare-and-decrement.

        A refused decrement raises; the surrounding unit of work then
        rolls back earlier decrements and the order write together.
        """
        for reservation in decision.stock_reservations:
            demand: Dict[str, tuple] = self._demand(reservation.items)
            # Fixed product order keeps row locks acquired consistently
            for product_id in sorted(demand):
                item, quantity = demand[product_id]
                if await inventory.decrement_stock(product_id, quantity):
                    continue
                available = await inventory.get_stock(product_id)
                if available is None:
                    raise ProductNotFoundError(item.name, product_id)
                raise InsufficientStockError(
                    item.name, available, requested=quantity, product_id=product_id
                )

    # ==========================================================================
    # NOTIFICATIONS
    # ==========================================================================

    async def _dispatch(self, order: OrderSnapshot, decision: Decision) -> None:
        """Send the decision's notifications; failures are logged only."""
        for notify in decision.notifications:
            recipient = order.owner_email
            if not recipient:
                logger.warning(
                    "No recipient for %s notification on order %s",
                    notify.kind.value,
                    order.id,
                )
                continue
            try:
                await self._notifier.send(notify.kind, order, recipient)
            except Exception:
                logger.warning(
                    "Failed to send %s notification for order %s",
                    notify.kind.value,
                    order.id,
                    exc_info=True,
                )
