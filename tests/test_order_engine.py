# ==============================================================================
# ORDER ENGINE TESTS
# ==============================================================================
# Engine behaviour over in-memory ports: stock, tokens, expiry, notifications
# ==============================================================================

import asyncio
import logging
from decimal import Decimal

import pytest

from conftest import ADDRESS, START, line, prices_for
from storefront.core.constants import ErrorMessages
from storefront.core.exceptions import (
    AlreadyConfirmedError,
    ConfirmationExpiredError,
    InsufficientStockError,
    InvalidConfirmationTokenError,
    InvalidOrderError,
    OrderAccessDeniedError,
    OrderNotFoundError,
    ProductNotFoundError,
)
from storefront.lifecycle.snapshot import (
    NotificationKind,
    OrderStatus,
    PaymentResult,
    PriceBreakdown,
)
from storefront.services.order_expiry import OrderExpirySweeper

CONFIRMATION_REQUIRED = NotificationKind.ORDER_CONFIRMATION_REQUIRED


async def place(engine, *items, owner="acct-1", email="buyer@example.com", prices=None):
    items = items or (line("P1", 1),)
    return await engine.place_order(
        owner_id=owner,
        items=items,
        shipping_address=ADDRESS,
        payment_method="Card",
        prices=prices or prices_for(*items),
        owner_email=email,
    )


def token_of(notifier, order_id=None):
    """Confirmation tokens only ever leave the engine through the notifier."""
    for kind, order, _ in reversed(notifier.sent):
        if kind == CONFIRMATION_REQUIRED and (order_id is None or order.id == order_id):
            return order.confirmation_token
    raise AssertionError("no confirmation request sent")


SCENARIO_PRICES = PriceBreakdown(
    items_price=Decimal("20.00"),
    tax_price=Decimal("2.00"),
    shipping_price=Decimal("5.00"),
    total_price=Decimal("27.00"),
)


class TestPlaceOrder:
    """Tests for checkout under both policies."""

    @pytest.mark.asyncio
    async def test_immediate_checkout_scenario(self, store, immediate_engine, notifier):
        store.stock["P1"] = 5

        order = await place(immediate_engine, line("P1", 2), prices=SCENARIO_PRICES)

        assert order.status == OrderStatus.PROCESSING
        assert order.is_paid is True
        assert order.prices.total_price == Decimal("27.00")
        assert store.stock["P1"] == 3
        assert store.orders[order.id].status == OrderStatus.PROCESSING
        assert notifier.sent == []

    @pytest.mark.asyncio
    async def test_deferred_then_confirm_scenario(self, store, deferred_engine, notifier, clock):
        store.stock["P1"] = 5

        placed = await place(deferred_engine, line("P1", 2), prices=SCENARIO_PRICES)
        assert placed.status == OrderStatus.PENDING
        assert placed.is_confirmed is False
        assert placed.confirmation_token
        assert store.stock["P1"] == 5

        clock.advance(hours=2)
        confirmed = await deferred_engine.confirm_order(token_of(notifier))

        assert confirmed.status == OrderStatus.CONFIRMED
        assert confirmed.is_paid is True
        assert store.stock["P1"] == 3
        assert notifier.kinds.count(NotificationKind.ORDER_CONFIRMED) == 1

    @pytest.mark.asyncio
    async def test_deferred_checkout_sends_confirmation_request(self, store, deferred_engine, notifier):
        store.stock["P1"] = 5

        order = await place(deferred_engine, email="buyer@example.com")

        assert notifier.kinds == [CONFIRMATION_REQUIRED]
        kind, sent_order, recipient = notifier.sent[0]
        assert recipient == "buyer@example.com"
        assert sent_order.id == order.id

    @pytest.mark.asyncio
    async def test_each_call_creates_a_new_order_and_decrements_once(self, store, immediate_engine):
        store.stock["P1"] = 10

        first = await place(immediate_engine, line("P1", 3))
        second = await place(immediate_engine, line("P1", 3))

        assert first.id != second.id
        assert store.stock["P1"] == 4
        assert len(store.orders) == 2

    @pytest.mark.asyncio
    async def test_empty_items_rejected(self, store, deferred_engine):
        with pytest.raises(InvalidOrderError):
            await deferred_engine.place_order("acct-1", [], ADDRESS, "Card", prices_for(line("P1", 1)))

        assert store.orders == {}

    @pytest.mark.asyncio
    async def test_unknown_product_rejected(self, store, immediate_engine):
        with pytest.raises(ProductNotFoundError) as exc_info:
            await place(immediate_engine, line("ghost", 1, name="Ghost Lamp"))

        assert exc_info.value.message == "Product Ghost Lamp not found"
        assert exc_info.value.status_code == 404
        assert store.orders == {}

    @pytest.mark.asyncio
    async def test_insufficient_stock_names_item_and_availability(self, store, deferred_engine, notifier):
        store.stock["P1"] = 1

        with pytest.raises(InsufficientStockError) as exc_info:
            await place(deferred_engine, line("P1", 2, name="Widget"))

        assert exc_info.value.message == "Insufficient stock for Widget. Available: 1"
        assert exc_info.value.available == 1
        assert store.orders == {}
        assert notifier.sent == []

    @pytest.mark.asyncio
    async def test_duplicate_lines_are_checked_together(self, store, immediate_engine):
        store.stock["P1"] = 3

        with pytest.raises(InsufficientStockError) as exc_info:
            await place(immediate_engine, line("P1", 2), line("P1", 2))

        assert exc_info.value.requested == 4
        assert store.stock["P1"] == 3

    @pytest.mark.asyncio
    async def test_multi_product_immediate_checkout(self, store, immediate_engine):
        store.stock.update({"P1": 5, "P2": 2})

        await place(immediate_engine, line("P2", 2), line("P1", 1), line("P1", 1))

        assert store.stock == {"P1": 3, "P2": 0}


class TestConfirmOrder:
    """Tests for confirmation token redemption."""

    @pytest.mark.asyncio
    async def test_confirm_twice(self, store, deferred_engine, notifier):
        store.stock["P1"] = 5
        await place(deferred_engine, line("P1", 2))
        token = token_of(notifier)

        await deferred_engine.confirm_order(token)
        with pytest.raises(AlreadyConfirmedError):
            await deferred_engine.confirm_order(token)

        (order,) = store.orders.values()
        assert order.status == OrderStatus.CONFIRMED
        assert store.stock["P1"] == 3

    @pytest.mark.asyncio
    async def test_simultaneous_redemptions_of_one_token(self, store, deferred_engine, notifier):
        store.stock["P1"] = 5
        await place(deferred_engine, line("P1", 1))
        token = token_of(notifier)

        results = await asyncio.gather(
            deferred_engine.confirm_order(token),
            deferred_engine.confirm_order(token),
            return_exceptions=True,
        )

        failures = [r for r in results if isinstance(r, Exception)]
        assert len(failures) == 1
        assert isinstance(failures[0], AlreadyConfirmedError)
        assert store.stock["P1"] == 4
        assert notifier.kinds.count(NotificationKind.ORDER_CONFIRMED) == 1

    @pytest.mark.asyncio
    async def test_unknown_token(self, deferred_engine):
        with pytest.raises(InvalidConfirmationTokenError):
            await deferred_engine.confirm_order("not-a-token")

    @pytest.mark.asyncio
    async def test_empty_token(self, deferred_engine):
        with pytest.raises(InvalidConfirmationTokenError):
            await deferred_engine.confirm_order("")

    @pytest.mark.asyncio
    async def test_expired_token_cancels_order(self, store, deferred_engine, notifier, clock):
        store.stock["P1"] = 5
        placed = await place(deferred_engine, line("P1", 2))
        token = token_of(notifier)

        clock.advance(hours=24, seconds=1)
        with pytest.raises(ConfirmationExpiredError):
            await deferred_engine.confirm_order(token)

        assert store.orders[placed.id].status == OrderStatus.CANCELLED
        assert store.stock["P1"] == 5

        with pytest.raises(InvalidConfirmationTokenError):
            await deferred_engine.confirm_order(token)
        assert notifier.kinds == [CONFIRMATION_REQUIRED]

    @pytest.mark.asyncio
    async def test_confirm_at_window_boundary(self, store, deferred_engine, notifier, clock):
        store.stock["P1"] = 1
        await place(deferred_engine)

        clock.advance(hours=24)
        confirmed = await deferred_engine.confirm_order(token_of(notifier))

        assert confirmed.status == OrderStatus.CONFIRMED

    @pytest.mark.asyncio
    async def test_insufficient_stock_leaves_order_pending(self, store, deferred_engine, notifier):
        store.stock["P1"] = 5
        placed = await place(deferred_engine, line("P1", 4, name="Widget"))
        store.stock["P1"] = 2

        with pytest.raises(InsufficientStockError) as exc_info:
            await deferred_engine.confirm_order(token_of(notifier))

        assert exc_info.value.message == "Insufficient stock for Widget. Available: 2"
        order = store.orders[placed.id]
        assert order.status == OrderStatus.PENDING
        assert order.is_confirmed is False
        assert store.stock["P1"] == 2

    @pytest.mark.asyncio
    async def test_concurrent_confirmations_for_last_unit(self, store, deferred_engine, notifier):
        store.stock["P1"] = 1
        first = await place(deferred_engine, line("P1", 1), owner="acct-a")
        second = await place(deferred_engine, line("P1", 1), owner="acct-b")

        results = await asyncio.gather(
            deferred_engine.confirm_order(token_of(notifier, first.id)),
            deferred_engine.confirm_order(token_of(notifier, second.id)),
            return_exceptions=True,
        )

        successes = [r for r in results if not isinstance(r, Exception)]
        failures = [r for r in results if isinstance(r, Exception)]
        assert len(successes) == 1
        assert len(failures) == 1
        assert isinstance(failures[0], InsufficientStockError)
        assert store.stock["P1"] == 0

        statuses = sorted(o.status.value for o in store.orders.values())
        assert statuses == [OrderStatus.CONFIRMED.value, OrderStatus.PENDING.value]

    @pytest.mark.asyncio
    async def test_partial_reservation_is_rolled_back(self, store, deferred_engine, notifier):
        store.stock.update({"P1": 1, "P2": 1})
        both = await place(deferred_engine, line("P1", 1), line("P2", 1))
        only_p2 = await place(deferred_engine, line("P2", 1))

        results = await asyncio.gather(
            deferred_engine.confirm_order(token_of(notifier, both.id)),
            deferred_engine.confirm_order(token_of(notifier, only_p2.id)),
            return_exceptions=True,
        )

        assert sum(not isinstance(r, Exception) for r in results) == 1
        assert store.stock["P2"] == 0
        if store.orders[both.id].status == OrderStatus.CONFIRMED:
            assert store.stock["P1"] == 0
            assert store.orders[only_p2.id].status == OrderStatus.PENDING
        else:
            assert store.stock["P1"] == 1
            assert store.orders[both.id].status == OrderStatus.PENDING
            assert store.orders[only_p2.id].status == OrderStatus.CONFIRMED


class TestNotifications:
    """Notification failures never fail the operation."""

    @pytest.mark.asyncio
    async def test_failing_notifier_is_logged_not_raised(
        self, store, make_engine, failing_notifier, caplog
    ):
        store.stock["P1"] = 5
        engine = make_engine(notifier_override=failing_notifier)

        with caplog.at_level(logging.WARNING, logger="storefront.services.order_engine"):
            order = await place(engine)

        assert failing_notifier.attempts == 1
        assert store.orders[order.id].status == OrderStatus.PENDING
        assert any("Failed to send" in r.getMessage() for r in caplog.records)

    @pytest.mark.asyncio
    async def test_failing_notifier_on_confirm(self, store, make_engine, failing_notifier):
        store.stock["P1"] = 5
        engine = make_engine(notifier_override=failing_notifier)
        order = await place(engine)
        token = store.orders[order.id].confirmation_token

        confirmed = await engine.confirm_order(token)

        assert confirmed.status == OrderStatus.CONFIRMED
        assert store.stock["P1"] == 4
        assert failing_notifier.attempts == 2

    @pytest.mark.asyncio
    async def test_missing_email_skips_notification(self, store, deferred_engine, notifier, caplog):
        store.stock["P1"] = 5

        with caplog.at_level(logging.WARNING, logger="storefront.services.order_engine"):
            order = await place(deferred_engine, email=None)

        assert notifier.sent == []
        assert order.status == OrderStatus.PENDING
        assert any("No recipient" in r.getMessage() for r in caplog.records)


class TestUpdateStatus:
    """Tests for administrative status changes."""

    @pytest.mark.asyncio
    async def test_ship_generates_tracking_number(self, store, immediate_engine, notifier):
        store.stock["P1"] = 5
        order = await place(immediate_engine)

        shipped = await immediate_engine.update_status(order.id, OrderStatus.SHIPPED)

        assert shipped.status == OrderStatus.SHIPPED
        assert shipped.tracking_number.startswith("TRK")
        assert notifier.kinds == [NotificationKind.ORDER_SHIPPED]

    @pytest.mark.asyncio
    async def test_reship_keeps_tracking_and_is_silent(self, store, immediate_engine, notifier):
        store.stock["P1"] = 5
        order = await place(immediate_engine)

        first = await immediate_engine.update_status(order.id, OrderStatus.SHIPPED, "UPS-42")
        second = await immediate_engine.update_status(order.id, OrderStatus.SHIPPED)

        assert first.tracking_number == "UPS-42"
        assert second.tracking_number == "UPS-42"
        assert notifier.kinds == [NotificationKind.ORDER_SHIPPED]

    @pytest.mark.asyncio
    async def test_deliver(self, store, immediate_engine, notifier, clock):
        store.stock["P1"] = 5
        order = await place(immediate_engine)

        now = clock.advance(days=3)
        delivered = await immediate_engine.update_status(order.id, OrderStatus.DELIVERED)

        assert delivered.is_delivered is True
        assert delivered.delivered_at == now
        assert notifier.kinds == [NotificationKind.ORDER_DELIVERED]

    @pytest.mark.asyncio
    async def test_unknown_order(self, immediate_engine):
        with pytest.raises(OrderNotFoundError):
            await immediate_engine.update_status("missing", OrderStatus.SHIPPED)


class TestMarkPaid:
    """Tests for recording payment results."""

    PAYMENT = PaymentResult(id="PAY-1", status="COMPLETED", email_address="payer@example.com")

    @pytest.mark.asyncio
    async def test_owner_records_payment(self, store, deferred_engine, notifier):
        store.stock["P1"] = 5
        order = await place(deferred_engine, owner="acct-1")
        await deferred_engine.confirm_order(token_of(notifier))

        paid = await deferred_engine.mark_paid("acct-1", order.id, self.PAYMENT)

        assert paid.status == OrderStatus.PROCESSING
        assert paid.payment_result.id == "PAY-1"

    @pytest.mark.asyncio
    async def test_other_account_denied(self, store, immediate_engine):
        store.stock["P1"] = 5
        order = await place(immediate_engine, owner="acct-1")

        with pytest.raises(OrderAccessDeniedError):
            await immediate_engine.mark_paid("acct-2", order.id, self.PAYMENT)

    @pytest.mark.asyncio
    async def test_unknown_order(self, immediate_engine):
        with pytest.raises(OrderNotFoundError):
            await immediate_engine.mark_paid("acct-1", "missing", self.PAYMENT, is_admin=True)


class TestQueries:
    """Tests for order reads and review eligibility."""

    @pytest.mark.asyncio
    async def test_get_order_access(self, store, immediate_engine):
        store.stock["P1"] = 5
        order = await place(immediate_engine, owner="acct-1")

        assert (await immediate_engine.get_order("acct-1", order.id)).id == order.id
        assert (await immediate_engine.get_order("admin", order.id, is_admin=True)).id == order.id
        with pytest.raises(OrderAccessDeniedError):
            await immediate_engine.get_order("acct-2", order.id)
        with pytest.raises(OrderNotFoundError):
            await immediate_engine.get_order("acct-1", "missing")

    @pytest.mark.asyncio
    async def test_lists_are_newest_first(self, store, immediate_engine, clock):
        store.stock["P1"] = 10
        older = await place(immediate_engine, owner="acct-1")
        clock.advance(minutes=5)
        newer = await place(immediate_engine, owner="acct-1")
        clock.advance(minutes=5)
        other = await place(immediate_engine, owner="acct-2")

        mine = await immediate_engine.list_my_orders("acct-1")
        everything = await immediate_engine.list_all_orders()

        assert [o.id for o in mine] == [newer.id, older.id]
        assert [o.id for o in everything] == [other.id, newer.id, older.id]

    @pytest.mark.asyncio
    async def test_can_review_requires_delivery(self, store, immediate_engine):
        store.stock["P1"] = 5
        order = await place(immediate_engine, owner="acct-1")

        before = await immediate_engine.can_review("acct-1", "P1")
        await immediate_engine.update_status(order.id, OrderStatus.SHIPPED)
        shipped = await immediate_engine.can_review("acct-1", "P1")
        await immediate_engine.update_status(order.id, OrderStatus.DELIVERED)
        after = await immediate_engine.can_review("acct-1", "P1")

        assert before.can_review is False
        assert before.reason == ErrorMessages.NOT_DELIVERED
        assert shipped.can_review is False
        assert after.can_review is True
        assert after.reason is None

    @pytest.mark.asyncio
    async def test_can_review_once_per_account(self, store, immediate_engine):
        store.stock["P1"] = 5
        order = await place(immediate_engine, owner="acct-1")
        await immediate_engine.update_status(order.id, OrderStatus.DELIVERED)
        store.reviews.add(("acct-1", "P1"))

        result = await immediate_engine.can_review("acct-1", "P1")
        stranger = await immediate_engine.can_review("acct-2", "P1")

        assert result.can_review is False
        assert result.reason == ErrorMessages.ALREADY_REVIEWED
        assert stranger.can_review is False

    @pytest.mark.asyncio
    async def test_can_review_unknown_product(self, immediate_engine):
        with pytest.raises(ProductNotFoundError):
            await immediate_engine.can_review("acct-1", "ghost")


class TestExpiry:
    """Tests for the stale-order sweep."""

    @pytest.mark.asyncio
    async def test_sweep_cancels_only_stale_pending_orders(self, store, deferred_engine, notifier, clock):
        store.stock["P1"] = 10
        stale = await place(deferred_engine)
        confirmed = await place(deferred_engine)
        await deferred_engine.confirm_order(token_of(notifier, confirmed.id))
        clock.advance(hours=20)
        fresh = await place(deferred_engine)

        clock.advance(hours=5)
        cancelled = await deferred_engine.expire_stale_orders()

        assert cancelled == 1
        assert store.orders[stale.id].status == OrderStatus.CANCELLED
        assert store.orders[confirmed.id].status == OrderStatus.CONFIRMED
        assert store.orders[fresh.id].status == OrderStatus.PENDING

    @pytest.mark.asyncio
    async def test_sweep_is_idempotent(self, store, deferred_engine, clock):
        store.stock["P1"] = 5
        await place(deferred_engine)
        clock.advance(days=2)

        assert await deferred_engine.expire_stale_orders() == 1
        assert await deferred_engine.expire_stale_orders() == 0

    @pytest.mark.asyncio
    async def test_swept_token_can_no_longer_confirm(self, store, deferred_engine, notifier, clock):
        store.stock["P1"] = 5
        await place(deferred_engine)
        clock.advance(days=2)
        await deferred_engine.expire_stale_orders()

        with pytest.raises(InvalidConfirmationTokenError):
            await deferred_engine.confirm_order(token_of(notifier))
        assert store.stock["P1"] == 5

    @pytest.mark.asyncio
    async def test_sweeper_run_once(self, store, deferred_engine, clock):
        store.stock["P1"] = 5
        await place(deferred_engine)
        clock.advance(days=2)

        sweeper = OrderExpirySweeper(deferred_engine, interval_seconds=60)

        assert await sweeper.run_once() == 1

    @pytest.mark.asyncio
    async def test_sweeper_start_stop(self, deferred_engine):
        sweeper = OrderExpirySweeper(deferred_engine, interval_seconds=60)

        await sweeper.start()
        assert sweeper.is_running is True
        await asyncio.sleep(0)
        await sweeper.stop()

        assert sweeper.is_running is False

    def test_sweeper_rejects_bad_interval(self, deferred_engine):
        with pytest.raises(ValueError):
            OrderExpirySweeper(deferred_engine, interval_seconds=0)
