# ==============================================================================
# ORDER STATE MACHINE - Pure Transition Functions
# ==============================================================================
# Pending -> Confirmed -> Processing -> Shipped -> Delivered, or Cancelled
# No I/O: every function maps (state, command, now) to a Decision
# ==============================================================================

"""
Order state machine.

States: Pending, Confirmed, Processing, Shipped, Delivered, Cancelled.

| From    | Event                          | To         | Effects                        |
|---------|--------------------------------|------------|--------------------------------|
| -       | place (deferred)               | Pending    | notify confirmation required   |
| -       | place (immediate)              | Processing | reserve stock                  |
| Pending | confirm within window          | Confirmed  | reserve stock, notify          |
| Pending | confirm after window           | Cancelled  | none; caller raises expiry     |
| any     | set status Shipped             | Shipped    | tracking number, notify on entry |
| any     | set status Delivered           | Delivered  | delivered flags, notify on entry |
| any     | set status X                   | X          | none                           |

Administrative status writes are deliberately permissive: any target may
be set from any state.
"""

from __future__ import annotations

from datetime import datetime, timedelta
from typing import Optional

from storefront.core.constants import ErrorMessages
from storefront.core.exceptions import (
    AlreadyConfirmedError,
    BusinessRuleError,
    ConfirmationExpiredError,
    InvalidConfirmationTokenError,
    InvalidOrderError,
)
from storefront.lifecycle.commands import (
    Command,
    ConfirmOrder,
    Decision,
    ExpireOrder,
    MarkPaid,
    Notify,
    PlaceOrder,
    ReserveStock,
    SetStatus,
)
from storefront.lifecycle.identifiers import is_expired, mock_payment_result
from storefront.lifecycle.snapshot import (
    ConfirmationPolicy,
    NotificationKind,
    OrderSnapshot,
    OrderStatus,
)

DEFAULT_CONFIRMATION_WINDOW = timedelta(hours=24)


def place(command: PlaceOrder, now: datetime) -> Decision:
    """Create the initial state for a new order."""
    if not command.items:
        raise InvalidOrderError()

    base = dict(
        id=command.order_id,
        owner_id=command.owner_id,
        owner_email=command.owner_email,
        items=tuple(command.items),
        shipping_address=command.shipping_address,
        payment_method=command.payment_method,
        prices=command.prices,
        created_at=now,
        updated_at=now,
    )

    if command.policy == ConfirmationPolicy.IMMEDIATE:
        order = OrderSnapshot(
            **base,
            status=OrderStatus.PROCESSING,
            is_paid=True,
            paid_at=now,
            payment_result=mock_payment_result(now, command.payment_email),
        )
        return Decision(order=order, effects=(ReserveStock(order.items),))

    if not command.confirmation_token:
        raise ValueError("deferred placement requires a confirmation token")

    order = OrderSnapshot(
        **base,
        status=OrderStatus.PENDING,
        is_confirmed=False,
        confirmation_token=command.confirmation_token,
    )
    return Decision(
        order=order,
        effects=(Notify(NotificationKind.ORDER_CONFIRMATION_REQUIRED),),
    )


def confirm(
    order: OrderSnapshot,
    command: ConfirmOrder,
    now: datetime,
    window: timedelta = DEFAULT_CONFIRMATION_WINDOW,
) -> Decision:
    """
    Redeem the confirmation token of ``order``.

    Raises:
        AlreadyConfirmedError: The token was redeemed before
        InvalidConfirmationTokenError: The order is no longer awaiting confirmation
    """
    if order.is_confirmed:
        raise AlreadyConfirmedError(order_id=order.id)
    if order.status != OrderStatus.PENDING:
        raise InvalidConfirmationTokenError()

    if is_expired(order.created_at, now, window):
        cancelled = order.model_copy(
            update={"status": OrderStatus.CANCELLED, "updated_at": now}
        )
        return Decision(
            order=cancelled,
            rejection=ConfirmationExpiredError(order_id=order.id),
        )

    confirmed = order.model_copy(
        update={
            "status": OrderStatus.CONFIRMED,
            "is_confirmed": True,
            "confirmed_at": now,
            "is_paid": True,
            "paid_at": now,
            "payment_result": mock_payment_result(now, command.payment_email),
            "updated_at": now,
        }
    )
    return Decision(
        order=confirmed,
        effects=(
            ReserveStock(confirmed.items),
            Notify(NotificationKind.ORDER_CONFIRMED),
        ),
    )


def set_status(order: OrderSnapshot, command: SetStatus, now: datetime) -> Decision:
    """Apply an administrative status write and its derived effects."""
    previous = order.status
    target = command.status
    update: dict = {"status": target, "updated_at": now}
    effects = []

    if command.tracking_number:
        update["tracking_number"] = command.tracking_number

    if target == OrderStatus.SHIPPED:
        if not command.tracking_number and not order.tracking_number:
            update["tracking_number"] = command.fallback_tracking_number
        if previous != OrderStatus.SHIPPED:
            effects.append(Notify(NotificationKind.ORDER_SHIPPED))

    elif target == OrderStatus.DELIVERED:
        update["is_delivered"] = True
        update["delivered_at"] = now
        if previous != OrderStatus.DELIVERED:
            effects.append(Notify(NotificationKind.ORDER_DELIVERED))

    return Decision(order=order.model_copy(update=update), effects=tuple(effects))


def mark_paid(order: OrderSnapshot, command: MarkPaid, now: datetime) -> Decision:
    """
    Record a payment result supplied by the payment collaborator.

    Raises:
        BusinessRuleError: The order is cancelled, or still awaiting
            confirmation
    """
    if order.status == OrderStatus.CANCELLED:
        raise BusinessRuleError(
            message=ErrorMessages.PAYMENT_ON_CANCELLED,
            rule="payment_on_cancelled",
        )
    if order.status == OrderStatus.PENDING and not order.is_confirmed:
        raise BusinessRuleError(
            message=ErrorMessages.PAYMENT_REQUIRES_CONFIRMATION,
            rule="payment_requires_confirmation",
        )

    update = {
        "is_paid": True,
        "paid_at": now,
        "payment_result": command.payment,
        "updated_at": now,
    }
    if order.status in (OrderStatus.PENDING, OrderStatus.CONFIRMED):
        update["status"] = OrderStatus.PROCESSING
    return Decision(order=order.model_copy(update=update))


def expire(
    order: OrderSnapshot,
    now: datetime,
    window: timedelta = DEFAULT_CONFIRMATION_WINDOW,
) -> Decision:
    """
    Cancel an unconfirmed order whose window has elapsed.

    Anything else, including an order that is already cancelled,
    yields a decision with ``persist=False``.
    """
    expirable = (
        order.status == OrderStatus.PENDING
        and not order.is_confirmed
        and is_expired(order.created_at, now, window)
    )
    if not expirable:
        return Decision(order=order, persist=False)
    return Decision(
        order=order.model_copy(
            update={"status": OrderStatus.CANCELLED, "updated_at": now}
        )
    )


def decide(
    order: Optional[OrderSnapshot],
    command: Command,
    now: datetime,
    window: timedelta = DEFAULT_CONFIRMATION_WINDOW,
) -> Decision:
    """
    Apply ``command`` to ``order`` and return the resulting Decision.

    ``order`` must be None for PlaceOrder and an existing snapshot for
    every other command.
    """
    if isinstance(command, PlaceOrder):
        if order is not None:
            raise ValueError("PlaceOrder applies to a new order only")
        return place(command, now)

    if order is None:
        raise ValueError(f"{type(command).__name__} requires an existing order")

    if isinstance(command, ConfirmOrder):
        return confirm(order, command, now, window)
    if isinstance(command, SetStatus):
        return set_status(order, command, now)
    if isinstance(command, MarkPaid):
        return mark_paid(order, command, now)
    if isinstance(command, ExpireOrder):
        return expire(order, now, window)

    raise TypeError(f"Unknown command: {command!r}")
