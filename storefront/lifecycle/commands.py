# ==============================================================================
# LIFECYCLE COMMANDS & EFFECTS
# ==============================================================================
# Tagged inputs to the state machine and the side-effect intents it emits
# ==============================================================================

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Optional, Tuple, Union

from storefront.core.exceptions import AppException
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


# ==============================================================================
# COMMANDS
# ==============================================================================

@dataclass(frozen=True)
class PlaceOrder:
    """
    Create a new order.

    ``order_id`` and ``confirmation_token`` are generated by the caller
    so the transition itself stays deterministic. The token is ignored
    under the immediate policy.
    """

    order_id: str
    owner_id: str
    items: Tuple[LineItem, ...]
    shipping_address: ShippingAddress
    payment_method: str
    prices: PriceBreakdown
    policy: ConfirmationPolicy
    payment_email: str
    owner_email: Optional[str] = None
    confirmation_token: Optional[str] = None


@dataclass(frozen=True)
class ConfirmOrder:
    payment_email: str


@dataclass(frozen=True)
class SetStatus:
    """
    Administrative or carrier-driven status write.

    ``fallback_tracking_number`` is used only when the target is Shipped,
    no tracking number is supplied and the order has none yet.
    """

    status: OrderStatus
    fallback_tracking_number: str
    tracking_number: Optional[str] = None


@dataclass(frozen=True)
class MarkPaid:
    payment: PaymentResult


@dataclass(frozen=True)
class ExpireOrder:
    pass


Command = Union[PlaceOrder, ConfirmOrder, SetStatus, MarkPaid, ExpireOrder]


# ==============================================================================
# EFFECTS
# ==============================================================================

@dataclass(frozen=True)
class ReserveStock:
    """Decrement stock for every line; all or nothing."""

    items: Tuple[LineItem, ...]


@dataclass(frozen=True)
class Notify:
    """Best-effort notification to the order's owner."""

    kind: NotificationKind


Effect = Union[ReserveStock, Notify]


# ==============================================================================
# DECISION
# ==============================================================================

@dataclass(frozen=True)
class Decision:
    """
    Outcome of applying one command.

    Attributes:
        order: State to persist
        effects: Intents the caller executes; stock inside the
            transaction, notifications after commit
        rejection: Error to raise after ``order`` has been persisted
        persist: False when the command was a no-op
    """

    order: OrderSnapshot
    effects: Tuple[Effect, ...] = field(default_factory=tuple)
    rejection: Optional[AppException] = None
    persist: bool = True

    @property
    def stock_reservations(self) -> Tuple[ReserveStock, ...]:
        return tuple(e for e in self.effects if isinstance(e, ReserveStock))

    @property
    def notifications(self) -> Tuple[Notify, ...]:
        return tuple(e for e in self.effects if isinstance(e, Notify))
