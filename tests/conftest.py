# ==============================================================================
# CONFTEST - Pytest Fixtures and Configuration
# ==============================================================================
# Shared fixtures for all tests: in-memory ports, SQLite adapters, HTTP client
# ==============================================================================

from __future__ import annotations

import asyncio
import os
import sys
from datetime import datetime, timedelta, timezone
from decimal import Decimal
from typing import AsyncGenerator, Callable, Dict, List, Optional, Set, Tuple
from uuid import uuid4

import pytest
import pytest_asyncio
from httpx import ASGITransport, AsyncClient

# Set test environment before importing app
os.environ["ENVIRONMENT"] = "development"
os.environ["DEBUG"] = "false"
os.environ["DATABASE_TYPE"] = "sqlite"
os.environ["SQLITE_URL"] = "sqlite+aiosqlite:///./test_storefront.db"
os.environ["SECRET_KEY"] = "test-secret-key-for-testing-only-32chars!"
os.environ["ORDER_CONFIRMATION_POLICY"] = "deferred"
os.environ["NOTIFICATION_BACKEND"] = "log"
os.environ["FRONTEND_URL"] = "http://shop.test"

# Add app to path
sys.path.insert(0, os.path.dirname(os.path.dirname(os.path.abspath(__file__))))

from storefront.core.exceptions import (  # noqa: E402
    ConcurrentUpdateError,
    NotificationError,
    OrderNotFoundError,
)
from storefront.lifecycle.ports import (  # noqa: E402
    AbstractUnitOfWork,
    Inventory,
    Notifier,
    OrderRepository,
    ReviewLedger,
)
from storefront.lifecycle.snapshot import (  # noqa: E402
    ConfirmationPolicy,
    LineItem,
    NotificationKind,
    OrderSnapshot,
    OrderStatus,
    PriceBreakdown,
    ShippingAddress,
)

TEST_DB_PATH = "./test_storefront.db"
START = datetime(2024, 6, 10, 12, 0, 0, tzinfo=timezone.utc)


# ==============================================================================
# IN-MEMORY PORTS
# ==============================================================================

class InMemoryStore:
    """Shared state behind the fake repositories."""

    def __init__(self) -> None:
        self.stock: Dict[str, int] = {}
        self.orders: Dict[str, OrderSnapshot] = {}
        self.reviews: Set[Tuple[str, str]] = set()
        self.commits = 0
        self.rollbacks = 0


class FakeInventory(Inventory):
    """
    Stock map with atomic compare-and-decrement.

    Each call yields to the event loop first so concurrent callers
    interleave; the check and the write themselves never await.
    """

    def __init__(self, store: InMemoryStore, undo: List[Callable[[], None]]) -> None:
        self._store = store
        self._undo = undo

    async def get_stock(self, product_id: str) -> Optional[int]:
        await asyncio.sleep(0)
        return self._store.stock.get(product_id)

    async def decrement_stock(self, product_id: str, quantity: int) -> bool:
        await asyncio.sleep(0)
        current = self._store.stock.get(product_id)
        if current is None or current < quantity:
            return False
        self._store.stock[product_id] = current - quantity
        self._undo.append(lambda: self._restore(product_id, quantity))
        return True

    def _restore(self, product_id: str, quantity: int) -> None:
        self._store.stock[product_id] += quantity


class FakeOrderRepository(OrderRepository):
    def __init__(self, store: InMemoryStore, undo: List[Callable[[], None]]) -> None:
        self._store = store
        self._undo = undo

    def _put(self, order_id: str, previous: Optional[OrderSnapshot]) -> None:
        if previous is None:
            self._store.orders.pop(order_id, None)
        else:
            self._store.orders[order_id] = previous

    async def add(self, order: OrderSnapshot) -> OrderSnapshot:
        stored = order.model_copy(update={"version": 0})
        self._store.orders[order.id] = stored
        self._undo.append(lambda: self._put(order.id, None))
        return stored

    async def get(self, order_id: str) -> Optional[OrderSnapshot]:
        await asyncio.sleep(0)
        return self._store.orders.get(order_id)

    async def get_by_token(self, token: str) -> Optional[OrderSnapshot]:
        await asyncio.sleep(0)
        for order in self._store.orders.values():
            if order.confirmation_token == token:
                return order
        return None

    async def save(self, order: OrderSnapshot) -> OrderSnapshot:
        await asyncio.sleep(0)
        current = self._store.orders.get(order.id)
        if current is None:
            raise OrderNotFoundError(order.id)
        if current.version != order.version:
            raise ConcurrentUpdateError(resource_id=order.id)
        stored = order.model_copy(update={"version": order.version + 1})
        self._store.orders[order.id] = stored
        self._undo.append(lambda: self._put(order.id, current))
        return stored

    async def list_by_owner(self, owner_id: str) -> List[OrderSnapshot]:
        orders = [o for o in self._store.orders.values() if o.owner_id == owner_id]
        return sorted(orders, key=lambda o: o.created_at, reverse=True)

    async def list_all(self) -> List[OrderSnapshot]:
        return sorted(self._store.orders.values(), key=lambda o: o.created_at, reverse=True)

    async def list_expirable(self, created_before: datetime, limit: int) -> List[OrderSnapshot]:
        orders = [
            o
            for o in self._store.orders.values()
            if o.status == OrderStatus.PENDING
            and not o.is_confirmed
            and o.created_at < created_before
        ]
        return sorted(orders, key=lambda o: o.created_at)[:limit]

    async def has_delivered_product(self, owner_id: str, product_id: str) -> bool:
        return any(
            o.owner_id == owner_id
            and o.status == OrderStatus.DELIVERED
            and o.contains_product(product_id)
            for o in self._store.orders.values()
        )


class FakeReviewLedger(ReviewLedger):
    def __init__(self, store: InMemoryStore) -> None:
        self._store = store

    async def product_exists(self, product_id: str) -> bool:
        return product_id in self._store.stock

    async def has_reviewed(self, account_id: str, product_id: str) -> bool:
        return (account_id, product_id) in self._store.reviews


class FakeUnitOfWork(AbstractUnitOfWork):
    """Writes go straight to the store; rollback replays an undo log."""

    def __init__(self, store: InMemoryStore) -> None:
        self._store = store
        self._undo: List[Callable[[], None]] = []
        self.orders = FakeOrderRepository(store, self._undo)
        self.inventory = FakeInventory(store, self._undo)
        self.reviews = FakeReviewLedger(store)

    async def commit(self) -> None:
        if self._undo:
            self._store.commits += 1
        self._undo.clear()

    async def rollback(self) -> None:
        if self._undo:
            self._store.rollbacks += 1
        while self._undo:
            self._undo.pop()()


class RecordingNotifier(Notifier):
    def __init__(self) -> None:
        self.sent: List[Tuple[NotificationKind, OrderSnapshot, str]] = []
        self.closed = False

    @property
    def kinds(self) -> List[NotificationKind]:
        return [kind for kind, _, _ in self.sent]

    def last_order(self, kind: NotificationKind) -> OrderSnapshot:
        for sent_kind, order, _ in reversed(self.sent):
            if sent_kind == kind:
                return order
        raise AssertionError(f"no {kind.value} notification sent")

    async def send(self, kind: NotificationKind, order: OrderSnapshot, recipient: str) -> None:
        self.sent.append((kind, order, recipient))

    async def close(self) -> None:
        self.closed = True


class FailingNotifier(Notifier):
    def __init__(self) -> None:
        self.attempts = 0

    async def send(self, kind: NotificationKind, order: OrderSnapshot, recipient: str) -> None:
        self.attempts += 1
        raise NotificationError("mail relay down", kind=kind.value)


class MutableClock:
    """Callable clock the tests move forward explicitly."""

    def __init__(self, now: datetime = START) -> None:
        self.now = now

    def __call__(self) -> datetime:
        return self.now

    def advance(self, **kwargs: float) -> datetime:
        self.now = self.now + timedelta(**kwargs)
        return self.now


# ==============================================================================
# DOMAIN HELPERS
# ==============================================================================

ADDRESS = ShippingAddress(
    address="1 Market Street",
    city="Springfield",
    postal_code="12345",
    country="US",
)


def line(product_id: str, quantity: int, price: str = "10.00", name: Optional[str] = None) -> LineItem:
    return LineItem(
        product_id=product_id,
        name=name or f"Product {product_id}",
        quantity=quantity,
        unit_price=Decimal(price),
    )


def prices_for(*items: LineItem) -> PriceBreakdown:
    items_price = sum((item.line_total for item in items), Decimal("0"))
    return PriceBreakdown(
        items_price=items_price,
        tax_price=Decimal("0"),
        shipping_price=Decimal("0"),
        total_price=items_price,
    )


# ==============================================================================
# ENGINE FIXTURES
# ==============================================================================

@pytest.fixture
def store() -> InMemoryStore:
    return InMemoryStore()


@pytest.fixture
def clock() -> MutableClock:
    return MutableClock()


@pytest.fixture
def notifier() -> RecordingNotifier:
    return RecordingNotifier()


@pytest.fixture
def make_engine(store: InMemoryStore, clock: MutableClock, notifier: RecordingNotifier):
    """Build an engine over the in-memory store."""
    from storefront.services.order_engine import OrderLifecycleEngine

    def _make(
        policy: ConfirmationPolicy = ConfirmationPolicy.DEFERRED,
        notifier_override: Optional[Notifier] = None,
        window: timedelta = timedelta(hours=24),
    ) -> OrderLifecycleEngine:
        return OrderLifecycleEngine(
            lambda: FakeUnitOfWork(store),
            notifier_override or notifier,
            policy=policy,
            confirmation_window=window,
            clock=clock,
        )

    return _make


@pytest.fixture
def deferred_engine(make_engine):
    return make_engine(ConfirmationPolicy.DEFERRED)


@pytest.fixture
def immediate_engine(make_engine):
    return make_engine(ConfirmationPolicy.IMMEDIATE)


@pytest.fixture
def failing_notifier() -> FailingNotifier:
    return FailingNotifier()


# ==============================================================================
# SQL FIXTURES
# ==============================================================================

@pytest_asyncio.fixture
async def sql_adapter(tmp_path) -> AsyncGenerator:
    """Connected SQLite adapter on a throwaway database file."""
    from storefront.database.adapters.sql_adapter import SQLAlchemyAdapter

    adapter = SQLAlchemyAdapter(f"sqlite+aiosqlite:///{tmp_path / 'storefront.db'}")
    await adapter.connect()
    yield adapter
    await adapter.disconnect()


@pytest_asyncio.fixture
async def seed_product(sql_adapter):
    """Insert a catalog product and return its id."""
    from storefront.domain_models.product import Product

    async def _seed(stock: int, name: str = "Widget", price: str = "10.00") -> str:
        product = Product(name=name, price=Decimal(price), stock=stock)
        async with sql_adapter.session() as session:
            session.add(product)
        return product.id

    return _seed


# ==============================================================================
# HTTP CLIENT FIXTURES
# ==============================================================================

def _remove_test_db() -> None:
    if os.path.exists(TEST_DB_PATH):
        try:
            os.remove(TEST_DB_PATH)
        except (PermissionError, OSError):
            pass


@pytest_asyncio.fixture
async def client(notifier: RecordingNotifier) -> AsyncGenerator[AsyncClient, None]:
    """Create async HTTP client wired to a fresh SQLite database."""
    from storefront.database.factory import DatabaseFactory
    from storefront.database.unit_of_work.uow import SQLUnitOfWork
    from storefront.main import app
    from storefront.services.order_engine import OrderLifecycleEngine

    DatabaseFactory.reset()
    _remove_test_db()

    adapter = await DatabaseFactory.initialize()
    app.state.order_engine = OrderLifecycleEngine(
        SQLUnitOfWork.factory(adapter),
        notifier,
        policy=ConfirmationPolicy.DEFERRED,
    )

    transport = ASGITransport(app=app)
    async with AsyncClient(
        transport=transport,
        base_url="http://test",
        timeout=30.0,
    ) as async_client:
        yield async_client

    app.state.order_engine = None
    await DatabaseFactory.shutdown()
    DatabaseFactory.reset()
    _remove_test_db()


@pytest_asyncio.fixture
async def api_product():
    """Insert a catalog product through the factory adapter."""
    from storefront.database.factory import DatabaseFactory
    from storefront.domain_models.product import Product

    async def _create(stock: int, name: str = "Widget", price: str = "25.00") -> str:
        product = Product(name=name, price=Decimal(price), stock=stock)
        async with DatabaseFactory.get_adapter().session() as session:
            session.add(product)
        return product.id

    return _create


def bearer(account_id: Optional[str] = None, email: Optional[str] = None, role: str = "customer") -> dict:
    """Authorization header for a freshly minted access token."""
    from storefront.core.security import create_access_token

    account_id = account_id or f"acct-{uuid4().hex[:8]}"
    claims = {"role": role}
    if email:
        claims["email"] = email
    token = create_access_token(subject=account_id, additional_claims=claims)
    return {"Authorization": f"Bearer {token}"}


@pytest.fixture
def customer() -> Tuple[str, dict]:
    account_id = f"cust-{uuid4().hex[:8]}"
    return account_id, bearer(account_id, email=f"{account_id}@example.com")


@pytest.fixture
def admin_headers() -> dict:
    return bearer("admin-1", email="admin@example.com", role="admin")


@pytest.fixture
def sample_order_payload() -> Callable[..., dict]:
    """Checkout body in the storefront's camelCase shape."""

    def _payload(product_id: str, quantity: int = 1, price: str = "25.00") -> dict:
        total = str(Decimal(price) * quantity)
        return {
            "orderItems": [
                {
                    "product": product_id,
                    "name": "Widget",
                    "quantity": quantity,
                    "price": price,
                    "image": "/img/widget.png",
                }
            ],
            "shippingAddress": {
                "address": "1 Market Street",
                "city": "Springfield",
                "postalCode": "12345",
                "country": "US",
            },
            "paymentMethod": "Card",
            "itemsPrice": total,
            "taxPrice": "0",
            "shippingPrice": "0",
            "totalPrice": total,
        }

    return _payload
