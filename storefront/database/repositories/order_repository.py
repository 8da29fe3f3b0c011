# ==============================================================================
# ORDER REPOSITORY - SQL Persistence for Order Snapshots
# ==============================================================================

from __future__ import annotations

from datetime import datetime
from typing import Any, Dict, List, Optional

from sqlalchemy import select, update

from storefront.core.exceptions import ConcurrentUpdateError, OrderNotFoundError
from storefront.database.repositories.base_repository import BaseRepository
from storefront.domain_models.order import Order, OrderItem
from storefront.lifecycle.ports import OrderRepository
from storefront.lifecycle.snapshot import (
    LineItem,
    OrderSnapshot,
    OrderStatus,
    PaymentResult,
    PriceBreakdown,
    ShippingAddress,
)
from storefront.utils.helpers import ensure_utc


class SQLOrderRepository(BaseRepository[Order, OrderSnapshot], OrderRepository):
    """
    Orders stored in the ``orders`` and ``order_items`` tables.

    Line items are written once at insert and never updated. ``save``
    rewrites the order row under a version check:

        UPDATE orders SET ..., version = v + 1 WHERE id = :id AND version = v
    """

    model = Order

    # ==========================================================================
    # MAPPING
    # ==========================================================================

    def _to_entity(self, row: Order) -> OrderSnapshot:
        payment = None
        if any((row.payment_id, row.payment_status, row.payment_update_time, row.payment_email)):
            payment = PaymentResult(
                id=row.payment_id,
                status=row.payment_status,
                update_time=row.payment_update_time,
                email_address=row.payment_email,
            )

        return OrderSnapshot(
            id=row.id,
            owner_id=row.owner_id,
            owner_email=row.owner_email,
            items=tuple(
                LineItem(
                    product_id=item.product_id,
                    name=item.name,
                    quantity=item.quantity,
                    unit_price=item.unit_price,
                    image=item.image,
                )
                for item in row.items
            ),
            shipping_address=ShippingAddress(
                address=row.shipping_address,
                city=row.shipping_city,
                postal_code=row.shipping_postal_code,
                country=row.shipping_country,
            ),
            payment_method=row.payment_method,
            prices=PriceBreakdown(
                items_price=row.items_price,
                tax_price=row.tax_price,
                shipping_price=row.shipping_price,
                total_price=row.total_price,
            ),
            status=row.status,
            is_confirmed=row.is_confirmed,
            confirmation_token=row.confirmation_token,
            confirmed_at=ensure_utc(row.confirmed_at),
            is_paid=row.is_paid,
            paid_at=ensure_utc(row.paid_at),
            payment_result=payment,
            is_delivered=row.is_delivered,
            delivered_at=ensure_utc(row.delivered_at),
            tracking_number=row.tracking_number,
            created_at=ensure_utc(row.created_at),
            updated_at=ensure_utc(row.updated_at),
            version=row.version,
        )

    @staticmethod
    def _columns(order: OrderSnapshot) -> Dict[str, Any]:
        """Mutable order columns; items and identity are excluded."""
        payment = order.payment_result
        return {
            "owner_email": order.owner_email,
            "status": order.status,
            "is_confirmed": order.is_confirmed,
            "confirmation_token": order.confirmation_token,
            "confirmed_at": order.confirmed_at,
            "is_paid": order.is_paid,
            "paid_at": order.paid_at,
            "payment_id": payment.id if payment else None,
            "payment_status": payment.status if payment else None,
            "payment_update_time": payment.update_time if payment else None,
            "payment_email": payment.email_address if payment else None,
            "is_delivered": order.is_delivered,
            "delivered_at": order.delivered_at,
            "tracking_number": order.tracking_number,
            "updated_at": order.updated_at or order.created_at,
        }

    # ==========================================================================
    # WRITES
    # ==========================================================================

    async def add(self, order: OrderSnapshot) -> OrderSnapshot:
        row = Order(
            id=order.id,
            owner_id=order.owner_id,
            shipping_address=order.shipping_address.address,
            shipping_city=order.shipping_address.city,
            shipping_postal_code=order.shipping_address.postal_code,
            shipping_country=order.shipping_address.country,
            payment_method=order.payment_method,
            items_price=order.prices.items_price,
            tax_price=order.prices.tax_price,
            shipping_price=order.prices.shipping_price,
            total_price=order.prices.total_price,
            created_at=order.created_at,
            version=0,
            **self._columns(order),
        )
        row.items = [
            OrderItem(
                position=position,
                product_id=item.product_id,
                name=item.name,
                quantity=item.quantity,
                unit_price=item.unit_price,
                image=item.image,
            )
            for position, item in enumerate(order.items)
        ]
        self._session.add(row)
        await self._session.flush()
        return order.model_copy(update={"version": 0})

    async def save(self, order: OrderSnapshot) -> OrderSnapshot:
        next_version = order.version + 1
        result = await self._session.execute(
            update(Order)
            .where(Order.id == order.id, Order.version == order.version)
            .values(version=next_version, **self._columns(order))
            .execution_options(synchronize_session=False)
        )
        if result.rowcount != 1:
            if not await self.exists(order.id):
                raise OrderNotFoundError(order.id)
            raise ConcurrentUpdateError(
                message=f"Order {order.id} was modified concurrently",
                resource_id=order.id,
            )
        return order.model_copy(update={"version": next_version})

    # ==========================================================================
    # READS
    # ==========================================================================

    async def get(self, order_id: str) -> Optional[OrderSnapshot]:
        result = await self._session.execute(
            select(Order).where(Order.id == order_id)
        )
        row = result.scalar_one_or_none()
        return self._to_entity(row) if row is not None else None

    async def get_by_token(self, token: str) -> Optional[OrderSnapshot]:
        result = await self._session.execute(
            select(Order).where(Order.confirmation_token == token)
        )
        row = result.scalar_one_or_none()
        return self._to_entity(row) if row is not None else None

    async def list_by_owner(self, owner_id: str) -> List[OrderSnapshot]:
        result = await self._session.execute(
            select(Order)
            .where(Order.owner_id == owner_id)
            .order_by(Order.created_at.desc())
        )
        return self._to_entities(result.scalars().all())

    async def list_all(self) -> List[OrderSnapshot]:
        result = await self._session.execute(
            select(Order).order_by(Order.created_at.desc())
        )
        return self._to_entities(result.scalars().all())

    async def list_expirable(
        self,
        created_before: datetime,
        limit: int,
    ) -> List[OrderSnapshot]:
        result = await self._session.execute(
            select(Order)
            .where(
                Order.status == OrderStatus.PENDING,
                Order.is_confirmed.is_(False),
                Order.created_at < created_before,
            )
            .order_by(Order.created_at)
            .limit(limit)
        )
        return self._to_entities(result.scalars().all())

    async def has_delivered_product(self, owner_id: str, product_id: str) -> bool:
        result = await self._session.execute(
            select(Order.id)
            .join(OrderItem, OrderItem.order_id == Order.id)
            .where(
                Order.owner_id == owner_id,
                Order.status == OrderStatus.DELIVERED,
                OrderItem.product_id == product_id,
            )
            .limit(1)
        )
        return result.scalar_one_or_none() is not None
