# ==============================================================================
# ADMIN ENDPOINTS - Order Administration
# ==============================================================================

from __future__ import annotations

from typing import List

from fastapi import APIRouter

from storefront.api.dependencies import AdminPrincipal, OrderEngineDep
from storefront.core.constants import SuccessMessages
from storefront.schemas.base import APIResponse
from storefront.schemas.order import (
    ExpirySweepResponse,
    OrderResponse,
    StatusUpdateRequest,
)

router = APIRouter(prefix="/admin", tags=["Admin"])


@router.get(
    "/orders",
    response_model=APIResponse[List[OrderResponse]],
    summary="List all orders",
)
async def list_orders(
    admin: AdminPrincipal,
    engine: OrderEngineDep,
) -> APIResponse[List[OrderResponse]]:
    orders = await engine.list_all_orders()
    return APIResponse.ok(data=[OrderResponse.from_snapshot(o) for o in orders])


@router.put(
    "/orders/{order_id}/status",
    response_model=APIResponse[OrderResponse],
    summary="Update order status",
    description=(
        "Set any status. Shipping assigns a tracking number when none is "
        "given; shipping and delivery notify the buyer on first entry."
    ),
)
async def update_order_status(
    order_id: str,
    schema: StatusUpdateRequest,
    admin: AdminPrincipal,
    engine: OrderEngineDep,
) -> APIResponse[OrderResponse]:
    order = await engine.update_status(
        order_id=order_id,
        status=schema.status,
        tracking_number=schema.tracking_number,
    )
    return APIResponse.ok(
        data=OrderResponse.from_snapshot(order),
        message=SuccessMessages.STATUS_UPDATED,
    )


@router.post(
    "/orders/expire-stale",
    response_model=APIResponse[ExpirySweepResponse],
    summary="Expire stale orders",
    description="Cancel every unconfirmed order whose confirmation window has elapsed.",
)
async def expire_stale_orders(
    admin: AdminPrincipal,
    engine: OrderEngineDep,
) -> APIResponse[ExpirySweepResponse]:
    cancelled = await engine.expire_stale_orders()
    return APIResponse.ok(data=ExpirySweepResponse(cancelled=cancelled))
