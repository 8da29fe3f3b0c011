# ==============================================================================
# ORDERS ENDPOINTS - Checkout, Confirmation & Payment
# ==============================================================================
# Buyer-facing order routes
# Domain errors propagate to the global AppException handler
# ==============================================================================

from __future__ import annotations

from typing import List

from fastapi import APIRouter, status

from storefront.api.dependencies import CurrentPrincipal, OrderEngineDep
from storefront.core.constants import SuccessMessages
from storefront.lifecycle.snapshot import ConfirmationPolicy
from storefront.schemas.base import APIResponse
from storefront.schemas.order import OrderResponse, PaymentRequest, PlaceOrderRequest

router = APIRouter(prefix="/orders", tags=["Orders"])


@router.post(
    "",
    response_model=APIResponse[OrderResponse],
    status_code=status.HTTP_201_CREATED,
    summary="Place order",
    description=(
        "Create an order from the submitted cart. Depending on the confirmation "
        "policy the order is paid immediately or awaits email confirmation."
    ),
)
async def place_order(
    schema: PlaceOrderRequest,
    principal: CurrentPrincipal,
    engine: OrderEngineDep,
) -> APIResponse[OrderResponse]:
    order = await engine.place_order(
        owner_id=principal.account_id,
        owner_email=principal.email,
        items=schema.line_items(),
        shipping_address=schema.shipping_address.to_address(),
        payment_method=schema.payment_method,
        prices=schema.prices(),
    )
    message = (
        SuccessMessages.ORDER_PLACED_CONFIRM
        if engine.policy == ConfirmationPolicy.DEFERRED
        else SuccessMessages.ORDER_PLACED
    )
    return APIResponse.ok(data=OrderResponse.from_snapshot(order), message=message)


@router.get(
    "/myorders",
    response_model=APIResponse[List[OrderResponse]],
    summary="List my orders",
    description="Orders placed by the current account, newest first.",
)
async def list_my_orders(
    principal: CurrentPrincipal,
    engine: OrderEngineDep,
) -> APIResponse[List[OrderResponse]]:
    orders = await engine.list_my_orders(principal.account_id)
    return APIResponse.ok(data=[OrderResponse.from_snapshot(o) for o in orders])


@router.post(
    "/confirm/{token}",
    response_model=APIResponse[OrderResponse],
    summary="Confirm order",
    description=(
        "Redeem the emailed confirmation token. No authentication: the token "
        "itself is the credential."
    ),
)
async def confirm_order(
    token: str,
    engine: OrderEngineDep,
) -> APIResponse[OrderResponse]:
    order = await engine.confirm_order(token)
    return APIResponse.ok(
        data=OrderResponse.from_snapshot(order),
        message=SuccessMessages.ORDER_CONFIRMED,
    )


@router.get(
    "/{order_id}",
    response_model=APIResponse[OrderResponse],
    summary="Get order",
    description="Fetch one order. Only its owner or an admin may view it.",
)
async def get_order(
    order_id: str,
    principal: CurrentPrincipal,
    engine: OrderEngineDep,
) -> APIResponse[OrderResponse]:
    order = await engine.get_order(
        requester_id=principal.account_id,
        order_id=order_id,
        is_admin=principal.is_admin,
    )
    return APIResponse.ok(data=OrderResponse.from_snapshot(order))


@router.put(
    "/{order_id}/pay",
    response_model=APIResponse[OrderResponse],
    summary="Record payment",
    description="Attach a payment provider result to the order.",
)
async def pay_order(
    order_id: str,
    schema: PaymentRequest,
    principal: CurrentPrincipal,
    engine: OrderEngineDep,
) -> APIResponse[OrderResponse]:
    order = await engine.mark_paid(
        requester_id=principal.account_id,
        order_id=order_id,
        payment=schema.to_payment(),
        is_admin=principal.is_admin,
    )
    return APIResponse.ok(
        data=OrderResponse.from_snapshot(order),
        message=SuccessMessages.ORDER_PAID,
    )
