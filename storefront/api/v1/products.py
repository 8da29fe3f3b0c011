# ==============================================================================
# PRODUCTS ENDPOINTS - Review Eligibility
# ==============================================================================

from __future__ import annotations

from fastapi import APIRouter

from storefront.api.dependencies import CurrentPrincipal, OrderEngineDep
from storefront.schemas.base import APIResponse
from storefront.schemas.order import CanReviewResponse

router = APIRouter(prefix="/products", tags=["Products"])


@router.get(
    "/{product_id}/can-review",
    response_model=APIResponse[CanReviewResponse],
    summary="Check review eligibility",
    description=(
        "An account may review a product once, after an order containing it "
        "has been delivered."
    ),
)
async def can_review(
    product_id: str,
    principal: CurrentPrincipal,
    engine: OrderEngineDep,
) -> APIResponse[CanReviewResponse]:
    eligibility = await engine.can_review(principal.account_id, product_id)
    return APIResponse.ok(
        data=CanReviewResponse(
            can_review=eligibility.can_review,
            reason=eligibility.reason,
        )
    )
