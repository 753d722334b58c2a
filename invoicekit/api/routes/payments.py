"""
Subscription checkout endpoints.
"""

from fastapi import APIRouter, Depends

from invoicekit.api.dependencies import get_checkout, get_current_user_id
from invoicekit.application.dto.requests import CheckoutRequestDTO
from invoicekit.application.dto.responses import CheckoutResponse, ErrorResponse
from invoicekit.core.services import CheckoutService

router = APIRouter(prefix="/api/payments", tags=["payments"])


@router.post(
    "/checkout",
    response_model=CheckoutResponse,
    responses={400: {"model": ErrorResponse}, 502: {"model": ErrorResponse}},
)
async def start_checkout(
    request: CheckoutRequestDTO,
    user_id: int = Depends(get_current_user_id),
    checkout: CheckoutService = Depends(get_checkout),
) -> CheckoutResponse:
    """
    Upgrade the caller's plan.

    Pay-per-invoice activates immediately; monthly returns a hosted
    checkout URL to redirect to.
    """
    result = await checkout.start_checkout(user_id, request.plan)
    return CheckoutResponse(
        plan=result.plan.value,
        activated=result.activated,
        session_id=result.session_id,
        url=result.url,
    )
