"""
Subscription usage and limit-check endpoints.
"""

from typing import Literal

from fastapi import APIRouter, Depends, Query

from invoicekit.api.dependencies import get_current_user_id, get_limits
from invoicekit.application.dto.responses import (
    LimitCheckResponse,
    UsageCounter,
    UsageResponse,
)
from invoicekit.core.services import SubscriptionLimitService, ValidationResult

router = APIRouter(prefix="/api/subscription", tags=["subscription"])

LimitName = Literal["invoice", "client", "estimate", "reminder", "template", "color_preset"]


@router.get("/usage", response_model=UsageResponse)
async def get_usage(
    user_id: int = Depends(get_current_user_id),
    limits: SubscriptionLimitService = Depends(get_limits),
) -> UsageResponse:
    """Current usage against the plan's limits."""
    stats = await limits.get_usage_stats(user_id)
    return UsageResponse(
        plan=stats.plan,
        invoices=UsageCounter(used=stats.invoices_used, limit=stats.invoices_limit),
        clients=UsageCounter(used=stats.clients_used, limit=stats.clients_limit),
        estimates=UsageCounter(used=stats.estimates_used, limit=stats.estimates_limit),
        reminders_per_invoice=UsageCounter(limit=stats.reminders_per_invoice_limit),
    )


@router.get("/check/{limit_name}", response_model=LimitCheckResponse)
async def check_limit(
    limit_name: LimitName,
    invoice_id: int | None = Query(default=None, description="For reminder checks"),
    value: int = Query(default=1, description="Template id or color preset index"),
    user_id: int = Depends(get_current_user_id),
    limits: SubscriptionLimitService = Depends(get_limits),
) -> LimitCheckResponse:
    """Ask whether the next write of this kind would be allowed."""
    result: ValidationResult
    if limit_name == "invoice":
        result = await limits.can_create_invoice(user_id)
    elif limit_name == "client":
        result = await limits.can_add_client(user_id)
    elif limit_name == "estimate":
        result = await limits.can_create_estimate(user_id)
    elif limit_name == "reminder":
        if invoice_id is None:
            return LimitCheckResponse(
                allowed=False, reason="invoice_id is required", limit_type="reminders"
            )
        result = await limits.can_send_reminder(user_id, invoice_id)
    elif limit_name == "template":
        result = await limits.can_use_template(user_id, value)
    else:
        result = await limits.can_use_color_preset(user_id, value)

    return LimitCheckResponse(
        allowed=result.allowed, reason=result.reason, limit_type=result.limit_type
    )
