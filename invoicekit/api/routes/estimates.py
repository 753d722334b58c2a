"""
Estimate management endpoints.
"""

from fastapi import APIRouter, Depends, status

from invoicekit.api.dependencies import (
    get_approve_estimate_use_case,
    get_convert_estimate_use_case,
    get_current_user_id,
    get_est_store,
    get_limits,
    get_reject_estimate_use_case,
    get_send_estimate_use_case,
)
from invoicekit.api.routes.invoices import invoice_to_response
from invoicekit.application.dto.requests import (
    ApproveEstimateRequest,
    ConvertEstimateRequest,
    CreateEstimateRequest,
    RejectEstimateRequest,
    UpdateEstimateRequest,
)
from invoicekit.application.dto.responses import (
    ConvertEstimateResponse,
    ErrorResponse,
    EstimateListResponse,
    EstimateResponse,
    SendEstimateResponse,
)
from invoicekit.application.use_cases import (
    ApproveEstimateUseCase,
    ConvertEstimateUseCase,
    RejectEstimateUseCase,
    SendEstimateUseCase,
)
from invoicekit.core.entities import Estimate
from invoicekit.core.exceptions import EstimateNotFoundError, ValidationError
from invoicekit.core.services import SubscriptionLimitService
from invoicekit.infrastructure.storage.sqlite import SQLiteEstimateStore

router = APIRouter(prefix="/api/estimates", tags=["estimates"])

_DECISION_ERRORS = {400: {"model": ErrorResponse}, 404: {"model": ErrorResponse}}


def _entity_to_response(estimate: Estimate) -> EstimateResponse:
    return EstimateResponse(
        id=estimate.id or 0,
        estimate_number=estimate.estimate_number,
        client_id=estimate.client_id,
        status=estimate.status.value,
        total=estimate.total,
        currency=estimate.currency,
        valid_until=estimate.valid_until,
        notes=estimate.notes,
        approved_at=estimate.approved_at,
        rejected_at=estimate.rejected_at,
        approval_comment=estimate.approval_comment,
        rejection_reason=estimate.rejection_reason,
        converted_invoice_id=estimate.converted_invoice_id,
        created_at=estimate.created_at,
    )


async def _owned_estimate(
    store: SQLiteEstimateStore, estimate_id: int, user_id: int
) -> Estimate:
    estimate = await store.get(estimate_id)
    if estimate is None or estimate.user_id != user_id:
        raise EstimateNotFoundError(estimate_id)
    return estimate


@router.post(
    "",
    response_model=EstimateResponse,
    status_code=status.HTTP_201_CREATED,
    responses={403: {"model": ErrorResponse}},
)
async def create_estimate(
    request: CreateEstimateRequest,
    user_id: int = Depends(get_current_user_id),
    store: SQLiteEstimateStore = Depends(get_est_store),
    limits: SubscriptionLimitService = Depends(get_limits),
) -> EstimateResponse:
    await limits.require(await limits.can_create_estimate(user_id), user_id)
    created = await store.create(Estimate(user_id=user_id, **request.model_dump()))
    return _entity_to_response(created)


@router.get("", response_model=EstimateListResponse)
async def list_estimates(
    limit: int = 100,
    offset: int = 0,
    user_id: int = Depends(get_current_user_id),
    store: SQLiteEstimateStore = Depends(get_est_store),
) -> EstimateListResponse:
    estimates = await store.list_estimates(user_id, limit=limit, offset=offset)
    return EstimateListResponse(
        estimates=[_entity_to_response(e) for e in estimates],
        total=await store.count_estimates(user_id),
    )


@router.get(
    "/{estimate_id}",
    response_model=EstimateResponse,
    responses={404: {"model": ErrorResponse}},
)
async def get_estimate(
    estimate_id: int,
    user_id: int = Depends(get_current_user_id),
    store: SQLiteEstimateStore = Depends(get_est_store),
) -> EstimateResponse:
    return _entity_to_response(await _owned_estimate(store, estimate_id, user_id))


@router.put(
    "/{estimate_id}",
    response_model=EstimateResponse,
    responses=_DECISION_ERRORS,
)
async def update_estimate(
    estimate_id: int,
    request: UpdateEstimateRequest,
    user_id: int = Depends(get_current_user_id),
    store: SQLiteEstimateStore = Depends(get_est_store),
) -> EstimateResponse:
    estimate = await _owned_estimate(store, estimate_id, user_id)
    changes = request.model_dump(exclude_unset=True)
    if estimate.is_decided and changes.get("status") is not None:
        raise ValidationError(
            "status",
            f"Estimate has already been {estimate.status.value}",
            changes["status"],
        )
    updated = Estimate.model_validate({**estimate.model_dump(), **changes})
    return _entity_to_response(await store.update(updated))


@router.delete(
    "/{estimate_id}",
    status_code=status.HTTP_204_NO_CONTENT,
    responses={404: {"model": ErrorResponse}},
)
async def delete_estimate(
    estimate_id: int,
    user_id: int = Depends(get_current_user_id),
    store: SQLiteEstimateStore = Depends(get_est_store),
) -> None:
    await _owned_estimate(store, estimate_id, user_id)
    await store.delete(estimate_id)


@router.post(
    "/{estimate_id}/send",
    response_model=SendEstimateResponse,
    responses={**_DECISION_ERRORS, 502: {"model": ErrorResponse}},
)
async def send_estimate(
    estimate_id: int,
    user_id: int = Depends(get_current_user_id),
    store: SQLiteEstimateStore = Depends(get_est_store),
    use_case: SendEstimateUseCase = Depends(get_send_estimate_use_case),
) -> SendEstimateResponse:
    """Email the estimate to its client for review."""
    await _owned_estimate(store, estimate_id, user_id)
    result = await use_case.execute(estimate_id)
    return SendEstimateResponse(
        estimate=_entity_to_response(result.estimate), email_id=result.email_id
    )


@router.post(
    "/{estimate_id}/approve",
    response_model=EstimateResponse,
    responses=_DECISION_ERRORS,
)
async def approve_estimate(
    estimate_id: int,
    request: ApproveEstimateRequest | None = None,
    user_id: int = Depends(get_current_user_id),
    store: SQLiteEstimateStore = Depends(get_est_store),
    use_case: ApproveEstimateUseCase = Depends(get_approve_estimate_use_case),
) -> EstimateResponse:
    await _owned_estimate(store, estimate_id, user_id)
    comment = request.comment if request else None
    return _entity_to_response(await use_case.execute(estimate_id, comment))


@router.post(
    "/{estimate_id}/reject",
    response_model=EstimateResponse,
    responses=_DECISION_ERRORS,
)
async def reject_estimate(
    estimate_id: int,
    request: RejectEstimateRequest,
    user_id: int = Depends(get_current_user_id),
    store: SQLiteEstimateStore = Depends(get_est_store),
    use_case: RejectEstimateUseCase = Depends(get_reject_estimate_use_case),
) -> EstimateResponse:
    """Record the client's rejection; a reason is required."""
    await _owned_estimate(store, estimate_id, user_id)
    return _entity_to_response(await use_case.execute(estimate_id, request.reason))


@router.post(
    "/{estimate_id}/convert",
    response_model=ConvertEstimateResponse,
    status_code=status.HTTP_201_CREATED,
    responses={**_DECISION_ERRORS, 403: {"model": ErrorResponse}},
)
async def convert_estimate(
    estimate_id: int,
    request: ConvertEstimateRequest | None = None,
    user_id: int = Depends(get_current_user_id),
    store: SQLiteEstimateStore = Depends(get_est_store),
    use_case: ConvertEstimateUseCase = Depends(get_convert_estimate_use_case),
) -> ConvertEstimateResponse:
    """Turn an approved estimate into a draft invoice."""
    await _owned_estimate(store, estimate_id, user_id)
    result = await use_case.execute(
        estimate_id, request.invoice_number if request else None
    )
    return ConvertEstimateResponse(
        estimate=_entity_to_response(result.estimate),
        invoice=invoice_to_response(result.invoice),
    )
