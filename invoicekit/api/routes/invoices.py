"""
Invoice management endpoints.
"""

from datetime import date
from typing import Any

from fastapi import APIRouter, Depends, Query, Response, status

from invoicekit.api.dependencies import (
    get_bulk_mark_paid_use_case,
    get_create_invoice_use_case,
    get_current_user_id,
    get_delete_payment_use_case,
    get_inv_store,
    get_mark_paid_use_case,
    get_payment_summary_use_case,
    get_pdf_service,
    get_record_payment_use_case,
    get_rem_store,
    get_schedule_use_case,
    get_send_invoice_use_case,
    get_update_invoice_use_case,
)
from invoicekit.api.routes.reminders import reminder_to_response
from invoicekit.application.dto.requests import (
    BulkMarkPaidRequest,
    CreateInvoiceRequest,
    RecordPaymentRequest,
    UpdateInvoiceRequest,
)
from invoicekit.application.dto.responses import (
    BulkMarkPaidResponse,
    ErrorResponse,
    InvoiceItemResponse,
    InvoiceListResponse,
    InvoiceResponse,
    InvoiceScheduleResponse,
    PaymentResponse,
    PaymentSummaryResponse,
    RecordPaymentResponse,
    ReminderListResponse,
    ReminderRuleResponse,
    SendInvoiceResponse,
)
from invoicekit.application.use_cases import (
    BulkMarkPaidUseCase,
    CreateInvoiceUseCase,
    DeletePaymentUseCase,
    GetPaymentSummaryUseCase,
    MarkInvoicePaidUseCase,
    PaymentSummary,
    RecordPaymentUseCase,
    ScheduleRemindersUseCase,
    SendInvoiceUseCase,
    UpdateInvoiceUseCase,
)
from invoicekit.core.entities import (
    Invoice,
    InvoiceItem,
    InvoicePayment,
    InvoiceStatus,
    ReminderRule,
)
from invoicekit.core.exceptions import InvoiceNotFoundError, ValidationError
from invoicekit.core.services import InvoicePdfService
from invoicekit.infrastructure.storage.sqlite import (
    SQLiteInvoiceStore,
    SQLiteReminderStore,
)

router = APIRouter(prefix="/api/invoices", tags=["invoices"])

# Fields an update may explicitly clear
_NULLABLE_FIELDS = frozenset({"client_id", "due_date"})


def invoice_to_response(invoice: Invoice) -> InvoiceResponse:
    """Convert entity to response DTO."""
    return InvoiceResponse(
        id=invoice.id or 0,
        invoice_number=invoice.invoice_number,
        client_id=invoice.client_id,
        client_name=invoice.client_name,
        client_email=invoice.client_email,
        status=invoice.status.value,
        issue_date=invoice.issue_date,
        due_date=invoice.due_date,
        overdue_days=max(invoice.overdue_days(), 0),
        total=invoice.total,
        currency=invoice.currency,
        payment_terms=invoice.payment_terms,
        notes=invoice.notes,
        template_id=invoice.template_id,
        color_preset=invoice.color_preset,
        reminders_enabled=invoice.reminders_enabled,
        reminder_rules=[
            ReminderRuleResponse(when=rule.when, days=rule.days)
            for rule in invoice.reminder_rules
        ],
        items=[
            InvoiceItemResponse(
                description=item.description,
                quantity=item.quantity,
                unit_price=item.unit_price,
                amount=item.amount,
            )
            for item in invoice.items
        ],
        paid_at=invoice.paid_at,
        created_at=invoice.created_at,
        updated_at=invoice.updated_at,
    )


def _changes_from_request(request: UpdateInvoiceRequest) -> dict[str, Any]:
    """Explicitly-set request fields, converted to entity types."""
    changes = request.model_dump(exclude_unset=True)
    if changes.get("status") is not None:
        changes["status"] = InvoiceStatus(changes["status"])
    if changes.get("items") is not None:
        changes["items"] = [InvoiceItem(**item) for item in changes["items"]]
    if changes.get("reminder_rules") is not None:
        changes["reminder_rules"] = [
            ReminderRule(**rule) for rule in changes["reminder_rules"]
        ]
    return {
        key: value
        for key, value in changes.items()
        if value is not None or key in _NULLABLE_FIELDS
    }


def _payment_to_response(payment: InvoicePayment) -> PaymentResponse:
    return PaymentResponse(
        id=payment.id or 0,
        invoice_id=payment.invoice_id,
        amount=payment.amount,
        payment_date=payment.payment_date,
        payment_method=payment.payment_method,
        notes=payment.notes,
        created_at=payment.created_at,
    )


def _summary_to_response(summary: PaymentSummary) -> PaymentSummaryResponse:
    return PaymentSummaryResponse(
        invoice_id=summary.invoice_id,
        invoice_total=summary.invoice_total,
        total_paid=summary.total_paid,
        remaining_balance=summary.remaining_balance,
        payments=[_payment_to_response(p) for p in summary.payments],
    )


async def _owned_invoice(
    store: SQLiteInvoiceStore, invoice_id: int, user_id: int
) -> Invoice:
    invoice = await store.get_invoice(invoice_id)
    if invoice is None or invoice.user_id != user_id:
        raise InvoiceNotFoundError(invoice_id)
    return invoice


@router.post(
    "",
    response_model=InvoiceResponse,
    status_code=status.HTTP_201_CREATED,
    responses={403: {"model": ErrorResponse}, 404: {"model": ErrorResponse}},
)
async def create_invoice(
    request: CreateInvoiceRequest,
    user_id: int = Depends(get_current_user_id),
    use_case: CreateInvoiceUseCase = Depends(get_create_invoice_use_case),
) -> InvoiceResponse:
    """Create an invoice; non-draft invoices count against the plan."""
    invoice = Invoice(
        user_id=user_id,
        client_id=request.client_id,
        invoice_number=request.invoice_number,
        status=InvoiceStatus(request.status),
        issue_date=request.issue_date or date.today(),
        due_date=request.due_date,
        total=request.total or 0.0,
        currency=request.currency.upper(),
        payment_terms=request.payment_terms,
        notes=request.notes,
        template_id=request.template_id,
        color_preset=request.color_preset,
        reminders_enabled=request.reminders_enabled,
        reminder_rules=[ReminderRule(when=r.when, days=r.days) for r in request.reminder_rules],
        items=[
            InvoiceItem(
                description=i.description, quantity=i.quantity, unit_price=i.unit_price
            )
            for i in request.items
        ],
    )
    created = await use_case.execute(invoice)
    return invoice_to_response(created)


@router.get("", response_model=InvoiceListResponse)
async def list_invoices(
    status_filter: InvoiceStatus | None = Query(default=None, alias="status"),
    limit: int = 100,
    offset: int = 0,
    user_id: int = Depends(get_current_user_id),
    store: SQLiteInvoiceStore = Depends(get_inv_store),
) -> InvoiceListResponse:
    invoices = await store.list_invoices(
        user_id=user_id, status=status_filter, limit=limit, offset=offset
    )
    return InvoiceListResponse(
        invoices=[invoice_to_response(i) for i in invoices],
        total=len(invoices),
    )


@router.post(
    "/bulk/mark-paid",
    response_model=BulkMarkPaidResponse,
    responses={400: {"model": ErrorResponse}},
)
async def bulk_mark_paid(
    request: BulkMarkPaidRequest,
    user_id: int = Depends(get_current_user_id),
    use_case: BulkMarkPaidUseCase = Depends(get_bulk_mark_paid_use_case),
) -> BulkMarkPaidResponse:
    """Mark several invoices paid; unknown or already-paid ids are skipped."""
    result = await use_case.execute(user_id, request.invoice_ids)
    return BulkMarkPaidResponse(
        count=len(result.marked),
        invoice_numbers=[i.invoice_number for i in result.marked],
        skipped=result.skipped,
    )


@router.get(
    "/{invoice_id}",
    response_model=InvoiceResponse,
    responses={404: {"model": ErrorResponse}},
)
async def get_invoice(
    invoice_id: int,
    user_id: int = Depends(get_current_user_id),
    store: SQLiteInvoiceStore = Depends(get_inv_store),
) -> InvoiceResponse:
    """Get an invoice by ID."""
    return invoice_to_response(await _owned_invoice(store, invoice_id, user_id))


@router.put(
    "/{invoice_id}",
    response_model=InvoiceResponse,
    responses={403: {"model": ErrorResponse}, 404: {"model": ErrorResponse}},
)
async def update_invoice(
    invoice_id: int,
    request: UpdateInvoiceRequest,
    user_id: int = Depends(get_current_user_id),
    store: SQLiteInvoiceStore = Depends(get_inv_store),
    use_case: UpdateInvoiceUseCase = Depends(get_update_invoice_use_case),
) -> InvoiceResponse:
    await _owned_invoice(store, invoice_id, user_id)
    updated = await use_case.execute(invoice_id, _changes_from_request(request))
    return invoice_to_response(updated)


@router.delete(
    "/{invoice_id}",
    status_code=status.HTTP_204_NO_CONTENT,
    responses={404: {"model": ErrorResponse}},
)
async def delete_invoice(
    invoice_id: int,
    user_id: int = Depends(get_current_user_id),
    store: SQLiteInvoiceStore = Depends(get_inv_store),
) -> None:
    """Delete an invoice with its items and reminders."""
    await _owned_invoice(store, invoice_id, user_id)
    await store.delete_invoice(invoice_id)


@router.post(
    "/{invoice_id}/mark-paid",
    response_model=InvoiceResponse,
    responses={404: {"model": ErrorResponse}},
)
async def mark_invoice_paid(
    invoice_id: int,
    user_id: int = Depends(get_current_user_id),
    store: SQLiteInvoiceStore = Depends(get_inv_store),
    use_case: MarkInvoicePaidUseCase = Depends(get_mark_paid_use_case),
) -> InvoiceResponse:
    """Mark paid; pending scheduled reminders are dropped."""
    await _owned_invoice(store, invoice_id, user_id)
    return invoice_to_response(await use_case.execute(invoice_id))


@router.get(
    "/{invoice_id}/pdf",
    response_class=Response,
    responses={
        200: {"content": {"application/pdf": {}}},
        404: {"model": ErrorResponse},
    },
)
async def download_invoice_pdf(
    invoice_id: int,
    user_id: int = Depends(get_current_user_id),
    store: SQLiteInvoiceStore = Depends(get_inv_store),
    pdf_service: InvoicePdfService = Depends(get_pdf_service),
) -> Response:
    """Render the invoice as a PDF download."""
    await _owned_invoice(store, invoice_id, user_id)
    result = await pdf_service.generate(invoice_id)
    return Response(
        content=result.content,
        media_type="application/pdf",
        headers={"Content-Disposition": f'attachment; filename="{result.filename}"'},
    )


@router.get(
    "/{invoice_id}/reminders",
    response_model=ReminderListResponse,
    responses={404: {"model": ErrorResponse}},
)
async def list_invoice_reminders(
    invoice_id: int,
    user_id: int = Depends(get_current_user_id),
    store: SQLiteInvoiceStore = Depends(get_inv_store),
    rem_store: SQLiteReminderStore = Depends(get_rem_store),
) -> ReminderListResponse:
    await _owned_invoice(store, invoice_id, user_id)
    reminders = await rem_store.list_for_invoice(invoice_id)
    return ReminderListResponse(
        reminders=[reminder_to_response(r) for r in reminders],
        total=len(reminders),
    )


@router.post(
    "/{invoice_id}/reminders/schedule",
    response_model=InvoiceScheduleResponse,
    responses={404: {"model": ErrorResponse}},
)
async def schedule_invoice_reminders(
    invoice_id: int,
    user_id: int = Depends(get_current_user_id),
    store: SQLiteInvoiceStore = Depends(get_inv_store),
    use_case: ScheduleRemindersUseCase = Depends(get_schedule_use_case),
) -> InvoiceScheduleResponse:
    """Rebuild this invoice's reminder schedule from its terms or rules."""
    await _owned_invoice(store, invoice_id, user_id)
    result = await use_case.execute_for_invoice(invoice_id)
    return InvoiceScheduleResponse(
        invoice_id=invoice_id,
        cleared=result.cleared,
        skipped_reason=result.skipped_reason,
        reminders=[reminder_to_response(r) for r in result.scheduled],
    )


@router.post(
    "/{invoice_id}/send",
    response_model=SendInvoiceResponse,
    responses={
        400: {"model": ErrorResponse},
        403: {"model": ErrorResponse},
        404: {"model": ErrorResponse},
        502: {"model": ErrorResponse},
    },
)
async def send_invoice(
    invoice_id: int,
    user_id: int = Depends(get_current_user_id),
    store: SQLiteInvoiceStore = Depends(get_inv_store),
    use_case: SendInvoiceUseCase = Depends(get_send_invoice_use_case),
) -> SendInvoiceResponse:
    """Email a draft invoice to its client and mark it sent."""
    await _owned_invoice(store, invoice_id, user_id)
    result = await use_case.execute(invoice_id)
    return SendInvoiceResponse(
        invoice=invoice_to_response(result.invoice),
        email_id=result.email_id,
        fee_recorded=result.fee is not None,
    )


@router.get(
    "/{invoice_id}/payments",
    response_model=PaymentSummaryResponse,
    responses={404: {"model": ErrorResponse}},
)
async def list_invoice_payments(
    invoice_id: int,
    user_id: int = Depends(get_current_user_id),
    store: SQLiteInvoiceStore = Depends(get_inv_store),
    use_case: GetPaymentSummaryUseCase = Depends(get_payment_summary_use_case),
) -> PaymentSummaryResponse:
    await _owned_invoice(store, invoice_id, user_id)
    return _summary_to_response(await use_case.execute(invoice_id))


@router.post(
    "/{invoice_id}/payments",
    response_model=RecordPaymentResponse,
    status_code=status.HTTP_201_CREATED,
    responses={400: {"model": ErrorResponse}, 404: {"model": ErrorResponse}},
)
async def record_invoice_payment(
    invoice_id: int,
    request: RecordPaymentRequest,
    user_id: int = Depends(get_current_user_id),
    store: SQLiteInvoiceStore = Depends(get_inv_store),
    use_case: RecordPaymentUseCase = Depends(get_record_payment_use_case),
) -> RecordPaymentResponse:
    """Record a partial or full payment; the final one marks the invoice paid."""
    await _owned_invoice(store, invoice_id, user_id)
    if request.amount <= 0:
        raise ValidationError("amount", "Amount must be greater than zero", request.amount)

    result = await use_case.execute(
        InvoicePayment(
            invoice_id=invoice_id,
            amount=request.amount,
            payment_date=request.payment_date or date.today(),
            payment_method=request.payment_method,
            notes=request.notes,
        )
    )
    return RecordPaymentResponse(
        payment=_payment_to_response(result.payment),
        summary=_summary_to_response(result.summary),
        invoice_status=result.invoice.status.value,
    )


@router.delete(
    "/{invoice_id}/payments/{payment_id}",
    response_model=PaymentSummaryResponse,
    responses={404: {"model": ErrorResponse}},
)
async def delete_invoice_payment(
    invoice_id: int,
    payment_id: int,
    user_id: int = Depends(get_current_user_id),
    store: SQLiteInvoiceStore = Depends(get_inv_store),
    use_case: DeletePaymentUseCase = Depends(get_delete_payment_use_case),
) -> PaymentSummaryResponse:
    await _owned_invoice(store, invoice_id, user_id)
    return _summary_to_response(await use_case.execute(invoice_id, payment_id))
