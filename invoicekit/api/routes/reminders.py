"""
Reminder management endpoints.

Covers listing, manual status overrides, the delivery-status webhook,
and the scheduled jobs (trigger, schedule, auto-send, sweep).
"""

from fastapi import APIRouter, Depends, Query, status

from invoicekit.api.dependencies import (
    get_auto_send_use_case,
    get_current_user_id,
    get_delivery_status,
    get_rem_store,
    get_schedule_use_case,
    get_stats_use_case,
    get_sweep,
    get_trigger_reminders_use_case,
    require_cron_secret,
)
from invoicekit.application.dto.requests import (
    DeliveryWebhookRequest,
    SweepRequest,
    TriggerRemindersRequest,
    UpdateReminderStatusRequest,
)
from invoicekit.application.dto.responses import (
    AutoSendResponse,
    ErrorResponse,
    ReminderDecisionResponse,
    ReminderListResponse,
    ReminderResponse,
    ReminderStatsResponse,
    ScheduleResponse,
    SweepResponse,
    TriggerRemindersResponse,
    WebhookAckResponse,
)
from invoicekit.application.use_cases import (
    AutoSendRemindersUseCase,
    GetReminderStatsUseCase,
    ScheduleRemindersUseCase,
    TriggerOverdueRemindersUseCase,
)
from invoicekit.core.entities import Reminder, ReminderStatus
from invoicekit.core.exceptions import ReminderNotFoundError
from invoicekit.core.services import (
    DeliveryStatusService,
    ReminderDeduplicationSweep,
)
from invoicekit.infrastructure.storage.sqlite import SQLiteReminderStore

router = APIRouter(prefix="/api/reminders", tags=["reminders"])


def reminder_to_response(reminder: Reminder) -> ReminderResponse:
    """Convert entity to response DTO."""
    return ReminderResponse(
        id=reminder.id or 0,
        invoice_id=reminder.invoice_id,
        tier=reminder.tier.value,
        status=reminder.status.value,
        overdue_days=reminder.overdue_days,
        scheduled_at=reminder.scheduled_at,
        email_id=reminder.email_id,
        failure_reason=reminder.failure_reason,
        created_at=reminder.created_at,
        updated_at=reminder.updated_at,
    )


@router.get("", response_model=ReminderListResponse)
async def list_reminders(
    status_filter: ReminderStatus | None = Query(default=None, alias="status"),
    invoice_id: int | None = None,
    limit: int = 100,
    offset: int = 0,
    user_id: int = Depends(get_current_user_id),
    store: SQLiteReminderStore = Depends(get_rem_store),
) -> ReminderListResponse:
    """List the caller's reminders, optionally filtered by status or invoice."""
    reminders = await store.list_reminders(
        status=status_filter,
        invoice_id=invoice_id,
        limit=limit,
        offset=offset,
        user_id=user_id,
    )
    return ReminderListResponse(
        reminders=[reminder_to_response(r) for r in reminders],
        total=len(reminders),
    )


@router.get("/stats", response_model=ReminderStatsResponse)
async def reminder_stats(
    user_id: int = Depends(get_current_user_id),
    use_case: GetReminderStatsUseCase = Depends(get_stats_use_case),
) -> ReminderStatsResponse:
    """Reminder counts by tier and status, plus invoice totals."""
    stats = await use_case.execute(user_id)
    return ReminderStatsResponse(
        total_reminders=stats.total_reminders,
        by_tier=stats.by_tier,
        by_status=stats.by_status,
        invoices_by_status=stats.invoices_by_status,
        total_revenue=stats.total_revenue,
        success_rate=stats.success_rate,
    )


@router.get(
    "/{reminder_id}",
    response_model=ReminderResponse,
    responses={404: {"model": ErrorResponse}},
)
async def get_reminder(
    reminder_id: int,
    user_id: int = Depends(get_current_user_id),
    store: SQLiteReminderStore = Depends(get_rem_store),
) -> ReminderResponse:
    """Get one of the caller's reminders by ID."""
    reminder = await store.get(reminder_id, user_id=user_id)
    if reminder is None:
        raise ReminderNotFoundError(reminder_id=reminder_id)
    return reminder_to_response(reminder)


@router.put(
    "/{reminder_id}/status",
    response_model=ReminderResponse,
    responses={
        400: {"model": ErrorResponse},
        404: {"model": ErrorResponse},
        409: {"model": ErrorResponse},
    },
)
async def update_reminder_status(
    reminder_id: int,
    request: UpdateReminderStatusRequest,
    user_id: int = Depends(get_current_user_id),
    service: DeliveryStatusService = Depends(get_delivery_status),
) -> ReminderResponse:
    """Manually override a reminder's delivery status."""
    updated = await service.set_status(
        reminder_id, request.status, request.failure_reason, user_id=user_id
    )
    return reminder_to_response(updated)


@router.post(
    "/webhook",
    response_model=WebhookAckResponse,
    responses={400: {"model": ErrorResponse}, 404: {"model": ErrorResponse}},
)
async def delivery_webhook(
    request: DeliveryWebhookRequest,
    service: DeliveryStatusService = Depends(get_delivery_status),
) -> WebhookAckResponse:
    """Apply a delivery-status event from the email provider."""
    updated = await service.apply_webhook_event(
        request.type, request.data.email_id, request.data.reason
    )
    return WebhookAckResponse(reminder_id=updated.id or 0, status=updated.status.value)


@router.post(
    "/trigger",
    response_model=TriggerRemindersResponse,
    dependencies=[Depends(require_cron_secret)],
    responses={401: {"model": ErrorResponse}},
)
async def trigger_overdue_reminders(
    request: TriggerRemindersRequest | None = None,
    use_case: TriggerOverdueRemindersUseCase = Depends(get_trigger_reminders_use_case),
) -> TriggerRemindersResponse:
    """Evaluate overdue invoices and send any newly due tier reminders."""
    request = request or TriggerRemindersRequest()
    result = await use_case.execute(today=request.today, dry_run=request.dry_run)
    return TriggerRemindersResponse(
        evaluated=result.evaluated,
        created=result.created,
        sent=result.sent,
        failed=result.failed,
        skipped=result.skipped,
        marked_overdue=result.marked_overdue,
        dry_run=result.dry_run,
        decisions=[
            ReminderDecisionResponse(
                invoice_id=d.invoice_id,
                should_create=d.should_create,
                tier=d.tier.value if d.tier else None,
                overdue_days=d.overdue_days,
                reason=d.reason,
            )
            for d in result.decisions
        ],
        reminders=[reminder_to_response(r) for r in result.reminders],
    )


@router.post(
    "/schedule",
    response_model=ScheduleResponse,
    dependencies=[Depends(require_cron_secret)],
    responses={401: {"model": ErrorResponse}},
)
async def schedule_reminders(
    use_case: ScheduleRemindersUseCase = Depends(get_schedule_use_case),
) -> ScheduleResponse:
    """Rebuild the reminder schedule for every open invoice."""
    run = await use_case.execute()
    return ScheduleResponse(
        invoices=run.invoices, scheduled=run.scheduled, cleared=run.cleared
    )


@router.post(
    "/auto-send",
    response_model=AutoSendResponse,
    dependencies=[Depends(require_cron_secret)],
    responses={401: {"model": ErrorResponse}},
)
async def auto_send_reminders(
    use_case: AutoSendRemindersUseCase = Depends(get_auto_send_use_case),
) -> AutoSendResponse:
    """Send every scheduled reminder whose time has come."""
    result = await use_case.execute()
    return AutoSendResponse(
        total_found=result.total_found,
        processed=result.processed,
        success=result.success,
        errors=result.errors,
        failures=result.failures,
    )


@router.post(
    "/sweep",
    response_model=SweepResponse,
    status_code=status.HTTP_200_OK,
    dependencies=[Depends(require_cron_secret)],
    responses={401: {"model": ErrorResponse}},
)
async def sweep_duplicate_reminders(
    request: SweepRequest | None = None,
    sweep: ReminderDeduplicationSweep = Depends(get_sweep),
) -> SweepResponse:
    """Remove duplicate reminders, keeping the newest of each group."""
    statuses = None
    if request is not None and request.statuses:
        statuses = [ReminderStatus(s) for s in request.statuses]
    result = await sweep.run(statuses)
    return SweepResponse(**result.to_dict())
