"""
Dependency injection container for FastAPI.

Provides stores, services, and use cases to route handlers. Tests swap
any of these through ``app.dependency_overrides``.
"""

import hmac
from functools import lru_cache

from fastapi import Depends, Header

from invoicekit.application.services import (
    get_checkout_service,
    get_delivery_status_service,
    get_dedup_sweep,
    get_invoice_pdf_service,
    get_purge_service,
    get_subscription_limit_service,
)
from invoicekit.application.use_cases import (
    ApproveEstimateUseCase,
    AutoSendRemindersUseCase,
    BulkMarkPaidUseCase,
    ConvertEstimateUseCase,
    CreateInvoiceUseCase,
    DeletePaymentUseCase,
    GetPaymentSummaryUseCase,
    GetReminderStatsUseCase,
    MarkInvoicePaidUseCase,
    RecordPaymentUseCase,
    RejectEstimateUseCase,
    ScheduleRemindersUseCase,
    SendEstimateUseCase,
    SendInvoiceUseCase,
    TriggerOverdueRemindersUseCase,
    UpdateInvoiceUseCase,
)
from invoicekit.config import Settings, get_settings
from invoicekit.core.exceptions import AuthorizationError
from invoicekit.core.services import (
    AccountPurgeService,
    CheckoutService,
    DeliveryStatusService,
    InvoicePdfService,
    ReminderDeduplicationSweep,
    SubscriptionLimitService,
)
from invoicekit.infrastructure.storage.sqlite import (
    SQLiteClientStore,
    SQLiteEstimateStore,
    SQLiteInvoiceStore,
    SQLiteReminderStore,
    SQLiteUserStore,
    get_client_store,
    get_estimate_store,
    get_invoice_store,
    get_reminder_store,
    get_user_store,
)


@lru_cache
def get_app_settings() -> Settings:
    """Get cached application settings."""
    return get_settings()


# Caller identity
def get_current_user_id(
    x_user_id: int | None = Header(default=None),
    settings: Settings = Depends(get_app_settings),
) -> int:
    """Acting account, taken from the X-User-Id header."""
    if x_user_id is not None:
        return x_user_id
    return settings.api.default_user_id


def require_cron_secret(
    authorization: str | None = Header(default=None),
    settings: Settings = Depends(get_app_settings),
) -> None:
    """Guard for scheduled-job endpoints; open when no secret is configured."""
    secret = settings.api.cron_secret
    if not secret:
        return
    expected = f"Bearer {secret}"
    if authorization is None or not hmac.compare_digest(authorization, expected):
        raise AuthorizationError("Invalid or missing cron secret")


# Store dependencies
async def get_cli_store() -> SQLiteClientStore:
    return await get_client_store()


async def get_est_store() -> SQLiteEstimateStore:
    return await get_estimate_store()


async def get_inv_store() -> SQLiteInvoiceStore:
    """Get invoice store."""
    return await get_invoice_store()


async def get_rem_store() -> SQLiteReminderStore:
    """Get reminder store."""
    return await get_reminder_store()


async def get_usr_store() -> SQLiteUserStore:
    return await get_user_store()


# Service dependencies
async def get_limits() -> SubscriptionLimitService:
    return await get_subscription_limit_service()


async def get_delivery_status() -> DeliveryStatusService:
    return await get_delivery_status_service()


async def get_sweep() -> ReminderDeduplicationSweep:
    return await get_dedup_sweep()


async def get_checkout() -> CheckoutService:
    return await get_checkout_service()


async def get_purge() -> AccountPurgeService:
    return await get_purge_service()


async def get_pdf_service() -> InvoicePdfService:
    return await get_invoice_pdf_service()


# Use case dependencies
def get_trigger_reminders_use_case() -> TriggerOverdueRemindersUseCase:
    """Get trigger overdue reminders use case."""
    return TriggerOverdueRemindersUseCase()


def get_auto_send_use_case() -> AutoSendRemindersUseCase:
    return AutoSendRemindersUseCase()


def get_schedule_use_case() -> ScheduleRemindersUseCase:
    return ScheduleRemindersUseCase()


def get_stats_use_case() -> GetReminderStatsUseCase:
    return GetReminderStatsUseCase()


def get_create_invoice_use_case() -> CreateInvoiceUseCase:
    """Get create invoice use case."""
    return CreateInvoiceUseCase()


def get_update_invoice_use_case() -> UpdateInvoiceUseCase:
    return UpdateInvoiceUseCase()


def get_mark_paid_use_case() -> MarkInvoicePaidUseCase:
    return MarkInvoicePaidUseCase()


def get_send_invoice_use_case() -> SendInvoiceUseCase:
    return SendInvoiceUseCase()


def get_bulk_mark_paid_use_case() -> BulkMarkPaidUseCase:
    return BulkMarkPaidUseCase()


def get_payment_summary_use_case() -> GetPaymentSummaryUseCase:
    return GetPaymentSummaryUseCase()


def get_record_payment_use_case() -> RecordPaymentUseCase:
    return RecordPaymentUseCase()


def get_delete_payment_use_case() -> DeletePaymentUseCase:
    return DeletePaymentUseCase()


def get_send_estimate_use_case() -> SendEstimateUseCase:
    return SendEstimateUseCase()


def get_approve_estimate_use_case() -> ApproveEstimateUseCase:
    return ApproveEstimateUseCase()


def get_reject_estimate_use_case() -> RejectEstimateUseCase:
    return RejectEstimateUseCase()


def get_convert_estimate_use_case() -> ConvertEstimateUseCase:
    return ConvertEstimateUseCase()
