"""
Service factory functions for dependency injection.

Wires infrastructure implementations to core services. Use cases and
API dependencies import from here; any store or provider argument
overrides the default singleton.
"""

from typing import TYPE_CHECKING

from invoicekit.config import get_settings
from invoicekit.core.entities import DEFAULT_TIER_BANDS, TierBand
from invoicekit.core.services import (
    AccountPurgeService,
    CheckoutService,
    DeliveryStatusService,
    InvoiceMailer,
    InvoicePdfService,
    ReminderDeduplicationSweep,
    ReminderDispatcher,
    ReminderRuleEvaluator,
    ReminderScheduler,
    SubscriptionLimitService,
)

if TYPE_CHECKING:
    from invoicekit.core.interfaces import (
        IBillingStore,
        IClientStore,
        IEmailSender,
        IEstimateStore,
        IInvoiceStore,
        IPaymentProvider,
        IReminderStore,
        IUserStore,
    )
    from invoicekit.core.services import IInvoicePdfRenderer


def configured_tier_bands() -> tuple[TierBand, ...]:
    """Tier table from settings, or the built-in one when none is configured."""
    configured = get_settings().reminders.tier_bands
    if not configured:
        return DEFAULT_TIER_BANDS
    return tuple(
        TierBand(tier=band.tier, min_days=band.min_days, max_days=band.max_days)
        for band in configured
    )


async def get_rule_evaluator(
    reminder_store: "IReminderStore | None" = None,
) -> ReminderRuleEvaluator:
    if reminder_store is None:
        from invoicekit.infrastructure.storage.sqlite import get_reminder_store

        reminder_store = await get_reminder_store()
    return ReminderRuleEvaluator(reminder_store, bands=configured_tier_bands())


async def get_dedup_sweep(
    reminder_store: "IReminderStore | None" = None,
) -> ReminderDeduplicationSweep:
    if reminder_store is None:
        from invoicekit.infrastructure.storage.sqlite import get_reminder_store

        reminder_store = await get_reminder_store()
    return ReminderDeduplicationSweep(
        reminder_store, batch_size=get_settings().reminders.sweep_batch_size
    )


async def get_reminder_scheduler(
    reminder_store: "IReminderStore | None" = None,
) -> ReminderScheduler:
    if reminder_store is None:
        from invoicekit.infrastructure.storage.sqlite import get_reminder_store

        reminder_store = await get_reminder_store()
    return ReminderScheduler(
        reminder_store,
        default_payment_terms=get_settings().reminders.default_payment_terms,
    )


def get_reminder_dispatcher(
    email_sender: "IEmailSender | None" = None,
) -> ReminderDispatcher:
    if email_sender is None:
        from invoicekit.infrastructure.email import get_email_sender

        email_sender = get_email_sender()
    return ReminderDispatcher(email_sender, get_settings().email.from_address)


def get_invoice_mailer(
    email_sender: "IEmailSender | None" = None,
) -> InvoiceMailer:
    if email_sender is None:
        from invoicekit.infrastructure.email import get_email_sender

        email_sender = get_email_sender()
    return InvoiceMailer(email_sender, get_settings().email.from_address)


async def get_delivery_status_service(
    reminder_store: "IReminderStore | None" = None,
) -> DeliveryStatusService:
    if reminder_store is None:
        from invoicekit.infrastructure.storage.sqlite import get_reminder_store

        reminder_store = await get_reminder_store()
    return DeliveryStatusService(reminder_store)


async def get_subscription_limit_service(
    user_store: "IUserStore | None" = None,
    invoice_store: "IInvoiceStore | None" = None,
    client_store: "IClientStore | None" = None,
    estimate_store: "IEstimateStore | None" = None,
    reminder_store: "IReminderStore | None" = None,
) -> SubscriptionLimitService:
    from invoicekit.infrastructure.storage import sqlite

    return SubscriptionLimitService(
        user_store=user_store or await sqlite.get_user_store(),
        invoice_store=invoice_store or await sqlite.get_invoice_store(),
        client_store=client_store or await sqlite.get_client_store(),
        estimate_store=estimate_store or await sqlite.get_estimate_store(),
        reminder_store=reminder_store or await sqlite.get_reminder_store(),
    )


async def get_checkout_service(
    payment_provider: "IPaymentProvider | None" = None,
    user_store: "IUserStore | None" = None,
    billing_store: "IBillingStore | None" = None,
) -> CheckoutService:
    from invoicekit.infrastructure.storage import sqlite

    if payment_provider is None:
        from invoicekit.infrastructure.payments import get_payment_provider

        payment_provider = get_payment_provider()

    settings = get_settings().payment
    return CheckoutService(
        payment_provider=payment_provider,
        user_store=user_store or await sqlite.get_user_store(),
        billing_store=billing_store or await sqlite.get_billing_store(),
        monthly_price=settings.monthly_price,
        currency=settings.currency,
        success_url=settings.success_url,
        cancel_url=settings.cancel_url,
    )


async def get_purge_service(
    user_store: "IUserStore | None" = None,
) -> AccountPurgeService:
    if user_store is None:
        from invoicekit.infrastructure.storage.sqlite import get_user_store

        user_store = await get_user_store()
    return AccountPurgeService(user_store)


async def get_invoice_pdf_service(
    invoice_store: "IInvoiceStore | None" = None,
    user_store: "IUserStore | None" = None,
    renderer: "IInvoicePdfRenderer | None" = None,
) -> InvoicePdfService:
    from invoicekit.infrastructure.storage import sqlite

    if renderer is None:
        from invoicekit.infrastructure.pdf import Fpdf2InvoiceRenderer

        renderer = Fpdf2InvoiceRenderer()
    return InvoicePdfService(
        invoice_store=invoice_store or await sqlite.get_invoice_store(),
        user_store=user_store or await sqlite.get_user_store(),
        renderer=renderer,
    )
