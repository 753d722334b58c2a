"""
Invoice lifecycle use cases.

Creation and updates are gated by subscription limits and keep the
invoice's scheduled reminders in step with its status and terms.
"""

from dataclasses import dataclass, field
from datetime import datetime
from typing import Any

from invoicekit.config import get_logger, get_settings
from invoicekit.core.entities import (
    BillingKind,
    BillingRecord,
    Invoice,
    InvoiceStatus,
    SubscriptionPlan,
)
from invoicekit.core.exceptions import (
    ClientNotFoundError,
    InvoiceNotFoundError,
    ValidationError,
)
from invoicekit.core.interfaces.storage import (
    IBillingStore,
    IClientStore,
    IInvoiceStore,
    IReminderStore,
    IUserStore,
)
from invoicekit.core.services import (
    InvoiceMailer,
    ReminderScheduler,
    SubscriptionLimitService,
)

logger = get_logger(__name__)


class _InvoiceUseCaseBase:
    def __init__(
        self,
        invoice_store: IInvoiceStore | None = None,
        client_store: IClientStore | None = None,
        reminder_store: IReminderStore | None = None,
        limits: SubscriptionLimitService | None = None,
        scheduler: ReminderScheduler | None = None,
    ) -> None:
        self._invoice_store = invoice_store
        self._client_store = client_store
        self._rem_store = reminder_store
        self._limits = limits
        self._scheduler = scheduler

    async def _get_invoice_store(self) -> IInvoiceStore:
        if self._invoice_store is None:
            from invoicekit.infrastructure.storage.sqlite import get_invoice_store
            self._invoice_store = await get_invoice_store()
        return self._invoice_store

    async def _get_client_store(self) -> IClientStore:
        if self._client_store is None:
            from invoicekit.infrastructure.storage.sqlite import get_client_store
            self._client_store = await get_client_store()
        return self._client_store

    async def _get_rem_store(self) -> IReminderStore:
        if self._rem_store is None:
            from invoicekit.infrastructure.storage.sqlite import get_reminder_store
            self._rem_store = await get_reminder_store()
        return self._rem_store

    async def _get_limits(self) -> SubscriptionLimitService:
        if self._limits is None:
            from invoicekit.application.services import get_subscription_limit_service
            self._limits = await get_subscription_limit_service()
        return self._limits

    async def _get_scheduler(self) -> ReminderScheduler:
        if self._scheduler is None:
            from invoicekit.application.services import get_reminder_scheduler
            self._scheduler = await get_reminder_scheduler(await self._get_rem_store())
        return self._scheduler

    async def _check_client(self, invoice: Invoice) -> None:
        if invoice.client_id is None:
            return
        client = await (await self._get_client_store()).get(invoice.client_id)
        if client is None or client.user_id != invoice.user_id:
            raise ClientNotFoundError(invoice.client_id)

    async def _check_styling(self, invoice: Invoice) -> None:
        limits = await self._get_limits()
        await limits.require(
            await limits.can_use_template(invoice.user_id, invoice.template_id),
            invoice.user_id,
        )
        await limits.require(
            await limits.can_use_color_preset(invoice.user_id, invoice.color_preset),
            invoice.user_id,
        )

    async def _check_invoice_quota(self, invoice: Invoice) -> None:
        limits = await self._get_limits()
        await limits.require(
            await limits.can_create_invoice(invoice.user_id), invoice.user_id
        )

    async def _mark_paid(self, invoice: Invoice) -> Invoice:
        """Set paid (once) and clear the invoice's still-scheduled reminders."""
        if not invoice.is_paid:
            await (await self._get_invoice_store()).update_status(
                invoice.id, InvoiceStatus.PAID
            )
            invoice.status = InvoiceStatus.PAID
            invoice.paid_at = datetime.now()

        cleared = await (await self._get_rem_store()).delete_scheduled_for_invoice(
            invoice.id
        )
        logger.info("invoice_marked_paid", invoice_id=invoice.id, reminders_cleared=cleared)
        return invoice


class CreateInvoiceUseCase(_InvoiceUseCaseBase):
    """Create an invoice; non-draft invoices count against the plan."""

    async def execute(self, invoice: Invoice) -> Invoice:
        logger.info(
            "create_invoice_started",
            user_id=invoice.user_id,
            invoice_number=invoice.invoice_number,
        )
        await self._check_client(invoice)
        await self._check_styling(invoice)
        if not invoice.is_draft:
            await self._check_invoice_quota(invoice)

        if not invoice.total and invoice.items:
            invoice.total = invoice.items_total

        created = await (await self._get_invoice_store()).create_invoice(invoice)
        if not created.is_draft and created.reminders_enabled:
            await (await self._get_scheduler()).schedule_invoice(created)

        logger.info("create_invoice_complete", invoice_id=created.id)
        return created


class UpdateInvoiceUseCase(_InvoiceUseCaseBase):
    """Apply field changes and re-plan the invoice's reminders."""

    async def execute(self, invoice_id: int, changes: dict[str, Any]) -> Invoice:
        store = await self._get_invoice_store()
        existing = await store.get_invoice(invoice_id)
        if existing is None:
            raise InvoiceNotFoundError(invoice_id)

        updated = existing.model_copy(update=changes)
        if "client_id" in changes:
            await self._check_client(updated)
        if "template_id" in changes or "color_preset" in changes:
            await self._check_styling(updated)
        if existing.is_draft and not updated.is_draft:
            await self._check_invoice_quota(updated)
        if "items" in changes and "total" not in changes and updated.items:
            updated.total = updated.items_total

        saved = await store.update_invoice(updated)
        await (await self._get_scheduler()).schedule_invoice(saved)
        return saved


class MarkInvoicePaidUseCase(_InvoiceUseCaseBase):
    """Mark an invoice paid and drop its pending reminders."""

    async def execute(self, invoice_id: int) -> Invoice:
        store = await self._get_invoice_store()
        invoice = await store.get_invoice(invoice_id)
        if invoice is None:
            raise InvoiceNotFoundError(invoice_id)
        return await self._mark_paid(invoice)


@dataclass
class BulkMarkPaidResult:
    marked: list[Invoice] = field(default_factory=list)
    skipped: list[int] = field(default_factory=list)


class BulkMarkPaidUseCase(_InvoiceUseCaseBase):
    """
    Mark several of a user's invoices paid at once.

    Ids that are unknown, belong to someone else, or are already paid
    are skipped. Nothing to mark at all is a validation error.
    """

    async def execute(self, user_id: int, invoice_ids: list[int]) -> BulkMarkPaidResult:
        store = await self._get_invoice_store()
        result = BulkMarkPaidResult()
        for invoice_id in dict.fromkeys(invoice_ids):
            invoice = await store.get_invoice(invoice_id)
            if invoice is None or invoice.user_id != user_id or invoice.is_paid:
                result.skipped.append(invoice_id)
                continue
            result.marked.append(await self._mark_paid(invoice))

        if not result.marked:
            raise ValidationError(
                "invoice_ids", "No valid invoices found to mark as paid", invoice_ids
            )
        logger.info(
            "invoices_bulk_marked_paid",
            user_id=user_id,
            marked=len(result.marked),
            skipped=len(result.skipped),
        )
        return result


@dataclass
class SendInvoiceResult:
    invoice: Invoice
    email_id: str
    fee: BillingRecord | None = None


class SendInvoiceUseCase(_InvoiceUseCaseBase):
    """
    Email a draft invoice to its client and mark it sent.

    Sending publishes the invoice, so it counts against the plan and its
    reminders are scheduled. A failed send leaves the invoice a draft.
    ``pay_per_invoice`` accounts get one pending fee record per invoice.
    """

    def __init__(
        self,
        invoice_store: IInvoiceStore | None = None,
        client_store: IClientStore | None = None,
        reminder_store: IReminderStore | None = None,
        limits: SubscriptionLimitService | None = None,
        scheduler: ReminderScheduler | None = None,
        user_store: IUserStore | None = None,
        billing_store: IBillingStore | None = None,
        mailer: InvoiceMailer | None = None,
    ) -> None:
        super().__init__(invoice_store, client_store, reminder_store, limits, scheduler)
        self._user_store = user_store
        self._billing_store = billing_store
        self._mailer = mailer

    async def _get_user_store(self) -> IUserStore:
        if self._user_store is None:
            from invoicekit.infrastructure.storage.sqlite import get_user_store
            self._user_store = await get_user_store()
        return self._user_store

    async def _get_billing_store(self) -> IBillingStore:
        if self._billing_store is None:
            from invoicekit.infrastructure.storage.sqlite import get_billing_store
            self._billing_store = await get_billing_store()
        return self._billing_store

    def _get_mailer(self) -> InvoiceMailer:
        if self._mailer is None:
            from invoicekit.application.services import get_invoice_mailer
            self._mailer = get_invoice_mailer()
        return self._mailer

    async def execute(self, invoice_id: int) -> SendInvoiceResult:
        store = await self._get_invoice_store()
        invoice = await store.get_invoice(invoice_id)
        if invoice is None:
            raise InvoiceNotFoundError(invoice_id)
        if not invoice.is_draft:
            raise ValidationError(
                "status", "Only draft invoices can be sent", invoice.status.value
            )
        if not invoice.client_email:
            raise ValidationError("client_email", "The invoice's client has no email address")
        await self._check_invoice_quota(invoice)

        users = await self._get_user_store()
        profile = await users.get_profile(invoice.user_id)
        email_id = await self._get_mailer().send_invoice(
            invoice.client_email, invoice, profile
        )

        await store.update_status(invoice_id, InvoiceStatus.SENT)
        invoice.status = InvoiceStatus.SENT
        if invoice.reminders_enabled:
            await (await self._get_scheduler()).schedule_invoice(invoice)

        fee = await self._record_fee(invoice)
        logger.info(
            "invoice_sent",
            invoice_id=invoice_id,
            email_id=email_id,
            fee_recorded=fee is not None,
        )
        return SendInvoiceResult(invoice=invoice, email_id=email_id, fee=fee)

    async def _record_fee(self, invoice: Invoice) -> BillingRecord | None:
        user = await (await self._get_user_store()).get_user(invoice.user_id)
        if user is None or user.plan != SubscriptionPlan.PAY_PER_INVOICE:
            return None
        billing = await self._get_billing_store()
        if await billing.find_invoice_fee(invoice.id) is not None:
            return None
        payment = get_settings().payment
        return await billing.create_record(
            BillingRecord(
                user_id=invoice.user_id,
                plan=SubscriptionPlan.PAY_PER_INVOICE,
                amount=payment.per_invoice_fee,
                currency=payment.currency,
                kind=BillingKind.INVOICE_FEE,
                invoice_id=invoice.id,
            )
        )
