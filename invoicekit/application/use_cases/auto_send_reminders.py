"""
Auto-Send Reminders Use Case.

Sends scheduled reminders whose time has come. Reminders that can no
longer be sent are marked failed with the reason. When saving a row
would collide with an existing reminder of the same invoice, tier and
status, the existing row is kept and the scheduled one is dropped.
"""

from dataclasses import dataclass, field
from datetime import datetime

from invoicekit.config import get_logger
from invoicekit.core.entities import (
    BusinessProfile,
    Invoice,
    InvoiceStatus,
    Reminder,
    ReminderStatus,
)
from invoicekit.core.exceptions import EmailDeliveryError, ReminderConflictError
from invoicekit.core.interfaces.storage import (
    IInvoiceStore,
    IReminderStore,
    IUserStore,
)
from invoicekit.core.services import ReminderDispatcher, SubscriptionLimitService

logger = get_logger(__name__)

SENDABLE_STATUSES = frozenset(
    {InvoiceStatus.SENT, InvoiceStatus.PENDING, InvoiceStatus.OVERDUE}
)
DELIVERED_STATUSES = frozenset({ReminderStatus.SENT, ReminderStatus.DELIVERED})


@dataclass
class AutoSendResult:
    total_found: int = 0
    processed: int = 0
    success: int = 0
    errors: int = 0
    failures: list[dict] = field(default_factory=list)


class AutoSendRemindersUseCase:
    """Delivers due scheduled reminders."""

    def __init__(
        self,
        invoice_store: IInvoiceStore | None = None,
        reminder_store: IReminderStore | None = None,
        user_store: IUserStore | None = None,
        dispatcher: ReminderDispatcher | None = None,
        limits: SubscriptionLimitService | None = None,
    ) -> None:
        self._invoice_store = invoice_store
        self._rem_store = reminder_store
        self._user_store = user_store
        self._dispatcher = dispatcher
        self._limits = limits

    async def _get_invoice_store(self) -> IInvoiceStore:
        if self._invoice_store is None:
            from invoicekit.infrastructure.storage.sqlite import get_invoice_store
            self._invoice_store = await get_invoice_store()
        return self._invoice_store

    async def _get_rem_store(self) -> IReminderStore:
        if self._rem_store is None:
            from invoicekit.infrastructure.storage.sqlite import get_reminder_store
            self._rem_store = await get_reminder_store()
        return self._rem_store

    async def _get_user_store(self) -> IUserStore:
        if self._user_store is None:
            from invoicekit.infrastructure.storage.sqlite import get_user_store
            self._user_store = await get_user_store()
        return self._user_store

    def _get_dispatcher(self) -> ReminderDispatcher:
        if self._dispatcher is None:
            from invoicekit.application.services import get_reminder_dispatcher
            self._dispatcher = get_reminder_dispatcher()
        return self._dispatcher

    async def _get_limits(self) -> SubscriptionLimitService:
        if self._limits is None:
            from invoicekit.application.services import get_subscription_limit_service
            self._limits = await get_subscription_limit_service(
                invoice_store=await self._get_invoice_store(),
                reminder_store=await self._get_rem_store(),
                user_store=await self._get_user_store(),
            )
        return self._limits

    async def execute(self, now: datetime | None = None) -> AutoSendResult:
        now = now or datetime.now()
        rem_store = await self._get_rem_store()
        due = await rem_store.list_due(now)
        result = AutoSendResult(total_found=len(due))
        profiles: dict[int, BusinessProfile | None] = {}

        for reminder in due:
            result.processed += 1
            error = await self._send_one(reminder, now, profiles)
            if error is None:
                result.success += 1
                continue

            result.errors += 1
            result.failures.append({"reminder_id": reminder.id, "reason": error})
            reminder.status = ReminderStatus.FAILED
            reminder.failure_reason = error
            await self._save(reminder)

        logger.info(
            "auto_send_complete",
            total_found=result.total_found,
            processed=result.processed,
            success=result.success,
            errors=result.errors,
        )
        return result

    async def _save(self, reminder: Reminder) -> None:
        rem_store = await self._get_rem_store()
        try:
            await rem_store.update(reminder)
        except ReminderConflictError as e:
            await rem_store.delete(reminder.id)
            logger.warning(
                "auto_send_reminder_superseded",
                reminder_id=reminder.id,
                existing_id=e.existing_id,
                status=reminder.status.value,
                email_id=reminder.email_id,
            )

    async def _refusal(self, invoice: Invoice | None, reminder: Reminder) -> str | None:
        if invoice is None:
            return "Invoice not found"
        if invoice.is_paid:
            return "Invoice already paid"
        if invoice.status not in SENDABLE_STATUSES:
            return "Invoice not in sendable state"
        if not invoice.client_email:
            return "Client email missing"
        history = await (await self._get_rem_store()).list_for_invoice(reminder.invoice_id)
        if any(
            r.id != reminder.id
            and r.tier == reminder.tier
            and r.status in DELIVERED_STATUSES
            for r in history
        ):
            return "Reminder tier already sent"
        if invoice.id is not None:
            limit = await (await self._get_limits()).can_send_reminder(
                invoice.user_id, invoice.id
            )
            if not limit.allowed:
                return limit.reason
        return None

    async def _send_one(
        self,
        reminder: Reminder,
        now: datetime,
        profiles: dict[int, BusinessProfile | None],
    ) -> str | None:
        """Send one reminder; returns a failure reason or None on success."""
        invoice = await (await self._get_invoice_store()).get_invoice(reminder.invoice_id)
        refusal = await self._refusal(invoice, reminder)
        if refusal is not None:
            logger.info("auto_send_refused", reminder_id=reminder.id, reason=refusal)
            return refusal

        if invoice.user_id not in profiles:
            profiles[invoice.user_id] = await (await self._get_user_store()).get_profile(
                invoice.user_id
            )

        try:
            message_id = await self._get_dispatcher().dispatch(
                recipient=invoice.client_email,
                tier=reminder.tier,
                invoice=invoice,
                profile=profiles[invoice.user_id],
                overdue_days=invoice.overdue_days(now.date()),
            )
        except EmailDeliveryError as e:
            logger.warning("auto_send_failed", reminder_id=reminder.id, error=e.message)
            return e.message

        reminder.status = ReminderStatus.SENT
        reminder.email_id = message_id
        reminder.scheduled_at = now
        reminder.failure_reason = None
        await self._save(reminder)
        return None
