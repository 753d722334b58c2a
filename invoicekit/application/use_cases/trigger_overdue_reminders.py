"""
Trigger Overdue Reminders Use Case.

Walks every unpaid invoice past its due date, asks the rule evaluator
whether a reminder is due, and creates and dispatches it. A failed send
marks the reminder failed and does not undo anything else.
"""

from dataclasses import dataclass, field
from datetime import date, datetime

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
from invoicekit.core.services import (
    ReminderDecision,
    ReminderDispatcher,
    ReminderRuleEvaluator,
    SubscriptionLimitService,
)

logger = get_logger(__name__)


@dataclass
class TriggerResult:
    """Summary of one trigger run."""

    evaluated: int = 0
    created: int = 0
    sent: int = 0
    failed: int = 0
    skipped: int = 0
    marked_overdue: int = 0
    dry_run: bool = False
    decisions: list[ReminderDecision] = field(default_factory=list)
    reminders: list[Reminder] = field(default_factory=list)


class TriggerOverdueRemindersUseCase:
    """Creates and sends reminders for overdue invoices."""

    def __init__(
        self,
        invoice_store: IInvoiceStore | None = None,
        reminder_store: IReminderStore | None = None,
        user_store: IUserStore | None = None,
        evaluator: ReminderRuleEvaluator | None = None,
        dispatcher: ReminderDispatcher | None = None,
        limits: SubscriptionLimitService | None = None,
    ) -> None:
        self._invoice_store = invoice_store
        self._rem_store = reminder_store
        self._user_store = user_store
        self._evaluator = evaluator
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

    async def _get_evaluator(self) -> ReminderRuleEvaluator:
        if self._evaluator is None:
            from invoicekit.application.services import get_rule_evaluator
            self._evaluator = await get_rule_evaluator(await self._get_rem_store())
        return self._evaluator

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

    async def execute(
        self,
        today: date | None = None,
        dry_run: bool = False,
    ) -> TriggerResult:
        """
        Evaluate all overdue candidates.

        Args:
            today: Evaluation date (defaults to the current date)
            dry_run: Only report decisions; write nothing and send nothing

        Returns:
            TriggerResult with counts, decisions, and created reminders
        """
        today = today or date.today()
        invoice_store = await self._get_invoice_store()
        evaluator = await self._get_evaluator()

        candidates = await invoice_store.list_overdue_candidates(today)
        result = TriggerResult(dry_run=dry_run)
        profiles: dict[int, BusinessProfile | None] = {}

        logger.info("reminder_trigger_started", candidates=len(candidates), dry_run=dry_run)

        for invoice in candidates:
            result.evaluated += 1
            decision = await evaluator.evaluate(invoice, today)
            result.decisions.append(decision)
            if dry_run:
                continue

            if invoice.status == InvoiceStatus.SENT and invoice.id is not None:
                await invoice_store.update_status(invoice.id, InvoiceStatus.OVERDUE)
                invoice.status = InvoiceStatus.OVERDUE
                result.marked_overdue += 1

            if not decision.should_create:
                result.skipped += 1
                continue

            reminder = await self._create_and_send(invoice, decision, profiles, result)
            if reminder is not None:
                result.reminders.append(reminder)

        logger.info(
            "reminder_trigger_complete",
            evaluated=result.evaluated,
            created=result.created,
            sent=result.sent,
            failed=result.failed,
            skipped=result.skipped,
            marked_overdue=result.marked_overdue,
        )
        return result

    async def _create_and_send(
        self,
        invoice: Invoice,
        decision: ReminderDecision,
        profiles: dict[int, BusinessProfile | None],
        result: TriggerResult,
    ) -> Reminder | None:
        if invoice.id is None or decision.tier is None:
            result.skipped += 1
            return None

        if not invoice.client_email:
            logger.warning("reminder_skipped_no_client_email", invoice_id=invoice.id)
            result.skipped += 1
            return None

        limits = await self._get_limits()
        allowed = await limits.can_send_reminder(invoice.user_id, invoice.id)
        if not allowed.allowed:
            logger.info(
                "reminder_skipped_plan_limit",
                invoice_id=invoice.id,
                reason=allowed.reason,
            )
            result.skipped += 1
            return None

        rem_store = await self._get_rem_store()
        reminder = await rem_store.create_if_absent(
            Reminder(
                invoice_id=invoice.id,
                tier=decision.tier,
                status=ReminderStatus.SCHEDULED,
                overdue_days=decision.overdue_days,
                scheduled_at=datetime.now(),
            )
        )
        if reminder is None:
            # Another run inserted the same reminder first
            result.skipped += 1
            return None
        result.created += 1

        if invoice.user_id not in profiles:
            profiles[invoice.user_id] = await (await self._get_user_store()).get_profile(
                invoice.user_id
            )

        try:
            reminder.email_id = await self._get_dispatcher().dispatch(
                recipient=invoice.client_email,
                tier=decision.tier,
                invoice=invoice,
                profile=profiles[invoice.user_id],
                overdue_days=decision.overdue_days,
            )
            reminder.status = ReminderStatus.SENT
            result.sent += 1
        except EmailDeliveryError as e:
            logger.warning(
                "reminder_send_failed",
                invoice_id=invoice.id,
                reminder_id=reminder.id,
                error=e.message,
            )
            reminder.status = ReminderStatus.FAILED
            reminder.failure_reason = e.message
            result.failed += 1

        try:
            return await rem_store.update(reminder)
        except ReminderConflictError as e:
            # An earlier row for this tier already has the outcome status
            await rem_store.delete(reminder.id)
            logger.warning(
                "reminder_superseded",
                invoice_id=invoice.id,
                reminder_id=reminder.id,
                existing_id=e.existing_id,
                status=reminder.status.value,
                email_id=reminder.email_id,
            )
            return None
