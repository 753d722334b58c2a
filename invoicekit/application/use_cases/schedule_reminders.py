"""
Schedule Reminders Use Case.

Rebuilds the scheduled reminder plan for one invoice or for every
invoice with reminders enabled.
"""

from dataclasses import dataclass, field
from datetime import datetime

from invoicekit.config import get_logger
from invoicekit.core.exceptions import InvoiceNotFoundError
from invoicekit.core.interfaces.storage import IInvoiceStore
from invoicekit.core.services import ReminderScheduler, ScheduleResult

logger = get_logger(__name__)


@dataclass
class ScheduleRunResult:
    invoices: int = 0
    scheduled: int = 0
    cleared: int = 0
    results: list[ScheduleResult] = field(default_factory=list)


class ScheduleRemindersUseCase:
    def __init__(
        self,
        invoice_store: IInvoiceStore | None = None,
        scheduler: ReminderScheduler | None = None,
    ) -> None:
        self._invoice_store = invoice_store
        self._scheduler = scheduler

    async def _get_invoice_store(self) -> IInvoiceStore:
        if self._invoice_store is None:
            from invoicekit.infrastructure.storage.sqlite import get_invoice_store
            self._invoice_store = await get_invoice_store()
        return self._invoice_store

    async def _get_scheduler(self) -> ReminderScheduler:
        if self._scheduler is None:
            from invoicekit.application.services import get_reminder_scheduler
            self._scheduler = await get_reminder_scheduler()
        return self._scheduler

    async def execute_for_invoice(
        self, invoice_id: int, now: datetime | None = None
    ) -> ScheduleResult:
        invoice = await (await self._get_invoice_store()).get_invoice(invoice_id)
        if invoice is None:
            raise InvoiceNotFoundError(invoice_id)
        return await (await self._get_scheduler()).schedule_invoice(invoice, now)

    async def execute(
        self, user_id: int | None = None, now: datetime | None = None
    ) -> ScheduleRunResult:
        invoices = await (await self._get_invoice_store()).list_schedulable(user_id)
        scheduler = await self._get_scheduler()

        run = ScheduleRunResult(invoices=len(invoices))
        for invoice in invoices:
            result = await scheduler.schedule_invoice(invoice, now)
            run.results.append(result)
            run.scheduled += len(result.scheduled)
            run.cleared += result.cleared

        logger.info(
            "reminder_schedule_run_complete",
            invoices=run.invoices,
            scheduled=run.scheduled,
            cleared=run.cleared,
        )
        return run
