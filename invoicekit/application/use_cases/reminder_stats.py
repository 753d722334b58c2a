"""Reminder Stats Use Case."""

from dataclasses import dataclass, field

from invoicekit.core.entities import ReminderStatus, ReminderTier
from invoicekit.core.interfaces.storage import IInvoiceStore, IReminderStore


@dataclass
class ReminderStats:
    total_reminders: int = 0
    by_tier: dict[str, int] = field(default_factory=dict)
    by_status: dict[str, int] = field(default_factory=dict)
    invoices_by_status: dict[str, int] = field(default_factory=dict)
    total_revenue: float = 0.0
    success_rate: float = 0.0


def success_rate(by_status: dict[str, int]) -> float:
    """Sent or delivered share of reminders that left the queue, in percent."""
    attempted = sum(
        count for status, count in by_status.items()
        if status != ReminderStatus.SCHEDULED.value
    )
    if attempted == 0:
        return 0.0
    succeeded = by_status.get(ReminderStatus.SENT.value, 0) + by_status.get(
        ReminderStatus.DELIVERED.value, 0
    )
    return round(succeeded / attempted * 100, 1)


class GetReminderStatsUseCase:
    def __init__(
        self,
        invoice_store: IInvoiceStore | None = None,
        reminder_store: IReminderStore | None = None,
    ) -> None:
        self._invoice_store = invoice_store
        self._rem_store = reminder_store

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

    async def execute(self, user_id: int | None = None) -> ReminderStats:
        rem_store = await self._get_rem_store()
        invoice_store = await self._get_invoice_store()

        by_tier = {tier.value: 0 for tier in ReminderTier}
        by_tier.update(await rem_store.count_by_tier(user_id))
        by_status = {status.value: 0 for status in ReminderStatus}
        by_status.update(await rem_store.count_by_status(user_id))

        return ReminderStats(
            total_reminders=sum(by_status.values()),
            by_tier=by_tier,
            by_status=by_status,
            invoices_by_status=await invoice_store.count_by_status(user_id),
            total_revenue=await invoice_store.total_paid(user_id),
            success_rate=success_rate(by_status),
        )
