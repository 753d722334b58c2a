"""
Reminder schedule planning.

Turns an invoice's payment terms (or its custom reminder rules) into
a list of future reminder rows, one per tier.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import date, datetime, time, timedelta

from invoicekit.config import get_logger
from invoicekit.core.entities import (
    TIER_ORDER,
    Invoice,
    Reminder,
    ReminderStatus,
    ReminderTier,
)
from invoicekit.core.interfaces.storage import IReminderStore
from invoicekit.core.services.reminder_rules import EXCLUDED_STATUSES

logger = get_logger(__name__)

DUE_ON_RECEIPT = "Due on Receipt"

# Offsets in days from the due date, one per tier in TIER_ORDER.
# "Due on Receipt" offsets count from the day the invoice was sent.
SMART_SCHEDULES: dict[str, tuple[int, ...]] = {
    DUE_ON_RECEIPT: (1, 3, 7, 14),
    "Net 15": (-2, 2, 7, 15),
    "Net 30": (-3, 3, 10, 20),
    "Net 60": (-5, 5, 15, 30),
}

SEND_TIME = time(9, 0)


@dataclass
class ScheduledSlot:
    tier: ReminderTier
    offset_days: int
    scheduled_at: datetime


def _base_date(invoice: Invoice) -> date | None:
    if invoice.payment_terms == DUE_ON_RECEIPT:
        return invoice.updated_at.date()
    return invoice.due_date


def build_schedule(invoice: Invoice, default_terms: str = "Net 30") -> list[ScheduledSlot]:
    """
    Compute reminder slots for an invoice, ignoring the current time.

    Custom rules win over payment terms. They are ordered chronologically
    and take tiers by position. Only one slot per tier is kept, so rules
    past the last tier are dropped.
    """
    base = _base_date(invoice)
    if base is None:
        return []

    if invoice.reminder_rules:
        offsets = sorted(rule.offset_days for rule in invoice.reminder_rules)
    else:
        offsets = list(
            SMART_SCHEDULES.get(invoice.payment_terms)
            or SMART_SCHEDULES.get(default_terms)
            or SMART_SCHEDULES["Net 30"]
        )

    slots = []
    for tier, offset in zip(TIER_ORDER, offsets):
        when = datetime.combine(base + timedelta(days=offset), SEND_TIME)
        slots.append(ScheduledSlot(tier=tier, offset_days=offset, scheduled_at=when))
    return slots


@dataclass
class ScheduleResult:
    invoice_id: int | None
    cleared: int = 0
    scheduled: list[Reminder] = field(default_factory=list)
    skipped_reason: str | None = None


class ReminderScheduler:
    """Replaces an invoice's scheduled reminders with a fresh plan."""

    def __init__(
        self,
        reminder_store: IReminderStore,
        default_payment_terms: str = "Net 30",
    ) -> None:
        self._store = reminder_store
        self._default_terms = default_payment_terms

    async def schedule_invoice(
        self, invoice: Invoice, now: datetime | None = None
    ) -> ScheduleResult:
        now = now or datetime.now()
        result = ScheduleResult(invoice_id=invoice.id)
        if invoice.id is None:
            result.skipped_reason = "unsaved_invoice"
            return result

        result.cleared = await self._store.delete_scheduled_for_invoice(invoice.id)

        if invoice.status in EXCLUDED_STATUSES:
            result.skipped_reason = f"invoice_{invoice.status.value}"
        elif not invoice.reminders_enabled:
            result.skipped_reason = "reminders_disabled"
        if result.skipped_reason:
            logger.info(
                "reminder_schedule_cleared",
                invoice_id=invoice.id,
                cleared=result.cleared,
                reason=result.skipped_reason,
            )
            return result

        for slot in build_schedule(invoice, self._default_terms):
            if slot.scheduled_at <= now:
                continue
            reminder = Reminder(
                invoice_id=invoice.id,
                tier=slot.tier,
                status=ReminderStatus.SCHEDULED,
                overdue_days=slot.offset_days,
                scheduled_at=slot.scheduled_at,
            )
            result.scheduled.append(await self._store.create(reminder))

        logger.info(
            "reminders_scheduled",
            invoice_id=invoice.id,
            cleared=result.cleared,
            scheduled=len(result.scheduled),
        )
        return result
