"""
Overdue reminder rule evaluation.

Decides whether an invoice needs a new reminder and at which tier.
The day-band to tier mapping lives in one ordered table
(``DEFAULT_TIER_BANDS`` unless configured otherwise).
"""

from __future__ import annotations

from collections.abc import Sequence
from dataclasses import dataclass
from datetime import date, datetime

from invoicekit.config import get_logger
from invoicekit.core.entities import (
    DEFAULT_TIER_BANDS,
    Invoice,
    InvoiceStatus,
    Reminder,
    ReminderTier,
    TierBand,
)
from invoicekit.core.exceptions import ConfigurationError
from invoicekit.core.interfaces.storage import IReminderStore

logger = get_logger(__name__)

# Never evaluated for reminders
EXCLUDED_STATUSES = frozenset({InvoiceStatus.DRAFT, InvoiceStatus.PAID})


def compute_overdue_days(due: date | datetime, today: date | None = None) -> int:
    """Whole calendar days from the due date (at midnight) to today."""
    if isinstance(due, datetime):
        due = due.date()
    today = today or date.today()
    return (today - due).days


def validate_tier_bands(bands: Sequence[TierBand]) -> tuple[TierBand, ...]:
    """Check bands are ascending and non-overlapping; return them as a tuple."""
    if not bands:
        raise ConfigurationError("At least one reminder tier band is required")

    ordered = tuple(bands)
    for previous, current in zip(ordered, ordered[1:]):
        if previous.max_days is None:
            raise ConfigurationError(
                f"Open-ended band for '{previous.tier.value}' must be last"
            )
        if current.min_days <= previous.max_days:
            raise ConfigurationError(
                f"Band for '{current.tier.value}' overlaps '{previous.tier.value}'"
            )
    for band in ordered:
        if band.max_days is not None and band.max_days < band.min_days:
            raise ConfigurationError(f"Band for '{band.tier.value}' is empty")
    return ordered


def tier_for_overdue_days(
    overdue_days: int, bands: Sequence[TierBand] = DEFAULT_TIER_BANDS
) -> ReminderTier | None:
    """Tier whose band contains ``overdue_days``, or None when outside all bands."""
    for band in bands:
        if band.contains(overdue_days):
            return band.tier
    return None


@dataclass
class ReminderDecision:
    """Outcome of evaluating one invoice."""

    invoice_id: int | None
    should_create: bool
    overdue_days: int
    tier: ReminderTier | None = None
    reason: str = ""

    @classmethod
    def skip(
        cls,
        invoice: Invoice,
        reason: str,
        overdue_days: int = 0,
        tier: ReminderTier | None = None,
    ) -> ReminderDecision:
        return cls(
            invoice_id=invoice.id,
            should_create=False,
            overdue_days=overdue_days,
            tier=tier,
            reason=reason,
        )


class ReminderRuleEvaluator:
    """
    Layer-pure rule evaluator for overdue reminders.

    ``decide`` works on an invoice plus its existing reminder rows and
    touches no I/O. ``evaluate`` loads those rows from the reminder
    store first.
    """

    def __init__(
        self,
        reminder_store: IReminderStore | None = None,
        bands: Sequence[TierBand] | None = None,
    ) -> None:
        self._reminder_store = reminder_store
        self._bands = validate_tier_bands(bands or DEFAULT_TIER_BANDS)

    @property
    def bands(self) -> tuple[TierBand, ...]:
        return self._bands

    def decide(
        self,
        invoice: Invoice,
        existing: Sequence[Reminder],
        today: date | None = None,
    ) -> ReminderDecision:
        """Apply the reminder rules to one invoice."""
        if invoice.status in EXCLUDED_STATUSES:
            return ReminderDecision.skip(invoice, f"invoice_{invoice.status.value}")

        if invoice.due_date is None:
            return ReminderDecision.skip(invoice, "no_due_date")

        days = compute_overdue_days(invoice.due_date, today)
        if days <= 0:
            return ReminderDecision.skip(invoice, "not_overdue", overdue_days=days)

        tier = tier_for_overdue_days(days, self._bands)
        if tier is None:
            return ReminderDecision.skip(invoice, "no_matching_tier", overdue_days=days)

        if any(r.tier == tier and r.is_active for r in existing):
            return ReminderDecision.skip(
                invoice, "tier_already_active", overdue_days=days, tier=tier
            )

        return ReminderDecision(
            invoice_id=invoice.id,
            should_create=True,
            overdue_days=days,
            tier=tier,
            reason="tier_threshold_crossed",
        )

    async def evaluate(
        self, invoice: Invoice, today: date | None = None
    ) -> ReminderDecision:
        """Query the invoice's reminders, then decide."""
        existing: list[Reminder] = []
        if (
            self._reminder_store is not None
            and invoice.id is not None
            and invoice.status not in EXCLUDED_STATUSES
        ):
            existing = await self._reminder_store.list_for_invoice(invoice.id)

        decision = self.decide(invoice, existing, today)
        logger.debug(
            "reminder_rule_evaluated",
            invoice_id=invoice.id,
            should_create=decision.should_create,
            tier=decision.tier.value if decision.tier else None,
            overdue_days=decision.overdue_days,
            reason=decision.reason,
        )
        return decision
