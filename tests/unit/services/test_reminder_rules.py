"""Tests for overdue reminder rule evaluation."""

from datetime import date, datetime
from unittest.mock import AsyncMock

import pytest

from invoicekit.core.entities import (
    InvoiceStatus,
    ReminderStatus,
    ReminderTier,
    TierBand,
)
from invoicekit.core.exceptions import ConfigurationError
from invoicekit.core.services.reminder_rules import (
    ReminderRuleEvaluator,
    compute_overdue_days,
    tier_for_overdue_days,
    validate_tier_bands,
)
from tests.factories import make_invoice, make_reminder

DUE = date(2025, 3, 1)


def _today(days_overdue: int) -> date:
    return date.fromordinal(DUE.toordinal() + days_overdue)


class TestComputeOverdueDays:
    def test_truncates_datetime_to_date(self):
        assert compute_overdue_days(datetime(2025, 3, 1, 23, 59), date(2025, 3, 2)) == 1

    def test_due_today_is_zero(self):
        assert compute_overdue_days(DUE, DUE) == 0


class TestTierForOverdueDays:
    @pytest.mark.parametrize(
        "days,tier",
        [
            (1, ReminderTier.FRIENDLY),
            (3, ReminderTier.FRIENDLY),
            (4, ReminderTier.POLITE),
            (7, ReminderTier.POLITE),
            (8, ReminderTier.FIRM),
            (14, ReminderTier.FIRM),
            (15, ReminderTier.URGENT),
            (90, ReminderTier.URGENT),
        ],
    )
    def test_default_bands(self, days, tier):
        assert tier_for_overdue_days(days) == tier

    def test_zero_days_has_no_tier(self):
        assert tier_for_overdue_days(0) is None


class TestValidateTierBands:
    def test_rejects_empty(self):
        with pytest.raises(ConfigurationError):
            validate_tier_bands([])

    def test_rejects_overlap(self):
        bands = [
            TierBand(tier=ReminderTier.FRIENDLY, min_days=1, max_days=5),
            TierBand(tier=ReminderTier.POLITE, min_days=5, max_days=9),
        ]
        with pytest.raises(ConfigurationError, match="overlaps"):
            validate_tier_bands(bands)

    def test_rejects_open_band_before_last(self):
        bands = [
            TierBand(tier=ReminderTier.FRIENDLY, min_days=1),
            TierBand(tier=ReminderTier.POLITE, min_days=5),
        ]
        with pytest.raises(ConfigurationError, match="must be last"):
            validate_tier_bands(bands)

    def test_custom_bands_change_mapping(self):
        evaluator = ReminderRuleEvaluator(
            bands=[
                TierBand(tier=ReminderTier.FRIENDLY, min_days=1, max_days=10),
                TierBand(tier=ReminderTier.URGENT, min_days=11),
            ]
        )
        decision = evaluator.decide(make_invoice(), [], _today(10))
        assert decision.tier == ReminderTier.FRIENDLY


class TestReminderRuleEvaluatorDecide:
    """Pure decision logic, no store involved."""

    def setup_method(self):
        self.evaluator = ReminderRuleEvaluator()

    def test_ten_days_overdue_without_reminders_is_firm(self):
        decision = self.evaluator.decide(make_invoice(), [], _today(10))
        assert decision.should_create is True
        assert decision.tier == ReminderTier.FIRM
        assert decision.overdue_days == 10
        assert decision.reason == "tier_threshold_crossed"

    def test_paid_invoice_never_gets_reminder(self):
        invoice = make_invoice(status=InvoiceStatus.PAID)
        decision = self.evaluator.decide(invoice, [], _today(30))
        assert decision.should_create is False
        assert decision.reason == "invoice_paid"

    def test_draft_invoice_skipped(self):
        decision = self.evaluator.decide(
            make_invoice(status=InvoiceStatus.DRAFT), [], _today(30)
        )
        assert decision.should_create is False
        assert decision.reason == "invoice_draft"

    def test_missing_due_date(self):
        decision = self.evaluator.decide(make_invoice(due_date=None), [], _today(5))
        assert decision.reason == "no_due_date"

    def test_not_yet_overdue(self):
        decision = self.evaluator.decide(make_invoice(), [], DUE)
        assert decision.should_create is False
        assert decision.reason == "not_overdue"
        assert decision.overdue_days == 0

    def test_active_reminder_of_same_tier_blocks(self):
        existing = [make_reminder(tier=ReminderTier.FIRM, status=ReminderStatus.DELIVERED)]
        decision = self.evaluator.decide(make_invoice(), existing, _today(10))
        assert decision.should_create is False
        assert decision.tier == ReminderTier.FIRM
        assert decision.reason == "tier_already_active"

    def test_failed_reminder_of_same_tier_does_not_block(self):
        existing = [make_reminder(tier=ReminderTier.FIRM, status=ReminderStatus.FAILED)]
        decision = self.evaluator.decide(make_invoice(), existing, _today(10))
        assert decision.should_create is True

    def test_lower_tier_reminders_do_not_block_escalation(self):
        existing = [
            make_reminder(id=1, tier=ReminderTier.FRIENDLY),
            make_reminder(id=2, tier=ReminderTier.POLITE),
        ]
        decision = self.evaluator.decide(make_invoice(), existing, _today(20))
        assert decision.should_create is True
        assert decision.tier == ReminderTier.URGENT

    def test_overdue_status_is_still_evaluated(self):
        invoice = make_invoice(status=InvoiceStatus.OVERDUE)
        assert self.evaluator.decide(invoice, [], _today(2)).should_create is True


class TestReminderRuleEvaluatorEvaluate:
    async def test_loads_existing_reminders_from_store(self):
        store = AsyncMock()
        store.list_for_invoice.return_value = [
            make_reminder(tier=ReminderTier.FIRM, status=ReminderStatus.SENT)
        ]
        evaluator = ReminderRuleEvaluator(store)

        decision = await evaluator.evaluate(make_invoice(id=5), _today(9))

        store.list_for_invoice.assert_awaited_once_with(5)
        assert decision.should_create is False

    async def test_paid_invoice_skips_store_lookup(self):
        store = AsyncMock()
        evaluator = ReminderRuleEvaluator(store)

        decision = await evaluator.evaluate(
            make_invoice(status=InvoiceStatus.PAID), _today(9)
        )

        store.list_for_invoice.assert_not_awaited()
        assert decision.should_create is False
