"""Tests for reminder statistics."""

from unittest.mock import AsyncMock

from invoicekit.application.use_cases.reminder_stats import (
    GetReminderStatsUseCase,
    success_rate,
)


def _stores(by_tier=None, by_status=None):
    reminders = AsyncMock()
    reminders.count_by_tier.return_value = by_tier or {}
    reminders.count_by_status.return_value = by_status or {}
    invoices = AsyncMock()
    invoices.count_by_status.return_value = {"paid": 2, "overdue": 1}
    invoices.total_paid.return_value = 3200.0
    return invoices, reminders


class TestReminderStats:
    async def test_zero_defaults(self):
        invoices, reminders = _stores()

        stats = await GetReminderStatsUseCase(invoices, reminders).execute()

        assert stats.total_reminders == 0
        assert stats.by_tier == {"friendly": 0, "polite": 0, "firm": 0, "urgent": 0}
        assert set(stats.by_status) == {
            "scheduled", "sent", "delivered", "failed", "bounced"
        }
        assert stats.success_rate == 0.0

    async def test_counts_and_revenue(self):
        invoices, reminders = _stores(
            by_tier={"friendly": 3, "firm": 1},
            by_status={"sent": 2, "delivered": 1, "failed": 1, "scheduled": 5},
        )

        stats = await GetReminderStatsUseCase(invoices, reminders).execute(user_id=1)

        assert stats.total_reminders == 9
        assert stats.by_tier["friendly"] == 3
        assert stats.by_tier["polite"] == 0
        assert stats.total_revenue == 3200.0
        assert stats.invoices_by_status == {"paid": 2, "overdue": 1}
        assert stats.success_rate == 75.0
        invoices.count_by_status.assert_awaited_once_with(1)
        reminders.count_by_tier.assert_awaited_once_with(1)
        reminders.count_by_status.assert_awaited_once_with(1)


def test_success_rate_ignores_scheduled():
    assert success_rate({"scheduled": 10}) == 0.0
    assert success_rate({"sent": 1, "bounced": 2}) == 33.3
