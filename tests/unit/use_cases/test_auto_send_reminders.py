"""Tests for sending due scheduled reminders."""

from datetime import datetime
from unittest.mock import AsyncMock

import pytest

from invoicekit.application.use_cases.auto_send_reminders import (
    AutoSendRemindersUseCase,
)
from invoicekit.core.entities import InvoiceStatus, ReminderStatus, ReminderTier
from invoicekit.core.exceptions import EmailDeliveryError, ReminderConflictError
from invoicekit.core.services import ValidationResult
from tests.factories import make_invoice, make_reminder

NOW = datetime(2025, 3, 11, 9, 0)


def _scheduled():
    return make_reminder(
        id=3,
        tier=ReminderTier.POLITE,
        status=ReminderStatus.SCHEDULED,
        scheduled_at=datetime(2025, 3, 10, 9, 0),
    )


@pytest.fixture
def invoice_store():
    store = AsyncMock()
    store.get_invoice.return_value = make_invoice(status=InvoiceStatus.OVERDUE)
    return store


@pytest.fixture
def reminder_store():
    store = AsyncMock()
    store.list_due.return_value = [_scheduled()]
    store.list_for_invoice.return_value = []
    store.update.side_effect = lambda r: r
    return store


@pytest.fixture
def dispatcher():
    d = AsyncMock()
    d.dispatch.return_value = "msg_9"
    return d


@pytest.fixture
def use_case(invoice_store, reminder_store, dispatcher, sample_profile):
    user_store = AsyncMock()
    user_store.get_profile.return_value = sample_profile
    limits = AsyncMock()
    limits.can_send_reminder.return_value = ValidationResult.ok()
    return AutoSendRemindersUseCase(
        invoice_store=invoice_store,
        reminder_store=reminder_store,
        user_store=user_store,
        dispatcher=dispatcher,
        limits=limits,
    )


class TestAutoSendReminders:
    async def test_sends_due_reminder(self, use_case, reminder_store, dispatcher):
        result = await use_case.execute(now=NOW)

        assert result.total_found == 1
        assert result.success == 1
        assert result.errors == 0
        reminder_store.list_due.assert_awaited_once_with(NOW)

        saved = reminder_store.update.await_args.args[0]
        assert saved.status == ReminderStatus.SENT
        assert saved.email_id == "msg_9"
        assert saved.scheduled_at == NOW
        assert dispatcher.dispatch.await_args.kwargs["overdue_days"] == 10

    async def test_paid_invoice_fails_reminder(
        self, use_case, invoice_store, reminder_store, dispatcher
    ):
        invoice_store.get_invoice.return_value = make_invoice(status=InvoiceStatus.PAID)

        result = await use_case.execute(now=NOW)

        assert result.errors == 1
        assert result.failures == [{"reminder_id": 3, "reason": "Invoice already paid"}]
        saved = reminder_store.update.await_args.args[0]
        assert saved.status == ReminderStatus.FAILED
        assert saved.failure_reason == "Invoice already paid"
        dispatcher.dispatch.assert_not_awaited()

    async def test_missing_invoice_fails_reminder(self, use_case, invoice_store):
        invoice_store.get_invoice.return_value = None

        result = await use_case.execute(now=NOW)

        assert result.failures[0]["reason"] == "Invoice not found"

    async def test_draft_invoice_is_not_sendable(self, use_case, invoice_store):
        invoice_store.get_invoice.return_value = make_invoice(status=InvoiceStatus.DRAFT)

        result = await use_case.execute(now=NOW)

        assert result.failures[0]["reason"] == "Invoice not in sendable state"

    async def test_missing_client_email(self, use_case, invoice_store):
        invoice_store.get_invoice.return_value = make_invoice(client_email=None)

        result = await use_case.execute(now=NOW)

        assert result.failures[0]["reason"] == "Client email missing"

    async def test_provider_error_is_recorded(self, use_case, dispatcher, reminder_store):
        dispatcher.dispatch.side_effect = EmailDeliveryError("ada@example.com", "timeout")

        result = await use_case.execute(now=NOW)

        assert result.errors == 1
        saved = reminder_store.update.await_args.args[0]
        assert saved.status == ReminderStatus.FAILED
        assert "timeout" in saved.failure_reason

    async def test_nothing_due(self, use_case, reminder_store, dispatcher):
        reminder_store.list_due.return_value = []

        result = await use_case.execute(now=NOW)

        assert result.total_found == 0
        assert result.processed == 0
        dispatcher.dispatch.assert_not_awaited()

    async def test_tier_already_sent_is_not_resent(
        self, use_case, reminder_store, dispatcher
    ):
        reminder_store.list_for_invoice.return_value = [
            make_reminder(id=2, tier=ReminderTier.POLITE, email_id="msg_1"),
            _scheduled(),
        ]
        reminder_store.update.side_effect = ReminderConflictError(
            reminder_id=3, existing_id=4, tier="polite", status="failed"
        )

        result = await use_case.execute(now=NOW)

        assert result.failures == [{"reminder_id": 3, "reason": "Reminder tier already sent"}]
        dispatcher.dispatch.assert_not_awaited()
        reminder_store.delete.assert_awaited_once_with(3)

    async def test_sent_row_colliding_with_history_is_dropped(
        self, use_case, reminder_store
    ):
        reminder_store.update.side_effect = ReminderConflictError(
            reminder_id=3, existing_id=2, tier="polite", status="sent"
        )

        result = await use_case.execute(now=NOW)

        assert result.success == 1
        reminder_store.delete.assert_awaited_once_with(3)
