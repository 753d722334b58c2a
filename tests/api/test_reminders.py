"""API tests for reminder endpoints."""

from datetime import date
from unittest.mock import AsyncMock

import pytest
from httpx import AsyncClient

from invoicekit.api.dependencies import (
    get_app_settings,
    get_auto_send_use_case,
    get_delivery_status,
    get_rem_store,
    get_sweep,
    get_trigger_reminders_use_case,
)
from invoicekit.api.main import app
from invoicekit.application.use_cases.auto_send_reminders import AutoSendResult
from invoicekit.application.use_cases.trigger_overdue_reminders import TriggerResult
from invoicekit.config import get_settings, reset_settings
from invoicekit.core.entities import ReminderStatus, ReminderTier
from invoicekit.core.services import DeliveryStatusService, ReminderDeduplicationSweep
from invoicekit.core.services.reminder_rules import ReminderDecision
from tests.factories import make_reminder


@pytest.fixture
def reminder_store():
    store = AsyncMock()
    sample = make_reminder(email_id="msg_1")
    store.get.return_value = sample
    store.get_by_email_id.return_value = sample
    store.update.side_effect = lambda r: r
    store.list_reminders.return_value = [sample]
    return store


@pytest.fixture
def client(api, reminder_store):
    app.dependency_overrides[get_rem_store] = lambda: reminder_store
    app.dependency_overrides[get_delivery_status] = lambda: DeliveryStatusService(
        reminder_store
    )
    return api


@pytest.fixture
def cron_secret(monkeypatch):
    monkeypatch.setenv("API_CRON_SECRET", "s3cret")
    reset_settings()
    settings = get_settings()
    app.dependency_overrides[get_app_settings] = lambda: settings
    return "s3cret"


class TestReminderQueries:
    async def test_list(self, client: AsyncClient, reminder_store):
        response = await client.get("/api/reminders", params={"status": "sent"})

        assert response.status_code == 200
        data = response.json()
        assert data["total"] == 1
        assert data["reminders"][0]["tier"] == "friendly"
        assert reminder_store.list_reminders.await_args.kwargs["status"] == ReminderStatus.SENT

    async def test_reads_are_scoped_to_acting_user(self, client: AsyncClient, reminder_store):
        headers = {"X-User-Id": "7"}

        await client.get("/api/reminders", headers=headers)
        await client.get("/api/reminders/1", headers=headers)

        assert reminder_store.list_reminders.await_args.kwargs["user_id"] == 7
        reminder_store.get.assert_awaited_once_with(1, user_id=7)

    async def test_get_unknown(self, client: AsyncClient, reminder_store):
        reminder_store.get.return_value = None

        response = await client.get("/api/reminders/99")

        assert response.status_code == 404
        assert response.json()["error_code"] == "REMINDER_NOT_FOUND"

    async def test_manual_status_override(self, client: AsyncClient):
        response = await client.put(
            "/api/reminders/1/status",
            json={"status": "failed", "failure_reason": "Wrong address"},
        )

        assert response.status_code == 200
        assert response.json()["status"] == "failed"
        assert response.json()["failure_reason"] == "Wrong address"

    async def test_invalid_manual_status(self, client: AsyncClient):
        response = await client.put("/api/reminders/1/status", json={"status": "lost"})

        assert response.status_code == 400
        assert response.json()["error_code"] == "VALIDATION_ERROR"


class TestDeliveryWebhook:
    async def test_delivered_event(self, client: AsyncClient):
        response = await client.post(
            "/api/reminders/webhook",
            json={"type": "email.delivered", "data": {"email_id": "msg_1"}},
        )

        assert response.status_code == 200
        assert response.json() == {"success": True, "reminder_id": 1, "status": "delivered"}

    async def test_bounce_keeps_provider_reason(self, client: AsyncClient, reminder_store):
        response = await client.post(
            "/api/reminders/webhook",
            json={"type": "bounced", "data": {"email_id": "msg_1", "reason": "Mailbox full"}},
        )

        assert response.status_code == 200
        saved = reminder_store.update.await_args.args[0]
        assert saved.status == ReminderStatus.BOUNCED
        assert saved.failure_reason == "Mailbox full"

    async def test_unknown_event_type(self, client: AsyncClient):
        response = await client.post(
            "/api/reminders/webhook",
            json={"type": "email.opened", "data": {"email_id": "msg_1"}},
        )

        assert response.status_code == 400

    async def test_unknown_email_id(self, client: AsyncClient, reminder_store):
        reminder_store.get_by_email_id.return_value = None

        response = await client.post(
            "/api/reminders/webhook",
            json={"type": "delivered", "data": {"email_id": "msg_missing"}},
        )

        assert response.status_code == 404


class TestScheduledJobs:
    async def test_trigger_reports_decisions(self, client: AsyncClient):
        use_case = AsyncMock()
        use_case.execute.return_value = TriggerResult(
            evaluated=1,
            dry_run=True,
            decisions=[
                ReminderDecision(
                    invoice_id=1,
                    should_create=True,
                    overdue_days=10,
                    tier=ReminderTier.FIRM,
                    reason="tier_threshold_crossed",
                )
            ],
        )
        app.dependency_overrides[get_trigger_reminders_use_case] = lambda: use_case

        response = await client.post(
            "/api/reminders/trigger", json={"today": "2025-03-11", "dry_run": True}
        )

        assert response.status_code == 200
        data = response.json()
        assert data["dry_run"] is True
        assert data["decisions"][0]["tier"] == "firm"
        use_case.execute.assert_awaited_once_with(today=date(2025, 3, 11), dry_run=True)

    async def test_cron_secret_required(self, client: AsyncClient, cron_secret):
        use_case = AsyncMock()
        use_case.execute.return_value = AutoSendResult()
        app.dependency_overrides[get_auto_send_use_case] = lambda: use_case

        denied = await client.post("/api/reminders/auto-send")
        wrong = await client.post(
            "/api/reminders/auto-send", headers={"Authorization": "Bearer nope"}
        )
        allowed = await client.post(
            "/api/reminders/auto-send",
            headers={"Authorization": f"Bearer {cron_secret}"},
        )

        assert denied.status_code == 401
        assert wrong.status_code == 401
        assert allowed.status_code == 200
        assert use_case.execute.await_count == 1

    async def test_sweep(self, client: AsyncClient, reminder_store):
        reminder_store.list_all.return_value = [
            make_reminder(id=1),
            make_reminder(id=2),
        ]
        reminder_store.delete_many.return_value = 1
        app.dependency_overrides[get_sweep] = lambda: ReminderDeduplicationSweep(
            reminder_store
        )

        response = await client.post("/api/reminders/sweep", json={"statuses": ["sent"]})

        assert response.status_code == 200
        data = response.json()
        assert data["duplicate_groups"] == 1
        assert data["duplicates_removed"] == 1
        assert reminder_store.list_all.await_args.kwargs["statuses"] == [ReminderStatus.SENT]
