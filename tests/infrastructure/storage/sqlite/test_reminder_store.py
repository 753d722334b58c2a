"""Tests for SQLiteReminderStore."""

from datetime import datetime

import pytest

from invoicekit.core.entities import Client, ReminderStatus, ReminderTier, User
from invoicekit.core.exceptions import ReminderConflictError
from invoicekit.infrastructure.storage.sqlite import (
    SQLiteClientStore,
    SQLiteInvoiceStore,
    SQLiteReminderStore,
    SQLiteUserStore,
)
from tests.factories import make_invoice, make_reminder


@pytest.fixture
async def invoice(user, client):
    return await SQLiteInvoiceStore().create_invoice(
        make_invoice(id=None, user_id=user.id, client_id=client.id)
    )


@pytest.fixture
def store():
    return SQLiteReminderStore()


def _reminder(invoice, **overrides):
    values = {"id": None, "invoice_id": invoice.id}
    values.update(overrides)
    return make_reminder(**values)


class TestCreateIfAbsent:
    async def test_inserts_first_row(self, store, invoice):
        created = await store.create_if_absent(_reminder(invoice))

        assert created is not None
        assert created.id is not None
        loaded = await store.get(created.id)
        assert loaded.tier == ReminderTier.FRIENDLY
        assert loaded.status == ReminderStatus.SENT

    async def test_duplicate_key_returns_none(self, store, invoice):
        await store.create_if_absent(_reminder(invoice))

        duplicate = await store.create_if_absent(_reminder(invoice))

        assert duplicate is None
        assert len(await store.list_for_invoice(invoice.id)) == 1

    async def test_other_status_is_a_different_key(self, store, invoice):
        await store.create_if_absent(_reminder(invoice))

        failed = await store.create_if_absent(
            _reminder(invoice, status=ReminderStatus.FAILED)
        )

        assert failed is not None
        assert len(await store.list_for_invoice(invoice.id)) == 2


class TestUpdate:
    async def test_updates_fields(self, store, invoice):
        reminder = await store.create(_reminder(invoice, status=ReminderStatus.SCHEDULED))
        reminder.status = ReminderStatus.SENT
        reminder.email_id = "msg_1"

        await store.update(reminder)

        loaded = await store.get_by_email_id("msg_1")
        assert loaded.id == reminder.id
        assert loaded.status == ReminderStatus.SENT

    async def test_colliding_update_raises_and_keeps_both_rows(self, store, invoice):
        sent = await store.create(
            _reminder(invoice, status=ReminderStatus.SENT, email_id="e1")
        )
        failed = await store.create(_reminder(invoice, status=ReminderStatus.FAILED))

        failed.status = ReminderStatus.SENT
        with pytest.raises(ReminderConflictError) as exc_info:
            await store.update(failed)

        assert exc_info.value.existing_id == sent.id
        assert (await store.get_by_email_id("e1")).id == sent.id
        assert (await store.get(failed.id)).status == ReminderStatus.FAILED

    async def test_update_to_own_key_is_not_a_conflict(self, store, invoice):
        reminder = await store.create(_reminder(invoice, status=ReminderStatus.FAILED))
        reminder.failure_reason = "Mailbox full"

        await store.update(reminder)

        assert (await store.get(reminder.id)).failure_reason == "Mailbox full"


class TestQueries:
    async def test_list_due_returns_only_past_scheduled(self, store, invoice):
        due = await store.create(
            _reminder(
                invoice,
                tier=ReminderTier.POLITE,
                status=ReminderStatus.SCHEDULED,
                scheduled_at=datetime(2025, 3, 5, 9, 0),
            )
        )
        await store.create(
            _reminder(
                invoice,
                tier=ReminderTier.FIRM,
                status=ReminderStatus.SCHEDULED,
                scheduled_at=datetime(2025, 3, 20, 9, 0),
            )
        )

        rows = await store.list_due(datetime(2025, 3, 11, 9, 0))

        assert [r.id for r in rows] == [due.id]

    async def test_counts(self, store, invoice):
        await store.create(_reminder(invoice))
        await store.create(_reminder(invoice, tier=ReminderTier.POLITE))
        await store.create(
            _reminder(invoice, tier=ReminderTier.FIRM, status=ReminderStatus.FAILED)
        )

        assert await store.count_by_tier() == {"friendly": 1, "polite": 1, "firm": 1}
        assert await store.count_by_status() == {"sent": 2, "failed": 1}
        assert await store.count_sent_for_invoice(invoice.id) == 2

    async def test_delete_scheduled_keeps_history(self, store, invoice):
        await store.create(_reminder(invoice))
        await store.create(
            _reminder(invoice, tier=ReminderTier.POLITE, status=ReminderStatus.SCHEDULED)
        )

        cleared = await store.delete_scheduled_for_invoice(invoice.id)

        assert cleared == 1
        remaining = await store.list_for_invoice(invoice.id)
        assert [r.status for r in remaining] == [ReminderStatus.SENT]

    async def test_list_reminders_filters_by_status(self, store, invoice):
        await store.create(_reminder(invoice))
        await store.create(
            _reminder(invoice, tier=ReminderTier.POLITE, status=ReminderStatus.FAILED)
        )

        failed = await store.list_reminders(status=ReminderStatus.FAILED)

        assert len(failed) == 1
        assert failed[0].tier == ReminderTier.POLITE

    async def test_delete_many(self, store, invoice):
        a = await store.create(_reminder(invoice))
        b = await store.create(_reminder(invoice, tier=ReminderTier.POLITE))

        assert await store.delete_many([a.id, b.id]) == 2
        assert await store.delete_many([]) == 0

    async def test_deleting_invoice_cascades(self, store, invoice):
        await store.create(_reminder(invoice))

        await SQLiteInvoiceStore().delete_invoice(invoice.id)

        assert await store.list_all() == []


class TestOwnerScoping:
    @pytest.fixture
    async def other_invoice(self, db_path):
        other = await SQLiteUserStore().create_user(
            User(email="other@example.test", name="Other Studio")
        )
        other_client = await SQLiteClientStore().create(
            Client(user_id=other.id, name="Grace Hopper", email="grace@example.com")
        )
        return await SQLiteInvoiceStore().create_invoice(
            make_invoice(id=None, user_id=other.id, client_id=other_client.id)
        )

    async def test_get_hides_other_users_reminder(self, store, invoice, other_invoice):
        mine = await store.create(_reminder(invoice))

        assert await store.get(mine.id, user_id=invoice.user_id) is not None
        assert await store.get(mine.id, user_id=other_invoice.user_id) is None
        assert await store.get(mine.id) is not None

    async def test_list_and_counts_are_per_user(self, store, invoice, other_invoice):
        await store.create(_reminder(invoice))
        await store.create(_reminder(invoice, tier=ReminderTier.POLITE))
        await store.create(
            _reminder(other_invoice, tier=ReminderTier.FIRM, status=ReminderStatus.FAILED)
        )

        mine = await store.list_reminders(user_id=invoice.user_id)
        theirs = await store.list_reminders(
            status=ReminderStatus.FAILED, user_id=other_invoice.user_id
        )

        assert {r.invoice_id for r in mine} == {invoice.id}
        assert len(mine) == 2
        assert [r.tier for r in theirs] == [ReminderTier.FIRM]
        assert await store.count_by_status(invoice.user_id) == {"sent": 2}
        assert await store.count_by_tier(other_invoice.user_id) == {"firm": 1}
        assert await store.count_by_status() == {"sent": 2, "failed": 1}
