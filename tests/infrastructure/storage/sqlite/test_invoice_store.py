"""Tests for SQLiteInvoiceStore."""

from datetime import date, datetime, timedelta

import pytest

from invoicekit.core.entities import (
    InvoiceItem,
    InvoicePayment,
    InvoiceStatus,
    ReminderRule,
)
from invoicekit.infrastructure.storage.sqlite import (
    SQLiteInvoicePaymentStore,
    SQLiteInvoiceStore,
)
from tests.factories import make_invoice


@pytest.fixture
def store():
    return SQLiteInvoiceStore()


@pytest.fixture
def new_invoice(user, client):
    def build(**overrides):
        values = {"id": None, "user_id": user.id, "client_id": client.id}
        values.update(overrides)
        return make_invoice(**values)

    return build


class TestInvoiceStore:
    async def test_round_trips_items_and_rules(self, store, new_invoice):
        created = await store.create_invoice(
            new_invoice(
                items=[InvoiceItem(description="Design", quantity=2, unit_price=300)],
                reminder_rules=[ReminderRule(when="after", days=10)],
            )
        )

        loaded = await store.get_invoice(created.id)

        assert loaded.invoice_number == "INV-0001"
        assert loaded.due_date == date(2025, 3, 1)
        assert loaded.client_name == "Ada Lovelace"
        assert loaded.client_email == "ada@example.com"
        assert [i.description for i in loaded.items] == ["Design"]
        assert loaded.reminder_rules[0].offset_days == 10

    async def test_update_replaces_items(self, store, new_invoice):
        created = await store.create_invoice(
            new_invoice(items=[InvoiceItem(description="Old", unit_price=10)])
        )
        created.items = [InvoiceItem(description="New", unit_price=20)]
        created.notes = "Thanks"

        await store.update_invoice(created)

        loaded = await store.get_invoice(created.id)
        assert [i.description for i in loaded.items] == ["New"]
        assert loaded.notes == "Thanks"

    async def test_mark_paid_sets_paid_at(self, store, new_invoice):
        created = await store.create_invoice(new_invoice())

        assert await store.update_status(created.id, InvoiceStatus.PAID) is True

        loaded = await store.get_invoice(created.id)
        assert loaded.status == InvoiceStatus.PAID
        assert loaded.paid_at is not None
        assert await store.total_paid(created.user_id) == 1250.0

    async def test_overdue_candidates_exclude_paid_draft_and_future(
        self, store, new_invoice
    ):
        overdue = await store.create_invoice(new_invoice())
        await store.create_invoice(new_invoice(invoice_number="INV-2", status=InvoiceStatus.PAID))
        await store.create_invoice(new_invoice(invoice_number="INV-3", status=InvoiceStatus.DRAFT))
        await store.create_invoice(
            new_invoice(invoice_number="INV-4", due_date=date(2025, 4, 1))
        )

        rows = await store.list_overdue_candidates(date(2025, 3, 11))

        assert [r.id for r in rows] == [overdue.id]

    async def test_non_draft_count_window(self, store, new_invoice, user):
        await store.create_invoice(new_invoice())
        await store.create_invoice(new_invoice(invoice_number="INV-2", status=InvoiceStatus.DRAFT))
        await store.create_invoice(
            new_invoice(
                invoice_number="INV-3",
                created_at=datetime.now() - timedelta(days=60),
            )
        )

        since = datetime.now() - timedelta(days=1)
        assert await store.count_non_draft_since(user.id, since) == 1

    async def test_list_and_count_by_status(self, store, new_invoice, user):
        await store.create_invoice(new_invoice())
        await store.create_invoice(new_invoice(invoice_number="INV-2", status=InvoiceStatus.PAID))

        sent = await store.list_invoices(user_id=user.id, status=InvoiceStatus.SENT)

        assert len(sent) == 1
        assert await store.count_by_status(user.id) == {"sent": 1, "paid": 1}

    async def test_schedulable_skips_disabled(self, store, new_invoice, user):
        enabled = await store.create_invoice(new_invoice())
        await store.create_invoice(new_invoice(invoice_number="INV-2", reminders_enabled=False))

        rows = await store.list_schedulable(user.id)

        assert [r.id for r in rows] == [enabled.id]

    async def test_delete(self, store, new_invoice):
        created = await store.create_invoice(new_invoice())

        assert await store.delete_invoice(created.id) is True
        assert await store.get_invoice(created.id) is None
        assert await store.delete_invoice(created.id) is False


class TestInvoicePaymentStore:
    @pytest.fixture
    async def invoice(self, store, new_invoice):
        return await store.create_invoice(new_invoice(total=1000.0))

    @pytest.fixture
    def payments(self):
        return SQLiteInvoicePaymentStore()

    def _payment(self, invoice, amount, day=5):
        return InvoicePayment(
            invoice_id=invoice.id, amount=amount, payment_date=date(2025, 3, day)
        )

    async def test_payments_up_to_total_are_accepted(self, payments, invoice):
        first = await payments.create_within(self._payment(invoice, 600.0, 5), invoice.total)
        second = await payments.create_within(self._payment(invoice, 400.0, 9), invoice.total)

        assert first.id and second.id
        assert await payments.total_for_invoice(invoice.id) == 1000.0
        listed = await payments.list_for_invoice(invoice.id)
        assert [p.id for p in listed] == [second.id, first.id]

    async def test_overpayment_inserts_nothing(self, payments, invoice):
        await payments.create_within(self._payment(invoice, 900.0), invoice.total)

        refused = await payments.create_within(self._payment(invoice, 100.01), invoice.total)

        assert refused is None
        assert await payments.total_for_invoice(invoice.id) == 900.0
        assert len(await payments.list_for_invoice(invoice.id)) == 1

    async def test_delete_and_cascade(self, store, payments, invoice):
        kept = await payments.create_within(self._payment(invoice, 100.0), invoice.total)
        gone = await payments.create_within(self._payment(invoice, 50.0), invoice.total)

        assert await payments.delete(gone.id) is True
        assert await payments.get(gone.id) is None
        assert (await payments.get(kept.id)).amount == 100.0

        await store.delete_invoice(invoice.id)
        assert await payments.get(kept.id) is None
