"""Tests for invoice create, update and mark-paid flows."""

from unittest.mock import AsyncMock

import pytest

from invoicekit.application.use_cases.manage_invoices import (
    BulkMarkPaidUseCase,
    CreateInvoiceUseCase,
    MarkInvoicePaidUseCase,
    SendInvoiceUseCase,
    UpdateInvoiceUseCase,
)
from invoicekit.core.entities import (
    BillingKind,
    BillingRecord,
    Client,
    InvoiceItem,
    InvoiceStatus,
    SubscriptionPlan,
    User,
)
from invoicekit.core.exceptions import (
    ClientNotFoundError,
    EmailDeliveryError,
    InvoiceNotFoundError,
    LimitExceededError,
    ValidationError,
)
from invoicekit.core.services import ScheduleResult, ValidationResult
from tests.factories import make_invoice


async def _require(result, user_id):
    if not result.allowed:
        raise LimitExceededError(result.limit_type, result.reason, plan="free")


def _saved(invoice):
    return invoice.model_copy(update={"id": invoice.id or 42})


@pytest.fixture
def invoice_store():
    store = AsyncMock()
    store.create_invoice.side_effect = _saved
    store.update_invoice.side_effect = lambda inv: inv
    store.get_invoice.return_value = make_invoice()
    return store


@pytest.fixture
def client_store():
    store = AsyncMock()
    store.get.return_value = Client(id=10, user_id=1, name="Ada Lovelace")
    return store


@pytest.fixture
def reminder_store():
    store = AsyncMock()
    store.delete_scheduled_for_invoice.return_value = 2
    return store


@pytest.fixture
def limits():
    svc = AsyncMock()
    svc.can_create_invoice.return_value = ValidationResult.ok()
    svc.can_use_template.return_value = ValidationResult.ok()
    svc.can_use_color_preset.return_value = ValidationResult.ok()
    svc.require.side_effect = _require
    return svc


@pytest.fixture
def scheduler():
    s = AsyncMock()
    s.schedule_invoice.return_value = ScheduleResult(invoice_id=42)
    return s


@pytest.fixture
def deps(invoice_store, client_store, reminder_store, limits, scheduler):
    return {
        "invoice_store": invoice_store,
        "client_store": client_store,
        "reminder_store": reminder_store,
        "limits": limits,
        "scheduler": scheduler,
    }


class TestCreateInvoice:
    async def test_sent_invoice_is_scheduled(self, deps, scheduler):
        created = await CreateInvoiceUseCase(**deps).execute(make_invoice(id=None))

        assert created.id == 42
        scheduler.schedule_invoice.assert_awaited_once_with(created)

    async def test_draft_skips_quota_and_schedule(self, deps, limits, scheduler):
        limits.can_create_invoice.return_value = ValidationResult(
            allowed=False, reason="Invoice limit reached", limit_type="invoices"
        )

        created = await CreateInvoiceUseCase(**deps).execute(
            make_invoice(id=None, status=InvoiceStatus.DRAFT)
        )

        assert created.status == InvoiceStatus.DRAFT
        limits.can_create_invoice.assert_not_awaited()
        scheduler.schedule_invoice.assert_not_awaited()

    async def test_quota_blocks_sent_invoice(self, deps, limits, invoice_store):
        limits.can_create_invoice.return_value = ValidationResult(
            allowed=False, reason="Invoice limit reached", limit_type="invoices"
        )

        with pytest.raises(LimitExceededError):
            await CreateInvoiceUseCase(**deps).execute(make_invoice(id=None))
        invoice_store.create_invoice.assert_not_awaited()

    async def test_foreign_client_is_rejected(self, deps, client_store):
        client_store.get.return_value = Client(id=10, user_id=99, name="Someone")

        with pytest.raises(ClientNotFoundError):
            await CreateInvoiceUseCase(**deps).execute(make_invoice(id=None))

    async def test_total_derived_from_items(self, deps):
        invoice = make_invoice(
            id=None,
            total=0,
            items=[
                InvoiceItem(description="Design", quantity=2, unit_price=300),
                InvoiceItem(description="Hosting", quantity=1, unit_price=50),
            ],
        )

        created = await CreateInvoiceUseCase(**deps).execute(invoice)

        assert created.total == 650

    async def test_disabled_reminders_not_scheduled(self, deps, scheduler):
        await CreateInvoiceUseCase(**deps).execute(
            make_invoice(id=None, reminders_enabled=False)
        )

        scheduler.schedule_invoice.assert_not_awaited()


class TestUpdateInvoice:
    async def test_unknown_invoice(self, deps, invoice_store):
        invoice_store.get_invoice.return_value = None

        with pytest.raises(InvoiceNotFoundError):
            await UpdateInvoiceUseCase(**deps).execute(5, {"notes": "x"})

    async def test_publishing_draft_checks_quota(self, deps, invoice_store, limits):
        invoice_store.get_invoice.return_value = make_invoice(status=InvoiceStatus.DRAFT)

        await UpdateInvoiceUseCase(**deps).execute(1, {"status": InvoiceStatus.SENT})

        limits.can_create_invoice.assert_awaited_once()

    async def test_update_replans_reminders(self, deps, scheduler):
        updated = await UpdateInvoiceUseCase(**deps).execute(1, {"payment_terms": "Net 14"})

        assert updated.payment_terms == "Net 14"
        scheduler.schedule_invoice.assert_awaited_once_with(updated)


class TestMarkInvoicePaid:
    async def test_marks_paid_and_clears_scheduled(self, deps, invoice_store, reminder_store):
        invoice = await MarkInvoicePaidUseCase(**deps).execute(1)

        assert invoice.status == InvoiceStatus.PAID
        assert invoice.paid_at is not None
        invoice_store.update_status.assert_awaited_once_with(1, InvoiceStatus.PAID)
        reminder_store.delete_scheduled_for_invoice.assert_awaited_once_with(1)

    async def test_already_paid_only_clears(self, deps, invoice_store, reminder_store):
        invoice_store.get_invoice.return_value = make_invoice(status=InvoiceStatus.PAID)

        await MarkInvoicePaidUseCase(**deps).execute(1)

        invoice_store.update_status.assert_not_awaited()
        reminder_store.delete_scheduled_for_invoice.assert_awaited_once_with(1)

    async def test_unknown_invoice(self, deps, invoice_store):
        invoice_store.get_invoice.return_value = None

        with pytest.raises(InvoiceNotFoundError):
            await MarkInvoicePaidUseCase(**deps).execute(9)


class TestBulkMarkPaid:
    async def test_marks_owned_unpaid_and_skips_the_rest(self, deps, invoice_store, reminder_store):
        invoices = {
            1: make_invoice(id=1),
            2: make_invoice(id=2, status=InvoiceStatus.PAID),
            3: make_invoice(id=3, user_id=99),
        }
        invoice_store.get_invoice.side_effect = lambda invoice_id: invoices.get(invoice_id)

        result = await BulkMarkPaidUseCase(**deps).execute(1, [1, 2, 3, 4, 1])

        assert [i.id for i in result.marked] == [1]
        assert result.skipped == [2, 3, 4]
        invoice_store.update_status.assert_awaited_once_with(1, InvoiceStatus.PAID)
        reminder_store.delete_scheduled_for_invoice.assert_awaited_once_with(1)

    async def test_nothing_to_mark_is_refused(self, deps, invoice_store):
        invoice_store.get_invoice.return_value = make_invoice(status=InvoiceStatus.PAID)

        with pytest.raises(ValidationError):
            await BulkMarkPaidUseCase(**deps).execute(1, [1])
        invoice_store.update_status.assert_not_awaited()


class TestSendInvoice:
    @pytest.fixture
    def user_store(self):
        store = AsyncMock()
        store.get_profile.return_value = None
        store.get_user.return_value = User(id=1, email="owner@studionorth.test")
        return store

    @pytest.fixture
    def billing_store(self):
        store = AsyncMock()
        store.find_invoice_fee.return_value = None
        store.create_record.side_effect = lambda record: record.model_copy(update={"id": 3})
        return store

    @pytest.fixture
    def mailer(self):
        m = AsyncMock()
        m.send_invoice.return_value = "msg_42"
        return m

    @pytest.fixture
    def send(self, deps, invoice_store, user_store, billing_store, mailer):
        invoice_store.get_invoice.return_value = make_invoice(status=InvoiceStatus.DRAFT)
        return SendInvoiceUseCase(
            **deps, user_store=user_store, billing_store=billing_store, mailer=mailer
        )

    async def test_draft_is_emailed_and_marked_sent(
        self, send, invoice_store, mailer, scheduler, billing_store
    ):
        result = await send.execute(1)

        assert result.email_id == "msg_42"
        assert result.invoice.status == InvoiceStatus.SENT
        assert result.fee is None
        assert mailer.send_invoice.await_args.args[0] == "ada@example.com"
        invoice_store.update_status.assert_awaited_once_with(1, InvoiceStatus.SENT)
        scheduler.schedule_invoice.assert_awaited_once()
        billing_store.create_record.assert_not_awaited()

    async def test_only_drafts_can_be_sent(self, send, invoice_store, mailer):
        invoice_store.get_invoice.return_value = make_invoice(status=InvoiceStatus.SENT)

        with pytest.raises(ValidationError):
            await send.execute(1)
        mailer.send_invoice.assert_not_awaited()

    async def test_client_without_email_is_refused(self, send, invoice_store, mailer):
        invoice_store.get_invoice.return_value = make_invoice(
            status=InvoiceStatus.DRAFT, client_email=None
        )

        with pytest.raises(ValidationError) as exc:
            await send.execute(1)
        assert exc.value.details["field"] == "client_email"
        mailer.send_invoice.assert_not_awaited()

    async def test_quota_checked_before_sending(self, send, limits, mailer):
        limits.can_create_invoice.return_value = ValidationResult(
            allowed=False, reason="Invoice limit reached", limit_type="invoices"
        )

        with pytest.raises(LimitExceededError):
            await send.execute(1)
        mailer.send_invoice.assert_not_awaited()

    async def test_failed_email_leaves_draft(self, send, invoice_store, mailer):
        mailer.send_invoice.side_effect = EmailDeliveryError("ada@example.com", "503")

        with pytest.raises(EmailDeliveryError):
            await send.execute(1)
        invoice_store.update_status.assert_not_awaited()

    async def test_pay_per_invoice_records_one_fee(self, send, user_store, billing_store):
        user_store.get_user.return_value = User(
            id=1, email="owner@studionorth.test", plan=SubscriptionPlan.PAY_PER_INVOICE
        )

        result = await send.execute(1)

        record = billing_store.create_record.await_args.args[0]
        assert record.kind == BillingKind.INVOICE_FEE
        assert record.invoice_id == 1
        assert record.amount == 0.50
        assert result.fee.id == 3

    async def test_fee_not_charged_twice(self, send, user_store, billing_store):
        user_store.get_user.return_value = User(
            id=1, email="owner@studionorth.test", plan=SubscriptionPlan.PAY_PER_INVOICE
        )
        billing_store.find_invoice_fee.return_value = BillingRecord(
            id=2, user_id=1, plan=SubscriptionPlan.PAY_PER_INVOICE, amount=0.5,
            kind=BillingKind.INVOICE_FEE, invoice_id=1,
        )

        result = await send.execute(1)

        assert result.fee is None
        billing_store.create_record.assert_not_awaited()
