"""
Partial and full payments recorded against an invoice.

Payments never exceed the invoice total. The payment that brings the
balance to zero marks the invoice paid and drops its scheduled
reminders.
"""

from dataclasses import dataclass

from invoicekit.application.use_cases.manage_invoices import _InvoiceUseCaseBase
from invoicekit.config import get_logger
from invoicekit.core.entities import Invoice, InvoicePayment
from invoicekit.core.exceptions import (
    InvoiceNotFoundError,
    PaymentNotFoundError,
    ValidationError,
)
from invoicekit.core.interfaces.storage import (
    IClientStore,
    IInvoicePaymentStore,
    IInvoiceStore,
    IReminderStore,
)
from invoicekit.core.services import ReminderScheduler, SubscriptionLimitService

logger = get_logger(__name__)


@dataclass
class PaymentSummary:
    invoice_id: int
    invoice_total: float
    total_paid: float
    payments: list[InvoicePayment]

    @property
    def remaining_balance(self) -> float:
        return round(max(self.invoice_total - self.total_paid, 0.0), 2)

    @property
    def fully_paid(self) -> bool:
        return self.remaining_balance == 0


def summarize(invoice: Invoice, payments: list[InvoicePayment]) -> PaymentSummary:
    return PaymentSummary(
        invoice_id=invoice.id or 0,
        invoice_total=invoice.total,
        total_paid=round(sum(p.amount for p in payments), 2),
        payments=payments,
    )


@dataclass
class RecordPaymentResult:
    payment: InvoicePayment
    summary: PaymentSummary
    invoice: Invoice


class _PaymentUseCaseBase(_InvoiceUseCaseBase):
    def __init__(
        self,
        invoice_store: IInvoiceStore | None = None,
        payment_store: IInvoicePaymentStore | None = None,
        reminder_store: IReminderStore | None = None,
        client_store: IClientStore | None = None,
        limits: SubscriptionLimitService | None = None,
        scheduler: ReminderScheduler | None = None,
    ) -> None:
        super().__init__(invoice_store, client_store, reminder_store, limits, scheduler)
        self._payment_store = payment_store

    async def _get_payment_store(self) -> IInvoicePaymentStore:
        if self._payment_store is None:
            from invoicekit.infrastructure.storage.sqlite import get_invoice_payment_store
            self._payment_store = await get_invoice_payment_store()
        return self._payment_store

    async def _load(self, invoice_id: int) -> Invoice:
        invoice = await (await self._get_invoice_store()).get_invoice(invoice_id)
        if invoice is None:
            raise InvoiceNotFoundError(invoice_id)
        return invoice


class GetPaymentSummaryUseCase(_PaymentUseCaseBase):
    async def execute(self, invoice_id: int) -> PaymentSummary:
        invoice = await self._load(invoice_id)
        payments = await (await self._get_payment_store()).list_for_invoice(invoice_id)
        return summarize(invoice, payments)


class RecordPaymentUseCase(_PaymentUseCaseBase):
    """Record money received; settles the invoice once fully paid."""

    async def execute(self, payment: InvoicePayment) -> RecordPaymentResult:
        invoice = await self._load(payment.invoice_id)
        if invoice.is_paid:
            raise ValidationError("invoice_id", "Invoice is already paid", invoice.id)

        payments = await self._get_payment_store()
        created = await payments.create_within(payment, invoice.total)
        if created is None:
            remaining = invoice.total - await payments.total_for_invoice(invoice.id)
            raise ValidationError(
                "amount",
                f"Payment exceeds the remaining balance of {max(remaining, 0):.2f}",
                payment.amount,
            )

        summary = summarize(invoice, await payments.list_for_invoice(invoice.id))
        if summary.fully_paid:
            invoice = await self._mark_paid(invoice)

        logger.info(
            "payment_recorded",
            invoice_id=invoice.id,
            payment_id=created.id,
            amount=created.amount,
            remaining=summary.remaining_balance,
        )
        return RecordPaymentResult(payment=created, summary=summary, invoice=invoice)


class DeletePaymentUseCase(_PaymentUseCaseBase):
    """Remove a recorded payment; an invoice already marked paid stays paid."""

    async def execute(self, invoice_id: int, payment_id: int) -> PaymentSummary:
        invoice = await self._load(invoice_id)
        payments = await self._get_payment_store()
        payment = await payments.get(payment_id)
        if payment is None or payment.invoice_id != invoice_id:
            raise PaymentNotFoundError(payment_id)

        await payments.delete(payment_id)
        return summarize(invoice, await payments.list_for_invoice(invoice_id))
