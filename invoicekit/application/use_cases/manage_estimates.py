"""
Estimate workflow: send to the client, record the client's decision,
and turn an approved estimate into a draft invoice.

An estimate is decided once it is approved, rejected, or converted;
decided estimates cannot be sent or decided again.
"""

from dataclasses import dataclass
from datetime import datetime

from invoicekit.config import get_logger
from invoicekit.core.entities import (
    Estimate,
    EstimateStatus,
    Invoice,
    InvoiceItem,
    InvoiceStatus,
)
from invoicekit.core.exceptions import EstimateNotFoundError, ValidationError
from invoicekit.core.interfaces.storage import (
    IClientStore,
    IEstimateStore,
    IInvoiceStore,
    IUserStore,
)
from invoicekit.core.services import InvoiceMailer, SubscriptionLimitService

logger = get_logger(__name__)


class _EstimateUseCaseBase:
    def __init__(
        self,
        estimate_store: IEstimateStore | None = None,
        client_store: IClientStore | None = None,
        invoice_store: IInvoiceStore | None = None,
        user_store: IUserStore | None = None,
        limits: SubscriptionLimitService | None = None,
        mailer: InvoiceMailer | None = None,
    ) -> None:
        self._estimate_store = estimate_store
        self._client_store = client_store
        self._invoice_store = invoice_store
        self._user_store = user_store
        self._limits = limits
        self._mailer = mailer

    async def _get_estimate_store(self) -> IEstimateStore:
        if self._estimate_store is None:
            from invoicekit.infrastructure.storage.sqlite import get_estimate_store
            self._estimate_store = await get_estimate_store()
        return self._estimate_store

    async def _get_client_store(self) -> IClientStore:
        if self._client_store is None:
            from invoicekit.infrastructure.storage.sqlite import get_client_store
            self._client_store = await get_client_store()
        return self._client_store

    async def _get_invoice_store(self) -> IInvoiceStore:
        if self._invoice_store is None:
            from invoicekit.infrastructure.storage.sqlite import get_invoice_store
            self._invoice_store = await get_invoice_store()
        return self._invoice_store

    async def _get_user_store(self) -> IUserStore:
        if self._user_store is None:
            from invoicekit.infrastructure.storage.sqlite import get_user_store
            self._user_store = await get_user_store()
        return self._user_store

    async def _get_limits(self) -> SubscriptionLimitService:
        if self._limits is None:
            from invoicekit.application.services import get_subscription_limit_service
            self._limits = await get_subscription_limit_service()
        return self._limits

    def _get_mailer(self) -> InvoiceMailer:
        if self._mailer is None:
            from invoicekit.application.services import get_invoice_mailer
            self._mailer = get_invoice_mailer()
        return self._mailer

    async def _load_undecided(self, estimate_id: int) -> Estimate:
        estimate = await (await self._get_estimate_store()).get(estimate_id)
        if estimate is None:
            raise EstimateNotFoundError(estimate_id)
        if estimate.is_decided:
            raise ValidationError(
                "status",
                f"Estimate has already been {estimate.status.value}",
                estimate.status.value,
            )
        return estimate


@dataclass
class SendEstimateResult:
    estimate: Estimate
    email_id: str


class SendEstimateUseCase(_EstimateUseCaseBase):
    """Email the estimate to its client; draft and sent estimates can be (re)sent."""

    async def execute(self, estimate_id: int) -> SendEstimateResult:
        estimate = await self._load_undecided(estimate_id)
        client = None
        if estimate.client_id is not None:
            client = await (await self._get_client_store()).get(estimate.client_id)
        if client is None or not client.email:
            raise ValidationError("client_id", "The estimate needs a client with an email address")

        profile = await (await self._get_user_store()).get_profile(estimate.user_id)
        email_id = await self._get_mailer().send_estimate(
            client.email, estimate, client.name, profile
        )

        estimate.status = EstimateStatus.SENT
        saved = await (await self._get_estimate_store()).update(estimate)
        logger.info("estimate_sent", estimate_id=estimate_id, email_id=email_id)
        return SendEstimateResult(estimate=saved, email_id=email_id)


class ApproveEstimateUseCase(_EstimateUseCaseBase):
    async def execute(self, estimate_id: int, comment: str | None = None) -> Estimate:
        estimate = await self._load_undecided(estimate_id)
        estimate.status = EstimateStatus.APPROVED
        estimate.approved_at = datetime.now()
        estimate.approval_comment = (comment or "").strip() or None

        saved = await (await self._get_estimate_store()).update(estimate)
        logger.info("estimate_approved", estimate_id=estimate_id)
        return saved


class RejectEstimateUseCase(_EstimateUseCaseBase):
    """Record a rejection; a reason is required."""

    async def execute(self, estimate_id: int, reason: str) -> Estimate:
        reason = (reason or "").strip()
        if not reason:
            raise ValidationError("reason", "Rejection reason is required")

        estimate = await self._load_undecided(estimate_id)
        estimate.status = EstimateStatus.REJECTED
        estimate.rejected_at = datetime.now()
        estimate.rejection_reason = reason

        saved = await (await self._get_estimate_store()).update(estimate)
        logger.info("estimate_rejected", estimate_id=estimate_id)
        return saved


@dataclass
class ConvertEstimateResult:
    estimate: Estimate
    invoice: Invoice


class ConvertEstimateUseCase(_EstimateUseCaseBase):
    """
    Create a draft invoice from an approved estimate.

    The invoice copies client, total, currency and notes, and falls due
    when the estimate expires. Conversion counts against the plan's
    invoice quota even though the invoice starts as a draft.
    """

    async def execute(
        self, estimate_id: int, invoice_number: str | None = None
    ) -> ConvertEstimateResult:
        store = await self._get_estimate_store()
        estimate = await store.get(estimate_id)
        if estimate is None:
            raise EstimateNotFoundError(estimate_id)
        if estimate.status != EstimateStatus.APPROVED:
            raise ValidationError(
                "status",
                "Only approved estimates can be converted to invoices",
                estimate.status.value,
            )

        limits = await self._get_limits()
        await limits.require(
            await limits.can_create_invoice(estimate.user_id), estimate.user_id
        )

        invoices = await self._get_invoice_store()
        invoice = await invoices.create_invoice(
            Invoice(
                user_id=estimate.user_id,
                client_id=estimate.client_id,
                invoice_number=invoice_number or await self._next_number(estimate.user_id),
                status=InvoiceStatus.DRAFT,
                due_date=estimate.valid_until,
                total=estimate.total,
                currency=estimate.currency,
                notes=estimate.notes,
                items=[
                    InvoiceItem(
                        description=f"Estimate {estimate.estimate_number}",
                        quantity=1,
                        unit_price=estimate.total,
                    )
                ],
            )
        )

        estimate.status = EstimateStatus.CONVERTED
        estimate.converted_invoice_id = invoice.id
        saved = await store.update(estimate)
        logger.info(
            "estimate_converted", estimate_id=estimate_id, invoice_id=invoice.id
        )
        return ConvertEstimateResult(estimate=saved, invoice=invoice)

    async def _next_number(self, user_id: int) -> str:
        counts = await (await self._get_invoice_store()).count_by_status(user_id)
        return f"INV-{sum(counts.values()) + 1:04d}"
