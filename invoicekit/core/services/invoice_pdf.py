"""Invoice PDF generation service."""

from __future__ import annotations

from abc import ABC, abstractmethod
from dataclasses import dataclass

from invoicekit.config import get_logger
from invoicekit.core.entities import BusinessProfile, Invoice
from invoicekit.core.exceptions import InvoiceNotFoundError
from invoicekit.core.interfaces.storage import IInvoiceStore, IUserStore

logger = get_logger(__name__)


class IInvoicePdfRenderer(ABC):
    """Renders an invoice into PDF bytes."""

    @abstractmethod
    def render(self, invoice: Invoice, profile: BusinessProfile | None) -> bytes:
        pass


@dataclass
class InvoicePdfResult:
    invoice_id: int
    filename: str
    content: bytes


class InvoicePdfService:
    """Loads an invoice with its sender profile and renders it."""

    def __init__(
        self,
        invoice_store: IInvoiceStore,
        user_store: IUserStore,
        renderer: IInvoicePdfRenderer,
    ) -> None:
        self._invoices = invoice_store
        self._users = user_store
        self._renderer = renderer

    async def generate(self, invoice_id: int) -> InvoicePdfResult:
        invoice = await self._invoices.get_invoice(invoice_id)
        if invoice is None:
            raise InvoiceNotFoundError(invoice_id)

        profile = await self._users.get_profile(invoice.user_id)
        content = self._renderer.render(invoice, profile)
        logger.info("invoice_pdf_generated", invoice_id=invoice_id, size=len(content))
        return InvoicePdfResult(
            invoice_id=invoice_id,
            filename=f"invoice-{invoice.invoice_number}.pdf",
            content=content,
        )
