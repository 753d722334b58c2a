"""Tests for the invoice PDF service."""

from unittest.mock import AsyncMock, MagicMock

import pytest

from invoicekit.core.exceptions import InvoiceNotFoundError
from invoicekit.core.services import InvoicePdfService
from tests.factories import make_invoice


class TestInvoicePdfService:
    async def test_renders_with_profile(self, sample_profile):
        invoices = AsyncMock()
        invoices.get_invoice.return_value = make_invoice(invoice_number="INV-0042")
        users = AsyncMock()
        users.get_profile.return_value = sample_profile
        renderer = MagicMock()
        renderer.render.return_value = b"%PDF-1.4 fake"

        result = await InvoicePdfService(invoices, users, renderer).generate(1)

        assert result.filename == "invoice-INV-0042.pdf"
        assert result.content.startswith(b"%PDF")
        renderer.render.assert_called_once()
        assert renderer.render.call_args.args[1] is sample_profile

    async def test_missing_invoice(self):
        invoices = AsyncMock()
        invoices.get_invoice.return_value = None
        with pytest.raises(InvoiceNotFoundError):
            await InvoicePdfService(invoices, AsyncMock(), MagicMock()).generate(99)
