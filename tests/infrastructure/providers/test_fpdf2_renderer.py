"""Tests for the fpdf2 invoice renderer."""

from invoicekit.config.settings import PdfSettings
from invoicekit.core.entities import InvoiceItem
from invoicekit.infrastructure.pdf.fpdf2_renderer import Fpdf2InvoiceRenderer
from tests.factories import make_invoice


def test_renders_pdf_bytes(sample_profile):
    invoice = make_invoice(
        items=[
            InvoiceItem(description="Brand identity", quantity=1, unit_price=1000),
            InvoiceItem(description="Revisions – round 2", quantity=2, unit_price=125),
        ],
        notes="Payable by bank transfer.",
    )

    pdf = Fpdf2InvoiceRenderer(PdfSettings()).render(invoice, sample_profile)

    assert pdf.startswith(b"%PDF")


def test_renders_without_profile_or_items():
    pdf = Fpdf2InvoiceRenderer(PdfSettings()).render(make_invoice(), None)

    assert pdf.startswith(b"%PDF")
