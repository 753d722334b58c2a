"""
fpdf2 implementation of invoice PDF rendering.

Layout: sender block, title and invoice metadata, bill-to block, line
item table with alternating shading, totals, notes, and a footer with
page numbers.
"""

from datetime import datetime

from fpdf import FPDF
from fpdf.enums import XPos, YPos

from invoicekit.config.settings import PdfSettings, get_settings
from invoicekit.core.entities import BusinessProfile, Invoice
from invoicekit.core.services.invoice_pdf import IInvoicePdfRenderer


def _safe_text(text: str) -> str:
    """Replace characters the built-in Helvetica font cannot encode."""
    return text.encode("latin-1", errors="replace").decode("latin-1")


class _InvoicePdf(FPDF):
    """FPDF subclass that renders a footer on every page."""

    def __init__(self, pdf_settings: PdfSettings) -> None:
        super().__init__()
        self._pdf_settings = pdf_settings
        self._generated = datetime.now().strftime("%Y-%m-%d %H:%M")

    def footer(self) -> None:
        self.set_y(-15)
        self.set_font("Helvetica", "I", 8)
        self.cell(0, 5, _safe_text(self._pdf_settings.footer_text), align="L")
        self.set_x(-60)
        self.cell(0, 5, f"Page {self.page_no()} of {{nb}} | {self._generated}", align="R")


class Fpdf2InvoiceRenderer(IInvoicePdfRenderer):
    """Renders invoice PDFs using fpdf2."""

    COL_WIDTHS = (10, 95, 25, 30, 30)
    HEADERS = ("#", "Description", "Qty", "Unit Price", "Amount")

    def __init__(self, pdf_settings: PdfSettings | None = None) -> None:
        self._settings = pdf_settings or get_settings().pdf

    def render(self, invoice: Invoice, profile: BusinessProfile | None) -> bytes:
        pdf = _InvoicePdf(self._settings)
        pdf.alias_nb_pages()
        pdf.set_auto_page_break(auto=True, margin=20)
        pdf.add_page()

        self._render_sender(pdf, profile)
        self._render_title(pdf, invoice)
        self._render_bill_to(pdf, invoice)
        self._render_items_table(pdf, invoice)
        self._render_totals(pdf, invoice)
        self._render_notes(pdf, invoice)

        return bytes(pdf.output())

    def _line(self, pdf: FPDF, height: float, text: str, **kwargs) -> None:
        pdf.cell(0, height, _safe_text(text), new_x=XPos.LMARGIN, new_y=YPos.NEXT, **kwargs)

    def _render_sender(self, pdf: FPDF, profile: BusinessProfile | None) -> None:
        if profile is None:
            return
        pdf.set_font("Helvetica", "B", 12)
        self._line(pdf, 6, profile.business_name or "")
        pdf.set_font("Helvetica", "", 9)
        for value in (profile.address, profile.email, profile.phone, profile.website):
            if value:
                self._line(pdf, 4.5, value)
        pdf.ln(2)

    def _render_title(self, pdf: FPDF, invoice: Invoice) -> None:
        pdf.set_font("Helvetica", "B", 20)
        self._line(pdf, 12, "INVOICE", align="R")

        pdf.set_font("Helvetica", "", 10)
        self._line(pdf, 5, f"Invoice #: {invoice.invoice_number}", align="R")
        self._line(pdf, 5, f"Issued: {invoice.issue_date.isoformat()}", align="R")
        if invoice.due_date:
            self._line(pdf, 5, f"Due: {invoice.due_date.isoformat()}", align="R")
        self._line(pdf, 5, f"Terms: {invoice.payment_terms}", align="R")
        self._line(pdf, 5, f"Status: {invoice.status.value.upper()}", align="R")

        y = pdf.get_y() + 2
        pdf.set_draw_color(100, 100, 100)
        pdf.line(10, y, 200, y)
        pdf.set_draw_color(0, 0, 0)
        pdf.ln(6)

    def _render_bill_to(self, pdf: FPDF, invoice: Invoice) -> None:
        if not invoice.client_name and not invoice.client_email:
            return
        pdf.set_font("Helvetica", "B", 10)
        self._line(pdf, 6, "Bill To")
        pdf.set_font("Helvetica", "", 10)
        if invoice.client_name:
            self._line(pdf, 5, invoice.client_name)
        if invoice.client_email:
            self._line(pdf, 5, invoice.client_email)
        pdf.ln(4)

    def _render_items_table(self, pdf: FPDF, invoice: Invoice) -> None:
        pdf.set_font("Helvetica", "B", 9)
        pdf.set_fill_color(70, 70, 70)
        pdf.set_text_color(255, 255, 255)
        for width, header in zip(self.COL_WIDTHS, self.HEADERS):
            pdf.cell(width, 7, header, border=1, fill=True, align="C")
        pdf.ln()
        pdf.set_text_color(0, 0, 0)

        pdf.set_font("Helvetica", "", 9)
        symbol = self._settings.currency_symbol
        for idx, item in enumerate(invoice.items, 1):
            fill = idx % 2 == 0
            if fill:
                pdf.set_fill_color(240, 240, 240)
            cells = (
                (str(idx), "L"),
                (_safe_text(item.description[:55]), "L"),
                (f"{item.quantity:g}", "R"),
                (f"{symbol}{item.unit_price:,.2f}", "R"),
                (f"{symbol}{item.amount:,.2f}", "R"),
            )
            for width, (text, align) in zip(self.COL_WIDTHS, cells):
                pdf.cell(width, 6, text, border=1, fill=fill, align=align)
            pdf.ln()
        pdf.ln(3)

    def _render_totals(self, pdf: FPDF, invoice: Invoice) -> None:
        symbol = self._settings.currency_symbol
        if invoice.items and abs(invoice.items_total - invoice.total) > 0.005:
            pdf.set_font("Helvetica", "", 10)
            pdf.cell(160, 6, "Items subtotal:", align="R")
            self._line(pdf, 6, f"{symbol}{invoice.items_total:,.2f}", align="R")

        pdf.set_font("Helvetica", "B", 12)
        pdf.cell(160, 8, "Total due:", align="R")
        self._line(pdf, 8, f"{symbol}{invoice.total:,.2f} {invoice.currency}", align="R")
        pdf.ln(3)

    def _render_notes(self, pdf: FPDF, invoice: Invoice) -> None:
        if not invoice.notes:
            return
        pdf.set_font("Helvetica", "B", 10)
        self._line(pdf, 6, "Notes")
        pdf.set_font("Helvetica", "", 9)
        pdf.multi_cell(0, 5, _safe_text(invoice.notes))
