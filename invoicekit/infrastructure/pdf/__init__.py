"""PDF rendering."""

from invoicekit.infrastructure.pdf.fpdf2_renderer import Fpdf2InvoiceRenderer

__all__ = ["Fpdf2InvoiceRenderer"]
