"""Sends newly issued invoices and estimates to the client by email."""

from __future__ import annotations

from html import escape

from invoicekit.config import get_logger
from invoicekit.core.entities import BusinessProfile, Estimate, Invoice
from invoicekit.core.interfaces.providers import EmailMessage, IEmailSender
from invoicekit.core.services.reminder_templates import RenderedEmail, format_amount

logger = get_logger(__name__)


def _business(profile: BusinessProfile | None) -> str:
    return (profile.business_name if profile else "") or "Your service provider"


def _row(label: str, value: str) -> str:
    return f'<tr><td>{escape(label)}</td><td style="text-align:right">{escape(value)}</td></tr>'


def _layout(title: str, business: str, greeting: str, intro: str, table: str, notes: str) -> str:
    notes_block = (
        f'<div style="background:#fef3c7;padding:12px;margin:16px 0">{escape(notes)}</div>'
        if notes
        else ""
    )
    return (
        f'<div style="font-family:Arial,sans-serif;max-width:600px;margin:0 auto">'
        f'<div style="background:#f8fafc;padding:20px">'
        f"<h2>{escape(title)}</h2><p>From {escape(business)}</p></div>"
        f'<div style="padding:20px">'
        f"<p>{escape(greeting)}</p><p>{intro}</p>"
        f'<table style="width:100%;margin:16px 0">{table}</table>{notes_block}'
        f"<p>Best regards,<br>{escape(business)}</p>"
        f"</div></div>"
    )


def render_invoice_email(invoice: Invoice, profile: BusinessProfile | None) -> RenderedEmail:
    business = _business(profile)
    amount = format_amount(invoice.total, invoice.currency)
    due = invoice.due_date.strftime("%B %d, %Y") if invoice.due_date else "On receipt"

    table = "".join(
        _row(item.description, format_amount(item.amount, invoice.currency))
        for item in invoice.items
    )
    table += _row("Total", amount) + _row("Due date", due) + _row("Terms", invoice.payment_terms)

    html = _layout(
        title=f"Invoice {invoice.invoice_number}",
        business=business,
        greeting=f"Dear {invoice.client_name or 'customer'},",
        intro=f"Please find your invoice for <strong>{escape(amount)}</strong> below.",
        table=table,
        notes=invoice.notes,
    )
    return RenderedEmail(subject=f"Invoice {invoice.invoice_number} from {business}", html=html)


def render_estimate_email(
    estimate: Estimate, client_name: str | None, profile: BusinessProfile | None
) -> RenderedEmail:
    business = _business(profile)
    amount = format_amount(estimate.total, estimate.currency)
    valid = estimate.valid_until.strftime("%B %d, %Y") if estimate.valid_until else "Open"

    html = _layout(
        title=f"Estimate {estimate.estimate_number}",
        business=business,
        greeting=f"Dear {client_name or 'customer'},",
        intro=(
            f"Here is our estimate for <strong>{escape(amount)}</strong>. "
            "Let us know whether you approve it."
        ),
        table=_row("Estimated total", amount) + _row("Valid until", valid),
        notes=estimate.notes,
    )
    return RenderedEmail(
        subject=f"Estimate {estimate.estimate_number} - Please Review", html=html
    )


class InvoiceMailer:
    """Delivers invoice and estimate emails; returns the provider message id."""

    def __init__(self, email_sender: IEmailSender, from_address: str) -> None:
        self._sender = email_sender
        self._from = from_address

    async def send_invoice(
        self, recipient: str, invoice: Invoice, profile: BusinessProfile | None
    ) -> str:
        """Raises EmailDeliveryError when the provider rejects the send."""
        message_id = await self._deliver(
            recipient, render_invoice_email(invoice, profile), profile
        )
        logger.info("invoice_emailed", invoice_id=invoice.id, email_id=message_id)
        return message_id

    async def send_estimate(
        self,
        recipient: str,
        estimate: Estimate,
        client_name: str | None,
        profile: BusinessProfile | None,
    ) -> str:
        message_id = await self._deliver(
            recipient, render_estimate_email(estimate, client_name, profile), profile
        )
        logger.info("estimate_emailed", estimate_id=estimate.id, email_id=message_id)
        return message_id

    async def _deliver(
        self, recipient: str, rendered: RenderedEmail, profile: BusinessProfile | None
    ) -> str:
        from_address = self._from
        if profile and profile.business_name:
            from_address = f"{profile.business_name} via {self._from}"
        return await self._sender.send(
            EmailMessage(
                from_address=from_address,
                to=recipient,
                subject=rendered.subject,
                html=rendered.html,
            )
        )
