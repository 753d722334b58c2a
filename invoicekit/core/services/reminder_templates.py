"""Tier-specific reminder email content."""

from dataclasses import dataclass
from html import escape

from invoicekit.core.entities import BusinessProfile, Invoice, ReminderTier


@dataclass(frozen=True)
class TierCopy:
    subject: str
    greeting: str
    body: str
    closing: str
    accent: str


TIER_COPY: dict[ReminderTier, TierCopy] = {
    ReminderTier.FRIENDLY: TierCopy(
        subject="Just a friendly reminder about invoice #{number}",
        greeting="Hi {name},",
        body=(
            "I hope you're doing well! This is a quick reminder that invoice "
            "#{number} for {amount} was due on {due_date}."
        ),
        closing="Thanks so much,",
        accent="#2563eb",
    ),
    ReminderTier.POLITE: TierCopy(
        subject="Payment reminder for invoice #{number}",
        greeting="Dear {name},",
        body=(
            "Our records show that invoice #{number} for {amount}, due on "
            "{due_date}, is still outstanding. We'd appreciate your payment "
            "at your earliest convenience."
        ),
        closing="Kind regards,",
        accent="#0d9488",
    ),
    ReminderTier.FIRM: TierCopy(
        subject="Overdue payment notice - Invoice #{number}",
        greeting="Dear {name},",
        body=(
            "Invoice #{number} for {amount} is now {days} days overdue. "
            "Please arrange payment promptly or let us know if there is an "
            "issue with this invoice."
        ),
        closing="Regards,",
        accent="#d97706",
    ),
    ReminderTier.URGENT: TierCopy(
        subject="URGENT: Payment required - Invoice #{number}",
        greeting="Dear {name},",
        body=(
            "Invoice #{number} for {amount} is seriously overdue ({days} days "
            "past {due_date}). Immediate payment is required to avoid further "
            "action."
        ),
        closing="Sincerely,",
        accent="#dc2626",
    ),
}


@dataclass
class RenderedEmail:
    subject: str
    html: str


def format_amount(amount: float, currency: str) -> str:
    return f"{currency} {amount:,.2f}"


def render_reminder_email(
    tier: ReminderTier,
    invoice: Invoice,
    profile: BusinessProfile | None,
    overdue_days: int,
) -> RenderedEmail:
    """Build subject and HTML body for one reminder."""
    copy = TIER_COPY[tier]
    due = invoice.due_date.strftime("%B %d, %Y") if invoice.due_date else "receipt"
    values = {
        "number": invoice.invoice_number,
        "name": invoice.client_name or "there",
        "amount": format_amount(invoice.total, invoice.currency),
        "due_date": due,
        "days": max(overdue_days, 0),
    }
    sender = (profile.business_name if profile else "") or "Your service provider"

    contact_lines = []
    if profile:
        for value in (profile.email, profile.phone, profile.address):
            if value:
                contact_lines.append(f"<div>{escape(value)}</div>")

    html = (
        f'<div style="font-family:Arial,sans-serif;max-width:600px;margin:0 auto">'
        f'<div style="border-top:4px solid {copy.accent};padding:24px">'
        f"<p>{escape(copy.greeting.format(**values))}</p>"
        f"<p>{escape(copy.body.format(**values))}</p>"
        f'<table style="width:100%;margin:16px 0">'
        f"<tr><td>Invoice</td><td>#{escape(values['number'])}</td></tr>"
        f"<tr><td>Amount due</td><td>{escape(values['amount'])}</td></tr>"
        f"<tr><td>Due date</td><td>{escape(due)}</td></tr>"
        f"</table>"
        f"<p>{escape(copy.closing)}<br>{escape(sender)}</p>"
        f'<div style="color:#6b7280;font-size:12px">{"".join(contact_lines)}</div>'
        f"</div></div>"
    )
    return RenderedEmail(subject=copy.subject.format(**values), html=html)
