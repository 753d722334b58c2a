"""Email provider clients."""

from invoicekit.infrastructure.email.resend import ResendEmailSender

_email_sender: ResendEmailSender | None = None


def get_email_sender() -> ResendEmailSender:
    """Get singleton email sender configured from settings."""
    global _email_sender
    if _email_sender is None:
        _email_sender = ResendEmailSender()
    return _email_sender


__all__ = ["ResendEmailSender", "get_email_sender"]
