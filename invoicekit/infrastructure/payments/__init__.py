"""Payment provider clients."""

from invoicekit.infrastructure.payments.checkout import HttpPaymentProvider

_payment_provider: HttpPaymentProvider | None = None


def get_payment_provider() -> HttpPaymentProvider:
    """Get singleton payment provider configured from settings."""
    global _payment_provider
    if _payment_provider is None:
        _payment_provider = HttpPaymentProvider()
    return _payment_provider


__all__ = ["HttpPaymentProvider", "get_payment_provider"]
