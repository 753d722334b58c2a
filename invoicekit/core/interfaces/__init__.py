"""Core interfaces (ports) for dependency injection."""

from invoicekit.core.interfaces.providers import (
    CheckoutRequest,
    CheckoutSession,
    EmailMessage,
    IEmailSender,
    IPaymentProvider,
)
from invoicekit.core.interfaces.storage import (
    IBillingStore,
    IClientStore,
    IEstimateStore,
    IInvoicePaymentStore,
    IInvoiceStore,
    IReminderStore,
    IUserStore,
)

__all__ = [
    # Storage
    "IClientStore",
    "IInvoiceStore",
    "IInvoicePaymentStore",
    "IEstimateStore",
    "IReminderStore",
    "IUserStore",
    "IBillingStore",
    # Providers
    "IEmailSender",
    "IPaymentProvider",
    "EmailMessage",
    "CheckoutRequest",
    "CheckoutSession",
]
