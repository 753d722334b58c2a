"""API route modules."""

from invoicekit.api.routes.clients import router as clients_router
from invoicekit.api.routes.estimates import router as estimates_router
from invoicekit.api.routes.health import router as health_router
from invoicekit.api.routes.invoices import router as invoices_router
from invoicekit.api.routes.payments import router as payments_router
from invoicekit.api.routes.profile import router as profile_router
from invoicekit.api.routes.reminders import router as reminders_router
from invoicekit.api.routes.subscription import router as subscription_router

__all__ = [
    "health_router",
    "clients_router",
    "invoices_router",
    "estimates_router",
    "reminders_router",
    "profile_router",
    "subscription_router",
    "payments_router",
]
