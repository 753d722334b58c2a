"""Outbound email and payment provider interfaces."""

from abc import ABC, abstractmethod
from dataclasses import dataclass


@dataclass
class EmailMessage:
    """Provider-agnostic outbound email."""

    from_address: str
    to: str
    subject: str
    html: str


class IEmailSender(ABC):
    """Sends a rendered email and returns the provider message id."""

    @abstractmethod
    async def send(self, message: EmailMessage) -> str:
        """Send the message.

        Raises EmailDeliveryError on any provider failure.
        """
        pass


@dataclass
class CheckoutRequest:
    amount: float
    currency: str
    description: str
    success_url: str
    cancel_url: str
    metadata: dict[str, str]


@dataclass
class CheckoutSession:
    session_id: str
    url: str


class IPaymentProvider(ABC):
    """Creates hosted checkout sessions."""

    @abstractmethod
    async def create_checkout(self, request: CheckoutRequest) -> CheckoutSession:
        """Create a session. Raises PaymentProviderError on failure."""
        pass
