"""Hosted-checkout payment provider client."""

import httpx

from invoicekit.config import get_logger, get_settings
from invoicekit.core.exceptions import PaymentProviderError
from invoicekit.core.interfaces.providers import (
    CheckoutRequest,
    CheckoutSession,
    IPaymentProvider,
)

logger = get_logger(__name__)


class HttpPaymentProvider(IPaymentProvider):
    """
    Creates checkout sessions via ``POST {api_url}/checkout/sessions``.

    Amounts are sent in minor units (cents).
    """

    def __init__(
        self,
        api_url: str | None = None,
        api_key: str | None = None,
        timeout: int | None = None,
        transport: httpx.AsyncBaseTransport | None = None,
    ):
        settings = get_settings().payment
        self.api_url = (api_url or settings.api_url).rstrip("/")
        self.api_key = api_key if api_key is not None else settings.api_key
        self.timeout = timeout or settings.timeout
        self._transport = transport

    async def create_checkout(self, request: CheckoutRequest) -> CheckoutSession:
        payload = {
            "amount": int(round(request.amount * 100)),
            "currency": request.currency.lower(),
            "line_items": [{"description": request.description, "quantity": 1}],
            "success_url": request.success_url,
            "cancel_url": request.cancel_url,
            "metadata": request.metadata,
        }

        try:
            async with httpx.AsyncClient(
                timeout=self.timeout, transport=self._transport
            ) as client:
                response = await client.post(
                    f"{self.api_url}/checkout/sessions",
                    json=payload,
                    headers={"Authorization": f"Bearer {self.api_key}"},
                )
        except httpx.HTTPError as e:
            logger.error("checkout_request_failed", error=str(e))
            raise PaymentProviderError(str(e)) from e

        if response.status_code >= 400:
            error_text = response.text[:200]
            logger.error(
                "checkout_rejected",
                status_code=response.status_code,
                error=error_text,
            )
            raise PaymentProviderError(
                f"HTTP {response.status_code}: {error_text}",
                status_code=response.status_code,
            )

        try:
            data = response.json()
        except ValueError as e:
            raise PaymentProviderError(
                f"Checkout response is not JSON: {response.text[:200]}",
                status_code=response.status_code,
            ) from e
        if not isinstance(data, dict) or not data.get("id") or not data.get("url"):
            raise PaymentProviderError("Checkout response missing id or url")

        logger.info("checkout_session_received", session_id=data["id"])
        return CheckoutSession(session_id=data["id"], url=data["url"])
