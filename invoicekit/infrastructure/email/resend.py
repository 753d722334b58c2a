"""
Resend email API client.

Transport-level failures (timeouts, dropped connections) are retried
with exponential backoff; any HTTP error response is final.
"""

import time
from typing import Any

import httpx
from tenacity import (
    RetryCallState,
    retry,
    retry_if_exception_type,
    stop_after_attempt,
    wait_exponential,
)

from invoicekit.config import get_logger, get_settings
from invoicekit.core.exceptions import EmailDeliveryError
from invoicekit.core.interfaces.providers import EmailMessage, IEmailSender

logger = get_logger(__name__)


class ResendEmailSender(IEmailSender):
    """Sends email through ``POST {api_url}/emails``."""

    def __init__(
        self,
        api_url: str | None = None,
        api_key: str | None = None,
        timeout: int | None = None,
        max_retries: int | None = None,
        retry_delay: float | None = None,
        retry_multiplier: float | None = None,
        transport: httpx.AsyncBaseTransport | None = None,
    ):
        settings = get_settings().email
        self.api_url = (api_url or settings.api_url).rstrip("/")
        self.api_key = api_key if api_key is not None else settings.api_key
        self.timeout = timeout or settings.timeout
        self.max_retries = max_retries or settings.max_retries
        self.retry_delay = retry_delay if retry_delay is not None else settings.retry_delay
        self.retry_multiplier = retry_multiplier or settings.retry_multiplier
        self._transport = transport

    def _get_retry_decorator(self) -> Any:
        return retry(
            stop=stop_after_attempt(self.max_retries),
            wait=wait_exponential(
                multiplier=self.retry_delay,
                min=self.retry_delay,
                max=self.retry_delay * (self.retry_multiplier**3),
            ),
            retry=retry_if_exception_type(httpx.TransportError),
            before_sleep=self._log_retry,
            reraise=True,
        )

    @staticmethod
    def _log_retry(retry_state: RetryCallState) -> None:
        logger.warning(
            "email_send_retry",
            attempt=retry_state.attempt_number,
            error=str(retry_state.outcome.exception()) if retry_state.outcome else None,
        )

    async def _post(self, payload: dict) -> httpx.Response:
        async with httpx.AsyncClient(
            timeout=self.timeout, transport=self._transport
        ) as client:
            return await client.post(
                f"{self.api_url}/emails",
                json=payload,
                headers={"Authorization": f"Bearer {self.api_key}"},
            )

    async def send(self, message: EmailMessage) -> str:
        payload = {
            "from": message.from_address,
            "to": [message.to],
            "subject": message.subject,
            "html": message.html,
        }

        start = time.time()
        try:
            response = await self._get_retry_decorator()(self._post)(payload)
        except httpx.TransportError as e:
            logger.error("email_send_failed", recipient=message.to, error=str(e))
            raise EmailDeliveryError(message.to, str(e)) from e

        if response.status_code >= 400:
            error_text = response.text[:200]
            logger.error(
                "email_send_rejected",
                recipient=message.to,
                status_code=response.status_code,
                error=error_text,
            )
            raise EmailDeliveryError(
                message.to,
                f"HTTP {response.status_code}: {error_text}",
                status_code=response.status_code,
            )

        try:
            body = response.json()
        except ValueError as e:
            logger.error(
                "email_send_unparseable_response",
                recipient=message.to,
                status_code=response.status_code,
                content_type=response.headers.get("content-type"),
            )
            raise EmailDeliveryError(
                message.to,
                f"Provider response is not JSON: {response.text[:200]}",
                status_code=response.status_code,
            ) from e

        message_id = body.get("id") if isinstance(body, dict) else None
        if not message_id:
            raise EmailDeliveryError(message.to, "Provider response has no message id")

        logger.info(
            "email_sent",
            recipient=message.to,
            email_id=message_id,
            elapsed_ms=int((time.time() - start) * 1000),
        )
        return message_id
