"""
Reminder delivery dispatch and delivery-status reconciliation.

Dispatch renders the tier email and hands it to the email sender.
Status updates come back from the provider by webhook and are matched
to reminders by the stored provider message id.
"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime

from invoicekit.config import get_logger
from invoicekit.core.entities import (
    BusinessProfile,
    Invoice,
    Reminder,
    ReminderStatus,
    ReminderTier,
)
from invoicekit.core.exceptions import ReminderNotFoundError, ValidationError
from invoicekit.core.interfaces.providers import EmailMessage, IEmailSender
from invoicekit.core.interfaces.storage import IReminderStore
from invoicekit.core.services.reminder_templates import render_reminder_email

logger = get_logger(__name__)


class ReminderDispatcher:
    """Sends one reminder email and returns the provider message id."""

    def __init__(self, email_sender: IEmailSender, from_address: str) -> None:
        self._sender = email_sender
        self._from = from_address

    async def dispatch(
        self,
        recipient: str,
        tier: ReminderTier,
        invoice: Invoice,
        profile: BusinessProfile | None,
        overdue_days: int = 0,
    ) -> str:
        """Raises EmailDeliveryError when the provider rejects the send."""
        rendered = render_reminder_email(tier, invoice, profile, overdue_days)
        from_address = self._from
        if profile and profile.business_name:
            from_address = f"{profile.business_name} via {self._from}"

        message_id = await self._sender.send(
            EmailMessage(
                from_address=from_address,
                to=recipient,
                subject=rendered.subject,
                html=rendered.html,
            )
        )
        logger.info(
            "reminder_dispatched",
            invoice_id=invoice.id,
            tier=tier.value,
            email_id=message_id,
        )
        return message_id


@dataclass(frozen=True)
class WebhookMapping:
    status: ReminderStatus
    default_reason: str | None = None
    use_provider_reason: bool = False


WEBHOOK_EVENTS: dict[str, WebhookMapping] = {
    "email.delivered": WebhookMapping(ReminderStatus.DELIVERED),
    "email.bounced": WebhookMapping(
        ReminderStatus.BOUNCED, "Email bounced", use_provider_reason=True
    ),
    "email.complained": WebhookMapping(ReminderStatus.FAILED, "Email marked as spam"),
    "email.failed": WebhookMapping(
        ReminderStatus.FAILED, "Email delivery failed", use_provider_reason=True
    ),
}


def normalize_event_type(event_type: str) -> str:
    """Accept both ``email.delivered`` and bare ``delivered`` tags."""
    event_type = event_type.strip().lower()
    if not event_type.startswith("email."):
        event_type = f"email.{event_type}"
    return event_type


class DeliveryStatusService:
    """Applies webhook events and manual status changes to reminders."""

    def __init__(self, reminder_store: IReminderStore) -> None:
        self._store = reminder_store

    async def apply_webhook_event(
        self,
        event_type: str,
        email_id: str | None,
        reason: str | None = None,
    ) -> Reminder:
        if not email_id:
            raise ValidationError("email_id", "Provider message id is required")

        mapping = WEBHOOK_EVENTS.get(normalize_event_type(event_type))
        if mapping is None:
            raise ValidationError("type", "Unsupported webhook event type", event_type)

        reminder = await self._store.get_by_email_id(email_id)
        if reminder is None:
            raise ReminderNotFoundError(email_id=email_id)

        failure_reason = None
        if mapping.default_reason:
            failure_reason = (
                reason if mapping.use_provider_reason and reason else mapping.default_reason
            )

        reminder.status = mapping.status
        reminder.failure_reason = failure_reason
        reminder.updated_at = datetime.now()
        updated = await self._store.update(reminder)

        logger.info(
            "reminder_delivery_status_updated",
            reminder_id=reminder.id,
            email_id=email_id,
            status=mapping.status.value,
            failure_reason=failure_reason,
        )
        return updated

    async def set_status(
        self,
        reminder_id: int,
        status: str,
        failure_reason: str | None = None,
        user_id: int | None = None,
    ) -> Reminder:
        """
        Manual status override.

        With ``user_id`` set, a reminder on another user's invoice is
        reported as not found. A status that another reminder of the same
        invoice and tier already holds raises ReminderConflictError.
        """
        try:
            new_status = ReminderStatus(status)
        except ValueError as e:
            allowed = ", ".join(s.value for s in ReminderStatus)
            raise ValidationError("status", f"Must be one of: {allowed}", status) from e

        reminder = await self._store.get(reminder_id, user_id=user_id)
        if reminder is None:
            raise ReminderNotFoundError(reminder_id=reminder_id)

        reminder.status = new_status
        reminder.failure_reason = failure_reason
        reminder.updated_at = datetime.now()
        updated = await self._store.update(reminder)
        logger.info(
            "reminder_status_set",
            reminder_id=reminder_id,
            status=new_status.value,
        )
        return updated
