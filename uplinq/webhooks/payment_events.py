"""Default handlers for Stripe payment events.

Registered on the EventDispatcher at startup. Each handler takes the event
type and the event's data object; any exception it raises is caught and
logged by the dispatcher.
"""

from __future__ import annotations

import logging
from typing import Any, Mapping

from uplinq.channels.protocol import Channel, NotificationMessage
from uplinq.webhooks.dispatcher import EventDispatcher, format_amount, sanitize_field, summarize

logger = logging.getLogger(__name__)


class PaymentEventHandlers:
    """Stripe payment event handlers, optionally notifying operators by email."""

    def __init__(self, channel: Channel | None = None):
        self._channel = channel

    def checkout_completed(self, event_type: str, data: Mapping[str, Any]) -> None:
        session = data.get("object") or {}
        session_id = sanitize_field(session.get("id"))
        logger.info("Payment successful for session: %s", session_id)

        if self._channel is None or not self._channel.is_configured:
            return

        metadata = session.get("metadata") or {}
        details = session.get("customer_details") or {}
        lines = [
            f"Session: {session_id}",
            f"Amount: {format_amount(session.get('amount_total'), session.get('currency'))}",
            f"Mode: {sanitize_field(session.get('mode'))}",
            f"Customer: {sanitize_field(details.get('email') or session.get('customer_email'))}",
            f"Product: {sanitize_field(metadata.get('productName'))}",
        ]
        description = sanitize_field(metadata.get("productDescription"))
        if description:
            lines.append(f"Description: {description}")

        result = self._channel.notify(
            NotificationMessage(
                title=f"Payment received: {summarize(data)}",
                body="\n".join(lines),
                event_type=event_type,
            )
        )
        if not result.success:
            logger.warning("Payment notification for %s not sent: %s", session_id, result.error)

    def payment_succeeded(self, event_type: str, data: Mapping[str, Any]) -> None:
        logger.info("Payment intent succeeded: %s", summarize(data))

    def payment_failed(self, event_type: str, data: Mapping[str, Any]) -> None:
        intent = data.get("object") or {}
        error = intent.get("last_payment_error") or {}
        logger.warning(
            "Payment intent failed: %s (%s)",
            summarize(data),
            sanitize_field(error.get("message")) or "no reason given",
        )

    def register(self, dispatcher: EventDispatcher) -> None:
        dispatcher.register("checkout.session.completed", self.checkout_completed)
        dispatcher.register("payment_intent.succeeded", self.payment_succeeded)
        dispatcher.register("payment_intent.payment_failed", self.payment_failed)
