"""Webhook event dispatcher — verifies Stripe envelopes and routes them by type.

Maps event types to registered handlers and invokes exactly one handler
(or none, for unregistered types) per verified envelope.

Security contract:
- Nothing is dispatched before the raw envelope passes signature verification
- Handler failures are logged, never propagated: the provider only needs to
  know the event was received, not whether our processing succeeded
- Unregistered event types are acknowledged too (don't leak the handler map)
- Payload summaries are sanitized before they reach logs or notifications
"""

from __future__ import annotations

import html
import logging
import re
from dataclasses import dataclass
from typing import Any, Callable, Mapping

from uplinq.errors import AuthenticationError, HandlerError
from uplinq.webhooks.verification import DEFAULT_TOLERANCE, VerifiedEvent, verify_event

logger = logging.getLogger(__name__)

# Handlers receive the event type and the event's data object
Handler = Callable[[str, Mapping[str, Any]], None]

# Maximum summary field length to keep log lines and emails bounded
_MAX_FIELD_LENGTH = 500


@dataclass
class DispatchResult:
    """Outcome of a dispatch call that passed verification.

    Always an acknowledgment: ``handled`` is False for unregistered types,
    ``error`` is set when the handler raised.
    """

    event_id: str
    event_type: str
    handled: bool
    error: HandlerError | None = None

    @property
    def received(self) -> bool:
        return True


def sanitize_field(value: Any) -> str:
    """Sanitize a payload field value for safe inclusion in logs and emails."""
    if value is None:
        return ""
    s = str(value)
    # Strip HTML tags
    s = re.sub(r"<[^>]+>", "", s)
    s = html.unescape(s)
    s = re.sub(r"\s+", " ", s).strip()
    if len(s) > _MAX_FIELD_LENGTH:
        s = s[:_MAX_FIELD_LENGTH] + "..."
    return s


# Stripe amounts for these currencies are already in whole units
ZERO_DECIMAL_CURRENCIES = frozenset({
    "bif", "clp", "djf", "gnf", "jpy", "kmf", "krw", "mga",
    "pyg", "rwf", "ugx", "vnd", "vuv", "xaf", "xof", "xpf",
})


def format_amount(amount: Any, currency: Any) -> str:
    """Format a Stripe minor-unit amount, e.g. 2999/usd -> '29.99 USD', 2999/jpy -> '2999 JPY'."""
    if amount is None:
        return ""
    try:
        minor = int(amount)
    except (TypeError, ValueError):
        return ""
    code = sanitize_field(currency or "usd").upper()
    if code.lower() in ZERO_DECIMAL_CURRENCIES:
        return f"{minor} {code}"
    return f"{minor / 100:.2f} {code}"


def summarize(data: Mapping[str, Any]) -> str:
    """Extract a one-line summary from a Stripe event data object."""
    obj = data.get("object") or {}
    amount = obj.get("amount") if obj.get("amount") is not None else obj.get("amount_total")
    amount_fmt = format_amount(amount, obj.get("currency"))
    obj_id = sanitize_field(obj.get("id", ""))
    return f"{obj_id} {amount_fmt}".strip()


def _log_webhook(event_type: str, event_id: str, status: str) -> None:
    """Audit log for webhook activity."""
    logger.info(
        "WEBHOOK_AUDIT event=%s id=%s status=%s",
        event_type,
        event_id,
        status,
    )


class EventDispatcher:
    """Verify-then-route dispatcher for provider webhook envelopes.

    The signing secret and timestamp tolerance are injected at startup.
    Handlers are registered per event type; the dispatcher itself never
    needs to change to support a new type.
    """

    def __init__(
        self,
        secret: str,
        tolerance: int = DEFAULT_TOLERANCE,
        handlers: Mapping[str, Handler] | None = None,
    ):
        if tolerance <= 0:
            raise ValueError(f"Webhook tolerance must be positive, got {tolerance}")
        self._secret = secret
        self._tolerance = tolerance
        self._handlers: dict[str, Handler] = dict(handlers or {})

    @property
    def is_configured(self) -> bool:
        return bool(self._secret)

    @property
    def event_types(self) -> set[str]:
        return set(self._handlers)

    def register(self, event_type: str, handler: Handler) -> None:
        """Register the handler for an event type (replaces any previous one)."""
        if event_type in self._handlers:
            logger.warning("Replacing webhook handler for %s", event_type)
        self._handlers[event_type] = handler

    def dispatch(self, raw_body: bytes, signature: str | None) -> DispatchResult:
        """Verify a raw envelope and invoke the handler for its type.

        Args:
            raw_body: Request body exactly as received
            signature: Value of the Stripe-Signature header

        Returns:
            DispatchResult acknowledging receipt

        Raises:
            AuthenticationError: envelope failed verification; nothing dispatched
        """
        try:
            event = verify_event(raw_body, signature, self._secret, self._tolerance)
        except AuthenticationError:
            _log_webhook("unknown", "unknown", "signature_failed")
            raise

        return self._route(event)

    def _route(self, event: VerifiedEvent) -> DispatchResult:
        handler = self._handlers.get(event.type)
        if handler is None:
            logger.info("Unhandled event type: %s", event.type)
            _log_webhook(event.type, event.id, "unhandled")
            return DispatchResult(event_id=event.id, event_type=event.type, handled=False)

        try:
            handler(event.type, event.data)
        except Exception as e:
            error = HandlerError(event.type, e)
            logger.exception("Webhook handler failed: %s (%s)", event.type, event.id)
            _log_webhook(event.type, event.id, "handler_failed")
            return DispatchResult(
                event_id=event.id, event_type=event.type, handled=True, error=error
            )

        _log_webhook(event.type, event.id, "dispatched")
        return DispatchResult(event_id=event.id, event_type=event.type, handled=True)
