"""Webhook signature verification — Stripe envelope authentication.

Security contract:
- Signature checking is delegated to the Stripe SDK (HMAC-SHA256, v1 scheme,
  constant-time comparison); this module only owns the contract around it
- The signature is computed over the exact raw body; the body is never
  re-serialized before verification
- Missing secret -> verification always fails (fail-closed)
- Timestamps older than the tolerance are rejected to prevent replay
- A VerifiedEvent is only ever built here, after verification succeeded
"""

from __future__ import annotations

import json
import logging
from dataclasses import dataclass, field
from typing import Any, Mapping

import stripe

from uplinq.errors import AuthenticationError

logger = logging.getLogger(__name__)

# Header carrying the Stripe signature (t=<timestamp>,v1=<signature>)
SIGNATURE_HEADER = "stripe-signature"

DEFAULT_TOLERANCE = 300


@dataclass(frozen=True)
class VerifiedEvent:
    """A provider event whose envelope passed signature verification."""

    id: str
    type: str
    data: Mapping[str, Any] = field(default_factory=dict)
    livemode: bool = False


def verify_event(
    raw_body: bytes,
    signature: str | None,
    secret: str,
    tolerance: int = DEFAULT_TOLERANCE,
) -> VerifiedEvent:
    """Verify a raw Stripe envelope and return the event it carries.

    Args:
        raw_body: Request body exactly as received on the wire
        signature: Value of the Stripe-Signature header
        secret: Endpoint signing secret (whsec_...)
        tolerance: Maximum age of the signed timestamp, in seconds

    Returns:
        VerifiedEvent built from the authenticated payload

    Raises:
        AuthenticationError: signature, secret, timestamp or envelope invalid,
            or a non-positive tolerance
    """
    if not secret:
        logger.warning("STRIPE_WEBHOOK_SECRET not set, rejecting webhook")
        raise AuthenticationError("Webhook signing secret is not configured")
    if not signature:
        raise AuthenticationError("No signatures found matching the expected signature for payload")
    if tolerance <= 0:
        # The SDK treats a falsy tolerance as "no timestamp check"
        raise AuthenticationError("Webhook timestamp tolerance must be positive")

    try:
        payload = raw_body.decode("utf-8")
    except UnicodeDecodeError as e:
        raise AuthenticationError("Webhook payload is not valid UTF-8") from e

    try:
        stripe.WebhookSignature.verify_header(payload, signature, secret, tolerance)
    except stripe.SignatureVerificationError as e:
        raise AuthenticationError(str(e)) from e

    try:
        envelope = json.loads(payload)
    except json.JSONDecodeError as e:
        raise AuthenticationError("Webhook payload is not valid JSON") from e
    if not isinstance(envelope, dict):
        raise AuthenticationError("Webhook payload is not an event object")

    data = envelope.get("data")
    return VerifiedEvent(
        id=str(envelope.get("id") or ""),
        type=str(envelope.get("type") or ""),
        data=data if isinstance(data, dict) else {},
        livemode=bool(envelope.get("livemode", False)),
    )
