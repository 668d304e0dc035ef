"""Stripe payments gateway — checkout sessions and payment intents.

The secret key is held by the gateway and passed on every SDK call, so the
process never sets the module-global ``stripe.api_key``.
"""

from __future__ import annotations

import logging
from typing import Any

import stripe

from uplinq.config import Settings
from uplinq.errors import PaymentError, PaymentsNotConfiguredError

logger = logging.getLogger(__name__)

CHECKOUT_MODES = {"payment", "subscription"}


def build_checkout_params(
    client_url: str,
    price_id: str,
    product_name: str | None = None,
    product_description: str | None = None,
    mode: str | None = None,
) -> dict[str, Any]:
    """Shape the Checkout Session request for a single price.

    Anything other than an explicit 'subscription' mode is a one-off payment.
    """
    base_url = client_url.rstrip("/")
    metadata = {
        key: value
        for key, value in (
            ("productName", product_name),
            ("productDescription", product_description),
        )
        if value is not None
    }
    return {
        "payment_method_types": ["card"],
        "line_items": [{"price": price_id, "quantity": 1}],
        "mode": mode if mode in CHECKOUT_MODES else "payment",
        "success_url": f"{base_url}/payment-success?session_id={{CHECKOUT_SESSION_ID}}",
        "cancel_url": f"{base_url}/pricing",
        "metadata": metadata,
    }


def build_payment_intent_params(
    amount: int,
    currency: str = "usd",
    description: str | None = None,
) -> dict[str, Any]:
    params: dict[str, Any] = {
        "amount": amount,
        "currency": currency.lower(),
        "automatic_payment_methods": {"enabled": True},
    }
    if description is not None:
        params["description"] = description
    return params


def _provider_message(e: stripe.StripeError) -> str:
    return e.user_message or str(e) or e.__class__.__name__


class PaymentsGateway:
    """Thin wrapper over the Stripe SDK for the payment routes."""

    def __init__(self, api_key: str, client_url: str):
        self._api_key = api_key
        self._client_url = client_url

    @classmethod
    def from_settings(cls, settings: Settings) -> PaymentsGateway:
        return cls(api_key=settings.stripe_secret_key, client_url=settings.client_url)

    @property
    def is_configured(self) -> bool:
        return bool(self._api_key)

    @property
    def mode(self) -> str:
        return "LIVE" if self._api_key.startswith("sk_live_") else "TEST"

    def _require_key(self) -> str:
        if not self._api_key:
            raise PaymentsNotConfiguredError("Payments not configured")
        return self._api_key

    def create_checkout_session(
        self,
        price_id: str,
        product_name: str | None = None,
        product_description: str | None = None,
        mode: str | None = None,
    ) -> str:
        """Create a Checkout Session and return its id."""
        api_key = self._require_key()
        params = build_checkout_params(
            self._client_url, price_id, product_name, product_description, mode
        )
        logger.info(
            "Creating checkout session: price=%s mode=%s account=%s",
            price_id,
            params["mode"],
            self.mode,
        )
        try:
            session = stripe.checkout.Session.create(api_key=api_key, **params)
        except stripe.StripeError as e:
            logger.error("Error creating checkout session: %s", e)
            raise PaymentError(_provider_message(e)) from e
        return session["id"]

    def create_payment_intent(
        self,
        amount: int,
        currency: str = "usd",
        description: str | None = None,
    ) -> str:
        """Create a PaymentIntent and return its client secret."""
        api_key = self._require_key()
        params = build_payment_intent_params(amount, currency, description)
        logger.info("Creating payment intent: amount=%d currency=%s", amount, params["currency"])
        try:
            intent = stripe.PaymentIntent.create(api_key=api_key, **params)
        except stripe.StripeError as e:
            logger.error("Error creating payment intent: %s", e)
            raise PaymentError(_provider_message(e)) from e
        return intent["client_secret"]
