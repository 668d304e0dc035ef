"""Tests for Stripe checkout sessions and payment intents.

The Stripe SDK is mocked; tests assert the request shaping, the API key
being passed per call, and the HTTP contract of the payment routes.
"""

from __future__ import annotations

from unittest.mock import patch

import pytest
import stripe

from uplinq.errors import PaymentError, PaymentsNotConfiguredError
from uplinq.payments.gateway import (
    PaymentsGateway,
    build_checkout_params,
    build_payment_intent_params,
)

SESSION_CREATE = "uplinq.payments.gateway.stripe.checkout.Session.create"
INTENT_CREATE = "uplinq.payments.gateway.stripe.PaymentIntent.create"


# ── Request shaping ───────────────────────────────────────────────────────


class TestCheckoutParams:

    def test_defaults_to_payment_mode(self):
        params = build_checkout_params("https://uplinq.test", "price_1")
        assert params["mode"] == "payment"
        assert params["line_items"] == [{"price": "price_1", "quantity": 1}]
        assert params["payment_method_types"] == ["card"]

    def test_subscription_mode(self):
        params = build_checkout_params("https://uplinq.test", "price_1", mode="subscription")
        assert params["mode"] == "subscription"

    def test_unknown_mode_falls_back_to_payment(self):
        params = build_checkout_params("https://uplinq.test", "price_1", mode="setup")
        assert params["mode"] == "payment"

    def test_redirect_urls(self):
        params = build_checkout_params("https://uplinq.test/", "price_1")
        assert params["success_url"] == (
            "https://uplinq.test/payment-success?session_id={CHECKOUT_SESSION_ID}"
        )
        assert params["cancel_url"] == "https://uplinq.test/pricing"

    def test_metadata_omits_missing_values(self):
        params = build_checkout_params("https://uplinq.test", "price_1", product_name="Pro")
        assert params["metadata"] == {"productName": "Pro"}

    def test_metadata_carries_product(self):
        params = build_checkout_params(
            "https://uplinq.test", "price_1", product_name="Pro", product_description="Monthly"
        )
        assert params["metadata"] == {"productName": "Pro", "productDescription": "Monthly"}


class TestPaymentIntentParams:

    def test_automatic_payment_methods(self):
        params = build_payment_intent_params(1000)
        assert params == {
            "amount": 1000,
            "currency": "usd",
            "automatic_payment_methods": {"enabled": True},
        }

    def test_currency_lowercased_and_description(self):
        params = build_payment_intent_params(500, "EUR", "Consulting")
        assert params["currency"] == "eur"
        assert params["description"] == "Consulting"


# ── Gateway ───────────────────────────────────────────────────────────────


class TestPaymentsGateway:

    def test_mode_from_key(self):
        assert PaymentsGateway("sk_live_abc", "https://x").mode == "LIVE"
        assert PaymentsGateway("sk_test_abc", "https://x").mode == "TEST"

    @patch(SESSION_CREATE)
    def test_checkout_passes_api_key_per_call(self, mock_create):
        mock_create.return_value = {"id": "cs_test_1"}
        gateway = PaymentsGateway("sk_test_abc", "https://uplinq.test")

        assert gateway.create_checkout_session("price_1", "Pro", None, "subscription") == "cs_test_1"

        kwargs = mock_create.call_args.kwargs
        assert kwargs["api_key"] == "sk_test_abc"
        assert kwargs["mode"] == "subscription"
        assert stripe.api_key != "sk_test_abc"

    @patch(SESSION_CREATE)
    def test_checkout_provider_error(self, mock_create):
        mock_create.side_effect = stripe.InvalidRequestError("No such price: 'price_x'", "line_items")
        gateway = PaymentsGateway("sk_test_abc", "https://uplinq.test")

        with pytest.raises(PaymentError, match="No such price"):
            gateway.create_checkout_session("price_x")

    def test_not_configured(self):
        gateway = PaymentsGateway("", "https://uplinq.test")
        assert gateway.is_configured is False
        with pytest.raises(PaymentsNotConfiguredError):
            gateway.create_payment_intent(1000)

    @patch(INTENT_CREATE)
    def test_payment_intent_returns_client_secret(self, mock_create):
        mock_create.return_value = {"id": "pi_1", "client_secret": "pi_1_secret_abc"}
        gateway = PaymentsGateway("sk_test_abc", "https://uplinq.test")

        assert gateway.create_payment_intent(2500, "usd", "Deposit") == "pi_1_secret_abc"
        kwargs = mock_create.call_args.kwargs
        assert kwargs["amount"] == 2500
        assert kwargs["description"] == "Deposit"
        assert kwargs["api_key"] == "sk_test_abc"


# ── Routes ────────────────────────────────────────────────────────────────


class TestCheckoutSessionRoute:

    def test_missing_price_id_returns_400(self, client):
        resp = client.post("/api/create-checkout-session", json={"productName": "Pro"})
        assert resp.status_code == 400
        assert resp.json() == {"error": "Price ID is required"}

    @patch(SESSION_CREATE)
    def test_creates_session(self, mock_create, client):
        mock_create.return_value = {"id": "cs_test_1"}
        resp = client.post(
            "/api/create-checkout-session",
            json={
                "priceId": "price_1",
                "productName": "Pro",
                "productDescription": "Monthly",
                "mode": "subscription",
            },
        )
        assert resp.status_code == 200
        assert resp.json() == {"id": "cs_test_1"}
        kwargs = mock_create.call_args.kwargs
        assert kwargs["success_url"].startswith("https://uplinq.test/payment-success")
        assert kwargs["metadata"] == {"productName": "Pro", "productDescription": "Monthly"}

    @patch(SESSION_CREATE)
    def test_provider_error_returns_500_with_message(self, mock_create, client):
        mock_create.side_effect = stripe.InvalidRequestError("No such price: 'price_x'", "line_items")
        resp = client.post("/api/create-checkout-session", json={"priceId": "price_x"})
        assert resp.status_code == 500
        assert "No such price" in resp.json()["error"]

    def test_not_configured_returns_503(self, make_app):
        from fastapi.testclient import TestClient

        with TestClient(make_app(stripe_secret_key="")) as c:
            resp = c.post("/api/create-checkout-session", json={"priceId": "price_1"})
        assert resp.status_code == 503
        assert resp.json() == {"error": "Payments not configured"}


class TestPaymentIntentRoute:

    @pytest.mark.parametrize("body", [{}, {"amount": 0}, {"amount": -100}])
    def test_invalid_amount_returns_400(self, client, body):
        resp = client.post("/api/create-payment-intent", json=body)
        assert resp.status_code == 400
        assert resp.json() == {"error": "Valid amount is required"}

    @patch(INTENT_CREATE)
    def test_creates_intent(self, mock_create, client):
        mock_create.return_value = {"client_secret": "pi_1_secret_abc"}
        resp = client.post("/api/create-payment-intent", json={"amount": 1999})
        assert resp.status_code == 200
        assert resp.json() == {"clientSecret": "pi_1_secret_abc"}
        assert mock_create.call_args.kwargs["currency"] == "usd"

    @patch(INTENT_CREATE)
    def test_card_error_message_returned(self, mock_create, client):
        mock_create.side_effect = stripe.CardError("Your card was declined.", None, "card_declined")
        resp = client.post("/api/create-payment-intent", json={"amount": 1999})
        assert resp.status_code == 500
        assert resp.json() == {"error": "Your card was declined."}

    def test_non_numeric_amount_returns_400(self, client):
        resp = client.post("/api/create-payment-intent", json={"amount": "lots"})
        assert resp.status_code == 400
        assert resp.json() == {"error": "Invalid request body"}
