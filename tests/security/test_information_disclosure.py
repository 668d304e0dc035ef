"""Information disclosure tests.

Error responses must not leak stack traces, SMTP details or secrets.
"""

from __future__ import annotations

from unittest.mock import patch


class TestErrorResponseSafety:

    def test_invalid_json_returns_clean_400(self, client):
        resp = client.post(
            "/api/create-checkout-session",
            content=b"not json",
            headers={"Content-Type": "application/json"},
        )
        assert resp.status_code == 400
        assert resp.json() == {"error": "Invalid request body"}
        assert "Traceback" not in resp.text

    def test_webhook_error_has_no_secret(self, client, settings):
        resp = client.post(
            "/api/webhook",
            content=b'{"type": "x"}',
            headers={"Stripe-Signature": "t=1,v1=deadbeef"},
        )
        assert resp.status_code == 400
        assert settings.stripe_webhook_secret not in resp.text

    @patch("uplinq.channels.email.smtplib.SMTP")
    def test_smtp_failure_details_hidden(self, mock_smtp, smtp_client):
        mock_smtp.side_effect = OSError("smtp.internal.host:587 unreachable")
        resp = smtp_client.post(
            "/api/contact",
            json={"name": "Ada", "email": "ada@example.com", "message": "Hi"},
        )
        assert resp.status_code == 502
        assert "smtp.internal" not in resp.text

    def test_unknown_route_404(self, client):
        resp = client.get("/api/definitely-not-a-route")
        assert resp.status_code == 404
        assert "Traceback" not in resp.text

    @patch("uplinq.payments.gateway.stripe.PaymentIntent.create")
    def test_unexpected_error_is_generic_500(self, mock_create, client):
        mock_create.side_effect = RuntimeError("db password=hunter2")
        resp = client.post("/api/create-payment-intent", json={"amount": 100})
        assert resp.status_code == 500
        assert resp.json() == {"error": "Internal server error"}
        assert "hunter2" not in resp.text
