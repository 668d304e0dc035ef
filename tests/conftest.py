"""Shared fixtures for the Uplinq API test suite."""

from __future__ import annotations

import hashlib
import hmac
import time

import pytest
from fastapi.testclient import TestClient

from uplinq.config import Settings
from uplinq.security.middleware import limiter

WEBHOOK_SECRET = "whsec_test_secret"


def sign_payload(body: bytes, secret: str = WEBHOOK_SECRET, timestamp: int | None = None) -> str:
    """Compute a valid Stripe-Signature header (v1 scheme) for body."""
    ts = int(time.time()) if timestamp is None else timestamp
    sig = hmac.new(secret.encode(), f"{ts}.".encode() + body, hashlib.sha256).hexdigest()
    return f"t={ts},v1={sig}"


def flip_last_char(signature_header: str) -> str:
    """Corrupt a signature header by changing its final hex digit."""
    last = signature_header[-1]
    return signature_header[:-1] + ("1" if last == "0" else "0")


def make_settings(**overrides) -> Settings:
    """Settings isolated from any local .env file."""
    values = {
        "stripe_secret_key": "sk_test_123",
        "stripe_webhook_secret": WEBHOOK_SECRET,
        "client_url": "https://uplinq.test",
    }
    values.update(overrides)
    return Settings(_env_file=None, **values)


@pytest.fixture(autouse=True)
def _reset_rate_limits():
    """Rate limit counters are process-wide; start every test from zero."""
    limiter.reset()
    yield


@pytest.fixture()
def settings() -> Settings:
    return make_settings()


@pytest.fixture()
def smtp_settings() -> Settings:
    return make_settings(
        smtp_host="smtp.test.com",
        smtp_user="mailer@uplinq.test",
        smtp_password="app-password",
        smtp_from="noreply@uplinq.test",
        contact_recipients="team@uplinq.test, sales@uplinq.test",
    )


@pytest.fixture()
def app(settings):
    from uplinq.serve import create_app

    return create_app(settings)


@pytest.fixture()
def client(app):
    with TestClient(app, raise_server_exceptions=False) as c:
        yield c


@pytest.fixture()
def smtp_client(smtp_settings):
    from uplinq.serve import create_app

    with TestClient(create_app(smtp_settings), raise_server_exceptions=False) as c:
        yield c


@pytest.fixture()
def sign():
    """Factory producing Stripe-Signature headers with the test secret."""
    return sign_payload


@pytest.fixture()
def corrupt():
    return flip_last_char


@pytest.fixture()
def make_app():
    """Factory building an app from test settings with overrides."""
    from uplinq.serve import create_app

    def _make(**overrides):
        return create_app(make_settings(**overrides))

    return _make
