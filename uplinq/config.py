"""Uplinq API configuration."""

from __future__ import annotations

import ipaddress

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings


def _split_csv(value: str) -> list[str]:
    return [item.strip() for item in value.split(",") if item.strip()]


class Settings(BaseSettings):
    """Environment-driven settings, loaded once at process start.

    Frozen so the webhook secret and provider keys stay read-only after
    startup. Components receive this object by reference.
    """

    # Stripe
    stripe_secret_key: str = ""
    stripe_webhook_secret: str = ""
    # Seconds; the Stripe SDK skips the timestamp check for a zero tolerance
    stripe_webhook_tolerance: int = Field(default=300, gt=0)

    # Frontend that Stripe redirects back to after checkout
    client_url: str = "http://localhost:3000"

    # HTTP server
    host: str = "0.0.0.0"
    port: int = 4000
    cors_allowed_origins: str = "*"
    # Proxy CIDRs whose X-Forwarded-For is trusted (comma separated)
    trusted_proxies: str = ""

    # Email delivery (SMTP relay)
    smtp_host: str = ""
    smtp_port: int = 587
    smtp_user: str = ""
    smtp_password: str = ""
    smtp_from: str = ""
    smtp_use_tls: bool = True
    contact_recipients: str = ""

    # Quote request attachments
    max_attachments: int = 5
    max_attachment_bytes: int = 10 * 1024 * 1024

    log_level: str = "INFO"

    model_config = {"env_file": ".env", "extra": "ignore", "frozen": True}

    @field_validator("trusted_proxies")
    @classmethod
    def check_trusted_proxies(cls, value: str) -> str:
        for cidr in _split_csv(value):
            ipaddress.ip_network(cidr, strict=False)
        return value

    @property
    def trusted_networks(self) -> list[ipaddress.IPv4Network | ipaddress.IPv6Network]:
        return [ipaddress.ip_network(cidr, strict=False) for cidr in _split_csv(self.trusted_proxies)]

    @property
    def cors_origins(self) -> list[str]:
        return _split_csv(self.cors_allowed_origins) or ["*"]

    @property
    def recipients(self) -> list[str]:
        return _split_csv(self.contact_recipients)

    @property
    def sender(self) -> str:
        return self.smtp_from or self.smtp_user

    @property
    def stripe_mode(self) -> str:
        """LIVE or TEST, derived from the secret key prefix."""
        return "LIVE" if self.stripe_secret_key.startswith("sk_live_") else "TEST"
