"""Security middleware for FastAPI: CORS and rate limiting.

Middleware ordering (outermost first):
1. CORS -- handles OPTIONS preflight for the browser frontend
2. Rate limiting -- per-route limits (form endpoints) keyed by client IP
"""

from __future__ import annotations

import ipaddress
import logging
from typing import Sequence, Union

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from slowapi import Limiter
from slowapi.errors import RateLimitExceeded
from slowapi.util import get_remote_address

from uplinq.config import Settings

logger = logging.getLogger(__name__)

# Public form endpoints are the spam target; webhooks and payments are not limited
FORM_RATE_LIMIT = "5/minute"

Network = Union[ipaddress.IPv4Network, ipaddress.IPv6Network]


def _is_trusted(address: str, networks: Sequence[Network]) -> bool:
    try:
        ip = ipaddress.ip_address(address)
    except ValueError:
        return False
    return any(ip in network for network in networks)


def _get_client_ip(request: Request) -> str:
    """Extract client IP, respecting the trusted proxy networks.

    X-Forwarded-For is only read when the direct peer is a trusted proxy.
    Hops are walked right to left and the first untrusted one is the client,
    so entries a caller prepends to the header are never used.
    """
    peer = get_remote_address(request)
    networks = getattr(request.app.state, "trusted_networks", [])
    if not networks or not _is_trusted(peer, networks):
        return peer

    forwarded = request.headers.get("x-forwarded-for", "")
    hops = [hop.strip() for hop in forwarded.split(",") if hop.strip()]
    for hop in reversed(hops):
        if not _is_trusted(hop, networks):
            return hop
    return hops[0] if hops else peer


# Rate limiter
limiter = Limiter(key_func=_get_client_ip)


def _rate_limit_exceeded_handler(request: Request, exc: RateLimitExceeded):
    """Handle rate limit exceeded errors."""
    # Length of the exceeded limit's window, e.g. 60 for "5/minute"
    retry_after = exc.limit.limit.get_expiry()
    return JSONResponse(
        {"error": "Rate limit exceeded", "retry_after": retry_after},
        status_code=429,
        headers={"Retry-After": str(retry_after)},
    )


def install_security_middleware(app: FastAPI, settings: Settings) -> None:
    """Install CORS and rate limiting on the FastAPI app.

    Middleware is added in reverse order (last added = outermost = runs first).
    """
    # 2. Rate limiting
    app.state.limiter = limiter
    app.state.trusted_networks = settings.trusted_networks
    app.add_exception_handler(RateLimitExceeded, _rate_limit_exceeded_handler)

    # 1. CORS middleware (outermost -- runs first, handles OPTIONS preflight)
    origins = settings.cors_origins
    app.add_middleware(
        CORSMiddleware,
        allow_origins=origins,
        # Credentials cannot be combined with a wildcard origin
        allow_credentials="*" not in origins,
        allow_methods=["*"],
        allow_headers=["*"],
    )
    logger.info("CORS allowed origins: %s", ", ".join(origins))
