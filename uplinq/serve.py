"""Uplinq API server — FastAPI application factory and entry point.

Wires the frozen Settings into each component at startup:
- EventDispatcher (webhook secret) with the payment event handlers
- PaymentsGateway (Stripe secret key, client URL)
- EmailChannel (SMTP relay, contact recipients)
"""

from __future__ import annotations

import logging

import uvicorn
from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse, PlainTextResponse

from uplinq.channels.email import EmailChannel
from uplinq.config import Settings
from uplinq.forms.routes import router as forms_router
from uplinq.payments.gateway import PaymentsGateway
from uplinq.payments.routes import register_payment_routes
from uplinq.security.middleware import install_security_middleware
from uplinq.webhooks.dispatcher import EventDispatcher
from uplinq.webhooks.handlers import register_webhook_routes
from uplinq.webhooks.payment_events import PaymentEventHandlers

logger = logging.getLogger(__name__)


def _validation_error_handler(request: Request, exc: RequestValidationError):
    logger.debug("Rejected request body on %s: %s", request.url.path, exc.errors())
    return JSONResponse({"error": "Invalid request body"}, status_code=400)


def _unhandled_error_handler(request: Request, exc: Exception):
    logger.error("Unhandled error on %s", request.url.path, exc_info=exc)
    return JSONResponse({"error": "Internal server error"}, status_code=500)


def _log_configuration(settings: Settings) -> None:
    logger.info("CLIENT_URL: %s", settings.client_url)
    logger.info("STRIPE_SECRET_KEY: %s", "Set" if settings.stripe_secret_key else "Not set")
    logger.info("STRIPE_WEBHOOK_SECRET: %s", "Set" if settings.stripe_webhook_secret else "Not set")
    if settings.stripe_secret_key:
        logger.info("Stripe account mode: %s", settings.stripe_mode)
    if not settings.stripe_webhook_secret:
        logger.warning("STRIPE_WEBHOOK_SECRET not set, all webhooks will be rejected")


def create_app(settings: Settings | None = None) -> FastAPI:
    """Build the FastAPI app from settings (read from the environment if omitted)."""
    settings = settings or Settings()
    _log_configuration(settings)

    app = FastAPI(title="Uplinq API", version="0.1.0")
    app.state.settings = settings

    channel = EmailChannel.from_settings(settings)
    app.state.email_channel = channel
    gateway = PaymentsGateway.from_settings(settings)
    dispatcher = EventDispatcher(
        settings.stripe_webhook_secret,
        tolerance=settings.stripe_webhook_tolerance,
    )
    PaymentEventHandlers(channel).register(dispatcher)
    app.state.dispatcher = dispatcher

    @app.get("/", response_class=PlainTextResponse)
    async def root():
        return "Uplinq API Server is running"

    @app.get("/health")
    async def health():
        return {
            "status": "ok",
            "payments": gateway.is_configured,
            "webhooks": dispatcher.is_configured,
            "email": channel.is_configured,
        }

    register_payment_routes(app, gateway)
    register_webhook_routes(app, dispatcher)
    app.include_router(forms_router)

    app.add_exception_handler(RequestValidationError, _validation_error_handler)
    app.add_exception_handler(Exception, _unhandled_error_handler)
    install_security_middleware(app, settings)
    return app


def main() -> None:
    settings = Settings()
    logging.basicConfig(
        level=settings.log_level.upper(),
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )
    app = create_app(settings)
    logger.info("Server is running on port %d", settings.port)
    uvicorn.run(app, host=settings.host, port=settings.port)


if __name__ == "__main__":
    main()
