"""Payment API routes — Stripe checkout sessions and payment intents."""

from __future__ import annotations

import logging

from fastapi import FastAPI
from fastapi.responses import JSONResponse
from starlette.concurrency import run_in_threadpool

from uplinq.errors import PaymentError, PaymentsNotConfiguredError
from uplinq.payments.gateway import PaymentsGateway
from uplinq.payments.models import CheckoutSessionRequest, PaymentIntentRequest

logger = logging.getLogger(__name__)


def _payment_error_response(e: PaymentError) -> JSONResponse:
    if isinstance(e, PaymentsNotConfiguredError):
        return JSONResponse({"error": str(e)}, status_code=503)
    return JSONResponse({"error": str(e)}, status_code=500)


def register_payment_routes(app: FastAPI, gateway: PaymentsGateway) -> None:
    """Register checkout-session and payment-intent endpoints."""

    @app.post("/api/create-checkout-session", tags=["Payments"])
    async def create_checkout_session(request: CheckoutSessionRequest):
        if not request.price_id:
            return JSONResponse({"error": "Price ID is required"}, status_code=400)

        try:
            session_id = await run_in_threadpool(
                gateway.create_checkout_session,
                request.price_id,
                request.product_name,
                request.product_description,
                request.mode,
            )
        except PaymentError as e:
            return _payment_error_response(e)

        return {"id": session_id}

    @app.post("/api/create-payment-intent", tags=["Payments"])
    async def create_payment_intent(request: PaymentIntentRequest):
        if not request.amount or request.amount <= 0:
            return JSONResponse({"error": "Valid amount is required"}, status_code=400)

        try:
            client_secret = await run_in_threadpool(
                gateway.create_payment_intent,
                request.amount,
                request.currency,
                request.description,
            )
        except PaymentError as e:
            return _payment_error_response(e)

        return {"clientSecret": client_secret}
