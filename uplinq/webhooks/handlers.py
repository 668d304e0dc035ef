"""Webhook HTTP handler — FastAPI route for inbound Stripe webhooks.

The handler:
1. Reads the raw body (signature is computed over the exact bytes)
2. Passes body + Stripe-Signature header to the EventDispatcher
3. Returns 200 {"received": true} for every verified event, whatever the
   handler outcome
4. Returns 400 only for verification failures
"""

from __future__ import annotations

import logging

from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse, PlainTextResponse
from starlette.concurrency import run_in_threadpool

from uplinq.errors import AuthenticationError
from uplinq.webhooks.dispatcher import EventDispatcher
from uplinq.webhooks.verification import SIGNATURE_HEADER

logger = logging.getLogger(__name__)


def register_webhook_routes(app: FastAPI, dispatcher: EventDispatcher) -> None:
    """Register the Stripe webhook endpoint on the FastAPI app."""

    @app.post("/api/webhook")
    async def stripe_webhook(request: Request):
        """Receive Stripe webhooks (signature-verified)."""
        body = await request.body()
        signature = request.headers.get(SIGNATURE_HEADER)

        try:
            result = await run_in_threadpool(dispatcher.dispatch, body, signature)
        except AuthenticationError as e:
            logger.warning("Webhook error: %s", e)
            return PlainTextResponse(f"Webhook Error: {e}", status_code=400)

        return JSONResponse({"received": result.received})

    logger.info("Webhook route registered: /api/webhook")
