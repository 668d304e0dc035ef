"""Form API routes — contact and quote submissions delivered by email.

Both routes are rate-limited per client IP. Delivery failures are reported
with a generic message; SMTP details stay in the server log.

The router is module-level so the rate limits are declared once; the email
channel and settings are read from ``app.state`` at request time.
"""

import logging

from fastapi import APIRouter, Request
from fastapi.responses import JSONResponse
from starlette.concurrency import run_in_threadpool

from uplinq.channels.email import EmailChannel
from uplinq.channels.protocol import NotificationMessage
from uplinq.config import Settings
from uplinq.errors import AttachmentError
from uplinq.forms.attachments import parse_attachments
from uplinq.forms.models import ContactForm, QuoteRequest, is_valid_email
from uplinq.forms.templates import render_contact, render_quote
from uplinq.security.middleware import FORM_RATE_LIMIT, limiter

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api", tags=["Forms"])


async def _deliver(channel: EmailChannel, message: NotificationMessage) -> JSONResponse:
    if not channel.is_configured:
        logger.error("Form submission received but email delivery is not configured")
        return JSONResponse({"error": "Email delivery not configured"}, status_code=503)

    result = await run_in_threadpool(channel.notify, message)
    if not result.success:
        logger.error("Failed to deliver %s notification: %s", message.event_type, result.error)
        return JSONResponse({"error": "Failed to send message"}, status_code=502)

    logger.info("Delivered %s notification %s", message.event_type, result.response_id)
    return JSONResponse({"success": True, "messageId": result.response_id})


@router.post("/contact")
@limiter.limit(FORM_RATE_LIMIT)
async def contact(request: Request, form: ContactForm):
    if form.missing_fields():
        return JSONResponse({"error": "Name, email, and message are required"}, status_code=400)
    if not is_valid_email(form.email):
        return JSONResponse({"error": "A valid email address is required"}, status_code=400)

    return await _deliver(request.app.state.email_channel, render_contact(form))


@router.post("/quote")
@limiter.limit(FORM_RATE_LIMIT)
async def quote(request: Request, form: QuoteRequest):
    if form.missing_fields():
        return JSONResponse({"error": "Name, email, and service are required"}, status_code=400)
    if not is_valid_email(form.email):
        return JSONResponse({"error": "A valid email address is required"}, status_code=400)

    settings: Settings = request.app.state.settings
    try:
        attachments = parse_attachments(
            form.attachments,
            max_count=settings.max_attachments,
            max_total_bytes=settings.max_attachment_bytes,
        )
    except AttachmentError as e:
        return JSONResponse({"error": str(e)}, status_code=400)

    return await _deliver(request.app.state.email_channel, render_quote(form, attachments))
