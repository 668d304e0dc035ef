"""Email templates for contact and quote notifications."""

from __future__ import annotations

import html

from uplinq.channels.protocol import Attachment, NotificationMessage
from uplinq.forms.models import ContactForm, QuoteRequest


def _clean(value: str | None) -> str:
    return (value or "").strip()


def _text_block(fields: list[tuple[str, str]], message_label: str, message: str) -> str:
    lines = [f"{label}: {value}" for label, value in fields if value]
    if message:
        lines += ["", f"{message_label}:", message]
    return "\n".join(lines)


def _html_block(heading: str, fields: list[tuple[str, str]], message_label: str, message: str) -> str:
    rows = "".join(
        f'<tr><td style="padding: 4px 12px 4px 0; color: #666;">{html.escape(label)}</td>'
        f"<td>{html.escape(value)}</td></tr>"
        for label, value in fields
        if value
    )
    parts = [
        '<div style="font-family: Arial, sans-serif; max-width: 600px;">',
        f'<h2 style="margin: 0 0 12px 0;">{html.escape(heading)}</h2>',
        f"<table>{rows}</table>",
    ]
    if message:
        parts.append(f'<h3 style="margin: 16px 0 4px 0;">{html.escape(message_label)}</h3>')
        parts.append(f'<p style="white-space: pre-wrap; margin: 0;">{html.escape(message)}</p>')
    parts.append("</div>")
    return "".join(parts)


def render_contact(form: ContactForm) -> NotificationMessage:
    name = _clean(form.name)
    subject = _clean(form.subject)
    fields = [
        ("Name", name),
        ("Email", _clean(form.email)),
        ("Phone", _clean(form.phone)),
        ("Company", _clean(form.company)),
        ("Subject", subject),
    ]
    message = _clean(form.message)
    title = f"New contact form submission from {name}"
    if subject:
        title = f"{title}: {subject}"
    return NotificationMessage(
        title=title,
        body=_text_block(fields, "Message", message),
        html=_html_block("New contact form submission", fields, "Message", message),
        reply_to=_clean(form.email),
        event_type="contact",
    )


def render_quote(form: QuoteRequest, attachments: list[Attachment]) -> NotificationMessage:
    name = _clean(form.name)
    service = _clean(form.service)
    fields = [
        ("Name", name),
        ("Email", _clean(form.email)),
        ("Phone", _clean(form.phone)),
        ("Company", _clean(form.company)),
        ("Service", service),
        ("Budget", _clean(form.budget)),
        ("Timeline", _clean(form.timeline)),
        ("Attachments", ", ".join(a.filename for a in attachments)),
    ]
    details = _clean(form.details)
    return NotificationMessage(
        title=f"New quote request from {name}: {service}",
        body=_text_block(fields, "Project details", details),
        html=_html_block("New quote request", fields, "Project details", details),
        reply_to=_clean(form.email),
        event_type="quote",
        attachments=attachments,
    )
