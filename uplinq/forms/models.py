"""Request bodies for the contact and quote forms."""

from __future__ import annotations

import re
from typing import Optional

from pydantic import BaseModel, Field

_EMAIL_PATTERN = re.compile(r"^[A-Za-z0-9._%+-]+@[A-Za-z0-9.-]+\.[A-Za-z]{2,}$")


def is_valid_email(value: str | None) -> bool:
    return bool(value) and _EMAIL_PATTERN.fullmatch(value.strip()) is not None


class AttachmentUpload(BaseModel):
    """A file sent inline with a quote request, base64-encoded."""

    filename: str
    content: str
    content_type: Optional[str] = Field(default=None, alias="contentType")

    model_config = {"populate_by_name": True}


class ContactForm(BaseModel):
    name: Optional[str] = None
    email: Optional[str] = None
    message: Optional[str] = None
    phone: Optional[str] = None
    company: Optional[str] = None
    subject: Optional[str] = None

    def missing_fields(self) -> list[str]:
        return [f for f in ("name", "email", "message") if not (getattr(self, f) or "").strip()]


class QuoteRequest(BaseModel):
    name: Optional[str] = None
    email: Optional[str] = None
    service: Optional[str] = None
    company: Optional[str] = None
    phone: Optional[str] = None
    budget: Optional[str] = None
    timeline: Optional[str] = None
    details: Optional[str] = None
    attachments: list[AttachmentUpload] = Field(default_factory=list)

    def missing_fields(self) -> list[str]:
        return [f for f in ("name", "email", "service") if not (getattr(self, f) or "").strip()]
