"""Email notification channel — delivers form and payment notifications via SMTP.

Uses standard SMTP with STARTTLS. Settings come from the application's
Settings object (SMTP_HOST, SMTP_PORT, SMTP_USER, SMTP_PASSWORD, SMTP_FROM,
CONTACT_RECIPIENTS).

Security: Password never logged. Header values are stripped of CR/LF so
user-supplied subjects and reply-to addresses cannot inject headers.
"""

from __future__ import annotations

import html
import logging
import smtplib
from email import encoders
from email.mime.base import MIMEBase
from email.mime.multipart import MIMEMultipart
from email.mime.text import MIMEText
from email.utils import formatdate, make_msgid

from uplinq.channels.protocol import (
    Attachment,
    NotificationMessage,
    SendResult,
)
from uplinq.config import Settings

logger = logging.getLogger(__name__)

_SMTP_TIMEOUT = 15


def _header(value: str) -> str:
    """Collapse a header value onto one line."""
    return " ".join(value.replace("\r", " ").replace("\n", " ").split())


def _attachment_part(attachment: Attachment) -> MIMEBase:
    maintype, _, subtype = attachment.content_type.partition("/")
    if not maintype or not subtype:
        maintype, subtype = "application", "octet-stream"
    part = MIMEBase(maintype, subtype)
    part.set_payload(attachment.content)
    encoders.encode_base64(part)
    part.add_header("Content-Disposition", "attachment", filename=_header(attachment.filename))
    return part


class EmailChannel:
    """Email notification channel via SMTP."""

    def __init__(
        self,
        channel_id: str = "email-default",
        recipients: list[str] | None = None,
        smtp_host: str = "",
        smtp_port: int = 587,
        smtp_user: str = "",
        smtp_password: str = "",
        smtp_from: str = "",
        use_tls: bool = True,
    ):
        self._channel_id = channel_id
        self._recipients = [r.strip() for r in (recipients or []) if r.strip()]
        self._host = smtp_host
        self._port = smtp_port
        self._user = smtp_user
        self._password = smtp_password
        self._from = smtp_from or smtp_user
        self._use_tls = use_tls

    @classmethod
    def from_settings(cls, settings: Settings) -> EmailChannel:
        return cls(
            recipients=settings.recipients,
            smtp_host=settings.smtp_host,
            smtp_port=settings.smtp_port,
            smtp_user=settings.smtp_user,
            smtp_password=settings.smtp_password,
            smtp_from=settings.sender,
            use_tls=settings.smtp_use_tls,
        )

    @property
    def channel_id(self) -> str:
        return self._channel_id

    @property
    def is_configured(self) -> bool:
        return bool(self._host and self._from and self._recipients)

    @property
    def recipients(self) -> list[str]:
        return list(self._recipients)

    def format_message(self, message: NotificationMessage) -> MIMEMultipart:
        """Format as MIME email message (text + HTML alternative, then attachments)."""
        msg = MIMEMultipart("mixed")
        msg["Subject"] = _header(message.title)
        msg["From"] = self._from
        msg["To"] = ", ".join(self._recipients)
        msg["Date"] = formatdate(localtime=True)
        msg["Message-ID"] = make_msgid(domain=self._from.rpartition("@")[2] or None)
        if message.reply_to:
            msg["Reply-To"] = _header(message.reply_to)

        body = MIMEMultipart("alternative")
        body.attach(MIMEText(message.body, "plain", "utf-8"))
        html_body = message.html or (
            '<div style="font-family: Arial, sans-serif; max-width: 600px;">'
            f"<h2>{html.escape(message.title)}</h2>"
            f'<p style="white-space: pre-wrap;">{html.escape(message.body)}</p>'
            "</div>"
        )
        body.attach(MIMEText(html_body, "html", "utf-8"))
        msg.attach(body)

        for attachment in message.attachments:
            msg.attach(_attachment_part(attachment))

        return msg

    def send(self, formatted: MIMEMultipart) -> SendResult:
        """Send via SMTP, upgrading with STARTTLS when enabled."""
        if not self.is_configured:
            return SendResult(
                success=False,
                channel_id=self._channel_id,
                error="Email not configured (missing SMTP_HOST/SMTP_FROM/CONTACT_RECIPIENTS)",
            )

        try:
            with smtplib.SMTP(self._host, self._port, timeout=_SMTP_TIMEOUT) as server:
                if self._use_tls:
                    server.starttls()
                if self._user and self._password:
                    server.login(self._user, self._password)
                server.send_message(formatted)
        except smtplib.SMTPException as e:
            logger.warning("SMTP delivery failed: %s", e)
            return SendResult(
                success=False,
                channel_id=self._channel_id,
                error=f"SMTP error: {e}",
            )
        except OSError as e:
            logger.warning("SMTP connection failed: %s", e)
            return SendResult(
                success=False,
                channel_id=self._channel_id,
                error=f"SMTP connection error: {e}",
            )

        logger.info("Email sent: %s", formatted["Subject"])
        return SendResult(
            success=True,
            channel_id=self._channel_id,
            response_id=formatted["Message-ID"] or "",
        )

    def notify(self, message: NotificationMessage) -> SendResult:
        return self.send(self.format_message(message))
