"""Channel protocol — the notification types shared by delivery channels.

- Each channel implements is_configured, format_message() and send()
- send() reports failures on the SendResult instead of raising, so a
  delivery problem never takes down the request that triggered it
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Protocol, runtime_checkable


@dataclass
class Attachment:
    """A decoded file attached to a notification."""
    filename: str
    content: bytes
    content_type: str = "application/octet-stream"

    @property
    def size(self) -> int:
        return len(self.content)


@dataclass
class NotificationMessage:
    """A notification ready for dispatch to a channel."""
    title: str
    body: str
    html: str = ""
    reply_to: str = ""
    event_type: str = ""
    attachments: list[Attachment] = field(default_factory=list)
    metadata: dict[str, Any] = field(default_factory=dict)


@dataclass
class SendResult:
    """Result of sending a notification."""
    success: bool
    channel_id: str
    error: str = ""
    response_id: str = ""  # Provider message ID (email Message-ID)


@runtime_checkable
class Channel(Protocol):
    """Protocol for notification channels."""

    @property
    def channel_id(self) -> str:
        ...

    @property
    def is_configured(self) -> bool:
        """Whether this channel has valid credentials configured."""
        ...

    def format_message(self, message: NotificationMessage) -> Any:
        """Format a notification for this channel's transport."""
        ...

    def send(self, formatted: Any) -> SendResult:
        """Send a formatted message. Returns SendResult."""
        ...

    def notify(self, message: NotificationMessage) -> SendResult:
        """Format and send in one step."""
        ...
