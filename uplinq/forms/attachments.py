"""Attachment parsing for quote requests.

Files arrive base64-encoded inside the JSON body. Decoding is strict, the
number of files and their combined size are capped, and filenames are
reduced to a bare base name before they reach a MIME header.
"""

from __future__ import annotations

import base64
import binascii
import mimetypes
import re
from typing import Iterable

from uplinq.channels.protocol import Attachment
from uplinq.errors import AttachmentError
from uplinq.forms.models import AttachmentUpload

_DATA_URL_PREFIX = re.compile(r"^data:[^;,]*;base64,", re.IGNORECASE)
_UNSAFE_FILENAME_CHARS = re.compile(r"[^\w.\- ]")


def safe_filename(filename: str) -> str:
    name = filename.replace("\\", "/").rsplit("/", 1)[-1]
    name = _UNSAFE_FILENAME_CHARS.sub("_", name).strip(" .")
    return name or "attachment"


def decode_content(content: str) -> bytes:
    """Decode base64 content, accepting an optional data: URL prefix."""
    payload = _DATA_URL_PREFIX.sub("", content.strip())
    payload = "".join(payload.split())
    try:
        return base64.b64decode(payload, validate=True)
    except (binascii.Error, ValueError) as e:
        raise AttachmentError("content is not valid base64") from e


def parse_attachments(
    uploads: Iterable[AttachmentUpload],
    max_count: int,
    max_total_bytes: int,
) -> list[Attachment]:
    """Decode uploads into attachments, enforcing the count and size limits.

    Raises:
        AttachmentError: too many files, combined size over the limit, or a
            file whose content does not decode
    """
    uploads = list(uploads)
    if len(uploads) > max_count:
        raise AttachmentError(f"Too many attachments (maximum {max_count})")

    attachments: list[Attachment] = []
    total = 0
    for upload in uploads:
        filename = safe_filename(upload.filename)
        try:
            content = decode_content(upload.content)
        except AttachmentError as e:
            raise AttachmentError(f"Invalid attachment {filename}: {e}") from e

        total += len(content)
        if total > max_total_bytes:
            raise AttachmentError(
                f"Attachments exceed the maximum total size of {max_total_bytes} bytes"
            )

        content_type = upload.content_type or mimetypes.guess_type(filename)[0]
        attachments.append(
            Attachment(
                filename=filename,
                content=content,
                content_type=content_type or "application/octet-stream",
            )
        )
    return attachments
