"""MIME serialization of messages and attachments.

Renders a :class:`~mimemail.message.Message` as RFC 2822 headers followed
by either a single text part or a ``multipart/mixed`` body holding the text
part and one sub-part per attachment. Lines end with CRLF.

Layout with attachments::

    From: ...
    Date: ...
    To: ...
    Subject: ...
    MIME-Version: 1.0
    Content-Type: multipart/mixed; boundary="<token>"

    --<token>
    Content-Type: text/plain; charset=utf-8

    <body>
    --<token>
    <attachment sub-part>
    --<token>--
"""

from __future__ import annotations

import base64
import datetime as dt
import logging
import re
import secrets
from email.utils import format_datetime
from typing import TYPE_CHECKING

from mimemail.exceptions import MailValidationError

if TYPE_CHECKING:
    from mimemail.message import Attachment, Message

__all__ = [
    "CRLF",
    "LEGACY_BOUNDARY",
    "attachment_bytes",
    "message_bytes",
    "new_boundary",
]

log = logging.getLogger(__name__)

CRLF = b"\r\n"

# Fixed token written by earlier releases, kept for golden-file comparisons
LEGACY_BOUNDARY = "f46d043c813270fc6b04c2d223da"

# RFC 2045 line length limit for base64 bodies
_BASE64_LINE_LENGTH = 76

# RFC 5322 field names: printable ASCII except colon
_HEADER_NAME_PATTERN = re.compile(r"^[\x21-\x39\x3b-\x7e]+$")

_LINE_BREAK_PATTERN = re.compile(r"\r\n|\r|\n")


def new_boundary() -> str:
    """Return a random boundary token for a new message."""
    return f"mimemail-{secrets.token_hex(16)}"


def _header(name: str, value: str) -> bytes:
    if not _HEADER_NAME_PATTERN.match(name):
        raise MailValidationError(
            f"Invalid header name {name!r}",
            details={"header": name},
        )
    if "\r" in value or "\n" in value:
        raise MailValidationError(
            f"Header '{name}' must not contain line breaks",
            details={"header": name, "value": value},
        )
    return f"{name}: {value}".encode() + CRLF


def _quote_filename(filename: str) -> str:
    escaped = filename.replace("\\", "\\\\").replace('"', '\\"')
    return f'"{escaped}"'


def _wrap_base64(data: bytes) -> bytes:
    encoded = base64.b64encode(data)
    lines = [encoded[i : i + _BASE64_LINE_LENGTH] for i in range(0, len(encoded), _BASE64_LINE_LENGTH)]
    return CRLF.join(lines)


def _part_headers(attachment: Attachment) -> dict[str, str]:
    """Merge caller headers with the fixed headers for *attachment*.

    Fixed headers win over caller headers of the same name, compared
    case-insensitively.
    """
    if attachment.inline:
        fixed = {
            "Content-Type": "message/rfc822",
            "Content-Disposition": f"inline; filename={_quote_filename(attachment.filename)}",
        }
    else:
        fixed = {
            "Content-Type": "application/octet-stream",
            "Content-Transfer-Encoding": "base64",
            "Content-Disposition": f"attachment; filename={_quote_filename(attachment.filename)}",
        }

    reserved = {key.lower() for key in fixed}
    headers = {key: value for key, value in (attachment.headers or {}).items() if key.lower() not in reserved}
    headers.update(fixed)
    return headers


def attachment_bytes(attachment: Attachment) -> bytes:
    """Serialize one attachment as a MIME sub-part.

    Inline attachments are written as ``message/rfc822`` with their raw
    bytes. Regular attachments are written as ``application/octet-stream``
    with a base64 body.

    Args:
        attachment: The attachment to render. It is not modified.

    Returns:
        Header lines, a blank line, then the part body.

    Raises:
        MailValidationError: If a header name is invalid or a value
            contains a line break.
    """
    buf = bytearray()
    for key, value in _part_headers(attachment).items():
        buf += _header(key, value)
    buf += CRLF

    if attachment.inline:
        buf += attachment.data
    else:
        buf += _wrap_base64(attachment.data)

    return bytes(buf)


def message_bytes(message: Message, now: dt.datetime | None = None) -> bytes:
    """Serialize *message* into the bytes handed to the SMTP transport.

    The output only varies between calls through the ``Date`` header.

    Args:
        message: The message to render.
        now: Timestamp for the ``Date`` header. Defaults to the current
            local time.

    Returns:
        The complete message, headers and body.

    Raises:
        MailValidationError: If a header name is invalid or a value
            contains a line break.
    """
    if now is None:
        now = dt.datetime.now().astimezone()

    buf = bytearray()
    buf += _header("From", message.sender)
    buf += _header("Date", format_datetime(now))
    buf += _header("To", ",".join(message.to))
    if message.cc:
        buf += _header("Cc", ",".join(message.cc))
    buf += _header("Subject", message.subject)
    buf += _header("MIME-Version", "1.0")

    boundary = message.boundary.encode()
    if message.attachments:
        buf += _header("Content-Type", f'multipart/mixed; boundary="{message.boundary}"')
        buf += CRLF
        buf += b"--" + boundary + CRLF

    buf += _header("Content-Type", f"{message.body_content_type}; charset=utf-8")
    buf += CRLF
    buf += _LINE_BREAK_PATTERN.sub("\r\n", message.body).encode("utf-8")
    buf += CRLF

    if message.attachments:
        for attachment in message.attachments.values():
            buf += b"--" + boundary + CRLF
            buf += attachment_bytes(attachment)
            buf += CRLF
        buf += b"--" + boundary + b"--" + CRLF

    log.debug(
        "Serialized message %r: %d bytes, %d attachment(s)",
        message.subject,
        len(buf),
        len(message.attachments),
    )
    return bytes(buf)
