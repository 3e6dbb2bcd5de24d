"""In-memory email message builder.

A :class:`Message` collects envelope fields, a single text or HTML body
and any number of attachments. Attachment content is read fully into
memory when it is added; nothing is streamed.

Examples:
    >>> message = new_message("Hi", "this is the body")
    >>> message.sender = "me@example.com"
    >>> message.to = ["you@example.com"]
    >>> message.cc = ["boss@example.com"]
    >>> message.tolist()
    ['you@example.com', 'boss@example.com']
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from pathlib import Path
from typing import IO, TYPE_CHECKING, Any

from mimemail.exceptions import MailAttachmentError
from mimemail.serializer import attachment_bytes, message_bytes, new_boundary

if TYPE_CHECKING:
    import datetime as dt
    from collections.abc import Mapping

__all__ = [
    "CONTENT_TYPE_HTML",
    "CONTENT_TYPE_PLAIN",
    "Attachment",
    "Message",
    "new_html_message",
    "new_message",
]

log = logging.getLogger(__name__)

CONTENT_TYPE_PLAIN = "text/plain"
CONTENT_TYPE_HTML = "text/html"


@dataclass(frozen=True, slots=True)
class Attachment:
    """A file carried by a message.

    Attributes:
        filename: Name announced in the ``Content-Disposition`` header.
        data: Raw attachment content.
        inline: Render as an inline ``message/rfc822`` part instead of a
            base64 encoded download.
        headers: Extra part headers supplied by the caller; None means none.
    """

    filename: str
    data: bytes
    inline: bool = False
    headers: dict[str, str] | None = field(default_factory=dict)

    def to_bytes(self) -> bytes:
        """Return the serialized MIME sub-part for this attachment."""
        return attachment_bytes(self)


@dataclass(slots=True)
class Message:
    """An email message with optional attachments.

    Use :func:`new_message` or :func:`new_html_message` rather than
    building one directly.

    Attributes:
        subject: Value of the ``Subject`` header.
        body: Text of the body part.
        body_content_type: ``text/plain`` or ``text/html``.
        sender: Value of the ``From`` header and SMTP envelope sender.
        to: Primary recipients.
        cc: Carbon-copy recipients, written to the ``Cc`` header.
        bcc: Blind recipients, only part of the SMTP envelope.
        attachments: Attachments keyed by filename, in insertion order.
        boundary: MIME boundary token used when attachments are present.
    """

    subject: str
    body: str
    body_content_type: str = CONTENT_TYPE_PLAIN
    sender: str = ""
    to: list[str] = field(default_factory=list)
    cc: list[str] = field(default_factory=list)
    bcc: list[str] = field(default_factory=list)
    attachments: dict[str, Attachment] = field(default_factory=dict)
    boundary: str = field(default_factory=new_boundary)

    def attach(self, path: str | Path) -> None:
        """Attach the file at *path*, keyed by its base name.

        Args:
            path: File to read.

        Raises:
            MailAttachmentError: If the file cannot be opened or read.
        """
        self._attach_file(Path(path), inline=False)

    def attach_reader(
        self,
        source: IO[Any],
        filename: str,
        headers: Mapping[str, str] | None = None,
    ) -> None:
        """Attach everything readable from *source* under *filename*.

        Args:
            source: Binary or text file-like object. Text is encoded as UTF-8.
            filename: Attachment name, also the key in :attr:`attachments`.
            headers: Extra headers for the attachment part.

        Raises:
            MailAttachmentError: If reading *source* fails.
        """
        self._attach(source, filename, inline=False, headers=headers)

    def inline(self, path: str | Path) -> None:
        """Attach the file at *path* as inline content.

        Raises:
            MailAttachmentError: If the file cannot be opened or read.
        """
        self._attach_file(Path(path), inline=True)

    def inline_reader(
        self,
        source: IO[Any],
        filename: str,
        headers: Mapping[str, str] | None = None,
    ) -> None:
        """Attach everything readable from *source* as inline content.

        Raises:
            MailAttachmentError: If reading *source* fails.
        """
        self._attach(source, filename, inline=True, headers=headers)

    def tolist(self) -> list[str]:
        """Return every envelope recipient: To, then Cc, then Bcc.

        Duplicates are kept as given.
        """
        return [*self.to, *self.cc, *self.bcc]

    def to_bytes(self, now: dt.datetime | None = None) -> bytes:
        """Serialize the message for SMTP delivery.

        Args:
            now: Timestamp for the ``Date`` header (defaults to current time).
        """
        return message_bytes(self, now=now)

    def __bytes__(self) -> bytes:
        return self.to_bytes()

    def _attach_file(self, path: Path, *, inline: bool) -> None:
        try:
            with path.open("rb") as fin:
                self._attach(fin, path.name, inline=inline, headers=None)
        except MailAttachmentError:
            raise
        except OSError as e:
            raise MailAttachmentError(path.name, e.strerror or str(e)) from e

    def _attach(
        self,
        source: IO[Any],
        filename: str,
        *,
        inline: bool,
        headers: Mapping[str, str] | None,
    ) -> None:
        try:
            data = source.read()
            if isinstance(data, str):
                data = data.encode("utf-8")
        except OSError as e:
            raise MailAttachmentError(filename, e.strerror or str(e)) from e
        except UnicodeError as e:
            raise MailAttachmentError(filename, str(e)) from e

        # Re-adding a filename replaces the entry and moves it to the end
        self.attachments.pop(filename, None)
        self.attachments[filename] = Attachment(
            filename=filename,
            data=bytes(data),
            inline=inline,
            headers=dict(headers or {}),
        )
        log.debug("Attached %s (%d bytes, inline=%s)", filename, len(data), inline)


def _new_message(subject: str, body: str, body_content_type: str) -> Message:
    return Message(subject=subject, body=body, body_content_type=body_content_type)


def new_message(subject: str, body: str) -> Message:
    """Return a plain-text message that can carry attachments."""
    return _new_message(subject, body, CONTENT_TYPE_PLAIN)


def new_html_message(subject: str, body: str) -> Message:
    """Return an HTML message that can carry attachments."""
    return _new_message(subject, body, CONTENT_TYPE_HTML)
