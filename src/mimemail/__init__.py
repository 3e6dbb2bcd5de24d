"""Build MIME email messages with attachments and send them over SMTP.

Examples:
    >>> from mimemail import SMTPCredentials, new_message, send
    >>> message = new_message("Hi", "this is the body")
    >>> message.sender = "me@example.com"
    >>> message.to = ["you@example.com"]
    >>> message.attach("report.pdf")  # doctest: +SKIP
    >>> send("smtp.example.com:587", SMTPCredentials("me", "secret"), message)  # doctest: +SKIP
"""

from mimemail.config import SMTPSettings, load_settings
from mimemail.exceptions import (
    MailAttachmentError,
    MailConfigurationError,
    MailError,
    MailTransportError,
    MailValidationError,
)
from mimemail.message import Attachment, Message, new_html_message, new_message
from mimemail.meta import __version__
from mimemail.serializer import LEGACY_BOUNDARY, attachment_bytes, message_bytes
from mimemail.transport import MailTransport, send
from mimemail.transports.smtp import SMTPCredentials, SMTPTransport

__all__ = [
    "LEGACY_BOUNDARY",
    "Attachment",
    "MailAttachmentError",
    "MailConfigurationError",
    "MailError",
    "MailTransport",
    "MailTransportError",
    "MailValidationError",
    "Message",
    "SMTPCredentials",
    "SMTPSettings",
    "SMTPTransport",
    "__version__",
    "attachment_bytes",
    "load_settings",
    "message_bytes",
    "new_html_message",
    "new_message",
    "send",
]
