"""Transport abstraction and the ``send`` entry point."""

from __future__ import annotations

import logging
from abc import ABC, abstractmethod
from typing import TYPE_CHECKING

from mimemail.exceptions import MailValidationError

if TYPE_CHECKING:
    from collections.abc import Sequence

    from mimemail.message import Message
    from mimemail.transports.smtp import SMTPCredentials

__all__ = ["MailTransport", "send"]

log = logging.getLogger(__name__)


class MailTransport(ABC):
    """Deliver serialized messages to a mail server.

    Implementations own connection setup, authentication and the SMTP
    DATA exchange. They report failures as
    :class:`~mimemail.exceptions.MailTransportError`.
    """

    @abstractmethod
    def send(
        self,
        address: str,
        credentials: SMTPCredentials | None,
        sender: str,
        recipients: Sequence[str],
        data: bytes,
    ) -> None:
        """Deliver *data* from *sender* to every address in *recipients*.

        Args:
            address: Server address as ``host`` or ``host:port``.
            credentials: Login credentials, or None to skip authentication.
            sender: Envelope sender.
            recipients: Envelope recipients.
            data: The complete serialized message.
        """


def send(
    address: str,
    credentials: SMTPCredentials | None,
    message: Message,
    *,
    transport: MailTransport | None = None,
) -> None:
    """Serialize *message* and hand it to *transport*.

    The envelope recipients are To, Cc and Bcc combined. The sender is
    forwarded as given, so an empty one becomes the null reverse-path.
    Transport errors propagate unchanged; nothing is retried.

    Args:
        address: Server address as ``host`` or ``host:port``.
        credentials: Login credentials, or None.
        message: The message to deliver.
        transport: Delivery backend. Defaults to a new
            :class:`~mimemail.transports.smtp.SMTPTransport`.

    Raises:
        MailValidationError: If the message has no recipients.
        MailTransportError: If delivery fails.

    Examples:
        >>> from mimemail import SMTPCredentials, new_message, send
        >>> message = new_message("Hi", "this is the body")
        >>> message.sender = "me@example.com"
        >>> message.to = ["you@example.com"]
        >>> send("smtp.example.com:587", SMTPCredentials("me", "secret"), message)  # doctest: +SKIP
    """
    recipients = message.tolist()
    if not recipients:
        raise MailValidationError("Message has no recipients")

    if transport is None:
        from mimemail.transports.smtp import SMTPTransport

        transport = SMTPTransport()

    data = message.to_bytes()
    log.debug("Sending %r to %d recipient(s) via %s", message.subject, len(recipients), address)
    transport.send(address, credentials, message.sender, recipients, data)
