"""SMTP transport built on :mod:`smtplib`.

Opens a plain SMTP connection per message, logs in when credentials are
given and submits the serialized bytes with ``sendmail``. TLS and retries
are out of scope.

Examples:
    >>> from mimemail import new_message
    >>> from mimemail.transports import SMTPCredentials, SMTPTransport
    >>> transport = SMTPTransport(timeout=10)
    >>> message = new_message("Hi", "body")
    >>> transport.send(  # doctest: +SKIP
    ...     "smtp.example.com:587",
    ...     SMTPCredentials(username="user", password="secret"),
    ...     "me@example.com",
    ...     ["you@example.com"],
    ...     message.to_bytes(),
    ... )
"""

from __future__ import annotations

import io
import logging
import smtplib
from contextlib import nullcontext, redirect_stderr
from dataclasses import dataclass, field
from typing import TYPE_CHECKING

from mimemail.exceptions import MailConfigurationError, MailTransportError
from mimemail.logging import TRACE_LEVEL
from mimemail.transport import MailTransport

if TYPE_CHECKING:
    from collections.abc import Sequence

__all__ = ["DEFAULT_SMTP_PORT", "SMTPCredentials", "SMTPTransport", "parse_address"]

log = logging.getLogger(__name__)

DEFAULT_SMTP_PORT = 25


@dataclass(frozen=True, slots=True)
class SMTPCredentials:
    """Username and password for SMTP ``AUTH``.

    Attributes:
        username: Login name.
        password: Login secret, hidden from ``repr``.
    """

    username: str
    password: str = field(default="", repr=False)


def parse_address(address: str) -> tuple[str, int]:
    """Split ``host[:port]`` into host and port.

    Args:
        address: Server address, e.g. ``smtp.example.com:587``.

    Returns:
        Tuple of host and port; the port defaults to 25.

    Raises:
        MailConfigurationError: If the host is empty or the port is invalid.

    Examples:
        >>> parse_address("smtp.example.com:587")
        ('smtp.example.com', 587)
        >>> parse_address("localhost")
        ('localhost', 25)
    """
    host, sep, port_text = address.rpartition(":")
    if not sep:
        host, port_text = address, ""

    if not host:
        raise MailConfigurationError(f"Invalid SMTP address: {address!r}", details={"address": address})
    if not port_text:
        return host, DEFAULT_SMTP_PORT
    if not port_text.isdigit() or not 0 < int(port_text) < 65536:
        raise MailConfigurationError(f"Invalid SMTP port in address: {address!r}", details={"address": address})
    return host, int(port_text)


def _log_smtp_debug_output(buffer: io.StringIO) -> None:
    """Re-log captured smtplib debug lines at TRACE level."""
    if not log.isEnabledFor(TRACE_LEVEL):
        return

    for raw_line in buffer.getvalue().splitlines():
        line = raw_line.strip()
        if not line:
            continue
        if line.startswith("send:"):
            log.log(TRACE_LEVEL, "[SMTP] >>> %s", line[len("send:") :].strip())
        elif line.startswith("reply:"):
            log.log(TRACE_LEVEL, "[SMTP] <<< %s", line[len("reply:") :].strip())
        else:
            log.log(TRACE_LEVEL, "[SMTP] %s", line)


class SMTPTransport(MailTransport):
    """Synchronous SMTP delivery.

    Args:
        timeout: Socket timeout in seconds for connect and each command.
        local_hostname: Name sent with ``EHLO``; smtplib picks the FQDN when
            omitted.

    Raises:
        MailConfigurationError: If *timeout* is not positive.
    """

    def __init__(self, *, timeout: float = 30.0, local_hostname: str | None = None) -> None:
        if timeout <= 0:
            raise MailConfigurationError("Timeout must be greater than 0")
        self._timeout = timeout
        self._local_hostname = local_hostname

    @property
    def timeout(self) -> float:
        """Return the socket timeout in seconds."""
        return self._timeout

    def send(
        self,
        address: str,
        credentials: SMTPCredentials | None,
        sender: str,
        recipients: Sequence[str],
        data: bytes,
    ) -> None:
        """Connect to *address* and submit *data*.

        Raises:
            MailConfigurationError: If *address* cannot be parsed.
            MailTransportError: On any smtplib or socket failure, with the
                original error chained.
        """
        host, port = parse_address(address)
        trace_enabled = log.isEnabledFor(TRACE_LEVEL)
        if trace_enabled:
            log.log(TRACE_LEVEL, "[SMTP] Connecting to %s:%d (timeout=%s)", host, port, self._timeout)

        # smtplib prints its debug trace to stderr
        debug_buffer = io.StringIO()
        capture = redirect_stderr(debug_buffer) if trace_enabled else nullcontext()
        try:
            with (
                capture,
                smtplib.SMTP(
                    host=host,
                    port=port,
                    timeout=self._timeout,
                    local_hostname=self._local_hostname,
                ) as client,
            ):
                if trace_enabled:
                    client.set_debuglevel(1)
                if credentials is not None:
                    client.login(credentials.username, credentials.password)
                client.sendmail(sender, list(recipients), data)
        except (smtplib.SMTPException, OSError) as e:
            raise MailTransportError(str(e), details={"address": address}) from e
        finally:
            _log_smtp_debug_output(debug_buffer)

        log.debug("Delivered message from %s to %d recipient(s) via %s", sender, len(recipients), address)
