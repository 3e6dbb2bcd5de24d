"""Shared pytest fixtures for the mimemail test suite."""

from __future__ import annotations

import datetime as dt
from collections.abc import Sequence
from typing import Any, ClassVar

import pytest

from mimemail import Message, new_message
from mimemail.transport import MailTransport
from mimemail.transports.smtp import SMTPCredentials

# pylint: disable=redefined-outer-name

CRLF = b"\r\n"


class FakeTransport(MailTransport):
    """In-memory transport used for assertions in tests."""

    def __init__(self) -> None:
        self.sent: list[dict[str, Any]] = []

    def send(
        self,
        address: str,
        credentials: SMTPCredentials | None,
        sender: str,
        recipients: Sequence[str],
        data: bytes,
    ) -> None:
        """Record the submission."""
        self.sent.append(
            {
                "address": address,
                "credentials": credentials,
                "sender": sender,
                "recipients": list(recipients),
                "data": data,
            }
        )


class DummySMTP:
    """Minimal smtplib.SMTP stand-in capturing invocations."""

    created: ClassVar[list[DummySMTP]] = []
    last_instance: ClassVar[DummySMTP | None] = None

    def __init__(self, **kwargs: Any) -> None:
        """Capture constructor kwargs and initialise tracking state."""
        self.kwargs = kwargs
        self.login_calls: list[tuple[str, str]] = []
        self.sendmail_calls: list[tuple[str, list[str], bytes]] = []
        self.debug_level = 0
        self.closed = False
        DummySMTP.created.append(self)

    def __enter__(self) -> DummySMTP:
        """Register instance as the last active client."""
        DummySMTP.last_instance = self
        return self

    def __exit__(self, *exc_info: Any) -> None:
        """Mark the client as closed when leaving the context manager."""
        self.closed = True

    def set_debuglevel(self, level: int) -> None:
        """Record the requested debug level."""
        self.debug_level = level

    def login(self, username: str, password: str) -> None:
        """Track login attempts."""
        self.login_calls.append((username, password))

    def sendmail(self, from_addr: str, to_addrs: list[str], msg: bytes) -> dict[str, Any]:
        """Collect outgoing messages for later inspection."""
        self.sendmail_calls.append((from_addr, to_addrs, msg))
        return {}

    @classmethod
    def reset(cls) -> None:
        """Reset class-level tracking between tests."""
        cls.created.clear()
        cls.last_instance = None


@pytest.fixture
def fake_transport() -> FakeTransport:
    """Provide a fresh in-memory transport."""
    return FakeTransport()


@pytest.fixture
def dummy_smtp(monkeypatch: pytest.MonkeyPatch) -> type[DummySMTP]:
    """Replace ``smtplib.SMTP`` inside the SMTP transport module."""
    DummySMTP.reset()
    monkeypatch.setattr("mimemail.transports.smtp.smtplib.SMTP", DummySMTP)
    return DummySMTP


@pytest.fixture
def fixed_now() -> dt.datetime:
    """Return a fixed, timezone-aware timestamp for the Date header."""
    return dt.datetime(2024, 3, 1, 9, 30, 0, tzinfo=dt.timezone.utc)


@pytest.fixture
def message() -> Message:
    """Return a plain message with sender and recipients filled in."""
    msg = new_message("Hi", "this is the body")
    msg.sender = "from@example.com"
    msg.to = ["to@example.com"]
    return msg


def _split_parts(data: bytes, boundary: str) -> list[tuple[dict[str, str], bytes]]:
    """Split a multipart payload into ``(headers, body)`` pairs.

    The first element is the body text part; the top-level headers and the
    closing terminator are dropped.
    """
    chunks = data.split(b"--" + boundary.encode())
    parts = []
    for chunk in chunks[1:-1]:
        assert chunk.startswith(CRLF)
        assert chunk.endswith(CRLF)
        head, _, body = chunk[len(CRLF) : -len(CRLF)].partition(CRLF + CRLF)
        headers = {}
        for line in head.split(CRLF):
            key, _, value = line.decode().partition(": ")
            headers[key] = value
        parts.append((headers, body))
    return parts


@pytest.fixture
def split_parts() -> Any:
    """Expose the multipart splitting helper to tests."""
    return _split_parts
