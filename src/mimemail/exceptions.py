"""Exceptions raised by the mimemail package.

Exception hierarchy::

    MailError
        MailAttachmentError (attachment ingestion failure, also OSError)
        MailValidationError (invalid message content, also ValueError)
        MailConfigurationError (invalid or missing settings)
        MailTransportError (SMTP delivery failure)
"""

from __future__ import annotations

from typing import Any


class MailError(Exception):
    """Base exception for all mimemail errors.

    Attributes:
        message: Human-readable error message.
        details: Additional error context as key-value pairs.

    Examples:
        >>> raise MailError("Something went wrong", details={"filename": "a.txt"})
        Traceback (most recent call last):
        ...
        mimemail.exceptions.MailError: Something went wrong
    """

    def __init__(
        self,
        message: str,
        *,
        details: dict[str, Any] | None = None,
    ) -> None:
        """Initialize MailError.

        Args:
            message: Human-readable error message.
            details: Additional error context.
        """
        super().__init__(message)
        self.message = message
        self.details = details or {}


class MailAttachmentError(MailError, OSError):
    """Raised when attachment content cannot be opened or read.

    The message the attachment was meant for is left unchanged, so the
    caller may retry or carry on without it.

    Attributes:
        filename: Name the attachment would have been stored under.
        reason: Text of the underlying I/O error.

    Examples:
        >>> raise MailAttachmentError("report.pdf", "No such file or directory")
        Traceback (most recent call last):
        ...
        mimemail.exceptions.MailAttachmentError: Cannot read attachment 'report.pdf': No such file or directory
    """

    def __init__(self, filename: str, reason: str) -> None:
        """Initialize MailAttachmentError.

        Args:
            filename: Name the attachment would have been stored under.
            reason: Text of the underlying I/O error.
        """
        super().__init__(
            f"Cannot read attachment '{filename}': {reason}",
            details={"filename": filename, "reason": reason},
        )
        self.filename = filename
        self.reason = reason

    def __str__(self) -> str:
        # OSError.__str__ would format errno/strerror instead of the message
        return self.message


class MailValidationError(MailError, ValueError):
    """Raised when a message cannot be serialized or sent as built."""


class MailConfigurationError(MailError):
    """Raised when mail settings are missing or invalid."""


class MailTransportError(MailError):
    """Raised when the SMTP transport fails to deliver a message.

    The original transport error text is kept as the message and the
    original exception is chained as ``__cause__``.
    """


__all__ = [
    "MailAttachmentError",
    "MailConfigurationError",
    "MailError",
    "MailTransportError",
    "MailValidationError",
]
