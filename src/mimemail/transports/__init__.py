"""Transport implementations for mail delivery.

Available transports:
    - SMTPTransport: Standard SMTP protocol (sync)
"""

from mimemail.transports.smtp import SMTPCredentials, SMTPTransport, parse_address

__all__ = [
    "SMTPCredentials",
    "SMTPTransport",
    "parse_address",
]
