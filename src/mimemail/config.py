"""SMTP settings loaded from YAML.

Settings live under the ``mail.smtp`` key::

    mail:
      smtp:
        address: smtp.example.com:587
        username: ${SMTP_USER}
        password: ${SMTP_PASSWORD:-}
        timeout: 15
        sender: reports@example.com

String values may reference environment variables as ``${VAR}`` (required)
or ``${VAR:-default}`` (optional).
"""

from __future__ import annotations

import logging
import os
import re
from dataclasses import dataclass, field
from pathlib import Path
from typing import TYPE_CHECKING, Any

import yaml
from box import Box

from mimemail.exceptions import MailConfigurationError
from mimemail.transport import send
from mimemail.transports.smtp import SMTPCredentials, SMTPTransport, parse_address

if TYPE_CHECKING:
    from collections.abc import Mapping

    from mimemail.message import Message

__all__ = ["SMTPSettings", "load_config", "load_settings"]

log = logging.getLogger(__name__)

# ${VAR} or ${VAR:-default}
_ENV_VAR_PATTERN = re.compile(r"\$\{([a-zA-Z_][a-zA-Z0-9_]*)(?::-([^}]*))?\}")

_DEFAULT_TIMEOUT = 30.0


def _expand_env_vars(value: str, source: str | None = None) -> str:
    """Expand environment variables in a string value.

    Raises:
        MailConfigurationError: If a required variable is not set.

    Examples:
        >>> os.environ["MIMEMAIL_DOC_HOST"] = "mx.example.com"
        >>> _expand_env_vars("${MIMEMAIL_DOC_HOST}:25")
        'mx.example.com:25'
        >>> _expand_env_vars("${MIMEMAIL_DOC_MISSING:-fallback}")
        'fallback'
    """

    def replacer(match: re.Match[str]) -> str:
        var_name = match.group(1)
        default_value = match.group(2)

        env_value = os.environ.get(var_name)
        if env_value is not None:
            return env_value
        if default_value is not None:
            return default_value

        where = f" (required by {source})" if source else ""
        raise MailConfigurationError(
            f"Environment variable '{var_name}' is not set{where}. Use ${{VAR:-default}} for optional variables.",
            details={"var_name": var_name, "source": source},
        )

    return _ENV_VAR_PATTERN.sub(replacer, value)


def _expand_env_vars_recursive(data: Any, source: str | None = None) -> Any:
    if isinstance(data, dict):
        return {k: _expand_env_vars_recursive(v, source) for k, v in data.items()}
    if isinstance(data, list):
        return [_expand_env_vars_recursive(item, source) for item in data]
    if isinstance(data, str):
        return _expand_env_vars(data, source)
    return data


def load_config(path: str | Path) -> Box:
    """Load a YAML file into a :class:`~box.Box` with variables expanded.

    Args:
        path: YAML file to read.

    Returns:
        Frozen Box giving attribute access to the document.

    Raises:
        MailConfigurationError: If the file is missing, unreadable, not
            valid YAML, or not a mapping at the top level.
    """
    config_path = Path(path)
    source = str(config_path)
    try:
        raw = yaml.safe_load(config_path.read_text(encoding="utf-8"))
    except FileNotFoundError as e:
        raise MailConfigurationError(f"Config file not found: {source}", details={"path": source}) from e
    except OSError as e:
        raise MailConfigurationError(f"Cannot read config file {source}: {e}", details={"path": source}) from e
    except yaml.YAMLError as e:
        raise MailConfigurationError(f"Invalid YAML in {source}: {e}", details={"path": source}) from e

    if raw is None:
        raw = {}
    if not isinstance(raw, dict):
        raise MailConfigurationError(f"Config file {source} must contain a mapping", details={"path": source})

    log.debug("Loaded mail config from %s", source)
    return Box(_expand_env_vars_recursive(raw, source), frozen_box=True)


@dataclass(frozen=True, slots=True)
class SMTPSettings:
    """Connection settings for :func:`~mimemail.transport.send`.

    Attributes:
        address: Server address as ``host`` or ``host:port``.
        username: Login name; no authentication when empty.
        password: Login secret.
        timeout: Socket timeout in seconds.
        sender: Default ``From`` address for messages without one.
    """

    address: str
    username: str = ""
    password: str = field(default="", repr=False)
    timeout: float = _DEFAULT_TIMEOUT
    sender: str = ""

    def __post_init__(self) -> None:
        """Validate the address and timeout.

        Raises:
            MailConfigurationError: If either value is invalid.
        """
        parse_address(self.address)
        if self.timeout <= 0:
            raise MailConfigurationError("Timeout must be greater than 0", details={"timeout": self.timeout})

    @classmethod
    def from_mapping(cls, data: Mapping[str, Any]) -> SMTPSettings:
        """Build settings from a ``mail.smtp`` mapping.

        Raises:
            MailConfigurationError: If ``address`` is missing or a value has
                the wrong type.
        """
        address = data.get("address")
        if not address:
            raise MailConfigurationError("mail.smtp.address is required")

        try:
            timeout = float(data.get("timeout", _DEFAULT_TIMEOUT))
        except (TypeError, ValueError) as e:
            raise MailConfigurationError(f"mail.smtp.timeout must be a number: {e}") from e

        return cls(
            address=str(address),
            username=str(data.get("username") or ""),
            password=str(data.get("password") or ""),
            timeout=timeout,
            sender=str(data.get("sender") or ""),
        )

    @property
    def credentials(self) -> SMTPCredentials | None:
        """Return login credentials, or None when no username is set."""
        if not self.username:
            return None
        return SMTPCredentials(username=self.username, password=self.password)

    def transport(self) -> SMTPTransport:
        """Return an SMTP transport using these settings."""
        return SMTPTransport(timeout=self.timeout)

    def send(self, message: Message) -> None:
        """Send *message* with these settings.

        A message without a sender gets :attr:`sender` first.

        Raises:
            MailValidationError: If the message has no recipients.
            MailTransportError: If delivery fails.
        """
        if not message.sender and self.sender:
            message.sender = self.sender
        send(self.address, self.credentials, message, transport=self.transport())


def load_settings(path: str | Path) -> SMTPSettings:
    """Load :class:`SMTPSettings` from the ``mail.smtp`` section of *path*.

    Raises:
        MailConfigurationError: If the file or the section is invalid.
    """
    config = load_config(path)
    mail = config.get("mail")
    section = mail.get("smtp") if isinstance(mail, dict) else None
    if not isinstance(section, dict) or not section:
        raise MailConfigurationError(f"Missing 'mail.smtp' section in {path}", details={"path": str(path)})
    return SMTPSettings.from_mapping(section)
