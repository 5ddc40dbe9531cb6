# =============================================================================
# Mailer Plugin
# =============================================================================
# Turns configuration into a ready-to-use Mailer.
#
# Exactly one transport is provided:
#   - [mailer.smtp] present     -> SMTPClient
#   - [mailer.sendmail] present -> SendmailClient (path resolved here, once)
#   - neither                   -> MailerDisabledError (feature is off)
#
# SMTP wins when both sections exist.
# =============================================================================

import logging
from typing import Protocol, TypeVar

from mailhawk.config import ConfigError
from mailhawk.mailer import Mailer
from mailhawk.sendmail import SendmailClient, SendmailConfig, find_sendmail_path
from mailhawk.smtp import SMTPClient, SMTPConfig

logger = logging.getLogger(__name__)

PLUGIN_NAME = "mailer"

SMTP_KEY = f"{PLUGIN_NAME}.smtp"
SENDMAIL_KEY = f"{PLUGIN_NAME}.sendmail"

T = TypeVar("T")


class Configurer(Protocol):
    """What the plugin needs from a configuration source."""

    def has(self, key: str) -> bool:
        ...

    def decode(self, key: str, into: type[T]) -> T:
        ...


class MailerPlugin:
    """
    Selects and configures the mail transport.

    Usage:
        >>> plugin = MailerPlugin()
        >>> plugin.init(Config.load())
        >>> await plugin.mailer.send(message)
    """

    def __init__(self) -> None:
        self._mailer: Mailer | None = None

    @property
    def name(self) -> str:
        return PLUGIN_NAME

    @property
    def mailer(self) -> Mailer:
        """
        The configured Mailer.

        Raises:
            MailerDisabledError: If init() hasn't configured one.
        """
        if self._mailer is None:
            raise MailerDisabledError("mailer is not configured")
        return self._mailer

    def init(self, config: Configurer) -> None:
        """
        Configure the plugin from a config source.

        Raises:
            MailerDisabledError: If no transport is configured.
            ConfigError: If the transport section is invalid or the
                sendmail executable can't be found.
        """
        if config.has(SMTP_KEY):
            smtp_config = config.decode(SMTP_KEY, SMTPConfig)
            self._mailer = SMTPClient(smtp_config)
        elif config.has(SENDMAIL_KEY):
            sendmail_config = config.decode(SENDMAIL_KEY, SendmailConfig)
            sendmail_config.cmd_path = find_sendmail_path(sendmail_config.cmd_path)
            self._mailer = SendmailClient(sendmail_config)
        else:
            raise MailerDisabledError(
                f"neither [{SMTP_KEY}] nor [{SENDMAIL_KEY}] is configured"
            )

        logger.info(f"Mailer configured: {self._mailer!r}")


class MailerDisabledError(ConfigError):
    """Raised when no mail transport is configured."""
    pass
