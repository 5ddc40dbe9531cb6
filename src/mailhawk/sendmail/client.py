# =============================================================================
# Sendmail Client
# =============================================================================
# Delivers messages by piping them to a local `sendmail`-compatible
# executable (sendmail, postfix, msmtp, ...).
#
# The message handed to the executable is deliberately minimal:
#   - Content-Type, From, Subject and To headers
#   - The HTML body (or the plain text body when there is no HTML)
#
# Limitations:
#   - Only To recipients are delivered. Cc and Bcc are ignored.
#   - Attachments are not sent.
# Use the SMTP client when you need any of these.
#
# This client is usually recommended only for development and testing.
# =============================================================================

import asyncio
import logging
import os
import shutil
from dataclasses import dataclass
from email.charset import QP, Charset
from email.header import Header
from typing import Any

from mailhawk.config import ConfigError
from mailhawk.core import Message, format_address, format_addresses
from mailhawk.mailer import MailerError

logger = logging.getLogger(__name__)

# Conventional install locations, tried in order. The bare name is
# resolved through $PATH.
SENDMAIL_CANDIDATES = (
    "/usr/sbin/sendmail",
    "/usr/bin/sendmail",
    "sendmail",
)

CONTENT_TYPE = "text/html; charset=UTF-8"

# UTF-8 with "Q" encoded headers
_UTF8_Q = Charset("utf-8")
_UTF8_Q.header_encoding = QP


@dataclass
class SendmailConfig:
    """
    Sendmail settings.

    Attributes:
        cmd_path: Path to the sendmail executable. Empty means
                  auto-detect (see find_sendmail_path()).
    """
    cmd_path: str = ""

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "SendmailConfig":
        """Create a SendmailConfig from a parsed config table."""
        return cls(cmd_path=str(data.get("cmd_path", "")))


def find_sendmail_path(cmd_path: str = "") -> str:
    """
    Resolve the sendmail executable to an absolute path.

    Args:
        cmd_path: Configured command or path. If empty, the conventional
                  install locations are tried in order.

    Returns:
        Absolute path of an executable file.

    Raises:
        ConfigError: If nothing executable is found.
    """
    if cmd_path:
        path = shutil.which(cmd_path)
        if path is None:
            raise ConfigError(f"sendmail executable not found: {cmd_path}")
        return os.path.abspath(path)

    for option in SENDMAIL_CANDIDATES:
        path = shutil.which(option)
        if path is not None:
            logger.debug(f"Using sendmail at {path}")
            return os.path.abspath(path)

    raise ConfigError("failed to locate a sendmail executable path")


def encode_subject(subject: str) -> str:
    """Q-encode a subject as UTF-8 if it isn't plain printable ASCII."""
    if all(" " <= ch <= "~" for ch in subject):
        return subject
    return Header(subject, _UTF8_Q).encode(linesep="\r\n")


def _header_value(value: str) -> str:
    # A stray newline would let a value inject extra headers
    return value.replace("\r", " ").replace("\n", " ")


class SendmailClient:
    """
    Mailer that delivers through a local sendmail executable.

    Usage:
        >>> client = SendmailClient(SendmailConfig(cmd_path="/usr/sbin/sendmail"))
        >>> await client.send(message)

    Attributes:
        config: Settings; cmd_path should already be resolved with
                find_sendmail_path().
    """

    def __init__(self, config: SendmailConfig) -> None:
        self.config = config

    def __repr__(self) -> str:
        return f"SendmailClient(cmd_path={self.config.cmd_path!r})"

    def build_input(self, message: Message) -> bytes:
        """
        Build the bytes fed to sendmail on stdin.

        Returns:
            Header block, blank line, then the body.
        """
        to = ",".join(format_addresses(message.to, include_name=False))

        headers = {
            "Subject": encode_subject(message.subject),
            "From": format_address(message.sender),
            "Content-Type": CONTENT_TYPE,
            "To": to,
        }

        lines = [f"{name}: {_header_value(headers[name])}\r\n" for name in sorted(headers)]
        lines.append("\r\n")
        lines.append(message.html or message.text)

        return "".join(lines).encode("utf-8")

    async def send(self, message: Message) -> None:
        """
        Send an email through the sendmail executable.

        Args:
            message: The email to send. Only To recipients are used.

        Raises:
            SendmailError: If a recipient looks like a command line option,
                the process can't be started, its input can't be written,
                or it exits with a non-zero status.
        """
        recipients = ",".join(format_addresses(message.to, include_name=False))
        if recipients.startswith("-"):
            # sendmail would parse it as a command line option
            raise SendmailError(f"Invalid recipient address: {recipients}")
        data = self.build_input(message)

        logger.info(f"Sending email to {recipients} via {self.config.cmd_path}")

        try:
            process = await asyncio.create_subprocess_exec(
                self.config.cmd_path,
                recipients,
                stdin=asyncio.subprocess.PIPE,
                stdout=asyncio.subprocess.DEVNULL,
                stderr=asyncio.subprocess.PIPE,
            )
        except OSError as e:
            raise SendmailError(f"Failed to run {self.config.cmd_path}: {e}") from e

        write_error: OSError | None = None
        try:
            process.stdin.write(data)
            await process.stdin.drain()
        except (BrokenPipeError, ConnectionResetError) as e:
            write_error = e
        finally:
            process.stdin.close()

        _, stderr = await process.communicate()

        if write_error is not None:
            raise SendmailError(
                f"Failed to write message to {self.config.cmd_path}: {write_error}"
            ) from write_error

        if process.returncode != 0:
            detail = stderr.decode("utf-8", errors="replace").strip()
            raise SendmailError(
                f"{self.config.cmd_path} exited with status {process.returncode}"
                + (f": {detail}" if detail else "")
            )

        logger.info("Email handed to sendmail successfully")


class SendmailError(MailerError):
    """Raised when the sendmail process fails."""
    pass
