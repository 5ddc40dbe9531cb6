# =============================================================================
# SMTP Client
# =============================================================================
# Delivers messages over SMTP.
#
# Key responsibilities:
#   - Connection management with implicit TLS or opportunistic STARTTLS
#   - Choosing and running an AUTH mechanism (PLAIN or LOGIN)
#   - Building MIME messages (plain text, HTML, attachments)
#   - Synthesizing a Message-ID when the caller didn't supply one
#   - Sending emails
#
# Every send() opens its own session and closes it afterwards. There is no
# pooling and no retry; failures are raised to the caller.
#
# Uses aiosmtplib for async operations.
# =============================================================================

import dataclasses
import logging
import mimetypes
from dataclasses import dataclass, field
from email.encoders import encode_base64
from email.mime.base import MIMEBase
from email.mime.multipart import MIMEMultipart
from email.mime.text import MIMEText
from email.utils import formatdate
from enum import StrEnum
from typing import Any

import aiosmtplib
import keyring
from keyring.errors import KeyringError

from mailhawk.core import (
    Address,
    Message,
    PseudorandomGenerator,
    default_generator,
    format_address,
    format_addresses,
)
from mailhawk.smtp.auth import (
    Authenticator,
    LoginAuth,
    PlainAuth,
    ServerInfo,
    authenticate,
)
from mailhawk.smtp.errors import (
    SendError,
    SMTPAuthenticationError,
    SMTPConnectionError,
)

logger = logging.getLogger(__name__)

# Length of the random part of a synthesized Message-ID
MESSAGE_ID_LENGTH = 15

# Keyring service prefix used when no password is configured
KEYRING_SERVICE_PREFIX = "mailhawk"


class AuthMethod(StrEnum):
    """SMTP AUTH mechanisms we know how to negotiate."""
    PLAIN = "PLAIN"
    LOGIN = "LOGIN"


@dataclass
class SMTPConfig:
    """
    SMTP server settings.

    Attributes:
        host: Hostname of the SMTP server (e.g., "smtp.gmail.com").
        port: Port for SMTP connection. Standard ports:
              - 465 for SMTP with implicit TLS (set tls=True)
              - 587 for submission with STARTTLS (tls=False; the upgrade
                happens automatically when the server offers it)
              - 25 for plain relay
        username: Login name. Authentication is only attempted when
                  username or password is non-empty.
        password: Login password.
        tls: Negotiate TLS immediately on connect.
        auth_method: PLAIN (default) or LOGIN.
        sender: Default "From" address, used for any field the message
                leaves empty.
        timeout: Optional timeout in seconds for each SMTP operation.
                 None means wait indefinitely.
    """
    host: str = ""
    port: int = 25
    username: str = ""
    password: str = ""
    tls: bool = False
    auth_method: AuthMethod = AuthMethod.PLAIN
    sender: Address = field(default_factory=Address)
    timeout: float | None = None

    @property
    def has_credentials(self) -> bool:
        return bool(self.username or self.password)

    @property
    def keyring_service(self) -> str:
        """
        Service name used for keyring password lookups:
            keyring set mailhawk:smtp.example.com user@example.com
        """
        return f"{KEYRING_SERVICE_PREFIX}:{self.host}"

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "SMTPConfig":
        """
        Create an SMTPConfig from a parsed config table.

        If a username is given without a password, the password is read
        from the system keyring. A missing entry, or no usable keyring
        backend, leaves the password empty.

        Raises:
            ValueError: If a value has the wrong type or an unknown
                        auth method is named.
        """
        sender = data.get("from", {})
        if not isinstance(sender, dict):
            raise ValueError("'from' must be a table with name/address keys")

        timeout = data.get("timeout")
        config = cls(
            host=str(data.get("host", "")),
            port=int(data.get("port", 25)),
            username=str(data.get("username", "")),
            password=str(data.get("password", "")),
            tls=bool(data.get("tls", False)),
            auth_method=AuthMethod(str(data.get("auth", AuthMethod.PLAIN)).upper()),
            sender=Address(
                address=str(sender.get("address", "")),
                name=str(sender.get("name", "")),
            ),
            timeout=float(timeout) if timeout is not None else None,
        )

        if config.username and "password" not in data:
            try:
                password = keyring.get_password(config.keyring_service, config.username)
            except KeyringError as e:
                # No usable backend (common on headless hosts)
                logger.warning(f"Keyring unavailable: {e}")
                password = None
            if password:
                config.password = password
            else:
                logger.warning(
                    f"No SMTP password configured or found in keyring for {config.username}. "
                    f"Set it with: keyring set {config.keyring_service} {config.username}"
                )

        return config


class SMTPClient:
    """
    Mailer that delivers over SMTP.

    Usage:
        >>> client = SMTPClient(SMTPConfig(host="smtp.example.com", port=587))
        >>> await client.send(message)

    Attributes:
        config: Server settings.
        id_generator: Source of random Message-ID parts. Defaults to the
                      shared process-wide generator.
    """

    def __init__(
        self,
        config: SMTPConfig,
        id_generator: PseudorandomGenerator | None = None,
    ) -> None:
        self.config = config
        self.id_generator = id_generator or default_generator()

    def __repr__(self) -> str:
        return (
            f"SMTPClient(host={self.config.host!r}, port={self.config.port}, "
            f"tls={self.config.tls}, auth={self.config.auth_method.value})"
        )

    # -------------------------------------------------------------------------
    # Sending
    # -------------------------------------------------------------------------

    async def send(self, message: Message) -> None:
        """
        Send an email.

        Args:
            message: The email to send. It is not modified.

        Raises:
            SMTPConnectionError: If unable to connect.
            AuthenticationRefusedError: If the connection is not safe for
                the selected AUTH mechanism (nothing is sent).
            SMTPAuthenticationError: If the server rejects the credentials.
            SendError: If the server rejects the message.
        """
        message = self._with_default_sender(message)
        auth = self._select_auth()

        mime = self.build_mime_message(message)
        sender = format_address(message.sender, include_name=False)
        recipients = format_addresses(message.recipients, include_name=False)

        client = aiosmtplib.SMTP(
            hostname=self.config.host,
            port=self.config.port,
            use_tls=self.config.tls,
            # None = upgrade with STARTTLS if the server offers it
            start_tls=False if self.config.tls else None,
            timeout=self.config.timeout,
        )

        await self._connect(client)
        try:
            if auth is not None and client.supports_extension("auth"):
                await self._authenticate(client, auth)

            logger.info(f"Sending email to {', '.join(recipients)}")
            try:
                await client.send_message(mime, sender=sender, recipients=recipients)
            except aiosmtplib.SMTPException as e:
                raise SendError(f"Failed to send email: {e}") from e

            logger.info(f"Email sent successfully: {mime['Message-ID']}")
        finally:
            await self._disconnect(client)

    async def _connect(self, client: aiosmtplib.SMTP) -> None:
        logger.info(f"Connecting to SMTP {self.config.host}:{self.config.port}")

        try:
            await client.connect()
            if client.is_ehlo_or_helo_needed:
                await client.ehlo()
        except (aiosmtplib.SMTPException, OSError) as e:
            if client.is_connected:
                client.close()
            raise SMTPConnectionError(
                f"Failed to connect to SMTP {self.config.host}:{self.config.port}: {e}"
            ) from e

        logger.debug("SMTP connection established")

    async def _authenticate(self, client: aiosmtplib.SMTP, auth: Authenticator) -> None:
        server = ServerInfo(
            name=self.config.host,
            tls=self._is_encrypted(client),
            auth=[method.upper() for method in client.server_auth_methods],
        )

        logger.debug(f"Authenticating as {self.config.username}")

        try:
            await authenticate(client, auth, server)
        except aiosmtplib.SMTPAuthenticationError as e:
            raise SMTPAuthenticationError(
                f"SMTP authentication failed for {self.config.username}: {e}"
            ) from e
        except aiosmtplib.SMTPException as e:
            raise SMTPConnectionError(f"SMTP connection lost during authentication: {e}") from e

    async def _disconnect(self, client: aiosmtplib.SMTP) -> None:
        if not client.is_connected:
            return

        try:
            logger.debug("Disconnecting from SMTP")
            await client.quit()
        except aiosmtplib.SMTPException as e:
            logger.warning(f"Error during SMTP disconnect: {e}")
            client.close()

    def _is_encrypted(self, client: aiosmtplib.SMTP) -> bool:
        """True once the session runs over TLS (implicit or STARTTLS)."""
        if self.config.tls:
            return True
        return client.get_transport_info("sslcontext") is not None

    def _with_default_sender(self, message: Message) -> Message:
        """Return a copy of message with empty sender fields filled in."""
        name = message.sender.name or self.config.sender.name
        address = message.sender.address or self.config.sender.address
        if (name, address) == (message.sender.name, message.sender.address):
            return message
        return dataclasses.replace(message, sender=Address(address=address, name=name))

    def _select_auth(self) -> Authenticator | None:
        if not self.config.has_credentials:
            return None

        if self.config.auth_method == AuthMethod.LOGIN:
            return LoginAuth(self.config.username, self.config.password)
        return PlainAuth("", self.config.username, self.config.password, self.config.host)

    # -------------------------------------------------------------------------
    # MIME Construction
    # -------------------------------------------------------------------------

    def build_mime_message(self, message: Message) -> MIMEBase:
        """
        Build a MIME message.

        Handles:
            - Plain text only, HTML only, or both (multipart/alternative)
            - Attachments (multipart/mixed)
            - Caller-supplied headers
            - A default Message-ID

        Returns:
            MIME message ready to send.
        """
        body = self._build_body(message)

        if message.attachments:
            # Mixed: contains body + attachments
            msg = MIMEMultipart("mixed")
            msg.attach(body)
            for filename, data in message.attachments.items():
                msg.attach(_attachment_part(filename, data))
        else:
            msg = body

        # Set headers
        msg["From"] = format_address(message.sender)
        if message.to:
            msg["To"] = ", ".join(format_addresses(message.to))
        if message.cc:
            msg["Cc"] = ", ".join(format_addresses(message.cc))
        # Note: BCC is not added to headers (that's the point of BCC)
        msg["Subject"] = message.subject
        if not message.has_header("Date"):
            msg["Date"] = formatdate(localtime=True)

        # Caller headers replace ours rather than adding a second copy
        for name, value in message.headers.items():
            del msg[name]
            msg[name] = value

        if not message.has_header("Message-ID"):
            message_id = self.make_message_id(message.sender.address)
            if message_id:
                msg["Message-ID"] = message_id

        return msg

    def make_message_id(self, address: str) -> str | None:
        """
        Synthesize a Message-ID for the given sender address.

        Returns:
            "<random@domain>", or None if the address doesn't contain
            exactly one "@".
        """
        parts = address.split("@")
        if len(parts) != 2:
            return None
        return f"<{self.id_generator.string(MESSAGE_ID_LENGTH)}@{parts[1]}>"

    @staticmethod
    def _build_body(message: Message) -> MIMEBase:
        parts: list[MIMEBase] = []
        if message.text:
            parts.append(MIMEText(message.text, "plain", "utf-8"))
        if message.html:
            parts.append(MIMEText(message.html, "html", "utf-8"))

        if len(parts) > 1:
            # Alternative: text + html, preferred format last
            return MIMEMultipart("alternative", _subparts=parts)
        if parts:
            return parts[0]
        return MIMEText("", "plain", "utf-8")


def _attachment_part(filename: str, data: bytes) -> MIMEBase:
    content_type, encoding = mimetypes.guess_type(filename)
    if content_type is None or encoding is not None:
        content_type = "application/octet-stream"

    maintype, subtype = content_type.split("/", 1)
    part = MIMEBase(maintype, subtype)
    part.set_payload(data)
    encode_base64(part)
    part.add_header("Content-Disposition", "attachment", filename=filename)
    return part
