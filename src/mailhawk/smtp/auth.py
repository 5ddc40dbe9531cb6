# =============================================================================
# SMTP Authentication
# =============================================================================
# SASL mechanisms for SMTP AUTH and the exchange that drives them.
#
# Each mechanism is a small two-step state machine:
#   - start(server): Pick the mechanism name and optional initial response.
#                    This is where we decide whether it is safe to send
#                    credentials at all.
#   - next(challenge, more): Answer one server challenge. None ends the
#                            exchange; b"" is sent as an empty line.
#
# Security gate:
#   Credentials are only ever sent over TLS, or to a loopback host. On a
#   plaintext connection we can't trust anything the server says, including
#   the list of AUTH mechanisms it advertises: that might just be an attacker
#   saying "it's fine, send me your password".
#
# Mechanisms:
#   - PLAIN: identity\0username\0password in a single initial response.
#   - LOGIN: Obsolete, but still required by some providers (e.g. Outlook).
#            The server prompts "Username:" then "Password:".
# =============================================================================

import base64
import binascii
import logging
from dataclasses import dataclass, field
from typing import Protocol

import aiosmtplib

from mailhawk.smtp.errors import AuthenticationRefusedError

logger = logging.getLogger(__name__)

# SMTP reply codes used during AUTH
AUTH_SUCCESSFUL = 235
AUTH_CONTINUE = 334

LOOPBACK_HOSTS = frozenset({"localhost", "127.0.0.1", "::1"})


@dataclass
class ServerInfo:
    """
    What an authenticator knows about the current SMTP session.

    Attributes:
        name: The server host name we connected to.
        tls: Whether the connection is encrypted.
        auth: AUTH mechanisms advertised by the server (upper case).
    """
    name: str
    tls: bool = False
    auth: list[str] = field(default_factory=list)


class Authenticator(Protocol):
    """A SASL mechanism usable with authenticate()."""

    def start(self, server: ServerInfo) -> tuple[str, bytes | None]:
        ...

    def next(self, challenge: bytes, more: bool) -> bytes | None:
        ...


def is_loopback(name: str) -> bool:
    """Return True if the host name refers to the local machine."""
    return name in LOOPBACK_HOSTS


def _check_secure(server: ServerInfo) -> None:
    if not server.tls and not is_loopback(server.name):
        raise AuthenticationRefusedError("unencrypted connection")


class LoginAuth:
    """
    The LOGIN authentication mechanism.

    Only sends the credentials if the connection uses TLS or is connected
    to localhost; otherwise start() fails without sending anything.

    Usage:
        >>> auth = LoginAuth("user", "secret")
        >>> auth.start(ServerInfo(name="localhost"))
        ('LOGIN', None)
        >>> auth.next(b"Username:", True)
        b'user'
    """

    def __init__(self, username: str, password: str) -> None:
        self.username = username
        self.password = password

    def start(self, server: ServerInfo) -> tuple[str, bytes | None]:
        """
        Begin a LOGIN exchange.

        Raises:
            AuthenticationRefusedError: If the connection is neither
                encrypted nor local.
        """
        _check_secure(server)
        return "LOGIN", None

    def next(self, challenge: bytes, more: bool) -> bytes | None:
        """
        Answer a server prompt.

        Prompts are matched case-insensitively. A configured credential is
        returned even when it is empty, so the server sees an empty line and
        can reject it. Unknown prompts, or a call where the server expects no
        more data, get no answer (None).
        """
        if more:
            prompt = challenge.decode("utf-8", errors="replace").lower()
            if prompt == "username:":
                return self.username.encode("utf-8")
            if prompt == "password:":
                return self.password.encode("utf-8")

        return None

    def __repr__(self) -> str:
        return f"LoginAuth(username={self.username!r})"


class PlainAuth:
    """
    The PLAIN authentication mechanism (RFC 4616).

    Besides the TLS/localhost gate, PLAIN refuses to authenticate against a
    server whose name doesn't match the host it was created for.
    """

    def __init__(self, identity: str, username: str, password: str, host: str) -> None:
        self.identity = identity
        self.username = username
        self.password = password
        self.host = host

    def start(self, server: ServerInfo) -> tuple[str, bytes | None]:
        _check_secure(server)
        if server.name != self.host:
            raise AuthenticationRefusedError("wrong host name")

        response = f"{self.identity}\0{self.username}\0{self.password}"
        return "PLAIN", response.encode("utf-8")

    def next(self, challenge: bytes, more: bool) -> bytes | None:
        if more:
            raise AuthenticationRefusedError("unexpected server challenge")
        return None

    def __repr__(self) -> str:
        return f"PlainAuth(username={self.username!r}, host={self.host!r})"


async def authenticate(
    client: aiosmtplib.SMTP,
    auth: Authenticator,
    server: ServerInfo,
) -> None:
    """
    Run an AUTH exchange on a connected SMTP session.

    Args:
        client: Connected (and EHLO'd) aiosmtplib session.
        auth: The mechanism to use.
        server: Description of the session, used by the security gate.

    Raises:
        AuthenticationRefusedError: If the mechanism refuses the session.
            Nothing has been sent to the server in that case.
        aiosmtplib.SMTPAuthenticationError: If the server rejects us.
    """
    mechanism, initial = auth.start(server)
    logger.debug(f"Authenticating with AUTH {mechanism}")

    command = [b"AUTH", mechanism.encode("ascii")]
    if initial:
        command.append(base64.b64encode(initial))
    response = await client.execute_command(*command)

    while True:
        more = response.code == AUTH_CONTINUE
        if response.code == AUTH_CONTINUE:
            try:
                challenge = base64.b64decode(response.message, validate=True)
            except binascii.Error as e:
                await _cancel(client)
                raise aiosmtplib.SMTPAuthenticationError(
                    response.code, f"Malformed challenge: {response.message}"
                ) from e
        elif response.code == AUTH_SUCCESSFUL:
            challenge = response.message.encode("utf-8")
        else:
            raise aiosmtplib.SMTPAuthenticationError(response.code, response.message)

        try:
            answer = auth.next(challenge, more)
        except Exception:
            await _cancel(client)
            raise

        if answer is None:
            break

        response = await client.execute_command(base64.b64encode(answer))

    if more:
        # The server is still waiting for data we don't have
        await _cancel(client)
        raise aiosmtplib.SMTPAuthenticationError(
            response.code, f"Unanswered server challenge: {challenge!r}"
        )

    logger.debug("SMTP authentication successful")


async def _cancel(client: aiosmtplib.SMTP) -> None:
    """Abort an in-progress AUTH exchange."""
    await client.execute_command(b"*")
