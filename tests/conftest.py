# =============================================================================
# Pytest Configuration and Fixtures
# =============================================================================
# Shared fixtures for the Mailhawk test suite.
#
# Nothing here touches the network: `smtp_server` swaps aiosmtplib.SMTP for
# a scripted in-memory session, and `fake_sendmail` writes a tiny shell
# script that records its arguments and stdin.
# =============================================================================

import stat
import tempfile
from dataclasses import dataclass, field
from pathlib import Path

import aiosmtplib
import keyring
import pytest
from keyring.backends import fail

from mailhawk.core import Address, Message
from mailhawk.smtp import SMTPConfig


@pytest.fixture
def temp_dir():
    """Create a temporary directory for test files."""
    with tempfile.TemporaryDirectory() as tmpdir:
        yield Path(tmpdir)


@pytest.fixture
def sample_message():
    """Create a sample Message for testing."""
    return Message(
        sender=Address("sender@example.com", name="Test Sender"),
        to=[Address("recipient@example.com", name="Test Recipient")],
        cc=[Address("cc@example.com")],
        bcc=[Address("hidden@example.com")],
        subject="Test Subject",
        text="This is a test email body.",
        html="<html><body><p>This is a <b>test</b> email body.</p></body></html>",
    )


@pytest.fixture
def smtp_config():
    """SMTP settings for a STARTTLS submission server."""
    return SMTPConfig(
        host="smtp.example.com",
        port=587,
        username="user@example.com",
        password="secret",
        sender=Address("noreply@example.com", name="Example App"),
    )


@pytest.fixture
def no_keyring():
    """Install the keyring backend used when no real one is available."""
    previous = keyring.get_keyring()
    keyring.set_keyring(fail.Keyring())
    yield
    keyring.set_keyring(previous)


# =============================================================================
# Fake SMTP
# =============================================================================

@dataclass
class FakeServer:
    """
    Script for the fake SMTP sessions created during a test.

    Attributes:
        extensions: ESMTP extensions advertised after EHLO.
        auth_methods: AUTH mechanisms advertised (lower case, like aiosmtplib).
        starttls: Whether a plaintext session gets upgraded via STARTTLS.
        replies: Responses returned, in order, to execute_command().
        connect_error: Raised from connect() if set.
        send_error: Raised from send_message() if set.
        sessions: Every session created, in order.
    """
    extensions: set[str] = field(default_factory=lambda: {"auth", "starttls"})
    auth_methods: list[str] = field(default_factory=lambda: ["plain", "login"])
    starttls: bool = True
    replies: list[aiosmtplib.SMTPResponse] = field(default_factory=list)
    connect_error: Exception | None = None
    send_error: Exception | None = None
    sessions: list["FakeSMTP"] = field(default_factory=list)

    def reply(self, code: int, message: str) -> None:
        self.replies.append(aiosmtplib.SMTPResponse(code, message))

    @property
    def session(self) -> "FakeSMTP":
        return self.sessions[-1]


class FakeSMTP:
    """In-memory stand-in for aiosmtplib.SMTP."""

    def __init__(self, server: FakeServer, **kwargs) -> None:
        self.server = server
        self.kwargs = kwargs
        self.is_connected = False
        self.ehlo_done = False
        self.tls = bool(kwargs.get("use_tls"))
        self.commands: list[bytes] = []
        self.sent: list[tuple] = []
        self.quit_called = False
        self.server_auth_methods = list(server.auth_methods)

    async def connect(self) -> None:
        if self.server.connect_error is not None:
            raise self.server.connect_error
        self.is_connected = True
        if not self.tls and self.kwargs.get("start_tls") is None and self.server.starttls:
            self.ehlo_done = True
            self.tls = True

    @property
    def is_ehlo_or_helo_needed(self) -> bool:
        return not self.ehlo_done

    async def ehlo(self) -> None:
        self.ehlo_done = True

    def supports_extension(self, extension: str) -> bool:
        return extension.lower() in self.server.extensions

    def get_transport_info(self, key: str):
        if key == "sslcontext" and self.tls:
            return object()
        return None

    async def execute_command(self, *args: bytes) -> aiosmtplib.SMTPResponse:
        self.commands.append(b" ".join(args))
        return self.server.replies.pop(0)

    async def send_message(self, message, sender=None, recipients=None):
        if self.server.send_error is not None:
            raise self.server.send_error
        self.sent.append((message, sender, list(recipients)))
        return {}, "OK"

    async def quit(self) -> None:
        self.quit_called = True
        self.is_connected = False

    def close(self) -> None:
        self.is_connected = False


@pytest.fixture
def smtp_server(monkeypatch):
    """Replace aiosmtplib.SMTP with a scripted fake and return its script."""
    server = FakeServer()

    def factory(**kwargs):
        session = FakeSMTP(server, **kwargs)
        server.sessions.append(session)
        return session

    monkeypatch.setattr(aiosmtplib, "SMTP", factory)
    return server


# =============================================================================
# Fake Sendmail
# =============================================================================

@dataclass
class FakeSendmail:
    """A shell script posing as sendmail, plus where it records things."""
    path: Path
    args_file: Path
    stdin_file: Path

    @property
    def args(self) -> list[str]:
        return self.args_file.read_text().splitlines()

    @property
    def stdin(self) -> bytes:
        return self.stdin_file.read_bytes()


def _write_script(path: Path, body: str) -> Path:
    path.write_text(f"#!/bin/sh\n{body}\n")
    path.chmod(path.stat().st_mode | stat.S_IXUSR | stat.S_IXGRP | stat.S_IXOTH)
    return path


@pytest.fixture
def fake_sendmail(temp_dir):
    """An executable that stores its arguments and stdin, then exits 0."""
    args_file = temp_dir / "args.txt"
    stdin_file = temp_dir / "stdin.txt"
    script = _write_script(
        temp_dir / "sendmail",
        f'for arg in "$@"; do echo "$arg" >> "{args_file}"; done\n'
        f'cat > "{stdin_file}"',
    )
    return FakeSendmail(path=script, args_file=args_file, stdin_file=stdin_file)


@pytest.fixture
def failing_sendmail(temp_dir):
    """An executable that reads its input, complains and exits 75."""
    return _write_script(
        temp_dir / "sendmail-fail",
        'cat > /dev/null\necho "queue is full" >&2\nexit 75',
    )


@pytest.fixture
def closed_sendmail(temp_dir):
    """An executable that exits 0 without reading its input."""
    return _write_script(temp_dir / "sendmail-closed", "exit 0")
