"""Tests for SMTP AUTH mechanisms and the exchange driver."""

import base64

import aiosmtplib
import pytest

from mailhawk.smtp import (
    AuthenticationRefusedError,
    LoginAuth,
    PlainAuth,
    ServerInfo,
    authenticate,
)


def b64(value: str) -> str:
    return base64.b64encode(value.encode()).decode()


class TestLoginAuthStart:

    @pytest.mark.parametrize(
        "server",
        [
            ServerInfo(name="localhost", tls=False),
            ServerInfo(name="localhost", tls=True),
            ServerInfo(name="127.0.0.1", tls=False),
            ServerInfo(name="127.0.0.1", tls=True),
            ServerInfo(name="::1", tls=False),
            ServerInfo(name="::1", tls=True),
            ServerInfo(name="example.com", tls=True),
        ],
        ids=lambda s: f"{s.name}-tls={s.tls}",
    )
    def test_allowed(self, server):
        auth = LoginAuth("test", "123456")
        assert auth.start(server) == ("LOGIN", None)

    def test_refused_without_tls_on_remote_host(self):
        auth = LoginAuth("test", "123456")
        with pytest.raises(AuthenticationRefusedError, match="unencrypted"):
            auth.start(ServerInfo(name="example.com", tls=False))

    def test_advertised_mechanisms_do_not_bypass_gate(self):
        auth = LoginAuth("test", "123456")
        with pytest.raises(AuthenticationRefusedError):
            auth.start(ServerInfo(name="example.com", tls=False, auth=["LOGIN"]))


class TestLoginAuthNext:

    @pytest.fixture
    def auth(self):
        return LoginAuth("test", "123456")

    @pytest.mark.parametrize("prompt", [b"username:", b"Username:", b"uSeRnAmE:", b"USERNAME:"])
    def test_username_prompt(self, auth, prompt):
        assert auth.next(prompt, True) == b"test"

    @pytest.mark.parametrize("prompt", [b"password:", b"Password:", b"pAsSwOrD:"])
    def test_password_prompt(self, auth, prompt):
        assert auth.next(prompt, True) == b"123456"

    @pytest.mark.parametrize("more", [True, False])
    def test_unknown_prompt_has_no_answer(self, auth, more):
        assert auth.next(b"example:", more) is None

    @pytest.mark.parametrize("prompt", [b"username:", b"password:"])
    def test_no_more_data_wanted(self, auth, prompt):
        assert auth.next(prompt, False) is None

    def test_reusable(self, auth):
        for _ in range(2):
            assert auth.next(b"Username:", True) == b"test"
            assert auth.next(b"Password:", True) == b"123456"


class TestPlainAuth:

    def test_start_returns_credentials(self):
        auth = PlainAuth("", "user", "pass", "smtp.example.com")
        mechanism, initial = auth.start(ServerInfo(name="smtp.example.com", tls=True))
        assert mechanism == "PLAIN"
        assert initial == b"\0user\0pass"

    def test_refused_without_tls(self):
        auth = PlainAuth("", "user", "pass", "smtp.example.com")
        with pytest.raises(AuthenticationRefusedError):
            auth.start(ServerInfo(name="smtp.example.com", tls=False))

    def test_refused_on_wrong_host(self):
        auth = PlainAuth("", "user", "pass", "smtp.example.com")
        with pytest.raises(AuthenticationRefusedError, match="wrong host"):
            auth.start(ServerInfo(name="evil.example.net", tls=True))

    def test_loopback_without_tls(self):
        auth = PlainAuth("", "user", "pass", "localhost")
        assert auth.start(ServerInfo(name="localhost"))[0] == "PLAIN"

    def test_unexpected_challenge(self):
        auth = PlainAuth("", "user", "pass", "localhost")
        with pytest.raises(AuthenticationRefusedError):
            auth.next(b"", True)
        assert auth.next(b"2.7.0 Accepted", False) is None


class TestAuthenticate:

    @pytest.fixture
    def session(self, smtp_server):
        session = aiosmtplib.SMTP(hostname="localhost", port=25)
        return smtp_server, session

    @pytest.mark.asyncio
    async def test_login_exchange(self, session):
        server, client = session
        server.reply(334, b64("Username:"))
        server.reply(334, b64("Password:"))
        server.reply(235, "2.7.0 Authentication successful")

        await authenticate(client, LoginAuth("test", "123456"), ServerInfo(name="localhost"))

        assert client.commands == [
            b"AUTH LOGIN",
            base64.b64encode(b"test"),
            base64.b64encode(b"123456"),
        ]

    @pytest.mark.asyncio
    async def test_plain_exchange(self, session):
        server, client = session
        server.reply(235, "2.7.0 Authentication successful")

        auth = PlainAuth("", "user", "pass", "localhost")
        await authenticate(client, auth, ServerInfo(name="localhost"))

        assert client.commands == [b"AUTH PLAIN " + base64.b64encode(b"\0user\0pass")]

    @pytest.mark.asyncio
    async def test_refusal_sends_nothing(self, session):
        _, client = session

        with pytest.raises(AuthenticationRefusedError):
            await authenticate(
                client,
                LoginAuth("test", "123456"),
                ServerInfo(name="example.com", tls=False),
            )

        assert client.commands == []

    @pytest.mark.asyncio
    async def test_rejected_credentials(self, session):
        server, client = session
        server.reply(334, b64("Username:"))
        server.reply(334, b64("Password:"))
        server.reply(535, "5.7.8 Authentication credentials invalid")

        with pytest.raises(aiosmtplib.SMTPAuthenticationError) as exc_info:
            await authenticate(client, LoginAuth("test", "wrong"), ServerInfo(name="localhost"))

        assert exc_info.value.code == 535

    @pytest.mark.asyncio
    async def test_unanswered_challenge_is_cancelled(self, session):
        server, client = session
        server.reply(334, b64("Token:"))
        server.reply(501, "5.7.0 Cancelled")

        with pytest.raises(aiosmtplib.SMTPAuthenticationError):
            await authenticate(client, LoginAuth("test", "123456"), ServerInfo(name="localhost"))

        assert client.commands == [b"AUTH LOGIN", b"*"]

    @pytest.mark.asyncio
    async def test_mechanism_error_is_cancelled(self, session):
        server, client = session
        server.reply(334, "")
        server.reply(501, "5.7.0 Cancelled")

        auth = PlainAuth("", "user", "pass", "localhost")
        with pytest.raises(AuthenticationRefusedError):
            await authenticate(client, auth, ServerInfo(name="localhost"))

        assert client.commands[-1] == b"*"

    @pytest.mark.asyncio
    async def test_empty_password_is_sent(self, session):
        server, client = session
        server.reply(334, b64("Username:"))
        server.reply(334, b64("Password:"))
        server.reply(535, "5.7.8 Authentication credentials invalid")

        with pytest.raises(aiosmtplib.SMTPAuthenticationError) as exc_info:
            await authenticate(client, LoginAuth("user", ""), ServerInfo(name="localhost"))

        # The server gets an empty line and makes the decision itself
        assert exc_info.value.code == 535
        assert client.commands == [b"AUTH LOGIN", base64.b64encode(b"user"), b""]

    @pytest.mark.asyncio
    async def test_empty_password_accepted(self, session):
        server, client = session
        server.reply(334, b64("Username:"))
        server.reply(334, b64("Password:"))
        server.reply(235, "2.7.0 Authentication successful")

        await authenticate(client, LoginAuth("user", ""), ServerInfo(name="localhost"))

        assert b"*" not in client.commands
