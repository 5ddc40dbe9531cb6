# =============================================================================
# SMTP Module
# =============================================================================
# Handles sending emails via SMTP (Simple Mail Transfer Protocol).
#
# Features:
#   - Connection with implicit TLS or opportunistic STARTTLS
#   - AUTH PLAIN and AUTH LOGIN, refused over unencrypted remote links
#   - MIME message building (text, HTML, attachments)
#   - Default Message-ID generation
# =============================================================================

from mailhawk.smtp.auth import (
    LoginAuth,
    PlainAuth,
    ServerInfo,
    authenticate,
    is_loopback,
)
from mailhawk.smtp.client import (
    AuthMethod,
    SMTPClient,
    SMTPConfig,
)
from mailhawk.smtp.errors import (
    AuthenticationRefusedError,
    SendError,
    SMTPAuthenticationError,
    SMTPConnectionError,
    SMTPError,
)

__all__ = [
    # Client
    "SMTPClient",
    "SMTPConfig",
    "AuthMethod",
    # Auth
    "LoginAuth",
    "PlainAuth",
    "ServerInfo",
    "authenticate",
    "is_loopback",
    # Errors
    "SMTPError",
    "SMTPConnectionError",
    "SMTPAuthenticationError",
    "AuthenticationRefusedError",
    "SendError",
]
