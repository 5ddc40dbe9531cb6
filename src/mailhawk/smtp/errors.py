# =============================================================================
# SMTP Exceptions
# =============================================================================

from mailhawk.mailer import MailerError


class SMTPError(MailerError):
    """Base exception for SMTP operations."""
    pass


class SMTPConnectionError(SMTPError):
    """Raised when unable to connect to SMTP server."""
    pass


class SMTPAuthenticationError(SMTPError):
    """Raised when the server rejects our credentials."""
    pass


class AuthenticationRefusedError(SMTPError):
    """
    Raised when we refuse to authenticate over the current connection.

    No credential has been sent to the server when this is raised.
    """
    pass


class SendError(SMTPError):
    """Raised when email sending fails."""
    pass
