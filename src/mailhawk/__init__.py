# =============================================================================
# Mailhawk: Send Email Over SMTP or Sendmail
# =============================================================================
#
# Mailhawk delivers a message through one of two interchangeable
# transports behind a single Mailer interface:
#
#   - SMTP: TLS or STARTTLS, AUTH PLAIN/LOGIN, HTML + text + attachments
#   - Sendmail: Pipes a minimal HTML message to a local executable
#
# Features:
#   - Transport chosen by configuration (XDG config.toml)
#   - Passwords may live in the system keyring
#   - Default sender address and Message-ID generation
#
# =============================================================================

__version__ = "0.1.0"
__app_name__ = "mailhawk"

from mailhawk.core import Address, Message
from mailhawk.mailer import Mailer, MailerError

__all__ = [
    "Address",
    "Message",
    "Mailer",
    "MailerError",
    "__version__",
    "__app_name__",
]
