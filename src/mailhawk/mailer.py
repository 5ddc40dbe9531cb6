# =============================================================================
# Mailer Interface
# =============================================================================
# The single capability every transport provides: send a Message.
#
# Callers depend only on this protocol, never on a concrete transport, so
# choosing between SMTP and sendmail is purely a configuration decision
# (see mailhawk.plugin).
#
# Implementations:
#   - mailhawk.smtp.SMTPClient: Network delivery over SMTP
#   - mailhawk.sendmail.SendmailClient: Local `sendmail` executable
# =============================================================================

from typing import Protocol, runtime_checkable

from mailhawk.core import Message


@runtime_checkable
class Mailer(Protocol):
    """
    Anything that can deliver a Message.

    Each call is self-contained: it opens its own session (or process),
    delivers, and cleans up. Failures are raised, never swallowed.
    """

    async def send(self, message: Message) -> None:
        """
        Deliver a message.

        Raises:
            MailerError: If delivery fails for any reason.
        """
        ...


class MailerError(Exception):
    """Base exception for all delivery failures."""
    pass
