# =============================================================================
# Message Model
# =============================================================================
# Represents an outgoing email message, independent of how it is delivered.
#
# Both transports (SMTP and sendmail) serialize this same model:
#   - Addressing (sender, To, Cc, Bcc)
#   - Subject and body (HTML and/or plain text)
#   - Attachments (filename -> raw bytes)
#   - Extra headers supplied by the caller
#
# At least one of html/text should be set for a meaningful body, but an
# empty body is still sent if that's what the caller asks for.
# =============================================================================

from dataclasses import dataclass, field

from mailhawk.core.address import Address


@dataclass
class Message:
    """
    An email message ready to be handed to a Mailer.

    Attributes:
        sender: The "From" address. Empty fields are completed with the
                transport's configured default at send time; a value set
                here always wins. The caller's object is never modified.
        to: Primary recipients, in order.
        cc: Carbon-copy recipients.
        bcc: Blind carbon-copy recipients. Delivered to, never shown in
             headers.
        subject: Subject line.
        html: HTML body (optional).
        text: Plain text body (optional).
        attachments: Mapping of filename to raw file content.
        headers: Extra headers. Names are compared case-insensitively
                 (e.g. to detect a caller-supplied Message-ID) but are
                 written with the caller's casing.

    Example:
        >>> msg = Message(
        ...     to=[Address("bob@example.com", name="Bob")],
        ...     subject="Hello",
        ...     text="Hi Bob!",
        ... )
    """
    sender: Address = field(default_factory=Address)
    to: list[Address] = field(default_factory=list)
    cc: list[Address] = field(default_factory=list)
    bcc: list[Address] = field(default_factory=list)
    subject: str = ""
    html: str = ""
    text: str = ""
    attachments: dict[str, bytes] = field(default_factory=dict)
    headers: dict[str, str] = field(default_factory=dict)

    @property
    def recipients(self) -> list[Address]:
        """All envelope recipients: To, then Cc, then Bcc."""
        return [*self.to, *self.cc, *self.bcc]

    def has_header(self, name: str) -> bool:
        """Check for a caller-supplied header, ignoring case."""
        wanted = name.lower()
        return any(key.lower() == wanted for key in self.headers)
