# =============================================================================
# Sendmail Module
# =============================================================================
# Handles sending emails by handing them to a local `sendmail` executable.
# =============================================================================

from mailhawk.sendmail.client import (
    SendmailClient,
    SendmailConfig,
    SendmailError,
    encode_subject,
    find_sendmail_path,
)

__all__ = [
    "SendmailClient",
    "SendmailConfig",
    "SendmailError",
    "encode_subject",
    "find_sendmail_path",
]
