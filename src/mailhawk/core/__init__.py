# =============================================================================
# Mailhawk Core Module
# =============================================================================
# Transport-independent building blocks. These have no third-party
# dependencies and can be imported anywhere:
#   - Address: A mailbox (display name + address) and its formatting
#   - Message: An outgoing email message
#   - PseudorandomGenerator: Random IDs for synthesized Message-ID headers
# =============================================================================

from mailhawk.core.address import Address, format_address, format_addresses
from mailhawk.core.message import Message
from mailhawk.core.ids import (
    DEFAULT_ALPHABET,
    PseudorandomGenerator,
    default_generator,
    pseudorandom_string,
    pseudorandom_string_with_alphabet,
)

__all__ = [
    "Address",
    "format_address",
    "format_addresses",
    "Message",
    "DEFAULT_ALPHABET",
    "PseudorandomGenerator",
    "default_generator",
    "pseudorandom_string",
    "pseudorandom_string_with_alphabet",
]
