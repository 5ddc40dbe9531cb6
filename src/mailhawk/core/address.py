# =============================================================================
# Address Model
# =============================================================================
# Represents a single mailbox: an optional display name plus the
# "user@domain" address itself.
#
# Rendering rules (RFC 5322):
#   - With a name:    "Jane Doe" <jane@example.com>
#   - Without a name: jane@example.com
#
# Non-ASCII display names are RFC 2047 encoded so the result is always safe
# to put in a header. No syntax validation is done here; a malformed address
# is rejected by whichever transport tries to deliver it.
# =============================================================================

from collections.abc import Iterable
from dataclasses import dataclass
from email.utils import formataddr


@dataclass(frozen=True)
class Address:
    """
    A mail address with an optional display name.

    Attributes:
        address: The "user@domain" part. Required for delivery.
        name: Proper name shown to humans. May be empty.

    Example:
        >>> str(Address("jane@example.com", name="Jane Doe"))
        '"Jane Doe" <jane@example.com>'
    """
    address: str = ""
    name: str = ""

    def __str__(self) -> str:
        return format_address(self)


def _is_printable_ascii(value: str) -> bool:
    return all(" " <= ch <= "~" for ch in value)


def format_address(address: Address, include_name: bool = True) -> str:
    """
    Render an Address in its textual header form.

    Args:
        address: The address to render.
        include_name: If False, the display name is dropped and only the
                      bare address is returned (envelope form).

    Returns:
        '"Name" <address>' when a name is present and requested,
        otherwise the bare address.
    """
    if not include_name or not address.name:
        return address.address

    if _is_printable_ascii(address.name):
        escaped = address.name.replace("\\", "\\\\").replace('"', '\\"')
        return f'"{escaped}" <{address.address}>'

    # Non-ASCII names need an encoded-word
    return formataddr((address.name, address.address), charset="utf-8")


def format_addresses(addresses: Iterable[Address], include_name: bool = True) -> list[str]:
    """
    Render a batch of addresses, preserving their order.

    Used both for header values (joined by the caller) and for
    delivery recipient lists (with include_name=False).
    """
    return [format_address(address, include_name) for address in addresses]
