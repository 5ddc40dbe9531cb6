# =============================================================================
# Mailhawk Command Line
# =============================================================================
# A thin CLI around the Mailer plugin, mostly useful for checking that a
# configuration actually delivers mail:
#
#   mailhawk send --to bob@example.com --subject "Hi" --text "Hello"
#   mailhawk --paths
#
# The transport (SMTP or sendmail) comes from config.toml.
# =============================================================================

import argparse
import asyncio
import logging
import sys
from pathlib import Path

from mailhawk import __app_name__, __version__
from mailhawk.config import Config, ConfigError, print_paths
from mailhawk.core import Address, Message
from mailhawk.mailer import MailerError
from mailhawk.plugin import MailerDisabledError, MailerPlugin

logger = logging.getLogger(__name__)


# =============================================================================
# CLI Entry Point
# =============================================================================

def parse_args(argv: list[str] | None = None) -> argparse.Namespace:
    """
    Parse command-line arguments.

    Returns:
        Parsed arguments namespace.
    """
    parser = argparse.ArgumentParser(
        prog=__app_name__,
        description="Mailhawk: send email through SMTP or a local sendmail",
    )

    parser.add_argument(
        "--version",
        action="version",
        version=f"%(prog)s {__version__}",
    )

    parser.add_argument(
        "--paths",
        action="store_true",
        help="Print configuration paths and exit",
    )

    parser.add_argument(
        "--config",
        type=Path,
        help="Path to config file (default: XDG config location)",
    )

    parser.add_argument(
        "--debug",
        action="store_true",
        help="Enable debug mode (verbose logging)",
    )

    subparsers = parser.add_subparsers(dest="command")

    send = subparsers.add_parser("send", help="Send a message")
    send.add_argument("--to", action="append", default=[], metavar="ADDR", required=True)
    send.add_argument("--cc", action="append", default=[], metavar="ADDR")
    send.add_argument("--bcc", action="append", default=[], metavar="ADDR")
    send.add_argument("--from", dest="sender", default="", metavar="ADDR",
                      help="Sender address (default: configured address)")
    send.add_argument("--from-name", default="", metavar="NAME")
    send.add_argument("--subject", default="")
    send.add_argument("--text", default="", help="Plain text body")
    send.add_argument("--html", default="", help="HTML body")
    send.add_argument("--attach", action="append", default=[], type=Path, metavar="FILE")
    send.add_argument("--header", action="append", default=[], metavar="'NAME: VALUE'")

    return parser.parse_args(argv)


def build_message(args: argparse.Namespace) -> Message:
    """
    Build a Message from parsed `send` arguments.

    Raises:
        ValueError: If a --header isn't in "Name: value" form.
        OSError: If an attachment can't be read.
    """
    headers: dict[str, str] = {}
    for raw in args.header:
        name, sep, value = raw.partition(":")
        if not sep or not name.strip():
            raise ValueError(f"Invalid header {raw!r}, expected 'Name: value'")
        headers[name.strip()] = value.strip()

    return Message(
        sender=Address(address=args.sender, name=args.from_name),
        to=[Address(addr) for addr in args.to],
        cc=[Address(addr) for addr in args.cc],
        bcc=[Address(addr) for addr in args.bcc],
        subject=args.subject,
        text=args.text,
        html=args.html,
        attachments={path.name: path.read_bytes() for path in args.attach},
        headers=headers,
    )


def main(argv: list[str] | None = None) -> int:
    """
    Main entry point for Mailhawk.

    This function:
        1. Parses command-line arguments
        2. Handles special commands (--paths, --version)
        3. Loads configuration and selects the transport
        4. Sends the message

    Returns:
        Exit code (0 for success, 1 for errors, 2 when no transport is
        configured).
    """
    args = parse_args(argv)

    logging.basicConfig(
        level=logging.DEBUG if args.debug else logging.WARNING,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )

    # Handle --paths flag
    if args.paths:
        print_paths()
        return 0

    if args.command != "send":
        print("Nothing to do. Try: mailhawk send --help", file=sys.stderr)
        return 1

    try:
        message = build_message(args)
    except (ValueError, OSError) as e:
        print(f"Error: {e}", file=sys.stderr)
        return 1

    plugin = MailerPlugin()
    try:
        plugin.init(Config.load(args.config))
    except MailerDisabledError as e:
        print(f"Mail is disabled: {e}", file=sys.stderr)
        return 2
    except ConfigError as e:
        print(f"Config error: {e}", file=sys.stderr)
        return 1

    try:
        asyncio.run(plugin.mailer.send(message))
    except MailerError as e:
        print(f"Send failed: {e}", file=sys.stderr)
        return 1

    return 0


if __name__ == "__main__":
    sys.exit(main())
