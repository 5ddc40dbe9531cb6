# =============================================================================
# Configuration Management
# =============================================================================
# Handles loading, saving, and querying Mailhawk configuration.
#
# XDG Base Directory Compliance (https://specifications.freedesktop.org/basedir-spec/):
#   - Config:  $XDG_CONFIG_HOME/mailhawk/  (default: ~/.config/mailhawk/)
#
# Files:
#   - config.toml: Transport settings
#
# Layout of config.toml (only one transport is used; SMTP wins if both
# are present):
#
#   [mailer.smtp]
#   host = "smtp.example.com"
#   port = 587
#   username = "me@example.com"   # password falls back to the keyring
#   auth = "LOGIN"                # "PLAIN" (default) or "LOGIN"
#
#   [mailer.smtp.from]
#   name = "Me"
#   address = "me@example.com"
#
#   [mailer.sendmail]
#   cmd_path = ""                 # empty = auto-detect
# =============================================================================

import os
import tomllib  # Built into Python 3.11+
from pathlib import Path
from typing import Any, TypeVar

import tomli_w  # For writing TOML (tomllib is read-only)


# =============================================================================
# XDG Directory Management
# =============================================================================

# Application identifier used in all XDG paths
APP_NAME = "mailhawk"


def get_xdg_config_home() -> Path:
    """
    Returns the XDG config directory for Mailhawk.

    Respects $XDG_CONFIG_HOME if set, otherwise uses ~/.config/mailhawk/
    """
    xdg_config = os.environ.get("XDG_CONFIG_HOME")
    if xdg_config:
        base = Path(xdg_config)
    else:
        base = Path.home() / ".config"
    return base / APP_NAME


# =============================================================================
# Configuration Container
# =============================================================================

T = TypeVar("T")


class Config:
    """
    Parsed configuration file with dotted-key access.

    Keys address nested tables, e.g. "mailer.smtp" is the [mailer.smtp]
    table. Transports only see their own section, through decode().

    Usage:
        >>> config = Config.load()
        >>> if config.has("mailer.smtp"):
        ...     smtp = config.decode("mailer.smtp", SMTPConfig)

    Attributes:
        data: The raw parsed TOML document.
        path: File this config was loaded from (None if built in memory).
    """

    def __init__(self, data: dict[str, Any] | None = None, path: Path | None = None) -> None:
        self.data: dict[str, Any] = data if data is not None else {}
        self.path = path

    # -------------------------------------------------------------------------
    # File Paths
    # -------------------------------------------------------------------------

    @staticmethod
    def config_file_path() -> Path:
        """Returns the path to the main config file."""
        return get_xdg_config_home() / "config.toml"

    # -------------------------------------------------------------------------
    # Loading and Saving
    # -------------------------------------------------------------------------

    @classmethod
    def load(cls, path: Path | None = None) -> "Config":
        """
        Load configuration from a config file.

        Args:
            path: File to read. Defaults to the XDG config location.

        Returns:
            Loaded Config object. Empty if the file doesn't exist.

        Raises:
            ConfigError: If the config file exists but is invalid.
        """
        config_path = path or cls.config_file_path()

        if not config_path.exists():
            # No config file yet - nothing is configured
            return cls(path=config_path)

        try:
            with open(config_path, "rb") as f:
                data = tomllib.load(f)
        except tomllib.TOMLDecodeError as e:
            raise ConfigError(f"Invalid config file {config_path}: {e}") from e
        except OSError as e:
            raise ConfigError(f"Cannot read config file {config_path}: {e}") from e

        return cls(data, path=config_path)

    def save(self, path: Path | None = None) -> Path:
        """
        Save configuration to a config file.

        Creates the parent directory if it doesn't exist.

        Returns:
            The path written to.
        """
        config_path = path or self.path or self.config_file_path()
        config_path.parent.mkdir(parents=True, exist_ok=True)

        with open(config_path, "wb") as f:
            tomli_w.dump(self.data, f)

        self.path = config_path
        return config_path

    # -------------------------------------------------------------------------
    # Access
    # -------------------------------------------------------------------------

    def has(self, key: str) -> bool:
        """Return True if the dotted key exists."""
        try:
            self._lookup(key)
        except KeyError:
            return False
        return True

    def get(self, key: str, default: Any = None) -> Any:
        """Return the value at a dotted key, or default."""
        try:
            return self._lookup(key)
        except KeyError:
            return default

    def set(self, key: str, value: Any) -> None:
        """Set a value at a dotted key, creating intermediate tables."""
        *parents, last = key.split(".")
        node = self.data
        for part in parents:
            node = node.setdefault(part, {})
            if not isinstance(node, dict):
                raise ConfigError(f"Cannot set {key}: {part} is not a table")
        node[last] = value

    def decode(self, key: str, into: type[T]) -> T:
        """
        Build a settings object from the table at a dotted key.

        Args:
            key: Dotted key of the table, e.g. "mailer.smtp".
            into: Class with a from_dict() classmethod.

        Raises:
            ConfigError: If the key is missing, isn't a table, or holds
                         invalid values.
        """
        try:
            section = self._lookup(key)
        except KeyError as e:
            raise ConfigError(f"Missing config section [{key}]") from e

        if not isinstance(section, dict):
            raise ConfigError(f"Config key {key} must be a table")

        try:
            return into.from_dict(section)  # type: ignore[attr-defined]
        except (TypeError, ValueError) as e:
            raise ConfigError(f"Invalid [{key}] section: {e}") from e

    def _lookup(self, key: str) -> Any:
        node: Any = self.data
        for part in key.split("."):
            if not isinstance(node, dict) or part not in node:
                raise KeyError(key)
            node = node[part]
        return node


# =============================================================================
# Exceptions
# =============================================================================

class ConfigError(Exception):
    """Raised when there's an error loading or parsing configuration."""
    pass


# =============================================================================
# Utility Functions
# =============================================================================

def print_paths() -> None:
    """
    Print configuration paths for debugging.
    Useful for users wondering where their config is stored.
    """
    print(f"Config:       {get_xdg_config_home()}")
    print(f"Config file:  {Config.config_file_path()}")
