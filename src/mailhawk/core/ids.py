# =============================================================================
# Pseudorandom Strings
# =============================================================================
# Generates short random identifiers, e.g. the unique part of a synthesized
# Message-ID header.
#
# These are NOT security tokens. They only need to be well distributed so
# that two messages don't end up with the same Message-ID; use the `secrets`
# module for anything security related.
#
# A single process-wide generator is created lazily on first use and seeded
# from the clock. Access is guarded by a lock so it can be shared freely
# between threads and tasks.
# =============================================================================

import random
import threading
import time

DEFAULT_ALPHABET = "ABCDEFGHIJKLMNOPQRSTUVWXYZabcdefghijklmnopqrstuvwxyz0123456789"


class PseudorandomGenerator:
    """
    Thread-safe source of pseudorandom strings.

    Usage:
        >>> gen = PseudorandomGenerator(seed=42)
        >>> len(gen.string(15))
        15

    Args:
        seed: Optional seed for reproducible output. Defaults to the
              current time in nanoseconds.
    """

    def __init__(self, seed: int | None = None) -> None:
        if seed is None:
            seed = time.time_ns()
        self._random = random.Random(seed)
        self._lock = threading.Lock()

    def string(self, length: int, alphabet: str = DEFAULT_ALPHABET) -> str:
        """
        Return `length` characters drawn uniformly (with replacement)
        from `alphabet`.

        Raises:
            ValueError: If the alphabet is empty.
        """
        if not alphabet:
            raise ValueError("alphabet must not be empty")
        if length <= 0:
            return ""

        with self._lock:
            chars = self._random.choices(alphabet, k=length)
        return "".join(chars)


_default: PseudorandomGenerator | None = None
_default_lock = threading.Lock()


def default_generator() -> PseudorandomGenerator:
    """Return the shared process-wide generator, creating it on first use."""
    global _default
    if _default is None:
        with _default_lock:
            if _default is None:
                _default = PseudorandomGenerator()
    return _default


def pseudorandom_string(length: int) -> str:
    """Random alphanumeric string of the given length."""
    return default_generator().string(length)


def pseudorandom_string_with_alphabet(length: int, alphabet: str) -> str:
    """Random string of the given length using only `alphabet` characters."""
    return default_generator().string(length, alphabet)
