"""
File Sharing Value Objects

Immutable value objects for type safety and validation.
"""

import re
import secrets
import time
from dataclasses import dataclass


class InvalidObjectKeyError(ValueError):
    """Raised when a string is not a well-formed storage key."""
    pass


_WHITESPACE = re.compile(r"\s+")
_UNSAFE_CHARS = re.compile(r"[^A-Za-z0-9._-]")
_KEY_PATTERN = re.compile(r"^\d{13,}-[0-9a-f]{12}-[A-Za-z0-9_-][A-Za-z0-9._-]*$")

MAX_NAME_LENGTH = 100
FALLBACK_NAME = "file"


def sanitize_filename(filename: str) -> str:
    """
    Reduce a client-supplied filename to a safe storage key suffix.

    Whitespace runs become a single underscore, every other character
    outside ``[A-Za-z0-9._-]`` becomes an underscore, and leading dots are
    stripped so the result can never name a hidden file or a parent
    directory. The display name is kept verbatim elsewhere.

    Args:
        filename: Original filename

    Returns:
        Sanitized filename, never empty
    """
    safe_name = _WHITESPACE.sub("_", filename or "")
    safe_name = _UNSAFE_CHARS.sub("_", safe_name)
    safe_name = safe_name.lstrip(".")[:MAX_NAME_LENGTH]

    if not safe_name:
        safe_name = FALLBACK_NAME

    return safe_name


@dataclass(frozen=True)
class ObjectKey:
    """
    Value object representing a storage key, which is also the object id.

    Format: ``<unix-millis>-<12 hex chars>-<sanitized name>``. The
    millisecond prefix keeps keys roughly time ordered; the random part
    makes concurrent uploads of the same filename in the same
    millisecond distinct.
    """
    value: str

    def __post_init__(self):
        if not self.is_valid(self.value):
            raise InvalidObjectKeyError(f"Invalid storage key: {self.value!r}")

    @staticmethod
    def is_valid(value: str) -> bool:
        """
        Check whether a string is a well-formed storage key.

        Only keys that pass this check are ever mapped to filesystem
        paths, which rules out traversal through crafted URLs.
        """
        if not value or not isinstance(value, str):
            return False
        return _KEY_PATTERN.match(value) is not None

    @classmethod
    def generate(cls, filename: str) -> "ObjectKey":
        """
        Generate a new unique storage key for an upload.

        Args:
            filename: Original filename, used only as a readable suffix

        Returns:
            New ObjectKey instance
        """
        millis = time.time_ns() // 1_000_000
        return cls(f"{millis}-{secrets.token_hex(6)}-{sanitize_filename(filename)}")

    def __str__(self) -> str:
        return self.value
