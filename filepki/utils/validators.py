"""Input validation utilities."""

import re
from urllib.parse import urlsplit

from filepki.exceptions import InvalidPasswordError

# OpenSSL refuses shorter or longer PEM passphrases
MIN_PASSWORD_LENGTH = 4
MAX_PASSWORD_LENGTH = 1023

_URI_SCHEME_PATTERN = re.compile(r"^[A-Za-z][A-Za-z0-9+.\-]*$")
_URI_FORBIDDEN_PATTERN = re.compile(r"[\x00-\x20\x7f<>\"{}|\\^`]")
_URI_BAD_ESCAPE_PATTERN = re.compile(r"%(?![0-9A-Fa-f]{2})")


def validate_artifact_name(name: str) -> str:
    """
    Validate the logical name of a key, certificate or CRL.

    Args:
        name: Logical artifact name

    Returns:
        The name, unchanged

    Raises:
        ValueError: If the name is empty or could escape the PKI directory
    """
    if not name or not name.strip():
        raise ValueError("Artifact name cannot be empty")

    if "/" in name or "\\" in name or name in (".", "..") or name.startswith("."):
        raise ValueError(f"Invalid artifact name: {name}")

    if "\x00" in name:
        raise ValueError(f"Invalid artifact name: {name!r}")

    return name


def validate_uri(uri: str) -> str:
    """
    Check that a string is a syntactically valid absolute URI.

    Args:
        uri: URI string

    Returns:
        The URI, unchanged

    Raises:
        ValueError: If the URI is invalid
    """
    if not uri:
        raise ValueError("empty uri")

    if _URI_FORBIDDEN_PATTERN.search(uri):
        raise ValueError(f"invalid uri {uri!r}: forbidden character")

    if _URI_BAD_ESCAPE_PATTERN.search(uri):
        raise ValueError(f"invalid uri {uri!r}: invalid percent escape")

    try:
        parts = urlsplit(uri)
        # Accessing the port validates it
        parts.port
    except ValueError as e:
        raise ValueError(f"invalid uri {uri!r}: {e}")

    if not parts.scheme or not _URI_SCHEME_PATTERN.match(parts.scheme):
        raise ValueError(f"invalid uri {uri!r}: missing scheme")

    return uri


def validate_password(
    password: bytes,
    min_length: int = MIN_PASSWORD_LENGTH,
    max_length: int = MAX_PASSWORD_LENGTH,
) -> None:
    """
    Validate a private key password on creation.

    Args:
        password: Password bytes
        min_length: Minimum length in bytes
        max_length: Maximum length in bytes

    Raises:
        InvalidPasswordError: If the password is too short or too long
    """
    if len(password) < min_length:
        raise InvalidPasswordError(f"password too short (min: {min_length} bytes)")

    if len(password) > max_length:
        raise InvalidPasswordError(f"password too long (max: {max_length} bytes)")
