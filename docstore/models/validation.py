"""
Static input validation shared by the stores.

All checks run before any storage call so that rejected input never leaves
partial state behind.
"""

import re

from docstore.models.exceptions import InvalidKey, InvalidName, InvalidValue

NAME_PATTERN = re.compile(r"^[A-Za-z0-9_-]+$")
MAX_NAME_LENGTH = 64

MAX_DOCUMENT_KEY_BYTES = 1024
MAX_FILE_KEY_LENGTH = 512
MAX_CREDENTIAL_NAME_LENGTH = 100

# Keyspaces used internally; never addressable through the public namespace API.
RESERVED_NAMES = frozenset({"__meta", "__keys", "__system"})


def validate_name(name: str, kind: str = "Database") -> str:
    """
    Validate a namespace or bucket name.

    Args:
        name: Candidate name.
        kind: Label used in error messages ("Database", "Bucket").

    Returns:
        The name, unchanged.

    Raises:
        InvalidName: If the name is empty, too long, uses characters outside
            [A-Za-z0-9_-], or is reserved.
    """
    if not isinstance(name, str) or not name:
        raise InvalidName(f"{kind} name is required")
    if len(name) > MAX_NAME_LENGTH:
        raise InvalidName(f"{kind} name must be {MAX_NAME_LENGTH} characters or less")
    if not NAME_PATTERN.fullmatch(name):
        raise InvalidName(
            f"{kind} name can only contain letters, numbers, underscores, and hyphens"
        )
    if name in RESERVED_NAMES:
        raise InvalidName(f"{kind} name '{name}' is reserved")
    return name


def validate_document_key(key: str, max_bytes: int = MAX_DOCUMENT_KEY_BYTES) -> bytes:
    """
    Validate a document key and return its UTF-8 encoding.

    Args:
        key: Candidate key.
        max_bytes: Upper bound on the encoded length. Callers pass the smaller
            of 1024 and the storage engine's own key limit; a stock LMDB build
            caps keys at 511 bytes, so that is the effective limit for
            documents unless LMDB was compiled with a larger MDB_MAXKEYSIZE.

    Raises:
        InvalidKey: If the key is empty, too long or contains a NUL byte.
    """
    if not isinstance(key, str) or not key:
        raise InvalidKey("Document key is required and must be a string")
    if "\0" in key:
        raise InvalidKey("Document key must not contain null bytes")

    try:
        encoded = key.encode("utf-8")
    except UnicodeEncodeError:
        raise InvalidKey("Document key must be valid UTF-8") from None

    if len(encoded) > max_bytes:
        raise InvalidKey(f"Document key must be {max_bytes} bytes or less")
    return encoded


def validate_file_key(key: str) -> str:
    """Validate a file key within a bucket."""
    if not isinstance(key, str) or not key:
        raise InvalidKey("File key is required")
    if len(key) > MAX_FILE_KEY_LENGTH:
        raise InvalidKey(f"File key must be {MAX_FILE_KEY_LENGTH} characters or less")
    if ".." in key:
        raise InvalidKey("File key must not contain path traversal sequences (..)")
    if key.startswith("/"):
        raise InvalidKey("File key must not start with a slash")
    if "\0" in key:
        raise InvalidKey("File key must not contain null bytes")
    return key


def validate_credential_name(name: str | None) -> str | None:
    """Validate the optional label attached to a generated API key."""
    if name is None:
        return None
    if not isinstance(name, str) or not name:
        raise InvalidValue("Name must be at least 1 character")
    if len(name) > MAX_CREDENTIAL_NAME_LENGTH:
        raise InvalidValue(f"Name must be {MAX_CREDENTIAL_NAME_LENGTH} characters or less")
    return name
