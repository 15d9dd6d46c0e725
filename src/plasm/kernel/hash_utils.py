"""Hash utilities for module content addressing and receipt signing.

Key rules:
- Module hashes are "sha256:" + lowercase hex digest of the raw module bytes
- Signed payloads are the raw 32-byte SHA-256 digest of a UTF-8 message
- Hex key material is decoded strictly; length mismatches are format errors
"""

import hashlib
from pathlib import Path
from typing import Union

from plasm.errors import FormatError


HASH_PREFIX = "sha256:"
_CHUNK_SIZE = 8192


def hash_module_bytes(content: Union[str, bytes]) -> str:
    """Compute the content address of a module.

    Args:
        content: Module content as bytes (str is encoded as UTF-8)

    Returns:
        SHA256 hash as hex string (prefixed with "sha256:")
    """
    if isinstance(content, str):
        content_bytes = content.encode('utf-8')
    else:
        content_bytes = content

    digest = hashlib.sha256(content_bytes).hexdigest()
    return f"{HASH_PREFIX}{digest}"


def hash_module_file(path: Union[str, Path]) -> str:
    """Compute the content address of a module file, reading it in chunks.

    Raises:
        FileNotFoundError: If the file does not exist
    """
    p = Path(path)
    if not p.is_file():
        raise FileNotFoundError(f"WASM file not found: {p}")

    hasher = hashlib.sha256()
    with open(p, "rb") as f:
        for chunk in iter(lambda: f.read(_CHUNK_SIZE), b""):
            hasher.update(chunk)
    return f"{HASH_PREFIX}{hasher.hexdigest()}"


def strip_hash_prefix(module_hash: str) -> str:
    """Return the hex part of a "sha256:"-prefixed hash."""
    if module_hash.startswith(HASH_PREFIX):
        return module_hash[len(HASH_PREFIX):]
    return module_hash


def message_digest(message: str) -> bytes:
    """SHA-256 digest of a UTF-8 message; this is what gets signed."""
    return hashlib.sha256(message.encode("utf-8")).digest()


def decode_hex(value: str, expected_length: int, what: str) -> bytes:
    """Decode hex key material and enforce its byte length.

    Raises:
        FormatError: If the value is not valid hex or has the wrong length
    """
    try:
        raw = bytes.fromhex(value)
    except (TypeError, ValueError) as e:
        raise FormatError(f"Invalid {what} format: not valid hex") from e
    if len(raw) != expected_length:
        raise FormatError(
            f"Invalid {what} format: expected {expected_length} bytes, got {len(raw)}"
        )
    return raw
