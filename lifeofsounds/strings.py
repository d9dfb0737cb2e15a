"""Identifier, hashing and hex helpers used by the models."""

from __future__ import annotations

import hashlib
import secrets
import string

_HEX_DIGITS = frozenset(string.hexdigits)


def hash_to_hex(data: bytes) -> str:
    """Return the lower-case hexadecimal form of ``data``."""
    return bytes(data).hex()


def hex_to_bytes(text: str, length: int) -> bytes:
    """Decode the first ``length`` bytes written as hex pairs in ``text``."""
    chunk = text[: 2 * length]
    if len(chunk) != 2 * length:
        raise ValueError(f"expected {2 * length} hex digits, got {len(chunk)}")
    if not all(ch in _HEX_DIGITS for ch in chunk):
        raise ValueError(f"not a hexadecimal string: {chunk!r}")
    return bytes.fromhex(chunk)


def create_unique_identifier() -> bytes:
    """Return 16 cryptographically random bytes."""
    return secrets.token_bytes(16)


def hash_string(data: bytes) -> bytes:
    """Return the SHA-256 digest of ``data``."""
    return hashlib.sha256(data).digest()


def replace(text: str, substring: str, replacement: str) -> str:
    """Replace the first occurrence of ``substring`` until none is left.

    The search restarts from the beginning after every replacement, so
    occurrences formed by a replacement are removed as well.
    """
    if not substring:
        raise ValueError("substring must not be empty")
    if substring == replacement:
        return text
    if substring in replacement:
        raise ValueError("replacement contains the substring; it would never finish")
    while substring in text:
        text = text.replace(substring, replacement, 1)
    return text