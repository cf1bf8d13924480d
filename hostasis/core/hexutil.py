"""hostasis.core.hexutil

Hex parsing for the 32-byte values the CLI accepts: keys, batch ids,
references, topics. All of them share one format: 64 hex characters, with or
without ``0x``.
"""

from __future__ import annotations

import re

from hostasis.core.exceptions import InvalidTopicError, ValidationError

ZERO_TOPIC = bytes(32)

_HEX32_RE = re.compile(r"^(0x)?[0-9a-fA-F]{64}$")


def is_hex32(value: str) -> bool:
    return bool(_HEX32_RE.match(str(value)))


def require_hex32(value: str, *, what: str, error: type[ValidationError] = ValidationError) -> str:
    """Return ``value`` lowercased without ``0x`` or raise ``error``."""

    s = str(value or "").strip()
    if not is_hex32(s):
        raise error(f"Invalid {what} format (expected 64 hex characters)")
    return s.removeprefix("0x").lower()


def parse_topic(value: str | bytes | None) -> bytes:
    """Topic as 32 raw bytes. Empty means the null topic."""

    if value is None or value == "" or value == b"":
        return ZERO_TOPIC
    if isinstance(value, bytes):
        if len(value) != 32:
            raise InvalidTopicError(f"topic must be 32 bytes, got {len(value)}")
        return value
    return bytes.fromhex(require_hex32(value, what="topic", error=InvalidTopicError))
