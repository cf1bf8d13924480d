"""hostasis.security.redaction

Secret redaction helpers.

Reserve and project keys are 64 hex characters, exactly like batch ids and
references. Anything shaped like a key is redacted before it reaches a log
sink; fields named like keys are redacted whatever their shape.
"""

from __future__ import annotations

import copy
import re
from typing import Any

REDACTED = "[REDACTED]"

_REDACTION_PATTERNS: list[tuple[str, str]] = [
    # Generic key/value
    (r"(?i)(private[_-]?key|api[_-]?key|secret|password)\s*[:=]\s*[^\s\"',]+", REDACTED),
    # 32-byte hex (private keys; batch ids and references look the same)
    (r"\b(0x)?[a-fA-F0-9]{64}\b", REDACTED),
]

_SENSITIVE_FIELD_NAMES = {
    "key",
    "private_key",
    "reserve_key",
    "signer_key",
    "vault_key",
    "secret",
    "password",
    "token",
    "seed",
    "mnemonic",
    "authorization",
}


def redact_secrets(text: str) -> str:
    out = text
    for pattern, repl in _REDACTION_PATTERNS:
        out = re.sub(pattern, repl, out)
    return out


def mask_key(value: str | None) -> str:
    """Short, non-reversible display form: ``0x1234…abcd``."""

    if not value:
        return ""
    s = str(value).removeprefix("0x")
    if len(s) <= 8:
        return REDACTED
    return f"0x{s[:4]}…{s[-4:]}"


def sanitize_for_log(data: dict[str, Any]) -> dict[str, Any]:
    """Deep-copy and redact sensitive fields + embedded secrets."""

    def _walk(obj: Any) -> Any:
        if isinstance(obj, dict):
            new: dict[str, Any] = {}
            for k, v in obj.items():
                if str(k).lower() in _SENSITIVE_FIELD_NAMES:
                    new[k] = REDACTED if v else v
                else:
                    new[k] = _walk(v)
            return new
        if isinstance(obj, (list, tuple)):
            return [_walk(v) for v in obj]
        if isinstance(obj, str):
            return redact_secrets(obj)
        return obj

    return _walk(copy.deepcopy(data))
