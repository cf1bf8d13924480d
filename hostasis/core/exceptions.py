"""hostasis.core.exceptions

Errors are part of the interface.

Validation errors abort before any network request. Resolution failures are
not errors: resolvers return ``None`` and callers fall back.
"""

from __future__ import annotations


class HostasisError(Exception):
    """Base exception for hostasis."""


class ConfigError(HostasisError):
    """Configuration is missing, invalid, or inconsistent."""


class ValidationError(HostasisError, ValueError):
    """User-supplied input is malformed."""


class InvalidKeyError(ValidationError):
    """Not a 32-byte hex private key, or not a valid secp256k1 scalar."""


class InvalidBatchIdError(ValidationError):
    """Batch id is not 64 hex characters."""


class InvalidReferenceError(ValidationError):
    """Content reference is not 64 hex characters."""


class InvalidTopicError(ValidationError):
    """Feed topic is not 32 bytes of hex."""


class InvalidSlugError(ValidationError):
    """Project name normalizes to nothing."""


class DerivationFailedError(HostasisError):
    """Derived project key is outside the curve order. There is no fallback."""


class FeedWriteError(HostasisError):
    """The delegated feed writer failed."""
