"""hostasis.security.address

Byte/hex conversion and Ethereum-style address derivation.

address = keccak256(uncompressed_pubkey[1:])[-20:]

Pure functions, no I/O. Keys are accepted as hex strings (``0x`` optional) or
raw 32-byte values and are validated against the secp256k1 group order before
any point multiplication.
"""

from __future__ import annotations

from eth_keys import keys
from eth_utils import keccak, to_checksum_address

from hostasis.core.exceptions import InvalidKeyError
from hostasis.core.hexutil import require_hex32

# secp256k1 group order
SECP256K1_N = 0xFFFFFFFFFFFFFFFFFFFFFFFFFFFFFFFEBAAEDCE6AF48A03BBFD25E8CD0364141

ADDRESS_LENGTH = 20


def hex_to_bytes(value: str) -> bytes:
    s = str(value).strip().removeprefix("0x")
    try:
        return bytes.fromhex(s)
    except ValueError as e:
        raise ValueError(f"not a hex string: {value!r}") from e


def bytes_to_hex(data: bytes) -> str:
    """Lowercase hex, no prefix."""
    return bytes(data).hex()


def is_valid_scalar(raw: bytes) -> bool:
    return len(raw) == 32 and 0 < int.from_bytes(raw, "big") < SECP256K1_N


def parse_private_key(value: str | bytes) -> bytes:
    """Decode and range-check a private key. Raises :class:`InvalidKeyError`."""

    if isinstance(value, (bytes, bytearray)):
        raw = bytes(value)
        if len(raw) != 32:
            raise InvalidKeyError(f"private key must be 32 bytes, got {len(raw)}")
    else:
        raw = bytes.fromhex(require_hex32(value, what="key", error=InvalidKeyError))

    if not is_valid_scalar(raw):
        raise InvalidKeyError("private key is not a valid secp256k1 scalar")
    return raw


def key_hex(value: str | bytes) -> str:
    """Canonical ``0x``-prefixed lowercase form of a private key."""
    return "0x" + parse_private_key(value).hex()


def address_of(private_key: str | bytes) -> bytes:
    """20-byte address owned by ``private_key``."""

    raw = parse_private_key(private_key)
    # eth_keys returns the 64-byte X||Y form, i.e. the uncompressed point without 0x04
    public = keys.PrivateKey(raw).public_key.to_bytes()
    return keccak(public)[-ADDRESS_LENGTH:]


def address_hex(private_key: str | bytes) -> str:
    """Lowercase ``0x`` address, the form the gateway and logs use."""
    return "0x" + bytes_to_hex(address_of(private_key))


def checksum_address(private_key: str | bytes) -> str:
    """EIP-55 mixed-case address for display."""
    return to_checksum_address(address_of(private_key))
