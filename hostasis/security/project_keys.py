"""hostasis.security.project_keys

Project keys: one reserve key, many feed owners.

    slug        = normalize(project name)
    project_key = keccak256(reserve_key_bytes || utf8(slug))

Same reserve key and slug give the same project key on every machine, so CI
runs and laptops publish to the same feed. Without the reserve key, two
project keys cannot be linked to each other.
"""

from __future__ import annotations

import re
from dataclasses import dataclass

from eth_utils import keccak

from hostasis.core.exceptions import DerivationFailedError, InvalidSlugError
from hostasis.security.address import address_hex, is_valid_scalar, parse_private_key

MAX_SLUG_LENGTH = 50

_NON_SLUG_RUN = re.compile(r"[^a-z0-9]+")


@dataclass(frozen=True, slots=True)
class ProjectKey:
    slug: str
    private_key: str  # 0x-prefixed hex
    address: str  # 0x-prefixed lowercase hex

    def __repr__(self) -> str:
        return f"ProjectKey(slug={self.slug!r}, address={self.address!r})"


def normalize_slug(name: str) -> str:
    """Lowercase, collapse non-alphanumeric runs to ``-``, trim, cap at 50.

    >>> normalize_slug("My Blog!!")
    'my-blog'
    """

    slug = _NON_SLUG_RUN.sub("-", str(name).lower()).strip("-")[:MAX_SLUG_LENGTH]
    if not slug:
        raise InvalidSlugError(f"project name {name!r} has no usable characters")
    return slug


def derive_project_key(parent: str | bytes, slug: str) -> str:
    """Child private key for ``slug`` under ``parent``, as ``0x`` hex.

    ``slug`` must already be normalized; the bytes are hashed verbatim.
    """

    parent_raw = parse_private_key(parent)
    derived = keccak(parent_raw + slug.encode("utf-8"))
    if not is_valid_scalar(derived):
        raise DerivationFailedError(f"derived key for project {slug!r} is not a valid secp256k1 scalar")
    return "0x" + derived.hex()


def project_key(parent: str | bytes, name: str) -> ProjectKey:
    """Normalize ``name`` and derive its key and owner address in one step."""

    slug = normalize_slug(name)
    child = derive_project_key(parent, slug)
    return ProjectKey(slug=slug, private_key=child, address=address_hex(child))
