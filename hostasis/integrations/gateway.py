"""hostasis.integrations.gateway

Next feed index from a Swarm gateway: ``GET <gateway>/feeds/<owner>/<topic>``.

Response handling, first match wins:
1) 404                               -> feed never written, next index is 0
2) ``swarm-feed-index-next`` / ``feedIndexNext``  -> use as-is
3) ``swarm-feed-index`` / ``feedIndex``           -> current + 1
4) anything else (or any transport failure)       -> unknown (``None``)

Gateways encode indices as hex strings. A gateway that only reports the
current index must never be read as "next": that would overwrite the latest
update.
"""

from __future__ import annotations

import logging
from collections.abc import Mapping
from dataclasses import dataclass
from enum import StrEnum
from typing import Any

import httpx

from hostasis import DEFAULT_GATEWAY_URL
from hostasis.core.config import GatewayConfig
from hostasis.core.hexutil import parse_topic
from hostasis.security.address import bytes_to_hex, hex_to_bytes

logger = logging.getLogger(__name__)

HEADER_INDEX_NEXT = "swarm-feed-index-next"
HEADER_INDEX = "swarm-feed-index"
BODY_INDEX_NEXT = "feedIndexNext"
BODY_INDEX = "feedIndex"


class FeedIndexSource(StrEnum):
    NOT_FOUND = "not_found"
    NEXT = "next"
    CURRENT = "current"
    ABSENT = "absent"


@dataclass(frozen=True, slots=True)
class FeedIndexLookup:
    source: FeedIndexSource
    value: int | None = None

    @property
    def next_index(self) -> int | None:
        if self.source is FeedIndexSource.NOT_FOUND:
            return 0
        if self.value is None:
            return None
        if self.source is FeedIndexSource.NEXT:
            return self.value
        if self.source is FeedIndexSource.CURRENT:
            return self.value + 1
        return None


ABSENT = FeedIndexLookup(FeedIndexSource.ABSENT)


def parse_index_value(value: Any) -> int | None:
    """Hex string (``0x`` optional) or non-negative JSON integer."""

    if isinstance(value, bool):
        return None
    if isinstance(value, int):
        return value if value >= 0 else None
    if isinstance(value, str):
        s = value.strip().removeprefix("0x")
        if not s:
            return None
        try:
            return int(s, 16)
        except ValueError:
            return None
    return None


def _field(headers: httpx.Headers, body: Any, header: str, body_key: str) -> int | None:
    raw = headers.get(header)
    if raw is None and isinstance(body, Mapping):
        raw = body.get(body_key)
    return parse_index_value(raw) if raw is not None else None


def parse_feed_index_response(status_code: int, headers: Mapping[str, str] | None, body: Any = None) -> FeedIndexLookup:
    """Turn a feed lookup response into a typed result. Pure."""

    if status_code == 404:
        return FeedIndexLookup(FeedIndexSource.NOT_FOUND)
    if not 200 <= status_code < 300:
        return ABSENT

    h = httpx.Headers(headers or {})

    nxt = _field(h, body, HEADER_INDEX_NEXT, BODY_INDEX_NEXT)
    if nxt is not None:
        return FeedIndexLookup(FeedIndexSource.NEXT, nxt)

    cur = _field(h, body, HEADER_INDEX, BODY_INDEX)
    if cur is not None:
        return FeedIndexLookup(FeedIndexSource.CURRENT, cur)

    return ABSENT


def _owner_hex(owner: str | bytes) -> str:
    raw = bytes(owner) if isinstance(owner, (bytes, bytearray)) else hex_to_bytes(owner)
    if len(raw) != 20:
        raise ValueError(f"owner address must be 20 bytes, got {len(raw)}")
    return bytes_to_hex(raw)


class FeedIndexResolver:
    """Queries a gateway for the feed state of an (owner, topic) pair."""

    def __init__(
        self,
        *,
        gateway_url: str = DEFAULT_GATEWAY_URL,
        timeout_s: float = 5.0,
        transport: httpx.AsyncBaseTransport | None = None,
    ):
        self._gateway_url = str(gateway_url).rstrip("/")
        self._timeout_s = float(timeout_s)
        self._transport = transport

    @classmethod
    def from_config(cls, config: GatewayConfig, *, transport: httpx.AsyncBaseTransport | None = None) -> FeedIndexResolver:
        return cls(gateway_url=config.url, timeout_s=config.timeout_s, transport=transport)

    def feed_url(self, owner: str | bytes, topic: str | bytes | None = None) -> str:
        return f"{self._gateway_url}/feeds/{_owner_hex(owner)}/{bytes_to_hex(parse_topic(topic))}"

    async def resolve(self, owner: str | bytes, topic: str | bytes | None = None) -> FeedIndexLookup:
        url = self.feed_url(owner, topic)
        try:
            async with httpx.AsyncClient(
                timeout=self._timeout_s, transport=self._transport, follow_redirects=True
            ) as client:
                r = await client.get(url)
        except httpx.HTTPError as e:
            logger.debug("feed_index_lookup_failed", extra={"url": url, "error": f"{type(e).__name__}: {e}"})
            return ABSENT

        body: Any = None
        if 200 <= r.status_code < 300:
            try:
                body = r.json()
            except ValueError:
                body = None

        lookup = parse_feed_index_response(r.status_code, r.headers, body)
        if lookup.source is FeedIndexSource.ABSENT:
            logger.debug("feed_index_unreadable", extra={"url": url, "status": r.status_code})
        return lookup

    async def resolve_next_index(self, owner: str | bytes, topic: str | bytes | None = None) -> int | None:
        """Next writable index, or ``None`` when the gateway gave no usable answer."""

        return (await self.resolve(owner, topic)).next_index


async def fetch_next_feed_index(
    owner: str | bytes,
    gateway_url: str = DEFAULT_GATEWAY_URL,
    topic: str | bytes | None = None,
    *,
    timeout_s: float = 5.0,
    transport: httpx.AsyncBaseTransport | None = None,
) -> int | None:
    resolver = FeedIndexResolver(gateway_url=gateway_url, timeout_s=timeout_s, transport=transport)
    return await resolver.resolve_next_index(owner, topic)
