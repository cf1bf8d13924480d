"""hostasis.feeds.orchestrator

One feed update, resolved in a single linear pass.

Pipeline:
1) Validate every hex input (no network before this succeeds)
2) Pick the signer: project key if a project is named, else the reserve key
3) Resolve depth (explicit > chain > default) and index
   (explicit > gateway > default), concurrently
4) Emit one write request and hand it to the writer

The reserve key always pays; the signer always owns the feed. Index lookup
targets the signer's address, never the reserve address, unless they are
the same key.

Two concurrent updates to the same (owner, topic) can resolve the same next
index. Nothing here detects that; the later write wins.
"""

from __future__ import annotations

import asyncio
import logging
from dataclasses import dataclass
from enum import StrEnum

from hostasis.core.config import Config
from hostasis.core.exceptions import (
    ConfigError,
    FeedWriteError,
    InvalidBatchIdError,
    InvalidReferenceError,
    ValidationError,
)
from hostasis.core.hexutil import parse_topic, require_hex32
from hostasis.feeds.writer import FeedWriter, FeedWriteRequest
from hostasis.integrations.gateway import FeedIndexResolver
from hostasis.integrations.postage import BatchDepthResolver
from hostasis.security.address import address_hex, key_hex
from hostasis.security.project_keys import ProjectKey, project_key

logger = logging.getLogger(__name__)


class ValueSource(StrEnum):
    EXPLICIT = "explicit"
    RESOLVED = "resolved"
    DEFAULT = "default"


@dataclass(frozen=True, slots=True)
class FeedUpdateOptions:
    reference: str
    reserve_key: str
    batch_id: str
    project: str | None = None
    index: int | None = None
    depth: int | None = None
    topic: str | bytes | None = None
    gateway_url: str | None = None


@dataclass(frozen=True, slots=True)
class FeedUpdatePlan:
    request: FeedWriteRequest
    owner: str
    project: ProjectKey | None
    depth_source: ValueSource
    index_source: ValueSource
    warnings: tuple[str, ...] = ()

    def as_dict(self, *, redact: bool = True) -> dict:
        return {
            "owner": self.owner,
            "project": self.project.slug if self.project else None,
            "depth_source": str(self.depth_source),
            "index_source": str(self.index_source),
            "warnings": list(self.warnings),
            "request": self.request.as_dict(redact=redact),
        }


def _check_explicit(name: str, value: int | None, *, upper: int | None = None) -> int | None:
    if value is None:
        return None
    v = int(value)
    if v < 0 or (upper is not None and v > upper):
        bound = f"0..{upper}" if upper is not None else ">= 0"
        raise ValidationError(f"{name} must be {bound}, got {v}")
    return v


class FeedUpdateOrchestrator:
    def __init__(
        self,
        config: Config,
        *,
        depth_resolver: BatchDepthResolver | None = None,
        index_resolver: FeedIndexResolver | None = None,
        writer: FeedWriter | None = None,
    ):
        self.config = config
        self.depth_resolver = depth_resolver or BatchDepthResolver.from_config(config.chain)
        self.index_resolver = index_resolver
        self.writer = writer

    def _index_resolver_for(self, gateway_url: str) -> FeedIndexResolver:
        if self.index_resolver is not None:
            return self.index_resolver
        return FeedIndexResolver(gateway_url=gateway_url, timeout_s=self.config.gateway.timeout_s)

    async def _resolve_depth(self, batch_id: str, explicit: int | None) -> tuple[int, ValueSource, str | None]:
        if explicit is not None:
            return explicit, ValueSource.EXPLICIT, None
        depth = await self.depth_resolver.resolve_depth(batch_id)
        if depth is not None:
            logger.info("batch_depth_resolved", extra={"depth": depth})
            return depth, ValueSource.RESOLVED, None
        fallback = self.config.feed.default_depth
        logger.warning("batch_depth_fallback", extra={"depth": fallback})
        return fallback, ValueSource.DEFAULT, f"Could not fetch batch depth, using default: {fallback}"

    async def _resolve_index(
        self, resolver: FeedIndexResolver, owner: str, topic: bytes, explicit: int | None
    ) -> tuple[int, ValueSource, str | None]:
        if explicit is not None:
            return explicit, ValueSource.EXPLICIT, None
        index = await resolver.resolve_next_index(owner, topic)
        if index is not None:
            logger.info("feed_index_resolved", extra={"index": index, "owner": owner})
            return index, ValueSource.RESOLVED, None
        fallback = self.config.feed.default_index
        logger.warning("feed_index_fallback", extra={"index": fallback, "owner": owner})
        return fallback, ValueSource.DEFAULT, f"Could not fetch feed index, using default: {fallback}"

    async def plan(self, options: FeedUpdateOptions) -> FeedUpdatePlan:
        reference = require_hex32(options.reference, what="reference", error=InvalidReferenceError)
        reserve_key = key_hex(options.reserve_key)
        batch_id = require_hex32(options.batch_id, what="batch ID", error=InvalidBatchIdError)
        topic = parse_topic(options.topic)
        depth_in = _check_explicit("depth", options.depth, upper=255)
        index_in = _check_explicit("index", options.index)
        gateway_url = (options.gateway_url or self.config.gateway.url).rstrip("/")

        project: ProjectKey | None = None
        signer_key: str | None = None
        if options.project:
            project = project_key(reserve_key, options.project)
            signer_key = project.private_key
            owner = project.address
            logger.info("project_key_derived", extra={"project": project.slug, "owner": owner})
        else:
            owner = address_hex(reserve_key)

        (depth, depth_src, depth_warn), (index, index_src, index_warn) = await asyncio.gather(
            self._resolve_depth(batch_id, depth_in),
            self._resolve_index(self._index_resolver_for(gateway_url), owner, topic, index_in),
        )

        request = FeedWriteRequest(
            reserve_key=reserve_key,
            signer_key=signer_key,
            reference=reference,
            index=index,
            batch_id=batch_id,
            depth=depth,
            gateway_url=gateway_url,
            topic=topic,
        )
        return FeedUpdatePlan(
            request=request,
            owner=owner,
            project=project,
            depth_source=depth_src,
            index_source=index_src,
            warnings=tuple(w for w in (depth_warn, index_warn) if w),
        )

    async def update(self, options: FeedUpdateOptions, *, writer: FeedWriter | None = None) -> FeedUpdatePlan:
        """Plan, then write. Validation errors propagate before any I/O."""

        target = writer or self.writer
        if target is None:
            raise ConfigError("no feed writer configured (set HOSTASIS_FEED_WRITER or --writer)")

        plan = await self.plan(options)
        logger.info("feed_update_writing", extra={"index": plan.request.index, "owner": plan.owner})
        try:
            await asyncio.to_thread(target.write_feed_update, plan.request)
        except Exception as e:
            raise FeedWriteError(f"feed update failed: {e}") from e
        logger.info("feed_update_written", extra={"index": plan.request.index, "owner": plan.owner})
        return plan


def update_feed(config: Config, options: FeedUpdateOptions, writer: FeedWriter) -> FeedUpdatePlan:
    """Synchronous entry point for callers outside an event loop."""

    return asyncio.run(FeedUpdateOrchestrator(config, writer=writer).update(options))
