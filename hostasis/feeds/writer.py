"""hostasis.feeds.writer

The write boundary. Signing a feed update (single owner chunk, stamps) and
sending it to the gateway is the stamping library's job; this module only
describes the request and locates the code that performs it.

A writer is configured as an import path, ``package.module:attr``, where
``attr`` is one of:
- an object with ``write_feed_update(request)``
- a class whose instances have it (instantiated with no arguments)
- a plain callable taking the request
"""

from __future__ import annotations

import importlib
import inspect
from collections.abc import Callable
from dataclasses import dataclass, field
from typing import Any, Protocol, runtime_checkable

from hostasis.core.exceptions import ConfigError
from hostasis.security.redaction import mask_key


@dataclass(frozen=True, slots=True)
class FeedWriteRequest:
    reserve_key: str  # pays for storage, stamps the chunk
    signer_key: str | None  # owns and signs the feed; None means the reserve key signs
    reference: str
    index: int
    batch_id: str
    depth: int
    gateway_url: str
    topic: bytes

    @property
    def effective_signer_key(self) -> str:
        return self.signer_key or self.reserve_key

    def as_dict(self, *, redact: bool = True) -> dict[str, Any]:
        hide = mask_key if redact else (lambda v: v)
        return {
            "reserve_key": hide(self.reserve_key),
            "signer_key": hide(self.signer_key) if self.signer_key else None,
            "reference": self.reference,
            "index": self.index,
            "batch_id": self.batch_id,
            "depth": self.depth,
            "gateway_url": self.gateway_url,
            "topic": self.topic.hex(),
        }

    def __repr__(self) -> str:
        return f"FeedWriteRequest({self.as_dict(redact=True)!r})"


@runtime_checkable
class FeedWriter(Protocol):
    def write_feed_update(self, request: FeedWriteRequest) -> None: ...


class _CallableWriter:
    def __init__(self, fn: Callable[[FeedWriteRequest], Any]):
        self._fn = fn

    def write_feed_update(self, request: FeedWriteRequest) -> None:
        self._fn(request)


@dataclass
class RecordingFeedWriter:
    """Keeps requests in memory instead of writing them."""

    requests: list[FeedWriteRequest] = field(default_factory=list)

    def write_feed_update(self, request: FeedWriteRequest) -> None:
        self.requests.append(request)

    @property
    def last(self) -> FeedWriteRequest | None:
        return self.requests[-1] if self.requests else None


def load_feed_writer(path: str) -> FeedWriter:
    """Resolve ``package.module:attr`` into a :class:`FeedWriter`."""

    module_name, sep, attr = str(path).partition(":")
    if not sep or not module_name or not attr:
        raise ConfigError(f"feed writer must look like 'package.module:attr', got {path!r}")

    try:
        module = importlib.import_module(module_name)
    except ImportError as e:
        raise ConfigError(f"feed writer module not importable: {module_name}") from e

    obj: Any = module
    for part in attr.split("."):
        try:
            obj = getattr(obj, part)
        except AttributeError as e:
            raise ConfigError(f"feed writer not found: {path}") from e

    if inspect.isclass(obj):
        obj = obj()
    if isinstance(obj, FeedWriter):
        return obj
    if callable(obj):
        return _CallableWriter(obj)
    raise ConfigError(f"feed writer {path} is neither a writer nor a callable")
