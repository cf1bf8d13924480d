"""hostasis.integrations.postage

Batch depth from the PostageStamp contract, via raw JSON-RPC ``eth_call``.

Design goals:
- Lightweight: no web3 dependency, one ``eth_call`` over httpx.
- Best-effort: every failure (revert, unknown batch, timeout, malformed reply)
  is ``None``. Callers always have a safe default depth.
- One attempt, short timeout. No retries.
"""

from __future__ import annotations

import logging
from typing import Any

import httpx
from eth_utils import function_signature_to_4byte_selector

from hostasis import DEFAULT_GNOSIS_RPC_URL
from hostasis.core.config import POSTAGE_STAMP_ADDRESS, ChainConfig
from hostasis.core.exceptions import InvalidBatchIdError
from hostasis.core.hexutil import require_hex32

logger = logging.getLogger(__name__)

BATCH_DEPTH_SELECTOR = function_signature_to_4byte_selector("batchDepth(bytes32)")


class RpcError(Exception):
    """JSON-RPC level failure (error object, revert, or malformed result)."""


def encode_batch_depth_call(batch_id: str) -> str:
    """Calldata for ``batchDepth(bytes32)``."""

    bid = require_hex32(batch_id, what="batch ID", error=InvalidBatchIdError)
    return "0x" + BATCH_DEPTH_SELECTOR.hex() + bid


def decode_uint8(result: Any) -> int:
    """Decode an ABI-encoded ``uint8`` return value."""

    if not isinstance(result, str) or not result.startswith("0x"):
        raise RpcError(f"unexpected eth_call result: {result!r}")
    body = result[2:]
    if not body:
        # empty return data: no code at address or silent revert
        raise RpcError("empty eth_call result")
    if len(body) != 64:
        raise RpcError(f"expected one 32-byte word, got {len(body) // 2} bytes")
    value = int(body, 16)
    if value > 0xFF:
        raise RpcError(f"value does not fit uint8: {value}")
    return value


class BatchDepthResolver:
    """Reads ``batchDepth(bytes32) -> uint8`` from the PostageStamp contract."""

    def __init__(
        self,
        *,
        rpc_url: str = DEFAULT_GNOSIS_RPC_URL,
        contract_address: str = POSTAGE_STAMP_ADDRESS,
        timeout_s: float = 5.0,
        transport: httpx.AsyncBaseTransport | None = None,
    ):
        self._rpc_url = str(rpc_url)
        self._contract = str(contract_address).lower()
        self._timeout_s = float(timeout_s)
        self._transport = transport

    @classmethod
    def from_config(cls, config: ChainConfig, *, transport: httpx.AsyncBaseTransport | None = None) -> BatchDepthResolver:
        return cls(
            rpc_url=config.rpc_url,
            contract_address=config.postage_stamp_address,
            timeout_s=config.timeout_s,
            transport=transport,
        )

    async def rpc_call(self, client: httpx.AsyncClient, method: str, params: list[object]) -> Any:
        """Raw JSON-RPC helper."""

        payload = {"jsonrpc": "2.0", "id": 1, "method": str(method), "params": list(params)}
        r = await client.post(self._rpc_url, json=payload)
        r.raise_for_status()
        out = r.json()
        if not isinstance(out, dict):
            raise RpcError("JSON-RPC response is not an object")
        if "error" in out:
            raise RpcError(str(out["error"]))
        return out.get("result")

    async def resolve_depth(self, batch_id: str) -> int | None:
        """Depth of ``batch_id``, or ``None`` when it cannot be read.

        An unknown batch reads back as depth 0 and is reported as ``None``.

        A malformed batch id raises :class:`InvalidBatchIdError` before any
        request is made.
        """

        data = encode_batch_depth_call(batch_id)
        call = {"to": self._contract, "data": data}

        try:
            async with httpx.AsyncClient(
                timeout=self._timeout_s, transport=self._transport, follow_redirects=True
            ) as client:
                result = await self.rpc_call(client, "eth_call", [call, "latest"])
            depth = decode_uint8(result)
        except (httpx.HTTPError, RpcError, ValueError) as e:
            # ValueError also covers malformed JSON bodies
            logger.debug(
                "batch_depth_lookup_failed",
                extra={"rpc_url": self._rpc_url, "error": f"{type(e).__name__}: {e}"},
            )
            return None

        # batchDepth() reads an empty struct slot for unknown batches
        if depth == 0:
            logger.debug("batch_not_found", extra={"rpc_url": self._rpc_url})
            return None

        logger.debug("batch_depth_resolved", extra={"depth": depth})
        return depth


async def fetch_batch_depth(
    batch_id: str,
    rpc_url: str = DEFAULT_GNOSIS_RPC_URL,
    *,
    timeout_s: float = 5.0,
    transport: httpx.AsyncBaseTransport | None = None,
) -> int | None:
    """Convenience wrapper around :meth:`BatchDepthResolver.resolve_depth`."""

    resolver = BatchDepthResolver(rpc_url=rpc_url, timeout_s=timeout_s, transport=transport)
    return await resolver.resolve_depth(batch_id)
