"""Lightweight JSON-RPC client for Ethereum-compatible nodes.

This module provides:
- `RPC`: an async client with sane timeouts/connection limits
- Helper utilities to format block numbers and parse hex quantities

It returns `LogEntry` records ready for downstream decoding and maps every
failure onto the two error kinds the scan engine understands: `NetworkError`
(transport, retry later) and `RpcError` (bad response).
"""

from __future__ import annotations

from typing import Any

import httpx

from govwatch.core.errors import NetworkError, RpcError
from govwatch.core.models import BlockRange, LogEntry

# HTTP statuses that indicate an overloaded or restarting node.
_RETRYABLE_STATUS = frozenset({429, 502, 503, 504})


def to_hex_block(x: int) -> str:
    """Return a 0x-prefixed hex block number."""
    return hex(x)


def parse_quantity(value: Any, field: str) -> int:
    """Parse a 0x-prefixed hex quantity, raising RpcError if it is not one."""
    if not isinstance(value, str) or not value.startswith("0x"):
        raise RpcError(f"expected hex quantity for {field!r}, got {value!r}")
    try:
        return int(value, 16)
    except ValueError as e:
        raise RpcError(f"invalid hex quantity for {field!r}: {value!r}") from e


def parse_data(value: Any) -> bytes:
    if value is None:
        return b""
    if not isinstance(value, str) or not value.startswith("0x"):
        raise RpcError(f"expected 0x-prefixed data, got {value!r}")
    try:
        return bytes.fromhex(value[2:])
    except ValueError as e:
        raise RpcError(f"invalid hex data: {value[:20]}...") from e


def parse_log(raw: Any) -> LogEntry:
    """Map one `eth_getLogs` result object onto a `LogEntry`."""
    if not isinstance(raw, dict):
        raise RpcError(f"expected log object, got {type(raw).__name__}")
    try:
        topics = tuple(str(t).lower() for t in raw.get("topics") or ())
        return LogEntry(
            contract_address=str(raw["address"]).lower(),
            topics=topics,
            data=parse_data(raw.get("data")),
            block_number=parse_quantity(raw["blockNumber"], "blockNumber"),
            log_index=parse_quantity(raw["logIndex"], "logIndex"),
            tx_hash=str(raw.get("transactionHash") or "").lower(),
        )
    except KeyError as e:
        raise RpcError(f"log object is missing {e.args[0]!r}") from e


class RPC:
    """Minimal async RPC client.

    Parameters
    ----------
    url : str
        RPC endpoint URL.
    timeout_s : int
        Per-operation timeout in seconds (connect/read/write).
    transport : httpx.AsyncBaseTransport | None
        Optional transport override (used by tests).
    """

    def __init__(
        self,
        url: str,
        *,
        timeout_s: int = 20,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        self.url = url
        self._request_id = 0
        self.client = httpx.AsyncClient(
            timeout=httpx.Timeout(
                connect=timeout_s,
                read=timeout_s,
                write=timeout_s,
                pool=max(30, timeout_s * 3),
            ),
            limits=httpx.Limits(max_connections=4, max_keepalive_connections=2),
            http2=transport is None,
            transport=transport,
        )

    async def _call(self, method: str, params: list[Any]) -> Any:
        self._request_id += 1
        payload = {"jsonrpc": "2.0", "id": self._request_id, "method": method, "params": params}
        try:
            r = await self.client.post(self.url, json=payload)
        except httpx.RequestError as e:
            raise NetworkError(f"{method}: {type(e).__name__}: {e}") from e

        if r.status_code in _RETRYABLE_STATUS or r.status_code >= 500:
            raise NetworkError(f"{method}: HTTP {r.status_code}")
        if r.is_error:
            raise RpcError(f"{method}: HTTP {r.status_code}")

        try:
            data = r.json()
        except ValueError as e:
            raise RpcError(f"{method}: response is not JSON") from e
        if not isinstance(data, dict):
            raise RpcError(f"{method}: unexpected response {data!r}")
        if "error" in data:
            e = data["error"]
            if isinstance(e, dict):
                raise RpcError(f"RPC error: {e.get('code')} {e.get('message')}")
            raise RpcError(f"RPC error: {e}")
        if "result" not in data:
            raise RpcError(f"{method}: response has no result")
        return data["result"]

    async def latest_block(self) -> int:
        """Return the latest block number as an int."""
        result = await self._call("eth_blockNumber", [])
        return parse_quantity(result, "eth_blockNumber")

    async def get_logs(
        self,
        *,
        address: str,
        topic0: str,
        block_range: BlockRange,
    ) -> list[LogEntry]:
        """Fetch logs for an address and a topic0 signature within a block range."""
        params = [
            {
                "address": address.lower(),
                "fromBlock": to_hex_block(block_range.from_block),
                "toBlock": to_hex_block(block_range.to_block),
                "topics": [topic0.lower()],
            }
        ]
        result = await self._call("eth_getLogs", params)
        if not isinstance(result, list):
            raise RpcError(f"eth_getLogs: expected a list, got {type(result).__name__}")

        out = [parse_log(rl) for rl in result]
        out.sort(key=lambda log: log.position)
        return out

    async def aclose(self) -> None:
        """Close the underlying HTTP client."""
        await self.client.aclose()
