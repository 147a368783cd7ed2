"""Capabilities the core depends on.

This module provides:
- `IRpcClient`: chain tip and log queries
- `IDispatcher`: delivery of finished notifications
"""

from __future__ import annotations

from typing import Protocol, runtime_checkable

from govwatch.core.models import BlockRange, LogEntry, Notification


# ---------------------------------------------------------------------------
# IRpcClient
# ---------------------------------------------------------------------------

@runtime_checkable
class IRpcClient(Protocol):
    """
    Chain access consumed by the scan engine.

    Domain expectations:
    - Both calls raise `NetworkError` on transport failure and `RpcError` on a
      malformed response.
    - Logs are returned already mapped into `LogEntry` records.
    """

    async def latest_block(self) -> int:
        """Return the current chain tip."""
        ...

    async def get_logs(
        self,
        *,
        address: str,
        topic0: str,
        block_range: BlockRange,
    ) -> list[LogEntry]:
        """
        Return all logs of `address` whose first topic is `topic0` within the
        inclusive range, ordered by `(block_number, log_index)` ascending.

        Implementations:
        - JSON-RPC over HTTP (`govwatch.clients.rpc.RPC`)
        - In-memory fakes for testing
        """
        ...


# ---------------------------------------------------------------------------
# IDispatcher
# ---------------------------------------------------------------------------

@runtime_checkable
class IDispatcher(Protocol):
    """
    Sink for finished notifications.

    Domain expectations:
    - Called once per notification, in emission order.
    - Raises `DispatchError` on failure; the engine logs it and moves on.
    """

    async def dispatch(self, notification: Notification) -> None:
        ...
