"""Scan engine use case.

This module provides:
- `ScanStats`: counters for one run
- `resolve_contracts`: (network, version, type) → address + ballot layout
- `ScanEngine`: the poll loop (tip → range → logs → decode → commit → dispatch)
"""

from __future__ import annotations

import asyncio
import logging
from collections.abc import Callable
from dataclasses import dataclass
from datetime import datetime, timezone

from govwatch.core.config import WatchConfig
from govwatch.core.cursor import ChainCursor
from govwatch.core.errors import ConfigError, DecodeError, DispatchError, NetworkError, RpcError
from govwatch.core.interfaces import IDispatcher, IRpcClient
from govwatch.core.models import BallotEvent, BlockRange, ContractType, LogEntry, Notification
from govwatch.decoding.decoder import decode_ballot
from govwatch.decoding.registries import get_layout
from govwatch.decoding.specs import BallotLayout, LayoutRegistry

log = logging.getLogger(__name__)


# ---------------------------------------------------------------------------
# Stats
# ---------------------------------------------------------------------------


@dataclass(kw_only=True)
class ScanStats:
    """
    Aggregated counters for one run.

    Mutated only by the scan engine to track:
    - how many ticks ran and how many were aborted
    - how many ranges were committed and logs fetched
    - how many entries decoded / were skipped
    - how many notifications were emitted and failed delivery
    """

    ticks: int = 0
    failed_ticks: int = 0
    ranges_committed: int = 0
    total_logs: int = 0
    decoded: int = 0
    skipped: int = 0
    notifications: int = 0
    dispatch_failures: int = 0


# ---------------------------------------------------------------------------
# Monitored contract
# ---------------------------------------------------------------------------


@dataclass(frozen=True, slots=True)
class MonitoredContract:
    """One contract the engine queries each tick."""

    contract_type: ContractType
    address: str
    layout: BallotLayout


def resolve_contracts(
    config: WatchConfig,
    registry: LayoutRegistry | None = None,
) -> list[MonitoredContract]:
    """
    Resolve `(network, version, type) → (address, layout)` for every monitored
    type, in the fixed `ContractType` declaration order.

    Raises ConfigError on the first missing mapping.
    """
    if not config.contract_types:
        raise ConfigError("no contract types selected for monitoring")
    if not config.network.supports(config.version):
        raise ConfigError(f"the {config.network.value} network has no {config.version.value} contracts")

    selected = set(config.contract_types)
    out: list[MonitoredContract] = []
    for contract_type in ContractType:
        if contract_type not in selected:
            continue
        layout = get_layout(contract_type, config.version, registry)
        address = config.addresses.get(contract_type)
        if not address:
            raise ConfigError(
                f"no {config.network.value}/{config.version.value} address configured "
                f"for the {contract_type.value} contract"
            )
        out.append(MonitoredContract(contract_type, address, layout))
    return out


# ---------------------------------------------------------------------------
# Scan engine
# ---------------------------------------------------------------------------


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


class ScanEngine:
    """
    Per-tick orchestration: tip → range → logs per contract → decode →
    notifications → commit → dispatch → sleep.

    It depends only on the `IRpcClient` and `IDispatcher` capabilities and owns
    the `ChainCursor`. All RPC calls are awaited one at a time.
    """

    def __init__(
        self,
        *,
        config: WatchConfig,
        rpc: IRpcClient,
        dispatcher: IDispatcher,
        cancel: asyncio.Event | None = None,
        registry: LayoutRegistry | None = None,
        clock: Callable[[], datetime] = _utcnow,
    ) -> None:
        self._config = config
        self._rpc = rpc
        self._dispatcher = dispatcher
        self._cancel = cancel or asyncio.Event()
        self._clock = clock
        self._contracts = resolve_contracts(config, registry)
        self.cursor = ChainCursor()
        self.stats = ScanStats()
        self.limit_reached = False

    @property
    def contracts(self) -> list[MonitoredContract]:
        return list(self._contracts)

    # -- lifecycle ----------------------------------------------------------

    async def run(self) -> ScanStats:
        """Scan until cancelled or the notification limit is reached."""
        if not await self._initialize():
            return self.stats

        while not self._cancel.is_set():
            await self.tick()
            if self.limit_reached or self._cancel.is_set():
                break
            await self._sleep()
        return self.stats

    async def _initialize(self) -> bool:
        """Anchor the cursor on the current tip, retrying every poll interval."""
        while not self._cancel.is_set():
            try:
                tip = await self._rpc.latest_block()
            except NetworkError as e:
                log.warning("could not reach node for the initial tip: %s", e)
            except RpcError as e:
                log.error("bad response fetching the initial tip: %s", e)
            else:
                anchor = self.cursor.initialize(self._config.start_mode, tip)
                log.info(
                    "cursor initialized: mode=%s tip=%d anchor=%d first block=%d",
                    self._config.start_mode, tip, anchor, self.cursor.next_from,
                )
                return True
            await self._sleep()
        return False

    async def _sleep(self) -> None:
        """Wait one poll interval; returns early when cancellation is requested."""
        try:
            await asyncio.wait_for(self._cancel.wait(), timeout=self._config.poll_interval)
        except asyncio.TimeoutError:
            pass

    # -- one tick -----------------------------------------------------------

    async def tick(self) -> list[Notification]:
        """
        Run one scan tick and return the notifications built from it.

        The range is committed only when every monitored contract was queried
        successfully; a `NetworkError` or `RpcError` leaves the cursor untouched
        so the next tick retries from the same block.
        """
        self.stats.ticks += 1
        try:
            tip = await self._rpc.latest_block()
        except NetworkError as e:
            log.warning("skipping tick, node unreachable: %s", e)
            self.stats.failed_ticks += 1
            return []
        except RpcError as e:
            log.error("skipping tick, bad eth_blockNumber response: %s", e)
            self.stats.failed_ticks += 1
            return []

        if not self.cursor.initialized:
            self.cursor.initialize(self._config.start_mode, tip)

        block_range = self.cursor.next_range(tip)
        if block_range is None:
            log.debug("no new blocks (tip=%d)", tip)
            return []

        collected = await self._collect(block_range)
        if collected is None:
            self.stats.failed_ticks += 1
            return []

        notifications = self.build_notifications(collected)
        self.cursor.commit(block_range)
        self.stats.ranges_committed += 1
        log.info("finished checking blocks %s (%d ballots)", block_range, len(notifications))

        await self._emit(notifications)
        return notifications

    async def _collect(
        self,
        block_range: BlockRange,
    ) -> list[tuple[LogEntry, BallotEvent]] | None:
        """Query and decode every monitored contract; None if any query failed."""
        collected: list[tuple[LogEntry, BallotEvent]] = []
        for contract in self._contracts:
            try:
                logs = await self._rpc.get_logs(
                    address=contract.address,
                    topic0=contract.layout.topic0,
                    block_range=block_range,
                )
            except NetworkError as e:
                log.warning(
                    "aborting range %s, %s query failed: %s",
                    block_range, contract.contract_type.value, e,
                )
                return None
            except RpcError as e:
                log.error(
                    "aborting range %s, %s query returned a bad response: %s",
                    block_range, contract.contract_type.value, e,
                )
                return None

            self.stats.total_logs += len(logs)
            collected.extend(self.decode_logs(logs, contract.layout))
        return collected

    def decode_logs(
        self,
        logs: list[LogEntry],
        layout: BallotLayout,
    ) -> list[tuple[LogEntry, BallotEvent]]:
        """Decode each entry; undecodable entries are logged and skipped."""
        out: list[tuple[LogEntry, BallotEvent]] = []
        for entry in logs:
            try:
                event = decode_ballot(entry, layout)
            except DecodeError as e:
                log.error(
                    "skipping %s log at block %d index %d: %s: %s",
                    layout.contract_type.value, entry.block_number, entry.log_index,
                    type(e).__name__, e,
                )
                self.stats.skipped += 1
                continue
            self.stats.decoded += 1
            out.append((entry, event))
        return out

    def build_notifications(
        self,
        collected: list[tuple[LogEntry, BallotEvent]],
    ) -> list[Notification]:
        """Build notifications ordered by `(block_number, log_index)`."""
        ordered = sorted(collected, key=lambda pair: pair[0].position)
        generated_at = self._clock()
        return [
            Notification(
                event=event,
                network=self._config.network,
                endpoint=self._config.endpoint,
                block_number=entry.block_number,
                log_index=entry.log_index,
                version=self._config.version,
                generated_at=generated_at,
            )
            for entry, event in ordered
        ]

    async def _emit(self, notifications: list[Notification]) -> None:
        """Hand each notification to the dispatcher, honoring the limit."""
        limit = self._config.notification_limit
        for notification in notifications:
            try:
                await self._dispatcher.dispatch(notification)
            except DispatchError as e:
                self.stats.dispatch_failures += 1
                log.error(
                    "failed to dispatch %s ballot %d: %s",
                    notification.contract_type.value, notification.event.ballot_id, e,
                )
            self.stats.notifications += 1
            if limit is not None and self.stats.notifications >= limit:
                log.warning("reached notification limit (%d), shutting down", limit)
                self.limit_reached = True
                return
