from collections.abc import Callable, Mapping
from datetime import datetime, timezone
from typing import Any
from unittest.mock import AsyncMock

import pytest

from govwatch.core.config import StartMode, WatchConfig
from govwatch.core.errors import DispatchError
from govwatch.core.models import BlockRange, ContractType, ContractVersion, LogEntry, Network, Notification
from govwatch.decoding.registries import get_layout
from govwatch.decoding.specs import BallotLayout

WORD = 32
FIXED_NOW = datetime(2024, 1, 1, 12, 0, tzinfo=timezone.utc)

ADDRESSES = {
    ContractType.KEYS: "0x1111111111111111111111111111111111111111",
    ContractType.THRESHOLD: "0x2222222222222222222222222222222222222222",
    ContractType.PROXY: "0x3333333333333333333333333333333333333333",
    ContractType.EMISSION_FUNDS: "0x4444444444444444444444444444444444444444",
}
CREATOR = "0xdd0bb0e2a1594240fed0c2f2c17c1e9ab4f87126"


# ---------------------------------------------------------------------------
# ABI encoding of BallotCreated data sections
# ---------------------------------------------------------------------------


def _word(value: int) -> bytes:
    return value.to_bytes(WORD, "big")


def _address_word(addr: str) -> bytes:
    return bytes(12) + bytes.fromhex(addr[2:])


def _padded(raw: bytes) -> bytes:
    pad = (-len(raw)) % WORD
    return raw + bytes(pad)


def encode_data(layout: BallotLayout, values: Mapping[str, Any]) -> bytes:
    """ABI-encode `values` following the head/tail layout of `layout`."""
    head: list[bytes] = []
    tail = b""
    head_size = WORD * layout.head_words
    for df in layout.data_fields:
        v = values[df.name]
        if df.type == "string":
            raw = v.encode("utf-8") if isinstance(v, str) else v
            head.append(_word(head_size + len(tail)))
            tail += _word(len(raw)) + _padded(raw)
        elif df.type == "address":
            head.append(_address_word(v))
        else:
            head.append(_word(int(v)))
    return b"".join(head) + tail


def default_values(layout: BallotLayout, **overrides: Any) -> dict[str, Any]:
    """Plausible values for every field of `layout`."""
    base: dict[str, Any] = {
        "id": 1,
        "ballotType": 1,
        "creator": CREATOR,
        "startTime": 1_600_000_000,
        "endTime": 1_600_172_800,
        "memo": "test ballot",
        "affectedKey": "0x5555555555555555555555555555555555555555",
        "affectedKeyType": 1,
        "newVotingKey": "0x6666666666666666666666666666666666666666",
        "newPayoutKey": "0x7777777777777777777777777777777777777777",
        "miningKey": "0x8888888888888888888888888888888888888888",
        "proposedValue": 3,
        "contractType": 1,
        "creationTime": 1_599_990_000,
        "amount": 10**18,
        "receiver": "0x9999999999999999999999999999999999999999",
        "burnVotes": 0,
        "freezeVotes": 1,
        "sendVotes": 2,
    }
    if layout.contract_type is ContractType.PROXY:
        base["proposedValue"] = "0xaaaaaaaaaaaaaaaaaaaaaaaaaaaaaaaaaaaaaaaa"
    base.update(overrides)
    return {df.name: base[df.name] for df in layout.data_fields}


@pytest.fixture
def make_log() -> Callable[..., LogEntry]:
    """Factory: `make_log(contract_type, version, block_number=..., log_index=..., **values)`."""

    def _make(
        contract_type: ContractType,
        version: ContractVersion = ContractVersion.V2,
        *,
        block_number: int = 1,
        log_index: int = 0,
        topic0: str | None = None,
        data: bytes | None = None,
        **values: Any,
    ) -> LogEntry:
        layout = get_layout(contract_type, version)
        if data is None:
            data = encode_data(layout, default_values(layout, **values))
        return LogEntry(
            contract_address=ADDRESSES[contract_type],
            topics=(topic0 if topic0 is not None else layout.topic0,),
            data=data,
            block_number=block_number,
            log_index=log_index,
        )

    return _make


# ---------------------------------------------------------------------------
# Capability doubles
# ---------------------------------------------------------------------------


class FakeRpc:
    """In-memory node: a settable tip, logs keyed by address, injectable failures."""

    def __init__(self, tip: int = 100) -> None:
        self.tip = tip
        self.logs: dict[str, list[LogEntry]] = {}
        self.tip_errors: list[Exception] = []
        self.log_errors: dict[str, list[Exception]] = {}
        self.calls: list[tuple[str, BlockRange]] = []

    def add(self, entry: LogEntry) -> None:
        self.logs.setdefault(entry.contract_address.lower(), []).append(entry)

    async def latest_block(self) -> int:
        if self.tip_errors:
            raise self.tip_errors.pop(0)
        return self.tip

    async def get_logs(self, *, address: str, topic0: str, block_range: BlockRange) -> list[LogEntry]:
        key = address.lower()
        self.calls.append((key, block_range))
        pending = self.log_errors.get(key)
        if pending:
            raise pending.pop(0)
        return sorted(
            (
                e
                for e in self.logs.get(key, [])
                if block_range.from_block <= e.block_number <= block_range.to_block
                and e.topics
                and e.topics[0] == topic0
            ),
            key=lambda e: e.position,
        )


class RecordingDispatcher:
    def __init__(self, fail_on: set[int] | None = None) -> None:
        self.received: list[Notification] = []
        self._fail_on = fail_on or set()

    async def dispatch(self, notification: Notification) -> None:
        self.received.append(notification)
        if notification.event.ballot_id in self._fail_on:
            raise DispatchError(f"refused ballot {notification.event.ballot_id}")


@pytest.fixture
def fake_rpc() -> FakeRpc:
    return FakeRpc()


@pytest.fixture
def dispatcher() -> RecordingDispatcher:
    return RecordingDispatcher()


@pytest.fixture
def mock_rpc():
    rpc = AsyncMock()
    rpc.get_logs = AsyncMock(return_value=[])
    rpc.latest_block = AsyncMock(return_value=100)
    rpc.aclose = AsyncMock()
    return rpc


@pytest.fixture
def fixed_clock() -> Callable[[], datetime]:
    return lambda: FIXED_NOW


@pytest.fixture
def make_config() -> Callable[..., WatchConfig]:
    def _make(
        contract_types: tuple[ContractType, ...] = (ContractType.KEYS,),
        *,
        version: ContractVersion = ContractVersion.V2,
        start_mode: StartMode | None = None,
        limit: int | None = None,
        poll_interval: float = 0.01,
    ) -> WatchConfig:
        return WatchConfig(
            network=Network.SOKOL,
            endpoint="http://localhost:8545",
            version=version,
            contract_types=contract_types,
            addresses={ct: ADDRESSES[ct] for ct in contract_types},
            start_mode=start_mode or StartMode.earliest(),
            poll_interval=poll_interval,
            notification_limit=limit,
        )

    return _make
