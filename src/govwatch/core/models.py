"""Core data models for ballot scanning.

This module defines:
- `BlockRange`: inclusive span of blocks scanned in one tick.
- `LogEntry`: raw RPC log record consumed by the decoder.
- Variant enums for contract type, hardfork version and network.
- `BallotEvent` variants: one decoded `BallotCreated` log per contract type.
- `Notification`: the immutable unit handed to delivery.

Design notes
------------
- Every model is frozen; nothing here survives a process restart.
- Ordering of logs and notifications is always `(block_number, log_index)`.
"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime
from enum import Enum, IntEnum
from typing import ClassVar

# === Variant sets ===


class ContractType(str, Enum):
    """Governance contracts that emit ballot events (declaration order = scan order)."""

    KEYS = "keys"
    THRESHOLD = "threshold"
    PROXY = "proxy"
    EMISSION_FUNDS = "emission"

    @property
    def contract_name(self) -> str:
        return _CONTRACT_NAMES[self]


_CONTRACT_NAMES = {
    ContractType.KEYS: "VotingToChangeKeys.sol",
    ContractType.THRESHOLD: "VotingToChangeMinThreshold.sol",
    ContractType.PROXY: "VotingToChangeProxyAddress.sol",
    ContractType.EMISSION_FUNDS: "VotingToManageEmissionFunds.sol",
}


class ContractVersion(str, Enum):
    """Hardfork version; selects event signature and field layout."""

    V1 = "v1"
    V2 = "v2"


class Network(str, Enum):
    CORE = "core"
    SOKOL = "sokol"
    XDAI = "xdai"

    def supports(self, version: ContractVersion) -> bool:
        """XDai was launched after the hardfork and only runs V2 contracts."""
        return not (self is Network.XDAI and version is ContractVersion.V1)


class BallotType(IntEnum):
    INVALID_KEY = 0
    ADD_KEY = 1
    REMOVE_KEY = 2
    SWAP_KEY = 3
    THRESHOLD = 4
    PROXY = 5
    EMISSION = 6


class KeyType(IntEnum):
    INVALID_KEY = 0
    MINING_KEY = 1
    VOTING_KEY = 2
    PAYOUT_KEY = 3


# === Scan units ===


@dataclass(slots=True, frozen=True)
class BlockRange:
    """Inclusive block span `[from_block, to_block]`."""

    from_block: int
    to_block: int

    def __post_init__(self) -> None:
        if self.from_block < 0 or self.from_block > self.to_block:
            raise ValueError(f"invalid block range {self.from_block}..{self.to_block}")

    def __len__(self) -> int:
        return self.to_block - self.from_block + 1

    def __str__(self) -> str:
        return f"{self.from_block}..{self.to_block}"


@dataclass(slots=True, frozen=True)
class LogEntry:
    """Raw log as fetched from RPC, minimally normalized."""

    contract_address: str  # lowercased 0x...
    topics: tuple[str, ...]  # lowercased 0x...
    data: bytes
    block_number: int
    log_index: int
    tx_hash: str = ""

    @property
    def position(self) -> tuple[int, int]:
        return (self.block_number, self.log_index)


# === Decoded ballots ===


@dataclass(slots=True, frozen=True, kw_only=True)
class BallotEvent:
    """Fields shared by every decoded `BallotCreated` event."""

    contract_type: ClassVar[ContractType]

    ballot_id: int
    ballot_type: BallotType
    start_time: datetime
    end_time: datetime
    creator: str
    memo: str


@dataclass(slots=True, frozen=True, kw_only=True)
class KeysBallot(BallotEvent):
    contract_type: ClassVar[ContractType] = ContractType.KEYS

    proposed_value: str  # affected key
    affected_key_type: KeyType
    mining_key: str
    new_voting_key: str | None = None
    new_payout_key: str | None = None


@dataclass(slots=True, frozen=True, kw_only=True)
class ThresholdBallot(BallotEvent):
    contract_type: ClassVar[ContractType] = ContractType.THRESHOLD

    proposed_value: int


@dataclass(slots=True, frozen=True, kw_only=True)
class ProxyBallot(BallotEvent):
    contract_type: ClassVar[ContractType] = ContractType.PROXY

    proposed_value: str  # proposed proxy address
    target_contract_type: int


@dataclass(slots=True, frozen=True, kw_only=True)
class EmissionFundsProposal:
    """Structured payload of an emission-funds ballot."""

    creation_time: datetime
    amount: int
    receiver: str
    burn_votes: int
    freeze_votes: int
    send_votes: int


@dataclass(slots=True, frozen=True, kw_only=True)
class EmissionFundsBallot(BallotEvent):
    contract_type: ClassVar[ContractType] = ContractType.EMISSION_FUNDS

    proposed_value: EmissionFundsProposal


# === Delivery unit ===


@dataclass(slots=True, frozen=True, kw_only=True)
class Notification:
    """One decoded ballot plus the context it was found in."""

    event: BallotEvent
    network: Network
    endpoint: str
    block_number: int
    log_index: int
    version: ContractVersion
    generated_at: datetime

    @property
    def contract_type(self) -> ContractType:
        return self.event.contract_type

    def email_text(self) -> str:
        """Human-readable body used by the email and log dispatchers."""
        ev = self.event
        lines = [
            f"Network: {self.network.value}",
            f"RPC Endpoint: {self.endpoint}",
            f"Contract: {ev.contract_type.contract_name} ({self.version.value})",
            f"Block Number: {self.block_number}",
            f"Ballot ID: {ev.ballot_id}",
            f"Ballot Type: {ev.ballot_type.name}",
            f"Voting Start Time: {ev.start_time.isoformat()}",
            f"Voting End Time: {ev.end_time.isoformat()}",
        ]
        match ev:
            case KeysBallot():
                lines.append(f"Affected Key: {ev.proposed_value}")
                lines.append(f"Affected Key Type: {ev.affected_key_type.name}")
                if ev.new_voting_key is not None:
                    lines.append(f"New Voting Key: {ev.new_voting_key}")
                if ev.new_payout_key is not None:
                    lines.append(f"New Payout Key: {ev.new_payout_key}")
                lines.append(f"Mining Key: {ev.mining_key}")
            case ThresholdBallot():
                lines.append(f"Proposed New Min. Threshold: {ev.proposed_value}")
            case ProxyBallot():
                lines.append(f"Proposed New Proxy Address: {ev.proposed_value}")
                lines.append(f"Target Contract Type: {ev.target_contract_type}")
            case EmissionFundsBallot():
                p = ev.proposed_value
                lines.append(f"Creation Time: {p.creation_time.isoformat()}")
                lines.append(f"Amount: {p.amount}")
                lines.append(f"Receiver: {p.receiver}")
                lines.append(f"Burn Votes: {p.burn_votes}")
                lines.append(f"Freeze Votes: {p.freeze_votes}")
                lines.append(f"Send Votes: {p.send_votes}")
        lines.append(f"Ballot Creator: {ev.creator}")
        lines.append(f"Memo: {ev.memo}")
        return "\n".join(lines) + "\n"
