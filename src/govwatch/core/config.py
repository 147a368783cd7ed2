"""Immutable run configuration.

This module provides:
- `StartMode`: where the first scanned range begins
- `WatchConfig`: resolved network, endpoint, contracts and polling options
- `SmtpConfig` / `DeliveryConfig`: delivery-side settings
"""

from __future__ import annotations

from collections.abc import Mapping
from dataclasses import dataclass, field
from enum import Enum

from govwatch.core.models import ContractType, ContractVersion, Network


class StartKind(str, Enum):
    EARLIEST = "earliest"
    LATEST = "latest"
    START = "start"
    TAIL = "tail"


@dataclass(frozen=True)
class StartMode:
    """Where the first scanned range begins (`--earliest|--latest|--start=N|--tail=N`)."""

    kind: StartKind
    value: int = 0

    def __post_init__(self) -> None:
        if self.value < 0:
            raise ValueError(f"{self.kind.value} value must be >= 0, got {self.value}")

    @classmethod
    def earliest(cls) -> StartMode:
        return cls(StartKind.EARLIEST)

    @classmethod
    def latest(cls) -> StartMode:
        return cls(StartKind.LATEST)

    @classmethod
    def start(cls, block: int) -> StartMode:
        return cls(StartKind.START, block)

    @classmethod
    def tail(cls, n: int) -> StartMode:
        return cls(StartKind.TAIL, n)

    def __str__(self) -> str:
        if self.kind in (StartKind.START, StartKind.TAIL):
            return f"{self.kind.value}={self.value}"
        return self.kind.value


@dataclass(frozen=True)
class WatchConfig:
    """Resolved scanning configuration, built once at startup."""

    network: Network
    endpoint: str
    version: ContractVersion
    contract_types: tuple[ContractType, ...]
    addresses: Mapping[ContractType, str]
    start_mode: StartMode
    poll_interval: float = 30.0
    notification_limit: int | None = None


@dataclass(frozen=True)
class SmtpConfig:
    host: str
    port: int
    username: str
    password: str
    outgoing_address: str
    timeout_s: int = 20


@dataclass(frozen=True)
class DeliveryConfig:
    """Delivery-side switches (`--email`, `--log-emails`, `--log-file`)."""

    email: bool = False
    log_emails: bool = False
    log_file: bool = False
    recipients: tuple[str, ...] = ()
    smtp: SmtpConfig | None = None
    subject: str = field(default="POA Network Governance Notification")
