"""Core data models, configuration, errors and the scan engine.

This package provides:
- Data models (BlockRange, LogEntry, BallotEvent variants, Notification)
- Configuration classes (WatchConfig, StartMode, DeliveryConfig)
- The block-range cursor and the scan engine use case
"""

from govwatch.core.config import DeliveryConfig, SmtpConfig, StartKind, StartMode, WatchConfig
from govwatch.core.cursor import ChainCursor
from govwatch.core.models import (
    BallotEvent,
    BallotType,
    BlockRange,
    ContractType,
    ContractVersion,
    EmissionFundsBallot,
    EmissionFundsProposal,
    KeysBallot,
    KeyType,
    LogEntry,
    Network,
    Notification,
    ProxyBallot,
    ThresholdBallot,
)

__all__ = [
    "DeliveryConfig",
    "SmtpConfig",
    "StartKind",
    "StartMode",
    "WatchConfig",
    "ChainCursor",
    "BallotEvent",
    "BallotType",
    "BlockRange",
    "ContractType",
    "ContractVersion",
    "EmissionFundsBallot",
    "EmissionFundsProposal",
    "KeysBallot",
    "KeyType",
    "LogEntry",
    "Network",
    "Notification",
    "ProxyBallot",
    "ThresholdBallot",
]
