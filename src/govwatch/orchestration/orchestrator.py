"""Startup wiring: configuration validation and the long-running watch.

This module provides two layers:

1) Builders (`build_watch_config`, `build_delivery_config`, `build_dispatcher`):
   - Turn CLI selections and `Settings` into immutable config values.
   - Raise `ConfigError` for every inconsistency, before any scanning begins.

2) `watch(...)`:
   - Wires concrete implementations (RPC, dispatchers) into `ScanEngine`.
   - Manages lifecycle (closing the RPC client).
"""

from __future__ import annotations

import asyncio
import logging
from collections.abc import Iterable

from eth_utils import is_address, to_checksum_address

from govwatch.clients.rpc import RPC
from govwatch.core.config import DeliveryConfig, SmtpConfig, StartMode, WatchConfig
from govwatch.core.errors import ConfigError
from govwatch.core.interfaces import IDispatcher, IRpcClient
from govwatch.core.models import ContractType, ContractVersion, Network
from govwatch.core.use_cases.scan import ScanEngine, ScanStats
from govwatch.decoding.registries import get_layout
from govwatch.notify.dispatchers import CompositeDispatcher, EmailDispatcher, LogDispatcher
from govwatch.settings import Settings

log = logging.getLogger(__name__)

DEFAULT_BLOCK_TIME_S = 30.0


# ---------------------------------------------------------------------------
# Builders
# ---------------------------------------------------------------------------


def build_watch_config(
    *,
    settings: Settings,
    network: Network,
    version: ContractVersion,
    contract_types: Iterable[ContractType],
    start_mode: StartMode,
    block_time: float = DEFAULT_BLOCK_TIME_S,
    notification_limit: int | None = None,
) -> WatchConfig:
    """Resolve endpoint and contract addresses for the selected combination."""
    if not network.supports(version):
        raise ConfigError(f"the {network.value} network has no {version.value} contracts")

    selected = set(contract_types)
    if not selected:
        raise ConfigError("select at least one contract to monitor")
    if block_time <= 0:
        raise ConfigError(f"block time must be positive, got {block_time}")
    if notification_limit is not None and notification_limit < 1:
        raise ConfigError(f"notification limit must be >= 1, got {notification_limit}")

    endpoint = settings.rpc_endpoint(network)
    if not endpoint:
        raise ConfigError(f"missing env var {network.value.upper()}_RPC_ENDPOINT")

    addresses: dict[ContractType, str] = {}
    ordered = tuple(ct for ct in ContractType if ct in selected)
    for contract_type in ordered:
        get_layout(contract_type, version)  # raises for unsupported pairs
        addr = settings.contract_address(network, version, contract_type)
        env_var = f"{network.value}_{version.value}_{contract_type.value}_CONTRACT_ADDRESS".upper()
        if not addr:
            raise ConfigError(f"missing env var {env_var}")
        if not is_address(addr):
            raise ConfigError(f"{env_var} is not a valid address: {addr!r}")
        addresses[contract_type] = to_checksum_address(addr)

    return WatchConfig(
        network=network,
        endpoint=endpoint,
        version=version,
        contract_types=ordered,
        addresses=addresses,
        start_mode=start_mode,
        poll_interval=block_time,
        notification_limit=notification_limit,
    )


def build_delivery_config(
    *,
    settings: Settings,
    email: bool,
    log_emails: bool,
    log_file: bool,
) -> DeliveryConfig:
    """Collect delivery options; SMTP settings are required only with email enabled."""
    smtp: SmtpConfig | None = None
    if email:
        required = {
            "SMTP_HOST_DOMAIN": settings.smtp_host_domain,
            "SMTP_USERNAME": settings.smtp_username,
            "SMTP_PASSWORD": settings.smtp_password,
            "OUTGOING_EMAIL_ADDRESS": settings.outgoing_email_address,
        }
        missing = [k for k, v in required.items() if not v]
        if missing:
            raise ConfigError(f"--email requires env vars: {', '.join(missing)}")
        smtp = SmtpConfig(
            host=settings.smtp_host_domain,  # type: ignore[arg-type]
            port=settings.smtp_port or 587,
            username=settings.smtp_username,  # type: ignore[arg-type]
            password=settings.smtp_password,  # type: ignore[arg-type]
            outgoing_address=settings.outgoing_email_address,  # type: ignore[arg-type]
        )
    return DeliveryConfig(
        email=email,
        log_emails=log_emails,
        log_file=log_file,
        recipients=settings.recipients(),
        smtp=smtp,
    )


def build_dispatcher(delivery: DeliveryConfig) -> IDispatcher:
    """Log sink always; email sink when enabled."""
    dispatchers: list[IDispatcher] = [LogDispatcher(log_emails=delivery.log_emails)]
    if delivery.email:
        if delivery.smtp is None:
            raise ConfigError("email delivery enabled without SMTP settings")
        dispatchers.append(
            EmailDispatcher(delivery.smtp, delivery.recipients, subject=delivery.subject)
        )
    return CompositeDispatcher(dispatchers)


# ---------------------------------------------------------------------------
# Long-running watch
# ---------------------------------------------------------------------------


async def watch(
    *,
    config: WatchConfig,
    dispatcher: IDispatcher,
    cancel: asyncio.Event,
    rpc: IRpcClient | None = None,
) -> ScanStats:
    """Run the scan engine until cancelled or the notification limit is reached.

    When `rpc` is not given an HTTP client for `config.endpoint` is created and
    closed on exit.
    """
    if rpc is not None:
        return await _run(config, rpc, dispatcher, cancel)
    client = RPC(config.endpoint)
    try:
        return await _run(config, client, dispatcher, cancel)
    finally:
        await client.aclose()


async def _run(
    config: WatchConfig,
    rpc: IRpcClient,
    dispatcher: IDispatcher,
    cancel: asyncio.Event,
) -> ScanStats:
    engine = ScanEngine(config=config, rpc=rpc, dispatcher=dispatcher, cancel=cancel)
    log.info("starting govwatch")
    log.info("  Network: %s (%s contracts)", config.network.value, config.version.value)
    log.info("  RPC: %s", config.endpoint)
    for contract in engine.contracts:
        log.info("  %s: %s", contract.layout.contract_type.contract_name, contract.address)
    log.info("  Start: %s, block time %.1fs", config.start_mode, config.poll_interval)
    return await engine.run()
