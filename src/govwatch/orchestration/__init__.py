"""Wiring of configuration, RPC client, dispatchers and the scan engine.

This package provides:
- `build_watch_config`: CLI selections + environment → immutable WatchConfig
- `build_delivery_config` / `build_dispatcher`: delivery-side wiring
- `watch`: run the scan engine against a live node until cancelled
"""

from govwatch.orchestration.orchestrator import (
    build_delivery_config,
    build_dispatcher,
    build_watch_config,
    watch,
)

__all__ = [
    "build_delivery_config",
    "build_dispatcher",
    "build_watch_config",
    "watch",
]
