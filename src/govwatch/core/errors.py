"""Error taxonomy.

Only `ConfigError` is fatal, and only at startup. Everything else is contained
by the scan engine: a tick (`NetworkError`, `RpcError`), a single log entry
(`DecodeError`) or a single notification (`DispatchError`).
"""

from __future__ import annotations


class GovWatchError(Exception):
    """Base class for all govwatch errors."""

    def __init__(self, message: str | None = None):
        self.message = message or self.get_default_message()
        super().__init__(self.message)

    def get_default_message(self) -> str:
        return "error.unknown"


class ConfigError(GovWatchError):
    """Missing or inconsistent configuration detected before scanning starts."""

    def get_default_message(self) -> str:
        return "error.config.invalid"


class NetworkError(GovWatchError):
    """Transient transport failure talking to the node; retried next tick."""

    def get_default_message(self) -> str:
        return "error.rpc.unreachable"


class RpcError(GovWatchError):
    """Malformed or unexpected JSON-RPC response."""

    def get_default_message(self) -> str:
        return "error.rpc.failed"


class DecodeError(GovWatchError):
    """A single log entry could not be decoded into a ballot event."""

    def get_default_message(self) -> str:
        return "error.decode.failed"


class SignatureMismatch(DecodeError):
    """topic0 does not match the decoder's event signature."""

    def get_default_message(self) -> str:
        return "error.decode.signature_mismatch"


class Malformed(DecodeError):
    """Data payload is truncated or carries invalid values."""

    def get_default_message(self) -> str:
        return "error.decode.malformed"


class DispatchError(GovWatchError):
    """Delivery of one notification failed; not retried."""

    def get_default_message(self) -> str:
        return "error.dispatch.failed"
