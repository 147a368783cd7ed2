import os

from pydantic import field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

from govwatch.core.models import ContractType, ContractVersion, Network


class Settings(BaseSettings):
    """
    Environment settings using Pydantic Settings.

    Attributes
    ----------
    core_rpc_endpoint, sokol_rpc_endpoint, xdai_rpc_endpoint : str | None
        JSON-RPC endpoint per network.
    <network>_<version>_<type>_contract_address : str | None
        Deployed governance contract addresses, one per valid combination.
        XDai only runs V2 contracts; the emission-funds contract only exists in V2.
    email_recipients : str | None
        Comma separated list of notification recipients.
    smtp_host_domain, smtp_port, smtp_username, smtp_password, outgoing_email_address
        SMTP delivery settings, required only with ``--email``.
    """

    core_rpc_endpoint: str | None = None
    sokol_rpc_endpoint: str | None = None
    xdai_rpc_endpoint: str | None = None

    core_v1_keys_contract_address: str | None = None
    core_v1_threshold_contract_address: str | None = None
    core_v1_proxy_contract_address: str | None = None
    core_v2_keys_contract_address: str | None = None
    core_v2_threshold_contract_address: str | None = None
    core_v2_proxy_contract_address: str | None = None
    core_v2_emission_contract_address: str | None = None

    sokol_v1_keys_contract_address: str | None = None
    sokol_v1_threshold_contract_address: str | None = None
    sokol_v1_proxy_contract_address: str | None = None
    sokol_v2_keys_contract_address: str | None = None
    sokol_v2_threshold_contract_address: str | None = None
    sokol_v2_proxy_contract_address: str | None = None
    sokol_v2_emission_contract_address: str | None = None

    xdai_v2_keys_contract_address: str | None = None
    xdai_v2_threshold_contract_address: str | None = None
    xdai_v2_proxy_contract_address: str | None = None
    xdai_v2_emission_contract_address: str | None = None

    email_recipients: str | None = None
    smtp_host_domain: str | None = None
    smtp_port: int | None = 587
    smtp_username: str | None = None
    smtp_password: str | None = None
    outgoing_email_address: str | None = None

    model_config = SettingsConfigDict(
        env_file=os.getenv("GOVWATCH_ENV_FILE", ".env"),
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )

    @field_validator("*", mode="before")
    @classmethod
    def _blank_is_unset(cls, v):
        if isinstance(v, str) and not v.strip():
            return None
        return v

    def rpc_endpoint(self, network: Network) -> str | None:
        return getattr(self, f"{network.value}_rpc_endpoint")

    def contract_address(
        self,
        network: Network,
        version: ContractVersion,
        contract_type: ContractType,
    ) -> str | None:
        """Return the configured address, or None when the combination has none."""
        key = f"{network.value}_{version.value}_{contract_type.value}_contract_address"
        return getattr(self, key, None)

    def recipients(self) -> tuple[str, ...]:
        return tuple(r.strip() for r in (self.email_recipients or "").split(",") if r.strip())
