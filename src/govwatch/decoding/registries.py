"""Ballot layouts for every supported (contract type, hardfork version) pair.

V2 contracts share one field prefix (`id, ballotType, creator, startTime,
endTime, memo`) followed by the type-specific values; V1 contracts put the
memo last. The emission-funds contract only exists under V2.

Example
-------
>>> from govwatch.decoding.registries import get_layout
>>> layout = get_layout(ContractType.THRESHOLD, ContractVersion.V1)
"""

from __future__ import annotations

from govwatch.core.errors import ConfigError
from govwatch.core.models import ContractType, ContractVersion

from .registry_builder import layout_from_signature
from .specs import BallotLayout, LayoutRegistry

_V2_PREFIX = "uint256 id, uint256 ballotType, address creator, uint256 startTime, uint256 endTime, string memo"

BALLOT_SIGNATURES: dict[tuple[ContractType, ContractVersion], str] = {
    # -------------------------
    # V1 (pre-hardfork)
    # -------------------------
    (ContractType.KEYS, ContractVersion.V1): (
        "BallotCreated(uint256 id, uint256 startTime, uint256 endTime, address affectedKey, "
        "uint256 affectedKeyType, address miningKey, uint256 ballotType, address creator, string memo)"
    ),
    (ContractType.THRESHOLD, ContractVersion.V1): (
        "BallotCreated(uint256 id, uint256 startTime, uint256 endTime, uint256 proposedValue, "
        "address creator, string memo)"
    ),
    (ContractType.PROXY, ContractVersion.V1): (
        "BallotCreated(uint256 id, uint256 startTime, uint256 endTime, address proposedValue, "
        "uint256 contractType, address creator, string memo)"
    ),
    # -------------------------
    # V2 (post-hardfork)
    # -------------------------
    (ContractType.KEYS, ContractVersion.V2): (
        f"BallotCreated({_V2_PREFIX}, address affectedKey, uint256 affectedKeyType, "
        "address newVotingKey, address newPayoutKey, address miningKey)"
    ),
    (ContractType.THRESHOLD, ContractVersion.V2): (
        f"BallotCreated({_V2_PREFIX}, uint256 proposedValue)"
    ),
    (ContractType.PROXY, ContractVersion.V2): (
        f"BallotCreated({_V2_PREFIX}, address proposedValue, uint256 contractType)"
    ),
    (ContractType.EMISSION_FUNDS, ContractVersion.V2): (
        f"BallotCreated({_V2_PREFIX}, uint256 creationTime, uint256 amount, address receiver, "
        "uint256 burnVotes, uint256 freezeVotes, uint256 sendVotes)"
    ),
}


def make_layout_registry() -> LayoutRegistry:
    """Return the registry of all supported ballot layouts."""
    reg: LayoutRegistry = {}
    for (contract_type, version), signature in BALLOT_SIGNATURES.items():
        layout = layout_from_signature(contract_type, version, signature)
        reg[layout.key] = layout
    return reg


_DEFAULT_REGISTRY = make_layout_registry()


def get_layout(
    contract_type: ContractType,
    version: ContractVersion,
    registry: LayoutRegistry | None = None,
) -> BallotLayout:
    """Look up the layout for a pair; a missing pair is a configuration error."""
    reg = _DEFAULT_REGISTRY if registry is None else registry
    layout = reg.get((contract_type, version))
    if layout is None:
        raise ConfigError(
            f"no {version.value} ballot layout for the {contract_type.value} contract"
        )
    return layout
