"""Ballot layout primitives and registry typing.

Defines lightweight dataclasses to describe how to decode a `BallotCreated` log:
- `DataFieldSpec`: one field of the data section (0-based head word index + ABI type)
- `BallotLayout`: one decoding rule (topic0, ordered data fields) per
  `(ContractType, ContractVersion)`
- `LayoutRegistry`: mapping from `(ContractType, ContractVersion)` → BallotLayout
"""

from __future__ import annotations

from dataclasses import dataclass

from govwatch.core.models import ContractType, ContractVersion

# ABI types the decoder knows how to read. `string` is dynamic: its head word
# holds an offset into the data section.
STATIC_TYPES = frozenset({"uint256", "address"})
DYNAMIC_TYPES = frozenset({"string"})


@dataclass(frozen=True)
class DataFieldSpec:
    """Describe one head word in the data section (0-based word index)."""

    name: str
    word_index: int
    type: str  # "uint256", "address" or "string"

    @property
    def is_dynamic(self) -> bool:
        return self.type in DYNAMIC_TYPES


@dataclass(frozen=True)
class BallotLayout:
    """Event signature and field offsets for one contract type under one version."""

    contract_type: ContractType
    version: ContractVersion
    signature: str  # canonical, e.g. "BallotCreated(uint256,uint256,...)"
    topic0: str  # lowercased 0x-hex keccak of `signature`
    data_fields: tuple[DataFieldSpec, ...]

    def __post_init__(self):
        seen: set[str] = set()
        for i, df in enumerate(self.data_fields):
            if df.type not in STATIC_TYPES | DYNAMIC_TYPES:
                raise ValueError(f"{df.name}: unsupported ABI type {df.type!r}")
            if df.word_index != i:
                raise ValueError(f"{df.name}: word index {df.word_index} out of order")
            if df.name in seen:
                raise ValueError(f"duplicate field {df.name!r} in {self.signature}")
            seen.add(df.name)

    @property
    def key(self) -> tuple[ContractType, ContractVersion]:
        return (self.contract_type, self.version)

    @property
    def head_words(self) -> int:
        """Minimum number of 32-byte words the data section must hold."""
        return len(self.data_fields)


LayoutKey = tuple[ContractType, ContractVersion]

# The full registry keyed by (contract type, version).
LayoutRegistry = dict[LayoutKey, BallotLayout]
