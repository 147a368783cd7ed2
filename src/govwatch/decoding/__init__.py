"""Ballot event decoding.

This package provides:
- Layout types (BallotLayout, DataFieldSpec)
- Layout construction from Solidity event signatures
- The registry of V1/V2 ballot layouts per contract type
- The decoder that turns raw logs into typed ballot events
"""

from govwatch.decoding.decoder import decode_ballot
from govwatch.decoding.registries import BALLOT_SIGNATURES, get_layout, make_layout_registry
from govwatch.decoding.registry_builder import layout_from_signature, topic0_of
from govwatch.decoding.specs import BallotLayout, DataFieldSpec, LayoutRegistry

__all__ = [
    "decode_ballot",
    "BALLOT_SIGNATURES",
    "get_layout",
    "make_layout_registry",
    "layout_from_signature",
    "topic0_of",
    "BallotLayout",
    "DataFieldSpec",
    "LayoutRegistry",
]
