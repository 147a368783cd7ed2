"""Ballot event decoder driven by `BallotLayout` tables.

This module translates a raw `LogEntry` into a typed `BallotEvent`. The
layout (and thus the event signature and word offsets) is chosen by the
caller from the `(ContractType, ContractVersion)` registry; nothing is
inferred from the shape of the data.
"""

from __future__ import annotations

from collections.abc import Callable, Mapping
from typing import Any

from govwatch.core.errors import Malformed, SignatureMismatch
from govwatch.core.models import (
    BallotEvent,
    BallotType,
    ContractType,
    EmissionFundsBallot,
    EmissionFundsProposal,
    KeysBallot,
    KeyType,
    LogEntry,
    ProxyBallot,
    ThresholdBallot,
)
from govwatch.decoding.specs import BallotLayout
from govwatch.decoding.utils import WORD, parse_static_field, read_text, to_utc

# Ballot type implied by a contract whose layout carries no `ballotType` word.
_IMPLIED_BALLOT_TYPE = {
    ContractType.THRESHOLD: BallotType.THRESHOLD,
    ContractType.PROXY: BallotType.PROXY,
    ContractType.EMISSION_FUNDS: BallotType.EMISSION,
}


# ---------- helper functions ----------


def _enum_value(enum_cls: type[BallotType] | type[KeyType], raw: int, field: str) -> Any:
    try:
        return enum_cls(raw)
    except ValueError as e:
        raise Malformed(f"{field}={raw} is not a valid {enum_cls.__name__}") from e


def _read_fields(log: LogEntry, layout: BallotLayout) -> dict[str, Any]:
    data = log.data
    if len(data) < WORD * layout.head_words:
        raise Malformed(
            f"data holds {len(data)} bytes, {layout.signature} needs at least {WORD * layout.head_words}"
        )
    return {
        df.name: read_text(data, df.word_index) if df.is_dynamic else parse_static_field(data, df.word_index, df.type)
        for df in layout.data_fields
    }


def _common(values: Mapping[str, Any], contract_type: ContractType) -> dict[str, Any]:
    if "ballotType" in values:
        ballot_type = _enum_value(BallotType, values["ballotType"], "ballotType")
    else:
        ballot_type = _IMPLIED_BALLOT_TYPE[contract_type]
    return {
        "ballot_id": values["id"],
        "ballot_type": ballot_type,
        "start_time": to_utc(values["startTime"]),
        "end_time": to_utc(values["endTime"]),
        "creator": values["creator"],
        "memo": values["memo"],
    }


# ---------- per-contract builders ----------


def _keys(values: Mapping[str, Any]) -> KeysBallot:
    return KeysBallot(
        **_common(values, ContractType.KEYS),
        proposed_value=values["affectedKey"],
        affected_key_type=_enum_value(KeyType, values["affectedKeyType"], "affectedKeyType"),
        mining_key=values["miningKey"],
        new_voting_key=values.get("newVotingKey"),
        new_payout_key=values.get("newPayoutKey"),
    )


def _threshold(values: Mapping[str, Any]) -> ThresholdBallot:
    return ThresholdBallot(
        **_common(values, ContractType.THRESHOLD),
        proposed_value=values["proposedValue"],
    )


def _proxy(values: Mapping[str, Any]) -> ProxyBallot:
    return ProxyBallot(
        **_common(values, ContractType.PROXY),
        proposed_value=values["proposedValue"],
        target_contract_type=values["contractType"],
    )


def _emission_funds(values: Mapping[str, Any]) -> EmissionFundsBallot:
    return EmissionFundsBallot(
        **_common(values, ContractType.EMISSION_FUNDS),
        proposed_value=EmissionFundsProposal(
            creation_time=to_utc(values["creationTime"]),
            amount=values["amount"],
            receiver=values["receiver"],
            burn_votes=values["burnVotes"],
            freeze_votes=values["freezeVotes"],
            send_votes=values["sendVotes"],
        ),
    )


_BUILDERS: dict[ContractType, Callable[[Mapping[str, Any]], BallotEvent]] = {
    ContractType.KEYS: _keys,
    ContractType.THRESHOLD: _threshold,
    ContractType.PROXY: _proxy,
    ContractType.EMISSION_FUNDS: _emission_funds,
}


# ---------- main decoder ----------


def decode_ballot(log: LogEntry, layout: BallotLayout) -> BallotEvent:
    """Decode one raw log into a `BallotEvent`.

    Raises
    ------
    SignatureMismatch
        topic0 is absent or differs from `layout.topic0`.
    Malformed
        The data section is too short, a dynamic payload is truncated or not
        UTF-8, or an enum/timestamp word is out of range.
    """
    if not log.topics or log.topics[0].lower() != layout.topic0:
        got = log.topics[0] if log.topics else None
        raise SignatureMismatch(
            f"log {log.block_number}:{log.log_index} topic0 {got} does not match "
            f"{layout.contract_type.value}/{layout.version.value} signature {layout.topic0}"
        )
    values = _read_fields(log, layout)
    return _BUILDERS[layout.contract_type](values)
