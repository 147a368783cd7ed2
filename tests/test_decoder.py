from datetime import datetime, timezone

import pytest
from conftest import CREATOR, default_values, encode_data
from eth_utils import to_checksum_address

from govwatch.core.errors import Malformed, SignatureMismatch
from govwatch.core.models import (
    BallotType,
    ContractType,
    ContractVersion,
    EmissionFundsBallot,
    KeysBallot,
    KeyType,
    LogEntry,
    ProxyBallot,
    ThresholdBallot,
)
from govwatch.decoding.decoder import decode_ballot
from govwatch.decoding.registries import get_layout

V1_TYPES = [ContractType.KEYS, ContractType.THRESHOLD, ContractType.PROXY]
ALL_TYPES = list(ContractType)


def test_decode_v1_threshold_ballot(make_log) -> None:
    start = datetime(2018, 2, 23, 5, 28, 22, tzinfo=timezone.utc)
    end = datetime(2018, 2, 25, 5, 33, 0, tzinfo=timezone.utc)
    log = make_log(
        ContractType.THRESHOLD,
        ContractVersion.V1,
        id=2,
        startTime=int(start.timestamp()),
        endTime=int(end.timestamp()),
        proposedValue=4,
        memo="*TEST* ballot...",
    )

    event = decode_ballot(log, get_layout(ContractType.THRESHOLD, ContractVersion.V1))

    assert isinstance(event, ThresholdBallot)
    assert event.ballot_id == 2
    assert event.ballot_type is BallotType.THRESHOLD
    assert event.start_time == start
    assert event.end_time == end
    assert event.memo == "*TEST* ballot..."
    assert event.proposed_value == 4
    assert event.creator == to_checksum_address(CREATOR)


def test_decode_v2_keys_ballot(make_log) -> None:
    log = make_log(ContractType.KEYS, ContractVersion.V2, id=7, ballotType=3, affectedKeyType=2)

    event = decode_ballot(log, get_layout(ContractType.KEYS, ContractVersion.V2))

    assert isinstance(event, KeysBallot)
    assert event.ballot_id == 7
    assert event.ballot_type is BallotType.SWAP_KEY
    assert event.affected_key_type is KeyType.VOTING_KEY
    assert event.proposed_value == to_checksum_address("0x5555555555555555555555555555555555555555")
    assert event.new_voting_key == to_checksum_address("0x6666666666666666666666666666666666666666")
    assert event.new_payout_key == to_checksum_address("0x7777777777777777777777777777777777777777")
    assert event.mining_key == to_checksum_address("0x8888888888888888888888888888888888888888")


def test_decode_v1_keys_ballot_has_no_new_keys(make_log) -> None:
    log = make_log(ContractType.KEYS, ContractVersion.V1, ballotType=1)

    event = decode_ballot(log, get_layout(ContractType.KEYS, ContractVersion.V1))

    assert isinstance(event, KeysBallot)
    assert event.ballot_type is BallotType.ADD_KEY
    assert event.new_voting_key is None
    assert event.new_payout_key is None


def test_decode_v2_proxy_ballot(make_log) -> None:
    log = make_log(ContractType.PROXY, ContractVersion.V2, ballotType=5, contractType=4)

    event = decode_ballot(log, get_layout(ContractType.PROXY, ContractVersion.V2))

    assert isinstance(event, ProxyBallot)
    assert event.proposed_value == to_checksum_address("0xaaaaaaaaaaaaaaaaaaaaaaaaaaaaaaaaaaaaaaaa")
    assert event.target_contract_type == 4


def test_decode_v2_emission_funds_ballot(make_log) -> None:
    log = make_log(ContractType.EMISSION_FUNDS, ContractVersion.V2, ballotType=6, memo="fund the thing")

    event = decode_ballot(log, get_layout(ContractType.EMISSION_FUNDS, ContractVersion.V2))

    assert isinstance(event, EmissionFundsBallot)
    assert event.ballot_type is BallotType.EMISSION
    assert event.memo == "fund the thing"
    proposal = event.proposed_value
    assert proposal.amount == 10**18
    assert proposal.receiver == to_checksum_address("0x9999999999999999999999999999999999999999")
    assert (proposal.burn_votes, proposal.freeze_votes, proposal.send_votes) == (0, 1, 2)
    assert proposal.creation_time == datetime.fromtimestamp(1_599_990_000, tz=timezone.utc)


def test_decode_memo_with_multibyte_text(make_log) -> None:
    memo = "ballot ✓ " * 10
    log = make_log(ContractType.THRESHOLD, ContractVersion.V2, ballotType=4, memo=memo)

    event = decode_ballot(log, get_layout(ContractType.THRESHOLD, ContractVersion.V2))

    assert event.memo == memo


@pytest.mark.parametrize("contract_type", V1_TYPES)
def test_v1_log_rejected_by_v2_decoder(make_log, contract_type: ContractType) -> None:
    log = make_log(contract_type, ContractVersion.V1)

    with pytest.raises(SignatureMismatch):
        decode_ballot(log, get_layout(contract_type, ContractVersion.V2))


@pytest.mark.parametrize("contract_type", V1_TYPES)
def test_v2_log_rejected_by_v1_decoder(make_log, contract_type: ContractType) -> None:
    log = make_log(contract_type, ContractVersion.V2)

    with pytest.raises(SignatureMismatch):
        decode_ballot(log, get_layout(contract_type, ContractVersion.V1))


@pytest.mark.parametrize("contract_type", ALL_TYPES)
def test_v2_log_rejected_by_other_contract_decoders(make_log, contract_type: ContractType) -> None:
    log = make_log(contract_type, ContractVersion.V2)
    for other in ALL_TYPES:
        if other is contract_type:
            continue
        with pytest.raises(SignatureMismatch):
            decode_ballot(log, get_layout(other, ContractVersion.V2))


def test_missing_topics_is_signature_mismatch() -> None:
    log = LogEntry(contract_address="0x1", topics=(), data=b"", block_number=1, log_index=0)

    with pytest.raises(SignatureMismatch):
        decode_ballot(log, get_layout(ContractType.KEYS, ContractVersion.V2))


def test_truncated_head_is_malformed(make_log) -> None:
    layout = get_layout(ContractType.PROXY, ContractVersion.V2)
    full = encode_data(layout, default_values(layout))
    log = make_log(ContractType.PROXY, ContractVersion.V2, data=full[: 32 * (layout.head_words - 1)])

    with pytest.raises(Malformed):
        decode_ballot(log, layout)


def test_truncated_memo_is_malformed(make_log) -> None:
    layout = get_layout(ContractType.THRESHOLD, ContractVersion.V1)
    full = encode_data(layout, default_values(layout, memo="x" * 40))
    log = make_log(ContractType.THRESHOLD, ContractVersion.V1, data=full[:-32])

    with pytest.raises(Malformed):
        decode_ballot(log, layout)


def test_non_utf8_memo_is_malformed(make_log) -> None:
    layout = get_layout(ContractType.THRESHOLD, ContractVersion.V2)
    data = encode_data(layout, default_values(layout, ballotType=4, memo=b"\xff\xfe\xfd"))
    log = make_log(ContractType.THRESHOLD, ContractVersion.V2, data=data)

    with pytest.raises(Malformed):
        decode_ballot(log, layout)


def test_unknown_ballot_type_is_malformed(make_log) -> None:
    log = make_log(ContractType.KEYS, ContractVersion.V2, ballotType=42)

    with pytest.raises(Malformed):
        decode_ballot(log, get_layout(ContractType.KEYS, ContractVersion.V2))


def test_dirty_address_padding_is_malformed(make_log) -> None:
    layout = get_layout(ContractType.THRESHOLD, ContractVersion.V1)
    data = bytearray(encode_data(layout, default_values(layout)))
    creator_word = [df.word_index for df in layout.data_fields if df.name == "creator"][0]
    data[32 * creator_word] = 0x01
    log = make_log(ContractType.THRESHOLD, ContractVersion.V1, data=bytes(data))

    with pytest.raises(Malformed):
        decode_ballot(log, layout)
