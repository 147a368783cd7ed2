"""Decoding utilities: ABI word access, typed parsers, and dynamic payload reads."""

from __future__ import annotations

from datetime import datetime, timezone

from eth_utils import to_checksum_address  # type: ignore[attr-defined]

from govwatch.core.errors import Malformed

WORD = 32


def word_at(data: bytes, i: int) -> bytes:
    """Return the i-th 32-byte ABI word; raises Malformed past the end of `data`."""
    start = WORD * i
    end = start + WORD
    if end > len(data):
        raise Malformed(f"word {i} out of range (data has {len(data)} bytes)")
    return data[start:end]


def parse_uint(word: bytes) -> int:
    return int.from_bytes(word, "big", signed=False)


def parse_address(word: bytes) -> str:
    """Parse a left-padded address word into an EIP-55 checksummed address."""
    if any(word[:12]):
        raise Malformed("address word has non-zero padding")
    return to_checksum_address("0x" + word[-20:].hex())


def read_dynamic_bytes(data: bytes, head_index: int) -> bytes:
    """Follow the offset stored in head word `head_index` to a length-prefixed payload."""
    offset = parse_uint(word_at(data, head_index))
    if offset + WORD > len(data):
        raise Malformed(f"dynamic offset {offset} points past the data section")
    length = parse_uint(data[offset : offset + WORD])
    start = offset + WORD
    if start + length > len(data):
        raise Malformed(f"dynamic payload of {length} bytes is truncated")
    return data[start : start + length]


def read_text(data: bytes, head_index: int) -> str:
    raw = read_dynamic_bytes(data, head_index)
    try:
        return raw.decode("utf-8")
    except UnicodeDecodeError as e:
        raise Malformed(f"payload is not valid UTF-8: {e}") from e


def parse_static_field(data: bytes, head_index: int, typ: str) -> int | str:
    """Parse one fixed-size head word according to the declared ABI type."""
    word = word_at(data, head_index)
    if typ == "address":
        return parse_address(word)
    if typ == "uint256":
        return parse_uint(word)
    raise Malformed(f"unsupported ABI type {typ!r}")


def to_utc(seconds: int) -> datetime:
    """Convert a unix timestamp word into an aware UTC datetime."""
    try:
        return datetime.fromtimestamp(seconds, tz=timezone.utc)
    except (OverflowError, OSError, ValueError) as e:
        raise Malformed(f"timestamp {seconds} out of range") from e
