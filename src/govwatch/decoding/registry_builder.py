"""Build `BallotLayout` objects from Solidity event signatures.

The signature is the single source of truth for a layout: the canonical type
list determines topic0 and the parameter order determines each field's head
word. Only non-indexed parameters are supported since ballot events carry
every field in the data section.
"""

from __future__ import annotations

from eth_utils import keccak

from govwatch.core.models import ContractType, ContractVersion

from .specs import BallotLayout, DataFieldSpec


def _split_params(params_str: str) -> list[str]:
    """Split the parameter list on top-level commas."""
    items: list[str] = []
    depth = 0
    buf: list[str] = []
    for ch in params_str:
        if ch == '(':
            depth += 1
        elif ch == ')':
            depth -= 1
        if ch == ',' and depth == 0:
            items.append(''.join(buf).strip())
            buf = []
        else:
            buf.append(ch)
    if buf:
        items.append(''.join(buf).strip())
    return [i for i in items if i]


def _parse_param(p: str, fallback_name: str) -> tuple[str, str]:
    """Parse one parameter fragment into (name, abi_type)."""
    tokens = p.split()
    if 'indexed' in tokens:
        raise ValueError(f"indexed parameters are not supported: {p!r}")
    if not tokens:
        raise ValueError("empty parameter")
    if len(tokens) == 1:
        return (fallback_name, tokens[0])
    return (tokens[-1], ' '.join(tokens[:-1]))


def canonical_signature(signature: str) -> str:
    """Return `Name(type1,type2,...)` with parameter names stripped."""
    name, params = _split_signature(signature)
    types = [_parse_param(part, f"arg{i}")[1] for i, part in enumerate(params)]
    return f"{name}({','.join(types)})"


def _split_signature(signature: str) -> tuple[str, list[str]]:
    sig = signature.strip()
    open_paren = sig.find('(')
    close_paren = sig.rfind(')')
    if open_paren == -1 or close_paren == -1 or close_paren < open_paren:
        raise ValueError(f"Invalid event signature: {signature}")
    return sig[:open_paren].strip(), _split_params(sig[open_paren + 1 : close_paren])


def topic0_of(signature: str) -> str:
    """Lowercased 0x-hex keccak256 of the canonical signature."""
    return '0x' + keccak(text=canonical_signature(signature)).hex()


def layout_from_signature(
    contract_type: ContractType,
    version: ContractVersion,
    signature: str,
) -> BallotLayout:
    """Build a BallotLayout from a Solidity event signature string.

    Example input:
      "BallotCreated(uint256 id, uint256 startTime, uint256 endTime, string memo)"
    """
    _name, params = _split_signature(signature)
    fields = tuple(
        DataFieldSpec(n, idx, t)
        for idx, (n, t) in enumerate(_parse_param(p, f"arg{i}") for i, p in enumerate(params))
    )
    return BallotLayout(
        contract_type=contract_type,
        version=version,
        signature=canonical_signature(signature),
        topic0=topic0_of(signature),
        data_fields=fields,
    )
