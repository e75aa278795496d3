from __future__ import annotations

"""
Contract-call encoding for the engine (Python SDK)

Only Solidity ABI v2 head/tail encoding is needed: function selector (first four
bytes of keccak256 over the canonical signature) followed by `eth_abi.encode` of the
arguments. Canonical signatures are written out in full at each call site so the
encoded bytes can be audited against the contract ABI by eye.

Signatures used by the engine:

    execute(address,uint256,bytes)                        account call payload
    createAccount(string,bytes32,address,address)         factory deployment entry
    getAddress(string,bytes32,address)                    factory address view
    getNonce(address,uint192)                             EntryPoint sequence view
    increment() / getCount()                              demo counter target
"""

import re
from typing import Any, Sequence

from eth_abi import decode, encode
from eth_utils import function_signature_to_4byte_selector

_SIG_RE = re.compile(r"^[A-Za-z_][A-Za-z0-9_]*\((.*)\)$")


def _split_types(signature: str) -> list:
    m = _SIG_RE.match(signature)
    if m is None:
        raise ValueError(f"not a canonical function signature: {signature!r}")
    inner = m.group(1)
    if not inner:
        return []
    # Top-level comma split (tuples are not used by the engine's signatures)
    if "(" in inner:
        raise ValueError(f"tuple parameters are not supported: {signature!r}")
    return inner.split(",")


def selector(signature: str) -> bytes:
    """First four bytes of keccak256(signature)."""
    _split_types(signature)
    return function_signature_to_4byte_selector(signature)


def encode_call(signature: str, args: Sequence[Any] = ()) -> bytes:
    """selector(signature) || abi.encode(args)."""
    types = _split_types(signature)
    if len(types) != len(args):
        raise ValueError(f"{signature} expects {len(types)} args, got {len(args)}")
    if not types:
        return selector(signature)
    return selector(signature) + encode(types, list(args))


def decode_single(type_str: str, data: bytes) -> Any:
    """Decode a single ABI-encoded return value (e.g. 'uint256', 'address')."""
    (value,) = decode([type_str], bytes(data))
    return value


__all__ = ["selector", "encode_call", "decode_single"]
