"""
aa_sdk.tx.digest
================

Signing digests the on-chain validators recompute. Field order and widths are part
of the contract with those validators:

principal_digest  keccak256( sender(20) || nonce(uint256, 32) || keccak256(call_data)(32) )
                  checked by the account's validateUserOp

sponsor_digest    keccak256( sender(20) || call_data(raw bytes) || nonce(uint256, 32) )
                  checked by the paymaster's validatePaymasterUserOp

The two layouts differ on purpose (field order, and the sponsor form packs the raw
call data instead of its hash). Keep them as two functions.
"""

from __future__ import annotations

from eth_abi.packed import encode_packed

from ..address import AddressLike, checksum
from ..utils.bytes import BytesLike, ensure_bytes
from ..utils.hash import keccak256

__all__ = ["principal_digest", "sponsor_digest"]


def principal_digest(sender: AddressLike, nonce: int, call_data: BytesLike) -> bytes:
    packed = encode_packed(
        ["address", "uint256", "bytes32"],
        [checksum(sender), nonce, keccak256(ensure_bytes(call_data))],
    )
    return keccak256(packed)


def sponsor_digest(sender: AddressLike, call_data: BytesLike, nonce: int) -> bytes:
    packed = encode_packed(
        ["address", "bytes", "uint256"],
        [checksum(sender), ensure_bytes(call_data), nonce],
    )
    return keccak256(packed)
