"""
aa_sdk.address
==============

Address validation and counterfactual (CREATE2) address derivation.

Format
------
Addresses are 20-byte EVM addresses, rendered as EIP-55 checksum strings.

Derivation
----------
An account deployed by a factory through CREATE2 lives at

    keccak256(0xff || deployer(20) || salt(32) || keccak256(creation_code || ctor_args))[12:]

The formula does not depend on chain state, so the same inputs give the same address
before and after deployment. That is what allows an account to be funded and
addressed before it exists.

This module provides:
- normalize_address(addr) -> bytes            (20 bytes, raises on malformed input)
- checksum(addr) -> str                       (EIP-55)
- is_valid(addr) -> bool
- salt_from_label(text) -> bytes              (keccak256 of UTF-8 text)
- init_code_hash(creation_code, ctor_args) -> bytes
- derive_account_address(deployer, salt, code_hash) -> str
"""

from __future__ import annotations

from typing import Union

from eth_utils import is_hex_address, to_checksum_address

from .utils.bytes import BytesLike, ensure_bytes
from .utils.hash import keccak256

ADDRESS_WIDTH = 20
SALT_WIDTH = 32
HASH_WIDTH = 32
CREATE2_PREFIX = b"\xff"

AddressLike = Union[str, bytes, bytearray]

__all__ = [
    "ADDRESS_WIDTH",
    "SALT_WIDTH",
    "AddressLike",
    "normalize_address",
    "checksum",
    "is_valid",
    "salt_from_label",
    "init_code_hash",
    "derive_account_address",
]


def normalize_address(addr: AddressLike) -> bytes:
    """Return the 20 raw bytes of *addr* (hex string or bytes)."""
    if isinstance(addr, str):
        if not is_hex_address(addr):
            raise ValueError(f"invalid address: {addr!r}")
        return bytes.fromhex(addr[2:] if addr[:2].lower() == "0x" else addr)
    if isinstance(addr, (bytes, bytearray)):
        if len(addr) != ADDRESS_WIDTH:
            raise ValueError(f"address must be {ADDRESS_WIDTH} bytes, got {len(addr)}")
        return bytes(addr)
    raise TypeError(f"unsupported address type: {type(addr)!r}")


def checksum(addr: AddressLike) -> str:
    return to_checksum_address(normalize_address(addr))


def is_valid(addr: AddressLike) -> bool:
    try:
        normalize_address(addr)
    except (TypeError, ValueError):
        return False
    return True


def salt_from_label(text: str) -> bytes:
    """Free-form identity string -> bytes32 salt (keccak256 of its UTF-8 bytes)."""
    return keccak256(text.encode("utf-8"))


def init_code_hash(creation_code: BytesLike, constructor_args: BytesLike = b"") -> bytes:
    """keccak256(creation_code || constructor_args)."""
    return keccak256(ensure_bytes(creation_code) + ensure_bytes(constructor_args))


def derive_account_address(deployer: AddressLike, salt: BytesLike, code_hash: BytesLike) -> str:
    """
    Counterfactual address of the account the *deployer* creates with *salt* and
    init code hashing to *code_hash*. Pure and total over well-formed inputs.
    """
    deployer_b = normalize_address(deployer)
    salt_b = ensure_bytes(salt)
    hash_b = ensure_bytes(code_hash)
    if len(salt_b) != SALT_WIDTH:
        raise ValueError(f"salt must be {SALT_WIDTH} bytes, got {len(salt_b)}")
    if len(hash_b) != HASH_WIDTH:
        raise ValueError(f"code hash must be {HASH_WIDTH} bytes, got {len(hash_b)}")
    preimage = CREATE2_PREFIX + deployer_b + salt_b + hash_b
    return to_checksum_address(keccak256(preimage)[12:])
