"""
aa_sdk.utils
============

Small, dependency-light helpers shared across the SDK:

- bytes : hex <-> bytes conversion and minimal-width integer hex
- hash  : Keccak-256 (Ethereum padding) via eth-utils
- retry : backoff delays used by the pipeline's transport retries
"""

from __future__ import annotations

from .bytes import BytesLike, ensure_bytes, from_hex, hex_to_int, int_to_hex, to_hex  # noqa: F401
from .hash import keccak256, keccak256_hex  # noqa: F401
from .retry import backoff_delay  # noqa: F401

__all__ = [
    "BytesLike",
    "ensure_bytes",
    "from_hex",
    "to_hex",
    "int_to_hex",
    "hex_to_int",
    "keccak256",
    "keccak256_hex",
    "backoff_delay",
]
