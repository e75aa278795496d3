"""
aa_sdk.types
============

ABI helpers for the handful of contract calls the engine needs to encode or decode.
"""

from __future__ import annotations

from .abi import decode_single, encode_call, selector  # noqa: F401

__all__ = ["encode_call", "decode_single", "selector"]
