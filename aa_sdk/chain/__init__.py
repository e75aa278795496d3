"""
aa_sdk.chain
============

Read-only collaborators backed by a node's JSON-RPC:

- reader : nonce (EntryPoint.getNonce), code existence, balances, factory views
- fees   : fee-rate suggestion parsing and a static fee oracle
"""

from __future__ import annotations

from .fees import FeeOracle, StaticFeeOracle, parse_fee_suggestion  # noqa: F401
from .reader import ChainReader  # noqa: F401

__all__ = ["ChainReader", "FeeOracle", "StaticFeeOracle", "parse_fee_suggestion"]
