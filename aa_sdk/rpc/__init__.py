"""
aa_sdk.rpc
----------

HTTP JSON-RPC 2.0 client used for both the chain node and the relay (bundler).

    from aa_sdk.rpc import RpcClient
    rpc = RpcClient(url="http://localhost:8545")
"""

from __future__ import annotations

from .http import RpcClient

__all__ = ["RpcClient"]
