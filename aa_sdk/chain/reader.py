"""
aa_sdk.chain.reader
===================

Node-backed reads the pipeline depends on. All calls are read-only and hit the node
on every invocation; nothing here caches results.
"""

from __future__ import annotations

import logging
from typing import Any, Optional

from ..address import AddressLike, checksum
from ..errors import ConfigError, JsonRpcCode, RpcError
from ..rpc.http import RpcClient
from ..types.abi import decode_single, encode_call
from ..utils.bytes import BytesLike, ensure_bytes, from_hex, hex_to_int, to_hex

__all__ = ["ChainReader", "has_code"]


def has_code(code: Any) -> bool:
    """
    Interpret an `eth_getCode` result. Nodes report "no code" as null, "0x" or "0x0".
    """
    if not code:
        return False
    normalized = str(code).lower()
    if normalized in ("0x", "0x0"):
        return False
    return len(normalized) > 2


class ChainReader:
    def __init__(
        self,
        rpc: RpcClient,
        *,
        entry_point: Optional[AddressLike] = None,
        block: str = "latest",
        logger: Optional[logging.Logger] = None,
    ) -> None:
        self.rpc = rpc
        self.entry_point = checksum(entry_point) if entry_point is not None else None
        self.block = block
        self._log = logger or logging.getLogger("aa_sdk.chain")

    def _call(self, to: AddressLike, data: bytes) -> bytes:
        res = self.rpc.request("eth_call", [{"to": checksum(to), "data": to_hex(data)}, self.block])
        if not isinstance(res, str):
            raise RpcError(
                code=int(JsonRpcCode.MALFORMED_RESPONSE),
                message=f"eth_call returned {type(res).__name__}, expected hex string",
                data=res,
                method="eth_call",
            )
        return from_hex(res)

    # --- collaborators consumed by the pipeline -----------------------------

    def read_nonce(self, account: AddressLike, key: int = 0) -> int:
        """EntryPoint.getNonce(account, key)."""
        if self.entry_point is None:
            raise ConfigError("ChainReader needs an entry_point to read nonces")
        data = encode_call("getNonce(address,uint192)", [checksum(account), key])
        nonce = int(decode_single("uint256", self._call(self.entry_point, data)))
        self._log.debug("nonce %s = %d", checksum(account), nonce)
        return nonce

    def read_existence(self, account: AddressLike) -> bool:
        code = self.rpc.request("eth_getCode", [checksum(account), self.block])
        exists = has_code(code)
        self._log.debug("code at %s present=%s", checksum(account), exists)
        return exists

    # --- supporting reads ---------------------------------------------------

    def read_balance(self, account: AddressLike) -> int:
        return hex_to_int(self.rpc.request("eth_getBalance", [checksum(account), self.block]))

    def read_count(self, target: AddressLike) -> int:
        """Demo counter value (`getCount()`) on the target contract."""
        return int(decode_single("uint256", self._call(target, encode_call("getCount()"))))

    def read_factory_address(
        self,
        factory: AddressLike,
        identity: str,
        backend_salt: BytesLike,
        entry_point: Optional[AddressLike] = None,
    ) -> str:
        """factory.getAddress(identity, backendSalt, entryPoint), the factory's own view."""
        ep = checksum(entry_point) if entry_point is not None else self.entry_point
        if ep is None:
            raise ConfigError("entry_point is required to query the factory")
        data = encode_call(
            "getAddress(string,bytes32,address)",
            [identity, ensure_bytes(backend_salt), ep],
        )
        return checksum(decode_single("address", self._call(factory, data)))
