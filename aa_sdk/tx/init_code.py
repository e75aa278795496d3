"""
aa_sdk.tx.init_code
===================

Decides the init payload (`initCode`) of each operation.

- Account has code on-chain  -> b"" (the EntryPoint rejects a non-empty initCode for
  a deployed sender with AA10 "sender already constructed").
- Account has no code        -> factory(20) || createAccount(identity, backendSalt,
  entryPoint, initialOwner) calldata, so the EntryPoint deploys it on first use.

The existence check runs on every `resolve` call. A "not deployed" answer goes stale
as soon as anyone else deploys the account, so it is never reused.
"""

from __future__ import annotations

import logging
from typing import Optional, Protocol

from ..address import AddressLike, checksum, normalize_address
from ..types.abi import encode_call
from ..utils.bytes import BytesLike, ensure_bytes

__all__ = ["ExistenceReader", "InitPayloadResolver", "encode_create_account"]


class ExistenceReader(Protocol):
    def read_existence(self, account: str) -> bool: ...


def encode_create_account(identity: str, backend_salt: BytesLike, entry_point: AddressLike, owner: AddressLike) -> bytes:
    salt = ensure_bytes(backend_salt)
    if len(salt) != 32:
        raise ValueError(f"backend salt must be 32 bytes, got {len(salt)}")
    return encode_call(
        "createAccount(string,bytes32,address,address)",
        [identity, salt, checksum(entry_point), checksum(owner)],
    )


class InitPayloadResolver:
    def __init__(
        self,
        reader: ExistenceReader,
        *,
        factory: AddressLike,
        entry_point: AddressLike,
        identity: str,
        backend_salt: BytesLike,
        logger: Optional[logging.Logger] = None,
    ) -> None:
        self.reader = reader
        self.factory = normalize_address(factory)
        self.entry_point = checksum(entry_point)
        self.identity = identity
        self.backend_salt = ensure_bytes(backend_salt)
        self._log = logger or logging.getLogger("aa_sdk.init_code")

    def deployment_payload(self, owner: AddressLike) -> bytes:
        return self.factory + encode_create_account(self.identity, self.backend_salt, self.entry_point, owner)

    def resolve(self, account: AddressLike, owner: AddressLike) -> bytes:
        addr = checksum(account)
        if self.reader.read_existence(addr):
            self._log.info("account %s already deployed; empty initCode", addr)
            return b""
        self._log.info("account %s not deployed; initCode calls factory %s", addr, checksum(self.factory))
        return self.deployment_payload(owner)
