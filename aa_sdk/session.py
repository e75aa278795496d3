"""
aa_sdk.session
==============

Per-identity context passed explicitly into each pipeline run.

A `Session` bundles the owner signer, the counterfactual identity (factory, identity
string, salts) and an optional fee sponsor. It caches the derived account address
together with the inputs it was derived from; changing any of those inputs makes the
next `account_address()` call derive again. Distinct sessions share nothing.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import Optional, Protocol, Tuple

from .address import checksum, derive_account_address, salt_from_label
from .config import SDKConfig
from .errors import ConfigError
from .utils.bytes import ensure_bytes
from .wallet.signer import Signer

__all__ = ["Sponsor", "Session", "mask_after_five"]

log = logging.getLogger("aa_sdk.session")


def mask_after_five(text: str) -> str:
    """
    Keeps the first five characters and masks the rest with '*'.
    Example: "1234567890" -> "12345*****"
    """
    if len(text) <= 5:
        return text
    return text[:5] + "*" * (len(text) - 5)


class FactoryAddressReader(Protocol):
    def read_factory_address(self, factory: str, identity: str, backend_salt: bytes, entry_point: Optional[str] = None) -> str: ...


@dataclass(frozen=True)
class Sponsor:
    """Fee sponsor: the paymaster contract and the key that authorizes sponsorship."""

    address: str
    signer: Signer


@dataclass
class Session:
    owner: Signer
    entry_point: str
    factory: Optional[str] = None
    identity: Optional[str] = None
    backend_salt: Optional[bytes] = None
    account_salt: Optional[bytes] = None
    account_code_hash: Optional[bytes] = None
    account: Optional[str] = None
    sponsor: Optional[Sponsor] = None
    _cached: Optional[Tuple[tuple, str]] = field(default=None, init=False, repr=False, compare=False)

    @staticmethod
    def versioned_identity(identity: str, version: str = "V2") -> str:
        return f"{identity}:{version}"

    @classmethod
    def from_config(cls, cfg: SDKConfig, *, sponsored: bool = True) -> "Session":
        key = cfg.require("private_key")
        try:
            owner = Signer.from_key(key)
        except ValueError as e:
            raise ConfigError(f"AA_PRIVATE_KEY is not a valid secp256k1 key: {e}") from e

        sponsor = None
        if sponsored and cfg.paymaster:
            try:
                sponsor = Sponsor(cfg.paymaster, Signer.from_key(cfg.sponsor_private_key))
            except ValueError as e:
                raise ConfigError(f"AA_PAYMASTER_PRIVATE_KEY is not a valid secp256k1 key: {e}") from e

        return cls(
            owner=owner,
            entry_point=cfg.require("entry_point"),
            factory=cfg.factory,
            identity=cfg.identity,
            backend_salt=salt_from_label(cfg.backend_salt) if cfg.backend_salt else None,
            account_salt=ensure_bytes(cfg.account_salt) if cfg.account_salt else None,
            account_code_hash=ensure_bytes(cfg.account_code_hash) if cfg.account_code_hash else None,
            account=cfg.account,
            sponsor=sponsor,
        )

    @property
    def can_deploy(self) -> bool:
        return bool(self.factory and self.identity and self.backend_salt)

    def _fingerprint(self) -> tuple:
        return (
            self.account,
            self.factory,
            self.identity,
            self.backend_salt,
            self.account_salt,
            self.account_code_hash,
            self.entry_point,
        )

    def invalidate(self) -> None:
        self._cached = None

    def account_address(self, reader: Optional[FactoryAddressReader] = None) -> str:
        """
        The sender address for this identity, from (in order): an explicitly
        configured account, pure CREATE2 derivation, or the factory's getAddress view.
        """
        fp = self._fingerprint()
        if self._cached is not None and self._cached[0] == fp:
            return self._cached[1]

        if self.account:
            addr = checksum(self.account)
        elif self.factory and self.account_salt is not None and self.account_code_hash is not None:
            addr = derive_account_address(self.factory, self.account_salt, self.account_code_hash)
        elif self.can_deploy and reader is not None:
            addr = checksum(
                reader.read_factory_address(self.factory, self.identity, self.backend_salt, self.entry_point)
            )
        else:
            raise ConfigError(
                "cannot determine the account address: set AA_ACCOUNT_ADDRESS, or AA_FACTORY_ADDRESS with "
                "AA_ACCOUNT_SALT/AA_ACCOUNT_CODE_HASH, or AA_FACTORY_ADDRESS with AA_IDENTITY/AA_BACKEND_SALT"
            )

        if self.identity:
            log.info("identity %s -> account %s", mask_after_five(self.identity), addr)
        self._cached = (fp, addr)
        return addr
