"""
aa_sdk.wallet.signer
====================

secp256k1 signer for operation digests.

Wrapping
--------
Validators recover the signer with OpenZeppelin's `toEthSignedMessageHash`, i.e.
they hash

    b"\\x19Ethereum Signed Message:\\n32" || digest

before `ecrecover`. The signer applies the same wrapping and signs the wrapped hash,
never the raw digest.

Signature layout
----------------
65 bytes: r (32, big-endian) || s (32, big-endian) || v (1, 27 or 28).
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Union

from eth_account import Account
from eth_keys import keys
from eth_keys.exceptions import BadSignature
from eth_keys.exceptions import ValidationError as KeyValidationError
from eth_utils import ValidationError

from ..utils.bytes import BytesLike, ensure_bytes, to_hex
from ..utils.hash import keccak256

PERSONAL_MESSAGE_PREFIX = b"\x19Ethereum Signed Message:\n32"
SIGNATURE_WIDTH = 65

__all__ = [
    "PERSONAL_MESSAGE_PREFIX",
    "Signer",
    "personal_message_hash",
    "recover_signer",
]


def _digest32(digest: BytesLike) -> bytes:
    d = ensure_bytes(digest)
    if len(d) != 32:
        raise ValueError(f"digest must be 32 bytes, got {len(d)}")
    return d


def personal_message_hash(digest: BytesLike) -> bytes:
    """keccak256("\\x19Ethereum Signed Message:\\n32" || digest)."""
    return keccak256(PERSONAL_MESSAGE_PREFIX + _digest32(digest))


def recover_signer(digest: BytesLike, signature: BytesLike) -> str:
    """Checksum address that produced *signature* over the wrapped *digest*."""
    sig = ensure_bytes(signature)
    if len(sig) != SIGNATURE_WIDTH:
        raise ValueError(f"signature must be {SIGNATURE_WIDTH} bytes, got {len(sig)}")
    v = sig[64]
    if v not in (27, 28):
        raise ValueError(f"signature recovery id must be 27 or 28, got {v}")
    vrs = (v - 27, int.from_bytes(sig[0:32], "big"), int.from_bytes(sig[32:64], "big"))
    try:
        pub = keys.Signature(vrs=vrs).recover_public_key_from_msg_hash(personal_message_hash(digest))
    except (BadSignature, KeyValidationError, ValidationError) as e:
        raise ValueError(f"unrecoverable signature: {e}") from e
    return pub.to_checksum_address()


@dataclass(frozen=True)
class Signer:
    """
    Holds one private key. Construction fails on malformed key material; signing
    either returns a full 65-byte signature or raises.
    """

    _key: keys.PrivateKey = field(repr=False)

    @classmethod
    def from_key(cls, private_key: Union[str, bytes]) -> "Signer":
        raw = ensure_bytes(private_key)
        if len(raw) != 32:
            raise ValueError(f"private key must be 32 bytes, got {len(raw)}")
        try:
            return cls(keys.PrivateKey(raw))
        except (KeyValidationError, ValidationError) as e:
            raise ValueError(f"invalid private key: {e}") from e

    @classmethod
    def generate(cls) -> "Signer":
        return cls.from_key(Account.create().key)

    @property
    def address(self) -> str:
        return self._key.public_key.to_checksum_address()

    @property
    def key_hex(self) -> str:
        return to_hex(self._key.to_bytes())

    def sign_digest(self, digest: BytesLike) -> bytes:
        sig = self._key.sign_msg_hash(personal_message_hash(digest))
        return sig.r.to_bytes(32, "big") + sig.s.to_bytes(32, "big") + bytes([sig.v + 27])

    def __repr__(self) -> str:  # pragma: no cover - trivial
        return f"Signer(address={self.address})"
