from __future__ import annotations

from eth_utils import keccak as _keccak

from .bytes import BytesLike, ensure_bytes, to_hex


# --- Keccak-256 (Ethereum-style) ----------------------------------------------
# hashlib.sha3_256 is NIST SHA3; the EVM uses the original Keccak padding.


def keccak256(data: BytesLike) -> bytes:
    """Return Keccak-256 digest of *data* (bytes, or a hex string)."""
    return _keccak(ensure_bytes(data))


def keccak256_hex(data: BytesLike, *, prefix: bool = True) -> str:
    """Return hex string of Keccak-256 digest (0x-prefixed by default)."""
    return to_hex(keccak256(data), prefix=prefix)


__all__ = ["keccak256", "keccak256_hex"]
