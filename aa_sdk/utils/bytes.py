"""
Hex and quantity conversions in the JSON-RPC wire form.

Byte strings travel as ``0x``-prefixed lowercase hex with no padding (``b""`` is
``"0x"``). Quantities travel as minimal big-endian hex (``0`` is ``"0x0"``). Nodes and
relays are not always consistent on the way back, so `hex_to_int` also takes plain
ints and decimal strings.
"""

from __future__ import annotations

from typing import Any, Union

BytesLike = Union[bytes, bytearray, memoryview]


def from_hex(s: str) -> bytes:
    """Decode hex with or without a ``0x`` prefix. Odd lengths are rejected."""
    if not isinstance(s, str):
        raise TypeError(f"from_hex expects str, got {type(s)!r}")
    body = s[2:] if s[:2] in ("0x", "0X") else s
    if len(body) % 2:
        raise ValueError(f"odd-length hex string: {s!r}")
    try:
        return bytes.fromhex(body)
    except ValueError as e:
        raise ValueError(f"invalid hex string {s!r}: {e}") from e


def ensure_bytes(data: Union[BytesLike, str]) -> bytes:
    """Raw bytes from bytes-like input or a hex string."""
    if isinstance(data, str):
        return from_hex(data)
    if isinstance(data, (bytes, bytearray, memoryview)):
        return bytes(data)
    raise TypeError(f"expected bytes or hex str, got {type(data)!r}")


def to_hex(b: BytesLike, prefix: bool = True) -> str:
    body = bytes(b).hex()
    return "0x" + body if prefix else body


def int_to_hex(n: int) -> str:
    """
    Unsigned integer -> minimal-length big-endian hex, '0x'-prefixed.

        0   -> '0x0'
        255 -> '0xff'
    """
    if isinstance(n, bool) or not isinstance(n, int):
        raise TypeError(f"int_to_hex expects an int, got {type(n)!r}")
    if n < 0:
        raise ValueError(f"quantities are unsigned, got {n}")
    return hex(n)


def hex_to_int(v: Any) -> int:
    """Quantity from an int, a '0x' hex string ('0x' alone is 0) or a decimal string."""
    if isinstance(v, bool):
        raise TypeError("booleans are not quantities")
    if isinstance(v, int):
        return v
    if not isinstance(v, str):
        raise TypeError(f"unsupported quantity type: {type(v)!r}")
    s = v.strip()
    if s[:2].lower() == "0x":
        return int(s[2:], 16) if len(s) > 2 else 0
    return int(s, 10)


__all__ = [
    "BytesLike",
    "ensure_bytes",
    "to_hex",
    "from_hex",
    "int_to_hex",
    "hex_to_int",
]
