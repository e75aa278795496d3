"""
aa_sdk.tx.operation
===================

The authorization envelope ("user operation") and its builder.

An `Operation` is built fresh for every submission attempt and never mutated: the
signing steps return copies through `with_signature` / `with_sponsor_payload`.

Wire form
---------
`to_rpc()` produces the relay's JSON shape: integers as minimal big-endian hex
(`0x0` for zero), byte strings as `0x` hex with no padding, the sender as an EIP-55
checksum string. Field names follow the ERC-4337 v0.6 RPC.
"""

from __future__ import annotations

from dataclasses import dataclass, replace
from typing import Any, Dict, Mapping

from ..address import ADDRESS_WIDTH, AddressLike, checksum, normalize_address
from ..errors import OperationError
from ..types.abi import encode_call
from ..utils.bytes import BytesLike, ensure_bytes, hex_to_int, int_to_hex, to_hex

SIGNATURE_WIDTH = 65
SPONSOR_PAYLOAD_WIDTH = ADDRESS_WIDTH + SIGNATURE_WIDTH
UINT256_MAX = 2**256 - 1

__all__ = [
    "SIGNATURE_WIDTH",
    "SPONSOR_PAYLOAD_WIDTH",
    "GasLimits",
    "FeeSuggestion",
    "Operation",
    "build_operation",
    "encode_execute",
    "encode_increment",
    "sponsor_payload",
    "validate_sponsor_payload",
]


@dataclass(frozen=True)
class GasLimits:
    """
    Gas limits attached to every operation. Defaults cover first-use deployment
    (factory call during validation) plus a simple call and the fixed per-operation
    overhead; tune them through configuration rather than in code.
    """

    call_gas_limit: int = 0x350000
    verification_gas_limit: int = 0x150000
    pre_verification_gas: int = 0x40000


@dataclass(frozen=True)
class FeeSuggestion:
    max_fee_per_gas: int
    max_priority_fee_per_gas: int

    def __post_init__(self) -> None:
        if self.max_fee_per_gas < 0 or self.max_priority_fee_per_gas < 0:
            raise ValueError("fee rates must be non-negative")


def _uint(name: str, v: int) -> int:
    if isinstance(v, bool) or not isinstance(v, int):
        raise TypeError(f"{name} must be an int, got {type(v)!r}")
    if not 0 <= v <= UINT256_MAX:
        raise ValueError(f"{name} out of uint256 range: {v}")
    return v


@dataclass(frozen=True)
class Operation:
    sender: bytes
    nonce: int
    init_code: bytes
    call_data: bytes
    call_gas_limit: int
    verification_gas_limit: int
    pre_verification_gas: int
    max_fee_per_gas: int
    max_priority_fee_per_gas: int
    paymaster_and_data: bytes = b""
    signature: bytes = b""

    def __post_init__(self) -> None:
        if len(self.sender) != ADDRESS_WIDTH:
            raise ValueError(f"sender must be {ADDRESS_WIDTH} bytes")
        for name in (
            "nonce",
            "call_gas_limit",
            "verification_gas_limit",
            "pre_verification_gas",
            "max_fee_per_gas",
            "max_priority_fee_per_gas",
        ):
            _uint(name, getattr(self, name))
        validate_sponsor_payload(self.paymaster_and_data)

    @property
    def sender_address(self) -> str:
        return checksum(self.sender)

    @property
    def is_signed(self) -> bool:
        return len(self.signature) > 0

    @property
    def is_sponsored(self) -> bool:
        return len(self.paymaster_and_data) > 0

    def with_signature(self, signature: bytes) -> "Operation":
        if len(signature) != SIGNATURE_WIDTH:
            raise ValueError(f"signature must be {SIGNATURE_WIDTH} bytes, got {len(signature)}")
        return replace(self, signature=bytes(signature))

    def with_sponsor_payload(self, payload: bytes) -> "Operation":
        return replace(self, paymaster_and_data=bytes(payload))

    def to_rpc(self) -> Dict[str, str]:
        return {
            "sender": self.sender_address,
            "nonce": int_to_hex(self.nonce),
            "initCode": to_hex(self.init_code),
            "callData": to_hex(self.call_data),
            "callGasLimit": int_to_hex(self.call_gas_limit),
            "verificationGasLimit": int_to_hex(self.verification_gas_limit),
            "preVerificationGas": int_to_hex(self.pre_verification_gas),
            "maxFeePerGas": int_to_hex(self.max_fee_per_gas),
            "maxPriorityFeePerGas": int_to_hex(self.max_priority_fee_per_gas),
            "paymasterAndData": to_hex(self.paymaster_and_data),
            "signature": to_hex(self.signature),
        }

    @classmethod
    def from_rpc(cls, obj: Mapping[str, Any]) -> "Operation":
        try:
            return cls(
                sender=normalize_address(obj["sender"]),
                nonce=hex_to_int(obj["nonce"]),
                init_code=ensure_bytes(obj.get("initCode", "0x")),
                call_data=ensure_bytes(obj["callData"]),
                call_gas_limit=hex_to_int(obj["callGasLimit"]),
                verification_gas_limit=hex_to_int(obj["verificationGasLimit"]),
                pre_verification_gas=hex_to_int(obj["preVerificationGas"]),
                max_fee_per_gas=hex_to_int(obj["maxFeePerGas"]),
                max_priority_fee_per_gas=hex_to_int(obj["maxPriorityFeePerGas"]),
                paymaster_and_data=ensure_bytes(obj.get("paymasterAndData", "0x")),
                signature=ensure_bytes(obj.get("signature", "0x")),
            )
        except KeyError as e:
            raise ValueError(f"operation is missing field {e.args[0]!r}") from e


def build_operation(
    sender: AddressLike,
    nonce: int,
    call_data: BytesLike,
    init_code: BytesLike,
    fees: FeeSuggestion,
    gas: GasLimits = GasLimits(),
) -> Operation:
    """Draft operation: empty signature and sponsor payload, gas limits from `gas`."""
    return Operation(
        sender=normalize_address(sender),
        nonce=nonce,
        init_code=ensure_bytes(init_code),
        call_data=ensure_bytes(call_data),
        call_gas_limit=gas.call_gas_limit,
        verification_gas_limit=gas.verification_gas_limit,
        pre_verification_gas=gas.pre_verification_gas,
        max_fee_per_gas=fees.max_fee_per_gas,
        max_priority_fee_per_gas=fees.max_priority_fee_per_gas,
    )


# --- call payloads -----------------------------------------------------------


def encode_execute(target: AddressLike, value: int, data: BytesLike) -> bytes:
    """Account.execute(target, value, data): the account forwards the call."""
    return encode_call(
        "execute(address,uint256,bytes)",
        [checksum(target), _uint("value", value), ensure_bytes(data)],
    )


def encode_increment() -> bytes:
    return encode_call("increment()")


# --- sponsor payload ---------------------------------------------------------


def validate_sponsor_payload(payload: bytes) -> None:
    if len(payload) not in (0, SPONSOR_PAYLOAD_WIDTH):
        raise OperationError(
            f"sponsor payload must be empty or {SPONSOR_PAYLOAD_WIDTH} bytes "
            f"(address {ADDRESS_WIDTH} + signature {SIGNATURE_WIDTH}), got {len(payload)}"
        )


def sponsor_payload(sponsor: AddressLike, signature: bytes) -> bytes:
    """sponsor address || signature, no separator or length prefix."""
    payload = normalize_address(sponsor) + bytes(signature)
    validate_sponsor_payload(payload)
    return payload
