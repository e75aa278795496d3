"""
Typed error classes for the aa-sdk engine.

The pipeline distinguishes failure kinds because they demand different reactions:

- ConfigError       : missing or malformed input. Fatal, never retried.
- StaleStateError   : nonce or deployment state changed between read and use.
                      The pipeline restarts from the read step.
- RelayRejection    : the relay refused the operation (signature, fee, gas, funds).
                      Fatal for the attempt, carries the relay's own diagnostic.
- TransportError    : the relay/node could not be reached. Safe to retry.
- ReceiptTimeout    : a caller deadline elapsed while polling. The operation may
                      still settle later.
- PollCancelled     : the caller's cancel token fired while polling.

All of them derive from `AaSdkError` so callers can catch the whole family.
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum, IntEnum
from typing import Any, Dict, Optional

__all__ = [
    "AaSdkError",
    "ConfigError",
    "OperationError",
    "FundingError",
    "RpcError",
    "TransportError",
    "StaleStateError",
    "RelayRejection",
    "ReceiptTimeout",
    "PollCancelled",
    "JsonRpcCode",
    "RejectionKind",
    "classify_relay_error",
    "from_jsonrpc_error",
]


class AaSdkError(Exception):
    """Base class for all SDK errors."""


class ConfigError(AaSdkError, ValueError):
    """Required configuration is missing or malformed."""


class OperationError(AaSdkError):
    """An operation violates an envelope invariant (unsigned, bad sponsor payload)."""


class FundingError(AaSdkError):
    """The owner could not top up a self-paying account."""


class JsonRpcCode(IntEnum):
    # JSON-RPC 2.0
    PARSE_ERROR = -32700
    INVALID_REQUEST = -32600
    METHOD_NOT_FOUND = -32601
    INVALID_PARAMS = -32602
    INTERNAL_ERROR = -32603

    # Server errors (implementation-defined range: -32099 to -32000)
    SERVER_ERROR = -32000

    # Bundler extensions (ERC-4337 RPC)
    REJECTED_BY_ENTRYPOINT = -32500
    REJECTED_BY_PAYMASTER = -32501
    BANNED_OPCODE = -32502
    SHORT_DEADLINE = -32503
    BANNED_OR_THROTTLED = -32504
    STAKE_TOO_LOW = -32505
    UNSUPPORTED_AGGREGATOR = -32506
    INVALID_SIGNATURE = -32507

    # Local: no usable JSON-RPC response
    TRANSPORT = -32098
    MALFORMED_RESPONSE = -32097


@dataclass(eq=False)
class RpcError(AaSdkError):
    """Raised when a JSON-RPC call returns an error object."""

    code: int
    message: str
    data: Optional[Any] = None
    method: Optional[str] = None
    request_id: Optional[Any] = None
    http_status: Optional[int] = None

    def __str__(self) -> str:  # pragma: no cover - trivial
        parts = [f"RPC[{self.method or '-'}] code={self.code} msg={self.message!r}"]
        if self.request_id is not None:
            parts.append(f"id={self.request_id}")
        if self.http_status is not None:
            parts.append(f"http={self.http_status}")
        if self.data is not None:
            parts.append(f"data={self.data!r}")
        return " ".join(parts)

    @property
    def code_enum(self) -> Optional[JsonRpcCode]:
        try:
            return JsonRpcCode(self.code)
        except ValueError:
            return None


@dataclass(eq=False)
class TransportError(AaSdkError):
    """The endpoint could not be reached or kept failing with transient HTTP statuses."""

    message: str
    url: Optional[str] = None
    method: Optional[str] = None

    def __str__(self) -> str:  # pragma: no cover - trivial
        where = f" {self.method}@{self.url}" if self.url else ""
        return f"TransportError{where}: {self.message}"


class RejectionKind(str, Enum):
    """Relay-side outcome classes, decided at the response boundary."""

    STALE_NONCE = "stale_nonce"
    ALREADY_DEPLOYED = "already_deployed"
    SIGNATURE = "signature"
    FUNDS = "funds"
    GAS = "gas"
    FEE = "fee"
    MALFORMED = "malformed"
    TRANSPORT = "transport"
    OTHER = "other"

    @property
    def is_stale(self) -> bool:
        return self in (RejectionKind.STALE_NONCE, RejectionKind.ALREADY_DEPLOYED)


@dataclass(eq=False)
class StaleStateError(AaSdkError):
    """Nonce or deployment state observed by the pipeline is no longer current."""

    kind: RejectionKind
    detail: str
    attempts: int = 1

    def __str__(self) -> str:  # pragma: no cover - trivial
        return f"StaleStateError[{self.kind.value}] after {self.attempts} attempt(s): {self.detail}"


@dataclass(eq=False)
class RelayRejection(AaSdkError):
    """The relay refused the operation. `detail` is the relay's own message."""

    kind: RejectionKind
    detail: str
    data: Optional[Any] = None

    def __str__(self) -> str:  # pragma: no cover - trivial
        return f"RelayRejection[{self.kind.value}]: {self.detail}"


@dataclass(eq=False)
class ReceiptTimeout(AaSdkError):
    """No receipt before the caller deadline. The operation may still settle."""

    handle: str
    waited_s: float
    polls: int

    def __str__(self) -> str:  # pragma: no cover - trivial
        return f"ReceiptTimeout: no receipt for {self.handle} after {self.waited_s:.1f}s ({self.polls} polls)"


@dataclass(eq=False)
class PollCancelled(AaSdkError):
    handle: str
    polls: int

    def __str__(self) -> str:  # pragma: no cover - trivial
        return f"PollCancelled: stopped waiting for {self.handle} after {self.polls} polls"


# (needle, kind) pairs; ERC-4337 EntryPoint codes first, then free-text hints.
_REJECTION_HINTS = (
    ("aa10", RejectionKind.ALREADY_DEPLOYED),
    ("already constructed", RejectionKind.ALREADY_DEPLOYED),
    ("already initialized", RejectionKind.ALREADY_DEPLOYED),
    ("aa25", RejectionKind.STALE_NONCE),
    ("nonce", RejectionKind.STALE_NONCE),
    ("aa23", RejectionKind.SIGNATURE),
    ("aa24", RejectionKind.SIGNATURE),
    ("aa33", RejectionKind.SIGNATURE),
    ("aa34", RejectionKind.SIGNATURE),
    ("signature", RejectionKind.SIGNATURE),
    ("aa21", RejectionKind.FUNDS),
    ("aa31", RejectionKind.FUNDS),
    ("prefund", RejectionKind.FUNDS),
    ("insufficient", RejectionKind.FUNDS),
    ("aa40", RejectionKind.GAS),
    ("aa41", RejectionKind.GAS),
    ("aa95", RejectionKind.GAS),
    ("gas limit", RejectionKind.GAS),
    ("pre-verification", RejectionKind.GAS),
    ("preverificationgas", RejectionKind.GAS),
    ("fee", RejectionKind.FEE),
    ("gas price", RejectionKind.FEE),
)


def classify_relay_error(code: Optional[int], message: str) -> RejectionKind:
    """Map a relay error (code + message) onto a `RejectionKind`."""
    if code == JsonRpcCode.TRANSPORT:
        return RejectionKind.TRANSPORT
    if code == JsonRpcCode.MALFORMED_RESPONSE:
        return RejectionKind.MALFORMED
    text = (message or "").lower()
    for needle, kind in _REJECTION_HINTS:
        if needle in text:
            return kind
    if code == JsonRpcCode.INVALID_SIGNATURE:
        return RejectionKind.SIGNATURE
    if code in (JsonRpcCode.PARSE_ERROR, JsonRpcCode.INVALID_REQUEST, JsonRpcCode.INVALID_PARAMS):
        return RejectionKind.MALFORMED
    return RejectionKind.OTHER


def from_jsonrpc_error(
    err_obj: Any,
    *,
    method: Optional[str] = None,
    request_id: Optional[Any] = None,
    http_status: Optional[int] = None,
) -> RpcError:
    """
    Convert a JSON-RPC error object into RpcError.

    `err_obj` should resemble {"code": int, "message": str, "data": any?}; some relays
    send a bare string instead, which is kept as the message.
    """
    if isinstance(err_obj, str):
        return RpcError(
            code=int(JsonRpcCode.SERVER_ERROR),
            message=err_obj,
            method=method,
            request_id=request_id,
            http_status=http_status,
        )
    obj: Dict[str, Any] = err_obj if isinstance(err_obj, dict) else {}
    try:
        code = int(obj.get("code", JsonRpcCode.SERVER_ERROR))
    except (TypeError, ValueError):
        code = int(JsonRpcCode.SERVER_ERROR)
    return RpcError(
        code=code,
        message=str(obj.get("message", "Unknown JSON-RPC error")),
        data=obj.get("data"),
        method=method,
        request_id=request_id,
        http_status=http_status,
    )
