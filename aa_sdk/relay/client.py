"""
aa_sdk.relay.client
===================

JSON-RPC calls against the relay.

Submission
----------
`submit(op, entry_point)` sends `eth_sendUserOperation [op, entryPoint]` exactly once
and decides the outcome right at the response boundary:

- `result` is a 0x-prefixed 32-byte hex string      -> Submitted(handle)
- anything else (error object, odd result, non-JSON,
  transport failure)                                 -> Rejected(kind, detail, data)

Relay-side validation failures (bad signature, stale nonce, unfunded account) are
not transient, so the client never resends on its own. The pipeline decides.
"""

from __future__ import annotations

import logging
import re
from dataclasses import dataclass
from typing import Any, Dict, Optional, Union

from ..address import AddressLike, checksum
from ..errors import (
    JsonRpcCode,
    OperationError,
    RejectionKind,
    RelayRejection,
    RpcError,
    StaleStateError,
    TransportError,
    classify_relay_error,
)
from ..rpc.http import RpcClient
from ..tx.operation import FeeSuggestion, Operation
from ..chain.fees import parse_fee_suggestion

__all__ = ["Submitted", "Rejected", "SubmitResult", "RelayClient", "is_operation_handle"]

_HANDLE_RE = re.compile(r"^0x[0-9a-fA-F]{64}$")


def is_operation_handle(v: Any) -> bool:
    return isinstance(v, str) and bool(_HANDLE_RE.match(v))


@dataclass(frozen=True)
class Submitted:
    handle: str


@dataclass(frozen=True)
class Rejected:
    kind: RejectionKind
    detail: str
    data: Optional[Any] = None

    def to_error(self, *, attempts: int = 1) -> Exception:
        """Exception matching this rejection's kind."""
        if self.kind.is_stale:
            return StaleStateError(kind=self.kind, detail=self.detail, attempts=attempts)
        if self.kind is RejectionKind.TRANSPORT:
            return TransportError(message=self.detail)
        return RelayRejection(kind=self.kind, detail=self.detail, data=self.data)


SubmitResult = Union[Submitted, Rejected]


class RelayClient:
    def __init__(self, rpc: RpcClient, *, logger: Optional[logging.Logger] = None) -> None:
        self.rpc = rpc
        self._log = logger or logging.getLogger("aa_sdk.relay")

    def submit(self, op: Operation, entry_point: AddressLike) -> SubmitResult:
        if not op.is_signed:
            raise OperationError("refusing to submit an unsigned operation")
        try:
            result = self.rpc.request(
                "eth_sendUserOperation",
                [op.to_rpc(), checksum(entry_point)],
                idempotent=False,
            )
        except TransportError as e:
            self._log.warning("relay unreachable: %s", e.message)
            return Rejected(RejectionKind.TRANSPORT, e.message)
        except RpcError as e:
            kind = classify_relay_error(e.code, e.message)
            self._log.warning("relay rejected operation kind=%s code=%s msg=%s", kind.value, e.code, e.message)
            return Rejected(kind, e.message, e.data)

        if not is_operation_handle(result):
            self._log.warning("relay returned an unexpected handle: %r", result)
            return Rejected(RejectionKind.MALFORMED, "relay did not return a valid operation hash", result)
        self._log.info("operation accepted handle=%s", result)
        return Submitted(result)

    def get_receipt(self, handle: str) -> Optional[Dict[str, Any]]:
        """Receipt for *handle*, or None while the operation is pending."""
        res = self.rpc.request("eth_getUserOperationReceipt", [handle])
        if res in (None, False, ""):
            return None
        if not isinstance(res, dict):
            raise RpcError(
                code=int(JsonRpcCode.MALFORMED_RESPONSE),
                message=f"unexpected receipt payload: {type(res).__name__}",
                data=res,
                method="eth_getUserOperationReceipt",
            )
        return res

    def read_fee_suggestion(self) -> FeeSuggestion:
        res = self.rpc.request("pimlico_getUserOperationGasPrice", [])
        try:
            fees = parse_fee_suggestion(res)
        except ValueError as e:
            raise RpcError(
                code=int(JsonRpcCode.MALFORMED_RESPONSE),
                message=str(e),
                data=res,
                method="pimlico_getUserOperationGasPrice",
            ) from e
        self._log.debug(
            "fee suggestion maxFeePerGas=%d maxPriorityFeePerGas=%d",
            fees.max_fee_per_gas,
            fees.max_priority_fee_per_gas,
        )
        return fees
