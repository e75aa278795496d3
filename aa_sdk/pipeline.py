"""
aa_sdk.pipeline
===============

End-to-end submission flow for one identity:

    read nonce -> read fees -> resolve initCode -> build -> principal digest -> sign
      -> (sponsor digest -> sponsor sign -> embed) -> submit -> poll receipt

Every attempt starts again from the reads. Nothing observed in a failed attempt
(nonce, fees, deployment state, signatures) is reused by the next one.

Retry policy per relay outcome:
- stale nonce / already deployed : restart immediately from the reads
- transport failure              : restart after a jittered backoff
- anything else                  : raise `RelayRejection`, no retry
"""

from __future__ import annotations

import logging
import time
from dataclasses import dataclass
from typing import Any, Callable, Dict, Optional, Protocol

from .errors import ConfigError, RejectionKind
from .relay.client import Rejected, Submitted, SubmitResult
from .relay.poller import CancelToken, ReceiptPoller
from .session import Session, Sponsor
from .chain.fees import FeeOracle
from .tx.digest import principal_digest, sponsor_digest
from .tx.init_code import InitPayloadResolver
from .tx.operation import GasLimits, Operation, build_operation, sponsor_payload
from .utils.bytes import BytesLike, ensure_bytes
from .utils.retry import backoff_delay

__all__ = ["OperationPipeline", "PipelineResult"]


class ChainReads(Protocol):
    def read_nonce(self, account: str) -> int: ...
    def read_existence(self, account: str) -> bool: ...
    def read_factory_address(self, factory: str, identity: str, backend_salt: bytes, entry_point: Optional[str] = None) -> str: ...


class Relay(Protocol):
    def submit(self, op: Operation, entry_point: str) -> SubmitResult: ...
    def get_receipt(self, handle: str) -> Optional[Dict[str, Any]]: ...


@dataclass(frozen=True)
class PipelineResult:
    handle: str
    operation: Operation
    receipt: Dict[str, Any]
    attempts: int

    @property
    def success(self) -> bool:
        return bool(self.receipt.get("success", False))

    @property
    def transaction_hash(self) -> Optional[str]:
        inner = self.receipt.get("receipt") or {}
        return inner.get("transactionHash") if isinstance(inner, dict) else None


class OperationPipeline:
    def __init__(
        self,
        *,
        reader: ChainReads,
        fees: FeeOracle,
        relay: Relay,
        gas: GasLimits = GasLimits(),
        max_attempts: int = 3,
        backoff_base: float = 0.5,
        backoff_max: float = 5.0,
        poll_interval: float = 1.0,
        sleep: Callable[[float], None] = time.sleep,
        logger: Optional[logging.Logger] = None,
    ) -> None:
        if max_attempts < 1:
            raise ValueError("max_attempts must be >= 1")
        self.reader = reader
        self.fees = fees
        self.relay = relay
        self.gas = gas
        self.max_attempts = max_attempts
        self.backoff_base = backoff_base
        self.backoff_max = backoff_max
        self.poll_interval = poll_interval
        self._sleep = sleep
        self._log = logger or logging.getLogger("aa_sdk.pipeline")

    # --- building ------------------------------------------------------------

    def resolve_init_code(self, session: Session, sender: str) -> bytes:
        if session.can_deploy:
            resolver = InitPayloadResolver(
                self.reader,
                factory=session.factory,
                entry_point=session.entry_point,
                identity=session.identity,
                backend_salt=session.backend_salt,
            )
            return resolver.resolve(sender, session.owner.address)
        if not self.reader.read_existence(sender):
            raise ConfigError(
                f"account {sender} is not deployed and no factory identity is configured to deploy it"
            )
        return b""

    def prepare(self, session: Session, call_data: BytesLike) -> Operation:
        """Fresh reads, then a fully signed operation ready for submission."""
        data = ensure_bytes(call_data)
        sender = session.account_address(self.reader)

        nonce = self.reader.read_nonce(sender)
        fees = self.fees.read_fee_suggestion()
        init_code = self.resolve_init_code(session, sender)
        self._log.info(
            "building operation sender=%s nonce=%d deploy=%s sponsored=%s",
            sender,
            nonce,
            bool(init_code),
            session.sponsor is not None,
        )

        op = build_operation(sender, nonce, data, init_code, fees, self.gas)
        op = op.with_signature(session.owner.sign_digest(principal_digest(op.sender, op.nonce, op.call_data)))
        if session.sponsor is not None:
            op = self._sponsor(op, session.sponsor)
        return op

    def _sponsor(self, op: Operation, sponsor: Sponsor) -> Operation:
        sig = sponsor.signer.sign_digest(sponsor_digest(op.sender, op.call_data, op.nonce))
        return op.with_sponsor_payload(sponsor_payload(sponsor.address, sig))

    # --- submission ----------------------------------------------------------

    def submit(self, session: Session, call_data: BytesLike) -> tuple[str, Operation, int]:
        """Submit with the retry policy above; returns (handle, operation, attempts)."""
        last: Optional[Rejected] = None
        for attempt in range(1, self.max_attempts + 1):
            op = self.prepare(session, call_data)
            result = self.relay.submit(op, session.entry_point)
            if isinstance(result, Submitted):
                return result.handle, op, attempt

            last = result
            if result.kind.is_stale:
                self._log.warning(
                    "attempt %d/%d stale state (%s): %s; restarting from reads",
                    attempt,
                    self.max_attempts,
                    result.kind.value,
                    result.detail,
                )
                continue
            if result.kind is RejectionKind.TRANSPORT:
                if attempt < self.max_attempts:
                    delay = backoff_delay(attempt, base=self.backoff_base, max_delay=self.backoff_max, jitter="equal")
                    self._log.warning(
                        "attempt %d/%d transport failure: %s; retrying in %.2fs",
                        attempt,
                        self.max_attempts,
                        result.detail,
                        delay,
                    )
                    self._sleep(delay)
                continue
            raise result.to_error(attempts=attempt)

        assert last is not None
        raise last.to_error(attempts=self.max_attempts)

    def run(
        self,
        session: Session,
        call_data: BytesLike,
        *,
        cancel: Optional[CancelToken] = None,
        timeout: Optional[float] = 120.0,
    ) -> PipelineResult:
        handle, op, attempts = self.submit(session, call_data)
        poller = ReceiptPoller(self.relay, interval=self.poll_interval, logger=self._log)
        receipt = poller.wait(handle, cancel=cancel, timeout=timeout)
        return PipelineResult(handle=handle, operation=op, receipt=receipt, attempts=attempts)
