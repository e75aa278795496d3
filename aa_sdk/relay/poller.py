"""
aa_sdk.relay.poller
===================

Receipt polling as an explicit two-state machine:

    PENDING --(receipt returned)--> SETTLED

Each tick queries the relay once. While no receipt is available the poller stays in
PENDING and sleeps a fixed interval on the caller's `CancelToken`, so a cancel
interrupts the sleep instead of waiting it out. A transport failure on one tick
counts as a pending poll. An optional deadline turns "no settlement in time" into
`ReceiptTimeout`, which is distinct from a relay rejection: the operation may still
settle later.
"""

from __future__ import annotations

import logging
import threading
import time
from enum import Enum
from typing import Any, Callable, Dict, List, Optional, Protocol

from ..errors import PollCancelled, ReceiptTimeout, TransportError

__all__ = ["PollState", "CancelToken", "ReceiptSource", "ReceiptPoller"]

DEFAULT_POLL_INTERVAL = 1.0


class PollState(str, Enum):
    PENDING = "pending"
    SETTLED = "settled"


class ReceiptSource(Protocol):
    def get_receipt(self, handle: str) -> Optional[Dict[str, Any]]: ...


class CancelToken:
    """Explicit stop signal shared between a caller and a running poll."""

    __slots__ = ("_event",)

    def __init__(self) -> None:
        self._event = threading.Event()

    def cancel(self) -> None:
        self._event.set()

    @property
    def cancelled(self) -> bool:
        return self._event.is_set()

    def wait(self, timeout: float) -> bool:
        """Sleep up to *timeout* seconds; True if cancelled meanwhile."""
        return self._event.wait(timeout)


class ReceiptPoller:
    def __init__(
        self,
        source: ReceiptSource,
        *,
        interval: float = DEFAULT_POLL_INTERVAL,
        clock: Callable[[], float] = time.monotonic,
        logger: Optional[logging.Logger] = None,
    ) -> None:
        if interval <= 0:
            raise ValueError("poll interval must be positive")
        self.source = source
        self.interval = float(interval)
        self._clock = clock
        self._log = logger or logging.getLogger("aa_sdk.poller")
        self.state = PollState.PENDING
        self.history: List[PollState] = []

    @property
    def polls(self) -> int:
        return len(self.history)

    def tick(self, handle: str) -> Optional[Dict[str, Any]]:
        """Query once; moves to SETTLED and returns the receipt if there is one."""
        receipt = self.source.get_receipt(handle)
        self.state = PollState.SETTLED if receipt is not None else PollState.PENDING
        self.history.append(self.state)
        return receipt

    def wait(
        self,
        handle: str,
        *,
        cancel: Optional[CancelToken] = None,
        timeout: Optional[float] = None,
    ) -> Dict[str, Any]:
        """
        Poll until settled. `timeout=None` means no deadline; pass a `cancel` token
        in that case if the host needs a way to stop.

        Transport failures from the source are logged and retried on the next tick.

        Raises:
            PollCancelled   when *cancel* fires
            ReceiptTimeout  when *timeout* seconds elapse without a receipt
        """
        token = cancel or CancelToken()
        self.state = PollState.PENDING
        self.history = []
        started = self._clock()
        self._log.info("waiting for receipt handle=%s interval=%.2fs timeout=%s", handle, self.interval, timeout)

        while True:
            if token.cancelled:
                raise PollCancelled(handle=handle, polls=self.polls)
            try:
                receipt = self.tick(handle)
            except TransportError as e:
                # relay unreachable for this tick; stays PENDING until the deadline
                self.state = PollState.PENDING
                self.history.append(self.state)
                self._log.warning("receipt poll failed handle=%s poll=%d err=%s", handle, self.polls, e)
                receipt = None
            if receipt is not None:
                self._log.info("receipt found handle=%s after %d polls", handle, self.polls)
                return receipt

            delay = self.interval
            if timeout is not None:
                elapsed = self._clock() - started
                remaining = timeout - elapsed
                if remaining <= 0:
                    raise ReceiptTimeout(handle=handle, waited_s=elapsed, polls=self.polls)
                delay = min(delay, remaining)
            if token.wait(delay):
                raise PollCancelled(handle=handle, polls=self.polls)
