import threading

import pytest

from aa_sdk.errors import PollCancelled, ReceiptTimeout, TransportError
from aa_sdk.relay.poller import CancelToken, PollState, ReceiptPoller

from conftest import HANDLE_A, FakeRelay

RECEIPT = {"userOpHash": HANDLE_A, "success": True}


class RecordingToken:
    """Stands in for CancelToken: records each sleep and advances a fake clock."""

    def __init__(self, clock=None, cancel_after=None) -> None:
        self.waits = []
        self.clock = clock
        self.cancel_after = cancel_after
        self.cancelled = False

    def wait(self, timeout: float) -> bool:
        self.waits.append(timeout)
        if self.clock is not None:
            self.clock.now += timeout
        if self.cancel_after is not None and len(self.waits) >= self.cancel_after:
            self.cancelled = True
        return self.cancelled


class FakeClock:
    def __init__(self) -> None:
        self.now = 100.0

    def __call__(self) -> float:
        return self.now


def test_pending_then_settled():
    source = FakeRelay([], receipts=[None, None, None, RECEIPT])
    token = RecordingToken()
    poller = ReceiptPoller(source, interval=1.0)

    assert poller.wait(HANDLE_A, cancel=token) == RECEIPT
    assert poller.history == [PollState.PENDING] * 3 + [PollState.SETTLED]
    assert poller.state is PollState.SETTLED
    assert token.waits == [1.0, 1.0, 1.0]
    assert source.receipt_queries == [HANDLE_A] * 4


def test_immediate_receipt_does_not_sleep():
    token = RecordingToken()
    poller = ReceiptPoller(FakeRelay([], receipts=[RECEIPT]), interval=2.0)
    assert poller.wait(HANDLE_A, cancel=token) == RECEIPT
    assert poller.polls == 1
    assert token.waits == []


def test_deadline_raises_timeout():
    clock = FakeClock()
    token = RecordingToken(clock=clock)
    poller = ReceiptPoller(FakeRelay([], receipts=[None]), interval=1.0, clock=clock)

    with pytest.raises(ReceiptTimeout) as ei:
        poller.wait(HANDLE_A, cancel=token, timeout=2.5)

    # last sleep is clipped to the remaining time
    assert token.waits == [1.0, 1.0, 0.5]
    assert ei.value.handle == HANDLE_A
    assert ei.value.polls == 4
    assert poller.state is PollState.PENDING


def test_cancel_during_sleep():
    token = RecordingToken(cancel_after=2)
    poller = ReceiptPoller(FakeRelay([], receipts=[None]), interval=1.0)

    with pytest.raises(PollCancelled) as ei:
        poller.wait(HANDLE_A, cancel=token)
    assert ei.value.polls == 2


def test_cancelled_before_start_never_polls():
    source = FakeRelay([], receipts=[RECEIPT])
    token = CancelToken()
    token.cancel()

    with pytest.raises(PollCancelled):
        ReceiptPoller(source).wait(HANDLE_A, cancel=token)
    assert source.receipt_queries == []


def test_cancel_token_interrupts_real_sleep():
    token = CancelToken()
    timer = threading.Timer(0.05, token.cancel)
    timer.start()
    try:
        with pytest.raises(PollCancelled):
            ReceiptPoller(FakeRelay([], receipts=[None]), interval=30.0).wait(HANDLE_A, cancel=token)
    finally:
        timer.cancel()
    assert token.cancelled


def test_interval_must_be_positive():
    with pytest.raises(ValueError):
        ReceiptPoller(FakeRelay([]), interval=0)


class FlakySource:
    """Raises TransportError for the first `failures` queries, then serves `receipt`."""

    def __init__(self, failures: int, receipt=None) -> None:
        self.failures = failures
        self.receipt = receipt
        self.queries = 0

    def get_receipt(self, handle: str):
        self.queries += 1
        if self.queries <= self.failures:
            raise TransportError("connection reset", url="http://bundler.test/rpc", method="eth_getUserOperationReceipt")
        return self.receipt


def test_transport_failure_keeps_polling():
    source = FlakySource(failures=1, receipt=RECEIPT)
    token = RecordingToken(clock=FakeClock())
    poller = ReceiptPoller(source, interval=1.0, clock=token.clock)

    assert poller.wait(HANDLE_A, cancel=token, timeout=5.0) == RECEIPT
    assert poller.history == [PollState.PENDING, PollState.SETTLED]
    assert token.waits == [1.0]
    assert source.queries == 2


def test_unreachable_relay_ends_in_timeout():
    clock = FakeClock()
    token = RecordingToken(clock=clock)
    poller = ReceiptPoller(FlakySource(failures=100), interval=1.0, clock=clock)

    with pytest.raises(ReceiptTimeout) as ei:
        poller.wait(HANDLE_A, cancel=token, timeout=2.0)
    assert ei.value.polls == 3
    assert poller.state is PollState.PENDING
