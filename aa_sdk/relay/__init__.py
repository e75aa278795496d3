"""
aa_sdk.relay
============

Relay (bundler) integration.

- client : submit operations (`eth_sendUserOperation`), fetch receipts and fee
           suggestions. Submission outcomes are tagged `Submitted | Rejected`.
- poller : receipt state machine (pending -> settled) with a cancel token and an
           optional deadline.
"""

from __future__ import annotations

from .client import Rejected, RelayClient, Submitted, SubmitResult  # noqa: F401
from .poller import CancelToken, PollState, ReceiptPoller  # noqa: F401

__all__ = [
    "RelayClient",
    "Submitted",
    "Rejected",
    "SubmitResult",
    "ReceiptPoller",
    "PollState",
    "CancelToken",
]
