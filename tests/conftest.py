"""
Shared pytest fixtures:
- Well-known development keys (Hardhat accounts #0 and #1)
- In-memory fakes for the chain reads, fee oracle and relay the pipeline consumes
- A Session factory wired to those fakes
"""
from __future__ import annotations

import json
from typing import Any, Callable, Dict, List, Optional

import httpx
import pytest

from aa_sdk.address import salt_from_label
from aa_sdk.session import Session, Sponsor
from aa_sdk.tx.operation import FeeSuggestion, Operation
from aa_sdk.wallet.signer import Signer

OWNER_KEY = "0xac0974bec39a17e36ba4a6b4d238ff944bacb478cbed5efcae784d7bf4f2ff80"
OWNER_ADDRESS = "0xf39Fd6e51aad88F6F4ce6aB8827279cffFb92266"
SPONSOR_KEY = "0x59c6995e998f97a5a0044966f0945389dc9e86dae88c7a8412f4603b6b78690d"
SPONSOR_ADDRESS = "0x70997970C51812dc3A010C7d01b50e0d17dc79C8"

ENTRY_POINT = "0x5FF137D4b0FDCD49DcA30c7CF57E578a026d2789"
FACTORY = "0x9406Cc6185a346906296840746125a0E44976454"
PAYMASTER = "0x1111111111111111111111111111111111111111"
TARGET = "0x2222222222222222222222222222222222222222"
ACCOUNT = "0x3333333333333333333333333333333333333333"

HANDLE_A = "0x" + "ab" * 32
HANDLE_B = "0x" + "cd" * 32


def jsonrpc_router(results: Dict[str, Any], calls: Optional[List[tuple]] = None) -> Callable[[httpx.Request], httpx.Response]:
    """
    respx side effect answering JSON-RPC by method name. A value may be a callable
    taking the params list. Unknown methods get a -32601 error.
    """

    def _handle(request: httpx.Request) -> httpx.Response:
        body = json.loads(request.content)
        method, params = body["method"], body.get("params", [])
        if calls is not None:
            calls.append((method, params))
        if method not in results:
            err = {"code": -32601, "message": f"method not found: {method}"}
            return httpx.Response(200, json={"jsonrpc": "2.0", "id": body["id"], "error": err})
        value = results[method]
        if callable(value):
            value = value(params)
        return httpx.Response(200, json={"jsonrpc": "2.0", "id": body["id"], "result": value})

    return _handle


class FakeReader:
    """
    Scripted chain reads. `nonces` is consumed one value per `read_nonce` call
    (the last value repeats); `existence` likewise for `read_existence`.
    """

    def __init__(self, nonces: Optional[List[int]] = None, existence: Optional[List[bool]] = None) -> None:
        self.nonces = list(nonces or [0])
        self.existence = list(existence or [True])
        self.calls: List[tuple] = []

    @staticmethod
    def _next(values: list) -> Any:
        return values.pop(0) if len(values) > 1 else values[0]

    def read_nonce(self, account: str) -> int:
        self.calls.append(("nonce", account))
        return self._next(self.nonces)

    def read_existence(self, account: str) -> bool:
        self.calls.append(("existence", account))
        return self._next(self.existence)

    def read_factory_address(self, factory, identity, backend_salt, entry_point=None) -> str:
        self.calls.append(("factory_address", factory, identity))
        return ACCOUNT


class FakeFees:
    def __init__(self, fees: FeeSuggestion = FeeSuggestion(2_000_000_000, 1_000_000_000)) -> None:
        self.fees = fees
        self.reads = 0

    def read_fee_suggestion(self) -> FeeSuggestion:
        self.reads += 1
        return self.fees


class FakeRelay:
    """
    Scripted relay: `outcomes` are returned by successive `submit` calls; `receipts`
    by successive `get_receipt` calls (None means still pending).
    """

    def __init__(self, outcomes: List[Any], receipts: Optional[List[Optional[Dict[str, Any]]]] = None) -> None:
        self.outcomes = list(outcomes)
        self.receipts = list(receipts or [{"success": True, "receipt": {"transactionHash": "0x" + "11" * 32}}])
        self.submitted: List[Operation] = []
        self.receipt_queries: List[str] = []

    def submit(self, op: Operation, entry_point: str):
        self.submitted.append(op)
        return self.outcomes.pop(0)

    def get_receipt(self, handle: str) -> Optional[Dict[str, Any]]:
        self.receipt_queries.append(handle)
        return self.receipts.pop(0) if len(self.receipts) > 1 else self.receipts[0]


@pytest.fixture
def owner() -> Signer:
    return Signer.from_key(OWNER_KEY)


@pytest.fixture
def sponsor_signer() -> Signer:
    return Signer.from_key(SPONSOR_KEY)


@pytest.fixture
def make_session(owner: Signer, sponsor_signer: Signer):
    def _make(*, sponsored: bool = False, deployable: bool = True, account: Optional[str] = ACCOUNT) -> Session:
        return Session(
            owner=owner,
            entry_point=ENTRY_POINT,
            factory=FACTORY if deployable else None,
            identity="alice@example.org:V2" if deployable else None,
            backend_salt=salt_from_label("backend-salt") if deployable else None,
            account=account,
            sponsor=Sponsor(PAYMASTER, sponsor_signer) if sponsored else None,
        )

    return _make
