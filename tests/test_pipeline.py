import pytest

from aa_sdk.errors import ConfigError, RejectionKind, RelayRejection, StaleStateError, TransportError
from aa_sdk.pipeline import OperationPipeline
from aa_sdk.relay.client import Rejected, Submitted
from aa_sdk.tx.digest import principal_digest, sponsor_digest
from aa_sdk.tx.operation import encode_execute, encode_increment
from aa_sdk.wallet.signer import recover_signer

from conftest import (
    ACCOUNT,
    FACTORY,
    HANDLE_A,
    OWNER_ADDRESS,
    PAYMASTER,
    SPONSOR_ADDRESS,
    TARGET,
    FakeFees,
    FakeReader,
    FakeRelay,
)

CALL = encode_execute(TARGET, 0, encode_increment())


def _pipeline(reader, relay, fees=None, **kw):
    sleeps = []
    p = OperationPipeline(reader=reader, fees=fees or FakeFees(), relay=relay, sleep=sleeps.append, **kw)
    return p, sleeps


def test_happy_path_deployed_account(make_session):
    reader = FakeReader(nonces=[5], existence=[True])
    relay = FakeRelay([Submitted(HANDLE_A)])
    p, sleeps = _pipeline(reader, relay)

    handle, op, attempts = p.submit(make_session(), CALL)

    assert (handle, attempts) == (HANDLE_A, 1)
    assert op.nonce == 5
    assert op.init_code == b""
    assert op.paymaster_and_data == b""
    assert recover_signer(principal_digest(ACCOUNT, 5, CALL), op.signature) == OWNER_ADDRESS
    assert sleeps == []


def test_first_use_carries_factory_payload(make_session):
    reader = FakeReader(nonces=[0], existence=[False])
    relay = FakeRelay([Submitted(HANDLE_A)])
    p, _ = _pipeline(reader, relay)

    _, op, _ = p.submit(make_session(), CALL)
    assert op.init_code[:20] == bytes.fromhex(FACTORY[2:])


def test_sponsored_operation(make_session):
    reader = FakeReader(nonces=[7])
    relay = FakeRelay([Submitted(HANDLE_A)])
    p, _ = _pipeline(reader, relay)

    _, op, _ = p.submit(make_session(sponsored=True), CALL)

    assert len(op.paymaster_and_data) == 85
    assert op.paymaster_and_data[:20] == bytes.fromhex(PAYMASTER[2:])
    sponsor_sig = op.paymaster_and_data[20:]
    assert recover_signer(sponsor_digest(ACCOUNT, CALL, 7), sponsor_sig) == SPONSOR_ADDRESS
    # principal signature stays over the principal digest
    assert recover_signer(principal_digest(ACCOUNT, 7, CALL), op.signature) == OWNER_ADDRESS


def test_stale_nonce_restarts_from_fresh_reads(make_session):
    reader = FakeReader(nonces=[5, 6], existence=[True])
    fees = FakeFees()
    relay = FakeRelay([Rejected(RejectionKind.STALE_NONCE, "AA25 invalid account nonce"), Submitted(HANDLE_A)])
    p, sleeps = _pipeline(reader, relay, fees=fees)

    handle, op, attempts = p.submit(make_session(), CALL)

    assert attempts == 2
    assert [o.nonce for o in relay.submitted] == [5, 6]
    assert op.nonce == 6
    assert relay.submitted[0].signature != relay.submitted[1].signature
    assert fees.reads == 2
    assert sleeps == []


def test_already_deployed_drops_init_code_on_retry(make_session):
    reader = FakeReader(nonces=[0], existence=[False, True])
    relay = FakeRelay([Rejected(RejectionKind.ALREADY_DEPLOYED, "AA10 sender already constructed"), Submitted(HANDLE_A)])
    p, _ = _pipeline(reader, relay)

    _, op, attempts = p.submit(make_session(), CALL)

    assert attempts == 2
    assert relay.submitted[0].init_code != b""
    assert op.init_code == b""


def test_stale_state_gives_up_after_max_attempts(make_session):
    reader = FakeReader(nonces=[1, 2, 3])
    relay = FakeRelay([Rejected(RejectionKind.STALE_NONCE, "AA25")] * 3)
    p, _ = _pipeline(reader, relay, max_attempts=3)

    with pytest.raises(StaleStateError) as ei:
        p.submit(make_session(), CALL)
    assert ei.value.attempts == 3
    assert len(relay.submitted) == 3


def test_single_attempt_surfaces_stale_state(make_session):
    relay = FakeRelay([Rejected(RejectionKind.STALE_NONCE, "AA25")])
    p, _ = _pipeline(FakeReader(), relay, max_attempts=1)
    with pytest.raises(StaleStateError):
        p.submit(make_session(), CALL)


def test_transport_failure_backs_off_then_succeeds(make_session):
    relay = FakeRelay([Rejected(RejectionKind.TRANSPORT, "connection refused"), Submitted(HANDLE_A)])
    p, sleeps = _pipeline(FakeReader(), relay, backoff_base=0.5, backoff_max=5.0)

    _, _, attempts = p.submit(make_session(), CALL)

    assert attempts == 2
    assert len(sleeps) == 1
    assert 0 < sleeps[0] <= 5.0


def test_transport_failure_exhausts_attempts(make_session):
    relay = FakeRelay([Rejected(RejectionKind.TRANSPORT, "down")] * 2)
    p, sleeps = _pipeline(FakeReader(), relay, max_attempts=2)
    with pytest.raises(TransportError):
        p.submit(make_session(), CALL)
    assert len(sleeps) == 1


@pytest.mark.parametrize("kind", [RejectionKind.SIGNATURE, RejectionKind.FUNDS, RejectionKind.OTHER])
def test_other_rejections_are_not_retried(make_session, kind):
    relay = FakeRelay([Rejected(kind, "AA24 signature error", {"reason": "x"})])
    p, sleeps = _pipeline(FakeReader(), relay)

    with pytest.raises(RelayRejection) as ei:
        p.submit(make_session(), CALL)
    assert ei.value.kind is kind
    assert ei.value.detail == "AA24 signature error"
    assert len(relay.submitted) == 1
    assert sleeps == []


def test_undeployed_account_without_factory_identity(make_session):
    p, _ = _pipeline(FakeReader(existence=[False]), FakeRelay([]))
    with pytest.raises(ConfigError):
        p.submit(make_session(deployable=False), CALL)


def test_run_waits_for_receipt(make_session):
    receipt = {"success": True, "receipt": {"transactionHash": "0x" + "99" * 32}}
    relay = FakeRelay([Submitted(HANDLE_A)], receipts=[receipt])
    p, _ = _pipeline(FakeReader(), relay, poll_interval=0.01)

    result = p.run(make_session(), CALL, timeout=5.0)

    assert result.handle == HANDLE_A
    assert result.success
    assert result.transaction_hash == "0x" + "99" * 32
    assert relay.receipt_queries == [HANDLE_A]


def test_max_attempts_validated():
    with pytest.raises(ValueError):
        OperationPipeline(reader=FakeReader(), fees=FakeFees(), relay=FakeRelay([]), max_attempts=0)
