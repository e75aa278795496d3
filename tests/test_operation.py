import pytest

from aa_sdk.errors import OperationError
from aa_sdk.tx.operation import (
    SPONSOR_PAYLOAD_WIDTH,
    FeeSuggestion,
    GasLimits,
    Operation,
    build_operation,
    encode_increment,
    sponsor_payload,
)

from conftest import ACCOUNT, PAYMASTER


def _draft(nonce: int = 0, init_code: bytes = b"") -> Operation:
    return build_operation(ACCOUNT, nonce, encode_increment(), init_code, FeeSuggestion(0x77359400, 0x3B9ACA00))


def test_draft_defaults():
    op = _draft()
    assert op.sender_address == ACCOUNT
    assert op.signature == b""
    assert op.paymaster_and_data == b""
    assert not op.is_signed and not op.is_sponsored
    assert op.call_gas_limit == GasLimits().call_gas_limit


def test_wire_form():
    op = _draft(nonce=0).with_signature(b"\x01" * 65)
    wire = op.to_rpc()

    assert list(wire) == [
        "sender",
        "nonce",
        "initCode",
        "callData",
        "callGasLimit",
        "verificationGasLimit",
        "preVerificationGas",
        "maxFeePerGas",
        "maxPriorityFeePerGas",
        "paymasterAndData",
        "signature",
    ]
    assert wire["sender"] == ACCOUNT
    assert wire["nonce"] == "0x0"
    assert wire["initCode"] == "0x"
    assert wire["paymasterAndData"] == "0x"
    assert wire["callData"] == "0xd09de08a"
    assert wire["callGasLimit"] == "0x350000"
    assert wire["verificationGasLimit"] == "0x150000"
    assert wire["preVerificationGas"] == "0x40000"
    assert wire["maxFeePerGas"] == "0x77359400"
    assert wire["signature"] == "0x" + "01" * 65


def test_wire_form_parses_back():
    op = _draft(nonce=12, init_code=b"\xaa" * 24).with_signature(b"\x02" * 65)
    assert Operation.from_rpc(op.to_rpc()) == op


def test_from_rpc_requires_fields():
    wire = _draft().to_rpc()
    del wire["callGasLimit"]
    with pytest.raises(ValueError):
        Operation.from_rpc(wire)


def test_signing_returns_copies():
    draft = _draft()
    signed = draft.with_signature(b"\x03" * 65)
    assert draft.signature == b""
    assert signed.signature == b"\x03" * 65
    with pytest.raises(ValueError):
        draft.with_signature(b"\x03" * 64)


@pytest.mark.parametrize("length", [1, 20, 65, 84, 86])
def test_sponsor_payload_rejects_other_lengths(length):
    with pytest.raises(OperationError):
        _draft().with_sponsor_payload(b"\x00" * length)


def test_sponsor_payload_layout():
    sig = b"\x05" * 65
    payload = sponsor_payload(PAYMASTER, sig)
    assert len(payload) == SPONSOR_PAYLOAD_WIDTH == 85
    assert payload[:20] == bytes.fromhex(PAYMASTER[2:])
    assert payload[20:] == sig

    op = _draft().with_sponsor_payload(payload)
    assert op.is_sponsored
    assert op.to_rpc()["paymasterAndData"] == "0x" + payload.hex()


def test_uint_ranges_enforced():
    with pytest.raises(ValueError):
        _draft(nonce=-1)
    with pytest.raises(ValueError):
        _draft(nonce=2**256)
    with pytest.raises(ValueError):
        FeeSuggestion(-1, 0)
