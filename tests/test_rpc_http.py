import json

import httpx
import pytest
import respx

from aa_sdk.errors import JsonRpcCode, RpcError, TransportError
from aa_sdk.rpc.http import RpcClient

URL = "http://node.test:8545"


@respx.mock
def test_request_payload_and_result():
    route = respx.post(URL).respond(json={"jsonrpc": "2.0", "id": 7, "result": "0x1"})
    with RpcClient(URL, max_retries=0) as rpc:
        assert rpc.request("eth_chainId", id=7) == "0x1"

    body = json.loads(route.calls.last.request.content)
    assert body == {"jsonrpc": "2.0", "id": 7, "method": "eth_chainId", "params": []}
    assert route.calls.last.request.headers["content-type"] == "application/json"


@respx.mock
def test_error_object_becomes_rpc_error():
    respx.post(URL).respond(
        json={"jsonrpc": "2.0", "id": 1, "error": {"code": -32601, "message": "Method not found", "data": "x"}}
    )
    rpc = RpcClient(URL, max_retries=0)
    with pytest.raises(RpcError) as ei:
        rpc.request("nope_method")
    err = ei.value
    assert err.code == -32601
    assert err.code_enum is JsonRpcCode.METHOD_NOT_FOUND
    assert err.method == "nope_method"
    assert err.data == "x"


@respx.mock
def test_transient_status_is_retried_for_reads():
    route = respx.post(URL).mock(
        side_effect=[
            httpx.Response(503, text="busy"),
            httpx.Response(200, json={"jsonrpc": "2.0", "id": 1, "result": "0x10"}),
        ]
    )
    rpc = RpcClient(URL, max_retries=2, backoff_base=0.001, backoff_max=0.002)
    assert rpc.request("eth_blockNumber") == "0x10"
    assert route.call_count == 2


@respx.mock
def test_non_idempotent_calls_are_sent_once():
    route = respx.post(URL).mock(side_effect=httpx.ConnectError("refused"))
    rpc = RpcClient(URL, max_retries=3, backoff_base=0.001, backoff_max=0.002)
    with pytest.raises(TransportError):
        rpc.request("eth_sendRawTransaction", ["0x00"], idempotent=False)
    assert route.call_count == 1


@respx.mock
def test_retries_exhausted_raise_transport_error():
    route = respx.post(URL).mock(side_effect=httpx.ConnectError("refused"))
    rpc = RpcClient(URL, max_retries=2, backoff_base=0.001, backoff_max=0.002)
    with pytest.raises(TransportError) as ei:
        rpc.request("eth_blockNumber")
    assert ei.value.url == URL
    assert route.call_count == 3


@pytest.mark.parametrize(
    "response",
    [
        httpx.Response(200, text="not json"),
        httpx.Response(200, json=[1, 2, 3]),
        httpx.Response(200, json={"jsonrpc": "2.0", "id": 1}),
    ],
)
@respx.mock
def test_malformed_responses(response):
    respx.post(URL).mock(return_value=response)
    with pytest.raises(RpcError) as ei:
        RpcClient(URL, max_retries=0).request("eth_call")
    assert ei.value.code == JsonRpcCode.MALFORMED_RESPONSE


def test_single_param_is_wrapped():
    rpc = RpcClient(URL)
    assert rpc._make_payload("m", "0xabc", 1)["params"] == ["0xabc"]
    assert rpc._make_payload("m", {"a": 1}, 1)["params"] == {"a": 1}
