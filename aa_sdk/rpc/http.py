from __future__ import annotations

"""
HTTP JSON-RPC client (sync).

- httpx transport, friendly to respx mocks in unit tests.
- Retries idempotent RPC calls on transient transport failures and 429/5xx gateway
  statuses. Non-idempotent calls (operation submission) are sent exactly once and
  their transport failure is surfaced to the caller.

Example:
    from aa_sdk.rpc.http import RpcClient
    rpc = RpcClient("http://localhost:8545")
    code = rpc.request("eth_getCode", ["0x...", "latest"])
"""

import json
import logging
import time
from dataclasses import dataclass, field
from itertools import count
from typing import Any, Dict, Iterator, Mapping, Optional, Sequence, Union

import httpx

from ..errors import JsonRpcCode, RpcError, TransportError, from_jsonrpc_error
from ..utils.retry import RetryError, retry_call
from ..version import __version__ as SDK_VERSION

JSON = Union[dict, list, str, int, float, bool, None]
Params = Union[Sequence[Any], Mapping[str, Any], None]


def _now_ms() -> int:
    return int(time.time() * 1000)


def _is_retriable_http(status: int) -> bool:
    # Typical transient HTTP statuses: 429/502/503/504
    return status in (429, 502, 503, 504)


@dataclass
class RpcClient:
    """Synchronous JSON-RPC 2.0 client over HTTP."""

    url: str
    timeout: float = 30.0
    max_retries: int = 3
    backoff_base: float = 0.15
    backoff_max: float = 2.0
    headers: Optional[Mapping[str, str]] = None
    logger: Optional[logging.Logger] = None
    _id_counter: Iterator[int] = field(default_factory=lambda: count(start=_now_ms()))
    _client: Any = field(init=False, default=None)

    def __post_init__(self) -> None:
        merged_headers: Dict[str, str] = {
            "Content-Type": "application/json",
            "Accept": "application/json",
            "User-Agent": f"aa-sdk-python/{SDK_VERSION}",
        }
        if self.headers:
            merged_headers.update(dict(self.headers))
        self._client = httpx.Client(timeout=self.timeout, headers=merged_headers)
        self._log = self.logger or logging.getLogger("aa_sdk.rpc")

    # --- context manager -------------------------------------------------

    def __enter__(self) -> "RpcClient":
        return self

    def __exit__(self, exc_type, exc, tb) -> None:  # noqa: ANN001
        self.close()

    def close(self) -> None:
        if self._client is not None:
            self._client.close()

    # --- public API ------------------------------------------------------

    def request(
        self,
        method: str,
        params: Params = None,
        *,
        id: Optional[Union[int, str]] = None,
        idempotent: bool = True,
    ) -> JSON:
        """
        Perform a single JSON-RPC request and return `result`.

        Raises RpcError for error objects and malformed bodies, TransportError when
        the endpoint cannot be reached (after retries, for idempotent calls).
        """
        payload = self._make_payload(method, params, id)
        if not idempotent or self.max_retries <= 0:
            return self._send_once(payload)
        try:
            return retry_call(
                self._send_once,
                payload,
                retries=self.max_retries,
                base=self.backoff_base,
                max_delay=self.backoff_max,
                jitter="full",
                exceptions=TransportError,
                on_retry=lambda attempt, exc, delay: self._log.debug(
                    "rpc retry method=%s attempt=%d delay=%.2fs err=%s", method, attempt, delay, exc
                ),
            )
        except RetryError as e:
            raise e.last_exception from None

    # --- internals -------------------------------------------------------

    def _make_payload(self, method: str, params: Params, id: Optional[Union[int, str]] = None) -> Dict[str, Any]:
        if id is None:
            id = next(self._id_counter)
        if params is None:
            params = []
        elif isinstance(params, Mapping):
            params = dict(params)
        elif isinstance(params, Sequence) and not isinstance(params, (str, bytes, bytearray)):
            params = list(params)
        else:
            # Coerce single param into positional list
            params = [params]
        return {"jsonrpc": "2.0", "id": id, "method": method, "params": params}

    def _send_once(self, payload: Dict[str, Any]) -> JSON:
        method = payload["method"]
        body = json.dumps(payload, separators=(",", ":"), ensure_ascii=False)
        self._log.debug("rpc -> %s id=%s", method, payload["id"])
        try:
            r = self._client.post(self.url, content=body)
        except httpx.TransportError as e:
            raise TransportError(message=f"Network error: {e}", url=self.url, method=method) from e
        if _is_retriable_http(r.status_code):
            raise TransportError(message=f"HTTP {r.status_code}", url=self.url, method=method)
        try:
            resp = r.json()
        except ValueError as e:
            raise RpcError(
                code=int(JsonRpcCode.MALFORMED_RESPONSE),
                message="Non-JSON response from RPC",
                data=f"HTTP {r.status_code}: {r.text[:256]}",
                method=method,
                http_status=r.status_code,
            ) from e

        if not isinstance(resp, dict):
            raise RpcError(
                code=int(JsonRpcCode.MALFORMED_RESPONSE),
                message="Invalid JSON-RPC response type",
                data=type(resp).__name__,
                method=method,
                http_status=r.status_code,
            )
        if resp.get("error") is not None:
            raise from_jsonrpc_error(
                resp["error"], method=method, request_id=resp.get("id"), http_status=r.status_code
            )
        if "result" not in resp:
            raise RpcError(
                code=int(JsonRpcCode.MALFORMED_RESPONSE),
                message="Malformed JSON-RPC response",
                data=resp,
                method=method,
                http_status=r.status_code,
            )
        self._log.debug("rpc <- %s id=%s", method, resp.get("id"))
        return resp["result"]


__all__ = ["RpcClient"]
