"""
aa_sdk.tx
=========

Operation helpers: build, digest, init payload.

Submodules
----------
- operation : the Operation envelope, gas/fee records, call-payload encoders and the
              sponsor payload layout.
- digest    : principal and sponsor signing digests.
- init_code : per-attempt decision between empty and deploying initCode.

Typical usage
-------------
    from aa_sdk.tx.operation import build_operation, encode_execute
    from aa_sdk.tx.digest import principal_digest

    op = build_operation(sender, nonce, encode_execute(target, 0, data), init_code, fees)
    sig = signer.sign_digest(principal_digest(op.sender, op.nonce, op.call_data))
    op = op.with_signature(sig)
"""

from __future__ import annotations

from .digest import principal_digest, sponsor_digest  # noqa: F401
from .init_code import InitPayloadResolver  # noqa: F401
from .operation import (  # noqa: F401
    FeeSuggestion,
    GasLimits,
    Operation,
    build_operation,
    encode_execute,
    encode_increment,
    sponsor_payload,
)

__all__ = [
    "Operation",
    "GasLimits",
    "FeeSuggestion",
    "build_operation",
    "encode_execute",
    "encode_increment",
    "sponsor_payload",
    "principal_digest",
    "sponsor_digest",
    "InitPayloadResolver",
]
