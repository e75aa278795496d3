"""
aa-sdk Python SDK.

Convenience exports for counterfactual account operations.
"""

from .version import __version__  # noqa: F401

# Core config & errors
from .config import SDKConfig, load_env_file  # noqa: F401
from .errors import (  # noqa: F401
    AaSdkError,
    ConfigError,
    OperationError,
    FundingError,
    RpcError,
    TransportError,
    StaleStateError,
    RelayRejection,
    ReceiptTimeout,
    PollCancelled,
    RejectionKind,
)

# RPC
from .rpc.http import RpcClient  # noqa: F401

# Addresses
from .address import derive_account_address, init_code_hash, salt_from_label  # noqa: F401

# Wallet
from .wallet.signer import Signer, recover_signer  # noqa: F401
from .wallet.funding import ensure_funded  # noqa: F401

# Operations
from .tx.operation import (  # noqa: F401
    FeeSuggestion,
    GasLimits,
    Operation,
    build_operation,
    encode_execute,
    encode_increment,
    sponsor_payload,
)
from .tx.digest import principal_digest, sponsor_digest  # noqa: F401
from .tx.init_code import InitPayloadResolver  # noqa: F401

# Chain & relay
from .chain.reader import ChainReader  # noqa: F401
from .chain.fees import StaticFeeOracle  # noqa: F401
from .relay.client import RelayClient, Submitted, Rejected  # noqa: F401
from .relay.poller import CancelToken, PollState, ReceiptPoller  # noqa: F401

# Orchestration
from .session import Session, Sponsor  # noqa: F401
from .pipeline import OperationPipeline, PipelineResult  # noqa: F401

__all__ = [
    "__version__",
    # Core
    "SDKConfig", "load_env_file",
    "AaSdkError", "ConfigError", "OperationError", "FundingError",
    "RpcError", "TransportError", "StaleStateError", "RelayRejection",
    "ReceiptTimeout", "PollCancelled", "RejectionKind",
    # RPC
    "RpcClient",
    # Address
    "derive_account_address", "init_code_hash", "salt_from_label",
    # Wallet
    "Signer", "recover_signer", "ensure_funded",
    # Operations
    "FeeSuggestion", "GasLimits", "Operation", "build_operation",
    "encode_execute", "encode_increment", "sponsor_payload",
    "principal_digest", "sponsor_digest", "InitPayloadResolver",
    # Chain & relay
    "ChainReader", "StaticFeeOracle",
    "RelayClient", "Submitted", "Rejected",
    "CancelToken", "PollState", "ReceiptPoller",
    # Orchestration
    "Session", "Sponsor", "OperationPipeline", "PipelineResult",
]
