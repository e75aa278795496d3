"""
SDK configuration: node/relay endpoints, contract addresses, keys, gas and polling.

- Loads defaults and supports overrides via environment variables (AA_*), optionally
  read from a `.env` file through python-dotenv.
- Malformed or missing required values raise `ConfigError` immediately; they are
  never retried.
"""

from __future__ import annotations

import os
import re
from dataclasses import dataclass, field, fields, replace
from pathlib import Path
from typing import Any, Dict, Optional, Union

from dotenv import load_dotenv
from eth_utils import is_hex_address, to_checksum_address

from .errors import ConfigError
from .tx.operation import GasLimits
from .version import __version__

_DEFAULT_RPC = "http://127.0.0.1:8545"
_DEFAULT_BUNDLER = "http://127.0.0.1:4337"
_HEX_RE = re.compile(r"^0x[0-9a-fA-F]*$")

# 0.005 ether, the prefund floor for accounts that pay their own gas
DEFAULT_MIN_BALANCE_WEI = 5 * 10**15


def load_env_file(path: Optional[Union[str, Path]] = None) -> bool:
    """Load KEY=VALUE pairs from a .env file without overriding the real environment."""
    if path is None:
        return load_dotenv(override=False)
    return load_dotenv(Path(path), override=False)


def env_value(v: Optional[str], name: str) -> str:
    if not v:
        raise ConfigError(f"Missing env var: {name}")
    return v


def env_address(v: Optional[str], name: str) -> str:
    if not v:
        raise ConfigError(f"Missing env var: {name}")
    if not is_hex_address(v):
        raise ConfigError(f"Invalid address in {name}: {v}")
    return to_checksum_address(v)


def env_hex(v: Optional[str], name: str, width: Optional[int] = None) -> str:
    """0x-prefixed hex; with *width*, exactly that many bytes."""
    if not v:
        raise ConfigError(f"Missing env var: {name}")
    if not _HEX_RE.match(v):
        raise ConfigError(f"{name} must be 0x-prefixed hex")
    if width is not None and len(v) != 2 + 2 * width:
        raise ConfigError(f"{name} must be {width} bytes, got {(len(v) - 2) / 2:g}")
    return v


def _parse_int(val: Optional[str], name: str, default: Optional[int]) -> Optional[int]:
    """
    Accepts decimal or 0x-hex strings.
    """
    if val is None or val == "":
        return default
    s = val.strip()
    try:
        return int(s, 16) if s.lower().startswith("0x") else int(s, 10)
    except ValueError as e:
        raise ConfigError(f"{name} must be an integer (decimal or 0x-hex), got {val!r}") from e


def _parse_float(val: Optional[str], name: str, default: float) -> float:
    if val is None or val == "":
        return default
    try:
        return float(val)
    except ValueError as e:
        raise ConfigError(f"{name} must be a number, got {val!r}") from e


def _opt_address(val: Optional[str], name: str) -> Optional[str]:
    return env_address(val, name) if val else None


def _opt_hex(val: Optional[str], name: str, width: Optional[int] = None) -> Optional[str]:
    return env_hex(val, name, width) if val else None


def _ensure_scheme(url: Optional[str], allowed: tuple[str, ...]) -> Optional[str]:
    if not url:
        return url
    lower = url.lower()
    if not any(lower.startswith(f"{sch}://") for sch in allowed):
        raise ConfigError(f"URL must start with {allowed}, got: {url!r}")
    return url


@dataclass
class SDKConfig:
    # Endpoints
    rpc_url: str = _DEFAULT_RPC
    bundler_url: str = _DEFAULT_BUNDLER
    # Contracts
    entry_point: Optional[str] = None
    factory: Optional[str] = None
    paymaster: Optional[str] = None
    target: Optional[str] = None
    account: Optional[str] = None
    # Counterfactual identity
    identity: Optional[str] = None
    backend_salt: Optional[str] = None
    account_salt: Optional[str] = None
    account_code_hash: Optional[str] = None
    # Keys (never printed)
    private_key: Optional[str] = field(default=None, repr=False)
    paymaster_private_key: Optional[str] = field(default=None, repr=False)
    # Operation sizing
    gas: GasLimits = field(default_factory=GasLimits)
    max_fee_per_gas: Optional[int] = None
    max_priority_fee_per_gas: Optional[int] = None
    # HTTP / pipeline behavior
    request_timeout: float = 10.0
    max_retries: int = 3
    max_attempts: int = 3
    poll_interval: float = 1.0
    poll_timeout: Optional[float] = 120.0
    min_balance_wei: int = DEFAULT_MIN_BALANCE_WEI
    user_agent: str = field(default_factory=lambda: f"aa-sdk-py/{__version__}")

    @classmethod
    def from_env(cls, prefix: str = "AA_", env: Optional[Dict[str, str]] = None) -> "SDKConfig":
        """
        Create config from environment variables:

        AA_RPC_URL / AA_BUNDLER_URL              (http/https)
        AA_ENTRYPOINT_ADDRESS                    EntryPoint contract
        AA_FACTORY_ADDRESS                       account factory (CREATE2 deployer)
        AA_PAYMASTER_ADDRESS                     fee sponsor contract (optional)
        AA_TARGET_ADDRESS                        contract invoked through the account
        AA_ACCOUNT_ADDRESS                       pre-existing account (skips derivation)
        AA_IDENTITY / AA_BACKEND_SALT            factory identity string and salt label
        AA_ACCOUNT_SALT / AA_ACCOUNT_CODE_HASH   pure CREATE2 derivation inputs (0x hex)
        AA_PRIVATE_KEY / AA_PAYMASTER_PRIVATE_KEY
        AA_CALL_GAS_LIMIT / AA_VERIFICATION_GAS_LIMIT / AA_PRE_VERIFICATION_GAS
        AA_MAX_FEE_PER_GAS / AA_MAX_PRIORITY_FEE_PER_GAS   static fee override
        AA_TIMEOUT / AA_MAX_RETRIES / AA_MAX_ATTEMPTS
        AA_POLL_INTERVAL / AA_POLL_TIMEOUT       (0 disables the poll deadline)
        AA_MIN_BALANCE_WEI
        """
        src = os.environ if env is None else env

        def get(key: str) -> Optional[str]:
            v = src.get(f"{prefix}{key}")
            return v if v not in (None, "") else None

        rpc = _ensure_scheme(get("RPC_URL") or _DEFAULT_RPC, ("http", "https"))
        bundler = _ensure_scheme(get("BUNDLER_URL") or _DEFAULT_BUNDLER, ("http", "https"))

        defaults = GasLimits()
        gas = GasLimits(
            call_gas_limit=_parse_int(get("CALL_GAS_LIMIT"), f"{prefix}CALL_GAS_LIMIT", defaults.call_gas_limit),
            verification_gas_limit=_parse_int(
                get("VERIFICATION_GAS_LIMIT"), f"{prefix}VERIFICATION_GAS_LIMIT", defaults.verification_gas_limit
            ),
            pre_verification_gas=_parse_int(
                get("PRE_VERIFICATION_GAS"), f"{prefix}PRE_VERIFICATION_GAS", defaults.pre_verification_gas
            ),
        )

        poll_timeout: Optional[float] = _parse_float(get("POLL_TIMEOUT"), f"{prefix}POLL_TIMEOUT", 120.0)
        if poll_timeout is not None and poll_timeout <= 0:
            poll_timeout = None

        return cls(
            rpc_url=rpc or _DEFAULT_RPC,
            bundler_url=bundler or _DEFAULT_BUNDLER,
            entry_point=_opt_address(get("ENTRYPOINT_ADDRESS"), f"{prefix}ENTRYPOINT_ADDRESS"),
            factory=_opt_address(get("FACTORY_ADDRESS"), f"{prefix}FACTORY_ADDRESS"),
            paymaster=_opt_address(get("PAYMASTER_ADDRESS"), f"{prefix}PAYMASTER_ADDRESS"),
            target=_opt_address(get("TARGET_ADDRESS"), f"{prefix}TARGET_ADDRESS"),
            account=_opt_address(get("ACCOUNT_ADDRESS"), f"{prefix}ACCOUNT_ADDRESS"),
            identity=get("IDENTITY"),
            backend_salt=get("BACKEND_SALT"),
            account_salt=_opt_hex(get("ACCOUNT_SALT"), f"{prefix}ACCOUNT_SALT", 32),
            account_code_hash=_opt_hex(get("ACCOUNT_CODE_HASH"), f"{prefix}ACCOUNT_CODE_HASH", 32),
            private_key=_opt_hex(get("PRIVATE_KEY"), f"{prefix}PRIVATE_KEY", 32),
            paymaster_private_key=_opt_hex(get("PAYMASTER_PRIVATE_KEY"), f"{prefix}PAYMASTER_PRIVATE_KEY", 32),
            gas=gas,
            max_fee_per_gas=_parse_int(get("MAX_FEE_PER_GAS"), f"{prefix}MAX_FEE_PER_GAS", None),
            max_priority_fee_per_gas=_parse_int(
                get("MAX_PRIORITY_FEE_PER_GAS"), f"{prefix}MAX_PRIORITY_FEE_PER_GAS", None
            ),
            request_timeout=_parse_float(get("TIMEOUT"), f"{prefix}TIMEOUT", 10.0),
            max_retries=_parse_int(get("MAX_RETRIES"), f"{prefix}MAX_RETRIES", 3),
            max_attempts=_parse_int(get("MAX_ATTEMPTS"), f"{prefix}MAX_ATTEMPTS", 3),
            poll_interval=_parse_float(get("POLL_INTERVAL"), f"{prefix}POLL_INTERVAL", 1.0),
            poll_timeout=poll_timeout,
            min_balance_wei=_parse_int(get("MIN_BALANCE_WEI"), f"{prefix}MIN_BALANCE_WEI", DEFAULT_MIN_BALANCE_WEI),
        )

    def with_overrides(self, **overrides: Any) -> "SDKConfig":
        """
        Copy of this config plus keyword overrides. Unknown keys are ignored and
        None values leave the current setting in place.
        """
        known = {f.name for f in fields(self)}
        data = {k: v for k, v in overrides.items() if k in known and v is not None}
        if "rpc_url" in data:
            _ensure_scheme(data["rpc_url"], ("http", "https"))
        if "bundler_url" in data:
            _ensure_scheme(data["bundler_url"], ("http", "https"))
        for key in ("entry_point", "factory", "paymaster", "target", "account"):
            if key in data:
                data[key] = env_address(data[key], key)
        return replace(self, **data)

    def require(self, name: str) -> Any:
        """Return a configured value or raise ConfigError naming the missing setting."""
        value = getattr(self, name)
        if value is None or value == "":
            raise ConfigError(f"Missing required setting: {name}")
        return value

    @property
    def sponsor_private_key(self) -> Optional[str]:
        # Sponsor key falls back to the owner key, as in single-operator setups.
        return self.paymaster_private_key or self.private_key

    def http_headers(self) -> Dict[str, str]:
        return {
            "Content-Type": "application/json",
            "Accept": "application/json",
            "User-Agent": self.user_agent,
        }


__all__ = [
    "SDKConfig",
    "DEFAULT_MIN_BALANCE_WEI",
    "load_env_file",
    "env_value",
    "env_address",
    "env_hex",
]
