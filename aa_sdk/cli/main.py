"""
aa_sdk.cli.main
===============

`aa-sdk`: derive accounts, inspect their state and send operations through a relay.

Examples
--------
    $ aa-sdk --env-file .env address --check
    $ aa-sdk nonce
    $ aa-sdk fees
    $ aa-sdk send                       # Target.increment() through the account
    $ aa-sdk send --no-sponsor --target 0x... --data 0x...
    $ aa-sdk receipt 0x<operation hash> --timeout 60

Configuration
-------------
All settings come from AA_* environment variables (see `aa_sdk.config.SDKConfig`),
optionally loaded from `--env-file`. `--rpc` / `--bundler` override the endpoints.
"""

from __future__ import annotations

import json
import logging
import sys
from dataclasses import dataclass
from typing import Any, Callable, Optional, TypeVar

import typer

from ..chain.fees import StaticFeeOracle
from ..chain.reader import ChainReader
from ..config import SDKConfig, load_env_file
from ..errors import AaSdkError, ConfigError
from ..pipeline import OperationPipeline
from ..relay.client import RelayClient
from ..relay.poller import ReceiptPoller
from ..rpc.http import RpcClient
from ..session import Session
from ..tx.operation import FeeSuggestion, encode_execute, encode_increment
from ..utils.bytes import from_hex
from ..version import __version__ as SDK_VERSION
from ..wallet.funding import ensure_funded

app = typer.Typer(
    name="aa-sdk",
    help="Counterfactual account operations: derive, sign, relay, and wait.",
    no_args_is_help=True,
    add_completion=False,
)

__all__ = ["app", "main", "run"]

T = TypeVar("T")


@dataclass
class Ctx:
    cfg: SDKConfig


def _print_json(obj: Any) -> None:
    typer.echo(json.dumps(obj, indent=2, ensure_ascii=False))


def _guard(fn: Callable[[], T]) -> T:
    try:
        return fn()
    except AaSdkError as e:
        typer.echo(f"error: {e}", err=True)
        raise typer.Exit(1)


@app.callback()
def _root(
    ctx: typer.Context,
    env_file: Optional[str] = typer.Option(None, "--env-file", help="Load AA_* settings from this .env file."),
    rpc: Optional[str] = typer.Option(None, "--rpc", help="Node HTTP JSON-RPC URL."),
    bundler: Optional[str] = typer.Option(None, "--bundler", help="Relay (bundler) JSON-RPC URL."),
    log_level: str = typer.Option("WARNING", "--log-level", envvar="AA_LOG_LEVEL", help="Python logging level."),
) -> None:
    """
    Resolve the effective configuration for this CLI process.
    """
    logging.basicConfig(
        level=getattr(logging, log_level.upper(), logging.WARNING),
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )
    load_env_file(env_file)
    cfg = _guard(lambda: SDKConfig.from_env().with_overrides(rpc_url=rpc, bundler_url=bundler))
    ctx.obj = Ctx(cfg=cfg)


def _cfg(ctx: typer.Context) -> SDKConfig:
    c: Ctx = ctx.obj
    return c.cfg


def _client(ctx: typer.Context, url: str) -> RpcClient:
    # closed when the command context exits
    cfg = _cfg(ctx)
    rpc = RpcClient(url, timeout=cfg.request_timeout, max_retries=cfg.max_retries, headers=cfg.http_headers())
    return ctx.with_resource(rpc)


def _node(ctx: typer.Context) -> RpcClient:
    return _client(ctx, _cfg(ctx).rpc_url)


def _relay(ctx: typer.Context) -> RelayClient:
    return RelayClient(_client(ctx, _cfg(ctx).bundler_url))


def _reader(ctx: typer.Context) -> ChainReader:
    return ChainReader(_node(ctx), entry_point=_cfg(ctx).entry_point)


def _fee_oracle(cfg: SDKConfig, relay: RelayClient):
    if cfg.max_fee_per_gas is not None:
        priority = cfg.max_priority_fee_per_gas if cfg.max_priority_fee_per_gas is not None else cfg.max_fee_per_gas
        return StaticFeeOracle(FeeSuggestion(cfg.max_fee_per_gas, priority))
    return relay


# --- commands ----------------------------------------------------------------


@app.command("version")
def version() -> None:
    """Print the SDK CLI version."""
    typer.echo(f"aa-sdk {SDK_VERSION}")


@app.command("env")
def env(ctx: typer.Context) -> None:
    """Show the effective configuration (keys are never printed)."""
    cfg = _cfg(ctx)
    _print_json(
        {
            "rpc_url": cfg.rpc_url,
            "bundler_url": cfg.bundler_url,
            "entry_point": cfg.entry_point,
            "factory": cfg.factory,
            "paymaster": cfg.paymaster,
            "target": cfg.target,
            "account": cfg.account,
            "gas": {
                "callGasLimit": cfg.gas.call_gas_limit,
                "verificationGasLimit": cfg.gas.verification_gas_limit,
                "preVerificationGas": cfg.gas.pre_verification_gas,
            },
            "poll_interval": cfg.poll_interval,
            "poll_timeout": cfg.poll_timeout,
            "has_private_key": cfg.private_key is not None,
            "sdk_version": SDK_VERSION,
        }
    )


@app.command("address")
def address(
    ctx: typer.Context,
    check: bool = typer.Option(False, "--check", help="Compare with the factory's getAddress view."),
) -> None:
    """Derive the account address for the configured identity and report deployment."""
    cfg = _cfg(ctx)

    def _run() -> dict:
        session = Session.from_config(cfg, sponsored=False)
        reader = _reader(ctx)
        account = session.account_address(reader)
        out = {
            "owner": session.owner.address,
            "account": account,
            "deployed": reader.read_existence(account),
        }
        if check:
            if not session.can_deploy:
                raise ConfigError("--check needs AA_FACTORY_ADDRESS, AA_IDENTITY and AA_BACKEND_SALT")
            view = reader.read_factory_address(session.factory, session.identity, session.backend_salt)
            out["factory_view"] = view
            out["match"] = view == account
        return out

    _print_json(_guard(_run))


@app.command("nonce")
def nonce(ctx: typer.Context) -> None:
    """Current EntryPoint nonce of the account."""
    cfg = _cfg(ctx)

    def _run() -> dict:
        reader = _reader(ctx)
        account = Session.from_config(cfg, sponsored=False).account_address(reader)
        return {"account": account, "nonce": reader.read_nonce(account)}

    _print_json(_guard(_run))


@app.command("fees")
def fees(ctx: typer.Context) -> None:
    """Fee-rate suggestion from the relay (or the static override)."""
    cfg = _cfg(ctx)
    f = _guard(lambda: _fee_oracle(cfg, _relay(ctx)).read_fee_suggestion())
    _print_json({"maxFeePerGas": f.max_fee_per_gas, "maxPriorityFeePerGas": f.max_priority_fee_per_gas})


@app.command("count")
def count(ctx: typer.Context) -> None:
    """Read the target contract's counter."""
    cfg = _cfg(ctx)
    value = _guard(lambda: _reader(ctx).read_count(cfg.require("target")))
    _print_json({"target": cfg.target, "count": value})


@app.command("fund")
def fund(
    ctx: typer.Context,
    min_balance: Optional[int] = typer.Option(None, "--min-balance", help="Balance floor in wei."),
) -> None:
    """Top up a self-paying account from the owner key."""
    cfg = _cfg(ctx)

    def _run() -> dict:
        session = Session.from_config(cfg, sponsored=False)
        node = _node(ctx)
        reader = ChainReader(node, entry_point=cfg.entry_point)
        account = session.account_address(reader)
        floor = min_balance if min_balance is not None else cfg.min_balance_wei
        tx_hash = ensure_funded(
            node, reader, session.owner, account, floor, poll_interval=cfg.poll_interval, timeout=cfg.poll_timeout
        )
        return {"account": account, "balance": reader.read_balance(account), "topUpTx": tx_hash}

    _print_json(_guard(_run))


@app.command("send")
def send(
    ctx: typer.Context,
    target: Optional[str] = typer.Option(None, "--target", help="Contract to call (default AA_TARGET_ADDRESS)."),
    value: int = typer.Option(0, "--value", help="Wei forwarded with the call."),
    data: Optional[str] = typer.Option(None, "--data", help="Call data hex (default increment())."),
    sponsor: bool = typer.Option(True, "--sponsor/--no-sponsor", help="Use the configured paymaster."),
    wait: bool = typer.Option(True, "--wait/--no-wait", help="Poll for the receipt."),
    timeout: Optional[float] = typer.Option(None, "--timeout", help="Receipt deadline in seconds (0 = none)."),
) -> None:
    """Build, sign and relay `account.execute(target, value, data)`."""
    cfg = _cfg(ctx)

    def _run() -> dict:
        session = Session.from_config(cfg, sponsored=sponsor)
        relay = _relay(ctx)
        pipeline = OperationPipeline(
            reader=_reader(ctx),
            fees=_fee_oracle(cfg, relay),
            relay=relay,
            gas=cfg.gas,
            max_attempts=cfg.max_attempts,
            poll_interval=cfg.poll_interval,
        )
        to = target or cfg.require("target")
        inner = from_hex(data) if data else encode_increment()
        call_data = encode_execute(to, value, inner)
        deadline = cfg.poll_timeout if timeout is None else (timeout or None)

        if not wait:
            handle, op, attempts = pipeline.submit(session, call_data)
            return {"handle": handle, "attempts": attempts, "operation": op.to_rpc()}
        result = pipeline.run(session, call_data, timeout=deadline)
        return {
            "handle": result.handle,
            "attempts": result.attempts,
            "success": result.success,
            "transactionHash": result.transaction_hash,
        }

    _print_json(_guard(_run))


@app.command("receipt")
def receipt(
    ctx: typer.Context,
    handle: str = typer.Argument(..., help="Operation hash returned by the relay (0x...)."),
    timeout: Optional[float] = typer.Option(None, "--timeout", help="Deadline in seconds (0 = none)."),
) -> None:
    """Wait for an operation receipt."""
    cfg = _cfg(ctx)
    deadline = cfg.poll_timeout if timeout is None else (timeout or None)
    poller = ReceiptPoller(_relay(ctx), interval=cfg.poll_interval)
    _print_json(_guard(lambda: poller.wait(handle, timeout=deadline)))


# --- Entrypoints --------------------------------------------------------------


def main(argv: Optional[list[str]] = None) -> int:
    """
    Run the CLI. Returns an integer exit code.
    """
    try:
        rv = app(prog_name="aa-sdk", standalone_mode=False, args=argv)
        return rv if isinstance(rv, int) else 0
    except typer.Exit as e:
        return int(e.exit_code)
    except Exception as e:
        # usage errors included
        typer.echo(f"error: {e}", err=True)
        return 1


def run(argv: Optional[list[str]] = None) -> int:
    """Alias for :func:`main`."""
    return main(argv)


if __name__ == "__main__":  # pragma: no cover
    sys.exit(main())
