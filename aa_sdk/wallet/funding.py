"""
aa_sdk.wallet.funding
=====================

Prefunding for accounts that pay their own gas (no sponsor).

`ensure_funded` checks the account balance and, if it is under the floor, sends the
difference from the owner key as a signed EIP-1559 transfer, then waits for the
transaction receipt. Sponsored operations do not need this step.
"""

from __future__ import annotations

import logging
from typing import Any, Dict, Optional

from eth_account import Account

from ..address import AddressLike, checksum
from ..chain.reader import ChainReader
from ..errors import FundingError
from ..relay.poller import CancelToken, ReceiptPoller
from ..rpc.http import RpcClient
from ..utils.bytes import hex_to_int, int_to_hex, to_hex
from .signer import Signer

__all__ = ["ensure_funded"]

log = logging.getLogger("aa_sdk.funding")


class _TransactionReceipts:
    """Adapts eth_getTransactionReceipt to the poller's receipt source."""

    def __init__(self, rpc: RpcClient) -> None:
        self.rpc = rpc

    def get_receipt(self, handle: str) -> Optional[Dict[str, Any]]:
        res = self.rpc.request("eth_getTransactionReceipt", [handle])
        return res if isinstance(res, dict) else None


def _fee_caps(rpc: RpcClient) -> tuple[int, int]:
    priority = hex_to_int(rpc.request("eth_maxPriorityFeePerGas", []))
    block = rpc.request("eth_getBlockByNumber", ["latest", False])
    base_fee = hex_to_int(block.get("baseFeePerGas", "0x0")) if isinstance(block, dict) else 0
    return 2 * base_fee + priority, priority


def ensure_funded(
    rpc: RpcClient,
    reader: ChainReader,
    owner: Signer,
    account: AddressLike,
    min_balance: int,
    *,
    poll_interval: float = 1.0,
    timeout: Optional[float] = 120.0,
    cancel: Optional[CancelToken] = None,
) -> Optional[str]:
    """
    Top up *account* to *min_balance* wei from *owner*. Returns the funding
    transaction hash, or None when no top-up was needed.
    """
    acct = checksum(account)
    balance = reader.read_balance(acct)
    log.info("account %s balance %d wei (floor %d)", acct, balance, min_balance)
    if balance >= min_balance:
        return None

    needed = min_balance - balance
    owner_balance = reader.read_balance(owner.address)
    if owner_balance <= needed:
        raise FundingError(
            f"owner {owner.address} holds {owner_balance} wei, cannot send the {needed} wei {acct} is missing"
        )

    max_fee, priority = _fee_caps(rpc)
    gas = hex_to_int(
        rpc.request("eth_estimateGas", [{"from": owner.address, "to": acct, "value": int_to_hex(needed)}])
    )
    tx = {
        "type": 2,
        "chainId": hex_to_int(rpc.request("eth_chainId", [])),
        "nonce": hex_to_int(rpc.request("eth_getTransactionCount", [owner.address, "pending"])),
        "to": acct,
        "value": needed,
        "gas": gas,
        "maxFeePerGas": max_fee,
        "maxPriorityFeePerGas": priority,
    }
    signed = Account.sign_transaction(tx, owner.key_hex)
    tx_hash = rpc.request("eth_sendRawTransaction", [to_hex(signed.raw_transaction)], idempotent=False)
    log.info("top-up of %d wei sent tx=%s", needed, tx_hash)

    poller = ReceiptPoller(_TransactionReceipts(rpc), interval=poll_interval, logger=log)
    receipt = poller.wait(str(tx_hash), cancel=cancel, timeout=timeout)
    if hex_to_int(receipt.get("status", "0x0")) != 1:
        raise FundingError(f"top-up transaction {tx_hash} reverted")
    log.info("top-up confirmed in block %s", receipt.get("blockNumber"))
    return str(tx_hash)
