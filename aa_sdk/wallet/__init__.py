"""
aa_sdk.wallet
=============

- signer  : secp256k1 signing over personal-message-wrapped digests
- funding : top up a self-paying account from the owner key
"""

from __future__ import annotations

from .signer import Signer, personal_message_hash, recover_signer  # noqa: F401

__all__ = ["Signer", "personal_message_hash", "recover_signer"]
