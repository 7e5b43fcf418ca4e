"""
safelite.wallet — the multisig wallet: digests, owners, nonces, pending
records, the execution engine and the `SafeLite` contract facade.
"""

from .calls import Call, GenericCall, Transfer, classify
from .contract import SafeLite
from .digest import DigestBuilder, ReplayDomain, transaction_digest
from .engine import ExecutionEngine
from .governance import (AddOwner, RemoveOwner, UpdateThreshold,
                         decode_self_call, encode_add_owner,
                         encode_remove_owner, encode_update_threshold)
from .nonce import NonceSequencer
from .owners import OwnerRegistry
from .pending import PendingTransaction, PendingTransactionStore

__all__ = [
    "SafeLite",
    "Call",
    "Transfer",
    "GenericCall",
    "classify",
    "DigestBuilder",
    "ReplayDomain",
    "transaction_digest",
    "ExecutionEngine",
    "AddOwner",
    "RemoveOwner",
    "UpdateThreshold",
    "decode_self_call",
    "encode_add_owner",
    "encode_remove_owner",
    "encode_update_threshold",
    "NonceSequencer",
    "OwnerRegistry",
    "PendingTransaction",
    "PendingTransactionStore",
]
