"""
safelite.wallet.engine — quorum checks and the shared execution core.

Two ways to reach quorum on `(nonce, destination, value, payload)`:

Batch (`execute_batch`)
    All signatures in one call, over the digest at the current nonce. Each
    recovered signer must be strictly greater than the previous one (so a
    duplicate cannot hide) and a current owner; at least `threshold` of them
    are required.

Incremental (`sign`)
    One signature per call against an explicit nonce. Signers are recorded
    on the pending record for that nonce; when the recorded signers that are
    *still owners* reach the threshold, the call executes. Membership is
    therefore checked at tally time: a signer removed after signing stops
    counting.

Execution order (both protocols):

    1. classify the call (undecodable self-calls fail here, before any write)
    2. mark pending executed, advance nonce, emit TransactionExecuted
    3. apply: governance op on the registry, or an outbound host call

Because step 2 precedes step 3, a callee that re-enters the wallet sees the
advanced nonce and cannot replay the call. If step 3 fails, the exception
propagates out of the entry point's transaction frame and everything,
including step 2, is rolled back.
"""

from __future__ import annotations

import logging
from typing import Optional, Sequence

from safelite.crypto.ecdsa import recover
from safelite.errors import (InsufficientSignatures, NotOwner,
                             OutboundCallFailed, UnsortedOrDuplicateSignature,
                             WalletError)
from safelite.runtime.host import Host
from safelite.utils.codec import ZERO_ADDRESS, to_bytes
from safelite.utils.hash import keccak256

from . import governance
from .calls import Call, GenericCall, Transfer, classify
from .digest import DigestBuilder
from .nonce import NonceSequencer
from .owners import OwnerRegistry
from .pending import PendingTransactionStore

log = logging.getLogger(__name__)

EV_TRANSACTION_EXECUTED = b"TransactionExecuted"


class ExecutionEngine:
    def __init__(
        self,
        host: Host,
        address: bytes,
        digests: DigestBuilder,
        owners: OwnerRegistry,
        nonces: NonceSequencer,
        pending: PendingTransactionStore,
    ) -> None:
        self.host = host
        self.address = address
        self.digests = digests
        self.owners = owners
        self.nonces = nonces
        self.pending = pending

    # ------------------------------------------------------------------ #
    # Protocol A: batch
    # ------------------------------------------------------------------ #

    def execute_batch(self, call: Call, signatures: Sequence[bytes], *, nonce: Optional[int] = None) -> bytes:
        """
        If `nonce` is given it must equal the current nonce, so a replayed
        batch fails with InvalidNonce before any signature is recovered.
        """
        if nonce is not None:
            self.nonces.require(nonce)
        nonce = self.nonces.current()
        digest = self.digests.digest(nonce, call.destination, call.value, call.payload)

        previous = ZERO_ADDRESS
        for index, sig in enumerate(signatures):
            signer = recover(digest, to_bytes(sig, field="signature"))
            if signer <= previous:
                raise UnsortedOrDuplicateSignature(index, signer, previous)
            if not self.owners.is_owner(signer):
                raise NotOwner(signer)
            previous = signer

        required = self.owners.threshold()
        if len(signatures) < required:
            raise InsufficientSignatures(len(signatures), required)

        return self._execute(nonce, digest, call)

    # ------------------------------------------------------------------ #
    # Protocol B: incremental
    # ------------------------------------------------------------------ #

    def sign(self, nonce: int, call: Call, signature: bytes) -> bool:
        """Record one owner signature; returns True if this one executed the call."""
        self.nonces.require(nonce)
        digest = self.digests.digest(nonce, call.destination, call.value, call.payload)
        self.pending.open(nonce, call.destination, call.value, call.payload)

        signer = recover(digest, to_bytes(signature, field="signature"))
        if not self.owners.is_owner(signer):
            raise NotOwner(signer)
        count = self.pending.record_signer(nonce, signer)

        tally = sum(1 for s in self.pending.signers(nonce) if self.owners.is_owner(s))
        required = self.owners.threshold()
        log.debug("nonce=%d signer=0x%s count=%d tally=%d required=%d",
                  nonce, signer.hex(), count, tally, required)
        if tally < required:
            return False

        self._execute(nonce, digest, call, from_pending=True)
        return True

    # ------------------------------------------------------------------ #
    # Shared core
    # ------------------------------------------------------------------ #

    def _execute(self, nonce: int, digest: bytes, call: Call, *, from_pending: bool = False) -> bytes:
        op = classify(call, self.address)

        if from_pending:
            self.pending.mark_executed(nonce)
        self.nonces.advance()
        self.host.emit(self.address, EV_TRANSACTION_EXECUTED, {
            "nonce": nonce,
            "to": call.destination,
            "value": call.value,
            "data_hash": keccak256(call.payload),
            "digest": digest,
        })
        log.info("executing nonce=%d to=0x%s value=%d kind=%s",
                 nonce, call.destination.hex(), call.value, type(op).__name__)

        if isinstance(op, Transfer):
            return b""
        if not isinstance(op, GenericCall):
            governance.apply(self.owners, op)
            return b""

        try:
            return self.host.call(self.address, op.destination, op.value, op.payload)
        except Exception as exc:
            reason = exc.code if isinstance(exc, WalletError) else type(exc).__name__
            log.warning("outbound call to 0x%s failed: %s", op.destination.hex(), exc)
            raise OutboundCallFailed(op.destination, reason) from exc


__all__ = ["ExecutionEngine", "EV_TRANSACTION_EXECUTED"]
