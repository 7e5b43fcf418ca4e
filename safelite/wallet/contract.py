"""
safelite.wallet.contract — the SafeLite multisig wallet.

    wallet = SafeLite.deploy(host, deployer, chain_id=1001, owners=[o1, o2, o3], threshold=2)

    digest = wallet.get_transaction_digest(wallet.get_nonce(), to, value, b"")
    sigs = sorted((sign_message(digest, k) for k in keys), key=lambda s: recover(digest, s))
    wallet.execute_transaction(to, value, b"", sigs[:2])

Each mutating entry point runs in its own host transaction frame: it either
completes or leaves no trace (storage, balances, events). Read-only views can
be called at any time.

Inbound host calls (`on_call`) are funds reception only. Governance payloads
reach the registry exclusively through an authorized self-call executed by
the engine; the same payload arriving from any sender is refused.
"""

from __future__ import annotations

import logging
from typing import Any, Iterable, List, Optional, Sequence

from safelite.crypto.ecdsa import recover as _recover
from safelite.errors import MalformedInput, OnlySelfCall
from safelite.runtime.context import Message
from safelite.runtime.host import Host
from safelite.utils.codec import check_uint, to_address, u256

from .calls import Call
from .digest import DigestBuilder, ReplayDomain
from .engine import ExecutionEngine
from .governance import GOVERNANCE_SELECTORS
from .nonce import NonceSequencer
from .owners import OwnerRegistry
from .pending import PendingTransaction, PendingTransactionStore

log = logging.getLogger(__name__)

K_CHAIN = b"\x01chain"

EV_DEPOSIT = b"Deposit"


class SafeLite:
    def __init__(self, host: Host, address: bytes) -> None:
        self.host = host
        self.address = to_address(address, field="address")
        self._st = host.storage(self.address)
        self.owners = OwnerRegistry(self._st, self._emit, max_owners=host.cfg.max_owners)
        self.nonces = NonceSequencer(self._st)
        self.pending = PendingTransactionStore(self._st)

    # ------------------------------------------------------------------ #
    # Construction
    # ------------------------------------------------------------------ #

    @classmethod
    def deploy(
        cls,
        host: Host,
        deployer: Any,
        chain_id: int,
        owners: Iterable[Any],
        threshold: int,
    ) -> "SafeLite":
        owners = list(owners)

        def factory(h: Host, address: bytes) -> "SafeLite":
            wallet = cls(h, address)
            wallet._construct(chain_id, owners, threshold)
            return wallet

        return host.deploy(deployer, factory)

    def _construct(self, chain_id: int, owners: List[Any], threshold: int) -> None:
        self._st.set(K_CHAIN, u256(check_uint(chain_id, 256, field="chain_id")))
        self.nonces.initialize()
        self.owners.initialize(owners, threshold)

    def _emit(self, name: bytes, args: Any) -> None:
        self.host.emit(self.address, name, args)

    def _engine(self) -> ExecutionEngine:
        digests = DigestBuilder(
            ReplayDomain(self.chain_id, self.address),
            max_payload_bytes=self.host.cfg.max_payload_bytes,
        )
        return ExecutionEngine(self.host, self.address, digests, self.owners, self.nonces, self.pending)

    # ------------------------------------------------------------------ #
    # Views
    # ------------------------------------------------------------------ #

    @property
    def chain_id(self) -> int:
        return int.from_bytes(self._st.get(K_CHAIN) or b"", "big")

    def multisig_wallet_address(self) -> bytes:
        return self.address

    def balance(self) -> int:
        return self.host.balance_of(self.address)

    def get_transaction_digest(self, nonce: int, destination: Any, value: int, payload: Any = b"") -> bytes:
        return self._engine().digests.digest(nonce, destination, value, payload)

    def recover(self, digest: Any, signature: Any) -> bytes:
        return _recover(digest, signature)

    def is_owner(self, address: Any) -> bool:
        return self.owners.is_owner(address)

    def get_owners(self) -> List[bytes]:
        return self.owners.owners()

    def get_signatures_required(self) -> int:
        return self.owners.threshold()

    def get_nonce(self) -> int:
        return self.nonces.current()

    def get_pending_transaction(self, nonce: int) -> PendingTransaction:
        return self.pending.get(check_uint(nonce, 256, field="nonce"))

    def get_pending_signers(self, nonce: int) -> List[bytes]:
        return self.pending.signers(check_uint(nonce, 256, field="nonce"))

    # ------------------------------------------------------------------ #
    # Entry points
    # ------------------------------------------------------------------ #

    def execute_transaction(
        self,
        destination: Any,
        value: int,
        payload: Any,
        signatures: Sequence[Any],
        *,
        nonce: Optional[int] = None,
    ) -> bytes:
        """
        Batch protocol; returns the callee's return data.

        Pass `nonce` to pin the call to a wallet nonce: a replayed batch then
        fails with InvalidNonce. Without it the signatures are checked against
        the digest at the current nonce, so a replay recovers unrelated
        signers and fails with NotOwner or UnsortedOrDuplicateSignature.
        """
        with self.host.transaction():
            return self._engine().execute_batch(
                Call(destination, value, payload), list(signatures), nonce=nonce
            )

    def sign_transaction(
        self,
        nonce: int,
        destination: Any,
        value: int,
        payload: Any,
        signature: Any,
    ) -> bool:
        """Incremental protocol; True when this signature completed the quorum."""
        with self.host.transaction():
            return self._engine().sign(nonce, Call(destination, value, payload), signature)

    def on_call(self, message: Message) -> Optional[bytes]:
        if not message.data:
            self._emit(EV_DEPOSIT, {
                "sender": message.sender,
                "amount": message.value,
                "balance": self.balance(),
            })
            return b""
        if message.selector in GOVERNANCE_SELECTORS:
            raise OnlySelfCall(message.sender)
        raise MalformedInput("wallet accepts no call data", field="data")


__all__ = ["SafeLite", "EV_DEPOSIT"]
