"""
safelite.runtime.host — the execution environment contracts run inside.

A `Host` owns the committed world state (balances, per-contract storage and
the event log), a `Journal` over it and a registry of deployed contracts.

Transactions
------------
`Host.transaction()` is the atomic boundary. Every contract entry point and
every inter-contract call runs inside one:

    with host.transaction():
        ...                        # all writes staged in a new checkpoint
    # normal exit  -> commit (to parent frame, or to base at top level)
    # exception    -> revert this frame only, then re-raise

Frames nest, so a reentrant call that fails is rolled back on its own while
its caller decides what to do with the exception. Nesting is bounded by
`max_call_depth`.

Calls
-----
`call(sender, to, value, data)` moves `value` and, if `to` is a registered
contract, dispatches `Message(sender, to, value, data)` to its `on_call`.
Calls to plain accounts just move value.

Deployment
----------
`deploy(deployer, factory)` derives a deterministic address from the
deployer and a per-deployer counter, runs `factory(host, address)` in its own
transaction and registers the returned contract.
"""

from __future__ import annotations

import logging
from contextlib import contextmanager
from typing import (Any, Callable, Dict, Iterator, List, Mapping, Optional,
                    Protocol, Tuple, TypeVar)

from safelite.config import SafeLiteConfig, load_config
from safelite.errors import CallDepthExceeded
from safelite.utils.codec import to_address, to_bytes, u256
from safelite.utils.hash import keccak256

from .context import Message
from .events_api import Event, make_event
from .journal import Journal
from .storage_api import ContractStorage, MemoryBackend, StorageBackend
from .treasury_api import Treasury

log = logging.getLogger(__name__)

CREATE_DOMAIN = b"safelite.create"


class Contract(Protocol):
    """Anything the host can dispatch calls to."""

    def on_call(self, message: Message) -> Optional[bytes]: ...


C = TypeVar("C", bound=Contract)


def derive_address(deployer: bytes, counter: int) -> bytes:
    """keccak256(CREATE_DOMAIN || deployer || u256(counter))[12:]"""
    return keccak256(CREATE_DOMAIN + to_address(deployer, field="deployer") + u256(counter, field="counter"))[12:]


class Host:
    def __init__(self, cfg: Optional[SafeLiteConfig] = None, backend: Optional[StorageBackend] = None) -> None:
        self.cfg = cfg or load_config()
        self._balances: Dict[bytes, int] = {}
        self._backend: StorageBackend = backend if backend is not None else MemoryBackend()
        self._logs: List[Event] = []
        self.journal = Journal(self._balances, self._backend, self._logs)
        self.treasury = Treasury(self.journal)
        self._contracts: Dict[bytes, Contract] = {}
        self._create_counters: Dict[bytes, int] = {}

    # ------------------------------------------------------------------ #
    # Transactions
    # ------------------------------------------------------------------ #

    @contextmanager
    def transaction(self) -> Iterator[None]:
        depth = self.journal.depth()
        if depth >= self.cfg.max_call_depth:
            raise CallDepthExceeded(depth)
        self.journal.begin()
        try:
            yield
        except BaseException:
            self.journal.revert()
            raise
        else:
            self.journal.commit()

    @property
    def depth(self) -> int:
        return self.journal.depth()

    # ------------------------------------------------------------------ #
    # State access
    # ------------------------------------------------------------------ #

    def storage(self, address: bytes) -> ContractStorage:
        return ContractStorage(self.journal, to_address(address), self.cfg)

    def balance_of(self, address: Any) -> int:
        return self.treasury.balance_of(to_address(address))

    def fund(self, address: Any, amount: int) -> None:
        """Mint `amount` to `address` (genesis/test helper)."""
        with self.transaction():
            self.treasury.credit(to_address(address), amount)

    def emit(self, address: bytes, name: bytes, args: Mapping[str, Any]) -> Event:
        ev = make_event(address, name, args)
        self.journal.append_log(ev)
        return ev

    @property
    def events(self) -> Tuple[Event, ...]:
        return self.journal.logs()

    def events_named(self, name: bytes, address: Optional[bytes] = None) -> Tuple[Event, ...]:
        return tuple(
            ev for ev in self.events
            if ev.name == name and (address is None or ev.address == address)
        )

    # ------------------------------------------------------------------ #
    # Contracts
    # ------------------------------------------------------------------ #

    def is_contract(self, address: bytes) -> bool:
        return bytes(address) in self._contracts

    def contract_at(self, address: bytes) -> Optional[Contract]:
        return self._contracts.get(bytes(address))

    def deploy(self, deployer: Any, factory: Callable[["Host", bytes], C]) -> C:
        if self.journal.depth() != 0:
            raise RuntimeError("deploy is only supported at top level")
        deployer_b = to_address(deployer, field="deployer")
        counter = self._create_counters.get(deployer_b, 0)
        address = derive_address(deployer_b, counter)
        with self.transaction():
            contract = factory(self, address)
        self._create_counters[deployer_b] = counter + 1
        self._contracts[address] = contract
        log.info("deployed %s at 0x%s", type(contract).__name__, address.hex())
        return contract

    def call(self, sender: Any, to: Any, value: int = 0, data: Any = b"") -> bytes:
        """Transfer `value` and dispatch to `to` inside a new transaction frame."""
        msg = Message(sender=to_address(sender, field="sender"), to=to_address(to, field="to"),
                      value=value, data=to_bytes(data, field="data"))
        with self.transaction():
            self.treasury.transfer(msg.sender, msg.to, msg.value)
            contract = self._contracts.get(msg.to)
            if contract is None:
                return b""
            out = contract.on_call(msg)
            return bytes(out) if out else b""


__all__ = ["Host", "Contract", "derive_address", "CREATE_DOMAIN"]
