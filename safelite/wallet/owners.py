"""
safelite.wallet.owners — owner set and signature threshold.

State (wallet storage):

    \\x02owner.<addr>   -> b"\\x01"            membership flag
    \\x02owners.list    -> owner addresses     packed 20 bytes each, insertion order
    \\x01thr            -> threshold            big-endian uint

The registry is pure state mutation. It is reached only from construction
and from authorized self-calls; nothing else in the package mutates it.

Invariant kept by every mutation: 1 <= threshold <= number of owners.

Events:
    Owner(owner, is_owner)        on every insertion/removal
    SignaturesRequired(threshold) on every threshold write
"""

from __future__ import annotations

import logging
from typing import Any, Callable, Iterable, List, Mapping

from safelite.errors import (AlreadyOwner, InvalidThreshold, MalformedInput,
                             NotOwner)
from safelite.runtime.storage_api import ContractStorage
from safelite.utils.codec import ADDRESS_LEN, ZERO_ADDRESS, to_address

log = logging.getLogger(__name__)

K_THRESHOLD = b"\x01thr"
K_OWNER_LIST = b"\x02owners.list"
P_OWNER = b"\x02owner."

EV_OWNER = b"Owner"
EV_SIGNATURES_REQUIRED = b"SignaturesRequired"

Emit = Callable[[bytes, Mapping[str, Any]], Any]


def _k_owner(addr: bytes) -> bytes:
    return P_OWNER + addr


class OwnerRegistry:
    def __init__(self, storage: ContractStorage, emit: Emit, *, max_owners: int) -> None:
        self._st = storage
        self._emit = emit
        self.max_owners = max_owners

    # --- reads ---

    def is_owner(self, address: Any) -> bool:
        return self._st.exists(_k_owner(to_address(address, field="owner")))

    def owners(self) -> List[bytes]:
        raw = self._st.get(K_OWNER_LIST) or b""
        return [raw[i : i + ADDRESS_LEN] for i in range(0, len(raw), ADDRESS_LEN)]

    def count(self) -> int:
        return len(self._st.get(K_OWNER_LIST) or b"") // ADDRESS_LEN

    def threshold(self) -> int:
        return self._st.get_int(K_THRESHOLD)

    # --- internals ---

    def _set_threshold(self, threshold: int, owner_count: int) -> None:
        if isinstance(threshold, bool) or not isinstance(threshold, int):
            raise MalformedInput("threshold must be int", field="threshold")
        if not (1 <= threshold <= owner_count):
            raise InvalidThreshold(threshold, owner_count)
        self._st.set_int(K_THRESHOLD, threshold)
        self._emit(EV_SIGNATURES_REQUIRED, {"threshold": threshold})

    def _check_new_owner(self, owner: Any) -> bytes:
        addr = to_address(owner, field="owner")
        if addr == ZERO_ADDRESS:
            raise MalformedInput("zero address cannot be an owner", field="owner")
        if self.is_owner(addr):
            raise AlreadyOwner(addr)
        if self.count() >= self.max_owners:
            raise MalformedInput(f"owner set is full ({self.max_owners})", field="owner")
        return addr

    def _insert(self, addr: bytes) -> None:
        self._st.set(_k_owner(addr), b"\x01")
        self._st.set(K_OWNER_LIST, (self._st.get(K_OWNER_LIST) or b"") + addr)
        self._emit(EV_OWNER, {"owner": addr, "is_owner": True})

    # --- mutations ---

    def initialize(self, owners: Iterable[Any], threshold: int) -> None:
        owners = list(owners)
        if len(owners) > self.max_owners:
            raise MalformedInput(f"too many owners (>{self.max_owners})", field="owners")
        for owner in owners:
            self._insert(self._check_new_owner(owner))
        self._set_threshold(threshold, len(owners))
        log.info("initialized %d owners, threshold=%d", len(owners), threshold)

    def add_owner(self, new_owner: Any, new_threshold: int) -> None:
        addr = self._check_new_owner(new_owner)
        self._insert(addr)
        self._set_threshold(new_threshold, self.count())
        log.info("owner added 0x%s threshold=%d", addr.hex(), new_threshold)

    def remove_owner(self, owner: Any, new_threshold: int) -> None:
        addr = to_address(owner, field="owner")
        if not self.is_owner(addr):
            raise NotOwner(addr)
        remaining = [o for o in self.owners() if o != addr]
        self._st.delete(_k_owner(addr))
        self._st.set(K_OWNER_LIST, b"".join(remaining))
        self._emit(EV_OWNER, {"owner": addr, "is_owner": False})
        self._set_threshold(new_threshold, len(remaining))
        log.info("owner removed 0x%s threshold=%d", addr.hex(), new_threshold)

    def update_threshold(self, new_threshold: int) -> None:
        self._set_threshold(new_threshold, self.count())
        log.info("threshold updated to %d", new_threshold)


__all__ = ["OwnerRegistry", "EV_OWNER", "EV_SIGNATURES_REQUIRED"]
