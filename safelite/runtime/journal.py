"""
safelite.runtime.journal — nested checkpoints over balances, storage and logs.

A deterministic, in-memory write journal layered over a balance mapping, a
storage backend and an event log. Nested checkpoints are a stack of
overlays. Writes go to the top overlay; reads consult overlays from
top → base. `commit()` merges the top overlay into the next layer, or into
the base state when it is the last one. `revert()` discards the top overlay.

Unlike a long-lived node journal there is no root overlay: every write must
happen inside a checkpoint opened with `begin()`. The host opens one per
transaction frame, so anything written outside a transaction is a bug and
is refused.

    j = Journal(balances, backend, logs)
    j.begin()
    j.set_balance(addr, 10)
    j.storage_set(addr, b"k", b"v")
    j.begin()                   # nested frame
    j.storage_set(addr, b"k", b"w")
    j.revert()                  # b"k" is b"v" again
    j.commit()                  # applied to base
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import Dict, List, MutableMapping, Optional, Tuple

from .events_api import Event
from .storage_api import StorageBackend

log = logging.getLogger(__name__)


# =============================================================================
# Overlay model
# =============================================================================


@dataclass
class _Overlay:
    """
    A single journal layer.

    - `balances`: balances written in this layer.
    - `storage`: staged storage changes. `None` means deletion for that key.
    - `logs`: events emitted in this layer, in emission order.
    """

    balances: Dict[bytes, int] = field(default_factory=dict)
    storage: Dict[bytes, Dict[bytes, Optional[bytes]]] = field(default_factory=dict)
    logs: List[Event] = field(default_factory=list)

    def storage_lookup(self, addr: bytes, key: bytes) -> Tuple[bool, Optional[bytes]]:
        m = self.storage.get(addr)
        if m is None or key not in m:
            return False, None
        return True, m[key]

    def storage_put(self, addr: bytes, key: bytes, value: Optional[bytes]) -> None:
        self.storage.setdefault(addr, {})[key] = value


# =============================================================================
# Journal
# =============================================================================


class Journal:
    """
    A copy-on-write write journal with nested checkpoints.

    Parameters
    ----------
    balances : MutableMapping[bytes, int]
        The base (committed) balance mapping.
    backend : StorageBackend
        The base storage.
    logs : list of Event
        The base (committed) event log.
    """

    def __init__(
        self,
        balances: MutableMapping[bytes, int],
        backend: StorageBackend,
        logs: List[Event],
    ) -> None:
        self._base_balances = balances
        self._base_storage = backend
        self._base_logs = logs
        self._layers: List[_Overlay] = []

    # --------------------------------------------------------------------- #
    # Checkpointing
    # --------------------------------------------------------------------- #

    def depth(self) -> int:
        """Number of open checkpoints (0 outside any transaction)."""
        return len(self._layers)

    def begin(self) -> int:
        """Open a new checkpoint. Returns the new depth."""
        self._layers.append(_Overlay())
        log.debug("journal begin depth=%d", len(self._layers))
        return len(self._layers)

    def commit(self) -> None:
        """Merge the top overlay into its parent, or apply it to base."""
        if not self._layers:
            raise RuntimeError("commit without an open checkpoint")
        top = self._layers.pop()
        if self._layers:
            self._merge_layers(self._layers[-1], top)
        else:
            self._apply_to_base(top)
        log.debug("journal commit depth=%d", len(self._layers))

    def revert(self) -> None:
        """Discard the top overlay."""
        if not self._layers:
            raise RuntimeError("revert without an open checkpoint")
        self._layers.pop()
        log.debug("journal revert depth=%d", len(self._layers))

    def _top(self) -> _Overlay:
        if not self._layers:
            raise RuntimeError("state write outside a transaction")
        return self._layers[-1]

    @staticmethod
    def _merge_layers(parent: _Overlay, child: _Overlay) -> None:
        parent.balances.update(child.balances)
        for addr, changes in child.storage.items():
            parent.storage.setdefault(addr, {}).update(changes)
        parent.logs.extend(child.logs)

    def _apply_to_base(self, top: _Overlay) -> None:
        for addr, bal in top.balances.items():
            if bal == 0:
                self._base_balances.pop(addr, None)
            else:
                self._base_balances[addr] = bal
        for addr, changes in top.storage.items():
            for key, value in changes.items():
                if value is None:
                    self._base_storage.delete(addr, key)
                else:
                    self._base_storage.set(addr, key, value)
        self._base_logs.extend(top.logs)

    # --------------------------------------------------------------------- #
    # Balances
    # --------------------------------------------------------------------- #

    def balance_of(self, addr: bytes) -> int:
        for layer in reversed(self._layers):
            if addr in layer.balances:
                return layer.balances[addr]
        return self._base_balances.get(addr, 0)

    def set_balance(self, addr: bytes, amount: int) -> None:
        self._top().balances[addr] = amount

    # --------------------------------------------------------------------- #
    # Storage
    # --------------------------------------------------------------------- #

    def storage_get(self, addr: bytes, key: bytes) -> Optional[bytes]:
        """Read with overlay precedence. Returns None if absent or deleted."""
        for layer in reversed(self._layers):
            found, value = layer.storage_lookup(addr, key)
            if found:
                return value
        return self._base_storage.get(addr, key)

    def storage_set(self, addr: bytes, key: bytes, value: bytes) -> None:
        self._top().storage_put(addr, key, bytes(value))

    def storage_delete(self, addr: bytes, key: bytes) -> None:
        self._top().storage_put(addr, key, None)

    # --------------------------------------------------------------------- #
    # Logs
    # --------------------------------------------------------------------- #

    def append_log(self, event: Event) -> None:
        self._top().logs.append(event)

    def logs(self) -> Tuple[Event, ...]:
        """Committed events followed by the ones staged in open checkpoints."""
        out: List[Event] = list(self._base_logs)
        for layer in self._layers:
            out.extend(layer.logs)
        return tuple(out)


__all__ = ["Journal"]
