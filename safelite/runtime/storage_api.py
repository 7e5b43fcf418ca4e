"""
safelite.runtime.storage_api — per-contract key/value storage.

Two layers:

- `StorageBackend`: the committed base store, keyed by (address, key). The
  default `MemoryBackend` is a thread-safe dict for local runs and tests; a
  host can plug in anything with the same four methods.
- `ContractStorage`: the facade a contract actually holds. It is bound to one
  address and reads/writes through the host journal, so every write is part
  of the current transaction frame and disappears if that frame reverts.

Keys and values are bytes with strict length caps from `safelite.config`.
Typed helpers store unsigned integers big-endian.
"""

from __future__ import annotations

import threading
from typing import TYPE_CHECKING, Dict, Optional, Protocol, Tuple, runtime_checkable

from safelite.config import SafeLiteConfig, load_config
from safelite.errors import MalformedInput
from safelite.utils.codec import U256_MAX

if TYPE_CHECKING:  # pragma: no cover
    from .journal import Journal


# ---------------------------- Backend API ---------------------------- #


@runtime_checkable
class StorageBackend(Protocol):
    """Minimal backend interface for committed contract storage."""

    def get(self, address: bytes, key: bytes) -> Optional[bytes]: ...
    def set(self, address: bytes, key: bytes, value: bytes) -> None: ...
    def delete(self, address: bytes, key: bytes) -> None: ...
    def exists(self, address: bytes, key: bytes) -> bool: ...


class MemoryBackend:
    """Thread-safe in-memory backend for local runs and tests."""

    def __init__(self) -> None:
        self._store: Dict[Tuple[bytes, bytes], bytes] = {}
        self._lock = threading.RLock()

    def get(self, address: bytes, key: bytes) -> Optional[bytes]:
        with self._lock:
            return self._store.get((address, key))

    def set(self, address: bytes, key: bytes, value: bytes) -> None:
        with self._lock:
            self._store[(address, key)] = value

    def delete(self, address: bytes, key: bytes) -> None:
        with self._lock:
            self._store.pop((address, key), None)

    def exists(self, address: bytes, key: bytes) -> bool:
        with self._lock:
            return (address, key) in self._store

    def __len__(self) -> int:
        with self._lock:
            return len(self._store)


# --------------------------- Contract facade --------------------------- #


class ContractStorage:
    """Journaled storage bound to a single contract address."""

    def __init__(self, journal: "Journal", address: bytes, cfg: Optional[SafeLiteConfig] = None) -> None:
        self._journal = journal
        self._address = bytes(address)
        self._cfg = cfg or load_config()

    @property
    def address(self) -> bytes:
        return self._address

    # --- validation ---

    def _check_key(self, key: bytes) -> bytes:
        if not isinstance(key, (bytes, bytearray)):
            raise MalformedInput("storage key must be bytes", field="storage.key")
        if len(key) == 0:
            raise MalformedInput("storage key must be non-empty", field="storage.key")
        if len(key) > self._cfg.max_storage_key_bytes:
            raise MalformedInput(
                f"storage key too long (>{self._cfg.max_storage_key_bytes} bytes)",
                field="storage.key",
            )
        return bytes(key)

    def _check_value(self, value: bytes) -> bytes:
        if not isinstance(value, (bytes, bytearray)):
            raise MalformedInput("storage value must be bytes", field="storage.value")
        if len(value) > self._cfg.max_storage_value_bytes:
            raise MalformedInput(
                f"storage value too large (>{self._cfg.max_storage_value_bytes} bytes)",
                field="storage.value",
            )
        return bytes(value)

    # --- raw API ---

    def get(self, key: bytes) -> Optional[bytes]:
        """Return the value for `key`, or None if not set."""
        return self._journal.storage_get(self._address, self._check_key(key))

    def set(self, key: bytes, value: bytes) -> None:
        self._journal.storage_set(self._address, self._check_key(key), self._check_value(value))

    def delete(self, key: bytes) -> None:
        """Delete `key` if present (no-op otherwise)."""
        self._journal.storage_delete(self._address, self._check_key(key))

    def exists(self, key: bytes) -> bool:
        return self.get(key) is not None

    # --- typed helpers ---

    def get_int(self, key: bytes, default: int = 0) -> int:
        """Read a big-endian unsigned integer at `key`; `default` if unset."""
        raw = self.get(key)
        if raw is None:
            return default
        return int.from_bytes(raw, "big", signed=False)

    def set_int(self, key: bytes, value: int) -> None:
        """Store `value` big-endian, minimal width (zero -> b"\\x00")."""
        if isinstance(value, bool) or not isinstance(value, int):
            raise MalformedInput("set_int value must be int", field="storage.value")
        if value < 0 or value > U256_MAX:
            raise MalformedInput("set_int out of range (must fit in 256 bits)", field="storage.value")
        if value == 0:
            encoded = b"\x00"
        else:
            encoded = value.to_bytes((value.bit_length() + 7) // 8, "big")
        self.set(key, encoded)


__all__ = ["StorageBackend", "MemoryBackend", "ContractStorage"]
