"""Nonce sequencer: one increment per executed transaction, never reused."""

from __future__ import annotations

from safelite.errors import InvalidNonce
from safelite.runtime.storage_api import ContractStorage
from safelite.utils.codec import check_uint

K_NONCE = b"\x01nonce"


class NonceSequencer:
    def __init__(self, storage: ContractStorage) -> None:
        self._st = storage

    def initialize(self) -> None:
        self._st.set_int(K_NONCE, 0)

    def current(self) -> int:
        return self._st.get_int(K_NONCE)

    def require(self, nonce: int) -> int:
        check_uint(nonce, 256, field="nonce")
        expected = self.current()
        if nonce != expected:
            raise InvalidNonce(nonce, expected)
        return nonce

    def advance(self) -> int:
        nxt = self.current() + 1
        self._st.set_int(K_NONCE, nxt)
        return nxt


__all__ = ["NonceSequencer", "K_NONCE"]
