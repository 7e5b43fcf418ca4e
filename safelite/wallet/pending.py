"""
safelite.wallet.pending — pending transactions for incremental signing.

One record per nonce, created by the first signature and terminal once
executed:

    \\x03pending.<u256 nonce>          -> destination(20) ‖ value(u256) ‖ executed(u8)
                                         ‖ count(u32) ‖ payload_len(u32) ‖ payload
    \\x03signed.<u256 nonce><addr>     -> b"\\x01"   signer recorded
    \\x03signers.<u256 nonce>          -> recorded signers, packed 20 bytes each

The signer set is kept both as per-signer flags (O(1) duplicate check) and
as an ordered list (tally at execution time).
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Dict, List

from safelite.errors import (MalformedInput, SignatureAlreadyRecorded,
                             TransactionMismatch)
from safelite.runtime.storage_api import ContractStorage
from safelite.utils.codec import (ADDRESS_LEN, ZERO_ADDRESS, from_be,
                                  to_address, to_bytes, to_checksum_address,
                                  to_hex, u8, u32, u256)

P_PENDING = b"\x03pending."
P_SIGNED = b"\x03signed."
P_SIGNERS = b"\x03signers."

_HEADER_LEN = ADDRESS_LEN + 32 + 1 + 4 + 4


@dataclass(frozen=True)
class PendingTransaction:
    nonce: int
    destination: bytes = ZERO_ADDRESS
    value: int = 0
    payload: bytes = b""
    executed: bool = False
    signature_count: int = 0

    def matches(self, destination: bytes, value: int, payload: bytes) -> bool:
        return (self.destination, self.value, self.payload) == (destination, value, payload)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "nonce": self.nonce,
            "destination": to_checksum_address(self.destination),
            "value": self.value,
            "payload": to_hex(self.payload),
            "executed": self.executed,
            "signature_count": self.signature_count,
        }


def encode_pending(p: PendingTransaction) -> bytes:
    return b"".join((
        p.destination,
        u256(p.value, field="value"),
        u8(1 if p.executed else 0),
        u32(p.signature_count, field="signature_count"),
        u32(len(p.payload), field="payload"),
        p.payload,
    ))


def decode_pending(nonce: int, raw: bytes) -> PendingTransaction:
    if len(raw) < _HEADER_LEN:
        raise MalformedInput("pending record truncated", field="pending")
    dest = bytes(raw[0:20])
    value = from_be(raw[20:52])
    executed = raw[52] == 1
    count = from_be(raw[53:57])
    plen = from_be(raw[57:61])
    if len(raw) != _HEADER_LEN + plen:
        raise MalformedInput("pending record length mismatch", field="pending")
    return PendingTransaction(nonce, dest, value, bytes(raw[_HEADER_LEN:]), executed, count)


class PendingTransactionStore:
    def __init__(self, storage: ContractStorage) -> None:
        self._st = storage

    @staticmethod
    def _k(prefix: bytes, nonce: int) -> bytes:
        return prefix + u256(nonce, field="nonce")

    def _put(self, p: PendingTransaction) -> None:
        self._st.set(self._k(P_PENDING, p.nonce), encode_pending(p))

    def exists(self, nonce: int) -> bool:
        return self._st.exists(self._k(P_PENDING, nonce))

    def get(self, nonce: int) -> PendingTransaction:
        """Record for `nonce`; an empty record if none was ever opened."""
        raw = self._st.get(self._k(P_PENDING, nonce))
        if raw is None:
            return PendingTransaction(nonce)
        return decode_pending(nonce, raw)

    def open(self, nonce: int, destination: Any, value: int, payload: Any) -> PendingTransaction:
        """Create the record, or verify an existing one describes the same call."""
        dest = to_address(destination, field="destination")
        data = to_bytes(payload, field="payload")
        if self.exists(nonce):
            current = self.get(nonce)
            if current.executed or not current.matches(dest, value, data):
                raise TransactionMismatch(nonce)
            return current
        p = PendingTransaction(nonce, dest, value, data)
        self._put(p)
        return p

    def has_signed(self, nonce: int, signer: bytes) -> bool:
        return self._st.exists(self._k(P_SIGNED, nonce) + signer)

    def signers(self, nonce: int) -> List[bytes]:
        raw = self._st.get(self._k(P_SIGNERS, nonce)) or b""
        return [raw[i : i + ADDRESS_LEN] for i in range(0, len(raw), ADDRESS_LEN)]

    def record_signer(self, nonce: int, signer: bytes) -> int:
        """Record `signer` once; returns the new signature count."""
        if self.has_signed(nonce, signer):
            raise SignatureAlreadyRecorded(nonce, signer)
        p = self.get(nonce)
        self._st.set(self._k(P_SIGNED, nonce) + signer, b"\x01")
        k_list = self._k(P_SIGNERS, nonce)
        self._st.set(k_list, (self._st.get(k_list) or b"") + signer)
        count = p.signature_count + 1
        self._put(PendingTransaction(nonce, p.destination, p.value, p.payload, p.executed, count))
        return count

    def mark_executed(self, nonce: int) -> None:
        p = self.get(nonce)
        self._put(PendingTransaction(nonce, p.destination, p.value, p.payload, True, p.signature_count))


__all__ = [
    "PendingTransaction",
    "PendingTransactionStore",
    "encode_pending",
    "decode_pending",
]
