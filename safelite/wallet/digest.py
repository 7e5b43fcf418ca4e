"""
safelite.wallet.digest — canonical transaction digests.

Every signature an owner produces is over this digest, so the layout is
frozen and matches Solidity's
`keccak256(abi.encodePacked(address(this), chainId, nonce, to, value, data))`:

    wallet(20) ‖ chain_id(u256) ‖ nonce(u256) ‖ destination(20) ‖ value(u256) ‖ payload

`(chain_id, wallet)` is the replay domain: the same call signed for one
wallet instance or network yields a different digest anywhere else.
Wrong-width inputs are rejected, never truncated or padded.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Optional

from safelite.errors import MalformedInput
from safelite.utils.codec import (check_uint, to_address, to_bytes, u256)
from safelite.utils.hash import keccak256


@dataclass(frozen=True)
class ReplayDomain:
    chain_id: int
    wallet: bytes

    def __post_init__(self) -> None:
        object.__setattr__(self, "chain_id", check_uint(self.chain_id, 256, field="chain_id"))
        object.__setattr__(self, "wallet", to_address(self.wallet, field="wallet"))


def encode_transaction(domain: ReplayDomain, nonce: int, destination: Any, value: int, payload: Any) -> bytes:
    """Packed digest preimage."""
    return b"".join((
        domain.wallet,
        u256(domain.chain_id, field="chain_id"),
        u256(nonce, field="nonce"),
        to_address(destination, field="destination"),
        u256(value, field="value"),
        to_bytes(payload, field="payload"),
    ))


def transaction_digest(domain: ReplayDomain, nonce: int, destination: Any, value: int, payload: Any) -> bytes:
    return keccak256(encode_transaction(domain, nonce, destination, value, payload))


class DigestBuilder:
    """Digest Builder bound to one replay domain, with an optional payload cap."""

    def __init__(self, domain: ReplayDomain, *, max_payload_bytes: Optional[int] = None) -> None:
        self.domain = domain
        self.max_payload_bytes = max_payload_bytes

    def _payload(self, payload: Any) -> bytes:
        data = to_bytes(payload, field="payload")
        if self.max_payload_bytes is not None and len(data) > self.max_payload_bytes:
            raise MalformedInput(
                f"payload too large (>{self.max_payload_bytes} bytes)", field="payload"
            )
        return data

    def preimage(self, nonce: int, destination: Any, value: int, payload: Any) -> bytes:
        return encode_transaction(self.domain, nonce, destination, value, self._payload(payload))

    def digest(self, nonce: int, destination: Any, value: int, payload: Any) -> bytes:
        return keccak256(self.preimage(nonce, destination, value, payload))


__all__ = ["ReplayDomain", "encode_transaction", "transaction_digest", "DigestBuilder"]
