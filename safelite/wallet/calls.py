"""
safelite.wallet.calls — the authorized call and its decoded form.

A `Call` is classified exactly once, before any state is committed, into a
closed set of operations:

    destination == wallet, empty payload      -> Transfer (no-op)
    destination == wallet, governance payload -> AddOwner | RemoveOwner | UpdateThreshold
    destination == wallet, anything else      -> MalformedInput
    any other destination                     -> GenericCall
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Union

from safelite.utils.codec import check_uint, to_address, to_bytes

from .governance import GovernanceOp, decode_self_call


@dataclass(frozen=True)
class Call:
    destination: bytes
    value: int
    payload: bytes = b""

    def __post_init__(self) -> None:
        object.__setattr__(self, "destination", to_address(self.destination, field="destination"))
        object.__setattr__(self, "value", check_uint(self.value, 256, field="value"))
        object.__setattr__(self, "payload", to_bytes(self.payload, field="payload"))


@dataclass(frozen=True)
class Transfer:
    """Self-call without payload."""


@dataclass(frozen=True)
class GenericCall:
    destination: bytes
    value: int
    payload: bytes


Operation = Union[Transfer, GovernanceOp, GenericCall]


def classify(call: Call, self_address: bytes) -> Operation:
    if call.destination != self_address:
        return GenericCall(call.destination, call.value, call.payload)
    if not call.payload:
        return Transfer()
    return decode_self_call(call.payload)


__all__ = ["Call", "Transfer", "GenericCall", "Operation", "classify"]
