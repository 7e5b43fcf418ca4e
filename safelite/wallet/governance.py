"""
safelite.wallet.governance — owner-management operations as self-calls.

Owners change the owner set the same way they move funds: by authorizing a
call whose destination is the wallet itself and whose payload is one of the
ABI-encoded operations below. There is no other path into the registry.

    addOwner(address,uint256)      new owner, new threshold
    removeOwner(address,uint256)   owner, new threshold
    updateThreshold(uint256)       new threshold

Encoders are for off-chain tooling; `decode_self_call` is what the execution
engine runs on an authorized self-call.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Union

from safelite.abi import decode_args, encode_call, function_selector, split_selector
from safelite.errors import MalformedInput

from .owners import OwnerRegistry

SIG_ADD_OWNER = "addOwner(address,uint256)"
SIG_REMOVE_OWNER = "removeOwner(address,uint256)"
SIG_UPDATE_THRESHOLD = "updateThreshold(uint256)"

SELECTOR_ADD_OWNER = function_selector(SIG_ADD_OWNER)
SELECTOR_REMOVE_OWNER = function_selector(SIG_REMOVE_OWNER)
SELECTOR_UPDATE_THRESHOLD = function_selector(SIG_UPDATE_THRESHOLD)

GOVERNANCE_SELECTORS = frozenset(
    {SELECTOR_ADD_OWNER, SELECTOR_REMOVE_OWNER, SELECTOR_UPDATE_THRESHOLD}
)


@dataclass(frozen=True)
class AddOwner:
    owner: bytes
    threshold: int


@dataclass(frozen=True)
class RemoveOwner:
    owner: bytes
    threshold: int


@dataclass(frozen=True)
class UpdateThreshold:
    threshold: int


GovernanceOp = Union[AddOwner, RemoveOwner, UpdateThreshold]


def encode_add_owner(owner: Any, threshold: int) -> bytes:
    return encode_call(SIG_ADD_OWNER, owner, threshold)


def encode_remove_owner(owner: Any, threshold: int) -> bytes:
    return encode_call(SIG_REMOVE_OWNER, owner, threshold)


def encode_update_threshold(threshold: int) -> bytes:
    return encode_call(SIG_UPDATE_THRESHOLD, threshold)


def decode_self_call(payload: bytes) -> GovernanceOp:
    """Decode a governance payload; anything unrecognized is MalformedInput."""
    selector, body = split_selector(payload)
    if selector == SELECTOR_ADD_OWNER:
        owner, threshold = decode_args(body, ("address", "uint256"))
        return AddOwner(owner, threshold)
    if selector == SELECTOR_REMOVE_OWNER:
        owner, threshold = decode_args(body, ("address", "uint256"))
        return RemoveOwner(owner, threshold)
    if selector == SELECTOR_UPDATE_THRESHOLD:
        (threshold,) = decode_args(body, ("uint256",))
        return UpdateThreshold(threshold)
    raise MalformedInput(f"unknown self-call selector 0x{selector.hex()}", field="payload")


def apply(registry: OwnerRegistry, op: GovernanceOp) -> None:
    if isinstance(op, AddOwner):
        registry.add_owner(op.owner, op.threshold)
    elif isinstance(op, RemoveOwner):
        registry.remove_owner(op.owner, op.threshold)
    elif isinstance(op, UpdateThreshold):
        registry.update_threshold(op.threshold)
    else:  # pragma: no cover
        raise TypeError(f"not a governance operation: {op!r}")


__all__ = [
    "SIG_ADD_OWNER",
    "SIG_REMOVE_OWNER",
    "SIG_UPDATE_THRESHOLD",
    "SELECTOR_ADD_OWNER",
    "SELECTOR_REMOVE_OWNER",
    "SELECTOR_UPDATE_THRESHOLD",
    "GOVERNANCE_SELECTORS",
    "AddOwner",
    "RemoveOwner",
    "UpdateThreshold",
    "GovernanceOp",
    "encode_add_owner",
    "encode_remove_owner",
    "encode_update_threshold",
    "decode_self_call",
    "apply",
]
