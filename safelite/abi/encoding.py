"""
Ethereum ABI encoding (static head words) for SafeLite call payloads.

Primitives
----------
Every value is one 32-byte word:

- uint256:  big-endian, left-padded with zeros
- address:  12 zero bytes || 20 address bytes
- bool:     uint256 0 or 1
- bytes32:  raw 32 bytes

Calls
-----
encode_call("addOwner(address,uint256)", owner, 3) =>
  keccak256("addOwner(address,uint256)")[:4] || word(owner) || word(3)

The selector is computed from the canonical signature text, so the payload is
byte-identical to what any Ethereum tooling produces for the same call.
"""

from __future__ import annotations

from typing import Any, Sequence

from safelite.errors import MalformedInput
from safelite.utils.codec import bytes32, to_address, u256
from safelite.utils.hash import keccak256

from .types import WORD, parse_signature

__all__ = [
    "function_selector",
    "encode_uint256",
    "encode_address",
    "encode_bool",
    "encode_value",
    "encode_args",
    "encode_call",
]


def function_selector(signature: str) -> bytes:
    """First four bytes of keccak256 over the canonical signature text."""
    name, types = parse_signature(signature)
    canonical = f"{name}({','.join(types)})"
    return keccak256(canonical.encode("ascii"))[:4]


# ──────────────────────────────────────────────────────────────────────────────
# Primitive encoders
# ──────────────────────────────────────────────────────────────────────────────

def encode_uint256(value: int) -> bytes:
    return u256(value)


def encode_address(value: Any) -> bytes:
    return b"\x00" * (WORD - 20) + to_address(value)


def encode_bool(value: Any) -> bytes:
    if not isinstance(value, bool):
        raise MalformedInput("bool argument must be True or False", field="bool")
    return u256(1 if value else 0)


def encode_value(value: Any, typ: str) -> bytes:
    if typ == "uint256":
        return encode_uint256(value)
    if typ == "address":
        return encode_address(value)
    if typ == "bool":
        return encode_bool(value)
    if typ == "bytes32":
        return bytes32(value, field="bytes32")
    raise MalformedInput(f"unsupported ABI type: {typ!r}", field="type")


def encode_args(types: Sequence[str], values: Sequence[Any]) -> bytes:
    if len(types) != len(values):
        raise MalformedInput(
            f"expected {len(types)} arguments, got {len(values)}", field="args"
        )
    return b"".join(encode_value(v, t) for t, v in zip(types, values))


def encode_call(signature: str, *values: Any) -> bytes:
    _, types = parse_signature(signature)
    return function_selector(signature) + encode_args(types, values)
