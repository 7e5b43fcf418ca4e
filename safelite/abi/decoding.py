"""
Inverse of safelite.abi.encoding for static head words.

Decoding is strict: the body must be exactly one word per argument, address
words must carry zero padding and bool words must be 0 or 1. Anything else is
`MalformedInput`; nothing is silently truncated.

Top-level:
- split_selector(data) -> (selector, body)
- decode_args(body, types) -> list
"""

from __future__ import annotations

from typing import Any, List, Sequence, Tuple

from safelite.errors import MalformedInput
from safelite.utils.codec import from_be

from .types import WORD

__all__ = [
    "split_selector",
    "decode_uint256",
    "decode_address",
    "decode_bool",
    "decode_value",
    "decode_args",
]


def split_selector(data: bytes) -> Tuple[bytes, bytes]:
    if len(data) < 4:
        raise MalformedInput("call data shorter than a selector", field="payload")
    return bytes(data[:4]), bytes(data[4:])


def decode_uint256(word: bytes) -> int:
    return from_be(word)


def decode_address(word: bytes) -> bytes:
    if any(word[: WORD - 20]):
        raise MalformedInput("address word has non-zero padding", field="address")
    return bytes(word[WORD - 20 :])


def decode_bool(word: bytes) -> bool:
    v = from_be(word)
    if v not in (0, 1):
        raise MalformedInput("bool word must be 0 or 1", field="bool")
    return v == 1


def decode_value(word: bytes, typ: str) -> Any:
    if typ == "uint256":
        return decode_uint256(word)
    if typ == "address":
        return decode_address(word)
    if typ == "bool":
        return decode_bool(word)
    if typ == "bytes32":
        return bytes(word)
    raise MalformedInput(f"unsupported ABI type: {typ!r}", field="type")


def decode_args(body: bytes, types: Sequence[str]) -> List[Any]:
    if len(body) != WORD * len(types):
        raise MalformedInput(
            f"expected {WORD * len(types)} argument bytes, got {len(body)}", field="payload"
        )
    out: List[Any] = []
    for i, t in enumerate(types):
        out.append(decode_value(body[i * WORD : (i + 1) * WORD], t))
    return out
