"""
Function-signature parsing for the static Ethereum ABI subset SafeLite uses.

Only head-only ("static") types are supported: every argument occupies exactly
one 32-byte word. That covers the governance calls (`address`, `uint256`) and
keeps decoding free of offsets.

    parse_signature("addOwner(address,uint256)") -> ("addOwner", ("address", "uint256"))
"""

from __future__ import annotations

import re
from typing import Tuple

from safelite.errors import MalformedInput

WORD = 32

STATIC_TYPES = frozenset({"address", "uint256", "bool", "bytes32"})

_SIG_RE = re.compile(r"^([A-Za-z_][A-Za-z0-9_]*)\(([a-z0-9,]*)\)$")


def parse_signature(signature: str) -> Tuple[str, Tuple[str, ...]]:
    """Split 'name(t1,t2)' into (name, (t1, t2)); only static types are allowed."""
    m = _SIG_RE.match(signature.replace(" ", ""))
    if not m:
        raise MalformedInput(f"invalid function signature: {signature!r}", field="signature")
    name, args = m.group(1), m.group(2)
    types = tuple(t for t in args.split(",") if t) if args else ()
    for t in types:
        if t not in STATIC_TYPES:
            raise MalformedInput(f"unsupported ABI type: {t!r}", field="signature")
    return name, types


__all__ = ["WORD", "STATIC_TYPES", "parse_signature"]
