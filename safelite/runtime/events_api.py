"""
safelite.runtime.events_api — validated event records and receipt encoding.

Contracts emit events through `Host.emit`, which builds an `Event` here and
stages it in the journal. Staged events live and die with the transaction
that produced them: a reverted frame drops its events along with its storage
writes, so observers only ever see events of committed transactions.

An event is `(address, name, args)`:

    name   non-empty bytes, at most NAME_MAX bytes
    args   {identifier: value}; value is one of
             bytes  (tag "b", at most BYTES_MAX)   -> 0x-hex in receipts
             int    (tag "i", at most INT_BITS)
             bool   (tag "z")

Receipts carry each arg as `{"k": key, "t": tag, "v": value}` in emission
order.
"""

from __future__ import annotations

import re
from dataclasses import dataclass
from types import MappingProxyType
from typing import Any, Dict, Iterable, List, Mapping, Sequence, Tuple

from safelite.errors import MalformedInput
from safelite.utils.codec import to_hex

NAME_MAX = 64
KEY_MAX = 64
BYTES_MAX = 4096
INT_BITS = 256

_IDENT = re.compile(r"[A-Za-z_][A-Za-z0-9_]*")


def _tagged(key: str, value: Any) -> Tuple[str, Any]:
    """Return (tag, normalized value) for one arg, or raise MalformedInput."""
    # bool before int: bool is an int subclass
    if isinstance(value, bool):
        return "z", value
    if isinstance(value, int):
        if value.bit_length() > INT_BITS:
            raise MalformedInput(f"event arg {key!r} exceeds {INT_BITS} bits", field="event.value")
        return "i", int(value)
    if isinstance(value, (bytes, bytearray)):
        if len(value) > BYTES_MAX:
            raise MalformedInput(f"event arg {key!r} exceeds {BYTES_MAX} bytes", field="event.value")
        return "b", bytes(value)
    raise MalformedInput(
        f"event arg {key!r} has unsupported type {type(value).__name__}", field="event.value"
    )


@dataclass(frozen=True)
class CanonicalEvent:
    """JSON-friendly receipt form of an `Event`; address and name are 0x-hex."""

    address: str
    name: str
    args: Sequence[Mapping[str, Any]]


@dataclass(frozen=True)
class Event:
    address: bytes
    name: bytes
    args: Mapping[str, Any]

    def __getitem__(self, key: str) -> Any:
        return self.args[key]

    def to_canonical(self) -> CanonicalEvent:
        encoded = []
        for k, v in self.args.items():
            tag, norm = _tagged(k, v)
            encoded.append({"k": k, "t": tag, "v": to_hex(norm) if tag == "b" else norm})
        return CanonicalEvent(to_hex(self.address), to_hex(self.name), tuple(encoded))


def make_event(address: bytes, name: bytes, args: Mapping[Any, Any]) -> Event:
    """Validate and freeze one event emitted by the contract at `address`."""
    if not isinstance(name, (bytes, bytearray)) or not 0 < len(name) <= NAME_MAX:
        raise MalformedInput(f"event name must be 1..{NAME_MAX} bytes", field="event.name")
    if not isinstance(args, Mapping):
        raise MalformedInput("event args must be a mapping", field="event.args")

    checked: Dict[str, Any] = {}
    for key, value in args.items():
        if not isinstance(key, str) or len(key) > KEY_MAX or not _IDENT.fullmatch(key):
            raise MalformedInput(f"bad event arg name {key!r}", field="event.key")
        checked[key] = _tagged(key, value)[1]
    return Event(bytes(address), bytes(name), MappingProxyType(checked))


def events_for_receipt(events: Iterable[Event]) -> List[CanonicalEvent]:
    return [ev.to_canonical() for ev in events]


__all__ = [
    "Event",
    "CanonicalEvent",
    "make_event",
    "events_for_receipt",
    "NAME_MAX",
    "KEY_MAX",
    "BYTES_MAX",
    "INT_BITS",
]
