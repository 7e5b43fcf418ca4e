"""
safelite.runtime.context — the message a contract handler receives.

`Message` is pure data with strict validation: 20-byte addresses, a uint256
value and raw call data. Hex strings are accepted and normalized to bytes.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Dict

from safelite.utils.codec import check_uint, to_address, to_bytes, to_hex


@dataclass(frozen=True)
class Message:
    """
    One inbound call.

    Fields
    ------
    sender: Immediate caller address.
    to:     Callee (the contract handling the message).
    value:  Amount transferred with the call (already credited to `to`).
    data:   Raw call data; empty for plain value transfers.
    """

    sender: bytes
    to: bytes
    value: int = 0
    data: bytes = b""

    def __post_init__(self) -> None:
        object.__setattr__(self, "sender", to_address(self.sender, field="sender"))
        object.__setattr__(self, "to", to_address(self.to, field="to"))
        object.__setattr__(self, "value", check_uint(self.value, 256, field="value"))
        object.__setattr__(self, "data", to_bytes(self.data, field="data"))

    @property
    def selector(self) -> bytes:
        return self.data[:4]

    def to_dict(self) -> Dict[str, Any]:
        return {
            "sender": to_hex(self.sender),
            "to": to_hex(self.to),
            "value": self.value,
            "data": to_hex(self.data),
        }


__all__ = ["Message"]
