"""
safelite.utils.codec
====================

Small, deterministic helpers for the fixed-width wire format: hex/bytes
coercion, 20-byte addresses (with EIP-55 checksum rendering) and big-endian
unsigned integers.

Conventions:
- Hex strings may start with "0x" (preferred) or be bare; odd-length hex is
  rejected rather than padded.
- Addresses are exactly 20 raw bytes. Anything else is rejected, never
  truncated or padded.
- Fixed-width integers are big-endian unsigned; out-of-range values raise.
"""
from __future__ import annotations

from typing import Union

from safelite.errors import MalformedInput
from safelite.utils.hash import keccak256

BytesLike = Union[bytes, bytearray, memoryview]
IntoBytes = Union[BytesLike, str]

ADDRESS_LEN = 20
ZERO_ADDRESS = b"\x00" * ADDRESS_LEN
U256_MAX = (1 << 256) - 1


# ---------------------------------------------------------------------------
# Hex / bytes
# ---------------------------------------------------------------------------

def has_0x_prefix(s: str) -> bool:
    return len(s) >= 2 and s[0] == "0" and s[1] in "xX"


def strip_0x(s: str) -> str:
    return s[2:] if has_0x_prefix(s) else s


def to_bytes(value: IntoBytes, *, field: str = "value") -> bytes:
    """
    Coerce `value` to bytes.
    - If str, interpret as hex (with or without '0x'); odd-length hex is rejected.
    - If a bytes-like object, copy to immutable bytes.
    """
    if isinstance(value, (bytes, bytearray, memoryview)):
        return bytes(value)
    if isinstance(value, str):
        h = strip_0x(value.strip())
        if len(h) % 2 != 0:
            raise MalformedInput(f"hex string must have even length, got {len(h)}", field=field)
        try:
            return bytes.fromhex(h)
        except ValueError as e:
            raise MalformedInput(f"invalid hex string: {value!r}", field=field) from e
    raise MalformedInput(f"cannot convert {type(value).__name__} to bytes", field=field)


def to_hex(b: BytesLike) -> str:
    """Encode bytes as 0x-prefixed lowercase hex."""
    return "0x" + bytes(b).hex()


# ---------------------------------------------------------------------------
# Addresses
# ---------------------------------------------------------------------------

def to_address(value: IntoBytes, *, field: str = "address") -> bytes:
    """Normalize a 20-byte address given as raw bytes or (checksummed or not) hex."""
    b = to_bytes(value, field=field)
    if len(b) != ADDRESS_LEN:
        raise MalformedInput(f"address must be {ADDRESS_LEN} bytes, got {len(b)}", field=field)
    return b


def to_checksum_address(value: IntoBytes) -> str:
    """Render an address with EIP-55 mixed-case checksum."""
    h = to_address(value).hex()
    digest = keccak256(h.encode("ascii")).hex()
    out = []
    for ch, nib in zip(h, digest):
        out.append(ch.upper() if ch.isalpha() and int(nib, 16) >= 8 else ch)
    return "0x" + "".join(out)


# ---------------------------------------------------------------------------
# Fixed-width unsigned integers (big-endian)
# ---------------------------------------------------------------------------

def check_uint(x: int, bits: int, *, field: str = "value") -> int:
    if isinstance(x, bool) or not isinstance(x, int):
        raise MalformedInput(f"{field} must be int", field=field)
    if x < 0 or x >= (1 << bits):
        raise MalformedInput(f"{field} out of range for uint{bits}", field=field)
    return x


def u8(x: int, *, field: str = "value") -> bytes:
    return check_uint(x, 8, field=field).to_bytes(1, "big")


def u32(x: int, *, field: str = "value") -> bytes:
    return check_uint(x, 32, field=field).to_bytes(4, "big")


def u256(x: int, *, field: str = "value") -> bytes:
    return check_uint(x, 256, field=field).to_bytes(32, "big")


def from_be(b: BytesLike) -> int:
    return int.from_bytes(bytes(b), "big", signed=False)


def bytes32(value: IntoBytes, *, field: str = "hash") -> bytes:
    b = to_bytes(value, field=field)
    if len(b) != 32:
        raise MalformedInput(f"{field} must be 32 bytes, got {len(b)}", field=field)
    return b


__all__ = [
    "ADDRESS_LEN",
    "ZERO_ADDRESS",
    "U256_MAX",
    "has_0x_prefix",
    "strip_0x",
    "to_bytes",
    "to_hex",
    "to_address",
    "to_checksum_address",
    "check_uint",
    "u8",
    "u32",
    "u256",
    "from_be",
    "bytes32",
]
