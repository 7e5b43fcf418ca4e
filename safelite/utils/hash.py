"""
SafeLite • utilities — hashing helpers (Keccak-256 + SHA3)

This module provides:

  • Keccak-256 (the pre-standard Keccak used by Ethereum signers), backed by
    PyCryptodome's `Crypto.Hash.keccak`
  • Safe concatenation helper for multi-part preimages
  • SHA3-256 for non-wire uses (deterministic test keys, address derivation salts)

Keccak-256 and FIPS SHA3-256 differ only in padding, and mixing them up
silently breaks every signature produced off-chain. Wire formats in this
package always use `keccak256`.

All functions return raw bytes. `*_hex` variants return lowercase "0x" hex.
"""

from __future__ import annotations

from hashlib import sha3_256 as _sha3_256
from typing import Union

from Crypto.Hash import keccak as _keccak

BytesLike = Union[bytes, bytearray, memoryview]


def _b(x: BytesLike) -> bytes:
    if not isinstance(x, (bytes, bytearray, memoryview)):
        raise TypeError(f"expected bytes-like, got {type(x).__name__}")
    return bytes(x)


# ------------------------------- Keccak-256 ----------------------------------


def keccak256(data: BytesLike) -> bytes:
    """Return Keccak-256(bytes(data))."""
    h = _keccak.new(digest_bits=256)
    h.update(_b(data))
    return h.digest()


def keccak256_hex(data: BytesLike) -> str:
    """Return '0x' + lowercase hex of Keccak-256(bytes(data))."""
    return "0x" + keccak256(data).hex()


def keccak256_concat(*parts: BytesLike) -> bytes:
    """Keccak-256 over the plain concatenation of `parts` (no length prefixes)."""
    h = _keccak.new(digest_bits=256)
    for p in parts:
        h.update(_b(p))
    return h.digest()


# -------------------------------- SHA3-256 -----------------------------------


def sha3_256(data: BytesLike) -> bytes:
    """Return SHA3-256(bytes(data))."""
    return _sha3_256(_b(data)).digest()


__all__ = [
    "keccak256",
    "keccak256_hex",
    "keccak256_concat",
    "sha3_256",
]
