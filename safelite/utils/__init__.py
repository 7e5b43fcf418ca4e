"""
safelite.utils — hashing and fixed-width codec helpers shared by every layer.
"""

from .codec import (ADDRESS_LEN, U256_MAX, ZERO_ADDRESS, bytes32, from_be,
                    to_address, to_bytes, to_checksum_address, to_hex, u256)
from .hash import keccak256, keccak256_concat, sha3_256

__all__ = [
    "ADDRESS_LEN",
    "U256_MAX",
    "ZERO_ADDRESS",
    "bytes32",
    "from_be",
    "to_address",
    "to_bytes",
    "to_checksum_address",
    "to_hex",
    "u256",
    "keccak256",
    "keccak256_concat",
    "sha3_256",
]
