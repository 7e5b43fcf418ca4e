"""
safelite.crypto.ecdsa — secp256k1 signatures over personal-message digests.

Owners never sign the raw 32-byte transaction digest. They sign the
*personally-prefixed* digest, the same wrapper wallets apply for
`personal_sign` / `signMessage(bytes32)`:

    msg_hash = keccak256(b"\\x19Ethereum Signed Message:\\n32" || digest)

`recover` reproduces that prefixing before running public-key recovery, so a
signature produced by any standard Ethereum signer over `digest` recovers to
the signer's address here.

Signature layout (65 bytes)
---------------------------
    r (32, big-endian) || s (32, big-endian) || v (1)

`v` is 27 or 28; the raw recovery ids 0/1 are accepted and normalized. High-s
signatures are rejected so that each (message, key) has exactly one valid
encoding.

Curve arithmetic comes from `py_ecc.secp256k1`.
"""

from __future__ import annotations

import logging
from typing import Tuple, Union

from py_ecc.secp256k1 import secp256k1

from safelite.errors import (InvalidSignatureLength, InvalidSignatureRecovery,
                             MalformedInput)
from safelite.utils.codec import (ZERO_ADDRESS, bytes32, from_be, to_bytes)
from safelite.utils.hash import keccak256

log = logging.getLogger(__name__)

SIGNATURE_LEN = 65
PERSONAL_MESSAGE_PREFIX = b"\x19Ethereum Signed Message:\n32"

_N = secp256k1.N
_HALF_N = _N // 2

KeyLike = Union[bytes, bytearray, str]


# ------------------------------ key helpers ------------------------------- #

def _private_key(key: KeyLike) -> bytes:
    k = to_bytes(key, field="private_key")
    if len(k) != 32:
        raise MalformedInput("private key must be 32 bytes", field="private_key")
    if not (1 <= from_be(k) < _N):
        raise MalformedInput("private key out of range", field="private_key")
    return k


def public_key_to_address(x: int, y: int) -> bytes:
    """Address = last 20 bytes of keccak256(X || Y) of the uncompressed public key."""
    return keccak256(x.to_bytes(32, "big") + y.to_bytes(32, "big"))[12:]


def private_key_to_address(private_key: KeyLike) -> bytes:
    x, y = secp256k1.privtopub(_private_key(private_key))
    return public_key_to_address(x, y)


# ------------------------------ signing side ------------------------------ #

def personal_message_hash(digest: Union[bytes, str]) -> bytes:
    """Wrap a 32-byte digest in the length-prefixed signed-message envelope."""
    return keccak256(PERSONAL_MESSAGE_PREFIX + bytes32(digest, field="digest"))


def sign_message(digest: Union[bytes, str], private_key: KeyLike) -> bytes:
    """
    Produce the 65-byte signature an owner submits for `digest`.

    Deterministic (RFC 6979 nonces inside py_ecc); always low-s.
    """
    v, r, s = secp256k1.ecdsa_raw_sign(personal_message_hash(digest), _private_key(private_key))
    if s > _HALF_N:
        s = _N - s
        v = 55 - v  # flip parity: 27 <-> 28
    return r.to_bytes(32, "big") + s.to_bytes(32, "big") + bytes([v])


# ----------------------------- verifying side ----------------------------- #

def split_signature(signature: Union[bytes, str]) -> Tuple[int, int, int]:
    """Return (v, r, s); raises InvalidSignatureLength for anything but 65 bytes."""
    sig = to_bytes(signature, field="signature")
    if len(sig) != SIGNATURE_LEN:
        raise InvalidSignatureLength(len(sig), SIGNATURE_LEN)
    r = from_be(sig[0:32])
    s = from_be(sig[32:64])
    v = sig[64]
    if v < 27:
        v += 27
    return v, r, s


def recover(digest: Union[bytes, str], signature: Union[bytes, str]) -> bytes:
    """
    Recover the signer address of `signature` over the personal-message form of
    `digest`. No owner-membership check happens here.
    """
    v, r, s = split_signature(signature)
    if v not in (27, 28):
        raise InvalidSignatureRecovery(f"invalid v value {v}")
    if not (1 <= r < _N):
        raise InvalidSignatureRecovery("r out of range")
    if not (1 <= s <= _HALF_N):
        raise InvalidSignatureRecovery("s out of range or not canonical (high-s)")

    point = secp256k1.ecdsa_raw_recover(personal_message_hash(digest), (v, r, s))
    if not point:
        raise InvalidSignatureRecovery("r is not the x coordinate of a curve point")
    x, y = point
    if x == 0 and y == 0:
        raise InvalidSignatureRecovery("recovered the point at infinity")

    address = public_key_to_address(x, y)
    if address == ZERO_ADDRESS:
        raise InvalidSignatureRecovery("recovered the zero address")
    log.debug("recovered signer 0x%s", address.hex())
    return address


__all__ = [
    "SIGNATURE_LEN",
    "PERSONAL_MESSAGE_PREFIX",
    "public_key_to_address",
    "private_key_to_address",
    "personal_message_hash",
    "sign_message",
    "split_signature",
    "recover",
]
