# -*- coding: utf-8 -*-
"""
Signature recovery over personal-message digests.

Known-answer addresses for private keys 1 and 2 pin the key → address path;
everything else is checked by signing and recovering.
"""
from __future__ import annotations

import pytest
from py_ecc.secp256k1 import secp256k1

from safelite.crypto.ecdsa import (PERSONAL_MESSAGE_PREFIX, SIGNATURE_LEN,
                                   personal_message_hash,
                                   private_key_to_address, recover,
                                   sign_message, split_signature)
from safelite.errors import (InvalidSignatureLength, InvalidSignatureRecovery,
                             MalformedInput)
from safelite.utils.codec import to_checksum_address
from safelite.utils.hash import keccak256

DIGEST = keccak256(b"safelite digest")


def _with(sig: bytes, *, r=None, s=None, v=None) -> bytes:
    r_b = sig[:32] if r is None else r.to_bytes(32, "big")
    s_b = sig[32:64] if s is None else s.to_bytes(32, "big")
    v_b = sig[64:] if v is None else bytes([v])
    return r_b + s_b + v_b


def test_known_private_key_addresses():
    assert to_checksum_address(private_key_to_address((1).to_bytes(32, "big"))) == \
        "0x7E5F4552091A69125d5DfCb7b8C2659029395Bdf"
    assert to_checksum_address(private_key_to_address((2).to_bytes(32, "big"))) == \
        "0x2B5AD5c4795c026514f8317c7a215E218DcCD6cF"


def test_personal_message_hash_layout():
    assert PERSONAL_MESSAGE_PREFIX == b"\x19Ethereum Signed Message:\n32"
    assert personal_message_hash(DIGEST) == keccak256(PERSONAL_MESSAGE_PREFIX + DIGEST)


def test_recovered_address_equals_each_signer(accounts):
    for tag in ("owner1", "owner2", "owner3"):
        acct = accounts[tag]
        sig = acct.sign(DIGEST)
        assert len(sig) == SIGNATURE_LEN
        assert sig[64] in (27, 28)
        assert recover(DIGEST, sig) == acct.address


def test_signing_is_deterministic_and_low_s(accounts):
    key = accounts["owner1"].key
    a = sign_message(DIGEST, key)
    b = sign_message(DIGEST, key)
    assert a == b
    _, _, s = split_signature(a)
    assert s <= secp256k1.N // 2


def test_recovery_ids_0_and_1_are_normalized(accounts):
    sig = accounts["owner2"].sign(DIGEST)
    raw = _with(sig, v=sig[64] - 27)
    assert recover(DIGEST, raw) == accounts["owner2"].address


def test_signature_for_other_digest_recovers_other_address(accounts):
    sig = accounts["owner1"].sign(DIGEST)
    assert recover(keccak256(b"other"), sig) != accounts["owner1"].address


@pytest.mark.parametrize("n", [0, 64, 66, 130])
def test_wrong_length_is_rejected(n):
    with pytest.raises(InvalidSignatureLength) as ei:
        recover(DIGEST, b"\x01" * n)
    assert ei.value.data == {"length": n, "expected": 65}


def test_high_s_is_rejected(accounts):
    sig = accounts["owner1"].sign(DIGEST)
    v, r, s = split_signature(sig)
    flipped = _with(sig, s=secp256k1.N - s, v=55 - v)
    with pytest.raises(InvalidSignatureRecovery):
        recover(DIGEST, flipped)


@pytest.mark.parametrize("v", [26, 29, 35])
def test_bad_v_is_rejected(accounts, v):
    sig = accounts["owner1"].sign(DIGEST)
    with pytest.raises(InvalidSignatureRecovery):
        recover(DIGEST, _with(sig, v=v))


def test_zero_r_or_s_is_rejected(accounts):
    sig = accounts["owner1"].sign(DIGEST)
    with pytest.raises(InvalidSignatureRecovery):
        recover(DIGEST, _with(sig, r=0))
    with pytest.raises(InvalidSignatureRecovery):
        recover(DIGEST, _with(sig, s=0))


def test_private_key_validation():
    with pytest.raises(MalformedInput):
        private_key_to_address(b"\x00" * 32)
    with pytest.raises(MalformedInput):
        private_key_to_address(secp256k1.N.to_bytes(32, "big"))
    with pytest.raises(MalformedInput):
        private_key_to_address(b"\x01" * 31)
