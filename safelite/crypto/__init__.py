"""
safelite.crypto — secp256k1 signing and recovery for owner signatures.
"""

from .ecdsa import (SIGNATURE_LEN, personal_message_hash,
                    private_key_to_address, recover, sign_message,
                    split_signature)

__all__ = [
    "SIGNATURE_LEN",
    "personal_message_hash",
    "private_key_to_address",
    "recover",
    "sign_message",
    "split_signature",
]
