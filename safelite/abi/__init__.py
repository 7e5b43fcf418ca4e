"""
safelite.abi — Ethereum ABI (static words) for self-call payloads.

Convenience re-exports:

    from safelite.abi import encode_call, function_selector, decode_args
"""

from .decoding import decode_args, split_selector
from .encoding import encode_args, encode_call, function_selector
from .types import WORD, parse_signature

__all__ = [
    "WORD",
    "parse_signature",
    "function_selector",
    "encode_args",
    "encode_call",
    "split_selector",
    "decode_args",
]
