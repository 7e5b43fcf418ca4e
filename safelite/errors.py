"""
safelite.errors — wallet and host-runtime exceptions.

Every failure is reported as a *typed exception* carrying a stable machine code,
so off-chain tooling can tell "needs more signatures" from "malformed request"
from "not authorized". All of them are terminal for the attempted call: the
transaction boundary in safelite.runtime.host rolls back every state change made
by the failed entry point before the exception reaches the caller.

Hierarchy
---------
WalletError (base)
 ├─ InvalidThreshold              : threshold outside 1..|owners|
 ├─ AlreadyOwner                  : address is already an owner
 ├─ NotOwner                      : address is not a current owner
 ├─ InvalidSignatureLength        : signature is not exactly 65 bytes
 ├─ InvalidSignatureRecovery      : bad v / r / s, or recovery yields no address
 ├─ UnsortedOrDuplicateSignature  : batch signers not strictly ascending
 ├─ InsufficientSignatures        : batch below the threshold
 ├─ InvalidNonce                  : nonce is not the current sequencer value
 ├─ TransactionMismatch           : call differs from the pending record
 ├─ SignatureAlreadyRecorded      : signer already counted for this nonce
 ├─ OutboundCallFailed            : dispatched call raised (cause is chained)
 ├─ OnlySelfCall                  : governance payload from a foreign sender
 ├─ MalformedInput                : wrong width, out of range, undecodable
 ├─ InsufficientBalance           : host ledger debit below zero
 └─ CallDepthExceeded             : too many nested transaction frames

These classes import nothing from the rest of the package so every layer can
raise them without cycles.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Dict, Optional


def _hex(b: Any) -> Any:
    if isinstance(b, (bytes, bytearray, memoryview)):
        return "0x" + bytes(b).hex()
    return b


@dataclass(eq=False)
class WalletError(Exception):
    """
    Base wallet error.

    Attributes:
        message: Human-readable explanation.
        code:    Stable machine code string (e.g., 'NOT_OWNER').
        data:    Optional structured details (kept JSON-serializable).
    """

    message: str = "wallet error"
    code: str = "WALLET_ERROR"
    data: Optional[Dict[str, Any]] = field(default=None)

    def __str__(self) -> str:  # pragma: no cover - trivial
        if self.data:
            return f"{self.code}: {self.message} ({self.data})"
        return f"{self.code}: {self.message}"

    def to_dict(self) -> Dict[str, Any]:
        """Serialize to a JSON-safe dict for CLI output and logs."""
        out: Dict[str, Any] = {"code": self.code, "message": self.message}
        if self.data is not None:
            out["data"] = self.data
        return out


class InvalidThreshold(WalletError):
    def __init__(self, threshold: int, owner_count: int):
        super().__init__(
            message=f"threshold must be within 1..{owner_count}",
            code="INVALID_THRESHOLD",
            data={"threshold": threshold, "owner_count": owner_count},
        )


class AlreadyOwner(WalletError):
    def __init__(self, owner: bytes):
        super().__init__(
            message="address is already an owner",
            code="ALREADY_OWNER",
            data={"owner": _hex(owner)},
        )


class NotOwner(WalletError):
    def __init__(self, address: bytes):
        super().__init__(
            message="address is not an owner",
            code="NOT_OWNER",
            data={"address": _hex(address)},
        )


class InvalidSignatureLength(WalletError):
    def __init__(self, length: int, expected: int = 65):
        super().__init__(
            message=f"signature must be {expected} bytes",
            code="INVALID_SIGNATURE_LENGTH",
            data={"length": length, "expected": expected},
        )


class InvalidSignatureRecovery(WalletError):
    def __init__(self, reason: str):
        super().__init__(
            message="signature does not recover to a valid address",
            code="INVALID_SIGNATURE_RECOVERY",
            data={"reason": reason},
        )


class UnsortedOrDuplicateSignature(WalletError):
    """
    Raised by batch execution when a recovered signer is not strictly greater
    than the one before it. Ascending order is what makes duplicates visible.
    """

    def __init__(self, index: int, signer: bytes, previous: bytes):
        super().__init__(
            message="signatures must be sorted by strictly ascending signer address",
            code="UNSORTED_OR_DUPLICATE_SIGNATURE",
            data={"index": index, "signer": _hex(signer), "previous": _hex(previous)},
        )


class InsufficientSignatures(WalletError):
    def __init__(self, provided: int, required: int):
        super().__init__(
            message="not enough owner signatures",
            code="INSUFFICIENT_SIGNATURES",
            data={"provided": provided, "required": required},
        )


class InvalidNonce(WalletError):
    def __init__(self, nonce: int, expected: int):
        super().__init__(
            message="nonce does not match the current wallet nonce",
            code="INVALID_NONCE",
            data={"nonce": nonce, "expected": expected},
        )


class TransactionMismatch(WalletError):
    def __init__(self, nonce: int):
        super().__init__(
            message="call does not match the pending transaction for this nonce",
            code="TRANSACTION_MISMATCH",
            data={"nonce": nonce},
        )


class SignatureAlreadyRecorded(WalletError):
    def __init__(self, nonce: int, signer: bytes):
        super().__init__(
            message="signer already signed this pending transaction",
            code="SIGNATURE_ALREADY_RECORDED",
            data={"nonce": nonce, "signer": _hex(signer)},
        )


class OutboundCallFailed(WalletError):
    def __init__(self, destination: bytes, reason: str):
        super().__init__(
            message="outbound call failed",
            code="OUTBOUND_CALL_FAILED",
            data={"destination": _hex(destination), "reason": reason},
        )


class OnlySelfCall(WalletError):
    def __init__(self, sender: bytes):
        super().__init__(
            message="owner management is only reachable through an authorized self-call",
            code="ONLY_SELF_CALL",
            data={"sender": _hex(sender)},
        )


class MalformedInput(WalletError):
    """
    Wrong-width or out-of-range input, or an undecodable governance payload.
    Inputs are rejected, never truncated.

    Usage:
        raise MalformedInput("address must be 20 bytes", field="destination")
    """

    def __init__(self, message: str = "malformed input", *, field: Optional[str] = None):
        super().__init__(
            message=message,
            code="MALFORMED_INPUT",
            data=({"field": field} if field is not None else None),
        )


class InsufficientBalance(WalletError):
    def __init__(self, address: bytes, balance: int, amount: int):
        super().__init__(
            message="insufficient balance",
            code="INSUFFICIENT_BALANCE",
            data={"address": _hex(address), "balance": balance, "amount": amount},
        )


class CallDepthExceeded(WalletError):
    def __init__(self, depth: int):
        super().__init__(
            message="maximum call depth exceeded",
            code="CALL_DEPTH_EXCEEDED",
            data={"depth": depth},
        )


__all__ = [
    "WalletError",
    "InvalidThreshold",
    "AlreadyOwner",
    "NotOwner",
    "InvalidSignatureLength",
    "InvalidSignatureRecovery",
    "UnsortedOrDuplicateSignature",
    "InsufficientSignatures",
    "InvalidNonce",
    "TransactionMismatch",
    "SignatureAlreadyRecorded",
    "OutboundCallFailed",
    "OnlySelfCall",
    "MalformedInput",
    "InsufficientBalance",
    "CallDepthExceeded",
]
