"""
safelite.runtime.treasury_api — deterministic balance ledger over the journal.

Balances are non-negative integers that fit in 256 bits. All writes go
through the journal, so a transfer made by a frame that later reverts is
undone together with the rest of that frame.

- balance_of(addr) -> int
- credit(addr, amount)            # host/testing helper
- debit(addr, amount)             # InsufficientBalance if short
- transfer(frm, to, amount)       # debit then credit
"""

from __future__ import annotations

from typing import TYPE_CHECKING

from safelite.errors import InsufficientBalance, MalformedInput
from safelite.utils.codec import U256_MAX, to_address

if TYPE_CHECKING:  # pragma: no cover
    from .journal import Journal


def _check_amount(amount: int) -> int:
    if isinstance(amount, bool) or not isinstance(amount, int):
        raise MalformedInput("amount must be int", field="amount")
    if amount < 0:
        raise MalformedInput("amount must be non-negative", field="amount")
    if amount > U256_MAX:
        raise MalformedInput("amount exceeds 256-bit limit", field="amount")
    return amount


def _add_checked(a: int, b: int) -> int:
    c = a + b
    if c > U256_MAX:
        raise MalformedInput("balance overflow", field="amount")
    return c


class Treasury:
    def __init__(self, journal: "Journal") -> None:
        self._journal = journal

    def balance_of(self, addr: bytes) -> int:
        return self._journal.balance_of(to_address(addr))

    def credit(self, addr: bytes, amount: int) -> None:
        a = to_address(addr)
        _check_amount(amount)
        self._journal.set_balance(a, _add_checked(self._journal.balance_of(a), amount))

    def debit(self, addr: bytes, amount: int) -> None:
        a = to_address(addr)
        _check_amount(amount)
        cur = self._journal.balance_of(a)
        if amount > cur:
            raise InsufficientBalance(a, cur, amount)
        self._journal.set_balance(a, cur - amount)

    def transfer(self, frm: bytes, to: bytes, amount: int) -> None:
        """Move `amount` from `frm` to `to`; zero is a no-op."""
        _check_amount(amount)
        if amount == 0:
            return
        self.debit(frm, amount)
        self.credit(to, amount)


__all__ = ["Treasury"]
