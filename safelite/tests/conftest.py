# -*- coding: utf-8 -*-
"""
safelite.tests.conftest
=======================

Pytest fixtures for the wallet and its host runtime.

Goals:
- A fresh deterministic `Host` per test.
- Stable owner keys derived from tags via SHA3 (no `random`), so addresses
  and signatures are identical across runs.
- A deployed 2-of-3 wallet holding 1.0 unit (10**18), deposited by owner1.
- Signing helpers that produce signatures the way owners would off-chain.

Usage (inside a test file):
    def test_flow(wallet, accounts, sign_sorted):
        o2 = accounts["owner2"]
        digest = wallet.get_transaction_digest(wallet.get_nonce(), o2.address, ONE, b"")
        wallet.execute_transaction(o2.address, ONE, b"", sign_sorted(digest, "owner1", "owner2"))
"""
from __future__ import annotations

import hashlib
import json
import os
from dataclasses import dataclass
from typing import Any, Callable, Dict, List, Optional

import pytest
from py_ecc.secp256k1 import secp256k1

from safelite.config import load_config
from safelite.crypto.ecdsa import private_key_to_address, recover, sign_message
from safelite.runtime.host import Host
from safelite.wallet.contract import SafeLite

CHAIN_ID = 1001
ONE = 10**18

os.environ.setdefault("PYTHONHASHSEED", "0")


# --- tiny deterministic helpers ----------------------------------------------

def _det_key(tag: str) -> bytes:
    """A stable secp256k1 private key from a tag (1 <= k < n)."""
    h = int.from_bytes(hashlib.sha3_256(b"safelite-tests|" + tag.encode("utf-8")).digest(), "big")
    return (h % (secp256k1.N - 1) + 1).to_bytes(32, "big")


@dataclass(frozen=True)
class Account:
    tag: str
    key: bytes
    address: bytes

    def sign(self, digest: bytes) -> bytes:
        return sign_message(digest, self.key)


def make_account(tag: str) -> Account:
    key = _det_key(tag)
    return Account(tag=tag, key=key, address=private_key_to_address(key))


# --- fixtures -------------------------------------------------------------------

@pytest.fixture(autouse=True)
def _clean_config(monkeypatch: pytest.MonkeyPatch):
    for name in list(os.environ):
        if name.startswith("SAFELITE_"):
            monkeypatch.delenv(name, raising=False)
    load_config.cache_clear()
    yield
    load_config.cache_clear()


@pytest.fixture
def accounts() -> Dict[str, Account]:
    return {
        tag: make_account(tag)
        for tag in ("deployer", "owner1", "owner2", "owner3", "owner4", "outsider")
    }


@pytest.fixture
def host() -> Host:
    return Host()


@pytest.fixture
def deploy_wallet(host: Host, accounts: Dict[str, Account]) -> Callable[..., SafeLite]:
    def _deploy(owners: Optional[List[str]] = None, threshold: int = 2, chain_id: int = CHAIN_ID) -> SafeLite:
        tags = owners if owners is not None else ["owner1", "owner2", "owner3"]
        return SafeLite.deploy(
            host,
            accounts["deployer"].address,
            chain_id,
            [accounts[t].address for t in tags],
            threshold,
        )
    return _deploy


@pytest.fixture
def wallet(host: Host, accounts: Dict[str, Account], deploy_wallet) -> SafeLite:
    """2-of-3 wallet (owner1..owner3) holding ONE, deposited by owner1."""
    w = deploy_wallet()
    o1 = accounts["owner1"].address
    host.fund(o1, ONE)
    host.call(o1, w.address, ONE)
    return w


@pytest.fixture
def sign_sorted(accounts: Dict[str, Account]) -> Callable[..., List[bytes]]:
    """Sign `digest` with the named accounts; order by ascending recovered signer."""
    def _sign(digest: bytes, *tags: str) -> List[bytes]:
        sigs = [accounts[t].sign(digest) for t in tags]
        return sorted(sigs, key=lambda s: recover(digest, s))
    return _sign


# --- nicer assertion output for bytes/dicts --------------------------------------

def pytest_assertrepr_compare(op: str, left: Any, right: Any) -> Optional[List[str]]:
    if isinstance(left, (bytes, bytearray)) and isinstance(right, (bytes, bytearray)) and op == "==":
        return [
            "bytes differ:",
            f" left: {bytes(left).hex()}",
            f"right: {bytes(right).hex()}",
        ]
    if isinstance(left, dict) and isinstance(right, dict) and op == "==":
        try:
            lj = json.dumps(left, sort_keys=True, indent=2, default=str)
            rj = json.dumps(right, sort_keys=True, indent=2, default=str)
        except (TypeError, ValueError):
            return None
        return ["dicts differ (compact JSON):", " left:", lj, " right:", rj]
    return None
