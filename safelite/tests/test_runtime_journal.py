# -*- coding: utf-8 -*-
"""
Host runtime: journal laws, storage caps, ledger and event rollback.

Journal "laws" (property tests):
  - begin → writes → revert  ⇒ state equals baseline
  - begin → writes → commit  ⇒ state equals baseline ∪ writes (last-wins)
  - nested checkpoints behave as a stack (inner revert keeps outer writes)
"""
from __future__ import annotations

from typing import Dict

import pytest
from hypothesis import given, settings, strategies as st

from safelite.config import SafeLiteConfig, load_config
from safelite.errors import CallDepthExceeded, InsufficientBalance, MalformedInput
from safelite.runtime.events_api import events_for_receipt, make_event
from safelite.runtime.host import Host, derive_address
from safelite.runtime.journal import Journal
from safelite.runtime.storage_api import ContractStorage, MemoryBackend, StorageBackend

ADDR = b"\xaa" * 20
OTHER = b"\xbb" * 20

HKEY = st.binary(min_size=1, max_size=32)
HVAL = st.binary(min_size=0, max_size=128)
MAP_SMALL = st.dictionaries(keys=HKEY, values=HVAL, min_size=0, max_size=16)


def _snapshot(j: Journal, keys) -> Dict[bytes, bytes]:
    return {k: v for k in keys if (v := j.storage_get(ADDR, k)) is not None}


def _fresh(base: Dict[bytes, bytes]) -> Journal:
    backend = MemoryBackend()
    for k, v in base.items():
        backend.set(ADDR, k, v)
    return Journal({}, backend, [])


# -----------------------------------------------------------------------------
# Journal laws
# -----------------------------------------------------------------------------

@settings(max_examples=60, deadline=None)
@given(base=MAP_SMALL, writes=MAP_SMALL)
def test_revert_restores_baseline(base, writes):
    j = _fresh(base)
    keys = set(base) | set(writes)
    j.begin()
    for k, v in writes.items():
        j.storage_set(ADDR, k, v)
    j.revert()
    assert _snapshot(j, keys) == base


@settings(max_examples=60, deadline=None)
@given(base=MAP_SMALL, writes=MAP_SMALL)
def test_commit_applies_last_wins(base, writes):
    j = _fresh(base)
    keys = set(base) | set(writes)
    j.begin()
    for k, v in writes.items():
        j.storage_set(ADDR, k, v)
    j.commit()
    expected = dict(base)
    expected.update(writes)
    assert j.depth() == 0
    assert _snapshot(j, keys) == expected


@settings(max_examples=40, deadline=None)
@given(outer=MAP_SMALL, inner=MAP_SMALL)
def test_nested_inner_revert_keeps_outer(outer, inner):
    j = _fresh({})
    keys = set(outer) | set(inner)
    j.begin()
    for k, v in outer.items():
        j.storage_set(ADDR, k, v)
    j.begin()
    for k, v in inner.items():
        j.storage_set(ADDR, k, v)
    j.revert()
    j.commit()
    assert _snapshot(j, keys) == outer


def test_delete_is_shadowed_then_applied():
    j = _fresh({b"k": b"v"})
    j.begin()
    j.storage_delete(ADDR, b"k")
    assert j.storage_get(ADDR, b"k") is None
    j.commit()
    assert j.storage_get(ADDR, b"k") is None


def test_writes_outside_a_checkpoint_are_refused():
    j = _fresh({})
    with pytest.raises(RuntimeError):
        j.storage_set(ADDR, b"k", b"v")
    with pytest.raises(RuntimeError):
        j.set_balance(ADDR, 1)
    with pytest.raises(RuntimeError):
        j.commit()
    with pytest.raises(RuntimeError):
        j.revert()


def test_memory_backend_is_a_storage_backend():
    assert isinstance(MemoryBackend(), StorageBackend)


# -----------------------------------------------------------------------------
# Contract storage facade
# -----------------------------------------------------------------------------

def test_contract_storage_int_helpers_and_caps():
    host = Host()
    st_ = host.storage(ADDR)
    with host.transaction():
        st_.set_int(b"n", 0)
        assert st_.get(b"n") == b"\x00"
        st_.set_int(b"n", 258)
        assert st_.get(b"n") == b"\x01\x02"
        assert st_.get_int(b"n") == 258
        assert st_.get_int(b"missing", default=7) == 7
        with pytest.raises(MalformedInput):
            st_.set_int(b"n", -1)
        with pytest.raises(MalformedInput):
            st_.set(b"", b"v")
        with pytest.raises(MalformedInput):
            st_.set(b"k" * (host.cfg.max_storage_key_bytes + 1), b"v")
        with pytest.raises(MalformedInput):
            st_.set(b"k", b"\x00" * (host.cfg.max_storage_value_bytes + 1))
    assert st_.exists(b"n")
    assert not host.storage(OTHER).exists(b"n")


def test_storage_caps_follow_config():
    cfg = SafeLiteConfig(**{**load_config().as_dict(), "max_storage_key_bytes": 64})
    host = Host(cfg=cfg)
    s = ContractStorage(host.journal, ADDR, cfg)
    with host.transaction():
        s.set(b"k" * 64, b"v")
        with pytest.raises(MalformedInput):
            s.set(b"k" * 65, b"v")


# -----------------------------------------------------------------------------
# Host: ledger, transactions, events, deployment
# -----------------------------------------------------------------------------

def test_fund_and_transfer_between_accounts():
    host = Host()
    host.fund(ADDR, 100)
    host.call(ADDR, OTHER, 40)
    assert host.balance_of(ADDR) == 60
    assert host.balance_of(OTHER) == 40
    with pytest.raises(InsufficientBalance) as ei:
        host.call(ADDR, OTHER, 61)
    assert ei.value.data["balance"] == 60
    assert host.balance_of(ADDR) == 60


def test_failed_transaction_rolls_back_balances_storage_and_events():
    host = Host()
    host.fund(ADDR, 10)
    with pytest.raises(ValueError):
        with host.transaction():
            host.treasury.transfer(ADDR, OTHER, 5)
            host.storage(ADDR).set(b"k", b"v")
            host.emit(ADDR, b"Touched", {"n": 1})
            raise ValueError("boom")
    assert host.balance_of(ADDR) == 10
    assert host.storage(ADDR).get(b"k") is None
    assert host.events_named(b"Touched") == ()


def test_inner_failure_does_not_disturb_outer_frame():
    host = Host()
    with host.transaction():
        host.emit(ADDR, b"Outer", {})
        with pytest.raises(ValueError):
            with host.transaction():
                host.emit(ADDR, b"Inner", {})
                raise ValueError("inner")
        host.emit(ADDR, b"After", {})
    assert [e.name for e in host.events] == [b"Outer", b"After"]


def test_call_depth_is_bounded():
    host = Host()

    def nest(n: int) -> int:
        with host.transaction():
            return nest(n + 1)

    with pytest.raises(CallDepthExceeded) as ei:
        nest(0)
    assert ei.value.data["depth"] == host.cfg.max_call_depth
    assert host.depth == 0


def test_event_validation_and_receipts():
    ev = make_event(ADDR, b"Owner", {"owner": OTHER, "is_owner": True, "n": 3})
    assert ev["owner"] == OTHER
    (canon,) = events_for_receipt([ev])
    assert canon.name == "0x" + b"Owner".hex()
    assert canon.address == "0x" + ADDR.hex()
    assert list(canon.args) == [
        {"k": "owner", "t": "b", "v": "0x" + OTHER.hex()},
        {"k": "is_owner", "t": "z", "v": True},
        {"k": "n", "t": "i", "v": 3},
    ]
    for name, args in [
        (b"", {}),
        ("Owner", {}),
        (b"x" * 65, {}),
        (b"Ok", {"bad-key": 1}),
        (b"Ok", {"k": 1.5}),
        (b"Ok", {"k": 1 << 300}),
    ]:
        with pytest.raises(MalformedInput):
            make_event(ADDR, name, args)


def test_committed_event_args_are_read_only():
    host = Host()
    source = {"owner": OTHER}
    with host.transaction():
        host.emit(ADDR, b"Owner", source)
    source["owner"] = ADDR
    (ev,) = host.events
    assert ev["owner"] == OTHER
    with pytest.raises(TypeError):
        ev.args["owner"] = ADDR  # type: ignore[index]
    assert ev.args == {"owner": OTHER}


def test_deploy_derives_deterministic_addresses():
    host = Host()

    class Sink:
        def on_call(self, msg):
            return b"pong"

    a = host.deploy(ADDR, lambda h, addr: Sink())
    b = host.deploy(ADDR, lambda h, addr: Sink())
    assert host.contract_at(derive_address(ADDR, 0)) is a
    assert host.contract_at(derive_address(ADDR, 1)) is b
    assert host.call(OTHER, derive_address(ADDR, 0)) == b"pong"
    assert derive_address(ADDR, 0) != derive_address(OTHER, 0)


def test_failed_deploy_leaves_nothing_behind():
    host = Host()

    def factory(h, addr):
        h.storage(addr).set(b"k", b"v")
        raise ValueError("ctor failed")

    with pytest.raises(ValueError):
        host.deploy(ADDR, factory)
    addr = derive_address(ADDR, 0)
    assert not host.is_contract(addr)
    assert host.storage(addr).get(b"k") is None
