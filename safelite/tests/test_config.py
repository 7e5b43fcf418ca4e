# -*- coding: utf-8 -*-
from __future__ import annotations

import logging

import pytest

from safelite.config import PENDING_HEADER_BYTES, load_config
from safelite.errors import CallDepthExceeded
from safelite.runtime.host import Host
from safelite.wallet.pending import PendingTransaction, encode_pending


def test_defaults():
    cfg = load_config()
    assert cfg.default_chain_id == 1001
    assert cfg.max_owners == 64
    assert cfg.max_payload_bytes == 65_536
    assert cfg.max_call_depth == 64
    assert cfg.log_level == "WARNING"
    assert cfg.log_level_value == logging.WARNING
    assert set(cfg.as_dict()) == {
        "default_chain_id",
        "max_owners",
        "max_payload_bytes",
        "max_call_depth",
        "max_storage_key_bytes",
        "max_storage_value_bytes",
        "log_level",
    }


def test_load_config_is_cached_until_cleared(monkeypatch):
    first = load_config()
    monkeypatch.setenv("SAFELITE_MAX_OWNERS", "7")
    assert load_config() is first
    load_config.cache_clear()
    assert load_config().max_owners == 7


@pytest.mark.parametrize(
    "name, raw, attr, expected",
    [
        ("SAFELITE_MAX_OWNERS", "0", "max_owners", 1),
        ("SAFELITE_MAX_OWNERS", "100000", "max_owners", 1024),
        ("SAFELITE_MAX_PAYLOAD_BYTES", "10", "max_payload_bytes", 1_024),
        ("SAFELITE_MAX_CALL_DEPTH", "1", "max_call_depth", 4),
        ("SAFELITE_CHAIN_ID", "0x3e9", "default_chain_id", 1001),
        ("SAFELITE_CHAIN_ID", "not-a-number", "default_chain_id", 1001),
        ("SAFELITE_MAX_OWNERS", "", "max_owners", 64),
    ],
)
def test_env_values_are_parsed_and_clamped(monkeypatch, name, raw, attr, expected):
    monkeypatch.setenv(name, raw)
    load_config.cache_clear()
    assert getattr(load_config(), attr) == expected


@pytest.mark.parametrize("raw, expected", [("debug", "DEBUG"), (" info ", "INFO"), ("loud", "WARNING")])
def test_log_level(monkeypatch, raw, expected):
    monkeypatch.setenv("SAFELITE_LOG_LEVEL", raw)
    load_config.cache_clear()
    cfg = load_config()
    assert cfg.log_level == expected
    assert cfg.log_level_value == getattr(logging, expected)


def test_call_depth_cap_is_enforced(monkeypatch):
    monkeypatch.setenv("SAFELITE_MAX_CALL_DEPTH", "4")
    load_config.cache_clear()
    host = Host()
    with host.transaction():
        with host.transaction():
            with host.transaction():
                with host.transaction():
                    assert host.depth == 4
                    with pytest.raises(CallDepthExceeded):
                        with host.transaction():
                            pass
    assert host.depth == 0


def test_payload_and_owner_caps_fit_the_storage_value_cap(monkeypatch):
    monkeypatch.setenv("SAFELITE_MAX_STORAGE_VAL_BYTES", "4096")
    monkeypatch.setenv("SAFELITE_MAX_PAYLOAD_BYTES", "1048576")
    monkeypatch.setenv("SAFELITE_MAX_OWNERS", "1024")
    load_config.cache_clear()
    cfg = load_config()
    assert cfg.max_storage_value_bytes == 4096
    assert cfg.max_payload_bytes == 4096 - PENDING_HEADER_BYTES
    assert cfg.max_owners == 4096 // 20


def test_pending_header_size_matches_record_layout():
    assert len(encode_pending(PendingTransaction(0))) == PENDING_HEADER_BYTES
