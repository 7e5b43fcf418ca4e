"""
safelite.config — runtime caps, defaults and logging level.

This module centralizes configuration for the wallet and its host runtime. It has
NO third-party deps and is safe to import very early.

Configuration precedence:
  1) Environment variables (SAFELITE_*)
  2) Hardcoded safe defaults below

Key env vars:
  - SAFELITE_CHAIN_ID                (int)    default: 1001
  - SAFELITE_MAX_OWNERS              (int)    default: 64
  - SAFELITE_MAX_PAYLOAD_BYTES       (int)    default: 65_536
  - SAFELITE_MAX_CALL_DEPTH          (int)    default: 64
  - SAFELITE_MAX_STORAGE_KEY_BYTES   (int)    default: 96
  - SAFELITE_MAX_STORAGE_VAL_BYTES   (int)    default: 131_072   (128 KiB)
  - SAFELITE_LOG_LEVEL               (str)    default: WARNING

Integers outside their allowed range are clamped; unparsable values fall back to
the default. The payload and owner caps are further bounded by the storage
value cap, since a pending record and the owner list are each one value.

Usage:
    from safelite.config import load_config
    CFG = load_config()
    if len(payload) > CFG.max_payload_bytes: ...
"""

from __future__ import annotations

import logging
import os
from dataclasses import dataclass
from functools import lru_cache
from typing import Any, Dict

# ----------------------------- helpers ---------------------------------------

_LEVELS = ("DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL")

ADDRESS_BYTES = 20
# destination(20) + value(32) + executed(1) + count(4) + payload_len(4)
PENDING_HEADER_BYTES = 61


def _env_int(name: str, default: int, *, min_v: int, max_v: int) -> int:
    raw = os.getenv(name)
    if raw is None:
        return default
    try:
        v = int(raw, 0)
    except ValueError:
        return default
    if v < min_v:
        return min_v
    if v > max_v:
        return max_v
    return v


def _env_level(name: str, default: str) -> str:
    raw = (os.getenv(name) or "").strip().upper()
    return raw if raw in _LEVELS else default


# ------------------------------- config --------------------------------------


@dataclass(frozen=True)
class SafeLiteConfig:
    # Replay-domain seed used by tooling when none is given explicitly
    default_chain_id: int

    # Wallet caps
    max_owners: int
    max_payload_bytes: int

    # Host runtime caps
    max_call_depth: int
    max_storage_key_bytes: int
    max_storage_value_bytes: int

    log_level: str

    @property
    def log_level_value(self) -> int:
        return getattr(logging, self.log_level, logging.WARNING)

    def as_dict(self) -> Dict[str, Any]:
        return {
            "default_chain_id": self.default_chain_id,
            "max_owners": self.max_owners,
            "max_payload_bytes": self.max_payload_bytes,
            "max_call_depth": self.max_call_depth,
            "max_storage_key_bytes": self.max_storage_key_bytes,
            "max_storage_value_bytes": self.max_storage_value_bytes,
            "log_level": self.log_level,
        }


@lru_cache(maxsize=1)
def load_config() -> SafeLiteConfig:
    """
    Build and cache a SafeLiteConfig from environment + safe defaults.
    Call `load_config.cache_clear()` after changing the environment.
    """
    max_value = _env_int("SAFELITE_MAX_STORAGE_VAL_BYTES", 131_072, min_v=4_096, max_v=8_388_608)
    max_payload = _env_int("SAFELITE_MAX_PAYLOAD_BYTES", 65_536, min_v=1_024, max_v=1_048_576)
    max_owners = _env_int("SAFELITE_MAX_OWNERS", 64, min_v=1, max_v=1024)
    return SafeLiteConfig(
        default_chain_id=_env_int("SAFELITE_CHAIN_ID", 1001, min_v=0, max_v=(1 << 256) - 1),
        max_owners=min(max_owners, max_value // ADDRESS_BYTES),
        max_payload_bytes=min(max_payload, max_value - PENDING_HEADER_BYTES),
        max_call_depth=_env_int("SAFELITE_MAX_CALL_DEPTH", 64, min_v=4, max_v=1024),
        max_storage_key_bytes=_env_int("SAFELITE_MAX_STORAGE_KEY_BYTES", 96, min_v=64, max_v=256),
        max_storage_value_bytes=max_value,
        log_level=_env_level("SAFELITE_LOG_LEVEL", "WARNING"),
    )


__all__ = ["SafeLiteConfig", "load_config"]
