"""safelite.version — package version.

Resolution order: SAFELITE_VERSION env → installed package metadata → BASE_VERSION.
"""

from __future__ import annotations

import os
from functools import lru_cache
from importlib import metadata as importlib_metadata
from typing import Optional

# Bump on changes to the digest layout, storage layout or governance ABI.
BASE_VERSION = "0.1.0"


def _pkg_metadata_version(dist_name: str = "safelite") -> Optional[str]:
    try:
        v = importlib_metadata.version(dist_name)
    except importlib_metadata.PackageNotFoundError:
        return None
    return v if v and v != "0.0.0" else None


@lru_cache(maxsize=1)
def compute_version() -> str:
    env = os.getenv("SAFELITE_VERSION")
    if env:
        return env
    return _pkg_metadata_version() or BASE_VERSION


__version__ = compute_version()

__all__ = ["__version__", "BASE_VERSION", "compute_version"]
