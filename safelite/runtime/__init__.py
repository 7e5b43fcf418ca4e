"""
safelite.runtime — deterministic host runtime (journal, storage, ledger, events).
"""

from .context import Message
from .events_api import CanonicalEvent, Event, events_for_receipt
from .host import Contract, Host, derive_address
from .journal import Journal
from .storage_api import ContractStorage, MemoryBackend, StorageBackend
from .treasury_api import Treasury

__all__ = [
    "Message",
    "Event",
    "CanonicalEvent",
    "events_for_receipt",
    "Host",
    "Contract",
    "derive_address",
    "Journal",
    "ContractStorage",
    "MemoryBackend",
    "StorageBackend",
    "Treasury",
]
