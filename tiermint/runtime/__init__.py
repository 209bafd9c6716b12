"""
tiermint.runtime — host primitives the collection runs on: balances, events,
base token layer, and the journaled single-writer call boundary.
"""

from .events import Event, EventLog
from .host import Host, atomic, derive_address
from .journal import Journal
from .ledger import NativeLedger, normalize_address
from .tokens import ZERO_ADDRESS, TokenExists, TokenRegistry

__all__ = [
    "Event",
    "EventLog",
    "Host",
    "atomic",
    "derive_address",
    "Journal",
    "NativeLedger",
    "normalize_address",
    "ZERO_ADDRESS",
    "TokenExists",
    "TokenRegistry",
]
