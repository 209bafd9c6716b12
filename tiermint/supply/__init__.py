"""
tiermint.supply — rarity bands: supply counters, identifier ranges and the
allocation engine that turns mint requests into token ids.
"""

from .allocation import Allocator, permitted_amount
from .ledger import FIRST_TOKEN_ID, Band, SupplyLedger

__all__ = ["FIRST_TOKEN_ID", "Band", "SupplyLedger", "Allocator", "permitted_amount"]
