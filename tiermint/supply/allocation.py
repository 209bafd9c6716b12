"""
tiermint.supply.allocation — clamp mint requests and hand out identifiers.

The engine answers two questions for a batch mint:

1. *How many may be minted?*  ``permitted_amount`` clamps the request to
   ``min(requested, remaining, batch_allowance)`` after rejecting an empty
   request, a sold-out band and an exhausted batch, in that order.
2. *Which ids?*  ``Allocator.mint`` takes the granted quantity of consecutive
   ids from the band cursor, mints each to the buyer on the base token layer,
   records its status and emits one ``MintedTokenInfo`` per token, plus one
   ``AdjustedMintAmount`` when the grant differs from the request.

Payment is not this module's concern (see tiermint.pricing); the collection
facade decides whether the price is checked against the requested or the
granted quantity.
"""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING, List, Optional

from tiermint.errors import InvalidQuantity, SupplyExhausted
from tiermint.runtime.events import EventLog
from tiermint.runtime.tokens import TokenRegistry

from .ledger import Band, SupplyLedger

if TYPE_CHECKING:  # pragma: no cover
    from tiermint.status import StatusTracker

log = logging.getLogger(__name__)


def permitted_amount(requested: int, band: Band, remaining: Optional[int] = None) -> int:
    """
    Clamp ``requested`` against the band's remaining supply and batch allowance.

    ``remaining`` defaults to the band's own counter; it is a parameter so
    callers can ask "what if" questions without touching the ledger.
    """
    if remaining is None:
        remaining = band.remaining
    if requested <= 0:
        raise InvalidQuantity(requested=requested)
    if remaining <= 0:
        raise SupplyExhausted(band=band.name, scope="band")
    if band.batch_allowance <= 0:
        raise SupplyExhausted(band=band.name, scope="batch")
    return min(requested, remaining, band.batch_allowance)


class Allocator:
    def __init__(
        self,
        ledger: SupplyLedger,
        tokens: TokenRegistry,
        events: EventLog,
        tracker: "StatusTracker",
    ) -> None:
        self.ledger = ledger
        self.tokens = tokens
        self.events = events
        self.tracker = tracker

    def grant(self, band_name: str, requested: int) -> int:
        """Granted quantity for a request; raises instead of granting zero."""
        return permitted_amount(requested, self.ledger.band(band_name))

    def mint(
        self,
        to: str,
        band_name: str,
        granted: int,
        *,
        requested: Optional[int] = None,
        use_allowance: bool = True,
    ) -> List[int]:
        """Mint ``granted`` consecutive ids of ``band_name`` to ``to``."""
        band = self.ledger.band(band_name)
        ids = self.ledger.reserve(band_name, granted, use_allowance=use_allowance)
        for token_id in ids:
            self.tokens.mint(to, token_id)
            rec = self.tracker.record_mint(token_id, band)
            self.events.emit("MintedTokenInfo", token_id=token_id, rarity=band.rarity, status=rec.status.value)
        if requested is not None and requested != granted:
            self.events.emit("AdjustedMintAmount", requested=requested, granted=granted)
            log.info("allocation: %s request clamped %d -> %d", band_name, requested, granted)
        log.debug("allocation: %s minted %d to %s", band_name, len(ids), to)
        return ids


__all__ = ["permitted_amount", "Allocator"]
