"""
tiermint.resolver — token id → rarity band → metadata URI.

Band boundaries are fixed once every band is initialized, so the lookup table
is a sorted list of range starts built once and searched with `bisect`:
``[start_id, end_id)`` half-open intervals, contiguous from token id 1.

URI shapes
----------
- lifecycle-tracked collections: ``{base}{id}/{status}.json``
- simple collections:            ``{base}{id}.json``

The status segment is one of ``not_ready``, ``ready``, ``deployed``,
``redeemed``. Unminted ids inside a band resolve with the band's initial
status; ids outside every band raise UnknownToken.

The rarity name is the join key for the off-chain metadata files, so the
resolver always reports the rarity recorded at mint time when one exists.
"""

from __future__ import annotations

import bisect
import logging
from typing import Any, Dict, List, Tuple

from tiermint.errors import ConfigError, UnknownToken
from tiermint.runtime.events import EventLog
from tiermint.status import ProductStatus, StatusTracker
from tiermint.supply.ledger import Band, SupplyLedger

log = logging.getLogger(__name__)


class BandTable:
    """Immutable ``(start_id, end_id, band)`` table over an initialized ledger."""

    def __init__(self, ledger: SupplyLedger) -> None:
        bands = ledger.bands()
        if not bands:
            raise ConfigError("cannot build a band table without bands")
        self._ledger = ledger
        self._rows: Tuple[Tuple[int, int, str], ...] = tuple((b.start_id, b.end_id, b.name) for b in bands)
        self._starts: List[int] = [r[0] for r in self._rows]
        for (s0, e0, n0), (s1, _e1, n1) in zip(self._rows, self._rows[1:]):
            if e0 != s1:
                raise ConfigError(f"bands {n0!r} and {n1!r} are not contiguous ({e0} != {s1})")

    @property
    def rows(self) -> Tuple[Tuple[int, int, str], ...]:
        return self._rows

    @property
    def first_id(self) -> int:
        return self._rows[0][0]

    @property
    def end_id(self) -> int:
        return self._rows[-1][1]

    def name_of(self, token_id: int) -> str:
        i = bisect.bisect_right(self._starts, token_id) - 1
        if i < 0:
            raise UnknownToken(token_id)
        start, end, name = self._rows[i]
        if not (start <= token_id < end):
            raise UnknownToken(token_id)
        return name

    def band_of(self, token_id: int) -> Band:
        return self._ledger.band(self.name_of(token_id))


class Resolver:
    def __init__(
        self,
        table: BandTable,
        tracker: StatusTracker,
        events: EventLog,
        base_uri: str,
        *,
        lifecycle: bool = True,
    ) -> None:
        self.table = table
        self.tracker = tracker
        self.events = events
        self.base_uri = base_uri
        self.lifecycle = lifecycle

    def rarity_of(self, token_id: int) -> str:
        rec = self.tracker.record(token_id)
        if rec is not None:
            return rec.rarity
        return self.table.band_of(token_id).rarity

    def band_name_of(self, token_id: int) -> str:
        rec = self.tracker.record(token_id)
        if rec is not None:
            return rec.band
        return self.table.name_of(token_id)

    def status_of(self, token_id: int) -> ProductStatus:
        self.table.name_of(token_id)
        return self.tracker.status_of(token_id)

    def uri(self, token_id: int) -> str:
        status = self.status_of(token_id)
        if self.lifecycle:
            return f"{self.base_uri}{token_id}/{status.value}.json"
        return f"{self.base_uri}{token_id}.json"

    def describe(self, token_id: int) -> Dict[str, Any]:
        return {
            "token_id": token_id,
            "band": self.band_name_of(token_id),
            "rarity": self.rarity_of(token_id),
            "status": self.status_of(token_id).value,
            "uri": self.uri(token_id),
        }

    def token_info(self, token_id: int) -> Dict[str, Any]:
        """Describe ``token_id`` and emit a ``TokenInfo`` event for indexers."""
        info = self.describe(token_id)
        self.events.emit(
            "TokenInfo", token_id=token_id, rarity=info["rarity"], uri=info["uri"], status=info["status"]
        )
        log.debug("resolver: token_info id=%d rarity=%s", token_id, info["rarity"])
        return info


__all__ = ["BandTable", "Resolver"]
