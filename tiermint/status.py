from __future__ import annotations

"""
Per-token lifecycle status.

States
------
    NOT_READY ──switch_to_ready──▶ READY ──switch_to_final──▶ DEPLOYED | REDEEMED

The terminal state depends on the collection variant: product collections end
in DEPLOYED (the physical product shipped), membership collections in
REDEEMED. Terminal states have no outgoing transitions.

A token's initial status comes from its band (``initial_status``) and is
recorded together with the band and rarity name at mint time, so later reads
never recompute them. Ids that fall inside a band but are not minted yet
report the band's initial status.

Batch transitions are all-or-nothing: every id is checked in order against the
state left by the ids before it, and any violation rolls back the whole call
through the host transaction boundary.
"""

import logging
from dataclasses import dataclass, replace
from enum import Enum
from typing import Callable, Dict, Iterable, List, Optional

from .errors import InvalidStateTransition
from .runtime.host import Host, atomic
from .supply.ledger import Band

log = logging.getLogger(__name__)


class ProductStatus(str, Enum):
    NOT_READY = "not_ready"
    READY = "ready"
    DEPLOYED = "deployed"
    REDEEMED = "redeemed"

    @property
    def terminal(self) -> bool:
        return self in (ProductStatus.DEPLOYED, ProductStatus.REDEEMED)

    @property
    def label(self) -> str:
        return "".join(p.capitalize() for p in self.value.split("_"))


@dataclass(frozen=True)
class TokenRecord:
    token_id: int
    band: str
    rarity: str
    status: ProductStatus

    def to_dict(self) -> Dict[str, object]:
        return {"token_id": self.token_id, "band": self.band, "rarity": self.rarity, "status": self.status.value}


BandLookup = Callable[[int], Band]


class StatusTracker:
    def __init__(self, host: Host, band_of: BandLookup, final_status: str = "deployed") -> None:
        final = ProductStatus(final_status)
        if not final.terminal:
            raise ValueError(f"final status must be terminal, got {final_status!r}")
        self.host = host
        self.final_status = final
        self._band_of = band_of
        self._records: Dict[int, TokenRecord] = {}
        host.register(self)

    # --- journal protocol ---

    def snapshot(self) -> Dict[int, TokenRecord]:
        return dict(self._records)

    def restore(self, snap: Dict[int, TokenRecord]) -> None:
        self._records = dict(snap)

    # --- records ---

    def record_mint(self, token_id: int, band: Band) -> TokenRecord:
        if token_id in self._records:
            raise InvalidStateTransition("token already recorded", token_id=token_id)
        rec = TokenRecord(token_id, band.name, band.rarity, ProductStatus(band.initial_status))
        self._records[token_id] = rec
        return rec

    def record(self, token_id: int) -> Optional[TokenRecord]:
        return self._records.get(token_id)

    def records(self) -> List[TokenRecord]:
        return [self._records[k] for k in sorted(self._records)]

    def status_of(self, token_id: int) -> ProductStatus:
        rec = self._records.get(token_id)
        if rec is not None:
            return rec.status
        return ProductStatus(self._band_of(token_id).initial_status)

    # --- transitions ---

    def _move(self, token_id: int, target: ProductStatus) -> TokenRecord:
        rec = self._records.get(token_id)
        if rec is None:
            raise InvalidStateTransition("token not minted", token_id=token_id, target=target.value)
        nxt = replace(rec, status=target)
        self._records[token_id] = nxt
        self.host.events.emit("StatusChanged", token_id=token_id, previous=rec.status.value, status=target.value)
        return nxt

    @atomic
    def switch_to_ready(self, token_ids: Iterable[int]) -> List[int]:
        """NOT_READY → READY for every id; only bands that start NOT_READY qualify."""
        moved: List[int] = []
        for token_id in token_ids:
            current = self.status_of(token_id)
            if self._band_of(token_id).initial_status != ProductStatus.NOT_READY.value:
                raise InvalidStateTransition("wrong type", token_id=token_id, current=current.value, target="ready")
            if current is not ProductStatus.NOT_READY:
                raise InvalidStateTransition(
                    "not in not_ready state", token_id=token_id, current=current.value, target="ready"
                )
            self._move(token_id, ProductStatus.READY)
            moved.append(token_id)
        log.info("status: %d token(s) switched to ready", len(moved))
        return moved

    @atomic
    def switch_to_final(self, token_ids: Iterable[int]) -> List[int]:
        """READY → the variant's terminal status for every id."""
        target = self.final_status
        moved: List[int] = []
        for token_id in token_ids:
            current = self.status_of(token_id)
            if current is not ProductStatus.READY:
                raise InvalidStateTransition("not ready", token_id=token_id, current=current.value, target=target.value)
            self._move(token_id, target)
            moved.append(token_id)
        log.info("status: %d token(s) switched to %s", len(moved), target.value)
        return moved


__all__ = ["ProductStatus", "TokenRecord", "StatusTracker"]
