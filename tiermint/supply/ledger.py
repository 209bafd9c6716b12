"""
tiermint.supply.ledger — per-band supply counters and identifier ranges.

Each rarity band owns:

- a contiguous identifier range ``[start_id, end_id)`` assigned once, in
  construction order, starting at token id 1;
- ``remaining``: how many ids are still unminted (monotonically decreasing);
- ``batch_allowance``: the admin-set ceiling for the current batch;
- ``next_id``: the cursor of the next id to hand out.

Allowance policy
----------------
``replace`` (default): ``set_batch_allowance(n)`` makes ``n`` the new ceiling,
discarding any leftover. ``add``: ``n`` is added to the leftover.

Bands configured with an allowance schedule (e.g. ``[1, 2, 3, 0, 0]``) apply
the first entry at construction; ``advance_allowance_schedule`` applies the
next one through the same policy.

The ledger is pure state: it never emits events and never talks to the token
layer. It is journaled, so counters roll back with the call that moved them.
"""

from __future__ import annotations

import logging
from dataclasses import asdict, dataclass, field, replace
from typing import Any, Dict, List, Optional

from tiermint.config import ALLOWANCE_MODES, BandConfig
from tiermint.errors import ConfigError, InvalidQuantity, SupplyExhausted, UnknownBand

log = logging.getLogger(__name__)

FIRST_TOKEN_ID = 1


@dataclass
class Band:
    name: str
    rarity: str
    total: int
    unit_price: int
    start_id: int
    end_id: int
    remaining: int
    next_id: int
    batch_allowance: int = 0
    initial_status: str = "ready"
    group: Optional[str] = None
    allowance_schedule: List[int] = field(default_factory=list)
    schedule_cursor: int = -1

    @property
    def minted(self) -> int:
        return self.total - self.remaining

    def contains(self, token_id: int) -> bool:
        return self.start_id <= token_id < self.end_id

    def to_dict(self) -> Dict[str, Any]:
        d = asdict(self)
        d["minted"] = self.minted
        return d


class SupplyLedger:
    """
    Ordered collection of bands.

    API highlights
    --------------
    - initialize_band(spec, range_start) -> range_end
    - reserve(name, quantity, use_allowance=True) -> ids
    - set_batch_allowance(name, n) / advance_allowance_schedule(name)
    - tokens_left(name), band(name), bands(), total_supply
    """

    def __init__(self, allowance_mode: str = "replace") -> None:
        if allowance_mode not in ALLOWANCE_MODES:
            raise ConfigError(f"allowance_mode must be one of {ALLOWANCE_MODES} (got {allowance_mode!r}).")
        self.allowance_mode = allowance_mode
        self._bands: Dict[str, Band] = {}

    # --- journal protocol ---

    def snapshot(self) -> Dict[str, Band]:
        return {n: replace(b, allowance_schedule=list(b.allowance_schedule)) for n, b in self._bands.items()}

    def restore(self, snap: Dict[str, Band]) -> None:
        self._bands = dict(snap)

    # --- construction ---

    @property
    def range_end(self) -> int:
        """Exclusive end of the last initialized band (the next band's start)."""
        if not self._bands:
            return FIRST_TOKEN_ID
        return list(self._bands.values())[-1].end_id

    def initialize_band(self, spec: BandConfig, range_start: int) -> int:
        """Reserve ``[range_start, range_start + spec.total)`` for a new band; return the end."""
        if spec.name in self._bands:
            raise ConfigError(f"band {spec.name!r} is already initialized.")
        if spec.total <= 0:
            raise ConfigError(f"band {spec.name!r} total must be positive (got {spec.total}).")
        if range_start != self.range_end:
            raise ConfigError(
                f"band {spec.name!r} must start at {self.range_end} (got {range_start}); "
                "ranges are contiguous and ascending."
            )
        end = range_start + spec.total
        band = Band(
            name=spec.name,
            rarity=spec.rarity,
            total=spec.total,
            unit_price=spec.unit_price,
            start_id=range_start,
            end_id=end,
            remaining=spec.total,
            next_id=range_start,
            initial_status=spec.initial_status,
            group=spec.group,
            allowance_schedule=list(spec.allowance_schedule),
        )
        self._bands[spec.name] = band
        if band.allowance_schedule:
            band.schedule_cursor = 0
            band.batch_allowance = band.allowance_schedule[0]
        log.info(
            "supply: band %s (%s) ids=[%d, %d) price=%d allowance=%d",
            band.name, band.rarity, band.start_id, band.end_id, band.unit_price, band.batch_allowance,
        )
        return end

    # --- views ---

    def band(self, name: str) -> Band:
        try:
            return self._bands[name]
        except KeyError:
            raise UnknownBand(name, known=list(self._bands)) from None

    def bands(self) -> List[Band]:
        return list(self._bands.values())

    def names(self) -> List[str]:
        return list(self._bands)

    def __contains__(self, name: object) -> bool:
        return name in self._bands

    def __len__(self) -> int:
        return len(self._bands)

    def tokens_left(self, name: str) -> int:
        return self.band(name).remaining

    @property
    def total_supply(self) -> int:
        return sum(b.total for b in self._bands.values())

    # --- allowance ---

    def _apply_allowance(self, band: Band, n: int) -> int:
        if self.allowance_mode == "add":
            band.batch_allowance += n
        else:
            band.batch_allowance = n
        return band.batch_allowance

    def set_batch_allowance(self, name: str, n: int) -> int:
        """Open a new batch for ``name``. Returns the resulting allowance."""
        if n < 0:
            raise InvalidQuantity(requested=n, message="batch allowance must be non-negative")
        band = self.band(name)
        prev = band.batch_allowance
        cur = self._apply_allowance(band, n)
        log.info("supply: %s batch allowance %d -> %d (%s)", name, prev, cur, self.allowance_mode)
        return cur

    def advance_allowance_schedule(self, name: str) -> int:
        """Apply the next entry of the band's allowance schedule."""
        band = self.band(name)
        nxt = band.schedule_cursor + 1
        if nxt >= len(band.allowance_schedule):
            raise ConfigError(f"band {name!r} has no further allowance schedule entries.")
        band.schedule_cursor = nxt
        cur = self._apply_allowance(band, band.allowance_schedule[nxt])
        log.info("supply: %s allowance schedule step %d -> allowance=%d", name, nxt, cur)
        return cur

    # --- consumption ---

    def reserve(self, name: str, quantity: int, *, use_allowance: bool = True) -> List[int]:
        """
        Take ``quantity`` consecutive ids from the band's cursor.

        The caller has already clamped ``quantity``; anything beyond what the
        band (or its batch, when ``use_allowance``) holds is an error here.
        """
        band = self.band(name)
        if quantity <= 0:
            raise InvalidQuantity(requested=quantity)
        if quantity > band.remaining:
            raise SupplyExhausted(band=name, scope="band")
        if use_allowance and quantity > band.batch_allowance:
            raise SupplyExhausted(band=name, scope="batch")
        ids = list(range(band.next_id, band.next_id + quantity))
        band.next_id += quantity
        band.remaining -= quantity
        if use_allowance:
            band.batch_allowance -= quantity
        log.debug("supply: %s reserved ids %d..%d remaining=%d", name, ids[0], ids[-1], band.remaining)
        return ids


__all__ = ["FIRST_TOKEN_ID", "Band", "SupplyLedger"]
