from __future__ import annotations

"""
Tiered collection facade.

Wires the supply ledger, allocation engine, pricing gate, status tracker and
resolver into one payable "contract" living at a deterministic address on a
`Host`. Every state-changing method runs inside one host transaction, so a
failure anywhere leaves balances, counters, statuses, roles and events exactly
as they were.

Roles
  • DEFAULT_ADMIN_ROLE: deployer + configured admins. Batch allowances,
    status transitions, base URI, withdrawals.
  • ARTIST_ROLE: the artist address, which is also the default royalty
    receiver. Only the current artist can rotate it (update_royalty_receiver).

Public mints
  • batch_mint(caller, band, quantity, value), also reachable as
    ``<band>_batch_mint(caller, quantity, value)``.
  • mint_random(caller, group, value) / mint_from_random_number(...) for
    grouped (membership) collections: one token from a band of the group,
    chosen with probability proportional to the band's remaining supply.

Reads
  • tokens_left / ``<band>_tokens_left()`` / ``<group>_tokens_left()``,
    token_uri, rarity_by_token_id, product_status_by_token_id, token_info,
    royalty_info, balance, owner_of.

Example
-------
    host = Host()
    c = Collection(product_preset(artist=artist), host, deployer=admin)
    c.set_batch_allowance(admin, "rarest", 12)
    host.ledger.credit(buyer, to_wei("13.5"))
    c.rarest_batch_mint(buyer, 9, to_wei("13.5"))
"""

import functools
import hashlib
import logging
from typing import Any, Callable, Dict, Iterable, List, Optional

from . import metrics
from .access.roles import ARTIST_ROLE, DEFAULT_ADMIN_ROLE, RoleTable
from .config import CollectionConfig
from .errors import (ConfigError, InvalidQuantity, InvalidStateTransition,
                     SupplyExhausted, TierMintError)
from .pricing import PaymentBasis, check_payment, priced_quantity
from .resolver import BandTable, Resolver
from .royalty.recipients import RecipientSet
from .runtime.host import Host, atomic
from .runtime.ledger import normalize_address
from .status import ProductStatus, StatusTracker
from .supply.allocation import Allocator
from .supply.ledger import FIRST_TOKEN_ID, Band, SupplyLedger

log = logging.getLogger(__name__)

BPS_DENOMINATOR = 10_000


def _recording_rejections(fn: Callable[..., Any]) -> Callable[..., Any]:
    """Count TierMintError rejections of a mint entry point, then re-raise."""

    @functools.wraps(fn)
    def wrapper(*args: Any, **kwargs: Any) -> Any:
        try:
            return fn(*args, **kwargs)
        except TierMintError as e:
            metrics.record_rejection(e.code)
            raise

    return wrapper


class Collection:
    def __init__(
        self,
        config: CollectionConfig,
        host: Optional[Host] = None,
        *,
        deployer: str,
        tag: Optional[str] = None,
    ) -> None:
        config.validate()
        self.config = config
        self.host = host or Host()
        self.address = self.host.new_address(tag or f"tiermint:collection:{config.name}")
        self.deployer = normalize_address(deployer)
        self.payment_basis = PaymentBasis(config.payment_basis)

        events = self.host.events
        self.roles = RoleTable(events)
        self.roles._grant(DEFAULT_ADMIN_ROLE, self.deployer)
        for a in config.admins:
            self.roles._grant(DEFAULT_ADMIN_ROLE, a, sender=self.deployer)

        self.ledger = SupplyLedger(config.allowance_mode)
        start = FIRST_TOKEN_ID
        for spec in config.bands:
            start = self.ledger.initialize_band(spec, start)

        self.table = BandTable(self.ledger)
        self.tracker = StatusTracker(self.host, self.table.band_of, config.final_status)
        self.allocator = Allocator(self.ledger, self.host.tokens, events, self.tracker)
        self.resolver = Resolver(
            self.table, self.tracker, events, config.base_uri, lifecycle=config.lifecycle_uris
        )
        self.artist: Optional[RecipientSet] = None
        if config.artist:
            self.artist = RecipientSet(self.roles, events, [config.artist], role_ids=[ARTIST_ROLE])
            self.host.register(self.artist)

        self._rng_counter = 0
        self.host.register(self.roles)
        self.host.register(self.ledger)
        self.host.register(self)

        self._seed()
        log.info(
            "collection: %s at %s bands=%d supply=%d variant=%s",
            config.name, self.address, len(self.ledger), self.ledger.total_supply, config.variant,
        )

    # --- journal protocol ---

    def snapshot(self) -> Dict[str, Any]:
        return {"base_uri": self.resolver.base_uri, "rng_counter": self._rng_counter}

    def restore(self, snap: Dict[str, Any]) -> None:
        self.resolver.base_uri = snap["base_uri"]
        self._rng_counter = snap["rng_counter"]

    # --- construction helpers ---

    def _seed(self) -> None:
        seeded = [s for s in self.config.bands if s.seed > 0]
        if not seeded:
            return
        with self.host.transaction():
            for spec in seeded:
                self.allocator.mint(self.deployer, spec.name, spec.seed, use_allowance=False)
        for spec in seeded:
            metrics.record_mint(spec.name, spec.seed, kind="seed")
            log.info("collection: seeded %d %s token(s) to %s", spec.seed, spec.name, self.deployer)

    # --- dynamic per-band / per-group accessors ---

    def __getattr__(self, name: str) -> Any:
        ledger = self.__dict__.get("ledger")
        if ledger is not None:
            if name.endswith("_batch_mint"):
                band = name[: -len("_batch_mint")]
                if band in ledger:
                    def band_batch_mint(caller: str, quantity: int, value: int = 0) -> List[int]:
                        return self.batch_mint(caller, band, quantity, value)
                    band_batch_mint.__name__ = name
                    return band_batch_mint
            if name.endswith("_tokens_left"):
                key = name[: -len("_tokens_left")]
                if key in ledger:
                    return lambda: self.tokens_left(key)
                if key in self.config.groups():
                    return lambda: self.group_tokens_left(key)
        raise AttributeError(f"{type(self).__name__!r} object has no attribute {name!r}")

    # --- access ---

    def require_admin(self, caller: str) -> None:
        self.roles.require_role(DEFAULT_ADMIN_ROLE, caller)

    def has_role(self, role: str, account: str) -> bool:
        return self.roles.has_role(role, account)

    @atomic
    def grant_role(self, caller: str, role: str, account: str) -> None:
        self.roles.grant_role(caller, role, account)

    @atomic
    def revoke_role(self, caller: str, role: str, account: str) -> None:
        self.roles.revoke_role(caller, role, account)

    # --- public mints ---

    @_recording_rejections
    def batch_mint(self, caller: str, band: str, quantity: int, value: int = 0) -> List[int]:
        """
        Mint up to ``quantity`` tokens of ``band`` to ``caller``.

        The request is clamped to ``min(quantity, remaining, batch_allowance)``;
        ``value`` must equal the unit price times the granted quantity (or the
        requested one, under the ``requested`` payment basis). Returns the ids.
        """
        ids = self._batch_mint(caller, band, quantity, value)
        self.host.on_commit(metrics.record_mint, band, len(ids), kind="batch", requested=quantity)
        return ids

    @atomic
    def _batch_mint(self, caller: str, band: str, quantity: int, value: int) -> List[int]:
        b = self.ledger.band(band)
        granted = self.allocator.grant(band, quantity)
        check_payment(value, b.unit_price, priced_quantity(self.payment_basis, quantity, granted), band=band)
        self.host.pay(caller, self.address, value)
        return self.allocator.mint(caller, band, granted, requested=quantity)

    def group_bands(self, group: str) -> List[Band]:
        bands = [b for b in self.ledger.bands() if b.group == group]
        if not bands:
            raise ConfigError(f"unknown mint group {group!r}", details={"known": self.config.groups()})
        return bands

    def group_tokens_left(self, group: str) -> int:
        return sum(b.remaining for b in self.group_bands(group))

    def _next_random(self, caller: str) -> int:
        """Next word of the collection's deterministic SHA3 stream."""
        self._rng_counter += 1
        material = f"{self.config.random_seed}:{self._rng_counter}:{normalize_address(caller)}"
        return int.from_bytes(hashlib.sha3_256(material.encode("utf-8")).digest(), "big")

    @_recording_rejections
    def mint_random(self, caller: str, group: str, value: int = 0) -> int:
        """Mint one token of ``group`` picked by the collection's random stream."""
        token_id = self._mint_random(caller, group, value)
        self.host.on_commit(metrics.record_mint, self.tracker.record(token_id).band, 1, kind="random")
        return token_id

    @atomic
    def _mint_random(self, caller: str, group: str, value: int) -> int:
        left = self.group_tokens_left(group)
        if left == 0:
            raise SupplyExhausted(band=group, scope="group", message=f"{group.capitalize()} NFTs are sold out")
        return self._mint_from_number(caller, group, self._next_random(caller) % left, value)

    @_recording_rejections
    def mint_from_random_number(self, caller: str, group: str, number: int, value: int = 0) -> int:
        """
        Mint one token of ``group`` for a caller-supplied ``number`` in
        ``[0, group_tokens_left(group))``: bands are walked in order and the
        first whose cumulative remaining supply exceeds ``number`` is minted.
        """
        token_id = self._mint_from_number_atomic(caller, group, number, value)
        self.host.on_commit(metrics.record_mint, self.tracker.record(token_id).band, 1, kind="random")
        return token_id

    @atomic
    def _mint_from_number_atomic(self, caller: str, group: str, number: int, value: int) -> int:
        return self._mint_from_number(caller, group, number, value)

    def _mint_from_number(self, caller: str, group: str, number: int, value: int) -> int:
        bands = self.group_bands(group)
        left = sum(b.remaining for b in bands)
        if left == 0:
            raise SupplyExhausted(band=group, scope="group", message=f"{group.capitalize()} NFTs are sold out")
        if not (0 <= number < left):
            raise InvalidQuantity(requested=number, message=f"random number must be within [0, {left})")
        acc = 0
        chosen = bands[-1]
        for b in bands:
            acc += b.remaining
            if number < acc:
                chosen = b
                break
        check_payment(value, chosen.unit_price, 1, band=chosen.name)
        self.host.pay(caller, self.address, value)
        (token_id,) = self.allocator.mint(caller, chosen.name, 1, use_allowance=False)
        log.debug("collection: %s random number %d -> %s id=%d", group, number, chosen.name, token_id)
        return token_id

    # --- admin ---

    @atomic
    def set_batch_allowance(self, caller: str, band: str, n: int) -> int:
        self.require_admin(caller)
        cur = self.ledger.set_batch_allowance(band, n)
        self.host.events.emit("BatchAllowanceSet", band=band, allowance=cur, mode=self.ledger.allowance_mode)
        return cur

    @atomic
    def advance_allowance_schedule(self, caller: str, band: str) -> int:
        self.require_admin(caller)
        cur = self.ledger.advance_allowance_schedule(band)
        self.host.events.emit("BatchAllowanceSet", band=band, allowance=cur, mode=self.ledger.allowance_mode)
        return cur

    @atomic
    def switch_to_ready(self, caller: str, token_ids: Iterable[int]) -> List[int]:
        self.require_admin(caller)
        moved = self.tracker.switch_to_ready(list(token_ids))
        self.host.on_commit(metrics.record_status, ProductStatus.READY.value, len(moved))
        return moved

    @atomic
    def switch_to_final(self, caller: str, token_ids: Iterable[int]) -> List[int]:
        self.require_admin(caller)
        moved = self.tracker.switch_to_final(list(token_ids))
        self.host.on_commit(metrics.record_status, self.tracker.final_status.value, len(moved))
        return moved

    def _switch_to(self, target: ProductStatus, caller: str, token_ids: Iterable[int]) -> List[int]:
        self.require_admin(caller)
        if self.tracker.final_status is not target:
            raise InvalidStateTransition(
                f"{self.config.variant} collections end in {self.tracker.final_status.value}",
                target=target.value,
            )
        return self.switch_to_final(caller, token_ids)

    def switch_to_deployed(self, caller: str, token_ids: Iterable[int]) -> List[int]:
        return self._switch_to(ProductStatus.DEPLOYED, caller, token_ids)

    def switch_to_redeemed(self, caller: str, token_ids: Iterable[int]) -> List[int]:
        return self._switch_to(ProductStatus.REDEEMED, caller, token_ids)

    @atomic
    def set_base_uri(self, caller: str, uri: str) -> None:
        self.require_admin(caller)
        if not uri:
            raise ConfigError("base URI must not be empty")
        self.resolver.base_uri = uri
        self.host.events.emit("BaseURISet", uri=uri)
        log.info("collection: base URI set to %s", uri)

    @atomic
    def withdraw(self, caller: str) -> int:
        """Sweep the whole contract balance to ``caller`` (an admin)."""
        self.require_admin(caller)
        amount = self.host.ledger.balance(self.address)
        if amount == 0:
            return 0
        to = normalize_address(caller)
        self.host.events.emit("Withdrawn", to=to, amount=amount)
        log.info("collection: withdrawing %d to %s", amount, to)
        self.host.ledger.transfer(self.address, to, amount)
        return amount

    # --- artist ---

    @property
    def artist_address(self) -> Optional[str]:
        return self.artist[0] if self.artist is not None else None

    @atomic
    def update_royalty_receiver(self, caller: str, old: str, new: str) -> None:
        """Rotate the artist address; only the current artist may do so."""
        if self.artist is None:
            raise ConfigError("collection has no artist configured")
        self.artist.rotate(caller, old, new)

    # --- reads ---

    def tokens_left(self, band: str) -> int:
        return self.ledger.tokens_left(band)

    def token_uri(self, token_id: int) -> str:
        return self.resolver.uri(token_id)

    uri = token_uri

    def rarity_by_token_id(self, token_id: int) -> str:
        return self.resolver.rarity_of(token_id)

    def product_status_by_token_id(self, token_id: int) -> str:
        return self.resolver.status_of(token_id).value

    @atomic
    def token_info(self, token_id: int) -> Dict[str, Any]:
        return self.resolver.token_info(token_id)

    def royalty_info(self, token_id: int, sale_price: int) -> Dict[str, Any]:
        """Receiver and amount owed on a sale of ``token_id`` (basis points)."""
        self.table.name_of(token_id)
        receiver = self.config.royalty_receiver or self.artist_address
        amount = sale_price * self.config.royalty_bps // BPS_DENOMINATOR if receiver else 0
        return {"receiver": receiver, "amount": amount}

    @property
    def balance(self) -> int:
        return self.host.ledger.balance(self.address)

    def owner_of(self, token_id: int) -> str:
        return self.host.tokens.owner_of(token_id)

    def bands(self) -> List[Dict[str, Any]]:
        return [b.to_dict() for b in self.ledger.bands()]


__all__ = ["BPS_DENOMINATOR", "Collection"]
