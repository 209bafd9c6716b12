from __future__ import annotations

from typing import List

import pytest
from hypothesis import given
from hypothesis import strategies as st

from tiermint.collection import Collection
from tiermint.config import BandConfig, CollectionConfig
from tiermint.errors import InvalidQuantity, SupplyExhausted
from tiermint.runtime.host import Host, derive_address
from tiermint.supply.allocation import permitted_amount
from tiermint.supply.ledger import Band

ADMIN = derive_address("alloc:admin")
BUYER = derive_address("alloc:buyer")


def _band(remaining: int = 10, allowance: int = 5) -> Band:
    return Band(
        name="b", rarity="B", total=10, unit_price=1, start_id=1, end_id=11,
        remaining=remaining, next_id=11 - remaining, batch_allowance=allowance,
    )


def _free_collection(total: int = 50) -> Collection:
    cfg = CollectionConfig(name="free", bands=[BandConfig("only", "Only", total, 0)])
    host = Host()
    return Collection(cfg, host, deployer=ADMIN)


@pytest.mark.parametrize(
    "requested, remaining, allowance, expected",
    [
        (10, 12, 12, 10),
        (14, 12, 20, 12),
        (9, 100, 4, 4),
        (1, 1, 1, 1),
    ],
)
def test_permitted_amount_is_the_minimum(requested, remaining, allowance, expected):
    assert permitted_amount(requested, _band(remaining, allowance), remaining) == expected


def test_zero_request_fails_before_clamping():
    with pytest.raises(InvalidQuantity) as ei:
        permitted_amount(0, _band(0, 0))
    assert ei.value.message == "mint at least one"


def test_sold_out_and_batch_sold_out_are_distinct():
    with pytest.raises(SupplyExhausted) as ei:
        permitted_amount(3, _band(0, 5))
    assert ei.value.message == "sold out"

    with pytest.raises(SupplyExhausted) as ei:
        permitted_amount(3, _band(10, 0))
    assert ei.value.message == "batch sold out"


def test_remaining_argument_overrides_band_counter():
    assert permitted_amount(8, _band(10, 10), remaining=3) == 3


def test_adjusted_amount_event_only_when_clamped():
    c = _free_collection()
    c.set_batch_allowance(ADMIN, "only", 4)
    c.batch_mint(BUYER, "only", 4)
    assert c.host.events.named("AdjustedMintAmount") == []

    c.set_batch_allowance(ADMIN, "only", 4)
    ids = c.batch_mint(BUYER, "only", 10)
    assert len(ids) == 4
    (ev,) = c.host.events.named("AdjustedMintAmount")
    assert ev.args == {"requested": 10, "granted": 4}


def test_one_minted_token_info_event_per_token():
    c = _free_collection()
    c.set_batch_allowance(ADMIN, "only", 3)
    ids = c.batch_mint(BUYER, "only", 3)
    infos = c.host.events.named("MintedTokenInfo")
    assert [e.args["token_id"] for e in infos] == ids
    assert {e.args["rarity"] for e in infos} == {"Only"}
    assert {e.args["status"] for e in infos} == {"ready"}
    assert all(c.owner_of(i) == BUYER for i in ids)


@given(
    st.lists(
        st.tuples(st.integers(min_value=0, max_value=12), st.integers(min_value=1, max_value=15)),
        min_size=1,
        max_size=12,
    )
)
def test_remaining_and_ids_follow_granted_quantities(rounds):
    """
    For any sequence of (allowance, request) rounds: remaining drops by exactly
    what was granted, never goes negative, and ids are strictly increasing and
    never reused.
    """
    c = _free_collection(total=40)
    seen: List[int] = []
    for allowance, requested in rounds:
        c.set_batch_allowance(ADMIN, "only", allowance)
        before = c.tokens_left("only")
        cap = min(before, allowance)
        if cap == 0:
            with pytest.raises(SupplyExhausted):
                c.batch_mint(BUYER, "only", requested)
            assert c.tokens_left("only") == before
            continue
        ids = c.batch_mint(BUYER, "only", requested)
        granted = min(requested, cap)
        assert len(ids) == granted
        assert c.tokens_left("only") == before - granted >= 0
        if requested > cap:
            assert c.host.events.last("AdjustedMintAmount").args == {"requested": requested, "granted": granted}
        seen.extend(ids)

    assert seen == sorted(seen)
    assert len(seen) == len(set(seen))
    assert c.tokens_left("only") == 40 - len(seen)
