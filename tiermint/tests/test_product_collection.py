from __future__ import annotations

import pytest

from tiermint.access.roles import ARTIST_ROLE, DEFAULT_ADMIN_ROLE
from tiermint.collection import Collection
from tiermint.config import product_preset
from tiermint.errors import (ConfigError, InsufficientPayment, InvalidQuantity,
                             InvalidRecipient, InvalidStateTransition,
                             SupplyExhausted, TransferFailed, Unauthorized,
                             UnknownBand)
from tiermint.metrics import REGISTRY
from tiermint.runtime.host import Host
from tiermint.units import to_wei

from .conftest import account


def test_deployment_grants_admin_and_artist_roles(product, deployer, artist):
    assert product.has_role(DEFAULT_ADMIN_ROLE, deployer)
    assert product.has_role(ARTIST_ROLE, artist)
    assert not product.has_role(ARTIST_ROLE, account("someone"))
    assert product.artist_address == artist


def test_tokens_left_per_band(product):
    assert product.rarest_tokens_left() == 12
    assert product.rarer_tokens_left() == 1000
    assert product.rare_tokens_left() == 1000
    assert product.ledger.total_supply == 2012


def test_sold_out_after_whole_band_minted(product, buyer, deployer):
    product.set_batch_allowance(deployer, "rarest", 14)
    ids = product.rarest_batch_mint(buyer, 12, to_wei("18"))
    assert ids == list(range(1, 13))
    assert product.rarest_tokens_left() == 0

    with pytest.raises(SupplyExhausted) as ei:
        product.rarest_batch_mint(buyer, 3, to_wei("4.5"))
    assert ei.value.message == "sold out"


def test_exact_payment_for_nine_rarest(product, buyer, deployer):
    product.set_batch_allowance(deployer, "rarest", 12)
    before = product.host.ledger.balance(buyer)

    ids = product.batch_mint(buyer, "rarest", 9, to_wei("13.5"))

    assert len(ids) == 9
    assert product.tokens_left("rarest") == 3
    assert product.balance == to_wei("13.5")
    assert product.host.ledger.balance(buyer) == before - to_wei("13.5")
    assert product.host.tokens.balance_of(buyer) == 9


def test_short_payment_mints_nothing(product, buyer, deployer):
    product.set_batch_allowance(deployer, "rarest", 12)
    before_events = len(product.host.events)
    before_balance = product.host.ledger.balance(buyer)

    with pytest.raises(InsufficientPayment):
        product.batch_mint(buyer, "rarest", 9, to_wei("13.5") - 1)

    assert product.tokens_left("rarest") == 12
    assert product.ledger.band("rarest").batch_allowance == 12
    assert product.host.tokens.balance_of(buyer) == 0
    assert product.host.ledger.balance(buyer) == before_balance
    assert len(product.host.events) == before_events


def test_overpayment_is_rejected_too(product, buyer, deployer):
    product.set_batch_allowance(deployer, "rare", 2)
    with pytest.raises(InsufficientPayment):
        product.rare_batch_mint(buyer, 2, to_wei("1.5"))


def test_clamped_request_pays_for_granted_quantity(product, buyer, deployer):
    product.set_batch_allowance(deployer, "rarer", 4)
    with pytest.raises(InsufficientPayment):
        product.rarer_batch_mint(buyer, 10, to_wei("12"))
    ids = product.rarer_batch_mint(buyer, 10, to_wei("4.8"))
    assert ids == [13, 14, 15, 16]
    assert product.host.events.last("AdjustedMintAmount").args == {"requested": 10, "granted": 4}


def test_requested_payment_basis(host, deployer, buyer):
    cfg = product_preset()
    cfg.payment_basis = "requested"
    c = Collection(cfg, host, deployer=deployer)
    c.set_batch_allowance(deployer, "rarer", 4)
    with pytest.raises(InsufficientPayment):
        c.rarer_batch_mint(buyer, 10, to_wei("4.8"))
    assert len(c.rarer_batch_mint(buyer, 10, to_wei("12"))) == 4


def test_zero_quantity_and_empty_batch(product, buyer, deployer):
    with pytest.raises(InvalidQuantity):
        product.rarest_batch_mint(buyer, 0, 0)
    with pytest.raises(SupplyExhausted) as ei:
        product.rarest_batch_mint(buyer, 1, to_wei("1.5"))
    assert ei.value.message == "batch sold out"


def test_batch_allowance_replaces_leftover(product, buyer, deployer):
    product.set_batch_allowance(deployer, "rare", 5)
    product.rare_batch_mint(buyer, 2, to_wei("1"))
    assert product.set_batch_allowance(deployer, "rare", 2) == 2
    ev = product.host.events.last("BatchAllowanceSet")
    assert ev.args == {"band": "rare", "allowance": 2, "mode": "replace"}


def test_admin_operations_require_admin(product, buyer):
    with pytest.raises(Unauthorized):
        product.set_batch_allowance(buyer, "rare", 5)
    with pytest.raises(Unauthorized):
        product.set_base_uri(buyer, "ipfs://x/")
    with pytest.raises(Unauthorized):
        product.withdraw(buyer)
    assert product.ledger.band("rare").batch_allowance == 0


def test_unknown_band_mint(product, buyer):
    with pytest.raises(UnknownBand):
        product.batch_mint(buyer, "legendary", 1, 0)
    with pytest.raises(AttributeError):
        product.legendary_batch_mint(buyer, 1, 0)


def test_ids_keep_increasing_across_batches(product, buyer, deployer):
    seen = []
    for _ in range(3):
        product.set_batch_allowance(deployer, "rarer", 3)
        seen += product.rarer_batch_mint(buyer, 3, to_wei("3.6"))
    assert seen == list(range(13, 22))


def test_withdraw_sweeps_balance_to_admin(product, buyer, deployer):
    product.set_batch_allowance(deployer, "rarest", 2)
    product.rarest_batch_mint(buyer, 2, to_wei("3"))

    assert product.withdraw(deployer) == to_wei("3")
    assert product.balance == 0
    assert product.host.ledger.balance(deployer) == to_wei("3")
    assert product.host.events.last("Withdrawn").args == {"to": deployer, "amount": to_wei("3")}
    assert product.withdraw(deployer) == 0


def test_withdraw_to_rejecting_admin_rolls_back(product, buyer, deployer):
    product.set_batch_allowance(deployer, "rare", 1)
    product.rare_batch_mint(buyer, 1, to_wei("0.5"))

    def reject(sender: str, amount: int) -> None:
        raise RuntimeError("cannot receive")

    product.host.ledger.set_receive_hook(deployer, reject)
    with pytest.raises(TransferFailed):
        product.withdraw(deployer)
    assert product.balance == to_wei("0.5")
    assert product.host.events.named("Withdrawn") == []


def test_update_royalty_receiver(product, artist):
    new = account("artist-2")
    product.update_royalty_receiver(artist, artist, new)
    assert product.artist_address == new
    assert product.has_role(ARTIST_ROLE, new)
    assert not product.has_role(ARTIST_ROLE, artist)


def test_update_royalty_receiver_rejects_roleless_previous(product, deployer):
    random_address = account("random")
    with pytest.raises(InvalidRecipient):
        product.update_royalty_receiver(deployer, random_address, account("new"))


def test_update_royalty_receiver_requires_artist(product, deployer, artist):
    with pytest.raises(Unauthorized):
        product.update_royalty_receiver(deployer, artist, account("new"))
    assert product.artist_address == artist


def test_artist_role_is_not_grantable_around_rotation(product, deployer, artist):
    x, y = account("x"), account("y")
    with pytest.raises(Unauthorized):
        product.grant_role(deployer, ARTIST_ROLE, x)
    with pytest.raises(Unauthorized):
        product.revoke_role(deployer, ARTIST_ROLE, artist)
    assert not product.has_role(ARTIST_ROLE, x)

    with pytest.raises(InvalidRecipient):
        product.update_royalty_receiver(x, x, y)
    assert product.artist_address == artist
    assert product.has_role(ARTIST_ROLE, artist)


def test_stray_artist_role_holder_cannot_replace_the_artist(product, artist):
    x, y = account("x"), account("y")
    product.roles._grant(ARTIST_ROLE, x)
    with pytest.raises(InvalidRecipient):
        product.update_royalty_receiver(x, x, y)
    assert product.artist_address == artist
    assert product.has_role(ARTIST_ROLE, artist)
    assert not product.has_role(ARTIST_ROLE, y)


def test_final_switch_checks_admin_before_variant(product, buyer, deployer):
    with pytest.raises(Unauthorized):
        product.switch_to_redeemed(buyer, [1])
    with pytest.raises(InvalidStateTransition):
        product.switch_to_redeemed(deployer, [1])


def test_royalty_info(product, artist):
    info = product.royalty_info(1, to_wei("10"))
    assert info == {"receiver": artist, "amount": to_wei("1")}


def test_seed_minting_at_construction(deployer):
    cfg = product_preset()
    for b in cfg.bands:
        b.seed = 3
    c = Collection(cfg, Host(), deployer=deployer)
    assert c.rarest_tokens_left() == 9
    assert c.rarer_tokens_left() == 997
    assert c.owner_of(1) == deployer
    assert c.owner_of(13) == deployer
    assert c.ledger.band("rare").next_id == 1016
    assert c.ledger.band("rare").batch_allowance == 0


def test_failed_call_leaves_no_trace(product, buyer, deployer):
    """A mint whose payment cannot be covered rolls back supply and events."""
    poor = account("poor")
    product.set_batch_allowance(deployer, "rarest", 2)
    before_events = len(product.host.events)
    with pytest.raises(TransferFailed):
        product.rarest_batch_mint(poor, 2, to_wei("3"))
    assert product.rarest_tokens_left() == 12
    assert product.ledger.band("rarest").next_id == 1
    assert len(product.host.events) == before_events


def test_allowance_schedule_steps(deployer, buyer, host):
    cfg = product_preset()
    cfg.allowance_mode = "add"
    cfg.bands[1].allowance_schedule = [2, 3]
    c = Collection(cfg, host, deployer=deployer)
    assert c.ledger.band("rarer").batch_allowance == 2

    c.rarer_batch_mint(buyer, 1, to_wei("1.2"))
    assert c.advance_allowance_schedule(deployer, "rarer") == 4
    with pytest.raises(ConfigError):
        c.advance_allowance_schedule(deployer, "rarer")
    with pytest.raises(Unauthorized):
        c.advance_allowance_schedule(buyer, "rarer")


def test_rejections_are_counted(product, buyer):
    labels = {"reason": SupplyExhausted.code}
    before = REGISTRY.get_sample_value("tiermint_mint_rejections_total", labels) or 0.0
    with pytest.raises(SupplyExhausted):
        product.rarest_batch_mint(buyer, 1, to_wei("1.5"))
    assert REGISTRY.get_sample_value("tiermint_mint_rejections_total", labels) == before + 1


def test_minted_tokens_are_counted(product, buyer, deployer):
    labels = {"band": "rare"}
    before = REGISTRY.get_sample_value("tiermint_tokens_minted_total", labels) or 0.0
    product.set_batch_allowance(deployer, "rare", 3)
    product.rare_batch_mint(buyer, 3, to_wei("1.5"))
    assert REGISTRY.get_sample_value("tiermint_tokens_minted_total", labels) == before + 3


def test_mints_inside_a_reverted_outer_call_are_not_counted(product, buyer, deployer):
    labels = {"band": "rare"}
    product.set_batch_allowance(deployer, "rare", 3)
    before = REGISTRY.get_sample_value("tiermint_tokens_minted_total", labels) or 0.0
    with pytest.raises(RuntimeError):
        with product.host.transaction():
            product.rare_batch_mint(buyer, 2, to_wei("1"))
            raise RuntimeError("outer call reverted")
    assert product.rare_tokens_left() == 1000
    assert (REGISTRY.get_sample_value("tiermint_tokens_minted_total", labels) or 0.0) == before
