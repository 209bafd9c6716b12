import pytest

from tiermint.access.roles import (ARTIST_ROLE, DEFAULT_ADMIN_ROLE, RoleTable,
                                   derive_role_id, normalize_role)
from tiermint.errors import Unauthorized
from tiermint.runtime.events import EventLog
from tiermint.runtime.host import derive_address

ADMIN = derive_address("roles:admin")
ALICE = derive_address("roles:alice")
BOB = derive_address("roles:bob")


def _table() -> RoleTable:
    t = RoleTable(EventLog())
    t._grant(DEFAULT_ADMIN_ROLE, ADMIN)
    return t


def test_role_ids_are_bytes32_hex():
    assert len(DEFAULT_ADMIN_ROLE) == 66
    assert ARTIST_ROLE == derive_role_id("ARTIST_ROLE")
    assert normalize_role(ARTIST_ROLE.upper().replace("0X", "0x")) == ARTIST_ROLE
    with pytest.raises(ValueError):
        normalize_role("ARTIST_ROLE")


def test_admin_grants_and_revokes():
    t = _table()
    t.grant_role(ADMIN, ARTIST_ROLE, ALICE)
    assert t.has_role(ARTIST_ROLE, ALICE)
    assert t.members(ARTIST_ROLE) == [ALICE]

    t.revoke_role(ADMIN, ARTIST_ROLE, ALICE)
    assert not t.has_role(ARTIST_ROLE, ALICE)


def test_non_admin_cannot_grant():
    t = _table()
    with pytest.raises(Unauthorized) as ei:
        t.grant_role(ALICE, ARTIST_ROLE, BOB)
    assert ei.value.details["role"] == "DEFAULT_ADMIN_ROLE"
    assert not t.has_role(ARTIST_ROLE, BOB)


def test_grant_is_idempotent_and_emits_once():
    events = EventLog()
    t = RoleTable(events)
    assert t._grant(ARTIST_ROLE, ALICE) is True
    assert t._grant(ARTIST_ROLE, ALICE) is False
    assert len(events.named("RoleGranted")) == 1


def test_custom_role_admin():
    t = _table()
    minter = t.name_role("MINTER_ROLE")
    t.set_role_admin(ADMIN, minter, ARTIST_ROLE)
    t._grant(ARTIST_ROLE, ALICE)

    t.grant_role(ALICE, minter, BOB)
    assert t.has_role(minter, BOB)
    with pytest.raises(Unauthorized):
        t.grant_role(ADMIN, minter, ALICE)


def test_renounce_role():
    t = _table()
    t._grant(ARTIST_ROLE, ALICE)
    t.renounce_role(ALICE, ARTIST_ROLE)
    assert not t.has_role(ARTIST_ROLE, ALICE)


def test_snapshot_restore_round_trip():
    t = _table()
    snap = t.snapshot()
    t._grant(ARTIST_ROLE, ALICE)
    t.restore(snap)
    assert not t.has_role(ARTIST_ROLE, ALICE)
    assert t.has_role(DEFAULT_ADMIN_ROLE, ADMIN)


def test_bound_role_moves_only_through_unchecked_calls():
    t = _table()
    t._grant(ARTIST_ROLE, ALICE)
    t.bind_role(ARTIST_ROLE)
    assert t.is_bound(ARTIST_ROLE)

    with pytest.raises(Unauthorized) as ei:
        t.grant_role(ADMIN, ARTIST_ROLE, BOB)
    assert ei.value.details["role"] == "ARTIST_ROLE"
    with pytest.raises(Unauthorized):
        t.revoke_role(ADMIN, ARTIST_ROLE, ALICE)
    with pytest.raises(Unauthorized):
        t.renounce_role(ALICE, ARTIST_ROLE)
    assert t.members(ARTIST_ROLE) == [ALICE]

    t._revoke(ARTIST_ROLE, ALICE)
    t._grant(ARTIST_ROLE, BOB)
    assert t.members(ARTIST_ROLE) == [BOB]
    assert not t.is_bound(DEFAULT_ADMIN_ROLE)
