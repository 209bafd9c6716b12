# -*- coding: utf-8 -*-
"""
tiermint.access.roles
=====================

Deterministic, minimal **Role-Based Access Control** (RBAC) as an explicit
authorization table: role id → set of member addresses, plus role id → admin
role id. Every administrative or rotation operation checks this table before
mutating anything.

Design goals
------------
- **Hex role identifiers**: `0x` + 32 bytes hex. Named roles are derived with
  `derive_role_id(name)` (sha3_256 of the name).
- **DEFAULT_ADMIN_ROLE** (all zeros) administers every role unless
  `set_role_admin` says otherwise.
- **Idempotent operations**: granting an existing role or revoking a missing
  one is a no-op and emits nothing.
- **Journaled**: the table takes part in host transactions, so a role move
  inside a failing call is rolled back.

API surface
-----------
- Queries: `has_role`, `get_role_admin`, `require_role`, `members`
- Mutations (admin-checked): `grant_role`, `revoke_role`, `set_role_admin`
- Self-service: `renounce_role`
- Bootstrap/internal (unchecked): `_grant`, `_revoke`
- `bind_role`: hand a role over to a recipient list. A bound role can no longer
  be granted, revoked or renounced through the checked API; it only moves by
  rotation, so its members and the list stay in step.

Events
------
- **RoleGranted**      : {"role", "account", "sender"}
- **RoleRevoked**      : {"role", "account", "sender"}
- **RoleAdminChanged** : {"role", "previous_admin_role", "new_admin_role"}
"""
from __future__ import annotations

import hashlib
from typing import Dict, List, Optional, Set

from tiermint.errors import Unauthorized
from tiermint.runtime.events import EventLog
from tiermint.runtime.ledger import normalize_address

__all__ = [
    "DEFAULT_ADMIN_ROLE",
    "ARTIST_ROLE",
    "derive_role_id",
    "normalize_role",
    "RoleTable",
]


def derive_role_id(name: str) -> str:
    """Deterministic role id derivation: sha3_256(name) → 0x-hex bytes32."""
    return "0x" + hashlib.sha3_256(name.encode("utf-8")).hexdigest()


def normalize_role(role: str) -> str:
    """Ensure `role` is a 0x-prefixed 32-byte hex string."""
    if not isinstance(role, str) or not role.startswith("0x") or len(role) != 66:
        raise ValueError(f"role id must be 0x-prefixed 32-byte hex, got {role!r}")
    int(role, 16)
    return role.lower()


DEFAULT_ADMIN_ROLE: str = "0x" + "00" * 32
ARTIST_ROLE: str = derive_role_id("ARTIST_ROLE")


class RoleTable:
    def __init__(self, events: EventLog) -> None:
        self._events = events
        self._members: Dict[str, Set[str]] = {}
        self._admins: Dict[str, str] = {}
        self._bound: Set[str] = set()
        self._names: Dict[str, str] = {DEFAULT_ADMIN_ROLE: "DEFAULT_ADMIN_ROLE", ARTIST_ROLE: "ARTIST_ROLE"}

    # --- journal protocol ---

    def snapshot(self):
        return {"members": {r: set(m) for r, m in self._members.items()}, "admins": dict(self._admins)}

    def restore(self, snap) -> None:
        self._members = {r: set(m) for r, m in snap["members"].items()}
        self._admins = dict(snap["admins"])

    # --- naming ---

    def name_role(self, name: str) -> str:
        """Derive a role id from `name` and remember the name for error messages."""
        role = derive_role_id(name)
        self._names[role] = name
        return role

    def role_name(self, role: str) -> str:
        return self._names.get(role, role)

    # --- queries ---

    def has_role(self, role: str, account: str) -> bool:
        role = normalize_role(role)
        if not account:
            return False
        return normalize_address(account) in self._members.get(role, ())

    def members(self, role: str) -> List[str]:
        return sorted(self._members.get(normalize_role(role), ()))

    def get_role_admin(self, role: str) -> str:
        return self._admins.get(normalize_role(role), DEFAULT_ADMIN_ROLE)

    def require_role(self, role: str, account: str) -> None:
        """Raise Unauthorized unless `account` holds `role`."""
        if not self.has_role(role, account):
            raise Unauthorized(account=account, role=self.role_name(normalize_role(role)))

    def bind_role(self, role: str) -> None:
        self._bound.add(normalize_role(role))

    def is_bound(self, role: str) -> bool:
        return normalize_role(role) in self._bound

    def _require_unbound(self, caller: str, role: str) -> None:
        if self.is_bound(role):
            raise Unauthorized(
                account=caller,
                role=self.role_name(normalize_role(role)),
                message="role is bound to a recipient position and moves only by rotation",
            )

    # --- unchecked mutations (bootstrap, rotation) ---

    def _grant(self, role: str, account: str, sender: Optional[str] = None) -> bool:
        role = normalize_role(role)
        acct = normalize_address(account)
        members = self._members.setdefault(role, set())
        if acct in members:
            return False
        members.add(acct)
        self._events.emit("RoleGranted", role=role, account=acct, sender=sender or acct)
        return True

    def _revoke(self, role: str, account: str, sender: Optional[str] = None) -> bool:
        role = normalize_role(role)
        acct = normalize_address(account)
        members = self._members.get(role)
        if not members or acct not in members:
            return False
        members.discard(acct)
        self._events.emit("RoleRevoked", role=role, account=acct, sender=sender or acct)
        return True

    # --- checked mutations ---

    def grant_role(self, caller: str, role: str, account: str) -> None:
        """Grant `role` to `account`. Only callable by a holder of the role's admin role."""
        self._require_unbound(caller, role)
        self.require_role(self.get_role_admin(role), caller)
        self._grant(role, account, sender=normalize_address(caller))

    def revoke_role(self, caller: str, role: str, account: str) -> None:
        self._require_unbound(caller, role)
        self.require_role(self.get_role_admin(role), caller)
        self._revoke(role, account, sender=normalize_address(caller))

    def renounce_role(self, caller: str, role: str) -> None:
        self._require_unbound(caller, role)
        self._revoke(role, caller, sender=normalize_address(caller))

    def set_role_admin(self, caller: str, role: str, admin_role: str) -> None:
        role = normalize_role(role)
        admin_role = normalize_role(admin_role)
        self.require_role(self.get_role_admin(role), caller)
        prev = self.get_role_admin(role)
        if prev == admin_role:
            return
        self._admins[role] = admin_role
        self._events.emit(
            "RoleAdminChanged", role=role, previous_admin_role=prev, new_admin_role=admin_role
        )
