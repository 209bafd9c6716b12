"""
tiermint.royalty.recipients — an ordered, fixed-size list of payees, each
position bound to its own role in a RoleTable.

The role is keyed to the address holding it, so rotating a position out
(`rotate`) moves three things together, inside the caller's transaction:

1. revoke the position's role from the old address,
2. grant it to the new address,
3. replace the address in the list, keeping its position.

The position is found in the address list, never through role membership:
``old`` must sit in the list and still hold that position's role, otherwise the
call fails with InvalidRecipient before the caller is considered. The caller
must then hold the same role. Every bound role is locked in the RoleTable
(`bind_role`), so checked grants and revokes cannot move it behind the list's
back.

The same structure backs the collection's artist/royalty-receiver address (a
single position bound to ARTIST_ROLE) and the royalty splitter's payees.
"""

from __future__ import annotations

import logging
from typing import Iterator, List, Optional, Sequence

from tiermint.access.roles import RoleTable
from tiermint.errors import ConfigError, InvalidRecipient
from tiermint.runtime.events import EventLog
from tiermint.runtime.ledger import normalize_address

log = logging.getLogger(__name__)


class RecipientSet:
    def __init__(
        self,
        roles: RoleTable,
        events: EventLog,
        recipients: Sequence[str],
        *,
        role_ids: Optional[Sequence[str]] = None,
        role_prefix: str = "RECIPIENT",
    ) -> None:
        if not recipients:
            raise ConfigError("a recipient set needs at least one address")
        if role_ids is None:
            role_ids = [roles.name_role(f"{role_prefix}_{i}_ROLE") for i in range(len(recipients))]
        if len(role_ids) != len(recipients):
            raise ConfigError("one role per recipient position is required")
        self._roles = roles
        self._events = events
        self._role_ids: List[str] = list(role_ids)
        self._addresses: List[str] = [normalize_address(a) for a in recipients]
        for role, addr in zip(self._role_ids, self._addresses):
            roles._grant(role, addr)
            roles.bind_role(role)

    # --- journal protocol ---

    def snapshot(self) -> List[str]:
        return list(self._addresses)

    def restore(self, snap: List[str]) -> None:
        self._addresses = list(snap)

    # --- views ---

    def __len__(self) -> int:
        return len(self._addresses)

    def __iter__(self) -> Iterator[str]:
        return iter(list(self._addresses))

    def __getitem__(self, i: int) -> str:
        return self._addresses[i]

    @property
    def addresses(self) -> List[str]:
        return list(self._addresses)

    @property
    def role_ids(self) -> List[str]:
        return list(self._role_ids)

    def position_of(self, address: str) -> Optional[int]:
        """First list position holding ``address``, or None."""
        try:
            return self._addresses.index(normalize_address(address))
        except ValueError:
            return None

    # --- mutation ---

    def rotate(self, caller: str, old: str, new: str) -> int:
        """Replace ``old`` with ``new`` at its position; returns the position."""
        old_n = normalize_address(old)
        new_n = normalize_address(new)
        pos = self.position_of(old_n)
        if pos is None or not self._roles.has_role(self._role_ids[pos], old_n):
            raise InvalidRecipient(address=old_n)
        role = self._role_ids[pos]
        self._roles.require_role(role, caller)

        sender = normalize_address(caller)
        self._roles._revoke(role, old_n, sender=sender)
        self._roles._grant(role, new_n, sender=sender)
        self._addresses[pos] = new_n
        self._events.emit("RecipientRotated", old=old_n, new=new_n, position=pos)
        log.info("recipients: position %d rotated %s -> %s", pos, old_n, new_n)
        return pos


__all__ = ["RecipientSet"]
