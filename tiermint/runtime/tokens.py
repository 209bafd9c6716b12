"""
tiermint.runtime.tokens — the base token layer.

The collection logic only needs two primitives from the token standard:
"mint token X to address Y" and "does token X exist". Ownership queries are
provided for tests and read APIs; transfers and approvals are out of scope.
"""

from __future__ import annotations

import logging
from typing import Dict, Tuple

from tiermint.errors import TierMintError

from .events import EventLog
from .ledger import normalize_address

log = logging.getLogger(__name__)

ZERO_ADDRESS = "0x" + "00" * 20


class TokenExists(TierMintError):
    code = "TIERMINT_TOKEN_EXISTS"


class TokenRegistry:
    def __init__(self, events: EventLog) -> None:
        self._events = events
        self._owners: Dict[int, str] = {}

    # --- journal protocol ---

    def snapshot(self) -> Dict[int, str]:
        return dict(self._owners)

    def restore(self, snap: Dict[int, str]) -> None:
        self._owners = dict(snap)

    # --- primitives ---

    def mint(self, to: str, token_id: int) -> None:
        if token_id <= 0:
            raise ValueError(f"token id must be positive, got {token_id}")
        owner = normalize_address(to)
        if owner == ZERO_ADDRESS:
            raise ValueError("cannot mint to the zero address")
        if token_id in self._owners:
            raise TokenExists(f"token {token_id} already minted", details={"token_id": token_id})
        self._owners[token_id] = owner
        log.debug("tokens: mint id=%d to=%s", token_id, owner)
        self._events.emit("Transfer", sender=ZERO_ADDRESS, to=owner, token_id=token_id)

    def exists(self, token_id: int) -> bool:
        return token_id in self._owners

    # --- views ---

    def owner_of(self, token_id: int) -> str:
        try:
            return self._owners[token_id]
        except KeyError:
            raise TierMintError(f"token {token_id} does not exist",
                                details={"token_id": token_id}) from None

    def balance_of(self, addr: str) -> int:
        key = normalize_address(addr)
        return sum(1 for o in self._owners.values() if o == key)

    def minted(self) -> Tuple[int, ...]:
        return tuple(sorted(self._owners))

    def __len__(self) -> int:
        return len(self._owners)


__all__ = ["ZERO_ADDRESS", "TokenExists", "TokenRegistry"]
