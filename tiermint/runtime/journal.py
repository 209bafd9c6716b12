"""
tiermint.runtime.journal — checkpoints, revert/commit over stateful components.

Every stateful piece of the system (balances, events, token ownership, supply
counters, statuses, role table, recipient lists) registers itself with a
`Journal`. A call opens a checkpoint; the journal captures each component's
snapshot, and on failure restores them all, so a failed call leaves no trace.
Checkpoints nest: a re-entrant call opens its own checkpoint on top of the
caller's, and reverting it does not disturb the outer one.

Key properties
--------------
- Pure Python, no I/O; deterministic.
- Components own their snapshot format (`snapshot()` / `restore(snap)`).
- Snapshots are deep copies; cost is O(state) per checkpoint, which is fine
  for collection-sized state.

Intended usage
--------------
    j = Journal()
    j.register(ledger)
    j.begin()
    ledger.credit(addr, 10)
    j.revert()        # ledger is back to where it was
"""

from __future__ import annotations

import copy
import logging
from typing import Any, List, Protocol, Tuple

log = logging.getLogger(__name__)


class Journaled(Protocol):
    def snapshot(self) -> Any: ...
    def restore(self, snap: Any) -> None: ...


class Journal:
    """
    A stack of checkpoints over registered components.

    API highlights
    --------------
    - register(component)
    - begin() / commit() / revert()
    - depth()
    """

    def __init__(self) -> None:
        self._components: List[Journaled] = []
        self._checkpoints: List[Tuple[Any, ...]] = []

    def register(self, component: Journaled) -> None:
        if self._checkpoints:
            raise RuntimeError("cannot register components while a checkpoint is open")
        if any(c is component for c in self._components):
            return
        self._components.append(component)

    def depth(self) -> int:
        """Number of open checkpoints (0 when idle)."""
        return len(self._checkpoints)

    def begin(self) -> int:
        """Open a checkpoint. Returns the new depth."""
        snaps = tuple(copy.deepcopy(c.snapshot()) for c in self._components)
        self._checkpoints.append(snaps)
        log.debug("journal: begin depth=%d components=%d", len(self._checkpoints), len(snaps))
        return len(self._checkpoints)

    def commit(self) -> None:
        """Keep all changes made since the top checkpoint."""
        if not self._checkpoints:
            raise RuntimeError("commit without an open checkpoint")
        self._checkpoints.pop()
        log.debug("journal: commit depth=%d", len(self._checkpoints))

    def revert(self) -> None:
        """Discard all changes made since the top checkpoint."""
        if not self._checkpoints:
            raise RuntimeError("revert without an open checkpoint")
        snaps = self._checkpoints.pop()
        for comp, snap in zip(self._components, snaps):
            comp.restore(snap)
        log.debug("journal: revert depth=%d", len(self._checkpoints))


__all__ = ["Journaled", "Journal"]
