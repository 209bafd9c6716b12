"""
tiermint.runtime.host — the single-writer execution boundary.

A `Host` bundles what a chain would otherwise provide to the collection:

- a native-currency ledger (`NativeLedger`)
- an event log (`EventLog`)
- the base token layer (`TokenRegistry`)
- a journal over every registered stateful component (`Journal`)

`Host.transaction()` is the call boundary. It takes a re-entrant lock so only
one state-changing call runs at a time (re-entrant callbacks from receive
hooks are allowed on the same thread), opens a journal checkpoint, and either
commits on success or reverts every registered component when the call
raises. The exception always propagates to the caller.

Side effects that must not outlive a reverted call (metrics) are queued with
`Host.on_commit`: they run once the outermost transaction commits and are
dropped if any enclosing transaction reverts.

`Host.new_address(tag)` is deterministic per host: the first use of a tag maps
to `derive_address(tag)`, later uses of the same tag get `tag#1`, `tag#2`, ...

Methods on domain objects are wrapped with `@atomic`, which looks up
`self.host` and runs the method inside `host.transaction()`.
"""

from __future__ import annotations

import functools
import hashlib
import logging
from contextlib import contextmanager
from threading import RLock
from typing import Any, Callable, Dict, Iterator, List, TypeVar

from .events import EventLog
from .journal import Journal, Journaled
from .ledger import NativeLedger
from .tokens import TokenRegistry

log = logging.getLogger(__name__)

F = TypeVar("F", bound=Callable[..., Any])


def derive_address(tag: str) -> str:
    """
    Produce a stable 20-byte hex address (0x...) from a tag.
    Used for contract addresses and deterministic test accounts.
    """
    h = hashlib.sha3_256(tag.encode("utf-8")).hexdigest()[:40]
    return "0x" + h


class Host:
    def __init__(self) -> None:
        self.journal = Journal()
        self.ledger = NativeLedger()
        self.events = EventLog()
        self.tokens = TokenRegistry(self.events)
        self._lock = RLock()
        self._issued: Dict[str, int] = {}
        self._pending: List[List[Callable[[], Any]]] = []
        for comp in (self.ledger, self.events, self.tokens):
            self.journal.register(comp)

    def register(self, component: Journaled) -> None:
        self.journal.register(component)

    def new_address(self, tag: str) -> str:
        """A fresh contract address; reusing a tag on this host never aliases."""
        with self._lock:
            n = self._issued.get(tag, 0)
            self._issued[tag] = n + 1
        return derive_address(tag if n == 0 else f"{tag}#{n}")

    def on_commit(self, fn: Callable[..., Any], *args: Any, **kwargs: Any) -> None:
        """Run `fn` after the outermost open transaction commits, or now if none is open."""
        with self._lock:
            if not self._pending:
                fn(*args, **kwargs)
                return
            self._pending[-1].append(functools.partial(fn, *args, **kwargs))

    @contextmanager
    def transaction(self) -> Iterator["Host"]:
        with self._lock:
            depth = self.journal.begin()
            self._pending.append([])
            try:
                yield self
            except BaseException:
                self.journal.revert()
                self._pending.pop()
                log.debug("host: call reverted at depth=%d", depth)
                raise
            else:
                self.journal.commit()
                hooks = self._pending.pop()
                if self._pending:
                    self._pending[-1].extend(hooks)
                else:
                    for hook in hooks:
                        hook()

    def pay(self, sender: str, to: str, value: int) -> None:
        """Move `value` from `sender` to `to` as the attached value of a call."""
        if value:
            self.ledger.transfer(sender, to, value)


def atomic(fn: F) -> F:
    """Run a method of an object carrying `.host` inside one host transaction."""

    @functools.wraps(fn)
    def wrapper(self, *args: Any, **kwargs: Any) -> Any:
        with self.host.transaction():
            return fn(self, *args, **kwargs)

    return wrapper  # type: ignore[return-value]


__all__ = ["Host", "atomic", "derive_address"]
