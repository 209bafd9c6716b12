"""
tiermint.runtime.events — ordered event log for observable side effects.

Events are plain records `(name, args)` appended in emission order. The log is
journaled with everything else, so events emitted by a call that later fails
disappear together with the call's state changes.

Arg values are restricted to JSON-friendly scalars (str, int, bool) and lists
of them; names follow the Solidity-ish CapWords convention used by clients
(`MintedTokenInfo`, `RoyaltyPaid`, ...).
"""

from __future__ import annotations

import re
from dataclasses import dataclass, field
from typing import Any, Dict, Iterator, List, Optional

_NAME_RE = re.compile(r"^[A-Z][A-Za-z0-9]*$")
_KEY_RE = re.compile(r"^[A-Za-z_][A-Za-z0-9_]*$")


@dataclass(frozen=True)
class Event:
    """One emitted event. `seq` is the position in the log at emission time."""

    seq: int
    name: str
    args: Dict[str, Any] = field(default_factory=dict)

    def to_dict(self) -> Dict[str, Any]:
        return {"seq": self.seq, "name": self.name, "args": dict(self.args)}


def _check_value(key: str, value: Any) -> Any:
    if isinstance(value, (bool, int, str)) or value is None:
        return value
    if isinstance(value, (list, tuple)):
        return [_check_value(key, v) for v in value]
    raise TypeError(f"unsupported event arg type for {key!r}: {type(value).__name__}")


class EventLog:
    def __init__(self) -> None:
        self._events: List[Event] = []

    # --- journal protocol ---

    def snapshot(self) -> int:
        return len(self._events)

    def restore(self, snap: int) -> None:
        del self._events[snap:]

    # --- emission ---

    def emit(self, name: str, **args: Any) -> Event:
        if not _NAME_RE.match(name):
            raise ValueError(f"invalid event name: {name!r}")
        checked: Dict[str, Any] = {}
        for k, v in args.items():
            if not _KEY_RE.match(k):
                raise ValueError(f"invalid event key: {k!r}")
            checked[k] = _check_value(k, v)
        ev = Event(seq=len(self._events), name=name, args=checked)
        self._events.append(ev)
        return ev

    # --- views ---

    def __len__(self) -> int:
        return len(self._events)

    def __iter__(self) -> Iterator[Event]:
        return iter(tuple(self._events))

    def named(self, name: str) -> List[Event]:
        return [e for e in self._events if e.name == name]

    def since(self, seq: int) -> List[Event]:
        return list(self._events[seq:])

    def last(self, name: Optional[str] = None) -> Optional[Event]:
        for e in reversed(self._events):
            if name is None or e.name == name:
                return e
        return None


__all__ = ["Event", "EventLog"]
