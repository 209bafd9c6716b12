"""
tiermint.runtime.ledger — deterministic native-currency balance ledger.

The host keeps one of these for every address in a simulation: externally
owned accounts, the collection contract, the royalty distributor.

- balance(addr) -> int
- credit(addr, amount) / debit(addr, amount)
- transfer(frm, to, amount)

Receive hooks model contract recipients. A hook registered for an address is
invoked *after* the funds have landed; it may raise to reject the payment
(the enclosing transaction then rolls back) or call back into the system
(re-entrancy). Callers that pay out must finish their own bookkeeping before
calling `transfer`.
"""

from __future__ import annotations

import logging
from typing import Callable, Dict, Optional

from tiermint.errors import TransferFailed

log = logging.getLogger(__name__)

ReceiveHook = Callable[[str, int], None]  # (sender, amount)


def normalize_address(addr: str) -> str:
    if not isinstance(addr, str) or not addr:
        raise ValueError("address must be a non-empty string")
    return addr.lower()


def _check_amount(amount: int) -> None:
    if isinstance(amount, bool) or not isinstance(amount, int):
        raise TypeError("amount must be int")
    if amount < 0:
        raise ValueError("amount must be non-negative")


class NativeLedger:
    def __init__(self) -> None:
        self._balances: Dict[str, int] = {}
        self._hooks: Dict[str, ReceiveHook] = {}

    # --- journal protocol ---

    def snapshot(self) -> Dict[str, int]:
        return dict(self._balances)

    def restore(self, snap: Dict[str, int]) -> None:
        self._balances = dict(snap)

    # --- hooks ---

    def set_receive_hook(self, addr: str, hook: Optional[ReceiveHook]) -> None:
        key = normalize_address(addr)
        if hook is None:
            self._hooks.pop(key, None)
        else:
            self._hooks[key] = hook

    # --- views ---

    def balance(self, addr: str) -> int:
        return self._balances.get(normalize_address(addr), 0)

    def total(self) -> int:
        return sum(self._balances.values())

    # --- mutations ---

    def credit(self, addr: str, amount: int) -> None:
        """Host/testing helper: mint native currency into `addr`."""
        _check_amount(amount)
        key = normalize_address(addr)
        self._balances[key] = self._balances.get(key, 0) + amount

    def debit(self, addr: str, amount: int) -> None:
        _check_amount(amount)
        key = normalize_address(addr)
        cur = self._balances.get(key, 0)
        if amount > cur:
            raise TransferFailed(to=key, amount=amount, reason="insufficient balance",
                                 details={"have": cur})
        self._balances[key] = cur - amount

    def transfer(self, frm: str, to: str, amount: int) -> None:
        """Debit `frm`, credit `to`, then run `to`'s receive hook if any."""
        _check_amount(amount)
        src = normalize_address(frm)
        dst = normalize_address(to)
        cur = self._balances.get(src, 0)
        if amount > cur:
            raise TransferFailed(to=dst, amount=amount, reason="insufficient balance",
                                 details={"from": src, "have": cur})
        self._balances[src] = cur - amount
        self._balances[dst] = self._balances.get(dst, 0) + amount
        log.debug("ledger: transfer %s -> %s amount=%d", src, dst, amount)

        hook = self._hooks.get(dst)
        if hook is not None:
            try:
                hook(src, amount)
            except TransferFailed:
                raise
            except Exception as e:
                raise TransferFailed(to=dst, amount=amount, reason=f"recipient rejected: {e}") from e


__all__ = ["NativeLedger", "ReceiveHook", "normalize_address"]
