from __future__ import annotations

"""
Royalty splitter
----------------

A small payable contract that accrues royalty payments and pays them out in
equal shares to a fixed-size, role-gated list of recipients.

Accounting
  • ``receive(sender, value)`` moves ``value`` from the sender into the
    splitter's address and adds it to the tracked balance. Anyone may pay.
  • ``distribute(caller)`` (DEFAULT_ADMIN_ROLE) computes
    ``share = balance // N`` and pays every recipient ``share``. The
    ``balance - N * share`` remainder stays and rolls into the next round.
  • Funds for a round are debited from the tracked balance and the
    ``RoyaltyPaid`` events are emitted *before* any transfer leaves the
    contract, so a recipient that calls back in only ever sees the post-round
    balance.
  • A rejected transfer aborts the whole round: every recipient is paid or
    none is.
  • Metrics are queued with ``Host.on_commit`` and only count calls whose
    outermost transaction committed.

Recipient rotation
  • ``rotate_recipient(caller, old, new)``: the caller must hold the role
    bound to ``old``; the role follows the address and the position is kept.
    See tiermint.royalty.recipients.
"""

import logging
from dataclasses import dataclass
from typing import Dict, Optional, Sequence, Tuple

from tiermint import metrics
from tiermint.access.roles import DEFAULT_ADMIN_ROLE, RoleTable
from tiermint.errors import InvalidQuantity, TransferFailed
from tiermint.runtime.host import Host, atomic
from tiermint.runtime.ledger import normalize_address

from .recipients import RecipientSet

log = logging.getLogger(__name__)


@dataclass(frozen=True)
class Distribution:
    share: int
    payouts: Tuple[Tuple[str, int], ...]
    remainder: int

    @property
    def total(self) -> int:
        return sum(a for _, a in self.payouts)

    def to_dict(self) -> Dict[str, object]:
        return {
            "share": self.share,
            "payouts": [{"recipient": r, "amount": a} for r, a in self.payouts],
            "remainder": self.remainder,
        }


class RoyaltySplitter:
    def __init__(
        self,
        host: Host,
        recipients: Sequence[str],
        *,
        admin: str,
        admins: Sequence[str] = (),
        tag: str = "tiermint:royalty-splitter",
    ) -> None:
        self.host = host
        self.address = host.new_address(tag)
        self.roles = RoleTable(host.events)
        self.roles._grant(DEFAULT_ADMIN_ROLE, admin)
        for a in admins:
            self.roles._grant(DEFAULT_ADMIN_ROLE, a)
        self.recipients = RecipientSet(self.roles, host.events, recipients)
        self._balance = 0
        host.register(self.roles)
        host.register(self.recipients)
        host.register(self)
        log.info("royalty: splitter %s with %d recipient(s)", self.address, len(self.recipients))

    # --- journal protocol ---

    def snapshot(self) -> int:
        return self._balance

    def restore(self, snap: int) -> None:
        self._balance = snap

    # --- views ---

    @property
    def balance(self) -> int:
        """Tracked balance: received royalties not yet paid out."""
        return self._balance

    def preview(self, amount: Optional[int] = None) -> Distribution:
        """What ``distribute`` would pay right now, without moving anything."""
        pool = self._balance if amount is None else amount
        n = len(self.recipients)
        share = pool // n
        payouts = tuple((r, share) for r in self.recipients)
        return Distribution(share=share, payouts=payouts, remainder=self._balance - share * n)

    # --- calls ---

    @atomic
    def receive(self, sender: str, value: int) -> int:
        if value <= 0:
            raise InvalidQuantity(requested=value, message="royalty payment must be positive")
        self.host.pay(sender, self.address, value)
        self._balance += value
        self.host.events.emit("RoyaltyReceived", sender=normalize_address(sender), amount=value)
        self.host.on_commit(metrics.record_royalty_received, value)
        log.debug("royalty: received %d from %s balance=%d", value, sender, self._balance)
        return self._balance

    @atomic
    def distribute(self, caller: str, amount: Optional[int] = None) -> Distribution:
        """
        Pay every recipient an equal share of the balance (or of ``amount``).
        Returns the executed Distribution; a zero share pays nothing.
        """
        self.roles.require_role(DEFAULT_ADMIN_ROLE, caller)
        if amount is not None and not (0 < amount <= self._balance):
            raise InvalidQuantity(requested=amount, message="amount must be within the tracked balance")

        plan = self.preview(amount)
        if plan.share == 0:
            log.info("royalty: nothing to distribute (balance=%d, recipients=%d)", self._balance, len(self.recipients))
            return Distribution(share=0, payouts=(), remainder=self._balance)

        self._balance -= plan.total
        for recipient, share in plan.payouts:
            self.host.events.emit("RoyaltyPaid", recipient=recipient, share=share)

        for recipient, share in plan.payouts:
            try:
                self.host.ledger.transfer(self.address, recipient, share)
            except TransferFailed:
                log.warning("royalty: payout to %s failed; round aborted", recipient)
                raise

        self.host.on_commit(metrics.record_distribution, plan.share, len(plan.payouts))
        log.info(
            "royalty: distributed %d x %d, remainder=%d", len(plan.payouts), plan.share, self._balance
        )
        return Distribution(share=plan.share, payouts=plan.payouts, remainder=self._balance)

    @atomic
    def rotate_recipient(self, caller: str, old: str, new: str) -> int:
        return self.recipients.rotate(caller, old, new)

    def to_dict(self) -> Dict[str, object]:
        return {"address": self.address, "balance": self._balance, "recipients": self.recipients.addresses}


__all__ = ["Distribution", "RoyaltySplitter"]
