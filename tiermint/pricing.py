from __future__ import annotations

"""
Pricing gate for paid mints.

A mint is accepted only when the attached native value equals
``unit_price * quantity`` exactly. There is no refund path, so overpayment is
rejected just like underpayment.

Which quantity is priced is a collection policy (`PaymentBasis`):

- GRANTED (default): the post-clamp quantity. A buyer asking for 10 when only
  4 remain in the batch must attach the price of 4.
- REQUESTED: the quantity asked for. Combined with clamping this rejects
  any request that would be truncated unless the caller pays for all of it,
  so it is mostly useful for collections that never clamp in practice.
"""

import logging
from enum import Enum
from typing import Optional

from .errors import InsufficientPayment

log = logging.getLogger(__name__)


class PaymentBasis(str, Enum):
    GRANTED = "granted"
    REQUESTED = "requested"


def required_payment(unit_price: int, quantity: int) -> int:
    if unit_price < 0 or quantity < 0:
        raise ValueError("unit_price and quantity must be non-negative")
    return unit_price * quantity


def priced_quantity(basis: PaymentBasis, requested: int, granted: int) -> int:
    return granted if PaymentBasis(basis) is PaymentBasis.GRANTED else requested


def check_payment(attached: int, unit_price: int, quantity: int, *, band: Optional[str] = None) -> int:
    """
    Validate ``attached`` against ``unit_price * quantity``.
    Returns the required amount; raises InsufficientPayment on any mismatch.
    """
    required = required_payment(unit_price, quantity)
    if attached != required:
        log.info(
            "pricing: rejected payment band=%s attached=%d required=%d", band, attached, required,
        )
        raise InsufficientPayment(required=required, attached=attached, band=band)
    return required


__all__ = ["PaymentBasis", "required_payment", "priced_quantity", "check_payment"]
