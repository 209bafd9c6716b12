from __future__ import annotations

"""
Native-currency unit helpers.

All balances and prices inside tiermint are integers in base units
(1 ether = 10**18 wei). Human-facing inputs such as "1.5" are converted here
with Decimal arithmetic so no float ever touches an amount.

>>> to_wei("1.5")
1500000000000000000
>>> from_wei(7_500_000_000_000_000_000)
'7.5'
"""

from decimal import Decimal, InvalidOperation
from typing import Union

DECIMALS = 18
WEI_PER_ETHER = 10**DECIMALS

AmountLike = Union[int, str, Decimal]


def to_wei(value: AmountLike) -> int:
    """
    Convert an ether-denominated amount to integer wei.

    Integers are taken as already being wei. Strings and Decimals are read as
    ether and must not carry more than 18 fractional digits.
    """
    if isinstance(value, bool):
        raise TypeError("amount must not be bool")
    if isinstance(value, int):
        if value < 0:
            raise ValueError(f"amount must be non-negative, got {value}")
        return value
    try:
        d = Decimal(str(value).strip().replace("_", ""))
    except InvalidOperation as e:
        raise ValueError(f"invalid amount: {value!r}") from e
    if not d.is_finite() or d < 0:
        raise ValueError(f"amount must be a finite non-negative number, got {value!r}")
    scaled = d * WEI_PER_ETHER
    if scaled != scaled.to_integral_value():
        raise ValueError(f"amount {value!r} has more than {DECIMALS} decimals")
    return int(scaled)


def from_wei(amount: int) -> str:
    """Render integer wei as a plain ether string without trailing zeros."""
    if amount < 0:
        raise ValueError(f"amount must be non-negative, got {amount}")
    d = Decimal(amount) / WEI_PER_ETHER
    s = format(d.normalize(), "f")
    return s


__all__ = ["DECIMALS", "WEI_PER_ETHER", "to_wei", "from_wei"]
