"""
Amount/price formatting helpers used when building order and withdraw requests.
Values are truncated (never rounded up) so an order never exceeds what the caller asked for.
"""

from __future__ import annotations

from decimal import Decimal, ROUND_DOWN, getcontext
from typing import Optional

getcontext().prec = 28


def step_from_precision(decimals: Optional[int], default: str = "0.00000001") -> Decimal:
    if decimals is None:
        return Decimal(default)
    return Decimal("1") / (Decimal(10) ** int(decimals))


def decimal_to_precision(value: float | str, decimals: Optional[int]) -> str:
    step = step_from_precision(decimals)
    v = Decimal(str(value))
    q = (v / step).to_integral_value(rounding=ROUND_DOWN) * step
    s = format(q, "f")
    if "." in s:
        s = s.rstrip("0").rstrip(".")
    return s or "0"
