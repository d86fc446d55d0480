"""
Integer square root kernel (u128 domain).

Used only to size the first deposit into an empty pool:
    lp_minted = isqrt(amount_a * amount_b)
"""

from __future__ import annotations

from .checked_math import require_u128


def isqrt_u128(value: int) -> int:
    """
    floor(sqrt(value)) for 0 <= value <= 2**128 - 1.

    Newton iteration from the initial estimate (value + 1) // 2, stopping as
    soon as the iterate no longer decreases. The estimate is formed as
    value // 2 + (value & 1) so it stays inside u128 at the top of the range.
    """
    require_u128("value", value)
    if value < 2:
        return value

    x = value
    y = (value >> 1) + (value & 1)
    while y < x:
        x = y
        y = (x + value // x) >> 1
    return x
