"""
CPMM swap kernel (fee-fraction semantics).

- The fee is a fraction fee_numerator / fee_denominator taken from the input.
- Pricing scales both sides by fee_denominator instead of dividing, so the
  only rounding step is the final floor:

      amount_in_with_fee = amount_in * (fee_denominator - fee_numerator)
      numerator          = amount_in_with_fee * reserve_out
      denominator        = reserve_in * fee_denominator + amount_in_with_fee
      amount_out         = floor(numerator / denominator)

- The whole gross input stays in the pool, so k never decreases.

Inputs live in u64 and every intermediate in u128; leaving either domain
raises ArithmeticOverflow rather than wrapping.
"""

from __future__ import annotations

from dataclasses import dataclass

from ...errors import InvalidAmount, InvalidFee, SlippageExceeded
from .checked_math import (
    U64_MAX,
    checked_add,
    checked_div,
    checked_mul,
    narrow_u64,
    require_u64,
)


@dataclass(frozen=True)
class SwapExactInResult:
    amount_in: int
    amount_out: int
    amount_in_with_fee: int
    fee_amount: int
    new_reserve_in: int
    new_reserve_out: int
    k_before: int
    k_after: int


def validate_fee(*, fee_numerator: int, fee_denominator: int) -> None:
    """Fee fraction must lie in [0, 1): 0 <= fee_numerator < fee_denominator."""
    require_u64("fee_numerator", fee_numerator)
    require_u64("fee_denominator", fee_denominator)
    if fee_denominator == 0:
        raise InvalidFee("fee_denominator must be positive")
    if fee_numerator >= fee_denominator:
        raise InvalidFee(
            f"fee_numerator ({fee_numerator}) must be < fee_denominator ({fee_denominator})"
        )


def compute_fee_amount(*, amount_in: int, fee_numerator: int, fee_denominator: int) -> int:
    """
    Compute `floor(amount_in * fee_numerator / fee_denominator)`.

    Reporting only: pricing never subtracts this value, it scales instead.
    """
    require_u64("amount_in", amount_in)
    validate_fee(fee_numerator=fee_numerator, fee_denominator=fee_denominator)
    return checked_div(checked_mul(amount_in, fee_numerator), fee_denominator)


def swap_exact_in(
    *,
    reserve_in: int,
    reserve_out: int,
    amount_in: int,
    fee_numerator: int,
    fee_denominator: int,
    min_amount_out: int = 0,
) -> SwapExactInResult:
    """
    Exact-in swap quote + post-state.

    Check order: amount_in > 0, then the slippage floor, then a non-zero output
    (a trade that rounds to nothing must not be charged).
    """
    for name, v in (
        ("reserve_in", reserve_in),
        ("reserve_out", reserve_out),
        ("amount_in", amount_in),
        ("min_amount_out", min_amount_out),
    ):
        require_u64(name, v)
    validate_fee(fee_numerator=fee_numerator, fee_denominator=fee_denominator)

    if amount_in <= 0:
        raise InvalidAmount(f"amount_in must be positive: {amount_in}")

    amount_in_with_fee = checked_mul(amount_in, fee_denominator - fee_numerator)
    numerator = checked_mul(amount_in_with_fee, reserve_out)
    denominator = checked_add(checked_mul(reserve_in, fee_denominator), amount_in_with_fee)
    amount_out = narrow_u64("amount_out", checked_div(numerator, denominator))

    if amount_out < min_amount_out:
        raise SlippageExceeded("amount_out", amount_out, min_amount_out)
    if amount_out <= 0:
        raise InvalidAmount("amount_out is zero (trade too small)")
    if amount_out > reserve_out:
        raise AssertionError("amount_out exceeds reserve_out")

    new_reserve_in = checked_add(reserve_in, amount_in, bound=U64_MAX)
    new_reserve_out = reserve_out - amount_out

    return SwapExactInResult(
        amount_in=amount_in,
        amount_out=amount_out,
        amount_in_with_fee=amount_in_with_fee,
        fee_amount=compute_fee_amount(
            amount_in=amount_in, fee_numerator=fee_numerator, fee_denominator=fee_denominator
        ),
        new_reserve_in=new_reserve_in,
        new_reserve_out=new_reserve_out,
        k_before=reserve_in * reserve_out,
        k_after=new_reserve_in * new_reserve_out,
    )
