"""
Constant Product Market Maker (CPMM) algorithm implementation.

This module wraps the integer kernels with the pool's invariant checks. The
rounding rules are fixed and deterministic:

- swaps floor the output,
- mints floor each side's share count and take the minimum,
- burns floor each returned amount.

Algorithm Design:
- Type: Fixed-Point Integer Arithmetic / Deterministic Rounding
- Time Complexity: O(1) per operation (O(log n) for the first-deposit isqrt)
- Space Complexity: O(1) auxiliary
- Invariant: After each swap, x' * y' >= x * y, strictly when the fee is non-zero
"""

from typing import Tuple

from ..errors import InvariantViolation
from ..kernels.python.cpmm_swap import SwapExactInResult
from ..kernels.python.cpmm_swap import swap_exact_in as _kernel_swap_exact_in
from ..kernels.python.lp_math import MintSharesResult
from ..kernels.python.lp_math import burn_shares as _kernel_burn_shares
from ..kernels.python.lp_math import mint_shares as _kernel_mint_shares
from ..state.balances import Amount
from .fees import FeeFraction


def swap_exact_in(
    reserve_in: Amount,
    reserve_out: Amount,
    amount_in: Amount,
    fee: FeeFraction,
    min_amount_out: Amount = 0,
) -> SwapExactInResult:
    """
    Compute output amount for an exact-in swap.

    This implements the fee-adjusted CPMM formula:
        amount_in_with_fee = amount_in * (fee_denominator - fee_numerator)
        amount_out = floor(amount_in_with_fee * reserve_out /
                           (reserve_in * fee_denominator + amount_in_with_fee))

    Post-swap reserves:
        new_reserve_in = reserve_in + amount_in  (fee stays in pool)
        new_reserve_out = reserve_out - amount_out

    Raises:
        InvalidAmount: amount_in is zero or the output rounds to zero
        SlippageExceeded: amount_out < min_amount_out
        ArithmeticOverflow: an intermediate leaves u128 or a reserve leaves u64
        InvariantViolation: the post-swap constant product decreased
    """
    res = _kernel_swap_exact_in(
        reserve_in=reserve_in,
        reserve_out=reserve_out,
        amount_in=amount_in,
        fee_numerator=fee.numerator,
        fee_denominator=fee.denominator,
        min_amount_out=min_amount_out,
    )

    if res.k_after < res.k_before:
        raise InvariantViolation(f"k decreased: {res.k_after} < {res.k_before}")
    if not fee.is_zero and res.k_before > 0 and res.k_after == res.k_before:
        raise InvariantViolation(f"k did not grow under a non-zero fee: {res.k_after}")

    return res


def compute_lp_mint(
    reserve_a: Amount,
    reserve_b: Amount,
    lp_supply: Amount,
    amount_a: Amount,
    amount_b: Amount,
    min_lp_out: Amount = 0,
) -> MintSharesResult:
    """
    Compute LP shares to mint for a deposit of (amount_a, amount_b).

    For the first deposit (lp_supply == 0):
        lp = floor(sqrt(amount_a * amount_b))

    For subsequent deposits:
        lp = min(floor(amount_a * lp_supply / reserve_a), floor(amount_b * lp_supply / reserve_b))

    The minted shares never claim more than was deposited:
        lp * reserve_x <= amount_x * lp_supply   (for both sides)
    """
    res = _kernel_mint_shares(
        reserve_a=reserve_a,
        reserve_b=reserve_b,
        lp_supply=lp_supply,
        amount_a=amount_a,
        amount_b=amount_b,
        min_lp_out=min_lp_out,
    )

    if not res.is_initial:
        if res.lp_minted * reserve_a > amount_a * lp_supply or res.lp_minted * reserve_b > amount_b * lp_supply:
            raise InvariantViolation("minted shares exceed the deposited value")

    return res


def compute_lp_burn(
    lp_amount: Amount,
    reserve_a: Amount,
    reserve_b: Amount,
    lp_supply: Amount,
    min_amount_a: Amount = 0,
    min_amount_b: Amount = 0,
) -> Tuple[Amount, Amount]:
    """
    Compute asset amounts to return for an LP share burn.

    Formula:
        amount_a = floor(lp_amount * reserve_a / lp_supply)
        amount_b = floor(lp_amount * reserve_b / lp_supply)

    Returns:
        Tuple of (amount_a, amount_b) to return

    Raises:
        InvalidAmount: lp_amount is zero or exceeds lp_supply
        SlippageExceeded: either amount is below its minimum
    """
    res = _kernel_burn_shares(
        lp_amount=lp_amount,
        reserve_a=reserve_a,
        reserve_b=reserve_b,
        lp_supply=lp_supply,
        min_amount_a=min_amount_a,
        min_amount_b=min_amount_b,
    )

    if res.amount_a * lp_supply > lp_amount * reserve_a or res.amount_b * lp_supply > lp_amount * reserve_b:
        raise InvariantViolation("burn returned more than the proportional claim")

    return res.amount_a, res.amount_b
