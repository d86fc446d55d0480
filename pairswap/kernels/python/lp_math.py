"""
Liquidity share math kernel.

Mint:
- empty supply:  lp = isqrt(amount_a * amount_b)
- otherwise:     lp = min(floor(amount_a * supply / reserve_a),
                          floor(amount_b * supply / reserve_b))
  The full deposit is taken either way; whatever the limiting side does not
  back is reported as excess and stays in the pool.

Burn:
    amount_x = floor(lp_amount * reserve_x / supply)

Both directions round toward the pool.
"""

from __future__ import annotations

from dataclasses import dataclass

from ...errors import InvalidAmount, SlippageExceeded
from .checked_math import (
    U64_MAX,
    checked_add,
    checked_div,
    checked_mul,
    narrow_u64,
    require_u64,
)
from .isqrt_u128 import isqrt_u128


@dataclass(frozen=True)
class MintSharesResult:
    lp_minted: int
    lp_from_a: int
    lp_from_b: int
    is_initial: bool
    excess_a: int
    excess_b: int
    new_reserve_a: int
    new_reserve_b: int
    new_lp_supply: int


@dataclass(frozen=True)
class BurnSharesResult:
    amount_a: int
    amount_b: int
    new_reserve_a: int
    new_reserve_b: int
    new_lp_supply: int


def _backing(lp_amount: int, reserve: int, lp_supply: int) -> int:
    # ceil(lp_amount * reserve / lp_supply): smallest deposit worth lp_amount shares.
    return -((-lp_amount * reserve) // lp_supply)


def mint_shares(
    *,
    reserve_a: int,
    reserve_b: int,
    lp_supply: int,
    amount_a: int,
    amount_b: int,
    min_lp_out: int = 0,
) -> MintSharesResult:
    """
    Shares minted for depositing (amount_a, amount_b).

    With zero supply the current reserves are ignored (anything already sitting
    in the vaults goes to the first depositor). With non-zero supply a zero
    reserve has no defined price; the checked division raises.
    """
    for name, v in (
        ("reserve_a", reserve_a),
        ("reserve_b", reserve_b),
        ("lp_supply", lp_supply),
        ("amount_a", amount_a),
        ("amount_b", amount_b),
        ("min_lp_out", min_lp_out),
    ):
        require_u64(name, v)

    if amount_a <= 0 or amount_b <= 0:
        raise InvalidAmount(f"deposit amounts must be positive: ({amount_a}, {amount_b})")

    if lp_supply == 0:
        lp_minted = narrow_u64("lp_minted", isqrt_u128(checked_mul(amount_a, amount_b)))
        lp_from_a = lp_from_b = lp_minted
        excess_a = excess_b = 0
        is_initial = True
    else:
        lp_from_a = narrow_u64("lp_from_a", checked_div(checked_mul(amount_a, lp_supply), reserve_a))
        lp_from_b = narrow_u64("lp_from_b", checked_div(checked_mul(amount_b, lp_supply), reserve_b))
        lp_minted = min(lp_from_a, lp_from_b)
        excess_a = amount_a - min(amount_a, _backing(lp_minted, reserve_a, lp_supply))
        excess_b = amount_b - min(amount_b, _backing(lp_minted, reserve_b, lp_supply))
        is_initial = False

    if lp_minted < min_lp_out:
        raise SlippageExceeded("lp_minted", lp_minted, min_lp_out)

    return MintSharesResult(
        lp_minted=lp_minted,
        lp_from_a=lp_from_a,
        lp_from_b=lp_from_b,
        is_initial=is_initial,
        excess_a=excess_a,
        excess_b=excess_b,
        new_reserve_a=checked_add(reserve_a, amount_a, bound=U64_MAX),
        new_reserve_b=checked_add(reserve_b, amount_b, bound=U64_MAX),
        new_lp_supply=checked_add(lp_supply, lp_minted, bound=U64_MAX),
    )


def burn_shares(
    *,
    lp_amount: int,
    reserve_a: int,
    reserve_b: int,
    lp_supply: int,
    min_amount_a: int = 0,
    min_amount_b: int = 0,
) -> BurnSharesResult:
    """
    Assets returned for burning lp_amount shares (floor rounding).
    """
    for name, v in (
        ("lp_amount", lp_amount),
        ("reserve_a", reserve_a),
        ("reserve_b", reserve_b),
        ("lp_supply", lp_supply),
        ("min_amount_a", min_amount_a),
        ("min_amount_b", min_amount_b),
    ):
        require_u64(name, v)

    if lp_amount <= 0:
        raise InvalidAmount(f"lp_amount must be positive: {lp_amount}")
    if lp_amount > lp_supply:
        raise InvalidAmount(f"cannot burn more than supply: {lp_amount} > {lp_supply}")

    amount_a = narrow_u64("amount_a", checked_div(checked_mul(lp_amount, reserve_a), lp_supply))
    amount_b = narrow_u64("amount_b", checked_div(checked_mul(lp_amount, reserve_b), lp_supply))

    if amount_a < min_amount_a:
        raise SlippageExceeded("amount_a", amount_a, min_amount_a)
    if amount_b < min_amount_b:
        raise SlippageExceeded("amount_b", amount_b, min_amount_b)

    return BurnSharesResult(
        amount_a=amount_a,
        amount_b=amount_b,
        new_reserve_a=reserve_a - amount_a,
        new_reserve_b=reserve_b - amount_b,
        new_lp_supply=lp_supply - lp_amount,
    )
