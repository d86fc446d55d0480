"""
Swap planning: exact-in swaps in either direction.
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import Tuple

from ..state.balances import AccountId, Amount, AssetId
from ..state.pools import PoolRecord, PoolSnapshot
from .cpmm import swap_exact_in
from .effects import EffectPlan, Transfer
from .fees import FeeFraction


class SwapDirection(Enum):
    """Which asset the caller pays in."""

    A_TO_B = "a_to_b"
    B_TO_A = "b_to_a"

    @classmethod
    def from_flag(cls, a_to_b: bool) -> "SwapDirection":
        return cls.A_TO_B if a_to_b else cls.B_TO_A


@dataclass(frozen=True)
class SwapQuote:
    direction: SwapDirection
    asset_in: AssetId
    asset_out: AssetId
    amount_in: Amount
    amount_out: Amount
    fee_amount: Amount
    reserve_in_after: Amount
    reserve_out_after: Amount
    k_before: int
    k_after: int


def _orient(record: PoolRecord, snapshot: PoolSnapshot, direction: SwapDirection) -> Tuple[
    AssetId, AssetId, AccountId, AccountId, Amount, Amount
]:
    if direction is SwapDirection.A_TO_B:
        return (
            record.asset_a_id,
            record.asset_b_id,
            record.vault_a_id,
            record.vault_b_id,
            snapshot.reserve_a,
            snapshot.reserve_b,
        )
    return (
        record.asset_b_id,
        record.asset_a_id,
        record.vault_b_id,
        record.vault_a_id,
        snapshot.reserve_b,
        snapshot.reserve_a,
    )


def quote_swap(
    record: PoolRecord,
    snapshot: PoolSnapshot,
    amount_in: Amount,
    direction: SwapDirection,
    min_amount_out: Amount = 0,
) -> SwapQuote:
    """
    Price an exact-in swap without producing effects.

    Raises the same errors a real swap would.
    """
    if not isinstance(direction, SwapDirection):
        raise TypeError("direction must be a SwapDirection")
    asset_in, asset_out, _, _, reserve_in, reserve_out = _orient(record, snapshot, direction)
    res = swap_exact_in(
        reserve_in,
        reserve_out,
        amount_in,
        FeeFraction.from_record(record),
        min_amount_out,
    )
    return SwapQuote(
        direction=direction,
        asset_in=asset_in,
        asset_out=asset_out,
        amount_in=amount_in,
        amount_out=res.amount_out,
        fee_amount=res.fee_amount,
        reserve_in_after=res.new_reserve_in,
        reserve_out_after=res.new_reserve_out,
        k_before=res.k_before,
        k_after=res.k_after,
    )


def plan_swap(
    record: PoolRecord,
    snapshot: PoolSnapshot,
    user: AccountId,
    amount_in: Amount,
    min_amount_out: Amount,
    direction: SwapDirection,
) -> EffectPlan:
    """
    Swap amount_in of the input asset for at least min_amount_out of the other.

    Raises:
        InvalidAmount: amount_in is zero or the output rounds to zero
        SlippageExceeded: amount_out < min_amount_out
        ArithmeticOverflow: checked u128 / u64 failure
    """
    quote = quote_swap(record, snapshot, amount_in, direction, min_amount_out)
    _, _, vault_in, vault_out, _, _ = _orient(record, snapshot, direction)

    effects = (
        Transfer(asset_id=quote.asset_in, source=user, destination=vault_in, amount=amount_in),
        Transfer(
            asset_id=quote.asset_out,
            source=vault_out,
            destination=user,
            amount=quote.amount_out,
            pool_signed=True,
        ),
    )
    return EffectPlan(
        operation="swap",
        pool_id=record.pool_id,
        effects=effects,
        result={
            "direction": direction.value,
            "amount_in": amount_in,
            "amount_out": quote.amount_out,
            "fee_amount": quote.fee_amount,
        },
    )
