"""
Liquidity management operations: initialize pool, add/remove liquidity.

Each planner is pure: it takes the pool record and a snapshot read inside the
caller's ledger transaction and returns an EffectPlan, or raises.
"""

from __future__ import annotations

from ..errors import InvalidAssetPair
from ..state.balances import AccountId, Amount, AssetId
from ..state.canonical import canonical_hex_fixed_allow_0x
from ..state.pools import ID_BYTES, PoolRecord, PoolSnapshot
from .cpmm import compute_lp_burn, compute_lp_mint
from .effects import BurnShares, EffectPlan, MintShares, Transfer
from .fees import FeeFraction


def validate_pool_params(
    asset_a_id: AssetId,
    asset_b_id: AssetId,
    fee_numerator: int,
    fee_denominator: int,
) -> FeeFraction:
    """
    Validate creation inputs before any account is allocated.

    Raises:
        InvalidFee: fee_denominator == 0 or fee_numerator >= fee_denominator
        InvalidAssetPair: both ids name the same asset
    """
    fee = FeeFraction(numerator=fee_numerator, denominator=fee_denominator)
    a = canonical_hex_fixed_allow_0x(asset_a_id, nbytes=ID_BYTES, name="asset_a_id")
    b = canonical_hex_fixed_allow_0x(asset_b_id, nbytes=ID_BYTES, name="asset_b_id")
    if a == b:
        raise InvalidAssetPair(f"pool assets must differ: {a}")
    return fee


def plan_initialize_pool(
    *,
    asset_a_id: AssetId,
    asset_b_id: AssetId,
    fee_numerator: int,
    fee_denominator: int,
    vault_a_id: AccountId,
    vault_b_id: AccountId,
    share_mint_id: AssetId,
    derivation_nonce: int,
) -> PoolRecord:
    """
    Build the record for a new pool.

    The vaults and share mint are created empty by the ledger, so reserves and
    supply start at zero without being stored.
    """
    validate_pool_params(asset_a_id, asset_b_id, fee_numerator, fee_denominator)
    return PoolRecord(
        asset_a_id=asset_a_id,
        asset_b_id=asset_b_id,
        vault_a_id=vault_a_id,
        vault_b_id=vault_b_id,
        share_mint_id=share_mint_id,
        fee_numerator=fee_numerator,
        fee_denominator=fee_denominator,
        derivation_nonce=derivation_nonce,
    )


def plan_add_liquidity(
    record: PoolRecord,
    snapshot: PoolSnapshot,
    user: AccountId,
    amount_a: Amount,
    amount_b: Amount,
    min_lp_out: Amount,
) -> EffectPlan:
    """
    Deposit (amount_a, amount_b) and mint shares to `user`.

    The whole of both amounts is transferred even when the deposit is off the
    pool ratio; only the limiting side is credited. The uncredited part is
    reported as excess_a / excess_b.

    Raises:
        InvalidAmount: either amount is zero
        SlippageExceeded: lp_minted < min_lp_out
        ArithmeticOverflow: checked u128 / u64 failure
    """
    res = compute_lp_mint(
        snapshot.reserve_a,
        snapshot.reserve_b,
        snapshot.lp_supply,
        amount_a,
        amount_b,
        min_lp_out,
    )

    effects = (
        Transfer(asset_id=record.asset_a_id, source=user, destination=record.vault_a_id, amount=amount_a),
        Transfer(asset_id=record.asset_b_id, source=user, destination=record.vault_b_id, amount=amount_b),
        MintShares(mint_id=record.share_mint_id, destination=user, amount=res.lp_minted),
    )
    return EffectPlan(
        operation="add_liquidity",
        pool_id=record.pool_id,
        effects=effects,
        result={
            "lp_minted": res.lp_minted,
            "initial": res.is_initial,
            "excess_a": res.excess_a,
            "excess_b": res.excess_b,
        },
    )


def plan_remove_liquidity(
    record: PoolRecord,
    snapshot: PoolSnapshot,
    user: AccountId,
    lp_amount: Amount,
    min_amount_a: Amount,
    min_amount_b: Amount,
) -> EffectPlan:
    """
    Burn lp_amount shares held by `user` and pay out the proportional reserves.

    Raises:
        InvalidAmount: lp_amount is zero or exceeds the supply
        SlippageExceeded: either payout is below its minimum
    """
    amount_a, amount_b = compute_lp_burn(
        lp_amount,
        snapshot.reserve_a,
        snapshot.reserve_b,
        snapshot.lp_supply,
        min_amount_a,
        min_amount_b,
    )

    effects = (
        BurnShares(mint_id=record.share_mint_id, source=user, amount=lp_amount),
        Transfer(
            asset_id=record.asset_a_id,
            source=record.vault_a_id,
            destination=user,
            amount=amount_a,
            pool_signed=True,
        ),
        Transfer(
            asset_id=record.asset_b_id,
            source=record.vault_b_id,
            destination=user,
            amount=amount_b,
            pool_signed=True,
        ),
    )
    return EffectPlan(
        operation="remove_liquidity",
        pool_id=record.pool_id,
        effects=effects,
        result={"lp_burned": lp_amount, "amount_a": amount_a, "amount_b": amount_b},
    )
