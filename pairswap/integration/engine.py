"""
Pool execution engine.

This is an imperative-shell wrapper around the functional core:
- Opens a ledger transaction scoped to the pool.
- Reads a consistent snapshot (reserves, share supply).
- Asks the pure planner for an EffectPlan (or a typed rejection).
- Applies the plan through the ledger with the pool's authority.
- Optionally re-reads the pool and checks the post-state before commit.

Any error aborts the whole transaction; nothing partial is committed.
"""

from __future__ import annotations

import logging
from typing import Callable, Dict, Optional, Tuple

from ..core.effects import BurnShares, EffectPlan, MintShares, Transfer
from ..core.liquidity import (
    plan_add_liquidity,
    plan_initialize_pool,
    plan_remove_liquidity,
    validate_pool_params,
)
from ..core.swap import SwapDirection, SwapQuote, plan_swap, quote_swap
from ..errors import AmmError, InvalidAccount, InvalidFee, InvariantViolation, LedgerFailure
from ..state.balances import AccountId, Amount, AssetId
from ..state.canonical import canonical_hex_fixed_allow_0x
from ..state.pools import ID_BYTES, PoolRecord, PoolSnapshot
from .config import EngineConfig
from .ledger import Ledger

logger = logging.getLogger(__name__)

Planner = Callable[[PoolRecord, PoolSnapshot, AccountId], EffectPlan]


def _canonical_account(user: AccountId) -> AccountId:
    try:
        return canonical_hex_fixed_allow_0x(user, nbytes=ID_BYTES, name="user")
    except (TypeError, ValueError) as exc:
        raise InvalidAccount(str(exc)) from exc


class AmmEngine:
    """Runs the four pool operations against a Ledger."""

    def __init__(self, ledger: Ledger, config: Optional[EngineConfig] = None) -> None:
        self._ledger = ledger
        self._config = config if config is not None else EngineConfig()

    @property
    def config(self) -> EngineConfig:
        return self._config

    # -- reads ---------------------------------------------------------------

    def get_pool(self, pool_id: str) -> PoolRecord:
        return self._ledger.get_pool(pool_id)

    def _read_snapshot(self, record: PoolRecord) -> PoolSnapshot:
        try:
            return PoolSnapshot(
                reserve_a=self._ledger.read_balance(record.vault_a_id),
                reserve_b=self._ledger.read_balance(record.vault_b_id),
                lp_supply=self._ledger.read_supply(record.share_mint_id),
            )
        except AmmError:
            raise
        except Exception as exc:
            raise LedgerFailure(f"snapshot read failed: {exc}") from exc

    def snapshot(self, pool_id: str) -> PoolSnapshot:
        with self._ledger.transaction(pool_id):
            return self._read_snapshot(self._ledger.get_pool(pool_id))

    def quote_swap(self, pool_id: str, amount_in: Amount, direction: SwapDirection) -> SwapQuote:
        """Price a swap against the current reserves without moving funds."""
        with self._ledger.transaction(pool_id):
            record = self._ledger.get_pool(pool_id)
            return quote_swap(record, self._read_snapshot(record), amount_in, direction)

    # -- operations ----------------------------------------------------------

    def initialize_pool(
        self,
        asset_a_id: AssetId,
        asset_b_id: AssetId,
        fee_numerator: int,
        fee_denominator: int,
    ) -> str:
        """
        Create the pool for (asset_a_id, asset_b_id) and return its id.

        Raises:
            InvalidFee: invalid fee fraction, or denominator above the configured cap
            InvalidAssetPair: both ids name the same asset
            PoolAlreadyExists: a pool already exists for this pair (either order)
        """
        try:
            validate_pool_params(asset_a_id, asset_b_id, fee_numerator, fee_denominator)
            cap = self._config.max_fee_denominator
            if cap is not None and fee_denominator > cap:
                raise InvalidFee(f"fee_denominator ({fee_denominator}) exceeds configured cap ({cap})")
            asset_a = canonical_hex_fixed_allow_0x(asset_a_id, nbytes=ID_BYTES, name="asset_a_id")
            asset_b = canonical_hex_fixed_allow_0x(asset_b_id, nbytes=ID_BYTES, name="asset_b_id")

            with self._ledger.transaction(None):
                pool_id, nonce = self._ledger.find_pool_address(asset_a, asset_b)
                vault_a, vault_b, share_mint = self._ledger.create_pool_accounts(
                    pool_id, asset_a, asset_b, self._config.share_decimals
                )
                record = plan_initialize_pool(
                    asset_a_id=asset_a,
                    asset_b_id=asset_b,
                    fee_numerator=fee_numerator,
                    fee_denominator=fee_denominator,
                    vault_a_id=vault_a,
                    vault_b_id=vault_b,
                    share_mint_id=share_mint,
                    derivation_nonce=nonce,
                )
                self._ledger.insert_pool(record)
        except AmmError as exc:
            logger.warning("initialize_pool rejected (%s): %s", exc.code, exc)
            raise

        logger.info(
            "pool %s initialized: %s/%s fee=%d/%d nonce=%d",
            pool_id, asset_a, asset_b, fee_numerator, fee_denominator, nonce,
        )
        return pool_id

    def add_liquidity(
        self,
        pool_id: str,
        user: AccountId,
        amount_a: Amount,
        amount_b: Amount,
        min_lp_out: Amount,
    ) -> Amount:
        """Deposit both assets and return the number of shares minted to `user`."""
        plan = self._execute(
            pool_id,
            "add_liquidity",
            user,
            lambda record, snap, account: plan_add_liquidity(record, snap, account, amount_a, amount_b, min_lp_out),
        )
        if plan.result["excess_a"] or plan.result["excess_b"]:
            logger.info(
                "add_liquidity on %s was off-ratio; uncredited excess a=%d b=%d",
                pool_id, plan.result["excess_a"], plan.result["excess_b"],
            )
        return plan.result["lp_minted"]

    def remove_liquidity(
        self,
        pool_id: str,
        user: AccountId,
        lp_amount: Amount,
        min_amount_a: Amount,
        min_amount_b: Amount,
    ) -> Tuple[Amount, Amount]:
        """Burn `lp_amount` of the user's shares and return (amount_a, amount_b) paid out."""
        plan = self._execute(
            pool_id,
            "remove_liquidity",
            user,
            lambda record, snap, account: plan_remove_liquidity(
                record, snap, account, lp_amount, min_amount_a, min_amount_b
            ),
        )
        return plan.result["amount_a"], plan.result["amount_b"]

    def swap(
        self,
        pool_id: str,
        user: AccountId,
        amount_in: Amount,
        min_amount_out: Amount,
        direction: SwapDirection,
    ) -> Amount:
        """Exact-in swap; returns the amount of the output asset paid to `user`."""
        plan = self._execute(
            pool_id,
            "swap",
            user,
            lambda record, snap, account: plan_swap(record, snap, account, amount_in, min_amount_out, direction),
        )
        return plan.result["amount_out"]

    # -- internals -----------------------------------------------------------

    def _execute(self, pool_id: str, operation: str, user: AccountId, planner: Planner) -> EffectPlan:
        try:
            account = _canonical_account(user)
            with self._ledger.transaction(pool_id):
                record = self._ledger.get_pool(pool_id)
                before = self._read_snapshot(record)
                plan = planner(record, before, account)
                self._apply(record, plan)
                if self._config.check_invariants:
                    self._verify_post_state(record, plan, before, self._read_snapshot(record))
                # Nothing fallible may run once the transaction has committed.
                digest = plan.digest()
        except AmmError as exc:
            logger.warning("%s rejected on pool %s (%s): %s", operation, pool_id, exc.code, exc)
            raise

        logger.info("%s on pool %s: %s [plan %s]", operation, pool_id, dict(plan.result), digest[:18])
        return plan

    def _apply(self, record: PoolRecord, plan: EffectPlan) -> None:
        authority = None
        if any(effect.pool_signed for effect in plan.effects):
            authority = self._ledger.authority_for(plan.pool_id)

        for effect in plan.effects:
            if self._config.log_effects:
                logger.debug("apply %s", effect.to_dict())
            try:
                if isinstance(effect, Transfer):
                    self._ledger.transfer(
                        effect.asset_id,
                        effect.source,
                        effect.destination,
                        effect.amount,
                        authority if effect.pool_signed else None,
                    )
                elif isinstance(effect, MintShares):
                    self._ledger.mint(effect.mint_id, effect.destination, effect.amount, authority)
                elif isinstance(effect, BurnShares):
                    self._ledger.burn(effect.mint_id, effect.source, effect.amount)
                else:
                    raise TypeError(f"unknown effect: {effect!r}")
            except AmmError:
                raise
            except Exception as exc:
                raise LedgerFailure(f"{type(effect).__name__} failed: {exc}") from exc

    def _verify_post_state(
        self,
        record: PoolRecord,
        plan: EffectPlan,
        before: PoolSnapshot,
        after: PoolSnapshot,
    ) -> None:
        """The ledger must have moved exactly what the plan says, and k must hold for swaps."""
        deltas: Dict[str, int] = {record.vault_a_id: 0, record.vault_b_id: 0, record.share_mint_id: 0}
        for effect in plan.effects:
            if isinstance(effect, Transfer):
                if effect.destination in deltas:
                    deltas[effect.destination] += effect.amount
                if effect.source in deltas:
                    deltas[effect.source] -= effect.amount
            elif isinstance(effect, MintShares):
                deltas[record.share_mint_id] += effect.amount
            elif isinstance(effect, BurnShares):
                deltas[record.share_mint_id] -= effect.amount

        expected = PoolSnapshot(
            reserve_a=before.reserve_a + deltas[record.vault_a_id],
            reserve_b=before.reserve_b + deltas[record.vault_b_id],
            lp_supply=before.lp_supply + deltas[record.share_mint_id],
        )
        if after != expected:
            raise InvariantViolation(f"post-state {after} does not match plan {expected}")
        if plan.operation == "swap" and after.k < before.k:
            raise InvariantViolation(f"k decreased: {after.k} < {before.k}")
