"""
Core pool algorithms
"""

from .cpmm import (
    swap_exact_in,
    compute_lp_mint,
    compute_lp_burn,
)
from .effects import BurnShares, Effect, EffectPlan, MintShares, Transfer
from .fees import FeeFraction
from .liquidity import (
    plan_initialize_pool,
    plan_add_liquidity,
    plan_remove_liquidity,
    validate_pool_params,
)
from .swap import SwapDirection, SwapQuote, plan_swap, quote_swap

__all__ = [
    "swap_exact_in",
    "compute_lp_mint",
    "compute_lp_burn",
    "BurnShares",
    "Effect",
    "EffectPlan",
    "MintShares",
    "Transfer",
    "FeeFraction",
    "plan_initialize_pool",
    "plan_add_liquidity",
    "plan_remove_liquidity",
    "validate_pool_params",
    "SwapDirection",
    "SwapQuote",
    "plan_swap",
    "quote_swap",
]
