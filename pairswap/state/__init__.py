"""
State management for pairswap pools
"""

from .balances import BalanceTable
from .lp import ShareMint, ShareMintTable
from .pools import (
    PoolRecord,
    PoolSnapshot,
    decode_pool_record,
    derive_pool_id,
    encode_pool_record,
    find_pool_address,
)

__all__ = [
    "BalanceTable",
    "ShareMint",
    "ShareMintTable",
    "PoolRecord",
    "PoolSnapshot",
    "decode_pool_record",
    "derive_pool_id",
    "encode_pool_record",
    "find_pool_address",
]
