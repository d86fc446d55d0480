"""
pairswap: pricing and accounting core of a two-asset constant-product pool.
"""

from .core import FeeFraction, SwapDirection, SwapQuote
from .errors import (
    AmmError,
    ArithmeticOverflow,
    InvalidAccount,
    InvalidAmount,
    InvalidAssetPair,
    InvalidFee,
    InvariantViolation,
    LedgerFailure,
    PoolAlreadyExists,
    SlippageExceeded,
)
from .integration import AmmEngine, EngineConfig, InMemoryLedger, load_engine_config
from .state import PoolRecord, PoolSnapshot

__version__ = "0.1.0"

__all__ = [
    "FeeFraction",
    "SwapDirection",
    "SwapQuote",
    "AmmError",
    "ArithmeticOverflow",
    "InvalidAccount",
    "InvalidAmount",
    "InvalidAssetPair",
    "InvalidFee",
    "InvariantViolation",
    "LedgerFailure",
    "PoolAlreadyExists",
    "SlippageExceeded",
    "AmmEngine",
    "EngineConfig",
    "InMemoryLedger",
    "load_engine_config",
    "PoolRecord",
    "PoolSnapshot",
]
