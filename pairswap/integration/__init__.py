"""
Ledger integration layer
"""

from .config import EngineConfig, load_engine_config
from .engine import AmmEngine
from .ledger import InMemoryLedger, Ledger, PoolAuthority

__all__ = [
    "EngineConfig",
    "load_engine_config",
    "AmmEngine",
    "InMemoryLedger",
    "Ledger",
    "PoolAuthority",
]
