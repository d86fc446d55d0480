"""
Engine configuration.

Defaults reproduce the reference deployment: 6-decimal share mints, post-state
invariant checks on, per-effect logging off.
"""

from __future__ import annotations

from dataclasses import dataclass, fields
from pathlib import Path
from typing import Any, Mapping, Optional, Union

import yaml

from ..kernels.python.checked_math import require_u64


MAX_SHARE_DECIMALS = 18


@dataclass(frozen=True)
class EngineConfig:
    # Decimals of every newly created share mint.
    share_decimals: int = 6

    # Re-read the pool after applying a plan and compare against the plan's
    # effects (and k for swaps) before the transaction commits.
    check_invariants: bool = True

    # Log each applied effect at DEBUG.
    log_effects: bool = False

    # Optional cap on fee_denominator for new pools (None: any u64).
    max_fee_denominator: Optional[int] = None

    def __post_init__(self) -> None:
        if not isinstance(self.share_decimals, int) or isinstance(self.share_decimals, bool):
            raise TypeError("share_decimals must be an int")
        if not (0 <= self.share_decimals <= MAX_SHARE_DECIMALS):
            raise ValueError(f"share_decimals must be in [0, {MAX_SHARE_DECIMALS}]: {self.share_decimals}")
        for name in ("check_invariants", "log_effects"):
            if not isinstance(getattr(self, name), bool):
                raise TypeError(f"{name} must be a bool")
        if self.max_fee_denominator is not None:
            require_u64("max_fee_denominator", self.max_fee_denominator)
            if self.max_fee_denominator == 0:
                raise ValueError("max_fee_denominator must be positive")

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> "EngineConfig":
        if not isinstance(data, Mapping):
            raise TypeError("engine config must be a mapping")
        known = {f.name for f in fields(cls)}
        unknown = sorted(set(data) - known)
        if unknown:
            raise ValueError(f"unknown engine config keys: {', '.join(map(str, unknown))}")
        return cls(**dict(data))


def load_engine_config(path: Union[str, Path]) -> EngineConfig:
    """Load an EngineConfig from a YAML mapping; an empty file yields the defaults."""
    obj = yaml.safe_load(Path(path).read_text(encoding="utf-8"))
    if obj is None:
        return EngineConfig()
    return EngineConfig.from_dict(obj)
