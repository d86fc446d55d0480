"""Effect plans produced by the pool planners.

The core never moves funds. Each planner returns an ``EffectPlan``: the ordered
transfers, mints and burns the ledger must apply as one atomic unit, plus the
computed result. Effects marked ``pool_signed`` need the pool's authority.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Dict, Mapping, Tuple, Union

from ..state.balances import AccountId, Amount, AssetId
from ..state.canonical import canonical_json_bytes, domain_sep_bytes, sha256_hex


@dataclass(frozen=True)
class Transfer:
    asset_id: AssetId
    source: AccountId
    destination: AccountId
    amount: Amount
    pool_signed: bool = False

    def to_dict(self) -> Dict[str, Any]:
        return {
            "kind": "transfer",
            "asset_id": self.asset_id,
            "source": self.source,
            "destination": self.destination,
            "amount": self.amount,
            "pool_signed": self.pool_signed,
        }


@dataclass(frozen=True)
class MintShares:
    mint_id: AssetId
    destination: AccountId
    amount: Amount
    pool_signed: bool = True

    def to_dict(self) -> Dict[str, Any]:
        return {
            "kind": "mint",
            "mint_id": self.mint_id,
            "destination": self.destination,
            "amount": self.amount,
        }


@dataclass(frozen=True)
class BurnShares:
    mint_id: AssetId
    source: AccountId
    amount: Amount
    pool_signed: bool = False

    def to_dict(self) -> Dict[str, Any]:
        return {
            "kind": "burn",
            "mint_id": self.mint_id,
            "source": self.source,
            "amount": self.amount,
        }


Effect = Union[Transfer, MintShares, BurnShares]


@dataclass(frozen=True)
class EffectPlan:
    operation: str
    pool_id: str
    effects: Tuple[Effect, ...]
    result: Mapping[str, Any] = field(default_factory=dict)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "operation": self.operation,
            "pool_id": self.pool_id,
            "effects": [e.to_dict() for e in self.effects],
            "result": dict(self.result),
        }

    def digest(self) -> str:
        """Stable hash of the plan, used to correlate log lines."""
        return sha256_hex(domain_sep_bytes("effect_plan") + canonical_json_bytes(self.to_dict()))
