"""
LP share mint tracking.

Each pool owns exactly one share mint. The table records the mint's supply,
its decimals and the pool whose authority may mint from it. Share holdings
themselves live in `BalanceTable` under the mint id.
"""

from __future__ import annotations

from dataclasses import dataclass, replace
from typing import Dict

from ..errors import InsufficientFunds, UnknownAccount
from ..kernels.python.checked_math import U64_MAX, checked_add
from .balances import Amount, AssetId

# Type alias
PoolId = str


@dataclass(frozen=True)
class ShareMint:
    mint_id: AssetId
    authority_pool_id: PoolId
    decimals: int
    supply: Amount = 0


class ShareMintTable:
    """
    Mapping mint_id -> ShareMint.

    Supply is always non-negative and never exceeds u64.
    """

    def __init__(self) -> None:
        self._mints: Dict[AssetId, ShareMint] = {}

    def create(self, mint_id: AssetId, authority_pool_id: PoolId, decimals: int) -> ShareMint:
        if mint_id in self._mints:
            raise ValueError(f"share mint already exists: {mint_id}")
        mint = ShareMint(mint_id=mint_id, authority_pool_id=authority_pool_id, decimals=decimals)
        self._mints[mint_id] = mint
        return mint

    def get(self, mint_id: AssetId) -> ShareMint:
        try:
            return self._mints[mint_id]
        except KeyError:
            raise UnknownAccount(f"unknown share mint: {mint_id}") from None

    def __contains__(self, mint_id: object) -> bool:
        return mint_id in self._mints

    def supply(self, mint_id: AssetId) -> Amount:
        return self.get(mint_id).supply

    def increase(self, mint_id: AssetId, amount: Amount) -> None:
        mint = self.get(mint_id)
        self._mints[mint_id] = replace(mint, supply=checked_add(mint.supply, amount, bound=U64_MAX))

    def decrease(self, mint_id: AssetId, amount: Amount) -> None:
        mint = self.get(mint_id)
        if amount > mint.supply:
            raise InsufficientFunds(f"burn exceeds supply of {mint_id}: {amount} > {mint.supply}")
        self._mints[mint_id] = replace(mint, supply=mint.supply - amount)

    def get_all(self) -> Dict[AssetId, ShareMint]:
        return dict(self._mints)

    def restore(self, mints: Dict[AssetId, ShareMint]) -> None:
        self._mints = dict(mints)

    def __repr__(self) -> str:
        return f"ShareMintTable({len(self._mints)} mints)"
