"""
Token balance tracking with deterministic ordering.

Implements BalanceTable[AccountId, AssetId] -> Amount. Vault reserves, user
holdings and LP-share holdings all live here; LP shares are simply another
asset id (the pool's share mint).
"""

from typing import Dict, Tuple

from ..errors import InsufficientFunds
from ..kernels.python.checked_math import U64_MAX, checked_add


# Type aliases
AccountId = str  # 32-byte hex string (0x...)
AssetId = str  # 32-byte hex string (0x...)
Amount = int  # u64


class BalanceTable:
    """
    Balance table mapping (account, asset) -> amount.

    Note: this class stores balances in a plain dict. Callers that hash or
    serialize balances must sort keys explicitly.
    """

    def __init__(self):
        self._balances: Dict[Tuple[AccountId, AssetId], Amount] = {}

    def get(self, account: AccountId, asset: AssetId) -> Amount:
        """Get balance for (account, asset). Returns 0 if not found."""
        return self._balances.get((account, asset), 0)

    def set(self, account: AccountId, asset: AssetId, amount: Amount) -> None:
        """
        Set balance for (account, asset).

        Raises:
            ValueError: If amount is negative
        """
        if amount < 0:
            raise ValueError(f"Balance cannot be negative: {amount}")
        if amount == 0:
            # Remove zero balances to keep table sparse
            self._balances.pop((account, asset), None)
        else:
            self._balances[(account, asset)] = amount

    def credit(self, account: AccountId, asset: AssetId, amount: Amount) -> None:
        """Add a non-negative amount; a balance above u64 is an overflow."""
        if amount < 0:
            raise ValueError(f"Amount must be non-negative: {amount}")
        self.set(account, asset, checked_add(self.get(account, asset), amount, bound=U64_MAX))

    def debit(self, account: AccountId, asset: AssetId, amount: Amount) -> None:
        """
        Subtract a non-negative amount.

        Raises:
            InsufficientFunds: If the balance is smaller than amount
        """
        if amount < 0:
            raise ValueError(f"Amount must be non-negative: {amount}")
        current = self.get(account, asset)
        if amount > current:
            raise InsufficientFunds(
                f"insufficient balance for {account} in {asset}: {current} < {amount}"
            )
        self.set(account, asset, current - amount)

    def get_all_balances(self) -> Dict[Tuple[AccountId, AssetId], Amount]:
        """Return a copy of all balances."""
        return dict(self._balances)

    def holds_any(self, account: AccountId) -> bool:
        """True if `account` has a non-zero balance of any asset."""
        return any(holder == account for holder, _ in self._balances)

    def total_for_asset(self, asset: AssetId) -> Amount:
        return sum(amount for (_, a), amount in self._balances.items() if a == asset)

    def __repr__(self) -> str:
        return f"BalanceTable({len(self._balances)} entries)"
