"""
Ledger interface and an in-memory reference ledger.

The pool core only reads balances/supply and asks for transfers, mints and
burns. Custody, account creation and atomicity belong to the ledger.

`InMemoryLedger` keeps everything in process:
- balances of every account (users, vaults) per asset, share mints included,
- share mints with their supply and owning pool,
- pool records keyed by pool id, plus an unordered-pair index,
- one authority capability per pool.

`transaction(pool_id)` serializes work on one pool and undoes every mutation
made inside the block if it raises. Undo entries are inverse deltas, so
concurrent transactions on other pools are never overwritten by a rollback.
"""

from __future__ import annotations

import logging
import threading
from contextlib import contextmanager
from dataclasses import dataclass, field
from typing import Callable, Dict, FrozenSet, Iterator, List, Optional, Protocol, Tuple

from ..errors import (
    LedgerFailure,
    MissingAuthority,
    PoolAlreadyExists,
    UnknownAccount,
    UnknownPool,
)
from ..state.balances import AccountId, Amount, AssetId, BalanceTable
from ..state.canonical import domain_sep_bytes, hex_to_bytes_fixed, sha256_hex
from ..state.lp import ShareMintTable
from ..state.pools import ID_BYTES, PoolRecord, find_pool_address

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class PoolAuthority:
    """
    Capability to move funds out of a pool's vaults and mint its shares.

    Issued by the ledger when the pool's accounts are created. The ledger
    accepts only the exact object it issued; it carries no key material.
    """

    pool_id: str
    _token: object = field(default_factory=object, repr=False, compare=False)


class Ledger(Protocol):
    def read_balance(self, vault_id: AccountId) -> Amount: ...

    def read_supply(self, mint_id: AssetId) -> Amount: ...

    def transfer(
        self,
        asset_id: AssetId,
        source: AccountId,
        destination: AccountId,
        amount: Amount,
        authority: Optional[PoolAuthority] = None,
    ) -> None: ...

    def mint(self, mint_id: AssetId, destination: AccountId, amount: Amount, authority: PoolAuthority) -> None: ...

    def burn(
        self,
        mint_id: AssetId,
        source: AccountId,
        amount: Amount,
        authority: Optional[PoolAuthority] = None,
    ) -> None: ...

    def find_pool_address(self, asset_a_id: AssetId, asset_b_id: AssetId) -> Tuple[str, int]: ...

    def create_pool_accounts(
        self,
        pool_id: str,
        asset_a_id: AssetId,
        asset_b_id: AssetId,
        share_decimals: int,
    ) -> Tuple[AccountId, AccountId, AssetId]: ...

    def insert_pool(self, record: PoolRecord) -> None: ...

    def get_pool(self, pool_id: str) -> PoolRecord: ...

    def authority_for(self, pool_id: str) -> PoolAuthority: ...

    def transaction(self, pool_id: Optional[str] = None): ...


def _pair_key(asset_a_id: AssetId, asset_b_id: AssetId) -> FrozenSet[AssetId]:
    return frozenset((asset_a_id, asset_b_id))


def derive_account_id(pool_id: str, label: str) -> AccountId:
    """Deterministic id of a pool-owned account (vault or share mint)."""
    return sha256_hex(
        domain_sep_bytes("account")
        + hex_to_bytes_fixed(pool_id, nbytes=ID_BYTES, name="pool_id")
        + label.encode("ascii")
    )


class InMemoryLedger:
    """Reference ledger backing the engine in tests and simulations."""

    def __init__(self) -> None:
        self._balances = BalanceTable()
        self._mints = ShareMintTable()
        self._vaults: Dict[AccountId, Tuple[AssetId, str]] = {}
        self._pools: Dict[str, PoolRecord] = {}
        self._pairs: Dict[FrozenSet[AssetId], str] = {}
        self._authorities: Dict[str, PoolAuthority] = {}
        self._allocated: set = set()

        self._state_lock = threading.RLock()
        self._registry_lock = threading.RLock()
        self._pool_locks: Dict[str, threading.RLock] = {}
        self._local = threading.local()

    # -- transactions --------------------------------------------------------

    def _journal(self) -> Optional[List[Callable[[], None]]]:
        return getattr(self._local, "journal", None)

    def _record_undo(self, undo: Callable[[], None]) -> None:
        journal = self._journal()
        if journal is not None:
            journal.append(undo)

    def _lock_for(self, pool_id: Optional[str]) -> threading.RLock:
        if pool_id is None:
            return self._registry_lock
        with self._state_lock:
            lock = self._pool_locks.get(pool_id)
            if lock is None:
                if pool_id not in self._pools:
                    raise UnknownPool(f"unknown pool: {pool_id}")
                lock = threading.RLock()
                self._pool_locks[pool_id] = lock
            return lock

    @contextmanager
    def transaction(self, pool_id: Optional[str] = None) -> Iterator["InMemoryLedger"]:
        """
        Run a block atomically with respect to `pool_id`.

        `pool_id=None` takes the registry lock (pool creation). On any
        exception every mutation recorded inside the block is undone in
        reverse order before the exception propagates.
        """
        with self._lock_for(pool_id):
            outer = self._journal()
            journal: List[Callable[[], None]] = []
            self._local.journal = journal
            try:
                yield self
            except BaseException:
                with self._state_lock:
                    for undo in reversed(journal):
                        undo()
                logger.debug("rolled back %d ledger mutations on %s", len(journal), pool_id)
                raise
            finally:
                self._local.journal = outer
            if outer is not None:
                outer.extend(journal)

    # -- primitive mutations (journaled) ------------------------------------

    def _credit(self, account: AccountId, asset: AssetId, amount: Amount) -> None:
        with self._state_lock:
            self._balances.credit(account, asset, amount)
        self._record_undo(lambda: self._balances.debit(account, asset, amount))

    def _debit(self, account: AccountId, asset: AssetId, amount: Amount) -> None:
        with self._state_lock:
            self._balances.debit(account, asset, amount)
        self._record_undo(lambda: self._balances.credit(account, asset, amount))

    # -- reads ---------------------------------------------------------------

    def read_balance(self, vault_id: AccountId) -> Amount:
        with self._state_lock:
            try:
                asset_id, _ = self._vaults[vault_id]
            except KeyError:
                raise UnknownAccount(f"unknown vault: {vault_id}") from None
            return self._balances.get(vault_id, asset_id)

    def read_supply(self, mint_id: AssetId) -> Amount:
        with self._state_lock:
            return self._mints.supply(mint_id)

    def balance_of(self, account: AccountId, asset_id: AssetId) -> Amount:
        with self._state_lock:
            return self._balances.get(account, asset_id)

    def total_supply_of(self, asset_id: AssetId) -> Amount:
        """Sum of every holder's balance of asset_id (conservation checks)."""
        with self._state_lock:
            return self._balances.total_for_asset(asset_id)

    # -- funds ---------------------------------------------------------------

    def fund(self, account: AccountId, asset_id: AssetId, amount: Amount) -> None:
        """Credit an external asset to an account (issuance outside any pool)."""
        if asset_id in self._mints:
            raise LedgerFailure("share mints can only be minted by their pool")
        self._check_vault_side(account, asset_id)
        self._credit(account, asset_id, amount)

    def _check_vault_side(self, account: AccountId, asset_id: AssetId) -> Optional[str]:
        entry = self._vaults.get(account)
        if entry is None:
            return None
        vault_asset, pool_id = entry
        if vault_asset != asset_id:
            raise LedgerFailure(f"vault {account} holds {vault_asset}, not {asset_id}")
        return pool_id

    def _require_authority(self, pool_id: str, authority: Optional[PoolAuthority]) -> None:
        expected = self._authorities.get(pool_id)
        if expected is None or authority is not expected:
            raise MissingAuthority(f"pool authority required for {pool_id}")

    def transfer(
        self,
        asset_id: AssetId,
        source: AccountId,
        destination: AccountId,
        amount: Amount,
        authority: Optional[PoolAuthority] = None,
    ) -> None:
        if amount < 0:
            raise LedgerFailure(f"transfer amount must be non-negative: {amount}")
        source_pool = self._check_vault_side(source, asset_id)
        self._check_vault_side(destination, asset_id)
        if source_pool is not None:
            self._require_authority(source_pool, authority)
        if amount == 0:
            return
        self._debit(source, asset_id, amount)
        self._credit(destination, asset_id, amount)

    def mint(self, mint_id: AssetId, destination: AccountId, amount: Amount, authority: PoolAuthority) -> None:
        with self._state_lock:
            share_mint = self._mints.get(mint_id)
        self._require_authority(share_mint.authority_pool_id, authority)
        if amount == 0:
            return
        with self._state_lock:
            self._mints.increase(mint_id, amount)
        self._record_undo(lambda: self._mints.decrease(mint_id, amount))
        self._credit(destination, mint_id, amount)

    def burn(
        self,
        mint_id: AssetId,
        source: AccountId,
        amount: Amount,
        authority: Optional[PoolAuthority] = None,
    ) -> None:
        # Holders burn their own shares; no pool authority is needed.
        with self._state_lock:
            self._mints.get(mint_id)
        if amount == 0:
            return
        self._debit(source, mint_id, amount)
        with self._state_lock:
            self._mints.decrease(mint_id, amount)
        self._record_undo(lambda: self._mints.increase(mint_id, amount))

    # -- pools ---------------------------------------------------------------

    def find_pool_address(self, asset_a_id: AssetId, asset_b_id: AssetId) -> Tuple[str, int]:
        with self._state_lock:
            return find_pool_address(asset_a_id, asset_b_id, is_taken=self._address_in_use)

    def _address_in_use(self, account: AccountId) -> bool:
        return account in self._allocated or self._balances.holds_any(account)

    def create_pool_accounts(
        self,
        pool_id: str,
        asset_a_id: AssetId,
        asset_b_id: AssetId,
        share_decimals: int,
    ) -> Tuple[AccountId, AccountId, AssetId]:
        """Allocate two empty vaults and an empty share mint owned by pool_id."""
        with self._state_lock:
            if pool_id in self._pools or _pair_key(asset_a_id, asset_b_id) in self._pairs:
                raise PoolAlreadyExists(f"pool already exists for ({asset_a_id}, {asset_b_id})")
            vault_a = derive_account_id(pool_id, "vault_a")
            vault_b = derive_account_id(pool_id, "vault_b")
            mint_id = derive_account_id(pool_id, "share_mint")
            for account in (vault_a, vault_b, mint_id):
                if account in self._allocated:
                    raise LedgerFailure(f"account already allocated: {account}")

            self._vaults[vault_a] = (asset_a_id, pool_id)
            self._vaults[vault_b] = (asset_b_id, pool_id)
            self._mints.create(mint_id, authority_pool_id=pool_id, decimals=share_decimals)
            self._authorities[pool_id] = PoolAuthority(pool_id=pool_id)
            self._allocated.update((pool_id, vault_a, vault_b, mint_id))

        def undo() -> None:
            self._vaults.pop(vault_a, None)
            self._vaults.pop(vault_b, None)
            mints = self._mints.get_all()
            mints.pop(mint_id, None)
            self._mints.restore(mints)
            self._authorities.pop(pool_id, None)
            self._allocated.difference_update((pool_id, vault_a, vault_b, mint_id))

        self._record_undo(undo)
        return vault_a, vault_b, mint_id

    def insert_pool(self, record: PoolRecord) -> None:
        """Insert-if-absent on both the pool id and the unordered asset pair."""
        pool_id = record.pool_id
        key = _pair_key(record.asset_a_id, record.asset_b_id)
        with self._state_lock:
            if pool_id in self._pools or key in self._pairs:
                raise PoolAlreadyExists(f"pool already exists: {pool_id}")
            self._pools[pool_id] = record
            self._pairs[key] = pool_id

        def undo() -> None:
            self._pools.pop(pool_id, None)
            self._pairs.pop(key, None)

        self._record_undo(undo)

    def get_pool(self, pool_id: str) -> PoolRecord:
        with self._state_lock:
            try:
                return self._pools[pool_id]
            except KeyError:
                raise UnknownPool(f"unknown pool: {pool_id}") from None

    def pool_for_pair(self, asset_a_id: AssetId, asset_b_id: AssetId) -> Optional[str]:
        with self._state_lock:
            return self._pairs.get(_pair_key(asset_a_id, asset_b_id))

    def authority_for(self, pool_id: str) -> PoolAuthority:
        with self._state_lock:
            try:
                return self._authorities[pool_id]
            except KeyError:
                raise UnknownPool(f"no authority for pool: {pool_id}") from None

    def share_decimals(self, mint_id: AssetId) -> int:
        with self._state_lock:
            return self._mints.get(mint_id).decimals

    def __repr__(self) -> str:
        return f"InMemoryLedger({len(self._pools)} pools, {self._balances!r})"
