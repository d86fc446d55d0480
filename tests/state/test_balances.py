# [TESTER] v1

from __future__ import annotations

import pytest

from pairswap.errors import ArithmeticOverflow, InsufficientFunds, UnknownAccount
from pairswap.kernels.python.checked_math import U64_MAX
from pairswap.state.balances import BalanceTable
from pairswap.state.lp import ShareMintTable

ACCOUNT = "0x" + "aa" * 32
ASSET = "0x" + "11" * 32
MINT = "0x" + "cc" * 32


def test_balance_table_credit_debit() -> None:
    table = BalanceTable()
    table.credit(ACCOUNT, ASSET, 10)
    table.debit(ACCOUNT, ASSET, 4)
    assert table.get(ACCOUNT, ASSET) == 6
    assert table.total_for_asset(ASSET) == 6

    with pytest.raises(InsufficientFunds):
        table.debit(ACCOUNT, ASSET, 7)
    assert table.get(ACCOUNT, ASSET) == 6

    table.debit(ACCOUNT, ASSET, 6)
    assert table.get_all_balances() == {}


def test_balance_table_is_u64_bounded() -> None:
    table = BalanceTable()
    table.credit(ACCOUNT, ASSET, U64_MAX)
    with pytest.raises(ArithmeticOverflow):
        table.credit(ACCOUNT, ASSET, 1)
    with pytest.raises(ValueError):
        table.set(ACCOUNT, ASSET, -1)


def test_share_mint_table_tracks_supply() -> None:
    mints = ShareMintTable()
    mints.create(MINT, authority_pool_id="0x" + "ff" * 32, decimals=6)
    assert MINT in mints
    mints.increase(MINT, 100)
    mints.decrease(MINT, 40)
    assert mints.supply(MINT) == 60
    assert mints.get(MINT).decimals == 6

    with pytest.raises(InsufficientFunds):
        mints.decrease(MINT, 61)
    with pytest.raises(ValueError):
        mints.create(MINT, authority_pool_id="0x" + "ff" * 32, decimals=6)
    with pytest.raises(UnknownAccount):
        mints.get("0x" + "00" * 32)
