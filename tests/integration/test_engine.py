# [TESTER] v1

from __future__ import annotations

import logging
import threading

import pytest

from pairswap.core.swap import SwapDirection
from pairswap.errors import (
    InsufficientFunds,
    InvalidAccount,
    InvalidAmount,
    InvalidAssetPair,
    InvalidFee,
    PoolAlreadyExists,
    SlippageExceeded,
    UnknownPool,
)
from pairswap.integration import AmmEngine, EngineConfig, InMemoryLedger
from pairswap.state.pools import PoolSnapshot, derive_pool_id

ASSET_A = "0x" + "11" * 32
ASSET_B = "0x" + "22" * 32
ASSET_C = "0x" + "33" * 32
ALICE = "0x" + "aa" * 32
BOB = "0x" + "bb" * 32


def _engine(config: EngineConfig | None = None) -> tuple[InMemoryLedger, AmmEngine]:
    ledger = InMemoryLedger()
    return ledger, AmmEngine(ledger, config)


def _balances(ledger: InMemoryLedger, account: str, *assets: str) -> tuple[int, ...]:
    return tuple(ledger.balance_of(account, asset) for asset in assets)


def test_pool_lifecycle_returns_everything_to_sole_provider() -> None:
    ledger, engine = _engine()
    ledger.fund(ALICE, ASSET_A, 10**6)
    ledger.fund(ALICE, ASSET_B, 10**6)

    pool_id = engine.initialize_pool(ASSET_A, ASSET_B, 3, 1000)
    assert engine.snapshot(pool_id) == PoolSnapshot(0, 0, 0)

    assert engine.add_liquidity(pool_id, ALICE, 100_000, 400_000, 0) == 200_000
    assert engine.snapshot(pool_id) == PoolSnapshot(100_000, 400_000, 200_000)

    expected_out = (1000 * 997 * 400_000) // (100_000 * 1000 + 1000 * 997)
    assert engine.swap(pool_id, ALICE, 1000, expected_out, SwapDirection.A_TO_B) == expected_out
    assert engine.snapshot(pool_id) == PoolSnapshot(101_000, 400_000 - expected_out, 200_000)

    record = engine.get_pool(pool_id)
    assert ledger.balance_of(ALICE, record.share_mint_id) == 200_000

    amount_a, amount_b = engine.remove_liquidity(pool_id, ALICE, 200_000, 0, 0)
    assert (amount_a, amount_b) == (101_000, 400_000 - expected_out)
    assert engine.snapshot(pool_id) == PoolSnapshot(0, 0, 0)
    assert _balances(ledger, ALICE, ASSET_A, ASSET_B, record.share_mint_id) == (10**6, 10**6, 0)


def test_second_provider_gets_proportional_shares() -> None:
    ledger, engine = _engine()
    for user in (ALICE, BOB):
        ledger.fund(user, ASSET_A, 10**6)
        ledger.fund(user, ASSET_B, 10**6)
    pool_id = engine.initialize_pool(ASSET_A, ASSET_B, 3, 1000)
    engine.add_liquidity(pool_id, ALICE, 100_000, 400_000, 0)

    assert engine.add_liquidity(pool_id, BOB, 1000, 4000, 2000) == 2000

    # Off-ratio deposit keeps the whole amount; only the limiting side counts.
    assert engine.add_liquidity(pool_id, BOB, 1000, 8000, 0) == 2000
    assert engine.snapshot(pool_id) == PoolSnapshot(102_000, 412_000, 204_000)
    assert _balances(ledger, BOB, ASSET_A, ASSET_B) == (10**6 - 2000, 10**6 - 12_000)


def test_swap_b_to_a_and_quote_agree() -> None:
    ledger, engine = _engine()
    ledger.fund(ALICE, ASSET_A, 10**6)
    ledger.fund(ALICE, ASSET_B, 10**6)
    pool_id = engine.initialize_pool(ASSET_A, ASSET_B, 3, 1000)
    engine.add_liquidity(pool_id, ALICE, 100_000, 400_000, 0)

    quote = engine.quote_swap(pool_id, 4000, SwapDirection.B_TO_A)
    assert engine.snapshot(pool_id) == PoolSnapshot(100_000, 400_000, 200_000)
    out = engine.swap(pool_id, ALICE, 4000, 0, SwapDirection.B_TO_A)
    assert out == quote.amount_out
    assert engine.snapshot(pool_id) == PoolSnapshot(100_000 - out, 404_000, 200_000)


def test_rejected_operations_leave_state_unchanged() -> None:
    ledger, engine = _engine()
    ledger.fund(ALICE, ASSET_A, 10**6)
    ledger.fund(ALICE, ASSET_B, 10**6)
    ledger.fund(BOB, ASSET_A, 5000)
    pool_id = engine.initialize_pool(ASSET_A, ASSET_B, 3, 1000)
    engine.add_liquidity(pool_id, ALICE, 100_000, 400_000, 0)
    before = engine.snapshot(pool_id)

    with pytest.raises(SlippageExceeded):
        engine.swap(pool_id, ALICE, 1000, 10**6, SwapDirection.A_TO_B)
    with pytest.raises(InvalidAmount):
        engine.swap(pool_id, ALICE, 0, 0, SwapDirection.A_TO_B)
    with pytest.raises(SlippageExceeded):
        engine.remove_liquidity(pool_id, ALICE, 1000, 10**6, 0)

    # Bob holds A but no B: the A leg is applied and then rolled back.
    with pytest.raises(InsufficientFunds):
        engine.add_liquidity(pool_id, BOB, 1000, 4000, 0)

    assert engine.snapshot(pool_id) == before
    assert _balances(ledger, BOB, ASSET_A, ASSET_B) == (5000, 0)
    assert _balances(ledger, ALICE, ASSET_A, ASSET_B) == (900_000, 600_000)


def test_one_pool_per_unordered_pair() -> None:
    ledger, engine = _engine()
    pool_id = engine.initialize_pool(ASSET_A, ASSET_B, 3, 1000)

    with pytest.raises(PoolAlreadyExists):
        engine.initialize_pool(ASSET_A, ASSET_B, 3, 1000)
    with pytest.raises(PoolAlreadyExists):
        engine.initialize_pool(ASSET_B, ASSET_A, 1, 100)

    assert ledger.pool_for_pair(ASSET_B, ASSET_A) == pool_id
    assert engine.initialize_pool(ASSET_A, ASSET_C, 0, 1) != pool_id


def test_initialize_pool_validation() -> None:
    ledger, engine = _engine()
    with pytest.raises(InvalidAssetPair):
        engine.initialize_pool(ASSET_A, ASSET_A, 3, 1000)
    with pytest.raises(InvalidFee):
        engine.initialize_pool(ASSET_A, ASSET_B, 1000, 1000)
    with pytest.raises(InvalidFee):
        engine.initialize_pool(ASSET_A, ASSET_B, 1, 0)
    assert ledger.pool_for_pair(ASSET_A, ASSET_B) is None


def test_configured_fee_denominator_cap_and_share_decimals() -> None:
    ledger, engine = _engine(EngineConfig(share_decimals=9, max_fee_denominator=10_000))
    with pytest.raises(InvalidFee):
        engine.initialize_pool(ASSET_A, ASSET_B, 3, 100_000)

    pool_id = engine.initialize_pool(ASSET_A, ASSET_B, 30, 10_000)
    assert ledger.share_decimals(engine.get_pool(pool_id).share_mint_id) == 9


def test_unknown_pool() -> None:
    _, engine = _engine()
    with pytest.raises(UnknownPool):
        engine.swap("0x" + "00" * 32, ALICE, 1, 0, SwapDirection.A_TO_B)


def test_malformed_account_is_rejected_before_any_transfer() -> None:
    ledger, engine = _engine()
    ledger.fund(ALICE, ASSET_A, 10**6)
    ledger.fund(ALICE, ASSET_B, 10**6)
    pool_id = engine.initialize_pool(ASSET_A, ASSET_B, 3, 1000)
    engine.add_liquidity(pool_id, ALICE, 100_000, 400_000, 0)

    trader = "trader\ud800"
    ledger.fund(trader, ASSET_A, 5000)
    before = engine.snapshot(pool_id)
    for bad in (trader, "0x" + "aa" * 31, 42):
        with pytest.raises(InvalidAccount):
            engine.swap(pool_id, bad, 1000, 0, SwapDirection.A_TO_B)
        with pytest.raises(InvalidAccount):
            engine.add_liquidity(pool_id, bad, 10, 10, 0)
    assert engine.snapshot(pool_id) == before
    assert _balances(ledger, trader, ASSET_A, ASSET_B) == (5000, 0)


def test_account_ids_are_canonicalized() -> None:
    ledger, engine = _engine()
    ledger.fund(ALICE, ASSET_A, 10**6)
    ledger.fund(ALICE, ASSET_B, 10**6)
    pool_id = engine.initialize_pool(ASSET_A, ASSET_B, 3, 1000)

    assert engine.add_liquidity(pool_id, "AA" * 32, 1000, 1000, 0) == 1000
    assert ledger.balance_of(ALICE, engine.get_pool(pool_id).share_mint_id) == 1000


def test_initialize_pool_skips_an_address_that_holds_funds() -> None:
    ledger, engine = _engine()
    ledger.fund(derive_pool_id(ASSET_A, ASSET_B, 255), ASSET_C, 1)

    pool_id = engine.initialize_pool(ASSET_A, ASSET_B, 3, 1000)
    assert pool_id == derive_pool_id(ASSET_A, ASSET_B, 254)
    assert engine.get_pool(pool_id).derivation_nonce == 254


def test_operations_are_logged(caplog: pytest.LogCaptureFixture) -> None:
    caplog.set_level(logging.DEBUG, logger="pairswap")
    ledger, engine = _engine(EngineConfig(log_effects=True))
    ledger.fund(ALICE, ASSET_A, 10**6)
    ledger.fund(ALICE, ASSET_B, 10**6)
    pool_id = engine.initialize_pool(ASSET_A, ASSET_B, 3, 1000)
    engine.add_liquidity(pool_id, ALICE, 100_000, 400_000, 0)
    with pytest.raises(SlippageExceeded):
        engine.swap(pool_id, ALICE, 1000, 10**6, SwapDirection.A_TO_B)

    messages = [(r.levelno, r.getMessage()) for r in caplog.records]
    assert any(level == logging.INFO and "initialized" in msg for level, msg in messages)
    assert any(level == logging.DEBUG and msg.startswith("apply") for level, msg in messages)
    assert any(level == logging.WARNING and "SlippageExceeded" in msg for level, msg in messages)


def test_concurrent_swaps_conserve_balances() -> None:
    ledger, engine = _engine()
    traders = ["0x" + f"{i:02x}" * 32 for i in range(0xC0, 0xC4)]
    for user in [ALICE] + traders:
        for asset in (ASSET_A, ASSET_B, ASSET_C):
            ledger.fund(user, asset, 10**7)
    pools = [
        engine.initialize_pool(ASSET_A, ASSET_B, 3, 1000),
        engine.initialize_pool(ASSET_A, ASSET_C, 1, 100),
    ]
    for pool_id in pools:
        engine.add_liquidity(pool_id, ALICE, 10**6, 10**6, 0)
    k_start = {pool_id: engine.snapshot(pool_id).k for pool_id in pools}

    errors: list = []

    def trade(user: str) -> None:
        try:
            for i in range(50):
                direction = SwapDirection.from_flag(i % 2 == 0)
                engine.swap(pools[i % 2], user, 1000, 1, direction)
        except Exception as exc:  # pragma: no cover - surfaced below
            errors.append(exc)

    threads = [threading.Thread(target=trade, args=(user,)) for user in traders]
    for t in threads:
        t.start()
    for t in threads:
        t.join()

    assert errors == []
    for asset in (ASSET_A, ASSET_B, ASSET_C):
        assert ledger.total_supply_of(asset) == 5 * 10**7
    for pool_id in pools:
        assert engine.snapshot(pool_id).k > k_start[pool_id]
