# [TESTER] v1

from __future__ import annotations

import hashlib
import struct

import pytest

from pairswap.errors import InvalidAssetPair, InvalidFee, LedgerFailure
from pairswap.state.canonical import domain_sep_bytes
from pairswap.state.pools import (
    POOL_DISCRIMINATOR,
    POOL_RECORD_SIZE,
    PoolRecord,
    PoolSnapshot,
    decode_pool_record,
    derive_pool_id,
    encode_pool_record,
    find_pool_address,
)

ASSET_A = "0x" + "11" * 32
ASSET_B = "0x" + "22" * 32


def _record(**overrides) -> PoolRecord:
    fields = dict(
        asset_a_id=ASSET_A,
        asset_b_id=ASSET_B,
        vault_a_id="0x" + "a1" * 32,
        vault_b_id="0x" + "b1" * 32,
        share_mint_id="0x" + "cc" * 32,
        fee_numerator=3,
        fee_denominator=1000,
        derivation_nonce=255,
    )
    fields.update(overrides)
    return PoolRecord(**fields)


def test_record_layout_is_fixed_width() -> None:
    assert POOL_DISCRIMINATOR == hashlib.sha256(b"account:Pool").digest()[:8]
    assert POOL_RECORD_SIZE == 8 + 5 * 32 + 8 + 8 + 1 == 185

    data = encode_pool_record(_record())
    assert len(data) == POOL_RECORD_SIZE
    assert data[:8] == POOL_DISCRIMINATOR
    assert data[8:40] == bytes.fromhex("11" * 32)
    assert struct.unpack_from("<QQB", data, 168) == (3, 1000, 255)
    assert decode_pool_record(data) == _record()


def test_decode_rejects_malformed_records() -> None:
    data = bytearray(encode_pool_record(_record()))
    with pytest.raises(ValueError, match="bytes"):
        decode_pool_record(bytes(data[:-1]))
    bad = bytes(8) + bytes(data[8:])
    with pytest.raises(ValueError, match="discriminator"):
        decode_pool_record(bad)
    with pytest.raises(TypeError):
        decode_pool_record("00" * POOL_RECORD_SIZE)  # type: ignore[arg-type]


def test_decode_revalidates_fee() -> None:
    data = bytearray(encode_pool_record(_record()))
    struct.pack_into("<QQ", data, 168, 1000, 1000)
    with pytest.raises(InvalidFee):
        decode_pool_record(bytes(data))


def test_record_fee_bounds() -> None:
    assert _record(fee_numerator=3, fee_denominator=1000).fee_denominator == 1000
    assert _record(fee_numerator=0, fee_denominator=1).fee_numerator == 0
    with pytest.raises(InvalidFee):
        _record(fee_numerator=1000, fee_denominator=1000)
    with pytest.raises(InvalidFee):
        _record(fee_numerator=0, fee_denominator=0)


def test_record_canonicalizes_ids_and_rejects_same_asset() -> None:
    record = _record(asset_a_id="11" * 31 + "AB")
    assert record.asset_a_id == "0x" + "11" * 31 + "ab"
    with pytest.raises(InvalidAssetPair):
        _record(asset_b_id=ASSET_A)
    with pytest.raises(ValueError):
        _record(derivation_nonce=256)


def test_derive_pool_id_is_deterministic_and_ordered() -> None:
    expected = "0x" + hashlib.sha256(
        domain_sep_bytes("pool") + bytes.fromhex("11" * 32) + bytes.fromhex("22" * 32) + bytes([255])
    ).hexdigest()
    assert derive_pool_id(ASSET_A, ASSET_B, 255) == expected
    assert derive_pool_id(ASSET_A, ASSET_B, 255) != derive_pool_id(ASSET_B, ASSET_A, 255)
    assert derive_pool_id(ASSET_A, ASSET_B, 255) != derive_pool_id(ASSET_A, ASSET_B, 254)
    assert _record().pool_id == expected
    with pytest.raises(InvalidAssetPair):
        derive_pool_id(ASSET_A, ASSET_A, 255)


def test_find_pool_address_scans_down_from_255() -> None:
    assert find_pool_address(ASSET_A, ASSET_B, lambda _pid: False) == (derive_pool_id(ASSET_A, ASSET_B, 255), 255)

    taken = {derive_pool_id(ASSET_A, ASSET_B, 255), derive_pool_id(ASSET_A, ASSET_B, 254)}
    pool_id, nonce = find_pool_address(ASSET_A, ASSET_B, taken.__contains__)
    assert nonce == 253
    assert pool_id == derive_pool_id(ASSET_A, ASSET_B, 253)

    with pytest.raises(LedgerFailure):
        find_pool_address(ASSET_A, ASSET_B, lambda _pid: True)


def test_snapshot_bounds_and_k() -> None:
    assert PoolSnapshot(3, 4, 0).k == 12
    with pytest.raises(ArithmeticError):
        PoolSnapshot(-1, 0, 0)
