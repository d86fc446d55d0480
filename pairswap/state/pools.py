"""
Pool record management.

A pool record is created once per asset pair and never mutated afterwards.
Reserves and share supply are not stored here; they are read from the vaults
and the share mint named by the record.
"""

from __future__ import annotations

import hashlib
import struct
from dataclasses import dataclass
from typing import Callable, Tuple

from ..errors import InvalidAssetPair, LedgerFailure
from ..kernels.python.checked_math import U8_MAX, require_int, require_u64
from ..kernels.python.cpmm_swap import validate_fee
from .balances import AccountId, Amount, AssetId
from .canonical import canonical_hex_fixed_allow_0x, domain_sep_bytes, hex_to_bytes_fixed


ID_BYTES = 32

# 8-byte account discriminator followed by the eight record fields.
POOL_DISCRIMINATOR = hashlib.sha256(b"account:Pool").digest()[:8]
_FIXED_TAIL = struct.Struct("<QQB")
POOL_RECORD_SIZE = len(POOL_DISCRIMINATOR) + 5 * ID_BYTES + _FIXED_TAIL.size

_ID_FIELDS = ("asset_a_id", "asset_b_id", "vault_a_id", "vault_b_id", "share_mint_id")


def derive_pool_id(asset_a_id: AssetId, asset_b_id: AssetId, nonce: int) -> str:
    """
    Deterministically compute a pool id for the ordered asset pair and nonce.

        pool_id = H(domain("pool") || asset_a || asset_b || nonce)
    """
    require_int("nonce", nonce)
    if not (0 <= nonce <= U8_MAX):
        raise ValueError(f"nonce must fit in u8: {nonce}")
    a = hex_to_bytes_fixed(canonical_hex_fixed_allow_0x(asset_a_id, nbytes=ID_BYTES, name="asset_a_id"),
                           nbytes=ID_BYTES, name="asset_a_id")
    b = hex_to_bytes_fixed(canonical_hex_fixed_allow_0x(asset_b_id, nbytes=ID_BYTES, name="asset_b_id"),
                           nbytes=ID_BYTES, name="asset_b_id")
    if a == b:
        raise InvalidAssetPair(f"pool assets must differ: {asset_a_id}")
    return "0x" + hashlib.sha256(domain_sep_bytes("pool") + a + b + bytes([nonce])).hexdigest()


def find_pool_address(
    asset_a_id: AssetId,
    asset_b_id: AssetId,
    is_taken: Callable[[str], bool],
) -> Tuple[str, int]:
    """
    Find the canonical (pool_id, nonce) for an ordered pair.

    Nonces are tried from 255 downward; a candidate is skipped when `is_taken`
    reports that some non-pool account already lives at that address.
    """
    for nonce in range(U8_MAX, -1, -1):
        pool_id = derive_pool_id(asset_a_id, asset_b_id, nonce)
        if not is_taken(pool_id):
            return pool_id, nonce
    raise LedgerFailure(f"no free pool address for ({asset_a_id}, {asset_b_id})")


@dataclass(frozen=True)
class PoolRecord:
    """
    Persistent record of one pool.

    Attributes:
        asset_a_id: First traded asset
        asset_b_id: Second traded asset
        vault_a_id: Custody account holding asset A reserves
        vault_b_id: Custody account holding asset B reserves
        share_mint_id: LP share asset
        fee_numerator: Fee fraction numerator (u64)
        fee_denominator: Fee fraction denominator (u64, > fee_numerator)
        derivation_nonce: Nonce used to derive the pool id (u8)
    """

    asset_a_id: AssetId
    asset_b_id: AssetId
    vault_a_id: AccountId
    vault_b_id: AccountId
    share_mint_id: AssetId
    fee_numerator: int
    fee_denominator: int
    derivation_nonce: int

    def __post_init__(self) -> None:
        for name in _ID_FIELDS:
            canonical = canonical_hex_fixed_allow_0x(getattr(self, name), nbytes=ID_BYTES, name=name)
            object.__setattr__(self, name, canonical)

        if self.asset_a_id == self.asset_b_id:
            raise InvalidAssetPair(f"pool assets must differ: {self.asset_a_id}")

        validate_fee(fee_numerator=self.fee_numerator, fee_denominator=self.fee_denominator)

        require_int("derivation_nonce", self.derivation_nonce)
        if not (0 <= self.derivation_nonce <= U8_MAX):
            raise ValueError(f"derivation_nonce must fit in u8: {self.derivation_nonce}")

    @property
    def pool_id(self) -> str:
        return derive_pool_id(self.asset_a_id, self.asset_b_id, self.derivation_nonce)

    def __repr__(self) -> str:
        return (
            f"PoolRecord(pool_id={self.pool_id[:18]}..., "
            f"assets=({self.asset_a_id[:10]}..., {self.asset_b_id[:10]}...), "
            f"fee={self.fee_numerator}/{self.fee_denominator}, nonce={self.derivation_nonce})"
        )


@dataclass(frozen=True)
class PoolSnapshot:
    """Reserves and share supply read inside one ledger transaction."""

    reserve_a: Amount
    reserve_b: Amount
    lp_supply: Amount

    def __post_init__(self) -> None:
        require_u64("reserve_a", self.reserve_a)
        require_u64("reserve_b", self.reserve_b)
        require_u64("lp_supply", self.lp_supply)

    @property
    def k(self) -> int:
        """Constant product reserve_a * reserve_b."""
        return self.reserve_a * self.reserve_b


def encode_pool_record(record: PoolRecord) -> bytes:
    """Fixed-width little-endian layout: discriminator, five ids, two u64, one u8."""
    out = bytearray(POOL_DISCRIMINATOR)
    for name in _ID_FIELDS:
        out += hex_to_bytes_fixed(getattr(record, name), nbytes=ID_BYTES, name=name)
    out += _FIXED_TAIL.pack(record.fee_numerator, record.fee_denominator, record.derivation_nonce)
    return bytes(out)


def decode_pool_record(data: bytes) -> PoolRecord:
    """Inverse of encode_pool_record; re-validates every field."""
    if not isinstance(data, (bytes, bytearray)):
        raise TypeError("data must be bytes")
    if len(data) != POOL_RECORD_SIZE:
        raise ValueError(f"pool record must be {POOL_RECORD_SIZE} bytes, got {len(data)}")
    if bytes(data[:8]) != POOL_DISCRIMINATOR:
        raise ValueError("pool record discriminator mismatch")

    ids = {}
    offset = len(POOL_DISCRIMINATOR)
    for name in _ID_FIELDS:
        ids[name] = "0x" + bytes(data[offset : offset + ID_BYTES]).hex()
        offset += ID_BYTES
    fee_numerator, fee_denominator, nonce = _FIXED_TAIL.unpack_from(data, offset)
    return PoolRecord(
        fee_numerator=fee_numerator,
        fee_denominator=fee_denominator,
        derivation_nonce=nonce,
        **ids,
    )
