"""
Fee fraction (deterministic, integer-only).

A pool's fee is the fixed fraction fee_numerator / fee_denominator of every
swap input. It is validated once, at pool creation, and never changes.
"""

from __future__ import annotations

from dataclasses import dataclass

from ..kernels.python.cpmm_swap import validate_fee


@dataclass(frozen=True)
class FeeFraction:
    numerator: int
    denominator: int

    def __post_init__(self) -> None:
        validate_fee(fee_numerator=self.numerator, fee_denominator=self.denominator)

    @classmethod
    def from_record(cls, record) -> "FeeFraction":
        return cls(numerator=record.fee_numerator, denominator=record.fee_denominator)

    @property
    def is_zero(self) -> bool:
        return self.numerator == 0

    def __str__(self) -> str:
        return f"{self.numerator}/{self.denominator}"
