"""
Checked fixed-width integer helpers.

Python ints never wrap, so the u64/u128 widths of the persisted layout are
enforced explicitly: every helper raises `ArithmeticOverflow` instead of
returning a value outside its domain. Division is floor division on
non-negative operands.
"""

from __future__ import annotations

from ...errors import ArithmeticOverflow


U8_MAX: int = (1 << 8) - 1
U64_MAX: int = (1 << 64) - 1
U128_MAX: int = (1 << 128) - 1


def require_int(name: str, value: int) -> None:
    if not isinstance(value, int) or isinstance(value, bool):
        raise TypeError(f"{name} must be an int")


def require_u64(name: str, value: int) -> int:
    require_int(name, value)
    if value < 0 or value > U64_MAX:
        raise ArithmeticOverflow(f"{name} must fit in u64: {value}")
    return value


def require_u128(name: str, value: int) -> int:
    require_int(name, value)
    if value < 0 or value > U128_MAX:
        raise ArithmeticOverflow(f"{name} must fit in u128: {value}")
    return value


def checked_mul(a: int, b: int, *, bound: int = U128_MAX) -> int:
    """`a * b`, or ArithmeticOverflow if the product exceeds `bound`."""
    product = a * b
    if product < 0 or product > bound:
        raise ArithmeticOverflow(f"multiplication overflow: {a} * {b}")
    return product


def checked_add(a: int, b: int, *, bound: int = U128_MAX) -> int:
    total = a + b
    if total < 0 or total > bound:
        raise ArithmeticOverflow(f"addition overflow: {a} + {b}")
    return total


def checked_div(numerator: int, denominator: int) -> int:
    """Floor division; a zero divisor is an overflow, never a ZeroDivisionError."""
    if denominator <= 0:
        raise ArithmeticOverflow("division by zero")
    if numerator < 0:
        raise ArithmeticOverflow(f"numerator must be non-negative: {numerator}")
    return numerator // denominator


def narrow_u64(name: str, value: int) -> int:
    """Narrow a u128 intermediate back to u64 (the `as u64` step, but checked)."""
    if value < 0 or value > U64_MAX:
        raise ArithmeticOverflow(f"{name} does not fit in u64: {value}")
    return value
