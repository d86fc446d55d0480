# [TESTER] v1

from __future__ import annotations

import importlib.util
import math

import pytest

from pairswap.errors import ArithmeticOverflow
from pairswap.kernels.python.checked_math import U64_MAX, U128_MAX
from pairswap.kernels.python.isqrt_u128 import isqrt_u128


@pytest.mark.parametrize(
    "value, expected",
    [
        (0, 0),
        (1, 1),
        (2, 1),
        (3, 1),
        (4, 2),
        (15, 3),
        (16, 4),
        (17, 4),
        (4 * 10**10, 200_000),
    ],
)
def test_isqrt_small_values(value: int, expected: int) -> None:
    assert isqrt_u128(value) == expected


def test_isqrt_top_of_u128_range() -> None:
    assert isqrt_u128(U128_MAX) == U64_MAX
    assert isqrt_u128(U64_MAX * U64_MAX) == U64_MAX
    assert isqrt_u128(U64_MAX * U64_MAX - 1) == U64_MAX - 1


def test_isqrt_is_exact_where_float_sqrt_is_not() -> None:
    n = (1 << 70) + 12345
    assert isqrt_u128(n * n) == n
    assert isqrt_u128(n * n - 1) == n - 1


def test_isqrt_rejects_out_of_domain() -> None:
    with pytest.raises(ArithmeticOverflow):
        isqrt_u128(-1)
    with pytest.raises(ArithmeticOverflow):
        isqrt_u128(U128_MAX + 1)
    with pytest.raises(TypeError):
        isqrt_u128(4.0)  # type: ignore[arg-type]
    with pytest.raises(TypeError):
        isqrt_u128(True)  # type: ignore[arg-type]


if importlib.util.find_spec("hypothesis") is not None:
    import hypothesis.strategies as st
    from hypothesis import given, settings

    @settings(max_examples=500, deadline=None)
    @given(st.integers(min_value=0, max_value=U128_MAX))
    def test_isqrt_matches_math_isqrt(value: int) -> None:
        root = isqrt_u128(value)
        assert root == math.isqrt(value)
        assert root * root <= value < (root + 1) * (root + 1)
