"""
Kernel layer.

This package groups the deterministic, integer-only kernels used by the pool.
- `pairswap/kernels/python/` contains the production Python kernels. They are
  pure functions over plain ints with explicit rounding and explicit u64/u128
  range checks, so they can be audited line by line.
"""
