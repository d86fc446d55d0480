"""Exception types for the pairswap pool core.

Every operation either succeeds completely or raises one of these; the ledger
transaction wrapping the operation rolls back on any of them. ``code`` is the
stable, user-visible failure kind used in log records.
"""

from __future__ import annotations


class AmmError(Exception):
    """Base class for every failure raised by the pool core or its ledger."""

    code = "AmmError"


class InvalidAmount(AmmError, ValueError):
    """A caller amount is zero, or a computed amount rounds to zero where a positive one is required."""

    code = "InvalidAmount"


class InvalidFee(AmmError, ValueError):
    """fee_denominator is zero or fee_numerator >= fee_denominator."""

    code = "InvalidFee"


class InvalidAssetPair(AmmError, ValueError):
    """Both sides of the pool name the same asset."""

    code = "InvalidAssetPair"


class InvalidAccount(AmmError, ValueError):
    """A caller account id is not a 32-byte hex id."""

    code = "InvalidAccount"


class SlippageExceeded(AmmError):
    """A computed amount is strictly below the caller's declared minimum."""

    code = "SlippageExceeded"

    def __init__(self, what: str, actual: int, minimum: int) -> None:
        self.what = what
        self.actual = actual
        self.minimum = minimum
        super().__init__(f"{what} ({actual}) < minimum ({minimum})")


class ArithmeticOverflow(AmmError, ArithmeticError):
    """An intermediate value left the u64/u128 domain, or a divisor was zero."""

    code = "ArithmeticOverflow"


class InvariantViolation(AmmError):
    """A post-state broke a pool invariant (k decreased, claim exceeded)."""

    code = "InvariantViolation"


class LedgerFailure(AmmError):
    """Raised by the external ledger (balances, authority, account records)."""

    code = "LedgerFailure"


class InsufficientFunds(LedgerFailure):
    """A debit exceeds the available balance or supply."""

    code = "InsufficientFunds"


class MissingAuthority(LedgerFailure):
    """An effect needed the pool's authority capability and did not get it."""

    code = "MissingAuthority"


class PoolAlreadyExists(LedgerFailure):
    """A pool record is already stored for this asset pair."""

    code = "PoolAlreadyExists"


class UnknownPool(LedgerFailure):
    """No pool record is stored under the requested id."""

    code = "UnknownPool"


class UnknownAccount(LedgerFailure):
    """A vault, mint or holder account does not exist."""

    code = "UnknownAccount"
