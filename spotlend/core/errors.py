"""Exception types for the reserve pool and the lending pool.

Every operation raises one of these at the failing guard and leaves state
untouched. ``SpotLendError`` is the common base so drivers can catch the whole
family without swallowing unrelated exceptions.
"""

from __future__ import annotations


class SpotLendError(Exception):
    """Base class for every error raised by the pools."""


class ValidationError(SpotLendError, ValueError):
    """Raised for zero/negative amounts, unknown assets or a mismatched payment."""


class LedgerArithmeticError(SpotLendError, ArithmeticError):
    """Raised when fixed-point arithmetic cannot produce a valid amount."""


class DivisionByZeroError(LedgerArithmeticError, ZeroDivisionError):
    """Raised when a price or swap is evaluated against an empty reserve."""


class AmountOverflowError(LedgerArithmeticError, OverflowError):
    """Raised when a result falls outside ``[0, MAX_AMOUNT]``."""


class InsufficientCollateralError(SpotLendError):
    """Raised when a borrow exceeds the account's current borrowing capacity."""

    def __init__(self, requested: int, available: int) -> None:
        self.requested = requested
        self.available = available
        super().__init__(f"borrow of {requested} exceeds max borrow amount {available}")


class InsufficientLiquidityError(SpotLendError):
    """Raised when a pool cannot fund a swap output or a borrow."""


class TransferFailureError(SpotLendError):
    """Raised when a native-asset payout to an account cannot be completed."""
