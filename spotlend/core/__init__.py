"""
Core pool algorithms (pure, integer-only)
"""

from .cpmm import SwapExactInResult, spot_price, swap_exact_in
from .errors import (
    AmountOverflowError,
    DivisionByZeroError,
    InsufficientCollateralError,
    InsufficientLiquidityError,
    LedgerArithmeticError,
    SpotLendError,
    TransferFailureError,
    ValidationError,
)
from .fixed_point import BPS_DENOM, MAX_AMOUNT, SCALE, format_units, to_units

__all__ = [
    "SwapExactInResult",
    "spot_price",
    "swap_exact_in",
    "AmountOverflowError",
    "DivisionByZeroError",
    "InsufficientCollateralError",
    "InsufficientLiquidityError",
    "LedgerArithmeticError",
    "SpotLendError",
    "TransferFailureError",
    "ValidationError",
    "BPS_DENOM",
    "MAX_AMOUNT",
    "SCALE",
    "format_units",
    "to_units",
]
