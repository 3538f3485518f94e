"""
State management for the reserve and lending pools
"""

from .balances import NATIVE_ASSET, BalanceTable
from .journal import Journal
from .pools import LendingState, ReserveState

__all__ = [
    "NATIVE_ASSET",
    "BalanceTable",
    "Journal",
    "LendingState",
    "ReserveState",
]
