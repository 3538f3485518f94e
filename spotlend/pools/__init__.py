"""
Stateful reserve and lending pools
"""

from .lending_pool import LendingPool
from .reserve_pool import ReservePool

__all__ = ["LendingPool", "ReservePool"]
