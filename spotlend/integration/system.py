"""
Wiring for one isolated reserve pool + lending pool instance set.

Every call to ``build_system`` returns fresh, unshared state, so scenarios can
run side by side without interfering.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Optional

from ..config import SystemConfig
from ..pools.lending_pool import LendingPool
from ..pools.reserve_pool import ReservePool
from ..state.balances import BalanceTable
from ..state.journal import Journal
from .sequencer import Sequencer


@dataclass(frozen=True)
class System:
    config: SystemConfig
    journal: Journal
    balances: BalanceTable
    reserve_pool: ReservePool
    lending_pool: LendingPool
    sequencer: Sequencer

    @property
    def token(self) -> str:
        return self.config.token_asset


def build_system(config: Optional[SystemConfig] = None) -> System:
    """Construct a journal, balance table, both pools and a sequencer sharing them."""
    config = config if config is not None else SystemConfig()
    journal = Journal()
    balances = BalanceTable(journal)
    reserve_pool = ReservePool(config.token_asset, balances=balances)
    lending_pool = LendingPool(
        config.token_asset,
        reserve_pool,
        config.collateral_ratio_bps,
        balances=balances,
    )
    return System(
        config=config,
        journal=journal,
        balances=balances,
        reserve_pool=reserve_pool,
        lending_pool=lending_pool,
        sequencer=Sequencer(journal),
    )
