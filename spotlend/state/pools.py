"""
State records for the reserve pool and the lending pool.

Both are frozen; a pool commits an operation by swapping in a new record, so
an observer sees either the old record or the new one, never a half-applied
update.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from types import MappingProxyType
from typing import Mapping

from ..core.fixed_point import check_amount
from .balances import Account, Amount


@dataclass(frozen=True)
class ReserveState:
    """
    Balances held by a native/token reserve pool.

    Attributes:
        balance_native: Reserve of the native settlement asset
        balance_token: Reserve of the fungible token
    """
    balance_native: Amount = 0
    balance_token: Amount = 0

    def __post_init__(self):
        """Validate reserve invariants."""
        check_amount(self.balance_native, "balance_native")
        check_amount(self.balance_token, "balance_token")

    def get_constant_product(self) -> int:
        """
        Compute k = balance_native * balance_token.

        Returns:
            Constant product k (unbounded int)
        """
        return self.balance_native * self.balance_token

    def __repr__(self) -> str:
        return f"ReserveState(native={self.balance_native}, token={self.balance_token})"


def _frozen_mapping(values: Mapping[Account, Amount]) -> Mapping[Account, Amount]:
    return MappingProxyType(dict(values))


@dataclass(frozen=True, eq=True, unsafe_hash=False)
class LendingState:
    """
    Ledger of a lending pool.

    Attributes:
        native_reserve: Native asset available to lend
        deposits: account -> token collateral deposited
        borrows: account -> native asset borrowed
    """

    # The mappings are views over dicts, so records compare by value but are
    # not hashable.
    __hash__ = None  # type: ignore[assignment]

    native_reserve: Amount = 0
    deposits: Mapping[Account, Amount] = field(default_factory=dict)
    borrows: Mapping[Account, Amount] = field(default_factory=dict)

    def __post_init__(self):
        check_amount(self.native_reserve, "native_reserve")
        for name in ("deposits", "borrows"):
            table = getattr(self, name)
            for account, amount in table.items():
                check_amount(amount, f"{name}[{account}]")
            object.__setattr__(self, name, _frozen_mapping(table))

    def deposit_of(self, account: Account) -> Amount:
        return self.deposits.get(account, 0)

    def borrow_of(self, account: Account) -> Amount:
        return self.borrows.get(account, 0)

    def with_native_reserve(self, native_reserve: Amount) -> "LendingState":
        """Return a copy with a new native reserve; the account maps are shared."""
        check_amount(native_reserve, "native_reserve")
        return self._derive(native_reserve, self.deposits, self.borrows)

    def with_deposit(self, account: Account, amount: Amount) -> "LendingState":
        """Return a copy with ``deposits[account]`` set to ``amount``."""
        check_amount(amount, f"deposits[{account}]")
        deposits = dict(self.deposits)
        deposits[account] = amount
        return self._derive(self.native_reserve, MappingProxyType(deposits), self.borrows)

    def with_borrow(self, account: Account, amount: Amount, native_reserve: Amount) -> "LendingState":
        """Return a copy recording a borrow: both fields change together."""
        check_amount(amount, f"borrows[{account}]")
        check_amount(native_reserve, "native_reserve")
        borrows = dict(self.borrows)
        borrows[account] = amount
        return self._derive(native_reserve, self.deposits, MappingProxyType(borrows))

    @classmethod
    def _derive(
        cls,
        native_reserve: Amount,
        deposits: Mapping[Account, Amount],
        borrows: Mapping[Account, Amount],
    ) -> "LendingState":
        # Only the changed entry is checked by the caller; the rest was
        # validated when the source record was built.
        state = object.__new__(cls)
        object.__setattr__(state, "native_reserve", native_reserve)
        object.__setattr__(state, "deposits", deposits)
        object.__setattr__(state, "borrows", borrows)
        return state
