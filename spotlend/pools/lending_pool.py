"""
Collateralized lending pool priced by a reserve pool's spot ratio.

Accounts deposit the token as collateral and borrow the native asset against
it. The collateral is valued with ``ReservePool.price_of(token, native)`` at
the moment of each borrow, and nothing else: there is no record of the price
at deposit time, no averaging and no staleness window. Any swap executed
earlier in the same sequence therefore moves borrowing capacity directly.

Withdrawal, repayment and interest are not modelled.
"""

from __future__ import annotations

import logging
from typing import Optional

from ..core.errors import InsufficientCollateralError, InsufficientLiquidityError, ValidationError
from ..core.fixed_point import BPS_DENOM, SCALE, add, apply_bps, mul_div, require_amount, sub
from ..state.balances import NATIVE_ASSET, Account, Amount, AssetId, BalanceTable
from ..state.pools import LendingState
from .reserve_pool import ReservePool


logger = logging.getLogger(__name__)


class LendingPool:
    """
    Native-asset lender accepting token collateral.

    Args:
        token: Collateral asset id
        reserve_pool: Pool used as the price oracle (read-only)
        collateral_ratio_bps: Share of collateral value that may be borrowed,
            in basis points (8000 = 80%). Fixed for the pool's lifetime.
        balances: External holdings; the pool journals into ``balances.journal``
        address: Identifier of the pool in logs and reprs
    """

    def __init__(
        self,
        token: AssetId,
        reserve_pool: ReservePool,
        collateral_ratio_bps: int,
        *,
        balances: BalanceTable,
        address: Account = "lending-pool",
    ):
        if not isinstance(collateral_ratio_bps, int) or isinstance(collateral_ratio_bps, bool):
            raise TypeError("collateral_ratio_bps must be an int")
        if not (0 <= collateral_ratio_bps <= BPS_DENOM):
            raise ValidationError(f"collateral_ratio_bps must be in [0, {BPS_DENOM}]: {collateral_ratio_bps}")
        if token == NATIVE_ASSET:
            raise ValidationError("collateral token must differ from the native asset")
        if reserve_pool.token != token:
            raise ValidationError(
                f"reserve pool prices {reserve_pool.token!r}, not collateral token {token!r}"
            )
        self.token = token
        self.address = address
        self._reserve_pool = reserve_pool
        self._collateral_ratio_bps = collateral_ratio_bps
        self._balances = balances
        self._journal = balances.journal
        self._state = LendingState()

    # -- reads ---------------------------------------------------------------

    @property
    def collateral_ratio_bps(self) -> int:
        return self._collateral_ratio_bps

    @property
    def reserve_pool(self) -> ReservePool:
        return self._reserve_pool

    @property
    def state(self) -> LendingState:
        return self._state

    @property
    def native_reserve(self) -> Amount:
        return self._state.native_reserve

    def deposits_of(self, account: Account) -> Amount:
        return self._state.deposit_of(account)

    def borrows_of(self, account: Account) -> Amount:
        return self._state.borrow_of(account)

    def collateral_value(self, account: Account) -> Amount:
        """Current value of the account's collateral in native units."""
        price = self._reserve_pool.price_of(self.token, NATIVE_ASSET)
        return mul_div(self._state.deposit_of(account), price, SCALE)

    def max_borrow_amount(self, account: Account) -> Amount:
        """
        Native amount the account may still borrow.

        ``collateral_value * ratio / 10_000 - borrowed``, floored at zero, with
        the collateral valued at the reserve pool's current ratio.
        """
        with self._journal.lock:
            limit = apply_bps(self.collateral_value(account), self._collateral_ratio_bps)
            borrowed = self._state.borrow_of(account)
        if borrowed >= limit:
            return 0
        return limit - borrowed

    # -- writes --------------------------------------------------------------

    def fund(self, amount: Amount, *, sender: Optional[Account] = None) -> None:
        """Add native liquidity to the lending reserve."""
        require_amount(amount, "amount")
        with self._journal.atomic():
            if sender is not None:
                self._balances.debit(sender, NATIVE_ASSET, amount)
            self._commit(self._state.with_native_reserve(add(self._state.native_reserve, amount)))
        logger.debug("lending reserve funded amount=%d sender=%s", amount, sender)

    def deposit_collateral(self, account: Account, amount: Amount, *, value: Amount = 0) -> None:
        """
        Pull ``amount`` token from ``account`` and record it as collateral.

        Raises:
            ValidationError: non-positive amount, native value attached, or the
                account does not hold the tokens
        """
        require_amount(amount, "amount")
        require_amount(value, "value", positive=False)
        if value != 0:
            raise ValidationError("collateral deposits must not attach native value")

        with self._journal.atomic():
            self._balances.debit(account, self.token, amount)
            self._commit(self._state.with_deposit(account, add(self._state.deposit_of(account), amount)))
        logger.debug("collateral deposited account=%s amount=%d", account, amount)

    def borrow_eth(self, account: Account, amount: Amount, *, value: Amount = 0) -> None:
        """
        Lend ``amount`` native to ``account`` against its collateral.

        Raises:
            ValidationError: non-positive amount or native value attached
            InsufficientCollateralError: amount exceeds ``max_borrow_amount``
            InsufficientLiquidityError: the reserve cannot cover the amount
            TransferFailureError: the payout to ``account`` was rejected
        """
        require_amount(amount, "amount")
        require_amount(value, "value", positive=False)
        if value != 0:
            raise ValidationError("borrows must not attach native value")

        with self._journal.atomic():
            available = self.max_borrow_amount(account)
            if amount > available:
                raise InsufficientCollateralError(amount, available)
            if self._state.native_reserve < amount:
                raise InsufficientLiquidityError(
                    f"lending reserve {self._state.native_reserve} cannot cover borrow of {amount}"
                )
            self._commit(self._state.with_borrow(
                account,
                add(self._state.borrow_of(account), amount),
                native_reserve=sub(self._state.native_reserve, amount),
            ))
            self._balances.credit(account, NATIVE_ASSET, amount)
        logger.debug("borrow account=%s amount=%d max=%d", account, amount, available)

    # -- helpers -------------------------------------------------------------

    def _commit(self, new_state: LendingState) -> None:
        previous = self._state
        self._journal.record(lambda: setattr(self, "_state", previous))
        self._state = new_state

    def __repr__(self) -> str:
        return (
            f"LendingPool(ratio_bps={self._collateral_ratio_bps}, "
            f"reserve={self._state.native_reserve}, accounts={len(self._state.deposits)})"
        )
