"""
Native/token constant product reserve pool.

Imperative shell around ``core.cpmm``. Each operation follows
checks-effects-interactions inside one journal block:

1. validate inputs and the paired payment (no state touched yet),
2. pull the payment from the sender and commit the new ``ReserveState``,
3. pay the output to the sender.

A payout failure in step 3 unwinds steps 2 and 3 together.
"""

from __future__ import annotations

import logging
from typing import Optional

from ..core.cpmm import spot_price, swap_exact_in
from ..core.errors import ValidationError
from ..core.fixed_point import add, require_amount
from ..state.balances import NATIVE_ASSET, Account, Amount, AssetId, BalanceTable
from ..state.pools import ReserveState


logger = logging.getLogger(__name__)


class ReservePool:
    """Two-asset zero-fee constant product pool: the native asset and one token."""

    def __init__(self, token: AssetId, *, balances: BalanceTable, address: Account = "reserve-pool"):
        if not isinstance(token, str) or not token:
            raise ValidationError("token must be a non-empty asset id")
        if token == NATIVE_ASSET:
            raise ValidationError("token must differ from the native asset")
        self.token = token
        self.address = address
        self._balances = balances
        self._journal = balances.journal
        self._state = ReserveState()

    # -- reads ---------------------------------------------------------------

    @property
    def state(self) -> ReserveState:
        return self._state

    @property
    def balance_native(self) -> Amount:
        return self._state.balance_native

    @property
    def balance_token(self) -> Amount:
        return self._state.balance_token

    def balance_of(self, asset: AssetId) -> Amount:
        return self._reserve(self._state, asset)

    def price_of(self, asset_a: AssetId, asset_b: AssetId) -> Amount:
        """
        Price of one unit of ``asset_a`` in ``asset_b``, scaled by 1e18.

        Read straight from the current reserves on every call.
        """
        state = self._state
        return spot_price(
            reserve_base=self._reserve(state, asset_a),
            reserve_quote=self._reserve(state, asset_b),
        )

    def price_native_in_token(self) -> Amount:
        return self.price_of(NATIVE_ASSET, self.token)

    def price_token_in_native(self) -> Amount:
        return self.price_of(self.token, NATIVE_ASSET)

    def quote(self, asset_in: AssetId, amount_in: Amount) -> Amount:
        """Output a swap of ``amount_in`` would produce right now, without executing it."""
        asset_out = self.token if self._is_native(asset_in) else NATIVE_ASSET
        state = self._state
        res = swap_exact_in(
            reserve_in=self._reserve(state, asset_in),
            reserve_out=self._reserve(state, asset_out),
            amount_in=amount_in,
        )
        return res.amount_out

    # -- writes --------------------------------------------------------------

    def deposit(self, asset: AssetId, amount: Amount, *, sender: Optional[Account] = None) -> None:
        """
        Credit ``amount`` to the reserve of ``asset``.

        With ``sender`` the amount is transferred out of the sender's holdings;
        without it the credit stands for a transfer made outside the system.
        """
        native = self._is_native(asset)
        require_amount(amount, "amount")

        with self._journal.atomic():
            if sender is not None:
                self._balances.debit(sender, asset, amount)
            if native:
                self._commit(ReserveState(
                    balance_native=add(self._state.balance_native, amount),
                    balance_token=self._state.balance_token,
                ))
            else:
                self._commit(ReserveState(
                    balance_native=self._state.balance_native,
                    balance_token=add(self._state.balance_token, amount),
                ))
        logger.debug("reserve deposit asset=%s amount=%d sender=%s", asset, amount, sender)

    def swap(self, asset_in: AssetId, amount_in: Amount, *, sender: Account, value: Amount = 0) -> Amount:
        """
        Swap ``amount_in`` of ``asset_in`` for the other asset.

        ``value`` is the native amount attached to the call. It must equal
        ``amount_in`` for a native-in swap and be zero for a token-in swap,
        where the token is pulled from ``sender`` instead.

        Returns:
            amount_out paid to ``sender``

        Raises:
            ValidationError: non-positive amount or mismatched payment
            DivisionByZeroError: the input reserve is empty
            InsufficientLiquidityError: the output reserve is empty or would be drained
            TransferFailureError: the payout to ``sender`` was rejected
        """
        native_in = self._is_native(asset_in)
        require_amount(amount_in, "amount_in")
        require_amount(value, "value", positive=False)
        if native_in and value != amount_in:
            raise ValidationError(f"attached value {value} does not match amount_in {amount_in}")
        if not native_in and value != 0:
            raise ValidationError("token-in swaps must not attach native value")

        asset_out = self.token if native_in else NATIVE_ASSET

        with self._journal.atomic():
            res = swap_exact_in(
                reserve_in=self.balance_of(asset_in),
                reserve_out=self.balance_of(asset_out),
                amount_in=amount_in,
            )
            self._balances.debit(sender, asset_in, amount_in)
            if native_in:
                self._commit(ReserveState(balance_native=res.new_reserve_in, balance_token=res.new_reserve_out))
            else:
                self._commit(ReserveState(balance_native=res.new_reserve_out, balance_token=res.new_reserve_in))
            self._balances.credit(sender, asset_out, res.amount_out)

        logger.debug(
            "swap sender=%s in=%d %s out=%d %s k_before=%d k_after=%d",
            sender, amount_in, asset_in, res.amount_out, asset_out, res.k_before, res.k_after,
        )
        return res.amount_out

    # -- helpers -------------------------------------------------------------

    def _is_native(self, asset: AssetId) -> bool:
        if asset == NATIVE_ASSET:
            return True
        if asset == self.token:
            return False
        raise ValidationError(f"asset {asset!r} is not held by this pool")

    def _reserve(self, state: ReserveState, asset: AssetId) -> Amount:
        if self._is_native(asset):
            return state.balance_native
        return state.balance_token

    def _commit(self, new_state: ReserveState) -> None:
        previous = self._state
        self._journal.record(lambda: setattr(self, "_state", previous))
        self._state = new_state

    def __repr__(self) -> str:
        return f"ReservePool(token={self.token[:10]}..., {self._state!r})"
