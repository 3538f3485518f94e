"""
Zero-fee constant product swap kernel.

Pure, integer-only functions; the stateful pool in ``reserve_pool.py`` is the
imperative shell around them.

Algorithm:
    k = reserve_in * reserve_out            (unbounded intermediate)
    new_reserve_out = floor(k / (reserve_in + amount_in))
    amount_out = reserve_out - new_reserve_out

Flooring ``new_reserve_out`` rounds the output up by less than one unit, so
``k_after <= k_before`` with ``k_before - k_after < new_reserve_in``. A swap
that would floor ``new_reserve_out`` to zero is rejected: the pool is never
drained by a single swap.
"""

from __future__ import annotations

from dataclasses import dataclass

from .errors import DivisionByZeroError, InsufficientLiquidityError
from .fixed_point import SCALE, add, check_amount, mul_div, require_amount


@dataclass(frozen=True)
class SwapExactInResult:
    amount_in: int
    amount_out: int
    new_reserve_in: int
    new_reserve_out: int
    k_before: int
    k_after: int


def swap_exact_in(*, reserve_in: int, reserve_out: int, amount_in: int) -> SwapExactInResult:
    """
    Exact-in swap quote + post-state.

    Raises:
        ValidationError: ``amount_in`` is not positive.
        DivisionByZeroError: ``reserve_in`` is empty, so no price exists.
        InsufficientLiquidityError: the out-side is empty or would be drained.
    """
    check_amount(reserve_in, "reserve_in")
    check_amount(reserve_out, "reserve_out")
    require_amount(amount_in, "amount_in")
    if reserve_in == 0:
        raise DivisionByZeroError("cannot price a swap against an empty input reserve")
    if reserve_out == 0:
        raise InsufficientLiquidityError("output reserve is empty")

    new_reserve_in = add(reserve_in, amount_in)
    new_reserve_out = mul_div(reserve_in, reserve_out, new_reserve_in)
    if new_reserve_out == 0:
        raise InsufficientLiquidityError(
            f"swap of {amount_in} would drain the output reserve ({reserve_out})"
        )
    amount_out = reserve_out - new_reserve_out

    return SwapExactInResult(
        amount_in=amount_in,
        amount_out=amount_out,
        new_reserve_in=new_reserve_in,
        new_reserve_out=new_reserve_out,
        k_before=reserve_in * reserve_out,
        k_after=new_reserve_in * new_reserve_out,
    )


def spot_price(*, reserve_base: int, reserve_quote: int) -> int:
    """
    Instantaneous price of one unit of base, in quote units, scaled by ``SCALE``.

    ``reserve_quote * SCALE // reserve_base``: no smoothing and no minimum
    liquidity, so any earlier swap in the same sequence moves it.
    """
    check_amount(reserve_base, "reserve_base")
    check_amount(reserve_quote, "reserve_quote")
    if reserve_base == 0:
        raise DivisionByZeroError("cannot price against an empty reserve")
    return mul_div(reserve_quote, SCALE, reserve_base)
