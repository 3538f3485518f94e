from __future__ import annotations

import pytest

from spotlend.core.cpmm import spot_price, swap_exact_in
from spotlend.core.errors import DivisionByZeroError, InsufficientLiquidityError, ValidationError
from spotlend.core.fixed_point import SCALE


def test_swap_exact_in_matches_reference_quote() -> None:
    # 1 native / 3000 token pool, 0.01 native in.
    res = swap_exact_in(reserve_in=SCALE, reserve_out=3000 * SCALE, amount_in=10**16)

    assert res.new_reserve_in == 1_010_000_000_000_000_000
    assert res.new_reserve_out == 2_970_297_029_702_970_297_029
    assert res.amount_out == 29_702_970_297_029_702_971
    assert res.amount_out == 3000 * SCALE - (SCALE * 3000 * SCALE) // (SCALE + 10**16)


def test_swap_exact_in_exact_division() -> None:
    res = swap_exact_in(reserve_in=SCALE, reserve_out=3000 * SCALE, amount_in=2 * SCALE)
    assert res.amount_out == 2000 * SCALE
    assert (res.new_reserve_in, res.new_reserve_out) == (3 * SCALE, 1000 * SCALE)
    assert res.k_after == res.k_before


def test_floor_rounding_loss_is_below_one_out_unit_per_in_unit() -> None:
    res = swap_exact_in(reserve_in=7, reserve_out=11, amount_in=3)
    # floor(77 / 10) = 7 -> 4 out, k goes 77 -> 70.
    assert res.amount_out == 4
    assert res.k_after <= res.k_before
    assert res.k_before - res.k_after < res.new_reserve_in


def test_swap_rejects_empty_input_reserve() -> None:
    with pytest.raises(DivisionByZeroError):
        swap_exact_in(reserve_in=0, reserve_out=100, amount_in=1)


def test_swap_rejects_empty_output_reserve() -> None:
    with pytest.raises(InsufficientLiquidityError):
        swap_exact_in(reserve_in=100, reserve_out=0, amount_in=1)


def test_swap_refuses_to_drain_output_reserve() -> None:
    # floor(1 * 1 / 6) == 0 would pay out the whole reserve.
    with pytest.raises(InsufficientLiquidityError):
        swap_exact_in(reserve_in=1, reserve_out=1, amount_in=5)


@pytest.mark.parametrize("amount_in", [0, -1])
def test_swap_rejects_non_positive_amount(amount_in: int) -> None:
    with pytest.raises(ValidationError):
        swap_exact_in(reserve_in=10, reserve_out=10, amount_in=amount_in)


def test_tiny_swap_still_pays_one_unit() -> None:
    # floor(3000 * 1e18 / (1e18 + 1)) == 2999: the floor hands the dust to the trader.
    res = swap_exact_in(reserve_in=SCALE, reserve_out=3000, amount_in=1)
    assert res.amount_out == 1
    assert res.new_reserve_out == 2999


def test_spot_price() -> None:
    assert spot_price(reserve_base=SCALE, reserve_quote=3000 * SCALE) == 3000 * SCALE
    assert spot_price(reserve_base=3000 * SCALE, reserve_quote=SCALE) == 333_333_333_333_333
    with pytest.raises(DivisionByZeroError):
        spot_price(reserve_base=0, reserve_quote=1)
