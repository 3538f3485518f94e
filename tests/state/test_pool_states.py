from __future__ import annotations

import pytest

from spotlend.core.errors import AmountOverflowError
from spotlend.core.fixed_point import MAX_AMOUNT
from spotlend.state import LendingState, ReserveState


def test_reserve_state_defaults_and_bounds() -> None:
    s = ReserveState()
    assert (s.balance_native, s.balance_token) == (0, 0)
    assert ReserveState(3, 5).get_constant_product() == 15
    with pytest.raises(AmountOverflowError):
        ReserveState(balance_native=-1)
    with pytest.raises(AmountOverflowError):
        ReserveState(balance_token=MAX_AMOUNT + 1)


def test_lending_state_is_copy_on_write() -> None:
    source = {"alice": 5}
    s = LendingState(native_reserve=10, deposits=source)
    source["alice"] = 99
    assert s.deposit_of("alice") == 5
    with pytest.raises(TypeError):
        s.deposits["alice"] = 1  # type: ignore[index]

    s2 = s.with_deposit("bob", 7)
    assert s.deposit_of("bob") == 0
    assert s2.deposit_of("bob") == 7
    assert s2.deposit_of("alice") == 5

    s3 = s2.with_borrow("bob", 4, native_reserve=6)
    assert (s3.borrow_of("bob"), s3.native_reserve) == (4, 6)
    assert (s2.borrow_of("bob"), s2.native_reserve) == (0, 10)


def test_lending_state_derived_copies_check_changed_entry() -> None:
    s = LendingState(native_reserve=10, deposits={"alice": 5}, borrows={"alice": 1})
    with pytest.raises(AmountOverflowError):
        s.with_deposit("bob", -1)
    with pytest.raises(AmountOverflowError):
        s.with_borrow("bob", 1, native_reserve=-1)
    with pytest.raises(AmountOverflowError):
        s.with_native_reserve(MAX_AMOUNT + 1)

    funded = s.with_native_reserve(25)
    assert funded.native_reserve == 25
    assert funded.deposits is s.deposits and funded.borrows is s.borrows
    with pytest.raises(TypeError):
        funded.deposits["alice"] = 0  # type: ignore[index]

    s2 = s.with_deposit("bob", 3)
    assert s2.borrows is s.borrows
    with pytest.raises(TypeError):
        s2.deposits["bob"] = 0  # type: ignore[index]


def test_lending_state_compares_by_value_and_is_unhashable() -> None:
    a = LendingState(native_reserve=1, deposits={"alice": 2})
    b = LendingState().with_native_reserve(1).with_deposit("alice", 2)
    assert a == b
    assert a != b.with_borrow("alice", 1, native_reserve=0)
    with pytest.raises(TypeError):
        hash(a)
