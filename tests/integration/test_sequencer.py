from __future__ import annotations

import logging
import threading

import pytest

from spotlend.core.errors import InsufficientCollateralError, ValidationError
from spotlend.core.fixed_point import to_units
from spotlend.integration import build_system
from spotlend.state import NATIVE_ASSET


def _seeded():
    system = build_system()
    system.reserve_pool.deposit(system.token, to_units("3000"))
    system.reserve_pool.deposit(NATIVE_ASSET, to_units("1"))
    system.lending_pool.fund(to_units("5"))
    system.balances.set("alice", NATIVE_ASSET, to_units("3"))
    return system


def test_submit_commits_all_steps() -> None:
    system = _seeded()
    pool = system.reserve_pool
    amount = to_units("1")

    result = system.sequencer.submit([
        lambda: pool.swap(NATIVE_ASSET, amount, sender="alice", value=amount),
        lambda: pool.balance_of(NATIVE_ASSET),
    ])

    assert result.ok
    assert result.results == (to_units("1500"), to_units("2"))
    assert result.error is None
    assert system.sequencer.submitted == 1


def test_failed_step_reverts_earlier_steps(caplog) -> None:
    system = _seeded()
    pool, lp = system.reserve_pool, system.lending_pool
    before = (pool.state, dict(system.balances.get_balances_for_asset(NATIVE_ASSET)), lp.native_reserve)
    amount = to_units("2")

    with caplog.at_level(logging.WARNING, logger="spotlend.integration.sequencer"):
        result = system.sequencer.submit([
            lambda: pool.swap(NATIVE_ASSET, amount, sender="alice", value=amount),
            lambda: lp.borrow_eth("alice", to_units("1")),
        ])

    assert not result.ok
    assert result.failed_index == 1
    assert isinstance(result.error, InsufficientCollateralError)
    assert (pool.state, dict(system.balances.get_balances_for_asset(NATIVE_ASSET)), lp.native_reserve) == before
    assert system.balances.get("alice", system.token) == 0
    assert "reverted at step 1" in caplog.text


def test_submit_or_raise_reraises_original_error() -> None:
    system = _seeded()
    pool = system.reserve_pool
    with pytest.raises(ValidationError):
        system.sequencer.submit_or_raise([
            lambda: pool.deposit(NATIVE_ASSET, to_units("1")),
            lambda: pool.deposit(NATIVE_ASSET, 0),
        ])
    assert pool.balance_native == to_units("1")


def test_non_pool_errors_propagate_after_rollback() -> None:
    system = _seeded()
    pool = system.reserve_pool

    def broken():
        raise KeyError("driver bug")

    with pytest.raises(KeyError):
        system.sequencer.submit([lambda: pool.deposit(NATIVE_ASSET, 1), broken])
    assert pool.balance_native == to_units("1")


def test_atomic_block() -> None:
    system = _seeded()
    pool = system.reserve_pool
    with pytest.raises(ValidationError):
        with system.sequencer.atomic():
            pool.deposit(system.token, to_units("1"))
            assert pool.balance_token == to_units("3001")
            pool.deposit(system.token, -1)
    assert pool.balance_token == to_units("3000")


def test_concurrent_submissions_are_serialized() -> None:
    system = _seeded()
    pool = system.reserve_pool
    system.balances.set("alice", NATIVE_ASSET, 1000)

    def worker():
        for _ in range(50):
            system.sequencer.submit([
                lambda: pool.deposit(NATIVE_ASSET, 1, sender="alice"),
                lambda: pool.deposit(NATIVE_ASSET, 1, sender="alice"),
            ])

    threads = [threading.Thread(target=worker) for _ in range(4)]
    for t in threads:
        t.start()
    for t in threads:
        t.join()

    assert pool.balance_native == to_units("1") + 400
    assert system.balances.get("alice", NATIVE_ASSET) == 600
    assert system.sequencer.submitted == 200


def test_submit_or_raise_returns_step_results() -> None:
    system = _seeded()
    pool = system.reserve_pool
    results = system.sequencer.submit_or_raise([
        lambda: pool.deposit(NATIVE_ASSET, 1),
        lambda: pool.balance_of(NATIVE_ASSET),
    ])
    assert results == (None, to_units("1") + 1)


def test_direct_calls_wait_for_open_sequence_and_survive_its_revert() -> None:
    system = _seeded()
    pool = system.reserve_pool
    entered = threading.Event()
    release = threading.Event()
    errors = []

    def failing_sequence():
        try:
            with system.sequencer.atomic():
                pool.deposit(NATIVE_ASSET, to_units("2"))
                entered.set()
                release.wait(timeout=5)
                raise ValidationError("sequence aborted")
        except ValidationError as exc:
            errors.append(exc)

    def direct_writes():
        pool.deposit(NATIVE_ASSET, to_units("5"))
        system.balances.set("bob", NATIVE_ASSET, 7)

    seq = threading.Thread(target=failing_sequence)
    seq.start()
    assert entered.wait(timeout=5)

    direct = threading.Thread(target=direct_writes)
    direct.start()
    direct.join(timeout=0.2)
    assert direct.is_alive()

    release.set()
    seq.join(timeout=5)
    direct.join(timeout=5)

    assert len(errors) == 1
    assert pool.balance_native == to_units("6")
    assert system.balances.get("bob", NATIVE_ASSET) == 7
    assert system.journal.depth == 0
