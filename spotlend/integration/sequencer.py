"""
Serial, all-or-nothing execution of operation sequences.

This is the driving shell around the pools: it stands in for the execution
environment that orders calls and reverts a whole transaction on failure.
Pools never import it.

``submit()`` returns a ``SequenceResult`` and never raises for pool errors;
``submit_or_raise()`` re-raises the failing step's exception after rollback.
"""

from __future__ import annotations

import logging
from contextlib import contextmanager
from dataclasses import dataclass
from typing import Any, Callable, Iterator, Optional, Sequence, Tuple

from ..core.errors import SpotLendError
from ..state.journal import Journal


logger = logging.getLogger(__name__)

Operation = Callable[[], Any]


class _StepFailed(Exception):
    """Carries a failing step out of the journal block so it reverts."""

    def __init__(self, index: int, error: SpotLendError) -> None:
        self.index = index
        self.error = error
        super().__init__(f"step {index} failed: {type(error).__name__}: {error}")


@dataclass(frozen=True)
class SequenceResult:
    """Outcome of one submitted sequence."""

    ok: bool
    results: Tuple[Any, ...] = ()
    error: Optional[SpotLendError] = None
    failed_index: Optional[int] = None


class Sequencer:
    """
    Executes submitted sequences one at a time against shared pool state.

    Submissions hold the journal lock, so they run one at a time even when
    made from several threads, and direct pool calls from other threads wait
    for the submission in progress. Nested ``atomic()`` use from within an
    operation is allowed.
    """

    def __init__(self, journal: Journal) -> None:
        self._journal = journal
        self._submitted = 0

    @property
    def submitted(self) -> int:
        """Number of sequences that have been submitted (committed or reverted)."""
        return self._submitted

    @contextmanager
    def atomic(self) -> Iterator[None]:
        """Run a block as one sequence: every write in it reverts if it raises."""
        with self._journal.atomic():
            yield

    def submit(self, operations: Sequence[Operation]) -> SequenceResult:
        """Run ``operations`` in order as one atomic unit."""
        with self._journal.lock:
            self._submitted += 1
            seq_no = self._submitted
            results = []
            try:
                with self._journal.atomic():
                    for index, op in enumerate(operations):
                        try:
                            results.append(op())
                        except SpotLendError as exc:
                            raise _StepFailed(index, exc) from exc
            except _StepFailed as exc:
                logger.warning("sequence %d reverted at step %d: %s", seq_no, exc.index, exc.error)
                return SequenceResult(ok=False, error=exc.error, failed_index=exc.index)
            logger.info("sequence %d committed (%d steps)", seq_no, len(results))
            return SequenceResult(ok=True, results=tuple(results))

    def submit_or_raise(self, operations: Sequence[Operation]) -> Tuple[Any, ...]:
        """Like ``submit()`` but re-raises the failing step's error.

        Raises:
            SpotLendError: the original exception of the failing step, after
                every earlier step of the sequence has been reverted.
        """
        result = self.submit(operations)
        if result.error is not None:
            raise result.error
        return result.results
