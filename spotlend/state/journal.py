"""
Undo journal for all-or-nothing execution.

Every mutable table and pool shares one ``Journal``. Writers call ``record()``
with a closure that restores the value they are about to overwrite; the
closures are only kept while at least one ``atomic()`` block is open.

``atomic()`` blocks nest like savepoints: an exception unwinds the writes made
inside the innermost block and propagates; the outermost block discards the
log on exit. A pool operation is one block, and a sequencer submission is an
outer block around many of them.

An open block holds the journal's re-entrant lock, so the undo log and the
depth counter only ever belong to one thread. A write from another thread
waits until the outermost block has committed or reverted.
"""

from __future__ import annotations

import threading
from contextlib import contextmanager
from typing import Callable, Iterator, List


UndoFn = Callable[[], None]


class Journal:
    """Shared undo log."""

    def __init__(self) -> None:
        self._undo: List[UndoFn] = []
        self._depth = 0
        self._lock = threading.RLock()

    @property
    def lock(self) -> threading.RLock:
        """Lock held by every open atomic block; take it for multi-field reads."""
        return self._lock

    @property
    def depth(self) -> int:
        """Number of currently open atomic blocks."""
        return self._depth

    @property
    def in_atomic(self) -> bool:
        return self._depth > 0

    def record(self, undo: UndoFn) -> None:
        """Register ``undo`` to run if the enclosing atomic block fails."""
        if self._depth > 0:
            self._undo.append(undo)

    @contextmanager
    def atomic(self) -> Iterator[None]:
        with self._lock:
            mark = len(self._undo)
            self._depth += 1
            try:
                yield
            except BaseException:
                self._revert_to(mark)
                raise
            finally:
                self._depth -= 1
                if self._depth == 0:
                    self._undo.clear()

    def _revert_to(self, mark: int) -> None:
        while len(self._undo) > mark:
            undo = self._undo.pop()
            undo()

    def __repr__(self) -> str:
        return f"Journal(depth={self._depth}, pending={len(self._undo)})"
