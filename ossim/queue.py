"""Bounded process queue ordered by priority on removal."""

from __future__ import annotations

from collections.abc import Callable, Iterator
from typing import Any

MAX_QUEUE_SIZE = 10


class ProcessQueue:
    """Holds up to ``capacity`` processes; dequeue returns the lowest ``prio``."""

    def __init__(self, capacity: int = MAX_QUEUE_SIZE) -> None:
        self.capacity = capacity
        self._procs: list[Any] = []

    def enqueue(self, proc: Any) -> None:
        """Append ``proc``; ignored when it is None or the queue is full."""
        if proc is not None and len(self._procs) < self.capacity:
            self._procs.append(proc)

    def dequeue(self) -> Any:
        """Remove and return the earliest process with the lowest ``prio``, or None."""
        if not self._procs:
            return None
        idx, proc = min(enumerate(self._procs), key=lambda item: item[1].prio)
        del self._procs[idx]
        return proc

    def __len__(self) -> int:
        return len(self._procs)

    def __iter__(self) -> Iterator[Any]:
        return iter(list(self._procs))

    def retain(self, keep: Callable[[Any], bool]) -> list[Any]:
        """Keep only processes for which ``keep`` holds; return the removed ones."""
        kept = [proc for proc in self._procs if keep(proc)]
        removed = [proc for proc in self._procs if not keep(proc)]
        self._procs = kept
        return removed