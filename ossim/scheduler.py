"""Multi-level priority queue scheduler."""

from __future__ import annotations

import threading

from .common import MAX_PRIO, Pcb
from .queue import ProcessQueue


class Scheduler:
    """Hands out ready processes by priority.

    Each level ``prio`` may serve ``MAX_PRIO - prio`` processes in a round.
    When no level with budget left has a ready process, every budget is
    refilled.
    """

    def __init__(self) -> None:
        self.ready_queue = ProcessQueue()
        self.run_queue = ProcessQueue()
        self.running_list = ProcessQueue()
        self.mlq_ready_queue = [ProcessQueue() for _ in range(MAX_PRIO)]
        self._slots = self._full_slots()
        self._lock = threading.Lock()

    @staticmethod
    def _full_slots() -> list[int]:
        return [MAX_PRIO - prio for prio in range(MAX_PRIO)]

    def queue_empty(self) -> bool:
        """True when no queue holds a process."""
        with self._lock:
            return (
                all(len(queue) == 0 for queue in self.mlq_ready_queue)
                and len(self.ready_queue) == 0
                and len(self.run_queue) == 0
            )

    def _take(self) -> Pcb | None:
        for prio, queue in enumerate(self.mlq_ready_queue):
            if self._slots[prio] > 0 and len(queue):
                self._slots[prio] -= 1
                return queue.dequeue()
        return None

    def get_proc(self) -> Pcb | None:
        """Remove and return the next process to run, or None."""
        with self._lock:
            proc = self._take()
            if proc is None:
                self._slots = self._full_slots()
                proc = self._take()
            return proc

    def _enqueue(self, proc: Pcb) -> None:
        if not 0 <= proc.prio < MAX_PRIO:
            raise ValueError(f"priority {proc.prio} out of range 0..{MAX_PRIO - 1}")
        proc.ready_queue = self.ready_queue
        proc.mlq_ready_queue = self.mlq_ready_queue
        proc.running_list = self.running_list
        with self._lock:
            self.mlq_ready_queue[proc.prio].enqueue(proc)

    def put_proc(self, proc: Pcb) -> None:
        """Return a preempted process to its ready queue."""
        self._enqueue(proc)

    def add_proc(self, proc: Pcb) -> None:
        """Add a newly loaded process to its ready queue."""
        self._enqueue(proc)