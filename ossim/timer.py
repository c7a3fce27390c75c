"""Slot-based timer that keeps a set of worker threads in lock step."""

from __future__ import annotations

import sys
import threading
from typing import TextIO


class TimerError(Exception):
    """Raised for misuse of the timer."""


class TimerEvent:
    """A participant that reports the end of each time slot to the timer."""

    def __init__(self) -> None:
        self._cond = threading.Condition()
        self._done = False
        self._finished = False

    def next_slot(self) -> None:
        """Report this slot as done and block until the next slot starts."""
        with self._cond:
            self._done = True
            self._cond.notify_all()
            self._cond.wait_for(lambda: not self._done)

    def detach(self) -> None:
        """Tell the timer this participant has finished for good."""
        with self._cond:
            self._finished = True
            self._cond.notify_all()


class Timer:
    """Advances time once every attached event has finished the current slot."""

    def __init__(self, out: TextIO | None = None) -> None:
        self._out = out or sys.stdout
        self._events: list[TimerEvent] = []
        self._time = 0
        self._started = False
        self._stop_requested = False
        self._thread: threading.Thread | None = None

    def attach_event(self) -> TimerEvent:
        """Register a new participant; only allowed before the timer starts."""
        if self._started:
            raise TimerError("cannot attach an event to a running timer")
        event = TimerEvent()
        self._events.insert(0, event)
        return event

    def start(self) -> None:
        """Start the timer thread."""
        if self._started:
            raise TimerError("timer already started")
        self._started = True
        self._thread = threading.Thread(target=self._run, name="timer", daemon=True)
        self._thread.start()

    def stop(self) -> None:
        """Ask the timer to stop, wait for it and release all events."""
        self._stop_requested = True
        if self._thread is not None:
            self._thread.join()
            self._thread = None
        self._events.clear()

    def current_time(self) -> int:
        """The number of completed slots."""
        return self._time

    def _run(self) -> None:
        while not self._stop_requested:
            print(f"Time slot {self._time:3d}", file=self._out)
            events = list(self._events)
            finished = 0
            for event in events:
                with event._cond:
                    event._cond.wait_for(lambda ev=event: ev._done or ev._finished)
                    if event._finished:
                        finished += 1
            self._time += 1
            for event in events:
                with event._cond:
                    event._done = False
                    event._cond.notify_all()
            if finished == len(events):
                break