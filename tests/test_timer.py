import io
import threading

import pytest

from ossim.timer import Timer, TimerError


def _worker(event, slots):
    for _ in range(slots):
        event.next_slot()
    event.detach()


def _run_workers(timer, counts):
    events = [timer.attach_event() for _ in counts]
    timer.start()
    threads = [
        threading.Thread(target=_worker, args=(event, n), daemon=True)
        for event, n in zip(events, counts)
    ]
    for thread in threads:
        thread.start()
    for thread in threads:
        thread.join(timeout=10)
    return threads


def test_no_events_runs_one_slot():
    out = io.StringIO()
    timer = Timer(out)
    timer.start()
    timer.stop()
    assert out.getvalue().splitlines() == ["Time slot   0"]
    assert timer.current_time() == 1


def test_single_worker_advances_time():
    out = io.StringIO()
    timer = Timer(out)
    threads = _run_workers(timer, [3])
    assert not any(t.is_alive() for t in threads)
    timer.stop()
    assert timer.current_time() == 3 + 1
    assert len(out.getvalue().splitlines()) == timer.current_time()


def test_time_follows_longest_worker():
    out = io.StringIO()
    timer = Timer(out)
    counts = [2, 5, 1]
    threads = _run_workers(timer, counts)
    assert not any(t.is_alive() for t in threads)
    timer.stop()
    assert timer.current_time() == max(counts) + 1


def test_slots_printed_in_order():
    out = io.StringIO()
    timer = Timer(out)
    _run_workers(timer, [4])
    timer.stop()
    lines = out.getvalue().splitlines()
    assert lines == [f"Time slot {n:3d}" for n in range(len(lines))]


def test_attach_after_start_rejected():
    timer = Timer(io.StringIO())
    timer.start()
    with pytest.raises(TimerError):
        timer.attach_event()
    timer.stop()


def test_double_start_rejected():
    timer = Timer(io.StringIO())
    timer.start()
    with pytest.raises(TimerError):
        timer.start()
    timer.stop()