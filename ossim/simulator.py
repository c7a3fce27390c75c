"""Configuration reading and the multi-CPU operating-system simulation."""

from __future__ import annotations

import os
import sys
import threading
from dataclasses import dataclass, field
from pathlib import Path
from typing import TextIO

from .common import MAX_PRIO, PAGING_MAX_MMSWP, Opcode, Pcb
from .libmem import AllocationError, liballoc, libfree, libread, libwrite
from .loader import Loader, LoaderError
from .memphy import MemPhy, MemPhyError
from .mm import OutOfMemoryError, init_mm
from .scheduler import Scheduler
from .syscall import libsyscall
from .timer import Timer, TimerEvent

PROC_DIR = "proc"
INPUT_DIR = "input"

_EXECUTION_ERRORS = (
    AllocationError,
    OutOfMemoryError,
    MemPhyError,
    ValueError,
    IndexError,
)


class ConfigError(Exception):
    """Raised when a simulation configuration is missing or malformed."""


@dataclass(frozen=True)
class ProcessSpec:
    """A process to load: when, from which description, at what priority."""

    start_time: int
    name: str
    prio: int


@dataclass
class Config:
    """Simulation parameters."""

    time_slot: int
    num_cpus: int
    memramsz: int
    memswpsz: list[int]
    processes: list[ProcessSpec] = field(default_factory=list)


def parse_config(text: str) -> Config:
    """Parse a configuration.

    The format is ``time_slot num_cpus num_processes``, then the RAM size and
    four swap sizes, then one ``start_time name priority`` line per process.
    """
    tokens = iter(text.split())

    def word(what: str) -> str:
        tok = next(tokens, None)
        if tok is None:
            raise ConfigError(f"missing {what}")
        return tok

    def integer(what: str) -> int:
        tok = word(what)
        try:
            return int(tok)
        except ValueError:
            raise ConfigError(f"expected a number for {what}, found {tok!r}") from None

    time_slot = integer("time slot")
    num_cpus = integer("number of CPUs")
    num_processes = integer("number of processes")
    memramsz = integer("RAM size")
    memswpsz = [integer(f"swap {index} size") for index in range(PAGING_MAX_MMSWP)]

    processes = []
    for index in range(num_processes):
        start_time = integer(f"start time of process {index}")
        name = word(f"name of process {index}")
        prio = integer(f"priority of process {index}")
        if not 0 <= prio < MAX_PRIO:
            raise ConfigError(f"priority {prio} of process {name} out of range")
        processes.append(ProcessSpec(start_time, name, prio))

    return Config(time_slot, num_cpus, memramsz, memswpsz, processes)


def read_config(path: str | os.PathLike) -> Config:
    """Read and parse the configuration file at ``path``."""
    try:
        text = Path(path).read_text(encoding="utf-8")
    except OSError:
        raise ConfigError(f"Cannot find configure file at {os.fspath(path)}") from None
    return parse_config(text)


def _execute(proc: Pcb) -> bool:
    """Run the next instruction of ``proc``; False when none is left."""
    if proc.pc >= len(proc.code):
        return False
    ins = proc.code[proc.pc]
    proc.pc += 1
    a0, a1, a2, a3 = ins.args
    if ins.opcode is Opcode.ALLOC:
        liballoc(proc, a0, a1)
    elif ins.opcode is Opcode.FREE:
        libfree(proc, a0)
    elif ins.opcode is Opcode.READ:
        libread(proc, a0, a1)
    elif ins.opcode is Opcode.WRITE:
        libwrite(proc, a0, a1, a2)
    elif ins.opcode is Opcode.SYSCALL:
        libsyscall(proc, a0, a1, a2, a3)
    return True


class Simulator:
    """Runs the configured processes on simulated CPUs in lock-stepped slots."""

    def __init__(
        self,
        config: Config,
        base_dir: str | os.PathLike = INPUT_DIR,
        out: TextIO | None = None,
    ) -> None:
        self.config = config
        self.base_dir = Path(base_dir)
        self._out = out or sys.stdout
        self.scheduler = Scheduler()
        self.mram = MemPhy(config.memramsz, True)
        self.mswp = [MemPhy(size, True) for size in config.memswpsz]
        self.finished: list[int] = []
        self._finished_lock = threading.Lock()
        self._done = threading.Event()
        self._loader = Loader()

    def _say(self, text: str) -> None:
        print(text, file=self._out)

    def run(self) -> list[int]:
        """Run the simulation to the end; return PIDs in the order they finished."""
        procs = [
            self._loader.load(self.base_dir / PROC_DIR / spec.name)
            for spec in self.config.processes
        ]

        timer = Timer(self._out)
        cpu_events = [timer.attach_event() for _ in range(self.config.num_cpus)]
        ld_event = timer.attach_event()
        timer.start()

        threads = [
            threading.Thread(
                target=self._load_routine, args=(timer, ld_event, procs), name="loader"
            )
        ]
        threads += [
            threading.Thread(
                target=self._cpu_routine, args=(cpu_id, event), name=f"cpu-{cpu_id}"
            )
            for cpu_id, event in enumerate(cpu_events)
        ]
        for thread in threads:
            thread.start()
        for thread in threads:
            thread.join()
        timer.stop()
        return list(self.finished)

    def _load_routine(self, timer: Timer, event: TimerEvent, procs: list[Pcb]) -> None:
        try:
            self._say("ld_routine")
            active_mswp = self.mswp[0] if self.mswp else None
            for spec, proc in zip(self.config.processes, procs):
                proc.prio = spec.prio
                while timer.current_time() < spec.start_time:
                    event.next_slot()
                proc.mm = init_mm()
                proc.mram = self.mram
                proc.mswp = self.mswp
                proc.active_mswp = active_mswp
                proc.active_mswp_id = 0
                self._say(
                    f"\tLoaded a process at {proc.path}, PID: {proc.pid} PRIO: {spec.prio}"
                )
                self.scheduler.add_proc(proc)
                event.next_slot()
        finally:
            self._done.set()
            event.detach()

    def _cpu_routine(self, cpu_id: int, event: TimerEvent) -> None:
        try:
            self._cpu_loop(cpu_id, event)
        finally:
            event.detach()

    def _cpu_loop(self, cpu_id: int, event: TimerEvent) -> None:
        sched = self.scheduler
        time_left = 0
        proc: Pcb | None = None
        while True:
            if proc is None:
                proc = sched.get_proc()
                if proc is None and not self._done.is_set():
                    event.next_slot()
                    continue
            elif proc.pc == len(proc.code):
                self._say(f"\tCPU {cpu_id}: Processed {proc.pid:2d} has finished")
                with self._finished_lock:
                    self.finished.append(proc.pid)
                proc = sched.get_proc()
                time_left = 0
            elif time_left == 0:
                self._say(f"\tCPU {cpu_id}: Put process {proc.pid:2d} to run queue")
                sched.put_proc(proc)
                proc = sched.get_proc()

            if proc is None and self._done.is_set():
                self._say(f"\tCPU {cpu_id} stopped")
                return
            if proc is None:
                event.next_slot()
                continue
            if time_left == 0:
                self._say(f"\tCPU {cpu_id}: Dispatched process {proc.pid:2d}")
                time_left = self.config.time_slot

            try:
                _execute(proc)
            except _EXECUTION_ERRORS:
                # A failing instruction is skipped, as the CPU ignores its status.
                pass
            time_left -= 1
            event.next_slot()


def main(argv: list[str] | None = None) -> int:
    """Run the simulation described by ``input/<config>``."""
    args = sys.argv[1:] if argv is None else list(argv)
    if len(args) != 1:
        print("Usage: ossim [path to configure file]")
        return 1
    base = Path(INPUT_DIR)
    try:
        config = read_config(base / args[0])
        Simulator(config, base).run()
    except (ConfigError, LoaderError) as exc:
        print(exc)
        return 1
    return 0


if __name__ == "__main__":
    sys.exit(main())