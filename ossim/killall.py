"""The kill-all system call: terminate every process with a given program name."""

from __future__ import annotations

from collections.abc import Iterable
from contextlib import suppress

from .common import Pcb, SyscallRegs
from .libmem import AllocationError, libfree, libread

_MAX_NAME_LEN = 100
_END_OF_NAME = -1


def extract_proc_name(path: str) -> str:
    """The part of ``path`` after its last slash."""
    return path.rsplit("/", 1)[-1]


def _read_name(caller: Pcb, memrg: int) -> str:
    raw = bytearray()
    for offset in range(_MAX_NAME_LEN - 1):
        data = libread(caller, memrg, offset)
        if data == _END_OF_NAME:
            break
        raw.append(data & 0xFF)
    return raw.decode("latin-1").split("\0", 1)[0]


def _matches(proc: Pcb | None, name: str) -> bool:
    return proc is not None and bool(proc.path) and extract_proc_name(proc.path) == name


def sys_killall(caller: Pcb, regs: SyscallRegs) -> int:
    """Remove every process whose program name is stored in region ``regs.a1``.

    The name is read byte by byte from the caller's region until a byte of
    value -1. Matching processes are dropped from the running list, where
    their copy of the region is freed, and from every ready queue.
    """
    memrg = regs.a1
    name = _read_name(caller, memrg)
    print(f'The procname retrieved from memregionid {memrg} is "{name}"')

    running_list = caller.running_list
    if running_list is not None:
        for proc in running_list.retain(lambda p: not _matches(p, name)):
            print(f"Killing process {proc.path} (pid={proc.pid})")
            with suppress(AllocationError):
                libfree(proc, memrg)

    queues: Iterable | None = caller.mlq_ready_queue
    if queues is not None:
        for queue in queues:
            for proc in queue.retain(lambda p: not _matches(p, name)):
                print(f"Killing process mlq {proc.path} (pid={proc.pid})")

    return 0