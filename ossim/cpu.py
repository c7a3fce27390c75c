"""Execution of one instruction of a process."""

from __future__ import annotations

from .common import Opcode, Pcb
from .libmem import liballoc, libfree, libread, libwrite
from .syscall import libsyscall


def calc(proc: Pcb) -> int:
    """A pure computation step on the CPU; returns its status, always 0."""
    return proc.pid & 0


def run(proc: Pcb) -> bool:
    """Execute the next instruction of ``proc``.

    Returns False when the program counter is past the last instruction,
    True after an instruction ran. Memory errors propagate.
    """
    if proc.pc >= len(proc.code):
        return False
    ins = proc.code[proc.pc]
    proc.pc += 1
    a0, a1, a2, a3 = ins.args

    if ins.opcode is Opcode.CALC:
        calc(proc)
    elif ins.opcode is Opcode.ALLOC:
        liballoc(proc, a0, a1)
    elif ins.opcode is Opcode.FREE:
        libfree(proc, a0)
    elif ins.opcode is Opcode.READ:
        # The value read is not stored back into a register.
        libread(proc, a0, a1)
    elif ins.opcode is Opcode.WRITE:
        libwrite(proc, a0, a1, a2)
    elif ins.opcode is Opcode.SYSCALL:
        libsyscall(proc, a0, a1, a2, a3)
    else:
        raise ValueError(f"unknown opcode {ins.opcode!r}")
    return True