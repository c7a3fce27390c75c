"""System call table and dispatch."""

from __future__ import annotations

from collections.abc import Callable

from .common import Pcb, SyscallRegs
from .killall import sys_killall
from .sysmem import sys_memmap

SyscallHandler = Callable[[Pcb, SyscallRegs], int]


def sys_ni_syscall(caller: Pcb, regs: SyscallRegs) -> int:
    """Handler for unassigned call numbers: marks the call as completed."""
    regs.flags = 0
    return regs.flags


def sys_listsyscall(caller: Pcb, regs: SyscallRegs) -> int:
    """Print the name of every system call, one per line."""
    for name in syscall_names():
        print(name)
    return 0


_SYSCALL_TABLE: dict[int, tuple[str, SyscallHandler]] = {
    0: ("sys_listsyscall", sys_listsyscall),
    17: ("sys_memmap", sys_memmap),
    101: ("sys_killall", sys_killall),
}


def syscall_names() -> list[str]:
    """Table entries formatted as ``<number>-<name>`` in table order."""
    return [f"{nr}-{name}" for nr, (name, _) in _SYSCALL_TABLE.items()]


def syscall(caller: Pcb, nr: int, regs: SyscallRegs) -> int:
    """Run system call ``nr``; unknown numbers go to the no-op handler."""
    _, handler = _SYSCALL_TABLE.get(nr, ("sys_ni_syscall", sys_ni_syscall))
    return handler(caller, regs)


def libsyscall(caller: Pcb, syscall_idx: int, a1: int, a2: int, a3: int) -> int:
    """Issue system call ``syscall_idx`` with the first three argument registers."""
    return syscall(caller, syscall_idx, SyscallRegs(a1=a1, a2=a2, a3=a3))