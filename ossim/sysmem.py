"""The memory-map system call."""

from __future__ import annotations

from contextlib import suppress
from enum import IntEnum

from .common import Pcb, SyscallRegs
from .mm import OutOfMemoryError, inc_vma_limit, mm_swap_page


class MemOp(IntEnum):
    """Operations of the memory-map system call, passed in ``a1``."""

    MAP = 1
    INC = 2
    SWP = 3
    IO_READ = 4
    IO_WRITE = 5


def sys_memmap(caller: Pcb, regs: SyscallRegs) -> int:
    """Run the memory operation in ``regs.a1`` for ``caller``; always returns 0.

    ``INC`` grows area ``a2`` by ``a3`` bytes, ``SWP`` copies RAM frame ``a2``
    to swap frame ``a3``, ``IO_READ`` loads the byte at ``a2`` into ``a3`` and
    ``IO_WRITE`` stores ``a3`` at ``a2``.
    """
    try:
        memop = MemOp(regs.a1)
    except ValueError:
        print(f"Memop code: {regs.a1}")
        return 0

    if memop is MemOp.INC:
        # A failed growth is not reported back to the caller.
        with suppress(OutOfMemoryError):
            inc_vma_limit(caller, regs.a2, regs.a3)
    elif memop is MemOp.SWP:
        mm_swap_page(caller, regs.a2, regs.a3)
    elif memop is MemOp.IO_READ:
        regs.a3 = caller.mram.read(regs.a2)
    elif memop is MemOp.IO_WRITE:
        caller.mram.write(regs.a2, regs.a3)
    return 0