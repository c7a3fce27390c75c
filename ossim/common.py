"""Process, instruction and memory-management records shared by the simulator."""

from __future__ import annotations

from collections import deque
from dataclasses import dataclass, field
from enum import IntEnum
from typing import Any

from .pte import PAGING_MAX_PGN

ADDRESS_SIZE = 20
OFFSET_LEN = 10
FIRST_LV_LEN = 5
SECOND_LV_LEN = 5
SEGMENT_LEN = FIRST_LV_LEN
PAGE_LEN = SECOND_LV_LEN
NUM_PAGES = 1 << (ADDRESS_SIZE - OFFSET_LEN)
PAGE_SIZE = 1 << OFFSET_LEN

MAX_PRIO = 140
PAGING_MAX_MMSWP = 4
PAGING_MAX_SYMTBL_SZ = 30
NUM_REGS = 10


class Opcode(IntEnum):
    """Instruction kinds understood by the CPU."""

    CALC = 0
    ALLOC = 1
    FREE = 2
    READ = 3
    WRITE = 4
    SYSCALL = 5


@dataclass
class Instruction:
    """One instruction with up to four integer arguments."""

    opcode: Opcode
    args: tuple[int, ...] = (0, 0, 0, 0)

    def __post_init__(self) -> None:
        args = tuple(self.args)[:4]
        self.args = args + (0,) * (4 - len(args))


@dataclass
class VmRegion:
    """A contiguous range of virtual addresses."""

    start: int = 0
    end: int = 0
    vmaid: int = 0

    def is_empty(self) -> bool:
        """True for the unused (0, 0) region."""
        return self.start == 0 and self.end == 0


@dataclass
class VmArea:
    """A virtual memory area with its break pointer and free regions."""

    vm_id: int = 0
    vm_start: int = 0
    vm_end: int = 0
    sbrk: int = 0
    free_regions: list[VmRegion] = field(default_factory=list)


@dataclass
class MmStruct:
    """Per-process paging state."""

    pgd: list[int] = field(default_factory=lambda: [0] * PAGING_MAX_PGN)
    mmap: list[VmArea] = field(default_factory=list)
    symrgtbl: list[VmRegion] = field(
        default_factory=lambda: [VmRegion() for _ in range(PAGING_MAX_SYMTBL_SZ)]
    )
    # Most recently mapped page first; the victim is taken from the right end.
    fifo_pgn: deque[int] = field(default_factory=deque)

    def area(self, vmaid: int) -> VmArea | None:
        """First area, in list order, whose id is at least ``vmaid``."""
        return next((vma for vma in self.mmap if vma.vm_id >= vmaid), None)


@dataclass
class SyscallRegs:
    """Register set passed to a system call."""

    a1: int = 0
    a2: int = 0
    a3: int = 0
    a4: int = 0
    a5: int = 0
    a6: int = 0
    orig_ax: int = 0
    flags: int = 0


@dataclass(eq=False)
class Pcb:
    """Process control block."""

    pid: int = 0
    priority: int = 0
    path: str = ""
    code: list[Instruction] = field(default_factory=list)
    regs: list[int] = field(default_factory=lambda: [0] * NUM_REGS)
    pc: int = 0
    ready_queue: Any = None
    running_list: Any = None
    mlq_ready_queue: Any = None
    prio: int = 0
    mm: MmStruct | None = None
    mram: Any = None
    mswp: list[Any] = field(default_factory=list)
    active_mswp: Any = None
    active_mswp_id: int = 0
    # first-level index -> {second-level index: physical page index}
    page_table: dict[int, dict[int, int]] = field(default_factory=dict)
    bp: int = PAGE_SIZE