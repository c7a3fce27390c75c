"""The two-level segment/page memory used before paging was introduced."""

from __future__ import annotations

import sys
import threading
from dataclasses import dataclass
from typing import TextIO

from .common import ADDRESS_SIZE, NUM_PAGES, OFFSET_LEN, PAGE_LEN, Pcb

RAM_SIZE = 1 << ADDRESS_SIZE


@dataclass
class _PageStat:
    proc: int = 0
    index: int = 0
    next: int = -1


def _offset(addr: int) -> int:
    return addr & ((1 << OFFSET_LEN) - 1)


def _first_level(addr: int) -> int:
    return addr >> (OFFSET_LEN + PAGE_LEN)


def _second_level(addr: int) -> int:
    return (addr >> OFFSET_LEN) - (_first_level(addr) << PAGE_LEN)


def _to_signed_byte(value: int) -> int:
    return value - 256 if value >= 128 else value


class LegacyMemory:
    """Flat RAM addressed through each process's two-level page table.

    This memory keeps no free-page accounting, so it never grants new
    regions; processes reach it only through page-table entries set up
    elsewhere.
    """

    def __init__(self) -> None:
        self._ram = bytearray(RAM_SIZE)
        self._mem_stat = [_PageStat() for _ in range(NUM_PAGES)]
        self._lock = threading.Lock()

    def _translate(self, address: int, proc: Pcb) -> int:
        second = proc.page_table.get(_first_level(address))
        if second is None or _second_level(address) not in second:
            raise ValueError(f"address {address:#x} is not mapped for process {proc.pid}")
        physical = (second[_second_level(address)] << OFFSET_LEN) + _offset(address)
        if not 0 <= physical < RAM_SIZE:
            raise ValueError(f"physical address {physical:#x} out of range")
        return physical

    def alloc(self, size: int, proc: Pcb) -> int:
        """Request ``size`` bytes for ``proc``; always refused by this memory."""
        with self._lock:
            raise MemoryError(f"cannot allocate {size} bytes for process {proc.pid}")

    def free(self, address: int, proc: Pcb) -> None:
        """Release the chain of pages owned by ``proc`` that starts at ``address``.

        Unmapped addresses and pages not owned by ``proc`` are left alone.
        """
        with self._lock:
            second = proc.page_table.get(_first_level(address))
            if second is None:
                return
            frame = second.get(_second_level(address))
            if frame is None:
                return
            while 0 <= frame < NUM_PAGES and self._mem_stat[frame].proc == proc.pid:
                following = self._mem_stat[frame].next
                self._mem_stat[frame] = _PageStat()
                frame = following

    def read(self, address: int, proc: Pcb) -> int:
        """The signed byte at virtual ``address`` of ``proc``."""
        return _to_signed_byte(self._ram[self._translate(address, proc)])

    def write(self, address: int, proc: Pcb, data: int) -> None:
        """Store the low byte of ``data`` at virtual ``address`` of ``proc``."""
        self._ram[self._translate(address, proc)] = data & 0xFF

    def dump(self, out: TextIO | None = None) -> None:
        """Print every page owned by a process and its non-zero bytes."""
        out = out or sys.stdout
        for page, stat in enumerate(self._mem_stat):
            if stat.proc == 0:
                continue
            start = page << OFFSET_LEN
            end = ((page + 1) << OFFSET_LEN) - 1
            print(
                f"{page:03d}: {start:05x}-{end:05x} - PID: {stat.proc:02d} "
                f"(idx {stat.index:03d}, nxt: {stat.next:03d})",
                file=out,
            )
            for addr in range(start, end):
                if self._ram[addr]:
                    print(f"\t{addr:05x}: {self._ram[addr]:02x}", file=out)