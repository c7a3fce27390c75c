"""Physical memory devices (RAM and swap) divided into frames."""

from __future__ import annotations

import sys
from collections import deque
from typing import TextIO

from .pte import PAGING_PAGESZ


class MemPhyError(Exception):
    """Raised when a physical memory device cannot serve a request."""


def _to_signed_byte(value: int) -> int:
    return value - 256 if value >= 128 else value


class MemPhy:
    """A byte-addressable device with a list of free frames."""

    def __init__(self, max_size: int, random_access: bool = True) -> None:
        self.max_size = max_size
        self.storage = bytearray(max(max_size, 0))
        self.random_access = bool(random_access)
        self.cursor = 0
        self.free_frames: deque[int] = deque()
        if max_size // PAGING_PAGESZ > 0:
            self.format(PAGING_PAGESZ)

    def format(self, pagesz: int) -> None:
        """Rebuild the free frame list for frames of ``pagesz`` bytes."""
        numfp = self.max_size // pagesz
        if numfp <= 0:
            raise MemPhyError(f"device of {self.max_size} bytes holds no frame of {pagesz}")
        self.free_frames = deque(range(numfp))

    def move_cursor(self, offset: int) -> None:
        """Step the sequential cursor from 0 by ``offset`` positions."""
        if self.max_size <= 0:
            self.cursor = 0
            return
        steps = max(0, min(offset, self.max_size))
        self.cursor = steps % self.max_size

    def _check(self, addr: int) -> None:
        if not self.random_access:
            raise MemPhyError("sequential access is not supported by this device")
        if not 0 <= addr < self.max_size:
            raise MemPhyError(f"address {addr} out of range")

    def read(self, addr: int) -> int:
        """Return the signed byte stored at ``addr``."""
        self._check(addr)
        return _to_signed_byte(self.storage[addr])

    def write(self, addr: int, value: int) -> None:
        """Store the low byte of ``value`` at ``addr``."""
        self._check(addr)
        self.storage[addr] = value & 0xFF

    def get_free_frame(self) -> int:
        """Take the first free frame."""
        if not self.free_frames:
            raise MemPhyError("no free frame")
        return self.free_frames.popleft()

    def put_free_frame(self, fpn: int) -> None:
        """Return a frame to the front of the free list."""
        self.free_frames.appendleft(fpn)

    def dump(self, out: TextIO | None = None) -> None:
        """Print every non-zero byte of the device."""
        out = out or sys.stdout
        print("===== PHYSICAL MEMORY DUMP =====", file=out)
        for addr, value in enumerate(self.storage):
            if value:
                print(f"BYTE {addr:08X}: {_to_signed_byte(value)}", file=out)
        print("===== PHYSICAL MEMORY END-DUMP =====", file=out)
        print("=" * 64, file=out)