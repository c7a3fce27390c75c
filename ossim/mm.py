"""Virtual memory areas, page mapping and frame allocation."""

from __future__ import annotations

import sys
from collections.abc import Iterable
from typing import TextIO

from .common import MmStruct, Pcb, VmArea, VmRegion
from .memphy import MemPhy, MemPhyError
from .pte import (
    MASK32,
    PAGING_PAGESZ,
    page_align,
    page_number,
    pte_set_fpn,
)


class OutOfMemoryError(Exception):
    """Raised when a virtual area cannot grow or no frame is left to map it."""


def init_mm() -> MmStruct:
    """Return a fresh paging state with a single empty area 0."""
    vma0 = VmArea(vm_id=0, vm_start=0, vm_end=0, sbrk=0)
    vma0.free_regions.insert(0, VmRegion(vma0.vm_start, vma0.vm_end))
    return MmStruct(mmap=[vma0])


def get_vma_by_num(mm: MmStruct, vmaid: int) -> VmArea | None:
    """The area with id ``vmaid`` (the first one not below it), or None."""
    return mm.area(vmaid)


def vmap_page_range(caller: Pcb, addr: int, pgnum: int, frames: Iterable[int]) -> VmRegion:
    """Map up to ``pgnum`` pages starting at ``addr`` onto ``frames``.

    Pages beyond the supplied frames are left unmapped. Every mapped page
    is recorded as the most recent entry of the FIFO replacement list.
    """
    mm = caller.mm
    region = VmRegion(start=addr, end=addr + (pgnum - 1) * PAGING_PAGESZ)
    for index, fpn in zip(range(pgnum), frames):
        pgn = page_number(addr + index * PAGING_PAGESZ)
        mm.pgd[pgn] = pte_set_fpn(mm.pgd[pgn], fpn)
        mm.fifo_pgn.appendleft(pgn)
    return region


def alloc_pages_range(caller: Pcb, req_pgnum: int) -> list[int]:
    """Take ``req_pgnum`` free frames from the caller's RAM."""
    frames: list[int] = []
    for _ in range(req_pgnum):
        try:
            frames.append(caller.mram.get_free_frame())
        except MemPhyError as exc:
            raise OutOfMemoryError("not enough free frames available") from exc
    return frames


def vm_map_ram(
    caller: Pcb, astart: int, aend: int, mapstart: int, incpgnum: int
) -> VmRegion:
    """Back ``incpgnum`` pages from ``mapstart`` with newly taken RAM frames."""
    frames = alloc_pages_range(caller, incpgnum)
    return vmap_page_range(caller, mapstart, incpgnum, frames)


def swap_copy_page(mpsrc: MemPhy, srcfpn: int, mpdst: MemPhy, dstfpn: int) -> None:
    """Copy one page from frame ``srcfpn`` of ``mpsrc`` to ``dstfpn`` of ``mpdst``."""
    src_base = srcfpn * PAGING_PAGESZ
    dst_base = dstfpn * PAGING_PAGESZ
    for cell in range(PAGING_PAGESZ):
        mpdst.write(dst_base + cell, mpsrc.read(src_base + cell))


def mm_swap_page(caller: Pcb, vicfpn: int, swpfpn: int) -> None:
    """Copy RAM frame ``vicfpn`` into frame ``swpfpn`` of the active swap device."""
    swap_copy_page(caller.mram, vicfpn, caller.active_mswp, swpfpn)


def get_vm_area_node_at_brk(
    caller: Pcb, vmaid: int, size: int, alignedsz: int
) -> VmRegion | None:
    """Carve a page-aligned region of ``size`` bytes at the area's break.

    The area's break pointer is moved past the new region. Returns None when
    the area does not exist.
    """
    cur_vma = get_vma_by_num(caller.mm, vmaid)
    if cur_vma is None:
        return None
    if vmaid != 0:
        raise ValueError(f"area {vmaid} cannot grow: only area 0 grows upwards")

    old_sbrk = cur_vma.sbrk
    if old_sbrk == cur_vma.vm_start and old_sbrk == cur_vma.vm_end:
        old_sbrk -= 1
    region = VmRegion(start=old_sbrk, vmaid=vmaid)
    region.end = page_align(region.start + size) - 1
    cur_vma.sbrk = region.end + 1
    return region


def validate_overlap_vm_area(caller: Pcb, vmaid: int, vmastart: int, vmaend: int) -> bool:
    """True when ``vmastart``..``vmaend`` touches no other non-empty area."""
    if vmaid == 0:
        vmastart += 1
    for vma in caller.mm.mmap:
        if vma.vm_id == vmaid or vma.vm_end == vma.vm_start:
            continue
        for point in (vmastart, vmaend):
            if point >= vma.vm_end and point <= vma.vm_start:
                return False
            if point <= vma.vm_end and point >= vma.vm_start:
                return False
    return True


def inc_vma_limit(caller: Pcb, vmaid: int, inc_sz: int) -> VmRegion:
    """Grow area ``vmaid`` by ``inc_sz`` bytes and map the new pages into RAM."""
    inc_amt = page_align(inc_sz)
    incnumpage = inc_amt // PAGING_PAGESZ
    area = get_vm_area_node_at_brk(caller, vmaid, inc_sz, inc_amt)
    cur_vma = get_vma_by_num(caller.mm, vmaid)
    if area is None or cur_vma is None:
        raise ValueError(f"no virtual memory area {vmaid}")

    old_end = cur_vma.vm_end
    if not validate_overlap_vm_area(caller, vmaid, area.start, area.end):
        raise OutOfMemoryError(
            f"region {area.start}..{area.end} overlaps another memory area"
        )

    cur_vma.vm_end = page_align(cur_vma.sbrk + inc_sz) - 1
    return vm_map_ram(caller, area.start, area.end, old_end, incnumpage)


def _header(title: str, items: list, out: TextIO) -> bool:
    print(f"{title}: ", end="", file=out)
    if not items:
        print("NULL list", file=out)
        return False
    print(file=out)
    return True


def print_frames(frames: Iterable[int], out: TextIO | None = None) -> None:
    """Print a list of frame numbers."""
    out = out or sys.stdout
    items = list(frames)
    if _header("print_list_fp", items, out):
        for fpn in items:
            print(f"fp[{fpn}]", file=out)
        print(file=out)


def print_regions(regions: Iterable[VmRegion], out: TextIO | None = None) -> None:
    """Print a list of virtual regions."""
    out = out or sys.stdout
    items = list(regions)
    if _header("print_list_rg", items, out):
        for rg in items:
            print(f"rg[{rg.start}->{rg.end}]", file=out)
        print(file=out)


def print_areas(areas: Iterable[VmArea], out: TextIO | None = None) -> None:
    """Print a list of virtual memory areas."""
    out = out or sys.stdout
    items = list(areas)
    if _header("print_list_vma", items, out):
        for vma in items:
            print(f"va[{vma.vm_start}->{vma.vm_end}]", file=out)
        print(file=out)


def print_pages(pages: Iterable[int], out: TextIO | None = None) -> None:
    """Print a list of page numbers."""
    out = out or sys.stdout
    items = list(pages)
    if _header("print_list_pgn", items, out):
        for pgn in items:
            print(f"va[{pgn}]-", file=out)
        print(file=out)


def print_pgtbl(
    caller: Pcb | None, start: int = 0, end: int = -1, out: TextIO | None = None
) -> None:
    """Print the page-table entries from ``start`` up to ``end``.

    An ``end`` of -1 stands for the end of area 0.
    """
    out = out or sys.stdout
    if caller is None or caller.mm is None:
        print(f"print_pgtbl: {start} - {end}NULL caller", file=out)
        return
    if end in (-1, MASK32):
        vma0 = get_vma_by_num(caller.mm, 0)
        end = vma0.vm_end if vma0 is not None else 0
    print(f"print_pgtbl: {start} - {end}", file=out)
    for pgn in range(page_number(start), page_number(end)):
        print(f"{pgn * 4:08d}: {caller.mm.pgd[pgn]:08x}", file=out)