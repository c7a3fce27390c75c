"""Region allocation, paged reads and writes, and FIFO page replacement."""

from __future__ import annotations

import threading

from .common import PAGING_MAX_SYMTBL_SZ, MmStruct, Pcb, SyscallRegs, VmRegion
from .memphy import MemPhyError
from .mm import OutOfMemoryError, get_vma_by_num, print_pgtbl
from .pte import (
    page_align,
    page_number,
    page_offset,
    physical_address,
    pte_fpn,
    pte_present,
    pte_set_fpn,
    pte_set_swap,
    pte_swp,
)
from .sysmem import MemOp, sys_memmap

SYS_MEMMAP = 17

_mmvm_lock = threading.Lock()


class AllocationError(Exception):
    """Raised when a memory region cannot be allocated, freed or accessed."""


def _to_signed_byte(value: int) -> int:
    value &= 0xFF
    return value - 256 if value >= 128 else value


def _memmap(caller: Pcb, op: MemOp, a2: int = 0, a3: int = 0) -> SyscallRegs:
    regs = SyscallRegs(a1=op, a2=a2, a3=a3, orig_ax=SYS_MEMMAP)
    if sys_memmap(caller, regs) != 0:
        regs.flags = -1
        raise AllocationError(f"memory-map operation {op.name} failed")
    return regs


def enlist_vm_freerg_list(mm: MmStruct, region: VmRegion) -> None:
    """Insert ``region`` into the free list of the first area, ordered by start.

    A region whose end touches the start of the following free region is
    merged with it.
    """
    regions = mm.mmap[0].free_regions
    index = next(
        (pos for pos, rg in enumerate(regions) if rg.start >= region.start),
        len(regions),
    )
    if index < len(regions) and regions[index].start == region.end:
        following = regions.pop(index)
        region.end = following.end
    regions.insert(index, region)


def get_symrg_byid(mm: MmStruct, rgid: int) -> VmRegion | None:
    """The symbol-table region ``rgid``, or None when the id is out of range."""
    if not 0 <= rgid < PAGING_MAX_SYMTBL_SZ:
        return None
    return mm.symrgtbl[rgid]


def get_free_vmrg_area(caller: Pcb, vmaid: int, size: int) -> VmRegion | None:
    """Cut ``size`` bytes from the first free region of area ``vmaid`` that fits."""
    cur_vma = get_vma_by_num(caller.mm, vmaid)
    if cur_vma is None:
        return None
    for pos, rg in enumerate(cur_vma.free_regions):
        if rg.end - rg.start + 1 >= size:
            found = VmRegion(start=rg.start, end=rg.start + size - 1, vmaid=vmaid)
            rg.start += size
            if rg.start > rg.end:
                del cur_vma.free_regions[pos]
            return found
    return None


def find_victim_page(mm: MmStruct) -> int | None:
    """Remove and return the oldest mapped page, or None when there is none."""
    if not mm.fifo_pgn:
        return None
    return mm.fifo_pgn.pop()


def mm_alloc(caller: Pcb, vmaid: int, rgid: int, size: int) -> int:
    """Allocate ``size`` bytes for symbol ``rgid`` in area ``vmaid``; return its address."""
    if caller is None or caller.mm is None:
        raise AllocationError("caller has no memory map")
    if not 0 <= rgid < PAGING_MAX_SYMTBL_SZ:
        raise AllocationError(f"region id {rgid} out of range")
    if size <= 0:
        raise AllocationError(f"invalid allocation size {size}")

    with _mmvm_lock:
        symrg = caller.mm.symrgtbl[rgid]
        found = get_free_vmrg_area(caller, vmaid, size)
        if found is not None:
            symrg.start, symrg.end = found.start, found.end
            return found.start

        cur_vma = get_vma_by_num(caller.mm, vmaid)
        if cur_vma is None:
            raise AllocationError(f"no virtual memory area {vmaid}")

        inc_sz = page_align(size)
        old_sbrk = cur_vma.sbrk
        _memmap(caller, MemOp.INC, vmaid, inc_sz)

        cur_vma.sbrk = old_sbrk + inc_sz
        cur_vma.vm_end = cur_vma.sbrk
        symrg.start, symrg.end = old_sbrk, old_sbrk + inc_sz

        remain_start = old_sbrk + size
        if remain_start < cur_vma.vm_end:
            enlist_vm_freerg_list(caller.mm, VmRegion(start=remain_start, end=cur_vma.vm_end))
        return old_sbrk


def mm_free(caller: Pcb, vmaid: int, rgid: int) -> None:
    """Release symbol ``rgid`` and give its range back to the free list."""
    with _mmvm_lock:
        if not 0 <= rgid < PAGING_MAX_SYMTBL_SZ:
            raise AllocationError(f"region id {rgid} out of range")
        symrg = caller.mm.symrgtbl[rgid]
        if symrg.is_empty():
            raise AllocationError(f"region {rgid} is not allocated")
        enlist_vm_freerg_list(caller.mm, VmRegion(start=symrg.start, end=symrg.end))
        symrg.start = symrg.end = 0


def pg_getpage(mm: MmStruct, pgn: int, caller: Pcb) -> int:
    """Frame number of page ``pgn``, bringing it online by evicting a victim if needed."""
    pte = mm.pgd[pgn]
    if not pte_present(pte):
        tgtfpn = pte_swp(pte)
        vicpgn = find_victim_page(caller.mm)
        if vicpgn is None:
            raise OutOfMemoryError("no page available to evict")
        try:
            swpfpn = caller.active_mswp.get_free_frame()
        except MemPhyError as exc:
            raise OutOfMemoryError("no free frame on the swap device") from exc

        vicpte = mm.pgd[vicpgn]
        vicfpn = pte_fpn(vicpte)

        _memmap(caller, MemOp.SWP, vicfpn, swpfpn)
        _memmap(caller, MemOp.SWP, tgtfpn, vicfpn)

        mm.pgd[vicpgn] = pte_set_swap(vicpte, caller.active_mswp_id, swpfpn)
        pte = pte_set_fpn(pte, vicfpn)
        mm.pgd[pgn] = pte
        caller.mm.fifo_pgn.appendleft(pgn)
    return pte_fpn(pte)


def pg_getval(mm: MmStruct, addr: int, caller: Pcb) -> int:
    """Read the signed byte at virtual address ``addr``."""
    fpn = pg_getpage(mm, page_number(addr), caller)
    phyaddr = physical_address(fpn, page_offset(addr))
    regs = _memmap(caller, MemOp.IO_READ, phyaddr)
    return _to_signed_byte(regs.a3)


def pg_setval(mm: MmStruct, addr: int, value: int, caller: Pcb) -> None:
    """Write ``value`` as a byte at virtual address ``addr``."""
    fpn = pg_getpage(mm, page_number(addr), caller)
    phyaddr = physical_address(fpn, page_offset(addr))
    _memmap(caller, MemOp.IO_WRITE, phyaddr, value)


def _region_and_area(caller: Pcb, vmaid: int, rgid: int) -> VmRegion:
    currg = get_symrg_byid(caller.mm, rgid)
    cur_vma = get_vma_by_num(caller.mm, vmaid)
    if currg is None or cur_vma is None:
        raise AllocationError(f"invalid region {rgid} in area {vmaid}")
    return currg


def mm_read(caller: Pcb, vmaid: int, rgid: int, offset: int) -> int:
    """Read the byte at ``offset`` inside symbol region ``rgid``."""
    currg = _region_and_area(caller, vmaid, rgid)
    return pg_getval(caller.mm, currg.start + offset, caller)


def mm_write(caller: Pcb, vmaid: int, rgid: int, offset: int, value: int) -> None:
    """Write ``value`` at ``offset`` inside symbol region ``rgid``."""
    currg = _region_and_area(caller, vmaid, rgid)
    pg_setval(caller.mm, currg.start + offset, value, caller)


def _print_mapped_pages(proc: Pcb) -> None:
    for pgn, pte in enumerate(proc.mm.pgd):
        if pte_present(pte):
            print(f"Page Number: {pgn} -> Frame Number: {pte_fpn(pte)}")


def liballoc(proc: Pcb, size: int, reg_index: int) -> int:
    """Allocate ``size`` bytes for register ``reg_index`` in area 0 and report it."""
    try:
        addr = mm_alloc(proc, 0, reg_index, size)
    except AllocationError:
        print(
            f"[liballoc] ERROR: Allocation failed for PID={proc.pid}, "
            f"Region={reg_index}, Size={size}"
        )
        raise
    print(f"PID={proc.pid} - Region={reg_index} - Address={addr:08X} - Size={size} byte")
    print_pgtbl(proc, 0, -1)
    _print_mapped_pages(proc)
    return addr


def libfree(proc: Pcb, reg_index: int) -> None:
    """Free region ``reg_index`` of area 0 and report the page table."""
    try:
        mm_free(proc, 0, reg_index)
    finally:
        print(f"PID={proc.pid} - Region={reg_index}")
        print_pgtbl(proc, 0, -1)
        _print_mapped_pages(proc)


def libread(proc: Pcb, source: int, offset: int) -> int:
    """Read a byte from region ``source`` at ``offset``, report it and return it."""
    data = mm_read(proc, 0, source, offset)
    print(f"read region={source} offset={offset} value={data}")
    print_pgtbl(proc, 0, -1)
    _print_mapped_pages(proc)
    proc.mram.dump()
    return data


def libwrite(proc: Pcb, data: int, destination: int, offset: int) -> None:
    """Write ``data`` into region ``destination`` at ``offset`` and report it."""
    print(
        f"write region={destination} offset={offset} value={_to_signed_byte(data)}"
    )
    print_pgtbl(proc, 0, -1)
    _print_mapped_pages(proc)
    mm_write(proc, 0, destination, offset, data)
    proc.mram.dump()


def free_pcb_memph(caller: Pcb) -> None:
    """Return every frame referenced by the caller's page table to its device."""
    for pte in caller.mm.pgd:
        if not pte_present(pte):
            caller.mram.put_free_frame(pte_fpn(pte))
        else:
            caller.active_mswp.put_free_frame(pte_swp(pte))