import io

import pytest

from ossim.common import Pcb, VmArea, VmRegion
from ossim.memphy import MemPhy
from ossim.mm import (
    OutOfMemoryError,
    alloc_pages_range,
    get_vm_area_node_at_brk,
    get_vma_by_num,
    inc_vma_limit,
    init_mm,
    mm_swap_page,
    print_areas,
    print_frames,
    print_pages,
    print_pgtbl,
    print_regions,
    swap_copy_page,
    validate_overlap_vm_area,
    vm_map_ram,
    vmap_page_range,
)
from ossim.pte import PAGING_PAGESZ, page_number, pte_fpn, pte_present


@pytest.fixture
def caller():
    return Pcb(
        pid=1,
        mm=init_mm(),
        mram=MemPhy(8 * PAGING_PAGESZ),
        active_mswp=MemPhy(8 * PAGING_PAGESZ),
    )


def test_init_mm_has_empty_area_zero():
    mm = init_mm()
    assert len(mm.mmap) == 1
    vma = mm.mmap[0]
    assert (vma.vm_id, vma.vm_start, vma.vm_end, vma.sbrk) == (0, 0, 0, 0)
    assert vma.free_regions == [VmRegion(0, 0)]
    assert not any(mm.pgd)
    assert get_vma_by_num(mm, 0) is vma
    assert get_vma_by_num(mm, 1) is None


def test_alloc_pages_range_takes_frames_in_order(caller):
    frames = alloc_pages_range(caller, 3)
    assert frames == list(range(3))
    assert list(caller.mram.free_frames) == list(range(3, 8))


def test_alloc_pages_range_out_of_frames(caller):
    with pytest.raises(OutOfMemoryError):
        alloc_pages_range(caller, 9)


def test_vmap_page_range_maps_frames(caller):
    region = vmap_page_range(caller, 2 * PAGING_PAGESZ, 2, [5, 7])
    assert region.start == 2 * PAGING_PAGESZ
    assert region.end == 3 * PAGING_PAGESZ
    pgd = caller.mm.pgd
    assert pte_present(pgd[2]) and pte_fpn(pgd[2]) == 5
    assert pte_present(pgd[3]) and pte_fpn(pgd[3]) == 7
    assert list(caller.mm.fifo_pgn) == [3, 2]


def test_vmap_page_range_with_fewer_frames(caller):
    region = vmap_page_range(caller, 0, 3, [4])
    assert region.end == 2 * PAGING_PAGESZ
    assert pte_fpn(caller.mm.pgd[0]) == 4
    assert not pte_present(caller.mm.pgd[1])
    assert list(caller.mm.fifo_pgn) == [0]


def test_vm_map_ram_uses_ram_frames(caller):
    vm_map_ram(caller, 0, 2 * PAGING_PAGESZ - 1, PAGING_PAGESZ, 2)
    pgd = caller.mm.pgd
    assert not pte_present(pgd[0])
    assert [pte_fpn(pgd[1]), pte_fpn(pgd[2])] == [0, 1]
    assert len(caller.mram.free_frames) == 6


def test_vm_map_ram_out_of_memory_maps_nothing(caller):
    with pytest.raises(OutOfMemoryError):
        vm_map_ram(caller, 0, 0, 0, 20)
    assert not any(caller.mm.pgd)


def test_swap_copy_page_copies_whole_page():
    src = MemPhy(4 * PAGING_PAGESZ)
    dst = MemPhy(4 * PAGING_PAGESZ)
    for cell in range(PAGING_PAGESZ):
        src.write(PAGING_PAGESZ + cell, cell)
    swap_copy_page(src, 1, dst, 2)
    assert (
        dst.storage[2 * PAGING_PAGESZ : 3 * PAGING_PAGESZ]
        == src.storage[PAGING_PAGESZ : 2 * PAGING_PAGESZ]
    )
    assert not any(dst.storage[: 2 * PAGING_PAGESZ])


def test_mm_swap_page_copies_ram_to_active_swap(caller):
    caller.mram.write(3 * PAGING_PAGESZ + 9, 77)
    mm_swap_page(caller, 3, 0)
    assert caller.active_mswp.read(9) == 77


def test_get_vm_area_node_at_brk_moves_break(caller):
    vma = caller.mm.mmap[0]
    first = get_vm_area_node_at_brk(caller, 0, PAGING_PAGESZ, PAGING_PAGESZ)
    assert first.start == -1
    assert first.end == PAGING_PAGESZ - 1
    assert vma.sbrk == first.end + 1
    second = get_vm_area_node_at_brk(caller, 0, PAGING_PAGESZ, PAGING_PAGESZ)
    assert second.start == PAGING_PAGESZ
    assert second.end == 2 * PAGING_PAGESZ - 1
    assert vma.sbrk == second.end + 1


def test_get_vm_area_node_at_brk_unknown_area(caller):
    assert get_vm_area_node_at_brk(caller, 3, 10, PAGING_PAGESZ) is None


def test_validate_overlap(caller):
    caller.mm.mmap.append(VmArea(vm_id=1, vm_start=1000, vm_end=2000))
    assert validate_overlap_vm_area(caller, 0, 1500, 1600) is False
    assert validate_overlap_vm_area(caller, 0, 3000, 4000) is True
    assert validate_overlap_vm_area(caller, 1, 1500, 1600) is True


def test_validate_overlap_ignores_empty_area(caller):
    caller.mm.mmap.append(VmArea(vm_id=2, vm_start=1500, vm_end=1500))
    assert validate_overlap_vm_area(caller, 0, 1499, 1600) is True


def test_inc_vma_limit_maps_new_pages(caller):
    inc_vma_limit(caller, 0, 2 * PAGING_PAGESZ)
    vma = caller.mm.mmap[0]
    pgd = caller.mm.pgd
    assert vma.sbrk == 2 * PAGING_PAGESZ
    assert vma.vm_end >= vma.sbrk
    assert pte_present(pgd[0]) and pte_present(pgd[1])
    assert not pte_present(pgd[2])
    assert len(caller.mram.free_frames) == 6


def test_inc_vma_limit_overlap(caller):
    caller.mm.mmap.append(VmArea(vm_id=1, vm_start=100, vm_end=5000))
    with pytest.raises(OutOfMemoryError):
        inc_vma_limit(caller, 0, PAGING_PAGESZ)
    assert not any(caller.mm.pgd)


def test_inc_vma_limit_out_of_frames(caller):
    with pytest.raises(OutOfMemoryError):
        inc_vma_limit(caller, 0, 9 * PAGING_PAGESZ)


def test_print_lists():
    out = io.StringIO()
    print_frames([], out)
    print_frames([1, 2], out)
    assert out.getvalue() == "print_list_fp: NULL list\nprint_list_fp: \nfp[1]\nfp[2]\n\n"

    out = io.StringIO()
    print_regions([VmRegion(3, 9)], out)
    assert out.getvalue() == "print_list_rg: \nrg[3->9]\n\n"

    out = io.StringIO()
    print_areas([VmArea(vm_start=0, vm_end=255)], out)
    assert out.getvalue() == "print_list_vma: \nva[0->255]\n\n"

    out = io.StringIO()
    print_pages([4], out)
    assert out.getvalue().startswith("print_list_pgn: \nva[4]-\n")


def test_print_pgtbl_whole_area(caller):
    inc_vma_limit(caller, 0, 2 * PAGING_PAGESZ)
    vma = caller.mm.mmap[0]
    out = io.StringIO()
    print_pgtbl(caller, 0, -1, out)
    lines = out.getvalue().splitlines()
    assert lines[0] == f"print_pgtbl: 0 - {vma.vm_end}"
    assert len(lines) == 1 + page_number(vma.vm_end)
    assert lines[1] == f"00000000: {caller.mm.pgd[0]:08x}"
    assert lines[2].startswith("00000004: ")


def test_print_pgtbl_without_caller():
    out = io.StringIO()
    print_pgtbl(None, 0, 10, out)
    assert out.getvalue().endswith("NULL caller\n")