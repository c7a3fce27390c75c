import pytest

from ossim import pte


def test_genmask_low_byte():
    assert pte.genmask(7, 0) == 0xFF


@pytest.mark.parametrize("h,l", [(0, 0), (12, 0), (25, 5), (31, 0), (21, 8)])
def test_genmask_shape(h, l):
    mask = pte.genmask(h, l)
    assert bin(mask).count("1") == h - l + 1
    assert (mask & -mask).bit_length() - 1 == l
    assert mask.bit_length() - 1 == h


def test_genmask_rejects_bad_range():
    with pytest.raises(ValueError):
        pte.genmask(3, 5)


def test_nbits_of_page_size():
    assert pte.nbits(pte.PAGING_PAGESZ) == 8


@pytest.mark.parametrize("k", range(32))
def test_nbits_of_powers(k):
    assert pte.nbits(1 << k) == k
    assert pte.nbits((1 << k) | 1) == k


def test_nbits_zero():
    assert pte.nbits(0) == 0


def test_extract_nbits():
    assert pte.extract_nbits(0xABCD, 7, 4) == 0xC


def test_div_round_up_and_align():
    assert pte.div_round_up(pte.PAGING_PAGESZ, pte.PAGING_PAGESZ) == 1
    assert pte.div_round_up(pte.PAGING_PAGESZ + 1, pte.PAGING_PAGESZ) == 2
    assert pte.page_align(1) == pte.PAGING_PAGESZ
    assert pte.page_align(pte.PAGING_PAGESZ) == pte.PAGING_PAGESZ
    assert pte.page_align(pte.PAGING_PAGESZ + 1) == 2 * pte.PAGING_PAGESZ
    assert pte.page_align(0) == 0


def test_max_pgn_covers_bus():
    last_addr = (1 << pte.PAGING_CPU_BUS_WIDTH) - 1
    assert pte.page_number(last_addr) == pte.PAGING_MAX_PGN - 1


@pytest.mark.parametrize("addr", [0, 1, 255, 256, 300, 4095, (1 << 22) - 1])
def test_address_split_round_trip(addr):
    pgn = pte.page_number(addr)
    off = pte.page_offset(addr)
    assert 0 <= off < pte.PAGING_PAGESZ
    assert pte.physical_address(pgn, off) == addr


def test_set_fpn_round_trip():
    entry = pte.pte_set_fpn(0, 42)
    assert pte.pte_present(entry)
    assert pte.pte_fpn(entry) == 42
    assert not entry & pte.PAGING_PTE_SWAPPED_MASK


def test_set_swap_round_trip():
    entry = pte.pte_set_swap(0, 3, 100)
    assert pte.pte_present(entry)
    assert entry & pte.PAGING_PTE_SWAPPED_MASK
    assert pte.pte_swp(entry) == 100
    assert entry & pte.PAGING_PTE_SWPTYP_MASK == 3


def test_set_fpn_clears_swapped():
    entry = pte.pte_set_swap(0, 1, 7)
    entry = pte.pte_set_fpn(entry, 9)
    assert not entry & pte.PAGING_PTE_SWAPPED_MASK
    assert pte.pte_fpn(entry) == 9


def test_init_pte_online():
    entry = pte.init_pte(pte.PAGING_PTE_DIRTY_MASK, 1, 5, 1, 0, 0, 0)
    assert pte.pte_present(entry)
    assert pte.pte_fpn(entry) == 5
    assert not entry & pte.PAGING_PTE_DIRTY_MASK
    assert not entry & pte.PAGING_PTE_SWAPPED_MASK


def test_init_pte_swapped():
    entry = pte.init_pte(0, 1, 0, 0, 1, 2, 77)
    assert entry & pte.PAGING_PTE_SWAPPED_MASK
    assert pte.pte_swp(entry) == 77
    assert entry & pte.PAGING_PTE_SWPTYP_MASK == 2


def test_init_pte_online_zero_frame_rejected():
    with pytest.raises(ValueError):
        pte.init_pte(0, 1, 0, 0, 0, 0, 0)


def test_init_pte_not_present_unchanged():
    assert pte.init_pte(123, 0, 5, 0, 0, 0, 0) == 123


def test_pte_not_present_by_default():
    assert pte.pte_present(0) is False