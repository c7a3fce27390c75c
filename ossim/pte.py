"""Bit helpers, paging geometry and page-table-entry encoding."""

from __future__ import annotations

MASK32 = 0xFFFFFFFF
BITS_PER_LONG = 32
BITS_PER_BYTE = 8


def div_round_up(n: int, d: int) -> int:
    """Integer division of ``n`` by ``d`` rounded towards +infinity."""
    return (n + d - 1) // d


def genmask(h: int, l: int) -> int:
    """Contiguous 32-bit mask covering bits ``l`` through ``h`` inclusive."""
    if not 0 <= l <= h < BITS_PER_LONG:
        raise ValueError(f"invalid mask range {h}..{l}")
    return ((MASK32 << l) & MASK32) & (MASK32 >> (BITS_PER_LONG - h - 1))


def nbits(n: int) -> int:
    """Index of the highest set bit of the low 32 bits of ``n`` (0 for 0)."""
    n &= MASK32
    return n.bit_length() - 1 if n else 0


def extract_nbits(nr: int, h: int, l: int) -> int:
    """Value held in bits ``l`` through ``h`` of ``nr``."""
    return (nr & genmask(h, l)) >> l


# Paging geometry
PAGING_CPU_BUS_WIDTH = 22
PAGING_PAGESZ = 256
PAGING_MEMRAMSZ = 1 << 21
PAGING_MEMSWPSZ = 1 << 29
PAGING_SWPFPN_OFFSET = 5
PAGING_MAX_PGN = div_round_up(1 << PAGING_CPU_BUS_WIDTH, PAGING_PAGESZ)
PAGING_SBRK_INIT_SZ = PAGING_PAGESZ

# PTE flag bits
PAGING_PTE_PRESENT_MASK = 1 << 31
PAGING_PTE_SWAPPED_MASK = 1 << 30
PAGING_PTE_RESERVE_MASK = 1 << 29
PAGING_PTE_DIRTY_MASK = 1 << 28
PAGING_PTE_EMPTY01_MASK = 1 << 14
PAGING_PTE_EMPTY02_MASK = 1 << 13

PAGING_PTE_USRNUM_LOBIT = 15
PAGING_PTE_USRNUM_HIBIT = 27
PAGING_PTE_FPN_LOBIT = 0
PAGING_PTE_FPN_HIBIT = 12
PAGING_PTE_SWPTYP_LOBIT = 0
PAGING_PTE_SWPTYP_HIBIT = 4
PAGING_PTE_SWPOFF_LOBIT = 5
PAGING_PTE_SWPOFF_HIBIT = 25

PAGING_PTE_USRNUM_MASK = genmask(PAGING_PTE_USRNUM_HIBIT, PAGING_PTE_USRNUM_LOBIT)
PAGING_PTE_FPN_MASK = genmask(PAGING_PTE_FPN_HIBIT, PAGING_PTE_FPN_LOBIT)
PAGING_PTE_SWPTYP_MASK = genmask(PAGING_PTE_SWPTYP_HIBIT, PAGING_PTE_SWPTYP_LOBIT)
PAGING_PTE_SWPOFF_MASK = genmask(PAGING_PTE_SWPOFF_HIBIT, PAGING_PTE_SWPOFF_LOBIT)

# Virtual address layout
PAGING_ADDR_OFFST_LOBIT = 0
PAGING_ADDR_OFFST_HIBIT = nbits(PAGING_PAGESZ) - 1
PAGING_ADDR_PGN_LOBIT = nbits(PAGING_PAGESZ)
PAGING_ADDR_PGN_HIBIT = PAGING_CPU_BUS_WIDTH - 1
PAGING_ADDR_FPN_LOBIT = nbits(PAGING_PAGESZ)
PAGING_ADDR_FPN_HIBIT = nbits(PAGING_MEMRAMSZ) - 1
PAGING_SWP_LOBIT = nbits(PAGING_PAGESZ)
PAGING_SWP_HIBIT = nbits(PAGING_MEMSWPSZ) - 1

PAGING_OFFST_MASK = genmask(PAGING_ADDR_OFFST_HIBIT, PAGING_ADDR_OFFST_LOBIT)
PAGING_PGN_MASK = genmask(PAGING_ADDR_PGN_HIBIT, PAGING_ADDR_PGN_LOBIT)
PAGING_FPN_MASK = genmask(PAGING_ADDR_FPN_HIBIT, PAGING_ADDR_FPN_LOBIT)
PAGING_SWP_MASK = genmask(PAGING_SWP_HIBIT, PAGING_SWP_LOBIT)


def page_align(size: int) -> int:
    """Round ``size`` up to a whole number of pages."""
    return div_round_up(size, PAGING_PAGESZ) * PAGING_PAGESZ


def page_number(addr: int) -> int:
    """Page number of a virtual address."""
    return (addr & PAGING_PGN_MASK) >> PAGING_ADDR_PGN_LOBIT


def page_offset(addr: int) -> int:
    """Offset of a virtual address inside its page."""
    return (addr & PAGING_OFFST_MASK) >> PAGING_ADDR_OFFST_LOBIT


def physical_address(fpn: int, offset: int) -> int:
    """Physical address of ``offset`` inside frame ``fpn``."""
    return (fpn << PAGING_ADDR_FPN_LOBIT) + offset


def pte_present(pte: int) -> bool:
    """Whether the entry has its present bit set."""
    return bool(pte & PAGING_PTE_PRESENT_MASK)


def pte_fpn(pte: int) -> int:
    """Frame number stored in the entry."""
    return (pte & PAGING_PTE_FPN_MASK) >> PAGING_PTE_FPN_LOBIT


def pte_swp(pte: int) -> int:
    """Swap offset stored in the entry."""
    return (pte & PAGING_PTE_SWPOFF_MASK) >> PAGING_SWPFPN_OFFSET


def _setval(v: int, value: int, mask: int, offset: int) -> int:
    return ((v & ~mask) | ((value << offset) & mask)) & MASK32


def init_pte(pte: int, pre: int, fpn: int, drt: int, swp: int, swptyp: int, swpoff: int) -> int:
    """Return ``pte`` initialised as an online or swapped page.

    An online page (``pre`` set, ``swp`` clear) needs a non-zero ``fpn``.
    The dirty flag is always cleared; ``drt`` is accepted but unused.
    """
    if not pre:
        return pte & MASK32
    pte |= PAGING_PTE_PRESENT_MASK
    pte &= ~PAGING_PTE_DIRTY_MASK
    if not swp:
        if fpn == 0:
            raise ValueError("an online page needs a non-zero frame number")
        pte &= ~PAGING_PTE_SWAPPED_MASK
        return _setval(pte, fpn, PAGING_PTE_FPN_MASK, PAGING_PTE_FPN_LOBIT)
    pte |= PAGING_PTE_SWAPPED_MASK
    pte = _setval(pte, swptyp, PAGING_PTE_SWPTYP_MASK, PAGING_PTE_SWPTYP_LOBIT)
    return _setval(pte, swpoff, PAGING_PTE_SWPOFF_MASK, PAGING_PTE_SWPOFF_LOBIT)


def pte_set_swap(pte: int, swptyp: int, swpoff: int) -> int:
    """Return ``pte`` marked as swapped out to ``swpoff`` on device ``swptyp``."""
    pte |= PAGING_PTE_PRESENT_MASK | PAGING_PTE_SWAPPED_MASK
    pte = _setval(pte, swptyp, PAGING_PTE_SWPTYP_MASK, PAGING_PTE_SWPTYP_LOBIT)
    return _setval(pte, swpoff, PAGING_PTE_SWPOFF_MASK, PAGING_PTE_SWPOFF_LOBIT)


def pte_set_fpn(pte: int, fpn: int) -> int:
    """Return ``pte`` marked as online in frame ``fpn``."""
    pte |= PAGING_PTE_PRESENT_MASK
    pte &= ~PAGING_PTE_SWAPPED_MASK
    return _setval(pte, fpn, PAGING_PTE_FPN_MASK, PAGING_PTE_FPN_LOBIT)