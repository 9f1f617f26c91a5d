import pytest

from teachos.memory import (
    KERNBASE,
    PGSIZE,
    PHYSTOP,
    PTE_P,
    PTE_W,
    MemoryError_,
    PageAllocator,
    p2v,
    pdx,
    pgaddr,
    pgrounddown,
    pgroundup,
    pte_addr,
    pte_flags,
    ptx,
    v2p,
)

KERNEL_END = p2v(0x200000)


def test_pgroundup_rounds_to_next_page():
    assert pgroundup(1) == PGSIZE
    assert pgroundup(PGSIZE) == PGSIZE
    assert pgroundup(PGSIZE + 1) == 2 * PGSIZE
    assert pgroundup(0) == 0


def test_pgrounddown_rounds_to_page_start():
    assert pgrounddown(PGSIZE + 1) == PGSIZE
    assert pgrounddown(PGSIZE - 1) == 0


@pytest.mark.parametrize("va", [0, KERNBASE, KERNBASE + 0x12345, 0xFFFFFFFF])
def test_pgaddr_inverts_pdx_ptx(va):
    assert pgaddr(pdx(va), ptx(va), va & 0xFFF) == va


def test_indices_in_range():
    va = 0xFFFFFFFF
    assert pdx(va) == 0x3FF
    assert ptx(va) == 0x3FF


def test_pte_split():
    pte = 0x00ABC000 | PTE_P | PTE_W
    assert pte_addr(pte) == 0x00ABC000
    assert pte_flags(pte) == PTE_P | PTE_W
    assert pte_addr(pte) | pte_flags(pte) == pte


def test_v2p_p2v_round_trip():
    assert v2p(KERNBASE) == 0
    assert p2v(0) == KERNBASE
    for pa in (0, 0x7000, PHYSTOP - PGSIZE):
        assert v2p(p2v(pa)) == pa


def test_v2p_wraps_below_kernbase():
    assert v2p(0) >= PHYSTOP


def test_free_range_counts_pages():
    alloc = PageAllocator(KERNEL_END)
    alloc.free_range(KERNEL_END, KERNEL_END + 4 * PGSIZE)
    assert len(alloc) == 4


def test_free_range_skips_partial_pages():
    alloc = PageAllocator(KERNEL_END)
    alloc.free_range(KERNEL_END + 1, KERNEL_END + 3 * PGSIZE + 10)
    assert len(alloc) == 2


def test_alloc_is_last_in_first_out():
    alloc = PageAllocator(KERNEL_END)
    alloc.free_range(KERNEL_END, KERNEL_END + 3 * PGSIZE)
    first = alloc.alloc()
    assert first == KERNEL_END + 2 * PGSIZE
    alloc.free(first)
    assert alloc.alloc() == first


def test_all_pages_distinct_and_aligned():
    alloc = PageAllocator(KERNEL_END)
    alloc.free_range(KERNEL_END, KERNEL_END + 5 * PGSIZE)
    pages = [alloc.alloc() for _ in range(5)]
    assert len(set(pages)) == 5
    assert all(p % PGSIZE == 0 for p in pages)
    with pytest.raises(MemoryError_):
        alloc.alloc()


def test_empty_allocator_raises():
    with pytest.raises(MemoryError_):
        PageAllocator(KERNEL_END).alloc()


@pytest.mark.parametrize(
    "addr",
    [KERNEL_END + 1, KERNEL_END - PGSIZE, p2v(PHYSTOP)],
)
def test_bad_free_raises(addr):
    alloc = PageAllocator(KERNEL_END)
    with pytest.raises(MemoryError_):
        alloc.free(addr)
    assert len(alloc) == 0