"""Physical page allocator and the address arithmetic of the paged memory layout."""

from __future__ import annotations

import threading

# Memory layout.
EXTMEM = 0x100000  # start of extended memory
PHYSTOP = 0xE000000  # top of physical memory
DEVSPACE = 0xFE000000  # other devices live at high addresses
KERNBASE = 0x80000000  # first kernel virtual address
KERNLINK = KERNBASE + EXTMEM  # address where the kernel is linked

# Eflags register.
FL_IF = 0x00000200

# Control register flags.
CR0_PE = 0x00000001
CR0_WP = 0x00010000
CR0_PG = 0x80000000
CR4_PSE = 0x00000010

# Page directory and page table constants.
NPDENTRIES = 1024
NPTENTRIES = 1024
PGSIZE = 4096
PTXSHIFT = 12
PDXSHIFT = 22

# Page table and directory entry flags.
PTE_P = 0x001
PTE_W = 0x002
PTE_U = 0x004
PTE_PS = 0x080

_MASK32 = 0xFFFFFFFF


class MemoryError_(Exception):
    """Raised when a page is freed wrongly or no page is left to allocate."""


def pgroundup(sz: int) -> int:
    """Round sz up to a page boundary."""
    return (sz + PGSIZE - 1) & ~(PGSIZE - 1) & _MASK32


def pgrounddown(a: int) -> int:
    """Round a down to a page boundary."""
    return a & ~(PGSIZE - 1) & _MASK32


def pdx(va: int) -> int:
    """Page directory index of a virtual address."""
    return (va >> PDXSHIFT) & 0x3FF


def ptx(va: int) -> int:
    """Page table index of a virtual address."""
    return (va >> PTXSHIFT) & 0x3FF


def pgaddr(d: int, t: int, o: int) -> int:
    """Virtual address built from a directory index, table index and offset."""
    return ((d << PDXSHIFT) | (t << PTXSHIFT) | o) & _MASK32


def pte_addr(pte: int) -> int:
    """Physical address held in a page table entry."""
    return pte & ~0xFFF & _MASK32


def pte_flags(pte: int) -> int:
    """Flag bits of a page table entry."""
    return pte & 0xFFF


def v2p(a: int) -> int:
    """Physical address of a kernel virtual address (wrapping at 32 bits)."""
    return (a - KERNBASE) & _MASK32


def p2v(a: int) -> int:
    """Kernel virtual address of a physical address (wrapping at 32 bits)."""
    return (a + KERNBASE) & _MASK32


class PageAllocator:
    """Hands out whole pages of physical memory from a free list.

    ``end`` is the first kernel virtual address after the loaded kernel;
    pages below it or at or above ``phystop`` may never be freed.
    """

    def __init__(self, end: int, phystop: int = PHYSTOP) -> None:
        self.end = end
        self.phystop = phystop
        self._free: list[int] = []
        self._lock = threading.Lock()

    def __len__(self) -> int:
        return len(self._free)

    def free_range(self, start: int, end: int) -> None:
        """Free every whole page between start and end."""
        p = pgroundup(start)
        while p + PGSIZE <= end:
            self.free(p)
            p += PGSIZE

    def free(self, addr: int) -> None:
        """Return the page at virtual address addr to the free list."""
        if addr % PGSIZE or addr < self.end or v2p(addr) >= self.phystop:
            raise MemoryError_("kfree")
        with self._lock:
            self._free.append(addr)

    def alloc(self) -> int:
        """Take one page off the free list and return its virtual address."""
        with self._lock:
            if not self._free:
                raise MemoryError_("kalloc: out of memory")
            return self._free.pop()