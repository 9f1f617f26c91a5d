"""ELF executable headers and a boot-time loader for a kernel on disk."""

from __future__ import annotations

import struct
from dataclasses import dataclass
from typing import NamedTuple

from teachos.disk import MemDisk

ELF_MAGIC = 0x464C457F  # "\x7fELF" read as a little-endian word

ELF_PROG_LOAD = 1

ELF_PROG_FLAG_EXEC = 1
ELF_PROG_FLAG_WRITE = 2
ELF_PROG_FLAG_READ = 4

SECTSIZE = 512
_FIRST_PAGE = 4096

_ELFHDR = struct.Struct("<I12s2H5I6H")
_PROGHDR = struct.Struct("<8I")

ELFHDR_SIZE = _ELFHDR.size
PROGHDR_SIZE = _PROGHDR.size


class ElfError(Exception):
    """Raised when an image is not a loadable ELF executable."""


@dataclass
class ElfHeader:
    """The ELF file header."""

    magic: int
    elf: bytes
    type: int
    machine: int
    version: int
    entry: int
    phoff: int
    shoff: int
    flags: int
    ehsize: int
    phentsize: int
    phnum: int
    shentsize: int
    shnum: int
    shstrndx: int

    @classmethod
    def unpack(cls, data: bytes) -> ElfHeader:
        if len(data) < ELFHDR_SIZE:
            raise ElfError(f"ELF header needs {ELFHDR_SIZE} bytes, got {len(data)}")
        return cls(*_ELFHDR.unpack_from(bytes(data[:ELFHDR_SIZE])))


@dataclass
class ProgramHeader:
    """One program (segment) header."""

    type: int
    off: int
    vaddr: int
    paddr: int
    filesz: int
    memsz: int
    flags: int
    align: int

    @classmethod
    def unpack(cls, data: bytes) -> ProgramHeader:
        if len(data) < PROGHDR_SIZE:
            raise ElfError(f"program header needs {PROGHDR_SIZE} bytes, got {len(data)}")
        return cls(*_PROGHDR.unpack_from(bytes(data[:PROGHDR_SIZE])))


class _LoadedKernel(NamedTuple):
    entry: int
    segments: list[tuple[int, bytes]]


def _raw(disk: bytes | MemDisk) -> memoryview:
    if isinstance(disk, MemDisk):
        return memoryview(disk.image())
    return memoryview(disk)


def read_segment(disk: bytes | MemDisk, count: int, offset: int) -> bytes:
    """Read count bytes at offset within the kernel, which starts at sector 1.

    Bytes past the end of the disk read as zero.
    """
    if count < 0 or offset < 0:
        raise ValueError("count and offset must not be negative")
    raw = _raw(disk)
    start = SECTSIZE + offset
    data = bytes(raw[start:start + count])
    return data.ljust(count, b"\0")


def load_kernel(disk: bytes | MemDisk) -> _LoadedKernel:
    """Load every program segment of the kernel; return its entry and segments.

    Each segment is (physical address, contents), zero-filled up to memsz.
    """
    page = read_segment(disk, _FIRST_PAGE, 0)
    elf = ElfHeader.unpack(page)
    if elf.magic != ELF_MAGIC:
        raise ElfError("not an ELF executable")

    segments: list[tuple[int, bytes]] = []
    for i in range(elf.phnum):
        off = elf.phoff + i * PROGHDR_SIZE
        if off + PROGHDR_SIZE > len(page):
            raise ElfError("program headers lie outside the first page")
        ph = ProgramHeader.unpack(page[off:off + PROGHDR_SIZE])
        data = read_segment(disk, ph.filesz, ph.off)
        if ph.memsz > ph.filesz:
            data += bytes(ph.memsz - ph.filesz)
        segments.append((ph.paddr, data))
    return _LoadedKernel(elf.entry, segments)