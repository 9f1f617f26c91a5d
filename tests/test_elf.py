import struct

import pytest

from teachos.disk import MemDisk
from teachos.elf import (
    ELF_MAGIC,
    ELF_PROG_LOAD,
    ElfError,
    ElfHeader,
    ProgramHeader,
    load_kernel,
    read_segment,
)


def _kernel(entry=0x100000, filesz=10, memsz=20, magic=ELF_MAGIC):
    header = struct.pack(
        "<I12s2H5I6H", magic, b"\x01\x01\x01" + bytes(9), 2, 3, 1,
        entry, 52, 0, 0, 52, 32, 1, 0, 0, 0,
    )
    ph = struct.pack("<8I", ELF_PROG_LOAD, 4096, entry, entry, filesz, memsz, 5, 4096)
    body = (header + ph).ljust(4096, b"\0")
    return body + b"0123456789"


def _disk(kernel):
    return bytes(512) + kernel


def test_magic_matches_elf_bytes():
    data = b"\x7fELF" + bytes(48)
    assert ElfHeader.unpack(data).magic == ELF_MAGIC


def test_header_fields():
    h = ElfHeader.unpack(_kernel())
    assert h.entry == 0x100000
    assert h.phoff == 52
    assert h.phnum == 1


def test_program_header_fields():
    ph = ProgramHeader.unpack(_kernel()[52:84])
    assert ph.type == ELF_PROG_LOAD
    assert ph.off == 4096
    assert ph.filesz == 10
    assert ph.memsz == 20


def test_short_headers_rejected():
    with pytest.raises(ElfError):
        ElfHeader.unpack(b"\x7fELF")
    with pytest.raises(ElfError):
        ProgramHeader.unpack(bytes(8))


def test_read_segment_skips_boot_sector():
    kernel = _kernel()
    assert read_segment(_disk(kernel), 5, 2) == kernel[2:7]


def test_read_segment_zero_fills_past_end():
    kernel = _kernel()
    data = read_segment(_disk(kernel), 20, len(kernel) - 4)
    assert data == kernel[-4:] + bytes(16)


def test_read_segment_accepts_memdisk():
    kernel = _kernel()
    disk = MemDisk(_disk(kernel).ljust(512 * 10, b"\0"))
    assert read_segment(disk, 10, 4096) == b"0123456789"


def test_load_kernel_segments():
    loaded = load_kernel(_disk(_kernel()))
    assert loaded.entry == 0x100000
    assert loaded.segments == [(0x100000, b"0123456789" + bytes(10))]


def test_load_kernel_memsz_not_larger():
    loaded = load_kernel(_disk(_kernel(filesz=10, memsz=10)))
    assert loaded.segments[0][1] == b"0123456789"


def test_load_kernel_rejects_bad_magic():
    with pytest.raises(ElfError):
        load_kernel(_disk(_kernel(magic=0)))