"""Build a file-system image holding a root directory and a set of files."""

from __future__ import annotations

import struct
import sys
from pathlib import Path
from typing import Iterable

from teachos.layout import (
    BPB,
    BSIZE,
    DINODE_SIZE,
    IPB,
    MAXFILE,
    NDIRECT,
    NINDIRECT,
    ROOTINO,
    DirEntry,
    DiskInode,
    InodeType,
    SuperBlock,
    iblock,
)

DEFAULT_FSSIZE = 1000
DEFAULT_NLOG = 30
DEFAULT_NINODES = 200

_INDIRECT = struct.Struct(f"<{NINDIRECT}I")


class ImageBuilder:
    """Lays out an empty file system and appends files to its root directory.

    Disk layout: boot block | superblock | log | inode blocks | bitmap | data.
    """

    def __init__(
        self,
        fssize: int = DEFAULT_FSSIZE,
        nlog: int = DEFAULT_NLOG,
        ninodes: int = DEFAULT_NINODES,
    ) -> None:
        self.fssize = fssize
        self.nlog = nlog
        self.ninodes = ninodes
        self.nbitmap = fssize // BPB + 1
        self.ninodeblocks = ninodes // IPB + 1
        self.nmeta = 2 + nlog + self.ninodeblocks + self.nbitmap
        self.nblocks = fssize - self.nmeta
        if self.nblocks <= 0:
            raise ValueError("image too small for its metadata")

        self.sb = SuperBlock(
            size=fssize,
            nblocks=self.nblocks,
            ninodes=ninodes,
            nlog=nlog,
            logstart=2,
            inodestart=2 + nlog,
            bmapstart=2 + nlog + self.ninodeblocks,
        )
        self.freeblock = self.nmeta
        self.freeinode = 1
        self._image = bytearray(fssize * BSIZE)
        self.write_sector(1, self.sb.pack())

        self.root = self.alloc_inode(InodeType.DIR)
        if self.root != ROOTINO:
            raise RuntimeError("root directory did not get the root inode number")
        self.append(self.root, DirEntry(self.root, ".").pack())
        self.append(self.root, DirEntry(self.root, "..").pack())

    def write_sector(self, sec: int, data: bytes) -> None:
        """Store up to one block of data at sector ``sec``, zero-padded."""
        if not 0 <= sec < self.fssize:
            raise ValueError(f"sector {sec} outside image")
        if len(data) > BSIZE:
            raise ValueError("sector data larger than a block")
        start = sec * BSIZE
        self._image[start:start + BSIZE] = bytes(data).ljust(BSIZE, b"\0")

    def read_sector(self, sec: int) -> bytes:
        if not 0 <= sec < self.fssize:
            raise ValueError(f"sector {sec} outside image")
        start = sec * BSIZE
        return bytes(self._image[start:start + BSIZE])

    def _inode_slot(self, inum: int) -> tuple[int, int]:
        return iblock(inum, self.sb), (inum % IPB) * DINODE_SIZE

    def read_inode(self, inum: int) -> DiskInode:
        bn, off = self._inode_slot(inum)
        return DiskInode.unpack(self.read_sector(bn)[off:off + DINODE_SIZE])

    def write_inode(self, inum: int, dinode: DiskInode) -> None:
        bn, off = self._inode_slot(inum)
        block = bytearray(self.read_sector(bn))
        block[off:off + DINODE_SIZE] = dinode.pack()
        self.write_sector(bn, block)

    def alloc_inode(self, itype: int) -> int:
        """Give out the next inode number with one link and no content."""
        inum = self.freeinode
        if inum >= self.ninodes:
            raise ValueError("out of inodes")
        self.freeinode += 1
        self.write_inode(inum, DiskInode(type=int(itype), nlink=1, size=0))
        return inum

    def _next_block(self) -> int:
        if self.freeblock >= self.fssize:
            raise ValueError("out of blocks")
        block = self.freeblock
        self.freeblock += 1
        return block

    def append(self, inum: int, data: bytes) -> None:
        """Append bytes to the end of inode ``inum``, allocating blocks as needed."""
        din = self.read_inode(inum)
        off = din.size
        view = memoryview(bytes(data))
        pos = 0
        while pos < len(view):
            fbn = off // BSIZE
            if fbn >= MAXFILE:
                raise ValueError("file too large")
            if fbn < NDIRECT:
                if din.addrs[fbn] == 0:
                    din.addrs[fbn] = self._next_block()
                addr = din.addrs[fbn]
            else:
                if din.addrs[NDIRECT] == 0:
                    din.addrs[NDIRECT] = self._next_block()
                indirect = list(_INDIRECT.unpack(self.read_sector(din.addrs[NDIRECT])))
                if indirect[fbn - NDIRECT] == 0:
                    indirect[fbn - NDIRECT] = self._next_block()
                    self.write_sector(din.addrs[NDIRECT], _INDIRECT.pack(*indirect))
                addr = indirect[fbn - NDIRECT]

            n1 = min(len(view) - pos, (fbn + 1) * BSIZE - off)
            block = bytearray(self.read_sector(addr))
            start = off - fbn * BSIZE
            block[start:start + n1] = view[pos:pos + n1]
            self.write_sector(addr, block)
            pos += n1
            off += n1
        din.size = off
        self.write_inode(inum, din)

    def add_file(self, name: str, data: bytes) -> int:
        """Add a file to the root directory; a leading underscore is dropped."""
        if "/" in name:
            raise ValueError(f"file name may not contain '/': {name}")
        if name.startswith("_"):
            name = name[1:]
        inum = self.alloc_inode(InodeType.FILE)
        self.append(self.root, DirEntry(inum, name).pack())
        self.append(inum, data)
        return inum

    def finish(self) -> bytes:
        """Round the root directory up to a whole block, write the bitmap, return the image."""
        din = self.read_inode(self.root)
        din.size = (din.size // BSIZE + 1) * BSIZE
        self.write_inode(self.root, din)

        used = self.freeblock
        if used >= BSIZE * 8:
            raise ValueError("too many blocks in use for one bitmap block")
        bitmap = bytearray(BSIZE)
        for i in range(used):
            bitmap[i // 8] |= 1 << (i % 8)
        self.write_sector(self.sb.bmapstart, bitmap)
        return bytes(self._image)


def build_image(
    files: Iterable[tuple[str, bytes]],
    fssize: int = DEFAULT_FSSIZE,
    nlog: int = DEFAULT_NLOG,
    ninodes: int = DEFAULT_NINODES,
) -> bytes:
    """Return a complete image holding the given (name, data) pairs."""
    builder = ImageBuilder(fssize, nlog, ninodes)
    for name, data in files:
        builder.add_file(name, data)
    return builder.finish()


def main(argv: list[str] | None = None) -> int:
    args = sys.argv[1:] if argv is None else list(argv)
    if not args:
        print("Usage: mkfs fs.img files...", file=sys.stderr)
        return 1

    image_path, names = args[0], args[1:]
    builder = ImageBuilder()
    print(
        f"nmeta {builder.nmeta} (boot, super, log blocks {builder.nlog} "
        f"inode blocks {builder.ninodeblocks}, bitmap blocks {builder.nbitmap}) "
        f"blocks {builder.nblocks} total {builder.fssize}"
    )
    try:
        for name in names:
            if "/" in name:
                print(f"mkfs: {name}: file must be in the current directory", file=sys.stderr)
                return 1
            builder.add_file(name, Path(name).read_bytes())
        used = builder.freeblock
        image = builder.finish()
    except OSError as exc:
        print(f"{exc.filename}: {exc.strerror}", file=sys.stderr)
        return 1
    except ValueError as exc:
        print(f"mkfs: {exc}", file=sys.stderr)
        return 1

    print(f"balloc: first {used} blocks have been allocated")
    print(f"balloc: write bitmap block at sector {builder.sb.bmapstart}")
    try:
        Path(image_path).write_bytes(image)
    except OSError as exc:
        print(f"{image_path}: {exc.strerror}", file=sys.stderr)
        return 1
    return 0


if __name__ == "__main__":
    raise SystemExit(main())