"""Inodes, directories and path names on top of the buffer cache and log.

Disk layout: boot block | superblock | log | inode blocks | bitmap | data.
Operations that change the disk must run inside a log transaction.
"""

from __future__ import annotations

import struct
from contextlib import contextmanager
from dataclasses import dataclass, field
from typing import Any, Iterator, MutableMapping, NamedTuple

from teachos.disk import Buf, BufferCache
from teachos.layout import (
    BPB,
    BSIZE,
    DINODE_SIZE,
    DIRENT_SIZE,
    DIRSIZ,
    IPB,
    MAXFILE,
    NDIRECT,
    NINDIRECT,
    ROOTINO,
    DirEntry,
    DiskInode,
    InodeType,
    SuperBlock,
    bblock,
    iblock,
)
from teachos.log import Log

ROOTDEV = 1
NINODE = 50
NDEV = 10

_ADDR = struct.Struct("<I")


class FsError(Exception):
    """Raised when a file-system operation cannot be carried out."""


@dataclass(eq=False)
class Inode:
    """In-memory copy of an inode plus cache bookkeeping."""

    dev: int = 0
    inum: int = 0
    ref: int = 0
    locked: bool = False
    valid: bool = False
    type: int = 0
    major: int = 0
    minor: int = 0
    nlink: int = 0
    size: int = 0
    addrs: list[int] = field(default_factory=lambda: [0] * (NDIRECT + 1))


class _Stat(NamedTuple):
    dev: int
    ino: int
    type: int
    nlink: int
    size: int


def skipelem(path: str) -> tuple[str, str] | None:
    """Split off the first path element: ("a/bb/c") -> ("a", "bb/c").

    The remainder has no leading slashes; None means no element is left.
    """
    path = path.lstrip("/")
    if not path:
        return None
    elem, _, rest = path.partition("/")
    return elem[:DIRSIZ], rest.lstrip("/")


def namecmp(s: str, t: str) -> int:
    """Compare two names on their first DIRSIZ characters, like strncmp."""
    a, b = s[:DIRSIZ], t[:DIRSIZ]
    return (a > b) - (a < b)


class FileSystem:
    """The file system of one device."""

    def __init__(
        self,
        cache: BufferCache,
        dev: int = ROOTDEV,
        devsw: MutableMapping[int, Any] | None = None,
        ninode: int = NINODE,
        log: Log | None = None,
    ) -> None:
        self.cache = cache
        self.dev = dev
        self.devsw: MutableMapping[int, Any] = {} if devsw is None else devsw
        self._icache = [Inode() for _ in range(ninode)]
        with self._block(1) as bp:
            self.sb = SuperBlock.unpack(bp.data)
        self.log = log if log is not None else Log(cache, dev, self.sb)

    @contextmanager
    def _block(self, blockno: int) -> Iterator[Buf]:
        buf = self.cache.read(self.dev, blockno)
        try:
            yield buf
        finally:
            self.cache.release(buf)

    # Blocks.

    def _bzero(self, bno: int) -> None:
        with self._block(bno) as bp:
            bp.data[:] = bytes(BSIZE)
            self.log.log_write(bp)

    def _claim_free_bit(self, bp: Buf, limit: int) -> int | None:
        for bi in range(limit):
            mask = 1 << (bi % 8)
            if not bp.data[bi // 8] & mask:
                bp.data[bi // 8] |= mask
                self.log.log_write(bp)
                return bi
        return None

    def _balloc(self) -> int:
        """Allocate a zeroed disk block."""
        for b in range(0, self.sb.size, BPB):
            with self._block(bblock(b, self.sb)) as bp:
                bi = self._claim_free_bit(bp, min(BPB, self.sb.size - b))
            if bi is not None:
                self._bzero(b + bi)
                return b + bi
        raise FsError("balloc: out of blocks")

    def _bfree(self, b: int) -> None:
        with self._block(bblock(b, self.sb)) as bp:
            bi = b % BPB
            mask = 1 << (bi % 8)
            if not bp.data[bi // 8] & mask:
                raise FsError("freeing free block")
            bp.data[bi // 8] &= ~mask & 0xFF
            self.log.log_write(bp)

    # Inodes.

    def _slot(self, inum: int) -> tuple[int, int]:
        return iblock(inum, self.sb), (inum % IPB) * DINODE_SIZE

    def ialloc(self, itype: int) -> Inode:
        """Allocate a free on-disk inode of the given type; return it unlocked."""
        for inum in range(1, self.sb.ninodes):
            blockno, off = self._slot(inum)
            with self._block(blockno) as bp:
                din = DiskInode.unpack(bp.data[off:off + DINODE_SIZE])
                free = din.type == 0
                if free:
                    bp.data[off:off + DINODE_SIZE] = DiskInode(type=int(itype)).pack()
                    self.log.log_write(bp)
            if free:
                return self.iget(inum)
        raise FsError("ialloc: no inodes")

    def iupdate(self, ip: Inode) -> None:
        """Copy a modified in-memory inode to disk."""
        blockno, off = self._slot(ip.inum)
        din = DiskInode(ip.type, ip.major, ip.minor, ip.nlink, ip.size, list(ip.addrs))
        with self._block(blockno) as bp:
            bp.data[off:off + DINODE_SIZE] = din.pack()
            self.log.log_write(bp)

    def iget(self, inum: int) -> Inode:
        """Find or make the cache entry for an inode; it is neither locked nor read."""
        empty = None
        for ip in self._icache:
            if ip.ref > 0 and ip.dev == self.dev and ip.inum == inum:
                ip.ref += 1
                return ip
            if empty is None and ip.ref == 0:
                empty = ip
        if empty is None:
            raise FsError("iget: no inodes")
        empty.dev = self.dev
        empty.inum = inum
        empty.ref = 1
        empty.valid = False
        return empty

    def idup(self, ip: Inode) -> Inode:
        ip.ref += 1
        return ip

    def ilock(self, ip: Inode | None) -> None:
        """Lock an inode, reading it from disk if needed."""
        if ip is None or ip.ref < 1:
            raise FsError("ilock")
        if ip.locked:
            raise FsError("ilock: inode already locked")
        ip.locked = True
        if not ip.valid:
            blockno, off = self._slot(ip.inum)
            with self._block(blockno) as bp:
                din = DiskInode.unpack(bp.data[off:off + DINODE_SIZE])
            ip.type, ip.major, ip.minor = din.type, din.major, din.minor
            ip.nlink, ip.size, ip.addrs = din.nlink, din.size, list(din.addrs)
            ip.valid = True
            if ip.type == 0:
                raise FsError("ilock: no type")

    def iunlock(self, ip: Inode | None) -> None:
        if ip is None or not ip.locked or ip.ref < 1:
            raise FsError("iunlock")
        ip.locked = False

    def iput(self, ip: Inode) -> None:
        """Drop a reference; free the inode on disk if nothing refers to it."""
        if ip.locked:
            raise FsError("iput: inode is locked")
        ip.locked = True
        try:
            if ip.valid and ip.nlink == 0 and ip.ref == 1:
                self._itrunc(ip)
                ip.type = 0
                self.iupdate(ip)
                ip.valid = False
        finally:
            ip.locked = False
        ip.ref -= 1

    def iunlockput(self, ip: Inode) -> None:
        self.iunlock(ip)
        self.iput(ip)

    # Inode content.

    def _bmap(self, ip: Inode, bn: int) -> int:
        """Disk block of the bn-th block of ip, allocated on first use."""
        if bn < NDIRECT:
            if ip.addrs[bn] == 0:
                ip.addrs[bn] = self._balloc()
            return ip.addrs[bn]
        bn -= NDIRECT
        if bn < NINDIRECT:
            if ip.addrs[NDIRECT] == 0:
                ip.addrs[NDIRECT] = self._balloc()
            with self._block(ip.addrs[NDIRECT]) as bp:
                (addr,) = _ADDR.unpack_from(bp.data, bn * _ADDR.size)
                if addr == 0:
                    addr = self._balloc()
                    _ADDR.pack_into(bp.data, bn * _ADDR.size, addr)
                    self.log.log_write(bp)
            return addr
        raise FsError("bmap: out of range")

    def _itrunc(self, ip: Inode) -> None:
        for i, addr in enumerate(ip.addrs[:NDIRECT]):
            if addr:
                self._bfree(addr)
                ip.addrs[i] = 0
        if ip.addrs[NDIRECT]:
            with self._block(ip.addrs[NDIRECT]) as bp:
                table = struct.unpack_from(f"<{NINDIRECT}I", bp.data)
                for addr in table:
                    if addr:
                        self._bfree(addr)
            self._bfree(ip.addrs[NDIRECT])
            ip.addrs[NDIRECT] = 0
        ip.size = 0
        self.iupdate(ip)

    def stati(self, ip: Inode) -> _Stat:
        return _Stat(ip.dev, ip.inum, ip.type, ip.nlink, ip.size)

    def _device(self, ip: Inode, op: str) -> Any:
        device = self.devsw.get(ip.major) if 0 <= ip.major < NDEV else None
        if device is None or not hasattr(device, op):
            raise FsError(f"no device {ip.major} to {op}")
        return device

    def readi(self, ip: Inode, off: int, n: int) -> bytes:
        """Read up to n bytes at offset off; the inode must be locked."""
        if ip.type == InodeType.DEV:
            return self._device(ip, "read").read(n)
        if off < 0 or off > ip.size or n < 0:
            raise FsError("readi: offset out of range")
        n = min(n, ip.size - off)
        out = bytearray()
        while len(out) < n:
            with self._block(self._bmap(ip, off // BSIZE)) as bp:
                start = off % BSIZE
                m = min(n - len(out), BSIZE - start)
                out += bp.data[start:start + m]
            off += m
        return bytes(out)

    def writei(self, ip: Inode, data: bytes, off: int) -> int:
        """Write data at offset off, growing the file; the inode must be locked."""
        if ip.type == InodeType.DEV:
            return self._device(ip, "write").write(data)
        n = len(data)
        if off < 0 or off > ip.size:
            raise FsError("writei: offset out of range")
        if off + n > MAXFILE * BSIZE:
            raise FsError("writei: file too large")
        view = memoryview(bytes(data))
        tot = 0
        while tot < n:
            with self._block(self._bmap(ip, off // BSIZE)) as bp:
                start = off % BSIZE
                m = min(n - tot, BSIZE - start)
                bp.data[start:start + m] = view[tot:tot + m]
                self.log.log_write(bp)
            tot += m
            off += m
        if n > 0 and off > ip.size:
            ip.size = off
            self.iupdate(ip)
        return n

    # Directories.

    def dirlookup(self, dp: Inode, name: str) -> tuple[Inode, int] | None:
        """Find a name in a directory: (referenced inode, entry offset) or None."""
        if dp.type != InodeType.DIR:
            raise FsError("dirlookup not DIR")
        for off in range(0, dp.size, DIRENT_SIZE):
            raw = self.readi(dp, off, DIRENT_SIZE)
            if len(raw) != DIRENT_SIZE:
                raise FsError("dirlookup read")
            de = DirEntry.unpack(raw)
            if de.inum and namecmp(name, de.name) == 0:
                return self.iget(de.inum), off
        return None

    def dirlink(self, dp: Inode, name: str, inum: int) -> None:
        """Add the entry (name, inum) to directory dp."""
        found = self.dirlookup(dp, name)
        if found is not None:
            self.iput(found[0])
            raise FsError(f"dirlink: {name} already exists")

        off = 0
        while off < dp.size:
            raw = self.readi(dp, off, DIRENT_SIZE)
            if len(raw) != DIRENT_SIZE:
                raise FsError("dirlink read")
            if DirEntry.unpack(raw).inum == 0:
                break
            off += DIRENT_SIZE

        if self.writei(dp, DirEntry(inum, name).pack(), off) != DIRENT_SIZE:
            raise FsError("dirlink")

    # Paths.

    def _namex(self, path: str, parent: bool, cwd: Inode | None) -> tuple[Inode, str]:
        if path.startswith("/") or cwd is None:
            ip = self.iget(ROOTINO)
        else:
            ip = self.idup(cwd)

        rest = path
        while (elem := skipelem(rest)) is not None:
            name, rest = elem
            self.ilock(ip)
            if ip.type != InodeType.DIR:
                self.iunlockput(ip)
                raise FsError(f"not a directory: {path}")
            if parent and rest == "":
                self.iunlock(ip)
                return ip, name
            found = self.dirlookup(ip, name)
            self.iunlockput(ip)
            if found is None:
                raise FsError(f"no such file or directory: {path}")
            ip = found[0]

        if parent:
            self.iput(ip)
            raise FsError(f"no parent directory for: {path}")
        return ip, ""

    def namei(self, path: str, cwd: Inode | None = None) -> Inode:
        """Return a referenced, unlocked inode for a path."""
        return self._namex(path, False, cwd)[0]

    def nameiparent(self, path: str, cwd: Inode | None = None) -> tuple[Inode, str]:
        """Return the parent directory's inode and the final path element."""
        return self._namex(path, True, cwd)