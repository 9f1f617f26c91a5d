"""An in-memory disk and the buffer cache that sits in front of it."""

from __future__ import annotations

from dataclasses import dataclass, field

from teachos.layout import BSIZE, BufFlags

DEFAULT_NBUF = 30


class DiskError(Exception):
    """Raised when a disk or buffer-cache request is invalid."""


@dataclass(eq=False)
class Buf:
    """A cached copy of one disk block."""

    dev: int = -1
    blockno: int = -1
    flags: BufFlags = BufFlags(0)
    refcnt: int = 0
    locked: bool = False
    data: bytearray = field(default_factory=lambda: bytearray(BSIZE))


class MemDisk:
    """A disk whose blocks live in a byte array."""

    def __init__(self, image: bytes, dev: int = 1) -> None:
        self._data = bytearray(image)
        self.dev = dev
        self.nblocks = len(self._data) // BSIZE

    def sync(self, buf: Buf) -> None:
        """Write a dirty buffer to disk, or fill an invalid one from disk."""
        if not buf.locked:
            raise DiskError("iderw: buf not locked")
        if buf.flags & (BufFlags.VALID | BufFlags.DIRTY) == BufFlags.VALID:
            raise DiskError("iderw: nothing to do")
        if buf.dev != self.dev:
            raise DiskError(f"iderw: request not for disk {self.dev}")
        if not 0 <= buf.blockno < self.nblocks:
            raise DiskError("iderw: block out of range")

        start = buf.blockno * BSIZE
        if buf.flags & BufFlags.DIRTY:
            buf.flags &= ~BufFlags.DIRTY
            self._data[start:start + BSIZE] = buf.data
        else:
            buf.data[:] = self._data[start:start + BSIZE]
        buf.flags |= BufFlags.VALID

    def image(self) -> bytes:
        return bytes(self._data)


class BufferCache:
    """A fixed set of block buffers kept in most-recently-used order."""

    def __init__(self, disk: MemDisk, nbuf: int = DEFAULT_NBUF) -> None:
        if nbuf < 1:
            raise ValueError("the cache needs at least one buffer")
        self.disk = disk
        # Index 0 is the most recently used buffer.
        self._mru: list[Buf] = [Buf() for _ in range(nbuf)]

    def _get(self, dev: int, blockno: int) -> Buf:
        for b in self._mru:
            if b.dev == dev and b.blockno == blockno:
                if b.locked:
                    raise DiskError(f"bget: block {blockno} is already in use")
                b.refcnt += 1
                b.locked = True
                return b

        for b in reversed(self._mru):
            if b.refcnt == 0 and not b.flags & BufFlags.DIRTY:
                b.dev = dev
                b.blockno = blockno
                b.flags = BufFlags(0)
                b.refcnt = 1
                b.locked = True
                return b
        raise DiskError("bget: no buffers")

    def read(self, dev: int, blockno: int) -> Buf:
        """Return a locked buffer holding the contents of the block."""
        b = self._get(dev, blockno)
        if not b.flags & BufFlags.VALID:
            self.disk.sync(b)
        return b

    def write(self, buf: Buf) -> None:
        """Write a locked buffer's contents to disk."""
        if not buf.locked:
            raise DiskError("bwrite")
        buf.flags |= BufFlags.DIRTY
        self.disk.sync(buf)

    def release(self, buf: Buf) -> None:
        """Unlock a buffer; once unreferenced it becomes the most recently used."""
        if not buf.locked:
            raise DiskError("brelse")
        buf.locked = False
        buf.refcnt -= 1
        if buf.refcnt == 0:
            self._mru.remove(buf)
            self._mru.insert(0, buf)