"""Open files: a table of reference-counted file objects and in-memory pipes."""

from __future__ import annotations

import errno
import threading
from dataclasses import dataclass
from enum import Enum
from typing import Any

from teachos.layout import BSIZE
from teachos.log import MAXOPBLOCKS

NFILE = 100
PIPESIZE = 512


class FileType(Enum):
    """What an open file refers to."""

    NONE = 0
    PIPE = 1
    INODE = 2


class Pipe:
    """A bounded byte channel with one read end and one write end."""

    def __init__(self, capacity: int = PIPESIZE) -> None:
        if capacity < 1:
            raise ValueError("a pipe needs room for at least one byte")
        self.capacity = capacity
        self.readopen = True
        self.writeopen = True
        self._buf = bytearray()
        self._cond = threading.Condition()

    @property
    def closed(self) -> bool:
        """True once both ends have been closed."""
        return not self.readopen and not self.writeopen

    def write(self, data: bytes) -> int:
        """Write all of data, waiting while the pipe is full.

        Raises BrokenPipeError if the pipe is full and the read end is closed.
        """
        data = bytes(data)
        written = 0
        with self._cond:
            while written < len(data):
                space = self.capacity - len(self._buf)
                if space == 0:
                    if not self.readopen:
                        raise BrokenPipeError("pipe: read end closed")
                    self._cond.notify_all()
                    self._cond.wait()
                    continue
                chunk = data[written:written + space]
                self._buf += chunk
                written += len(chunk)
            self._cond.notify_all()
        return len(data)

    def read(self, n: int) -> bytes:
        """Read up to n bytes, waiting while the pipe is empty and a writer remains.

        Returns b"" once the pipe is empty and the write end is closed.
        """
        if n < 0:
            raise ValueError("cannot read a negative number of bytes")
        with self._cond:
            while not self._buf and self.writeopen:
                self._cond.wait()
            out = bytes(self._buf[:n])
            del self._buf[:n]
            self._cond.notify_all()
        return out

    def close(self, writable: bool) -> None:
        """Close the write end if writable is true, else the read end."""
        with self._cond:
            if writable:
                self.writeopen = False
            else:
                self.readopen = False
            self._cond.notify_all()


@dataclass(eq=False)
class File:
    """One open file: a pipe end or an inode with a current offset."""

    type: FileType = FileType.NONE
    ref: int = 0
    readable: bool = False
    writable: bool = False
    pipe: Pipe | None = None
    ip: Any = None
    off: int = 0


class FileTable:
    """A fixed-size table of open files, optionally backed by a file system."""

    def __init__(self, fs: Any = None, nfile: int = NFILE) -> None:
        self.fs = fs
        self._files = [File() for _ in range(nfile)]
        self._lock = threading.Lock()

    def alloc(self) -> File:
        """Return an unused file with one reference."""
        with self._lock:
            for f in self._files:
                if f.ref == 0:
                    f.ref = 1
                    return f
        raise OSError(errno.ENFILE, "file table full")

    def dup(self, f: File) -> File:
        with self._lock:
            if f.ref < 1:
                raise RuntimeError("filedup")
            f.ref += 1
        return f

    def close(self, f: File) -> None:
        """Drop a reference; on the last one release the pipe end or inode."""
        with self._lock:
            if f.ref < 1:
                raise RuntimeError("fileclose")
            f.ref -= 1
            if f.ref > 0:
                return
            kind, pipe, ip, writable = f.type, f.pipe, f.ip, f.writable
            f.type = FileType.NONE
            f.pipe = None
            f.ip = None
            f.readable = f.writable = False
            f.off = 0

        if kind is FileType.PIPE and pipe is not None:
            pipe.close(writable)
        elif kind is FileType.INODE:
            fs = self._require_fs()
            with fs.log.transaction():
                fs.iput(ip)

    def _require_fs(self) -> Any:
        if self.fs is None:
            raise RuntimeError("file table has no file system")
        return self.fs

    def stat(self, f: File) -> Any:
        """Metadata of an inode-backed file."""
        if f.type is not FileType.INODE:
            raise OSError(errno.EBADF, "stat needs an inode")
        fs = self._require_fs()
        fs.ilock(f.ip)
        try:
            return fs.stati(f.ip)
        finally:
            fs.iunlock(f.ip)

    def read(self, f: File, n: int) -> bytes:
        """Read up to n bytes from f, advancing its offset."""
        if not f.readable:
            raise PermissionError(errno.EBADF, "file not open for reading")
        if f.type is FileType.PIPE:
            return f.pipe.read(n)
        if f.type is FileType.INODE:
            fs = self._require_fs()
            fs.ilock(f.ip)
            try:
                data = fs.readi(f.ip, f.off, n)
                f.off += len(data)
            finally:
                fs.iunlock(f.ip)
            return data
        raise RuntimeError("fileread")

    def write(self, f: File, data: bytes) -> int:
        """Write all of data to f, a few blocks per transaction for inodes."""
        if not f.writable:
            raise PermissionError(errno.EBADF, "file not open for writing")
        if f.type is FileType.PIPE:
            return f.pipe.write(data)
        if f.type is FileType.INODE:
            fs = self._require_fs()
            data = bytes(data)
            # Room for the inode, an indirect block, bitmap blocks and
            # two blocks of slop for unaligned writes.
            limit = ((MAXOPBLOCKS - 1 - 1 - 2) // 2) * BSIZE
            done = 0
            while done < len(data):
                chunk = data[done:done + limit]
                with fs.log.transaction():
                    fs.ilock(f.ip)
                    try:
                        r = fs.writei(f.ip, chunk, f.off)
                        f.off += r
                    finally:
                        fs.iunlock(f.ip)
                if r != len(chunk):
                    raise RuntimeError("short filewrite")
                done += r
            return len(data)
        raise RuntimeError("filewrite")

    def pipe(self) -> tuple[File, File]:
        """Make a pipe and return its (read end, write end)."""
        f0 = self.alloc()
        try:
            f1 = self.alloc()
        except OSError:
            self.close(f0)
            raise
        p = Pipe()
        f0.type, f0.readable, f0.writable, f0.pipe = FileType.PIPE, True, False, p
        f1.type, f1.readable, f1.writable, f1.pipe = FileType.PIPE, False, True, p
        return f0, f1